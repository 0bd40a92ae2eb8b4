# rf_mutate/pipeline/coding/orf_finder.py
"""ORF resolution: explicit coordinates, amino-acid queries and longest-ORF search."""

import logging
from dataclasses import dataclass
from typing import Optional

from rf_mutate.dataset.annotation_loader import OrfSpec
from rf_mutate.pipeline.coding.genetic_code import GeneticCode
from rf_mutate.pipeline.errors import InvalidOrfError

logger = logging.getLogger("rf_mutate.pipeline.coding.orf_finder")


@dataclass(frozen=True)
class Orf:
    """Coding region, 0-based inclusive coordinates (end is the last base of the stop codon)."""
    start: int
    end: int

    @property
    def frame(self) -> int:
        return self.start % 3

    def __len__(self) -> int:
        return self.end - self.start + 1

    def overlaps(self, start: int, end: int) -> bool:
        return start <= self.end and end >= self.start


def find_stop(sequence: str, start: int, code: GeneticCode) -> Optional[int]:
    """Last base of the first in-frame stop codon downstream of `start`, if any."""
    for pos in range(start, len(sequence) - 2, 3):
        if code.is_stop(sequence[pos:pos + 3]):
            return pos + 2
    return None


def locate_amino_acids(sequence: str, query: str, code: GeneticCode) -> Optional[Orf]:
    """Find the first frame whose translation contains `query`."""
    for frame in range(3):
        translation = code.translate(sequence[frame:])
        idx = translation.find(query)
        if idx != -1:
            start = frame + 3 * idx
            return Orf(start, start + 3 * len(query) - 1)
    return None


def find_longest_orf(
    sequence: str,
    code: GeneticCode,
    min_length: int = 50,
    alt_start: bool = False,
    any_start: bool = False,
) -> Optional[Orf]:
    """
    Longest ORF over the three forward frames.

    An ORF opens at the first start codon after the previous in-frame stop and
    closes at the next stop (inclusive). ORFs without a stop codon are ignored.

    Args:
        sequence: RNA sequence
        code: Active genetic code
        min_length: Minimum ORF length, in codons, not counting the stop codon
        alt_start: Accept the alternative start codons of the table
        any_start: Accept any sense codon as a start

    Returns:
        The longest ORF (lowest start on ties), or None if none reaches min_length
    """
    start_codons = set(code.start_codons) if alt_start else {"AUG"}
    best: Optional[Orf] = None
    for frame in range(3):
        open_start = None
        for pos in range(frame, len(sequence) - 2, 3):
            codon = sequence[pos:pos + 3]
            if code.is_stop(codon):
                if open_start is not None:
                    orf = Orf(open_start, pos + 2)
                    if best is None or len(orf) > len(best) or (len(orf) == len(best) and orf.start < best.start):
                        best = orf
                open_start = None
            elif open_start is None and (any_start or codon in start_codons):
                open_start = pos
    if best is None or len(best) // 3 - 1 < min_length:
        return None
    return best


def resolve_orf(
    transcript_id: str,
    sequence: str,
    code: GeneticCode,
    spec: Optional[OrfSpec] = None,
    longest_orf: bool = False,
    min_length: int = 50,
    alt_start: bool = False,
    any_start: bool = False,
) -> Optional[Orf]:
    """
    Resolve the ORF of a transcript, if any.

    Raises:
        InvalidOrfError: If an explicit ORF specification cannot be resolved
    """
    if spec is None:
        if not longest_orf:
            return None
        orf = find_longest_orf(sequence, code, min_length, alt_start, any_start)
        if orf is None:
            logger.debug(f"[{transcript_id}] No ORF of at least {min_length} codons, treating as non-coding")
        return orf

    if spec.aa_query is not None:
        orf = locate_amino_acids(sequence, spec.aa_query, code)
        if orf is None:
            raise InvalidOrfError(f"[{transcript_id}] Amino-acid sequence not found in any frame")
        return orf

    if spec.start >= len(sequence):
        raise InvalidOrfError(f"[{transcript_id}] ORF start {spec.start} beyond transcript end")
    if spec.end is None:
        end = find_stop(sequence, spec.start, code)
        if end is None:
            raise InvalidOrfError(f"[{transcript_id}] No in-frame stop codon downstream of ORF start {spec.start}")
        return Orf(spec.start, end)
    if spec.end >= len(sequence) or (spec.end - spec.start + 1) % 3:
        raise InvalidOrfError(
            f"[{transcript_id}] ORF {spec.start}-{spec.end} is out of bounds or not a multiple of 3"
        )
    return Orf(spec.start, spec.end)
