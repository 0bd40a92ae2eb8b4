# rf_mutate/pipeline/structure/motif_locator.py
"""
Motif Locator: resolves a motif specifier to a region of a transcript.

A motif is identified by the 5' start of a helix; its region runs from that
position to the paired 3' position. A registered target structure may extend
the region (target longer than the motif) or be padded with unpaired positions
(target shorter). When the region overlaps the ORF its boundaries are widened
to whole codons and the motif is processed in coding mode.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Union

from rf_mutate.dataset.structure_loader import TranscriptEntry
from rf_mutate.pipeline.coding.orf_finder import Orf
from rf_mutate.pipeline.errors import InvalidTargetError, MotifNotFoundError
from rf_mutate.pipeline.structure.dotbracket import (
    UNPAIRED,
    is_valid_structure,
    pad_structure,
    parse_pairs,
    restrict_structure,
)

logger = logging.getLogger("rf_mutate.pipeline.structure.motif_locator")


@dataclass(frozen=True)
class MotifRegion:
    transcript_id: str
    start: int
    end: int
    sequence: str
    structure: str
    helix_start: int
    target: Optional[str] = None
    orf: Optional[Orf] = None

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    @property
    def coding(self) -> bool:
        return self.orf is not None

    @property
    def pairs(self) -> Dict[int, int]:
        """Symmetric base-pair map of the motif structure, motif-relative coordinates."""
        return parse_pairs(self.structure)

    @property
    def reference_structure(self) -> str:
        """Structure the mutants are compared with: the target if any, else the wild type."""
        return self.target if self.target is not None else self.structure


def resolve_motif_start(entry: TranscriptEntry, motif: Union[int, str]) -> int:
    """
    Resolve a motif specifier to a helix start coordinate.

    Raises:
        MotifNotFoundError: If the pattern does not occur or the coordinate is not a helix start
    """
    if isinstance(motif, str):
        start = entry.structure.find(motif)
        if start == -1:
            raise MotifNotFoundError(f"[{entry.transcript_id}] Motif '{motif}' not found in structure")
    else:
        start = motif
    if start not in entry.helices:
        raise MotifNotFoundError(f"[{entry.transcript_id}] No helix starts at position {start}")
    return start


def locate_motif(
    entry: TranscriptEntry,
    motif: Union[int, str],
    targets: Optional[Dict[int, str]] = None,
    orf: Optional[Orf] = None,
) -> MotifRegion:
    """
    Locate a motif on a transcript.

    Args:
        entry: Parsed transcript
        motif: Helix start coordinate or dot-bracket pattern
        targets: Target structures of this transcript, keyed by motif start
        orf: ORF of the transcript, if any

    Returns:
        The resolved MotifRegion

    Raises:
        MotifNotFoundError: If the motif cannot be located
        InvalidTargetError: If the target is malformed or runs past the transcript end
    """
    start = helix_start = resolve_motif_start(entry, motif)
    end = entry.helices[start]

    target = (targets or {}).get(start)
    if target is not None:
        if not is_valid_structure(target):
            raise InvalidTargetError(f"[{entry.transcript_id}] Target for motif {start} is not a valid structure")
        natural_length = end - start + 1
        if len(target) > natural_length:
            end = start + len(target) - 1
            if end >= len(entry):
                raise InvalidTargetError(
                    f"[{entry.transcript_id}] Target for motif {start} ({len(target)} nt) "
                    f"runs past the transcript end ({len(entry)} nt)"
                )
        else:
            target = pad_structure(target, natural_length)

    coding_orf = None
    if orf is not None and orf.overlaps(start, end):
        coding_orf = orf
        widened_start = start - (start - orf.start) % 3 if orf.start <= start <= orf.end else start
        widened_end = end + 2 - (end - orf.start) % 3 if orf.start <= end <= orf.end else end
        widened_end = min(widened_end, len(entry) - 1)
        if target is not None:
            target = UNPAIRED * (start - widened_start) + target + UNPAIRED * (widened_end - end)
        logger.debug(
            f"[{entry.transcript_id}] Motif {start}-{end} overlaps ORF {orf.start}-{orf.end}, "
            f"widened to {widened_start}-{widened_end}"
        )
        start, end = widened_start, widened_end

    return MotifRegion(
        transcript_id=entry.transcript_id,
        start=start,
        end=end,
        sequence=entry.sequence[start:end + 1],
        structure=restrict_structure(entry.structure, start, end),
        helix_start=helix_start,
        target=target,
        orf=coding_orf,
    )
