# rf_mutate/dataset/annotation_loader.py
"""
Parsers for the per-transcript annotation files: motifs, ORFs and target structures.

All three formats are semicolon separated, one transcript per line:
    motifs:   transcript_id;motif[;motif...]      (motif = helix start or dot-bracket)
    ORFs:     transcript_id;start[-end] | transcript_id;AMINOACIDS
    targets:  transcript_id;motif_start;dot-bracket

Malformed lines raise ValueError naming the file and line, since they are
detected at startup before any worker runs.
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple, Union

from rf_mutate.pipeline.structure.dotbracket import STRUCTURE_ALPHABET, is_valid_structure

logger = logging.getLogger("rf_mutate.dataset.annotation_loader")

MotifSpec = Union[int, str]

_COORDINATES_RE = re.compile(r"^(\d+)(?:-(\d+))?$")
_AMINO_ACIDS_RE = re.compile(r"^[ACDEFGHIKLMNPQRSTVWY]+\*?$")


@dataclass(frozen=True)
class OrfSpec:
    """An ORF as given by the user: coordinates or an amino-acid query."""
    start: Optional[int] = None
    end: Optional[int] = None
    aa_query: Optional[str] = None


def _iter_fields(path: str) -> Iterator[Tuple[int, List[str]]]:
    with open(path, "r") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            yield line_no, [token.strip() for token in line.split(";")]


def parse_motif_spec(token: str) -> MotifSpec:
    """A non-negative integer is a helix start, anything else a dot-bracket pattern."""
    if token.isdigit():
        return int(token)
    if not token or any(char not in STRUCTURE_ALPHABET for char in token):
        raise ValueError(f"'{token}' is neither a coordinate nor a dot-bracket motif")
    return token


def load_motifs(path: str) -> Dict[str, List[MotifSpec]]:
    """
    Load the motif file.

    Returns:
        Dictionary transcript id -> motif specifiers (duplicates removed, input order kept)
    """
    motifs: Dict[str, List[MotifSpec]] = {}
    for line_no, fields in _iter_fields(path):
        transcript_id = fields[0]
        tokens = [t.strip() for chunk in fields[1:] for t in chunk.split(",") if t.strip()]
        if not transcript_id or not tokens:
            raise ValueError(f"{path}:{line_no}: expected 'transcript_id;motif[;motif...]'")
        specs = motifs.setdefault(transcript_id, [])
        for token in tokens:
            try:
                spec = parse_motif_spec(token)
            except ValueError as e:
                raise ValueError(f"{path}:{line_no}: {e}") from e
            if spec not in specs:
                specs.append(spec)
    if not motifs:
        raise ValueError(f"No motifs found in {path}")
    logger.info(f"Loaded motifs for {len(motifs)} transcript(s) from {path}")
    return motifs


def parse_orf_spec(token: str) -> OrfSpec:
    token = token.strip().upper()
    match = _COORDINATES_RE.match(token)
    if match:
        start = int(match.group(1))
        end = int(match.group(2)) if match.group(2) is not None else None
        if end is not None and end <= start:
            raise ValueError(f"ORF end ({end}) must be greater than start ({start})")
        return OrfSpec(start=start, end=end)
    if _AMINO_ACIDS_RE.match(token):
        return OrfSpec(aa_query=token.rstrip("*"))
    raise ValueError(f"'{token}' is neither ORF coordinates nor an amino-acid sequence")


def load_orfs(path: str) -> Dict[str, OrfSpec]:
    orfs: Dict[str, OrfSpec] = {}
    for line_no, fields in _iter_fields(path):
        if len(fields) != 2 or not fields[0]:
            raise ValueError(f"{path}:{line_no}: expected 'transcript_id;start[-end]' or 'transcript_id;AA'")
        try:
            spec = parse_orf_spec(fields[1])
        except ValueError as e:
            raise ValueError(f"{path}:{line_no}: {e}") from e
        if fields[0] in orfs:
            logger.warning(f"{path}:{line_no}: duplicate ORF for '{fields[0]}', keeping the first one")
            continue
        orfs[fields[0]] = spec
    logger.info(f"Loaded {len(orfs)} ORF definition(s) from {path}")
    return orfs


def load_targets(path: str) -> Dict[str, Dict[int, str]]:
    """
    Load target structures.

    Returns:
        Dictionary transcript id -> {motif start: target dot-bracket}
    """
    targets: Dict[str, Dict[int, str]] = {}
    for line_no, fields in _iter_fields(path):
        if len(fields) != 3 or not fields[0] or not fields[1].isdigit():
            raise ValueError(f"{path}:{line_no}: expected 'transcript_id;motif_start;structure'")
        structure = fields[2]
        if not is_valid_structure(structure) or not structure:
            raise ValueError(f"{path}:{line_no}: invalid target structure '{structure}'")
        per_transcript = targets.setdefault(fields[0], {})
        start = int(fields[1])
        if start in per_transcript:
            logger.warning(f"{path}:{line_no}: duplicate target for {fields[0]}:{start}, keeping the first one")
            continue
        per_transcript[start] = structure
    logger.info(f"Loaded targets for {len(targets)} transcript(s) from {path}")
    return targets
