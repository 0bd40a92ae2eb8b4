# rf_mutate/dataset/structure_loader.py
"""
Loading of transcript sequences and wild-type structures from dot-bracket files.

Input is either a single file holding one or more entries, or a directory of
`.db` files. At startup only the raw records are collected (single-threaded);
each worker parses its own record into a TranscriptEntry, so that a malformed
transcript is reported as a ParseError for that transcript alone.

Entry format:
    >transcript_id
    SEQUENCE (possibly wrapped)
    DOT-BRACKET (possibly wrapped, optionally followed by " (energy)")
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from rf_mutate.pipeline.errors import ParseError
from rf_mutate.pipeline.structure.dotbracket import (
    STRUCTURE_ALPHABET,
    list_helices,
    parse_pairs,
)

logger = logging.getLogger("rf_mutate.dataset.structure_loader")

NUCLEOTIDES = set("ACGU")


@dataclass(frozen=True)
class TranscriptEntry:
    transcript_id: str
    sequence: str
    structure: str
    helices: Dict[int, int] = field(default_factory=dict, compare=False)

    def __len__(self) -> int:
        return len(self.sequence)

    @classmethod
    def from_strings(cls, transcript_id: str, sequence: str, structure: str) -> "TranscriptEntry":
        """Validate a sequence/structure couple and derive its helix table."""
        sequence = sequence.upper().replace("T", "U")
        if not sequence:
            raise ParseError(f"Transcript '{transcript_id}' has an empty sequence")
        illegal = set(sequence) - NUCLEOTIDES
        if illegal:
            raise ParseError(
                f"Transcript '{transcript_id}' contains illegal nucleotides: {''.join(sorted(illegal))}"
            )
        if len(sequence) != len(structure):
            raise ParseError(
                f"Transcript '{transcript_id}': sequence length ({len(sequence)}) "
                f"differs from structure length ({len(structure)})"
            )
        try:
            parse_pairs(structure)
        except ValueError as e:
            raise ParseError(f"Transcript '{transcript_id}': {e}") from e
        return cls(transcript_id, sequence, structure, list_helices(structure))


@dataclass
class StructureRecord:
    """Unparsed entry: either the raw lines of an entry or the file holding it."""
    transcript_id: str
    lines: Optional[List[str]] = None
    path: Optional[str] = None


def _is_structure_line(line: str) -> bool:
    token = line.split()[0] if line.split() else ""
    return bool(token) and all(char in STRUCTURE_ALPHABET for char in token)


def _split_entries(lines: List[str]) -> List[List[str]]:
    entries: List[List[str]] = []
    for line in lines:
        line = line.strip()
        if not line:
            continue
        if line.startswith(">"):
            entries.append([line])
        elif entries:
            entries[-1].append(line)
        else:
            raise ParseError(f"Sequence data found before the first header: '{line[:20]}'")
    return entries


def parse_entry_lines(lines: List[str], default_id: Optional[str] = None) -> TranscriptEntry:
    """
    Parse the lines of a single entry (header first) into a TranscriptEntry.

    Raises:
        ParseError: If the entry is incomplete or malformed
    """
    if not lines:
        raise ParseError("Empty entry")
    header = lines[0]
    if header.startswith(">"):
        transcript_id = header[1:].split()[0] if header[1:].split() else default_id
        body = lines[1:]
    else:
        transcript_id = default_id
        body = lines
    if not transcript_id:
        raise ParseError("Entry has no transcript identifier")

    sequence_parts: List[str] = []
    structure_parts: List[str] = []
    for line in body:
        if structure_parts or _is_structure_line(line):
            # RNAfold-style trailing energies, e.g. "((...)) (-1.20)"
            structure_parts.append(line.split()[0])
        else:
            sequence_parts.append(line.replace(" ", ""))
    if not structure_parts:
        raise ParseError(f"Transcript '{transcript_id}' has no structure line")
    return TranscriptEntry.from_strings(transcript_id, "".join(sequence_parts), "".join(structure_parts))


def collect_structure_records(path: str) -> Dict[str, StructureRecord]:
    """
    Collect the raw records of a structure file or directory.

    Args:
        path: A dot-bracket file or a directory of .db files

    Returns:
        Dictionary of transcript id -> StructureRecord, in input order

    Raises:
        FileNotFoundError: If the path does not exist
        ValueError: If the input holds no entries
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Structure input not found: {path}")

    records: Dict[str, StructureRecord] = {}
    if os.path.isdir(path):
        for db_file in sorted(Path(path).glob("*.db")):
            transcript_id = db_file.stem
            if transcript_id in records:
                logger.warning(f"Duplicate transcript '{transcript_id}' in {path}, keeping the first entry")
                continue
            records[transcript_id] = StructureRecord(transcript_id, path=str(db_file))
    else:
        with open(path, "r") as f:
            raw_lines = f.readlines()
        try:
            entries = _split_entries(raw_lines)
        except ParseError as e:
            raise ValueError(f"Malformed structure file {path}: {e}") from e
        for entry in entries:
            tokens = entry[0][1:].split()
            if not tokens:
                logger.warning(f"Skipping entry without identifier in {path}")
                continue
            transcript_id = tokens[0]
            if transcript_id in records:
                logger.warning(f"Duplicate transcript '{transcript_id}' in {path}, keeping the first entry")
                continue
            records[transcript_id] = StructureRecord(transcript_id, lines=entry)

    if not records:
        raise ValueError(f"No dot-bracket entries found in {path}")
    logger.info(f"Collected {len(records)} transcript structure(s) from {path}")
    return records


def load_transcript(record: StructureRecord) -> TranscriptEntry:
    """
    Parse a StructureRecord into a TranscriptEntry.

    Raises:
        ParseError: If the file cannot be read or the entry is malformed
    """
    if record.lines is not None:
        return parse_entry_lines(record.lines, default_id=record.transcript_id)

    try:
        with open(record.path, "r") as f:
            raw_lines = f.readlines()
    except OSError as e:
        raise ParseError(f"Unable to read {record.path}: {e}") from e
    entries = _split_entries(raw_lines) if any(l.startswith(">") for l in raw_lines) else [
        [l.strip() for l in raw_lines if l.strip()]
    ]
    if not entries:
        raise ParseError(f"No entry found in {record.path}")
    entry = parse_entry_lines(entries[0], default_id=record.transcript_id)
    if entry.transcript_id != record.transcript_id:
        # file name is the identifier used by the annotation files
        entry = TranscriptEntry(record.transcript_id, entry.sequence, entry.structure, entry.helices)
    return entry
