# rf_mutate/utils/report_writer.py
"""
Report serialization: one XML file per motif and one TSV table per transcript.

Mutation coordinates are written as 0-based transcript positions.
"""

import logging
import math
import os
import xml.etree.ElementTree as ET
from typing import List, Optional, Sequence

import pandas as pd

from rf_mutate.pipeline.motif_runner import MotifReport
from rf_mutate.pipeline.search.evaluator import FoldedCandidate

logger = logging.getLogger("rf_mutate.utils.report_writer")

RESULT_COLUMNS = [
    "transcript", "motif_start", "motif_end", "rank",
    "mutant_sequence", "mutant_structure", "mutant_energy", "mutant_distance",
    "mutant_probability", "mutant_mutations",
    "rescue_sequence", "rescue_structure", "rescue_energy", "rescue_distance",
    "rescue_probability", "rescue_mutations", "score",
]


def format_energy(value: Optional[float]) -> str:
    return "" if value is None else f"{value:.2f}"


def format_probability(value: float) -> str:
    return "NaN" if value is None or math.isnan(value) else f"{value:.4f}"


def format_mutations(candidate: FoldedCandidate, offset: int) -> str:
    return ",".join(str(offset + pos) for pos in candidate.mutated_positions)


def _candidate_element(tag: str, candidate: FoldedCandidate, offset: int) -> ET.Element:
    element = ET.Element(tag)
    for name, value in (
        ("sequence", candidate.sequence),
        ("structure", candidate.structure),
        ("energy", format_energy(candidate.energy)),
        ("distance", str(candidate.distance)),
        ("probability", format_probability(candidate.probability)),
        ("mutations", format_mutations(candidate, offset)),
    ):
        ET.SubElement(element, name).text = value
    return element


def motif_report_xml(report: MotifReport) -> ET.Element:
    region = report.region
    root = ET.Element("motif", {
        "transcript": region.transcript_id,
        "start": str(region.start),
        "end": str(region.end),
        "length": str(region.length),
        "coding": "true" if region.coding else "false",
    })
    if region.orf is not None:
        root.set("orf", f"{region.orf.start}-{region.orf.end}")
        root.set("frame", str(region.orf.frame))

    original = ET.SubElement(root, "original")
    ET.SubElement(original, "sequence").text = region.sequence
    ET.SubElement(original, "structure").text = region.structure
    ET.SubElement(original, "energy").text = format_energy(report.original_energy)

    if region.target is not None:
        target = ET.SubElement(root, "target")
        ET.SubElement(target, "structure").text = region.target
        ET.SubElement(target, "energy").text = format_energy(report.target_energy)

    for rank, result in enumerate(report.results, start=1):
        entry = ET.SubElement(root, "result", {"rank": str(rank)})
        if report.ensemble_enabled:
            entry.set("score", format_probability(result.score))
        entry.append(_candidate_element("mutant", result.mutant, region.start))
        if report.rescue_enabled and result.rescue is not None:
            entry.append(_candidate_element("rescue", result.rescue, region.start))
    return root


def write_motif_report(report: MotifReport, transcript_dir: str) -> str:
    """Write the XML report of one motif, returning its path."""
    os.makedirs(transcript_dir, exist_ok=True)
    region = report.region
    path = os.path.join(transcript_dir, f"motif_{region.start}-{region.end}.xml")
    tree = ET.ElementTree(motif_report_xml(report))
    ET.indent(tree, space="  ")
    tree.write(path, encoding="utf-8", xml_declaration=True)
    logger.debug(f"[{region.transcript_id}] Report written to {path}")
    return path


def results_dataframe(reports: Sequence[MotifReport]) -> pd.DataFrame:
    """Flatten the ranked results of several motifs into one table."""
    rows: List[dict] = []
    for report in reports:
        region = report.region
        for rank, result in enumerate(report.results, start=1):
            mutant, rescue = result.mutant, result.rescue
            rows.append({
                "transcript": region.transcript_id,
                "motif_start": region.start,
                "motif_end": region.end,
                "rank": rank,
                "mutant_sequence": mutant.sequence,
                "mutant_structure": mutant.structure,
                "mutant_energy": round(mutant.energy, 2),
                "mutant_distance": mutant.distance,
                "mutant_probability": mutant.probability,
                "mutant_mutations": format_mutations(mutant, region.start),
                "rescue_sequence": rescue.sequence if rescue else None,
                "rescue_structure": rescue.structure if rescue else None,
                "rescue_energy": round(rescue.energy, 2) if rescue else None,
                "rescue_distance": rescue.distance if rescue else None,
                "rescue_probability": rescue.probability if rescue else None,
                "rescue_mutations": format_mutations(rescue, region.start) if rescue else None,
                "score": result.score,
            })
    return pd.DataFrame(rows, columns=RESULT_COLUMNS)


def write_transcript_table(reports: Sequence[MotifReport], transcript_dir: str) -> str:
    os.makedirs(transcript_dir, exist_ok=True)
    path = os.path.join(transcript_dir, "results.tsv")
    results_dataframe(reports).to_csv(path, sep="\t", index=False, na_rep="NaN")
    return path
