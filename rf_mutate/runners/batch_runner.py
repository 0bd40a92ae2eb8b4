# rf_mutate/runners/batch_runner.py
"""
Batch driver: startup validation, the worker pool and the final run summary.

Each worker pops one transcript at a time from the shared WorkQueue and runs
every motif of that transcript to completion before asking for the next.
Per-unit errors are tallied in RunCounters; only startup errors abort the run.
"""

import logging
import os
import shutil
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional

from tqdm import tqdm

from rf_mutate.conf.config_schema import MutateConfig
from rf_mutate.conf.utils import resolve_path, save_config
from rf_mutate.dataset.annotation_loader import MotifSpec, OrfSpec, load_motifs, load_orfs, load_targets
from rf_mutate.dataset.structure_loader import StructureRecord, collect_structure_records, load_transcript
from rf_mutate.pipeline.coding.genetic_code import GeneticCode
from rf_mutate.pipeline.coding.orf_finder import resolve_orf
from rf_mutate.pipeline.errors import (
    InvalidOrfError,
    InvalidTargetError,
    MotifNotFoundError,
    ParseError,
    SearchExhaustedError,
)
from rf_mutate.pipeline.folding.folder import Folder, ViennaFolder, check_rnafold_version
from rf_mutate.pipeline.motif_runner import MotifDesigner, MotifReport, MotifState
from rf_mutate.runners.work_queue import RunCounters, RunSummary, WorkQueue
from rf_mutate.utils.report_writer import write_motif_report, write_transcript_table

logger = logging.getLogger("rf_mutate.runners.batch_runner")


class BatchRunner:
    """
    Runs the mutant design over every transcript of the motif file.

    Args:
        cfg: Validated run configuration
        folder: Folding oracle; when omitted a ViennaFolder is built from
            cfg.folding after checking the RNAfold version
    """

    def __init__(self, cfg: MutateConfig, folder: Optional[Folder] = None):
        self.cfg = cfg
        self.folder = folder
        self.counters = RunCounters()
        self.output_dir = resolve_path(cfg.output.output_dir)
        self.records: Dict[str, StructureRecord] = {}
        self.motifs: Dict[str, List[MotifSpec]] = {}
        self.orfs: Dict[str, OrfSpec] = {}
        self.targets: Dict[str, Dict[int, str]] = {}
        self.code: Optional[GeneticCode] = None
        self.designer: Optional[MotifDesigner] = None
        self._progress = None

    def validate_startup(self) -> None:
        """
        Fatal checks and input loading, done before any worker starts.

        Raises:
            FileNotFoundError: If an input file is missing
            ValueError: If an input file is malformed
            OracleInvocationError: If RNAfold is missing or too old
            FileExistsError: If the output directory exists and overwrite is off
        """
        cfg = self.cfg
        structures = resolve_path(cfg.input.structures)
        motifs = resolve_path(cfg.input.motifs)
        orfs = resolve_path(cfg.input.orfs)
        targets = resolve_path(cfg.input.targets)
        for path in (structures, motifs, orfs, targets):
            if path is not None and not os.path.exists(path):
                raise FileNotFoundError(f"Input not found: {path}")

        if self.folder is None:
            check_rnafold_version(cfg.folding.rnafold, cfg.folding.min_version)
            self.folder = ViennaFolder(
                rnafold=cfg.folding.rnafold,
                temperature=cfg.folding.temperature,
                no_lonely_pairs=cfg.folding.no_lonely_pairs,
            )

        self.code = GeneticCode(cfg.orf.genetic_code, cfg.orf.exclude_codons)
        self.records = collect_structure_records(structures)
        self.motifs = load_motifs(motifs)
        self.orfs = load_orfs(orfs) if orfs else {}
        self.targets = load_targets(targets) if targets else {}
        self.designer = MotifDesigner(self.folder, cfg.search, code=self.code)

        if os.path.exists(self.output_dir):
            if not cfg.output.overwrite:
                raise FileExistsError(
                    f"Output directory {self.output_dir} already exists (set output.overwrite=true to replace it)"
                )
            logger.info(f"Overwriting output directory {self.output_dir}")
            shutil.rmtree(self.output_dir)
        os.makedirs(self.output_dir)
        save_config(cfg, os.path.join(self.output_dir, "config.yaml"))

    def _pending_transcripts(self) -> List[str]:
        pending = []
        for transcript_id in self.motifs:
            if transcript_id not in self.records:
                logger.warning(f"[{transcript_id}] Transcript not found in the structure input, skipping")
                self.counters.increment("parse_errors")
                continue
            pending.append(transcript_id)
        return pending

    def process_transcript(self, transcript_id: str) -> List[MotifReport]:
        """Run every motif of one transcript and write its reports."""
        cfg = self.cfg
        motifs = self.motifs[transcript_id]
        try:
            entry = load_transcript(self.records[transcript_id])
        except ParseError as e:
            logger.warning(f"[{transcript_id}] Skipping transcript: {e}")
            self.counters.record_error(e)
            return []

        try:
            orf = resolve_orf(
                transcript_id, entry.sequence, self.code,
                spec=self.orfs.get(transcript_id),
                longest_orf=cfg.orf.longest_orf,
                min_length=cfg.orf.min_orf_length,
                alt_start=cfg.orf.alt_start,
                any_start=cfg.orf.any_start,
            )
        except InvalidOrfError as e:
            logger.warning(f"{e}, skipping {len(motifs)} motif(s)")
            self.counters.record_error(e, amount=len(motifs))
            return []

        transcript_dir = os.path.join(self.output_dir, transcript_id)
        reports: List[MotifReport] = []
        for motif in motifs:
            try:
                report = self.designer.design(entry, motif, targets=self.targets.get(transcript_id), orf=orf)
            except (MotifNotFoundError, InvalidTargetError, SearchExhaustedError) as e:
                logger.warning(f"{e}")
                self.counters.record_error(e)
                continue
            write_motif_report(report, transcript_dir)
            report.state = MotifState.WRITTEN
            self.counters.increment("success")
            reports.append(report)
            if self._progress is not None:
                self._progress.set_postfix_str(f"{transcript_id}:{report.region.start}-{report.region.end}")
        if reports:
            write_transcript_table(reports, transcript_dir)
        return reports

    def _worker(self, queue: WorkQueue) -> int:
        processed = 0
        while True:
            transcript_id = queue.pop()
            if transcript_id is None:
                return processed
            self.process_transcript(transcript_id)
            processed += 1
            if self._progress is not None:
                self._progress.update(1)

    def run(self) -> RunSummary:
        """Validate, process every transcript and log the summary."""
        self.validate_startup()
        pending = self._pending_transcripts()
        queue = WorkQueue(pending)
        workers = min(self.cfg.processors, max(len(pending), 1))
        logger.info(f"Processing {len(pending)} transcript(s) with {workers} worker(s)")

        with tqdm(total=len(pending), desc="Transcripts", unit="transcript") as progress:
            self._progress = progress
            try:
                with ThreadPoolExecutor(max_workers=workers) as executor:
                    futures = [executor.submit(self._worker, queue) for _ in range(workers)]
                    for future in futures:
                        future.result()
            finally:
                self._progress = None

        summary = self.counters.summary()
        log_summary(summary)
        if summary.success == 0:
            logger.error("No motif was successfully mutated, removing the output directory")
            shutil.rmtree(self.output_dir, ignore_errors=True)
        return summary


def log_summary(summary: RunSummary) -> None:
    logger.info("Run summary:")
    logger.info(f"  Successfully mutated motifs: {summary.success}")
    logger.info(f"  Transcript parse errors:     {summary.parse_errors}")
    logger.info(f"  ORF errors:                  {summary.orf_errors}")
    logger.info(f"  Motifs not found:            {summary.motif_not_found}")
    logger.info(f"  Invalid targets:             {summary.invalid_targets}")
    logger.info(f"  Mutagenesis failures:        {summary.mutagenesis_failures}")
    logger.info(f"  Rescue failures:             {summary.rescue_failures}")


def run_batch(cfg: MutateConfig, folder: Optional[Folder] = None) -> bool:
    """Run the whole batch; True when at least one motif was mutated."""
    summary = BatchRunner(cfg, folder=folder).run()
    return summary.success > 0
