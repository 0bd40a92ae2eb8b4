# rf_mutate/pipeline/motif_runner.py
"""
Per-(transcript, motif) design pipeline.

    Located -> SpaceBuilt -> Searching(disrupt) -> [Failed | Searching(rescue)]
            -> [Failed | Ranked -> Written]

MotifDesigner runs every step up to Ranked; writing the report (and counting
the terminal state) is left to the batch runner.
"""

import logging
import zlib
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Union

import numpy as np

from rf_mutate.dataset.structure_loader import TranscriptEntry
from rf_mutate.pipeline.coding.genetic_code import GeneticCode
from rf_mutate.pipeline.coding.orf_finder import Orf
from rf_mutate.pipeline.errors import SearchExhaustedError
from rf_mutate.pipeline.folding.folder import Folder
from rf_mutate.pipeline.search.evaluator import MutantEvaluator, SearchBudget
from rf_mutate.pipeline.search.mutation_space import MutationSpace, build_mutation_space
from rf_mutate.pipeline.search.ranking import rank_results, score_ensemble
from rf_mutate.pipeline.search.rescue import RescueSearcher, SearchResult, order_by_disruption
from rf_mutate.pipeline.search.sampler import CombinationSampler
from rf_mutate.pipeline.structure.motif_locator import MotifRegion, locate_motif

logger = logging.getLogger("rf_mutate.pipeline.motif_runner")


class MotifState(str, Enum):
    LOCATED = "located"
    SPACE_BUILT = "space_built"
    SEARCHING_DISRUPT = "searching_disrupt"
    SEARCHING_RESCUE = "searching_rescue"
    RANKED = "ranked"
    WRITTEN = "written"
    FAILED = "failed"


@dataclass
class MotifReport:
    region: MotifRegion
    original_energy: float
    target_energy: Optional[float] = None
    results: List[SearchResult] = field(default_factory=list)
    rescue_enabled: bool = True
    ensemble_enabled: bool = True
    state: MotifState = MotifState.RANKED


def motif_rng(seed: Optional[int], transcript_id: str, start: int) -> np.random.Generator:
    """Generator for one motif; seeded runs do not depend on worker scheduling."""
    if seed is None:
        return np.random.default_rng()
    return np.random.default_rng([seed, zlib.crc32(transcript_id.encode("utf-8")), start])


class MotifDesigner:
    """
    Runs the mutant design and rescue search for single motifs.

    Args:
        folder: Folding oracle
        search_cfg: Search settings (SearchConfig or an equivalent DictConfig)
        code: Genetic code, required for motifs overlapping an ORF
    """

    def __init__(self, folder: Folder, search_cfg, code: Optional[GeneticCode] = None):
        self.folder = folder
        self.cfg = search_cfg
        self.code = code

    def _transition(self, region: MotifRegion, state: MotifState) -> MotifState:
        logger.debug(f"[{region.transcript_id}:{region.start}-{region.end}] -> {state.value}")
        return state

    def design(
        self,
        entry: TranscriptEntry,
        motif: Union[int, str],
        targets: Optional[Dict[int, str]] = None,
        orf: Optional[Orf] = None,
    ) -> MotifReport:
        """
        Design mutants (and rescues) for one motif.

        Raises:
            MotifNotFoundError: If the motif cannot be located
            InvalidTargetError: If the target cannot be applied
            SearchExhaustedError: If no mutant, or no rescue, is found within budget
        """
        cfg = self.cfg
        region = locate_motif(entry, motif, targets=targets, orf=orf)
        self._transition(region, MotifState.LOCATED)

        space = build_mutation_space(region, self.code)
        self._transition(region, MotifState.SPACE_BUILT)

        original_energy = self.folder.energy_of(region.sequence, region.structure)
        target_energy = None
        if region.target is not None:
            target_energy = self.folder.energy_of(region.sequence, region.target)

        rng = motif_rng(cfg.seed, region.transcript_id, region.helix_start)
        sampler = CombinationSampler(space, rng, cfg.max_evaluate)

        self._transition(region, MotifState.SEARCHING_DISRUPT)
        evaluator = MutantEvaluator(
            region, space, self.folder, original_energy,
            target_energy=target_energy,
            min_distance=cfg.min_distance,
            max_dist_to_target=cfg.max_dist_to_target,
        )
        accepted = evaluator.search(
            self._candidates(sampler, space, cfg.n_mutations),
            SearchBudget(cfg.max_iterations, cfg.max_evaluate),
        )
        if not accepted:
            self._transition(region, MotifState.FAILED)
            raise SearchExhaustedError(
                f"[{region.transcript_id}] No mutant satisfies the constraints for motif {region.start}-{region.end}",
                phase="mutagenesis",
            )

        rescue_enabled = not cfg.no_rescue
        if rescue_enabled:
            self._transition(region, MotifState.SEARCHING_RESCUE)
            searcher = RescueSearcher(region, space, self.folder, sampler, original_energy, tolerance=cfg.tolerance)
            results = searcher.search(
                order_by_disruption(accepted, evaluator.disruption_key),
                SearchBudget(cfg.max_iterations, cfg.max_evaluate),
            )
            if not results:
                self._transition(region, MotifState.FAILED)
                raise SearchExhaustedError(
                    f"[{region.transcript_id}] No rescue found for motif {region.start}-{region.end}",
                    phase="rescue",
                )
        else:
            results = [SearchResult(mutant=mutant) for mutant in accepted]

        ensemble_enabled = not cfg.no_ensemble_prob
        if ensemble_enabled:
            score_ensemble(results, region, self.folder, rescue_enabled)
        ranked = rank_results(
            results,
            ensemble_enabled=ensemble_enabled,
            rescue_enabled=rescue_enabled,
            target_mode=region.target is not None,
            max_results=cfg.max_results,
        )
        state = self._transition(region, MotifState.RANKED)
        return MotifReport(
            region=region,
            original_energy=original_energy,
            target_energy=target_energy,
            results=ranked,
            rescue_enabled=rescue_enabled,
            ensemble_enabled=ensemble_enabled,
            state=state,
        )

    @staticmethod
    def _candidates(sampler: CombinationSampler, space: MutationSpace, n_mutations: int):
        combinations = sampler.combinations(space.eligible, n_mutations)
        return sampler.substitution_sets(combinations)
