# rf_mutate/pipeline/search/rescue.py
"""
Rescue Searcher.

For every accepted mutant (most disruptive first) mutates the base-pair
partners of the originally mutated units, looking for a compensatory sequence
that folds back within tolerance of the wild-type motif structure. The budget
spans the whole rescue phase of a motif: once it is reached no further mutant
is tried.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from rf_mutate.pipeline.folding.folder import Folder
from rf_mutate.pipeline.search.evaluator import FoldedCandidate, PhaseFolder, SearchBudget, fold_candidate
from rf_mutate.pipeline.search.mutation_space import MutationSpace
from rf_mutate.pipeline.search.sampler import CombinationSampler
from rf_mutate.pipeline.structure.motif_locator import MotifRegion

logger = logging.getLogger("rf_mutate.pipeline.search.rescue")


@dataclass
class SearchResult:
    """A ranked unit of output: a mutant and, when rescue is enabled, its rescue."""
    mutant: FoldedCandidate
    rescue: Optional[FoldedCandidate] = None
    score: float = float("nan")


def order_by_disruption(mutants: Sequence[FoldedCandidate], key: Callable) -> List[FoldedCandidate]:
    """Most disruptive first (largest key), evaluation order kept among ties."""
    return sorted(mutants, key=key, reverse=True)


class RescueSearcher:
    def __init__(
        self,
        region: MotifRegion,
        space: MutationSpace,
        folder: Folder,
        sampler: CombinationSampler,
        original_energy: float,
        tolerance: float = 0.2,
    ):
        self.region = region
        self.space = space
        self.folder = folder
        self.sampler = sampler
        self.original_energy = original_energy
        self.threshold = math.floor(region.length * tolerance)

    def rescue_units(self, mutant: FoldedCandidate) -> List[int]:
        """Partner units of the units mutated in `mutant`."""
        units = []
        for index in mutant.substitution:
            partner = self.space.partner_of(index)
            if partner is not None and partner not in mutant.substitution and partner not in units:
                units.append(partner)
        return sorted(units)

    def search(self, mutants: Sequence[FoldedCandidate], budget: SearchBudget) -> List[SearchResult]:
        """
        Find at most one rescue per mutant.

        Args:
            mutants: Accepted mutants, already ordered by decreasing disruption
            budget: Rescue-phase budget of the motif

        Returns:
            (mutant, rescue) results; mutants without a rescue are dropped
        """
        phase_folder = PhaseFolder(self.folder, budget)
        results: List[SearchResult] = []
        for mutant in mutants:
            if budget.exhausted:
                break
            units = self.rescue_units(mutant)
            if not units:
                continue
            for substitution in self.sampler.substitution_sets([tuple(units)]):
                if budget.exhausted:
                    break
                budget.iterations += 1
                rescue = fold_candidate(
                    phase_folder,
                    self.space,
                    self.region.sequence,
                    {**mutant.substitution, **substitution},
                    self.region.structure,
                    self.original_energy,
                    mutated_positions=self.space.mutated_positions(substitution),
                )
                if rescue.distance <= self.threshold:
                    results.append(SearchResult(mutant=mutant, rescue=rescue))
                    break
        logger.debug(
            f"[{self.region.transcript_id}:{self.region.start}] {len(results)}/{len(mutants)} mutant(s) rescued "
            f"({budget.iterations} iterations, {budget.evaluations} evaluations)"
        )
        return results
