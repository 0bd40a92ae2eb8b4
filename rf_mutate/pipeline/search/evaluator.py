# rf_mutate/pipeline/search/evaluator.py
"""
Mutant Evaluator.

Folds candidate substitution sets and keeps those that disrupt the wild-type
motif structure (default mode) or come close to the target structure (target
mode). Work is bounded by a SearchBudget shared by the whole phase.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from rf_mutate.pipeline.folding.folder import Folder
from rf_mutate.pipeline.search.mutation_space import MutationSpace, Substitution
from rf_mutate.pipeline.structure.dotbracket import bp_distance
from rf_mutate.pipeline.structure.motif_locator import MotifRegion

logger = logging.getLogger("rf_mutate.pipeline.search.evaluator")


@dataclass
class SearchBudget:
    """Iteration/evaluation caps of one search phase."""
    max_iterations: int
    max_evaluate: int
    iterations: int = 0
    evaluations: int = 0

    @property
    def exhausted(self) -> bool:
        return self.iterations >= self.max_iterations or self.evaluations >= self.max_evaluate


@dataclass
class FoldedCandidate:
    sequence: str
    structure: str
    energy: float
    distance: int
    energy_delta: float
    substitution: Substitution
    mutated_positions: List[int]
    probability: float = float("nan")


@dataclass
class PhaseFolder:
    """Folds sequences for one search phase, serving repeats from a cache."""
    folder: Folder
    budget: SearchBudget
    cache: Dict[str, Tuple[str, float]] = field(default_factory=dict)

    def fold(self, sequence: str) -> Tuple[str, float]:
        if sequence not in self.cache:
            self.budget.evaluations += 1
            self.cache[sequence] = self.folder.fold(sequence)
        return self.cache[sequence]


def fold_candidate(
    phase_folder: PhaseFolder,
    space: MutationSpace,
    base_sequence: str,
    substitution: Substitution,
    reference_structure: str,
    reference_energy: float,
    mutated_positions: Optional[List[int]] = None,
) -> FoldedCandidate:
    sequence = space.apply(base_sequence, substitution)
    structure, energy = phase_folder.fold(sequence)
    return FoldedCandidate(
        sequence=sequence,
        structure=structure,
        energy=energy,
        distance=bp_distance(structure, reference_structure),
        energy_delta=abs(energy - reference_energy),
        substitution=dict(substitution),
        mutated_positions=mutated_positions if mutated_positions is not None else space.mutated_positions(substitution),
    )


class MutantEvaluator:
    """
    Scores disruptive candidates of a motif.

    Default mode accepts candidates whose base-pair distance from the wild-type
    structure is at least floor(length * min_distance). Target mode accepts
    candidates within floor(length * max_dist_to_target) of the target.
    """

    def __init__(
        self,
        region: MotifRegion,
        space: MutationSpace,
        folder: Folder,
        original_energy: float,
        target_energy: Optional[float] = None,
        min_distance: float = 0.5,
        max_dist_to_target: float = 0.2,
    ):
        self.region = region
        self.space = space
        self.folder = folder
        self.target_mode = region.target is not None
        self.reference_structure = region.reference_structure
        self.reference_energy = target_energy if self.target_mode else original_energy
        if self.target_mode and target_energy is None:
            raise ValueError("target_energy is required when the motif has a target structure")
        if self.target_mode:
            self.threshold = math.floor(region.length * max_dist_to_target)
        else:
            self.threshold = math.floor(region.length * min_distance)

    def accepts(self, candidate: FoldedCandidate) -> bool:
        if self.target_mode:
            return candidate.distance <= self.threshold
        return candidate.distance >= self.threshold

    def disruption_key(self, candidate: FoldedCandidate) -> Tuple[float, float]:
        """Larger is better: further from wild type, or closer to the target."""
        sign = -1 if self.target_mode else 1
        return sign * candidate.distance, sign * candidate.energy_delta

    def search(self, substitutions: Sequence[Substitution], budget: SearchBudget) -> List[FoldedCandidate]:
        """
        Evaluate substitution sets in order until the budget is exhausted.

        Returns:
            Accepted candidates, in evaluation order
        """
        phase_folder = PhaseFolder(self.folder, budget)
        accepted: List[FoldedCandidate] = []
        for substitution in substitutions:
            if budget.exhausted:
                logger.debug(
                    f"[{self.region.transcript_id}:{self.region.start}] Mutagenesis budget reached "
                    f"({budget.iterations} iterations, {budget.evaluations} evaluations)"
                )
                break
            budget.iterations += 1
            candidate = fold_candidate(
                phase_folder, self.space, self.region.sequence, substitution,
                self.reference_structure, self.reference_energy,
            )
            if self.accepts(candidate):
                accepted.append(candidate)
        logger.debug(
            f"[{self.region.transcript_id}:{self.region.start}] {len(accepted)} mutant(s) accepted "
            f"(threshold {self.threshold}, {'target' if self.target_mode else 'disruption'} mode)"
        )
        return accepted
