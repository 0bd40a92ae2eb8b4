# rf_mutate/pipeline/search/ranking.py
"""
Ensemble-probability scoring and final ranking of (mutant, rescue) results.

Ranking precedence, highest first, with disabled dimensions dropped:
    1. combined probability score (higher first, NaN last)    [ensemble]
    2. rescue base-pair distance from the original (lower)    [rescue]
    3. mutant disruption distance (higher; closer in target mode)
    4. rescue energy difference from the original (lower)      [rescue]
    5. mutant energy difference (higher; closer in target mode)
"""

import logging
import math
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from rf_mutate.pipeline.folding.dotplot import mean_pair_probability
from rf_mutate.pipeline.folding.folder import Folder
from rf_mutate.pipeline.search.rescue import SearchResult
from rf_mutate.pipeline.structure.dotbracket import base_pairs
from rf_mutate.pipeline.structure.motif_locator import MotifRegion

logger = logging.getLogger("rf_mutate.pipeline.search.ranking")


def combined_probability(mutant_probability: float, rescue_probability: Optional[float], target_mode: bool) -> float:
    """
    Mean of the available probability components.

    The mutant component rewards low pairing at the original pairs (default
    mode) or high pairing at the target pairs (target mode); the rescue
    component rewards high pairing at the original pairs.
    """
    components = []
    if not math.isnan(mutant_probability):
        components.append(mutant_probability if target_mode else 1.0 - mutant_probability)
    if rescue_probability is not None and not math.isnan(rescue_probability):
        components.append(rescue_probability)
    if not components:
        return float("nan")
    return sum(components) / len(components)


def score_ensemble(results: Sequence[SearchResult], region: MotifRegion, folder: Folder, rescue_enabled: bool) -> None:
    """Fill in mean pairing probabilities and combined scores, in place."""
    target_mode = region.target is not None
    reference_pairs = base_pairs(region.reference_structure)
    original_pairs = base_pairs(region.structure)
    tag = f"{region.transcript_id}_{region.start}"
    for idx, result in enumerate(results):
        probabilities = folder.pair_probabilities(result.mutant.sequence, tag=f"{tag}_mutant{idx}")
        result.mutant.probability = mean_pair_probability(probabilities, reference_pairs)
        rescue_probability = None
        if rescue_enabled and result.rescue is not None:
            probabilities = folder.pair_probabilities(result.rescue.sequence, tag=f"{tag}_rescue{idx}")
            result.rescue.probability = rescue_probability = mean_pair_probability(probabilities, original_pairs)
        result.score = combined_probability(result.mutant.probability, rescue_probability, target_mode)


def _probability_key(result: SearchResult) -> Tuple[int, float]:
    if math.isnan(result.score):
        return 1, 0.0
    return 0, -result.score


def _comparators(target_mode: bool) -> Dict[Tuple[bool, bool], Callable[[SearchResult], tuple]]:
    sign = -1 if target_mode else 1

    def mutant_distance(r):
        return -sign * r.mutant.distance

    def mutant_energy(r):
        return -sign * r.mutant.energy_delta

    return {
        (True, True): lambda r: (
            _probability_key(r), r.rescue.distance, mutant_distance(r), r.rescue.energy_delta, mutant_energy(r)
        ),
        (True, False): lambda r: (_probability_key(r), mutant_distance(r), mutant_energy(r)),
        (False, True): lambda r: (r.rescue.distance, mutant_distance(r), r.rescue.energy_delta, mutant_energy(r)),
        (False, False): lambda r: (mutant_distance(r), mutant_energy(r)),
    }


def rank_results(
    results: Sequence[SearchResult],
    ensemble_enabled: bool,
    rescue_enabled: bool,
    target_mode: bool = False,
    max_results: Optional[int] = None,
) -> List[SearchResult]:
    """Sort results with the comparator matching the enabled dimensions and truncate."""
    key = _comparators(target_mode)[(ensemble_enabled, rescue_enabled)]
    ranked = sorted(results, key=key)
    if max_results is not None:
        ranked = ranked[:max_results]
    return ranked
