# rf_mutate/pipeline/search/sampler.py
"""
Combination Sampler.

Draws combinations of N mutable units touching exactly N independent sites,
then expands them into concrete substitution sets (cartesian product of the
unit alphabets). Both steps are capped at `max_evaluate` by random
down-sampling before expansion, and the final evaluation order is shuffled.
"""

import bisect
import itertools
import logging
import math
from typing import Dict, List, Sequence, Tuple

import numpy as np

from rf_mutate.pipeline.search.mutation_space import MutationSpace, Substitution

logger = logging.getLogger("rf_mutate.pipeline.search.sampler")

# Above this many candidates distinct indices are drawn by rejection instead of
# materialising a full permutation.
_PERMUTATION_LIMIT = 1_000_000


class CombinationSampler:
    def __init__(self, space: MutationSpace, rng: np.random.Generator, max_evaluate: int = 1000):
        if max_evaluate <= 0:
            raise ValueError(f"max_evaluate must be positive, got {max_evaluate}")
        self.space = space
        self.rng = rng
        self.max_evaluate = max_evaluate

    def _sample_indices(self, total: int, size: int) -> List[int]:
        """`size` distinct integers from range(total), in random order."""
        if size >= total:
            return [int(i) for i in self.rng.permutation(total)]
        if total <= _PERMUTATION_LIMIT:
            return [int(i) for i in self.rng.choice(total, size=size, replace=False)]
        drawn: Dict[int, None] = {}
        while len(drawn) < size:
            drawn.setdefault(self._random_below(total), None)
        return list(drawn)

    def _random_below(self, total: int) -> int:
        """Uniform integer in range(total); `total` may exceed the int64 range."""
        if total <= np.iinfo(np.int64).max:
            return int(self.rng.integers(total))
        bits = (total - 1).bit_length()
        while True:
            value = int.from_bytes(self.rng.bytes((bits + 7) // 8), "little") >> (-bits % 8)
            if value < total:
                return value

    def combinations(self, units: Sequence[int], n_mutations: int) -> List[Tuple[int, ...]]:
        """
        Combinations of `n_mutations` units whose independent-site count is exactly `n_mutations`.

        When the number of candidate combinations exceeds the cap, a random subset of
        cap size is drawn before filtering.
        """
        units = sorted(set(units))
        if n_mutations <= 0 or n_mutations > len(units):
            return []
        total = math.comb(len(units), n_mutations)
        if total <= self.max_evaluate:
            pool = list(itertools.combinations(units, n_mutations))
        else:
            pool = [self._unrank_combination(units, n_mutations, rank)
                    for rank in self._sample_indices(total, self.max_evaluate)]
        accepted = [combo for combo in pool if self.space.independent_sites(combo) == n_mutations]
        logger.debug(f"{len(accepted)}/{len(pool)} combination(s) of {n_mutations} unit(s) kept (of {total})")
        return [accepted[i] for i in self.rng.permutation(len(accepted))]

    @staticmethod
    def _unrank_combination(units: Sequence[int], k: int, rank: int) -> Tuple[int, ...]:
        """Combination of lexicographic rank `rank` among all k-combinations of `units`."""
        combo = []
        n = len(units)
        start = 0
        for remaining in range(k, 0, -1):
            for pos in range(start, n):
                count = math.comb(n - pos - 1, remaining - 1)
                if rank < count:
                    combo.append(units[pos])
                    start = pos + 1
                    break
                rank -= count
        return tuple(combo)

    def substitution_sets(self, combinations: Sequence[Sequence[int]]) -> List[Substitution]:
        """
        Expand unit combinations into concrete substitution sets, capped and shuffled.

        Combinations containing a unit with an empty alphabet produce nothing.
        """
        sizes = [math.prod(len(alphabet) for alphabet in self.space.alphabets(combo)) for combo in combinations]
        cumulative = list(itertools.accumulate(sizes))
        total = cumulative[-1] if cumulative else 0
        if total == 0:
            return []

        substitutions = []
        for flat in self._sample_indices(total, min(total, self.max_evaluate)):
            which = bisect.bisect_right(cumulative, flat)
            offset = flat - (cumulative[which - 1] if which else 0)
            combo = combinations[which]
            substitution = {}
            # mixed-radix decoding of the offset into one choice per unit
            for unit_index in reversed(combo):
                alphabet = self.space.units[unit_index].alphabet
                offset, choice = divmod(offset, len(alphabet))
                substitution[unit_index] = alphabet[choice]
            substitutions.append(dict(sorted(substitution.items())))
        logger.debug(f"{len(substitutions)} substitution set(s) drawn out of {total}")
        return substitutions
