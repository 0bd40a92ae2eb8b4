import itertools
import math

import numpy as np
import pytest
from hypothesis import given, settings, strategies as st

from rf_mutate.pipeline.search.mutation_space import MutableUnit, MutationSpace, NONCODING_SUBSTITUTIONS
from rf_mutate.pipeline.search.sampler import CombinationSampler


def _hairpin_space(stem: int) -> MutationSpace:
    """Non-coding space of a G-stem / C-stem hairpin with a 3-nt loop."""
    sequence = "G" * stem + "AAA" + "C" * stem
    units = [MutableUnit(i, i, base, NONCODING_SUBSTITUTIONS[base]) for i, base in enumerate(sequence)]
    partners = {}
    for i in range(stem):
        j = len(sequence) - 1 - i
        partners[i], partners[j] = j, i
    return MutationSpace(units=units, eligible=sorted(partners), partners=partners)


def test_small_pool_is_enumerated():
    space = _hairpin_space(3)
    sampler = CombinationSampler(space, np.random.default_rng(0), max_evaluate=1000)
    combinations = sampler.combinations(space.eligible, 2)
    # C(6, 2) = 15 pairs minus the 3 that touch both ends of one base pair
    assert len(combinations) == 12
    assert len(set(combinations)) == 12


def test_invalid_requests():
    space = _hairpin_space(2)
    sampler = CombinationSampler(space, np.random.default_rng(0))
    assert sampler.combinations(space.eligible, 0) == []
    assert sampler.combinations(space.eligible, 5) == []
    with pytest.raises(ValueError):
        CombinationSampler(space, np.random.default_rng(0), max_evaluate=0)


def test_large_pool_is_capped():
    space = _hairpin_space(10)
    sampler = CombinationSampler(space, np.random.default_rng(1), max_evaluate=50)
    combinations = sampler.combinations(space.eligible, 4)
    assert 0 < len(combinations) <= 50
    assert len(set(combinations)) == len(combinations)


def test_unrank_matches_lexicographic_order():
    units = [1, 4, 5, 9, 12]
    expected = list(itertools.combinations(units, 3))
    for rank, combo in enumerate(expected):
        assert CombinationSampler._unrank_combination(units, 3, rank) == combo


def test_substitution_sets_cover_product_when_small():
    space = _hairpin_space(3)
    sampler = CombinationSampler(space, np.random.default_rng(0), max_evaluate=1000)
    substitutions = sampler.substitution_sets([(0, 1), (2,)])
    # 2 x 2 choices for (0, 1) plus 2 for (2,)
    assert len(substitutions) == 6
    assert {"0:C,1:C", "0:U,1:U", "2:C"} <= {",".join(f"{k}:{v}" for k, v in s.items()) for s in substitutions}


def test_substitution_sets_capped_and_empty_alphabets():
    space = _hairpin_space(6)
    sampler = CombinationSampler(space, np.random.default_rng(0), max_evaluate=10)
    substitutions = sampler.substitution_sets([tuple(range(6))])
    assert len(substitutions) == 10
    assert len({tuple(sorted(s.items())) for s in substitutions}) == 10

    space.units[0] = MutableUnit(0, 0, "AUG", ())
    assert sampler.substitution_sets([(0, 1)]) == []


def test_same_seed_same_order():
    space = _hairpin_space(5)
    first = CombinationSampler(space, np.random.default_rng(7)).combinations(space.eligible, 2)
    second = CombinationSampler(space, np.random.default_rng(7)).combinations(space.eligible, 2)
    assert first == second


def _unpaired_space(length: int) -> MutationSpace:
    """Every base of an unstructured G stretch is mutable and independent."""
    units = [MutableUnit(i, i, "G", NONCODING_SUBSTITUTIONS["G"]) for i in range(length)]
    return MutationSpace(units=units, eligible=list(range(length)), partners={})


def test_pools_beyond_int64_are_sampled():
    space = _unpaired_space(120)
    sampler = CombinationSampler(space, np.random.default_rng(3), max_evaluate=10)
    # C(120, 25) and 2 ** 70 are both far above the int64 range
    combinations = sampler.combinations(space.eligible, 25)
    assert len(combinations) == 10
    assert len(set(combinations)) == 10
    for combo in combinations:
        assert list(combo) == sorted(set(combo)) and len(combo) == 25
        assert all(0 <= unit < 120 for unit in combo)

    substitutions = sampler.substitution_sets([tuple(range(70))])
    assert len(substitutions) == 10
    assert len({tuple(sorted(s.items())) for s in substitutions}) == 10
    assert all(len(s) == 70 and set(s.values()) <= {"C", "U"} for s in substitutions)


def test_large_draws_are_reproducible():
    space = _unpaired_space(120)
    first = CombinationSampler(space, np.random.default_rng(5), max_evaluate=4).combinations(space.eligible, 30)
    second = CombinationSampler(space, np.random.default_rng(5), max_evaluate=4).combinations(space.eligible, 30)
    assert first == second


@given(
    stem=st.integers(min_value=1, max_value=8),
    n_mutations=st.integers(min_value=1, max_value=4),
    max_evaluate=st.integers(min_value=1, max_value=200),
    seed=st.integers(min_value=0, max_value=2 ** 16),
)
@settings(max_examples=60, deadline=None)
def test_combinations_touch_exactly_n_sites(stem, n_mutations, max_evaluate, seed):
    space = _hairpin_space(stem)
    sampler = CombinationSampler(space, np.random.default_rng(seed), max_evaluate=max_evaluate)
    combinations = sampler.combinations(space.eligible, n_mutations)
    assert len(combinations) <= max(max_evaluate, math.comb(len(space.eligible), n_mutations))
    for combo in combinations:
        assert len(combo) == n_mutations
        assert space.independent_sites(combo) == n_mutations
    for substitution in sampler.substitution_sets(combinations):
        assert len(substitution) == n_mutations
        for index, replacement in substitution.items():
            assert replacement in space.units[index].alphabet
