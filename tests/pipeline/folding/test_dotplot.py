import math

import pytest

from rf_mutate.pipeline.folding.dotplot import mean_pair_probability, parse_dotplot

DOTPLOT = """%!PS-Adobe-3.0 EPSF-3.0
%%Title: RNA Dot Plot
/sequence { (\\
GGGAAACCC\\
) } def
%start of base pair probability data
1 9 0.9 ubox
2 8 0.5 ubox
3 7 0.1 ubox
1 9 0.95 lbox
showpage
"""


def test_parse_dotplot():
    probabilities = parse_dotplot(DOTPLOT.splitlines())
    assert set(probabilities) == {(0, 8), (1, 7), (2, 6)}
    assert probabilities[(0, 8)] == pytest.approx(0.81)
    assert probabilities[(1, 7)] == pytest.approx(0.25)


def test_parse_dotplot_rejects_bad_values():
    with pytest.raises(ValueError):
        parse_dotplot(["1 9 1.5 ubox"])


def test_mean_pair_probability_skips_missing_pairs():
    probabilities = {(0, 8): 0.8, (1, 7): 0.4}
    assert mean_pair_probability(probabilities, [(0, 8), (1, 7), (2, 6)]) == pytest.approx(0.6)
    assert mean_pair_probability({(0, 8): 0.5}, [(0, 8), (1, 7)]) == pytest.approx(0.5)
    # orientation of the pair does not matter
    assert mean_pair_probability(probabilities, [(8, 0)]) == pytest.approx(0.8)


def test_mean_pair_probability_nan_cases():
    assert math.isnan(mean_pair_probability(None, [(0, 8)]))
    assert math.isnan(mean_pair_probability({(0, 8): 0.8}, []))
    # none of the pairs is listed
    assert math.isnan(mean_pair_probability({}, [(0, 8), (1, 7)]))
    assert math.isnan(mean_pair_probability({(2, 6): 0.3}, [(0, 8)]))
