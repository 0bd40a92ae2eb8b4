# rf_mutate/pipeline/folding/dotplot.py
"""
Parser for RNAfold dot-plot PostScript files (`*_dp.ps`).

Pair probabilities are written as `i j sqrt(p) ubox` with 1-based
coordinates; `lbox` lines (the MFE structure) are ignored.
"""

import re
from typing import Dict, Iterable, Tuple

PairProbabilities = Dict[Tuple[int, int], float]

_UBOX_RE = re.compile(r"^\s*(\d+)\s+(\d+)\s+(\S+)\s+ubox\s*$")


def parse_dotplot(lines: Iterable[str]) -> PairProbabilities:
    """
    Build a sparse (i, j) -> probability table from dot-plot lines.

    Coordinates are converted to 0-based with i < j and the square-root values
    reported by RNAfold are squared back to probabilities.

    Raises:
        ValueError: If a ubox line carries a non-numeric or out-of-range value
    """
    probabilities: PairProbabilities = {}
    for line in lines:
        match = _UBOX_RE.match(line)
        if match is None:
            continue
        i, j = int(match.group(1)) - 1, int(match.group(2)) - 1
        sqrt_p = float(match.group(3))
        if i < 0 or j < 0 or not 0.0 <= sqrt_p <= 1.0:
            raise ValueError(f"Malformed dot-plot line: '{line.strip()}'")
        probabilities[(min(i, j), max(i, j))] = sqrt_p ** 2
    return probabilities


def mean_pair_probability(probabilities, pairs) -> float:
    """
    Mean probability over the (i, j) pairs listed in the table.

    Pairs missing from the table are left out of the average. Returns NaN when
    there is no table, no pair, or none of the pairs is listed.
    """
    if probabilities is None:
        return float("nan")
    listed = [probabilities[key] for key in ((min(i, j), max(i, j)) for i, j in pairs) if key in probabilities]
    if not listed:
        return float("nan")
    return sum(listed) / len(listed)
