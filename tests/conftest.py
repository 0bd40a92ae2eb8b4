"""
Pytest configuration and shared fixtures.
"""

import faulthandler
import io

import pytest

from rf_mutate.dataset.structure_loader import TranscriptEntry
from rf_mutate.pipeline.structure.dotbracket import base_pairs


# Enable faulthandler only if sys.stderr supports fileno (not always true under pytest-xdist or some CI)
def _safe_enable_faulthandler():
    try:
        faulthandler.enable()
        # Set timeout to 60 seconds
        faulthandler.dump_traceback_later(60, repeat=False)
    except (io.UnsupportedOperation, AttributeError):
        pass  # Running in an environment where fileno is not supported


_safe_enable_faulthandler()


class NussinovFolder:
    """
    Deterministic stand-in for ViennaRNA.

    Folds by weighted base-pair maximisation (GC=3, AU=2, GU=1, hairpin loops of
    at least 3 nt); the energy of a structure is minus the weight of its pairs.
    Pair probabilities are 0.8 for every pair of the MFE structure.
    """

    PAIR_WEIGHTS = {
        ("G", "C"): 3, ("C", "G"): 3,
        ("A", "U"): 2, ("U", "A"): 2,
        ("G", "U"): 1, ("U", "G"): 1,
    }
    MIN_LOOP = 3

    def __init__(self, probability: float = 0.8, fail_probabilities: bool = False):
        self.probability = probability
        self.fail_probabilities = fail_probabilities
        self.fold_calls = 0
        self.probability_tags = []

    def _fold(self, sequence):
        n = len(sequence)
        best = [[0] * n for _ in range(n)]
        for span in range(self.MIN_LOOP + 1, n):
            for i in range(n - span):
                j = i + span
                score = best[i][j - 1]
                for k in range(i, j - self.MIN_LOOP):
                    weight = self.PAIR_WEIGHTS.get((sequence[k], sequence[j]))
                    if weight:
                        left = best[i][k - 1] if k > i else 0
                        score = max(score, left + weight + best[k + 1][j - 1])
                best[i][j] = score

        structure = ["."] * n
        stack = [(0, n - 1)]
        while stack:
            i, j = stack.pop()
            if j - i <= self.MIN_LOOP:
                continue
            if best[i][j] == best[i][j - 1]:
                stack.append((i, j - 1))
                continue
            for k in range(i, j - self.MIN_LOOP):
                weight = self.PAIR_WEIGHTS.get((sequence[k], sequence[j]))
                if not weight:
                    continue
                left = best[i][k - 1] if k > i else 0
                if left + weight + best[k + 1][j - 1] == best[i][j]:
                    structure[k], structure[j] = "(", ")"
                    if k > i:
                        stack.append((i, k - 1))
                    stack.append((k + 1, j - 1))
                    break
        energy = -float(best[0][n - 1]) if n else 0.0
        return "".join(structure), energy

    def fold(self, sequence):
        self.fold_calls += 1
        return self._fold(sequence)

    def energy_of(self, sequence, structure):
        return -float(sum(self.PAIR_WEIGHTS.get((sequence[i], sequence[j]), 0) for i, j in base_pairs(structure)))

    def pair_probabilities(self, sequence, tag="sequence"):
        self.probability_tags.append(tag)
        if self.fail_probabilities:
            return None
        structure, _ = self._fold(sequence)
        return {pair: self.probability for pair in base_pairs(structure)}


@pytest.fixture
def mock_folder():
    return NussinovFolder()


@pytest.fixture
def folder_factory():
    return NussinovFolder


@pytest.fixture
def hairpin_entry():
    """A 9-nt GC hairpin flanked by unpaired tails."""
    return TranscriptEntry.from_strings("hp1", "AAGGGAAACCCAA", "..(((...)))..")
