# rf_mutate/pipeline/search/mutation_space.py
"""
Mutation-Space Generator.

A motif is split into mutable units: single bases in non-coding mode, ORF-frame
codons in coding mode. Each unit carries its legal substitutions and may have a
base-pair partner unit; the search code is the same for both granularities.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from rf_mutate.pipeline.coding.genetic_code import GeneticCode
from rf_mutate.pipeline.structure.motif_locator import MotifRegion

logger = logging.getLogger("rf_mutate.pipeline.search.mutation_space")

# Purines are replaced by pyrimidines and vice versa, so that the partner of a
# mutated base can always be mutated back into a complementary base.
NONCODING_SUBSTITUTIONS: Dict[str, Tuple[str, str]] = {
    "A": ("C", "U"),
    "C": ("A", "G"),
    "G": ("C", "U"),
    "U": ("A", "G"),
}

Substitution = Dict[int, str]


@dataclass(frozen=True)
class MutableUnit:
    index: int
    offset: int  # motif-relative position of the first base
    wild_type: str
    alphabet: Tuple[str, ...]

    @property
    def width(self) -> int:
        return len(self.wild_type)

    def changed_positions(self, replacement: str) -> List[int]:
        return [self.offset + i for i, (a, b) in enumerate(zip(self.wild_type, replacement)) if a != b]


@dataclass
class MutationSpace:
    units: List[MutableUnit]
    eligible: List[int]
    partners: Dict[int, int]
    coding: bool = False

    def partner_of(self, index: int):
        return self.partners.get(index)

    def independent_sites(self, combination: Iterable[int]) -> int:
        """
        Number of independent sites touched by a combination of units.

        Units linked through the partner table (either direction) collapse into
        a single site.
        """
        members = list(dict.fromkeys(combination))
        parent = {unit: unit for unit in members}

        def find(unit):
            while parent[unit] != unit:
                parent[unit] = parent[parent[unit]]
                unit = parent[unit]
            return unit

        for unit in members:
            partner = self.partners.get(unit)
            if partner in parent:
                parent[find(unit)] = find(partner)
        return len({find(unit) for unit in members})

    def apply(self, sequence: str, substitution: Mapping[int, str]) -> str:
        """Apply {unit index: replacement} to a motif sequence."""
        bases = list(sequence)
        for index, replacement in substitution.items():
            unit = self.units[index]
            bases[unit.offset:unit.offset + unit.width] = replacement
        return "".join(bases)

    def mutated_positions(self, substitution: Mapping[int, str]) -> List[int]:
        """Motif-relative positions of the bases actually changed by a substitution."""
        positions: List[int] = []
        for index, replacement in substitution.items():
            positions.extend(self.units[index].changed_positions(replacement))
        return sorted(positions)

    def alphabets(self, indices: Sequence[int]) -> List[Tuple[str, ...]]:
        return [self.units[index].alphabet for index in indices]


def build_noncoding_space(region: MotifRegion, target_mode: bool = False) -> MutationSpace:
    """
    One unit per base. Without a target only paired bases are eligible, since
    disrupting a helix requires mutating a paired base.
    """
    pairs = region.pairs
    units = [
        MutableUnit(pos, pos, base, NONCODING_SUBSTITUTIONS[base])
        for pos, base in enumerate(region.sequence)
    ]
    eligible = list(range(len(units))) if target_mode else sorted(pairs)
    return MutationSpace(units=units, eligible=eligible, partners=dict(pairs), coding=False)


def build_coding_space(region: MotifRegion, code: GeneticCode, target_mode: bool = False) -> MutationSpace:
    """
    One unit per ORF-frame codon lying completely inside both the motif and the ORF.

    Substitutions are the synonymous codons of the wild-type codon. Without a
    target a codon is eligible only if at least two of its bases are paired.
    Each codon's partner is the codon it shares the most base pairs with (ties
    go to the earliest codon).
    """
    orf = region.orf
    first = max(region.start, orf.start)
    first += (orf.start - first) % 3
    last = min(region.end, orf.end)

    units: List[MutableUnit] = []
    unit_of_position: Dict[int, int] = {}
    for codon_start in range(first, last - 1, 3):
        offset = codon_start - region.start
        wild_type = region.sequence[offset:offset + 3]
        index = len(units)
        units.append(MutableUnit(index, offset, wild_type, tuple(code.synonymous_codons(wild_type))))
        for pos in range(offset, offset + 3):
            unit_of_position[pos] = index

    pairs = region.pairs
    partners: Dict[int, int] = {}
    eligible: List[int] = []
    for unit in units:
        paired = [pos for pos in range(unit.offset, unit.offset + 3) if pos in pairs]
        shared = Counter(
            unit_of_position[pairs[pos]]
            for pos in paired
            if pairs[pos] in unit_of_position and unit_of_position[pairs[pos]] != unit.index
        )
        if shared:
            best = max(shared.values())
            partners[unit.index] = min(idx for idx, count in shared.items() if count == best)
        if unit.alphabet and (target_mode or len(paired) >= 2):
            eligible.append(unit.index)

    logger.debug(
        f"[{region.transcript_id}:{region.start}] {len(units)} codon(s), "
        f"{len(eligible)} eligible, {len(partners)} with a partner"
    )
    return MutationSpace(units=units, eligible=eligible, partners=partners, coding=True)


def build_mutation_space(region: MotifRegion, code: GeneticCode = None) -> MutationSpace:
    target_mode = region.target is not None
    if region.coding:
        if code is None:
            raise ValueError("A genetic code is required for coding motifs")
        return build_coding_space(region, code, target_mode)
    return build_noncoding_space(region, target_mode)
