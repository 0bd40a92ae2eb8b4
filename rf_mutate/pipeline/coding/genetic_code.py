# rf_mutate/pipeline/coding/genetic_code.py
"""
Genetic code lookups backed by Biopython's NCBI codon tables.

Provides codon translation, synonymous codon lists (minus user-excluded rare
codons given as IUPAC patterns) and start/stop codon sets for a table id.
"""

import itertools
from typing import Dict, Iterable, List, Set

from Bio.Data import CodonTable, IUPACData

STOP = "*"


def expand_iupac_codons(patterns: Iterable[str]) -> Set[str]:
    """
    Expand IUPAC codon patterns (DNA or RNA alphabet) to concrete RNA codons.

    Example:
        >>> sorted(expand_iupac_codons(["CUN"]))
        ['CUA', 'CUC', 'CUG', 'CUU']

    Raises:
        ValueError: If a pattern is not 3 characters long or holds a non-IUPAC symbol
    """
    codons: Set[str] = set()
    for pattern in patterns:
        pattern = pattern.strip().upper().replace("T", "U")
        if len(pattern) != 3:
            raise ValueError(f"Codon pattern '{pattern}' must be 3 nucleotides long")
        choices = []
        for symbol in pattern:
            if symbol not in IUPACData.ambiguous_rna_values:
                raise ValueError(f"Invalid IUPAC symbol '{symbol}' in codon pattern '{pattern}'")
            choices.append(IUPACData.ambiguous_rna_values[symbol])
        codons.update("".join(combo) for combo in itertools.product(*choices))
    return codons


class GeneticCode:
    """Codon table for one NCBI genetic code id, with optional excluded codons."""

    def __init__(self, table_id: int = 1, exclude_codons: Iterable[str] = ()):
        try:
            table = CodonTable.unambiguous_rna_by_id[table_id]
        except KeyError:
            raise ValueError(f"Unknown genetic code table id: {table_id}")
        self.table_id = table_id
        self.forward_table: Dict[str, str] = dict(table.forward_table)
        for stop in table.stop_codons:
            self.forward_table[stop] = STOP
        self.start_codons: List[str] = list(table.start_codons)
        self.stop_codons: Set[str] = set(table.stop_codons)
        self.excluded_codons: Set[str] = expand_iupac_codons(exclude_codons)

        self._by_amino_acid: Dict[str, List[str]] = {}
        for codon in sorted(self.forward_table):
            self._by_amino_acid.setdefault(self.forward_table[codon], []).append(codon)

    def translate_codon(self, codon: str) -> str:
        return self.forward_table[codon]

    def is_stop(self, codon: str) -> bool:
        return codon in self.stop_codons

    def translate(self, sequence: str) -> str:
        """Translate an RNA sequence codon by codon (trailing partial codon ignored)."""
        return "".join(
            self.forward_table.get(sequence[i:i + 3], "X")
            for i in range(0, len(sequence) - 2, 3)
        )

    def synonymous_codons(self, codon: str) -> List[str]:
        """Synonymous alternatives of `codon`, excluding the codon itself and excluded codons."""
        amino_acid = self.forward_table.get(codon)
        if amino_acid is None:
            return []
        return [
            alt for alt in self._by_amino_acid[amino_acid]
            if alt != codon and alt not in self.excluded_codons
        ]
