import unittest

from rf_mutate.dataset.structure_loader import TranscriptEntry
from rf_mutate.pipeline.coding.genetic_code import GeneticCode
from rf_mutate.pipeline.coding.orf_finder import Orf
from rf_mutate.pipeline.search.mutation_space import (
    NONCODING_SUBSTITUTIONS,
    build_mutation_space,
)
from rf_mutate.pipeline.structure.motif_locator import locate_motif

COMPLEMENT = {"A": "U", "U": "A", "G": "C", "C": "G"}

# AUG CCC AAA GGG UAA: the CCC/GGG codons form the helix
CODING_SEQUENCE = "AUGCCCAAAGGGUAA"
CODING_STRUCTURE = "...(((...)))..."


class TestNoncodingSpace(unittest.TestCase):
    def setUp(self):
        entry = TranscriptEntry.from_strings("tx", "AAGGGAAACCCAA", "..(((...)))..")
        self.region = locate_motif(entry, 2)

    def test_substitution_table(self):
        self.assertEqual(NONCODING_SUBSTITUTIONS["A"], ("C", "U"))
        for base, alphabet in NONCODING_SUBSTITUTIONS.items():
            self.assertEqual(len(alphabet), 2)
            self.assertNotIn(base, alphabet)

    def test_only_paired_bases_are_eligible(self):
        space = build_mutation_space(self.region)
        self.assertFalse(space.coding)
        self.assertEqual(len(space.units), 9)
        self.assertEqual(space.eligible, [0, 1, 2, 6, 7, 8])
        self.assertEqual(space.partner_of(0), 8)
        self.assertEqual(space.partner_of(8), 0)
        self.assertIsNone(space.partner_of(4))

    def test_target_mode_makes_every_base_eligible(self):
        entry = TranscriptEntry.from_strings("tx", "AAGGGAAACCCAA", "..(((...)))..")
        region = locate_motif(entry, 2, targets={2: "........."})
        space = build_mutation_space(region)
        self.assertEqual(space.eligible, list(range(9)))

    def test_partner_collapsing(self):
        space = build_mutation_space(self.region)
        self.assertEqual(space.independent_sites((0, 8)), 1)
        self.assertEqual(space.independent_sites((0, 1)), 2)
        self.assertEqual(space.independent_sites((0, 8, 1)), 2)

    def test_apply_and_mutated_positions(self):
        space = build_mutation_space(self.region)
        substitution = {0: "C", 8: "G"}
        self.assertEqual(space.apply(self.region.sequence, substitution), "CGGAAACCG")
        self.assertEqual(space.mutated_positions(substitution), [0, 8])


class TestCodingSpace(unittest.TestCase):
    def setUp(self):
        self.entry = TranscriptEntry.from_strings("cds", CODING_SEQUENCE, CODING_STRUCTURE)
        self.orf = Orf(0, 14)

    def test_codon_units(self):
        region = locate_motif(self.entry, 3, orf=self.orf)
        space = build_mutation_space(region, GeneticCode(1))
        self.assertTrue(space.coding)
        self.assertEqual([unit.wild_type for unit in space.units], ["CCC", "AAA", "GGG"])
        # AAA has no paired base
        self.assertEqual(space.eligible, [0, 2])
        self.assertEqual(space.partners, {0: 2, 2: 0})
        self.assertEqual(sorted(space.units[0].alphabet), ["CCA", "CCG", "CCU"])

    def test_excluded_synonyms_make_codon_ineligible(self):
        region = locate_motif(self.entry, 3, orf=self.orf)
        space = build_mutation_space(region, GeneticCode(1, exclude_codons=["CCN"]))
        self.assertEqual(space.units[0].alphabet, ())
        self.assertEqual(space.eligible, [2])

    def test_codon_substitution_positions(self):
        region = locate_motif(self.entry, 3, orf=self.orf)
        space = build_mutation_space(region, GeneticCode(1))
        self.assertEqual(space.apply(region.sequence, {0: "CCU"}), "CCUAAAGGG")
        self.assertEqual(space.mutated_positions({0: "CCU"}), [2])

    def test_codons_outside_orf_are_not_units(self):
        # ORF starting at the AAA codon: only AAA and GGG lie inside it
        region = locate_motif(self.entry, 3, orf=Orf(6, 14))
        space = build_mutation_space(region, GeneticCode(1))
        self.assertEqual([unit.wild_type for unit in space.units], ["AAA", "GGG"])

    def test_coding_space_requires_code(self):
        region = locate_motif(self.entry, 3, orf=self.orf)
        with self.assertRaises(ValueError):
            build_mutation_space(region)


def test_complement_is_always_reachable_from_a_substitution():
    # a mutated base can always be paired again by mutating its partner
    for base, alphabet in NONCODING_SUBSTITUTIONS.items():
        partner_alphabet = NONCODING_SUBSTITUTIONS[COMPLEMENT[base]]
        for substitute in alphabet:
            assert COMPLEMENT[substitute] in partner_alphabet
