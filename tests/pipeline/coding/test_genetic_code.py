import unittest

from rf_mutate.pipeline.coding.genetic_code import GeneticCode, expand_iupac_codons


class TestIupacExpansion(unittest.TestCase):
    def test_expand_n(self):
        self.assertEqual(expand_iupac_codons(["CUN"]), {"CUA", "CUC", "CUG", "CUU"})

    def test_dna_alphabet_and_ambiguity(self):
        self.assertEqual(expand_iupac_codons(["ttr"]), {"UUA", "UUG"})

    def test_invalid_patterns(self):
        with self.assertRaises(ValueError):
            expand_iupac_codons(["CU"])
        with self.assertRaises(ValueError):
            expand_iupac_codons(["CUX"])


class TestGeneticCode(unittest.TestCase):
    def test_standard_table(self):
        code = GeneticCode(1)
        self.assertEqual(code.translate_codon("AUG"), "M")
        self.assertTrue(code.is_stop("UAA"))
        self.assertEqual(code.translate_codon("UGA"), "*")
        self.assertIn("AUG", code.start_codons)

    def test_translate(self):
        code = GeneticCode(1)
        self.assertEqual(code.translate("AUGAAAUGGUAAG"), "MKW*")

    def test_alternative_table(self):
        # table 2 (vertebrate mitochondrial) reads UGA as Trp
        code = GeneticCode(2)
        self.assertEqual(code.translate_codon("UGA"), "W")
        self.assertFalse(code.is_stop("UGA"))

    def test_unknown_table(self):
        with self.assertRaises(ValueError):
            GeneticCode(99)

    def test_synonymous_codons(self):
        code = GeneticCode(1)
        self.assertEqual(sorted(code.synonymous_codons("GGG")), ["GGA", "GGC", "GGU"])
        self.assertEqual(code.synonymous_codons("AUG"), [])
        self.assertEqual(code.synonymous_codons("UGG"), [])

    def test_excluded_codons_are_not_offered(self):
        code = GeneticCode(1, exclude_codons=["GGN"])
        self.assertEqual(code.synonymous_codons("GGG"), [])
        code = GeneticCode(1, exclude_codons=["GGA", "ggt"])
        self.assertEqual(code.synonymous_codons("GGG"), ["GGC"])
