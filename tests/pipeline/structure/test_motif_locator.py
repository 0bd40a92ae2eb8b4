import unittest

from rf_mutate.dataset.structure_loader import TranscriptEntry
from rf_mutate.pipeline.coding.orf_finder import Orf
from rf_mutate.pipeline.errors import InvalidTargetError, MotifNotFoundError
from rf_mutate.pipeline.structure.motif_locator import locate_motif, resolve_motif_start


class TestMotifLocator(unittest.TestCase):
    def setUp(self):
        #                                   0123456789012345678
        self.entry = TranscriptEntry.from_strings(
            "tx", "AAGGGAAACCCAAGCAAGC", "..(((...)))..(...)."
        )

    def test_locate_by_coordinate(self):
        region = locate_motif(self.entry, 2)
        self.assertEqual((region.start, region.end), (2, 10))
        self.assertEqual(region.sequence, "GGGAAACCC")
        self.assertEqual(region.structure, "(((...)))")
        self.assertFalse(region.coding)
        self.assertIsNone(region.target)

    def test_locate_by_pattern(self):
        region = locate_motif(self.entry, "(...).")
        self.assertEqual((region.start, region.end), (13, 17))

    def test_inner_helix_position_is_not_a_motif(self):
        with self.assertRaises(MotifNotFoundError):
            locate_motif(self.entry, 3)

    def test_unpaired_position_is_not_a_motif(self):
        with self.assertRaises(MotifNotFoundError):
            resolve_motif_start(self.entry, 0)

    def test_missing_pattern(self):
        with self.assertRaises(MotifNotFoundError):
            locate_motif(self.entry, "((((....))))")

    def test_relocation_is_idempotent(self):
        first = locate_motif(self.entry, 2)
        locate_motif(self.entry, 13)
        second = locate_motif(self.entry, 2)
        self.assertEqual((first.start, first.end), (second.start, second.end))

    def test_short_target_is_right_padded(self):
        region = locate_motif(self.entry, 2, targets={2: "((..))"})
        self.assertEqual(region.target, "((..))...")
        self.assertEqual(len(region.target), region.length)
        self.assertEqual(region.reference_structure, region.target)

    def test_long_target_extends_region(self):
        region = locate_motif(self.entry, 2, targets={2: "(((....)))."})
        self.assertEqual((region.start, region.end), (2, 12))
        self.assertEqual(region.sequence, "GGGAAACCCAA")

    def test_target_past_transcript_end(self):
        with self.assertRaises(InvalidTargetError):
            locate_motif(self.entry, 13, targets={13: "." * 10})

    def test_target_for_other_motif_is_ignored(self):
        region = locate_motif(self.entry, 13, targets={2: "((..))"})
        self.assertIsNone(region.target)

    def test_orf_overlap_widens_to_codons(self):
        # ORF frame 1: codons start at 1, 4, 7, 10, ...
        region = locate_motif(self.entry, 2, orf=Orf(1, 18))
        self.assertTrue(region.coding)
        self.assertEqual((region.start, region.end), (1, 12))
        self.assertEqual(region.structure, ".(((...)))..")
        self.assertEqual(region.helix_start, 2)

    def test_widening_pads_target(self):
        region = locate_motif(self.entry, 2, targets={2: "((.....))"}, orf=Orf(1, 18))
        self.assertEqual(region.target, ".((.....))..")
        self.assertEqual(len(region.target), region.length)

    def test_orf_boundary_inside_motif(self):
        # only the end falls inside the ORF; the start stays put
        region = locate_motif(self.entry, 2, orf=Orf(6, 17))
        self.assertEqual((region.start, region.end), (2, 11))

    def test_non_overlapping_orf_is_non_coding(self):
        region = locate_motif(self.entry, 2, orf=Orf(12, 17))
        self.assertFalse(region.coding)
        self.assertEqual((region.start, region.end), (2, 10))
