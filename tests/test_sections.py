"""Tests for resume_builder/sections.py (section order model)."""

from __future__ import annotations

import unittest

from resume_builder import sections
from resume_builder.model import SectionType, new_document


class TestDefaultSections(unittest.TestCase):
    def test_default_order(self):
        doc = new_document()
        self.assertEqual(
            [s.type for s in doc.sections],
            [
                SectionType.PROFILE,
                SectionType.SKILLS,
                SectionType.EDUCATION,
                SectionType.EXPERIENCE,
                SectionType.PROJECTS,
                SectionType.CERTIFICATIONS,
            ],
        )
        self.assertEqual([s.id for s in doc.sections], ["1", "2", "3", "4", "5", "6"])
        self.assertTrue(all(s.enabled for s in doc.sections))


class TestMove(unittest.TestCase):
    def setUp(self):
        self.doc = new_document()

    def test_move_up_swaps_with_predecessor(self):
        moved = sections.move_up(self.doc, 3)
        self.assertEqual([s.id for s in moved.sections], ["1", "2", "4", "3", "5", "6"])

    def test_move_down_swaps_with_successor(self):
        moved = sections.move_down(self.doc, 0)
        self.assertEqual([s.id for s in moved.sections], ["2", "1", "3", "4", "5", "6"])

    def test_move_up_at_top_is_noop(self):
        self.assertIs(sections.move_up(self.doc, 0), self.doc)

    def test_move_down_at_bottom_is_noop(self):
        self.assertIs(sections.move_down(self.doc, 5), self.doc)

    def test_out_of_range_is_noop(self):
        self.assertIs(sections.move_up(self.doc, 42), self.doc)
        self.assertIs(sections.move_down(self.doc, -1), self.doc)

    def test_up_then_down_restores_order(self):
        doc = sections.move_down(sections.move_up(self.doc, 2), 1)
        self.assertEqual(doc.sections, self.doc.sections)

    def test_move_preserves_length_and_ids(self):
        moved = sections.move_down(sections.move_up(self.doc, 4), 0)
        self.assertEqual(len(moved.sections), len(self.doc.sections))
        self.assertEqual(sorted(s.id for s in moved.sections), sorted(s.id for s in self.doc.sections))

    def test_original_is_untouched(self):
        before = self.doc.sections
        sections.move_up(self.doc, 1)
        self.assertEqual(self.doc.sections, before)


class TestToggle(unittest.TestCase):
    def test_toggle_flips_enabled_and_keeps_position(self):
        doc = new_document()
        toggled = sections.toggle(doc, "3")
        self.assertFalse(toggled.sections[2].enabled)
        self.assertEqual(toggled.sections[2].id, "3")
        self.assertTrue(sections.toggle(toggled, "3").sections[2].enabled)

    def test_toggle_unknown_id_is_noop(self):
        doc = new_document()
        self.assertIs(sections.toggle(doc, "nope"), doc)

    def test_find_and_index(self):
        doc = new_document()
        self.assertEqual(sections.find_section(doc, "4").type, SectionType.EXPERIENCE)
        self.assertIsNone(sections.find_section(doc, "x"))
        self.assertEqual(sections.section_index(doc, "4"), 3)
        self.assertEqual(sections.section_index(doc, "x"), -1)


if __name__ == "__main__":
    unittest.main()
