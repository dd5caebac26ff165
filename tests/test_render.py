"""Tests for the Classic and TwoSide layouts."""

from __future__ import annotations

import unittest
from dataclasses import replace

from resume_builder import custom_sections, sections
from resume_builder.model import (
    CustomType,
    Education,
    Experience,
    Project,
    ResumeFormat,
    SectionType,
    new_document,
)
from resume_builder.render_base import create_renderer, render
from resume_builder.render_classic import ClassicRenderer
from resume_builder.render_nodes import BulletList, EntryBlock, TagsBlock, TextBlock
from resume_builder.render_two_side import TwoSideRenderer

from tests.fixtures import sample_document


def _kinds(rendered):
    return [n.kind for n in rendered.body]


def _ids(rendered):
    return [n.section_id for n in rendered.body]


class TestCreateRenderer(unittest.TestCase):
    def test_dispatches_on_template(self):
        self.assertIsInstance(create_renderer(new_document()), ClassicRenderer)
        self.assertIsInstance(create_renderer(new_document(ResumeFormat.TWO_SIDE)), TwoSideRenderer)
        self.assertIsInstance(create_renderer(new_document(), ResumeFormat.TWO_SIDE), TwoSideRenderer)


class TestClassic(unittest.TestCase):
    def test_sections_follow_order(self):
        rendered = render(sample_document())
        self.assertEqual(_ids(rendered), ["1", "2", "3", "4", "5", "6", "c-tags", "c-para", "c-list"])
        self.assertEqual(rendered.header.name, "Jane Doe")
        self.assertIsNone(rendered.sidebar)

    def test_reorder_is_reflected(self):
        doc = sections.move_up(sample_document(), 3)
        self.assertEqual(_ids(render(doc))[:4], ["1", "2", "4", "3"])

    def test_disabled_section_is_skipped(self):
        doc = sections.toggle(sample_document(), "4")
        self.assertNotIn(SectionType.EXPERIENCE, _kinds(render(doc)))

    def test_disabled_custom_section_is_skipped(self):
        doc = sections.toggle(sample_document(), "c-para")
        self.assertNotIn("c-para", _ids(render(doc)))

    def test_empty_document_renders_header_only(self):
        rendered = render(new_document())
        self.assertEqual(rendered.body, ())
        self.assertIsNotNone(rendered.header)

    def test_empty_collections_are_suppressed(self):
        doc = replace(sample_document(), education=(), certifications=(), summary="")
        kinds = _kinds(render(doc))
        self.assertNotIn(SectionType.EDUCATION, kinds)
        self.assertNotIn(SectionType.CERTIFICATIONS, kinds)
        self.assertNotIn(SectionType.PROFILE, kinds)

    def test_whitespace_summary_is_not_suppressed(self):
        doc = replace(new_document(), summary=" ")
        self.assertEqual(_kinds(render(doc)), [SectionType.PROFILE])

    def test_titles_and_blocks(self):
        rendered = render(sample_document())
        by_kind = {n.kind: n for n in rendered.body if n.kind is not SectionType.CUSTOM}
        self.assertEqual(by_kind[SectionType.EXPERIENCE].title, "Professional Experience")
        skills = by_kind[SectionType.SKILLS].blocks[0]
        self.assertIsInstance(skills, TextBlock)
        self.assertEqual(skills.label, "Technical Skills")
        self.assertEqual(skills.text, "Python, SQL, Kubernetes")
        exp = by_kind[SectionType.EXPERIENCE].blocks[0]
        self.assertIsInstance(exp, EntryBlock)
        self.assertEqual(exp.bullets, ("Led the billing rewrite", "Cut p99 latency by 40%"))
        edu = by_kind[SectionType.EDUCATION].blocks[0]
        self.assertEqual((edu.heading, edu.subheading, edu.meta), ("State University", "BSc Computer Science", "2016"))

    def test_custom_sections(self):
        rendered = render(sample_document())
        custom = {n.section_id: n for n in rendered.body if n.kind is SectionType.CUSTOM}
        self.assertEqual(custom["c-tags"].title, "Languages")
        self.assertEqual(custom["c-tags"].blocks[0].text, "English, German")
        self.assertEqual(custom["c-para"].blocks[0].text, "Mentor at a local code club.")
        self.assertEqual(custom["c-list"].blocks[0], BulletList(("Hackathon winner",)))

    def test_list_with_only_blank_items_is_suppressed(self):
        doc, sid = custom_sections.create(new_document(), "Empty", CustomType.LIST)
        doc, _ = custom_sections.add_item(doc, sid)
        self.assertEqual(render(doc).body, ())

    def test_contact_line(self):
        header = render(sample_document()).header
        self.assertEqual(header.contact_line, "555-0100 | jane@example.com | LinkedIn")


class TestTwoSide(unittest.TestCase):
    def setUp(self):
        self.doc = sample_document(ResumeFormat.TWO_SIDE)

    def test_skills_pinned_to_sidebar(self):
        rendered = render(self.doc)
        self.assertNotIn(SectionType.SKILLS, _kinds(rendered))
        self.assertEqual(rendered.sidebar.skills.blocks[0], BulletList(("Python", "SQL", "Kubernetes")))
        self.assertEqual(len(rendered.sections_of(SectionType.SKILLS)), 1)

    def test_body_follows_order(self):
        rendered = render(self.doc)
        self.assertEqual(_ids(rendered), ["1", "3", "4", "5", "6", "c-tags", "c-para", "c-list"])
        self.assertIsNone(rendered.header)

    def test_reorder_is_reflected(self):
        doc = sections.move_down(self.doc, 2)
        self.assertEqual(_ids(render(doc))[:3], ["1", "4", "3"])

    def test_titles_are_upper_case(self):
        titles = [n.title for n in render(self.doc).body]
        self.assertIn("PROFESSIONAL SUMMARY", titles)
        self.assertIn("LANGUAGES", titles)

    def test_tags_and_projects(self):
        rendered = render(self.doc)
        nodes = {n.section_id: n for n in rendered.body}
        self.assertIsInstance(nodes["c-tags"].blocks[0], TagsBlock)
        proj = nodes["5"].blocks[0]
        self.assertEqual(proj.note_label, "Technologies")
        self.assertEqual(proj.note, "Go, Redis")
        edu = nodes["3"].blocks[0]
        self.assertEqual(edu.heading, "BSc Computer Science")

    def test_sidebar_contents(self):
        side = render(self.doc).sidebar
        self.assertEqual(side.name, "Jane Doe")
        self.assertEqual(side.accent_color, "#2C5F7C")
        self.assertEqual(side.text_color, "#FFFFFF")
        self.assertEqual([c.label for c in side.contact], ["Phone", "Email", "LinkedIn"])
        self.assertEqual(side.contact[-1].link, "https://linkedin.com/in/janedoe")

    def test_invalid_accent_falls_back(self):
        doc = replace(self.doc, accent_color="nonsense")
        self.assertEqual(render(doc).sidebar.accent_color, "#2C5F7C")

    def test_light_accent_uses_dark_text(self):
        doc = replace(self.doc, accent_color="#BDE8F5")
        self.assertEqual(render(doc).sidebar.text_color, "#1F1F1F")

    def test_no_skills_means_no_sidebar_skills(self):
        doc = replace(self.doc, skills=())
        self.assertIsNone(render(doc).sidebar.skills)


_FILLED = {
    SectionType.PROFILE: ("summary", "", "Backend engineer"),
    SectionType.SKILLS: ("skills", (), ("Go", "Rust")),
    SectionType.EDUCATION: ("education", (), (Education(id="e", institution="MIT"),)),
    SectionType.EXPERIENCE: ("experience", (), (Experience(id="x", title="Engineer"),)),
    SectionType.PROJECTS: ("projects", (), (Project(id="p", name="Scheduler"),)),
    SectionType.CERTIFICATIONS: ("certifications", (), ("CKA",)),
}


class TestBuiltinNodeCount(unittest.TestCase):
    def test_empty_gives_no_node_and_filled_gives_one(self):
        for fmt in ResumeFormat:
            for kind, (attr, empty, filled) in _FILLED.items():
                with self.subTest(template=fmt.value, kind=kind.value):
                    doc = new_document(fmt)
                    self.assertEqual(len(render(replace(doc, **{attr: empty})).sections_of(kind)), 0)
                    self.assertEqual(len(render(replace(doc, **{attr: filled})).sections_of(kind)), 1)

    def test_classic_skills_joined(self):
        rendered = render(replace(new_document(), skills=("Go", "Rust")))
        (node,) = rendered.sections_of(SectionType.SKILLS)
        self.assertEqual(node.blocks[0].text, "Go, Rust")


class TestLayoutsAgree(unittest.TestCase):
    def test_same_sections_except_pinned(self):
        doc = sections.toggle(sections.move_up(sample_document(), 6), "5")
        classic = [i for i, k in zip(_ids(render(doc)), _kinds(render(doc))) if k is not SectionType.SKILLS]
        two_side = _ids(render(doc, ResumeFormat.TWO_SIDE))
        self.assertEqual(classic, two_side)


if __name__ == "__main__":
    unittest.main()
