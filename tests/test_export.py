"""Tests for resume_builder/export.py, export_pdf.py and export_docx.py."""

from __future__ import annotations

import base64
import os
import re
import unittest
from dataclasses import replace
from pathlib import Path
from unittest.mock import patch

from docx import Document  # type: ignore
from reportlab.platypus import KeepInFrame

from resume_builder import sections
from resume_builder.config import ExportSettings
from resume_builder.errors import ExportError
from resume_builder.export import ExportFormat, atomic_output, export_document, export_filename
from resume_builder.export_docx import create_docx_writer, ClassicDocxWriter, TwoSideDocxWriter
from resume_builder.export_pdf import ClassicPdfWriter, TwoSidePdfWriter, create_pdf_writer
from resume_builder.model import ResumeFormat, new_document
from resume_builder.photo import DATA_URL_PREFIX, PillowTranscoder
from resume_builder.render_base import render

from tests.fixtures import TempDirMixin, image_bytes, sample_document


def _docx_text(path) -> str:
    doc = Document(str(path))
    parts = [p.text for p in doc.paragraphs]
    for table in doc.tables:
        for cell in table._cells:
            parts.extend(p.text for p in cell.paragraphs)
    return "\n".join(parts)


def _page_count(path) -> int:
    return len(re.findall(rb"/Type\s*/Page(?!s)", Path(path).read_bytes()))


def _with_photo(doc):
    jpeg = PillowTranscoder().transcode(image_bytes((120, 160)), 400, 0.6)
    info = replace(doc.personal_info, photo=DATA_URL_PREFIX + base64.b64encode(jpeg).decode())
    return replace(doc, personal_info=info)


class TestExportFilename(unittest.TestCase):
    def test_filenames(self):
        self.assertEqual(export_filename("Jane Doe", ResumeFormat.CLASSIC), "Jane_Doe_Dynamic.pdf")
        self.assertEqual(export_filename("  Jane   Q  Doe ", ResumeFormat.TWO_SIDE), "Jane_Q_Doe_TwoSide.pdf")
        self.assertEqual(export_filename("", ResumeFormat.CLASSIC), "Resume_Dynamic.pdf")
        self.assertEqual(export_filename("A", ResumeFormat.CLASSIC, ExportFormat.DOCX), "A_Dynamic.docx")


class TestAtomicOutput(TempDirMixin, unittest.TestCase):
    def test_success_moves_into_place(self):
        target = Path(self.tmpdir) / "out.bin"
        with atomic_output(target) as tmp:
            tmp.write_bytes(b"data")
        self.assertEqual(target.read_bytes(), b"data")
        self.assertEqual(os.listdir(self.tmpdir), ["out.bin"])

    def test_failure_leaves_nothing(self):
        target = Path(self.tmpdir) / "out.bin"
        with self.assertRaises(RuntimeError):
            with atomic_output(target) as tmp:
                tmp.write_bytes(b"partial")
                raise RuntimeError("boom")
        self.assertEqual(os.listdir(self.tmpdir), [])

    def test_failure_keeps_previous_file(self):
        target = Path(self.tmpdir) / "out.bin"
        target.write_bytes(b"old")
        with self.assertRaises(RuntimeError):
            with atomic_output(target) as tmp:
                tmp.write_bytes(b"new")
                raise RuntimeError("boom")
        self.assertEqual(target.read_bytes(), b"old")


class TestExportDocument(TempDirMixin, unittest.TestCase):
    def test_pdf_classic(self):
        path = export_document(render(sample_document()), self.tmpdir)
        self.assertEqual(path.name, "Jane_Doe_Dynamic.pdf")
        self.assertTrue(path.read_bytes().startswith(b"%PDF"))

    def test_pdf_two_side_with_photo(self):
        doc = _with_photo(sample_document(ResumeFormat.TWO_SIDE))
        path = export_document(render(doc), os.path.join(self.tmpdir, "cv.pdf"))
        self.assertEqual(path.name, "cv.pdf")
        self.assertTrue(path.read_bytes().startswith(b"%PDF"))

    def test_pdf_long_two_side_spills_onto_more_pages(self):
        doc = sample_document(ResumeFormat.TWO_SIDE)
        exp = doc.experience[0]
        many = tuple(replace(exp, id=f"e{i}", description="\n".join(["Did a thing"] * 6)) for i in range(25))
        path = export_document(render(replace(doc, experience=many)), self.tmpdir)
        self.assertTrue(path.read_bytes().startswith(b"%PDF"))

    def test_pdf_long_sidebar_stays_in_accent_column(self):
        skills = tuple(f"Skill{i:03d}" for i in range(90))
        doc = replace(sample_document(ResumeFormat.TWO_SIDE), skills=skills)
        rendered = render(doc)
        story = TwoSidePdfWriter(rendered)._story()
        self.assertIsInstance(story[0], KeepInFrame)
        path = export_document(rendered, self.tmpdir)
        # The body fits on page one once the sidebar stops spilling into it.
        self.assertEqual(_page_count(path), 1)

    def test_pdf_empty_document(self):
        for fmt in ResumeFormat:
            path = export_document(render(new_document(fmt)), os.path.join(self.tmpdir, f"{fmt.value}.pdf"))
            self.assertTrue(path.read_bytes().startswith(b"%PDF"))

    def test_docx_classic_follows_order(self):
        doc = sections.move_up(sample_document(), 3)
        path = export_document(render(doc), self.tmpdir, ExportFormat.DOCX)
        text = _docx_text(path)
        self.assertIn("Jane Doe", text)
        self.assertLess(text.index("Professional Experience"), text.index("Education"))
        self.assertIn("Technical Skills: Python, SQL, Kubernetes", text)
        self.assertIn("Languages", text)

    def test_docx_two_side(self):
        doc = _with_photo(sample_document(ResumeFormat.TWO_SIDE))
        path = export_document(render(doc), self.tmpdir, ExportFormat.DOCX)
        self.assertEqual(path.name, "Jane_Doe_TwoSide.docx")
        word = Document(str(path))
        self.assertEqual(len(word.tables), 1)
        sidebar, body = word.tables[0].rows[0].cells
        sidebar_text = "\n".join(p.text for p in sidebar.paragraphs)
        body_text = "\n".join(p.text for p in body.paragraphs)
        self.assertIn("CONTACT", sidebar_text)
        self.assertIn("Python", sidebar_text)
        self.assertNotIn("SKILLS", body_text)
        self.assertIn("EXPERIENCE", body_text)
        self.assertEqual(len(word.inline_shapes), 1)

    def test_docx_metadata(self):
        path = export_document(render(sample_document()), self.tmpdir, ExportFormat.DOCX)
        self.assertEqual(Document(str(path)).core_properties.title, "Jane Doe - Resume")

    def test_writer_failure_becomes_export_error(self):
        with patch("resume_builder.export_pdf.write_pdf", side_effect=RuntimeError("disk full")):
            with self.assertRaises(ExportError) as ctx:
                export_document(render(sample_document()), self.tmpdir)
        self.assertEqual(ctx.exception.hint, "disk full")
        self.assertEqual(os.listdir(self.tmpdir), [])

    def test_unsupported_page_format(self):
        with self.assertRaises(ExportError):
            export_document(render(sample_document()), self.tmpdir, settings=ExportSettings(page_format="A3"))
        with self.assertRaises(ExportError):
            export_document(render(sample_document()), self.tmpdir, ExportFormat.DOCX,
                            ExportSettings(page_format="A3"))

    def test_letter_page_format(self):
        path = export_document(render(sample_document()), self.tmpdir, settings=ExportSettings(page_format="letter"))
        self.assertTrue(path.read_bytes().startswith(b"%PDF"))


class TestWriterFactories(unittest.TestCase):
    def test_factories(self):
        classic = render(sample_document())
        two_side = render(sample_document(ResumeFormat.TWO_SIDE))
        self.assertIsInstance(create_pdf_writer(classic), ClassicPdfWriter)
        self.assertIsInstance(create_pdf_writer(two_side), TwoSidePdfWriter)
        self.assertIsInstance(create_docx_writer(classic), ClassicDocxWriter)
        self.assertIsInstance(create_docx_writer(two_side), TwoSideDocxWriter)

    def test_two_side_needs_sidebar(self):
        rendered = replace(render(sample_document(ResumeFormat.TWO_SIDE)), sidebar=None)
        with self.assertRaises(ExportError):
            TwoSidePdfWriter(rendered)
        with self.assertRaises(ExportError):
            TwoSideDocxWriter(rendered)


if __name__ == "__main__":
    unittest.main()
