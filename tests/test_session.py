"""Tests for resume_builder/session.py."""

from __future__ import annotations

import asyncio
import datetime as dt
import os
import threading
import unittest

from resume_builder import content, custom_sections, sections
from resume_builder.errors import BusyError, ResourceLimitError, ServiceError
from resume_builder.export import ExportFormat
from resume_builder.model import CustomType, ResumeFormat
from resume_builder.photo import ImageTranscoder, PhotoUpload
from resume_builder.session import EditorSession, default_save_name

from tests.fixtures import FakeServiceClient, TempDirMixin, sample_document


class _BlockingClient(FakeServiceClient):
    """Holds ``save_resume`` until ``release`` is set."""

    def __init__(self):
        super().__init__()
        self.started = threading.Event()
        self.release = threading.Event()

    def save_resume(self, payload):
        self.started.set()
        self.release.wait(5)
        return super().save_resume(payload)


class _StaticTranscoder(ImageTranscoder):
    def __init__(self, payload: bytes):
        self.payload = payload

    def transcode(self, data, max_dimension, quality):
        return self.payload


class TestDefaultSaveName(unittest.TestCase):
    def test_default_save_name(self):
        self.assertEqual(default_save_name("Jane", dt.date(2024, 3, 7)), "Jane's Dynamic Resume - 3/7/2024")
        self.assertEqual(default_save_name("", dt.date(2024, 12, 25)), "My's Dynamic Resume - 12/25/2024")


class TestApply(unittest.TestCase):
    def test_apply_updates_and_notifies(self):
        session = EditorSession(sample_document())
        seen = []
        session.subscribe(lambda s: seen.append(s.document))
        session.apply(sections.move_up, 1)
        self.assertEqual(len(seen), 1)
        self.assertEqual(session.document.sections[0].id, "2")

    def test_apply_returns_extra_value(self):
        session = EditorSession()
        sid = session.apply(custom_sections.create, "Langs", CustomType.TAGS)
        self.assertIsNotNone(session.document.custom_section(sid))

    def test_noop_does_not_notify(self):
        session = EditorSession()
        seen = []
        session.subscribe(lambda s: seen.append(1))
        session.apply(sections.move_up, 0)
        self.assertEqual(seen, [])

    def test_failed_transition_leaves_document(self):
        session = EditorSession(sample_document())
        before = session.document
        result = session.apply(custom_sections.create, "  ", CustomType.PARAGRAPH)
        self.assertIsNone(result)
        self.assertIs(session.document, before)
        self.assertTrue(session.notice.is_error)
        self.assertEqual(session.notice.message, "Section heading is required")

    def test_unsubscribe(self):
        session = EditorSession()
        seen = []
        unsubscribe = session.subscribe(lambda s: seen.append(1))
        unsubscribe()
        session.apply(content.add_skill, "Go")
        self.assertEqual(seen, [])

    def test_dismiss_notice(self):
        session = EditorSession()
        session.apply(content.add_skill, "")
        session.dismiss_notice()
        self.assertIsNone(session.notice)

    def test_prepare_save_name(self):
        session = EditorSession(sample_document())
        self.assertTrue(session.prepare_save_name().startswith("Jane Doe's Dynamic Resume - "))
        session.editing_id = "r1"
        session.resume_name = "Kept"
        self.assertEqual(session.prepare_save_name(), "Kept")


class TestSaveAndLoad(unittest.IsolatedAsyncioTestCase):
    async def test_save_then_update(self):
        client = FakeServiceClient()
        session = EditorSession(sample_document(), client=client)
        self.assertEqual(await session.save("Mine"), "R1")
        self.assertEqual(session.notice.message, "Resume saved successfully!")
        self.assertTrue(session.is_edit_mode)
        await session.save()
        self.assertEqual(session.notice.message, "Resume updated successfully!")
        self.assertEqual(client.saved_payloads[1]["resumeId"], "R1")
        self.assertFalse(session.saving)

    async def test_save_failure_keeps_document(self):
        client = FakeServiceClient(error=ServiceError("down"))
        session = EditorSession(sample_document(), client=client)
        before = session.document
        self.assertIsNone(await session.save("Mine"))
        self.assertIs(session.document, before)
        self.assertEqual(session.notice.message, "down")
        self.assertIsInstance(session.last_error, ServiceError)
        self.assertFalse(session.is_edit_mode)

    async def test_blank_name(self):
        session = EditorSession(sample_document(), client=FakeServiceClient())
        self.assertIsNone(await session.save(" "))
        self.assertEqual(session.notice.message, "Please enter a resume name")

    async def test_concurrent_save_is_rejected(self):
        client = _BlockingClient()
        session = EditorSession(sample_document(), client=client)
        first = asyncio.ensure_future(session.save("Mine"))
        await asyncio.get_running_loop().run_in_executor(None, client.started.wait, 5)
        self.assertTrue(session.saving)
        with self.assertRaises(BusyError):
            await session.save("Again")
        client.release.set()
        self.assertEqual(await first, "R1")
        self.assertEqual(len(client.saved_payloads), 1)
        self.assertFalse(session.saving)

    async def test_load_replaces_document(self):
        client = FakeServiceClient()
        stored = sample_document(ResumeFormat.TWO_SIDE)
        await EditorSession(stored, client=client).save("Stored")
        session = EditorSession(client=client)
        self.assertTrue(await session.load("R1"))
        self.assertEqual(session.document, stored)
        self.assertEqual(session.resume_name, "Stored")
        self.assertEqual(session.editing_id, "R1")
        self.assertEqual(session.notice.message, "Resume loaded successfully!")

    async def test_load_missing(self):
        session = EditorSession(sample_document(), client=FakeServiceClient())
        before = session.document
        self.assertFalse(await session.load("nope"))
        self.assertIs(session.document, before)
        self.assertTrue(session.notice.is_error)

    async def test_load_malformed_record_becomes_notice(self):
        client = FakeServiceClient(resumes={"r1": {"resumeName": "x", "resumeData": {"personalInfo": "oops"}}})
        session = EditorSession(sample_document(), client=client)
        before = session.document
        self.assertFalse(await session.load("r1"))
        self.assertIs(session.document, before)
        self.assertTrue(session.notice.is_error)
        self.assertIsInstance(session.last_error, ServiceError)
        self.assertFalse(session.loading)

    async def test_no_service_configured(self):
        session = EditorSession(sample_document())
        self.assertIsNone(await session.save("Mine"))
        self.assertIsInstance(session.last_error, ServiceError)


class TestPhotoImportAnalyze(unittest.IsolatedAsyncioTestCase):
    async def test_upload_photo(self):
        session = EditorSession(sample_document(), transcoder=_StaticTranscoder(b"jpeg"))
        self.assertTrue(await session.upload_photo(PhotoUpload("a.png", b"x")))
        self.assertTrue(session.document.personal_info.photo.startswith("data:image/jpeg;base64,"))
        session.remove_photo()
        self.assertEqual(session.document.personal_info.photo, "")

    async def test_upload_photo_too_large(self):
        session = EditorSession(sample_document(), transcoder=_StaticTranscoder(b"x" * 600 * 1024))
        before = session.document
        self.assertFalse(await session.upload_photo(PhotoUpload("a.png", b"x")))
        self.assertIs(session.document, before)
        self.assertIsInstance(session.last_error, ResourceLimitError)

    async def test_import_pdf_merges(self):
        client = FakeServiceClient(parsed_pdf={"summary": "Parsed", "skills": ["Rust"]})
        session = EditorSession(sample_document(), client=client)
        self.assertTrue(await session.import_pdf("cv.pdf"))
        self.assertEqual(session.document.summary, "Parsed")
        self.assertEqual(session.document.skills, ("Rust",))
        self.assertEqual(session.document.experience, sample_document().experience)

    async def test_import_pdf_failure(self):
        client = FakeServiceClient(error=ServiceError("boom"))
        session = EditorSession(sample_document(), client=client)
        self.assertFalse(await session.import_pdf("cv.pdf"))
        self.assertEqual(session.notice.message,
                         "Failed to process PDF. Please try again or fill the form manually.")

    async def test_import_pdf_malformed_fields(self):
        client = FakeServiceClient(parsed_pdf={"summary": "Parsed", "skills": "Go"})
        session = EditorSession(sample_document(), client=client)
        before = session.document
        self.assertFalse(await session.import_pdf("cv.pdf"))
        self.assertIs(session.document, before)
        self.assertEqual(session.notice.message,
                         "Failed to process PDF. Please try again or fill the form manually.")

    async def test_analyze(self):
        client = FakeServiceClient(analysis={"score": 81})
        session = EditorSession(sample_document(), client=client)
        result = await session.analyze("Dev", "mid")
        self.assertEqual(result.score, 81)
        self.assertIs(session.analysis, result)
        self.assertEqual(session.notice.message, "Analysis complete: 81/100")


class TestExport(TempDirMixin, unittest.IsolatedAsyncioTestCase):
    async def test_export_to_directory(self):
        session = EditorSession(sample_document())
        path = await session.export(self.tmpdir, ExportFormat.DOCX)
        self.assertEqual(path.name, "Jane_Doe_Dynamic.docx")
        self.assertTrue(os.path.isfile(path))
        self.assertFalse(session.exporting)


if __name__ == "__main__":
    unittest.main()
