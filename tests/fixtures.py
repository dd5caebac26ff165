"""Shared test fixtures and utilities.

Sample documents, fake service clients and small helpers used across the
resume builder test suite.
"""

from __future__ import annotations

import io
import tempfile
from contextlib import contextmanager, redirect_stderr, redirect_stdout
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from resume_builder import custom_sections
from resume_builder.model import (
    CustomType,
    Education,
    Experience,
    PersonalInfo,
    Project,
    ResumeDocument,
    ResumeFormat,
    new_document,
)



# -----------------------------------------------------------------------------
# Documents
# -----------------------------------------------------------------------------


def sample_document(template: ResumeFormat = ResumeFormat.CLASSIC) -> ResumeDocument:
    """A filled-in document with one custom section of each kind."""
    doc = new_document(template)
    doc = replace(
        doc,
        personal_info=PersonalInfo(
            name="Jane Doe",
            email="jane@example.com",
            phone="555-0100",
            linkedin="https://linkedin.com/in/janedoe",
        ),
        summary="Backend engineer who ships.",
        skills=("Python", "SQL", "Kubernetes"),
        education=(Education(id="edu1", institution="State University", degree="BSc Computer Science", year="2016"),),
        experience=(
            Experience(
                id="exp1",
                title="Senior Engineer",
                company="Acme",
                duration="2019 - Present",
                description="Led the billing rewrite\n\nCut p99 latency by 40%",
            ),
        ),
        projects=(Project(id="prj1", name="Scheduler", description="Cron as a service", technologies="Go, Redis"),),
        certifications=("CKA",),
    )
    doc, _ = custom_sections.create(doc, "Languages", CustomType.TAGS, section_id="c-tags")
    doc = custom_sections.add_tag(doc, "c-tags", "English")
    doc = custom_sections.add_tag(doc, "c-tags", "German")
    doc, _ = custom_sections.create(doc, "Volunteering", CustomType.PARAGRAPH, section_id="c-para")
    doc = custom_sections.set_text(doc, "c-para", "Mentor at a local code club.")
    doc, _ = custom_sections.create(doc, "Awards", CustomType.LIST, section_id="c-list")
    doc, item_id = custom_sections.add_item(doc, "c-list")
    doc = custom_sections.update_item(doc, "c-list", item_id, "Hackathon winner")
    return doc


def empty_document(template: ResumeFormat = ResumeFormat.CLASSIC) -> ResumeDocument:
    return new_document(template)


# -----------------------------------------------------------------------------
# Images
# -----------------------------------------------------------------------------


def image_bytes(size=(40, 30), mode: str = "RGB", fmt: str = "PNG", color: Any = (200, 30, 30)) -> bytes:
    from PIL import Image

    buf = io.BytesIO()
    Image.new(mode, size, color).save(buf, format=fmt)
    return buf.getvalue()


# -----------------------------------------------------------------------------
# Service fakes
# -----------------------------------------------------------------------------


@dataclass
class FakeServiceClient:
    """In-memory stand-in for ResumeServiceClient.

    Example usage:
        client = FakeServiceClient(resumes={"r1": {"resumeName": "Mine", "resumeData": {...}}})
    """

    resumes: Dict[str, Dict] = field(default_factory=dict)
    parsed_pdf: Optional[Dict] = None
    analysis: Optional[Dict] = None
    save_response: Optional[Dict] = None
    error: Optional[Exception] = None

    # Track calls
    saved_payloads: List[Dict] = field(default_factory=list)
    deleted_ids: List[str] = field(default_factory=list)
    analyze_calls: List[tuple] = field(default_factory=list)

    def _maybe_fail(self) -> None:
        if self.error is not None:
            raise self.error

    def save_resume(self, payload: dict) -> dict:
        self._maybe_fail()
        self.saved_payloads.append(payload)
        if self.save_response is not None:
            return self.save_response
        resume_id = payload.get("resumeId") or f"R{len(self.saved_payloads)}"
        self.resumes[resume_id] = {"resumeName": payload["resumeName"], "resumeData": payload}
        return {"success": True, "data": {"resumeId": resume_id}}

    def get_saved_resumes(self) -> List[dict]:
        self._maybe_fail()
        return [{"_id": rid, "resumeName": r.get("resumeName", "")} for rid, r in self.resumes.items()]

    def get_resume_by_id(self, resume_id: str) -> dict:
        self._maybe_fail()
        from resume_builder.errors import NotFoundError

        if resume_id not in self.resumes:
            raise NotFoundError(f"Resume not found: {resume_id}")
        return self.resumes[resume_id]

    def delete_resume(self, resume_id: str) -> dict:
        self._maybe_fail()
        self.deleted_ids.append(resume_id)
        self.resumes.pop(resume_id, None)
        return {"success": True}

    def upload_pdf(self, path: str) -> dict:
        self._maybe_fail()
        return self.parsed_pdf or {}

    def analyze(self, snapshot: dict, job_role: str, experience_level: str) -> dict:
        self._maybe_fail()
        self.analyze_calls.append((snapshot, job_role, experience_level))
        return self.analysis or {"score": 70}


# -----------------------------------------------------------------------------
# Output capture helpers
# -----------------------------------------------------------------------------


@contextmanager
def capture_stdout():
    """Context manager that captures stdout and yields a StringIO buffer."""
    buf = io.StringIO()
    with redirect_stdout(buf):
        yield buf


@contextmanager
def capture_output():
    """Capture stdout and stderr; yields ``(out, err)`` buffers."""
    out, err = io.StringIO(), io.StringIO()
    with redirect_stdout(out), redirect_stderr(err):
        yield out, err


class TempDirMixin:
    """Mixin providing a temporary directory that's cleaned up after each test.

    Usage:
        class MyTest(TempDirMixin, unittest.TestCase):
            def test_something(self):
                path = os.path.join(self.tmpdir, "file.txt")
                ...
    """

    tmpdir: str

    def setUp(self):
        super().setUp()
        self.tmpdir = tempfile.mkdtemp()

    def tearDown(self):
        import shutil
        shutil.rmtree(self.tmpdir, ignore_errors=True)
        super().tearDown()
