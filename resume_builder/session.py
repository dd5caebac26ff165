"""Editor session: the single owner of the document being edited.

Edits go through ``apply`` with one of the pure transition functions
(``sections.move_up``, ``custom_sections.add_tag``, ...). Boundary operations
(load, save, export, photo, PDF import, analysis) are coroutines that run the
blocking work with ``asyncio.to_thread``; each is guarded by its own
in-flight flag, and a failure becomes an error notice while the document
stays exactly as it was.
"""
from __future__ import annotations

import asyncio
import datetime as _dt
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterator, List, Optional

from . import content
from .analysis import AnalysisResult, analyze as run_analysis
from .config import Settings
from .errors import BusyError, NotFoundError, ResumeBuilderError, ServiceError, ValidationError
from .export import ExportFormat, export_document
from .model import ResumeDocument, new_document
from .persistence import PersistenceAdapter
from .photo import ImageTranscoder, PhotoUpload, remove_photo, upload_photo as transcode_photo
from .render_base import render
from .render_nodes import RenderedDocument

LOG = logging.getLogger(__name__)

Subscriber = Callable[["EditorSession"], None]

BUSY_FLAGS = ("loading", "saving", "exporting", "uploading_photo", "importing", "analyzing")


@dataclass(frozen=True)
class Notice:
    kind: str  # "success" | "error"
    message: str
    hint: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.kind == "error"


def default_save_name(person_name: str, today: Optional[_dt.date] = None) -> str:
    today = today or _dt.date.today()
    return f"{person_name or 'My'}'s Dynamic Resume - {today.month}/{today.day}/{today.year}"


class EditorSession:
    def __init__(
        self,
        document: Optional[ResumeDocument] = None,
        *,
        client=None,
        settings: Optional[Settings] = None,
        persistence: Optional[PersistenceAdapter] = None,
        transcoder: Optional[ImageTranscoder] = None,
    ):
        self.settings = settings or Settings()
        self.client = client
        if persistence is None and client is not None:
            persistence = PersistenceAdapter(client, self.settings.limits, self.settings.persistence)
        self.persistence = persistence
        self.transcoder = transcoder
        self.document: ResumeDocument = document or new_document()
        self.resume_name = ""
        self.editing_id: Optional[str] = None
        self.notice: Optional[Notice] = None
        self.last_error: Optional[ResumeBuilderError] = None
        self.analysis: Optional[AnalysisResult] = None
        for flag in BUSY_FLAGS:
            setattr(self, flag, False)
        self._subscribers: List[Subscriber] = []

    @property
    def is_edit_mode(self) -> bool:
        return bool(self.editing_id)

    # -------------------------------------------------------------------------
    # Observers and notices
    # -------------------------------------------------------------------------

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback``; returns a function that unregisters it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        for cb in list(self._subscribers):
            cb(self)

    def _succeed(self, message: str) -> None:
        self.notice = Notice("success", message)
        self.last_error = None

    def _fail(self, exc: ResumeBuilderError) -> None:
        LOG.debug("operation failed: %s", exc.message)
        self.last_error = exc
        self.notice = Notice("error", exc.message, exc.hint)

    def dismiss_notice(self) -> None:
        if self.notice is not None:
            self.notice = None
            self._notify()

    # -------------------------------------------------------------------------
    # Editing
    # -------------------------------------------------------------------------

    def apply(self, transition: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Run a pure transition against the current document.

        Transitions that return ``(document, value)`` hand ``value`` back to
        the caller. A ``ResumeBuilderError`` becomes an error notice and the
        document is left as it was (the return value is then None).
        """
        try:
            result = transition(self.document, *args, **kwargs)
        except ResumeBuilderError as exc:
            self._fail(exc)
            self._notify()
            return None
        extra = None
        if isinstance(result, tuple):
            result, extra = result
        changed = result is not self.document
        self.document = result
        if changed:
            self._notify()
        return extra

    def render(self) -> RenderedDocument:
        return render(self.document)

    def prepare_save_name(self) -> str:
        """Name offered when saving: the loaded name in edit mode, else a dated default."""
        if not self.is_edit_mode or not self.resume_name:
            self.resume_name = default_save_name(self.document.personal_info.name)
        return self.resume_name

    # -------------------------------------------------------------------------
    # Boundary operations
    # -------------------------------------------------------------------------

    @contextmanager
    def _busy(self, flag: str, what: str) -> Iterator[None]:
        if getattr(self, flag):
            raise BusyError(f"{what} is already in progress")
        setattr(self, flag, True)
        self._notify()
        try:
            yield
        finally:
            setattr(self, flag, False)
            self._notify()

    def _require_persistence(self) -> PersistenceAdapter:
        if self.persistence is None:
            raise ServiceError("No resume service configured", hint="Set service.base_url or RESUME_BUILDER_API_URL")
        return self.persistence

    async def load(self, resume_id: str) -> bool:
        with self._busy("loading", "Loading"):
            try:
                loaded = await asyncio.to_thread(self._require_persistence().load, resume_id)
            except ResumeBuilderError as exc:
                self._fail(exc)
                return False
            # A completed load replaces the document wholesale.
            self.document = loaded.document
            self.resume_name = loaded.resume_name
            self.editing_id = loaded.resume_id
            self._succeed("Resume loaded successfully!")
            return True

    async def save(self, resume_name: Optional[str] = None) -> Optional[str]:
        name = resume_name if resume_name is not None else (self.resume_name or self.prepare_save_name())
        with self._busy("saving", "Saving"):
            was_edit = self.is_edit_mode
            try:
                resume_id = await asyncio.to_thread(
                    self._require_persistence().save, self.document, name, self.editing_id
                )
            except ResumeBuilderError as exc:
                self._fail(exc)
                return None
            self.resume_name = name.strip()
            self.editing_id = resume_id or self.editing_id
            self._succeed("Resume updated successfully!" if was_edit else "Resume saved successfully!")
            return resume_id

    async def export(self, out: Optional[str] = None, fmt: ExportFormat = ExportFormat.PDF) -> Optional[Path]:
        with self._busy("exporting", "Export"):
            rendered = self.render()
            try:
                path = await asyncio.to_thread(export_document, rendered, out, fmt, self.settings.export)
            except ResumeBuilderError as exc:
                self._fail(exc)
                return None
            self._succeed(f"Exported {path}")
            return path

    async def upload_photo(self, upload: PhotoUpload) -> bool:
        with self._busy("uploading_photo", "Photo upload"):
            before = self.document
            try:
                updated = await asyncio.to_thread(
                    transcode_photo, before, upload, self.transcoder, self.settings.limits
                )
            except ResumeBuilderError as exc:
                self._fail(exc)
                return False
            self.document = updated
            self._succeed("Photo updated")
            return True

    def remove_photo(self) -> None:
        self.apply(remove_photo)

    async def import_pdf(self, path: str) -> bool:
        with self._busy("importing", "PDF import"):
            if self.client is None:
                self._fail(ServiceError("No resume service configured"))
                return False
            try:
                parsed = await asyncio.to_thread(self.client.upload_pdf, path)
            except ResumeBuilderError as exc:
                if not isinstance(exc, NotFoundError):
                    exc = ServiceError(
                        "Failed to process PDF. Please try again or fill the form manually.",
                        hint=exc.message,
                    )
                self._fail(exc)
                return False
            if not isinstance(parsed, dict):
                self._fail(ServiceError("Failed to process PDF. Please try again or fill the form manually."))
                return False
            try:
                self.document = content.merge_parsed_profile(self.document, parsed)
            except ValidationError as exc:
                self._fail(ServiceError(
                    "Failed to process PDF. Please try again or fill the form manually.",
                    hint=exc.message,
                ))
                return False
            self._succeed("Resume data extracted successfully! Please review and correct any errors.")
            return True

    async def analyze(self, job_role: str, experience_level: str) -> Optional[AnalysisResult]:
        with self._busy("analyzing", "Analysis"):
            if self.client is None:
                self._fail(ServiceError("No resume service configured"))
                return None
            try:
                result = await asyncio.to_thread(
                    run_analysis, self.client, self.document, job_role, experience_level
                )
            except ResumeBuilderError as exc:
                self._fail(exc)
                return None
            self.analysis = result
            self._succeed(f"Analysis complete: {result.score}/100")
            return result
