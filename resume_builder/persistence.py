"""Persistence adapter.

Round-trips a ``ResumeDocument`` through the single JSON record stored by the
resume service. ``to_record`` emits the exact wire shape; ``from_record``
rebuilds the document, letting a stored ``sectionOrder`` replace the default
order wholesale.
"""
from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .config import LimitSettings, PersistenceSettings
from .errors import NotFoundError, ResourceLimitError, ServiceError, ValidationError
from .model import (
    DEFAULT_ACCENT_COLOR,
    CustomSection,
    CustomType,
    Education,
    Experience,
    ListItem,
    PersonalInfo,
    Project,
    ResumeDocument,
    ResumeFormat,
    Section,
    SectionType,
    new_id,
)
from .sections import default_sections

LOG = logging.getLogger(__name__)

MB = 1024 * 1024


@dataclass(frozen=True)
class LoadedResume:
    document: ResumeDocument
    resume_name: str
    resume_id: str


# -------------------------------------------------------------------------
# Serialisation
# -------------------------------------------------------------------------

def _section_to_dict(sec: Section) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "id": sec.id,
        "name": sec.name,
        "type": sec.type.value,
        "enabled": sec.enabled,
    }
    if sec.custom_type is not None:
        out["customType"] = sec.custom_type.value
    return out


def _custom_to_dict(cs: CustomSection) -> Dict[str, Any]:
    if cs.type is CustomType.LIST:
        content: Any = [asdict(it) for it in cs.items]
    elif cs.type is CustomType.TAGS:
        content = list(cs.tags)
    else:
        content = cs.text
    return {"id": cs.id, "heading": cs.heading, "type": cs.type.value, "content": content}


def _keep(entries: Iterable[Any], drop_blank: bool, *names: str) -> List[Dict[str, Any]]:
    return [asdict(e) for e in entries if not drop_blank or any(getattr(e, n) for n in names)]


def to_record(
    doc: ResumeDocument,
    resume_name: str,
    editing_id: Optional[str] = None,
    *,
    drop_blank_entries: bool = False,
) -> Dict[str, Any]:
    """Serialise ``doc`` into the persisted record shape."""
    record: Dict[str, Any] = {"resumeName": resume_name.strip()}
    if editing_id:
        record["resumeId"] = editing_id
    record.update({
        "personalInfo": asdict(doc.personal_info),
        "summary": doc.summary,
        "education": _keep(doc.education, drop_blank_entries, "institution", "degree"),
        "experience": _keep(doc.experience, drop_blank_entries, "title", "company"),
        "projects": _keep(doc.projects, drop_blank_entries, "name", "description"),
        "skills": list(doc.skills),
        "certifications": list(doc.certifications),
        "customSections": [_custom_to_dict(cs) for cs in doc.custom_sections],
        "template": doc.template.template_name,
        "sectionOrder": [_section_to_dict(s) for s in doc.sections],
        "isDynamic": True,
        "resumeFormat": doc.template.value,
    })
    return record


def payload_size(record: Mapping[str, Any]) -> int:
    """UTF-8 byte size of the compact JSON encoding of ``record``."""
    return len(json.dumps(record, ensure_ascii=False, separators=(",", ":")).encode("utf-8"))


# -------------------------------------------------------------------------
# Deserialisation
# -------------------------------------------------------------------------

def _str(value: Any) -> str:
    return "" if value is None else str(value)


def _mapping(record: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = record.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValidationError(f"Malformed resume record: {key} must be an object")
    return value


def _sequence(record: Mapping[str, Any], key: str) -> List[Any]:
    value = record.get(key)
    if value is None:
        return []
    if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple)):
        raise ValidationError(f"Malformed resume record: {key} must be a list")
    return list(value)


def _entries(cls, raw: List[Any]) -> Tuple[Any, ...]:
    names = [f for f in cls.__dataclass_fields__ if f != "id"]
    out = []
    for item in raw:
        if not isinstance(item, Mapping):
            continue
        out.append(cls(id=_str(item.get("id")) or new_id(), **{n: _str(item.get(n)) for n in names}))
    return tuple(out)


def _custom_from_dict(raw: Mapping[str, Any]) -> Optional[CustomSection]:
    try:
        ctype = CustomType(raw.get("type"))
    except ValueError:
        LOG.warning("skipping custom section with unknown type %r", raw.get("type"))
        return None
    if ctype is CustomType.PARAGRAPH:
        content = raw.get("content")
        value: Any = content if isinstance(content, str) else ""
    elif ctype is CustomType.TAGS:
        value = tuple(_str(t) for t in _sequence(raw, "content") if not isinstance(t, Mapping))
    else:
        value = tuple(
            ListItem(id=_str(it.get("id")) or new_id(), text=_str(it.get("text")))
            for it in _sequence(raw, "content")
            if isinstance(it, Mapping)
        )
    return CustomSection(id=_str(raw.get("id")), heading=_str(raw.get("heading")), type=ctype, content=value)


def _section_from_dict(raw: Mapping[str, Any]) -> Optional[Section]:
    try:
        stype = SectionType(raw.get("type"))
    except ValueError:
        LOG.warning("skipping section with unknown type %r", raw.get("type"))
        return None
    custom_type = None
    if raw.get("customType"):
        try:
            custom_type = CustomType(raw["customType"])
        except ValueError:
            custom_type = None
    enabled = raw.get("enabled", True)
    if not isinstance(enabled, bool):
        LOG.warning("section %r has non-boolean enabled %r; treating as enabled", raw.get("id"), enabled)
        enabled = True
    return Section(
        id=_str(raw.get("id")),
        name=_str(raw.get("name")),
        type=stype,
        enabled=enabled,
        custom_type=custom_type,
    )


def _reconcile(sections: Tuple[Section, ...], customs: Tuple[CustomSection, ...]) -> Tuple[Section, ...]:
    """Keep exactly one order entry per custom section."""
    custom_ids = {cs.id for cs in customs}
    kept = []
    seen = set()
    for sec in sections:
        if sec.id in seen:
            LOG.warning("dropping duplicate section id %r", sec.id)
            continue
        if sec.type is SectionType.CUSTOM and sec.id not in custom_ids:
            LOG.warning("dropping order entry %r with no custom section", sec.id)
            continue
        seen.add(sec.id)
        kept.append(sec)
    for cs in customs:
        if cs.id not in seen:
            LOG.warning("custom section %r had no order entry; appending", cs.id)
            kept.append(Section(id=cs.id, name=cs.heading, type=SectionType.CUSTOM, custom_type=cs.type))
            seen.add(cs.id)
    return tuple(kept)


def _format_of(record: Mapping[str, Any]) -> ResumeFormat:
    fmt = record.get("resumeFormat")
    if fmt in (f.value for f in ResumeFormat):
        return ResumeFormat(fmt)
    template = record.get("template") or record.get("templateName")
    for f in ResumeFormat:
        if template == f.template_name:
            return f
    return ResumeFormat.CLASSIC


def from_record(record: Mapping[str, Any]) -> ResumeDocument:
    """Rebuild a document from a persisted record (or a local draft).

    Raises ``ValidationError`` when a field has the wrong shape, e.g. a string
    where a list of skills is expected.
    """
    info = _mapping(record, "personalInfo")
    personal = PersonalInfo(**{k: _str(info.get(k)) for k in PersonalInfo.__dataclass_fields__})

    customs = tuple(
        cs for cs in (_custom_from_dict(c) for c in _sequence(record, "customSections") if isinstance(c, Mapping))
        if cs is not None
    )
    order = _sequence(record, "sectionOrder")
    if order:
        sections = tuple(
            s for s in (_section_from_dict(r) for r in order if isinstance(r, Mapping))
            if s is not None
        )
    else:
        sections = default_sections()

    return ResumeDocument(
        personal_info=personal,
        summary=_str(record.get("summary")),
        skills=tuple(_str(s) for s in _sequence(record, "skills")),
        education=_entries(Education, _sequence(record, "education")),
        experience=_entries(Experience, _sequence(record, "experience")),
        projects=_entries(Project, _sequence(record, "projects")),
        certifications=tuple(_str(c) for c in _sequence(record, "certifications")),
        custom_sections=customs,
        sections=_reconcile(sections, customs),
        template=_format_of(record),
        accent_color=_str(record.get("accentColor")) or DEFAULT_ACCENT_COLOR,
    )


# -------------------------------------------------------------------------
# Adapter
# -------------------------------------------------------------------------

class PersistenceAdapter:
    """Loads and saves documents through the resume service client."""

    def __init__(
        self,
        client,
        limits: Optional[LimitSettings] = None,
        options: Optional[PersistenceSettings] = None,
    ):
        self.client = client
        self.limits = limits or LimitSettings()
        self.options = options or PersistenceSettings()

    def load(self, resume_id: str) -> LoadedResume:
        response = self.client.get_resume_by_id(resume_id)
        if not isinstance(response, Mapping) or not isinstance(response.get("resumeData"), Mapping):
            raise ServiceError("Failed to fetch resume: response carried no resume data")
        data = dict(response["resumeData"])
        # The outer record may carry the template when resumeData does not.
        data.setdefault("templateName", response.get("templateName"))
        try:
            doc = from_record(data)
        except (ValidationError, TypeError, ValueError) as exc:
            raise ServiceError("Failed to fetch resume: malformed record", hint=str(exc)) from exc
        name = _str(response.get("resumeName") or data.get("resumeName"))
        LOG.info("loaded resume %s (%s)", resume_id, doc.template.value)
        return LoadedResume(document=doc, resume_name=name, resume_id=resume_id)

    def build_payload(self, doc: ResumeDocument, resume_name: str, editing_id: Optional[str] = None) -> Dict[str, Any]:
        if not resume_name or not resume_name.strip():
            raise ValidationError("Please enter a resume name")
        payload = to_record(
            doc,
            resume_name,
            editing_id,
            drop_blank_entries=self.options.drop_blank_entries,
        )
        size = payload_size(payload)
        LOG.debug("payload size: %.2f MB", size / MB)
        if size > self.limits.max_payload_mb * MB:
            raise ResourceLimitError(
                "Resume data is too large. Please use a smaller photo or reduce content.",
                hint=f"Limit is {self.limits.max_payload_mb:g} MB; payload is {size / MB:.2f} MB",
            )
        return payload

    def save(self, doc: ResumeDocument, resume_name: str, editing_id: Optional[str] = None) -> str:
        """Save ``doc`` and return the resume id assigned by the service."""
        payload = self.build_payload(doc, resume_name, editing_id)
        response = self.client.save_resume(payload)
        if not isinstance(response, Mapping) or not response.get("success"):
            message = response.get("message") if isinstance(response, Mapping) else None
            raise ServiceError(f"Failed to save resume: {message or 'service reported failure'}")
        data = response.get("data") or {}
        resume_id = _str(data.get("resumeId")) or (editing_id or "")
        LOG.info("saved resume %s", resume_id or "<unknown id>")
        return resume_id

    def list_saved(self) -> List[dict]:
        return self.client.get_saved_resumes()

    def delete(self, resume_id: str) -> None:
        self.client.delete_resume(resume_id)


# -------------------------------------------------------------------------
# Local drafts
# -------------------------------------------------------------------------

def draft_record(doc: ResumeDocument, resume_name: str = "", editing_id: Optional[str] = None) -> Dict[str, Any]:
    """The persisted record plus the accent colour, which the service does not store."""
    record = to_record(doc, resume_name, editing_id)
    record["accentColor"] = doc.accent_color
    return record


def save_draft(path: str, doc: ResumeDocument, resume_name: str = "", editing_id: Optional[str] = None) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    tmp = p.with_name(p.name + ".tmp")
    tmp.write_text(json.dumps(draft_record(doc, resume_name, editing_id), indent=2, ensure_ascii=False),
                   encoding="utf-8")
    tmp.replace(p)


def load_draft(path: str) -> LoadedResume:
    p = Path(path)
    if not p.exists():
        raise NotFoundError(f"Draft not found: {path}", hint="Create one with: resume-builder new")
    try:
        record = json.loads(p.read_text(encoding="utf-8"))
    except ValueError as exc:
        raise ValidationError(f"Draft {path} is not valid JSON: {exc}") from exc
    if not isinstance(record, Mapping):
        raise ValidationError(f"Draft {path} must contain a JSON object")
    return LoadedResume(
        document=from_record(record),
        resume_name=_str(record.get("resumeName")),
        resume_id=_str(record.get("resumeId")),
    )
