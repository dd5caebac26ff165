"""Content store operations.

Pure transitions over the semantic résumé fields: personal info, summary,
skills, certifications and the education / experience / project entries.
"""
from __future__ import annotations

import logging
from dataclasses import fields, replace
from typing import Any, Dict, Iterable, List, Mapping, Tuple, Type, TypeVar

from .colors import normalize_hex
from .errors import ValidationError
from .model import (
    Education,
    Experience,
    PersonalInfo,
    Project,
    ResumeDocument,
    ResumeFormat,
    new_id,
)

LOG = logging.getLogger(__name__)

E = TypeVar("E", Education, Experience, Project)

_PERSONAL_FIELDS = {f.name for f in fields(PersonalInfo)}


def set_personal_info(doc: ResumeDocument, **values: str) -> ResumeDocument:
    unknown = set(values) - _PERSONAL_FIELDS
    if unknown:
        raise ValidationError(f"Unknown personal info field(s): {', '.join(sorted(unknown))}")
    return replace(doc, personal_info=replace(doc.personal_info, **values))


def set_summary(doc: ResumeDocument, summary: str) -> ResumeDocument:
    return replace(doc, summary=summary)


def set_template(doc: ResumeDocument, template: str) -> ResumeDocument:
    try:
        fmt = ResumeFormat(template)
    except ValueError:
        raise ValidationError(f"Unknown template: {template}", hint="Use classic or two-side") from None
    return replace(doc, template=fmt)


def set_accent_color(doc: ResumeDocument, color: str) -> ResumeDocument:
    return replace(doc, accent_color=normalize_hex(color))


# -------------------------------------------------------------------------
# Skills and certifications (plain string sequences)
# -------------------------------------------------------------------------

def _append_text(values: Tuple[str, ...], text: str, what: str) -> Tuple[str, ...]:
    if not text or not text.strip():
        raise ValidationError(f"{what} cannot be blank")
    return values + (text.strip(),)


def _drop_index(values: Tuple[Any, ...], index: int) -> Tuple[Any, ...]:
    return tuple(v for i, v in enumerate(values) if i != index)


def add_skill(doc: ResumeDocument, skill: str) -> ResumeDocument:
    return replace(doc, skills=_append_text(doc.skills, skill, "Skill"))


def remove_skill(doc: ResumeDocument, index: int) -> ResumeDocument:
    return replace(doc, skills=_drop_index(doc.skills, index))


def add_certification(doc: ResumeDocument, cert: str) -> ResumeDocument:
    return replace(doc, certifications=_append_text(doc.certifications, cert, "Certification"))


def remove_certification(doc: ResumeDocument, index: int) -> ResumeDocument:
    return replace(doc, certifications=_drop_index(doc.certifications, index))


# -------------------------------------------------------------------------
# Entry collections (education / experience / projects)
# -------------------------------------------------------------------------

_COLLECTIONS: Dict[Type[Any], str] = {
    Education: "education",
    Experience: "experience",
    Project: "projects",
}


def _add_entry(doc: ResumeDocument, cls: Type[E]) -> Tuple[ResumeDocument, str]:
    attr = _COLLECTIONS[cls]
    entry = cls()
    return replace(doc, **{attr: getattr(doc, attr) + (entry,)}), entry.id


def _update_entry(doc: ResumeDocument, cls: Type[E], entry_id: str, field_name: str, value: str) -> ResumeDocument:
    editable = {f.name for f in fields(cls)} - {"id"}
    if field_name not in editable:
        raise ValidationError(f"Unknown {cls.__name__.lower()} field: {field_name}")
    attr = _COLLECTIONS[cls]
    entries = tuple(
        replace(e, **{field_name: value}) if e.id == entry_id else e
        for e in getattr(doc, attr)
    )
    return replace(doc, **{attr: entries})


def _remove_entry(doc: ResumeDocument, cls: Type[E], entry_id: str) -> ResumeDocument:
    attr = _COLLECTIONS[cls]
    return replace(doc, **{attr: tuple(e for e in getattr(doc, attr) if e.id != entry_id)})


def add_education(doc: ResumeDocument) -> Tuple[ResumeDocument, str]:
    return _add_entry(doc, Education)


def update_education(doc: ResumeDocument, entry_id: str, field_name: str, value: str) -> ResumeDocument:
    return _update_entry(doc, Education, entry_id, field_name, value)


def remove_education(doc: ResumeDocument, entry_id: str) -> ResumeDocument:
    return _remove_entry(doc, Education, entry_id)


def add_experience(doc: ResumeDocument) -> Tuple[ResumeDocument, str]:
    return _add_entry(doc, Experience)


def update_experience(doc: ResumeDocument, entry_id: str, field_name: str, value: str) -> ResumeDocument:
    return _update_entry(doc, Experience, entry_id, field_name, value)


def remove_experience(doc: ResumeDocument, entry_id: str) -> ResumeDocument:
    return _remove_entry(doc, Experience, entry_id)


def add_project(doc: ResumeDocument) -> Tuple[ResumeDocument, str]:
    return _add_entry(doc, Project)


def update_project(doc: ResumeDocument, entry_id: str, field_name: str, value: str) -> ResumeDocument:
    return _update_entry(doc, Project, entry_id, field_name, value)


def remove_project(doc: ResumeDocument, entry_id: str) -> ResumeDocument:
    return _remove_entry(doc, Project, entry_id)


# -------------------------------------------------------------------------
# PDF parsing service merge
# -------------------------------------------------------------------------

def _list_field(raw: Any, key: str) -> List[Any]:
    if isinstance(raw, (str, bytes)) or not isinstance(raw, (list, tuple)):
        raise ValidationError(f"Parsed profile field {key} must be a list")
    return list(raw)


def _entries_with_fresh_ids(cls: Type[E], raw: Iterable[Mapping[str, Any]]) -> Tuple[E, ...]:
    names = {f.name for f in fields(cls)} - {"id"}
    out = []
    for item in raw:
        if not isinstance(item, Mapping):
            continue
        values = {k: str(item.get(k) or "") for k in names}
        out.append(cls(id=new_id(), **values))
    return tuple(out)


def _strings(raw: Iterable[Any]) -> Tuple[str, ...]:
    return tuple(str(s) for s in raw if str(s).strip())


def merge_parsed_profile(doc: ResumeDocument, parsed: Mapping[str, Any]) -> ResumeDocument:
    """Merge a partial profile extracted from an uploaded PDF.

    Keys present in ``parsed`` replace the corresponding fields; list-typed
    collections get new local ids. The existing photo is kept.
    Raises ``ValidationError`` when a field has the wrong shape.
    """
    updates: Dict[str, Any] = {}
    info = parsed.get("personalInfo")
    if info and not isinstance(info, Mapping):
        raise ValidationError("Parsed profile field personalInfo must be an object")
    if info:
        updates["personal_info"] = replace(
            doc.personal_info,
            name=str(info.get("name") or ""),
            email=str(info.get("email") or ""),
            phone=str(info.get("phone") or ""),
            linkedin=str(info.get("linkedin") or ""),
        )
    if parsed.get("summary"):
        updates["summary"] = str(parsed["summary"])
    if parsed.get("skills"):
        updates["skills"] = _strings(_list_field(parsed["skills"], "skills"))
    if parsed.get("education"):
        updates["education"] = _entries_with_fresh_ids(Education, _list_field(parsed["education"], "education"))
    if parsed.get("experience"):
        updates["experience"] = _entries_with_fresh_ids(Experience, _list_field(parsed["experience"], "experience"))
    if parsed.get("projects"):
        updates["projects"] = _entries_with_fresh_ids(Project, _list_field(parsed["projects"], "projects"))
    if parsed.get("certifications"):
        updates["certifications"] = _strings(_list_field(parsed["certifications"], "certifications"))
    LOG.debug("merging parsed profile fields: %s", sorted(updates))
    return replace(doc, **updates)
