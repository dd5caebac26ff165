"""Section order model.

The ordered, toggleable index over built-in and custom sections. It is the
only thing that decides document order; disabling a section keeps its slot.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional, Tuple

from .model import ResumeDocument, Section, SectionType

LOG = logging.getLogger(__name__)

DEFAULT_SECTIONS: Tuple[Section, ...] = (
    Section(id="1", name="Profile Summary", type=SectionType.PROFILE),
    Section(id="2", name="Skills", type=SectionType.SKILLS),
    Section(id="3", name="Education", type=SectionType.EDUCATION),
    Section(id="4", name="Experience", type=SectionType.EXPERIENCE),
    Section(id="5", name="Projects", type=SectionType.PROJECTS),
    Section(id="6", name="Certifications", type=SectionType.CERTIFICATIONS),
)


def default_sections() -> Tuple[Section, ...]:
    return DEFAULT_SECTIONS


def find_section(doc: ResumeDocument, section_id: str) -> Optional[Section]:
    for sec in doc.sections:
        if sec.id == section_id:
            return sec
    return None


def section_index(doc: ResumeDocument, section_id: str) -> int:
    """Return the position of ``section_id`` or -1."""
    for i, sec in enumerate(doc.sections):
        if sec.id == section_id:
            return i
    return -1


def _swap(sections: Tuple[Section, ...], i: int, j: int) -> Tuple[Section, ...]:
    items = list(sections)
    items[i], items[j] = items[j], items[i]
    return tuple(items)


def move_up(doc: ResumeDocument, index: int) -> ResumeDocument:
    """Swap the section at ``index`` with its predecessor."""
    if index <= 0 or index >= len(doc.sections):
        LOG.debug("move_up(%s) is a no-op", index)
        return doc
    return replace(doc, sections=_swap(doc.sections, index - 1, index))


def move_down(doc: ResumeDocument, index: int) -> ResumeDocument:
    """Swap the section at ``index`` with its successor."""
    if index < 0 or index >= len(doc.sections) - 1:
        LOG.debug("move_down(%s) is a no-op", index)
        return doc
    return replace(doc, sections=_swap(doc.sections, index, index + 1))


def toggle(doc: ResumeDocument, section_id: str) -> ResumeDocument:
    """Flip ``enabled`` on the section with ``section_id``; unknown ids are ignored."""
    if find_section(doc, section_id) is None:
        LOG.debug("toggle: no section %r", section_id)
        return doc
    sections = tuple(
        replace(s, enabled=not s.enabled) if s.id == section_id else s
        for s in doc.sections
    )
    return replace(doc, sections=sections)
