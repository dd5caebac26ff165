"""Custom section manager.

Creates and removes user-authored sections while keeping the custom section
store and the section order model consistent, and edits their content
according to the declared content shape.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Optional, Tuple

from .errors import ValidationError
from .model import (
    CustomSection,
    CustomType,
    ListItem,
    ResumeDocument,
    Section,
    SectionType,
    new_id,
)

LOG = logging.getLogger(__name__)


def create(
    doc: ResumeDocument,
    heading: str,
    custom_type: CustomType,
    *,
    section_id: Optional[str] = None,
) -> Tuple[ResumeDocument, str]:
    """Add a custom section to both stores and return ``(doc, section_id)``."""
    if not heading or not heading.strip():
        raise ValidationError("Section heading is required")
    try:
        custom_type = CustomType(custom_type)
    except ValueError:
        raise ValidationError(
            f"Unknown section type: {custom_type}", hint="Use paragraph, tags or list"
        ) from None
    sid = section_id or new_id()
    if any(s.id == sid for s in doc.sections) or doc.custom_section(sid) is not None:
        raise ValidationError(f"Section id already in use: {sid}")
    heading = heading.strip()
    custom = CustomSection.empty(sid, heading, custom_type)
    entry = Section(
        id=sid,
        name=heading,
        type=SectionType.CUSTOM,
        enabled=True,
        custom_type=custom_type,
    )
    doc = replace(
        doc,
        custom_sections=doc.custom_sections + (custom,),
        sections=doc.sections + (entry,),
    )
    return doc, sid


def remove(doc: ResumeDocument, section_id: str) -> ResumeDocument:
    """Delete a custom section and its order entry."""
    return replace(
        doc,
        custom_sections=tuple(cs for cs in doc.custom_sections if cs.id != section_id),
        sections=tuple(
            s for s in doc.sections
            if not (s.id == section_id and s.type is SectionType.CUSTOM)
        ),
    )


def _update(
    doc: ResumeDocument,
    section_id: str,
    expected: CustomType,
    fn: Callable[[CustomSection], CustomSection],
) -> ResumeDocument:
    target = doc.custom_section(section_id)
    if target is None or target.type is not expected:
        LOG.debug("no %s section %r; ignoring edit", expected.value, section_id)
        return doc
    updated = fn(target)
    return replace(
        doc,
        custom_sections=tuple(updated if cs.id == section_id else cs for cs in doc.custom_sections),
    )


# paragraph

def set_text(doc: ResumeDocument, section_id: str, text: str) -> ResumeDocument:
    return _update(doc, section_id, CustomType.PARAGRAPH, lambda cs: replace(cs, content=text))


# tags

def add_tag(doc: ResumeDocument, section_id: str, tag: str) -> ResumeDocument:
    if not tag or not tag.strip():
        raise ValidationError("Tag cannot be blank")
    value = tag.strip()
    return _update(doc, section_id, CustomType.TAGS, lambda cs: replace(cs, content=cs.tags + (value,)))


def remove_tag(doc: ResumeDocument, section_id: str, index: int) -> ResumeDocument:
    def drop(cs: CustomSection) -> CustomSection:
        return replace(cs, content=tuple(t for i, t in enumerate(cs.tags) if i != index))

    return _update(doc, section_id, CustomType.TAGS, drop)


# list

def add_item(doc: ResumeDocument, section_id: str) -> Tuple[ResumeDocument, str]:
    """Append an empty item; returns ``(doc, item_id)``."""
    item = ListItem()
    updated = _update(doc, section_id, CustomType.LIST, lambda cs: replace(cs, content=cs.items + (item,)))
    if updated is doc:
        return doc, ""
    return updated, item.id


def update_item(doc: ResumeDocument, section_id: str, item_id: str, text: str) -> ResumeDocument:
    def edit(cs: CustomSection) -> CustomSection:
        return replace(
            cs,
            content=tuple(replace(it, text=text) if it.id == item_id else it for it in cs.items),
        )

    return _update(doc, section_id, CustomType.LIST, edit)


def remove_item(doc: ResumeDocument, section_id: str, item_id: str) -> ResumeDocument:
    def drop(cs: CustomSection) -> CustomSection:
        return replace(cs, content=tuple(it for it in cs.items if it.id != item_id))

    return _update(doc, section_id, CustomType.LIST, drop)
