"""Render tree produced by the layouts and consumed by the exporters."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple, Union

from .model import CustomType, ResumeFormat, SectionType


@dataclass(frozen=True)
class TextBlock:
    """A paragraph, optionally prefixed with a bold label."""
    text: str
    label: str = ""


@dataclass(frozen=True)
class TagsBlock:
    items: Tuple[str, ...]
    separator: str = ", "

    @property
    def text(self) -> str:
        return self.separator.join(self.items)


@dataclass(frozen=True)
class BulletList:
    items: Tuple[str, ...]


@dataclass(frozen=True)
class EntryBlock:
    """One education / experience / project entry.

    ``heading`` is bold on the left, ``meta`` (dates) sits on the right,
    ``subheading`` is the italic line beneath.
    """
    heading: str
    meta: str = ""
    subheading: str = ""
    text: str = ""
    bullets: Tuple[str, ...] = ()
    note_label: str = ""
    note: str = ""


Block = Union[TextBlock, TagsBlock, BulletList, EntryBlock]


@dataclass(frozen=True)
class SectionNode:
    section_id: str
    kind: SectionType
    title: str
    blocks: Tuple[Block, ...]
    custom_type: Optional[CustomType] = None


@dataclass(frozen=True)
class HeaderNode:
    """Classic header: name and one contact line."""
    name: str
    phone: str = ""
    email: str = ""
    linkedin: str = ""

    @property
    def contact_line(self) -> str:
        parts = [p for p in (self.phone, self.email) if p]
        if self.linkedin:
            parts.append("LinkedIn")
        return " | ".join(parts)


@dataclass(frozen=True)
class ContactItem:
    label: str
    value: str
    link: str = ""


@dataclass(frozen=True)
class SidebarNode:
    """TwoSide sidebar: accent-filled column with photo, name, contact, skills."""
    accent_color: str
    text_color: str
    name: str
    tagline: str = ""
    photo: str = ""
    contact: Tuple[ContactItem, ...] = ()
    skills: Optional[SectionNode] = None


RenderNode = Union[HeaderNode, SidebarNode, SectionNode]


@dataclass(frozen=True)
class RenderedDocument:
    template: ResumeFormat
    person_name: str
    body: Tuple[SectionNode, ...]
    header: Optional[HeaderNode] = None
    sidebar: Optional[SidebarNode] = None

    @property
    def nodes(self) -> Tuple[RenderNode, ...]:
        """Flat node sequence: header or sidebar first, then the body."""
        lead: Tuple[RenderNode, ...] = ()
        if self.header is not None:
            lead += (self.header,)
        if self.sidebar is not None:
            lead += (self.sidebar,)
        return lead + self.body

    def sections_of(self, kind: SectionType) -> Tuple[SectionNode, ...]:
        """All section nodes of ``kind``, including the sidebar's skills block."""
        found = tuple(n for n in self.body if n.kind is kind)
        if self.sidebar is not None and self.sidebar.skills is not None and self.sidebar.skills.kind is kind:
            found = (self.sidebar.skills,) + found
        return found
