"""Résumé data model.

All types are frozen dataclasses holding tuples, so every edit produces a new
``ResumeDocument`` and the previous value stays valid for undo or for
recovering from a failed operation.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, Union


class SectionType(str, Enum):
    PROFILE = "profile"
    SKILLS = "skills"
    EDUCATION = "education"
    EXPERIENCE = "experience"
    PROJECTS = "projects"
    CERTIFICATIONS = "certifications"
    CUSTOM = "custom"


class CustomType(str, Enum):
    PARAGRAPH = "paragraph"
    TAGS = "tags"
    LIST = "list"


class ResumeFormat(str, Enum):
    CLASSIC = "classic"
    TWO_SIDE = "two-side"

    @property
    def template_name(self) -> str:
        return TEMPLATE_NAMES[self]


TEMPLATE_NAMES = {
    ResumeFormat.CLASSIC: "resume-template",
    ResumeFormat.TWO_SIDE: "resume-template-two-side",
}

DEFAULT_ACCENT_COLOR = "#2C5F7C"


def new_id() -> str:
    """Return a fresh identifier for sections, entries and list items."""
    return uuid.uuid4().hex[:12]


@dataclass(frozen=True)
class Section:
    id: str
    name: str
    type: SectionType
    enabled: bool = True
    custom_type: Optional[CustomType] = None


@dataclass(frozen=True)
class PersonalInfo:
    name: str = ""
    email: str = ""
    phone: str = ""
    linkedin: str = ""
    photo: str = ""


@dataclass(frozen=True)
class Education:
    id: str = field(default_factory=new_id)
    institution: str = ""
    degree: str = ""
    year: str = ""


@dataclass(frozen=True)
class Experience:
    id: str = field(default_factory=new_id)
    title: str = ""
    company: str = ""
    duration: str = ""
    description: str = ""


@dataclass(frozen=True)
class Project:
    id: str = field(default_factory=new_id)
    name: str = ""
    description: str = ""
    technologies: str = ""


@dataclass(frozen=True)
class ListItem:
    id: str = field(default_factory=new_id)
    text: str = ""


CustomContent = Union[str, Tuple[str, ...], Tuple[ListItem, ...]]


@dataclass(frozen=True)
class CustomSection:
    """A user-authored section; ``content`` shape follows ``type``."""

    id: str
    heading: str
    type: CustomType
    content: CustomContent = ""

    def __post_init__(self) -> None:
        if self.type is CustomType.PARAGRAPH:
            if not isinstance(self.content, str):
                raise TypeError("paragraph content must be a string")
        elif self.type is CustomType.TAGS:
            if not isinstance(self.content, tuple) or not all(isinstance(t, str) for t in self.content):
                raise TypeError("tags content must be a tuple of strings")
        elif self.type is CustomType.LIST:
            if not isinstance(self.content, tuple) or not all(isinstance(i, ListItem) for i in self.content):
                raise TypeError("list content must be a tuple of ListItem")

    @classmethod
    def empty(cls, section_id: str, heading: str, custom_type: CustomType) -> "CustomSection":
        content: CustomContent = "" if custom_type is CustomType.PARAGRAPH else ()
        return cls(id=section_id, heading=heading, type=custom_type, content=content)

    @property
    def text(self) -> str:
        return self.content if isinstance(self.content, str) else ""

    @property
    def tags(self) -> Tuple[str, ...]:
        return self.content if self.type is CustomType.TAGS else ()  # type: ignore[return-value]

    @property
    def items(self) -> Tuple[ListItem, ...]:
        return self.content if self.type is CustomType.LIST else ()  # type: ignore[return-value]


@dataclass(frozen=True)
class ResumeDocument:
    personal_info: PersonalInfo = field(default_factory=PersonalInfo)
    summary: str = ""
    skills: Tuple[str, ...] = ()
    education: Tuple[Education, ...] = ()
    experience: Tuple[Experience, ...] = ()
    projects: Tuple[Project, ...] = ()
    certifications: Tuple[str, ...] = ()
    custom_sections: Tuple[CustomSection, ...] = ()
    sections: Tuple[Section, ...] = ()
    template: ResumeFormat = ResumeFormat.CLASSIC
    accent_color: str = DEFAULT_ACCENT_COLOR

    def custom_section(self, section_id: str) -> Optional[CustomSection]:
        for cs in self.custom_sections:
            if cs.id == section_id:
                return cs
        return None


def new_document(template: ResumeFormat = ResumeFormat.CLASSIC) -> ResumeDocument:
    """Create an empty document with the default section order."""
    from .sections import default_sections

    return ResumeDocument(sections=default_sections(), template=template)
