"""Base class for résumé layouts.

Both layouts walk the same section order and share one dispatch table over
``SectionType`` (and a second one over ``CustomType``). The base class owns
the suppression rule: a disabled section is skipped before its content is
looked at, and an enabled section with empty content produces no node.
Subclasses only decide titles and how entries are shaped into blocks.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict, FrozenSet, List, Optional, Tuple

from .model import (
    CustomSection,
    CustomType,
    Education,
    Experience,
    Project,
    ResumeDocument,
    ResumeFormat,
    Section,
    SectionType,
)
from .render_nodes import Block, BulletList, RenderedDocument, SectionNode, TextBlock

LOG = logging.getLogger(__name__)

SectionBuilder = Callable[[Section], Optional[SectionNode]]
CustomBuilder = Callable[[Section, CustomSection], Optional[SectionNode]]


def description_lines(description: str) -> Tuple[str, ...]:
    """Split an experience description into its non-blank lines."""
    return tuple(line for line in (description or "").split("\n") if line.strip())


def visible_items(custom: CustomSection) -> Tuple[str, ...]:
    """List item texts with blank items filtered out."""
    return tuple(item.text for item in custom.items if item.text.strip())


class ResumeRenderer(ABC):
    """Maps a ``ResumeDocument`` to a ``RenderedDocument``."""

    template: ResumeFormat
    # Section types rendered outside the ordered body (e.g. in a sidebar).
    pinned_types: FrozenSet[SectionType] = frozenset()
    section_titles: Dict[SectionType, str] = {}

    def __init__(self, document: ResumeDocument):
        self.doc = document
        self._builders: Dict[SectionType, SectionBuilder] = {
            SectionType.PROFILE: self._render_profile,
            SectionType.SKILLS: self._render_skills,
            SectionType.EDUCATION: self._render_education,
            SectionType.EXPERIENCE: self._render_experience,
            SectionType.PROJECTS: self._render_projects,
            SectionType.CERTIFICATIONS: self._render_certifications,
            SectionType.CUSTOM: self._render_custom,
        }
        self._custom_builders: Dict[CustomType, CustomBuilder] = {
            CustomType.PARAGRAPH: self._render_custom_paragraph,
            CustomType.TAGS: self._render_custom_tags,
            CustomType.LIST: self._render_custom_list,
        }
        missing = (set(SectionType) - set(self._builders)) | (set(CustomType) - set(self._custom_builders))
        if missing:
            raise TypeError(f"{type(self).__name__} has no renderer for {sorted(m.value for m in missing)}")

    def render(self) -> RenderedDocument:
        return self._render_layout(self.render_body())

    @abstractmethod
    def _render_layout(self, body: Tuple[SectionNode, ...]) -> RenderedDocument:
        """Wrap the ordered body with the layout's fixed regions."""

    def render_body(self) -> Tuple[SectionNode, ...]:
        nodes: List[SectionNode] = []
        for section in self.doc.sections:
            if section.type in self.pinned_types:
                continue
            node = self.render_section(section)
            if node is not None:
                nodes.append(node)
        return tuple(nodes)

    def render_section(self, section: Section) -> Optional[SectionNode]:
        if not section.enabled:
            return None
        return self._builders[section.type](section)

    def _node(self, section: Section, blocks: Tuple[Block, ...], title: Optional[str] = None) -> SectionNode:
        return SectionNode(
            section_id=section.id,
            kind=section.type,
            title=title if title is not None else self.section_titles.get(section.type, section.name),
            blocks=blocks,
            custom_type=section.custom_type,
        )

    # -------------------------------------------------------------------------
    # Built-in sections
    # -------------------------------------------------------------------------

    def _render_profile(self, section: Section) -> Optional[SectionNode]:
        if self.doc.summary == "":
            return None
        return self._node(section, (TextBlock(self.doc.summary),))

    def _render_skills(self, section: Section) -> Optional[SectionNode]:
        if not self.doc.skills:
            return None
        return self._node(section, self._skills_blocks(self.doc.skills))

    def _render_education(self, section: Section) -> Optional[SectionNode]:
        if not self.doc.education:
            return None
        return self._node(section, tuple(self._education_block(e) for e in self.doc.education))

    def _render_experience(self, section: Section) -> Optional[SectionNode]:
        if not self.doc.experience:
            return None
        return self._node(section, tuple(self._experience_block(e) for e in self.doc.experience))

    def _render_projects(self, section: Section) -> Optional[SectionNode]:
        if not self.doc.projects:
            return None
        return self._node(section, tuple(self._project_block(p) for p in self.doc.projects))

    def _render_certifications(self, section: Section) -> Optional[SectionNode]:
        if not self.doc.certifications:
            return None
        return self._node(section, (BulletList(self.doc.certifications),))

    # -------------------------------------------------------------------------
    # Custom sections
    # -------------------------------------------------------------------------

    def _render_custom(self, section: Section) -> Optional[SectionNode]:
        custom = self.doc.custom_section(section.id)
        if custom is None:
            LOG.warning("section %r has no custom section content", section.id)
            return None
        return self._custom_builders[custom.type](section, custom)

    def _render_custom_paragraph(self, section: Section, custom: CustomSection) -> Optional[SectionNode]:
        if custom.text == "":
            return None
        return self._node(section, (TextBlock(custom.text),), self._custom_title(custom))

    def _render_custom_tags(self, section: Section, custom: CustomSection) -> Optional[SectionNode]:
        if not custom.tags:
            return None
        return self._node(section, (self._tags_block(custom.tags),), self._custom_title(custom))

    def _render_custom_list(self, section: Section, custom: CustomSection) -> Optional[SectionNode]:
        items = visible_items(custom)
        if not items:
            return None
        return self._node(section, (BulletList(items),), self._custom_title(custom))

    # -------------------------------------------------------------------------
    # Layout hooks
    # -------------------------------------------------------------------------

    def _custom_title(self, custom: CustomSection) -> str:
        return custom.heading

    @abstractmethod
    def _skills_blocks(self, skills: Tuple[str, ...]) -> Tuple[Block, ...]:
        ...

    @abstractmethod
    def _tags_block(self, tags: Tuple[str, ...]) -> Block:
        ...

    @abstractmethod
    def _education_block(self, edu: Education) -> Block:
        ...

    @abstractmethod
    def _experience_block(self, exp: Experience) -> Block:
        ...

    @abstractmethod
    def _project_block(self, proj: Project) -> Block:
        ...


def create_renderer(document: ResumeDocument, template: Optional[ResumeFormat] = None) -> ResumeRenderer:
    """Return the renderer for ``template`` (defaults to the document's own).

    Examples:
        >>> renderer = create_renderer(doc)              # doc.template
        >>> renderer = create_renderer(doc, ResumeFormat.TWO_SIDE)
        >>> rendered = renderer.render()
    """
    fmt = ResumeFormat(template or document.template)
    if fmt is ResumeFormat.TWO_SIDE:
        from .render_two_side import TwoSideRenderer
        return TwoSideRenderer(document)
    from .render_classic import ClassicRenderer
    return ClassicRenderer(document)


def render(document: ResumeDocument, template: Optional[ResumeFormat] = None) -> RenderedDocument:
    return create_renderer(document, template).render()
