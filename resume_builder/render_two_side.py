"""TwoSide layout: accent-coloured sidebar plus a body column.

The sidebar carries the photo, name, contact block and skills. The body walks
the same section order as the classic layout but skips the section types
pinned to the sidebar, so skills never appear twice even though the
``skills`` entry stays in the shared order.
"""
from __future__ import annotations

from typing import Optional, Tuple

from .colors import normalize_hex, text_color_on
from .errors import ValidationError
from .model import (
    DEFAULT_ACCENT_COLOR,
    CustomSection,
    Education,
    Experience,
    Project,
    ResumeFormat,
    Section,
    SectionType,
)
from .render_base import ResumeRenderer, description_lines
from .render_nodes import (
    Block,
    BulletList,
    ContactItem,
    EntryBlock,
    RenderedDocument,
    SectionNode,
    SidebarNode,
    TagsBlock,
)

SIDEBAR_TAGLINE = "PROFESSIONAL"
SIDEBAR_SKILLS_ID = "sidebar-skills"


class TwoSideRenderer(ResumeRenderer):
    template = ResumeFormat.TWO_SIDE
    pinned_types = frozenset({SectionType.SKILLS})
    section_titles = {
        SectionType.PROFILE: "PROFESSIONAL SUMMARY",
        SectionType.SKILLS: "SKILLS",
        SectionType.EDUCATION: "EDUCATION",
        SectionType.EXPERIENCE: "EXPERIENCE",
        SectionType.PROJECTS: "PROJECTS",
        SectionType.CERTIFICATIONS: "CERTIFICATIONS",
    }

    def _render_layout(self, body: Tuple[SectionNode, ...]) -> RenderedDocument:
        info = self.doc.personal_info
        accent = self._accent()
        sidebar = SidebarNode(
            accent_color=accent,
            text_color=text_color_on(accent),
            name=info.name,
            tagline=SIDEBAR_TAGLINE,
            photo=info.photo,
            contact=self._contact_items(),
            skills=self._sidebar_skills(),
        )
        return RenderedDocument(
            template=self.template,
            person_name=info.name,
            sidebar=sidebar,
            body=body,
        )

    def _accent(self) -> str:
        try:
            return normalize_hex(self.doc.accent_color)
        except ValidationError:
            return DEFAULT_ACCENT_COLOR

    def _contact_items(self) -> Tuple[ContactItem, ...]:
        info = self.doc.personal_info
        items = []
        if info.phone:
            items.append(ContactItem("Phone", info.phone))
        if info.email:
            items.append(ContactItem("Email", info.email))
        if info.linkedin:
            items.append(ContactItem("LinkedIn", "Profile", link=info.linkedin))
        return tuple(items)

    def _sidebar_skills(self) -> Optional[SectionNode]:
        # Shown whenever skills exist; the order entry only controls the body.
        if not self.doc.skills:
            return None
        for section in self.doc.sections:
            if section.type is SectionType.SKILLS:
                return self._render_skills(section)
        return self._render_skills(Section(id=SIDEBAR_SKILLS_ID, name="Skills", type=SectionType.SKILLS))

    def _custom_title(self, custom: CustomSection) -> str:
        return custom.heading.upper()

    def _skills_blocks(self, skills: Tuple[str, ...]) -> Tuple[Block, ...]:
        return (BulletList(skills),)

    def _tags_block(self, tags: Tuple[str, ...]) -> Block:
        return TagsBlock(tags)

    def _education_block(self, edu: Education) -> Block:
        return EntryBlock(heading=edu.degree, meta=edu.year, subheading=edu.institution)

    def _experience_block(self, exp: Experience) -> Block:
        return EntryBlock(
            heading=exp.title,
            meta=exp.duration,
            subheading=exp.company,
            bullets=description_lines(exp.description),
        )

    def _project_block(self, proj: Project) -> Block:
        return EntryBlock(
            heading=proj.name,
            text=proj.description,
            note_label="Technologies" if proj.technologies else "",
            note=proj.technologies,
        )
