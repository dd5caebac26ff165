"""Classic single-column layout.

Header (name and contact line) first, then every enabled, non-empty section
in the order of the section model.
"""
from __future__ import annotations

from typing import Tuple

from .model import Education, Experience, Project, ResumeFormat, SectionType
from .render_base import ResumeRenderer, description_lines
from .render_nodes import Block, BulletList, EntryBlock, HeaderNode, RenderedDocument, SectionNode, TextBlock


class ClassicRenderer(ResumeRenderer):
    template = ResumeFormat.CLASSIC
    section_titles = {
        SectionType.PROFILE: "Profile",
        SectionType.SKILLS: "Skills",
        SectionType.EDUCATION: "Education",
        SectionType.EXPERIENCE: "Professional Experience",
        SectionType.PROJECTS: "Projects",
        SectionType.CERTIFICATIONS: "Certifications",
    }

    def _render_layout(self, body: Tuple[SectionNode, ...]) -> RenderedDocument:
        info = self.doc.personal_info
        header = HeaderNode(
            name=info.name,
            phone=info.phone,
            email=info.email,
            linkedin=info.linkedin,
        )
        return RenderedDocument(
            template=self.template,
            person_name=info.name,
            header=header,
            body=body,
        )

    def _skills_blocks(self, skills: Tuple[str, ...]) -> Tuple[Block, ...]:
        return (TextBlock(", ".join(skills), label="Technical Skills"),)

    def _tags_block(self, tags: Tuple[str, ...]) -> Block:
        return TextBlock(", ".join(tags))

    def _education_block(self, edu: Education) -> Block:
        return EntryBlock(heading=edu.institution, meta=edu.year, subheading=edu.degree)

    def _experience_block(self, exp: Experience) -> Block:
        return EntryBlock(
            heading=exp.title,
            meta=exp.duration,
            subheading=exp.company,
            bullets=description_lines(exp.description),
        )

    def _project_block(self, proj: Project) -> Block:
        bullets = (proj.description,) if proj.description else ()
        if proj.technologies:
            bullets += (proj.technologies,)
        return EntryBlock(heading=proj.name, bullets=bullets)
