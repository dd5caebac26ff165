"""PDF writers (reportlab).

Page margins are zero; each layout pads its own frames. The TwoSide accent
column is painted by the page callback, so it repeats on every page the
body flows onto.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional
from xml.sax.saxutils import escape

from reportlab.lib.colors import HexColor
from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY, TA_RIGHT
from reportlab.lib.pagesizes import A4, LETTER
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import (
    BaseDocTemplate,
    Flowable,
    Frame,
    FrameBreak,
    HRFlowable,
    Image,
    KeepInFrame,
    KeepTogether,
    NextPageTemplate,
    PageTemplate,
    Paragraph,
    Spacer,
    Table,
    TableStyle,
)

from .config import ExportSettings
from .errors import ExportError
from .model import ResumeFormat
from .photo import circular_photo
from .render_nodes import (
    Block,
    BulletList,
    EntryBlock,
    RenderedDocument,
    SectionNode,
    SidebarNode,
    TagsBlock,
    TextBlock,
)

LOG = logging.getLogger(__name__)

PAGE_SIZES = {"A4": A4, "LETTER": LETTER}

BODY_TEXT = "#1F1F1F"
MUTED_TEXT = "#555555"
SIDEBAR_RATIO = 0.35
PHOTO_PT = 90


def _esc(text: str) -> str:
    return escape(text or "")


def _link(label: str, href: str) -> str:
    return f'<link href="{escape(href, {chr(34): "&quot;"})}">{_esc(label)}</link>'


class PdfWriterBase(ABC):
    """Base class for PDF resume writers."""

    padding = 14 * mm

    def __init__(self, rendered: RenderedDocument, settings: Optional[ExportSettings] = None):
        self.rendered = rendered
        self.settings = settings or ExportSettings()
        page_size = PAGE_SIZES.get(self.settings.page_format.upper())
        if page_size is None:
            raise ExportError(
                f"Unsupported page format: {self.settings.page_format}",
                hint=f"Use one of: {', '.join(PAGE_SIZES)}",
            )
        self.page_width, self.page_height = page_size
        self.margin = self.settings.margin_mm * mm
        self.styles = self._build_styles()

    def write(self, out_path: Path) -> None:
        doc = BaseDocTemplate(
            str(out_path),
            pagesize=(self.page_width, self.page_height),
            leftMargin=self.margin,
            rightMargin=self.margin,
            topMargin=self.margin,
            bottomMargin=self.margin,
            title=f"{self.rendered.person_name or 'Resume'} - Resume",
            author=self.rendered.person_name,
        )
        doc.addPageTemplates(self._page_templates(doc))
        doc.build(self._story())

    @abstractmethod
    def _page_templates(self, doc: BaseDocTemplate) -> List[PageTemplate]:
        ...

    @abstractmethod
    def _story(self) -> List[Flowable]:
        ...

    def _build_styles(self):
        body = HexColor(BODY_TEXT)
        return {
            "name": ParagraphStyle("name", fontName="Helvetica-Bold", fontSize=20, leading=24,
                                   alignment=TA_CENTER, textColor=body),
            "contact": ParagraphStyle("contact", fontName="Helvetica", fontSize=9, leading=12,
                                      alignment=TA_CENTER, textColor=body),
            "section": ParagraphStyle("section", fontName="Helvetica-Bold", fontSize=11, leading=14,
                                      spaceBefore=8, spaceAfter=2, textColor=body),
            "body": ParagraphStyle("body", fontName="Helvetica", fontSize=9, leading=12,
                                   alignment=TA_JUSTIFY, textColor=body),
            "heading": ParagraphStyle("heading", fontName="Helvetica-Bold", fontSize=9.5, leading=12, textColor=body),
            "meta": ParagraphStyle("meta", fontName="Helvetica", fontSize=9, leading=12,
                                   alignment=TA_RIGHT, textColor=HexColor(MUTED_TEXT)),
            "sub": ParagraphStyle("sub", fontName="Helvetica-Oblique", fontSize=9, leading=12,
                                  textColor=HexColor(MUTED_TEXT)),
            "bullet": ParagraphStyle("bullet", fontName="Helvetica", fontSize=9, leading=12,
                                     leftIndent=10, bulletIndent=2, textColor=body),
        }

    # -------------------------------------------------------------------------
    # Sections and blocks
    # -------------------------------------------------------------------------

    def _section_title(self, node: SectionNode) -> List[Flowable]:
        return [
            Paragraph(_esc(node.title), self.styles["section"]),
            HRFlowable(width="100%", thickness=0.8, color=HexColor(BODY_TEXT), spaceAfter=4),
        ]

    def _section(self, node: SectionNode, width: float) -> List[Flowable]:
        flows: List[Flowable] = []
        for block in node.blocks:
            flows.extend(self._block(block, width))
        title = self._section_title(node)
        # Keep the title with the first block so headings never end a page.
        if flows:
            return [KeepTogether(title + flows[:1])] + flows[1:] + [Spacer(1, 4)]
        return title

    def _block(self, block: Block, width: float) -> List[Flowable]:
        styles = self.styles
        if isinstance(block, TextBlock):
            text = _esc(block.text).replace("\n", "<br/>")
            if block.label:
                text = f"<b>{_esc(block.label)}:</b> {text}"
            return [Paragraph(text, styles["body"])]
        if isinstance(block, TagsBlock):
            return [Paragraph(_esc(block.text), styles["body"])]
        if isinstance(block, BulletList):
            return [Paragraph(_esc(item), styles["bullet"], bulletText="•") for item in block.items]
        if isinstance(block, EntryBlock):
            return self._entry(block, width)
        raise ExportError(f"Unsupported block: {type(block).__name__}")

    def _entry(self, entry: EntryBlock, width: float) -> List[Flowable]:
        styles = self.styles
        heading = Paragraph(_esc(entry.heading), styles["heading"])
        if entry.meta:
            row = Table(
                [[heading, Paragraph(_esc(entry.meta), styles["meta"])]],
                colWidths=[width * 0.7, width * 0.3],
            )
            row.setStyle(TableStyle([
                ("LEFTPADDING", (0, 0), (-1, -1), 0),
                ("RIGHTPADDING", (0, 0), (-1, -1), 0),
                ("TOPPADDING", (0, 0), (-1, -1), 0),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 0),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ]))
            flows: List[Flowable] = [row]
        else:
            flows = [heading]
        if entry.subheading:
            flows.append(Paragraph(_esc(entry.subheading), styles["sub"]))
        if entry.text:
            flows.append(Paragraph(_esc(entry.text), styles["body"]))
        for item in entry.bullets:
            flows.append(Paragraph(_esc(item), styles["bullet"], bulletText="•"))
        if entry.note:
            label = f"<b>{_esc(entry.note_label)}:</b> " if entry.note_label else ""
            flows.append(Paragraph(label + _esc(entry.note), styles["body"]))
        flows.append(Spacer(1, 4))
        return [KeepTogether(flows)]


class ClassicPdfWriter(PdfWriterBase):
    """Single column: header then the ordered sections."""

    def _frame_width(self) -> float:
        return self.page_width - 2 * self.margin - 2 * self.padding

    def _page_templates(self, doc: BaseDocTemplate) -> List[PageTemplate]:
        frame = Frame(
            doc.leftMargin, doc.bottomMargin, doc.width, doc.height,
            leftPadding=self.padding, rightPadding=self.padding,
            topPadding=self.padding, bottomPadding=self.padding,
            id="body",
        )
        return [PageTemplate(id="classic", frames=[frame])]

    def _story(self) -> List[Flowable]:
        story: List[Flowable] = []
        header = self.rendered.header
        if header is not None:
            story.append(Paragraph(_esc(header.name), self.styles["name"]))
            parts = [_esc(p) for p in (header.phone, header.email) if p]
            if header.linkedin:
                parts.append(_link("LinkedIn", header.linkedin))
            if parts:
                story.append(Paragraph(" | ".join(parts), self.styles["contact"]))
            story.append(Spacer(1, 6))
        width = self._frame_width()
        for node in self.rendered.body:
            story.extend(self._section(node, width))
        return story or [Spacer(1, 1)]


class TwoSidePdfWriter(PdfWriterBase):
    """Accent sidebar on the left, body column on the right."""

    padding = 8 * mm

    def __init__(self, rendered: RenderedDocument, settings: Optional[ExportSettings] = None):
        super().__init__(rendered, settings)
        if rendered.sidebar is None:
            raise ExportError("TwoSide export needs a sidebar")
        self.sidebar: SidebarNode = rendered.sidebar
        self.accent = HexColor(self.sidebar.accent_color)
        self.sidebar_width = (self.page_width - 2 * self.margin) * SIDEBAR_RATIO
        self._add_sidebar_styles()

    def _add_sidebar_styles(self) -> None:
        fg = HexColor(self.sidebar.text_color)
        self.styles.update({
            "side_name": ParagraphStyle("side_name", fontName="Helvetica-Bold", fontSize=16, leading=20,
                                        alignment=TA_CENTER, textColor=fg),
            "side_tagline": ParagraphStyle("side_tagline", fontName="Helvetica", fontSize=8, leading=11,
                                           alignment=TA_CENTER, textColor=fg, spaceAfter=8),
            "side_heading": ParagraphStyle("side_heading", fontName="Helvetica-Bold", fontSize=10, leading=13,
                                           spaceBefore=10, spaceAfter=4, textColor=fg),
            "side_text": ParagraphStyle("side_text", fontName="Helvetica", fontSize=8.5, leading=11, textColor=fg),
            "side_bullet": ParagraphStyle("side_bullet", fontName="Helvetica", fontSize=8.5, leading=11,
                                          leftIndent=10, bulletIndent=2, textColor=fg),
            "section": ParagraphStyle("section_two_side", parent=self.styles["section"], textColor=self.accent),
        })

    def _paint_sidebar(self, canvas, doc) -> None:
        canvas.saveState()
        canvas.setFillColor(self.accent)
        canvas.rect(self.margin, self.margin, self.sidebar_width, self.page_height - 2 * self.margin,
                    stroke=0, fill=1)
        canvas.restoreState()

    def _body_frame(self, doc: BaseDocTemplate) -> Frame:
        x = doc.leftMargin + self.sidebar_width
        return Frame(
            x, doc.bottomMargin, doc.width - self.sidebar_width, doc.height,
            leftPadding=self.padding, rightPadding=self.padding,
            topPadding=self.padding, bottomPadding=self.padding,
            id="body",
        )

    def _page_templates(self, doc: BaseDocTemplate) -> List[PageTemplate]:
        sidebar = Frame(
            doc.leftMargin, doc.bottomMargin, self.sidebar_width, doc.height,
            leftPadding=self.padding, rightPadding=self.padding,
            topPadding=self.padding, bottomPadding=self.padding,
            id="sidebar",
        )
        return [
            PageTemplate(id="first", frames=[sidebar, self._body_frame(doc)], onPage=self._paint_sidebar),
            PageTemplate(id="later", frames=[self._body_frame(doc)], onPage=self._paint_sidebar),
        ]

    def _sidebar_story(self) -> List[Flowable]:
        side = self.sidebar
        styles = self.styles
        story: List[Flowable] = []
        if side.photo:
            buf = circular_photo(side.photo, PHOTO_PT, self.settings.scale, self.settings.image_quality,
                                 side.accent_color)
            if buf is not None:
                story.extend([Image(buf, width=PHOTO_PT, height=PHOTO_PT), Spacer(1, 8)])
        if side.name:
            story.append(Paragraph(_esc(side.name), styles["side_name"]))
        if side.tagline:
            story.append(Paragraph(_esc(side.tagline), styles["side_tagline"]))
        if side.contact:
            story.append(Paragraph("CONTACT", styles["side_heading"]))
            for item in side.contact:
                value = _link(item.value, item.link) if item.link else _esc(item.value)
                story.append(Paragraph(f"<b>{_esc(item.label)}:</b> {value}", styles["side_text"]))
        if side.skills is not None:
            story.append(Paragraph(_esc(side.skills.title), styles["side_heading"]))
            for block in side.skills.blocks:
                items = block.items if isinstance(block, (BulletList, TagsBlock)) else (getattr(block, "text", ""),)
                for item in items:
                    story.append(Paragraph(_esc(item), styles["side_bullet"], bulletText="•"))
        return story

    def _section_title(self, node: SectionNode) -> List[Flowable]:
        return [
            Paragraph(_esc(node.title), self.styles["section"]),
            HRFlowable(width="100%", thickness=1.2, color=self.accent, spaceAfter=4),
        ]

    def _story(self) -> List[Flowable]:
        # The sidebar frame exists only on the first page; shrink to fit it.
        sidebar = KeepInFrame(
            self.sidebar_width - 2 * self.padding,
            self.page_height - 2 * self.margin - 2 * self.padding,
            content=self._sidebar_story() or [Spacer(1, 1)],
            mode="shrink",
        )
        story: List[Flowable] = [sidebar, NextPageTemplate("later"), FrameBreak()]
        width = self.page_width - 2 * self.margin - self.sidebar_width - 2 * self.padding
        for node in self.rendered.body:
            story.extend(self._section(node, width))
        return story


def create_pdf_writer(rendered: RenderedDocument, settings: Optional[ExportSettings] = None) -> PdfWriterBase:
    if rendered.template is ResumeFormat.TWO_SIDE:
        return TwoSidePdfWriter(rendered, settings)
    return ClassicPdfWriter(rendered, settings)


def write_pdf(rendered: RenderedDocument, out_path: Path, settings: Optional[ExportSettings] = None) -> None:
    create_pdf_writer(rendered, settings).write(Path(out_path))
