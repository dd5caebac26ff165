"""DOCX writers (python-docx).

Classic writes straight into the document body. TwoSide lays the page out as
a borderless one-row table: a shaded sidebar cell and a body cell.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

from docx import Document  # type: ignore
from docx.enum.table import WD_TABLE_ALIGNMENT  # type: ignore
from docx.enum.text import WD_ALIGN_PARAGRAPH, WD_TAB_ALIGNMENT  # type: ignore
from docx.opc.constants import RELATIONSHIP_TYPE  # type: ignore
from docx.oxml import OxmlElement  # type: ignore
from docx.oxml.ns import qn  # type: ignore
from docx.shared import Emu, Inches, Mm, Pt, RGBColor  # type: ignore

from .colors import parse_hex_color
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

PAGE_SIZES_MM = {"A4": (210, 297), "LETTER": (215.9, 279.4)}

BODY_TEXT = "#1F1F1F"
MUTED_TEXT = "#555555"
SIDEBAR_RATIO = 0.35
PHOTO_PT = 90


# -------------------------------------------------------------------------
# Paragraph helpers
# -------------------------------------------------------------------------

def _tight_paragraph(para, before_pt: float = 0, after_pt: float = 0) -> None:
    pf = para.paragraph_format
    pf.space_before = Pt(before_pt)
    pf.space_after = Pt(after_pt)


def _add_run(para, text: str, color: Optional[str] = None, size: float = 9, **fmt: Any):
    run = para.add_run(text)
    run.font.size = Pt(size)
    rgb = parse_hex_color(color)
    if rgb:
        run.font.color.rgb = RGBColor(*rgb)
    for key, val in fmt.items():
        setattr(run, key, val)
    return run


def _add_hyperlink(para, text: str, url: str, color: Optional[str] = None, size: float = 9) -> None:
    """Append a clickable hyperlink run to ``para``."""
    r_id = para.part.relate_to(url, RELATIONSHIP_TYPE.HYPERLINK, is_external=True)
    link = OxmlElement("w:hyperlink")
    link.set(qn("r:id"), r_id)
    run = OxmlElement("w:r")
    props = OxmlElement("w:rPr")
    rgb = parse_hex_color(color)
    if rgb:
        col = OxmlElement("w:color")
        col.set(qn("w:val"), "{:02X}{:02X}{:02X}".format(*rgb))
        props.append(col)
    sz = OxmlElement("w:sz")
    sz.set(qn("w:val"), str(int(size * 2)))
    props.append(sz)
    underline = OxmlElement("w:u")
    underline.set(qn("w:val"), "single")
    props.append(underline)
    run.append(props)
    t = OxmlElement("w:t")
    t.text = text
    run.append(t)
    link.append(run)
    para._p.append(link)


def _set_cell_shading(cell, hex_color: str) -> None:
    """Set background shading on a table cell."""
    rgb = parse_hex_color(hex_color)
    if not rgb:
        return
    tcPr = cell._tc.get_or_add_tcPr()
    shd = OxmlElement("w:shd")
    shd.set(qn("w:val"), "clear")
    shd.set(qn("w:fill"), "{:02X}{:02X}{:02X}".format(*rgb))
    tcPr.append(shd)


def _remove_cell_borders(cell) -> None:
    """Remove all borders from a table cell."""
    tcPr = cell._tc.get_or_add_tcPr()
    borders = OxmlElement("w:tcBorders")
    for side in ("top", "left", "bottom", "right"):
        el = OxmlElement(f"w:{side}")
        el.set(qn("w:val"), "nil")
        borders.append(el)
    tcPr.append(borders)


def _first_paragraph(container):
    """Reuse the empty paragraph a new cell starts with."""
    paras = getattr(container, "paragraphs", [])
    if len(paras) == 1 and not paras[0].text:
        return paras[0]
    return container.add_paragraph()


# -------------------------------------------------------------------------
# Writers
# -------------------------------------------------------------------------

class DocxWriterBase(ABC):
    """Base class for DOCX resume writers."""

    heading_color = BODY_TEXT

    def __init__(self, rendered: RenderedDocument, settings: Optional[ExportSettings] = None):
        self.rendered = rendered
        self.settings = settings or ExportSettings()
        self.doc = None

    def write(self, out_path: Path) -> None:
        self.doc = Document()
        self._apply_page_setup()
        self._set_document_metadata()
        self._render_content()
        self.doc.save(str(out_path))

    @abstractmethod
    def _render_content(self) -> None:
        ...

    def _apply_page_setup(self) -> None:
        size = PAGE_SIZES_MM.get(self.settings.page_format.upper())
        if size is None:
            raise ExportError(
                f"Unsupported page format: {self.settings.page_format}",
                hint=f"Use one of: {', '.join(PAGE_SIZES_MM)}",
            )
        sec = self.doc.sections[0]
        sec.page_width, sec.page_height = Mm(size[0]), Mm(size[1])
        margin = Mm(self.settings.margin_mm)
        sec.top_margin = sec.bottom_margin = margin
        sec.left_margin = sec.right_margin = margin
        self.doc.styles["Normal"].font.name = "Arial"
        self.doc.styles["Normal"].font.size = Pt(9)

    def _set_document_metadata(self) -> None:
        cp = self.doc.core_properties
        name = self.rendered.person_name
        cp.title = f"{name} - Resume" if name else "Resume"
        cp.subject = "Resume"
        if name:
            cp.author = name

    @property
    def _usable_width(self):
        sec = self.doc.sections[0]
        return sec.page_width - sec.left_margin - sec.right_margin

    # -------------------------------------------------------------------------
    # Sections and blocks
    # -------------------------------------------------------------------------

    def _section(self, container, node: SectionNode) -> None:
        p = container.add_paragraph()
        _add_run(p, node.title, self.heading_color, size=11, bold=True)
        self._underline(p)
        _tight_paragraph(p, before_pt=8, after_pt=3)
        for block in node.blocks:
            self._block(container, block)

    def _underline(self, para) -> None:
        pPr = para._p.get_or_add_pPr()
        bdr = OxmlElement("w:pBdr")
        bottom = OxmlElement("w:bottom")
        bottom.set(qn("w:val"), "single")
        bottom.set(qn("w:sz"), "6")
        bottom.set(qn("w:space"), "1")
        rgb = parse_hex_color(self.heading_color) or (0, 0, 0)
        bottom.set(qn("w:color"), "{:02X}{:02X}{:02X}".format(*rgb))
        bdr.append(bottom)
        pPr.append(bdr)

    def _block(self, container, block: Block) -> None:
        if isinstance(block, TextBlock):
            p = container.add_paragraph()
            if block.label:
                _add_run(p, f"{block.label}: ", BODY_TEXT, bold=True)
            _add_run(p, block.text, BODY_TEXT)
            p.alignment = WD_ALIGN_PARAGRAPH.JUSTIFY
            _tight_paragraph(p, after_pt=2)
        elif isinstance(block, TagsBlock):
            p = container.add_paragraph()
            _add_run(p, block.text, BODY_TEXT)
            _tight_paragraph(p, after_pt=2)
        elif isinstance(block, BulletList):
            for item in block.items:
                self._bullet(container, item, BODY_TEXT)
        elif isinstance(block, EntryBlock):
            self._entry(container, block)
        else:
            raise ExportError(f"Unsupported block: {type(block).__name__}")

    def _bullet(self, container, text: str, color: str) -> None:
        p = container.add_paragraph()
        _add_run(p, "• ", color)
        _add_run(p, text, color)
        p.paragraph_format.left_indent = Inches(0.15)
        p.paragraph_format.first_line_indent = Inches(-0.1)
        _tight_paragraph(p, after_pt=1)

    def _entry(self, container, entry: EntryBlock) -> None:
        p = container.add_paragraph()
        _add_run(p, entry.heading, BODY_TEXT, size=9.5, bold=True)
        if entry.meta:
            p.paragraph_format.tab_stops.add_tab_stop(Emu(self._content_width()), WD_TAB_ALIGNMENT.RIGHT)
            _add_run(p, "\t" + entry.meta, MUTED_TEXT)
        _tight_paragraph(p, before_pt=2)
        if entry.subheading:
            sub = container.add_paragraph()
            _add_run(sub, entry.subheading, MUTED_TEXT, italic=True)
            _tight_paragraph(sub)
        if entry.text:
            body = container.add_paragraph()
            _add_run(body, entry.text, BODY_TEXT)
            _tight_paragraph(body, after_pt=1)
        for item in entry.bullets:
            self._bullet(container, item, BODY_TEXT)
        if entry.note:
            note = container.add_paragraph()
            if entry.note_label:
                _add_run(note, f"{entry.note_label}: ", BODY_TEXT, bold=True)
            _add_run(note, entry.note, BODY_TEXT)
            _tight_paragraph(note, after_pt=2)

    def _content_width(self):
        return self._usable_width


class ClassicDocxWriter(DocxWriterBase):
    """Single column: centred header, then the ordered sections."""

    padding = Mm(14)

    def _apply_page_setup(self) -> None:
        super()._apply_page_setup()
        # Zero page margin leaves no room for Word's body; use the layout padding instead.
        sec = self.doc.sections[0]
        sec.left_margin = sec.right_margin = sec.left_margin + self.padding
        sec.top_margin = sec.bottom_margin = sec.top_margin + self.padding

    def _render_content(self) -> None:
        header = self.rendered.header
        if header is not None:
            p = _first_paragraph(self.doc)
            _add_run(p, header.name, BODY_TEXT, size=20, bold=True)
            p.alignment = WD_ALIGN_PARAGRAPH.CENTER
            _tight_paragraph(p, after_pt=2)
            contact = self.doc.add_paragraph()
            contact.alignment = WD_ALIGN_PARAGRAPH.CENTER
            parts = [x for x in (header.phone, header.email) if x]
            _add_run(contact, " | ".join(parts), BODY_TEXT)
            if header.linkedin:
                if parts:
                    _add_run(contact, " | ", BODY_TEXT)
                _add_hyperlink(contact, "LinkedIn", header.linkedin, BODY_TEXT)
            _tight_paragraph(contact, after_pt=6)
        for node in self.rendered.body:
            self._section(self.doc, node)


class TwoSideDocxWriter(DocxWriterBase):
    """Shaded sidebar cell beside the body cell."""

    def __init__(self, rendered: RenderedDocument, settings: Optional[ExportSettings] = None):
        super().__init__(rendered, settings)
        if rendered.sidebar is None:
            raise ExportError("TwoSide export needs a sidebar")
        self.sidebar: SidebarNode = rendered.sidebar
        self.heading_color = self.sidebar.accent_color

    def _content_width(self):
        return int(self._usable_width * (1 - SIDEBAR_RATIO)) - Mm(10)

    def _render_content(self) -> None:
        width = self._usable_width
        side_width = int(width * SIDEBAR_RATIO)

        table = self.doc.add_table(rows=1, cols=2)
        table.alignment = WD_TABLE_ALIGNMENT.CENTER
        table.autofit = False
        table.columns[0].width = side_width
        table.columns[1].width = width - side_width

        sidebar_cell, body_cell = table.rows[0].cells
        sidebar_cell.width = side_width
        body_cell.width = width - side_width
        _remove_cell_borders(sidebar_cell)
        _remove_cell_borders(body_cell)
        _set_cell_shading(sidebar_cell, self.sidebar.accent_color)

        self._render_sidebar(sidebar_cell)
        if self.rendered.body:
            # A new cell starts with one empty paragraph; the first title replaces it.
            empty = body_cell.paragraphs[0]._p
            empty.getparent().remove(empty)
        for node in self.rendered.body:
            self._section(body_cell, node)

    def _render_sidebar(self, cell) -> None:
        side = self.sidebar
        fg = side.text_color
        p = _first_paragraph(cell)
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER
        if side.photo:
            buf = circular_photo(side.photo, PHOTO_PT, self.settings.scale, self.settings.image_quality,
                                 side.accent_color)
            if buf is not None:
                p.add_run().add_picture(buf, width=Pt(PHOTO_PT))
                p = cell.add_paragraph()
                p.alignment = WD_ALIGN_PARAGRAPH.CENTER
        _add_run(p, side.name, fg, size=16, bold=True)
        _tight_paragraph(p, before_pt=6, after_pt=0)
        if side.tagline:
            tag = cell.add_paragraph()
            tag.alignment = WD_ALIGN_PARAGRAPH.CENTER
            _add_run(tag, side.tagline, fg, size=8)
            _tight_paragraph(tag, after_pt=8)

        if side.contact:
            self._sidebar_heading(cell, "CONTACT")
            for item in side.contact:
                line = cell.add_paragraph()
                _add_run(line, f"{item.label}: ", fg, size=8.5, bold=True)
                if item.link:
                    _add_hyperlink(line, item.value, item.link, fg, size=8.5)
                else:
                    _add_run(line, item.value, fg, size=8.5)
                _tight_paragraph(line, after_pt=2)

        if side.skills is not None:
            self._sidebar_heading(cell, side.skills.title)
            for block in side.skills.blocks:
                items = block.items if isinstance(block, (BulletList, TagsBlock)) else (getattr(block, "text", ""),)
                for item in items:
                    self._bullet(cell, item, fg)

    def _sidebar_heading(self, cell, title: str) -> None:
        p = cell.add_paragraph()
        _add_run(p, title, self.sidebar.text_color, size=10, bold=True)
        _tight_paragraph(p, before_pt=10, after_pt=4)


def create_docx_writer(rendered: RenderedDocument, settings: Optional[ExportSettings] = None) -> DocxWriterBase:
    if rendered.template is ResumeFormat.TWO_SIDE:
        return TwoSideDocxWriter(rendered, settings)
    return ClassicDocxWriter(rendered, settings)


def write_docx(rendered: RenderedDocument, out_path: Path, settings: Optional[ExportSettings] = None) -> None:
    create_docx_writer(rendered, settings).write(Path(out_path))
