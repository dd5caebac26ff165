"""Document export entry point.

Exporters consume a ``RenderedDocument`` (never the raw model) and write
through a temporary file in the destination directory, so a failed export
leaves no partial file behind.
"""
from __future__ import annotations

import logging
import os
import re
import tempfile
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Iterator, Optional

from .config import ExportSettings
from .errors import ExportError, ResumeBuilderError
from .model import ResumeFormat
from .render_nodes import RenderedDocument

LOG = logging.getLogger(__name__)

FILENAME_SUFFIX = {
    ResumeFormat.CLASSIC: "_Dynamic",
    ResumeFormat.TWO_SIDE: "_TwoSide",
}


class ExportFormat(str, Enum):
    PDF = "pdf"
    DOCX = "docx"


def export_filename(person_name: str, template: ResumeFormat, fmt: ExportFormat = ExportFormat.PDF) -> str:
    """``"Jane  Doe"`` -> ``"Jane_Doe_Dynamic.pdf"``; empty names become ``Resume``."""
    stem = re.sub(r"\s+", "_", (person_name or "").strip()) or "Resume"
    return f"{stem}{FILENAME_SUFFIX[ResumeFormat(template)]}.{ExportFormat(fmt).value}"


@contextmanager
def atomic_output(path: Path) -> Iterator[Path]:
    """Yield a temp path beside ``path``; move it into place on success."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    os.close(fd)
    tmp = Path(tmp_name)
    try:
        yield tmp
        os.replace(tmp, path)
    finally:
        if tmp.exists():
            tmp.unlink()


def export_document(
    rendered: RenderedDocument,
    out: Optional[str] = None,
    fmt: ExportFormat = ExportFormat.PDF,
    settings: Optional[ExportSettings] = None,
) -> Path:
    """Write ``rendered`` as PDF or DOCX and return the output path.

    ``out`` may be a file path, a directory (the derived filename is used
    inside it) or None (current directory).
    """
    fmt = ExportFormat(fmt)
    settings = settings or ExportSettings()
    name = export_filename(rendered.person_name, rendered.template, fmt)
    if out is None:
        path = Path(name)
    else:
        path = Path(out)
        if path.is_dir():
            path = path / name

    if fmt is ExportFormat.DOCX:
        from .export_docx import write_docx as writer
    else:
        from .export_pdf import write_pdf as writer

    try:
        with atomic_output(path) as tmp:
            writer(rendered, tmp, settings)
    except ResumeBuilderError:
        raise
    except Exception as exc:
        LOG.debug("export failed", exc_info=True)
        raise ExportError(f"Failed to generate {fmt.value.upper()}. Please try again.", hint=str(exc)) from exc
    LOG.info("exported %s", path)
    return path
