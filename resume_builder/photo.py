"""Profile photo transcoding for the TwoSide sidebar.

Uploads are checked (type, raw size), decoded with EXIF orientation applied,
scaled so the larger side fits ``photo_max_dimension`` and re-encoded as a
JPEG data URL. Any rejection leaves the document untouched.
"""
from __future__ import annotations

import base64
import io
import logging
import mimetypes
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image, ImageDraw, ImageOps, UnidentifiedImageError

from .config import LimitSettings
from .errors import NotFoundError, PhotoError, ResourceLimitError, ValidationError
from .model import ResumeDocument

LOG = logging.getLogger(__name__)

ALLOWED_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/webp")
DATA_URL_PREFIX = "data:image/jpeg;base64,"


@dataclass(frozen=True)
class PhotoUpload:
    filename: str
    data: bytes
    content_type: str = ""

    @property
    def mime_type(self) -> str:
        if self.content_type:
            return self.content_type.lower()
        guessed, _ = mimetypes.guess_type(self.filename)
        return (guessed or "").lower()

    @classmethod
    def from_path(cls, path: str, content_type: str = "") -> "PhotoUpload":
        p = Path(path)
        if not p.is_file():
            raise NotFoundError(f"Photo not found: {path}")
        return cls(filename=p.name, data=p.read_bytes(), content_type=content_type)


def compute_resize(width: int, height: int, max_dimension: int) -> Tuple[int, int]:
    """Scale (width, height) so the larger side is at most ``max_dimension``.

    Landscape images are bounded by width, everything else by height.
    Results are truncated to whole pixels and never drop below 1.
    """
    w, h = float(width), float(height)
    if w > h and w > max_dimension:
        h = h * max_dimension / w
        w = max_dimension
    elif h > max_dimension:
        w = w * max_dimension / h
        h = max_dimension
    return max(1, int(w)), max(1, int(h))


class ImageTranscoder(ABC):
    """Decode, resize and re-encode an image as JPEG bytes."""

    @abstractmethod
    def transcode(self, data: bytes, max_dimension: int, quality: float) -> bytes:
        ...


class PillowTranscoder(ImageTranscoder):
    def transcode(self, data: bytes, max_dimension: int, quality: float) -> bytes:
        try:
            with Image.open(io.BytesIO(data)) as src:
                img = ImageOps.exif_transpose(src)
                img.load()
        except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as exc:
            raise PhotoError("Failed to load image", hint=str(exc)) from exc

        if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
            rgba = img.convert("RGBA")
            # JPEG has no alpha; flatten onto white like a canvas export would.
            bg = Image.new("RGB", rgba.size, (255, 255, 255))
            bg.paste(rgba, mask=rgba.split()[-1])
            img = bg
        elif img.mode != "RGB":
            img = img.convert("RGB")

        size = compute_resize(img.width, img.height, max_dimension)
        if size != img.size:
            img = img.resize(size, Image.Resampling.LANCZOS)

        out = io.BytesIO()
        try:
            img.save(out, format="JPEG", quality=max(1, min(95, int(round(quality * 100)))))
        except OSError as exc:
            raise PhotoError("Failed to upload photo", hint=str(exc)) from exc
        return out.getvalue()


def encoded_size_kb(data_url: str) -> float:
    return (len(data_url) * 3 / 4) / 1024


def upload_photo(
    doc: ResumeDocument,
    upload: PhotoUpload,
    transcoder: Optional[ImageTranscoder] = None,
    limits: Optional[LimitSettings] = None,
) -> ResumeDocument:
    """Return ``doc`` with ``upload`` stored as the profile photo."""
    limits = limits or LimitSettings()
    transcoder = transcoder or PillowTranscoder()

    if upload.mime_type not in ALLOWED_TYPES:
        raise ValidationError(
            "Please upload a valid image file (JPG, PNG, or WebP)",
            hint=f"Got {upload.mime_type or 'unknown type'} for {upload.filename}",
        )
    if len(upload.data) > limits.photo_max_upload_bytes:
        raise ResourceLimitError(
            f"Image size should be less than {limits.photo_max_upload_bytes // (1024 * 1024)}MB"
        )

    jpeg = transcoder.transcode(upload.data, limits.photo_max_dimension, limits.photo_quality)
    data_url = DATA_URL_PREFIX + base64.b64encode(jpeg).decode("ascii")
    size_kb = encoded_size_kb(data_url)
    LOG.debug("compressed photo size: %.2f KB", size_kb)
    if size_kb > limits.photo_max_encoded_kb:
        raise ResourceLimitError("Compressed image is still too large. Please use a smaller image.")

    return replace(doc, personal_info=replace(doc.personal_info, photo=data_url))


def remove_photo(doc: ResumeDocument) -> ResumeDocument:
    return replace(doc, personal_info=replace(doc.personal_info, photo=""))


def decode_data_url(data_url: str) -> Optional[bytes]:
    """Return the raw bytes of a base64 data URL, or None if it is not one."""
    if not data_url or not data_url.startswith("data:") or "," not in data_url:
        return None
    header, payload = data_url.split(",", 1)
    if ";base64" not in header:
        return None
    try:
        return base64.b64decode(payload, validate=False)
    except ValueError:
        LOG.warning("photo data URL is not valid base64")
        return None


def circular_photo(data_url: str, size_pt: float, scale: float, quality: float, background: str) -> Optional[io.BytesIO]:
    """Centre-crop the stored photo into a circle on ``background``.

    The bitmap is ``size_pt * scale`` pixels square so it stays sharp when
    embedded at ``size_pt``. Returns JPEG bytes, or None if there is no
    decodable photo.
    """
    raw = decode_data_url(data_url)
    if not raw:
        return None
    try:
        with Image.open(io.BytesIO(raw)) as src:
            img = src.convert("RGB")
    except (UnidentifiedImageError, OSError):
        LOG.warning("photo could not be decoded; exporting without it")
        return None
    px = max(1, int(size_pt * scale))
    img = ImageOps.fit(img, (px, px), Image.Resampling.LANCZOS)
    mask = Image.new("L", (px, px), 0)
    ImageDraw.Draw(mask).ellipse((0, 0, px - 1, px - 1), fill=255)
    out = Image.new("RGB", (px, px), background)
    out.paste(img, (0, 0), mask)
    buf = io.BytesIO()
    out.save(buf, format="JPEG", quality=max(1, min(100, int(round(quality * 100)))))
    buf.seek(0)
    return buf
