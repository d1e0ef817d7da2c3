# backend/app/services/watermark/processor.py
"""
Field photo watermarking.

Every work-order photo gets a provenance box (company, job, technician, time)
composited near one corner. The uploaded original is archived byte-for-byte
next to it, so the source of truth is never re-encoded.
"""
from __future__ import annotations

import logging
import math
import os
import shutil
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence, Union
from zoneinfo import ZoneInfo

from PIL import Image, ImageDraw, ImageFont, UnidentifiedImageError

from app.config import COMPANY_NAME, WATERMARK_TZ
from app.errors import FilesystemError, UnreadableImageError
from app.schemas.commons import PHOTO_CATEGORIES, OverlayPosition
from app.schemas.photo import PhotoAsset, PhotoLabel

logger = logging.getLogger(__name__)

DEFAULT_ACTOR = "Usuario"

FONT_SIZE = 16
LINE_SPACING = 4
CHAR_WIDTH_RATIO = 0.6  # approx. glyph width / font size
PADDING = 8
MARGIN = 20

BOX_FILL = (0, 0, 0, 179)  # black @ 70%
BOX_RADIUS = 5
TEXT_FILL = (255, 255, 255, 255)
BOLD_FONTS = ("DejaVuSans-Bold.ttf", "Arial Bold.ttf", "arialbd.ttf")

JPEG_QUALITY = 90

PathLike = Union[str, Path]
Box = tuple[int, int, int, int]  # left, top, width, height


def compose_label(
    job_reference: str,
    actor_name: str,
    taken_at: Optional[datetime] = None,
    company: str = COMPANY_NAME,
    tz: str = WATERMARK_TZ,
) -> PhotoLabel:
    zone = ZoneInfo(tz)
    if taken_at is None:
        taken_at = datetime.now(zone)
    elif taken_at.tzinfo is None:
        # naive times are already local wall-clock time
        taken_at = taken_at.replace(tzinfo=zone)
    else:
        taken_at = taken_at.astimezone(zone)

    return PhotoLabel(
        job_reference=job_reference or "",
        actor_name=(actor_name or "").strip() or DEFAULT_ACTOR,
        taken_at=taken_at,
        company=company,
    )


def overlay_box(
    image_size: tuple[int, int],
    lines: Sequence[str],
    font_size: int = FONT_SIZE,
    padding: int = PADDING,
    margin: int = MARGIN,
    position: OverlayPosition = "bottom-right",
) -> Box:
    """
    Box sized from character counts (not from font metrics) so the geometry
    does not depend on which fonts are installed.
    """
    img_w, img_h = image_size
    line_height = font_size + LINE_SPACING
    longest = max((len(line) for line in lines), default=0)
    width = math.ceil(longest * font_size * CHAR_WIDTH_RATIO) + padding * 2
    height = len(lines) * line_height + padding * 2

    if position == "bottom-right":
        left, top = img_w - width - margin, img_h - height - margin
    elif position == "bottom-left":
        left, top = margin, img_h - height - margin
    elif position == "top-right":
        left, top = img_w - width - margin, margin
    elif position == "top-left":
        left, top = margin, margin
    elif position == "center":
        left, top = (img_w - width) // 2, (img_h - height) // 2
    else:
        raise ValueError(f"unknown overlay position: {position!r}")

    return max(0, left), max(0, top), width, height


def _load_font(size: int) -> ImageFont.ImageFont | ImageFont.FreeTypeFont:
    for name in BOLD_FONTS:
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


def render_overlay(
    image: Image.Image,
    lines: Sequence[str],
    box: Box,
    font_size: int = FONT_SIZE,
    padding: int = PADDING,
) -> Image.Image:
    """Single alpha-composite pass: pixels outside the box are untouched."""
    base = image.convert("RGBA")
    layer = Image.new("RGBA", base.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(layer)

    left, top, width, height = box
    draw.rounded_rectangle(
        [left, top, left + width - 1, top + height - 1],
        radius=BOX_RADIUS,
        fill=BOX_FILL,
    )
    font = _load_font(font_size)
    line_height = font_size + LINE_SPACING
    for i, line in enumerate(lines):
        draw.text((left + padding, top + padding + i * line_height), line, font=font, fill=TEXT_FILL)

    return Image.alpha_composite(base, layer).convert("RGB")


def _load_image(path: Path) -> Image.Image:
    try:
        with Image.open(path) as img:
            img.load()
            return img.copy()
    except UnidentifiedImageError as e:
        raise UnreadableImageError(f"not a decodable image: {path.name}", details=str(e)) from e
    except Image.DecompressionBombError as e:
        raise UnreadableImageError(f"image too large: {path.name}", details=str(e)) from e
    except (FileNotFoundError, IsADirectoryError, PermissionError) as e:
        raise FilesystemError(f"cannot read {path}", details=str(e)) from e
    except (OSError, SyntaxError, ValueError) as e:
        # truncated or corrupt pixel data
        raise UnreadableImageError(f"corrupt image: {path.name}", details=str(e)) from e


def _write_jpeg(image: Image.Image, path: Path) -> None:
    # encode to a sibling and rename, so a failed write never leaves `path` behind
    partial = path.with_name(path.name + ".partial")
    try:
        image.save(partial, format="JPEG", quality=JPEG_QUALITY)
        os.replace(partial, path)
    except OSError as e:
        partial.unlink(missing_ok=True)
        raise FilesystemError(f"cannot write {path}", details=str(e)) from e


def derived_paths(source: Path, output_dir: Optional[Path] = None) -> tuple[Path, Path]:
    """(original archive path, watermarked path) for a source file."""
    out_dir = output_dir if output_dir is not None else source.parent
    return (
        out_dir / f"{source.stem}_original{source.suffix}",
        out_dir / f"{source.stem}_watermarked.jpg",
    )


def process_photo(
    source_path: PathLike,
    job_reference: str,
    actor_name: str,
    photo_category: str = "general",
    output_dir: Optional[PathLike] = None,
    taken_at: Optional[datetime] = None,
    company: str = COMPANY_NAME,
    tz: str = WATERMARK_TZ,
    position: OverlayPosition = "bottom-right",
) -> PhotoAsset:
    """
    Archive `source_path` and write a watermarked JPEG next to it (or into
    `output_dir`). Nothing is deleted; the caller owns all three files.

    Raises UnreadableImageError for undecodable input and FilesystemError
    when reading or writing fails. If compositing fails after the archive
    copy was written, the archive stays and no watermarked file exists.
    """
    if photo_category not in PHOTO_CATEGORIES:
        raise ValueError(f"unknown photo category: {photo_category!r}")

    source = Path(source_path)
    original_path, watermarked_path = derived_paths(
        source, Path(output_dir) if output_dir is not None else None
    )

    image = _load_image(source)
    label = compose_label(job_reference, actor_name, taken_at=taken_at, company=company, tz=tz)

    # 1) archive copy, no re-encoding
    try:
        original_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, original_path)
    except OSError as e:
        raise FilesystemError(f"cannot archive {source.name}", details=str(e)) from e

    # 2) composite + encode
    lines = label.lines()
    box = overlay_box(image.size, lines, position=position)
    _write_jpeg(render_overlay(image, lines, box), watermarked_path)

    logger.info(
        f"Watermarked {source.name} ({image.width}x{image.height}) "
        f"for job {label.job_reference} -> {watermarked_path.name}"
    )
    return PhotoAsset(
        source_path=source,
        original_path=original_path,
        watermarked_path=watermarked_path,
        label=label,
        category=photo_category,
        width=image.width,
        height=image.height,
    )
