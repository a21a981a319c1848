"""
Garment preview compositing.

derive_preview() turns a SelectionState into a render description that the
browser (or render_preview_png) draws. It is a pure function of the state:
no clock, no I/O, frozen dataclasses all the way down, so two snapshots that
compare equal always produce descriptions that compare equal.
"""
import io
import logging
from dataclasses import dataclass, asdict
from typing import Optional, Tuple

from PIL import Image, ImageColor, ImageDraw

from constants import (
    PREVIEW_CANVAS_SIZE,
    PREVIEW_FRAME_HEX,
    PREVIEW_GARMENT_OPACITY,
    PREVIEW_ARTWORK_BOX,
    PREVIEW_ARTWORK_CENTER_PCT,
    PREVIEW_PLACEHOLDER_LABEL,
    GARMENT_SILHOUETTE_PCT,
)
from models import get_color_option
from utils.uploads import decode_data_uri

logger = logging.getLogger(__name__)

FRAME_WIDTH_PX = 4
PLACEHOLDER_TEXT_HEX = "#9ca3af"


@dataclass(frozen=True)
class GarmentShape:
    color_key: str
    fill_hex: str
    border_hex: Optional[str]
    opacity: float
    outline_pct: Tuple[Tuple[float, float], ...]


@dataclass(frozen=True)
class ArtworkOverlay:
    data_uri: str
    mime_type: str
    box_width: int
    box_height: int
    width: int
    height: int
    left: float
    top: float


@dataclass(frozen=True)
class Placeholder:
    label: str


@dataclass(frozen=True)
class PreviewDescription:
    canvas_width: int
    canvas_height: int
    frame_hex: str
    garment: GarmentShape
    overlay: Optional[ArtworkOverlay] = None
    placeholder: Optional[Placeholder] = None

    def to_dict(self, include_image=True):
        data = asdict(self)
        data["garment"]["outline_pct"] = [list(p) for p in self.garment.outline_pct]
        if data["overlay"] and not include_image:
            data["overlay"].pop("data_uri")
        return data


def contain_fit(native_width, native_height, box_width, box_height):
    """
    Fit an image inside a box preserving aspect ratio, never upscaling.

    Unknown native dimensions (vector artwork) take the whole box.
    """
    if not native_width or not native_height:
        return box_width, box_height

    scale = min(1.0, box_width / native_width, box_height / native_height)
    width = max(1, int(round(native_width * scale)))
    height = max(1, int(round(native_height * scale)))
    return width, height


def _garment_for(color_key):
    color = get_color_option(color_key)
    return GarmentShape(
        color_key=color.key,
        fill_hex=color.hex_value,
        border_hex=color.border_hex_value,
        opacity=PREVIEW_GARMENT_OPACITY,
        outline_pct=GARMENT_SILHOUETTE_PCT,
    )


def _overlay_for(artwork, canvas_width, canvas_height):
    box_width, box_height = PREVIEW_ARTWORK_BOX
    width, height = contain_fit(artwork.width, artwork.height, box_width, box_height)

    center_x = canvas_width * PREVIEW_ARTWORK_CENTER_PCT[0] / 100.0
    center_y = canvas_height * PREVIEW_ARTWORK_CENTER_PCT[1] / 100.0

    return ArtworkOverlay(
        data_uri=artwork.data_uri,
        mime_type=artwork.mime_type,
        box_width=box_width,
        box_height=box_height,
        width=width,
        height=height,
        left=center_x - width / 2.0,
        top=center_y - height / 2.0,
    )


def derive_preview(state) -> PreviewDescription:
    canvas_width, canvas_height = PREVIEW_CANVAS_SIZE
    garment = _garment_for(state.color_key)

    if state.artwork is not None:
        return PreviewDescription(
            canvas_width=canvas_width,
            canvas_height=canvas_height,
            frame_hex=PREVIEW_FRAME_HEX,
            garment=garment,
            overlay=_overlay_for(state.artwork, canvas_width, canvas_height),
        )

    return PreviewDescription(
        canvas_width=canvas_width,
        canvas_height=canvas_height,
        frame_hex=PREVIEW_FRAME_HEX,
        garment=garment,
        placeholder=Placeholder(label=PREVIEW_PLACEHOLDER_LABEL),
    )


def _rgba(hex_value, opacity=1.0):
    r, g, b = ImageColor.getrgb(hex_value)[:3]
    return r, g, b, int(round(255 * opacity))


def _draw_garment(canvas, garment):
    width, height = canvas.size
    points = [(x * width / 100.0, y * height / 100.0) for x, y in garment.outline_pct]

    layer = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(layer)
    draw.polygon(points, fill=_rgba(garment.fill_hex, garment.opacity), outline=_rgba(garment.border_hex) if garment.border_hex else None)
    return Image.alpha_composite(canvas, layer)


def _draw_overlay(canvas, overlay):
    box = (
        int(round(overlay.left)),
        int(round(overlay.top)),
        int(round(overlay.left + overlay.width)),
        int(round(overlay.top + overlay.height)),
    )

    try:
        with Image.open(io.BytesIO(decode_data_uri(overlay.data_uri))) as art:
            art = art.convert("RGBA").resize((overlay.width, overlay.height), Image.Resampling.LANCZOS)
    except (OSError, ValueError) as e:
        # Vector artwork (or anything Pillow cannot rasterize) is drawn as its bounding box
        logger.info(f"[Preview] Drawing overlay box only for {overlay.mime_type}: {e}")
        draw = ImageDraw.Draw(canvas)
        draw.rectangle(box, outline=_rgba(PLACEHOLDER_TEXT_HEX), width=2)
        return canvas

    layer = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
    layer.paste(art, box[:2])
    return Image.alpha_composite(canvas, layer)


def _draw_placeholder(canvas, placeholder):
    draw = ImageDraw.Draw(canvas)
    left, top, right, bottom = draw.textbbox((0, 0), placeholder.label)
    x = (canvas.width - (right - left)) / 2.0
    y = (canvas.height - (bottom - top)) / 2.0
    draw.text((x, y), placeholder.label, fill=_rgba(PLACEHOLDER_TEXT_HEX))
    return canvas


def render_preview_png(description: PreviewDescription) -> bytes:
    """Rasterize a preview description to PNG bytes."""
    canvas = Image.new("RGBA", (description.canvas_width, description.canvas_height), (255, 255, 255, 255))
    canvas = _draw_garment(canvas, description.garment)

    if description.overlay:
        canvas = _draw_overlay(canvas, description.overlay)
    elif description.placeholder:
        canvas = _draw_placeholder(canvas, description.placeholder)

    draw = ImageDraw.Draw(canvas)
    draw.rectangle(
        (0, 0, description.canvas_width - 1, description.canvas_height - 1),
        outline=_rgba(description.frame_hex),
        width=FRAME_WIDTH_PX,
    )

    out = io.BytesIO()
    canvas.convert("RGB").save(out, format="PNG")
    return out.getvalue()
