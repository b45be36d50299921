"""Circle-and-label overlay for scanned records.

Each code is circled and its sequence number plus decoded value is drawn
above the circle. Drawing happens in normalized-frame pixel space, the same
space the records' rectangles are defined in.
"""

from typing import Optional, Sequence, Tuple

from PIL import Image, ImageDraw, ImageFont

from ..config import default_config
from ..contracts import VialRecord


def circle_geometry(record: VialRecord, padding: float) -> Tuple[float, float, float]:
    """
    Center and radius of the annotation circle.

    The radius covers the longest side of the rect, so slightly rotated
    (non-square or negative-extent) rectangles are still enclosed.
    """
    rect = record.bounding_rect.normalized()
    radius = max(rect.width, rect.height) / 2 + padding
    return rect.mid_x, rect.mid_y, radius


def render_annotations(
    image: Image.Image,
    records: Sequence[VialRecord],
    circle_color: Tuple[int, int, int] = default_config.circle_color,
    label_color: Tuple[int, int, int] = default_config.label_color,
    line_width: int = default_config.circle_line_width,
    padding: int = default_config.circle_padding,
    label_gap: int = default_config.label_gap,
    font: Optional[ImageFont.ImageFont] = None,
) -> Image.Image:
    """
    Draw annotations on a copy of `image`.

    Args:
        image: Normalized frame the records were detected in
        records: Records to annotate, numbered in list order from 1
        circle_color: RGB outline color
        label_color: RGB label color
        line_width: Circle outline width in pixels
        padding: Extra radius around the code
        label_gap: Pixels between the label and the top of the circle
        font: PIL font (default bitmap font if None)

    Returns:
        New RGB image with the same size as `image`
    """
    annotated = image.convert("RGB")  # always a copy
    draw = ImageDraw.Draw(annotated)
    if font is None:
        font = ImageFont.load_default()

    for index, record in enumerate(records, start=1):
        cx, cy, radius = circle_geometry(record, padding)
        draw.ellipse(
            (cx - radius, cy - radius, cx + radius, cy + radius),
            outline=circle_color,
            width=line_width,
        )

        label = f"{index}: {record.value}"
        left, top, right, bottom = draw.textbbox((0, 0), label, font=font)
        label_w, label_h = right - left, bottom - top
        origin = (cx - label_w / 2, cy - radius - label_h - label_gap)
        draw.text(origin, label, fill=label_color, font=font)

    return annotated
