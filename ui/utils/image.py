"""Image utilities for the face label client."""

from typing import Sequence
from PIL import Image, ImageDraw

# Constants
LABEL_BACKGROUND_COLORS = {
    "match": (0, 255, 0),     # Green for matches
    "unknown": (255, 255, 0), # Yellow for unmatched faces
}

def draw_bbox_with_label(
    image: Image.Image,
    bbox: Sequence[int],
    label: str,
    status: str = "unknown"
) -> Image.Image:
    """Draw an (x, y, w, h) bounding box with a label above it on a copy of ``image``."""
    image_copy = image.convert("RGB")
    draw = ImageDraw.Draw(image_copy)

    x, y, w, h = bbox
    color = LABEL_BACKGROUND_COLORS.get(status, LABEL_BACKGROUND_COLORS["unknown"])
    draw.rectangle([(x, y), (x + w, y + h)], outline=color, width=3)

    # Label background, kept inside the image
    text_w, text_h = draw.textbbox((0, 0), label)[2:4]
    top = max(y - text_h - 4, 0)
    draw.rectangle([(x, top), (x + text_w + 4, top + text_h + 4)], fill=color)
    draw.text((x + 2, top + 2), label, fill=(0, 0, 0))

    return image_copy
