from __future__ import annotations

import io
from pathlib import Path

from PIL import Image

from pageorient.rotation import normalize_rotation


class ImageIO:
    @staticmethod
    def open_bytes(image_bytes: bytes) -> Image.Image:
        image = Image.open(io.BytesIO(image_bytes))
        image.load()
        return image

    @staticmethod
    def read_size(image_bytes: bytes) -> tuple[int, int] | None:
        try:
            with Image.open(io.BytesIO(image_bytes)) as image:
                image_width, image_height = image.size
        except (OSError, ValueError):
            return None
        if image_width <= 0 or image_height <= 0:
            return None
        return image_width, image_height

    @staticmethod
    def to_png_bytes(image: Image.Image) -> bytes:
        buffer = io.BytesIO()
        image.save(buffer, "PNG")
        return buffer.getvalue()

    @staticmethod
    def rotate_clockwise(image_bytes: bytes, degrees: int) -> bytes:
        quarter_turn = normalize_rotation(degrees)
        if quarter_turn == 0:
            return image_bytes
        image = ImageIO.open_bytes(image_bytes)
        rotated_image = image.rotate(-quarter_turn, expand=True)
        encoded = ImageIO.to_png_bytes(rotated_image)
        rotated_image.close()
        image.close()
        return encoded

    @staticmethod
    def downscale(image: Image.Image, scale: float) -> Image.Image:
        if scale >= 1.0:
            return image

        image_width, image_height = image.size
        target_width = max(1, int(image_width * scale))
        target_height = max(1, int(image_height * scale))
        return image.resize((target_width, target_height), Image.LANCZOS)

    @staticmethod
    def open_path(image_path: str | Path) -> Image.Image:
        return Image.open(image_path).convert("RGB")
