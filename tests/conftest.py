import io

import pytest
from PIL import Image, ImageDraw

from pageorient.types import BoundingBox, OrientationResponse, Recognition, WordCandidate

IMAGE_WIDTH = 800
IMAGE_HEIGHT = 1000


def _encode_png(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, "PNG")
    return buffer.getvalue()


def _create_page_image(width: int, height: int) -> Image.Image:
    image = Image.new("RGB", (width, height), color=(255, 255, 255))
    draw = ImageDraw.Draw(image)
    for y_position in range(40, height - 120, 30):
        draw.line([(40, y_position), (width - 40, y_position)], fill=(0, 0, 0), width=2)
    return image


def make_word(text, confidence, y1=IMAGE_HEIGHT - 20, height=20):
    return WordCandidate(
        text=text,
        confidence=confidence,
        bbox=BoundingBox(x0=380.0, y0=float(y1 - height), x1=420.0, y1=float(y1)),
    )


def make_response(rotation, likelihood=0.9):
    return OrientationResponse(
        rotation=rotation,
        confidence=likelihood,
        likelihood=likelihood,
        processing_ms=5,
    )


class StubSweep:
    """Rotate/recognize pair that serves canned words per candidate rotation."""

    def __init__(self, words_by_rotation, height=IMAGE_HEIGHT, failing_rotations=()):
        self.words_by_rotation = words_by_rotation
        self.height = height
        self.failing_rotations = set(failing_rotations)
        self.recognized_rotations = []

    def rotate(self, image_bytes, degrees):
        return f"rotated:{degrees}".encode()

    def recognize(self, image_bytes):
        rotation = int(image_bytes.decode().split(":")[1])
        self.recognized_rotations.append(rotation)
        if rotation in self.failing_rotations:
            raise RuntimeError(f"recognition failed at {rotation}")
        words = tuple(self.words_by_rotation.get(rotation, ()))
        return Recognition(
            text=" ".join(word.text for word in words),
            words=words,
            width=IMAGE_WIDTH,
            height=self.height,
        )


@pytest.fixture
def page_image() -> Image.Image:
    return _create_page_image(IMAGE_WIDTH, IMAGE_HEIGHT)


@pytest.fixture
def page_png_bytes(page_image) -> bytes:
    return _encode_png(page_image)


@pytest.fixture
def small_png_bytes() -> bytes:
    return _encode_png(Image.new("RGB", (60, 80), color=(255, 255, 255)))


@pytest.fixture
def tmp_pages_dir(tmp_path):
    pages_dir = tmp_path / "pages"
    pages_dir.mkdir()
    return pages_dir


@pytest.fixture
def populated_pages_dir(tmp_pages_dir, page_image):
    for page_index in range(3):
        page_image.save(tmp_pages_dir / f"scan_p{page_index + 1}.png", "PNG")
    return tmp_pages_dir
