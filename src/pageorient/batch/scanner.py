from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from pageorient._imaging import ImageIO
from pageorient.config import DEFAULT_PAGE_IMAGE_EXTENSIONS
from pageorient.rotation import clamp_page_number

PAGE_PATTERN = re.compile(r"^(.+)_p(\d+)\.\w+$")


class PageImageSource(Protocol):
    @property
    def page_count(self) -> int: ...

    def render(self, page: int, scale: float) -> bytes: ...


@dataclass(frozen=True, slots=True)
class ScannedPage:
    page_number: int
    source_file: str
    source_page: int
    image_name: str
    image_path: str


def scan_directory(
    input_directory: Path,
    supported_extensions: tuple[str, ...] = DEFAULT_PAGE_IMAGE_EXTENSIONS,
) -> list[ScannedPage]:
    all_image_paths = [
        image_path
        for image_path in input_directory.iterdir()
        if image_path.is_file() and image_path.suffix.lower() in supported_extensions
    ]

    keyed_paths: list[tuple[str, int, Path]] = []
    for image_path in all_image_paths:
        page_match = PAGE_PATTERN.match(image_path.name)
        if page_match:
            keyed_paths.append((page_match.group(1), int(page_match.group(2)), image_path))
        else:
            keyed_paths.append((image_path.stem, 1, image_path))

    keyed_paths.sort(key=lambda entry: (entry[0], entry[1], entry[2].name))

    return [
        ScannedPage(
            page_number=page_index + 1,
            source_file=source_file,
            source_page=source_page,
            image_name=image_path.name,
            image_path=str(image_path),
        )
        for page_index, (source_file, source_page, image_path) in enumerate(keyed_paths)
    ]


class DirectoryPageSource:
    """Pre-rendered page images in a directory, numbered in document order."""

    def __init__(
        self,
        directory: str | Path,
        supported_extensions: tuple[str, ...] = DEFAULT_PAGE_IMAGE_EXTENSIONS,
    ) -> None:
        self.directory = Path(directory)
        self.pages = scan_directory(self.directory, supported_extensions)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def page(self, page_number: int) -> ScannedPage:
        if not self.pages:
            raise LookupError(f"No page images found in {self.directory}")
        if page_number != clamp_page_number(page_number, self.page_count):
            raise LookupError(f"Page {page_number} is out of range 1..{self.page_count}")
        return self.pages[page_number - 1]

    def render(self, page: int, scale: float) -> bytes:
        image = ImageIO.open_path(self.page(page).image_path)
        scaled_image = ImageIO.downscale(image, scale)
        encoded = ImageIO.to_png_bytes(scaled_image)
        if scaled_image is not image:
            scaled_image.close()
        image.close()
        return encoded
