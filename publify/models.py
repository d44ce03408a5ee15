from dataclasses import dataclass
from typing import Optional

from .pagerange import PageType


@dataclass(frozen=True)
class PageImage:
    """An optimised bitmap ready to be stored in the EPUB."""

    data: bytes
    extension: str
    media_type: str
    width: int
    height: int


@dataclass(frozen=True)
class Page:
    """One extracted PDF page.

    Every field is populated in a single pass during extraction; ``final_text``
    is the cleaned text that survived classification and is what the chapter
    segmenter and the EPUB assembler consume.
    """

    number: int
    raw_text: str = ""
    ocr_text: Optional[str] = None
    final_text: str = ""
    classified_as_noise: bool = False
    skipped: bool = False
    page_type: PageType = PageType.TEXT
    image: Optional[PageImage] = None

    @property
    def has_text(self) -> bool:
        return bool(self.final_text.strip())

    @property
    def has_image(self) -> bool:
        return self.image is not None
