"""
Image optimisation for the target reader, plus the generated cover.
"""
import io
import logging
import textwrap

from PIL import Image, ImageDraw, ImageFont

from .models import PageImage
from .profiles import ImageSettings, Profile

logger = logging.getLogger(__name__)

MEDIA_TYPES = {
    "webp": ("webp", "image/webp"),
    "jpeg": ("jpg", "image/jpeg"),
    "png": ("png", "image/png"),
}

COVER_SIZE = (1800, 2700)  # 2:3, the usual book cover ratio


class ImageProcessor:
    def __init__(self, profile: Profile):
        self.profile = profile
        self.settings: ImageSettings = profile.image_settings()

    def select_format(self) -> str:
        if "webp" in self.settings.supported_formats:
            return "webp"
        if self.settings.format in MEDIA_TYPES:
            return self.settings.format
        return "jpeg"

    def resize(self, img: Image.Image) -> Image.Image:
        """Shrink to fit the reader's maximum image size, keeping aspect ratio."""
        width, height = img.size
        max_w, max_h = self.settings.max_width, self.settings.max_height
        if width <= max_w and height <= max_h:
            return img

        ratio = width / height
        if ratio > max_w / max_h:
            new_size = (max_w, max(1, int(max_w / ratio)))
        else:
            new_size = (max(1, int(max_h * ratio)), max_h)
        return img.resize(new_size, Image.Resampling.LANCZOS)

    def process(self, img: Image.Image) -> PageImage:
        img = self.resize(img)

        if self.settings.grayscale:
            img = img.convert("L")
        elif img.mode not in ("RGB", "L"):
            img = img.convert("RGB")

        fmt = self.select_format()
        extension, media_type = MEDIA_TYPES[fmt]

        buffer = io.BytesIO()
        if fmt == "png":
            img.save(buffer, "PNG", optimize=True)
        else:
            img.save(buffer, fmt.upper(), quality=self.settings.quality, optimize=True)

        logger.debug(f"Optimised image to {img.size[0]}x{img.size[1]} {fmt} ({buffer.tell()} bytes)")
        return PageImage(
            data=buffer.getvalue(),
            extension=extension,
            media_type=media_type,
            width=img.size[0],
            height=img.size[1],
        )


def _load_fonts():
    for title_path, author_path in (
        ("/usr/share/fonts/truetype/dejavu/DejaVuSerif-Bold.ttf", "/usr/share/fonts/truetype/dejavu/DejaVuSerif.ttf"),
        ("/Library/Fonts/Georgia Bold.ttf", "/Library/Fonts/Georgia.ttf"),
    ):
        try:
            return ImageFont.truetype(title_path, 160), ImageFont.truetype(author_path, 120)
        except OSError:
            continue
    logger.warning("System fonts not found, using default font. Cover quality may be reduced.")
    return ImageFont.load_default(), ImageFont.load_default()


def generate_cover_image(title: str, author: str, profile: Profile) -> PageImage:
    """Draw a plain typographic cover and optimise it for ``profile``."""
    width, height = COVER_SIZE
    img = Image.new("RGB", COVER_SIZE, "white")
    draw = ImageDraw.Draw(img)
    title_font, author_font = _load_fonts()

    border_width = 100
    for i in range(border_width):
        shade = 200 + i // 2
        draw.rectangle([i, i, width - 1 - i, height - 1 - i], outline=(shade, shade, shade), width=1)

    y = height // 3
    for line in textwrap.wrap(title, width=25):
        bbox = draw.textbbox((0, 0), line, font=title_font)
        x = (width - (bbox[2] - bbox[0])) // 2
        draw.text((x + 3, y + 3), line, fill=(100, 100, 100), font=title_font)
        draw.text((x, y), line, fill="black", font=title_font)
        y += (bbox[3] - bbox[1]) + 40

    y += 200
    for line in textwrap.wrap(author, width=30):
        bbox = draw.textbbox((0, 0), line, font=author_font)
        x = (width - (bbox[2] - bbox[0])) // 2
        draw.text((x, y), line, fill=(80, 80, 80), font=author_font)
        y += (bbox[3] - bbox[1]) + 40

    return ImageProcessor(profile).process(img)
