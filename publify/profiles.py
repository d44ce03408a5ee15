"""
E-reader profiles: what each target device can display and how hard to
squeeze content for it.
"""
from dataclasses import dataclass, field, replace
from typing import Dict, Tuple


@dataclass(frozen=True)
class DeviceCapabilities:
    screen_width: int
    screen_height: int
    dpi: int

    supports_color: bool
    color_depth: int  # bits per pixel

    max_image_width: int
    max_image_height: int
    image_quality: int  # JPEG/WebP quality, 1-100
    compression_level: str  # low|medium|high

    supported_image_formats: Tuple[str, ...]
    preferred_image_format: str

    target_size_ratio: float  # output size as a fraction of the input PDF
    strip_unsupported_content: bool = True
    aggressive_compression: bool = True
    optimize_for_size: bool = True

    supports_advanced_typography: bool = False
    default_font_size: int = 12


@dataclass(frozen=True)
class ImageSettings:
    max_width: int
    max_height: int
    quality: int
    format: str
    grayscale: bool
    compression_level: str
    supported_formats: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Profile:
    name: str
    manufacturer: str
    model: str
    capabilities: DeviceCapabilities

    def image_settings(self) -> ImageSettings:
        caps = self.capabilities
        return ImageSettings(
            max_width=caps.max_image_width,
            max_height=caps.max_image_height,
            quality=caps.image_quality,
            format=caps.preferred_image_format,
            grayscale=not caps.supports_color,
            compression_level=caps.compression_level,
            supported_formats=caps.supported_image_formats,
        )

    def with_color(self, enabled: bool) -> "Profile":
        """Copy of this profile with colour forced off (or left on if the device has it)."""
        supports = enabled and self.capabilities.supports_color
        return replace(self, capabilities=replace(self.capabilities, supports_color=supports))


_PROFILES: Dict[str, Profile] = {
    "kobo": Profile(
        name="Kobo Libra Colour",
        manufacturer="Kobo",
        model="Libra Colour",
        capabilities=DeviceCapabilities(
            screen_width=1264,
            screen_height=1680,
            dpi=300,
            supports_color=True,
            color_depth=24,
            max_image_width=1200,
            max_image_height=1600,
            image_quality=85,
            compression_level="high",
            supported_image_formats=("webp", "jpeg", "png"),
            preferred_image_format="webp",
            target_size_ratio=0.25,
            supports_advanced_typography=True,
        ),
    ),
    "kobo-bw": Profile(
        name="Kobo Clara/Libra (B&W)",
        manufacturer="Kobo",
        model="Clara/Libra B&W",
        capabilities=DeviceCapabilities(
            screen_width=1264,
            screen_height=1680,
            dpi=300,
            supports_color=False,
            color_depth=8,
            max_image_width=1200,
            max_image_height=1600,
            image_quality=90,
            compression_level="high",
            supported_image_formats=("webp", "jpeg", "png"),
            preferred_image_format="webp",
            target_size_ratio=0.15,
            supports_advanced_typography=True,
        ),
    ),
    "kindle": Profile(
        name="Kindle Paperwhite",
        manufacturer="Amazon",
        model="Paperwhite",
        capabilities=DeviceCapabilities(
            screen_width=1236,
            screen_height=1648,
            dpi=300,
            supports_color=False,
            color_depth=8,
            max_image_width=1200,
            max_image_height=1600,
            image_quality=85,
            compression_level="high",
            # no WebP on Kindle
            supported_image_formats=("jpeg", "png"),
            preferred_image_format="jpeg",
            target_size_ratio=0.2,
        ),
    ),
    "kindle-oasis": Profile(
        name="Kindle Oasis",
        manufacturer="Amazon",
        model="Oasis",
        capabilities=DeviceCapabilities(
            screen_width=1264,
            screen_height=1680,
            dpi=300,
            supports_color=False,
            color_depth=8,
            max_image_width=1200,
            max_image_height=1600,
            image_quality=90,
            compression_level="high",
            supported_image_formats=("jpeg", "png"),
            preferred_image_format="jpeg",
            target_size_ratio=0.25,
        ),
    ),
    "generic": Profile(
        name="Generic E-Reader",
        manufacturer="Generic",
        model="Standard",
        capabilities=DeviceCapabilities(
            screen_width=800,
            screen_height=1200,
            dpi=200,
            supports_color=False,
            color_depth=8,
            max_image_width=750,
            max_image_height=1100,
            image_quality=75,
            compression_level="high",
            supported_image_formats=("jpeg", "png"),
            preferred_image_format="jpeg",
            target_size_ratio=0.3,
        ),
    ),
}


def get_profile(name: str) -> Profile:
    key = name.strip().lower()
    if key in _PROFILES:
        return _PROFILES[key]
    available = ", ".join(sorted(_PROFILES))
    raise ValueError(f"unknown reader profile '{name}'. Available profiles: {available}")


def list_profiles() -> Dict[str, Profile]:
    return dict(_PROFILES)
