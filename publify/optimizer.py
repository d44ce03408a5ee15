"""
Shrink chapter XHTML and stylesheets for the target reader.

E-ink readers ignore most decorative CSS; removing it (and colour on
monochrome devices) keeps the book small.
"""
import re
from dataclasses import dataclass

from .profiles import Profile

UNSUPPORTED_PROPERTIES = (
    "box-shadow",
    "text-shadow",
    "border-radius",
    "transform",
    "animation",
    "transition",
    "backdrop-filter",
    "filter",
    "clip-path",
    "mask",
)

TYPOGRAPHY_PROPERTIES = (
    "font-feature-settings",
    "font-variant-ligatures",
    "font-variant-caps",
    "font-variant-numeric",
    "font-kerning",
    "text-rendering",
    "-webkit-font-smoothing",
    "-moz-osx-font-smoothing",
)

COLOR_PROPERTIES = (
    "color",
    "background-color",
    "border-color",
    "outline-color",
    "text-decoration-color",
)


STYLE_ATTRIBUTE = re.compile(r'\sstyle="([^"]*)"')


def _declaration(prop: str) -> re.Pattern:
    # a whole declaration, not a suffix of a longer property name
    return re.compile(rf"(?<![\w-]){re.escape(prop)}\s*:[^;{{}}\"]*;?")


@dataclass(frozen=True)
class OptimizationStats:
    original_size: int
    optimized_size: int

    @property
    def bytes_saved(self) -> int:
        return self.original_size - self.optimized_size

    @property
    def size_reduction(self) -> float:
        if self.original_size == 0:
            return 0.0
        return self.bytes_saved / self.original_size * 100


class EPUBOptimizer:
    def __init__(self, profile: Profile):
        self.profile = profile

    def _strip_properties(self, content: str) -> str:
        caps = self.profile.capabilities
        props = list(UNSUPPORTED_PROPERTIES)
        if not caps.supports_advanced_typography:
            props.extend(TYPOGRAPHY_PROPERTIES)
        if not caps.supports_color:
            props.extend(COLOR_PROPERTIES)
        for prop in props:
            content = _declaration(prop).sub("", content)
        return content

    def optimize_html(self, html: str) -> str:
        if not self.profile.capabilities.strip_unsupported_content:
            return html

        html = re.sub(r"<!--.*?-->", "", html, flags=re.DOTALL)
        html = re.sub(r">\s+<", "><", html)
        html = STYLE_ATTRIBUTE.sub(lambda m: f' style="{self._strip_properties(m.group(1))}"', html)
        html = re.sub(r'\sstyle="\s*"', "", html)
        return html.strip()

    def optimize_css(self, css: str) -> str:
        if not self.profile.capabilities.strip_unsupported_content:
            return css

        css = re.sub(r"/\*.*?\*/", "", css, flags=re.DOTALL)
        css = self._strip_properties(css)
        css = re.sub(r"\s+", " ", css)
        css = re.sub(r"\s*([{}:;,])\s*", r"\1", css)
        css = css.replace(";}", "}")
        return css.strip()

    @staticmethod
    def optimization_stats(original: str, optimized: str) -> OptimizationStats:
        return OptimizationStats(len(original.encode("utf-8")), len(optimized.encode("utf-8")))
