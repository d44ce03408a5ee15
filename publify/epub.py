"""
EPUB assembly: chapters in, a zipped EPUB 3 package (with NCX fallback) out.
"""
import html
import logging
import zipfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional
from xml.dom import minidom

from .chapters import Chapter
from .cleaner import split_into_chunks, text_to_html
from .images import generate_cover_image
from .models import PageImage
from .optimizer import EPUBOptimizer
from .profiles import Profile

logger = logging.getLogger(__name__)

MAX_SECTION_CHARS = 200_000
EMPTY_CHAPTER_HTML = "<p>No text content found on these pages.</p>"

DEFAULT_CSS = """
@page { margin: 5%; }
html { font-size: 100%; }
body {
    margin: 0 auto;
    max-width: 45em;
    padding: 0.5em 1em;
    text-align: justify;
    font-family: serif;
    font-size: {font_size}pt;
    line-height: 1.5;
    color: #222;
}
/* headings */
h1, h2, h3 {
    text-align: left;
    color: #333;
    line-height: 1.2;
    margin: 1.5em 0 0.5em 0;
}
h1 { font-size: 1.5em; margin-top: 2em; }
h2 { font-size: 1.3em; }
p {
    margin: 0.75em 0;
    line-height: 1.6;
}
img {
    max-width: 100%;
    height: auto;
    display: block;
    margin: 1em auto;
}
.page-image { text-align: center; page-break-inside: avoid; }
"""


class EPUBError(RuntimeError):
    pass


@dataclass
class EPUBOptions:
    title: str
    author: str = "Unknown Author"
    language: str = "en"
    identifier: str = ""
    description: str = ""
    publisher: str = "Publify"
    generate_cover: bool = True


@dataclass
class Section:
    filename: str
    title: str
    body: str
    in_toc: bool = True


@dataclass
class _ImageItem:
    filename: str
    image: PageImage
    cover: bool = False


def get_container_XML() -> str:
    container_data = """<?xml version="1.0" encoding="UTF-8" ?>\n"""
    container_data += """<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">\n"""
    container_data += """<rootfiles>\n"""
    container_data += """<rootfile full-path="OPS/package.opf" media-type="application/oebps-package+xml"/>\n"""
    container_data += """</rootfiles>\n</container>"""
    return container_data


def get_packageOPF_XML(
    options: EPUBOptions,
    sections: List[Section],
    images: List[_ImageItem],
    css_filenames: List[str],
    modified: Optional[str] = None,
) -> str:
    doc = minidom.Document()

    package = doc.createElement("package")
    package.setAttribute("xmlns", "http://www.idpf.org/2007/opf")
    package.setAttribute("version", "3.0")
    package.setAttribute("xml:lang", options.language)
    package.setAttribute("unique-identifier", "book-id")

    ## metadata
    metadata = doc.createElement("metadata")
    metadata.setAttribute("xmlns:dc", "http://purl.org/dc/elements/1.1/")

    for tag, value, id_label in (
        ("dc:identifier", options.identifier, "book-id"),
        ("dc:title", options.title, "title"),
        ("dc:creator", options.author, "creator"),
        ("dc:language", options.language, None),
        ("dc:publisher", options.publisher, None),
        ("dc:description", options.description, None),
    ):
        if not value:
            continue
        x = doc.createElement(tag)
        if id_label:
            x.setAttribute("id", id_label)
        x.appendChild(doc.createTextNode(value))
        metadata.appendChild(x)

    x = doc.createElement("meta")
    x.setAttribute("property", "dcterms:modified")
    x.appendChild(doc.createTextNode(modified or datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")))
    metadata.appendChild(x)

    ## manifest
    manifest = doc.createElement("manifest")

    for item_id, href, media_type, properties in (
        ("toc", "TOC.xhtml", "application/xhtml+xml", "nav"),
        ("ncx", "toc.ncx", "application/x-dtbncx+xml", None),
        ("titlepage", "titlepage.xhtml", "application/xhtml+xml", None),
    ):
        x = doc.createElement("item")
        x.setAttribute("id", item_id)
        x.setAttribute("href", href)
        x.setAttribute("media-type", media_type)
        if properties:
            x.setAttribute("properties", properties)
        manifest.appendChild(x)

    for i, section in enumerate(sections):
        x = doc.createElement("item")
        x.setAttribute("id", "s{:05d}".format(i))
        x.setAttribute("href", section.filename)
        x.setAttribute("media-type", "application/xhtml+xml")
        manifest.appendChild(x)

    for i, item in enumerate(images):
        x = doc.createElement("item")
        x.setAttribute("id", "image-{:05d}".format(i))
        x.setAttribute("href", "images/{}".format(item.filename))
        x.setAttribute("media-type", item.image.media_type)
        if item.cover:
            x.setAttribute("properties", "cover-image")
            ## older readers look for the cover through a meta tag
            y = doc.createElement("meta")
            y.setAttribute("name", "cover")
            y.setAttribute("content", "image-{:05d}".format(i))
            metadata.appendChild(y)
        manifest.appendChild(x)

    for i, css_filename in enumerate(css_filenames):
        x = doc.createElement("item")
        x.setAttribute("id", "css-{:05d}".format(i))
        x.setAttribute("href", "css/{}".format(css_filename))
        x.setAttribute("media-type", "text/css")
        manifest.appendChild(x)

    ## spine
    spine = doc.createElement("spine")
    spine.setAttribute("toc", "ncx")

    x = doc.createElement("itemref")
    x.setAttribute("idref", "titlepage")
    x.setAttribute("linear", "yes")
    spine.appendChild(x)
    for i in range(len(sections)):
        x = doc.createElement("itemref")
        x.setAttribute("idref", "s{:05d}".format(i))
        x.setAttribute("linear", "yes")
        spine.appendChild(x)

    package.appendChild(metadata)
    package.appendChild(manifest)
    package.appendChild(spine)
    doc.appendChild(package)

    return doc.toprettyxml(encoding="UTF-8").decode("utf-8")


def get_coverpage_XML(title: str, authors: List[str], cover_filename: Optional[str] = None) -> str:
    safe_title = html.escape(title)
    safe_authors = html.escape(", ".join(a for a in authors if a))
    cover = ""
    if cover_filename:
        cover = f'<img src="images/{cover_filename}" alt="{safe_title}"/>'

    return f"""<?xml version="1.0" encoding="utf-8"?>
<html xmlns="http://www.w3.org/1999/xhtml" xml:lang="en">
<head>
<title>Cover Page</title>
</head>
<body>
    <div class="cover">
        {cover}
        <h1>{safe_title}</h1>
        <p>{safe_authors}</p>
    </div>
</body>
</html>"""


def get_TOC_XML(css_filenames: List[str], sections: List[Section]) -> str:
    toc_xhtml = """<?xml version="1.0" encoding="UTF-8"?>\n"""
    toc_xhtml += """<html xmlns="http://www.w3.org/1999/xhtml" xmlns:epub="http://www.idpf.org/2007/ops" lang="en">\n"""
    toc_xhtml += """<head>\n<meta http-equiv="default-style" content="text/html; charset=utf-8"/>\n"""
    toc_xhtml += """<title>Contents</title>\n"""

    for css_filename in css_filenames:
        toc_xhtml += """<link rel="stylesheet" href="css/{}" type="text/css"/>\n""".format(css_filename)

    toc_xhtml += """</head>\n<body>\n"""
    toc_xhtml += """<nav epub:type="toc" role="doc-toc" id="toc">\n<h2>Contents</h2>\n<ol>"""
    for section in sections:
        if section.in_toc:
            toc_xhtml += """<li><a href="{}">{}</a></li>""".format(section.filename, html.escape(section.title))
    toc_xhtml += """</ol>\n</nav>\n</body>\n</html>"""

    return toc_xhtml


def get_TOCNCX_XML(identifier: str, title: str, sections: List[Section]) -> str:
    toc_ncx = """<?xml version="1.0" encoding="UTF-8"?>\n"""
    toc_ncx += """<ncx xmlns="http://www.daisy.org/z3986/2005/ncx/" version="2005-1">\n"""
    toc_ncx += """<head>\n<meta name="dtb:uid" content="{}"/>\n</head>\n""".format(html.escape(identifier))
    toc_ncx += """<docTitle><text>{}</text></docTitle>\n""".format(html.escape(title))
    toc_ncx += """<navMap>\n"""
    order = 0
    for section in sections:
        if not section.in_toc:
            continue
        order += 1
        toc_ncx += """<navPoint id="navpoint-{0}" playOrder="{0}">\n""".format(order)
        toc_ncx += """<navLabel>\n<text>{}</text>\n</navLabel>""".format(html.escape(section.title))
        toc_ncx += """<content src="{}"/>""".format(section.filename)
        toc_ncx += """ </navPoint>\n"""
    toc_ncx += """</navMap>\n</ncx>"""
    return toc_ncx


def get_chapter_XML(title: str, body: str, css_filenames: List[str]) -> str:
    links = "".join(f'<link rel="stylesheet" href="css/{css}" type="text/css" media="all"/>' for css in css_filenames)
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<html xmlns="http://www.w3.org/1999/xhtml" xmlns:epub="http://www.idpf.org/2007/ops" lang="en">
<head>
    <meta http-equiv="default-style" content="text/html; charset=utf-8"/>
    <title>{html.escape(title)}</title>
    {links}
</head>
<body>
{body}
</body>
</html>"""


class EPUBGenerator:
    """Collects chapters for one book and writes the EPUB archive."""

    css_filename = "style.css"

    def __init__(self, profile: Profile, options: EPUBOptions):
        self.profile = profile
        self.options = options
        self.optimizer = EPUBOptimizer(profile)
        self.sections: List[Section] = []
        self.images: List[_ImageItem] = []
        self.chapter_count = 0

    def _page_image(self, page_number: int, image: PageImage) -> str:
        filename = f"page-{page_number:04d}.{image.extension}"
        self.images.append(_ImageItem(filename, image))
        return (
            f'<div class="page-image"><img src="images/{filename}" alt="Page {page_number}" '
            f'width="{image.width}" height="{image.height}"/></div>'
        )

    def _chapter_parts(self, chapter: Chapter) -> List[str]:
        parts: List[str] = []
        texts: List[str] = []

        def flush():
            if texts:
                for chunk in split_into_chunks("\n\n".join(texts), MAX_SECTION_CHARS):
                    parts.append(text_to_html(chunk))
                texts.clear()

        for page in chapter.pages:
            if page.image is not None:
                flush()
                parts.append(self._page_image(page.number, page.image))
            elif page.has_text:
                texts.append(page.final_text.strip())
        flush()
        return parts

    def add_chapter(self, title: str, chapter: Chapter) -> None:
        parts = self._chapter_parts(chapter) or [EMPTY_CHAPTER_HTML]
        heading = f"<h1>{html.escape(title)}</h1>"

        bodies = [heading]
        for part in parts:
            if len(bodies[-1]) + len(part) > MAX_SECTION_CHARS and bodies[-1] != heading:
                bodies.append(part)
            else:
                bodies[-1] += "\n" + part

        index = self.chapter_count
        for n, body in enumerate(bodies):
            suffix = "" if n == 0 else f"-{n}"
            self.sections.append(Section(f"s{index:05d}{suffix}.xhtml", title, body, in_toc=(n == 0)))
        self.chapter_count += 1

    def validate(self) -> None:
        if not self.options.title:
            raise EPUBError("EPUB title is required")
        if not self.sections:
            raise EPUBError("EPUB needs at least one chapter")

    def stylesheet(self) -> str:
        css = DEFAULT_CSS.replace("{font_size}", str(self.profile.capabilities.default_font_size))
        return self.optimizer.optimize_css(css)

    def write(self, output_path: Path) -> None:
        self.validate()
        output_path = Path(output_path)
        css_files = [self.css_filename]

        images = list(self.images)
        cover_filename = None
        if self.options.generate_cover:
            cover = generate_cover_image(self.options.title, self.options.author, self.profile)
            cover_filename = f"cover.{cover.extension}"
            images.insert(0, _ImageItem(cover_filename, cover, cover=True))

        # written beside the target and moved into place once complete
        partial_path = output_path.with_name(output_path.name + ".part")
        try:
            self._write_archive(partial_path, images, css_files, cover_filename)
            partial_path.replace(output_path)
        except BaseException:
            partial_path.unlink(missing_ok=True)
            raise

        logger.info(f"EPUB creation complete: {output_path}")

    def _write_archive(
        self, path: Path, images: List[_ImageItem], css_files: List[str], cover_filename: Optional[str]
    ) -> None:
        with zipfile.ZipFile(path, "w") as epub:
            # mimetype must be the first entry and stored uncompressed
            epub.writestr("mimetype", "application/epub+zip", zipfile.ZIP_STORED)
            epub.writestr("META-INF/container.xml", get_container_XML(), zipfile.ZIP_DEFLATED)
            epub.writestr(
                "OPS/package.opf",
                get_packageOPF_XML(self.options, self.sections, images, css_files),
                zipfile.ZIP_DEFLATED,
            )
            epub.writestr(
                "OPS/titlepage.xhtml",
                get_coverpage_XML(self.options.title, [self.options.author], cover_filename).encode("utf-8"),
                zipfile.ZIP_DEFLATED,
            )

            for section in self.sections:
                xhtml = get_chapter_XML(section.title, section.body, css_files)
                epub.writestr(
                    f"OPS/{section.filename}",
                    self.optimizer.optimize_html(xhtml).encode("utf-8"),
                    zipfile.ZIP_DEFLATED,
                )

            for item in images:
                epub.writestr(f"OPS/images/{item.filename}", item.image.data, zipfile.ZIP_DEFLATED)

            epub.writestr(f"OPS/css/{self.css_filename}", self.stylesheet().encode("utf-8"), zipfile.ZIP_DEFLATED)
            epub.writestr("OPS/TOC.xhtml", get_TOC_XML(css_files, self.sections), zipfile.ZIP_DEFLATED)
            epub.writestr(
                "OPS/toc.ncx",
                get_TOCNCX_XML(self.options.identifier, self.options.title, self.sections),
                zipfile.ZIP_DEFLATED,
            )
