"""
Raw document layer: reading sdb.xml into an element tree and writing it back.

The element tree is serialised with :mod:`xml.etree.ElementTree` and the
formatting quirks of the TV's own writer are restored afterwards: the original
newline convention, the XML declaration and anything else around the root
element, compact self-closing tags in the E-Format and a line break inside
every empty loop block.
Elements written as a start and end tag pair without content keep that form.

Deutsch:
    Einlesen und Zurückschreiben des XML-Dokuments mit originaler Formatierung.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional
from xml.etree import ElementTree as ET

from .columns import is_loop_block
from .dialect import FormatVersion
from .errors import UnsupportedFormatError
from .services import SectionBlocks

log = logging.getLogger(__name__)

ROOT_TAG = "SdbRoot"
_ROOT_START = re.compile(r"<SdbRoot[\s/>]")
_ROOT_END = "</SdbRoot>"

# start tags in document order; comments, PIs and CDATA are matched so their content is skipped
_MARKUP = re.compile(
    r"<!--.*?-->|<\?.*?\?>|<!\[CDATA\[.*?\]\]>"
    r"|<([A-Za-z_][\w.:-]*)(?:[^<>\"']|\"[^\"]*\"|'[^']*')*?(/?)>",
    re.S,
)
# stands in for the empty text of explicitly empty elements while serialising
_EMPTY_MARKER = "\x00"


@dataclass
class SdbDocument:
    """
    Parsed sdb.xml file plus everything needed to write it back unchanged.

    Deutsch:
        Geparste Datei inkl. aller Informationen für verlustfreies Zurückschreiben.
    """

    path: Path
    content: bytes
    text: str
    newline: str
    root: ET.Element
    prolog: str
    epilogue: str
    format: Optional[FormatVersion] = None
    blocks: Dict[str, SectionBlocks] = field(default_factory=dict)
    explicit_empty: List[ET.Element] = field(default_factory=list)

    @property
    def sdb_xml(self) -> Optional[ET.Element]:
        return self.root.find("SdbXml")


def read_document(path: Path) -> SdbDocument:
    path = Path(path)
    content = path.read_bytes()
    return parse_document(content, path)


def parse_document(content: bytes, path: Path) -> SdbDocument:
    """
    Parse raw file content. DTDs are not validated, comments and processing
    instructions inside the root element are kept so they survive a save.
    """

    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise UnsupportedFormatError(f"{path} is not a supported Sony XML file: {exc}") from exc
    newline = "\r\n" if "\r\n" in text else "\n"

    parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True, insert_pis=True))
    try:
        parser.feed(content)
        root = parser.close()
    except ET.ParseError as exc:
        raise UnsupportedFormatError(f"{path} is not a supported Sony XML file: {exc}") from exc
    if root.tag != ROOT_TAG:
        raise UnsupportedFormatError(f"{path} is not a supported Sony XML file")
    log.debug("parsed %s: %d bytes, %s newlines", path, len(content), "CRLF" if newline == "\r\n" else "LF")

    start = _ROOT_START.search(text)
    end = text.rfind(_ROOT_END)
    if start is None or end < 0:
        raise UnsupportedFormatError(f"{path} is not a supported Sony XML file")
    return SdbDocument(
        path=path,
        content=content,
        text=text,
        newline=newline,
        root=root,
        prolog=text[: start.start()],
        epilogue=text[end + len(_ROOT_END) :],
        explicit_empty=_explicit_empty_elements(root, text, start.start()),
    )


def _explicit_empty_elements(root: ET.Element, text: str, pos: int) -> List[ET.Element]:
    """
    Find the elements written as ``<Foo></Foo>`` instead of ``<Foo/>``.

    The parser reports both forms the same way, so the start tags in the
    source text are paired with the elements of the tree in document order.

    Deutsch:
        Elemente in der Form ``<Foo></Foo>`` ermitteln, damit sie so erhalten bleiben.
    """

    elements = (element for element in root.iter() if isinstance(element.tag, str))
    found = []
    for match in _MARKUP.finditer(text, pos):
        tag = match.group(1)
        if tag is None:
            continue
        element = next(elements, None)
        if element is None or element.tag != tag:
            log.debug("start tag <%s> does not line up with the parsed tree, explicit empty tags not tracked", tag)
            return found
        if not match.group(2) and text.startswith(f"</{tag}>", match.end()):
            found.append(element)
    return found


def serialize_document(document: SdbDocument, compact_empty_tags: bool) -> str:
    """
    Serialise the (possibly modified) tree with the original formatting conventions.

    The checksum is not touched here.
    """

    for element in document.root.iter():
        # an empty loop block is written as a start tag, a line break and an end tag
        if is_loop_block(element) and not element.text and len(element) == 0:
            element.text = "\n"

    marked = [element for element in document.explicit_empty if not element.text and len(element) == 0]
    for element in marked:
        element.text = _EMPTY_MARKER
    try:
        body = ET.tostring(document.root, encoding="unicode")
    finally:
        for element in marked:
            element.text = None
    body = body.replace(_EMPTY_MARKER, "")
    if document.newline != "\n":
        body = body.replace("\n", document.newline)
    if compact_empty_tags:
        body = body.replace(" />", "/>")
    return document.prolog + body + document.epilogue
