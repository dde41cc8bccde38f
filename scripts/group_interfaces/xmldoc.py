"""Line-aware XML reading.

ElementTree drops source positions and namespace prefix declarations, both of
which the schema loader and the episode reader need: positions for diagnostics,
prefixes to resolve QName-valued attributes such as ``ref="tns:AddressGroup"``.

read_document() drives a namespace-aware SAX parse into an ET.TreeBuilder and
records, per element, its Locator and the in-scope prefix map.
"""

from __future__ import annotations

import io
import xml.etree.ElementTree as ET
import xml.sax
import xml.sax.handler
import xml.sax.xmlreader
from dataclasses import dataclass, field
from pathlib import Path

from group_interfaces.types import Locator


@dataclass
class Document:
    """A parsed XML document plus per-element source metadata."""

    root: ET.Element
    system_id: str
    locators: dict[ET.Element, Locator] = field(default_factory=dict, repr=False)
    nsmaps: dict[ET.Element, dict[str, str]] = field(default_factory=dict, repr=False)

    def locator(self, elem: ET.Element) -> Locator:
        return self.locators.get(elem, Locator(self.system_id, 0, 0))

    def nsmap(self, elem: ET.Element) -> dict[str, str]:
        return self.nsmaps.get(elem, {})

    def resolve_prefix(self, elem: ET.Element, prefix: str) -> str | None:
        return self.nsmap(elem).get(prefix)


class _LocatingHandler(xml.sax.handler.ContentHandler):
    def __init__(self, system_id: str) -> None:
        super().__init__()
        self._system_id = system_id
        self._builder = ET.TreeBuilder()
        self._locator: xml.sax.xmlreader.Locator | None = None
        self._pending: dict[str, str] = {}
        self._scopes: list[dict[str, str]] = [{"xml": "http://www.w3.org/XML/1998/namespace"}]
        self._tags: list[str] = []
        self.locators: dict[ET.Element, Locator] = {}
        self.nsmaps: dict[ET.Element, dict[str, str]] = {}
        self.root: ET.Element | None = None

    def setDocumentLocator(self, locator: xml.sax.xmlreader.Locator) -> None:
        self._locator = locator

    def startPrefixMapping(self, prefix: str | None, uri: str) -> None:
        self._pending[prefix or ""] = uri

    def startElementNS(self, name: tuple[str | None, str], qname: str | None, attrs) -> None:
        uri, local = name
        tag = f"{{{uri}}}{local}" if uri else local
        attrib = {
            (f"{{{a_uri}}}{a_local}" if a_uri else a_local): value
            for (a_uri, a_local), value in attrs.items()
        }
        elem = self._builder.start(tag, attrib)
        scope = self._scopes[-1]
        if self._pending:
            scope = {**scope, **self._pending}
            self._pending = {}
        self._scopes.append(scope)
        self._tags.append(tag)
        self.nsmaps[elem] = scope
        if self._locator is not None:
            self.locators[elem] = Locator(
                self._system_id,
                self._locator.getLineNumber(),
                self._locator.getColumnNumber(),
            )

    def endElementNS(self, name: tuple[str | None, str], qname: str | None) -> None:
        self._builder.end(self._tags.pop())
        self._scopes.pop()

    def characters(self, content: str) -> None:
        self._builder.data(content)

    def endDocument(self) -> None:
        self.root = self._builder.close()


def read_document(source: str | Path | bytes, system_id: str | None = None) -> Document:
    """Parse *source* (path, URL or raw bytes) into a Document.

    Raises:
        xml.sax.SAXException: malformed XML.
        OSError: the source cannot be opened.
    """
    if isinstance(source, bytes):
        sid = system_id or "<bytes>"
        input_source = xml.sax.xmlreader.InputSource(sid)
        input_source.setByteStream(io.BytesIO(source))
    else:
        sid = system_id or str(source)
        input_source = xml.sax.xmlreader.InputSource(str(source))
        if isinstance(source, Path) or "://" not in str(source):
            input_source.setByteStream(io.BytesIO(Path(source).read_bytes()))

    handler = _LocatingHandler(sid)
    parser = xml.sax.make_parser()
    parser.setFeature(xml.sax.handler.feature_namespaces, True)
    parser.setContentHandler(handler)
    parser.parse(input_source)
    assert handler.root is not None
    return Document(
        root=handler.root,
        system_id=sid,
        locators=handler.locators,
        nsmaps=handler.nsmaps,
    )
