"""Episode handling: reading upstream interface bindings, writing downstream ones.

An episode is a binding record left behind by a previous, separately compiled
schema set. For group interfaces it maps a group's schema component identity
(namespace + name) to the fully qualified name of the interface generated for
it upstream:

    <jaxb:bindings xmlns:jaxb="https://jakarta.ee/xml/ns/jaxb" version="3.0">
      <jaxb:bindings scd="x-schema::tns" xmlns:tns="http://example.com/base">
        <jaxb:bindings scd="/group::tns:AddressGroup">
          <gi:interface xmlns:gi="urn:group-interfaces:bindings" ref="com.example.base.AddressGroup"/>
        </jaxb:bindings>
      </jaxb:bindings>
    </jaxb:bindings>

Reading runs the episode through a fixed extraction step that yields the
normalised document

    <interfaces>
      <interface name="com.example.base.AddressGroup">
        <schema-component namespace="http://example.com/base" name="AddressGroup"/>
      </interface>
    </interfaces>

which is then turned into ReferencedInterfaceOutline handles.

Public API:
    EpisodeIndex              — two-state (not loaded / loaded) lookup of upstream interfaces
    EpisodeBuilder            — collects synthesized interfaces and writes a downstream episode
    EpisodeLoadError          — any failure reading an upstream episode (fatal)
    ReferencedInterfaceOutline, TypeEnvironment, InterfaceBinding
    extract_interface_bindings(doc), parse_interface_bindings(root), load_interface_episode(source)
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
import xml.sax
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping

from group_interfaces.outline import ClassOutline
from group_interfaces.types import INTERFACES_NS, JAXB_NAMESPACES, JAXB_NS, GroupKind, QName
from group_interfaces.xmldoc import Document, read_document

logger = logging.getLogger(__name__)

ET.register_namespace("jaxb", JAXB_NS)
ET.register_namespace("gi", INTERFACES_NS)

_SCD_GROUP = re.compile(r"^/?(group|attributeGroup)::(\S+)$")


class EpisodeLoadError(Exception):
    """Raised when an upstream episode cannot be read, parsed or extracted."""


# ─── Handles ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class InterfaceBinding:
    schema_component: QName
    interface_name: str


@dataclass(frozen=True)
class ReferencedInterfaceOutline:
    """Handle to an interface generated by a separately compiled module.

    ``compiled`` records whether the interface is present in the compile
    environment; only compiled handles can be implemented.
    """

    name: str
    compiled: bool = True

    @property
    def type_name(self) -> str:
        return self.name


class TypeEnvironment:
    """Fully qualified names of types already compiled and available to implement."""

    def __init__(self, names: Iterable[str] = ()) -> None:
        self._names = frozenset(names)

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __len__(self) -> int:
        return len(self._names)

    def resolve(self, name: str) -> ReferencedInterfaceOutline | None:
        return ReferencedInterfaceOutline(name, compiled=True) if name in self._names else None


# ─── Extraction ───────────────────────────────────────────────────────────────


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _namespace(tag: str) -> str:
    return tag[1:].split("}", 1)[0] if tag.startswith("{") else ""


def _target_ref(bindings: ET.Element) -> str | None:
    for wanted in ("interface", "class"):
        for child in bindings:
            if _local(child.tag) == wanted and child.get("ref"):
                return child.get("ref")
    return None


def extract_interface_bindings(doc: Document) -> ET.Element:
    """Normalise an episode document into an ``<interfaces>`` element.

    Raises:
        EpisodeLoadError: If a group SCD uses an undeclared prefix.
    """
    if _local(doc.root.tag) == "interfaces":
        return doc.root

    out = ET.Element("interfaces")
    for elem in doc.root.iter():
        if _local(elem.tag) != "bindings" or _namespace(elem.tag) not in JAXB_NAMESPACES:
            continue
        match = _SCD_GROUP.match((elem.get("scd") or "").strip())
        if match is None:
            continue
        ref = _target_ref(elem)
        if ref is None:
            continue
        prefix, _, local = match.group(2).rpartition(":")
        # An unprefixed SCD name is in no namespace, whatever the default xmlns.
        namespace = doc.resolve_prefix(elem, prefix) if prefix else ""
        if namespace is None:
            raise EpisodeLoadError(
                f"Undeclared prefix '{prefix}' in scd='{elem.get('scd')}' at "
                f"{doc.locator(elem)}. Fix: declare xmlns:{prefix} on the bindings element."
            )
        interface = ET.SubElement(out, "interface", name=ref)
        ET.SubElement(interface, "schema-component", namespace=namespace, name=local)
    return out


def parse_interface_bindings(root: ET.Element) -> list[InterfaceBinding]:
    """Read the normalised ``<interfaces>`` document into bindings."""
    result: list[InterfaceBinding] = []
    for interface in root.findall("interface"):
        name = interface.get("name")
        component = interface.find("schema-component")
        if not name or component is None or not component.get("name"):
            raise EpisodeLoadError(
                "Malformed <interface> entry in interface bindings: "
                "expected a name attribute and a <schema-component namespace=.. name=../> child."
            )
        result.append(InterfaceBinding(
            QName(component.get("namespace", ""), component.get("name")),
            name,
        ))
    return result


def load_interface_episode(
    source: str | Path,
    environment: TypeEnvironment | None = None,
) -> dict[QName, ReferencedInterfaceOutline]:
    """Load upstream interface handles from the episode at *source*.

    With no *environment*, every episode interface is taken to be compiled.

    Raises:
        EpisodeLoadError: If the resource is unreachable, malformed, or cannot
            be extracted. There is no partial result.
    """
    try:
        doc = read_document(source)
    except (OSError, ValueError, xml.sax.SAXException) as e:
        raise EpisodeLoadError(f"Cannot read upstream episode {source}: {e}") from e

    bindings = parse_interface_bindings(extract_interface_bindings(doc))
    mapping: dict[QName, ReferencedInterfaceOutline] = {}
    for binding in bindings:
        compiled = environment is None or binding.interface_name in environment
        mapping[binding.schema_component] = ReferencedInterfaceOutline(binding.interface_name, compiled)
    logger.info("Loaded %d interface binding(s) from upstream episode %s", len(mapping), source)
    return mapping


# ─── Episode index ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class _NotLoaded:
    pass


@dataclass(frozen=True)
class _Loaded:
    mapping: Mapping[QName, ReferencedInterfaceOutline]


class EpisodeIndex:
    """Lookup of interfaces already published by an upstream episode.

    State is explicit: NotLoaded until load() runs, Loaded(mapping) afterwards.
    Without a source the loaded mapping is empty. Queries on a NotLoaded index
    load it first; the resource is read at most once.
    """

    def __init__(
        self,
        source: str | Path | None = None,
        environment: TypeEnvironment | None = None,
    ) -> None:
        self.source = source
        self.environment = environment
        self._state: _NotLoaded | _Loaded = _NotLoaded()

    @property
    def loaded(self) -> bool:
        return isinstance(self._state, _Loaded)

    def load(self) -> Mapping[QName, ReferencedInterfaceOutline]:
        if isinstance(self._state, _Loaded):
            return self._state.mapping
        if self.source is None:
            mapping: dict[QName, ReferencedInterfaceOutline] = {}
        else:
            mapping = load_interface_episode(self.source, self.environment)
        self._state = _Loaded(MappingProxyType(mapping))
        return self._state.mapping

    def is_known(self, qname: QName) -> bool:
        return qname in self.load()

    def lookup(self, qname: QName) -> ReferencedInterfaceOutline | None:
        return self.load().get(qname)

    def __contains__(self, qname: object) -> bool:
        return qname in self.load()

    def __len__(self) -> int:
        return len(self.load())

    def __iter__(self) -> Iterator[QName]:
        return iter(self.load())


# ─── Episode builder ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class _EpisodeEntry:
    kind: GroupKind
    schema_component: QName
    interface_name: str


class EpisodeBuilder:
    """Collects synthesized interfaces for a downstream episode."""

    def __init__(self) -> None:
        self._entries: list[_EpisodeEntry] = []

    def add_interface(self, schema_component, interface: ClassOutline) -> None:
        self._entries.append(_EpisodeEntry(schema_component.kind, schema_component.qname, interface.full_name))

    @property
    def bindings(self) -> list[InterfaceBinding]:
        return [InterfaceBinding(e.schema_component, e.interface_name) for e in self._entries]

    def to_element(self) -> ET.Element:
        root = ET.Element(f"{{{JAXB_NS}}}bindings", version="3.0")
        prefixes: dict[str, tuple[str, ET.Element]] = {}
        for entry in self._entries:
            namespace = entry.schema_component.namespace
            if namespace not in prefixes:
                if namespace:
                    prefix = f"tns{len(prefixes)}" if prefixes else "tns"
                    attrib = {"scd": f"x-schema::{prefix}", f"xmlns:{prefix}": namespace}
                else:
                    # No-namespace components are addressed with unprefixed names.
                    prefix = ""
                    attrib = {"scd": "x-schema::"}
                schema_bindings = ET.SubElement(root, f"{{{JAXB_NS}}}bindings", attrib)
                prefixes[namespace] = (prefix, schema_bindings)
            prefix, schema_bindings = prefixes[namespace]
            name = f"{prefix}:{entry.schema_component.local}" if prefix else entry.schema_component.local
            group_bindings = ET.SubElement(
                schema_bindings,
                f"{{{JAXB_NS}}}bindings",
                scd=f"/{entry.kind.value}::{name}",
            )
            ET.SubElement(group_bindings, f"{{{INTERFACES_NS}}}interface", ref=entry.interface_name)
        return root

    def write(self, path: Path) -> None:
        tree = ET.ElementTree(self.to_element())
        ET.indent(tree)
        tree.write(path, encoding="utf-8", xml_declaration=True)
        logger.info("Wrote %d interface binding(s) to episode %s", len(self._entries), path)
