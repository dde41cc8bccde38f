"""Schema model and XSD loader.

Parses W3C XML Schema documents into typed, immutable component dataclasses.
Only the parts of XSD that matter for group interfaces and the placeholder
class outline are modelled: element and attribute declarations, model groups,
named groups, attribute groups, wildcards and complex types.

Public API:
    SchemaSet         — all components of a loaded schema set, in document order
    SchemaParseError  — raised when a schema is missing, malformed or inconsistent
    load_schema_set(*paths) → SchemaSet

Design notes:
- Group references stay references (GroupRef carries the QName and the locator
  of the referencing site); consumers resolve them through the SchemaSet.
- Element and attribute refs are resolved eagerly against global declarations,
  so a particle's term is always an ElementDecl, never a dangling name.
- Every component keeps its source ET.Element (excluded from equality) for
  documentation output.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
import xml.sax
from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar, Iterator, Union

from group_interfaces.types import (
    JAXB_NAMESPACES,
    XS_NS,
    Compositor,
    GroupKind,
    Locator,
    QName,
)
from group_interfaces.xmldoc import Document, read_document

logger = logging.getLogger(__name__)


# ─── Exception ────────────────────────────────────────────────────────────────


class SchemaParseError(Exception):
    """Raised when an XSD file is missing, malformed or references unknown components.

    The message describes what went wrong, where (file:line:column) and how to fix it.
    """


# ─── Components ───────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ElementDecl:
    """Element declaration (global, local, or the target of an element ref)."""

    qname: QName
    type_name: QName | None = None
    fixed: str | None = None
    property_name: str | None = None
    complex_type: ComplexType | None = None
    is_global: bool = False
    locator: Locator | None = field(default=None, compare=False)
    source: ET.Element | None = field(default=None, compare=False, repr=False)

    @property
    def name(self) -> str:
        return self.qname.local

    def __str__(self) -> str:
        return f"element {self.qname}"


@dataclass(frozen=True)
class AttributeDecl:
    qname: QName
    type_name: QName | None = None
    fixed: str | None = None
    property_name: str | None = None
    is_global: bool = False
    locator: Locator | None = field(default=None, compare=False)
    source: ET.Element | None = field(default=None, compare=False, repr=False)

    @property
    def name(self) -> str:
        return self.qname.local

    def __str__(self) -> str:
        return f"attribute {self.qname}"


@dataclass(frozen=True)
class AttributeUse:
    """Use of an attribute declaration inside a type or attribute group.

    ``fixed`` and ``property_name`` here are the values written on the use
    site itself (e.g. on an ``<xs:attribute ref="..."/>``); the declaration
    carries its own.
    """

    decl: AttributeDecl
    fixed: str | None = None
    property_name: str | None = None
    required: bool = False
    locator: Locator | None = field(default=None, compare=False)
    source: ET.Element | None = field(default=None, compare=False, repr=False)

    @property
    def name(self) -> str:
        return self.decl.name

    def __str__(self) -> str:
        return f"attribute use {self.decl.qname}"


@dataclass(frozen=True)
class Wildcard:
    namespace: str = "##any"
    locator: Locator | None = field(default=None, compare=False)


@dataclass(frozen=True)
class GroupRef:
    """Reference to a named model group or attribute group."""

    kind: GroupKind
    qname: QName
    locator: Locator | None = field(default=None, compare=False)

    @property
    def name(self) -> str:
        return self.qname.local


@dataclass(frozen=True)
class ModelGroup:
    compositor: Compositor
    particles: tuple[Particle, ...] = ()

    def __iter__(self) -> Iterator[Particle]:
        return iter(self.particles)


Term = Union[ElementDecl, ModelGroup, GroupRef, Wildcard]


@dataclass(frozen=True)
class Particle:
    """A term with occurrence bounds. ``max_occurs=None`` means unbounded."""

    term: Term
    min_occurs: int = 1
    max_occurs: int | None = 1

    @property
    def is_repeated(self) -> bool:
        return self.max_occurs is None or self.max_occurs > 1


@dataclass(frozen=True)
class ModelGroupDecl:
    kind: ClassVar[GroupKind] = GroupKind.MODEL_GROUP

    qname: QName
    model_group: ModelGroup
    locator: Locator | None = field(default=None, compare=False)
    source: ET.Element | None = field(default=None, compare=False, repr=False)

    @property
    def name(self) -> str:
        return self.qname.local

    @property
    def target_namespace(self) -> str:
        return self.qname.namespace

    def __str__(self) -> str:
        return f"group {self.qname}"


@dataclass(frozen=True)
class AttGroupDecl:
    kind: ClassVar[GroupKind] = GroupKind.ATTRIBUTE_GROUP

    qname: QName
    attribute_uses: tuple[AttributeUse, ...] = ()
    att_groups: tuple[GroupRef, ...] = ()
    locator: Locator | None = field(default=None, compare=False)
    source: ET.Element | None = field(default=None, compare=False, repr=False)

    @property
    def name(self) -> str:
        return self.qname.local

    @property
    def target_namespace(self) -> str:
        return self.qname.namespace

    def __str__(self) -> str:
        return f"attributeGroup {self.qname}"


GroupDecl = Union[ModelGroupDecl, AttGroupDecl]


@dataclass(frozen=True)
class ComplexType:
    """Complex type definition (named, or anonymous when ``qname`` is None).

    ``explicit_content`` is only set for types derived by extension and holds
    the particle declared in the extension itself; ``content`` holds the
    particle of every other type.
    """

    qname: QName | None
    explicit_content: Particle | None = None
    content: Particle | None = None
    attribute_uses: tuple[AttributeUse, ...] = ()
    att_groups: tuple[GroupRef, ...] = ()
    base: QName | None = None
    mixed: bool = False
    locator: Locator | None = field(default=None, compare=False)
    source: ET.Element | None = field(default=None, compare=False, repr=False)

    def content_particle(self) -> Particle | None:
        """Explicit content preferred, falling back to the effective content."""
        return self.explicit_content if self.explicit_content is not None else self.content


# ─── Schema set ───────────────────────────────────────────────────────────────


@dataclass
class SchemaSet:
    """All global components of a loaded schema set, keyed by QName.

    Dicts preserve document order, so iteration is deterministic across runs.
    """

    model_groups: dict[QName, ModelGroupDecl] = field(default_factory=dict)
    attribute_groups: dict[QName, AttGroupDecl] = field(default_factory=dict)
    complex_types: dict[QName, ComplexType] = field(default_factory=dict)
    elements: dict[QName, ElementDecl] = field(default_factory=dict)
    attributes: dict[QName, AttributeDecl] = field(default_factory=dict)
    system_ids: list[str] = field(default_factory=list)

    def iterate_model_group_decls(self) -> Iterator[ModelGroupDecl]:
        return iter(list(self.model_groups.values()))

    def iterate_att_group_decls(self) -> Iterator[AttGroupDecl]:
        return iter(list(self.attribute_groups.values()))

    def group(self, ref: GroupRef) -> GroupDecl | None:
        if ref.kind is GroupKind.MODEL_GROUP:
            return self.model_groups.get(ref.qname)
        return self.attribute_groups.get(ref.qname)

    @property
    def target_namespaces(self) -> list[str]:
        seen: dict[str, None] = {}
        for table in (self.model_groups, self.attribute_groups, self.complex_types, self.elements):
            for qname in table:
                seen.setdefault(qname.namespace, None)
        return list(seen)


# ─── Loader internals ─────────────────────────────────────────────────────────


def _xs(local: str) -> str:
    return f"{{{XS_NS}}}{local}"


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _is_xs(elem: ET.Element, *locals_: str) -> bool:
    return elem.tag in {_xs(name) for name in locals_}


@dataclass
class _SchemaDoc:
    path: Path
    doc: Document
    target_namespace: str
    element_form_qualified: bool
    attribute_form_qualified: bool

    @property
    def root(self) -> ET.Element:
        return self.doc.root


class _Loader:
    def __init__(self) -> None:
        self.docs: list[_SchemaDoc] = []
        self._seen: set[Path] = set()
        self.result = SchemaSet()
        # Raw global element/attribute nodes, parsed on first reference.
        self._element_nodes: dict[QName, tuple[_SchemaDoc, ET.Element]] = {}
        self._attribute_nodes: dict[QName, tuple[_SchemaDoc, ET.Element]] = {}
        self._element_heads: dict[QName, ElementDecl] = {}

    # ── reading ──

    def read(self, path: Path) -> None:
        path = path.resolve()
        if path in self._seen:
            return
        self._seen.add(path)
        if not path.exists():
            raise SchemaParseError(
                f"Schema file not found: {path}. "
                f"Fix: check the path, or the schemaLocation of the include/import "
                f"that points at it."
            )
        try:
            doc = read_document(path)
        except xml.sax.SAXParseException as e:
            raise SchemaParseError(
                f"XML parse error in {path}:{e.getLineNumber()}:{e.getColumnNumber()}: "
                f"{e.getMessage()}. "
                f"Fix: correct the XML syntax error at the reported line/column."
            ) from e
        root = doc.root
        if root.tag != _xs("schema"):
            raise SchemaParseError(
                f"Unexpected root element <{_local(root.tag)}> in {path}. "
                f"Expected <xs:schema> in namespace {XS_NS}. "
                f"Fix: pass only XML Schema documents."
            )
        schema_doc = _SchemaDoc(
            path=path,
            doc=doc,
            target_namespace=root.get("targetNamespace", ""),
            element_form_qualified=root.get("elementFormDefault") == "qualified",
            attribute_form_qualified=root.get("attributeFormDefault") == "qualified",
        )
        self.docs.append(schema_doc)
        self.result.system_ids.append(str(path))
        logger.debug("Read schema %s (targetNamespace=%r)", path, schema_doc.target_namespace)

        for child in root:
            if _is_xs(child, "include", "import", "redefine"):
                location = (child.get("schemaLocation") or "").strip()
                if location and "://" not in location:
                    self.read(path.parent / location)
            elif _is_xs(child, "element") and child.get("name"):
                self._element_nodes[QName(schema_doc.target_namespace, child.get("name"))] = (schema_doc, child)
            elif _is_xs(child, "attribute") and child.get("name"):
                self._attribute_nodes[QName(schema_doc.target_namespace, child.get("name"))] = (schema_doc, child)

    # ── helpers ──

    def _qname(self, sdoc: _SchemaDoc, elem: ET.Element, raw: str) -> QName:
        raw = raw.strip()
        if ":" in raw:
            prefix, local = raw.split(":", 1)
        else:
            prefix, local = "", raw
        uri = sdoc.doc.resolve_prefix(elem, prefix)
        if uri is None:
            if not prefix:
                # No default namespace declared: unprefixed names are unqualified.
                return QName("", local)
            loc = sdoc.doc.locator(elem)
            raise SchemaParseError(
                f"Unknown namespace prefix '{prefix}' in '{raw}' at {loc}. "
                f"Fix: declare xmlns:{prefix} on the schema element or an ancestor."
            )
        return QName(uri, local)

    @staticmethod
    def _occurs(elem: ET.Element) -> tuple[int, int | None]:
        min_occurs = int(elem.get("minOccurs", "1"))
        raw_max = elem.get("maxOccurs", "1")
        max_occurs = None if raw_max == "unbounded" else int(raw_max)
        return min_occurs, max_occurs

    @staticmethod
    def _custom_property_name(elem: ET.Element) -> str | None:
        annotation = elem.find(_xs("annotation"))
        if annotation is None:
            return None
        for appinfo in annotation.findall(_xs("appinfo")):
            for child in appinfo:
                uri, _, local = child.tag[1:].partition("}")
                if uri in JAXB_NAMESPACES and local == "property":
                    name = child.get("name")
                    if name:
                        return name
        return None

    # ── declarations ──

    def _element_head(self, qname: QName, sdoc: _SchemaDoc, site: ET.Element) -> ElementDecl:
        head = self._element_heads.get(qname)
        if head is not None:
            return head
        entry = self._element_nodes.get(qname)
        if entry is None:
            raise SchemaParseError(
                f"Element ref '{qname}' at {sdoc.doc.locator(site)} does not name a "
                f"global element declaration. "
                f"Fix: declare the element globally or include the schema that does."
            )
        owner, node = entry
        head = ElementDecl(
            qname=qname,
            type_name=self._qname(owner, node, node.get("type")) if node.get("type") else None,
            fixed=node.get("fixed"),
            property_name=self._custom_property_name(node),
            is_global=True,
            locator=owner.doc.locator(node),
            source=node,
        )
        self._element_heads[qname] = head
        return head

    def _element(self, sdoc: _SchemaDoc, elem: ET.Element, *, is_global: bool) -> ElementDecl:
        ref = elem.get("ref")
        if ref:
            return self._element_head(self._qname(sdoc, elem, ref), sdoc, elem)
        name = elem.get("name")
        if not name:
            raise SchemaParseError(
                f"<xs:element> without name or ref at {sdoc.doc.locator(elem)}. "
                f"Fix: add a name or ref attribute."
            )
        qualified = is_global or elem.get("form", "qualified" if sdoc.element_form_qualified else "unqualified") == "qualified"
        anonymous = elem.find(_xs("complexType"))
        return ElementDecl(
            qname=QName(sdoc.target_namespace if qualified else "", name),
            type_name=self._qname(sdoc, elem, elem.get("type")) if elem.get("type") else None,
            fixed=elem.get("fixed"),
            property_name=self._custom_property_name(elem),
            complex_type=self._complex_type(sdoc, anonymous, None) if anonymous is not None else None,
            is_global=is_global,
            locator=sdoc.doc.locator(elem),
            source=elem,
        )

    def _global_attribute(self, qname: QName, sdoc: _SchemaDoc, site: ET.Element) -> AttributeDecl:
        existing = self.result.attributes.get(qname)
        if existing is not None:
            return existing
        entry = self._attribute_nodes.get(qname)
        if entry is None:
            raise SchemaParseError(
                f"Attribute ref '{qname}' at {sdoc.doc.locator(site)} does not name a "
                f"global attribute declaration. "
                f"Fix: declare the attribute globally or include the schema that does."
            )
        owner, node = entry
        decl = AttributeDecl(
            qname=qname,
            type_name=self._qname(owner, node, node.get("type")) if node.get("type") else None,
            fixed=node.get("fixed"),
            property_name=self._custom_property_name(node),
            is_global=True,
            locator=owner.doc.locator(node),
            source=node,
        )
        self.result.attributes[qname] = decl
        return decl

    def _attribute_use(self, sdoc: _SchemaDoc, elem: ET.Element) -> AttributeUse:
        required = elem.get("use") == "required"
        ref = elem.get("ref")
        if ref:
            decl = self._global_attribute(self._qname(sdoc, elem, ref), sdoc, elem)
            return AttributeUse(
                decl=decl,
                fixed=elem.get("fixed"),
                property_name=self._custom_property_name(elem),
                required=required,
                locator=sdoc.doc.locator(elem),
                source=elem,
            )
        name = elem.get("name")
        if not name:
            raise SchemaParseError(
                f"<xs:attribute> without name or ref at {sdoc.doc.locator(elem)}. "
                f"Fix: add a name or ref attribute."
            )
        qualified = elem.get("form", "qualified" if sdoc.attribute_form_qualified else "unqualified") == "qualified"
        decl = AttributeDecl(
            qname=QName(sdoc.target_namespace if qualified else "", name),
            type_name=self._qname(sdoc, elem, elem.get("type")) if elem.get("type") else None,
            fixed=elem.get("fixed"),
            property_name=self._custom_property_name(elem),
            locator=sdoc.doc.locator(elem),
            source=elem,
        )
        return AttributeUse(decl=decl, required=required, locator=sdoc.doc.locator(elem), source=elem)

    def _attributes(
        self, sdoc: _SchemaDoc, container: ET.Element
    ) -> tuple[tuple[AttributeUse, ...], tuple[GroupRef, ...]]:
        uses: list[AttributeUse] = []
        groups: list[GroupRef] = []
        for child in container:
            if _is_xs(child, "attribute"):
                uses.append(self._attribute_use(sdoc, child))
            elif _is_xs(child, "attributeGroup") and child.get("ref"):
                groups.append(GroupRef(
                    GroupKind.ATTRIBUTE_GROUP,
                    self._qname(sdoc, child, child.get("ref")),
                    sdoc.doc.locator(child),
                ))
        return tuple(uses), tuple(groups)

    # ── content models ──

    def _particle(self, sdoc: _SchemaDoc, elem: ET.Element) -> Particle | None:
        min_occurs, max_occurs = self._occurs(elem)
        term: Term
        if _is_xs(elem, "element"):
            term = self._element(sdoc, elem, is_global=False)
        elif _is_xs(elem, "group"):
            ref = elem.get("ref")
            if not ref:
                raise SchemaParseError(
                    f"Local <xs:group> without ref at {sdoc.doc.locator(elem)}. "
                    f"Fix: reference a named group with ref=\"prefix:Name\"."
                )
            term = GroupRef(GroupKind.MODEL_GROUP, self._qname(sdoc, elem, ref), sdoc.doc.locator(elem))
        elif _is_xs(elem, "sequence", "choice", "all"):
            term = self._model_group(sdoc, elem)
        elif _is_xs(elem, "any"):
            term = Wildcard(elem.get("namespace", "##any"), sdoc.doc.locator(elem))
        else:
            return None
        return Particle(term, min_occurs, max_occurs)

    def _model_group(self, sdoc: _SchemaDoc, elem: ET.Element) -> ModelGroup:
        particles = [p for p in (self._particle(sdoc, child) for child in elem) if p is not None]
        return ModelGroup(Compositor(_local(elem.tag)), tuple(particles))

    def _content_particle(self, sdoc: _SchemaDoc, container: ET.Element) -> Particle | None:
        for child in container:
            if _is_xs(child, "sequence", "choice", "all", "group"):
                return self._particle(sdoc, child)
        return None

    def _complex_type(self, sdoc: _SchemaDoc, elem: ET.Element, qname: QName | None) -> ComplexType:
        mixed = elem.get("mixed") == "true"
        derivation = None
        for child in elem:
            if _is_xs(child, "complexContent", "simpleContent"):
                mixed = mixed or child.get("mixed") == "true"
                for inner in child:
                    if _is_xs(inner, "extension", "restriction"):
                        derivation = inner
                break

        if derivation is None:
            uses, groups = self._attributes(sdoc, elem)
            return ComplexType(
                qname=qname,
                content=self._content_particle(sdoc, elem),
                attribute_uses=uses,
                att_groups=groups,
                mixed=mixed,
                locator=sdoc.doc.locator(elem),
                source=elem,
            )

        base_raw = derivation.get("base")
        base = self._qname(sdoc, derivation, base_raw) if base_raw else None
        particle = self._content_particle(sdoc, derivation)
        uses, groups = self._attributes(sdoc, derivation)
        is_extension = _is_xs(derivation, "extension")
        return ComplexType(
            qname=qname,
            explicit_content=particle if is_extension else None,
            content=None if is_extension else particle,
            attribute_uses=uses,
            att_groups=groups,
            base=base,
            mixed=mixed,
            locator=sdoc.doc.locator(elem),
            source=elem,
        )

    # ── globals ──

    def build(self) -> SchemaSet:
        for sdoc in self.docs:
            tns = sdoc.target_namespace
            for child in sdoc.root:
                name = child.get("name")
                if not name:
                    continue
                qname = QName(tns, name)
                if _is_xs(child, "group"):
                    body = next((c for c in child if _is_xs(c, "sequence", "choice", "all")), None)
                    model_group = self._model_group(sdoc, body) if body is not None else ModelGroup(Compositor.SEQUENCE)
                    self.result.model_groups[qname] = ModelGroupDecl(
                        qname=qname,
                        model_group=model_group,
                        locator=sdoc.doc.locator(child),
                        source=child,
                    )
                elif _is_xs(child, "attributeGroup"):
                    uses, groups = self._attributes(sdoc, child)
                    self.result.attribute_groups[qname] = AttGroupDecl(
                        qname=qname,
                        attribute_uses=uses,
                        att_groups=groups,
                        locator=sdoc.doc.locator(child),
                        source=child,
                    )
                elif _is_xs(child, "complexType"):
                    self.result.complex_types[qname] = self._complex_type(sdoc, child, qname)
                elif _is_xs(child, "element"):
                    self.result.elements[qname] = self._element(sdoc, child, is_global=True)
                elif _is_xs(child, "attribute"):
                    self._global_attribute(qname, sdoc, child)
        return self.result


# ─── Public API ───────────────────────────────────────────────────────────────


def load_schema_set(*paths: Path | str) -> SchemaSet:
    """Load one or more XSD files (and their local includes/imports).

    Raises:
        SchemaParseError: If a file does not exist, is not valid XML, is not a
            schema document, or references an undeclared prefix, element or
            attribute.
    """
    if not paths:
        raise SchemaParseError(
            "No schema files given. Fix: pass at least one .xsd path."
        )
    loader = _Loader()
    for path in paths:
        loader.read(Path(path))
    schema_set = loader.build()
    logger.info(
        "Loaded %d schema document(s): %d model groups, %d attribute groups, %d complex types",
        len(loader.docs),
        len(schema_set.model_groups),
        len(schema_set.attribute_groups),
        len(schema_set.complex_types),
    )
    return schema_set
