"""Outline compiler: generates placeholder implementation classes from a SchemaSet.

One class is generated per named complex type, per global element with an
anonymous complex type, and per group declaration. The group classes are the
"dummy implementations" the group-interface generator later replaces with
interfaces; they are registered in ``Outline.classes_by_schema_component``.

Content models are flattened into fields: nested model groups and group
references contribute their elements, attribute groups contribute their
attributes transitively, and anything below a repeated particle becomes a
``list[...]`` field with a getter only.
"""

from __future__ import annotations

import logging

from group_interfaces.naming import NameConverter
from group_interfaces.outline import ClassAlreadyExistsError, ClassOutline, MethodOutline, Outline
from group_interfaces.properties import PropertyResolver
from group_interfaces.types import XS_NS, QName
from group_interfaces.xsd import (
    AttGroupDecl,
    AttributeUse,
    ComplexType,
    ElementDecl,
    GroupRef,
    ModelGroup,
    ModelGroupDecl,
    Particle,
    SchemaParseError,
    SchemaSet,
    Wildcard,
)

logger = logging.getLogger(__name__)

DEFAULT_PACKAGE = "generated"

# Built-in simple types → Python type names.
_BUILTIN_TYPES: dict[str, str] = {
    "string": "str",
    "normalizedString": "str",
    "token": "str",
    "anyURI": "str",
    "ID": "str",
    "IDREF": "str",
    "NCName": "str",
    "Name": "str",
    "language": "str",
    "QName": "str",
    "boolean": "bool",
    "int": "int",
    "integer": "int",
    "long": "int",
    "short": "int",
    "byte": "int",
    "nonNegativeInteger": "int",
    "positiveInteger": "int",
    "negativeInteger": "int",
    "nonPositiveInteger": "int",
    "unsignedInt": "int",
    "unsignedLong": "int",
    "unsignedShort": "int",
    "unsignedByte": "int",
    "decimal": "Decimal",
    "float": "float",
    "double": "float",
    "date": "date",
    "dateTime": "datetime",
    "time": "time",
    "duration": "timedelta",
    "base64Binary": "bytes",
    "hexBinary": "bytes",
    "anyType": "object",
    "anySimpleType": "str",
}


class _Compiler:
    def __init__(self, schema: SchemaSet, name_converter: NameConverter) -> None:
        self.schema = schema
        self.names = name_converter
        self.properties = PropertyResolver(name_converter)
        self.outline = Outline(schema=schema, name_converter=name_converter)
        self._type_classes: dict[QName, ClassOutline] = {}
        self._element_classes: dict[QName, ClassOutline] = {}

    # ── naming ──

    def _package_name(self, namespace: str) -> str:
        return self.names.to_package_name(namespace) or DEFAULT_PACKAGE

    def _declare(self, qname: QName, component: object) -> ClassOutline:
        pkg = self.outline.get_package(self._package_name(qname.namespace), qname.namespace)
        class_name = self.names.to_class_name(qname.local)
        try:
            cls = pkg.declare_class(class_name)
        except ClassAlreadyExistsError as e:
            raise SchemaParseError(
                f"Two schema components map to class {e.existing.full_name}: "
                f"{e.existing.schema_component} and {component}. "
                f"Fix: rename one of them in the schema."
            ) from e
        cls.schema_component = component
        self.outline.classes.append(cls)
        return cls

    def _type_name(self, type_name: QName | None, anonymous: ComplexType | None, owner: QName | None) -> str:
        if anonymous is not None and owner is not None and owner in self._element_classes:
            return self._element_classes[owner].full_name
        if type_name is None:
            return "object" if anonymous is not None else "str"
        if type_name.namespace == XS_NS:
            return _BUILTIN_TYPES.get(type_name.local, "str")
        cls = self._type_classes.get(type_name)
        if cls is not None:
            return cls.full_name
        # Named simple types collapse to str.
        return "str"

    # ── fields ──

    def _add_property(self, cls: ClassOutline, property_name: str, type_: str, repeated: bool, component: object) -> None:
        if any(f.property_name == property_name for f in cls.fields):
            logger.warning("Duplicate property %s on %s; keeping the first", property_name, cls.full_name)
            return
        field_type = f"list[{type_}]" if repeated else type_
        cls.add_field(self.names.to_variable_name(property_name), property_name, field_type, component)

    def _collect_particle(self, cls: ClassOutline, particle: Particle | None, repeated: bool, seen: set[QName]) -> None:
        if particle is None:
            return
        repeated = repeated or particle.is_repeated
        term = particle.term
        if isinstance(term, ElementDecl):
            owner = term.qname if term.is_global else None
            type_ = self._type_name(term.type_name, term.complex_type, owner)
            self._add_property(cls, self.properties.property_name(term), type_, repeated, term)
        elif isinstance(term, ModelGroup):
            for child in term:
                self._collect_particle(cls, child, repeated, seen)
        elif isinstance(term, GroupRef):
            decl = self.schema.group(term)
            if decl is None or term.qname in seen:
                return
            seen = seen | {term.qname}
            for child in decl.model_group:
                self._collect_particle(cls, child, repeated, seen)
        elif isinstance(term, Wildcard):
            self._add_property(cls, "Any", "list[object]", False, term)

    def _collect_attributes(
        self,
        cls: ClassOutline,
        uses: tuple[AttributeUse, ...],
        groups: tuple[GroupRef, ...],
        seen: set[QName],
    ) -> None:
        for use in uses:
            type_ = self._type_name(use.decl.type_name, None, None)
            self._add_property(cls, self.properties.property_name(use), type_, False, use)
        for ref in groups:
            decl = self.schema.group(ref)
            if decl is None or ref.qname in seen:
                continue
            self._collect_attributes(cls, decl.attribute_uses, decl.att_groups, seen | {ref.qname})

    def _add_accessors(self, cls: ClassOutline) -> None:
        for f in cls.fields:
            # Wildcard and mixed content is published as "Content".
            name = "Content" if f.property_name == "Any" else f.property_name
            cls.method(("is" if f.type == "bool" else "get") + name, f.type)
            if not f.is_collection:
                setter = cls.method("set" + name)
                setter.param(f.type, "value")

    def _add_creator(self, cls: ClassOutline) -> None:
        cls.package.object_factory.append(MethodOutline("create" + cls.name, cls.full_name))

    # ── driver ──

    def compile(self) -> Outline:
        # Declare every class first so field types can reference any of them.
        pending: list[tuple[ClassOutline, object]] = []
        for qname, ctype in self.schema.complex_types.items():
            cls = self._declare(qname, ctype)
            self._type_classes[qname] = cls
            pending.append((cls, ctype))
        for qname, element in self.schema.elements.items():
            if element.complex_type is not None:
                cls = self._declare(qname, element)
                self._element_classes[qname] = cls
                pending.append((cls, element.complex_type))
        for decl in self.schema.iterate_model_group_decls():
            cls = self._declare(decl.qname, decl)
            self.outline.classes_by_schema_component[decl.qname] = cls
            pending.append((cls, decl))
        for decl in self.schema.iterate_att_group_decls():
            cls = self._declare(decl.qname, decl)
            self.outline.classes_by_schema_component[decl.qname] = cls
            pending.append((cls, decl))

        for cls, source in pending:
            if isinstance(source, ComplexType):
                self._collect_particle(cls, source.content_particle(), False, set())
                self._collect_attributes(cls, source.attribute_uses, source.att_groups, set())
                if source.mixed and not any(f.property_name == "Any" for f in cls.fields):
                    self._add_property(cls, "Any", "list[object]", False, source)
            elif isinstance(source, ModelGroupDecl):
                self._collect_particle(cls, Particle(source.model_group), False, {source.qname})
            elif isinstance(source, AttGroupDecl):
                self._collect_attributes(cls, source.attribute_uses, source.att_groups, {source.qname})
            self._add_accessors(cls)
            self._add_creator(cls)

        logger.info(
            "Compiled outline: %d classes in %d packages",
            len(self.outline.classes),
            len(self.outline.packages),
        )
        return self.outline


def compile_outline(schema: SchemaSet, name_converter: NameConverter | None = None) -> Outline:
    """Generate the placeholder class outline for *schema*.

    Raises:
        SchemaParseError: If two components map to the same class name.
    """
    return _Compiler(schema, name_converter or NameConverter()).compile()
