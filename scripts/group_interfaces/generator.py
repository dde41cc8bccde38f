"""Group-interface synthesis.

Turns every named model group and attribute group of a schema set into an
interface, wires interface inheritance after schema group composition, and
makes the generated implementation classes implement the interfaces of the
groups they use.

Pipeline (GroupInterfaceGenerator.generate_group_interface_model):

1. Episode index load. Groups already published by an upstream episode are
   never redeclared; they are referenced through their upstream interface.
2. Synthesis, per group kind. Each remaining group's placeholder class is
   removed from its package and an interface of the same name is declared in
   its place, with abstract accessors (and, unless immutable, mutators)
   mirroring the placeholder's own.
3. Superinterface linking, per group kind, over the freshly synthesized batch.
4. Implementation binding for every class with complex-type content. The
   class → interfaces associations are returned as an ImplementsBindings value.
5. Dummy cleanup: creator methods and class-list entries of the displaced
   placeholder classes are dropped. Runs only after steps 3 and 4, which still
   read the placeholders.
6. Builder contracts, when enabled.

Failure policy: fatal conditions are reported through the ErrorHandler and
then raised as GroupInterfaceError. Unresolvable implements targets are
warnings. Members without a getter and unresolvable superinterface references
are skipped silently.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping, NoReturn, Union

from group_interfaces.builders import (
    BUILDER_INTERFACE_NAME,
    BuilderGenerator,
    BuilderOutline,
    InterfaceBuilderGenerator,
)
from group_interfaces.config import GeneratorOptions
from group_interfaces.diagnostics import ErrorHandler, GroupInterfaceError
from group_interfaces.episode import (
    EpisodeBuilder,
    EpisodeIndex,
    EpisodeLoadError,
    ReferencedInterfaceOutline,
    TypeEnvironment,
)
from group_interfaces.outline import (
    ClassAlreadyExistsError,
    ClassOutline,
    FieldOutline,
    MethodOutline,
    Outline,
)
from group_interfaces.properties import PropertyResolver, PropertyUse
from group_interfaces.render import render_interface_doc
from group_interfaces.types import Locator, QName
from group_interfaces.xsd import ComplexType, ElementDecl, GroupDecl, GroupRef

logger = logging.getLogger(__name__)

VETOED_CHANGE_ERROR = "PropertyVetoError"


# ─── Outlines ─────────────────────────────────────────────────────────────────


@dataclass(eq=False)
class InterfaceOutline:
    """A synthesized group interface.

    ``impl_class`` is the interface entity itself; ``class_outline`` is the
    displaced placeholder class it was derived from, kept for accessor lookup.
    """

    schema_component: GroupDecl
    impl_class: ClassOutline
    class_outline: ClassOutline
    super_interfaces: list[TypeOutline] = field(default_factory=list)
    declared_fields: list[FieldOutline] = field(default_factory=list)

    @property
    def name(self) -> QName:
        return self.schema_component.qname

    @property
    def type_name(self) -> str:
        return self.impl_class.full_name

    @property
    def super_interface(self) -> TypeOutline | None:
        return self.super_interfaces[0] if self.super_interfaces else None

    def add_super_interface(self, type_outline: TypeOutline) -> None:
        self.super_interfaces.append(type_outline)

    def add_field(self, field_outline: FieldOutline) -> None:
        self.declared_fields.append(field_outline)


TypeOutline = Union[InterfaceOutline, ReferencedInterfaceOutline]


@dataclass
class ImplementsBindings:
    """Which synthesized interfaces each implementation class implements."""

    by_class: dict[str, list[InterfaceOutline]] = field(default_factory=dict)

    def put(self, class_outline: ClassOutline, interface: InterfaceOutline) -> None:
        self.by_class.setdefault(class_outline.full_name, []).append(interface)

    def get_group_interfaces_for_class(self, class_outline: ClassOutline) -> list[InterfaceOutline]:
        return list(self.by_class.get(class_outline.full_name, []))

    def __len__(self) -> int:
        return len(self.by_class)


@dataclass
class GenerationResult:
    model_group_interfaces: dict[QName, InterfaceOutline]
    attribute_group_interfaces: dict[QName, InterfaceOutline]
    bindings: ImplementsBindings
    referenced: Mapping[QName, ReferencedInterfaceOutline]
    builder_outlines: dict[str, BuilderOutline] = field(default_factory=dict)
    implementations: dict[str, list[str]] = field(default_factory=dict)

    def all_interfaces(self) -> list[InterfaceOutline]:
        return [*self.model_group_interfaces.values(), *self.attribute_group_interfaces.values()]

    def interface(self, qname: QName) -> InterfaceOutline | None:
        return self.model_group_interfaces.get(qname) or self.attribute_group_interfaces.get(qname)


# ─── Accessor lookup ──────────────────────────────────────────────────────────


def _accessor_property_name(field_outline: FieldOutline) -> str:
    # Wildcard content is exposed through getContent, not getAny.
    return "Content" if field_outline.property_name == "Any" else field_outline.property_name


def find_getter(field_outline: FieldOutline) -> MethodOutline | None:
    cls = field_outline.parent
    name = _accessor_property_name(field_outline)
    return cls.get_method("get" + name) or cls.get_method("is" + name)


def find_setter(field_outline: FieldOutline) -> MethodOutline | None:
    setter_name = "set" + _accessor_property_name(field_outline)
    for method in field_outline.parent.methods:
        if method.name == setter_name and len(method.params) == 1:
            return method
    return None


def _type_definition(component: object) -> ComplexType | None:
    if isinstance(component, ComplexType):
        return component
    if isinstance(component, ElementDecl):
        return component.complex_type
    return None


# ─── Generator ────────────────────────────────────────────────────────────────


class GroupInterfaceGenerator:
    def __init__(
        self,
        outline: Outline,
        options: GeneratorOptions | None = None,
        *,
        error_handler: ErrorHandler | None = None,
        episode_index: EpisodeIndex | None = None,
        episode_builder: EpisodeBuilder | None = None,
        environment: TypeEnvironment | None = None,
        builder_generator: BuilderGenerator | None = None,
    ) -> None:
        self.outline = outline
        self.options = options or GeneratorOptions()
        self.error_handler = error_handler or ErrorHandler()
        self.environment = environment if environment is not None else TypeEnvironment()
        # An empty EpisodeIndex or TypeEnvironment is falsy.
        if episode_index is None:
            episode_index = EpisodeIndex(self.options.upstream_episode, environment)
        self.episode_index = episode_index
        self.episode_builder = episode_builder
        self.builder_generator = builder_generator or InterfaceBuilderGenerator()
        self.resolver = PropertyResolver(outline.name_converter)

    def _fail(self, message: str, locator: Locator | None) -> NoReturn:
        raise GroupInterfaceError(self.error_handler.error(message, locator))

    # ── pipeline ──

    def generate_group_interface_model(self) -> GenerationResult:
        try:
            referenced = self.episode_index.load()
        except EpisodeLoadError as e:
            self.error_handler.error(str(e))
            raise
        schema = self.outline.schema

        model_group_interfaces = self.generate_group_interfaces(schema.iterate_model_group_decls())
        attribute_group_interfaces = self.generate_group_interfaces(schema.iterate_att_group_decls())

        bindings = ImplementsBindings()
        for class_outline in list(self.outline.classes):
            complex_type = _type_definition(class_outline.schema_component)
            if complex_type is None:
                continue
            uses = self.resolver.type_group_uses(complex_type)
            self.bind_implements(class_outline, uses.attribute_groups, attribute_group_interfaces, bindings)
            self.bind_implements(class_outline, uses.model_groups, model_group_interfaces, bindings)

        for interface in [*model_group_interfaces.values(), *attribute_group_interfaces.values()]:
            self.remove_dummy_implementation(interface)

        result = GenerationResult(
            model_group_interfaces=model_group_interfaces,
            attribute_group_interfaces=attribute_group_interfaces,
            bindings=bindings,
            referenced=referenced,
            implementations={c.full_name: list(c.implements) for c in self.outline.classes if c.implements},
        )
        if self.options.builds_interfaces:
            result.builder_outlines = self.generate_builder_interfaces(result.all_interfaces())

        logger.info(
            "Group interfaces: %d model group, %d attribute group, %d referenced upstream, %d classes bound",
            len(model_group_interfaces),
            len(attribute_group_interfaces),
            len(referenced),
            len(bindings),
        )
        return result

    def generate_group_interfaces(self, group_decls: Iterable[GroupDecl]) -> dict[QName, InterfaceOutline]:
        """Synthesize interfaces for one group kind and link their superinterfaces."""
        interfaces: dict[QName, InterfaceOutline] = {}
        for decl in group_decls:
            if self.episode_index.is_known(decl.qname):
                logger.debug("%s is published upstream; not redeclaring it", decl)
                continue
            interface = self.create_interface_declaration(decl)
            interfaces[decl.qname] = interface
            if self.episode_builder is not None:
                self.episode_builder.add_interface(decl, interface.impl_class)
        self.link_super_interfaces(interfaces)
        return interfaces

    # ── synthesis ──

    def create_interface_declaration(self, decl: GroupDecl) -> InterfaceOutline:
        package = self.outline.package_for_namespace(decl.target_namespace)
        if package is None:
            self._fail(
                f"No package found for namespace '{decl.target_namespace}' of {decl}. "
                f"Every namespace that declares groups needs generated classes.",
                decl.locator,
            )

        dummy = self.outline.classes_by_schema_component.get(decl.qname)
        if dummy is None:
            self._fail(
                f"No implementation class "
                f"{self.outline.name_converter.to_class_name(decl.name)} found for "
                f"{decl.kind.value} '{decl.name}' in namespace '{decl.target_namespace}'.",
                decl.locator,
            )

        interface_name = dummy.name
        package.remove(dummy)
        try:
            interface_class = package.declare_interface(interface_name)
        except ClassAlreadyExistsError as e:
            self._fail(f"Interface {e.existing.full_name} already exists.", decl.locator)
        interface_class.schema_component = decl
        interface_class.doc = render_interface_doc(decl)
        interface = InterfaceOutline(decl, interface_class, dummy)

        structure = self.resolver.walk(decl)
        for name in structure.duplicate_names():
            first, second, *_ = [use for use in structure.members if use.name == name]
            self._fail(
                f"{second.declaration} and {first.declaration} of {decl} both map "
                f"to property '{name}'. Give one of them a distinct property name.",
                second.locator,
            )

        for use in structure.members:
            if use.fixed:
                continue
            self.generate_property(interface, self._find_field(dummy, use))

        logger.debug(
            "Synthesized interface %s for %s (%d properties)",
            interface.type_name, decl, len(interface.declared_fields),
        )
        return interface

    def _find_field(self, class_outline: ClassOutline, use: PropertyUse) -> FieldOutline:
        for field_outline in class_outline.fields:
            if field_outline.property_name == use.name:
                return field_outline
        self._fail(
            f"Property '{use.name}' of {use.declaration} not found in class {class_outline.full_name}.",
            use.locator,
        )

    def generate_property(self, interface: InterfaceOutline, implemented: FieldOutline) -> None:
        getter = find_getter(implemented)
        if getter is not None:
            interface.impl_class.method(getter.name, getter.return_type, abstract=True)
            if not self.options.immutable:
                setter = find_setter(implemented)
                if setter is not None:
                    new_setter = interface.impl_class.method(setter.name, setter.return_type, abstract=True)
                    param = setter.params[0]
                    new_setter.param(param.type, param.name)
                    if self.options.throws_property_veto:
                        new_setter.raises.append(VETOED_CHANGE_ERROR)
        else:
            logger.debug("No getter for %s on %s", implemented.property_name, implemented.parent.full_name)
        interface.add_field(implemented)

    # ── superinterfaces ──

    def link_super_interfaces(self, interfaces: Mapping[QName, InterfaceOutline]) -> None:
        for interface in interfaces.values():
            for ref in self.resolver.walk(interface.schema_component).group_refs:
                target: TypeOutline | None = interfaces.get(ref.qname)
                if target is None:
                    target = self.episode_index.lookup(ref.qname)
                if target is None:
                    logger.debug("Superinterface %s of %s is not an interface", ref.qname, interface.type_name)
                    continue
                interface.add_super_interface(target)
                interface.impl_class.implements_(target.type_name)

    # ── implementation binding ──

    def bind_implements(
        self,
        class_outline: ClassOutline,
        group_uses: Iterable[GroupRef],
        interfaces: Mapping[QName, InterfaceOutline],
        bindings: ImplementsBindings,
    ) -> None:
        for group_use in group_uses:
            defined = interfaces.get(group_use.qname)
            if defined is not None:
                class_outline.implements_(defined.type_name)
                bindings.put(class_outline, defined)
                continue

            handle = self.episode_index.lookup(group_use.qname)
            if handle is None:
                names = self.outline.name_converter
                package = names.to_package_name(group_use.qname.namespace)
                if package is None:
                    self.error_handler.warning(
                        f"No package found for namespace '{group_use.qname.namespace}' of "
                        f"group '{group_use.name}' used by {class_outline.full_name}.",
                        group_use.locator,
                    )
                    continue
                interface_name = f"{package}.{names.to_class_name(group_use.name)}"
                handle = self.environment.resolve(interface_name) or ReferencedInterfaceOutline(
                    interface_name, compiled=False
                )

            if not handle.compiled:
                self.error_handler.warning(
                    f"Interface {handle.name} for group '{group_use.name}' not found; "
                    f"{class_outline.full_name} will not implement it.",
                    group_use.locator,
                )
                continue
            class_outline.implements_(handle.type_name)

    # ── cleanup ──

    def remove_dummy_implementation(self, interface: InterfaceOutline) -> None:
        dummy = interface.class_outline
        creator = "create" + dummy.name
        factory = dummy.package.object_factory
        factory[:] = [m for m in factory if m.name != creator]
        if dummy in self.outline.classes:
            self.outline.classes.remove(dummy)

    # ── builder contracts ──

    def generate_builder_interfaces(self, interfaces: Iterable[InterfaceOutline]) -> dict[str, BuilderOutline]:
        builder_outlines: dict[str, BuilderOutline] = {}
        for interface in interfaces:
            try:
                builder_class = interface.impl_class.declare_nested_interface(BUILDER_INTERFACE_NAME)
            except ClassAlreadyExistsError as e:
                self._fail(f"Interface {e.existing.full_name} already exists.", interface.schema_component.locator)
            builder_outlines[interface.type_name] = BuilderOutline(interface, builder_class)

        for builder_outline in builder_outlines.values():
            self.builder_generator.build_properties(
                builder_outline,
                builder_outlines,
                new_builder_method_name=self.options.new_builder_method_name,
                new_copy_builder_method_name=self.options.new_copy_builder_method_name,
            )
        return builder_outlines
