"""Builder-contract interfaces for synthesized group interfaces.

When builder interfaces are enabled, every synthesized group interface gets a
nested ``BuildSupport`` interface. Populating it is delegated to a
BuilderGenerator; InterfaceBuilderGenerator is the default, which declares the
abstract fluent ``with<Property>`` methods, ``build()`` and the copy-builder
factory on the group interface.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Mapping, Protocol

from group_interfaces.outline import ClassOutline

if TYPE_CHECKING:
    from group_interfaces.generator import InterfaceOutline

BUILDER_INTERFACE_NAME = "BuildSupport"


@dataclass(eq=False)
class BuilderOutline:
    definition: InterfaceOutline
    builder_class: ClassOutline

    @property
    def name(self) -> str:
        return self.builder_class.full_name


class BuilderGenerator(Protocol):
    def build_properties(
        self,
        builder_outline: BuilderOutline,
        builder_outlines: Mapping[str, BuilderOutline],
        *,
        new_builder_method_name: str,
        new_copy_builder_method_name: str,
    ) -> None:
        """Declare the builder members for *builder_outline*.

        Args:
            builder_outline:  The (interface, builder contract) pair to populate.
            builder_outlines: All pairs of this run, keyed by interface full name,
                              for contracts that extend their superinterface's builder.
        """
        ...


class InterfaceBuilderGenerator:
    """Declares abstract builder contracts; implementations come from the builder plugin."""

    def build_properties(
        self,
        builder_outline: BuilderOutline,
        builder_outlines: Mapping[str, BuilderOutline],
        *,
        new_builder_method_name: str,
        new_copy_builder_method_name: str,
    ) -> None:
        builder = builder_outline.builder_class
        definition = builder_outline.definition

        for super_interface in definition.super_interfaces:
            super_builder = builder_outlines.get(super_interface.type_name)
            if super_builder is not None:
                builder.implements_(super_builder.name)

        for field in definition.declared_fields:
            with_method = builder.method("with" + field.property_name, builder.full_name, abstract=True)
            with_method.param(field.type, field.name)
        builder.method("build", definition.type_name, abstract=True)

        # new_builder_method_name names a static factory, which only concrete
        # builder implementations declare.
        definition.impl_class.method(new_copy_builder_method_name, builder.full_name, abstract=True)
