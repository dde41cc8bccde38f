"""Property resolution and structural walking of group declarations.

One walker answers both questions the generator asks of a group declaration:
which members become interface properties, and which nested groups it
composes. Complex types are walked with the same group-reference rule, so the
superinterface linker and the implementation binder cannot disagree on what
"directly uses a group" means.

Group-reference rule: a referenced group counts only when it is reached
through a chain of non-repeated particles. For a model-group declaration that
is its direct, non-repeated ``<xs:group ref>`` children; for a complex type's
content it is either the content particle itself (when it is a group ref) or
the direct non-repeated group-ref children of its top-level compositor.
Repeated particles and any other term stop the descent.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass

from group_interfaces.naming import NameConverter
from group_interfaces.xsd import (
    AttGroupDecl,
    AttributeUse,
    ComplexType,
    ElementDecl,
    GroupDecl,
    GroupRef,
    ModelGroup,
    ModelGroupDecl,
    Particle,
)

MemberDecl = ElementDecl | AttributeUse


@dataclass(frozen=True)
class PropertyUse:
    """A member declaration of a group, with its derived property name."""

    declaration: MemberDecl
    name: str
    fixed: bool

    @property
    def locator(self):
        return self.declaration.locator


@dataclass(frozen=True)
class GroupStructure:
    members: tuple[PropertyUse, ...]
    group_refs: tuple[GroupRef, ...]

    def duplicate_names(self) -> list[str]:
        counts = Counter(m.name for m in self.members)
        return [name for name, n in counts.items() if n > 1]


@dataclass(frozen=True)
class TypeGroupUses:
    """Groups a complex type uses directly."""

    attribute_groups: tuple[GroupRef, ...]
    model_groups: tuple[GroupRef, ...]


def is_fixed(declaration: MemberDecl) -> bool:
    if isinstance(declaration, AttributeUse):
        return declaration.fixed is not None or declaration.decl.fixed is not None
    return declaration.fixed is not None


def _direct_group_refs(model_group: ModelGroup) -> tuple[GroupRef, ...]:
    return tuple(
        p.term for p in model_group
        if isinstance(p.term, GroupRef) and not p.is_repeated
    )


def model_group_refs(particle: Particle | None) -> tuple[GroupRef, ...]:
    """Group refs reachable from *particle* through non-repeated particles."""
    if particle is None or particle.is_repeated:
        return ()
    term = particle.term
    if isinstance(term, GroupRef):
        return (term,)
    if isinstance(term, ModelGroup):
        return _direct_group_refs(term)
    return ()


class PropertyResolver:
    def __init__(self, name_converter: NameConverter) -> None:
        self.name_converter = name_converter

    def property_name(self, declaration: MemberDecl) -> str:
        """Custom property name first, naming convention second."""
        if isinstance(declaration, AttributeUse):
            custom = declaration.property_name or declaration.decl.property_name
        else:
            custom = declaration.property_name
        if custom:
            return custom[:1].upper() + custom[1:]
        return self.name_converter.to_property_name(declaration.name)

    def _use(self, declaration: MemberDecl) -> PropertyUse:
        return PropertyUse(declaration, self.property_name(declaration), is_fixed(declaration))

    def walk(self, decl: GroupDecl) -> GroupStructure:
        if isinstance(decl, AttGroupDecl):
            return GroupStructure(
                members=tuple(self._use(u) for u in decl.attribute_uses),
                group_refs=decl.att_groups,
            )
        assert isinstance(decl, ModelGroupDecl)
        return GroupStructure(
            members=tuple(
                self._use(p.term) for p in decl.model_group
                if isinstance(p.term, ElementDecl)
            ),
            group_refs=_direct_group_refs(decl.model_group),
        )

    def resolve_members(self, decl: GroupDecl) -> tuple[PropertyUse, ...]:
        return self.walk(decl).members

    @staticmethod
    def type_group_uses(complex_type: ComplexType) -> TypeGroupUses:
        return TypeGroupUses(
            attribute_groups=complex_type.att_groups,
            model_groups=model_group_refs(complex_type.content_particle()),
        )
