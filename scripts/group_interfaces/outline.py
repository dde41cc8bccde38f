"""Code outline: the in-memory model of generated packages, classes and members.

This is what the schema compiler hands to the group-interface generator and
what the generator mutates. Rendering an outline to source text is not this
module's concern.

Types are carried as plain strings (``"str"``, ``"list[int]"``,
``"com.example.Address"``); a class's fully qualified name is its package name
plus its (possibly nested) simple name.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator

from group_interfaces.naming import NameConverter
from group_interfaces.types import ClassKind, QName


class ClassAlreadyExistsError(Exception):
    """Raised when a class or interface name is already taken in its container."""

    def __init__(self, existing: ClassOutline) -> None:
        super().__init__(f"{existing.full_name} already exists")
        self.existing = existing


# ─── Members ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Param:
    name: str
    type: str


@dataclass
class MethodOutline:
    name: str
    return_type: str = "None"
    params: list[Param] = field(default_factory=list)
    raises: list[str] = field(default_factory=list)
    abstract: bool = False

    def param(self, type_: str, name: str) -> Param:
        p = Param(name, type_)
        self.params.append(p)
        return p

    @property
    def signature(self) -> tuple[str, str, tuple[str, ...]]:
        return self.name, self.return_type, tuple(p.type for p in self.params)


@dataclass(eq=False)
class FieldOutline:
    """One generated property of a class.

    ``property_name`` is the capitalised property name accessors are built
    from (``Street`` → ``getStreet``/``setStreet``).
    """

    name: str
    property_name: str
    type: str
    parent: ClassOutline = field(repr=False)
    schema_component: Any = field(default=None, repr=False)

    @property
    def is_collection(self) -> bool:
        return self.type.startswith("list[")


# ─── Classes ──────────────────────────────────────────────────────────────────


@dataclass(eq=False)
class ClassOutline:
    name: str
    package: PackageOutline = field(repr=False)
    kind: ClassKind = ClassKind.CLASS
    schema_component: Any = field(default=None, repr=False)
    outer: ClassOutline | None = field(default=None, repr=False)
    fields: list[FieldOutline] = field(default_factory=list, repr=False)
    methods: list[MethodOutline] = field(default_factory=list, repr=False)
    implements: list[str] = field(default_factory=list)
    nested: dict[str, ClassOutline] = field(default_factory=dict, repr=False)
    doc: str = field(default="", repr=False)

    @property
    def full_name(self) -> str:
        if self.outer is not None:
            return f"{self.outer.full_name}.{self.name}"
        if self.package.name:
            return f"{self.package.name}.{self.name}"
        return self.name

    @property
    def is_interface(self) -> bool:
        return self.kind is ClassKind.INTERFACE

    def add_field(self, name: str, property_name: str, type_: str, schema_component: Any = None) -> FieldOutline:
        f = FieldOutline(name, property_name, type_, self, schema_component)
        self.fields.append(f)
        return f

    def method(
        self,
        name: str,
        return_type: str = "None",
        *,
        abstract: bool = False,
    ) -> MethodOutline:
        m = MethodOutline(name, return_type, abstract=abstract)
        self.methods.append(m)
        return m

    def get_method(self, name: str, arity: int = 0) -> MethodOutline | None:
        for m in self.methods:
            if m.name == name and len(m.params) == arity:
                return m
        return None

    def implements_(self, type_name: str) -> None:
        if type_name not in self.implements:
            self.implements.append(type_name)

    def declare_nested_interface(self, name: str) -> ClassOutline:
        if name in self.nested:
            raise ClassAlreadyExistsError(self.nested[name])
        nested = ClassOutline(name, self.package, ClassKind.INTERFACE, outer=self)
        self.nested[name] = nested
        return nested


@dataclass(eq=False)
class PackageOutline:
    """A package and its class registry.

    ``namespace_uri`` is the namespace whose components land in this package.
    ``object_factory`` holds the package's creator methods (``create<Class>``).
    """

    name: str
    namespace_uri: str
    classes: dict[str, ClassOutline] = field(default_factory=dict, repr=False)
    object_factory: list[MethodOutline] = field(default_factory=list, repr=False)

    def declare_class(self, name: str, kind: ClassKind = ClassKind.CLASS) -> ClassOutline:
        if name in self.classes:
            raise ClassAlreadyExistsError(self.classes[name])
        cls = ClassOutline(name, self, kind)
        self.classes[name] = cls
        return cls

    def declare_interface(self, name: str) -> ClassOutline:
        return self.declare_class(name, ClassKind.INTERFACE)

    def get_class(self, name: str) -> ClassOutline | None:
        return self.classes.get(name)

    def remove(self, cls: ClassOutline) -> None:
        if self.classes.get(cls.name) is cls:
            del self.classes[cls.name]


@dataclass(eq=False)
class Outline:
    """Everything the schema compiler generated for one schema set.

    ``classes`` lists generated implementation classes in generation order.
    ``classes_by_schema_component`` maps a group declaration's QName to the
    placeholder class generated for it.
    """

    schema: Any = field(repr=False)
    name_converter: NameConverter = field(default_factory=NameConverter, repr=False)
    packages: dict[str, PackageOutline] = field(default_factory=dict)
    classes: list[ClassOutline] = field(default_factory=list, repr=False)
    classes_by_schema_component: dict[QName, ClassOutline] = field(default_factory=dict, repr=False)

    def get_package(self, name: str, namespace_uri: str) -> PackageOutline:
        pkg = self.packages.get(name)
        if pkg is None:
            pkg = PackageOutline(name, namespace_uri)
            self.packages[name] = pkg
        return pkg

    def package_for_namespace(self, namespace_uri: str) -> PackageOutline | None:
        for pkg in self.packages.values():
            if pkg.namespace_uri == namespace_uri:
                return pkg
        return None

    def iter_all_classes(self) -> Iterator[ClassOutline]:
        """Every class and interface currently registered in a package."""
        for pkg in self.packages.values():
            yield from pkg.classes.values()

    def find_class(self, full_name: str) -> ClassOutline | None:
        for cls in self.iter_all_classes():
            if cls.full_name == full_name:
                return cls
        return None
