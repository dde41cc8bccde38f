"""Group interfaces: interface synthesis for XML Schema group declarations.

Every named model group and attribute group of a schema set becomes an
interface that replaces the placeholder class the schema compiler generated for
it. Interfaces extend the interfaces of the groups they compose, and generated
classes implement the interfaces of the groups they use. Groups already
published by an upstream episode are referenced, never redeclared.

Public API (re-exported from submodules):

Schema (xsd.py, naming.py):
    SchemaSet, SchemaParseError, load_schema_set(*paths)
    ModelGroupDecl, AttGroupDecl, ComplexType, ElementDecl, AttributeUse, GroupRef
    NameConverter       — XML name → property/class/variable/package names

Outline (outline.py, compiler.py):
    Outline, PackageOutline, ClassOutline, FieldOutline, MethodOutline
    ClassAlreadyExistsError
    compile_outline(schema_set) — placeholder classes for types and groups

Generation (generator.py, properties.py, builders.py):
    GroupInterfaceGenerator  — synthesis, linking, binding, cleanup, builders
    GenerationResult, InterfaceOutline, ImplementsBindings
    PropertyResolver, PropertyUse
    InterfaceBuilderGenerator, BuilderOutline, BUILDER_INTERFACE_NAME

Episodes (episode.py):
    EpisodeIndex, EpisodeBuilder, EpisodeLoadError
    ReferencedInterfaceOutline, TypeEnvironment, load_interface_episode(source)

Configuration and diagnostics (config.py, diagnostics.py):
    GeneratorOptions, CompanionPlugins
    ErrorHandler, Diagnostic, Severity, GroupInterfaceError

Rendering (render.py):
    render_interface_doc(decl), render_report(result)
"""

from group_interfaces.builders import (
    BUILDER_INTERFACE_NAME,
    BuilderOutline,
    InterfaceBuilderGenerator,
)
from group_interfaces.compiler import compile_outline
from group_interfaces.config import CompanionPlugins, GeneratorOptions
from group_interfaces.diagnostics import Diagnostic, ErrorHandler, GroupInterfaceError, Severity
from group_interfaces.episode import (
    EpisodeBuilder,
    EpisodeIndex,
    EpisodeLoadError,
    ReferencedInterfaceOutline,
    TypeEnvironment,
    load_interface_episode,
)
from group_interfaces.generator import (
    GenerationResult,
    GroupInterfaceGenerator,
    ImplementsBindings,
    InterfaceOutline,
)
from group_interfaces.naming import NameConverter
from group_interfaces.outline import (
    ClassAlreadyExistsError,
    ClassOutline,
    FieldOutline,
    MethodOutline,
    Outline,
    PackageOutline,
)
from group_interfaces.properties import PropertyResolver, PropertyUse
from group_interfaces.render import render_interface_doc, render_report
from group_interfaces.types import GroupKind, Locator, QName
from group_interfaces.xsd import (
    AttGroupDecl,
    AttributeUse,
    ComplexType,
    ElementDecl,
    GroupRef,
    ModelGroupDecl,
    SchemaParseError,
    SchemaSet,
    load_schema_set,
)

__all__ = [
    "BUILDER_INTERFACE_NAME",
    "AttGroupDecl",
    "AttributeUse",
    "BuilderOutline",
    "ClassAlreadyExistsError",
    "ClassOutline",
    "CompanionPlugins",
    "ComplexType",
    "Diagnostic",
    "ElementDecl",
    "EpisodeBuilder",
    "EpisodeIndex",
    "EpisodeLoadError",
    "ErrorHandler",
    "FieldOutline",
    "GenerationResult",
    "GeneratorOptions",
    "GroupInterfaceError",
    "GroupInterfaceGenerator",
    "GroupKind",
    "GroupRef",
    "ImplementsBindings",
    "InterfaceBuilderGenerator",
    "InterfaceOutline",
    "Locator",
    "MethodOutline",
    "ModelGroupDecl",
    "NameConverter",
    "Outline",
    "PackageOutline",
    "PropertyResolver",
    "PropertyUse",
    "QName",
    "ReferencedInterfaceOutline",
    "SchemaParseError",
    "SchemaSet",
    "Severity",
    "TypeEnvironment",
    "compile_outline",
    "load_interface_episode",
    "load_schema_set",
    "render_interface_doc",
    "render_report",
]
