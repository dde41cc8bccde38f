"""Jinja2 rendering of interface documentation and run reports.

Public API
----------
- render_schema_fragment(source) : serialised XSD fragment of a schema component
- render_interface_doc(decl)     : documentation attached to a synthesized interface
- render_report(result, ...)     : plain-text summary of a generation run
"""

from __future__ import annotations

import copy
import dataclasses
import pathlib
import xml.etree.ElementTree as ET
from typing import TYPE_CHECKING, Sequence

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from group_interfaces.config import GeneratorOptions
from group_interfaces.diagnostics import Diagnostic
from group_interfaces.outline import MethodOutline
from group_interfaces.types import JAXB_NS, XS_NS

if TYPE_CHECKING:
    from group_interfaces.generator import GenerationResult
    from group_interfaces.xsd import GroupDecl

_TEMPLATES_DIR = pathlib.Path(__file__).parent / "templates"

ET.register_namespace("xs", XS_NS)
ET.register_namespace("jaxb", JAXB_NS)


def _environment(template_dir: pathlib.Path = _TEMPLATES_DIR) -> Environment:
    return Environment(
        loader=FileSystemLoader(str(template_dir)),
        undefined=StrictUndefined,
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def render_schema_fragment(source: ET.Element | None) -> str:
    """Serialise *source* back to XSD text, re-indented to column zero."""
    if source is None:
        return ""
    elem = copy.copy(source)
    elem.tail = None
    lines = ET.tostring(elem, encoding="unicode").splitlines()
    if len(lines) > 1:
        # The closing tag carries the element's original indentation.
        indent = len(lines[-1]) - len(lines[-1].lstrip())
        lines = [lines[0]] + [
            line[indent:] if line[:indent].isspace() else line.lstrip()
            for line in lines[1:]
        ]
    return "\n".join(line.rstrip() for line in lines)


def render_interface_doc(decl: GroupDecl) -> str:
    template = _environment().get_template("interface_doc.j2")
    return template.render(
        kind=decl.kind.value,
        qname=str(decl.qname),
        namespace=decl.qname.namespace,
        name=decl.qname.local,
        locator=decl.locator,
        fragment=render_schema_fragment(decl.source),
    )


def format_method(method: MethodOutline) -> str:
    """``setStreet(value: str) -> None raises PropertyVetoError``"""
    params = ", ".join(f"{p.name}: {p.type}" for p in method.params)
    text = f"{method.name}({params}) -> {method.return_type}"
    if method.raises:
        text += " raises " + ", ".join(method.raises)
    return text


def _active_plugins(options: GeneratorOptions) -> list[str]:
    return [
        f.name.replace("_", "-")
        for f in dataclasses.fields(options.plugins)
        if getattr(options.plugins, f.name)
    ]


def render_report(
    result: GenerationResult,
    options: GeneratorOptions | None = None,
    warnings: Sequence[Diagnostic] = (),
) -> str:
    """Render the run summary: interfaces, their members and the implementations bound to them."""
    options = options or GeneratorOptions()

    interfaces = []
    for interface in result.all_interfaces():
        builder = result.builder_outlines.get(interface.type_name)
        interfaces.append({
            "name": interface.type_name,
            "kind": interface.schema_component.kind.value,
            "component": str(interface.name),
            "supers": [s.type_name for s in interface.super_interfaces],
            "methods": [format_method(m) for m in interface.impl_class.methods],
            "builder": None if builder is None else {
                "name": builder.name,
                "methods": [format_method(m) for m in builder.builder_class.methods],
            },
        })

    classes = [
        {"name": name, "implements": implements}
        for name, implements in result.implementations.items()
    ]

    template = _environment().get_template("report.j2")
    return template.render(
        interfaces=interfaces,
        referenced=result.referenced,
        plugins=_active_plugins(options),
        classes=classes,
        warnings=[str(w) for w in warnings],
    )
