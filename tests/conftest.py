"""Shared pytest fixtures and helpers for the group_interfaces test suite.

Provides:
- Module-level helper functions importable directly by any test module.
- pytest fixtures for writing scenario schemas and running the generator.
- Module-level _SCHEMA_FIXTURE singleton for YAML-driven scenario tests.

Module-level helpers (import directly):
    write_xsd(directory, body, name, namespace) — wrap an XSD body in a schema element and write it.
    run_generator(path, options, **kwargs)      — load, compile and generate; returns a Run.
    method_names(cls)                           — names of a ClassOutline's methods, in order.

Module-level fixtures (import directly):
    _SCHEMA_FIXTURE — SchemaFixture singleton (loaded once, shared across tests).

pytest fixtures:
    schema_fixture  — SchemaFixture singleton (YAML-driven scenario data).
    scenario_path   — factory: scenario name → path of the written XSD file.
    episode_path    — upstream episode binding tns:AddressGroup to com.example.G.
"""

from __future__ import annotations

import textwrap
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

import pytest

from group_interfaces.compiler import compile_outline
from group_interfaces.config import GeneratorOptions
from group_interfaces.diagnostics import ErrorHandler
from group_interfaces.episode import EpisodeBuilder, EpisodeIndex, TypeEnvironment
from group_interfaces.generator import GenerationResult, GroupInterfaceGenerator
from group_interfaces.outline import ClassOutline, Outline
from group_interfaces.xsd import load_schema_set

# Import after production imports so PYTHONPATH=scripts:tests resolves fixtures/
from fixtures.fixture_loader import SchemaFixture


# ─── Schema Fixture Singleton ─────────────────────────────────────────────────
# Loaded once at module import time; shared across all test modules.

_SCHEMA_FIXTURE = SchemaFixture()

NAMESPACE = _SCHEMA_FIXTURE.namespace
PACKAGE = _SCHEMA_FIXTURE.package


# ─── Module-Level Helpers ─────────────────────────────────────────────────────


def write_xsd(
    directory: Path,
    body: str,
    name: str = "schema.xsd",
    namespace: str = NAMESPACE,
    extra: str = "",
) -> Path:
    """Write *body* wrapped in an ``<xs:schema>`` for *namespace*.

    *extra* is inserted verbatim into the schema start tag (e.g. more xmlns
    declarations).
    """
    text = (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema"\n'
        '           xmlns:jaxb="https://jakarta.ee/xml/ns/jaxb"\n'
        f'           xmlns:tns="{namespace}" {extra}\n'
        f'           targetNamespace="{namespace}"\n'
        '           elementFormDefault="qualified">\n'
        f"{textwrap.indent(textwrap.dedent(body), '  ')}"
        "</xs:schema>\n"
    )
    path = Path(directory) / name
    path.write_text(text, encoding="utf-8")
    return path


@dataclass
class Run:
    """Everything one generator run produced."""

    outline: Outline
    result: GenerationResult
    generator: GroupInterfaceGenerator
    error_handler: ErrorHandler
    episode_builder: EpisodeBuilder

    def cls(self, full_name: str) -> ClassOutline:
        found = self.outline.find_class(full_name)
        assert found is not None, f"{full_name} not in outline"
        return found


def make_generator(
    *paths: Path,
    options: GeneratorOptions | None = None,
    episode: Path | None = None,
    known_types: tuple[str, ...] = (),
) -> tuple[GroupInterfaceGenerator, ErrorHandler, EpisodeBuilder]:
    outline = compile_outline(load_schema_set(*paths))
    error_handler = ErrorHandler()
    episode_builder = EpisodeBuilder()
    environment = TypeEnvironment(known_types)
    generator = GroupInterfaceGenerator(
        outline,
        options,
        error_handler=error_handler,
        episode_index=EpisodeIndex(episode),
        episode_builder=episode_builder,
        environment=environment,
    )
    return generator, error_handler, episode_builder


def run_generator(
    *paths: Path,
    options: GeneratorOptions | None = None,
    episode: Path | None = None,
    known_types: tuple[str, ...] = (),
) -> Run:
    generator, error_handler, episode_builder = make_generator(
        *paths, options=options, episode=episode, known_types=known_types
    )
    result = generator.generate_group_interface_model()
    return Run(generator.outline, result, generator, error_handler, episode_builder)


def method_names(cls: ClassOutline) -> list[str]:
    return [m.name for m in cls.methods]


# ─── pytest Fixtures ──────────────────────────────────────────────────────────


@pytest.fixture
def schema_fixture() -> SchemaFixture:
    """SchemaFixture singleton loaded from tests/fixtures/scenarios.yaml."""
    return _SCHEMA_FIXTURE


@pytest.fixture
def scenario_path(tmp_path: Path) -> Callable[[str], Path]:
    """Factory writing a named scenario schema into tmp_path."""

    def _write(scenario: str) -> Path:
        return _SCHEMA_FIXTURE.write(scenario, tmp_path)

    return _write


@pytest.fixture
def episode_path(tmp_path: Path) -> Path:
    """Upstream episode publishing tns:AddressGroup as com.example.G."""
    path = tmp_path / "upstream.episode"
    path.write_text(textwrap.dedent(f"""\
        <?xml version="1.0" encoding="UTF-8"?>
        <jaxb:bindings xmlns:jaxb="https://jakarta.ee/xml/ns/jaxb" version="3.0">
          <jaxb:bindings scd="x-schema::tns" xmlns:tns="{NAMESPACE}">
            <jaxb:bindings scd="/group::tns:AddressGroup">
              <gi:interface xmlns:gi="urn:group-interfaces:bindings" ref="com.example.G"/>
            </jaxb:bindings>
          </jaxb:bindings>
        </jaxb:bindings>
    """), encoding="utf-8")
    return path
