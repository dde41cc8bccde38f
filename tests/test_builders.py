"""Tests for scripts/group_interfaces/builders.py.

Builder contracts are generated only when the builder interface option and the
fluent-builder plugin are both active.
"""

from __future__ import annotations

import pytest

from conftest import PACKAGE, make_generator, method_names, run_generator
from group_interfaces.builders import BUILDER_INTERFACE_NAME, BuilderOutline
from group_interfaces.compiler import compile_outline
from group_interfaces.config import CompanionPlugins, GeneratorOptions
from group_interfaces.diagnostics import GroupInterfaceError
from group_interfaces.generator import GroupInterfaceGenerator
from group_interfaces.xsd import load_schema_set

BUILDING = GeneratorOptions(
    declare_builder_interface=True,
    plugins=CompanionPlugins(fluent_builder=True),
)

INNER = f"{PACKAGE}.Inner"
OUTER = f"{PACKAGE}.Outer"


class TestBuilderContracts:
    def test_one_contract_per_interface(self, scenario_path) -> None:
        run = run_generator(scenario_path("nested_groups"), options=BUILDING)
        assert set(run.result.builder_outlines) == {INNER, OUTER}
        inner = run.result.builder_outlines[INNER]
        assert inner.name == f"{INNER}.{BUILDER_INTERFACE_NAME}"
        assert inner.builder_class.is_interface
        assert inner.definition.impl_class.nested == {BUILDER_INTERFACE_NAME: inner.builder_class}

    def test_with_methods_and_build(self, scenario_path) -> None:
        run = run_generator(scenario_path("nested_groups"), options=BUILDING)
        builder = run.result.builder_outlines[INNER].builder_class
        assert [m.signature for m in builder.methods] == [
            ("withCode", f"{INNER}.BuildSupport", ("str",)),
            ("build", INNER, ()),
        ]
        assert builder.get_method("withCode", arity=1).params[0].name == "code"
        assert all(m.abstract for m in builder.methods)

    def test_contract_extends_superinterface_contract(self, scenario_path) -> None:
        run = run_generator(scenario_path("nested_groups"), options=BUILDING)
        outer = run.result.builder_outlines[OUTER].builder_class
        assert outer.implements == [f"{INNER}.BuildSupport"]
        assert run.result.builder_outlines[INNER].builder_class.implements == []

    def test_copy_builder_factory_on_interface(self, scenario_path) -> None:
        run = run_generator(scenario_path("nested_groups"), options=BUILDING)
        outer = run.result.interface(run.result.builder_outlines[OUTER].definition.name)
        assert method_names(outer.impl_class) == ["getLabel", "setLabel", "newCopyBuilder"]
        assert outer.impl_class.get_method("newCopyBuilder").return_type == f"{OUTER}.BuildSupport"

    def test_custom_copy_builder_name(self, scenario_path) -> None:
        options = GeneratorOptions(
            declare_builder_interface=True,
            new_copy_builder_method_name="toBuilder",
            plugins=CompanionPlugins(fluent_builder=True),
        )
        run = run_generator(scenario_path("nested_groups"), options=options)
        inner = run.result.builder_outlines[INNER].definition.impl_class
        assert inner.get_method("toBuilder") is not None
        assert inner.get_method("newCopyBuilder") is None

    @pytest.mark.parametrize(
        "options",
        [
            pytest.param(GeneratorOptions(), id="defaults"),
            pytest.param(GeneratorOptions(declare_builder_interface=True), id="no-fluent-plugin"),
            pytest.param(GeneratorOptions(plugins=CompanionPlugins(fluent_builder=True)), id="option-off"),
        ],
    )
    def test_disabled(self, options: GeneratorOptions, scenario_path) -> None:
        run = run_generator(scenario_path("nested_groups"), options=options)
        assert run.result.builder_outlines == {}
        assert all(i.impl_class.nested == {} for i in run.result.all_interfaces())

    def test_second_contract_is_fatal(self, scenario_path) -> None:
        generator, handler, _ = make_generator(scenario_path("nested_groups"), options=BUILDING)
        result = generator.generate_group_interface_model()
        with pytest.raises(GroupInterfaceError, match="BuildSupport already exists"):
            generator.generate_builder_interfaces(result.all_interfaces())
        (error,) = handler.errors
        assert error.locator is not None


class RecordingBuilderGenerator:
    def __init__(self) -> None:
        self.calls: list[tuple[str, list[str], str, str]] = []

    def build_properties(
        self,
        builder_outline: BuilderOutline,
        builder_outlines,
        *,
        new_builder_method_name: str,
        new_copy_builder_method_name: str,
    ) -> None:
        self.calls.append(
            (builder_outline.name, sorted(builder_outlines), new_builder_method_name, new_copy_builder_method_name)
        )


class TestBuilderGeneratorProtocol:
    """Any object with build_properties() can populate the contracts."""

    def test_custom_generator_is_called_per_interface(self, scenario_path) -> None:
        outline = compile_outline(load_schema_set(scenario_path("nested_groups")))
        recorder = RecordingBuilderGenerator()
        options = GeneratorOptions(
            declare_builder_interface=True,
            new_builder_method_name="builder",
            plugins=CompanionPlugins(fluent_builder=True),
        )
        result = GroupInterfaceGenerator(outline, options, builder_generator=recorder).generate_group_interface_model()
        assert recorder.calls == [
            (f"{INNER}.BuildSupport", [INNER, OUTER], "builder", "newCopyBuilder"),
            (f"{OUTER}.BuildSupport", [INNER, OUTER], "builder", "newCopyBuilder"),
        ]
        assert all(b.builder_class.methods == [] for b in result.builder_outlines.values())
