"""Generator configuration.

GeneratorOptions is supplied when the generator is constructed. Companion
plugins are detected by the host and passed in as CompanionPlugins; they alter
whether mutators are declared, whether they can fail, and whether builder
contracts are generated.

Environment variables (read by the CLI, see cli.py):
    GROUP_INTERFACES_UPSTREAM_EPISODE  — default for --upstream-episode
    GROUP_INTERFACES_EPISODE_OUT       — default for --episode-out
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

ENV_UPSTREAM_EPISODE = "GROUP_INTERFACES_UPSTREAM_EPISODE"
ENV_EPISODE_OUT = "GROUP_INTERFACES_EPISODE_OUT"

DEFAULT_NEW_BUILDER_METHOD_NAME = "newBuilder"
DEFAULT_NEW_COPY_BUILDER_METHOD_NAME = "newCopyBuilder"


@dataclass(frozen=True)
class CompanionPlugins:
    """Which companion behaviour plugins are active for this run.

    immutable, the bound-properties pair and fluent_builder change what the
    generator declares. deep_clone, deep_clone_throws and deep_copy are
    detected and reported, but interfaces declare no clone or copy members.
    """

    immutable: bool = False
    bound_properties_constrained: bool = False
    bound_properties_setter_throws: bool = False
    deep_clone: bool = False
    deep_clone_throws: bool = False
    deep_copy: bool = False
    fluent_builder: bool = False


@dataclass(frozen=True)
class GeneratorOptions:
    declare_setters: bool = True
    declare_builder_interface: bool = False
    new_builder_method_name: str = DEFAULT_NEW_BUILDER_METHOD_NAME
    new_copy_builder_method_name: str = DEFAULT_NEW_COPY_BUILDER_METHOD_NAME
    upstream_episode: str | Path | None = None
    plugins: CompanionPlugins = field(default_factory=CompanionPlugins)

    @property
    def immutable(self) -> bool:
        return not self.declare_setters or self.plugins.immutable

    @property
    def throws_property_veto(self) -> bool:
        return self.plugins.bound_properties_constrained and self.plugins.bound_properties_setter_throws

    @property
    def builds_interfaces(self) -> bool:
        """Builder contracts need the fluent-builder plugin as well as the option."""
        return self.declare_builder_interface and self.plugins.fluent_builder

    # Not read by the generator; see CompanionPlugins.
    @property
    def needs_clone_method(self) -> bool:
        return self.plugins.deep_clone

    @property
    def clone_method_throws(self) -> bool:
        return self.plugins.deep_clone and self.plugins.deep_clone_throws

    @property
    def needs_copy_method(self) -> bool:
        return self.plugins.deep_copy
