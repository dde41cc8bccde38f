"""Command line entry point for the group-interface generator.

Loads one or more XSD files, compiles the placeholder class outline, runs the
group-interface generator over it and prints a report of the synthesized
interfaces and the classes bound to them.

Configuration (CLI args take precedence over env vars):
    --upstream-episode  episode of a separately compiled schema set
                        (env: GROUP_INTERFACES_UPSTREAM_EPISODE)
    --episode-out       where to write this run's interface bindings
                        (env: GROUP_INTERFACES_EPISODE_OUT)

Usage:
    group-interfaces orders.xsd
    group-interfaces orders.xsd --upstream-episode base.episode --episode-out orders.episode
    group-interfaces orders.xsd --declare-builder-interface --fluent-builder -v

Exit status: 0 on success, 1 when the schema, the episode or the generator
reports an error.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from group_interfaces.compiler import compile_outline
from group_interfaces.config import (
    DEFAULT_NEW_BUILDER_METHOD_NAME,
    DEFAULT_NEW_COPY_BUILDER_METHOD_NAME,
    ENV_EPISODE_OUT,
    ENV_UPSTREAM_EPISODE,
    CompanionPlugins,
    GeneratorOptions,
)
from group_interfaces.diagnostics import ErrorHandler, GroupInterfaceError
from group_interfaces.episode import EpisodeBuilder, EpisodeIndex, EpisodeLoadError, TypeEnvironment
from group_interfaces.generator import GroupInterfaceGenerator
from group_interfaces.render import render_report
from group_interfaces.xsd import SchemaParseError, load_schema_set

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments with environment variable fallbacks.

    Args:
        argv: Argument list to parse. If None, reads from sys.argv[1:].
    """
    parser = argparse.ArgumentParser(
        prog="group-interfaces",
        description="Synthesize interfaces for XML Schema model groups and attribute groups.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Environment variables:\n"
            f"  {ENV_UPSTREAM_EPISODE}  default for --upstream-episode\n"
            f"  {ENV_EPISODE_OUT}       default for --episode-out\n"
        ),
    )
    parser.add_argument("schemas", nargs="+", type=Path, metavar="SCHEMA.xsd", help="Schema files to compile")
    parser.add_argument(
        "--upstream-episode",
        default=os.environ.get(ENV_UPSTREAM_EPISODE),
        metavar="SRC",
        help=f"Path or URL of an upstream episode (env: {ENV_UPSTREAM_EPISODE})",
    )
    parser.add_argument(
        "--episode-out",
        type=Path,
        default=os.environ.get(ENV_EPISODE_OUT),
        metavar="PATH",
        help=f"Write the synthesized interface bindings here (env: {ENV_EPISODE_OUT})",
    )
    parser.add_argument(
        "--no-declare-setters",
        dest="declare_setters",
        action="store_false",
        help="Declare accessors only; interfaces get no mutators",
    )
    parser.add_argument(
        "--declare-builder-interface",
        action="store_true",
        help="Declare a nested builder contract on every interface (needs --fluent-builder)",
    )
    parser.add_argument("--new-builder-method-name", default=DEFAULT_NEW_BUILDER_METHOD_NAME, metavar="NAME")
    parser.add_argument("--new-copy-builder-method-name", default=DEFAULT_NEW_COPY_BUILDER_METHOD_NAME, metavar="NAME")

    plugins = parser.add_argument_group("companion plugins")
    plugins.add_argument("--immutable", action="store_true", help="Immutable classes; no mutators")
    plugins.add_argument("--bound-properties-constrained", action="store_true", help="Constrained bound properties")
    plugins.add_argument("--setter-throws", action="store_true", help="Constrained setters raise on veto")
    plugins.add_argument("--deep-clone", action="store_true")
    plugins.add_argument("--clone-throws", action="store_true")
    plugins.add_argument("--deep-copy", action="store_true")
    plugins.add_argument("--fluent-builder", action="store_true")

    parser.add_argument(
        "--known-type",
        action="append",
        default=[],
        metavar="NAME",
        help="Fully qualified name of an already compiled interface (repeatable)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def build_options(args: argparse.Namespace) -> GeneratorOptions:
    return GeneratorOptions(
        declare_setters=args.declare_setters,
        declare_builder_interface=args.declare_builder_interface,
        new_builder_method_name=args.new_builder_method_name,
        new_copy_builder_method_name=args.new_copy_builder_method_name,
        upstream_episode=args.upstream_episode,
        plugins=CompanionPlugins(
            immutable=args.immutable,
            bound_properties_constrained=args.bound_properties_constrained,
            bound_properties_setter_throws=args.setter_throws,
            deep_clone=args.deep_clone,
            deep_clone_throws=args.clone_throws,
            deep_copy=args.deep_copy,
            fluent_builder=args.fluent_builder,
        ),
    )


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    options = build_options(args)
    environment = TypeEnvironment(args.known_type)
    error_handler = ErrorHandler()
    episode_builder = EpisodeBuilder()

    try:
        schema = load_schema_set(*args.schemas)
        outline = compile_outline(schema)
        generator = GroupInterfaceGenerator(
            outline,
            options,
            error_handler=error_handler,
            # Without --known-type, every episode interface is taken as compiled.
            episode_index=EpisodeIndex(options.upstream_episode, environment if args.known_type else None),
            episode_builder=episode_builder,
            environment=environment,
        )
        result = generator.generate_group_interface_model()
        if args.episode_out is not None:
            episode_builder.write(args.episode_out)
    except (SchemaParseError, EpisodeLoadError, GroupInterfaceError, OSError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    print(render_report(result, options, error_handler.warnings), end="")
    return 0


if __name__ == "__main__":
    sys.exit(main())
