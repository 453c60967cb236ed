"""
apisurface CLI — Inspect, check and render the declared API surface.

Commands:
- apisurface validate   — Run the structural schema checks
- apisurface routes     — List declared routes
- apisurface show       — Describe one namespace, type or route
- apisurface impact     — Impact analysis for a type
- apisurface generate   — Render Stone IDL / JSON descriptors

Every command reads apisurface.yaml (auto-discovered, or --config) for the
namespaces to load and the logging / validation / generate settings.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from apisurface.engine.config import SurfaceConfig, load_config
from apisurface.engine.errors import SurfaceConfigError, SurfaceObjectNotFoundError
from apisurface.engine.logging import init_logging, log, log_generation, log_system_event, shutdown_logging
from apisurface.engine.registry import SchemaRegistry, schema_registry

logger = logging.getLogger("apisurface.cli")


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="apisurface",
        description="apisurface — declared Dropbox API surface tooling",
    )
    parser.add_argument("--config", help="Path to apisurface.yaml (default: auto-discover)")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # apisurface validate
    validate_parser = subparsers.add_parser("validate", help="Run structural schema checks")
    validate_parser.add_argument("namespaces", nargs="*", help="Namespaces to check (default: all configured)")
    validate_parser.add_argument("--strict", action="store_true", help="Treat warnings as errors")
    validate_parser.add_argument("--json", action="store_true", help="Print the report as JSON")

    # apisurface routes
    routes_parser = subparsers.add_parser("routes", help="List declared routes")
    routes_parser.add_argument("namespace", nargs="?", help="Namespace to list (default: all)")

    # apisurface show
    show_parser = subparsers.add_parser("show", help="Describe a namespace, type or route")
    show_parser.add_argument("ref", help="Reference (e.g., team, team.TeamFolderMetadata, team/team_folder/list)")

    # apisurface impact
    impact_parser = subparsers.add_parser("impact", help="Impact analysis for a type")
    impact_parser.add_argument("type_ref", help="Type reference (e.g., team.TeamFolderStatus)")

    # apisurface generate
    gen_parser = subparsers.add_parser("generate", help="Render Stone IDL and JSON descriptors")
    gen_parser.add_argument("namespaces", nargs="*", help="Namespaces to render (default: all configured)")
    gen_parser.add_argument("--only", choices=["stone", "descriptor"], help="Run only a specific generator")
    gen_parser.add_argument("--output", help="Output directory (default: generate.output_dir)")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        config = load_config(args.config)
    except SurfaceConfigError as e:
        print(f"[ERROR] {e.message}")
        return 1

    init_logging(config)
    log(log_system_event("cli_command", details={"command": args.command}))
    try:
        registry = _load_surface(config)
        if args.command == "validate":
            return cmd_validate(args, registry, config)
        elif args.command == "routes":
            return cmd_routes(args, registry)
        elif args.command == "show":
            return cmd_show(args, registry)
        elif args.command == "impact":
            return cmd_impact(args, registry)
        elif args.command == "generate":
            return cmd_generate(args, registry, config)
        parser.print_help()
        return 0
    except SurfaceObjectNotFoundError as e:
        print(f"[ERROR] {e.message}")
        return 1
    finally:
        shutdown_logging()


def _load_surface(config: SurfaceConfig) -> SchemaRegistry:
    schema_registry.load_namespaces(config.namespaces)
    return schema_registry


def _check_namespaces(names: List[str], registry: SchemaRegistry) -> None:
    known = registry.namespaces()
    for name in names:
        if name not in known:
            raise SurfaceObjectNotFoundError(f"Unknown namespace: {name}", ref=name, kind="namespace")


# ---------------------------------------------------------------------------
# apisurface validate
# ---------------------------------------------------------------------------

def cmd_validate(args: argparse.Namespace, registry: SchemaRegistry, config: SurfaceConfig) -> int:
    """Run the schema validator and print its report."""
    from apisurface.engine.validator import SchemaValidator

    _check_namespaces(args.namespaces, registry)
    report = SchemaValidator(registry, config).validate(args.namespaces or config.namespaces)
    failed = bool(report.errors) or (args.strict and bool(report.warnings))

    if args.json:
        data = report.to_dict()
        data["ok"] = not failed
        print(json.dumps(data, indent=2))
        return 1 if failed else 0

    for issue in report.issues:
        if issue.severity == "info":
            continue
        print(f"[{issue.severity.upper()}] {issue.ref}: {issue.code}: {issue.message}")
    if report.infos:
        print(f"[INFO] {len(report.infos)} informational issue(s); use --json to list them")

    print(f"\n{'Surface valid!' if not failed else 'Validation failed.'} ({report.summary()})")
    return 1 if failed else 0


# ---------------------------------------------------------------------------
# apisurface routes
# ---------------------------------------------------------------------------

def cmd_routes(args: argparse.Namespace, registry: SchemaRegistry) -> int:
    """List routes with their url path and request/response/error triple."""
    from apisurface.engine.introspect import idl_name

    if args.namespace:
        _check_namespaces([args.namespace], registry)

    routes = registry.get_routes(args.namespace)
    for r in routes:
        triple = ", ".join(idl_name(tp, r.namespace) for tp in (r.arg_type, r.result_type, r.error_type))
        flags = " [deprecated]" if r.deprecated else ""
        print(f"{r.ref:<45} {r.url_path:<45} ({triple}){flags}")
    print(f"\n{len(routes)} route(s)")
    return 0


# ---------------------------------------------------------------------------
# apisurface show
# ---------------------------------------------------------------------------

def cmd_show(args: argparse.Namespace, registry: SchemaRegistry) -> int:
    """Print the descriptor of a single namespace, type or route."""
    from apisurface.generators.descriptor_generator import DescriptorGenerator

    obj = registry.resolve_or_raise(args.ref)
    describer = DescriptorGenerator(registry)
    if obj.kind == "namespace":
        data = describer.describe_namespace(obj.name)
    elif obj.kind == "route":
        data = describer.describe_route(obj.target)
    else:
        data = describer.describe_type(obj.target)
    print(json.dumps(data, indent=2, default=str))
    return 0


# ---------------------------------------------------------------------------
# apisurface impact
# ---------------------------------------------------------------------------

def cmd_impact(args: argparse.Namespace, registry: SchemaRegistry) -> int:
    """Run impact analysis for a type."""
    from apisurface.engine.dependency import SchemaGraph

    graph = SchemaGraph.from_registry(registry)
    if not graph.has_node(args.type_ref):
        print(f"[ERROR] Unknown type: {args.type_ref}")
        return 1

    result = graph.impact_analysis(args.type_ref)
    print(json.dumps(result, indent=2))
    return 0


# ---------------------------------------------------------------------------
# apisurface generate
# ---------------------------------------------------------------------------

def cmd_generate(args: argparse.Namespace, registry: SchemaRegistry, config: SurfaceConfig) -> int:
    """Run the generators for one or all namespaces."""
    from apisurface.generators import GENERATORS

    _check_namespaces(args.namespaces, registry)
    namespaces = args.namespaces or [ns for ns in registry.namespaces() if ns in config.namespaces]
    output_dir = Path(args.output or config.generate.output_dir)
    formats = [args.only] if args.only else config.generate.formats

    errors = 0
    for fmt in formats:
        generator = GENERATORS[fmt](registry, output_dir=str(output_dir / fmt))
        for ns in namespaces:
            try:
                path = generator.generate_namespace(ns)
                print(f"[OK] {fmt}: {path}")
            except OSError as e:
                print(f"[ERROR] {fmt}: {ns}: {e}")
                log(log_generation(fmt, ns, str(output_dir / fmt), 0, success=False, error=str(e)))
                errors += 1

    summary = "with errors" if errors else "successfully"
    print(f"\nGeneration completed {summary} ({errors} error(s)).")
    return 1 if errors else 0


if __name__ == "__main__":
    sys.exit(main())
