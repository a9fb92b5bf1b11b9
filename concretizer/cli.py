#!/usr/bin/env python3
"""
CLI entrypoint for concretizer.

Usage:
    concretizer obligations <ref> [options]   # members a concrete type must stub
    concretizer render <ref> [-o FILE]        # generated stub module
    concretizer check <ref> [options]         # synthesize + instantiate

A reference is ``<module>:<Qualname>`` or ``<file.py>:<Qualname>``.

Returns:
    0: Success
    3: Error
"""

import argparse
import logging
import sys
from pathlib import Path

import yaml

from concretizer.config import ConcretizerConfig
from concretizer.contracts.analyzer import ContractAnalyzer, is_concrete
from concretizer.errors import ConcretizerError
from concretizer.frontend.loader import load_contract
from concretizer.synthesis.source import SourceEmitter
from concretizer.synthesis.synthesizer import TypeSynthesizer


# ── Shared arguments ────────────────────────────────────────────────────────

def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "contract",
        help="Contract reference: <module>:<Qualname> or <file.py>:<Qualname>",
    )
    parser.add_argument("--verbose", action="store_true", help="Verbose output")
    parser.add_argument(
        "--config", type=Path,
        help="Path to a .concretizer.yml (default: look in the current directory)",
    )
    parser.add_argument(
        "--name-only",
        action="store_true",
        help="Match overrides by name alone, ignoring parameter types",
    )


def _load_config(args: argparse.Namespace) -> ConcretizerConfig:
    if args.config:
        cfg = ConcretizerConfig.from_file(args.config)
    else:
        cfg = ConcretizerConfig.load(Path.cwd())
    if args.name_only:
        cfg.analysis.match_parameter_types = False
    return cfg


# ── Subcommand handlers ─────────────────────────────────────────────────────

def _handle_obligations(args: argparse.Namespace) -> int:
    """Handle ``concretizer obligations <ref>``."""
    cfg = _load_config(args)
    contract = load_contract(args.contract)
    obligations = ContractAnalyzer(cfg.analysis).analyze(contract)

    print(f"Contract: {contract.__module__}.{contract.__qualname__}")
    if is_concrete(contract) and not obligations:
        print("  already concrete, nothing to synthesize")
    if not obligations:
        print("  no obligations")
        return 0

    for section, members in (("abstract", obligations.abstract), ("interface", obligations.interface)):
        for member in members:
            owner = member.declaring_type.__qualname__ if member.declaring_type else "?"
            print(f"  [{section}] {member.describe()}  ({owner}, {member.convention.name.lower()})")
    print(f"Total: {len(obligations)}")
    return 0


def _handle_render(args: argparse.Namespace) -> int:
    """Handle ``concretizer render <ref>``."""
    cfg = _load_config(args)
    contract = load_contract(args.contract)
    obligations = ContractAnalyzer(cfg.analysis).analyze(contract)
    text = SourceEmitter(cfg.synthesis).render_module(contract, obligations)

    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(text)
        print(f"Wrote {args.output}")
    else:
        sys.stdout.write(text)
    return 0


def _handle_check(args: argparse.Namespace) -> int:
    """Handle ``concretizer check <ref>``."""
    cfg = _load_config(args)
    contract = load_contract(args.contract)
    synthesizer = TypeSynthesizer(cfg)
    instance = synthesizer.instantiate(contract)
    concrete = type(instance)

    if concrete is contract:
        print(f"{contract.__qualname__} is concrete; instantiated directly")
        return 0

    obligations = synthesizer.analyzer.analyze(contract)
    print(f"{contract.__qualname__} -> {concrete.__module__}.{concrete.__qualname__}")
    for name in obligations.names():
        print(f"  stub: {name}")
    return 0


# ── Main entry point ────────────────────────────────────────────────────────

def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="concretizer",
        description="concretizer: concrete types for abstract classes and Protocols",
    )
    subparsers = parser.add_subparsers(dest="command")

    obligations_parser = subparsers.add_parser(
        "obligations",
        help="List the members a synthesized type has to stub",
    )
    _add_common_arguments(obligations_parser)

    render_parser = subparsers.add_parser(
        "render",
        help="Print the generated stub module for a contract",
    )
    _add_common_arguments(render_parser)
    render_parser.add_argument(
        "-o", "--output", type=Path,
        help="Write the module to this file instead of stdout",
    )

    check_parser = subparsers.add_parser(
        "check",
        help="Synthesize and instantiate a concrete type for a contract",
    )
    _add_common_arguments(check_parser)

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 3

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)

    handlers = {
        "obligations": _handle_obligations,
        "render": _handle_render,
        "check": _handle_check,
    }
    try:
        return handlers[args.command](args)
    except (ConcretizerError, FileNotFoundError, ImportError, ValueError, yaml.YAMLError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 3


if __name__ == "__main__":
    sys.exit(main())
