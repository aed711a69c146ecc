"""
Command line interface for the ETEvolve SDK.

Examples
--------
Optimise the inputs listed in a configuration file::

    python cli.py run --config etevolve/configs/etlight.yaml --iterations 20

Describe the configuration schema::

    python cli.py describe-config --section optimizer

List the configuration profiles::

    python cli.py profiles
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict

from etevolve import ETEvolve
from etevolve.evolution import GenerationSummary
from etevolve.utils import ConfigLoader, InputCache
from etevolve.utils.profiles import list_profiles


def _default_config_path(path: str) -> Path:
    candidate = Path(path)
    if candidate.exists():
        return candidate
    raise FileNotFoundError(f"Configuration file not found: {candidate}")


def _print_summary(summary: GenerationSummary) -> None:
    print("-- New Population")
    print(f"-- Fittest {summary.best_fitness:.0f} / {summary.mean_fitness:.0f}")


def _cli_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    optimizer: Dict[str, Any] = {}
    if args.iterations is not None:
        optimizer["iterations"] = args.iterations
    if args.population is not None:
        optimizer["population"] = args.population
    if args.seed is not None:
        optimizer["seed"] = args.seed
    return {"optimizer": optimizer} if optimizer else {}


def _run_command(args: argparse.Namespace) -> None:
    config_source = _default_config_path(args.config) if args.config else None
    runner = ETEvolve(
        config=config_source,
        profile=args.profile,
        overrides=_cli_overrides(args),
        run_name=args.run_name,
    )
    result = runner.run(on_generation=_print_summary)
    print(json.dumps(result.to_dict(), indent=2))
    if result.output_dir:
        print(f"Run outputs written to: {result.output_dir}")


def _describe_config_command(args: argparse.Namespace) -> None:
    if args.key:
        print(ETEvolve.explain(args.key))
        return
    ETEvolve.describe_config(section=args.section, as_markdown=args.markdown, to_console=True)


def _generate_config_docs_command(args: argparse.Namespace) -> None:
    output = Path(args.output)
    path = ETEvolve.generate_config_docs(output)
    print(f"Configuration reference generated at {path.resolve()}")


def _profiles_command(args: argparse.Namespace) -> None:
    for name, profile in ETEvolve.available_profiles().items():
        settings = ", ".join(f"{key}={value}" for key, value in profile.get("optimizer", {}).items())
        print(f"{name}: {settings}")


def _clear_cache_command(args: argparse.Namespace) -> None:
    config_source = _default_config_path(args.config) if args.config else None
    directory = ConfigLoader().load(config=config_source)["cache"]["directory"]
    removed = InputCache(directory).clear()
    print(f"Removed {removed} cached input(s) from {directory}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="etevolve", description="ETEvolve scenario optimiser CLI")
    subparsers = parser.add_subparsers(dest="command")

    profile_choices = sorted(list_profiles().keys())

    run_parser = subparsers.add_parser("run", help="Evolve the configured inputs against the objective.")
    run_parser.add_argument("--config", help="Configuration file (YAML/JSON).")
    run_parser.add_argument("--profile", choices=profile_choices, help="Apply a configuration profile before the config file.")
    run_parser.add_argument("--iterations", type=int, help="Number of generations to run.")
    run_parser.add_argument("--population", type=int, help="Number of genes per generation.")
    run_parser.add_argument("--seed", type=int, help="Seed of the random generator.")
    run_parser.add_argument("--run-name", help="Optional custom name used for the run directory (slugified).")
    run_parser.set_defaults(func=_run_command)

    describe_parser = subparsers.add_parser("describe-config", help="Display the ETEvolve configuration schema.")
    describe_parser.add_argument("--section", help="Optional configuration section to filter.")
    describe_parser.add_argument("--markdown", action="store_true", help="Render the output as markdown.")
    describe_parser.add_argument("--key", help="Explain a single configuration key instead of listing the table.")
    describe_parser.set_defaults(func=_describe_config_command)

    config_doc_parser = subparsers.add_parser("generate-config-docs", help="Write CONFIG.md from the schema.")
    config_doc_parser.add_argument("--output", default="CONFIG.md", help="Destination markdown file (default: CONFIG.md).")
    config_doc_parser.set_defaults(func=_generate_config_docs_command)

    profiles_parser = subparsers.add_parser("profiles", help="List the configuration profiles.")
    profiles_parser.set_defaults(func=_profiles_command)

    cache_parser = subparsers.add_parser("clear-cache", help="Delete cached input metadata.")
    cache_parser.add_argument("--config", help="Configuration file naming the cache directory.")
    cache_parser.set_defaults(func=_clear_cache_command)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    argv = list(sys.argv[1:] if argv is None else argv)
    if argv and argv[0].startswith("--"):
        argv = ["run", *argv]
    if not argv:
        parser.print_help()
        return
    parsed = parser.parse_args(argv)
    if not hasattr(parsed, "func"):
        parser.print_help()
        return
    parsed.func(parsed)


if __name__ == "__main__":
    main()
