"""Argument parsing for the scenemap CLI."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any, Mapping, Optional

from scenemap.core.types import RULE_SOURCES
from scenemap.cli.workflows import (
    handle_derive,
    handle_limits,
    handle_map,
    handle_replay,
    handle_rules,
)


def _add_engine_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--mapping-config",
        dest="mapping_config",
        type=Path,
        default=None,
        help="YAML file with rule, lock and safety-limit overrides.",
    )
    parser.add_argument(
        "--profile",
        default=None,
        help="Named profile inside the mapping configuration.",
    )
    parser.add_argument(
        "--epsilon",
        dest="update_epsilon",
        type=float,
        default=None,
        help="Tolerance added to the sensitivity threshold (default: configured value).",
    )


def _add_input_arguments(parser: argparse.ArgumentParser, *, evolution: bool = True) -> None:
    parser.add_argument(
        "--ai",
        type=Path,
        required=True,
        help="JSON file holding the theme analysis.",
    )
    parser.add_argument(
        "--weather",
        type=Path,
        required=True,
        help="JSON file holding the weather observation.",
    )
    if evolution:
        parser.add_argument(
            "--evolution",
            type=Path,
            default=None,
            help="JSON file holding the evolution state (default: calm/peaceful).",
        )


def build_parser(config: Optional[Mapping[str, Any]] = None) -> argparse.ArgumentParser:
    config = dict(config or {})
    logging_cfg = dict(config.get("logging", {}))

    parser = argparse.ArgumentParser(
        prog="scenemap",
        description="Map theme analysis, weather and time onto scene parameters.",
    )
    parser.add_argument(
        "--config",
        dest="config_path",
        type=Path,
        default=None,
        help="Path to the TOML configuration file to load.",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        default=logging_cfg.get("level", "info"),
        help="Logging level (e.g. debug, info, warning).",
    )
    parser.add_argument(
        "--log-output",
        dest="log_output",
        default=logging_cfg.get("output", "stderr"),
        help="Logging destination (stdout, stderr or a file path).",
    )
    parser.add_argument(
        "--log-format",
        dest="log_format",
        choices=("json", "text"),
        default=logging_cfg.get("format", "json"),
        help="Logging formatter (json or text).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    map_parser = subparsers.add_parser(
        "map",
        help="Evaluate one mapping pass and print the resulting updates.",
    )
    _add_input_arguments(map_parser)
    _add_engine_arguments(map_parser)
    map_parser.add_argument(
        "--scene",
        type=Path,
        default=None,
        help="Preset holding the live parameter tree (default: packaged scene).",
    )
    map_parser.add_argument(
        "--apply",
        type=Path,
        default=None,
        help="Write the scene with the updates applied to this preset file.",
    )
    map_parser.add_argument(
        "--flat",
        action="store_true",
        help="Write the --apply preset as a flat path map.",
    )
    map_parser.add_argument(
        "--include-overrides",
        action="store_true",
        help="Append manual override updates to the output.",
    )
    map_parser.set_defaults(handler=handle_map)

    rules_parser = subparsers.add_parser("rules", help="List the registered mapping rules.")
    _add_engine_arguments(rules_parser)
    rules_parser.add_argument(
        "--source",
        choices=RULE_SOURCES,
        default=None,
        help="Only list rules driven by this input source.",
    )
    rules_parser.set_defaults(handler=handle_rules)

    limits_parser = subparsers.add_parser("limits", help="Show the absolute safety limits.")
    _add_engine_arguments(limits_parser)
    limits_parser.set_defaults(handler=handle_limits)

    derive_parser = subparsers.add_parser(
        "derive",
        help="Blend theme characteristics with the weather and validate them.",
    )
    _add_input_arguments(derive_parser, evolution=False)
    derive_parser.set_defaults(handler=handle_derive)

    replay_parser = subparsers.add_parser(
        "replay",
        help="Replay recorded frames and summarise how each parameter moved.",
    )
    replay_parser.add_argument(
        "frames",
        type=Path,
        help="JSON array or JSON Lines file of {ai, weather, evolution} frames.",
    )
    _add_engine_arguments(replay_parser)
    replay_parser.add_argument(
        "--scene",
        type=Path,
        default=None,
        help="Preset holding the starting parameter tree (default: packaged scene).",
    )
    replay_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the final parameter tree to this preset file.",
    )
    replay_parser.add_argument(
        "--include-tree",
        action="store_true",
        help="Embed the final parameter tree in the printed summary.",
    )
    replay_parser.set_defaults(handler=handle_replay)

    return parser


__all__ = ["build_parser"]
