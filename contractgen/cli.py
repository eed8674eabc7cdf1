"""CLI: parse, tokens, rules, init-config."""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from contractgen.config import ConfigError, ParserConfig, default_config_path
from contractgen.parser.lexer import default_lexer, dump_tokens, tokenize
from contractgen.parser.parser import ParseError, parse_source
from contractgen.parser.types import to_dict


def load_config(args: argparse.Namespace) -> ParserConfig:
    path = Path(args.config) if getattr(args, "config", None) else default_config_path()
    try:
        config = ParserConfig.load(path)
    except ConfigError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)
    if getattr(args, "debug", False):
        config.debug = True
    return config


def read_source(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        print(f"error: cannot read {path}: {e.strerror}", file=sys.stderr)
        sys.exit(1)
    except UnicodeDecodeError as e:
        print(f"error: cannot decode {path}: {e.reason}", file=sys.stderr)
        sys.exit(1)


def cmd_parse(args: argparse.Namespace) -> None:
    """Parse a contract file and print its tree as JSON."""
    config = load_config(args)
    source = read_source(Path(args.file))

    try:
        root = parse_source(source, config)
    except ParseError as e:
        print(f"error: {e}", file=sys.stderr)
        print("Aborting.", file=sys.stderr)
        sys.exit(1)

    print(json.dumps(to_dict(root), indent=2))


def cmd_tokens(args: argparse.Namespace) -> None:
    """Print every token with its position and kind."""
    tokens = tokenize(read_source(Path(args.file)))
    for line in dump_tokens(tokens):
        print(line)


def cmd_rules(args: argparse.Namespace) -> None:
    """Print the lexer rules in priority order."""
    for line in default_lexer().describe():
        print(line)


def cmd_init_config(args: argparse.Namespace) -> None:
    """Write a configuration file holding the defaults."""
    path = Path(args.path) if args.path else default_config_path()
    if path.exists() and not args.force:
        print(f"error: {path} already exists (use --force to overwrite)", file=sys.stderr)
        sys.exit(1)
    ParserConfig().save(path)
    print(f"Wrote {path}")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="contractgen", description="Contract definition front end"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    parse_parser = subparsers.add_parser("parse", help="parse a contract file and print its tree")
    parse_parser.add_argument("file", help="contract definition file")
    parse_parser.add_argument("--debug", action="store_true", help="trace each construct as it is recognized")
    parse_parser.add_argument("--config", help="configuration file (default: $CONTRACTGEN_CONFIG or ./contractgen.toml)")

    tokens_parser = subparsers.add_parser("tokens", help="print the token stream")
    tokens_parser.add_argument("file", help="contract definition file")

    subparsers.add_parser("rules", help="print the lexer rules")

    init_parser = subparsers.add_parser("init-config", help="write a default configuration file")
    init_parser.add_argument("path", nargs="?", help="where to write (default: ./contractgen.toml)")
    init_parser.add_argument("--force", action="store_true", help="overwrite an existing file")

    args = parser.parse_args(argv)

    if args.command == "parse":
        cmd_parse(args)
    elif args.command == "tokens":
        cmd_tokens(args)
    elif args.command == "rules":
        cmd_rules(args)
    elif args.command == "init-config":
        cmd_init_config(args)
