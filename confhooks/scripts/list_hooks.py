#!/usr/bin/env python3
"""List the hooks registered by one or more config files."""

import argparse
import sys
from typing import Any, Dict, List, Optional

from confhooks.config import add_config_argument
from confhooks.hooks import Registry
from confhooks.middleware import logging_hook


def _collect_rows(registry: Registry, scope: Optional[str]) -> List[Dict[str, Any]]:
    rows = []
    for qkey in registry.registered_keys():
        if scope is not None and str(qkey.scope) != scope:
            continue
        entries = registry.hooks_for(qkey)
        rows.append(
            {
                "scope": str(qkey.scope),
                "key": str(qkey.key),
                "hooks": len(entries),
                "origins": ", ".join(entry.origin for entry in entries),
            }
        )
    return rows


def _print_table(rows: List[Dict[str, Any]]) -> None:
    headers = ["scope", "key", "hooks", "origins"]
    widths = {h: len(h) for h in headers}
    for row in rows:
        for h in headers:
            widths[h] = max(widths[h], len(str(row.get(h, ""))))

    header_line = " | ".join(h.ljust(widths[h]) for h in headers)
    sep_line = "-+-".join("-" * widths[h] for h in headers)
    print(header_line)
    print(sep_line)
    for row in rows:
        print(" | ".join(str(row.get(h, "")).ljust(widths[h]) for h in headers))


def main(argv: Optional[List[str]] = None) -> int:
    def to_stderr(msg: str) -> None:
        print(msg, file=sys.stderr)

    registry = Registry()
    registry.log_with(to_stderr)

    # --log-dir is read first so the sink sees the "Loading file" messages
    # emitted while -c files are parsed.
    log_parser = argparse.ArgumentParser(add_help=False)
    log_parser.add_argument(
        "--log-dir",
        help="Also append diagnostics to a JSONL log in this directory.",
    )
    log_args, _ = log_parser.parse_known_args(argv)

    if log_args.log_dir:
        log_path = logging_hook.init_logging(log_args.log_dir, "list_hooks")
        jsonl = logging_hook.jsonl_sink(log_path)

        def both(msg: str) -> None:
            to_stderr(msg)
            jsonl(msg)

        registry.log_with(both)

    parser = argparse.ArgumentParser(
        description="List hooks registered by config files.",
        parents=[log_parser],
    )
    parser.add_argument(
        "--scope",
        help="Only show hooks registered in this scope.",
    )
    add_config_argument(parser, registry)
    args = parser.parse_args(argv)

    rows = _collect_rows(registry, args.scope)
    if not rows:
        print("No hooks registered.")
        return 1

    _print_table(rows)
    # Nothing is applied here, so every registered key is reported.
    registry.log_not_applied()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
