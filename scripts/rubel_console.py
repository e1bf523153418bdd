#!/usr/bin/env python3
"""Interactive command console for the rubel state core.

Opens the persisted store, then reads commands from stdin (or runs the
commands given on the command line) and prints each result, exactly as
the terminal tab of the app would.

Usage
-----
::

    python scripts/rubel_console.py                      # REPL
    python scripts/rubel_console.py "status" "list"      # one-shot
    python scripts/rubel_console.py --storage ./state --json "status"

Options::

    --storage DIR        Directory holding the persisted keys
                         (default: $RUBEL_STORAGE_DIR or ~/.rubel-engine)
    --email ADDRESS      Set the sync email address before running
    --no-seed            Do not seed default features into an empty store
    --json               Print results as JSON objects
    --snapshot           Print the full store snapshot as JSON and exit
    -v, --verbose        Enable DEBUG logging
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from rubel import CommandResult, RubelConfig, RubelEngine  # noqa: E402

_PROMPT = "> "
_EXIT_WORDS = frozenset({"exit", "quit"})


def _result_to_dict(command: str, result: CommandResult) -> dict[str, Any]:
    payload = result.payload
    if hasattr(payload, "model_dump"):
        payload = payload.model_dump(mode="json", by_alias=True)
    elif isinstance(payload, tuple):
        payload = [p.model_dump(mode="json", by_alias=True) if hasattr(p, "model_dump") else p for p in payload]
    return {"command": command, "success": result.success, "message": result.message, "payload": payload}


def _print_result(command: str, result: CommandResult, *, json_mode: bool) -> None:
    if json_mode:
        print(json.dumps(_result_to_dict(command, result), default=str, ensure_ascii=False))
        return
    marker = "" if result.success else "error: "
    print(f"{marker}{result.message}")


def _repl(engine: RubelEngine, *, json_mode: bool) -> int:
    failures = 0
    while True:
        try:
            line = input(_PROMPT)
        except (EOFError, KeyboardInterrupt):
            print()
            break
        if line.strip().lower() in _EXIT_WORDS:
            break
        if not line.strip():
            continue
        result = engine.execute(line)
        failures += 0 if result.success else 1
        _print_result(line.strip(), result, json_mode=json_mode)
    return 0 if failures == 0 else 1


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Rubel Engine command console")
    parser.add_argument("commands", nargs="*", help="Commands to run (default: interactive prompt)")
    parser.add_argument("--storage", type=Path, help="Directory holding the persisted keys")
    parser.add_argument("--email", help="Set the sync email address before running")
    parser.add_argument("--no-seed", action="store_true", help="Do not seed default features")
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    parser.add_argument("--snapshot", action="store_true", help="Print the store snapshot and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable DEBUG logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )

    overrides: dict[str, Any] = {}
    if args.storage is not None:
        overrides["storage_dir"] = args.storage
    if args.no_seed:
        overrides["seed_default_features"] = False
    config = RubelConfig.from_env(**overrides)

    with RubelEngine(config) as engine:
        if args.email is not None:
            engine.store.set_email_address(args.email.strip())

        if args.snapshot:
            print(engine.snapshot().model_dump_json(indent=2, by_alias=True))
            return 0

        if not args.commands:
            return _repl(engine, json_mode=args.json)

        exit_code = 0
        for command in args.commands:
            result = engine.execute(command)
            _print_result(command, result, json_mode=args.json)
            if not result.success:
                exit_code = 1
        return exit_code


if __name__ == "__main__":
    sys.exit(main())
