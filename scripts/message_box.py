"""Terminal message box over the cardstack engine.

Each line is fed to `Engine.execute`; the response and a one-line status are printed.
With `--redis`, the stack snapshot is restored on start and saved after every line.

Usage:
    uv run python scripts/message_box.py [--redis redis://localhost:6379/0]

Exit with `quit`, `exit` or Ctrl-D.
"""

from __future__ import annotations

import argparse
import logging
import readline  # noqa: F401  (line editing + up/down recall for input())

from cardstack.engine import Engine
from cardstack.infra.redis_client import create_redis


def _status(engine: Engine) -> str:
    card = engine.current_card
    v = engine.session.variables
    return f"[card {engine.session.current_card_index + 1}/{len(engine.stack.cards)} {card.name!r}] it={v.it!r} result={v.result!r}"


def main() -> int:
    parser = argparse.ArgumentParser(description="cardstack message box")
    parser.add_argument("--redis", metavar="URL", help="persist snapshots to this Redis URL")
    parser.add_argument("--verbose", action="store_true", help="debug logging")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    engine = Engine()
    store = create_redis(args.redis) if args.redis else None
    if store is not None:
        engine.restore(store)

    print(f"Message box for stack {engine.stack.name!r}")
    print("Exit: quit/exit\n")
    print(_status(engine))

    while True:
        try:
            line = input("> ")
        except (EOFError, KeyboardInterrupt):
            print()
            break
        if line.strip() in ("quit", "exit"):
            break

        response = engine.execute(line)
        if store is not None:
            engine.save(store)
        if response:
            print(response)
        print(_status(engine))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
