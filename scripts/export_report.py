"""Print one of the stack's report templates to CSV.

Usage:
    uv run python scripts/export_report.py "Field Listing" out.csv [--redis URL]

The stack is the default one, merged with the saved snapshot when `--redis` is given.
"""

from __future__ import annotations

import argparse
from pathlib import Path

from cardstack.engine import Engine
from cardstack.infra.redis_client import create_redis
from cardstack.reports import build_report


def main() -> None:
    parser = argparse.ArgumentParser(description="export a cardstack report")
    parser.add_argument("template")
    parser.add_argument("out", type=Path)
    parser.add_argument("--redis", metavar="URL")
    args = parser.parse_args()

    engine = Engine()
    if args.redis:
        engine.restore(create_redis(args.redis))

    df = build_report(stack=engine.stack, template=args.template)
    df.to_csv(args.out, index=False)


if __name__ == "__main__":
    main()
