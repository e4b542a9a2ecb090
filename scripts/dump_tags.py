#!/usr/bin/env python3
"""Dump the tag collection as pycarcard sees it.

Fetches the user's tags, then prints every normalized field **and**
(optionally) the raw API JSON so you can spot legacy payload shapes the
normalizer does not map yet.

Usage
-----
Set environment variables and run::

    export CARCARD_BASE_URL="https://carcard.example.com/api"
    export CARCARD_TOKEN="your-jwt"
    python scripts/dump_tags.py

Options::

    --tag ID             Also run the public scan lookup for this tag
    --raw                Print raw JSON next to each normalized tag
    --json               Output as machine-readable JSON
    --output FILE        Write JSON output to FILE instead of stdout
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pycarcard import CarCardClient, CarCardConfig, Tag  # noqa: E402


def _section(title: str) -> str:
    line = "=" * 60
    return f"\n{line}\n  {title}\n{line}"


def _format_tag(tag: Tag, *, raw: bool) -> list[str]:
    lines = [_section(f"TAG {tag.identity}  code={tag.code}")]
    for key, value in tag.model_dump(exclude={"raw", "scan_history"}).items():
        lines.append(f"  {key}: {value}")
    lines.append(f"  scans: {len(tag.scan_history)}")
    for scan in tag.scan_history:
        lines.append(f"    - {scan.timestamp} @ {scan.location}")
    if raw:
        lines.append("\n  ── raw JSON ──")
        lines.append(json.dumps(tag.raw, indent=2, default=str, ensure_ascii=False))
    return lines


async def main() -> int:
    parser = argparse.ArgumentParser(description="Dump the CarCard tag collection for debugging.")
    parser.add_argument("--tag", help="Also look up this tag through the public scan endpoint")
    parser.add_argument("--raw", action="store_true", help="Print raw JSON for each tag")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--output", "-o", help="Write JSON output to FILE instead of stdout")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    config = CarCardConfig.from_env()
    result: dict[str, Any] = {
        "timestamp": datetime.now(UTC).isoformat(),
        "base_url": config.base_url,
        "tags": [],
    }

    async with CarCardClient(config) as client:
        await client.fetch_tags(force=True)
        if client.error:
            print(f"!! fetch failed: {client.error}", file=sys.stderr)
            return 1

        out: list[str] = [_section("pycarcard dump_tags"), f"  base_url : {config.base_url}"]
        for tag in client.tags:
            result["tags"].append(tag.model_dump(mode="json"))
            out.extend(_format_tag(tag, raw=args.raw))

        if args.tag:
            public = await client.get_public_tag(args.tag)
            result["public"] = public
            out.append(_section(f"PUBLIC {args.tag}"))
            out.append(json.dumps(public, indent=2, default=str, ensure_ascii=False))

    payload = json.dumps(result, indent=2, default=str, ensure_ascii=False)
    if args.output:
        Path(args.output).write_text(payload, encoding="utf-8")
        print(f"JSON written to {args.output}", file=sys.stderr)
    elif args.json_mode:
        print(payload)
    else:
        print("\n".join(out))
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
