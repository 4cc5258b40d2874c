#!/usr/bin/env python
"""
Render a namumark markup file to HTML.

Usage:
    .venv/bin/python scripts/render_page.py <page.txt> [options]

Options:
    --output FILE        Write HTML to FILE instead of stdout
    --json               Emit {html, toc, footnotes, categories} as JSON
    --no-highlight       Show code fences as plain escaped text
    --standalone         Wrap the HTML in a minimal page with the Pygments CSS

Example:
    .venv/bin/python scripts/render_page.py docs/sample.txt --standalone --output sample.html
    .venv/bin/python scripts/render_page.py docs/sample.txt --json | jq .toc
"""

from __future__ import annotations

import argparse
import html
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Optional

# Ensure namumark package is importable when run from project root
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from namumark.core.config import get_settings
from namumark.services.highlight import plain_code, stylesheet
from namumark.services.renderer import RenderHooks, render_markup

log = logging.getLogger("render_page")


# ── Output ────────────────────────────────────────────────────────────────────

def _standalone(body: str, title: str) -> str:
    return (
        "<!DOCTYPE html>\n"
        f'<html><head><meta charset="utf-8"><title>{html.escape(title)}</title>\n'
        f"<style>\n{stylesheet()}\n</style></head>\n"
        f"<body>\n{body}\n</body></html>\n"
    )


def render_file(path: Path, as_json: bool = False, highlight: bool = True,
                standalone: bool = False) -> str:
    text = path.read_text(encoding="utf-8")
    hooks = RenderHooks() if highlight else RenderHooks(highlight=plain_code)
    result = render_markup(text, hooks)
    log.info("%s: %d toc entries, %d footnotes, %d categories",
             path.name, len(result.toc), len(result.footnotes), len(result.categories))
    if as_json:
        return json.dumps({
            "html": result.html,
            "toc": [asdict(entry) for entry in result.toc],
            "footnotes": [asdict(fn) for fn in result.footnotes],
            "categories": result.categories,
        }, ensure_ascii=False, indent=2)
    if standalone:
        return _standalone(result.html, path.stem)
    return result.html


# ── CLI ───────────────────────────────────────────────────────────────────────

def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Render a namumark markup file to HTML.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("source", help="Path to the markup file")
    parser.add_argument("--output", "-o", default=None, metavar="FILE",
                        help="Write the result to FILE (default: stdout)")
    parser.add_argument("--json", action="store_true",
                        help="Emit html, toc, footnotes and categories as JSON")
    parser.add_argument("--no-highlight", action="store_true",
                        help="Do not run Pygments over code fences")
    parser.add_argument("--standalone", action="store_true",
                        help="Wrap the HTML in a complete page with highlight CSS")
    args = parser.parse_args(argv)

    logging.basicConfig(level=get_settings().log_level.upper(),
                        format="%(levelname)s %(name)s: %(message)s")

    source = Path(args.source).expanduser().resolve()
    if not source.exists():
        print(f"Error: file not found: {source}", file=sys.stderr)
        return 1

    output = render_file(source, as_json=args.json, highlight=not args.no_highlight,
                         standalone=args.standalone)
    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        print(f"Written {args.output}")
    else:
        sys.stdout.write(output + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
