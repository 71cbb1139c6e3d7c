# src/docsalvage/app.py
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from tqdm.auto import tqdm

from docsalvage.core.managers.config_manager import config_manager
from docsalvage.core.services.json_service import load_json_text, models_to_dicts, to_json
from docsalvage.core.utils.configure_logging import configure_logger
from docsalvage.model.registry import ExtensionRegistry, get_schema
from docsalvage.recovery.probe import find_unknown_elements
from docsalvage.recovery.validator import get_unknown_content

logger = logging.getLogger(__name__)

HTML_SUFFIXES = {".html", ".htm", ".xhtml"}


def scan_file(path: Path, force_html: bool = False) -> Dict[str, Any]:
    """Reports the unknown content of one JSON or HTML file against the built-in extensions."""
    extensions = ExtensionRegistry.get_builtin_extensions()
    text = path.read_text(encoding="utf-8")

    if force_html or path.suffix.lower() in HTML_SUFFIXES:
        unknown = find_unknown_elements(text, extensions)
        return {"file": str(path), "format": "html", "unknown": models_to_dicts(unknown)}

    unknown_blocks = get_unknown_content(load_json_text(text), get_schema(extensions))
    return {"file": str(path), "format": "json", "unknown": models_to_dicts(unknown_blocks)}


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docsalvage",
        description="Report document content that the configured extensions do not recognize."
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--level", default=None, help="Log level (defaults to 'debug.level' in settings.json).")
    common.add_argument(
        "--set", dest="overrides", action="append", default=[], metavar="KEY=VALUE",
        help="Override a setting for this run, e.g. --set parser.features=lxml. Repeatable."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    scan = subparsers.add_parser(
        "scan", parents=[common], help="Scan JSON or HTML documents for unknown nodes, marks and tags."
    )
    scan.add_argument("files", nargs="+", type=Path, help="Document files to scan.")
    scan.add_argument("--html", action="store_true", help="Treat every file as HTML.")

    subparsers.add_parser("config", parents=[common], help="Print the effective settings as JSON.")
    return parser


def _scan(files: List[Path], force_html: bool) -> int:
    results = []
    exit_code = 0
    for path in tqdm(files, desc="Scanning", unit="file", disable=len(files) < 2):
        try:
            result = scan_file(path, force_html=force_html)
        except (OSError, ValueError) as e:
            logger.error("Failed to scan %s: %s", path, e)
            exit_code = 2
            continue

        if result["unknown"] and exit_code == 0:
            exit_code = 1
        results.append(result)

    print(to_json(results))
    return exit_code


def main(argv: Optional[List[str]] = None) -> int:
    """
    Entry point. `scan` returns 0 when all files are clean, 1 when unknown content
    was found and 2 on unreadable input. Overrides last for this run only.
    """
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    try:
        config_manager.apply_overrides(args.overrides)
    except ValueError as e:
        config_manager.reset()
        parser.error(str(e))

    try:
        configure_logger(args.level or config_manager.get_nested("debug.level", "INFO"))
        if args.command == "config":
            print(to_json(config_manager.snapshot()))
            return 0
        return _scan(args.files, args.html)
    finally:
        config_manager.reset()


if __name__ == "__main__":
    sys.exit(main())
