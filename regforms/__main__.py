"""CLI entry point for regforms.

Usage:
    python -m regforms check-catalog catalog.yaml
    python -m regforms fields team
    python -m regforms inspect team --session 7f3a
    python -m regforms clear team --session 7f3a

``inspect`` and ``clear`` operate on the file session store configured in
.regforms.yaml / REGFORMS_* (``--storage-dir`` overrides it).
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from regforms.forms import FORMS, get_declaration
from regforms.lib.catalog import load_catalog
from regforms.lib.errors import CatalogError, PersistenceError
from regforms.lib.logging import configure_logging
from regforms.lib.settings import FormSettings
from regforms.lib.storage import FileSessionStore
from regforms.state.persistence import PersistenceAdapter
from regforms.state.types import field_key

logger = logging.getLogger(__name__)


def cmd_check_catalog(args: argparse.Namespace) -> int:
    """Validate a catalog file and list its tournaments."""
    try:
        catalog = load_catalog(args.path)
    except CatalogError as e:
        print(f"Invalid catalog: {e}", file=sys.stderr)
        return 1

    options = catalog.list_parent_options()
    if not options:
        print("Catalog is valid but lists no tournaments.")
        return 0

    width = max(10, max(len(o.id) for o in options))
    print(f"  {'Id':<{width}}  {'Divisions':<30}  Categories")
    print(f"  {'-' * width}  {'-' * 30}  {'-' * 30}")
    for option in options:
        divisions = ", ".join(option.divisions) or "-"
        categories = ", ".join(option.categories) or "-"
        print(f"  {option.id:<{width}}  {divisions[:30]:<30}  {categories}")
    print()
    print(f"{len(options)} tournament(s) OK")
    return 0


def cmd_fields(args: argparse.Namespace) -> int:
    """Print the panel and field layout of a form."""
    decl = get_declaration(args.form)
    print(f"Form: {decl.name}  (storage key: {decl.storage_key}, version {decl.schema_version})")
    for number, members in decl.panels.items():
        print()
        print(f"Panel {number}:")
        for member in members:
            notes = []
            if member in decl.create_only_fields:
                notes.append("create only")
            if member in decl.persist_exclude:
                notes.append("not persisted")
            resets = decl.cascades.dependents_of(member)
            if resets:
                notes.append("resets " + ", ".join(field_key(r) for r in resets))
            if member in decl.derived_updates:
                notes.append("has derived updates")
            cleared = decl.error_dependents.get(member, ())
            if cleared:
                notes.append("clears " + ", ".join(field_key(c) for c in cleared) + " errors")
            suffix = f"  [{'; '.join(notes)}]" if notes else ""
            print(f"  {field_key(member):<18} {decl.kinds[member].value:<6}{suffix}")
    return 0


def _file_store(args: argparse.Namespace) -> FileSessionStore:
    if args.storage_dir:
        root = Path(args.storage_dir)
    else:
        root = args.settings.get_storage_dir()
    return FileSessionStore(root, args.session)


def cmd_inspect(args: argparse.Namespace) -> int:
    """Print the persisted entry of a form session."""
    decl = get_declaration(args.form)
    store = _file_store(args)

    try:
        raw = store.get_item(decl.storage_key)
    except PersistenceError as e:
        print(f"Could not read session: {e}", file=sys.stderr)
        return 1
    if raw is None:
        print(f"No persisted {decl.name} form for session {args.session}")
        return 1

    restored = PersistenceAdapter(decl, store).rehydrate()
    if restored is None:
        print(
            f"Persisted {decl.name} form for session {args.session} "
            "is unusable and would be ignored"
        )
        print(raw)
        return 1

    print(json.dumps(json.loads(raw), indent=2, sort_keys=True))
    changed = [field_key(f) for f, v in restored.fields.items() if restored.snapshot.get(f) != v]
    print()
    print(f"mode: {restored.mode.value}  changed since load: {', '.join(changed) or 'none'}")
    return 0


def cmd_clear(args: argparse.Namespace) -> int:
    """Remove the persisted entry of a form session."""
    decl = get_declaration(args.form)
    store = _file_store(args)
    try:
        store.remove_item(decl.storage_key)
    except PersistenceError as e:
        print(f"Could not clear session: {e}", file=sys.stderr)
        return 1
    print(f"Cleared {decl.name} form for session {args.session}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="regforms",
        description="Inspect form declarations, catalogs and persisted form sessions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Validate a tournament catalog
    python -m regforms check-catalog ./catalog.yaml

    # Show the panels of the team form
    python -m regforms fields team

    # Show what a session has persisted
    python -m regforms inspect team --session 7f3a --storage-dir ./.regforms
        """,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument(
        "--json-log",
        action="store_true",
        help="Output logs in JSON format (for log aggregation systems)",
    )
    parser.add_argument("--log-file", help="Write logs to a file in addition to console")

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")
    sub.required = True

    p = sub.add_parser("check-catalog", help="Validate a tournament catalog file")
    p.add_argument("path", help="Catalog file (.yaml, .yml or .json)")
    p.set_defaults(func=cmd_check_catalog)

    p = sub.add_parser("fields", help="Show the panel and field layout of a form")
    p.add_argument("form", choices=sorted(FORMS))
    p.set_defaults(func=cmd_fields)

    for name, func, help_text in (
        ("inspect", cmd_inspect, "Print the persisted entry of a form session"),
        ("clear", cmd_clear, "Remove the persisted entry of a form session"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("form", choices=sorted(FORMS))
        p.add_argument("--session", required=True, help="Session id")
        p.add_argument("--storage-dir", help="File store root (defaults to settings)")
        p.set_defaults(func=func)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI.

    Logging flags override the log settings from ``.regforms.yaml`` and
    ``REGFORMS_LOG_*``.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    args.settings = FormSettings.load()

    configure_logging(
        args.settings,
        verbose=args.verbose,
        json_format=True if args.json_log else None,
        log_file=args.log_file,
    )
    logger.debug("Running %s", args.command)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
