# Rev 0.2.0

# src/deadlinez/main.py  (Rev 0.2.0)
from __future__ import annotations
import argparse
import sys
from pathlib import Path
from typing import List, Optional

from PySide6.QtCore import QCoreApplication

from .app_context import AppContext
from .services.errors import BackupError
from .utils.config import SETTINGS_FILE, load_settings, save_settings
from .utils.logging_setup import get_logger, setup_logging
from .utils.paths import ensure_dirs


def _parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="deadlinez", description="Deadline tracker")
    p.add_argument("--db", type=Path, help="database file (overrides settings and DEADLINEZ_DB)")
    sub = p.add_subparsers(dest="command")
    up = sub.add_parser("upcoming", help="list the next open, active sub-deadlines")
    up.add_argument("-n", "--limit", type=int, help="how many to show")
    ex = sub.add_parser("export", help="write a JSON backup")
    ex.add_argument("path", type=Path)
    rs = sub.add_parser("restore", help="replace all data from a JSON backup")
    rs.add_argument("path", type=Path)
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = _parser().parse_args(argv)

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    QCoreApplication.setOrganizationName("deadlinez")
    QCoreApplication.setApplicationName("deadlineZ")

    ensure_dirs()
    settings = load_settings()
    if not SETTINGS_FILE.exists():
        save_settings(settings)
    setup_logging(settings["logging"]["level"])
    log = get_logger("main")

    ctx = AppContext.create(db_path=args.db, settings=settings)
    try:
        if args.command == "export":
            args.path.write_text(ctx.viewmodel.export_backup(), encoding="utf-8")
            print(f"Backup written to {args.path}")
        elif args.command == "restore":
            try:
                ctx.viewmodel.restore_backup(args.path.read_text(encoding="utf-8"))
            except (OSError, BackupError) as e:
                log.error("Restore from %s failed: %s", args.path, e)
                return 1
            print(f"Restored from {args.path}")
        else:
            limit = getattr(args, "limit", None) or ctx.upcoming_limit()
            for item in ctx.viewmodel.upcoming_deadlines(limit):
                print(f"{item.date.isoformat()}  {item.title}  ({item.project_title})")
    finally:
        ctx.close()
    app.processEvents()
    return 0


if __name__ == "__main__":
    sys.exit(main())
