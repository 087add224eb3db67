#!/usr/bin/env python3
"""
Create the approval schema and seed an organisation directory from YAML.

The directory file lists departments, permissions, posts and users (see
config/directory.example.yaml).  Settings come from --config, then
$APPROVAL_KERNEL_CONFIG, then the APPROVAL_* environment overrides.

Usage:
  python3 scripts/seed_directory.py config/directory.example.yaml
  python3 scripts/seed_directory.py dir.yaml --db-url sqlite:///approval.db --reset
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def _parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Create tables and seed the approval directory")
    p.add_argument("directory", type=Path, help="YAML file describing the directory")
    p.add_argument("--config", type=Path, default=None, help="Kernel settings YAML")
    p.add_argument("--db-url", default=None, help="Database URL (overrides settings)")
    p.add_argument(
        "--reset",
        action="store_true",
        help="Drop all approval tables before creating them",
    )
    return p.parse_args()


def main() -> int:
    args = _parse_args()

    from approval_kernel.config import load_settings, load_yaml_file
    from approval_kernel.db.engine import (
        create_tables,
        drop_tables,
        init_engine_from_url,
        session_scope,
    )
    from approval_kernel.directory_loader import load_directory
    from approval_kernel.exceptions import ApprovalKernelError
    from approval_kernel.logging_config import configure_logging

    settings = load_settings(args.config)
    configure_logging(level=settings.log_level)
    db_url = args.db_url or settings.database_url

    print()
    print("  [1/3] Connecting...")
    try:
        init_engine_from_url(db_url, echo=False)
    except Exception as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 1

    print("  [2/3] Creating schema...")
    if args.reset:
        drop_tables()
    create_tables()

    print(f"  [3/3] Loading directory from {args.directory}...")
    data = load_yaml_file(args.directory)
    try:
        with session_scope() as session:
            ids = load_directory(session, data)
    except ApprovalKernelError as exc:
        print(f"  ERROR: {exc.message}", file=sys.stderr)
        return 1

    print()
    for key, value in sorted(ids.items()):
        print(f"  {key:<20} {value}")
    print()
    print(f"  Done. {len(ids)} directory entries created.")
    print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
