#!/usr/bin/env python3
# scripts/maintenance.py
"""
Inventory maintenance (safe to run many times).

- --seed-rooms: insert missing catalogue rooms, refresh names/zones.
- --repair-inventory: rebuild borrowed counts / back-references from the
  borrow ledger. Dry run unless --apply is given.
- --recount-stats: recompute the dashboard counters from the products table.

When several are given they run in the order above, so the recount sees
repaired products.

Examples:
  python -m scripts.maintenance --seed-rooms
  python -m scripts.maintenance --repair-inventory
  python -m scripts.maintenance --repair-inventory --apply --recount-stats
"""

from __future__ import annotations

import argparse
import logging
import sys

from sqlalchemy.orm import Session

from app.core.database import SessionLocal
from app.services.booking_service import seed_rooms
from app.services.inventory_repair_service import repair_inventory
from app.services.stats_service import recalculate_inventory_stats

logger = logging.getLogger(__name__)


def print_repair_report(report) -> None:
    mode = "DRY RUN" if report.dry_run else "APPLIED"
    print(f"Inventory repair ({mode})")
    for fix in report.borrow_count_fixes:
        print(
            f"  borrowed_count {fix.product_name} ({fix.product_id}): "
            f"{fix.old_borrowed_count} -> {fix.new_borrowed_count} of {fix.quantity}"
        )
    for fix in report.back_reference_fixes:
        print(
            f"  back-reference {fix.product_name} ({fix.product_id}): "
            f"{fix.old_status}/{fix.old_active_borrow_id} -> {fix.new_status}/{fix.new_active_borrow_id}"
        )
    if not report.borrow_count_fixes and not report.back_reference_fixes:
        print("  nothing to fix")


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="School asset inventory maintenance")
    p.add_argument("--seed-rooms", action="store_true", help="Ensure catalogue rooms exist")
    p.add_argument("--repair-inventory", action="store_true", help="Rebuild lending state from the ledger")
    p.add_argument("--apply", action="store_true", help="Write repair fixes (default: dry run)")
    p.add_argument("--recount-stats", action="store_true", help="Recompute inventory stats")
    return p.parse_args()


def main() -> None:
    args = parse_args()

    if not (args.seed_rooms or args.repair_inventory or args.recount_stats):
        print("Nothing to do. Use --seed-rooms, --repair-inventory and/or --recount-stats.")
        sys.exit(1)

    db: Session = SessionLocal()
    try:
        if args.seed_rooms:
            created = seed_rooms(db)
            print(f"rooms seeded ({created} new)")

        if args.repair_inventory:
            print_repair_report(repair_inventory(db, dry_run=not args.apply))

        if args.recount_stats:
            stats = recalculate_inventory_stats(db)
            print(
                f"stats: total={stats.total} available={stats.available} "
                f"borrowed={stats.borrowed} maintenance={stats.maintenance}"
            )

    except Exception:
        db.rollback()
        logger.exception("Maintenance run failed")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
