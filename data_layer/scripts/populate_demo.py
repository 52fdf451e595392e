"""Loads demo data into one owner's empty account.

Usage:
    python -m data_layer.scripts.populate_demo --owner user-123
    RESELLER_OWNER_ID=user-123 python -m data_layer.scripts.populate_demo
"""
import logging
import os
import sys
from datetime import date

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

import env_loader  # noqa: F401

from data_layer.generators.demo_data import seed_demo_data
from src.config import Settings
from src.core.errors import ResellerError
from src.services.context import ServiceContext


def main(argv=None) -> int:
    settings = Settings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    args = sys.argv[1:] if argv is None else argv
    owner_id = settings.owner_id
    for i, arg in enumerate(args):
        if arg == "--owner" and i + 1 < len(args):
            owner_id = args[i + 1]

    if not owner_id:
        print("Owner id required: --owner <id> or RESELLER_OWNER_ID")
        return 2

    if settings.backend == "memory":
        print("⚠️  RESELLER_BACKEND=memory: data lives only for this process")

    ctx = ServiceContext.create(settings, owner_id)
    try:
        summary = seed_demo_data(ctx, date.today())
    except ResellerError as e:
        print(f"❌ {e}")
        return 1

    print("=" * 50)
    print(f"✅ Demo data loaded for {owner_id}")
    for entity, count in summary.items():
        print(f"   {entity}: {count}")
    print("=" * 50)
    return 0


if __name__ == "__main__":
    sys.exit(main())
