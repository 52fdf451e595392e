"""Creates (or deletes) the DynamoDB tables.

Usage:
    python -m data_layer.scripts.setup_aws                      # Create tables
    python -m data_layer.scripts.setup_aws --delete             # Delete everything
    python -m data_layer.scripts.setup_aws --region eu-west-1   # Different region
    python -m data_layer.scripts.setup_aws --prefix Staging     # Different table prefix
"""
import sys
import os

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

import env_loader  # noqa: F401

from data_layer.infrastructure.dynamodb_setup import create_tables, delete_tables
from src.config import Settings


def parse_args(argv: list[str], settings: Settings) -> dict:
    options = {
        "region": settings.region,
        "prefix": settings.table_prefix,
        "endpoint_url": settings.dynamodb_endpoint_url,
        "delete": False,
    }
    for i, arg in enumerate(argv):
        if arg == "--delete":
            options["delete"] = True
        elif arg == "--region" and i + 1 < len(argv):
            options["region"] = argv[i + 1]
        elif arg == "--prefix" and i + 1 < len(argv):
            options["prefix"] = argv[i + 1]
    return options


def main(argv=None):
    options = parse_args(sys.argv[1:] if argv is None else argv, Settings.from_env())
    region, prefix, endpoint_url = options["region"], options["prefix"], options["endpoint_url"]

    if options["delete"]:
        print("🗑️  Deleting DynamoDB tables...\n")
        delete_tables(region, prefix, endpoint_url)
        print("\n✅ All tables deleted!")
        return

    print("=" * 60)
    print("🚀 AWS Setup - Reseller Ledger")
    print(f"   Region: {region}")
    print(f"   Table prefix: {prefix}")
    print("=" * 60)

    print("\n📊 DynamoDB Tables")
    print("-" * 40)
    create_tables(region, prefix, endpoint_url)

    print("\n" + "=" * 60)
    print("✅ AWS infrastructure ready!")
    print("   Load demo data with: python -m data_layer.scripts.populate_demo --owner <id>")
    print("=" * 60)


if __name__ == "__main__":
    main()
