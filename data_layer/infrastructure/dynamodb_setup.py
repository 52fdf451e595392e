"""DynamoDB table creation and removal.

6 tables: InventoryItems, Sales, Platforms, Categories, Stores, Expenses
(each prefixed, keyed owner_id + id).
"""
import os
import sys
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))
import env_loader  # noqa: F401

from src.storage.base import TABLES
from src.storage.dynamodb import DEFAULT_PREFIX, physical_table_name


REGION = os.environ.get("AWS_DEFAULT_REGION", "us-west-2")
BOTO_CONFIG = Config(retries={"max_attempts": 3})


def table_definitions(prefix: str = DEFAULT_PREFIX) -> list[dict]:
    return [
        {
            "TableName": physical_table_name(prefix, table),
            "KeySchema": [
                {"AttributeName": "owner_id", "KeyType": "HASH"},
                {"AttributeName": "id", "KeyType": "RANGE"},
            ],
            "AttributeDefinitions": [
                {"AttributeName": "owner_id", "AttributeType": "S"},
                {"AttributeName": "id", "AttributeType": "S"},
            ],
            "BillingMode": "PAY_PER_REQUEST",
        }
        for table in TABLES
    ]


def _client(region: str, endpoint_url: Optional[str] = None, dynamodb_client=None):
    return dynamodb_client or boto3.client(
        "dynamodb", region_name=region, endpoint_url=endpoint_url, config=BOTO_CONFIG
    )


def create_tables(
    region: str = REGION,
    prefix: str = DEFAULT_PREFIX,
    endpoint_url: Optional[str] = None,
    dynamodb_client=None,
) -> list[str]:
    """Creates every missing table and waits until it is active. Returns the created names."""
    dynamodb = _client(region, endpoint_url, dynamodb_client)
    created = []

    for table_def in table_definitions(prefix):
        table_name = table_def["TableName"]
        try:
            dynamodb.describe_table(TableName=table_name)
            print(f"  ⏭️  {table_name} already exists, skipping")
        except ClientError as e:
            if e.response["Error"]["Code"] == "ResourceNotFoundException":
                print(f"  🔨 Creating {table_name}...")
                dynamodb.create_table(**table_def)
                waiter = dynamodb.get_waiter("table_exists")
                waiter.wait(TableName=table_name)
                created.append(table_name)
                print(f"  ✓  {table_name} created")
            else:
                raise
    return created


def delete_tables(
    region: str = REGION,
    prefix: str = DEFAULT_PREFIX,
    endpoint_url: Optional[str] = None,
    dynamodb_client=None,
) -> list[str]:
    """Deletes every table (use with care). Returns the deleted names."""
    dynamodb = _client(region, endpoint_url, dynamodb_client)
    deleted = []
    for table_def in table_definitions(prefix):
        table_name = table_def["TableName"]
        try:
            dynamodb.delete_table(TableName=table_name)
            deleted.append(table_name)
            print(f"  🗑️  {table_name} deleted")
        except ClientError:
            print(f"  ⏭️  {table_name} not found, skipping")
    return deleted


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "--delete":
        print("🗑️  Deleting tables...")
        delete_tables()
    else:
        print("🏗️  Creating DynamoDB tables...\n")
        create_tables()
