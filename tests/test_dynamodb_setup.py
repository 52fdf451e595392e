"""Table setup tests with a mocked DynamoDB client."""

from unittest.mock import MagicMock

from botocore.exceptions import ClientError

from data_layer.infrastructure.dynamodb_setup import create_tables, delete_tables, table_definitions
from data_layer.scripts.setup_aws import parse_args
from src.config import Settings


def _not_found():
    return ClientError({"Error": {"Code": "ResourceNotFoundException", "Message": "x"}}, "DescribeTable")


class TestTableDefinitions:
    """Table schemas."""

    def test_six_owner_keyed_tables(self):
        definitions = table_definitions("Dev")
        assert len(definitions) == 6
        assert "DevInventoryItems" in {d["TableName"] for d in definitions}
        for d in definitions:
            assert [k["AttributeName"] for k in d["KeySchema"]] == ["owner_id", "id"]
            assert d["BillingMode"] == "PAY_PER_REQUEST"


class TestCreateTables:
    """Table creation against a mocked client."""

    def test_creates_only_missing(self):
        def describe_table(TableName):
            if TableName != "DevSales":
                raise _not_found()
            return {}

        client = MagicMock()
        client.describe_table.side_effect = describe_table

        created = create_tables(prefix="Dev", dynamodb_client=client)

        assert len(created) == 5
        assert "DevSales" not in created
        assert client.create_table.call_count == 5
        client.get_waiter.assert_called_with("table_exists")

    def test_delete(self):
        client = MagicMock()
        assert len(delete_tables(prefix="Dev", dynamodb_client=client)) == 6


class TestSetupArgs:
    """Setup script arguments."""

    def test_overrides(self):
        options = parse_args(["--region", "eu-west-1", "--prefix", "Staging", "--delete"], Settings())
        assert options["region"] == "eu-west-1"
        assert options["prefix"] == "Staging"
        assert options["delete"] is True

    def test_defaults_from_settings(self):
        options = parse_args([], Settings(table_prefix="Dev"))
        assert options == {"region": "us-west-2", "prefix": "Dev", "endpoint_url": None, "delete": False}
