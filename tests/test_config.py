"""Settings tests."""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from src.config import Settings
from src.storage import DynamoStore, InMemoryStore, build_store


class TestSettings:
    """Settings from environment variables."""

    def test_defaults(self):
        settings = Settings.from_env({})
        assert settings.backend == "memory"
        assert settings.transaction_fee_rate == Decimal("0.029")
        assert settings.transaction_fee_fixed == Decimal("0.30")
        assert settings.owner_id is None

    def test_from_env(self):
        settings = Settings.from_env({
            "RESELLER_BACKEND": "DynamoDB",
            "AWS_DEFAULT_REGION": "eu-west-1",
            "RESELLER_TABLE_PREFIX": "Dev",
            "RESELLER_TRANSACTION_FEE_RATE": "0.03",
            "RESELLER_OWNER_ID": "user-1",
            "LOG_LEVEL": "debug",
        })
        assert settings.backend == "dynamodb"
        assert settings.region == "eu-west-1"
        assert settings.table_prefix == "Dev"
        assert settings.transaction_fee_rate == Decimal("0.03")
        assert settings.owner_id == "user-1"
        assert settings.log_level == "DEBUG"

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            Settings(backend="postgres")


class TestBuildStore:
    """Storage backend selection."""

    def test_memory(self):
        assert isinstance(build_store(Settings()), InMemoryStore)

    def test_dynamodb(self):
        store = build_store(Settings(backend="dynamodb", table_prefix="Dev"), dynamodb_resource=MagicMock())
        assert isinstance(store, DynamoStore)
        assert store.table_prefix == "Dev"
