"""Runtime settings read from the environment (after env_loader has loaded .env)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from src.core.profit import TRANSACTION_FEE_FIXED, TRANSACTION_FEE_RATE

BACKENDS = ("memory", "dynamodb")


@dataclass
class Settings:
    backend: str = "memory"
    region: str = "us-west-2"
    table_prefix: str = "Reseller"
    dynamodb_endpoint_url: Optional[str] = None
    transaction_fee_rate: Decimal = TRANSACTION_FEE_RATE
    transaction_fee_fixed: Decimal = TRANSACTION_FEE_FIXED
    owner_id: Optional[str] = None
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.backend not in BACKENDS:
            raise ValueError(f"Unknown backend {self.backend!r}, expected one of {BACKENDS}")

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> Settings:
        env = os.environ if environ is None else environ
        return cls(
            backend=env.get("RESELLER_BACKEND", "memory").strip().lower(),
            region=env.get("AWS_DEFAULT_REGION", "us-west-2"),
            table_prefix=env.get("RESELLER_TABLE_PREFIX", "Reseller"),
            dynamodb_endpoint_url=env.get("DYNAMODB_ENDPOINT_URL") or None,
            transaction_fee_rate=Decimal(env.get("RESELLER_TRANSACTION_FEE_RATE", str(TRANSACTION_FEE_RATE))),
            transaction_fee_fixed=Decimal(env.get("RESELLER_TRANSACTION_FEE_FIXED", str(TRANSACTION_FEE_FIXED))),
            owner_id=env.get("RESELLER_OWNER_ID") or None,
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
        )
