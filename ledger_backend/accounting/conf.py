# accounting/conf.py

"""
LEDGER CONFIGURATION

Ledger tunables are read from settings.ACCOUNTING once and passed into
services explicitly as a frozen LedgerConfig. Services accept an optional
`config=` argument so tests can run with a different policy without
touching Django settings.
"""

from __future__ import annotations

from dataclasses import dataclass

from django.conf import settings


@dataclass(frozen=True)
class LedgerConfig:
    narration_min_length: int = 5
    narration_max_length: int = 1000
    max_account_depth: int = 5
    posting_max_attempts: int = 3
    posting_retry_backoff: float = 0.05
    default_currency_code: str = "PKR"
    default_currency_symbol: str = "Rs"

    @classmethod
    def from_settings(cls, raw: dict | None = None) -> "LedgerConfig":
        raw = raw if raw is not None else getattr(settings, "ACCOUNTING", None) or {}
        defaults = cls()
        return cls(
            narration_min_length=int(
                raw.get("NARRATION_MIN_LENGTH", defaults.narration_min_length)
            ),
            narration_max_length=int(
                raw.get("NARRATION_MAX_LENGTH", defaults.narration_max_length)
            ),
            max_account_depth=int(
                raw.get("MAX_ACCOUNT_DEPTH", defaults.max_account_depth)
            ),
            posting_max_attempts=max(
                1, int(raw.get("POSTING_MAX_ATTEMPTS", defaults.posting_max_attempts))
            ),
            posting_retry_backoff=float(
                raw.get("POSTING_RETRY_BACKOFF", defaults.posting_retry_backoff)
            ),
            default_currency_code=str(
                raw.get("DEFAULT_CURRENCY_CODE", defaults.default_currency_code)
            ),
            default_currency_symbol=str(
                raw.get("DEFAULT_CURRENCY_SYMBOL", defaults.default_currency_symbol)
            ),
        )


def get_ledger_config(config: LedgerConfig | None = None) -> LedgerConfig:
    return config if config is not None else LedgerConfig.from_settings()
