"""Runtime settings read from the environment."""

import os

_TRUTHY = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


def merge_skip_oversold() -> bool:
    """Whether a guest-cart merge silently skips lines the ledger cannot cover.

    When false, an oversold line aborts the whole merge instead.
    """
    return _env_bool("MERGE_SKIP_OVERSOLD", True)


def stock_cas_retries() -> int:
    """How many times a stock compare-and-set is retried after losing a race."""
    return max(1, int(os.getenv("STOCK_CAS_RETRIES", "3")))
