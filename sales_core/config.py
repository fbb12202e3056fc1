from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from typing import IO, Mapping, Optional

_PKG_LOGGER_NAME = "sales_core"
_CONFIGURED = False

_TRUE_TOKENS = {"1", "true", "yes", "on"}
_FALSE_TOKENS = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    feed_url: Optional[str] = None
    feed_timeout: float = 10.0
    fallback_to_synthetic: bool = True
    synthetic_count: int = 200
    synthetic_seed: int = 42
    top_n: int = 5
    export_delimiter: str = ","
    log_level: str = "INFO"


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = (env.get(name) or "").strip().lower()
    if not raw:
        return default
    if raw in _TRUE_TOKENS:
        return True
    if raw in _FALSE_TOKENS:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if env is None else env

    feed_url = (env.get("SALES_FEED_URL") or "").strip() or None
    timeout = _env_float(env, "SALES_FEED_TIMEOUT", 10.0)
    if timeout <= 0:
        raise ValueError("SALES_FEED_TIMEOUT must be positive")

    synthetic_count = _env_int(env, "SALES_SYNTHETIC_COUNT", 200)
    if synthetic_count < 0:
        raise ValueError("SALES_SYNTHETIC_COUNT must not be negative")

    top_n = max(1, min(200, _env_int(env, "SALES_TOP_N", 5)))

    delimiter = env.get("SALES_EXPORT_DELIMITER") or ","
    if len(delimiter) != 1 or delimiter in {'"', "\n", "\r"}:
        raise ValueError(f"SALES_EXPORT_DELIMITER must be a single character, got {delimiter!r}")

    return Settings(
        feed_url=feed_url,
        feed_timeout=timeout,
        fallback_to_synthetic=_env_bool(env, "SALES_FALLBACK_TO_SYNTHETIC", True),
        synthetic_count=synthetic_count,
        synthetic_seed=_env_int(env, "SALES_SYNTHETIC_SEED", 42),
        top_n=top_n,
        export_delimiter=delimiter,
        log_level=(env.get("SALES_LOG_LEVEL") or "INFO").strip().upper(),
    )


def _parse_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    level = level.strip().upper()
    if level.isdigit():
        return int(level)
    numeric = getattr(logging, level, None)
    return numeric if isinstance(numeric, int) else logging.INFO


def configure_logging(level: int | str = "INFO", *, stream: IO[str] = sys.stderr) -> None:
    """Attach one stream handler to the package logger; later calls are no-ops.

    Library modules only call ``logging.getLogger(__name__)``. Entrypoints
    (the API and the Streamlit app) call this once at startup.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(_PKG_LOGGER_NAME)
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter("%(asctime)s %(name)s %(levelname)s %(message)s"))
    logger.setLevel(_parse_level(level))
    logger.addHandler(handler)
    logger.propagate = False
    _CONFIGURED = True
