from __future__ import annotations

import json
import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ingestion.oneinch.source import ONE_INCH_FUSION_BASE_URL, ONE_INCH_ORDERBOOK_BASE_URL
from ingestion.uniswapx.source import UNISWAPX_BASE_URL
from ingestion.velora.source import VELORA_BASE_URL, ZERO_ADDRESS
from order_poller.exceptions.core import ConfigError
from order_poller.sinks.rotating_log import DEFAULT_BACKUP_COUNT, DEFAULT_MAX_BYTES


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class SinkConfig(_Frozen):
    root: str = Field("logs", description="Directory holding the <YYYY-MM-DD>/ partitions.")
    max_bytes: int = Field(DEFAULT_MAX_BYTES, gt=0, description="Rollover size per partition file.")
    backup_count: int = Field(DEFAULT_BACKUP_COUNT, ge=0)


class UniswapXConfig(_Frozen):
    dutch_enabled: bool = True
    limit_enabled: bool = True
    base_url: str = UNISWAPX_BASE_URL
    chain_id: int = 1
    limit: int = Field(100, gt=0)
    order_status: str = "open"
    sort_key: str = "createdAt"
    desc: bool = True


class VeloraConfig(_Frozen):
    enabled: bool = True
    base_url: str = VELORA_BASE_URL
    chain_id: int = 1
    taker: str = ZERO_ADDRESS
    limit: int = Field(500, gt=0)


class OneInchConfig(_Frozen):
    fusion_enabled: bool = True
    limit_enabled: bool = True
    fusion_base_url: str = ONE_INCH_FUSION_BASE_URL
    orderbook_base_url: str = ONE_INCH_ORDERBOOK_BASE_URL
    api_key_env: str = Field("ONE_INCH_API_KEY", description="Environment variable holding the API key.")
    chain_id: int = 1
    limit: int = Field(500, gt=0)
    statuses: str = "1,2"

    def api_key(self) -> str:
        return os.environ.get(self.api_key_env, "")


class PollerConfig(_Frozen):
    """
    Process configuration, read once at startup and immutable afterwards.
    """

    poll_interval_ms: int = Field(5000, gt=0, description="Fixed delay between cycles.")
    http_timeout_s: float = Field(10.0, gt=0, description="Per-request timeout of every source.")
    sink: SinkConfig = Field(default_factory=SinkConfig)
    uniswapx: UniswapXConfig = Field(default_factory=UniswapXConfig)
    velora: VeloraConfig = Field(default_factory=VeloraConfig)
    oneinch: OneInchConfig = Field(default_factory=OneInchConfig)


def load_config(config_path: str | Path | None = None, **overrides) -> PollerConfig:
    """
    Load a PollerConfig from JSON. `None` yields the defaults.

    Keyword overrides (e.g. `poll_interval_ms=1000` from the CLI) replace
    top-level keys before validation.
    """
    raw: dict = {}
    if config_path is not None:
        path = Path(config_path)
        try:
            with path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Cannot read poller config {path}: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigError(f"Expected object at $ in {path}, got {type(raw).__name__}")

    raw.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return PollerConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(str(e)) from e
