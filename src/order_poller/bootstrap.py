from __future__ import annotations

from typing import Callable

from ingestion.contracts.sink import SnapshotSink
from ingestion.contracts.source import OrderSource
from ingestion.http import JSON_HEADERS, ApiClient
from ingestion.oneinch.source import (
    OneInchFusionOrderSource,
    OneInchLimitOrderSource,
    fusion_client,
    orderbook_client,
)
from ingestion.uniswapx.source import UniswapXOrderSource
from ingestion.velora.source import VeloraOrderSource
from order_poller.config import PollerConfig
from order_poller.runtime.descriptor import SourceDescriptor
from order_poller.sinks.rotating_log import RotatingLogSink
from order_poller.utils.logger import get_logger, log_info, log_warn

logger = get_logger(__name__)

SinkFactory = Callable[[str], SnapshotSink]


def build_sources(config: PollerConfig) -> list[OrderSource]:
    """Instantiate every enabled source, each with its own client."""
    timeout = config.http_timeout_s
    sources: list[OrderSource] = []

    ux = config.uniswapx
    for kind, enabled in (("dutch", ux.dutch_enabled), ("limit", ux.limit_enabled)):
        if not enabled:
            continue
        sources.append(
            UniswapXOrderSource(
                kind=kind,  # type: ignore[arg-type]
                client=ApiClient(base_url=ux.base_url, headers=JSON_HEADERS, timeout=timeout),
                limit=ux.limit,
                order_status=ux.order_status,
                sort_key=ux.sort_key,
                desc=ux.desc,
                chain_id=ux.chain_id,
            )
        )

    vl = config.velora
    if vl.enabled:
        sources.append(
            VeloraOrderSource(
                client=ApiClient(base_url=vl.base_url, headers=JSON_HEADERS, timeout=timeout),
                chain_id=vl.chain_id,
                taker=vl.taker,
                limit=vl.limit,
            )
        )

    oi = config.oneinch
    if oi.fusion_enabled or oi.limit_enabled:
        api_key = oi.api_key()
        if not api_key:
            log_warn(logger, "bootstrap.missing_api_key", env=oi.api_key_env, upstream="1inch")
        if oi.fusion_enabled:
            sources.append(
                OneInchFusionOrderSource(
                    client=fusion_client(api_key, base_url=oi.fusion_base_url, timeout=timeout),
                    chain_id=oi.chain_id,
                    limit=oi.limit,
                )
            )
        if oi.limit_enabled:
            sources.append(
                OneInchLimitOrderSource(
                    client=orderbook_client(api_key, base_url=oi.orderbook_base_url, timeout=timeout),
                    chain_id=oi.chain_id,
                    limit=oi.limit,
                    statuses=oi.statuses,
                )
            )

    return sources


def build_descriptors(
    config: PollerConfig,
    *,
    sources: list[OrderSource] | None = None,
    sink_factory: SinkFactory | None = None,
) -> tuple[SourceDescriptor, ...]:
    """
    Pair each source with a sink named after it.

    Built once at startup; the returned tuple is handed to the orchestrator by
    reference and never mutated.
    """
    if sources is None:
        sources = build_sources(config)
    if sink_factory is None:
        sink_cfg = config.sink

        def sink_factory(name: str) -> SnapshotSink:
            return RotatingLogSink(
                name,
                root=sink_cfg.root,
                max_bytes=sink_cfg.max_bytes,
                backup_count=sink_cfg.backup_count,
            )

    descriptors = tuple(SourceDescriptor.for_source(s, sink_factory(s.name)) for s in sources)
    if not descriptors:
        log_warn(logger, "bootstrap.no_sources", hint="every source is disabled; nothing will be polled")
    log_info(logger, "bootstrap.sources", sources=[d.name for d in descriptors])
    return descriptors


def close_all(sources: list[OrderSource], descriptors: tuple[SourceDescriptor, ...]) -> None:
    for s in sources:
        s.close()
    for d in descriptors:
        close = getattr(d.sink, "close", None)
        if callable(close):
            close()
