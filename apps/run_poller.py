from __future__ import annotations

import argparse
import asyncio
import uuid
from pathlib import Path

from dotenv import load_dotenv

from order_poller.bootstrap import build_descriptors, build_sources, close_all
from order_poller.config import load_config
from order_poller.runtime.orchestrator import PollCycleOrchestrator
from order_poller.utils.logger import get_logger, init_logging, log_info


logger = get_logger("order_poller.apps.run_poller")


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Poll DEX order-book APIs and log every snapshot")
    p.add_argument("--config", default=None, help="poller JSON config (defaults are used when omitted)")
    p.add_argument("--logging-config", default="configs/logging.json", help="logging profiles JSON")
    p.add_argument("--mode", default=None, help="logging profile name")
    p.add_argument("--interval-ms", type=int, default=None, help="override poll_interval_ms")
    p.add_argument("--env-file", default=".env", help="dotenv file with API keys")
    p.add_argument("--once", action="store_true", help="run a single cycle and exit")
    return p


async def run(args: argparse.Namespace) -> None:
    config = load_config(args.config, poll_interval_ms=args.interval_ms)
    sources = build_sources(config)
    descriptors = build_descriptors(config, sources=sources)
    orchestrator = PollCycleOrchestrator(descriptors, poll_interval_ms=config.poll_interval_ms)
    try:
        await orchestrator.run(max_cycles=1 if args.once else None)
    finally:
        close_all(sources, descriptors)
        log_info(logger, "poller.stop", cycles=orchestrator.cycles)


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    if Path(args.env_file).exists():
        load_dotenv(args.env_file)
    init_logging(args.logging_config, run_id=uuid.uuid4().hex[:12], mode=args.mode)

    try:
        asyncio.run(run(args))
    except KeyboardInterrupt:
        log_info(logger, "poller.interrupted")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
