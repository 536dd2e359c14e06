from __future__ import annotations

import logging
from typing import Literal

from ingestion.contracts.source import OrderSource, Raw, extract_records
from ingestion.http import JSON_HEADERS, ApiClient

UNISWAPX_BASE_URL = "https://api.uniswap.org/v2"

OrderKind = Literal["dutch", "limit"]

_PATHS: dict[str, str] = {
    "dutch": "/orders",
    "limit": "/limit-orders",
}


class UniswapXOrderSource(OrderSource):
    """
    UniswapX open orders, newest first.

    `kind="dutch"` polls the Dutch-auction feed (`/orders`),
    `kind="limit"` polls the limit-order feed (`/limit-orders`).
    Both return `{"orders": [...]}`.
    """

    def __init__(
        self,
        *,
        kind: OrderKind = "dutch",
        name: str | None = None,
        client: ApiClient | None = None,
        limit: int = 100,
        order_status: str = "open",
        sort_key: str = "createdAt",
        desc: bool = True,
        chain_id: int = 1,
        logger: logging.Logger | None = None,
    ):
        if kind not in _PATHS:
            raise ValueError(f"Unknown UniswapX order kind: {kind!r}")
        # "duch" is kept for continuity with existing snapshot files
        default_name = "uniswapx-duch-order" if kind == "dutch" else "uniswapx-limit-order"
        super().__init__(name=name or default_name, logger=logger)
        self._kind = kind
        self._client = client or ApiClient(base_url=UNISWAPX_BASE_URL, headers=JSON_HEADERS)
        self._params = {
            "limit": int(limit),
            "orderStatus": str(order_status),
            "sortKey": str(sort_key),
            "desc": str(bool(desc)).lower(),
            "chainId": int(chain_id),
        }

    def _fetch(self) -> list[Raw]:
        payload = self._client.get_json(_PATHS[self._kind], params=self._params)
        return extract_records(payload, "orders")

    def close(self) -> None:
        self._client.close()
