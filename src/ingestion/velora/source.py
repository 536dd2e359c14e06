from __future__ import annotations

import logging

from ingestion.contracts.source import OrderSource, Raw, extract_records
from ingestion.http import JSON_HEADERS, ApiClient

VELORA_BASE_URL = "https://api.paraswap.io"
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class VeloraOrderSource(OrderSource):
    """
    Velora (ParaSwap) limit orders open to a taker.

    GET /ft/orders/<chain_id>/taker/<taker>?limit=<limit> -> {"orders": [...]}.
    The zero-address taker selects orders fillable by anyone.
    """

    def __init__(
        self,
        *,
        name: str = "velora-order",
        client: ApiClient | None = None,
        chain_id: int = 1,
        taker: str = ZERO_ADDRESS,
        limit: int = 500,
        logger: logging.Logger | None = None,
    ):
        super().__init__(name=name, logger=logger)
        self._client = client or ApiClient(base_url=VELORA_BASE_URL, headers=JSON_HEADERS)
        self._path = f"/ft/orders/{int(chain_id)}/taker/{taker}"
        self._params = {"limit": int(limit)}

    def _fetch(self) -> list[Raw]:
        payload = self._client.get_json(self._path, params=self._params)
        return extract_records(payload, "orders")

    def close(self) -> None:
        self._client.close()
