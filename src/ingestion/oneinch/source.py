from __future__ import annotations

import logging

from ingestion.contracts.source import OrderSource, Raw, extract_records
from ingestion.http import ApiClient, bearer_headers

ONE_INCH_FUSION_BASE_URL = "https://api.1inch.com/fusion"
ONE_INCH_ORDERBOOK_BASE_URL = "https://api.1inch.com/orderbook"


def fusion_client(api_key: str, *, base_url: str = ONE_INCH_FUSION_BASE_URL, timeout: float = 10.0) -> ApiClient:
    return ApiClient(base_url=base_url, headers=bearer_headers(api_key), timeout=timeout)


def orderbook_client(api_key: str, *, base_url: str = ONE_INCH_ORDERBOOK_BASE_URL, timeout: float = 10.0) -> ApiClient:
    return ApiClient(base_url=base_url, headers=bearer_headers(api_key), timeout=timeout)


class OneInchFusionOrderSource(OrderSource):
    """
    1inch Fusion active orders.

    GET /orders/v2.0/<chain_id>/order/active?limit=<limit> -> {"items": [...]}.
    """

    def __init__(
        self,
        *,
        client: ApiClient,
        name: str = "one-inch-fusion-order",
        chain_id: int = 1,
        limit: int = 500,
        logger: logging.Logger | None = None,
    ):
        super().__init__(name=name, logger=logger)
        self._client = client
        self._path = f"/orders/v2.0/{int(chain_id)}/order/active"
        self._params = {"limit": int(limit)}

    def _fetch(self) -> list[Raw]:
        payload = self._client.get_json(self._path, params=self._params)
        return extract_records(payload, "items")

    def close(self) -> None:
        self._client.close()


class OneInchLimitOrderSource(OrderSource):
    """
    1inch order-book limit orders filtered by status.

    GET /v4.1/<chain_id>/all?limit=<limit>&statuses=<statuses> -> {"items": [...]}.
    Status codes are defined by the 1inch order-book API ("1,2" by default).
    """

    def __init__(
        self,
        *,
        client: ApiClient,
        name: str = "one-inch-limit-order",
        chain_id: int = 1,
        limit: int = 500,
        statuses: str = "1,2",
        logger: logging.Logger | None = None,
    ):
        super().__init__(name=name, logger=logger)
        self._client = client
        self._path = f"/v4.1/{int(chain_id)}/all"
        self._params = {"limit": int(limit), "statuses": str(statuses)}

    def _fetch(self) -> list[Raw]:
        payload = self._client.get_json(self._path, params=self._params)
        return extract_records(payload, "items")

    def close(self) -> None:
        self._client.close()
