"""JSON-RPC 2.0 transport shared by the delegation and swap clients."""
from __future__ import annotations

import itertools
import logging
import ssl
from typing import Any, Iterator

import aiohttp
import certifi

logger = logging.getLogger(__name__)


class JsonRpcError(RuntimeError):
    """The node answered with a JSON-RPC ``error`` member."""


class JsonRpcClient:
    """Posts JSON-RPC requests to a gateway, falling back across endpoints.

    The endpoint that last answered is tried first on the next call.
    """

    def __init__(self, endpoints: tuple[str, ...], timeout: int = 30) -> None:
        if not endpoints:
            raise ValueError("At least one RPC endpoint is required")
        self.endpoints = list(endpoints)
        self.timeout = timeout
        self.current_rpc_index = 0
        self._ids = itertools.count(1)

    def _endpoint_order(self) -> Iterator[int]:
        count = len(self.endpoints)
        for offset in range(count):
            yield (self.current_rpc_index + offset) % count

    async def _post(
        self, url: str, payload: dict[str, Any], ssl_context: ssl.SSLContext
    ) -> Any:
        connector = aiohttp.TCPConnector(ssl=ssl_context)
        async with aiohttp.ClientSession(connector=connector) as session:
            async with session.post(
                url, json=payload, timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as response:
                body = await response.json()
        if "error" in body:
            raise JsonRpcError(f"RPC Error: {body['error']}")
        return body.get("result", {})

    async def rpc_call(self, method: str, params: list[Any]) -> Any:
        """Call ``method`` and return its ``result`` member."""
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        ssl_context = ssl.create_default_context(cafile=certifi.where())

        last_error: Exception | None = None
        for index in self._endpoint_order():
            url = self.endpoints[index]
            try:
                result = await self._post(url, payload, ssl_context)
            except Exception as e:
                last_error = e
                logger.warning("%s via %s failed: %s", method, url, e)
                continue

            if index != self.current_rpc_index:
                logger.info("Switched to RPC endpoint: %s", url)
                self.current_rpc_index = index
            return result

        raise RuntimeError(
            f"All RPC endpoints failed ({len(self.endpoints)} tried). Last error: {last_error}"
        )
