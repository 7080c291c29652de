"""
CKB node JSON-RPC backend.
Uses the node's built-in indexer (get_cells) and send_transaction.
"""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from xudt_transfer.backends.base import CellIndexBackend
from xudt_transfer.models import Cell, Script

# Timeout for regular RPC calls (seconds)
DEFAULT_RPC_TIMEOUT = 30.0

# Cells fetched per get_cells page
DEFAULT_PAGE_SIZE = 100

# Validator used by the reference SDK when submitting
OUTPUTS_VALIDATOR = "passthrough"


class CkbRpcBackend(CellIndexBackend):
    """
    Cell index backend using a CKB node (or public RPC endpoint).
    """

    def __init__(
        self,
        rpc_url: str = "https://testnet.ckb.dev/rpc",
        timeout: float = DEFAULT_RPC_TIMEOUT,
        page_size: int = DEFAULT_PAGE_SIZE,
        client: httpx.AsyncClient | None = None,
    ):
        self.rpc_url = rpc_url.rstrip("/")
        self.page_size = page_size
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self._request_id = 0

    async def _rpc_call(self, method: str, params: list | None = None) -> Any:
        """
        Make a JSON-RPC call to the CKB node.

        Raises:
            ValueError: On RPC errors
            httpx.HTTPError: On connection/timeout errors
        """
        self._request_id += 1
        request = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params or [],
        }

        try:
            response = await self.client.post(self.rpc_url, json=request)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"{method} failed: {type(e).__name__} {e}")
            raise

        reply = response.json()
        error = reply.get("error")
        if error:
            code = error.get("code", "unknown")
            raise ValueError(f"RPC error {code}: {error.get('message', error)}")
        return reply.get("result")

    async def get_cells(self, lock: Script, type_script: Script | None = None) -> list[Cell]:
        search_key: dict[str, Any] = {
            "script": lock.to_rpc(),
            "script_type": "lock",
            "script_search_mode": "exact",
        }
        if type_script is not None:
            search_key["filter"] = {"script": type_script.to_rpc()}
        else:
            # Plain capacity cells only: no type script and empty data
            search_key["filter"] = {
                "script_len_range": ["0x0", "0x1"],
                "output_data_len_range": ["0x0", "0x1"],
            }

        cells: list[Cell] = []
        cursor: str | None = None

        while True:
            params: list[Any] = [search_key, "asc", hex(self.page_size)]
            if cursor:
                params.append(cursor)
            result = await self._rpc_call("get_cells", params)

            objects = result.get("objects", []) if result else []
            cells.extend(Cell.from_rpc(obj) for obj in objects)

            if len(objects) < self.page_size:
                break
            cursor = result.get("last_cursor")
            if not cursor:
                break

        logger.debug(
            f"Fetched {len(cells)} live cells "
            f"({'typed' if type_script is not None else 'plain'})"
        )
        return cells

    async def send_transaction(self, tx: dict[str, Any]) -> str:
        try:
            tx_hash = await self._rpc_call("send_transaction", [tx, OUTPUTS_VALIDATOR])
            logger.info(f"Sent transaction: {tx_hash}")
            return tx_hash

        except Exception as e:
            logger.error(f"Failed to send transaction: {e}")
            raise ValueError(f"Send failed: {e}") from e

    async def get_tip_block_number(self) -> int:
        tip = await self._rpc_call("get_tip_block_number", [])
        return int(tip, 16)

    async def close(self) -> None:
        await self.client.aclose()
