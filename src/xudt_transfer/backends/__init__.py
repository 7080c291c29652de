"""
Cell index backend implementations.

Available backends:
- CkbRpcBackend: CKB node JSON-RPC (built-in indexer get_cells + send_transaction)
"""

from xudt_transfer.backends.base import CellIndexBackend
from xudt_transfer.backends.ckb_rpc import CkbRpcBackend

__all__ = [
    "CellIndexBackend",
    "CkbRpcBackend",
]
