"""
Ledger Repository Module

Loads and saves whole PoolLedger values. The ledger is stored as one record
(loans embedded) so a save is a single write inside the host's transaction.
"""

from typing import Optional

from .pool import PoolLedger
from .storage import StorageInterface


class LedgerRepository:
    """PoolLedger persistence over a StorageInterface"""

    def __init__(self, storage: StorageInterface, table_name: str = "lending_pools"):
        self.storage = storage
        self.table_name = table_name

    def load(self, pool_id: str) -> Optional[PoolLedger]:
        data = self.storage.load(self.table_name, pool_id)
        if data:
            return PoolLedger.from_dict(data)
        return None

    def save(self, ledger: PoolLedger) -> None:
        self.storage.save(self.table_name, ledger.id, ledger.to_dict())

    def exists(self, pool_id: str) -> bool:
        return self.storage.exists(self.table_name, pool_id)