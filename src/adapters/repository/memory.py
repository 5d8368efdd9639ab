"""
In-memory token store adapter - Implements TokenStore protocol.

Process-local dictionary storage for development and tests. Records do
not survive a restart.
"""

from src.domain.exceptions import StoreUnavailable
from src.domain.ports import VerificationRecord, VerificationStatus


class InMemoryTokenStore:
    """
    Implements TokenStore protocol with a dict keyed by token.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Setting ``available = False`` makes every operation raise
    StoreUnavailable, simulating a backend outage.
    """

    def __init__(self) -> None:
        self._records: dict[str, VerificationRecord] = {}
        self.available = True

    async def put(self, record: VerificationRecord) -> None:
        self._check("put", record.token)
        self._records[record.token] = record

    async def get(self, token: str) -> VerificationRecord | None:
        self._check("get", token)
        return self._records.get(token)

    async def mark_verified(self, token: str) -> bool:
        self._check("mark_verified", token)
        # No await between read and write, so this is atomic on the event loop
        record = self._records.get(token)
        if record is None or record.status != VerificationStatus.PENDING:
            return False
        self._records[token] = record.mark_verified()
        return True

    async def ping(self) -> bool:
        self._check("ping")
        return True

    def __len__(self) -> int:
        return len(self._records)

    def _check(self, operation: str, token: str | None = None) -> None:
        if not self.available:
            raise StoreUnavailable(operation, token)
