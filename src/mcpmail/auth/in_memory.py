"""In-memory credential store.

Keeps the record in a plain mapping under a fixed key, the way a browser's
local storage would. Data is lost when the process exits.
"""

from collections.abc import Callable, MutableMapping

from .base import CredentialStore
from .models import epoch_ms

AUTH_STORAGE_KEY = "gmail_user_info"


class InMemoryCredentialStore(CredentialStore):
    """Credential store over a caller-supplied (or private) mapping."""

    def __init__(
        self,
        storage: MutableMapping[str, str] | None = None,
        key: str = AUTH_STORAGE_KEY,
        clock: Callable[[], int] = epoch_ms,
    ):
        super().__init__(clock)
        self._storage = storage if storage is not None else {}
        self._key = key

    def read_record(self) -> str | None:
        return self._storage.get(self._key)

    def write_record(self, record: str) -> None:
        self._storage[self._key] = record

    def clear(self) -> None:
        self._storage.pop(self._key, None)

    @property
    def backend_type(self) -> str:
        return "memory"
