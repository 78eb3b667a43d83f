"""File-backed credential store.

Keeps the credential record as a JSON file readable only by the owner.
"""

import os
from collections.abc import Callable
from pathlib import Path

from .base import CredentialStore
from .models import epoch_ms


class FileCredentialStore(CredentialStore):
    """Credential store persisting one JSON record on disk."""

    def __init__(
        self,
        path: str | Path = "~/.mcpmail/credentials.json",
        clock: Callable[[], int] = epoch_ms,
    ):
        super().__init__(clock)
        self._path = Path(path).expanduser()

    def read_record(self) -> bytes | None:
        try:
            return self._path.read_bytes()
        except FileNotFoundError:
            return None

    def write_record(self, record: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(record)
        os.replace(tmp_path, self._path)

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)

    @property
    def backend_type(self) -> str:
        return "file"

    @property
    def path(self) -> Path:
        return self._path
