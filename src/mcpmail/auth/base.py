"""Abstract base class for credential stores.

This module defines the interface for credential persistence.
The abstraction hides:
- Persistence medium (file, in-memory mapping)
- Record encoding
- Self-healing of stale or corrupt records
"""

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable

from pydantic import ValidationError

from .models import Credential, epoch_ms

logger = logging.getLogger(__name__)


class CredentialStore(ABC):
    """Single-record credential store.

    load() is meant to be called before every privileged operation because
    expiry depends on the time of the check. Any record that cannot be turned
    into a valid credential is erased, so a stale or corrupt record never
    half-loads.
    """

    def __init__(self, clock: Callable[[], int] = epoch_ms) -> None:
        self._clock = clock

    @abstractmethod
    def read_record(self) -> str | bytes | None:
        """Return the raw persisted record, or None when absent."""

    @abstractmethod
    def write_record(self, record: str) -> None:
        """Overwrite the raw persisted record."""

    @abstractmethod
    def clear(self) -> None:
        """Erase the persisted record. Idempotent."""

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Get the backend type identifier."""

    def now(self) -> int:
        """Current time according to the store's clock, in epoch milliseconds."""
        return self._clock()

    def load(self) -> Credential | None:
        """Load the persisted credential if it is present and valid.

        Returns:
            The credential, or None when absent, corrupt or expired
        """
        raw = self.read_record()
        if raw is None:
            return None

        try:
            credential = Credential.model_validate(json.loads(raw))
        except (ValueError, ValidationError) as e:
            logger.info("Discarding unreadable credential record: %s", type(e).__name__)
            self.clear()
            return None

        if not credential.is_valid(self.now()):
            logger.info("Credential for %s expired, clearing it", credential.email)
            self.clear()
            return None

        return credential

    def save(self, credential: Credential) -> None:
        """Persist the credential, replacing any previous record."""
        self.write_record(credential.to_record())
        logger.debug("Credential saved for %s", credential.email)
