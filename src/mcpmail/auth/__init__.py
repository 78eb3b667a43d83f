"""Credential module for mcpmail.

Validates, persists and expires the mailbox credential.
"""

from .base import CredentialStore
from .callback import build_authorization_url, credential_from_callback, parse_callback_url
from .factory import create_credential_store
from .file_store import FileCredentialStore
from .in_memory import AUTH_STORAGE_KEY, InMemoryCredentialStore
from .models import Credential, epoch_ms

__all__ = [
    "AUTH_STORAGE_KEY",
    "Credential",
    "CredentialStore",
    "FileCredentialStore",
    "InMemoryCredentialStore",
    "build_authorization_url",
    "create_credential_store",
    "credential_from_callback",
    "epoch_ms",
    "parse_callback_url",
]
