"""Unit tests for the credential module."""
import json
import os
import stat
from urllib.parse import parse_qs, urlsplit

import pytest
from conftest import START_MS, FakeClock, make_credential
from hypothesis import given
from hypothesis import strategies as st

from mcpmail.auth import (
    AUTH_STORAGE_KEY,
    Credential,
    CredentialStore,
    FileCredentialStore,
    InMemoryCredentialStore,
    build_authorization_url,
    create_credential_store,
    credential_from_callback,
    parse_callback_url,
)
from mcpmail.exceptions import CredentialError


class TestCredential:
    """Tests for the Credential model."""

    def test_valid_before_expiry(self):
        """Test that a credential is valid strictly before expiresAt."""
        credential = make_credential(lifetime_ms=60_000)

        assert credential.is_valid(START_MS)
        assert credential.is_valid(START_MS + 59_999)

    def test_invalid_at_expiry(self):
        """Test that now == expiresAt counts as expired."""
        credential = make_credential(lifetime_ms=60_000)

        assert credential.is_expired(START_MS + 60_000)
        assert not credential.is_valid(START_MS + 60_000)

    def test_record_uses_camel_case_keys(self):
        """Test that the persisted record uses the callback's key names."""
        credential = make_credential(name="Ada")
        record = json.loads(credential.to_record())

        assert record == {
            "accessToken": "ya29.access",
            "refreshToken": "1//refresh",
            "email": "a@b.com",
            "name": "Ada",
            "expiresAt": START_MS + 3_600_000,
        }

    def test_tokens_hidden_from_repr(self):
        """Test that tokens never show up in repr."""
        text = repr(make_credential())

        assert "ya29.access" not in text
        assert "1//refresh" not in text
        assert "a@b.com" in text

    def test_expires_in_seconds(self):
        credential = make_credential(lifetime_ms=90_500)

        assert credential.expires_in_seconds(START_MS) == 90
        assert credential.expires_in_seconds(START_MS + 100_000) == 0

    @pytest.mark.parametrize("expires_at", ["1700000000000", True, None, float("inf"), 0, -5])
    def test_rejects_bad_expiry(self, expires_at):
        """Test that non-numeric or non-positive expiry fails validation."""
        with pytest.raises(ValueError):
            Credential.model_validate({
                "accessToken": "a",
                "refreshToken": "r",
                "email": "a@b.com",
                "expiresAt": expires_at,
            })


class TestCredentialStore:
    """Tests for credential store self-healing."""

    def test_store_is_abstract(self):
        """Test that CredentialStore cannot be instantiated directly."""
        with pytest.raises(TypeError):
            CredentialStore()  # type: ignore

    def test_load_absent_returns_none(self, store):
        assert store.load() is None

    def test_save_then_load(self, store, storage):
        """Test that a saved credential loads back while valid."""
        credential = make_credential()
        store.save(credential)

        assert AUTH_STORAGE_KEY in storage
        assert store.load() == credential

    def test_expiry_clears_record(self, store, storage, clock):
        """Test that loading after expiry returns None and erases the record."""
        store.save(make_credential(email="a@b.com", lifetime_ms=60_000))
        assert store.load().email == "a@b.com"

        clock.advance(60_000)

        assert store.load() is None
        assert AUTH_STORAGE_KEY not in storage

    @pytest.mark.parametrize("record", [
        "not json",
        "null",
        "[]",
        '{"accessToken": "a", "email": "a@b.com", "expiresAt": 1800000000000}',
        '{"accessToken": "", "refreshToken": "r", "email": "a@b.com", "expiresAt": 1800000000000}',
        '{"accessToken": "a", "refreshToken": "r", "email": "a@b.com", "expiresAt": "soon"}',
        '{"accessToken": "a", "refreshToken": "r", "email": "a@b.com", "expiresAt": true}',
    ])
    def test_malformed_record_cleared(self, store, storage, record):
        """Test that an unusable record is erased rather than half-loaded."""
        storage[AUTH_STORAGE_KEY] = record

        assert store.load() is None
        assert AUTH_STORAGE_KEY not in storage

    @given(st.text())
    def test_arbitrary_text_never_loads(self, record: str):
        """Property test: arbitrary text never yields a credential and is always erased."""
        storage = {AUTH_STORAGE_KEY: record}
        store = InMemoryCredentialStore(storage=storage, clock=FakeClock())

        assert store.load() is None
        assert storage == {}

    def test_clear_is_idempotent(self, store, storage):
        store.save(make_credential())
        store.clear()
        store.clear()

        assert storage == {}
        assert store.load() is None

    def test_custom_storage_key(self, clock):
        storage = {}
        store = InMemoryCredentialStore(storage=storage, key="other", clock=clock)
        store.save(make_credential())

        assert list(storage) == ["other"]


class TestFileCredentialStore:
    """Tests for the file-backed store."""

    def test_round_trip_on_disk(self, tmp_path):
        """Test that the record is written as the camelCase JSON file."""
        clock = FakeClock()
        path = tmp_path / "nested" / "credentials.json"
        store = FileCredentialStore(path, clock=clock)

        store.save(make_credential())

        assert json.loads(path.read_text())["accessToken"] == "ya29.access"
        assert store.load() == make_credential()

    def test_file_is_owner_only(self, tmp_path):
        path = tmp_path / "credentials.json"
        FileCredentialStore(path, clock=FakeClock()).save(make_credential())

        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600

    def test_corrupt_file_removed(self, tmp_path):
        path = tmp_path / "credentials.json"
        path.write_bytes(b"\xff\xfe garbage")
        store = FileCredentialStore(path, clock=FakeClock())

        assert store.load() is None
        assert not path.exists()

    def test_clear_missing_file(self, tmp_path):
        store = FileCredentialStore(tmp_path / "missing.json", clock=FakeClock())
        store.clear()

        assert not store.path.exists()


class TestFactory:
    """Tests for create_credential_store factory."""

    def test_create_file_store(self, tmp_path):
        store = create_credential_store("file", path=tmp_path / "c.json")

        assert isinstance(store, FileCredentialStore)
        assert store.backend_type == "file"

    def test_create_memory_store(self):
        store = create_credential_store("memory")

        assert isinstance(store, InMemoryCredentialStore)
        assert store.backend_type == "memory"

    def test_unsupported_backend(self):
        with pytest.raises(ValueError, match="Unsupported credential backend"):
            create_credential_store("keyring")


class TestCallback:
    """Tests for authorization callback handling."""

    def test_credential_from_callback(self):
        """Test that expires_in is converted to an absolute expiry."""
        params = {
            "access_token": "a",
            "refresh_token": "r",
            "email": "a@b.com",
            "expires_in": "3600",
        }

        credential = credential_from_callback(params, START_MS)

        assert credential.expires_at == START_MS + 3_600_000
        assert credential.created_at == START_MS
        assert credential.is_valid(START_MS)

    def test_optional_profile_fields(self):
        params = {
            "access_token": "a",
            "refresh_token": "r",
            "email": "a@b.com",
            "expires_in": "1.5",
            "name": "Ada",
            "picture": "https://example.com/p.png",
        }

        credential = credential_from_callback(params, START_MS)

        assert credential.name == "Ada"
        assert credential.picture == "https://example.com/p.png"
        assert credential.expires_at == START_MS + 1500

    def test_missing_parameters(self):
        """Test that every missing parameter is reported."""
        with pytest.raises(CredentialError) as exc_info:
            credential_from_callback({"access_token": "a", "email": ""}, START_MS)

        assert exc_info.value.message == "Missing authentication parameters"
        assert exc_info.value.context["missing"] == ["refresh_token", "email", "expires_in"]

    @pytest.mark.parametrize("expires_in", ["soon", "0", "-10", "nan"])
    def test_invalid_expires_in(self, expires_in):
        params = {"access_token": "a", "refresh_token": "r", "email": "a@b.com", "expires_in": expires_in}

        with pytest.raises(CredentialError, match="Invalid expires_in"):
            credential_from_callback(params, START_MS)

    def test_parse_callback_url(self):
        params = parse_callback_url(
            "http://localhost:8080/callback?access_token=a&refresh_token=r&email=a%40b.com&expires_in=3600"
        )

        assert params == {"access_token": "a", "refresh_token": "r", "email": "a@b.com", "expires_in": "3600"}

    def test_authorization_url(self):
        """Test that the URL requests offline mailbox access with consent."""
        url = build_authorization_url("client-123", "https://app.test/callback")
        parts = urlsplit(url)
        query = parse_qs(parts.query)

        assert f"{parts.scheme}://{parts.netloc}{parts.path}" == "https://accounts.google.com/o/oauth2/v2/auth"
        assert query["client_id"] == ["client-123"]
        assert query["redirect_uri"] == ["https://app.test/callback"]
        assert query["response_type"] == ["code"]
        assert query["scope"] == ["https://mail.google.com/"]
        assert query["access_type"] == ["offline"]
        assert query["prompt"] == ["consent"]
