"""Tests for local token storage and token resolution."""

import json
import os
import stat

import pytest

from doner.config import Settings
from doner.utils.credential_store import CredentialError, CredentialStore, resolve_token


@pytest.fixture
def store(tmp_path):
    return CredentialStore(tmp_path / "doner" / "credentials.json")


def make_settings(**overrides):
    overrides.setdefault("GITHUB_TOKEN", None)
    return Settings(_env_file=None, **overrides)


class TestCredentialStore:
    def test_store_and_get(self, store):
        store.store_token("ghp_abc")
        assert store.get_token() == "ghp_abc"
        assert store.has_token()

    def test_file_is_private(self, store):
        store.store_token("ghp_abc")
        mode = stat.S_IMODE(os.stat(store.path).st_mode)
        assert mode == 0o600

    def test_get_without_token(self, store):
        assert not store.has_token()
        with pytest.raises(CredentialError):
            store.get_token()

    def test_delete(self, store):
        store.store_token("ghp_abc")
        store.delete_token()
        assert not store.has_token()
        assert not store.path.exists()

    def test_delete_is_idempotent(self, store):
        store.delete_token()
        store.delete_token()

    def test_corrupt_file(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text("{not json")
        with pytest.raises(CredentialError, match="Failed to read"):
            store.get_token()

    def test_overwrites_existing_token(self, store):
        store.store_token("ghp_old")
        store.store_token("ghp_new")
        assert json.loads(store.path.read_text()) == {"github_token": "ghp_new"}


class TestResolveToken:
    def test_environment_wins(self, store):
        store.store_token("ghp_stored")
        assert resolve_token(make_settings(GITHUB_TOKEN="ghp_env"), store) == "ghp_env"

    def test_falls_back_to_store(self, store):
        store.store_token("ghp_stored")
        assert resolve_token(make_settings(), store) == "ghp_stored"

    def test_no_token_anywhere(self, store):
        with pytest.raises(CredentialError, match="doner auth login"):
            resolve_token(make_settings(), store)
