from datetime import datetime

from src.auth.credential_store import InMemoryCredentialStore


def test_get_unknown_user_returns_none(store):
    assert store.get("nobody") is None
    assert not store.has("nobody")


def test_put_then_get(store, credential):
    store.put("user-1", credential)

    assert store.get("user-1") is credential
    assert store.has("user-1")
    assert len(store) == 1


def test_put_overwrites_last_write_wins(store, credential):
    newer = credential.with_access_token("ya29.newer", datetime(2025, 1, 14, 12, 0, 0))

    store.put("user-1", credential)
    store.put("user-1", newer)

    assert store.get("user-1").access_token == "ya29.newer"
    assert len(store) == 1


def test_delete_is_idempotent(store, credential):
    store.put("user-1", credential)

    store.delete("user-1")
    store.delete("user-1")

    assert not store.has("user-1")
    assert len(store) == 0


def test_users_are_isolated(store, credential):
    store.put("user-1", credential)
    store.put("user-2", credential.with_access_token("ya29.other", None))

    store.delete("user-1")

    assert store.get("user-2").access_token == "ya29.other"


def test_with_access_token_keeps_refresh_token(credential):
    rotated = credential.with_access_token("ya29.rotated", datetime(2025, 1, 14, 12, 0, 0))

    assert rotated.refresh_token == credential.refresh_token
    assert rotated.user_id == credential.user_id
    assert credential.access_token == "ya29.test-access-token"


def test_new_store_is_empty():
    assert len(InMemoryCredentialStore()) == 0
