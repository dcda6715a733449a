from unittest.mock import MagicMock, patch

import pytest
from keyring.errors import (
    InitError,
    KeyringLocked,
    NoKeyringError,
    PasswordDeleteError,
    PasswordSetError,
)

from awsconnect_store import (
    SERVICE_NAME,
    AccessDeniedError,
    BackendUnavailableError,
    KeyStore,
    NotFoundError,
    StoreError,
    UnsupportedError,
)


def test_set_then_get(memory_keyring) -> None:
    store = KeyStore()
    store.set("work", "JBSWY3DPEHPK3PXP")
    assert store.get("work") == "JBSWY3DPEHPK3PXP"
    assert memory_keyring.entries == {(SERVICE_NAME, "work"): "JBSWY3DPEHPK3PXP"}


def test_set_overwrites(memory_keyring) -> None:
    store = KeyStore()
    store.set("work", "AAAA")
    store.set("work", "BBBB")
    assert store.get("work") == "BBBB"


def test_service_namespace_is_isolated(memory_keyring) -> None:
    KeyStore("other").set("work", "AAAA")
    with pytest.raises(NotFoundError):
        KeyStore().get("work")


def test_get_missing_raises_not_found(memory_keyring) -> None:
    with pytest.raises(NotFoundError) as excinfo:
        KeyStore().get("missing")
    assert excinfo.value.name == "missing"
    assert "missing" in str(excinfo.value)


def test_delete(memory_keyring) -> None:
    store = KeyStore()
    store.set("work", "AAAA")
    store.delete("work")
    with pytest.raises(NotFoundError):
        store.get("work")


def test_delete_missing_raises_not_found(memory_keyring) -> None:
    with pytest.raises(NotFoundError):
        KeyStore().delete("missing")


def test_list_is_unsupported(memory_keyring) -> None:
    KeyStore().set("work", "AAAA")
    with pytest.raises(UnsupportedError) as excinfo:
        KeyStore().list()
    assert "not supported" in str(excinfo.value)


@patch("keyring.get_password")
def test_locked_keyring_is_access_denied(mock_get: MagicMock) -> None:
    mock_get.side_effect = KeyringLocked("Keychain is locked")
    with pytest.raises(AccessDeniedError) as excinfo:
        KeyStore().get("work")
    assert excinfo.value.name == "work"
    assert "Keychain is locked" in str(excinfo.value)


@pytest.mark.parametrize("error", [NoKeyringError("no backend"), InitError("bad config")])
def test_missing_backend_is_unavailable(error: Exception) -> None:
    with patch("keyring.set_password", side_effect=error):
        with pytest.raises(BackendUnavailableError):
            KeyStore().set("work", "AAAA")


@patch("keyring.set_password")
def test_other_keyring_errors_are_store_errors(mock_set: MagicMock) -> None:
    mock_set.side_effect = PasswordSetError("write failed")
    with pytest.raises(StoreError) as excinfo:
        KeyStore().set("work", "AAAA")
    assert type(excinfo.value) is StoreError
    assert "write failed" in str(excinfo.value)


@patch("keyring.delete_password")
def test_delete_error_maps_to_not_found(mock_delete: MagicMock) -> None:
    mock_delete.side_effect = PasswordDeleteError("Item not found")
    with pytest.raises(NotFoundError):
        KeyStore().delete("work")
    mock_delete.assert_called_once_with(SERVICE_NAME, "work")
