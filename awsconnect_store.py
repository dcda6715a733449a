"""
awsconnect - Secret store
Keeps TOTP secrets in the platform credential store through keyring
(macOS Keychain, Windows Credential Manager, Secret Service, ...)
"""

import keyring
from keyring.errors import (
    InitError,
    KeyringError,
    KeyringLocked,
    NoKeyringError,
    PasswordDeleteError,
)

SERVICE_NAME = "awsconnect"

LIST_UNSUPPORTED_MESSAGE = (
    "Listing stored secrets is not supported by the keystore backend.\n"
    "Use 'generate --name <name>' to test if a secret exists."
)


# ==================== Errors ====================

class StoreError(Exception):
    """Credential store operation failed"""


class NotFoundError(StoreError):
    def __init__(self, name: str):
        super().__init__(f"No TOTP secret stored for '{name}'")
        self.name = name


class AccessDeniedError(StoreError):
    def __init__(self, name: str, reason: str = "the keystore is locked"):
        super().__init__(f"Access to '{name}' denied: {reason}")
        self.name = name


class BackendUnavailableError(StoreError):
    pass


class UnsupportedError(StoreError):
    pass


def translate_error(name: str, action: str, error: KeyringError) -> StoreError:
    """Map a keyring exception onto a StoreError"""
    if isinstance(error, KeyringLocked):
        return AccessDeniedError(name, str(error) or "the keystore is locked")
    if isinstance(error, (NoKeyringError, InitError)):
        return BackendUnavailableError(f"No usable keystore backend: {error}")
    return StoreError(f"Failed to {action}: {error}")


# ==================== Store ====================

class KeyStore:
    """Secrets for one service namespace in the OS credential store.

    Entries are keyed by (service, name). There is no way to enumerate them
    and no local index is kept: the credential store is the only source of
    truth.
    """

    def __init__(self, service: str = SERVICE_NAME):
        self.service = service

    def set(self, name: str, secret: str):
        """Create or overwrite the secret for name"""
        try:
            keyring.set_password(self.service, name, secret)
        except KeyringError as e:
            raise translate_error(name, "store secret in keystore", e) from e

    def get(self, name: str) -> str:
        try:
            secret = keyring.get_password(self.service, name)
        except KeyringError as e:
            raise translate_error(name, "retrieve secret from keystore", e) from e

        if secret is None:
            raise NotFoundError(name)
        return secret

    def delete(self, name: str):
        try:
            keyring.delete_password(self.service, name)
        except PasswordDeleteError as e:
            # Backends report a missing entry this way
            raise NotFoundError(name) from e
        except KeyringError as e:
            raise translate_error(name, "remove secret from keystore", e) from e

    def list(self):
        raise UnsupportedError(LIST_UNSUPPORTED_MESSAGE)
