"""Exceptions raised by the vault pipeline."""

from __future__ import annotations


class VaultWatchError(Exception):
    """Base class for all vault-watch errors."""


class InvalidVaultAddressError(VaultWatchError, ValueError):
    """Raised when a caller supplies a string that is not a chain address."""

    def __init__(self, address: object):
        self.address = address
        super().__init__(f"Expected a valid vault address, got {address!r}")


class VaultNotFoundError(VaultWatchError, LookupError):
    """Raised when a well-formed address matches no known vault."""

    def __init__(self, address: str):
        self.address = address
        super().__init__(f"Requested address {address} not recognized as a vault")


class VaultStructureError(VaultWatchError, ValueError):
    """Raised when an assembled vault breaks a structural invariant."""

    def __init__(self, address: str, reason: str):
        self.address = address
        self.reason = reason
        super().__init__(f"Vault {address} failed structural checks: {reason}")


class IndexApiError(VaultWatchError):
    """Raised when the index service returns something other than a vault list."""
