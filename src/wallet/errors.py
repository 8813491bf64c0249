"""
Wallet Errors - Typed failures for the wallet pipeline.

Every operation that can fail raises one of these. Each kind carries a fixed
human-readable description for display; the optional message adds detail for
logs.
"""

from typing import Optional


class WalletError(Exception):
    """Base class for all wallet failures."""

    description = "Wallet error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.description)
        self.message = message or self.description

    @property
    def kind(self) -> str:
        """Stable identifier of the failure kind (the class name)."""
        return type(self).__name__


class AccountDoesNotExist(WalletError):
    description = "No wallet exists on this device"


class InvalidPath(WalletError):
    description = "The keystore directory could not be created"


class InvalidKey(WalletError):
    description = "The private key is not valid"


class InvalidMnemonics(WalletError):
    description = "The recovery phrase is not valid"


class InvalidAddress(WalletError):
    description = "The address is not valid"


class MalformedKeystore(WalletError):
    description = "The wallet keystore is missing or unreadable"


class DecryptionFailure(WalletError):
    description = "Wrong password or corrupted keystore"


class NetworkFailure(WalletError):
    description = "Network request failed"


class ConversionFailure(WalletError):
    description = "The amount could not be converted"


class NotEnoughBalance(WalletError):
    description = "Not enough balance for this transfer"


class ContractFailure(WalletError):
    description = "The contract call could not be prepared"


class UnexpectedResult(WalletError):
    description = "Received an unexpected result"


ALL_ERRORS = (
    AccountDoesNotExist,
    InvalidPath,
    InvalidKey,
    InvalidMnemonics,
    InvalidAddress,
    MalformedKeystore,
    DecryptionFailure,
    NetworkFailure,
    ConversionFailure,
    NotEnoughBalance,
    ContractFailure,
    UnexpectedResult,
)
