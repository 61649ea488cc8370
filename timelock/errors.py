"""
Rejections raised by the time-locked vault and its host
"""


class VaultError(ValueError):
    """Base class for every rejected vault operation"""

    kind = "VaultError"
    default_message = "Vault operation rejected"

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self) -> dict:
        return {'error': self.kind, 'message': self.message}


class InvalidSchedule(VaultError):
    kind = "InvalidSchedule"
    default_message = "Unlock time should be in the future"


class NotYetUnlocked(VaultError):
    kind = "NotYetUnlocked"
    default_message = "You can't withdraw yet"


class Unauthorized(VaultError):
    kind = "Unauthorized"
    default_message = "You aren't the owner"


class AlreadyWithdrawn(VaultError):
    kind = "AlreadyWithdrawn"
    default_message = "Funds have already been withdrawn"


class TransferFailed(VaultError):
    kind = "TransferFailed"
    default_message = "Transfer failed"


class InsufficientFunds(TransferFailed):
    kind = "InsufficientFunds"
    default_message = "Insufficient funds"


class VaultNotFound(VaultError):
    kind = "VaultNotFound"
    default_message = "Vault not found"


class InvalidSignature(VaultError):
    kind = "InvalidSignature"
    default_message = "Signature verification failed"
