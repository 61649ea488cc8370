"""
Time-locked vault - funds held for one owner until an unlock time,
withdrawable exactly once
"""

from .vault import LockedVault, VaultState
from .service import TimeLockService
from .ledger import Ledger
from .events import EventLog, WithdrawalEvent
from .clock import SystemClock, ManualClock
from .keys import AccountKey
from .receipts import ReceiptSigner, WithdrawalReceipt
from .errors import (
    VaultError,
    InvalidSchedule,
    NotYetUnlocked,
    Unauthorized,
    AlreadyWithdrawn,
    TransferFailed,
    InsufficientFunds,
    VaultNotFound,
    InvalidSignature,
)

__version__ = "0.1.0"
__all__ = [
    "LockedVault",
    "VaultState",
    "TimeLockService",
    "Ledger",
    "EventLog",
    "WithdrawalEvent",
    "SystemClock",
    "ManualClock",
    "AccountKey",
    "ReceiptSigner",
    "WithdrawalReceipt",
    "VaultError",
    "InvalidSchedule",
    "NotYetUnlocked",
    "Unauthorized",
    "AlreadyWithdrawn",
    "TransferFailed",
    "InsufficientFunds",
    "VaultNotFound",
    "InvalidSignature",
]
