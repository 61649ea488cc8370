import hashlib
import logging
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Callable, Optional

from .errors import InvalidSchedule, NotYetUnlocked, Unauthorized, AlreadyWithdrawn, TransferFailed
from .events import WithdrawalEvent
from .ledger import is_amount

logger = logging.getLogger("timelock.vault")

# Moves (owner, amount) out of the vault; raises TransferFailed on rejection
Transfer = Callable[[Any, int], object]

_FIXED_FIELDS = ("owner", "unlock_time", "created_at", "nonce", "vault_id")

class VaultState(Enum):
    LOCKED = "locked"
    WITHDRAWN = "withdrawn"

@dataclass
class LockedVault:
    """Funds held for one owner until the unlock time, withdrawable once"""
    owner: Any  # opaque comparable identity; hosts use compressed pubkey hex
    unlock_time: int  # unix seconds
    balance: int  # smallest unit
    created_at: int
    nonce: int = 0
    withdrawn: bool = False
    vault_id: str = field(default="")

    def __post_init__(self):
        if not is_amount(self.balance):
            raise ValueError(f"Deposit must be a non-negative integer, got {self.balance!r}")
        for name in ("unlock_time", "created_at", "nonce"):
            value = getattr(self, name)
            if not is_amount(value):
                raise ValueError(f"{name} must be a non-negative integer, got {value!r}")
        if self.withdrawn and self.balance != 0:
            raise ValueError("A withdrawn vault cannot hold a balance")
        if not self.vault_id:
            object.__setattr__(self, "vault_id", self._generate_vault_id())

    def __setattr__(self, name, value):
        if name in _FIXED_FIELDS and name in self.__dict__:
            raise AttributeError(f"{name} is fixed at creation")
        super().__setattr__(name, value)

    @classmethod
    def create(cls, unlock_time: int, initial_deposit: int, creator: Any, now: int, nonce: int = 0) -> 'LockedVault':
        """Lock initial_deposit for creator until unlock_time"""
        if not now < unlock_time:
            logger.info("Rejected vault for %.16s: unlock time %s is not after %s", creator, unlock_time, now)
            raise InvalidSchedule()

        return cls(owner=creator, unlock_time=unlock_time, balance=initial_deposit, created_at=now, nonce=nonce)

    def _generate_vault_id(self) -> str:
        """Deterministic vault ID from owner, schedule and nonce"""
        hasher = hashlib.sha256()
        hasher.update(b"TIMELOCK_VAULT_V1")
        hasher.update(repr(self.owner).encode())
        hasher.update(self.unlock_time.to_bytes(8, 'big'))
        hasher.update(self.created_at.to_bytes(8, 'big'))
        hasher.update(self.nonce.to_bytes(8, 'big'))
        return hasher.hexdigest()

    @property
    def state(self) -> VaultState:
        return VaultState.WITHDRAWN if self.withdrawn else VaultState.LOCKED

    def is_unlocked(self, now: int) -> bool:
        return now >= self.unlock_time

    def check_withdrawal(self, caller: Any, now: int) -> None:
        """Raise the first failing withdrawal guard, if any"""
        if not self.is_unlocked(now):
            raise NotYetUnlocked()
        if caller != self.owner:
            raise Unauthorized()
        if self.withdrawn:
            raise AlreadyWithdrawn()

    def withdraw(self, caller: Any, now: int, transfer: Optional[Transfer] = None) -> WithdrawalEvent:
        """
        Release the whole balance to the owner.

        The flag is set and the balance zeroed before transfer runs, so a
        call re-entering through the transfer sees the vault as withdrawn.
        If transfer fails the vault is restored and TransferFailed raised.
        """
        self.check_withdrawal(caller, now)

        amount = self.balance
        self.withdrawn = True
        self.balance = 0

        if transfer is not None:
            try:
                transfer(self.owner, amount)
            except TransferFailed:
                self._rollback(amount)
                raise
            except Exception as exc:
                self._rollback(amount)
                raise TransferFailed(str(exc)) from exc

        logger.info("Vault %s withdrew %d at %d", self.vault_id[:16], amount, now)
        return WithdrawalEvent(vault_id=self.vault_id, amount=amount, when=now)

    def _rollback(self, amount: int) -> None:
        self.withdrawn = False
        self.balance = amount
        logger.warning("Withdrawal from vault %s rolled back", self.vault_id[:16])

    def commitment_hash(self) -> str:
        """Hash committing to the full vault state"""
        hasher = hashlib.sha256()
        hasher.update(bytes.fromhex(self.vault_id))
        hasher.update(repr(self.owner).encode())
        hasher.update(self.unlock_time.to_bytes(8, 'big'))
        hasher.update(self.balance.to_bytes(16, 'big'))
        hasher.update(b"\x01" if self.withdrawn else b"\x00")
        return hasher.hexdigest()

    def to_dict(self) -> dict:
        data = asdict(self)
        data['state'] = self.state.value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'LockedVault':
        return cls(
            owner=data['owner'],
            unlock_time=data['unlock_time'],
            balance=data['balance'],
            created_at=data['created_at'],
            nonce=data.get('nonce', 0),
            withdrawn=data.get('withdrawn', False),
            vault_id=data.get('vault_id', ''),
        )
