import logging
import threading
from typing import Dict, Hashable, List, Optional

from .clock import SystemClock
from .errors import VaultError, VaultNotFound, InvalidSignature
from .events import EventLog, WithdrawalEvent
from .ledger import Ledger
from .receipts import ReceiptSigner, WithdrawalReceipt
from .vault import LockedVault

logger = logging.getLogger("timelock.service")

class TimeLockService:
    """
    Host for time-locked vaults.

    Owns the ledger, clock, event log and receipt signer that vaults depend
    on, and serializes every call against its vaults. Each call reads the
    clock exactly once. Re-entrant calls from ledger receive hooks run on
    the same thread and are allowed through the lock.
    """

    def __init__(self, ledger: Ledger = None, clock=None, events: EventLog = None,
                 signer: ReceiptSigner = None):
        self.ledger = ledger or Ledger()
        self.clock = clock or SystemClock()
        self.events = events or EventLog()
        self.signer = signer or ReceiptSigner()
        self._vaults: Dict[str, LockedVault] = {}
        self._receipts: Dict[str, WithdrawalReceipt] = {}
        self._nonces: Dict[Hashable, int] = {}
        self._withdraw_nonces: Dict[Hashable, int] = {}
        self._lock = threading.RLock()

    def create_vault(self, creator: Hashable, unlock_time: int, deposit: int,
                     expected_nonce: Optional[int] = None) -> LockedVault:
        """
        Lock deposit from the creator's account until unlock_time.

        expected_nonce, when given, must match the creator's next nonce; a
        signed create request carries it so the request cannot be replayed.
        """
        with self._lock:
            now = self.clock.now()
            nonce = self._nonces.get(creator, 0)
            if expected_nonce is not None and expected_nonce != nonce:
                raise InvalidSignature(f"Stale nonce {expected_nonce}, expected {nonce}")
            vault = LockedVault.create(unlock_time, deposit, creator, now, nonce=nonce)

            # Deposit lands atomically with creation; on failure nothing is registered
            self.ledger.transfer(creator, vault.vault_id, deposit)

            self._nonces[creator] = nonce + 1
            self._vaults[vault.vault_id] = vault

            logger.info("Created vault %.16s for %.16s: %d locked until %d",
                        vault.vault_id, creator, deposit, unlock_time)
            return vault

    def withdraw(self, vault_id: str, caller: Hashable,
                 expected_nonce: Optional[int] = None) -> WithdrawalEvent:
        """
        Withdraw the whole balance of a vault to its owner.

        expected_nonce, when given, must match the caller's next withdraw
        nonce and is used up by the attempt whatever its outcome, so a signed
        request is good for one attempt only.
        """
        with self._lock:
            vault = self.get_vault(vault_id)
            if expected_nonce is not None:
                self._use_withdraw_nonce(caller, expected_nonce)
            now = self.clock.now()

            def transfer(owner, amount: int):
                return self.ledger.transfer(vault.vault_id, owner, amount)

            try:
                event = vault.withdraw(caller, now, transfer=transfer)
            except VaultError as exc:
                logger.info("Withdrawal from vault %.16s by %.16s rejected: %s",
                            vault_id, caller, exc.message)
                raise

            self._receipts[vault_id] = self.signer.issue(event)
            self.events.publish(event)
            return event

    def next_nonce(self, creator: Hashable) -> int:
        """Nonce the creator's next vault will be derived from"""
        return self._nonces.get(creator, 0)

    def next_withdraw_nonce(self, caller: Hashable) -> int:
        """Nonce the caller's next signed withdraw request must carry"""
        return self._withdraw_nonces.get(caller, 0)

    def _use_withdraw_nonce(self, caller: Hashable, nonce: int) -> None:
        expected = self._withdraw_nonces.get(caller, 0)
        if nonce != expected:
            raise InvalidSignature(f"Stale nonce {nonce}, expected {expected}")
        self._withdraw_nonces[caller] = expected + 1

    def get_vault(self, vault_id: str) -> LockedVault:
        vault = self._vaults.get(vault_id)
        if vault is None:
            raise VaultNotFound(f"Vault {vault_id} not found")
        return vault

    def list_vaults(self, owner: Optional[Hashable] = None) -> List[LockedVault]:
        return [v for v in self._vaults.values() if owner is None or v.owner == owner]

    def vault_balance(self, vault_id: str) -> int:
        """Funds the ledger holds for the vault"""
        return self.ledger.balance_of(self.get_vault(vault_id).vault_id)

    def get_receipt(self, vault_id: str) -> Optional[WithdrawalReceipt]:
        self.get_vault(vault_id)
        return self._receipts.get(vault_id)

    def get_withdrawal_history(self, vault_id: str = None) -> List[dict]:
        """Published withdrawal events, optionally for one vault"""
        events = self.events.all_events() if vault_id is None else self.events.events_for(vault_id)
        return [e.to_dict() for e in events]
