"""
In-memory value ledger holding account balances for vault hosts
"""

import logging
from dataclasses import dataclass, asdict
from typing import Callable, Dict, Hashable, List

from .errors import TransferFailed, InsufficientFunds

logger = logging.getLogger("timelock.ledger")

# Called with (sender, amount) after funds arrive; returning False rejects them
ReceiveHook = Callable[[Hashable, int], bool]

def is_amount(value) -> bool:
    """Non-negative integer, bools excluded"""
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0

@dataclass
class TransferRecord:
    """Committed ledger transfer"""
    sender: Hashable
    recipient: Hashable
    amount: int
    sequence: int

class Ledger:
    """Balances in the smallest unit, keyed by account identity"""

    def __init__(self):
        self._balances: Dict[Hashable, int] = {}
        self._receive_hooks: Dict[Hashable, ReceiveHook] = {}
        self._transfer_history: List[TransferRecord] = []
        # account -> incoming transfers whose receive hook has not returned
        self._pending: Dict[Hashable, int] = {}

    def balance_of(self, account: Hashable) -> int:
        """Get balance for account"""
        return self._balances.get(account, 0)

    def mint(self, account: Hashable, amount: int) -> int:
        """Credit new funds to an account"""
        if not is_amount(amount):
            raise ValueError(f"Mint amount must be a non-negative integer, got {amount!r}")

        self._balances[account] = self.balance_of(account) + amount
        logger.debug("Minted %d to %.16s", amount, account)
        return self._balances[account]

    def on_receive(self, account: Hashable, hook: ReceiveHook) -> None:
        """Register code that runs whenever the account receives funds"""
        self._receive_hooks[account] = hook

    def remove_hook(self, account: Hashable) -> None:
        self._receive_hooks.pop(account, None)

    def is_pending(self, account: Hashable) -> bool:
        """True while an incoming transfer to the account awaits its receive hook"""
        return self._pending.get(account, 0) > 0

    def transfer(self, sender: Hashable, recipient: Hashable, amount: int) -> TransferRecord:
        """
        Move funds between accounts.

        Either both balances change and the transfer is recorded, or neither
        changes and TransferFailed is raised. The recipient's receive hook
        runs after the funds land and may reject them. Until the hook
        returns, the recipient cannot send funds, so a rejected transfer
        can always be taken back in full.
        """
        if not is_amount(amount):
            raise TransferFailed(f"Invalid transfer amount {amount!r}")

        if self.is_pending(sender):
            raise TransferFailed("Sender has an incoming transfer pending")

        sender_balance = self.balance_of(sender)
        if sender_balance < amount:
            raise InsufficientFunds(f"Insufficient funds: need {amount}, have {sender_balance}")

        self._balances[sender] = sender_balance - amount
        self._balances[recipient] = self.balance_of(recipient) + amount

        hook = self._receive_hooks.get(recipient)
        if hook is not None:
            self._pending[recipient] = self._pending.get(recipient, 0) + 1
            try:
                accepted = hook(sender, amount)
            except TransferFailed:
                self._revert(sender, recipient, amount)
                raise
            except Exception as exc:
                self._revert(sender, recipient, amount)
                raise TransferFailed(f"Recipient rejected funds: {exc}") from exc
            finally:
                self._release(recipient)

            if accepted is False:
                self._revert(sender, recipient, amount)
                raise TransferFailed("Recipient rejected funds")

        record = TransferRecord(sender, recipient, amount, len(self._transfer_history))
        self._transfer_history.append(record)
        return record

    def _release(self, account: Hashable) -> None:
        count = self._pending[account] - 1
        if count:
            self._pending[account] = count
        else:
            del self._pending[account]

    def _revert(self, sender: Hashable, recipient: Hashable, amount: int) -> None:
        self._balances[recipient] -= amount
        self._balances[sender] += amount
        logger.warning("Transfer from %.16s to %.16s rolled back", sender, recipient)

    def get_transfer_history(self) -> List[dict]:
        return [asdict(record) for record in self._transfer_history]
