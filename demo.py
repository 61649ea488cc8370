#!/usr/bin/env python3
"""
Walkthrough of a one-year time-locked vault
"""

from timelock.clock import ManualClock
from timelock.config import ONE_YEAR_IN_SECS, ONE_GWEI, configure_logging
from timelock.errors import VaultError
from timelock.keys import AccountKey
from timelock.service import TimeLockService

def attempt(label, action):
    try:
        result = action()
        print(f"   ✅ {label}: {result}")
        return result
    except VaultError as e:
        print(f"   ❌ {label}: {e.kind} - {e}")
        return None

def main():
    configure_logging("WARNING")

    print("=" * 60)
    print("🔒 TIME-LOCKED VAULT - DEMO")
    print("=" * 60)
    print()

    clock = ManualClock()
    service = TimeLockService(clock=clock)

    owner = AccountKey()
    other = AccountKey()
    service.ledger.mint(owner.identity, 2 * ONE_GWEI)
    print(f"Owner: {owner.identity[:16]}...  balance {service.ledger.balance_of(owner.identity):,}")
    print(f"Other: {other.identity[:16]}...")
    print()

    print("🏗️  Invalid schedule: unlock time equal to now")
    attempt("Create", lambda: service.create_vault(owner.identity, clock.latest(), ONE_GWEI))
    print()

    unlock_time = clock.latest() + ONE_YEAR_IN_SECS
    vault = service.create_vault(owner.identity, unlock_time, ONE_GWEI)
    print(f"🏗️  Vault {vault.vault_id[:16]}... locks {vault.balance:,} until {unlock_time}")
    print()

    print("⏳ Withdraw before unlock time")
    attempt("Withdraw", lambda: service.withdraw(vault.vault_id, owner.identity))
    print()

    clock.increase_to(unlock_time)
    print("⏰ Clock advanced to unlock time")
    attempt("Withdraw as other account", lambda: service.withdraw(vault.vault_id, other.identity))
    event = attempt("Withdraw as owner", lambda: service.withdraw(vault.vault_id, owner.identity))
    if event:
        print(f"   💰 Withdrew {event.amount:,} at {event.when}; vault balance now {vault.balance}")
        print(f"   🧾 Receipt valid: {service.get_receipt(vault.vault_id).verify()}")
    print()

    clock.increase(1)
    print("🔁 Withdraw again one second later")
    attempt("Withdraw", lambda: service.withdraw(vault.vault_id, owner.identity))
    print()

    print(f"Owner balance: {service.ledger.balance_of(owner.identity):,}")

if __name__ == "__main__":
    main()
