import unittest
from timelock.vault import LockedVault, VaultState
from timelock.errors import (
    InvalidSchedule, NotYetUnlocked, Unauthorized, AlreadyWithdrawn, TransferFailed, VaultError
)
from timelock.keys import AccountKey
from timelock.config import ONE_YEAR_IN_SECS, ONE_GWEI

NOW = 1_700_000_000

class TestLockedVault(unittest.TestCase):

    def setUp(self):
        """Set up a one-year lock of one gwei"""
        _, self.owner = AccountKey.generate_key_pair()
        _, self.other = AccountKey.generate_key_pair()
        self.unlock_time = NOW + ONE_YEAR_IN_SECS
        self.vault = LockedVault.create(self.unlock_time, ONE_GWEI, self.owner, NOW)

    def test_vault_creation(self):
        """Test unlock time, owner and balance are set as deployed"""
        self.assertEqual(self.vault.unlock_time, self.unlock_time)
        self.assertEqual(self.vault.owner, self.owner)
        self.assertEqual(self.vault.balance, ONE_GWEI)
        self.assertFalse(self.vault.withdrawn)
        self.assertEqual(self.vault.state, VaultState.LOCKED)
        self.assertEqual(len(self.vault.vault_id), 64)

    def test_schedule_must_be_in_future(self):
        """Test unlock time equal to or before now is rejected"""
        for unlock_time in (NOW, NOW - 1, 0):
            with self.assertRaises(InvalidSchedule) as ctx:
                LockedVault.create(unlock_time, 1, self.owner, NOW)
            self.assertEqual(str(ctx.exception), "Unlock time should be in the future")

        vault = LockedVault.create(NOW + 1, 1, self.owner, NOW)
        self.assertEqual(vault.unlock_time, NOW + 1)

    def test_negative_deposit_rejected(self):
        """Test deposits must be non-negative integers"""
        with self.assertRaises(ValueError):
            LockedVault.create(self.unlock_time, -1, self.owner, NOW)
        with self.assertRaises(ValueError):
            LockedVault.create(self.unlock_time, 1.5, self.owner, NOW)

    def test_bool_values_rejected(self):
        """Test booleans are not accepted as amounts or timestamps"""
        with self.assertRaises(ValueError):
            LockedVault.create(self.unlock_time, True, self.owner, NOW)
        with self.assertRaises(ValueError):
            LockedVault.create(True, 1, self.owner, 0)

    def test_non_string_identity(self):
        """Test identities are compared as opaque values"""
        with self.assertRaises(InvalidSchedule):
            LockedVault.create(100, 1, 42, 200)

        vault = LockedVault.create(NOW + 10, 7, 42, NOW)
        self.assertEqual(vault.owner, 42)
        self.assertNotEqual(vault.vault_id, LockedVault.create(NOW + 10, 7, "42", NOW).vault_id)

        with self.assertRaises(Unauthorized):
            vault.withdraw(43, NOW + 10)
        event = vault.withdraw(42, NOW + 10)
        self.assertEqual(event.as_tuple(), (7, NOW + 10))
        self.assertEqual(len(vault.commitment_hash()), 64)

    def test_zero_deposit_allowed(self):
        """Test a zero-value lock withdraws zero"""
        vault = LockedVault.create(self.unlock_time, 0, self.owner, NOW)
        event = vault.withdraw(self.owner, self.unlock_time)
        self.assertEqual(event.amount, 0)
        self.assertTrue(vault.withdrawn)

    def test_early_withdrawal_rejected(self):
        """Test withdrawal before unlock time fails for any caller"""
        for caller in (self.owner, self.other):
            for now in (NOW, self.unlock_time - 1):
                with self.assertRaises(NotYetUnlocked) as ctx:
                    self.vault.withdraw(caller, now)
                self.assertEqual(str(ctx.exception), "You can't withdraw yet")
        self.assertEqual(self.vault.balance, ONE_GWEI)
        self.assertFalse(self.vault.withdrawn)

    def test_non_owner_rejected(self):
        """Test non-owner withdrawal fails at and after unlock time"""
        for now in (self.unlock_time, self.unlock_time + 1000):
            with self.assertRaises(Unauthorized) as ctx:
                self.vault.withdraw(self.other, now)
            self.assertEqual(str(ctx.exception), "You aren't the owner")
        self.assertEqual(self.vault.balance, ONE_GWEI)

    def test_owner_withdraws_at_unlock_time(self):
        """Test owner withdraws the full balance exactly at unlock time"""
        event = self.vault.withdraw(self.owner, self.unlock_time)

        self.assertEqual(event.as_tuple(), (ONE_GWEI, self.unlock_time))
        self.assertEqual(event.vault_id, self.vault.vault_id)
        self.assertEqual(self.vault.balance, 0)
        self.assertTrue(self.vault.withdrawn)
        self.assertEqual(self.vault.state, VaultState.WITHDRAWN)

    def test_second_withdrawal_rejected(self):
        """Test only one withdrawal succeeds"""
        self.vault.withdraw(self.owner, self.unlock_time)

        with self.assertRaises(AlreadyWithdrawn) as ctx:
            self.vault.withdraw(self.owner, self.unlock_time + 1)
        self.assertEqual(str(ctx.exception), "Funds have already been withdrawn")
        self.assertEqual(self.vault.balance, 0)
        self.assertTrue(self.vault.withdrawn)

    def test_guard_order(self):
        """Test the time check runs before ownership and ownership before the flag"""
        self.vault.withdraw(self.owner, self.unlock_time)

        with self.assertRaises(NotYetUnlocked):
            self.vault.withdraw(self.other, self.unlock_time - 1)
        with self.assertRaises(Unauthorized):
            self.vault.withdraw(self.other, self.unlock_time + 1)

    def test_transfer_receives_owner_and_amount(self):
        """Test the transfer is called once with the owner and full balance"""
        calls = []
        self.vault.withdraw(self.owner, self.unlock_time, transfer=lambda to, amount: calls.append((to, amount)))
        self.assertEqual(calls, [(self.owner, ONE_GWEI)])

    def test_failed_transfer_rolls_back(self):
        """Test a failing transfer leaves the vault untouched"""
        def reject(to, amount):
            raise TransferFailed("Recipient rejected funds")

        with self.assertRaises(TransferFailed):
            self.vault.withdraw(self.owner, self.unlock_time, transfer=reject)
        self.assertEqual(self.vault.balance, ONE_GWEI)
        self.assertFalse(self.vault.withdrawn)

        # Retrying with a working transfer succeeds
        event = self.vault.withdraw(self.owner, self.unlock_time + 5)
        self.assertEqual(event.amount, ONE_GWEI)

    def test_unexpected_transfer_error_becomes_transfer_failed(self):
        """Test other transfer errors surface as TransferFailed"""
        def broken(to, amount):
            raise RuntimeError("ledger offline")

        with self.assertRaises(TransferFailed) as ctx:
            self.vault.withdraw(self.owner, self.unlock_time, transfer=broken)
        self.assertIsInstance(ctx.exception.__cause__, RuntimeError)
        self.assertEqual(self.vault.balance, ONE_GWEI)

    def test_reentrant_call_sees_withdrawn(self):
        """Test a call made from inside the transfer is rejected"""
        seen = []

        def reenter(to, amount):
            self.assertTrue(self.vault.withdrawn)
            self.assertEqual(self.vault.balance, 0)
            try:
                self.vault.withdraw(self.owner, self.unlock_time)
            except AlreadyWithdrawn as e:
                seen.append(e)

        self.vault.withdraw(self.owner, self.unlock_time, transfer=reenter)
        self.assertEqual(len(seen), 1)

    def test_fixed_fields_cannot_change(self):
        """Test owner and unlock time are immutable"""
        with self.assertRaises(AttributeError):
            self.vault.owner = self.other
        with self.assertRaises(AttributeError):
            self.vault.unlock_time = NOW
        self.assertEqual(self.vault.owner, self.owner)

    def test_errors_are_value_errors(self):
        """Test rejections share the VaultError base"""
        with self.assertRaises(VaultError):
            self.vault.withdraw(self.owner, NOW)
        with self.assertRaises(ValueError):
            self.vault.withdraw(self.owner, NOW)

    def test_serialization(self):
        """Test vault survives to_dict/from_dict"""
        data = self.vault.to_dict()
        self.assertEqual(data['state'], 'locked')

        restored = LockedVault.from_dict(data)
        self.assertEqual(restored, self.vault)
        self.assertEqual(restored.commitment_hash(), self.vault.commitment_hash())

    def test_commitment_changes_on_withdrawal(self):
        """Test commitment hash reflects the withdrawn state"""
        before = self.vault.commitment_hash()
        self.vault.withdraw(self.owner, self.unlock_time)
        self.assertNotEqual(before, self.vault.commitment_hash())

    def test_withdrawn_vault_cannot_hold_balance(self):
        """Test from_dict rejects a withdrawn vault with funds"""
        data = self.vault.to_dict()
        data['withdrawn'] = True
        with self.assertRaises(ValueError):
            LockedVault.from_dict(data)

if __name__ == '__main__':
    unittest.main()
