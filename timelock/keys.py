"""
Account keys: the identities that own and withdraw from vaults
"""

import hashlib
from ecdsa import SigningKey, SECP256k1, VerifyingKey, BadSignatureError
from ecdsa.keys import MalformedPointError
from typing import Tuple

class AccountKey:
    """secp256k1 key pair identifying a vault account"""

    def __init__(self, private_key: bytes = None):
        if private_key:
            self.private_key = SigningKey.from_string(private_key, curve=SECP256k1)
        else:
            self.private_key = SigningKey.generate(curve=SECP256k1)

        self.public_key = self.private_key.get_verifying_key()

    @classmethod
    def from_hex(cls, private_hex: str) -> 'AccountKey':
        return cls(bytes.fromhex(private_hex))

    def get_public_key_hex(self) -> str:
        """Get compressed public key in hex format, used as the account identity"""
        point = self.public_key.pubkey.point

        # 02 for even y, 03 for odd y
        prefix = b'\x02' if point.y() % 2 == 0 else b'\x03'
        return (prefix + point.x().to_bytes(32, 'big')).hex()

    @property
    def identity(self) -> str:
        return self.get_public_key_hex()

    def sign_message(self, message: bytes) -> str:
        """Sign message and return signature in hex"""
        signature = self.private_key.sign(message, hashfunc=hashlib.sha256)
        return signature.hex()

    @staticmethod
    def verify_signature(message: bytes, signature_hex: str, pubkey_hex: str) -> bool:
        """Verify signature against message and a compressed or raw public key"""
        try:
            vk = VerifyingKey.from_string(bytes.fromhex(pubkey_hex), curve=SECP256k1)
            return vk.verify(bytes.fromhex(signature_hex), message, hashfunc=hashlib.sha256)
        except (BadSignatureError, MalformedPointError, ValueError):
            return False

    @staticmethod
    def generate_key_pair() -> Tuple[str, str]:
        """Generate new key pair and return (private_key_hex, public_key_hex)"""
        key = AccountKey()
        private_hex = key.private_key.to_string().hex()
        public_hex = key.get_public_key_hex()
        return private_hex, public_hex


def call_message(action: str, caller: str, **fields) -> bytes:
    """Canonical bytes a caller signs to authorize an action"""
    parts = [b"TIMELOCK_CALL_V1", action.encode(), caller.encode()]
    for name in sorted(fields):
        parts.append(f"{name}={fields[name]}".encode())
    return b"|".join(parts)
