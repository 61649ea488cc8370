"""
Signed withdrawal receipts so observers can check an event came from this host
"""

import hashlib
from dataclasses import dataclass
from cryptography.exceptions import InvalidSignature as BadReceiptSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa, padding

from .events import WithdrawalEvent

_PSS = padding.PSS(
    mgf=padding.MGF1(hashes.SHA256()),
    salt_length=padding.PSS.MAX_LENGTH
)

def receipt_digest(event: WithdrawalEvent) -> bytes:
    """Digest a receipt signs over"""
    hasher = hashlib.sha256()
    hasher.update(b"TIMELOCK_RECEIPT_V1")
    hasher.update(bytes.fromhex(event.vault_id))
    hasher.update(event.amount.to_bytes(16, 'big'))
    hasher.update(event.when.to_bytes(8, 'big'))
    return hasher.digest()

@dataclass
class WithdrawalReceipt:
    event: WithdrawalEvent
    signature: bytes
    verification_key: bytes  # DER SubjectPublicKeyInfo

    def verify(self) -> bool:
        """Check the signature against the receipt's own verification key"""
        public_key = serialization.load_der_public_key(self.verification_key)
        try:
            public_key.verify(self.signature, receipt_digest(self.event), _PSS, hashes.SHA256())
        except BadReceiptSignature:
            return False
        return True

    def serialize(self) -> dict:
        return {
            'event': self.event.to_dict(),
            'signature': self.signature.hex(),
            'verification_key': self.verification_key.hex()
        }

    @classmethod
    def deserialize(cls, data: dict) -> 'WithdrawalReceipt':
        return cls(
            WithdrawalEvent(**data['event']),
            bytes.fromhex(data['signature']),
            bytes.fromhex(data['verification_key'])
        )

class ReceiptSigner:
    """Holds the host's RSA key and signs withdrawal receipts"""

    def __init__(self, private_key: rsa.RSAPrivateKey = None):
        self._private_key = private_key or rsa.generate_private_key(
            public_exponent=65537,
            key_size=2048
        )
        self.verification_key = self._private_key.public_key().public_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PublicFormat.SubjectPublicKeyInfo
        )

    def issue(self, event: WithdrawalEvent) -> WithdrawalReceipt:
        signature = self._private_key.sign(receipt_digest(event), _PSS, hashes.SHA256())
        return WithdrawalReceipt(event, signature, self.verification_key)

    def is_ours(self, receipt: WithdrawalReceipt) -> bool:
        """True if the receipt verifies and was signed with this host's key"""
        return receipt.verification_key == self.verification_key and receipt.verify()
