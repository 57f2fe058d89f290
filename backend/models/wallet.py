import secrets
from contextlib import contextmanager
from typing import Iterator

from cryptography.hazmat.primitives.ciphers.aead import AESGCM

# Per-process sealing key; sealed credentials do not survive a restart.
_SEALING_KEY = AESGCM.generate_key(bit_length=256)


class SigningCredential:
    """
    Private key of a connected wallet, sealed with AES-GCM while it sits in a session.

    The plaintext is only available inside ``unsealed()``.
    """

    __slots__ = ('account_address', '_nonce', '_ciphertext')

    def __init__(self, private_key: str, account_address: str):
        self.account_address = account_address
        self._nonce = secrets.token_bytes(12)
        self._ciphertext = AESGCM(_SEALING_KEY).encrypt(
            self._nonce,
            private_key.encode('utf-8'),
            account_address.encode('utf-8'),
        )

    @contextmanager
    def unsealed(self) -> Iterator[str]:
        private_key = AESGCM(_SEALING_KEY).decrypt(
            self._nonce,
            self._ciphertext,
            self.account_address.encode('utf-8'),
        ).decode('utf-8')
        try:
            yield private_key
        finally:
            del private_key

    def __repr__(self) -> str:
        return f"SigningCredential(account_address={self.account_address!r}, private_key=<sealed>)"

    __str__ = __repr__
