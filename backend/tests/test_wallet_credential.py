import unittest

from models.wallet import SigningCredential


class SigningCredentialTest(unittest.TestCase):
    def test_unsealed_returns_private_key(self) -> None:
        credential = SigningCredential('0xdeadbeef', '0xabc')

        with credential.unsealed() as private_key:
            self.assertEqual('0xdeadbeef', private_key)

    def test_private_key_is_not_stored_in_plain_text(self) -> None:
        credential = SigningCredential('0xdeadbeef', '0xabc')

        self.assertNotIn(b'0xdeadbeef', credential._ciphertext)
        self.assertNotIn('deadbeef', repr(credential))
        self.assertNotIn('deadbeef', str(credential))
        self.assertFalse(hasattr(credential, '__dict__'))

    def test_each_credential_uses_its_own_nonce(self) -> None:
        first = SigningCredential('0xdeadbeef', '0xabc')
        second = SigningCredential('0xdeadbeef', '0xabc')

        self.assertNotEqual(first._ciphertext, second._ciphertext)

    def test_unsealed_releases_on_error(self) -> None:
        credential = SigningCredential('0xdeadbeef', '0xabc')

        with self.assertRaises(RuntimeError):
            with credential.unsealed():
                raise RuntimeError('signing failed')

        with credential.unsealed() as private_key:
            self.assertEqual('0xdeadbeef', private_key)
