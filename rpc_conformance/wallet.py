"""
Key wallets for test accounts.

Wallets are secp256k1 key pairs stored in standard v3 keystore files.
Addresses follow the node's EOA format: ``hx`` followed by the last 20
bytes of the SHA3-256 digest of the uncompressed public key.
"""
import base64
import hashlib
import json
import logging
from pathlib import Path
from typing import Union

from eth_account import Account
from eth_keys import keys

logger = logging.getLogger(__name__)


class KeyWallet:
    """A private key with the node's address derivation and signing scheme."""

    def __init__(self, private_key: bytes):
        if len(private_key) != 32:
            raise ValueError(f"Private key must be 32 bytes, got {len(private_key)}")
        self._key = keys.PrivateKey(private_key)

    @classmethod
    def create(cls) -> "KeyWallet":
        """Generate a fresh random wallet."""
        account = Account.create()
        return cls(bytes(account.key))

    @classmethod
    def load(cls, path: Union[str, Path], password: str) -> "KeyWallet":
        """
        Load a wallet from an encrypted keystore file.

        Args:
            path: Keystore file path
            password: Keystore password

        Returns:
            The decrypted wallet

        Raises:
            OSError: If the file cannot be read
            ValueError: If the file is not a keystore or the password is wrong
        """
        with open(path, "r") as f:
            try:
                keyfile = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid keystore file {path}: {e}") from e
        private_key = Account.decrypt(keyfile, password or "")
        wallet = cls(bytes(private_key))
        logger.debug(f"Loaded wallet {wallet.address} from {path}")
        return wallet

    @property
    def address(self) -> str:
        """EOA address of this wallet (``hx...``)."""
        public_key = self._key.public_key.to_bytes()
        return "hx" + hashlib.sha3_256(public_key).digest()[-20:].hex()

    def sign(self, msg_hash: bytes) -> str:
        """
        Sign a 32-byte message hash.

        Returns:
            Base64 encoded recoverable signature (r || s || v)
        """
        if len(msg_hash) != 32:
            raise ValueError(f"Message hash must be 32 bytes, got {len(msg_hash)}")
        signature = self._key.sign_msg_hash(msg_hash)
        return base64.b64encode(signature.to_bytes()).decode("ascii")

    def __repr__(self) -> str:
        return f"KeyWallet({self.address})"
