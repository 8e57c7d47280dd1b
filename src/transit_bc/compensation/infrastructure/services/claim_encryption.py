"""Encryption of claimant personal data at rest.

AES-256-GCM with a key derived from ENCRYPTION_KEY via scrypt. The
stored token is base64(nonce || ciphertext || tag).
"""
import base64
import hashlib
import json
import os
from functools import lru_cache
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from core.config import settings

NONCE_LENGTH = 12
ASSOCIATED_DATA = b"compensation-data"
KDF_SALT = b"pendel-compensation"


@lru_cache(maxsize=4)
def _derive_key(secret: str) -> bytes:
    kdf = Scrypt(salt=KDF_SALT, length=32, n=2 ** 14, r=8, p=1)
    return kdf.derive(secret.encode("utf-8"))


class ClaimEncryption:
    """Encrypts and decrypts claim payloads."""

    def __init__(self, secret: Optional[str] = None):
        self._aead = AESGCM(_derive_key(secret or settings.ENCRYPTION_KEY))

    def encrypt(self, plaintext: str) -> str:
        nonce = os.urandom(NONCE_LENGTH)
        sealed = self._aead.encrypt(nonce, plaintext.encode("utf-8"), ASSOCIATED_DATA)
        return base64.b64encode(nonce + sealed).decode("ascii")

    def decrypt(self, token: str) -> str:
        """Raises ValueError if the token was tampered with or the key differs."""
        raw = base64.b64decode(token)
        nonce, sealed = raw[:NONCE_LENGTH], raw[NONCE_LENGTH:]
        try:
            return self._aead.decrypt(nonce, sealed, ASSOCIATED_DATA).decode("utf-8")
        except InvalidTag as e:
            raise ValueError("Encrypted claim data could not be authenticated") from e

    def encrypt_json(self, data: dict) -> str:
        return self.encrypt(json.dumps(data, ensure_ascii=False, sort_keys=True))

    def decrypt_json(self, token: str) -> dict:
        return json.loads(self.decrypt(token))

    @staticmethod
    def hash(data: str) -> str:
        return hashlib.sha256(data.encode("utf-8")).hexdigest()
