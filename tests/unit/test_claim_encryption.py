"""Unit tests for claimant data encryption."""

import base64

import pytest

from core.config import settings
from src.transit_bc.compensation.infrastructure.services.claim_encryption import NONCE_LENGTH, ClaimEncryption

KEY = "unit-test-encryption-key-0123456789"


class TestClaimEncryption:

    def test_json_round_trip(self):
        encryption = ClaimEncryption(KEY)
        data = {"name": "Åsa Öberg", "personal_number": "19900101-0000"}

        assert encryption.decrypt_json(encryption.encrypt_json(data)) == data

    def test_token_is_nonce_and_sealed_payload(self):
        token = ClaimEncryption(KEY).encrypt("secret")

        raw = base64.b64decode(token)
        # nonce + 6 byte payload + 16 byte tag
        assert len(raw) == NONCE_LENGTH + 6 + 16

    def test_default_secret_is_the_configured_key(self):
        token = ClaimEncryption().encrypt("secret")

        assert ClaimEncryption(settings.ENCRYPTION_KEY).decrypt(token) == "secret"

    def test_nonce_is_random(self):
        encryption = ClaimEncryption(KEY)

        assert encryption.encrypt("same") != encryption.encrypt("same")

    def test_tampering_is_detected(self):
        encryption = ClaimEncryption(KEY)
        raw = bytearray(base64.b64decode(encryption.encrypt("secret")))
        raw[-1] ^= 0x01

        with pytest.raises(ValueError):
            encryption.decrypt(base64.b64encode(bytes(raw)).decode("ascii"))

    def test_other_key_cannot_decrypt(self):
        token = ClaimEncryption(KEY).encrypt("secret")

        with pytest.raises(ValueError):
            ClaimEncryption("another-encryption-key-9876543210").decrypt(token)

    def test_hash_is_stable(self):
        assert ClaimEncryption.hash("abc") == ClaimEncryption.hash("abc")
        assert len(ClaimEncryption.hash("abc")) == 64
