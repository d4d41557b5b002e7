"""
ARM Wallet Ephemeral Exchange & Cipher Tests

Covers:
- Ephemeral key pair generation
- secp256k1 Diffie-Hellman agreement and point validation
- KDF binding to the ephemeral public key
- AES-256-GCM encrypt/decrypt, tampering and truncation
"""

import pytest


# ============================================================================
# Diffie-Hellman
# ============================================================================

class TestDiffieHellman:
    """Tests for arm_wallet.crypto.exchange."""

    def test_ephemeral_keys_are_fresh(self):
        from arm_wallet.crypto.exchange import generate_ephemeral_keypair
        a = generate_ephemeral_keypair()
        b = generate_ephemeral_keypair()
        assert a.private_key != b.private_key
        assert a.public_key != b.public_key
        assert len(a.public_key) == 33

    def test_shared_secret_agrees(self):
        from arm_wallet.crypto.exchange import diffie_hellman, generate_ephemeral_keypair
        a = generate_ephemeral_keypair()
        b = generate_ephemeral_keypair()
        secret_ab = diffie_hellman(a.private_key, b.public_key)
        secret_ba = diffie_hellman(b.private_key, a.public_key)
        assert secret_ab == secret_ba
        assert len(secret_ab) == 32

    def test_shared_secret_is_x_coordinate(self):
        from arm_wallet.crypto.exchange import diffie_hellman
        from arm_wallet.crypto.keys import KeyPair
        # 1·P = P, so the shared secret with scalar 1 is P's x coordinate
        one = (1).to_bytes(32, "big")
        peer = KeyPair.from_private_bytes(b"\x07" * 32)
        assert diffie_hellman(one, peer.public_key) == peer.public_key[1:]

    def test_rejects_wrong_length(self):
        from arm_wallet.crypto.exchange import diffie_hellman, generate_ephemeral_keypair
        from arm_wallet.exceptions import InvalidPublicKey
        a = generate_ephemeral_keypair()
        with pytest.raises(InvalidPublicKey):
            diffie_hellman(a.private_key, a.public_key[:32])
        with pytest.raises(InvalidPublicKey):
            diffie_hellman(a.private_key, b"\x04" + b"\x01" * 64)

    def test_rejects_bad_prefix(self):
        from arm_wallet.crypto.exchange import diffie_hellman, generate_ephemeral_keypair
        from arm_wallet.exceptions import InvalidPublicKey
        a = generate_ephemeral_keypair()
        with pytest.raises(InvalidPublicKey):
            diffie_hellman(a.private_key, b"\x05" + a.public_key[1:])

    def test_rejects_off_curve_point(self):
        from arm_wallet.crypto.exchange import diffie_hellman, generate_ephemeral_keypair
        from arm_wallet.exceptions import InvalidPublicKey
        a = generate_ephemeral_keypair()
        rejected = 0
        for x in range(1, 33):
            try:
                diffie_hellman(a.private_key, b"\x02" + x.to_bytes(32, "big"))
            except InvalidPublicKey:
                rejected += 1
        # roughly half of all x coordinates have no point on the curve
        assert rejected > 0

    def test_rejects_x_outside_field(self):
        from arm_wallet.crypto.exchange import diffie_hellman, generate_ephemeral_keypair
        from arm_wallet.exceptions import InvalidPublicKey
        a = generate_ephemeral_keypair()
        with pytest.raises(InvalidPublicKey):
            diffie_hellman(a.private_key, b"\x02" + b"\xff" * 32)

    def test_invalid_public_key_is_key_error(self):
        from arm_wallet.exceptions import InvalidKeyError, InvalidPublicKey
        assert issubclass(InvalidPublicKey, InvalidKeyError)

    def test_rejects_bad_private_scalar(self):
        from arm_wallet.crypto.exchange import diffie_hellman, generate_ephemeral_keypair
        from arm_wallet.exceptions import InvalidKeyError
        peer = generate_ephemeral_keypair()
        with pytest.raises(InvalidKeyError):
            diffie_hellman(b"\x00" * 32, peer.public_key)


class TestKDF:
    """Tests for arm_wallet.crypto.exchange.kdf."""

    def test_is_hmac_sha256(self):
        import hashlib
        import hmac
        from arm_wallet.crypto.exchange import kdf
        secret = b"\x01" * 32
        info = b"\x02" * 33
        assert kdf(secret, info) == hmac.new(secret, info, hashlib.sha256).digest()

    def test_info_separates_keys(self):
        from arm_wallet.crypto.exchange import kdf
        secret = b"\x01" * 32
        assert kdf(secret, b"\x02" * 33) != kdf(secret, b"\x03" * 33)


# ============================================================================
# Authenticated Cipher
# ============================================================================

class TestCipher:
    """Tests for arm_wallet.crypto.cipher."""

    KEY = b"\x5a" * 32

    def test_round_trip(self):
        from arm_wallet.crypto.cipher import decrypt, encrypt
        assert decrypt(self.KEY, encrypt(self.KEY, b"hello resource")) == b"hello resource"

    def test_layout(self):
        from arm_wallet.crypto.cipher import encrypt
        sealed = encrypt(self.KEY, b"abc")
        assert len(sealed) == 12 + 3 + 16

    def test_empty_plaintext(self):
        from arm_wallet.crypto.cipher import decrypt, encrypt
        sealed = encrypt(self.KEY, b"")
        assert len(sealed) == 28
        assert decrypt(self.KEY, sealed) == b""

    def test_random_nonce(self):
        from arm_wallet.crypto.cipher import encrypt
        a = encrypt(self.KEY, b"same")
        b = encrypt(self.KEY, b"same")
        assert a[:12] != b[:12]
        assert a != b

    def test_explicit_nonce(self):
        from arm_wallet.crypto.cipher import encrypt
        nonce = b"\x01" * 12
        assert encrypt(self.KEY, b"x", nonce=nonce)[:12] == nonce

    @pytest.mark.parametrize("position", [0, 12, -1])
    def test_tampering_fails(self, position):
        from arm_wallet.crypto.cipher import decrypt, encrypt
        from arm_wallet.exceptions import AuthenticationFailure
        sealed = bytearray(encrypt(self.KEY, b"confidential"))
        sealed[position] ^= 0x01
        with pytest.raises(AuthenticationFailure):
            decrypt(self.KEY, bytes(sealed))

    def test_wrong_key_fails(self):
        from arm_wallet.crypto.cipher import decrypt, encrypt
        from arm_wallet.exceptions import AuthenticationFailure
        sealed = encrypt(self.KEY, b"confidential")
        with pytest.raises(AuthenticationFailure):
            decrypt(b"\x5b" * 32, sealed)

    def test_too_short(self):
        from arm_wallet.crypto.cipher import decrypt
        from arm_wallet.exceptions import MalformedEncoding
        with pytest.raises(MalformedEncoding):
            decrypt(self.KEY, b"\x00" * 27)

    def test_wrong_key_length(self):
        from arm_wallet.crypto.cipher import encrypt
        with pytest.raises(ValueError):
            encrypt(b"\x00" * 16, b"x")

    def test_envelope(self):
        from arm_wallet.crypto.cipher import EncryptedEnvelope, encrypt
        sealed = encrypt(self.KEY, b"payload")
        envelope = EncryptedEnvelope.from_bytes(sealed, b"\x02" * 33)
        assert len(envelope.nonce) == 12
        assert len(envelope.tag) == 16
        assert envelope.to_bytes() == sealed
        assert envelope.open(self.KEY) == b"payload"
