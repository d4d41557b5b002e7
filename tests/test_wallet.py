"""
ARM Wallet Vault, Signer and Key Source Tests

Covers:
- MemoryVault and KeystoreVault (PBKDF2 + Fernet keystore)
- LocalKeySigner and VaultKeySigner
- StoredSeedSource and DerivedSignatureSource
- Non-deterministic signer boundary of the derived-signature strategy
"""

import json
import os
import secrets

import pytest


SEED = bytes(range(32))
PASSWORD = "correct horse battery"


def password_provider(password):
    async def provide(prompt):
        return password
    return provide


# ============================================================================
# Credential Vaults
# ============================================================================

class TestMemoryVault:
    """Tests for arm_wallet.wallet.vault.MemoryVault."""

    @pytest.mark.asyncio
    async def test_releases_seed(self):
        from arm_wallet.wallet import MemoryVault
        vault = MemoryVault(SEED)
        assert vault.has_credentials()
        assert await vault.get_seed(b"\x00" * 32) == SEED

    @pytest.mark.asyncio
    async def test_empty_vault(self):
        from arm_wallet.exceptions import VaultAuthenticationError
        from arm_wallet.wallet import MemoryVault
        vault = MemoryVault()
        assert not vault.has_credentials()
        with pytest.raises(VaultAuthenticationError):
            await vault.get_seed(b"\x00" * 32)

    @pytest.mark.asyncio
    async def test_store_seed(self):
        from arm_wallet.wallet import MemoryVault
        vault = MemoryVault()
        await vault.store_seed(SEED)
        assert await vault.get_seed(b"\x00" * 32) == SEED

    @pytest.mark.asyncio
    async def test_store_rejects_bad_seed(self):
        from arm_wallet.exceptions import InvalidSeedLength
        from arm_wallet.wallet import MemoryVault
        with pytest.raises(InvalidSeedLength):
            await MemoryVault().store_seed(b"\x00" * 16)

    @pytest.mark.asyncio
    async def test_approval_hook(self):
        from arm_wallet.exceptions import VaultAuthenticationError
        from arm_wallet.wallet import MemoryVault
        seen = []

        async def deny(challenge):
            seen.append(challenge)
            return False

        vault = MemoryVault(SEED, approve=deny)
        with pytest.raises(VaultAuthenticationError):
            await vault.get_seed(b"\x42" * 32)
        assert seen == [b"\x42" * 32]


class TestKeystoreVault:
    """Tests for arm_wallet.wallet.vault.KeystoreVault."""

    @pytest.mark.asyncio
    async def test_round_trip(self, tmp_path):
        from arm_wallet.wallet import KeystoreVault
        path = tmp_path / "keystore.json"
        vault = KeystoreVault(path, password_provider(PASSWORD), iterations=1000)
        assert not vault.has_credentials()
        await vault.store_seed(SEED)
        assert vault.has_credentials()
        assert await vault.get_seed(secrets.token_bytes(32)) == SEED

    @pytest.mark.asyncio
    async def test_file_contents(self, tmp_path):
        from arm_wallet.wallet import KeystoreVault
        path = tmp_path / "keystore.json"
        await KeystoreVault(path, password_provider(PASSWORD), iterations=1000).store_seed(SEED)
        text = path.read_text()
        assert SEED.hex() not in text
        data = json.loads(text)
        assert data["version"] == 1
        assert data["crypto"]["kdf"] == "pbkdf2-sha256"
        assert data["crypto"]["cipher"] == "fernet"
        assert data["crypto"]["iterations"] == 1000
        if os.name == "posix":
            assert (path.stat().st_mode & 0o777) == 0o600

    @pytest.mark.asyncio
    async def test_wrong_password(self, tmp_path):
        from arm_wallet.exceptions import VaultAuthenticationError
        from arm_wallet.wallet import KeystoreVault
        path = tmp_path / "keystore.json"
        await KeystoreVault(path, password_provider(PASSWORD), iterations=1000).store_seed(SEED)
        vault = KeystoreVault(path, password_provider("wrong password"))
        with pytest.raises(VaultAuthenticationError):
            await vault.get_seed(b"\x00" * 32)

    @pytest.mark.asyncio
    async def test_dismissed_prompt(self, tmp_path):
        from arm_wallet.exceptions import UserCancelled
        from arm_wallet.wallet import KeystoreVault
        path = tmp_path / "keystore.json"
        await KeystoreVault(path, password_provider(PASSWORD), iterations=1000).store_seed(SEED)
        vault = KeystoreVault(path, password_provider(None))
        with pytest.raises(UserCancelled):
            await vault.get_seed(b"\x00" * 32)

    @pytest.mark.asyncio
    async def test_missing_keystore(self, tmp_path):
        from arm_wallet.exceptions import VaultAuthenticationError
        from arm_wallet.wallet import KeystoreVault
        vault = KeystoreVault(tmp_path / "missing.json", password_provider(PASSWORD))
        with pytest.raises(VaultAuthenticationError):
            await vault.get_seed(b"\x00" * 32)

    @pytest.mark.asyncio
    async def test_corrupt_keystore(self, tmp_path):
        from arm_wallet.exceptions import VaultAuthenticationError
        from arm_wallet.wallet import KeystoreVault
        path = tmp_path / "keystore.json"
        path.write_text("{broken")
        with pytest.raises(VaultAuthenticationError):
            await KeystoreVault(path, password_provider(PASSWORD)).get_seed(b"\x00" * 32)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("crypto", [[], "fernet", None, 7])
    async def test_crypto_section_not_an_object(self, tmp_path, crypto):
        from arm_wallet.exceptions import VaultAuthenticationError
        from arm_wallet.wallet import KeystoreVault
        path = tmp_path / "keystore.json"
        path.write_text(json.dumps({"version": 1, "crypto": crypto}))
        with pytest.raises(VaultAuthenticationError):
            await KeystoreVault(path, password_provider(PASSWORD)).get_seed(b"\x00" * 32)

    def test_decrypt_seed_rejects_non_object(self):
        from arm_wallet.exceptions import VaultAuthenticationError
        from arm_wallet.wallet.vault import decrypt_seed
        with pytest.raises(VaultAuthenticationError):
            decrypt_seed([], PASSWORD)

    @pytest.mark.asyncio
    @pytest.mark.skipif(os.name != "posix", reason="POSIX file modes")
    async def test_stale_temp_file_is_replaced(self, tmp_path):
        from arm_wallet.wallet import KeystoreVault
        path = tmp_path / "keystore.json"
        stale = tmp_path / "keystore.json.tmp"
        stale.write_text("leftover")
        os.chmod(stale, 0o644)

        vault = KeystoreVault(path, password_provider(PASSWORD), iterations=1000)
        await vault.store_seed(SEED)
        assert not stale.exists()
        assert (path.stat().st_mode & 0o777) == 0o600
        assert await vault.get_seed(b"\x00" * 32) == SEED


# ============================================================================
# Signer Adapters
# ============================================================================

class TestLocalKeySigner:
    """Tests for arm_wallet.wallet.signers.LocalKeySigner."""

    @pytest.mark.asyncio
    async def test_requires_connect(self):
        from arm_wallet.exceptions import SignerError
        from arm_wallet.wallet import LocalKeySigner
        signer = LocalKeySigner(b"\x11" * 32)
        assert not await signer.is_connected()
        with pytest.raises(SignerError):
            await signer.sign_message("hello")

    @pytest.mark.asyncio
    async def test_deterministic(self):
        from arm_wallet.wallet import LocalKeySigner
        signer = LocalKeySigner(b"\x11" * 32)
        await signer.connect()
        first = await signer.sign_message("ANOMA::DERIVE_NULLIFIER_KEY_V1")
        second = await signer.sign_message("ANOMA::DERIVE_NULLIFIER_KEY_V1")
        assert first == second
        assert first.startswith("0x")
        assert len(bytes.fromhex(first[2:])) == 65

    @pytest.mark.asyncio
    async def test_personal_sign_recovers_address(self):
        from arm_wallet.crypto.signing import recover_message_signer
        from arm_wallet.wallet import LocalKeySigner
        signer = LocalKeySigner(b"\x11" * 32)
        await signer.connect()
        signature = bytes.fromhex((await signer.sign_message("hello"))[2:])
        recovered = recover_message_signer("hello", signature)
        assert recovered.to_address() == await signer.get_address()

    def test_kind(self):
        from arm_wallet.wallet import LocalKeySigner, SignerKind
        assert LocalKeySigner().kind is SignerKind.LOCAL_KEY


class TestVaultKeySigner:
    """Tests for arm_wallet.wallet.signers.VaultKeySigner."""

    @pytest.mark.asyncio
    async def test_signs_with_identity_key(self):
        from arm_wallet.crypto.keys import PublicKey, Signature
        from arm_wallet.crypto.signing import verify_digest
        from arm_wallet.hierarchy import derive_static_keys
        from arm_wallet.wallet import MemoryVault, VaultKeySigner
        signer = VaultKeySigner(MemoryVault(SEED))
        await signer.connect()

        identity = PublicKey(derive_static_keys(SEED).identity.public_key)
        signature = Signature.from_bytes(bytes.fromhex((await signer.sign_message("hi"))[2:]))
        assert verify_digest(identity, b"hi", signature)
        assert await signer.get_address() == identity.to_address()

    @pytest.mark.asyncio
    async def test_availability_follows_vault(self):
        from arm_wallet.wallet import MemoryVault, VaultKeySigner, available_signers, LocalKeySigner
        empty = VaultKeySigner(MemoryVault())
        full = VaultKeySigner(MemoryVault(SEED))
        local = LocalKeySigner()
        assert await available_signers([empty, full, local]) == [full, local]

    @pytest.mark.asyncio
    async def test_disconnect(self):
        from arm_wallet.exceptions import SignerError
        from arm_wallet.wallet import MemoryVault, VaultKeySigner
        signer = VaultKeySigner(MemoryVault(SEED))
        await signer.connect()
        signer.disconnect()
        with pytest.raises(SignerError):
            await signer.sign_message("hi")


# ============================================================================
# Key Sources
# ============================================================================

class TestStoredSeedSource:
    """Tests for arm_wallet.wallet.sources.StoredSeedSource."""

    @pytest.mark.asyncio
    async def test_load_matches_hierarchy(self):
        from arm_wallet.hierarchy import derive_static_keys
        from arm_wallet.wallet import MemoryVault, StoredSeedSource
        assert await StoredSeedSource(MemoryVault(SEED)).load() == derive_static_keys(SEED)

    @pytest.mark.asyncio
    async def test_fresh_challenge_per_load(self):
        from arm_wallet.wallet import MemoryVault, StoredSeedSource
        challenges = []

        async def approve(challenge):
            challenges.append(challenge)
            return True

        source = StoredSeedSource(MemoryVault(SEED, approve=approve))
        await source.load()
        await source.load()
        assert len(challenges) == 2
        assert all(len(c) == 32 for c in challenges)
        assert challenges[0] != challenges[1]

    @pytest.mark.asyncio
    async def test_create_account(self):
        from arm_wallet.wallet import MemoryVault, StoredSeedSource
        vault = MemoryVault()
        source = StoredSeedSource(vault)
        created = await source.create_account()
        assert vault.has_credentials()
        assert await source.load() == created

    @pytest.mark.asyncio
    async def test_vault_failure_propagates(self):
        from arm_wallet.exceptions import VaultAuthenticationError
        from arm_wallet.wallet import MemoryVault, StoredSeedSource
        with pytest.raises(VaultAuthenticationError):
            await StoredSeedSource(MemoryVault()).load()


class TestDerivedSignatureSource:
    """Tests for arm_wallet.wallet.sources.DerivedSignatureSource."""

    @pytest.mark.asyncio
    async def test_deterministic_signer_reproduces_keys(self):
        from arm_wallet.wallet import DerivedSignatureSource, LocalKeySigner
        signer = LocalKeySigner(b"\x22" * 32)
        first = await DerivedSignatureSource(signer).load()
        second = await DerivedSignatureSource(signer).load()
        assert first == second

    @pytest.mark.asyncio
    async def test_connects_signer(self):
        from arm_wallet.wallet import DerivedSignatureSource, LocalKeySigner
        signer = LocalKeySigner(b"\x22" * 32)
        await DerivedSignatureSource(signer).load()
        assert await signer.is_connected()

    @pytest.mark.asyncio
    async def test_materials_are_signature_hashes(self):
        from arm_wallet.hierarchy import commit_nullifier_key
        from arm_wallet.wallet import DerivedSignatureSource, LocalKeySigner, signature_to_scalar
        signer = LocalKeySigner(b"\x22" * 32)
        keys = await DerivedSignatureSource(signer).load()

        nk = signature_to_scalar(await signer.sign_message("ANOMA::DERIVE_NULLIFIER_KEY_V1"))
        identity = signature_to_scalar(await signer.sign_message("ANOMA::VERIFY_IDENTITY_KEY_V1"))
        encryption = signature_to_scalar(
            await signer.sign_message("ANOMA::DERIVE_STATIC_ENCRYPTION_KEY_V1")
        )
        discovery = signature_to_scalar(
            await signer.sign_message("ANOMA::DERIVE_STATIC_DISCOVERY_KEY_V1")
        )
        assert keys.nullifier.nk == nk
        assert keys.nullifier.cnk == commit_nullifier_key(nk)
        assert keys.identity.private_key == identity
        assert keys.static_encryption.private_key == encryption
        assert keys.static_discovery.private_key == discovery

    @pytest.mark.asyncio
    async def test_user_key_verifies(self):
        from arm_wallet.user_key import create_user_key, verify_user_key
        from arm_wallet.wallet import DerivedSignatureSource, LocalKeySigner
        keys = await DerivedSignatureSource(LocalKeySigner(b"\x22" * 32)).load()
        assert verify_user_key(create_user_key(keys))

    @pytest.mark.asyncio
    async def test_non_deterministic_signer_is_not_reproducible(self):
        from arm_wallet.wallet import DerivedSignatureSource, LocalKeySigner

        class SaltedSigner(LocalKeySigner):
            async def sign_message(self, message):
                signature = await super().sign_message(message)
                return signature + secrets.token_hex(4)

        signer = SaltedSigner(b"\x22" * 32)
        first = await DerivedSignatureSource(signer).load()
        second = await DerivedSignatureSource(signer).load()
        assert first.identity.public_key != second.identity.public_key
        assert first.nullifier.cnk != second.nullifier.cnk

    @pytest.mark.asyncio
    async def test_signer_rejection_propagates(self):
        from arm_wallet.exceptions import UserCancelled
        from arm_wallet.wallet import DerivedSignatureSource, LocalKeySigner

        class RejectingSigner(LocalKeySigner):
            async def sign_message(self, message):
                raise UserCancelled("rejected in wallet")

        with pytest.raises(UserCancelled):
            await DerivedSignatureSource(RejectingSigner()).load()


class TestSignatureToScalar:
    """Tests for arm_wallet.wallet.sources.signature_to_scalar."""

    def test_hex_prefix_optional(self):
        from arm_wallet.wallet import signature_to_scalar
        assert signature_to_scalar("0xabcd") == signature_to_scalar("abcd")
        assert signature_to_scalar("abcd") == signature_to_scalar(b"\xab\xcd")

    def test_is_sha256(self):
        import hashlib
        from arm_wallet.wallet import signature_to_scalar
        assert signature_to_scalar(b"\x01\x02") == hashlib.sha256(b"\x01\x02").digest()

    @pytest.mark.parametrize("signature", ["", "0x", "0xnothex", b""])
    def test_rejects_bad_signatures(self, signature):
        from arm_wallet.exceptions import SignerError
        from arm_wallet.wallet import signature_to_scalar
        with pytest.raises(SignerError):
            signature_to_scalar(signature)
