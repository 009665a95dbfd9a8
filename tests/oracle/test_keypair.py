"""Tests for the oracle keypair file and signing."""

import base64
import json
import os
import stat

import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from moisture.errors import KeypairError
from moisture.oracle.keypair import OracleKeypair


class TestOracleKeypair:

    def test_sign_verifies_with_public_key(self):
        keypair = OracleKeypair.generate()
        sig = keypair.sign(b"hello")
        assert len(sig) == 64
        Ed25519PublicKey.from_public_bytes(keypair.public_key).verify(sig, b"hello")

    def test_public_key_views(self):
        keypair = OracleKeypair.from_seed(b"\x07" * 32)
        info = keypair.public_key_info()
        assert len(keypair.public_key) == 32
        assert base64.b64decode(info["publicKey"]) == keypair.public_key
        assert info["publicKeyHex"] == "0x" + keypair.public_key.hex()
        assert bytes(info["publicKeyBytes"]) == keypair.public_key

    def test_seed_is_deterministic(self):
        a = OracleKeypair.from_seed(b"\x01" * 32)
        b = OracleKeypair.from_seed(b"\x01" * 32)
        assert a.public_key == b.public_key
        assert a.sign(b"m") == b.sign(b"m")

    def test_bad_seed_length(self):
        with pytest.raises(KeypairError):
            OracleKeypair.from_seed(b"\x01" * 31)


class TestPersistence:

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "keys" / ".keypair.json"
        keypair = OracleKeypair.generate()
        keypair.save(path)
        loaded = OracleKeypair.load(path)
        assert loaded.public_key == keypair.public_key
        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600

        data = json.loads(path.read_text())
        assert set(data) == {"publicKey", "publicKeyHex", "publicKeyBytes", "secretKey", "generatedAt"}

    def test_refuses_overwrite(self, tmp_path):
        path = tmp_path / ".keypair.json"
        OracleKeypair.generate().save(path)
        with pytest.raises(KeypairError):
            OracleKeypair.generate().save(path)
        OracleKeypair.generate().save(path, overwrite=True)

    def test_missing_file(self, tmp_path):
        with pytest.raises(KeypairError):
            OracleKeypair.load(tmp_path / "nope.json")

    def test_malformed_file(self, tmp_path):
        path = tmp_path / ".keypair.json"
        path.write_text("{not json")
        with pytest.raises(KeypairError):
            OracleKeypair.load(path)
        path.write_text(json.dumps({"publicKey": "abc"}))
        with pytest.raises(KeypairError):
            OracleKeypair.load(path)

    def test_mismatched_public_key(self, tmp_path):
        path = tmp_path / ".keypair.json"
        data = OracleKeypair.generate().to_json()
        data["publicKey"] = OracleKeypair.generate().public_key_base64
        path.write_text(json.dumps(data))
        with pytest.raises(KeypairError):
            OracleKeypair.load(path)

    def test_accepts_seed_with_public_suffix(self, tmp_path):
        keypair = OracleKeypair.from_seed(b"\x09" * 32)
        path = tmp_path / ".keypair.json"
        secret = b"\x09" * 32 + keypair.public_key
        path.write_text(json.dumps({"secretKey": base64.b64encode(secret).decode()}))
        assert OracleKeypair.load(path).public_key == keypair.public_key
