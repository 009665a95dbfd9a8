"""Oracle Ed25519 keypair: generation, persistence and signing.

The keypair file is JSON:
  {
    "publicKey": base64 raw 32-byte public key,
    "publicKeyHex": "0x" + hex public key,
    "publicKeyBytes": [int, ...],
    "secretKey": base64 32-byte private seed,
    "generatedAt": ISO-8601 timestamp
  }

Keep it out of version control. The same public key must be registered
with the ledger when the pool is created.
"""

from __future__ import annotations

import base64
import binascii
import json
import os
from datetime import datetime, timezone
from pathlib import Path

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from moisture.errors import KeypairError

SEED_LENGTH = 32


class OracleKeypair:
    """Holds the private key in process memory. Read-only after creation."""

    def __init__(self, private_key: Ed25519PrivateKey):
        self._private_key = private_key
        self._public_key = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )

    @classmethod
    def generate(cls) -> OracleKeypair:
        return cls(Ed25519PrivateKey.generate())

    @classmethod
    def from_seed(cls, seed: bytes) -> OracleKeypair:
        if len(seed) != SEED_LENGTH:
            raise KeypairError(f"Private seed must be {SEED_LENGTH} bytes, got {len(seed)}")
        return cls(Ed25519PrivateKey.from_private_bytes(bytes(seed)))

    # -- Public key views --

    @property
    def public_key(self) -> bytes:
        return self._public_key

    @property
    def public_key_base64(self) -> str:
        return base64.b64encode(self._public_key).decode()

    @property
    def public_key_hex(self) -> str:
        return "0x" + self._public_key.hex()

    def public_key_info(self) -> dict:
        return {
            "publicKey": self.public_key_base64,
            "publicKeyHex": self.public_key_hex,
            "publicKeyBytes": list(self._public_key),
        }

    # -- Signing --

    def sign(self, message: bytes) -> bytes:
        return self._private_key.sign(message)

    # -- Persistence --

    def _seed(self) -> bytes:
        return self._private_key.private_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PrivateFormat.Raw,
            encryption_algorithm=serialization.NoEncryption(),
        )

    def to_json(self) -> dict:
        return {
            **self.public_key_info(),
            "secretKey": base64.b64encode(self._seed()).decode(),
            "generatedAt": datetime.now(timezone.utc).isoformat(),
        }

    def save(self, path: str | Path, overwrite: bool = False) -> Path:
        """Write the keypair file with owner-only permissions."""
        path = Path(path)
        if path.exists() and not overwrite:
            raise KeypairError(f"Keypair already exists at {path}")
        path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            json.dump(self.to_json(), f, indent=2)
        return path

    @classmethod
    def load(cls, path: str | Path) -> OracleKeypair:
        """Load a keypair file, checking the stored public key matches."""
        path = Path(path)
        if not path.exists():
            raise KeypairError(f"No keypair found at {path}")
        try:
            with open(path) as f:
                data = json.load(f)
            secret = base64.b64decode(data["secretKey"], validate=True)
        except (OSError, ValueError, KeyError, TypeError, binascii.Error) as e:
            raise KeypairError(f"Failed to read keypair at {path}: {e}") from e

        # Some tools store seed || public key; the seed is the first half.
        if len(secret) == 2 * SEED_LENGTH:
            secret = secret[:SEED_LENGTH]
        keypair = cls.from_seed(secret)

        stored_public = data.get("publicKey")
        if stored_public and stored_public != keypair.public_key_base64:
            raise KeypairError(f"Public key in {path} does not match its secret key")
        return keypair


__all__ = ["SEED_LENGTH", "OracleKeypair"]
