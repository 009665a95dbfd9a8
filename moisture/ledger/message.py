"""Canonical score message shared by the oracle signer and the ledger verifier.

Layout (48 bytes, fixed):
  bytes  0-31  player address
  bytes 32-39  round id, unsigned little-endian
  bytes 40-47  survival time in ms, unsigned little-endian

Both deployments import this module; any change here is a wire break.
"""

from __future__ import annotations

import re
import struct

from moisture.errors import ValidationError

ADDRESS_BYTES = 32
MESSAGE_LENGTH = 48
U64_MAX = 2**64 - 1

_ADDRESS_RE = re.compile(r"0x[0-9a-fA-F]{1,64}")
_U64_PAIR = struct.Struct("<QQ")


def is_valid_address(address: object) -> bool:
    """True for a ``0x``-prefixed hex string of at most 32 bytes."""
    return isinstance(address, str) and bool(_ADDRESS_RE.fullmatch(address))


def normalize_address(address: str) -> str:
    """Return the canonical form: ``0x`` + 64 lowercase hex digits.

    Short addresses are left-padded with zeros, the same way the game
    client and the ledger treat them.
    """
    if not is_valid_address(address):
        raise ValidationError(f"Invalid player address: {address!r}")
    return "0x" + address[2:].lower().rjust(ADDRESS_BYTES * 2, "0")


def address_bytes(address: str) -> bytes:
    """Decode an address into its 32 raw bytes."""
    return bytes.fromhex(normalize_address(address)[2:])


def _check_u64(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer")
    if value < 0 or value > U64_MAX:
        raise ValidationError(f"{name} out of u64 range: {value}")


def encode_score_message(player: str, round_id: int, survival_time: int) -> bytes:
    """Build the 48-byte message the oracle signs and the ledger verifies."""
    _check_u64("round_id", round_id)
    _check_u64("survival_time", survival_time)
    return address_bytes(player) + _U64_PAIR.pack(round_id, survival_time)


def decode_score_message(message: bytes) -> tuple[str, int, int]:
    """Split a canonical message back into (player, round_id, survival_time)."""
    if len(message) != MESSAGE_LENGTH:
        raise ValidationError(
            f"Canonical message must be {MESSAGE_LENGTH} bytes, got {len(message)}"
        )
    player = "0x" + message[:ADDRESS_BYTES].hex()
    round_id, survival_time = _U64_PAIR.unpack(message[ADDRESS_BYTES:])
    return player, round_id, survival_time


__all__ = [
    "ADDRESS_BYTES",
    "MESSAGE_LENGTH",
    "U64_MAX",
    "address_bytes",
    "decode_score_message",
    "encode_score_message",
    "is_valid_address",
    "normalize_address",
]
