from __future__ import annotations

from eth_utils import keccak, remove_0x_prefix

SLOT_BYTES = 32


def pad_scalar(value: int, width_bytes: int, hex_prefixed: bool = True) -> str:
    """Big-endian hex of `value`, left-padded to `width_bytes`.

    Values wider than `width_bytes` keep their minimal width instead of being
    truncated, so a voter count of 300 encodes as 0x012c under a 1-byte width.
    """
    if value < 0:
        raise ValueError(f"cannot encode negative value {value}")
    width = max(width_bytes, (value.bit_length() + 7) // 8)
    out = value.to_bytes(width, "big").hex()
    return "0x" + out if hex_prefixed else out


def scalar_slot_key(index: int) -> str:
    """Storage key of the state variable declared at `index`."""
    return pad_scalar(index, SLOT_BYTES, True)


def derive_slot_key(base_index: int, address: str) -> str:
    """Storage key of `mapping(address => T)` entry `address`.

    The mapping is the contract state variable at `base_index`; its entry lives
    at keccak256(pad32(address) ++ pad32(base_index)).
    """
    padded_address = bytes.fromhex(remove_0x_prefix(address)).rjust(SLOT_BYTES, b"\0")
    padded_index = base_index.to_bytes(SLOT_BYTES, "big")
    return "0x" + keccak(padded_address + padded_index).hex()
