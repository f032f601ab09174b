from __future__ import annotations

from typing import Any, Iterable, Tuple

from eth_utils import is_hex_address, remove_0x_prefix

from .errors import AddressFormatError


def normalize_address(value: Any, field: str) -> str:
    """Return `value` as a lowercase, 0x-prefixed 20-byte hex address."""
    if not isinstance(value, str) or not is_hex_address(value.strip()):
        raise AddressFormatError(field, "expected a 20-byte hex address", value)
    return "0x" + remove_0x_prefix(value.strip()).lower()


def normalize_addresses(values: Any, field: str) -> Tuple[str, ...]:
    """Normalize a list of addresses, dropping duplicates but keeping order."""
    if values is None:
        return ()
    if not isinstance(values, (list, tuple)):
        raise AddressFormatError(field, "expected a list of addresses", values)
    return unique(normalize_address(v, f"{field}[{i}]") for i, v in enumerate(values))


def unique(addresses: Iterable[str]) -> Tuple[str, ...]:
    # Deterministic ordering (first appearance wins)
    return tuple(dict.fromkeys(addresses))
