from __future__ import annotations

from decimal import Decimal, DecimalException, localcontext
from typing import Any

from .errors import ConfigurationError

# Context rounding must never apply to a monetary amount
_PRECISION = 200


def parse_int(value: Any, field: str, minimum: int = 0) -> int:
    """Parse an integer given as an int, a base-10 string or a 0x hex string."""
    if isinstance(value, bool):
        raise ConfigurationError(field, "expected an integer", value)
    if isinstance(value, int):
        out = value
    elif isinstance(value, str) and value.strip():
        s = value.strip()
        try:
            out = int(s, 16) if s[:2].lower() == "0x" else int(s, 10)
        except ValueError:
            raise ConfigurationError(field, "expected an integer", value) from None
    else:
        raise ConfigurationError(field, "expected an integer", value)
    if out < minimum:
        raise ConfigurationError(field, f"must be >= {minimum}", value)
    return out


def to_units(amount: Any, decimals: int, field: str) -> int:
    """Whole-token amount (int or decimal string) -> minimal units, exactly."""
    if isinstance(amount, (bool, float)):
        raise ConfigurationError(field, "expected an integer or decimal string", amount)
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        try:
            parsed = Decimal(str(amount).strip())
        except DecimalException:
            raise ConfigurationError(
                field, "expected an integer or decimal string", amount
            ) from None
        try:
            scaled = parsed.scaleb(decimals)
        except DecimalException:
            raise ConfigurationError(field, "out of range", amount) from None
        if not scaled.is_finite() or scaled != scaled.to_integral_value():
            raise ConfigurationError(
                field, f"not representable with {decimals} decimals", amount
            )
    if scaled < 0:
        raise ConfigurationError(field, "must not be negative", amount)
    return int(scaled)


def to_tokens(raw_amount: int, decimals: int) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return Decimal(raw_amount).scaleb(-decimals)
