"""Exact decimal <-> base unit conversion for token and native amounts."""

import re

from .constants import MAX_BPS, TOKEN_DECIMALS
from .exceptions import InvalidAmountError

_AMOUNT_RE = re.compile(r"^([+-]?)(\d*)(?:\.(\d*))?$")


def to_base_units(amount: str, decimals: int = TOKEN_DECIMALS) -> int:
    """
    Parse a human-entered decimal amount into integer base units.

    Args:
        amount: Decimal string such as "1000000", "0.25" or "-1.5"
        decimals: Number of fractional digits of the unit

    Returns:
        Amount scaled by 10**decimals

    Raises:
        InvalidAmountError: If the string is not a decimal number or has more
                            fractional digits than `decimals`
    """
    text = str(amount).strip().replace("_", "")
    match = _AMOUNT_RE.match(text)
    if match is None or not (match.group(2) or match.group(3)):
        raise InvalidAmountError(f"Invalid amount: {amount!r}")

    sign, whole, fraction = match.group(1), match.group(2) or "0", match.group(3) or ""

    # Trailing zeros beyond the unit precision carry no value
    fraction = fraction.rstrip("0") if len(fraction) > decimals else fraction
    if len(fraction) > decimals:
        raise InvalidAmountError(
            f"Amount {amount!r} has more than {decimals} fractional digits"
        )

    value = int(whole) * 10**decimals + int(fraction.ljust(decimals, "0") or "0")
    return -value if sign == "-" else value


def from_base_units(value: int, decimals: int = TOKEN_DECIMALS) -> str:
    """
    Format integer base units as a decimal string.

    Always keeps at least one fractional digit ("1.0") and strips the rest of
    the trailing zeros ("0.25").
    """
    value = int(value)
    sign = "-" if value < 0 else ""
    whole, fraction = divmod(abs(value), 10**decimals)
    fraction_text = str(fraction).rjust(decimals, "0").rstrip("0") or "0"
    return f"{sign}{whole}.{fraction_text}"


def parse_amount(amount: str, decimals: int = TOKEN_DECIMALS) -> int:
    """
    Parse an amount that is sent on-chain as an unsigned integer.

    Raises:
        InvalidAmountError: If the amount is malformed or negative
    """
    value = to_base_units(amount, decimals)
    if value < 0:
        raise InvalidAmountError(f"Amount must not be negative: {amount!r}")
    return value


def parse_bps(bps: int) -> int:
    """
    Validate a basis-point rate (100 = 1%).

    Raises:
        InvalidAmountError: If the rate is not an integer from 0 to 10000
    """
    try:
        value = int(bps)
    except (TypeError, ValueError) as e:
        raise InvalidAmountError(f"Invalid basis points: {bps!r}") from e
    if not 0 <= value <= MAX_BPS:
        raise InvalidAmountError(f"Basis points must be between 0 and {MAX_BPS}: {bps!r}")
    return value
