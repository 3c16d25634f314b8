from decimal import Decimal, InvalidOperation

from core.exceptions import InvalidAmountException


def parse_units(amount: str, decimals: int) -> int:
    """
    Convert a human-readable amount into integer token units.

    Digits are shifted as integers, so no amount is ever rounded
    regardless of its length.

    Parameters
    ----------
    amount : str
        Decimal amount, e.g. ``"25000"`` or ``"0.5"``
    decimals : int
        Token decimals

    Returns
    -------
    int
        Amount in the token's smallest unit

    Raises
    ------
    InvalidAmountException
        If the amount is not a non-negative decimal or has more
        fractional digits than the token supports
    """
    if decimals < 0:
        raise InvalidAmountException(f"Invalid decimals: {decimals}")

    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation as e:
        raise InvalidAmountException(f"Invalid amount: {amount!r}") from e

    if not value.is_finite() or value < 0:
        raise InvalidAmountException(f"Invalid amount: {amount!r}")

    _, digits, exponent = value.as_tuple()
    coefficient = int("".join(str(d) for d in digits))
    shift = exponent + decimals
    if shift >= 0:
        return coefficient * 10 ** shift

    units, remainder = divmod(coefficient, 10 ** -shift)
    if remainder:
        raise InvalidAmountException(
            f"Amount {amount!r} has more than {decimals} fractional digits"
        )
    return units


def format_units(value: int, decimals: int) -> str:
    """
    Convert integer token units into a human-readable decimal string.

    Always keeps at least one fractional digit: ``25000 * 10**18`` with
    18 decimals gives ``"25000.0"``.

    Parameters
    ----------
    value : int
        Amount in the token's smallest unit
    decimals : int
        Token decimals

    Returns
    -------
    str
        Decimal representation
    """
    sign = "-" if value < 0 else ""
    whole, fraction = divmod(abs(value), 10 ** decimals)
    fraction_str = str(fraction).rjust(decimals, "0").rstrip("0") if decimals else ""
    return f"{sign}{whole}.{fraction_str or '0'}"
