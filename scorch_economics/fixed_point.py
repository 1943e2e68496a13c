from decimal import Decimal, InvalidOperation, localcontext

from .errors import ArithmeticFault, InvalidAmount
from .params import DECIMALS, UINT256_MAX, WAD


def _operand(value, name: str = "operand") -> int:
    # bool is an int subclass; a flag is never a quantity
    if isinstance(value, bool) or not isinstance(value, int):
        raise ArithmeticFault(f"{name} must be an integer, got {value!r}")
    if value < 0 or value > UINT256_MAX:
        raise ArithmeticFault(f"{name} {value} is outside the unsigned 256-bit range")
    return value


def _result(value: int, op: str) -> int:
    if value < 0:
        raise ArithmeticFault(f"Arithmetic underflow in {op}")
    if value > UINT256_MAX:
        raise ArithmeticFault(f"Arithmetic overflow in {op}")
    return value


def checked_add(a: int, b: int) -> int:
    return _result(_operand(a) + _operand(b), "add")


def checked_sub(a: int, b: int) -> int:
    return _result(_operand(a) - _operand(b), "sub")


def checked_mul(a: int, b: int) -> int:
    return _result(_operand(a) * _operand(b), "mul")


def checked_div(a: int, b: int) -> int:
    """Floor division; rounds toward zero for unsigned operands."""
    if _operand(b) == 0:
        raise ArithmeticFault("Division by zero")
    return _result(_operand(a) // b, "div")


def mul_div(a: int, b: int, d: int) -> int:
    """
    floor(a * b / d) with a full-width intermediate.

    Only the final quotient has to fit in 256 bits, so large balances
    can be scaled by time or price fractions without a spurious overflow.
    """
    if _operand(d) == 0:
        raise ArithmeticFault("Division by zero")
    return _result(_operand(a) * _operand(b) // d, "mul_div")


def require_uint(value, name: str = "amount") -> int:
    """Validate a caller-supplied quantity argument."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAmount(f"{name} must be an integer number of base units, got {value!r}")
    if value < 0:
        raise InvalidAmount(f"{name} cannot be negative")
    if value > UINT256_MAX:
        raise ArithmeticFault(f"{name} exceeds the unsigned 256-bit range")
    return value


def to_base_units(amount) -> int:
    """
    Convert a human token quantity ("1.5", 2, Decimal("0.01")) to base units.

    Floats are rejected: their binary representation cannot carry 18
    exact decimal places.
    """
    if isinstance(amount, float):
        raise InvalidAmount("Token amounts must be given as str, int or Decimal, not float")
    try:
        value = Decimal(str(amount))
    except InvalidOperation:
        raise InvalidAmount(f"Not a decimal token amount: {amount!r}")

    if not value.is_finite():
        raise InvalidAmount(f"Not a finite token amount: {amount!r}")

    with localcontext() as ctx:
        ctx.prec = 100
        scaled = value * WAD
    if scaled != scaled.to_integral_value():
        raise InvalidAmount(f"{amount} has more than {DECIMALS} decimal places")
    return require_uint(int(scaled))


def from_base_units(amount: int) -> Decimal:
    """Base units back to a whole-token Decimal (exact)."""
    with localcontext() as ctx:
        ctx.prec = 100
        return Decimal(_operand(amount, "amount")) / WAD


def format_units(amount: int, places: int = 4) -> str:
    value = from_base_units(amount)
    return f"{value:,.{places}f}"
