"""
Currency Descriptors and Formatting

Describes how amounts in a currency are rounded and displayed, and formats
numeric values as human-readable strings. Nothing in this module depends on
record types, so it can also be called directly.
NEVER uses float for monetary values.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, getcontext, localcontext
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional
from enum import Enum

from .config import get_config

# Set global decimal context for financial precision
getcontext().prec = 28


class SymbolPosition(Enum):
    """Where the currency symbol goes relative to the number"""
    PREFIX = "prefix"
    SUFFIX = "suffix"


class NegativeFormat(Enum):
    """How negative values are displayed"""
    MINUS = "minus"          # U+2212 MINUS SIGN
    HYPHEN = "hyphen"        # ASCII hyphen-minus
    BRACKETS = "brackets"    # accounting style (1,234.50 €)


MINUS_SIGN = "−"


@dataclass(frozen=True)
class CurrencyDescriptor:
    """
    Immutable description of a currency.
    ``digits`` is derived from the rounding unit: -floor(log10(unit)), at least 0.
    """
    code: str
    symbol: str
    rounding_unit: Decimal = Decimal('0.01')
    symbol_position: SymbolPosition = SymbolPosition.SUFFIX
    use_space: bool = True
    digits: int = field(init=False)

    def __post_init__(self):
        if not isinstance(self.rounding_unit, Decimal):
            object.__setattr__(self, 'rounding_unit', Decimal(str(self.rounding_unit)))
        if self.rounding_unit <= 0:
            raise ValueError(f"Rounding unit must be positive, got {self.rounding_unit}")
        # adjusted() is the exponent of the most significant digit, i.e. floor(log10)
        object.__setattr__(self, 'digits', max(0, -self.rounding_unit.adjusted()))

    @property
    def is_suffix(self) -> bool:
        return self.symbol_position == SymbolPosition.SUFFIX


CURRENCIES: Dict[str, CurrencyDescriptor] = {
    "EUR": CurrencyDescriptor("EUR", "€", Decimal('0.01'), SymbolPosition.SUFFIX, True),
    "USD": CurrencyDescriptor("USD", "$", Decimal('0.01'), SymbolPosition.PREFIX, False),
    "GBP": CurrencyDescriptor("GBP", "£", Decimal('0.01'), SymbolPosition.PREFIX, False),
    "CHF": CurrencyDescriptor("CHF", "CHF", Decimal('0.05'), SymbolPosition.PREFIX, True),
    "JPY": CurrencyDescriptor("JPY", "¥", Decimal('1'), SymbolPosition.PREFIX, False),
}


def default_currency() -> CurrencyDescriptor:
    """The configured fallback descriptor (EUR, "€", 0.01, suffix, spaced by default)"""
    settings = get_config()
    return CurrencyDescriptor(
        code=settings.default_currency_code,
        symbol=settings.default_currency_symbol,
        rounding_unit=Decimal(settings.default_rounding_unit),
        symbol_position=SymbolPosition.SUFFIX if settings.default_symbol_suffix else SymbolPosition.PREFIX,
        use_space=settings.default_symbol_space,
    )


def currency_info(code: Optional[str] = None) -> CurrencyDescriptor:
    """Descriptor for an ISO 4217 code; unknown or missing codes get the default"""
    if code:
        descriptor = CURRENCIES.get(str(code).upper())
        if descriptor is not None:
            return descriptor
    return default_currency()


def to_decimal(value: Any) -> Optional[Decimal]:
    """
    Parse a raw attribute value into an exact Decimal.

    Returns None for None, booleans, unparseable strings and non-finite
    numbers. Floats go through their shortest repr so that 95.15 becomes
    Decimal('95.15').
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(value.strip() if isinstance(value, str) else str(value))
        except (InvalidOperation, ValueError, TypeError):
            return None
    return result if result.is_finite() else None


def round_to_unit(value: Decimal, unit: Decimal) -> Decimal:
    """
    Round to the nearest multiple of ``unit``, halves away from zero:
    round(value / unit) * unit
    """
    if not isinstance(unit, Decimal):
        unit = Decimal(str(unit))
    # quantize fails once the result has more digits than the context precision
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() - unit.adjusted() + 28)
        steps = (value / unit).quantize(Decimal('1'), rounding=ROUND_HALF_UP)
        return steps * unit


def _negative_format(option: Any) -> NegativeFormat:
    if option is None:
        option = get_config().negative_format
    if isinstance(option, NegativeFormat):
        return option
    try:
        return NegativeFormat(str(option).lower())
    except ValueError:
        return NegativeFormat.MINUS


def format_value(currency: CurrencyDescriptor, value: Any,
                 options: Optional[Mapping[str, Any]] = None) -> str:
    """
    Format a numeric value as a currency string.

    Args:
        currency: Descriptor giving symbol, placement and decimal digits
        value: Number to format (Decimal, int, float or numeric string)
        options: ``negative`` selects brackets, hyphen or the default minus sign

    Returns:
        Formatted string, e.g. "1,234.50 €"; the sign treatment is display
        only and never changes the value passed in
    """
    options = options or {}
    amount = to_decimal(value)
    if amount is None:
        raise ValueError(f"Cannot format non-numeric value {value!r}")

    negative = amount < 0
    if negative:
        amount = amount.copy_abs()

    quantum = Decimal(1).scaleb(-currency.digits)
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, amount.adjusted() + currency.digits + 2)
        number = f"{amount.quantize(quantum, rounding=ROUND_HALF_UP):,.{currency.digits}f}"
    number = number.lstrip('-')  # avoid displaying minus zero

    if not currency.symbol:
        formatted = number
    elif currency.use_space:
        formatted = f"{number} {currency.symbol}" if currency.is_suffix else f"{currency.symbol} {number}"
    else:
        formatted = f"{number}{currency.symbol}" if currency.is_suffix else f"{currency.symbol}{number}"

    if negative:
        style = _negative_format(options.get('negative'))
        if style == NegativeFormat.BRACKETS:
            formatted = f"({formatted})"
        elif style == NegativeFormat.HYPHEN:
            formatted = f"-{formatted}"
        else:
            formatted = f"{MINUS_SIGN}{formatted}"
    return formatted
