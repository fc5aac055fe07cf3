"""Price arithmetic for pricing rules. Pure functions, Decimal in and out."""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext

APPLY_PRICE = 'apply-price'
DECREASE_FIXED = 'decrease-fixed'
DECREASE_PERCENTAGE = 'decrease-percentage'

PRICE_TYPES = (APPLY_PRICE, DECREASE_FIXED, DECREASE_PERCENTAGE)

ZERO = Decimal('0')
HUNDRED = Decimal('100')
CENT = Decimal('0.01')
TENTH = Decimal('0.1')


def parse_decimal(value):
    """Lenient parse: anything that isn't a finite number becomes 0."""
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    if value is None or isinstance(value, bool):
        return ZERO
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return ZERO
    return parsed if parsed.is_finite() else ZERO


def _quantize(value, exponent):
    # keep enough precision for every integer digit plus the fraction
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + 4)
        return value.quantize(exponent, rounding=ROUND_HALF_UP)


def quantize_money(value):
    return _quantize(parse_decimal(value), CENT)


def calculate_new_price(original_price, price_type, amount):
    original = parse_decimal(original_price)
    amount = parse_decimal(amount)

    if price_type == APPLY_PRICE:
        result = amount
    elif price_type == DECREASE_FIXED:
        result = original - amount
    elif price_type == DECREASE_PERCENTAGE:
        result = original - (original * amount / HUNDRED)
    else:
        result = original
    return max(ZERO, result)


@dataclass(frozen=True)
class PriceChange:
    delta: Decimal
    delta_percent: Decimal
    changed: bool


def price_change(original_price, new_price):
    original = parse_decimal(original_price)
    new = parse_decimal(new_price)
    difference = new - original
    if original > 0:
        percent = _quantize(difference / original * HUNDRED, TENTH)
    else:
        percent = ZERO
    # sub-cent differences are shown as "no change"
    return PriceChange(
        delta=_quantize(difference, CENT),
        delta_percent=percent,
        changed=abs(difference) >= CENT,
    )


def format_amount(amount):
    # a stripper for trailing zeroes: 20.00 -> 20, 12.50 -> 12.5
    return '{:.2f}'.format(parse_decimal(amount)).rstrip('0').rstrip('.')


def describe_price_type(price_type, amount):
    if price_type == APPLY_PRICE:
        return f'Apply fixed price: {quantize_money(amount)}'
    if price_type == DECREASE_FIXED:
        return f'Decrease by fixed amount: {quantize_money(amount)}'
    if price_type == DECREASE_PERCENTAGE:
        return f'Decrease by percentage: {format_amount(amount)}%'
    return 'No pricing rule applied'
