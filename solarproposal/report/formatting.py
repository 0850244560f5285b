"""Display formatting baked into the proposal document (pt-BR conventions)."""
from __future__ import annotations

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal


def _to_decimal(value: Decimal | float | int) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def format_brl(value: Decimal | float | int, precision: int = 2) -> str:
    """Render a currency amount as ``R$ 1.234,56``."""
    amount = _to_decimal(value).quantize(Decimal(1).scaleb(-precision), rounding=ROUND_HALF_UP)
    sign = '-' if amount < 0 else ''
    grouped = f'{abs(amount):,.{precision}f}'
    # 1,234.56 -> 1.234,56
    localized = grouped.replace(',', '_').replace('.', ',').replace('_', '.')
    return f'{sign}R$ {localized}'


def format_fraction_percent(value: float) -> str:
    """0.123 -> ``12.3%``."""
    return f'{value * 100:.1f}%'


def format_percent(value: float) -> str:
    """12.3 -> ``12.3%``."""
    return f'{value:.1f}%'


def format_years(value: float) -> str:
    return f'{value:.1f} anos'


def format_date(value: date | datetime | str) -> str:
    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, date):
        return value.strftime('%d/%m/%Y')
    text = str(value or '').strip()
    try:
        return datetime.strptime(text[:10], '%Y-%m-%d').strftime('%d/%m/%Y')
    except ValueError:
        return text
