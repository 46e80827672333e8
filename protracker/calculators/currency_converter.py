"""Currency conversion through an externally supplied rate table.

Exchange rates are data, not computed here. A rate is looked up directly,
or as the reciprocal of the inverse pair. A missing pair raises
MissingRateError instead of silently converting 1:1.
"""

import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple, Union

from protracker.exceptions import MissingRateError, ValidationError
from protracker.models.currency import ExchangeRate, normalize_currency_code

logger = logging.getLogger(__name__)

RateTable = Dict[Tuple[str, str], Decimal]


def parse_currency_code(code: str, field: str = "currency") -> str:
    """Normalise a user-supplied currency code.

    Raises:
        ValidationError: If the code is not three alphabetic characters
    """
    try:
        return normalize_currency_code(code)
    except ValueError as e:
        raise ValidationError(str(e), field=field, value=code)


def build_rate_table(rates: Iterable[ExchangeRate]) -> RateTable:
    """Build a lookup table from exchange rate records.

    Later records for the same pair replace earlier ones.

    Example:
        >>> table = build_rate_table([ExchangeRate(from_currency="EUR", to_currency="USD", rate="1.1")])
        >>> table[("EUR", "USD")]
        Decimal('1.1')
    """
    return {(r.from_currency, r.to_currency): r.rate for r in rates}


def lookup_rate(from_currency: str, to_currency: str, rate_table: RateTable) -> Decimal:
    """Find the rate converting ``from_currency`` into ``to_currency``.

    Args:
        from_currency: Source currency code
        to_currency: Target currency code
        rate_table: Mapping (from, to) -> rate

    Returns:
        The direct rate, the reciprocal of the inverse rate, or 1 for the
        same currency

    Raises:
        MissingRateError: If neither the pair nor its inverse is known
        ValidationError: If a currency code is malformed
    """
    source = parse_currency_code(from_currency, "from_currency")
    target = parse_currency_code(to_currency, "to_currency")

    if source == target:
        return Decimal("1")

    direct = rate_table.get((source, target))
    if direct is not None:
        return Decimal(direct)

    inverse = rate_table.get((target, source))
    if inverse is not None and Decimal(inverse) != 0:
        return Decimal("1") / Decimal(inverse)

    logger.warning(f"Exchange rate not found for {source} to {target}")
    raise MissingRateError(source, target)


def convert(
    amount: Union[Decimal, int, str],
    from_currency: str,
    to_currency: str,
    rate_table: Optional[RateTable] = None,
) -> Decimal:
    """Convert an amount between currencies.

    Args:
        amount: Amount in ``from_currency``
        from_currency: Source currency code
        to_currency: Target currency code
        rate_table: Mapping (from, to) -> rate

    Returns:
        amount × rate (unrounded)

    Raises:
        MissingRateError: If no rate is available for the pair

    Example:
        >>> convert(Decimal("100"), "USD", "USD", {})
        Decimal('100')
        >>> convert(Decimal("100"), "EUR", "USD", {("EUR", "USD"): Decimal("1.10")})
        Decimal('110.00')
    """
    value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    rate = lookup_rate(from_currency, to_currency, rate_table or {})
    if rate == 1:
        return value
    return value * rate


class CurrencyConverter:
    """Holds a rate table and converts amounts with it.

    Example:
        >>> converter = CurrencyConverter()
        >>> converter.update_rate(ExchangeRate(from_currency="GBP", to_currency="EUR", rate="1.17"))
        >>> converter.convert(Decimal("10"), "EUR", "GBP").quantize(Decimal("0.01"))
        Decimal('8.55')
    """

    def __init__(self, rates: Optional[Iterable[ExchangeRate]] = None):
        self._rates: List[ExchangeRate] = list(rates or [])

    @property
    def rates(self) -> List[ExchangeRate]:
        return list(self._rates)

    @property
    def rate_table(self) -> RateTable:
        return build_rate_table(self._rates)

    def update_rate(self, rate: ExchangeRate) -> None:
        """Replace the rate for the same pair, or append a new one."""
        for index, existing in enumerate(self._rates):
            if (existing.from_currency, existing.to_currency) == (
                rate.from_currency,
                rate.to_currency,
            ):
                self._rates[index] = rate
                return
        self._rates.append(rate)

    def has_rate(self, from_currency: str, to_currency: str) -> bool:
        try:
            lookup_rate(from_currency, to_currency, self.rate_table)
        except MissingRateError:
            return False
        return True

    def convert(
        self, amount: Union[Decimal, int, str], from_currency: str, to_currency: str
    ) -> Decimal:
        """Convert an amount with this converter's rates.

        Raises:
            MissingRateError: If no rate is available for the pair
        """
        return convert(amount, from_currency, to_currency, self.rate_table)
