"""
Commission service - lead pricing and the scout/platform revenue split.
Pure calculations over Decimal; no database access.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Dict, Optional

from leadscout.config import Settings
from leadscout.core.exceptions import ValidationError

CENT = Decimal("0.01")


def round_money(amount) -> Decimal:
    """Round to cents, half up."""
    return Decimal(str(amount)).quantize(CENT, rounding=ROUND_HALF_UP)


def to_minor_units(amount: Decimal) -> int:
    """Euros to cents for the payment processor."""
    return int((round_money(amount) * 100).to_integral_value())


@dataclass(frozen=True)
class CommissionBreakdown:
    sale_price: Decimal
    scout_earning: Decimal
    platform_commission: Decimal
    commission_rate: Decimal

    def as_dict(self) -> Dict[str, str]:
        return {
            "sale_price": str(self.sale_price),
            "scout_earning": str(self.scout_earning),
            "platform_commission": str(self.platform_commission),
            "commission_rate": str(self.commission_rate),
        }


class CommissionCalculator:
    """
    Prices leads by category and splits each sale.

    The scout share is rounded once; the platform keeps the exact
    remainder, so scout_earning + platform_commission == sale_price.
    """

    def __init__(self, settings: Settings):
        self.prices = {name: round_money(price) for name, price in settings.LEAD_PRICES.items()}
        self.default_price = round_money(settings.LEAD_PRICE_DEFAULT)
        self.rate = Decimal(str(settings.PLATFORM_COMMISSION_RATE))
        self.payout_threshold = round_money(settings.PAYOUT_THRESHOLD)

    def price_for_category(self, category: Optional[str]) -> Decimal:
        """Sale price for a category, falling back to the default price."""
        return self.prices.get(category or "", self.default_price)

    def split(self, sale_price, rate: Optional[Decimal] = None) -> tuple:
        """Return (scout_earning, platform_commission)."""
        rate = self.rate if rate is None else Decimal(str(rate))
        if not Decimal("0") < rate < Decimal("1"):
            raise ValidationError("Commission rate must be between 0 and 1", field="commission_rate")

        price = round_money(sale_price)
        if price < 0:
            raise ValidationError("Sale price cannot be negative", field="sale_price")

        scout_earning = round_money(price * rate)
        platform_commission = price - scout_earning
        return scout_earning, platform_commission

    def breakdown(self, sale_price) -> CommissionBreakdown:
        scout_earning, platform_commission = self.split(sale_price)
        return CommissionBreakdown(
            sale_price=round_money(sale_price),
            scout_earning=scout_earning,
            platform_commission=platform_commission,
            commission_rate=self.rate,
        )

    def earnings_for_category(self, category: Optional[str]) -> Decimal:
        """What a scout earns when a lead of this category sells."""
        scout_earning, _ = self.split(self.price_for_category(category))
        return scout_earning

    def batch_earnings(self, sale_prices: Iterable) -> Decimal:
        """Sum of per-sale scout earnings (not the split of the sum)."""
        return sum((self.split(price)[0] for price in sale_prices), Decimal("0.00"))

    def platform_revenue(self, sale_prices: Iterable) -> Decimal:
        return sum((self.split(price)[1] for price in sale_prices), Decimal("0.00"))

    def can_process_payout(self, amount) -> bool:
        return round_money(amount) >= self.payout_threshold
