"""Magazine pricing and payment helpers"""

from datetime import datetime, timedelta

from .config import MAGAZINE_PRICE, PAYMENT_DEADLINE_DAYS, PAYPAL_ME_USERNAME, SHIPPING_COST

PAYMENT_REFERENCE_PREFIX = "FP-"


def calculate_total_cost(quantity: int = 1, delivery_method: str = "pickup") -> float:
    """Magazine price times quantity, plus the flat shipping rate for shipping orders"""
    total = MAGAZINE_PRICE * quantity
    if delivery_method == "shipping":
        total += SHIPPING_COST
    return round(total, 2)


def generate_payment_reference(reservation_id: str) -> str:
    return f"{PAYMENT_REFERENCE_PREFIX}{reservation_id.upper()[:8]}"


def format_reservation_number(reservation_id: str) -> str:
    return reservation_id[:8].upper()


def format_currency(amount: float) -> str:
    """Format an amount the German way, e.g. 1234.5 -> '1.234,50 €'"""
    formatted = f"{amount:,.2f}"
    formatted = formatted.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{formatted} €"


def paypal_link(total: float) -> str:
    """PayPal.Me link with the amount pre-filled"""
    amount = f"{total:.2f}".replace(".", ",")
    return f"https://paypal.me/{PAYPAL_ME_USERNAME}/{amount}EUR"


def calculate_payment_deadline(reservation_date: datetime) -> datetime:
    return reservation_date + timedelta(days=PAYMENT_DEADLINE_DAYS)
