"""Platform fee arithmetic and the subscription catalogue."""

from __future__ import annotations

from typing import Any, TypedDict

DEFAULT_COMMISSION_RATE = 3.0
PREMIUM_LISTING_FEE = 200.0


class FeeBreakdown(TypedDict):
    """Revenue split for one tournament."""

    entry_fee: float
    participants: int
    commission_rate: float
    total_revenue: float
    commission: float
    premium_fee: float
    total_platform_fees: float
    organizer_earnings: float


class SubscriptionPlan(TypedDict, total=False):
    """A plan on the pricing page."""

    id: str
    name: str
    type: str  # organizer/player
    price_monthly: int
    price_yearly: int
    features: list[str]
    max_tournaments: int  # -1 means unlimited
    max_participants: int
    priority_support: bool
    analytics_access: bool
    custom_branding: bool


SUBSCRIPTION_PLANS: list[SubscriptionPlan] = [
    {
        "id": "organizer_basic",
        "name": "Basic Organizer",
        "type": "organizer",
        "price_monthly": 999,
        "price_yearly": 9999,
        "features": [
            "Create up to 5 tournaments per month",
            "Up to 50 participants per tournament",
            "Basic analytics",
            "Email support",
            "Standard listing",
        ],
        "max_tournaments": 5,
        "max_participants": 50,
        "priority_support": False,
        "analytics_access": True,
        "custom_branding": False,
    },
    {
        "id": "organizer_pro",
        "name": "Pro Organizer",
        "type": "organizer",
        "price_monthly": 2499,
        "price_yearly": 24999,
        "features": [
            "Unlimited tournaments",
            "Up to 500 participants per tournament",
            "Advanced analytics & insights",
            "Priority support",
            "Featured listings",
            "Custom branding",
            "Bulk participant management",
            "Revenue analytics",
        ],
        "max_tournaments": -1,
        "max_participants": 500,
        "priority_support": True,
        "analytics_access": True,
        "custom_branding": True,
    },
    {
        "id": "player_premium",
        "name": "Premium Player",
        "type": "player",
        "price_monthly": 299,
        "price_yearly": 2999,
        "features": [
            "Early tournament access",
            "Reduced platform fees",
            "Advanced player statistics",
            "Priority customer support",
            "Exclusive tournaments",
            "Performance analytics",
        ],
        "priority_support": True,
        "analytics_access": True,
        "custom_branding": False,
    },
]


def calculate_platform_fees(
    entry_fee: float,
    participants: int,
    commission_rate: float = DEFAULT_COMMISSION_RATE,
    premium_listing: bool = False,
) -> FeeBreakdown:
    """Split entry-fee revenue between the platform and the organizer.

    >>> calculate_platform_fees(1000, 20)["organizer_earnings"]
    19400.0
    """
    entry_fee = float(entry_fee or 0)
    participants = int(participants or 0)
    total_revenue = entry_fee * participants
    commission = total_revenue * float(commission_rate) / 100
    premium_fee = PREMIUM_LISTING_FEE if premium_listing else 0.0
    total_fees = commission + premium_fee
    return {
        "entry_fee": entry_fee,
        "participants": participants,
        "commission_rate": float(commission_rate),
        "total_revenue": total_revenue,
        "commission": commission,
        "premium_fee": premium_fee,
        "total_platform_fees": total_fees,
        "organizer_earnings": total_revenue - total_fees,
    }


def plans_for(user_type: str | None = None) -> list[SubscriptionPlan]:
    """Plans for one audience, or all of them."""
    if not user_type:
        return list(SUBSCRIPTION_PLANS)
    return [p for p in SUBSCRIPTION_PLANS if p["type"] == user_type]


def yearly_savings_percent(plan: SubscriptionPlan) -> int:
    """How much cheaper the yearly price is than twelve monthly payments."""
    monthly_total = plan["price_monthly"] * 12
    if not monthly_total:
        return 0
    return round((monthly_total - plan["price_yearly"]) / monthly_total * 100)


def revenue_summary(
    tournaments: list[dict[str, Any]], commission_rate: float = DEFAULT_COMMISSION_RATE
) -> dict[str, float]:
    """Totals across tournaments, using their current participant counts."""
    revenue = 0.0
    commission = 0.0
    earnings = 0.0
    for t in tournaments:
        fees = calculate_platform_fees(
            t.get("entry_fee", 0),
            t.get("current_participants", 0),
            commission_rate,
            bool(t.get("is_premium_listing")),
        )
        revenue += fees["total_revenue"]
        commission += fees["total_platform_fees"]
        earnings += fees["organizer_earnings"]
    return {"revenue": revenue, "platform_fees": commission, "earnings": earnings}
