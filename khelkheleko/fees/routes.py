"""Routes for pricing and the fee calculator."""

from __future__ import annotations

from typing import Any

from flask import current_app, render_template, request

from . import bp
from .calculator import calculate_platform_fees, plans_for, yearly_savings_percent
from .forms import FeeCalculatorForm


@bp.route("/pricing")
def pricing() -> Any:
    """Subscription plans, optionally for one audience."""
    user_type = request.args.get("type")
    if user_type not in ("organizer", "player"):
        user_type = None
    plans = plans_for(user_type)
    return render_template(
        "fees/pricing.html",
        plans=plans,
        user_type=user_type,
        savings={p["id"]: yearly_savings_percent(p) for p in plans},
    )


@bp.route("/fees/calculator", methods=["GET"])
def calculator() -> Any:
    """Revenue breakdown for an entry fee and participant count."""
    form = FeeCalculatorForm(request.args)
    breakdown = None
    if request.args and form.validate():
        breakdown = calculate_platform_fees(
            form.entry_fee.data,
            form.participants.data,
            current_app.config["PLATFORM_COMMISSION_RATE"],
            bool(form.premium_listing.data),
        )
    return render_template("fees/calculator.html", form=form, breakdown=breakdown)
