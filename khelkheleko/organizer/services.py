"""Dashboard aggregates and exports for organizers."""

from __future__ import annotations

import csv
import io
from typing import Any

from khelkheleko.constants import STATUS_APPROVED, TOURNAMENT_STATUSES
from khelkheleko.fees.calculator import revenue_summary

EXPORT_COLUMNS = (
    ("Player Name", "player_name"),
    ("Email", "email"),
    ("Phone", "phone"),
    ("Age", "age"),
    ("Experience", "experience_level"),
    ("Team", "team_name"),
    ("Emergency Contact", "emergency_contact"),
    ("Status", "status"),
    ("Payment", "payment_status"),
    ("Transaction", "transaction_id"),
    ("Registered On", "registration_date"),
)


class OrganizerService:
    """Summaries over an organizer's tournaments and registrations."""

    @staticmethod
    def dashboard_summary(
        tournaments: list[dict[str, Any]], commission_rate: float
    ) -> dict[str, Any]:
        """Counts by status, participants and approved-tournament revenue."""
        counts = {status: 0 for status in TOURNAMENT_STATUSES}
        for t in tournaments:
            counts[t.get("status", "draft")] = counts.get(t.get("status", "draft"), 0) + 1
        approved = [t for t in tournaments if t.get("status") == STATUS_APPROVED]
        return {
            "total": len(tournaments),
            "counts": counts,
            "participants": sum(int(t.get("current_participants", 0)) for t in tournaments),
            "revenue": sum(
                float(t.get("entry_fee", 0)) * int(t.get("current_participants", 0))
                for t in approved
            ),
            "fees": revenue_summary(approved, commission_rate),
        }

    @staticmethod
    def registrations_csv(registrations: list[dict[str, Any]]) -> str:
        """Render registrations as CSV with a header row."""
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow([title for title, _ in EXPORT_COLUMNS])
        for reg in registrations:
            row = []
            for _, field in EXPORT_COLUMNS:
                value = reg.get(field)
                if hasattr(value, "isoformat"):
                    value = value.isoformat()
                row.append("" if value is None else value)
            writer.writerow(row)
        return buffer.getvalue()
