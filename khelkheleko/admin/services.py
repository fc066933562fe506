"""Service layer for admin-related operations."""

from __future__ import annotations

import datetime
import random
from typing import TYPE_CHECKING, Any

from faker import Faker
from firebase_admin import firestore

from khelkheleko.constants import (
    NEPAL_PROVINCES,
    REG_CONFIRMED,
    REG_REGISTERED,
    ROLE_ORGANIZER,
    ROLE_PLAYER,
    SPORTS_TYPES,
    STATUS_ACTIVE,
    STATUS_APPROVED,
    STATUS_COMPLETED,
    STATUS_PENDING,
    TOURNAMENT_STATUSES,
    TOURNAMENTS,
    USERS,
)
from khelkheleko.fees.calculator import revenue_summary
from khelkheleko.player.services import PlayerStatsService
from khelkheleko.services.registration_service import RegistrationService
from khelkheleko.services.tournament_service import TournamentService
from khelkheleko.utils import utcnow

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

# Rough centres used to scatter demo venues on the map
PROVINCE_CENTRES = {
    "Koshi Province": (26.45, 87.27),
    "Madhesh Province": (26.73, 85.93),
    "Bagmati Province": (27.70, 85.32),
    "Gandaki Province": (28.21, 83.99),
    "Lumbini Province": (27.68, 83.43),
    "Karnali Province": (28.60, 81.63),
    "Sudurpashchim Province": (28.98, 80.56),
}

DEMO_STATUSES = (STATUS_APPROVED, STATUS_APPROVED, STATUS_PENDING, STATUS_ACTIVE)


class AdminService:
    """Service class for admin-related operations."""

    @staticmethod
    def get_admin_stats(
        tournaments: list[dict[str, Any]],
        commission_rate: float,
        db: Client | None = None,
    ) -> dict[str, Any]:
        """Tournament counts by status, users and the platform's commission."""
        if db is None:
            db = firestore.client()
        counts = {status: 0 for status in TOURNAMENT_STATUSES}
        for t in tournaments:
            status = t.get("status", "draft")
            counts[status] = counts.get(status, 0) + 1

        users = {ROLE_PLAYER: 0, ROLE_ORGANIZER: 0, "admin": 0}
        for doc in db.collection(USERS).stream():
            data = doc.to_dict()
            if data:
                role = data.get("role", ROLE_PLAYER)
                users[role] = users.get(role, 0) + 1

        earning = [
            t
            for t in tournaments
            if t.get("status") in (STATUS_APPROVED, STATUS_ACTIVE, STATUS_COMPLETED)
        ]
        fees = revenue_summary(earning, commission_rate)
        return {
            "total_tournaments": len(tournaments),
            "counts": counts,
            "total_users": sum(users.values()),
            "users": users,
            "gross_revenue": fees["revenue"],
            "platform_commission": fees["platform_fees"],
        }

    @staticmethod
    def seed_demo_data(
        tournament_count: int = 5, seed: int | None = None, db: Client | None = None
    ) -> dict[str, int]:
        """Create demo organizers, tournaments, players and results."""
        if db is None:
            db = firestore.client()
        fake = Faker()
        rng = random.Random(seed)  # nosec
        if seed is not None:
            fake.seed_instance(seed)

        created = {"users": 0, "tournaments": 0, "registrations": 0, "results": 0}
        organizers = []
        for _ in range(max(1, tournament_count // 2)):
            uid = f"demo_org_{fake.unique.uuid4()[:8]}"
            organizer = {
                "uid": uid,
                "email": fake.unique.email(),
                "full_name": fake.name(),
                "role": ROLE_ORGANIZER,
                "phone": fake.numerify("+977-98########"),
                "created_at": utcnow(),
                "demo": True,
            }
            db.collection(USERS).document(uid).set(
                {k: v for k, v in organizer.items() if k != "uid"}
            )
            organizers.append(organizer)
            created["users"] += 1

        today = datetime.date.today()
        for _ in range(tournament_count):
            province = rng.choice(list(NEPAL_PROVINCES))
            district = rng.choice(NEPAL_PROVINCES[province])
            sport = rng.choice(SPORTS_TYPES)
            centre_lat, centre_lon = PROVINCE_CENTRES.get(province, (27.7172, 85.3240))
            start = today + datetime.timedelta(days=rng.randint(14, 60))
            venue = f"{fake.last_name()} {sport} Ground"
            suffix = rng.choice(["Cup", "Championship", "Open", "League"])
            data = {
                "name": f"{district} {sport} {suffix}",
                "description": fake.paragraph(nb_sentences=3),
                "sport_type": sport,
                "tournament_type": "single_elimination",
                "venue_name": venue,
                "venue_address": f"{fake.street_name()}, {district}",
                "province": province,
                "district": district,
                "latitude": round(centre_lat + rng.uniform(-0.2, 0.2), 4),
                "longitude": round(centre_lon + rng.uniform(-0.2, 0.2), 4),
                "start_date": start.isoformat(),
                "end_date": (start + datetime.timedelta(days=rng.randint(1, 7))).isoformat(),
                "registration_deadline": (start - datetime.timedelta(days=5)).isoformat(),
                "max_participants": rng.choice([8, 16, 32]),
                "entry_fee": float(rng.choice([0, 500, 1000, 2500])),
                "prize_pool": float(rng.choice([10000, 25000, 50000])),
                "rules": "\n".join(fake.sentences(nb=4)),
                "requirements": "\n".join(fake.sentences(nb=3)),
                "contact_phone": fake.numerify("+977-98########"),
                "contact_email": fake.email(),
                "is_premium_listing": rng.random() < 0.2,
            }
            organizer = rng.choice(organizers)
            tournament_id = TournamentService.submit_tournament(data, organizer, db=db)
            status = rng.choice(DEMO_STATUSES)
            if status != STATUS_PENDING:
                db.collection(TOURNAMENTS).document(tournament_id).update(
                    {"status": status, "updated_at": utcnow()}
                )
            created["tournaments"] += 1

            if status == STATUS_PENDING:
                continue
            tournament = TournamentService.get_tournament(tournament_id, db)
            for _ in range(rng.randint(2, min(6, data["max_participants"]))):
                uid = f"demo_player_{fake.unique.uuid4()[:8]}"
                name = fake.name()
                db.collection(USERS).document(uid).set(
                    {
                        "email": fake.unique.email(),
                        "full_name": name,
                        "role": ROLE_PLAYER,
                        "created_at": utcnow(),
                        "demo": True,
                    }
                )
                created["users"] += 1
                registration = RegistrationService.build_registration(
                    tournament,
                    uid,
                    {
                        "player_name": name,
                        "email": fake.email(),
                        "phone": fake.numerify("98########"),
                        "age": rng.randint(16, 45),
                        "experience_level": rng.choice(
                            ["beginner", "intermediate", "advanced"]
                        ),
                        "emergency_contact": fake.numerify("98########"),
                    },
                )
                registration["status"] = rng.choice([REG_REGISTERED, REG_CONFIRMED])
                RegistrationService.save_registration(registration, db=db)
                created["registrations"] += 1

                played = rng.randint(1, 5)
                PlayerStatsService.add_tournament_result(
                    player_id=uid,
                    tournament_id=tournament_id,
                    tournament_name=data["name"],
                    sport_type=sport,
                    matches_played=played,
                    matches_won=rng.randint(0, played),
                    hours_played=float(rng.randint(1, 10)),
                    position=rng.randint(1, 8),
                    performance_rating=round(rng.uniform(2.5, 5.0), 1),
                    db=db,
                )
                created["results"] += 1
        return created
