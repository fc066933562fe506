"""Single-elimination bracket derivation and result propagation."""

from __future__ import annotations

import math
import re
from typing import TYPE_CHECKING, Any

from firebase_admin import firestore

from khelkheleko.constants import (
    MATCHES,
    REG_CONFIRMED,
    REGISTRATIONS,
    STATUS_ACTIVE,
    STATUS_APPROVED,
    TOURNAMENTS,
)
from khelkheleko.core.models import BracketRound, Match, MatchPlayer
from khelkheleko.errors import NotFoundError, PermissionDeniedError, ValidationError
from khelkheleko.utils import utcnow

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

MIN_PARTICIPANTS = 2
MATCH_ID_RE = re.compile(r"^round_(\d+)_match_(\d+)$")


def total_rounds(participant_count: int) -> int:
    """Number of rounds needed to reduce ``participant_count`` to one winner."""
    if participant_count < MIN_PARTICIPANTS:
        return 0
    return math.ceil(math.log2(participant_count))


def round_name(round_index: int, rounds: int) -> str:
    """Label a round counting back from the final."""
    from_end = rounds - round_index - 1
    if from_end == 0:
        return "Final"
    if from_end == 1:
        return "Semi-Final"
    if from_end == 2:  # noqa: PLR2004
        return "Quarter-Final"
    return f"Round {round_index + 1}"


def match_id(round_index: int, position: int) -> str:
    """Deterministic slot id for a match."""
    return f"round_{round_index}_match_{position}"


def parse_match_id(value: str) -> tuple[int, int]:
    """Return ``(round, position)`` for a slot id."""
    found = MATCH_ID_RE.match(value or "")
    if not found:
        raise ValidationError(f"Invalid match id: {value}")
    return int(found.group(1)), int(found.group(2))


def generate_bracket_structure(
    participant_count: int, matches: list[Match] | None = None
) -> list[BracketRound]:
    """Build the balanced single-elimination tree for ``participant_count``.

    Round ``r`` holds ``2 ** (rounds - r - 1)`` slots. A slot takes the
    override from ``matches`` with the same id, otherwise an empty pending
    match. The result depends only on the arguments.
    """
    rounds = total_rounds(participant_count)
    overrides = {m["id"]: m for m in (matches or []) if m.get("id")}

    structure: list[BracketRound] = []
    for r in range(rounds):
        slots: list[Match] = []
        for p in range(2 ** (rounds - r - 1)):
            slot_id = match_id(r, p)
            slots.append(
                overrides.get(slot_id)
                or {"id": slot_id, "round": r, "position": p, "status": "pending"}
            )
        structure.append({"round": r, "name": round_name(r, rounds), "matches": slots})
    return structure


def seed_positions(entrants: list[MatchPlayer]) -> list[Match]:
    """Place entrants into the first round.

    Entrant ``i`` takes the player1 slot of match ``i % slots`` while slots
    remain, then the player2 slots, so byes are spread across the round.
    """
    rounds = total_rounds(len(entrants))
    if rounds == 0:
        return []
    slots = 2 ** (rounds - 1)
    first_round: list[Match] = [
        {
            "id": match_id(0, p),
            "round": 0,
            "position": p,
            "player1": None,
            "player2": None,
            "winner": None,
            "score": None,
            "status": "pending",
        }
        for p in range(slots)
    ]
    for i, entrant in enumerate(entrants):
        key = "player1" if i < slots else "player2"
        first_round[i % slots][key] = {**entrant, "seed": i + 1}
    return first_round


class BracketService:
    """Persists bracket matches and advances winners."""

    @staticmethod
    def _doc_id(tournament_id: str, slot_id: str) -> str:
        return f"{tournament_id}_{slot_id}"

    @staticmethod
    def _tournament(db: Client, tournament_id: str) -> dict[str, Any]:
        doc = db.collection(TOURNAMENTS).document(tournament_id).get()
        data = doc.to_dict() if doc.exists else None
        if not data:
            raise NotFoundError("Tournament not found.")
        data["id"] = tournament_id
        return data

    @staticmethod
    def get_matches(tournament_id: str, db: Client | None = None) -> list[Match]:
        """All stored matches for a tournament."""
        if db is None:
            db = firestore.client()
        docs = (
            db.collection(MATCHES)
            .where(filter=firestore.FieldFilter("tournament_id", "==", tournament_id))
            .stream()
        )
        matches = []
        for doc in docs:
            data = doc.to_dict()
            if data:
                matches.append(data)
        return matches

    @staticmethod
    def get_bracket(
        tournament_id: str, db: Client | None = None
    ) -> list[BracketRound]:
        """Bracket view for a tournament, with stored matches overlaid."""
        if db is None:
            db = firestore.client()
        tournament = BracketService._tournament(db, tournament_id)
        size = tournament.get("bracket_size") or tournament.get(
            "current_participants", 0
        )
        return generate_bracket_structure(
            int(size), BracketService.get_matches(tournament_id, db)
        )

    @staticmethod
    def _confirmed_entrants(db: Client, tournament_id: str) -> list[MatchPlayer]:
        docs = (
            db.collection(REGISTRATIONS)
            .where(filter=firestore.FieldFilter("tournament_id", "==", tournament_id))
            .stream()
        )
        confirmed = []
        for doc in docs:
            data = doc.to_dict()
            if data and data.get("status") == REG_CONFIRMED:
                confirmed.append(data)
        confirmed.sort(key=lambda r: str(r.get("registration_date", "")))
        return [
            {"id": r["player_id"], "name": r.get("team_name") or r.get("player_name", "")}
            for r in confirmed
        ]

    @staticmethod
    def seed_first_round(
        tournament_id: str, organizer_uid: str, db: Client | None = None
    ) -> list[Match]:
        """Draw the first round from confirmed registrations.

        Any previous draw is discarded; byes are resolved straight away.
        """
        if db is None:
            db = firestore.client()
        tournament = BracketService._tournament(db, tournament_id)
        if tournament.get("organizer_id") != organizer_uid:
            raise PermissionDeniedError("Only the organizer can draw the bracket.")
        if tournament.get("status") not in (STATUS_APPROVED, STATUS_ACTIVE):
            raise ValidationError("The bracket can only be drawn for approved tournaments.")

        existing = BracketService.get_matches(tournament_id, db)
        if any(m.get("status") == "completed" and m.get("score") for m in existing):
            raise ValidationError("Results have already been recorded for this bracket.")

        entrants = BracketService._confirmed_entrants(db, tournament_id)
        if len(entrants) < MIN_PARTICIPANTS:
            raise ValidationError("Confirm at least two participants before drawing.")

        for m in existing:
            db.collection(MATCHES).document(
                BracketService._doc_id(tournament_id, m["id"])
            ).delete()

        first_round = seed_positions(entrants)
        for m in first_round:
            m["tournament_id"] = tournament_id
            db.collection(MATCHES).document(
                BracketService._doc_id(tournament_id, m["id"])
            ).set(dict(m))

        db.collection(TOURNAMENTS).document(tournament_id).update(
            {"bracket_size": len(entrants), "updated_at": utcnow()}
        )

        for m in first_round:
            player1 = m.get("player1")
            if player1 and not m.get("player2"):
                BracketService._complete(
                    db, tournament_id, m, player1, None, len(entrants)
                )
        return first_round

    @staticmethod
    def _complete(
        db: Client,
        tournament_id: str,
        match: Match,
        winner: MatchPlayer,
        score: str | None,
        bracket_size: int,
    ) -> None:
        ref = db.collection(MATCHES).document(
            BracketService._doc_id(tournament_id, match["id"])
        )
        ref.set(
            {"winner": winner["id"], "score": score, "status": "completed"}, merge=True
        )

        rounds = total_rounds(bracket_size)
        r, p = match["round"], match["position"]
        if r + 1 >= rounds:
            return
        next_id = match_id(r + 1, p // 2)
        slot = "player1" if p % 2 == 0 else "player2"
        db.collection(MATCHES).document(
            BracketService._doc_id(tournament_id, next_id)
        ).set(
            {
                "id": next_id,
                "tournament_id": tournament_id,
                "round": r + 1,
                "position": p // 2,
                slot: winner,
                "status": "pending",
            },
            merge=True,
        )

    @staticmethod
    def record_match_result(
        tournament_id: str,
        slot_id: str,
        winner_id: str,
        score: str | None,
        organizer_uid: str,
        db: Client | None = None,
    ) -> Match:
        """Record a winner and move them into the next round's slot."""
        if db is None:
            db = firestore.client()
        tournament = BracketService._tournament(db, tournament_id)
        if tournament.get("organizer_id") != organizer_uid:
            raise PermissionDeniedError("Only the organizer can record results.")

        r, p = parse_match_id(slot_id)
        doc = (
            db.collection(MATCHES)
            .document(BracketService._doc_id(tournament_id, slot_id))
            .get()
        )
        match = doc.to_dict() if doc.exists else None
        if not match:
            raise NotFoundError("Match not found.")

        players = [pl for pl in (match.get("player1"), match.get("player2")) if pl]
        winner = next((pl for pl in players if pl["id"] == winner_id), None)
        if winner is None:
            raise ValidationError("The winner must be one of the match players.")
        if len(players) < MIN_PARTICIPANTS:
            raise ValidationError("Both players must be known before recording a result.")

        size = int(tournament.get("bracket_size") or tournament.get("current_participants", 0))
        rounds = total_rounds(size)
        if r + 1 < rounds:
            next_doc = (
                db.collection(MATCHES)
                .document(BracketService._doc_id(tournament_id, match_id(r + 1, p // 2)))
                .get()
            )
            next_match = next_doc.to_dict() if next_doc.exists else None
            if next_match and next_match.get("status") == "completed":
                raise ValidationError("The next round has already been played.")

        match.update({"id": slot_id, "round": r, "position": p})
        BracketService._complete(db, tournament_id, match, winner, score, size)
        match.update({"winner": winner_id, "score": score, "status": "completed"})
        return match
