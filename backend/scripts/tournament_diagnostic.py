#!/usr/bin/env python3
"""
Tournament Diagnostic Script
Prints the bracket of the latest tournament and flags matches that
are blocking progress (byes nobody resolved, filled matches never scored).
"""

import asyncio
import os
import sys

# Add project root to path so we can import from backend.app
sys.path.append(os.path.join(os.path.dirname(__file__), '../../'))

from sqlalchemy.future import select
from backend.app.core import database
from backend.app.models.enums import MatchStatus
from backend.app.models.tournament_model import Tournament
from backend.app.services.bracket_service import bracket_service

async def diagnose(db):
    # Get latest tournament
    res = await db.execute(select(Tournament).order_by(Tournament.created_at.desc()).limit(1))
    t = res.scalar_one_or_none()

    if not t:
        print("No tournaments found in database.")
        return

    print(f"--- Diagnostic: Tournament #{t.id} '{t.name}' ({t.status}) ---")
    print(f"Created: {t.created_at}")
    print(f"Rounds: {t.current_round} / {t.total_rounds}")

    view = await bracket_service.get_bracket(db, t.id)
    if not view.rounds:
        print("\nNo bracket generated yet.")
        return

    def name(player_id):
        if player_id is None:
            return "-"
        player = view.players.get(player_id)
        return player.display_name if player else f"#{player_id}"

    blocking = []
    for bracket_round in view.rounds:
        print(f"\n{bracket_round.name} (round {bracket_round.round})")
        for m in bracket_round.matches:
            flag = " [bye]" if m.is_bye else ""
            score = ""
            if m.player1_score is not None:
                score = f" {m.player1_score:.2f}x - {m.player2_score:.2f}x"
            print(f"  #{m.match_number}: {name(m.player1_id)} vs {name(m.player2_id)}{score} -> {m.status}{flag}")

            if m.status == MatchStatus.COMPLETED or m.round != t.current_round:
                continue
            if m.is_bye or (m.player1_id and m.player2_id):
                blocking.append(m)

    if blocking:
        print("\nMatches waiting to be resolved in the current round:")
        for m in blocking:
            kind = "bye" if m.is_bye else "score"
            print(f"  Match {m.id} (#{m.match_number}) needs a {kind}")

async def main():
    database.init_engine()
    try:
        async with database.AsyncSessionLocal() as db:
            await diagnose(db)
    finally:
        await database.engine.dispose()

if __name__ == "__main__":
    asyncio.run(main())
