#!/usr/bin/env python3
"""
Script to populate a local database with synthetic draw results, so the
prediction endpoints can be tried without access to the results API.

Usage (from repo root):
    python scripts/populate_test_data.py [WEEKS] [SEED]
"""
import os
import random
import sys
from datetime import date, timedelta

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from lotobonheur.algorithms.models import DrawRecord
from lotobonheur.database import count_draw_results, initialize_database, upsert_draw_results
from lotobonheur.draw_schedule import DRAW_SCHEDULE


def synthetic_draws(weeks: int, seed: int):
    """One result per scheduled draw for the past `weeks` weeks."""
    rng = random.Random(seed)
    today = date.today()
    records = []
    for week in range(weeks):
        for slot in DRAW_SCHEDULE:
            offset = (today.weekday() - slot.weekday) % 7 + week * 7
            draw_date = today - timedelta(days=offset)
            records.append(DrawRecord.from_values(
                draw_name=slot.draw_name,
                draw_date=draw_date,
                winning_numbers=rng.sample(range(1, 91), 5),
                machine_numbers=rng.sample(range(1, 91), 5),
            ))
    return records


def populate_test_data(weeks: int = 120, seed: int = 42):
    """Add synthetic results for every draw name"""
    initialize_database()

    records = synthetic_draws(weeks, seed)
    stored = upsert_draw_results(records)
    print(f"✓ Stored {stored} synthetic draws ({weeks} weeks x {len(DRAW_SCHEDULE)} draw names)")

    print("\nDraws per name:")
    for slot in DRAW_SCHEDULE:
        print(f"  {slot.day_of_week} {slot.time} {slot.draw_name}: {count_draw_results(slot.draw_name)}")

    print("\n✅ Test data populated successfully!")


if __name__ == "__main__":
    weeks = int(sys.argv[1]) if len(sys.argv) > 1 else 120
    seed = int(sys.argv[2]) if len(sys.argv) > 2 else 42
    populate_test_data(weeks, seed)
