"""
Draw Schedule - Loto Bonheur
============================

The 28 weekly draws (4 per day), draw name normalisation and next-draw
calculation in Abidjan time.
"""

import unicodedata
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, List, Optional

import pytz
from loguru import logger

LOTTERY_TIMEZONE = pytz.timezone('Africa/Abidjan')

# Python weekday() index -> French day name used by the results API
DAY_NAMES = ['Lundi', 'Mardi', 'Mercredi', 'Jeudi', 'Vendredi', 'Samedi', 'Dimanche']

DRAW_TIMES = ['10:00', '13:00', '16:00', '18:15']


@dataclass(frozen=True)
class DrawSlot:
    day_of_week: str
    draw_name: str
    time: str

    @property
    def weekday(self) -> int:
        return DAY_NAMES.index(self.day_of_week)

    def to_dict(self) -> Dict[str, str]:
        return {'day_of_week': self.day_of_week, 'draw_name': self.draw_name, 'time': self.time}


_SCHEDULE_BY_DAY: Dict[str, List[str]] = {
    'Lundi': ['Réveil', 'Étoile', 'Akwaba', 'Monday Special'],
    'Mardi': ['La Matinale', 'Émergence', 'Sika', 'Lucky Tuesday'],
    'Mercredi': ['Première Heure', 'Fortune', 'Baraka', 'Midweek'],
    'Jeudi': ['Kado', 'Privilège', 'Monni', 'Fortune Thursday'],
    'Vendredi': ['Cash', 'Solution', 'Wari', 'Friday Bonanza'],
    'Samedi': ['Soutra', 'Diamant', 'Moaye', 'National'],
    'Dimanche': ['Bénédiction', 'Prestige', 'Awalé', 'Espoir'],
}

DRAW_SCHEDULE: List[DrawSlot] = [
    DrawSlot(day, name, time)
    for day in DAY_NAMES
    for name, time in zip(_SCHEDULE_BY_DAY[day], DRAW_TIMES)
]


def fold_draw_name(name: str) -> str:
    """Lowercase, accent-free, single-spaced form used for name matching."""
    decomposed = unicodedata.normalize('NFKD', name)
    stripped = ''.join(c for c in decomposed if not unicodedata.combining(c))
    return ' '.join(stripped.lower().split())


_CANONICAL_NAMES: Dict[str, str] = {fold_draw_name(slot.draw_name): slot.draw_name for slot in DRAW_SCHEDULE}


def get_valid_draw_names() -> List[str]:
    return [slot.draw_name for slot in DRAW_SCHEDULE]


def normalize_draw_name(name: Optional[str]) -> Optional[str]:
    """
    Map a user or API supplied draw name to its canonical form.

    Matching ignores case, accents and repeated spaces, so "Reveil",
    "reveil" and "RÉVEIL" all resolve to "Réveil". Unknown names give None.
    """
    if not name:
        return None
    return _CANONICAL_NAMES.get(fold_draw_name(name))


def canonical_draw_name(name: str) -> str:
    """Scheduled names in their canonical spelling; anything else stripped but unchanged."""
    return normalize_draw_name(name) or name.strip()


def draw_names_match(first: Optional[str], second: Optional[str]) -> bool:
    if first is None or second is None:
        return first is second
    return fold_draw_name(first) == fold_draw_name(second)


def is_valid_draw_name(name: Optional[str]) -> bool:
    return normalize_draw_name(name) is not None


def get_draws_for_day(day_of_week: str) -> List[DrawSlot]:
    return [slot for slot in DRAW_SCHEDULE if slot.day_of_week.lower() == day_of_week.lower()]


def get_slot(draw_name: str) -> Optional[DrawSlot]:
    canonical = normalize_draw_name(draw_name)
    for slot in DRAW_SCHEDULE:
        if slot.draw_name == canonical:
            return slot
    return None


def get_current_time() -> datetime:
    return datetime.now(pytz.UTC).astimezone(LOTTERY_TIMEZONE)


def get_next_draw(reference: Optional[datetime] = None) -> Dict[str, str]:
    """
    Next scheduled draw strictly after `reference` (defaults to now).

    Returns:
        Dict with draw_name, day_of_week, time and the ISO datetime of the draw
    """
    if reference is None:
        reference = get_current_time()
    elif reference.tzinfo is None:
        reference = LOTTERY_TIMEZONE.localize(reference)
    else:
        reference = reference.astimezone(LOTTERY_TIMEZONE)

    for offset in range(8):
        day = (reference + timedelta(days=offset)).date()
        for slot in DRAW_SCHEDULE:
            if slot.weekday != day.weekday():
                continue
            hour, minute = (int(part) for part in slot.time.split(':'))
            draw_at = LOTTERY_TIMEZONE.localize(datetime(day.year, day.month, day.day, hour, minute))
            if draw_at > reference:
                logger.debug(f"Next draw after {reference.isoformat()}: {slot.draw_name} at {draw_at.isoformat()}")
                return {
                    'draw_name': slot.draw_name,
                    'day_of_week': slot.day_of_week,
                    'time': slot.time,
                    'draw_datetime': draw_at.isoformat(),
                }

    # A weekly schedule always has a slot within 8 days
    raise RuntimeError("Draw schedule is empty")
