"""
Draw statistics: per-number frequencies, overdue numbers and associations.
"""

from datetime import date
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd
from loguru import logger

from lotobonheur.algorithms.color_groups import get_color_group
from lotobonheur.algorithms.models import MAX_NUMBER, MIN_NUMBER, DrawRecord

NEVER_SEEN_DAYS = 999


def frequency_table(history: Sequence[DrawRecord], today: Optional[date] = None) -> pd.DataFrame:
    """
    One row per number 1..90 with columns number, frequency, percentage,
    last_seen (date or None), days_since_last_seen and color_group.
    """
    today = today or date.today()
    rows = [
        {'number': n, 'draw_date': draw.draw_date}
        for draw in history for n in draw.winning_numbers
    ]
    occurrences = pd.DataFrame(rows, columns=['number', 'draw_date'])

    table = pd.DataFrame({'number': range(MIN_NUMBER, MAX_NUMBER + 1)})
    if occurrences.empty:
        table['frequency'] = 0
        table['last_seen'] = None
    else:
        grouped = occurrences.groupby('number')['draw_date'].agg(['count', 'max'])
        grouped = grouped.rename(columns={'count': 'frequency', 'max': 'last_seen'}).reset_index()
        table = table.merge(grouped, on='number', how='left')
        table['frequency'] = table['frequency'].fillna(0).astype(int)
        table['last_seen'] = table['last_seen'].astype(object).where(table['last_seen'].notna(), None)

    total = int(table['frequency'].sum())
    table['percentage'] = (table['frequency'] / total * 100).round(2) if total else 0.0
    table['days_since_last_seen'] = [
        (today - seen).days if seen is not None else NEVER_SEEN_DAYS for seen in table['last_seen']
    ]
    table['color_group'] = [get_color_group(int(n)) for n in table['number']]
    return table


def number_frequencies(history: Sequence[DrawRecord], today: Optional[date] = None) -> List[Dict[str, Any]]:
    table = frequency_table(history, today)
    return [
        {
            'number': int(row.number),
            'frequency': int(row.frequency),
            'last_seen': row.last_seen.isoformat() if row.last_seen is not None else None,
            'days_since_last_seen': int(row.days_since_last_seen),
        }
        for row in table.itertuples(index=False)
    ]


def frequency_summary(history: Sequence[DrawRecord], today: Optional[date] = None, top: int = 10) -> Dict[str, Any]:
    """Hot, cold and overdue numbers plus color group totals."""
    table = frequency_table(history, today)
    hot = table.sort_values(['frequency', 'number'], ascending=[False, True]).head(top)
    cold = table.sort_values(['frequency', 'number'], ascending=[True, True]).head(top)
    overdue = table[table['last_seen'].notna()].sort_values(
        ['days_since_last_seen', 'number'], ascending=[False, True]).head(top)

    logger.debug(f"Frequency summary over {len(history)} draws")
    return {
        'draws_analyzed': len(history),
        'hot_numbers': hot['number'].astype(int).tolist(),
        'cold_numbers': cold['number'].astype(int).tolist(),
        'overdue_numbers': overdue['number'].astype(int).tolist(),
        'color_groups': {k: int(v) for k, v in table.groupby('color_group')['frequency'].sum().items()},
    }


def number_associations(history: Sequence[DrawRecord], number: int, top: int = 15) -> List[Dict[str, Any]]:
    """
    Numbers drawn alongside `number` (same draw) or in the draw right after it.

    Args:
        history: Newest-first draws of one draw name
        number: The number to analyse
        top: Maximum number of associations returned
    """
    if not MIN_NUMBER <= number <= MAX_NUMBER:
        raise ValueError(f"Number must be between {MIN_NUMBER} and {MAX_NUMBER}")

    counts: Dict[int, Dict[str, int]] = {}
    for idx, draw in enumerate(history):
        if number not in draw.winning_numbers:
            continue
        for n in draw.winning_numbers:
            if n != number:
                counts.setdefault(n, {'same': 0, 'next': 0})['same'] += 1
        if idx > 0:
            for n in history[idx - 1].winning_numbers:
                counts.setdefault(n, {'same': 0, 'next': 0})['next'] += 1

    associations = [
        {
            'number': n,
            'associated_with': number,
            'frequency': c['same'] + c['next'],
            'in_same_draw': c['same'],
            'in_next_draw': c['next'],
        }
        for n, c in counts.items()
    ]
    associations.sort(key=lambda a: (-a['frequency'], a['number']))
    return associations[:top]
