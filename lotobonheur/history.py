"""
History sources feeding the prediction pipeline.

A history source answers get_history(draw_name, limit) with newest-first
DrawRecords; malformed records never reach the scorers.
"""

from typing import Dict, Iterable, List, Optional, Protocol

from loguru import logger

import lotobonheur.database as db
from lotobonheur.algorithms.models import DrawRecord, is_valid_draw
from lotobonheur.draw_schedule import fold_draw_name


class HistorySource(Protocol):
    def get_history(self, draw_name: str, limit: Optional[int] = None) -> List[DrawRecord]:
        ...


class SQLiteHistorySource:
    """Reads draw history from the application database."""

    def __init__(self, max_date: Optional[str] = None):
        self.max_date = max_date

    def get_history(self, draw_name: str, limit: Optional[int] = None) -> List[DrawRecord]:
        return db.get_history(draw_name, limit=limit, max_date=self.max_date)


class InMemoryHistorySource:
    """History held in memory, used by scripts and tests."""

    def __init__(self, records: Iterable[DrawRecord] = ()):
        self._by_name: Dict[str, List[DrawRecord]] = {}
        for record in records:
            self.add(record)

    def add(self, record: DrawRecord) -> None:
        if not is_valid_draw(record.winning_numbers):
            logger.warning(f"Ignoring malformed record {record.draw_name} {record.draw_date}")
            return
        self._by_name.setdefault(fold_draw_name(record.draw_name), []).append(record)

    def get_history(self, draw_name: str, limit: Optional[int] = None) -> List[DrawRecord]:
        records = sorted(self._by_name.get(fold_draw_name(draw_name), []), key=lambda r: r.draw_date, reverse=True)
        return records[:limit] if limit is not None else records
