"""
Tests for draw frequency statistics
"""

from datetime import date

import pytest

from lotobonheur.algorithms.models import DrawRecord
from lotobonheur.statistics import (
    NEVER_SEEN_DAYS,
    frequency_summary,
    frequency_table,
    number_associations,
    number_frequencies,
)

TODAY = date(2024, 1, 31)


@pytest.fixture
def history():
    """Three newest-first draws"""
    return [
        DrawRecord.from_values("Reveil", date(2024, 1, 29), [1, 2, 3, 4, 5]),
        DrawRecord.from_values("Reveil", date(2024, 1, 22), [1, 10, 20, 30, 40]),
        DrawRecord.from_values("Reveil", date(2024, 1, 15), [1, 2, 50, 60, 90]),
    ]


class TestFrequencyTable:

    def test_counts_and_dates(self, history):
        table = frequency_table(history, TODAY).set_index('number')

        assert len(table) == 90
        assert table.loc[1, 'frequency'] == 3
        assert table.loc[2, 'frequency'] == 2
        assert table.loc[1, 'last_seen'] == date(2024, 1, 29)
        assert table.loc[90, 'days_since_last_seen'] == 16
        assert table.loc[89, 'days_since_last_seen'] == NEVER_SEEN_DAYS
        assert table.loc[1, 'percentage'] == pytest.approx(20.0)
        assert table.loc[90, 'color_group'] == 'rouge'

    def test_empty_history(self):
        table = frequency_table([], TODAY)
        assert table['frequency'].sum() == 0
        assert set(table['days_since_last_seen']) == {NEVER_SEEN_DAYS}

    def test_number_frequencies(self, history):
        rows = number_frequencies(history, TODAY)
        assert rows[0] == {'number': 1, 'frequency': 3, 'last_seen': '2024-01-29', 'days_since_last_seen': 2}
        assert rows[88]['last_seen'] is None


class TestSummary:

    def test_hot_cold_overdue(self, history):
        summary = frequency_summary(history, TODAY, top=3)

        assert summary['draws_analyzed'] == 3
        assert summary['hot_numbers'] == [1, 2, 3]
        assert summary['cold_numbers'] == [6, 7, 8]
        assert summary['overdue_numbers'] == [50, 60, 90]
        assert summary['color_groups']['gris-clair'] == 8
        assert sum(summary['color_groups'].values()) == 15


class TestAssociations:

    def test_same_and_next_draw(self, history):
        associations = {a['number']: a for a in number_associations(history, 2)}

        # 2 was drawn with 1 twice; the draw after 2024-01-15 contained 1 again
        assert associations[1]['in_same_draw'] == 2
        assert associations[1]['in_next_draw'] == 1
        assert associations[1]['frequency'] == 3
        assert associations[10]['in_next_draw'] == 1
        assert associations[50]['in_same_draw'] == 1

    def test_sorted_and_limited(self, history):
        associations = number_associations(history, 1, top=4)
        assert len(associations) == 4
        keys = [(-a['frequency'], a['number']) for a in associations]
        assert keys == sorted(keys)

    def test_out_of_range(self, history):
        with pytest.raises(ValueError):
            number_associations(history, 0)
