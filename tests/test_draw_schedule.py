"""
Tests for the weekly draw schedule and draw name handling
"""

from datetime import datetime

import pytest
import pytz

from lotobonheur.draw_schedule import (
    DRAW_SCHEDULE,
    LOTTERY_TIMEZONE,
    canonical_draw_name,
    draw_names_match,
    fold_draw_name,
    get_draws_for_day,
    get_next_draw,
    get_slot,
    get_valid_draw_names,
    is_valid_draw_name,
    normalize_draw_name,
)


class TestSchedule:

    def test_four_draws_per_day(self):
        assert len(DRAW_SCHEDULE) == 28
        assert len(set(get_valid_draw_names())) == 28
        for day in ['Lundi', 'Mardi', 'Mercredi', 'Jeudi', 'Vendredi', 'Samedi', 'Dimanche']:
            assert [slot.time for slot in get_draws_for_day(day)] == ['10:00', '13:00', '16:00', '18:15']

    def test_slot_lookup(self):
        slot = get_slot("akwaba")
        assert slot.day_of_week == "Lundi"
        assert slot.time == "16:00"
        assert get_slot("Nowhere") is None


class TestDrawNames:

    @pytest.mark.parametrize("raw", ["Reveil", "Réveil", "REVEIL", "  reveil  "])
    def test_normalisation(self, raw):
        assert normalize_draw_name(raw) == "Réveil"

    def test_multi_word(self):
        assert normalize_draw_name("monday  special") == "Monday Special"
        assert normalize_draw_name("premiere heure") == "Première Heure"
        assert normalize_draw_name("AWALE") == "Awalé"

    def test_canonical_names_keep_accents(self):
        names = set(get_valid_draw_names())
        assert {"Réveil", "Étoile", "Émergence", "Première Heure", "Privilège", "Bénédiction", "Awalé"} <= names
        assert not {"Reveil", "Etoile", "Benediction"} & names

    def test_matching_ignores_accents(self):
        assert fold_draw_name("  Bénédiction ") == "benediction"
        assert draw_names_match("Etoile", "ÉTOILE")
        assert not draw_names_match("Etoile", "Akwaba")
        assert not draw_names_match(None, "Akwaba")

    def test_canonical_draw_name(self):
        assert canonical_draw_name("privilege") == "Privilège"
        assert canonical_draw_name(" Loto ") == "Loto"

    @pytest.mark.parametrize("raw", [None, "", "Loto"])
    def test_unknown(self, raw):
        assert normalize_draw_name(raw) is None
        assert not is_valid_draw_name(raw)


class TestNextDraw:

    def test_same_day(self):
        nxt = get_next_draw(datetime(2024, 6, 3, 9, 0))
        assert nxt['draw_name'] == "Réveil"
        assert nxt['draw_datetime'].startswith("2024-06-03T10:00")

    def test_strictly_after(self):
        assert get_next_draw(datetime(2024, 6, 3, 10, 0))['draw_name'] == "Étoile"

    def test_rolls_to_next_day(self):
        nxt = get_next_draw(datetime(2024, 6, 3, 18, 15))
        assert nxt['draw_name'] == "La Matinale"
        assert nxt['day_of_week'] == "Mardi"

    def test_sunday_evening_wraps_to_monday(self):
        nxt = get_next_draw(datetime(2024, 6, 9, 19, 0))
        assert nxt['draw_name'] == "Réveil"
        assert nxt['draw_datetime'].startswith("2024-06-10")

    def test_aware_reference_converted(self):
        # 09:30 UTC+2 is 07:30 in Abidjan
        paris = pytz.timezone('Europe/Paris')
        nxt = get_next_draw(paris.localize(datetime(2024, 6, 3, 9, 30)))
        assert nxt['draw_name'] == "Réveil"

    def test_default_reference(self):
        nxt = get_next_draw()
        draw_at = datetime.fromisoformat(nxt['draw_datetime'])
        assert draw_at > datetime.now(LOTTERY_TIMEZONE)
