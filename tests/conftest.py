"""Shared fixtures: squads, player scores and performance records."""

import logging

import pytest

from fplh2h.config import clear_config_cache, get_config
from fplh2h.constants import Position
from fplh2h.models import FixtureStatus, PerformanceRecord, PlayerScore, SquadPick

GK, DEF, MID, FWD = Position.GK, Position.DEF, Position.MID, Position.FWD

# Player id == slot. 4-4-2 with bench GK, DEF, MID, FWD
LAYOUT_442 = [GK, DEF, DEF, DEF, DEF, MID, MID, MID, MID, FWD, FWD, GK, DEF, MID, FWD]


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logging.getLogger('fplh2h').handlers = []


@pytest.fixture
def config():
    clear_config_cache()
    yield get_config()
    clear_config_cache()


@pytest.fixture
def make_squad():
    """Factory for a 15-man pick set (player ids equal slots)."""

    def _make(layout=None, captain=10, vice=6, entry_id=1, round_number=1, triple=False):
        layout = layout or LAYOUT_442
        picks = []
        for slot, position in enumerate(layout, start=1):
            multiplier = 1 if slot <= 11 else 0
            if slot == captain:
                multiplier = 3 if triple else 2
            picks.append(SquadPick(
                entry_id=entry_id,
                round=round_number,
                player_id=slot,
                slot=slot,
                position=position,
                multiplier=multiplier,
                is_captain=slot == captain,
                is_vice_captain=slot == vice,
            ))
        return picks

    return _make


@pytest.fixture
def make_scores():
    """Factory for player scores: every player 2 pts / 90 mins unless overridden."""

    def _make(picks, points=None, minutes=None, missing=(), unfinished=()):
        points = points or {}
        minutes = minutes or {}
        scores = {}
        for pick in picks:
            if pick.player_id in missing:
                continue
            pts = points.get(pick.player_id, 2)
            scores[pick.player_id] = PlayerScore(
                player_id=pick.player_id,
                position=pick.position,
                points=pts,
                base_points=pts,
                minutes=minutes.get(pick.player_id, 90),
                fixtures_finished=pick.player_id not in unfinished,
                found_in_stats=True,
            )
        return scores

    return _make


@pytest.fixture
def make_record():
    """Factory for a single PerformanceRecord."""

    def _make(player_id, fixture_id=100, minutes=90, base=2, bonus=0, bps=0, round_number=1):
        return PerformanceRecord(
            player_id=player_id,
            round=round_number,
            fixture_id=fixture_id,
            minutes=minutes,
            base_score=base,
            bonus=bonus,
            bps=bps,
        )

    return _make


@pytest.fixture
def make_fixture():
    """Factory for a FixtureStatus."""

    def _make(fixture_id=100, started=True, finished=True, finished_provisional=None, kickoff_time=None, round_number=1):
        return FixtureStatus(
            fixture_id=fixture_id,
            round=round_number,
            started=started,
            finished=finished,
            finished_provisional=finished if finished_provisional is None else finished_provisional,
            kickoff_time=kickoff_time,
        )

    return _make
