"""Tests for mapping upstream payloads into engine entities."""

from datetime import datetime, timezone

import pytest

from fplh2h.adapters import (
    bps_from_fixtures,
    chip_from_code,
    chips_from_history,
    entry_ids_from_history,
    fixtures_from_response,
    manager_round_from_picks,
    matches_from_history,
    positions_from_bootstrap,
    records_from_live,
    round_data_from_payloads,
    round_scores_from_history,
)
from fplh2h.constants import Chip, Position, RoundStatus
from fplh2h.schemas import Bootstrap, FixturesResponse, LeagueHistoryFile, LiveEvent, PicksResponse
from fplh2h.utils import validate_payload

LAYOUT = [1, 2, 2, 2, 2, 3, 3, 3, 3, 4, 4, 1, 2, 3, 4]


@pytest.fixture
def bootstrap():
    return Bootstrap.model_validate({
        'elements': [
            {'id': pid, 'element_type': element_type, 'team': 1 + pid % 2, 'web_name': f'P{pid}'}
            for pid, element_type in enumerate(LAYOUT, start=1)
        ]
    })


@pytest.fixture
def fixtures_payload():
    return validate_payload(
        [
            {
                'id': 100,
                'event': 7,
                'started': True,
                'finished': True,
                'finished_provisional': True,
                'kickoff_time': '2025-10-04T14:00:00Z',
                'team_h': 1,
                'team_a': 2,
                'stats': [
                    {'identifier': 'bps', 'h': [{'element': 1, 'value': 31}], 'a': [{'element': 2, 'value': 25}]},
                    {'identifier': 'goals_scored', 'h': [], 'a': []},
                ],
            },
            {'id': 200, 'event': 7, 'started': False, 'kickoff_time': '2025-10-05T16:30:00Z'},
        ],
        FixturesResponse,
    )


def explain(fixture, **stats):
    points = {'minutes': 2, 'goals_scored': 4, 'bonus': 1}
    return {
        'fixture': fixture,
        'stats': [
            {'identifier': name, 'value': value, 'points': points.get(name, 0) * value if name != 'minutes' else 2}
            for name, value in stats.items()
        ],
    }


class TestChipCodes:
    """Tests for chip code mapping."""

    def test_upstream_codes(self):
        """Test picks endpoint codes."""
        assert chip_from_code('3xc') == Chip.TRIPLE_CAPTAIN
        assert chip_from_code('bboost') == Chip.BENCH_BOOST
        assert chip_from_code('freehit') == Chip.FREE_HIT
        assert chip_from_code('wildcard') == Chip.WILDCARD
        assert chip_from_code(None) == Chip.NONE

    def test_chip_names(self):
        """Test engine chip names are accepted."""
        assert chip_from_code('bench_boost') == Chip.BENCH_BOOST

    def test_unknown(self):
        """Test unknown codes raise."""
        with pytest.raises(ValueError):
            chip_from_code('manager')


class TestFixtures:
    """Tests for fixture mapping."""

    def test_statuses(self, fixtures_payload):
        """Test fixture flags and kickoff time."""
        fixtures = fixtures_from_response(fixtures_payload)
        assert fixtures[100].finished
        assert fixtures[100].kickoff_time == datetime(2025, 10, 4, 14, 0, tzinfo=timezone.utc)
        assert not fixtures[200].started

    def test_bps(self, fixtures_payload):
        """Test BPS is read from the fixture stat blocks."""
        assert bps_from_fixtures(fixtures_payload) == {(1, 100): 31, (2, 100): 25}


class TestLiveRecords:
    """Tests for live performance records."""

    def test_one_record_per_fixture(self, fixtures_payload):
        """Test a double gameweek produces two records."""
        live = LiveEvent.model_validate({
            'elements': [{
                'id': 1,
                'stats': {'minutes': 180, 'bps': 40},
                'explain': [explain(100, minutes=90, goals_scored=1, bonus=1), explain(200, minutes=90)],
            }]
        })

        records = records_from_live(
            live, 7, fixtures=fixtures_from_response(fixtures_payload), bps=bps_from_fixtures(fixtures_payload)
        )

        assert [r.fixture_id for r in records] == [100, 200]
        first, second = records
        assert first.base_score == 6
        assert first.bonus == 1
        assert first.goals_scored == 1
        assert first.bps == 31
        assert not first.provisional
        assert second.base_score == 2
        assert second.provisional

    def test_blank_player(self):
        """Test a player with no fixture gets a single record."""
        live = LiveEvent.model_validate({'elements': [{'id': 5, 'stats': {'total_points': 0}, 'explain': []}]})
        records = records_from_live(live, 7)
        assert len(records) == 1
        assert records[0].fixture_id is None
        assert records[0].minutes == 0

    def test_base_score_derived_without_total(self):
        """Test the scoring table fills in a missing total."""
        live = LiveEvent.model_validate({
            'elements': [{'id': 5, 'stats': {'minutes': 90, 'goals_scored': 1, 'bonus': 2}, 'explain': []}]
        })
        records = records_from_live(live, 7, positions={5: Position.MID})
        assert records[0].base_score == 7
        assert records[0].bonus == 2


class TestPicks:
    """Tests for pick set mapping."""

    def picks_payload(self, **overrides):
        payload = {
            'active_chip': 'bboost',
            'entry_history': {'event': 7, 'points': 64, 'event_transfers_cost': 4},
            'picks': [
                {
                    'element': pid,
                    'position': pid,
                    'multiplier': 2 if pid == 10 else (1 if pid <= 11 else 0),
                    'is_captain': pid == 10,
                    'is_vice_captain': pid == 6,
                }
                for pid in range(1, 16)
            ],
        }
        payload.update(overrides)
        return PicksResponse.model_validate(payload)

    def test_manager_round(self, bootstrap):
        """Test picks, chip, transfer cost and official points."""
        manager = manager_round_from_picks(99, 7, self.picks_payload(), positions_from_bootstrap(bootstrap))

        assert len(manager.picks) == 15
        assert manager.picks[0].position == Position.GK
        assert manager.picks[9].is_captain
        assert manager.active_chip == Chip.BENCH_BOOST
        assert manager.transfer_cost == 4
        assert manager.official_points == 64

    def test_unknown_player(self):
        """Test a pick without a known position is rejected."""
        with pytest.raises(ValueError):
            manager_round_from_picks(99, 7, self.picks_payload(), {})

    def test_duplicate_slots_rejected(self):
        """Test the schema rejects duplicate squad slots."""
        payload = {'picks': [{'element': 1, 'position': 1}, {'element': 2, 'position': 1}]}
        with pytest.raises(ValueError):
            validate_payload(payload, PicksResponse)


class TestRoundData:
    """Tests for building shared round inputs."""

    def test_status_from_fixtures(self, fixtures_payload, bootstrap):
        """Test the status reflects an unstarted fixture."""
        live = LiveEvent.model_validate({'elements': [{'id': 1, 'explain': [explain(100, minutes=90)]}]})

        round_data = round_data_from_payloads(
            7, live, fixtures_payload, bootstrap, now=datetime(2025, 10, 4, 18, 0, tzinfo=timezone.utc)
        )

        assert round_data.status == RoundStatus.IN_PROGRESS
        assert set(round_data.fixtures) == {100, 200}
        assert round_data.records[0].team_id == 2


class TestLeagueHistory:
    """Tests for league history mapping."""

    def history(self):
        return LeagueHistoryFile.model_validate({
            'matches': [
                {'event': 1, 'entry_1_id': 11, 'entry_1_points': 60, 'entry_2_id': 12, 'entry_2_points': 50},
            ],
            'round_scores': [{'entry_id': 11, 'event': 1, 'points': 60}],
            'chips': [
                {'entry_id': 11, 'event': 1, 'chip_name': '3xc'},
                {'entry_id': 12, 'event': 2, 'chip_name': 'manager'},
            ],
        })

    def test_matches(self):
        """Test match rows map to MatchResult."""
        match = matches_from_history(self.history())[0]
        assert (match.entry_1, match.points_1, match.entry_2, match.points_2) == (11, 60, 12, 50)
        assert match.winner == 11

    def test_round_scores(self):
        """Test round score rows."""
        assert round_scores_from_history(self.history())[0].points == 60

    def test_chips_skip_unknown(self):
        """Test unknown chips are skipped."""
        chips = chips_from_history(self.history())
        assert [(c.entry_id, c.chip) for c in chips] == [(11, Chip.TRIPLE_CAPTAIN)]

    def test_entry_ids_from_matches(self):
        """Test members default to everyone in a match."""
        assert entry_ids_from_history(self.history()) == [11, 12]

    def test_extra_field_rejected(self):
        """Test the history file schema is strict."""
        with pytest.raises(ValueError):
            validate_payload({'matches': [], 'league': 5}, LeagueHistoryFile)
