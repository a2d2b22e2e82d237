"""Unit tests for automatic substitutions."""

from dataclasses import replace

from fplh2h.config import get_formation_limits
from fplh2h.constants import Position
from fplh2h.substitutions import apply_auto_subs, count_positions, is_valid_formation

GK, DEF, MID, FWD = Position.GK, Position.DEF, Position.MID, Position.FWD

# 3-5-2 with bench GK, MID, DEF, FWD
LAYOUT_352 = [GK, DEF, DEF, DEF, MID, MID, MID, MID, MID, FWD, FWD, GK, MID, DEF, FWD]


def split(picks):
    return [p for p in picks if p.is_starter], [p for p in picks if not p.is_starter]


class TestFormation:
    """Tests for the formation predicate."""

    def test_442_is_valid(self, make_squad, config):
        """Test a 4-4-2 satisfies the formation limits."""
        starters, _ = split(make_squad())
        assert is_valid_formation(count_positions(p.position for p in starters), get_formation_limits(config))

    def test_two_defenders_invalid(self, make_squad, config):
        """Test fewer than three defenders is invalid."""
        starters, _ = split(make_squad())
        counts = count_positions(p.position for p in starters if p.slot not in (2, 3))
        assert not is_valid_formation(counts, get_formation_limits(config))


class TestAutoSubs:
    """Tests for SubstitutionEngine rules."""

    def test_outfield_sub_in_bench_order(self, make_squad, make_scores, config):
        """Test a 0-minute defender is replaced by the first playing bench outfielder."""
        starters, bench = split(make_squad())
        scores = make_scores(starters + bench, points={3: 0, 13: 5}, minutes={3: 0})

        result = apply_auto_subs(starters, bench, scores, get_formation_limits(config))

        assert len(result.auto_subs) == 1
        sub = result.auto_subs[0]
        assert (sub.player_out, sub.player_in) == (3, 13)
        assert sub.points_gained == 5
        assert 13 in [p.player_id for p in result.effective_xi]
        assert 3 not in [p.player_id for p in result.effective_xi]

    def test_goalkeeper_replaced_by_bench_goalkeeper(self, make_squad, make_scores, config):
        """Test a 0-minute goalkeeper can only be replaced by the bench goalkeeper."""
        starters, bench = split(make_squad())
        scores = make_scores(starters + bench, points={1: 0, 12: 3}, minutes={1: 0})

        result = apply_auto_subs(starters, bench, scores, get_formation_limits(config))

        assert [(s.player_out, s.player_in) for s in result.auto_subs] == [(1, 12)]

    def test_goalkeeper_not_replaced_by_outfielder(self, make_squad, make_scores, config):
        """Test no sub when the bench goalkeeper also did not play."""
        starters, bench = split(make_squad())
        scores = make_scores(starters + bench, points={1: 0, 12: 0}, minutes={1: 0, 12: 0})

        result = apply_auto_subs(starters, bench, scores, get_formation_limits(config))

        assert result.auto_subs == []

    def test_bench_goalkeeper_never_replaces_outfielder(self, make_squad, make_scores, config):
        """Test an outfield starter stays when only the bench goalkeeper played."""
        starters, bench = split(make_squad())
        scores = make_scores(
            starters + bench,
            points={10: 0, 13: 0, 14: 0, 15: 0},
            minutes={10: 0, 13: 0, 14: 0, 15: 0},
        )

        result = apply_auto_subs(starters, bench, scores, get_formation_limits(config))

        assert result.auto_subs == []

    def test_formation_invalid_candidate_skipped(self, make_squad, make_scores, config):
        """Test a bench player who would break the formation stays benched."""
        starters, bench = split(make_squad(layout=LAYOUT_352))
        scores = make_scores(starters + bench, points={2: 0, 13: 8, 14: 4}, minutes={2: 0})

        result = apply_auto_subs(starters, bench, scores, get_formation_limits(config))

        assert [(s.player_out, s.player_in) for s in result.auto_subs] == [(2, 14)]
        assert 13 in [p.player_id for p in result.bench]

    def test_no_valid_substitute_leaves_zero(self, make_squad, make_scores, config):
        """Test a starter stays when every bench option is a goalkeeper or breaks the formation."""
        starters, bench = split(make_squad(layout=LAYOUT_352))
        scores = make_scores(
            starters + bench, points={2: 0, 14: 0}, minutes={2: 0, 14: 0}
        )

        result = apply_auto_subs(starters, bench, scores, get_formation_limits(config))

        assert result.auto_subs == []
        assert 2 in [p.player_id for p in result.effective_xi]

    def test_unused_bench_player_skipped(self, make_squad, make_scores, config):
        """Test bench players with 0 minutes are passed over."""
        starters, bench = split(make_squad())
        scores = make_scores(starters + bench, points={6: 0, 13: 0, 14: 6}, minutes={6: 0, 13: 0})

        result = apply_auto_subs(starters, bench, scores, get_formation_limits(config))

        assert [(s.player_out, s.player_in) for s in result.auto_subs] == [(6, 14)]

    def test_waits_for_bench_player_yet_to_play(self, make_squad, make_scores, config):
        """Test no lower-priority sub is made while the first bench option can still play."""
        starters, bench = split(make_squad())
        scores = make_scores(
            starters + bench, points={3: 0, 13: 0, 14: 6}, minutes={3: 0, 13: 0}, unfinished={13}
        )

        result = apply_auto_subs(starters, bench, scores, get_formation_limits(config))

        assert result.auto_subs == []
        assert 3 in [p.player_id for p in result.effective_xi]

    def test_waiting_bench_player_comes_on_once_played(self, make_squad, make_scores, config):
        """Test the held substitution resolves to the first bench player after their match."""
        starters, bench = split(make_squad())
        live = make_scores(
            starters + bench, points={3: 0, 13: 0, 14: 6}, minutes={3: 0, 13: 0}, unfinished={13}
        )
        final = make_scores(starters + bench, points={3: 0, 13: 4, 14: 6}, minutes={3: 0})
        limits = get_formation_limits(config)

        assert apply_auto_subs(starters, bench, live, limits).auto_subs == []
        result = apply_auto_subs(starters, bench, final, limits)

        assert [(s.player_out, s.player_in) for s in result.auto_subs] == [(3, 13)]

    def test_formation_invalid_unplayed_candidate_does_not_hold(self, make_squad, make_scores, config):
        """Test a bench player who could never come on is passed over even before playing."""
        starters, bench = split(make_squad(layout=LAYOUT_352))
        scores = make_scores(
            starters + bench, points={2: 0, 13: 0, 14: 5}, minutes={2: 0, 13: 0}, unfinished={13}
        )

        result = apply_auto_subs(starters, bench, scores, get_formation_limits(config))

        assert [(s.player_out, s.player_in) for s in result.auto_subs] == [(2, 14)]

    def test_unfinished_fixture_not_substituted(self, make_squad, make_scores, config):
        """Test a starter whose fixture is not played out is left alone."""
        starters, bench = split(make_squad())
        scores = make_scores(starters + bench, points={3: 0}, minutes={3: 0}, unfinished={3})

        result = apply_auto_subs(starters, bench, scores, get_formation_limits(config))

        assert result.auto_subs == []

    def test_zero_multiplier_not_substituted(self, make_squad, make_scores, config):
        """Test a starter with multiplier 0 is never substituted."""
        picks = make_squad()
        picks[2] = replace(picks[2], multiplier=0)
        starters, bench = split(picks)
        scores = make_scores(starters + bench, points={3: 0}, minutes={3: 0})

        result = apply_auto_subs(starters, bench, scores, get_formation_limits(config))

        assert result.auto_subs == []

    def test_missing_player_not_substituted(self, make_squad, make_scores, config):
        """Test a starter without performance data is not substituted."""
        starters, bench = split(make_squad())
        scores = make_scores(starters + bench, missing={4})

        result = apply_auto_subs(starters, bench, scores, get_formation_limits(config))

        assert result.auto_subs == []

    def test_multiple_subs_use_each_bench_player_once(self, make_squad, make_scores, config):
        """Test two absent starters consume bench players in order and the XI stays valid."""
        starters, bench = split(make_squad())
        scores = make_scores(starters + bench, points={7: 0, 8: 0}, minutes={7: 0, 8: 0})

        result = apply_auto_subs(starters, bench, scores, get_formation_limits(config))

        assert [(s.player_out, s.player_in) for s in result.auto_subs] == [(7, 13), (8, 14)]
        counts = count_positions(p.position for p in result.effective_xi)
        assert is_valid_formation(counts, get_formation_limits(config))
        assert len(result.effective_xi) == 11
