"""Team score calculation for one manager and round.

Formula:
    gross = starting XI + captain bonus + bench boost + auto-sub swing
    net   = gross - transfer cost

The starting XI total counts the eleven as picked; the auto-sub swing
(incoming minus outgoing points) turns it into the effective XI total.
"""

import logging
from typing import Iterable, Mapping, Optional, Sequence

from .bonus import BonusAward
from .config import get_captain_multiplier, get_config, get_formation_limits
from .constants import BENCH_SLOTS, Chip, RoundStatus
from .exceptions import MissingPicksError, ScoreMismatchError
from .models import FixtureStatus, PerformanceRecord, PlayerScore, SquadPick, TeamGameweekScore
from .schemas import EngineConfig
from .substitutions import apply_auto_subs

logger = logging.getLogger('fplh2h.team_score')


def index_records(records: Iterable[PerformanceRecord]) -> dict[int, list[PerformanceRecord]]:
    """Build the player id -> performance records lookup for one round."""
    by_player: dict[int, list[PerformanceRecord]] = {}
    for record in records:
        by_player.setdefault(record.player_id, []).append(record)
    return by_player


def score_player(
    pick: SquadPick,
    records: Sequence[PerformanceRecord],
    bonus_awards: Optional[Mapping[tuple[int, int], BonusAward]] = None,
    fixtures: Optional[Mapping[int, FixtureStatus]] = None,
) -> PlayerScore:
    """
    Combine a player's records for the round into one PlayerScore.

    Args:
        pick: The squad pick being scored
        records: The player's performance records (empty if missing)
        bonus_awards: Computed bonus keyed by (player_id, fixture_id); when
            None the records' own bonus is used
        fixtures: Fixture statuses; when None every fixture is treated as
            played out

    Returns:
        PlayerScore (``found_in_stats`` False when no records exist)
    """
    result = PlayerScore(player_id=pick.player_id, position=pick.position)

    if not records:
        result.fixtures_finished = False
        result.data_notes.append(f'No performance record for player {pick.player_id}')
        return result

    result.found_in_stats = True
    for record in records:
        award = None
        if bonus_awards is not None and record.fixture_id is not None:
            award = bonus_awards.get((record.player_id, record.fixture_id))

        result.base_points += record.base_score
        result.minutes += record.minutes
        if award is not None:
            result.bonus += award.bonus
            result.bonus_is_provisional = result.bonus_is_provisional or award.provisional
        else:
            result.bonus += record.bonus

        if fixtures is not None and record.fixture_id is not None:
            fixture = fixtures.get(record.fixture_id)
            if fixture is None or not fixture.minutes_final:
                result.fixtures_finished = False

    result.points = result.base_points + result.bonus
    return result


def score_players(
    picks: Sequence[SquadPick],
    records_by_player: Mapping[int, Sequence[PerformanceRecord]],
    bonus_awards: Optional[Mapping[tuple[int, int], BonusAward]] = None,
    fixtures: Optional[Mapping[int, FixtureStatus]] = None,
) -> dict[int, PlayerScore]:
    """Score every picked player."""
    return {
        pick.player_id: score_player(
            pick, records_by_player.get(pick.player_id, []), bonus_awards, fixtures
        )
        for pick in picks
    }


def resolve_captain(
    picks: Sequence[SquadPick],
    player_scores: Mapping[int, PlayerScore],
) -> Optional[SquadPick]:
    """
    Return the pick whose points get the captain multiplier.

    The vice-captain takes over once the captain's fixtures are played out
    with 0 minutes. A captain without performance data keeps the armband.
    """
    captain = next((p for p in picks if p.is_captain), None)
    vice = next((p for p in picks if p.is_vice_captain), None)
    if captain is None:
        return vice

    score = player_scores.get(captain.player_id)
    if score is not None and score.found_in_stats and score.minutes == 0 and score.fixtures_finished:
        return vice
    return captain


def calculate_team_score(
    entry_id: int,
    round_number: int,
    picks: Sequence[SquadPick],
    player_scores: Mapping[int, PlayerScore],
    active_chip: Chip = Chip.NONE,
    transfer_cost: int = 0,
    round_status: RoundStatus = RoundStatus.COMPLETED,
    config: Optional[EngineConfig] = None,
) -> TeamGameweekScore:
    """
    Calculate a manager's verified total for one round.

    Args:
        entry_id: Manager id
        round_number: Gameweek
        picks: All 15 squad picks
        player_scores: Player id -> round points (from score_players)
        active_chip: Chip played this round
        transfer_cost: Points deducted for extra transfers
        round_status: Status of the round the inputs came from
        config: Engine config (default: get_config())

    Returns:
        TeamGameweekScore

    Raises:
        MissingPicksError: If ``picks`` is empty
    """
    if not picks:
        raise MissingPicksError(entry_id, round_number)

    config = config or get_config()
    limits = get_formation_limits(config)

    starters = [p for p in picks if p.is_starter]
    bench = [p for p in picks if p.slot in BENCH_SLOTS]

    def points(pick: SquadPick) -> int:
        score = player_scores.get(pick.player_id)
        return score.points if score is not None else 0

    result = TeamGameweekScore(
        entry_id=entry_id,
        round=round_number,
        transfer_cost=transfer_cost,
        active_chip=active_chip,
        round_status=round_status,
        player_scores=dict(player_scores),
        missing_players=sorted(
            p.player_id for p in picks
            if p.player_id not in player_scores or not player_scores[p.player_id].found_in_stats
        ),
    )

    result.starting_xi_total = sum(points(p) for p in starters if p.multiplier > 0)

    if active_chip == Chip.BENCH_BOOST:
        result.bench_boost_total = sum(points(p) for p in bench)
        result.effective_xi = [p.player_id for p in sorted(starters, key=lambda p: p.slot)]
    else:
        subs = apply_auto_subs(starters, bench, player_scores, limits)
        result.auto_subs = subs.auto_subs
        result.auto_sub_total = subs.points_gained
        result.effective_xi = [p.player_id for p in subs.effective_xi]

    captain = resolve_captain(picks, player_scores)
    if captain is not None:
        multiplier = get_captain_multiplier(active_chip == Chip.TRIPLE_CAPTAIN, config)
        result.captain_id = captain.player_id
        result.captain_multiplier = multiplier
        result.captain_bonus = (multiplier - 1) * points(captain)

    result.gross_total = (
        result.starting_xi_total
        + result.captain_bonus
        + result.bench_boost_total
        + result.auto_sub_total
    )
    result.net_total = result.gross_total - result.transfer_cost

    if result.missing_players:
        logger.warning(
            f'Entry {entry_id} GW{round_number}: no performance data for '
            f'{len(result.missing_players)} player(s) {result.missing_players}, counted as 0'
        )

    return result


def verify_official_total(
    score: TeamGameweekScore,
    official_total: int,
    gross: bool = False,
) -> None:
    """
    Compare a computed score with the officially reported total.

    A mismatch is a defect in the inputs or the algorithm; it is logged and
    raised, never adjusted.

    Args:
        score: Computed score
        official_total: Reported total
        gross: Compare against ``gross_total`` (upstream round points are
            reported before transfer cost) instead of ``net_total``

    Raises:
        ScoreMismatchError: If the totals differ
    """
    computed = score.gross_total if gross else score.net_total
    if computed != official_total:
        error = ScoreMismatchError(score.entry_id, score.round, computed, official_total)
        logger.error(str(error))
        raise error
    logger.debug(f'Entry {score.entry_id} GW{score.round}: verified {computed} pts')
