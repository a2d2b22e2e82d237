"""Live versus final score reconciliation.

Round states:
- upcoming / in_progress: inputs come from the live feed. Bonus is ranked from
  BPS for every started fixture (provisional until the fixture is finished),
  and substitutions only consider starters whose fixtures are played out.
- completed: inputs come from the persisted store with official bonus
  included; substitutions and totals are computed directly.

Both paths return the same TeamGameweekScore shape.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .bonus import BonusAward, calculate_round_bonus
from .config import get_config
from .constants import MATCH_DURATION_HOURS, Chip, RoundStatus
from .exceptions import EngineError, MissingPicksError
from .logging_config import get_round_logger
from .models import FixtureStatus, PerformanceRecord, SquadPick, TeamGameweekScore
from .schemas import EngineConfig
from .team_score import calculate_team_score, index_records, score_players

logger = logging.getLogger('fplh2h.reconciler')


@dataclass
class RoundData:
    """Everything shared by all managers for one round."""
    round: int
    status: RoundStatus
    records: List[PerformanceRecord] = field(default_factory=list)
    fixtures: Dict[int, FixtureStatus] = field(default_factory=dict)


@dataclass
class ManagerRound:
    """One manager's picks, chip and transfer cost for a round."""
    entry_id: int
    picks: List[SquadPick] = field(default_factory=list)
    active_chip: Chip = Chip.NONE
    transfer_cost: int = 0
    official_points: Optional[int] = None  # upstream round points, before transfer cost


@dataclass
class PreparedRound:
    """Lookup maps built once per invocation and shared across managers."""
    round: int
    status: RoundStatus
    records_by_player: Dict[int, List[PerformanceRecord]]
    fixtures: Optional[Dict[int, FixtureStatus]]
    bonus_awards: Optional[Dict[tuple[int, int], BonusAward]]


@dataclass(frozen=True)
class LeagueScoreFailure:
    """A manager that could not be scored in a league fan-out."""
    entry_id: int
    round: int
    reason: str
    missing_picks: bool = False


@dataclass
class LeagueRoundScores:
    """Scores for every manager in a league for one round."""
    round: int
    status: RoundStatus
    scores: Dict[int, TeamGameweekScore] = field(default_factory=dict)
    failures: Dict[int, LeagueScoreFailure] = field(default_factory=dict)


def round_finished_at(fixtures: Iterable[FixtureStatus]) -> Optional[datetime]:
    """Latest kickoff plus match duration, or None if no kickoff is known."""
    kickoffs = [f.kickoff_time for f in fixtures if f.kickoff_time is not None]
    if not kickoffs:
        return None
    return max(kickoffs) + timedelta(hours=MATCH_DURATION_HOURS)


def determine_round_status(
    fixtures: Sequence[FixtureStatus],
    now: Optional[datetime] = None,
    buffer_hours: Optional[float] = None,
) -> RoundStatus:
    """
    Determine whether a round is upcoming, in progress or completed.

    A round is completed once every fixture is finished and ``buffer_hours``
    have passed since the round finished, giving upstream time to settle
    official bonus and substitutions.

    Args:
        fixtures: All fixtures in the round
        now: Current time (default: utcnow); naive datetimes are treated as UTC
        buffer_hours: Settling time (default: config.completion_buffer_hours)
    """
    if buffer_hours is None:
        buffer_hours = get_config().completion_buffer_hours
    now = _as_utc(now or datetime.now(timezone.utc))

    if not fixtures or not any(f.started for f in fixtures):
        return RoundStatus.UPCOMING
    if not all(f.finished for f in fixtures):
        return RoundStatus.IN_PROGRESS

    finished_at = round_finished_at(fixtures)
    if finished_at is not None and now < _as_utc(finished_at) + timedelta(hours=buffer_hours):
        return RoundStatus.IN_PROGRESS
    return RoundStatus.COMPLETED


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def prepare_round(round_data: RoundData, config: Optional[EngineConfig] = None) -> PreparedRound:
    """Build the per-round lookup maps (and live bonus) once."""
    config = config or get_config()
    records_by_player = index_records(round_data.records)

    if round_data.status == RoundStatus.COMPLETED:
        return PreparedRound(
            round=round_data.round,
            status=round_data.status,
            records_by_player=records_by_player,
            fixtures=None,
            bonus_awards=None,
        )

    awards = calculate_round_bonus(round_data.records, round_data.fixtures, config.bonus_tiers)
    provisional = sum(1 for a in awards.values() if a.provisional and a.bonus)
    logger.info(
        f'GW{round_data.round} ({round_data.status.value}): bonus for '
        f'{len({a.fixture_id for a in awards.values()})} started fixture(s), '
        f'{provisional} provisional award(s)'
    )
    return PreparedRound(
        round=round_data.round,
        status=round_data.status,
        records_by_player=records_by_player,
        fixtures=dict(round_data.fixtures),
        bonus_awards=awards,
    )


def score_manager_round(
    manager: Optional[ManagerRound],
    prepared: PreparedRound,
    entry_id: Optional[int] = None,
    config: Optional[EngineConfig] = None,
) -> TeamGameweekScore:
    """
    Score one manager for a prepared round.

    Raises:
        MissingPicksError: If the manager has no pick set for the round
    """
    if manager is None or not manager.picks:
        raise MissingPicksError(entry_id if manager is None else manager.entry_id, prepared.round)

    log = get_round_logger('fplh2h.reconciler', manager.entry_id, prepared.round)

    player_scores = score_players(
        manager.picks,
        prepared.records_by_player,
        bonus_awards=prepared.bonus_awards,
        fixtures=prepared.fixtures,
    )
    score = calculate_team_score(
        entry_id=manager.entry_id,
        round_number=prepared.round,
        picks=manager.picks,
        player_scores=player_scores,
        active_chip=manager.active_chip,
        transfer_cost=manager.transfer_cost,
        round_status=prepared.status,
        config=config,
    )
    log.debug(
        f'{score.net_total} pts (XI {score.starting_xi_total}, C +{score.captain_bonus}, '
        f'BB {score.bench_boost_total}, subs {score.auto_sub_total:+d}, -{score.transfer_cost})'
    )
    return score


def score_team_round(
    manager: Optional[ManagerRound],
    round_data: RoundData,
    config: Optional[EngineConfig] = None,
) -> TeamGameweekScore:
    """Score a single manager's round from raw round data."""
    return score_manager_round(manager, prepare_round(round_data, config), config=config)


def score_league_round(
    entry_ids: Sequence[int],
    managers: Mapping[int, Optional[ManagerRound]],
    round_data: RoundData,
    config: Optional[EngineConfig] = None,
) -> LeagueRoundScores:
    """
    Score every manager in a league for one round.

    Managers are computed independently; a failure for one manager is
    recorded in ``failures`` and does not stop the others.
    """
    prepared = prepare_round(round_data, config)
    result = LeagueRoundScores(round=round_data.round, status=round_data.status)

    for entry_id in entry_ids:
        try:
            result.scores[entry_id] = score_manager_round(
                managers.get(entry_id), prepared, entry_id=entry_id, config=config
            )
        except EngineError as e:
            logger.warning(f'GW{round_data.round}: entry {entry_id} not scored: {e}')
            result.failures[entry_id] = LeagueScoreFailure(
                entry_id=entry_id,
                round=round_data.round,
                reason=str(e),
                missing_picks=isinstance(e, MissingPicksError),
            )

    logger.info(
        f'GW{round_data.round}: scored {len(result.scores)}/{len(entry_ids)} managers'
    )
    return result
