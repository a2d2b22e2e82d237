"""Map validated upstream payloads into engine entities.

Everything loosely shaped stops here: the engine only ever sees the typed
records from fplh2h.models and the lookup maps built below.
"""

import logging
from datetime import datetime
from typing import Iterable, Mapping, Optional

from .constants import CHIP_CODES, ELEMENT_TYPE_POSITIONS, Chip, Position
from .models import ChipUsage, FixtureStatus, MatchResult, PerformanceRecord, RoundScore, SquadPick
from .reconciler import ManagerRound, RoundData, determine_round_status
from .schemas import (
    Bootstrap,
    FixturesResponse,
    LeagueHistoryFile,
    LiveElement,
    LiveEvent,
    PicksResponse,
)
from .scoring import score_performance

logger = logging.getLogger('fplh2h.adapters')

# Explain identifiers copied onto PerformanceRecord as raw counts
STAT_FIELDS = (
    'minutes',
    'goals_scored',
    'assists',
    'clean_sheets',
    'goals_conceded',
    'own_goals',
    'penalties_saved',
    'penalties_missed',
    'yellow_cards',
    'red_cards',
    'saves',
)


def chip_from_code(code: Optional[str]) -> Chip:
    """
    Map an upstream chip code (``3xc``, ``bboost``...) or chip name to Chip.

    Raises:
        ValueError: If the code is not a known chip
    """
    if code in CHIP_CODES:
        return CHIP_CODES[code]
    try:
        return Chip(code)
    except ValueError:
        raise ValueError(f'Unknown chip code: {code!r}') from None


def positions_from_bootstrap(bootstrap: Bootstrap) -> dict[int, Position]:
    """Player id -> position."""
    return {e.id: ELEMENT_TYPE_POSITIONS[e.element_type] for e in bootstrap.elements}


def teams_from_bootstrap(bootstrap: Bootstrap) -> dict[int, int]:
    """Player id -> club id (players without a club are left out)."""
    return {e.id: e.team for e in bootstrap.elements if e.team is not None}


def fixtures_from_response(response: FixturesResponse) -> dict[int, FixtureStatus]:
    """Fixture id -> FixtureStatus."""
    return {
        row.id: FixtureStatus(
            fixture_id=row.id,
            round=row.event or 0,
            started=bool(row.started),
            finished=row.finished,
            finished_provisional=row.finished_provisional,
            kickoff_time=row.kickoff_time,
            team_h=row.team_h,
            team_a=row.team_a,
        )
        for row in response.items
    }


def bps_from_fixtures(response: FixturesResponse) -> dict[tuple[int, int], int]:
    """(player id, fixture id) -> BPS from the fixtures' ``bps`` stat blocks."""
    bps = {}
    for row in response.items:
        for stat in row.stats:
            if stat.identifier != 'bps':
                continue
            for value in stat.h + stat.a:
                bps[(value.element, row.id)] = value.value
    return bps


def _element_records(
    element: LiveElement,
    round_number: int,
    fixtures: Mapping[int, FixtureStatus],
    bps: Mapping[tuple[int, int], int],
    team_id: Optional[int],
    position: Optional[Position],
) -> list[PerformanceRecord]:
    if not element.explain:
        stats = element.stats
        if stats.total_points is not None:
            base_score = stats.total_points - stats.bonus
        elif position is not None:
            base_score, _ = score_performance(stats.model_dump(exclude={'bonus'}), position)
        else:
            base_score = 0
        return [PerformanceRecord(
            player_id=element.id,
            round=round_number,
            fixture_id=None,
            team_id=team_id,
            bps=stats.bps,
            base_score=base_score,
            bonus=stats.bonus,
            **{name: getattr(stats, name) for name in STAT_FIELDS},
        )]

    records = []
    for explain in element.explain:
        values = {stat.identifier: stat.value for stat in explain.stats}
        points = {stat.identifier: stat.points for stat in explain.stats}
        fixture = fixtures.get(explain.fixture)
        fixture_bps = bps.get((element.id, explain.fixture))
        if fixture_bps is None:
            fixture_bps = values.get('bps', element.stats.bps if len(element.explain) == 1 else 0)

        records.append(PerformanceRecord(
            player_id=element.id,
            round=round_number,
            fixture_id=explain.fixture,
            team_id=team_id,
            bps=fixture_bps,
            base_score=sum(p for identifier, p in points.items() if identifier != 'bonus'),
            bonus=points.get('bonus', 0),
            provisional=fixture is None or not fixture.finished,
            **{name: values.get(name, 0) for name in STAT_FIELDS},
        ))
    return records


def records_from_live(
    live: LiveEvent,
    round_number: int,
    fixtures: Optional[Mapping[int, FixtureStatus]] = None,
    bps: Optional[Mapping[tuple[int, int], int]] = None,
    teams: Optional[Mapping[int, int]] = None,
    positions: Optional[Mapping[int, Position]] = None,
) -> list[PerformanceRecord]:
    """
    Build performance records from the live event payload.

    One record is produced per fixture in a player's ``explain`` block. A
    player without fixtures gets a single record with ``fixture_id=None``;
    if the payload has no total for them, the base score is derived from the
    stat counts via the scoring table (requires ``positions``).

    Args:
        live: Validated live event payload
        round_number: Gameweek
        fixtures: Fixture statuses (used for the provisional flag)
        bps: Per-fixture BPS from bps_from_fixtures
        teams: Player id -> club id
        positions: Player id -> position
    """
    fixtures = fixtures or {}
    bps = bps or {}
    teams = teams or {}
    positions = positions or {}

    records = []
    for element in live.elements:
        records.extend(_element_records(
            element, round_number, fixtures, bps, teams.get(element.id), positions.get(element.id)
        ))
    logger.debug(f'GW{round_number}: {len(records)} performance record(s) from {len(live.elements)} element(s)')
    return records


def manager_round_from_picks(
    entry_id: int,
    round_number: int,
    response: PicksResponse,
    positions: Mapping[int, Position],
) -> ManagerRound:
    """
    Build a manager's picks, chip and transfer cost from a picks payload.

    Raises:
        ValueError: If a picked player has no known position or the chip
            code is unknown
    """
    picks = []
    for row in response.picks:
        position = positions.get(row.element)
        if position is None:
            raise ValueError(f'Entry {entry_id} GW{round_number}: no position for player {row.element}')
        picks.append(SquadPick(
            entry_id=entry_id,
            round=round_number,
            player_id=row.element,
            slot=row.position,
            position=position,
            multiplier=row.multiplier,
            is_captain=row.is_captain,
            is_vice_captain=row.is_vice_captain,
        ))

    return ManagerRound(
        entry_id=entry_id,
        picks=sorted(picks, key=lambda p: p.slot),
        active_chip=chip_from_code(response.active_chip),
        transfer_cost=response.entry_history.event_transfers_cost,
        official_points=response.entry_history.points if response.entry_history.event else None,
    )


def round_data_from_payloads(
    round_number: int,
    live: LiveEvent,
    fixtures_response: FixturesResponse,
    bootstrap: Optional[Bootstrap] = None,
    now: Optional[datetime] = None,
) -> RoundData:
    """Build the shared round inputs, determining the round status from the fixtures."""
    fixtures = {
        fixture_id: status
        for fixture_id, status in fixtures_from_response(fixtures_response).items()
        if status.round in (0, round_number)
    }
    teams = teams_from_bootstrap(bootstrap) if bootstrap else {}
    positions = positions_from_bootstrap(bootstrap) if bootstrap else {}

    status = determine_round_status(list(fixtures.values()), now=now)
    records = records_from_live(
        live,
        round_number,
        fixtures=fixtures,
        bps=bps_from_fixtures(fixtures_response),
        teams=teams,
        positions=positions,
    )
    return RoundData(round=round_number, status=status, records=records, fixtures=fixtures)


def matches_from_history(history: LeagueHistoryFile) -> list[MatchResult]:
    """Head-to-head results from a league history file."""
    return [
        MatchResult(
            round=row.event,
            entry_1=row.entry_1_id,
            points_1=row.entry_1_points,
            entry_2=row.entry_2_id,
            points_2=row.entry_2_points,
        )
        for row in history.matches
    ]


def round_scores_from_history(history: LeagueHistoryFile) -> list[RoundScore]:
    """Round points per manager from a league history file."""
    return [RoundScore(entry_id=row.entry_id, round=row.event, points=row.points) for row in history.round_scores]


def chips_from_history(history: LeagueHistoryFile) -> list[ChipUsage]:
    """Chips played; unknown chip codes are skipped with a warning."""
    usages = []
    for row in history.chips:
        try:
            chip = chip_from_code(row.chip_name)
        except ValueError:
            logger.warning(f'Entry {row.entry_id} GW{row.event}: unknown chip {row.chip_name!r} ignored')
            continue
        if chip != Chip.NONE:
            usages.append(ChipUsage(entry_id=row.entry_id, round=row.event, chip=chip))
    return usages


def entry_ids_from_history(history: LeagueHistoryFile) -> list[int]:
    """League members: the explicit list, or everyone appearing in a match."""
    if history.entry_ids:
        return list(history.entry_ids)
    ids: set[int] = set()
    for row in history.matches:
        ids.update((row.entry_1_id, row.entry_2_id))
    return sorted(ids)


def round_scores_from_matches(matches: Iterable[MatchResult]) -> list[RoundScore]:
    """Derive round points from match results when no round scores are stored."""
    scores = []
    for match in matches:
        scores.append(RoundScore(entry_id=match.entry_1, round=match.round, points=match.points_1))
        scores.append(RoundScore(entry_id=match.entry_2, round=match.round, points=match.points_2))
    return scores
