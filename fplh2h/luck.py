"""Head-to-head luck decomposition.

Per round (every match):
    1. Variance luck - how far above/below their own season average each side
       scored; zero-sum per match and therefore per round.
    2. Rank luck - match result minus the win share the manager's league rank
       for the round would have earned; NOT zero-sum.

Per season:
    3. Schedule luck - league average opponent strength minus the strength of
       the opponents actually faced, scaled by matches played; zero-sum.
    4. Chip luck - chips the manager could expect to face minus chips faced,
       scaled by points per chip; zero-sum.

Indexes:
    round  = 0.6 * (variance / 10) + 0.4 * rank
    season = 0.4 * (variance / 10) + 0.3 * rank + 0.2 * (schedule / 5) + 0.1 * (chip / 3)
"""

import logging
from collections import Counter, defaultdict
from typing import Iterable, Mapping, Optional, Sequence

from .config import (
    get_config,
    get_round_luck_weights,
    get_season_luck_divisors,
    get_season_luck_weights,
    get_zero_sum_tolerance,
)
from .constants import Chip
from .exceptions import ZeroSumViolationError
from .history import SeasonHistory, build_season_history
from .models import (
    ChipUsage,
    LeagueLuck,
    LuckComponents,
    MatchResult,
    RoundLuck,
    RoundScore,
    TeamGameweekScore,
)
from .schemas import EngineConfig

logger = logging.getLogger('fplh2h.luck')

WIN = 1.0
DRAW = 0.5
LOSS = 0.0

def match_result(points: int, opponent_points: int) -> float:
    """Result value for the manager scoring ``points``: 1 win, 0.5 draw, 0 loss."""
    if points > opponent_points:
        return WIN
    if points < opponent_points:
        return LOSS
    return DRAW


def build_matches_from_scores(
    pairings: Iterable[tuple[int, int, int]],
    scores: Mapping[tuple[int, int], TeamGameweekScore],
) -> list[MatchResult]:
    """
    Pair head-to-head fixtures with computed net totals.

    Args:
        pairings: (round, entry_1, entry_2) fixtures
        scores: Computed scores keyed by (entry_id, round)

    Returns:
        MatchResults for every pairing where both sides were scored
    """
    matches = []
    for round_number, entry_1, entry_2 in pairings:
        score_1 = scores.get((entry_1, round_number))
        score_2 = scores.get((entry_2, round_number))
        if score_1 is None or score_2 is None:
            missing = [e for e, s in ((entry_1, score_1), (entry_2, score_2)) if s is None]
            logger.warning(f'GW{round_number}: match {entry_1} v {entry_2} skipped, no score for {missing}')
            continue
        matches.append(MatchResult(
            round=round_number,
            entry_1=entry_1,
            points_1=score_1.net_total,
            entry_2=entry_2,
            points_2=score_2.net_total,
        ))
    return matches


def round_rank(round_points: Mapping[int, int], entry_id: int) -> int:
    """1-based rank by points descending; ties go to the lower entry id."""
    ordered = sorted(round_points.items(), key=lambda item: (-item[1], item[0]))
    for index, (other_id, _) in enumerate(ordered, start=1):
        if other_id == entry_id:
            return index
    raise KeyError(entry_id)


def expected_result(rank: int, managers: int) -> float:
    """Share of the league a manager ranked ``rank`` would have beaten."""
    if managers <= 1:
        return DRAW
    return (managers - rank) / (managers - 1)


def round_luck_index(variance_luck: float, rank_luck: float, config: Optional[EngineConfig] = None) -> float:
    """Weighted per-round luck index."""
    config = config or get_config()
    weights = get_round_luck_weights(config)
    return (
        weights['variance'] * (variance_luck / config.round_variance_divisor)
        + weights['rank'] * rank_luck
    )


def season_luck_index(components: LuckComponents, config: Optional[EngineConfig] = None) -> float:
    """Weighted season luck index across all four components."""
    return sum(weighted_season_components(components, config).values())


def weighted_season_components(
    components: LuckComponents,
    config: Optional[EngineConfig] = None,
) -> dict[str, float]:
    """Each component divided by its divisor and multiplied by its weight."""
    weights = get_season_luck_weights(config)
    divisors = get_season_luck_divisors(config)
    values = {
        'variance': components.variance_luck,
        'rank': components.rank_luck,
        'schedule': components.schedule_luck,
        'chip': components.chip_luck,
    }
    return {name: weights[name] * (value / divisors[name]) for name, value in values.items()}


def calculate_round_luck(
    entry_id: int,
    match: MatchResult,
    history: SeasonHistory,
    config: Optional[EngineConfig] = None,
) -> RoundLuck:
    """
    Variance and rank luck for one manager in one match.

    A missing progressive average falls back to the round points, giving
    zero variance for that side.
    """
    opponent_id, points, opponent_points = match.perspective(entry_id)

    your_variance = points - history.average_through(match.round, entry_id, points)
    opponent_variance = opponent_points - history.average_through(match.round, opponent_id, opponent_points)

    round_points = dict(history.points_by_round.get(match.round, {}))
    round_points.setdefault(entry_id, points)
    round_points.setdefault(opponent_id, opponent_points)

    rank = round_rank(round_points, entry_id)
    managers = len(round_points)
    expected = expected_result(rank, managers)
    actual = match_result(points, opponent_points)

    luck = RoundLuck(
        round=match.round,
        opponent_id=opponent_id,
        points=points,
        opponent_points=opponent_points,
        your_variance=your_variance,
        opponent_variance=opponent_variance,
        variance_luck=your_variance - opponent_variance,
        round_rank=rank,
        managers=managers,
        expected=expected,
        actual=actual,
        rank_luck=actual - expected,
    )
    luck.index = round_luck_index(luck.variance_luck, luck.rank_luck, config)
    return luck


def opponent_strength(entry_id: int, matches: Sequence[MatchResult], final_averages: Mapping[int, float]) -> float:
    """Mean final season average of the opponents ``entry_id`` faced."""
    if not matches:
        return 0.0
    total = sum(final_averages.get(m.perspective(entry_id)[0], 0.0) for m in matches)
    return total / len(matches)


def counted_chips(chips: Iterable[ChipUsage], entry_ids: Iterable[int], config: Optional[EngineConfig] = None) -> list[ChipUsage]:
    """Chips that count towards chip luck, limited to league members."""
    config = config or get_config()
    counted = {Chip(name) for name in config.chip_luck_chips}
    members = set(entry_ids)
    return [c for c in chips if c.chip in counted and c.entry_id in members]


def check_zero_sum(
    component: str, scope: str, total: float, tolerance: float
) -> Optional[ZeroSumViolationError]:
    """Return the violation when ``total`` is outside ``tolerance`` of zero."""
    if abs(total) <= tolerance:
        return None
    return ZeroSumViolationError(component, scope, total, tolerance)


def decompose_league(
    entry_ids: Sequence[int],
    matches: Iterable[MatchResult],
    round_scores: Iterable[RoundScore],
    chips: Iterable[ChipUsage] = (),
    config: Optional[EngineConfig] = None,
    strict: bool = True,
) -> LeagueLuck:
    """
    Decompose luck for every manager in a league.

    Args:
        entry_ids: League members
        matches: Head-to-head results; matches where both sides scored 0
            are treated as unplayed and ignored
        round_scores: Every manager's points per round (season averages
            and round ranks come from these)
        chips: Chips played
        config: Engine config (default: get_config())
        strict: Raise on a zero-sum violation instead of only reporting it

    Returns:
        LeagueLuck with per-manager components, sums and any violations

    Raises:
        ZeroSumViolationError: If ``strict`` and a zero-sum check fails
    """
    config = config or get_config()
    tolerance = get_zero_sum_tolerance(config)

    entry_ids = list(entry_ids)
    played = sorted(
        (m for m in matches if m.points_1 > 0 or m.points_2 > 0),
        key=lambda m: (m.round, m.entry_1),
    )
    history = build_season_history(round_scores)

    matches_by_entry: dict[int, list[MatchResult]] = {entry_id: [] for entry_id in entry_ids}
    for match in played:
        for entry_id in (match.entry_1, match.entry_2):
            if entry_id in matches_by_entry:
                matches_by_entry[entry_id].append(match)

    strengths = {
        entry_id: opponent_strength(entry_id, entry_matches, history.final_averages)
        for entry_id, entry_matches in matches_by_entry.items()
    }
    league_strength = sum(strengths.values()) / len(entry_ids) if entry_ids else 0.0

    # A chip only counts when an opponent in the league faced it
    faced_rounds = {
        (entry_id, match.round)
        for entry_id, entry_matches in matches_by_entry.items()
        for match in entry_matches
        if match.perspective(entry_id)[0] in matches_by_entry
    }
    chip_plays = [
        usage for usage in counted_chips(chips, entry_ids, config)
        if (usage.entry_id, usage.round) in faced_rounds
    ]
    chips_by_round: dict[int, set[int]] = defaultdict(set)
    for usage in chip_plays:
        chips_by_round[usage.round].add(usage.entry_id)
    chips_by_entry = Counter(usage.entry_id for usage in chip_plays)

    league = LeagueLuck()

    for entry_id in entry_ids:
        entry_matches = matches_by_entry[entry_id]
        components = LuckComponents(
            entry_id=entry_id,
            season_avg_points=history.final_averages.get(entry_id, 0.0),
        )

        for match in entry_matches:
            luck = calculate_round_luck(entry_id, match, history, config)
            components.rounds.append(luck)
            components.variance_luck += luck.variance_luck
            components.rank_luck += luck.rank_luck

        components.avg_opponent_strength = strengths[entry_id]
        components.league_avg_opponent_strength = league_strength
        components.schedule_luck = (league_strength - strengths[entry_id]) * len(entry_matches)

        components.chips_played = chips_by_entry.get(entry_id, 0)
        components.chips_faced = sum(
            1 for m in entry_matches if m.perspective(entry_id)[0] in chips_by_round.get(m.round, ())
        )
        if len(entry_ids) > 1:
            components.avg_chips_faced = (len(chip_plays) - components.chips_played) / (len(entry_ids) - 1)
        components.chip_luck = (
            (components.avg_chips_faced - components.chips_faced) * config.chip_luck_points_per_chip
        )

        components.season_luck_index = season_luck_index(components, config)
        league.managers[entry_id] = components

    for components in league.managers.values():
        for luck in components.rounds:
            league.round_variance_sums[luck.round] = league.round_variance_sums.get(luck.round, 0.0) + luck.variance_luck
            league.round_rank_sums[luck.round] = league.round_rank_sums.get(luck.round, 0.0) + luck.rank_luck

    league.totals = {
        'variance': sum(m.variance_luck for m in league.managers.values()),
        'rank': sum(m.rank_luck for m in league.managers.values()),
        'schedule': sum(m.schedule_luck for m in league.managers.values()),
        'chip': sum(m.chip_luck for m in league.managers.values()),
    }

    errors = _check_league_zero_sum(league, matches_by_entry, tolerance)
    league.violations = [str(e) for e in errors]

    logger.info(
        f'Luck decomposed for {len(league.managers)} manager(s) over '
        f'{len(league.round_variance_sums)} round(s)'
    )

    for error in errors:
        logger.error(str(error))
    if errors and strict:
        raise errors[0]

    return league


def _check_league_zero_sum(
    league: LeagueLuck,
    matches_by_entry: Mapping[int, Sequence[MatchResult]],
    tolerance: float,
) -> list[ZeroSumViolationError]:
    checks = [
        ('variance', f'round {round_number}', total)
        for round_number, total in sorted(league.round_variance_sums.items())
    ]

    # Schedule luck only balances when every manager played the same number of matches
    if len({len(m) for m in matches_by_entry.values()}) <= 1:
        checks.append(('schedule', 'season', league.totals['schedule']))
    else:
        logger.warning('Uneven match counts; schedule luck is not zero-sum for this league')
    checks.append(('chip', 'season', league.totals['chip']))

    errors = []
    for component, scope, total in checks:
        error = check_zero_sum(component, scope, total, tolerance)
        if error is not None:
            errors.append(error)
    return errors


def format_season_luck(
    components: LuckComponents,
    config: Optional[EngineConfig] = None,
) -> dict[str, float]:
    """
    Display values for a manager's season luck.

    Each weighted component is scaled by 10; the four values sum to
    ``total`` (the season index scaled by 10).
    """
    display = {
        name: round(value * 10, 2)
        for name, value in weighted_season_components(components, config).items()
    }
    display['total'] = round(components.season_luck_index * 10, 2)
    return display


def format_luck(value: float, digits: int = 2) -> str:
    """Signed string for a luck value, e.g. ``+1.25`` or ``-0.40``."""
    rounded = round(value, digits)
    if rounded == 0:
        return f'{0:.{digits}f}'
    return f'{rounded:+.{digits}f}'
