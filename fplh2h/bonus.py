"""Bonus point allocation from BPS scores.

Bonus is awarded per fixture to the three best BPS positions using
competition ranking: every player in a tied group receives the bonus for the
position the group starts at, and the group consumes as many positions as it
has members.

    BPS 40, 35, 30          -> 3, 2, 1
    BPS 40, 40, 30          -> 3, 3, 1
    BPS 40, 40, 40, 30      -> 3, 3, 3, 0
    BPS 40, 35, 35, 30      -> 3, 2, 2, 0
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Sequence

from .models import FixtureStatus, PerformanceRecord

logger = logging.getLogger('fplh2h.bonus')

DEFAULT_TIERS = (3, 2, 1)


@dataclass(frozen=True)
class BonusAward:
    """Bonus for one player in one fixture."""
    player_id: int
    fixture_id: int
    bps: int
    bonus: int
    provisional: bool


def rank_bonus(bps_scores: Mapping[int, int], tiers: Sequence[int] = DEFAULT_TIERS) -> dict[int, int]:
    """
    Allocate bonus for one fixture from ``player_id -> bps``.

    Args:
        bps_scores: BPS per eligible player (players who featured)
        tiers: Bonus for ranking positions 1, 2, 3...

    Returns:
        Dict mapping every player in ``bps_scores`` to 0..tiers[0]
    """
    bonus = {player_id: 0 for player_id in bps_scores}

    groups: dict[int, list[int]] = defaultdict(list)
    for player_id, bps in bps_scores.items():
        groups[bps].append(player_id)

    position = 1
    for bps in sorted(groups, reverse=True):
        if position > len(tiers):
            break
        award = tiers[position - 1]
        for player_id in groups[bps]:
            bonus[player_id] = award
        position += len(groups[bps])

    return bonus


def calculate_fixture_bonus(
    records: Iterable[PerformanceRecord],
    tiers: Sequence[int] = DEFAULT_TIERS,
) -> dict[int, int]:
    """
    Allocate bonus for the records of a single fixture.

    Only players with minutes > 0 are ranked; everyone else receives 0.
    """
    records = list(records)
    eligible = {r.player_id: r.bps for r in records if r.minutes > 0}
    awarded = rank_bonus(eligible, tiers)
    return {r.player_id: awarded.get(r.player_id, 0) for r in records}


def calculate_round_bonus(
    records: Iterable[PerformanceRecord],
    fixtures: Mapping[int, FixtureStatus],
    tiers: Sequence[int] = DEFAULT_TIERS,
    use_official: bool = True,
) -> dict[tuple[int, int], BonusAward]:
    """
    Allocate bonus for every started fixture in a round.

    Finished fixtures whose records already carry officially awarded bonus
    keep the official values when ``use_official`` is set. All other started
    fixtures are ranked from BPS; the result is provisional until the fixture
    is finished.

    Args:
        records: Performance records for the round (any number of fixtures)
        fixtures: Fixture id -> status
        tiers: Bonus per ranking position
        use_official: Prefer upstream bonus once a fixture is finished

    Returns:
        Dict keyed by (player_id, fixture_id)
    """
    by_fixture: dict[int, list[PerformanceRecord]] = defaultdict(list)
    for record in records:
        if record.fixture_id is not None:
            by_fixture[record.fixture_id].append(record)

    awards: dict[tuple[int, int], BonusAward] = {}

    for fixture_id, fixture_records in by_fixture.items():
        fixture: Optional[FixtureStatus] = fixtures.get(fixture_id)
        if fixture is None or not fixture.started:
            continue

        official = fixture.finished and any(r.bonus > 0 for r in fixture_records)
        if official and use_official:
            allocated = {r.player_id: r.bonus for r in fixture_records}
        else:
            allocated = calculate_fixture_bonus(fixture_records, tiers)

        provisional = not fixture.finished
        for record in fixture_records:
            awards[(record.player_id, fixture_id)] = BonusAward(
                player_id=record.player_id,
                fixture_id=fixture_id,
                bps=record.bps,
                bonus=allocated[record.player_id],
                provisional=provisional,
            )

        logger.debug(
            f'Fixture {fixture_id}: {"official" if official and use_official else "BPS"} bonus '
            f'{sorted(((a, p) for p, a in allocated.items() if a), reverse=True)}'
            f'{" (provisional)" if provisional else ""}'
        )

    return awards
