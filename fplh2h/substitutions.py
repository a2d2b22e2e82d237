"""Automatic substitutions for starters who did not play.

Official rules:
1. Only starters with 0 minutes whose fixtures are played out are replaced
2. The bench is tried in priority order (lowest slot first)
3. Bench players who did not play are skipped; one whose fixture is not
   played out yet holds the scan until it is
4. A goalkeeper can only be replaced by the bench goalkeeper
5. The resulting XI must satisfy the formation limits; bench players that
   would break it are skipped and stay on the bench
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, List, Mapping, Optional, Sequence

from .constants import Position
from .models import AutoSub, PlayerScore, SquadPick

logger = logging.getLogger('fplh2h.substitutions')


@dataclass
class SubstitutionResult:
    """Effective XI after automatic substitutions."""
    effective_xi: List[SquadPick] = field(default_factory=list)
    bench: List[SquadPick] = field(default_factory=list)
    auto_subs: List[AutoSub] = field(default_factory=list)

    @property
    def points_gained(self) -> int:
        return sum(sub.points_gained for sub in self.auto_subs)


def count_positions(positions: Iterable[Position]) -> Counter:
    """Count players per position."""
    return Counter(positions)


def is_valid_formation(
    counts: Mapping[Position, int],
    limits: Mapping[Position, tuple[int, int]],
) -> bool:
    """
    Check position counts against (min, max) limits.

    Args:
        counts: Starters per position
        limits: Position -> (min, max)

    Returns:
        True if every position is within its limits
    """
    return all(low <= counts.get(pos, 0) <= high for pos, (low, high) in limits.items())


def _formation_after_swap(
    xi: Sequence[SquadPick],
    player_out: SquadPick,
    player_in: SquadPick,
) -> Counter:
    counts = count_positions(p.position for p in xi if p.player_id != player_out.player_id)
    counts[player_in.position] += 1
    return counts


def needs_substitution(pick: SquadPick, score: Optional[PlayerScore]) -> bool:
    """
    Whether a starter is eligible to be replaced.

    Players without performance data are never replaced since their minutes
    are unknown.
    """
    if pick.multiplier == 0 or score is None or not score.found_in_stats:
        return False
    return score.minutes == 0 and score.fixtures_finished


def apply_auto_subs(
    starters: Sequence[SquadPick],
    bench: Sequence[SquadPick],
    player_scores: Mapping[int, PlayerScore],
    limits: Mapping[Position, tuple[int, int]],
) -> SubstitutionResult:
    """
    Apply automatic substitutions to a starting XI.

    Args:
        starters: Slots 1-11
        bench: Slots 12-15 (any order; sorted by slot here)
        player_scores: Player id -> computed round points and minutes
        limits: Formation limits for the effective XI

    Returns:
        SubstitutionResult with the effective XI and substitutions made
    """
    xi = sorted(starters, key=lambda p: p.slot)
    available = sorted(bench, key=lambda p: p.slot)
    result = SubstitutionResult()

    for index, starter in enumerate(list(xi)):
        score = player_scores.get(starter.player_id)
        if not needs_substitution(starter, score):
            continue

        replacement = None
        for candidate in available:
            candidate_score = player_scores.get(candidate.player_id)
            if candidate_score is None or not candidate_score.found_in_stats:
                continue
            if (starter.position == Position.GK) != (candidate.position == Position.GK):
                continue
            if not is_valid_formation(_formation_after_swap(xi, starter, candidate), limits):
                logger.debug(
                    f'Bench player {candidate.player_id} skipped for {starter.player_id}: '
                    f'formation would be invalid'
                )
                continue
            if candidate_score.minutes == 0:
                if not candidate_score.fixtures_finished:
                    logger.debug(
                        f'Bench player {candidate.player_id} has not played yet; '
                        f'holding substitution for {starter.player_id}'
                    )
                    break
                continue
            replacement = candidate
            break

        if replacement is None:
            logger.debug(f'No valid substitute for starter {starter.player_id}; 0 points stand')
            continue

        xi[index] = replacement
        available.remove(replacement)
        sub = AutoSub(
            player_out=starter.player_id,
            player_in=replacement.player_id,
            points_out=score.points,
            points_in=player_scores[replacement.player_id].points,
        )
        result.auto_subs.append(sub)
        logger.debug(
            f'Auto-sub: {sub.player_out} -> {sub.player_in} ({sub.points_gained:+d} pts)'
        )

    result.effective_xi = xi
    result.bench = available
    return result
