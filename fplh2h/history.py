"""Season aggregates over league round scores."""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable

import polars as pl

from .models import RoundScore

logger = logging.getLogger('fplh2h.history')

SCORE_SCHEMA = {'entry_id': pl.Int64, 'round': pl.Int64, 'points': pl.Int64}


@dataclass
class SeasonHistory:
    """Round points and season averages for every manager in a league."""
    points_by_round: Dict[int, Dict[int, int]] = field(default_factory=dict)
    progressive_averages: Dict[int, Dict[int, float]] = field(default_factory=dict)
    final_averages: Dict[int, float] = field(default_factory=dict)

    @property
    def rounds(self) -> list[int]:
        return sorted(self.points_by_round)

    def average_through(self, round_number: int, entry_id: int, default: float) -> float:
        """Season average up to and including ``round_number``, or ``default``."""
        return self.progressive_averages.get(round_number, {}).get(entry_id, default)


def scores_frame(scores: Iterable[RoundScore]) -> pl.DataFrame:
    """
    Build a round score DataFrame.

    Duplicate (entry, round) rows keep the last value.
    """
    rows = [(s.entry_id, s.round, s.points) for s in scores]
    frame = pl.DataFrame(rows, schema=SCORE_SCHEMA, orient='row')
    return frame.unique(subset=['entry_id', 'round'], keep='last', maintain_order=True)


def with_progressive_averages(frame: pl.DataFrame) -> pl.DataFrame:
    """Add ``season_avg``: each manager's mean points through that round."""
    return (
        frame.sort(['entry_id', 'round'])
        .with_columns(pl.lit(1).alias('_played'))
        .with_columns(
            (
                pl.col('points').cum_sum().over('entry_id')
                / pl.col('_played').cum_sum().over('entry_id')
            ).alias('season_avg')
        )
        .drop('_played')
    )


def final_averages(frame: pl.DataFrame) -> Dict[int, float]:
    """Mean points per manager over every recorded round."""
    if frame.is_empty():
        return {}
    averages = frame.group_by('entry_id').agg(pl.col('points').mean().alias('avg'))
    return {row['entry_id']: float(row['avg']) for row in averages.to_dicts()}


def build_season_history(scores: Iterable[RoundScore]) -> SeasonHistory:
    """
    Compute round points, progressive averages and final averages.

    Args:
        scores: Every recorded (manager, round, points) row for the league

    Returns:
        SeasonHistory with plain dict lookups
    """
    frame = scores_frame(scores)
    history = SeasonHistory()

    for row in with_progressive_averages(frame).to_dicts():
        history.points_by_round.setdefault(row['round'], {})[row['entry_id']] = row['points']
        history.progressive_averages.setdefault(row['round'], {})[row['entry_id']] = row['season_avg']

    history.final_averages = final_averages(frame)

    logger.debug(
        f'Season history: {frame.height} round score(s), '
        f'{len(history.final_averages)} manager(s), {len(history.points_by_round)} round(s)'
    )
    return history
