"""Data models for the FPL head-to-head scoring engine."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from .constants import STARTING_SLOTS, Chip, Position, RoundStatus


@dataclass(frozen=True)
class PerformanceRecord:
    """One player's performance in one fixture of a round.

    A player with two fixtures in a round has two records; a player with no
    fixture has a single record with ``fixture_id=None``.
    """
    player_id: int
    round: int
    fixture_id: Optional[int]
    team_id: Optional[int] = None
    minutes: int = 0
    goals_scored: int = 0
    assists: int = 0
    clean_sheets: int = 0
    goals_conceded: int = 0
    own_goals: int = 0
    penalties_saved: int = 0
    penalties_missed: int = 0
    yellow_cards: int = 0
    red_cards: int = 0
    saves: int = 0
    bps: int = 0
    base_score: int = 0  # excludes bonus
    bonus: int = 0  # officially awarded bonus, 0 until confirmed
    provisional: bool = False


@dataclass(frozen=True)
class SquadPick:
    """One player picked by a manager for a round."""
    entry_id: int
    round: int
    player_id: int
    slot: int
    position: Position
    multiplier: int = 1
    is_captain: bool = False
    is_vice_captain: bool = False

    @property
    def is_starter(self) -> bool:
        return self.slot in STARTING_SLOTS


@dataclass(frozen=True)
class FixtureStatus:
    """Status of a single fixture."""
    fixture_id: int
    round: int
    started: bool = False
    finished: bool = False
    finished_provisional: bool = False
    kickoff_time: Optional[datetime] = None
    team_h: Optional[int] = None
    team_a: Optional[int] = None

    @property
    def minutes_final(self) -> bool:
        """Minutes can no longer change once play has ended."""
        return self.finished or self.finished_provisional


@dataclass
class PlayerScore:
    """Container for one player's round points."""
    player_id: int
    position: Position
    points: int = 0
    base_points: int = 0
    bonus: int = 0
    bonus_is_provisional: bool = False
    minutes: int = 0
    fixtures_finished: bool = True
    found_in_stats: bool = False
    data_notes: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class AutoSub:
    """A bench player brought into the effective XI."""
    player_out: int
    player_in: int
    points_out: int
    points_in: int

    @property
    def points_gained(self) -> int:
        return self.points_in - self.points_out


@dataclass
class TeamGameweekScore:
    """A manager's verified score breakdown for one round."""
    entry_id: int
    round: int
    starting_xi_total: int = 0
    captain_bonus: int = 0
    bench_boost_total: int = 0
    auto_sub_total: int = 0
    gross_total: int = 0
    transfer_cost: int = 0
    net_total: int = 0
    auto_subs: List[AutoSub] = field(default_factory=list)
    active_chip: Chip = Chip.NONE
    round_status: RoundStatus = RoundStatus.COMPLETED
    captain_id: Optional[int] = None
    captain_multiplier: int = 1
    effective_xi: List[int] = field(default_factory=list)
    missing_players: List[int] = field(default_factory=list)
    player_scores: Dict[int, PlayerScore] = field(default_factory=dict)

    @property
    def is_complete(self) -> bool:
        """True when every picked player had performance data."""
        return not self.missing_players


@dataclass(frozen=True)
class MatchResult:
    """A head-to-head match between two managers in one round."""
    round: int
    entry_1: int
    points_1: int
    entry_2: int
    points_2: int

    @property
    def winner(self) -> Optional[int]:
        if self.points_1 > self.points_2:
            return self.entry_1
        if self.points_2 > self.points_1:
            return self.entry_2
        return None

    def involves(self, entry_id: int) -> bool:
        return entry_id in (self.entry_1, self.entry_2)

    def perspective(self, entry_id: int) -> tuple[int, int, int]:
        """Return (opponent_id, points, opponent_points) for ``entry_id``."""
        if entry_id == self.entry_1:
            return self.entry_2, self.points_1, self.points_2
        return self.entry_1, self.points_2, self.points_1


@dataclass(frozen=True)
class ChipUsage:
    """A chip played by a manager in a round."""
    entry_id: int
    round: int
    chip: Chip


@dataclass
class RoundLuck:
    """Per-round luck for one manager."""
    round: int
    opponent_id: int
    points: int
    opponent_points: int
    your_variance: float = 0.0
    opponent_variance: float = 0.0
    variance_luck: float = 0.0
    round_rank: int = 0
    managers: int = 0
    expected: float = 0.0
    actual: float = 0.0
    rank_luck: float = 0.0
    index: float = 0.0


@dataclass
class LuckComponents:
    """Per-season luck decomposition for one manager."""
    entry_id: int
    season_avg_points: float = 0.0
    variance_luck: float = 0.0
    rank_luck: float = 0.0
    schedule_luck: float = 0.0
    chip_luck: float = 0.0
    season_luck_index: float = 0.0
    avg_opponent_strength: float = 0.0
    league_avg_opponent_strength: float = 0.0
    chips_played: int = 0
    chips_faced: int = 0
    avg_chips_faced: float = 0.0
    rounds: List[RoundLuck] = field(default_factory=list)


@dataclass
class LeagueLuck:
    """Luck decomposition for every manager in a league."""
    managers: Dict[int, LuckComponents] = field(default_factory=dict)
    round_variance_sums: Dict[int, float] = field(default_factory=dict)
    round_rank_sums: Dict[int, float] = field(default_factory=dict)
    totals: Dict[str, float] = field(default_factory=dict)
    violations: List[str] = field(default_factory=list)

    def ranked(self) -> List[LuckComponents]:
        """Managers sorted by season luck index, luckiest first."""
        return sorted(
            self.managers.values(), key=lambda m: m.season_luck_index, reverse=True
        )


@dataclass(frozen=True)
class RoundScore:
    """A manager's points for one round as recorded in league history."""
    entry_id: int
    round: int
    points: int
