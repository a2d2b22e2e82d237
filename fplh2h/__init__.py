from .constants import Chip, Position, RoundStatus
from .models import (
    PerformanceRecord,
    SquadPick,
    FixtureStatus,
    PlayerScore,
    AutoSub,
    TeamGameweekScore,
    MatchResult,
    ChipUsage,
    RoundScore,
    RoundLuck,
    LuckComponents,
    LeagueLuck,
)
from .exceptions import (
    EngineError,
    MissingPicksError,
    InvariantViolationError,
    ScoreMismatchError,
    ZeroSumViolationError,
)
from .scoring import score_performance
from .bonus import rank_bonus, calculate_fixture_bonus, calculate_round_bonus
from .substitutions import apply_auto_subs, is_valid_formation
from .team_score import calculate_team_score, score_players, resolve_captain, verify_official_total
from .reconciler import (
    RoundData,
    ManagerRound,
    LeagueScoreFailure,
    determine_round_status,
    score_team_round,
    score_league_round,
)
from .luck import (
    match_result,
    build_matches_from_scores,
    decompose_league,
    format_season_luck,
    format_luck,
)

__all__ = [
    # Enums
    'Chip',
    'Position',
    'RoundStatus',
    # Models
    'PerformanceRecord',
    'SquadPick',
    'FixtureStatus',
    'PlayerScore',
    'AutoSub',
    'TeamGameweekScore',
    'MatchResult',
    'ChipUsage',
    'RoundScore',
    'RoundLuck',
    'LuckComponents',
    'LeagueLuck',
    # Errors
    'EngineError',
    'MissingPicksError',
    'InvariantViolationError',
    'ScoreMismatchError',
    'ZeroSumViolationError',
    # Scoring
    'score_performance',
    'rank_bonus',
    'calculate_fixture_bonus',
    'calculate_round_bonus',
    'apply_auto_subs',
    'is_valid_formation',
    'calculate_team_score',
    'score_players',
    'resolve_captain',
    'verify_official_total',
    # Live vs final
    'RoundData',
    'ManagerRound',
    'LeagueScoreFailure',
    'determine_round_status',
    'score_team_round',
    'score_league_round',
    # Luck
    'match_result',
    'build_matches_from_scores',
    'decompose_league',
    'format_season_luck',
    'format_luck',
]
