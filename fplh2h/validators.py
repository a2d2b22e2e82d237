"""Validation functions for squads, player scores and team scores."""

from collections import Counter
from typing import Mapping, Optional, Sequence

from .config import get_config, get_formation_limits
from .constants import BENCH_SLOTS, SQUAD_SIZE, STARTING_SLOTS, STARTING_XI_SIZE, Position
from .models import PerformanceRecord, PlayerScore, SquadPick, TeamGameweekScore
from .schemas import EngineConfig
from .scoring import score_performance
from .substitutions import count_positions, is_valid_formation


def validate_squad_picks(
    picks: Sequence[SquadPick],
    config: Optional[EngineConfig] = None,
) -> list[str]:
    """
    Validate a manager's pick set for one round.

    Checks:
    - 15 picks in distinct slots 1-15, no duplicate players
    - Exactly one captain and one vice-captain, not the same player
    - The bench goalkeeper slot holds a goalkeeper
    - The starting XI satisfies the formation limits

    Args:
        picks: SquadPicks for one manager and round
        config: Engine config (default: get_config())

    Returns:
        List of validation error messages (empty if valid)
    """
    config = config or get_config()
    errors = []

    if not picks:
        return ['No picks']

    label = f'Entry {picks[0].entry_id} GW{picks[0].round}'

    if len(picks) != SQUAD_SIZE:
        errors.append(f'{label} has {len(picks)} picks (expected {SQUAD_SIZE})')

    slot_counts = Counter(p.slot for p in picks)
    duplicate_slots = sorted(slot for slot, count in slot_counts.items() if count > 1)
    if duplicate_slots:
        errors.append(f'{label} has duplicate slots: {duplicate_slots}')
    bad_slots = sorted(p.slot for p in picks if p.slot not in STARTING_SLOTS and p.slot not in BENCH_SLOTS)
    if bad_slots:
        errors.append(f'{label} has slots outside 1-15: {bad_slots}')

    player_counts = Counter(p.player_id for p in picks)
    duplicates = sorted(pid for pid, count in player_counts.items() if count > 1)
    if duplicates:
        errors.append(f'{label} picks players more than once: {duplicates}')

    captains = [p for p in picks if p.is_captain]
    vices = [p for p in picks if p.is_vice_captain]
    if len(captains) != 1:
        errors.append(f'{label} has {len(captains)} captains (expected 1)')
    if len(vices) != 1:
        errors.append(f'{label} has {len(vices)} vice-captains (expected 1)')
    if any(p.is_captain and p.is_vice_captain for p in picks):
        errors.append(f'{label} has the same player as captain and vice-captain')

    bench_gk = next((p for p in picks if p.slot == config.bench_goalkeeper_slot), None)
    if bench_gk is not None and bench_gk.position != Position.GK:
        errors.append(
            f'{label} bench slot {config.bench_goalkeeper_slot} holds a {bench_gk.position.value}, not a GK'
        )

    starters = [p for p in picks if p.is_starter]
    if not is_valid_formation(count_positions(p.position for p in starters), get_formation_limits(config)):
        formation = dict(count_positions(p.position.value for p in starters))
        errors.append(f'{label} starting XI has an invalid formation: {formation}')

    return errors


def validate_effective_xi(
    effective_xi: Sequence[SquadPick],
    config: Optional[EngineConfig] = None,
) -> list[str]:
    """
    Check an effective XI after substitutions.

    Returns:
        List of error messages (empty if valid)
    """
    errors = []
    if len(effective_xi) != STARTING_XI_SIZE:
        errors.append(f'Effective XI has {len(effective_xi)} players (expected {STARTING_XI_SIZE})')
    counts = count_positions(p.position for p in effective_xi)
    if not is_valid_formation(counts, get_formation_limits(config)):
        errors.append(f'Effective XI has an invalid formation: {dict((k.value, v) for k, v in counts.items())}')
    return errors


def validate_base_score(record: PerformanceRecord, position: Position) -> list[str]:
    """
    Cross-check a record's reported base score against its stat counts.

    Stats the record does not carry (e.g. defensive contribution) can cause
    a legitimate difference, so mismatches are warnings.

    Returns:
        List of warning messages (empty if the scores agree)
    """
    stats = {
        'minutes': record.minutes,
        'goals_scored': record.goals_scored,
        'assists': record.assists,
        'clean_sheets': record.clean_sheets,
        'goals_conceded': record.goals_conceded,
        'own_goals': record.own_goals,
        'penalties_saved': record.penalties_saved,
        'penalties_missed': record.penalties_missed,
        'yellow_cards': record.yellow_cards,
        'red_cards': record.red_cards,
        'saves': record.saves,
    }
    expected, breakdown = score_performance(stats, position)
    if expected != record.base_score:
        return [
            f'Player {record.player_id} fixture {record.fixture_id}: reported base score '
            f'{record.base_score} != {expected} from stats {breakdown}'
        ]
    return []


def validate_player_score(score: PlayerScore) -> list[str]:
    """
    Check that a player's round score is reasonable and internally consistent.

    Returns:
        List of warning messages (empty if no issues)
    """
    warnings = []

    if score.points != score.base_points + score.bonus:
        warnings.append(
            f'Player {score.player_id}: points {score.points} != base {score.base_points} + bonus {score.bonus}'
        )
    if not 0 <= score.bonus <= 6:
        warnings.append(f'Player {score.player_id}: bonus {score.bonus} outside 0-6')
    if score.points > 40:
        warnings.append(f'Player {score.player_id} scored {score.points} pts (unusually high - check inputs)')
    elif score.points < -10:
        warnings.append(f'Player {score.player_id} scored {score.points} pts (unusually low - check inputs)')

    return warnings


def check_team_score_invariants(score: TeamGameweekScore) -> list[str]:
    """
    Check the identities a TeamGameweekScore must satisfy.

    - gross = starting XI + captain bonus + bench boost + auto-sub swing
    - net = gross - transfer cost
    - bench boost and auto-subs are mutually exclusive
    - auto_sub_total matches the recorded substitutions

    Returns:
        List of error messages (empty if consistent)
    """
    errors = []
    label = f'Entry {score.entry_id} GW{score.round}'

    expected_gross = score.starting_xi_total + score.captain_bonus + score.bench_boost_total + score.auto_sub_total
    if score.gross_total != expected_gross:
        errors.append(f'{label}: gross {score.gross_total} != component sum {expected_gross}')

    if score.net_total != score.gross_total - score.transfer_cost:
        errors.append(
            f'{label}: net {score.net_total} != gross {score.gross_total} - transfer cost {score.transfer_cost}'
        )

    if score.transfer_cost < 0:
        errors.append(f'{label}: negative transfer cost {score.transfer_cost}')

    if score.bench_boost_total and score.auto_subs:
        errors.append(f'{label}: bench boost and auto-subs both applied')

    subs_total = sum(sub.points_gained for sub in score.auto_subs)
    if subs_total != score.auto_sub_total:
        errors.append(f'{label}: auto-sub total {score.auto_sub_total} != substitutions {subs_total}')

    return errors


def validate_league_scores(
    scores: Mapping[int, TeamGameweekScore],
) -> tuple[list[str], list[str]]:
    """
    Validate every team score in a league round.

    Returns:
        Tuple of (errors, warnings)
        - errors: Broken score identities
        - warnings: Player-level oddities and incomplete inputs
    """
    errors: list[str] = []
    warnings: list[str] = []

    for entry_id, score in scores.items():
        errors.extend(check_team_score_invariants(score))
        for player_score in score.player_scores.values():
            warnings.extend(validate_player_score(player_score))
        if score.missing_players:
            warnings.append(
                f'Entry {entry_id} GW{score.round}: no performance data for {score.missing_players}'
            )

    return errors, warnings
