"""Base points table for a single player performance."""

from typing import Dict, Tuple

from .constants import (
    ASSIST_POINTS,
    CLEAN_SHEET_POINTS,
    DEFENSIVE_CONTRIBUTION_POINTS,
    DEFENSIVE_CONTRIBUTION_THRESHOLDS,
    GOAL_POINTS,
    OWN_GOAL_POINTS,
    PENALTY_MISSED_POINTS,
    PENALTY_SAVED_POINTS,
    RED_CARD_POINTS,
    YELLOW_CARD_POINTS,
    Position,
)


def score_performance(stats: dict, position: Position) -> Tuple[int, Dict[str, int]]:
    """
    Score one player's raw stat counts for a fixture.

    Scoring:
        - Minutes: 2 pts for 60+, 1 pt for 1-59
        - Goals: GK 10, DEF 6, MID 5, FWD 4
        - Assists: 3 pts each
        - Clean sheet (60+ minutes only): GK/DEF 4, MID 1, FWD 0
        - Goals conceded (GK/DEF): -1 per 2
        - Saves (GK): +1 per 3
        - Penalty saved: 5 | Penalty missed: -2
        - Yellow card: -1 | Red card: -3 | Own goal: -2
        - Defensive contribution: +2 once DEF reach 10, MID/FWD reach 12
        - Bonus: added as given (0 while provisional)

    Args:
        stats: Stat counts keyed by upstream identifier (missing/None means 0)
        position: Player position

    Returns:
        Tuple of (points, breakdown) where breakdown only lists non-zero lines
    """
    points = 0
    breakdown = {}

    minutes = stats.get('minutes', 0) or 0
    if minutes >= 60:
        minutes_pts = 2
    elif minutes > 0:
        minutes_pts = 1
    else:
        minutes_pts = 0
    if minutes_pts:
        breakdown['minutes'] = minutes_pts
    points += minutes_pts

    goals = stats.get('goals_scored', 0) or 0
    goal_pts = goals * GOAL_POINTS[position]
    if goal_pts:
        breakdown['goals_scored'] = goal_pts
    points += goal_pts

    assists = stats.get('assists', 0) or 0
    assist_pts = assists * ASSIST_POINTS
    if assist_pts:
        breakdown['assists'] = assist_pts
    points += assist_pts

    clean_sheets = stats.get('clean_sheets', 0) or 0
    if minutes >= 60 and clean_sheets > 0:
        cs_pts = CLEAN_SHEET_POINTS[position]
        if cs_pts:
            breakdown['clean_sheets'] = cs_pts
        points += cs_pts

    # Conceded applies regardless of minutes
    if position in (Position.GK, Position.DEF):
        conceded = stats.get('goals_conceded', 0) or 0
        conceded_pts = -(conceded // 2)
        if conceded_pts:
            breakdown['goals_conceded'] = conceded_pts
        points += conceded_pts

    if position == Position.GK:
        saves = stats.get('saves', 0) or 0
        save_pts = saves // 3
        if save_pts:
            breakdown['saves'] = save_pts
        points += save_pts

    for key, per_event in (
        ('penalties_saved', PENALTY_SAVED_POINTS),
        ('penalties_missed', PENALTY_MISSED_POINTS),
        ('yellow_cards', YELLOW_CARD_POINTS),
        ('red_cards', RED_CARD_POINTS),
        ('own_goals', OWN_GOAL_POINTS),
    ):
        line_pts = (stats.get(key, 0) or 0) * per_event
        if line_pts:
            breakdown[key] = line_pts
        points += line_pts

    threshold = DEFENSIVE_CONTRIBUTION_THRESHOLDS.get(position)
    contribution = stats.get('defensive_contribution', 0) or 0
    if threshold is not None and contribution >= threshold:
        breakdown['defensive_contribution'] = DEFENSIVE_CONTRIBUTION_POINTS
        points += DEFENSIVE_CONTRIBUTION_POINTS

    bonus = stats.get('bonus', 0) or 0
    if bonus:
        breakdown['bonus'] = bonus
    points += bonus

    return points, breakdown
