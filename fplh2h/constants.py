"""Constants and mappings for the FPL head-to-head scoring engine."""

from enum import Enum


class Position(str, Enum):
    GK = 'GK'
    DEF = 'DEF'
    MID = 'MID'
    FWD = 'FWD'


class Chip(str, Enum):
    NONE = 'none'
    WILDCARD = 'wildcard'
    FREE_HIT = 'free_hit'
    BENCH_BOOST = 'bench_boost'
    TRIPLE_CAPTAIN = 'triple_captain'


class RoundStatus(str, Enum):
    UPCOMING = 'upcoming'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'


# FPL element_type id -> position
ELEMENT_TYPE_POSITIONS = {
    1: Position.GK,
    2: Position.DEF,
    3: Position.MID,
    4: Position.FWD,
}

# Upstream chip codes (picks endpoint `active_chip`) -> Chip
CHIP_CODES = {
    None: Chip.NONE,
    '': Chip.NONE,
    '3xc': Chip.TRIPLE_CAPTAIN,
    'bboost': Chip.BENCH_BOOST,
    'freehit': Chip.FREE_HIT,
    'wildcard': Chip.WILDCARD,
}

# Squad slots
STARTING_SLOTS = range(1, 12)
BENCH_SLOTS = range(12, 16)
SQUAD_SIZE = 15
STARTING_XI_SIZE = 11

# Hours from the last kickoff until a round is treated as played out
MATCH_DURATION_HOURS = 2.5

# Base scoring table
GOAL_POINTS = {Position.GK: 10, Position.DEF: 6, Position.MID: 5, Position.FWD: 4}
CLEAN_SHEET_POINTS = {Position.GK: 4, Position.DEF: 4, Position.MID: 1, Position.FWD: 0}
DEFENSIVE_CONTRIBUTION_THRESHOLDS = {Position.DEF: 10, Position.MID: 12, Position.FWD: 12}
ASSIST_POINTS = 3
PENALTY_SAVED_POINTS = 5
PENALTY_MISSED_POINTS = -2
YELLOW_CARD_POINTS = -1
RED_CARD_POINTS = -3
OWN_GOAL_POINTS = -2
DEFENSIVE_CONTRIBUTION_POINTS = 2
