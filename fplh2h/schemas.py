"""Pydantic schemas for upstream JSON payloads and engine configuration."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

VALID_POSITIONS = {'GK', 'DEF', 'MID', 'FWD'}
VALID_CHIPS = {'wildcard', 'free_hit', 'bench_boost', 'triple_captain'}


# ============ LIVE EVENT (event/{gw}/live/) ============


class ExplainStat(BaseModel):
    """One scoring line in a live element's per-fixture explanation."""

    identifier: str
    points: int = 0
    value: int = 0

    class Config:
        extra = 'ignore'


class ExplainFixture(BaseModel):
    """Per-fixture breakdown for a live element."""

    fixture: int
    stats: list[ExplainStat] = Field(default_factory=list)

    class Config:
        extra = 'ignore'


class LiveStats(BaseModel):
    """Round-level totals for a live element."""

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
    defensive_contribution: int = 0
    bonus: int = 0
    bps: int = 0
    total_points: int | None = None

    class Config:
        extra = 'ignore'


class LiveElement(BaseModel):
    """A player in the live event payload."""

    id: int
    stats: LiveStats = Field(default_factory=LiveStats)
    explain: list[ExplainFixture] = Field(default_factory=list)

    class Config:
        extra = 'ignore'


class LiveEvent(BaseModel):
    """Complete live event payload."""

    elements: list[LiveElement] = Field(default_factory=list)

    class Config:
        extra = 'ignore'


# ============ PICKS (entry/{id}/event/{gw}/picks/) ============


class PickRow(BaseModel):
    """A single squad pick."""

    element: int
    position: int = Field(..., ge=1, le=15)
    multiplier: int = Field(default=1, ge=0, le=3)
    is_captain: bool = False
    is_vice_captain: bool = False

    class Config:
        extra = 'ignore'


class EntryHistory(BaseModel):
    """Manager's round summary as reported upstream."""

    event: int | None = None
    points: int = 0
    event_transfers_cost: int = Field(default=0, ge=0)
    total_points: int | None = None

    class Config:
        extra = 'ignore'


class PicksResponse(BaseModel):
    """Complete picks payload for one manager and round."""

    active_chip: str | None = None
    entry_history: EntryHistory = Field(default_factory=EntryHistory)
    picks: list[PickRow] = Field(default_factory=list)

    @field_validator('picks')
    @classmethod
    def validate_slots(cls, v):
        """Ensure squad slots are unique."""
        slots = [p.position for p in v]
        if len(slots) != len(set(slots)):
            raise ValueError(f'Duplicate squad slots: {sorted(slots)}')
        return v

    class Config:
        extra = 'ignore'


# ============ FIXTURES (fixtures/?event={gw}) ============


class FixtureStatValue(BaseModel):
    """A per-player value inside a fixture stat block."""

    element: int
    value: int

    class Config:
        extra = 'ignore'


class FixtureStat(BaseModel):
    """A stat block (e.g. ``bps``) split into home and away players."""

    identifier: str
    h: list[FixtureStatValue] = Field(default_factory=list)
    a: list[FixtureStatValue] = Field(default_factory=list)

    class Config:
        extra = 'ignore'


class FixtureRow(BaseModel):
    """A fixture in the fixtures payload."""

    id: int
    event: int | None = None
    started: bool | None = False
    finished: bool = False
    finished_provisional: bool = False
    kickoff_time: datetime | None = None
    team_h: int | None = None
    team_a: int | None = None
    stats: list[FixtureStat] = Field(default_factory=list)

    class Config:
        extra = 'ignore'


class FixturesResponse(BaseModel):
    """The fixtures endpoint returns a bare list; it is wrapped as ``items``."""

    items: list[FixtureRow]

    class Config:
        extra = 'forbid'


# ============ BOOTSTRAP (bootstrap-static/) ============


class BootstrapElement(BaseModel):
    """Player metadata from bootstrap-static."""

    id: int
    element_type: int = Field(..., ge=1, le=4)
    team: int | None = None
    web_name: str = ''

    class Config:
        extra = 'ignore'


class Bootstrap(BaseModel):
    """Subset of bootstrap-static needed by the engine."""

    elements: list[BootstrapElement] = Field(default_factory=list)

    class Config:
        extra = 'ignore'


# ============ LEAGUE HISTORY (persisted store rows) ============


class MatchRow(BaseModel):
    """A head-to-head match row."""

    event: int = Field(..., ge=1, le=38)
    entry_1_id: int
    entry_1_points: int
    entry_2_id: int
    entry_2_points: int

    class Config:
        extra = 'ignore'


class RoundScoreRow(BaseModel):
    """A manager's points for one round."""

    entry_id: int
    event: int = Field(..., ge=1, le=38)
    points: int

    class Config:
        extra = 'ignore'


class ChipRow(BaseModel):
    """A chip played by a manager."""

    entry_id: int
    event: int = Field(..., ge=1, le=38)
    chip_name: str

    class Config:
        extra = 'ignore'


class LeagueHistoryFile(BaseModel):
    """Materialised league history used for luck decomposition."""

    entry_ids: list[int] = Field(default_factory=list)
    matches: list[MatchRow]
    round_scores: list[RoundScoreRow] = Field(default_factory=list)
    chips: list[ChipRow] = Field(default_factory=list)

    class Config:
        extra = 'forbid'


# ============ ENGINE CONFIGURATION ============


class EngineConfig(BaseModel):
    """Engine configuration settings."""

    formation_limits: dict[str, tuple[int, int]]
    bench_goalkeeper_slot: int = Field(default=12, ge=12, le=15)
    bonus_tiers: list[int] = Field(default_factory=lambda: [3, 2, 1])
    captain_multiplier: int = Field(default=2, ge=1, le=3)
    triple_captain_multiplier: int = Field(default=3, ge=1, le=4)
    season_luck_weights: dict[str, float]
    season_luck_divisors: dict[str, float]
    round_luck_weights: dict[str, float]
    round_variance_divisor: float = Field(default=10.0, gt=0)
    chip_luck_points_per_chip: float = Field(default=7.0, ge=0)
    chip_luck_chips: list[str] = Field(default_factory=lambda: sorted(VALID_CHIPS))
    zero_sum_tolerance: float = Field(default=0.01, gt=0)
    completion_buffer_hours: float = Field(default=10.0, ge=0)

    @field_validator('formation_limits')
    @classmethod
    def validate_formation_limits(cls, v):
        """Ensure every position has a sane (min, max) pair."""
        if set(v) != VALID_POSITIONS:
            raise ValueError(f'Formation limits must cover {sorted(VALID_POSITIONS)}, got {sorted(v)}')
        for pos, (low, high) in v.items():
            if low < 0 or high < low or high > 11:
                raise ValueError(f'Invalid formation limits for {pos}: ({low}, {high})')
        return v

    @field_validator('season_luck_weights', 'season_luck_divisors')
    @classmethod
    def validate_season_components(cls, v):
        """Ensure all four season components are present."""
        expected = {'variance', 'rank', 'schedule', 'chip'}
        if set(v) != expected:
            raise ValueError(f'Expected components {sorted(expected)}, got {sorted(v)}')
        return v

    @field_validator('round_luck_weights')
    @classmethod
    def validate_round_components(cls, v):
        """Ensure both round components are present."""
        expected = {'variance', 'rank'}
        if set(v) != expected:
            raise ValueError(f'Expected components {sorted(expected)}, got {sorted(v)}')
        return v

    @field_validator('chip_luck_chips')
    @classmethod
    def validate_chips(cls, v):
        """Ensure chip names are known."""
        for chip in v:
            if chip not in VALID_CHIPS:
                raise ValueError(f'Invalid chip: {chip}')
        return v

    @model_validator(mode='after')
    def validate_divisors(self):
        """Divisors are used as denominators."""
        for name, divisor in self.season_luck_divisors.items():
            if divisor <= 0:
                raise ValueError(f'Divisor for {name} must be positive, got {divisor}')
        return self

    class Config:
        extra = 'forbid'
