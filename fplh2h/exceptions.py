"""Exceptions raised by the scoring and luck engine."""


class EngineError(Exception):
    """Base class for engine failures."""


class MissingPicksError(EngineError):
    """No pick set exists for a manager/round (usually: round not synced yet)."""

    def __init__(self, entry_id: int, round_number: int):
        self.entry_id = entry_id
        self.round = round_number
        super().__init__(f'No picks found for entry {entry_id} in round {round_number}')


class InvariantViolationError(EngineError):
    """A computed result is internally or externally inconsistent."""


class ScoreMismatchError(InvariantViolationError):
    """Computed net total disagrees with the officially reported total."""

    def __init__(self, entry_id: int, round_number: int, computed: int, official: int):
        self.entry_id = entry_id
        self.round = round_number
        self.computed = computed
        self.official = official
        self.difference = computed - official
        super().__init__(
            f'Entry {entry_id} round {round_number}: computed {computed} != '
            f'official {official} (difference {self.difference:+d})'
        )


class ZeroSumViolationError(InvariantViolationError):
    """A zero-sum luck component does not sum to zero within tolerance."""

    def __init__(self, component: str, scope: str, total: float, tolerance: float):
        self.component = component
        self.scope = scope
        self.total = total
        self.tolerance = tolerance
        super().__init__(
            f'{component} luck sums to {total:.4f} for {scope} (tolerance {tolerance})'
        )
