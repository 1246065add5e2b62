"""
Exception types.

Defines categorized exception types for the distribution engine.
"""


class PlacementRewardsError(Exception):
    """Base error of the placement reward engine."""
    pass


class RunPreconditionError(PlacementRewardsError):
    """Raised when a whole run cannot start (unreadable config, invalid baseline)."""
    pass


class LookupMissError(PlacementRewardsError):
    """Raised when a placement, ancestor or user record is missing."""
    pass


class LedgerInvariantError(PlacementRewardsError):
    """Raised when a ledger mutation would break a capacity or total invariant."""
    pass


class PlacementCycleError(LedgerInvariantError):
    """Raised when a placement ancestor chain revisits a slot."""

    def __init__(self, location_id: int, revisited_id: int) -> None:
        super().__init__(
            f"Placement chain of location {location_id} revisits location {revisited_id}"
        )
        self.location_id = location_id
        self.revisited_id = revisited_id


class PlacementDepthError(LedgerInvariantError):
    """Raised when a placement ancestor chain exceeds the configured depth."""

    def __init__(self, location_id: int, max_depth: int) -> None:
        super().__init__(
            f"Placement chain of location {location_id} exceeds {max_depth} hops"
        )
        self.location_id = location_id
        self.max_depth = max_depth


# Exception categories based on handling strategy

# Abort the whole run
RUN_FATAL = (
    RunPreconditionError,
)


def is_run_fatal(exc: Exception) -> bool:
    """
    Check if exception must abort the whole run.

    Args:
        exc: Exception to check

    Returns:
        True if the run must stop
    """
    return isinstance(exc, RUN_FATAL)
