"""
Run report.

Per-unit outcomes of a distribution pass, aggregated for the scheduler.
"""

from dataclasses import dataclass, field

from placement_rewards.utils.formatters import format_amount


@dataclass(frozen=True)
class UnitOutcome:
    """
    Result of one unit of work.

    ``applied`` False means the unit was skipped and ``reason`` says why.
    """
    unit_id: int
    applied: bool
    amount: int = 0
    reason: str = ""
    detail: str = ""


@dataclass
class RunReport:
    """Aggregated outcomes of one procedure run."""
    procedure: str
    applied: list[UnitOutcome] = field(default_factory=list)
    skipped: list[UnitOutcome] = field(default_factory=list)
    stopped_location_ids: set[int] = field(default_factory=set)

    def add_applied(
        self, unit_id: int, amount: int, reason: str = "", detail: str = ""
    ) -> UnitOutcome:
        """Record an applied unit."""
        outcome = UnitOutcome(unit_id, True, amount, reason, detail)
        self.applied.append(outcome)
        return outcome

    def add_skipped(self, unit_id: int, reason: str, detail: str = "") -> UnitOutcome:
        """Record a skipped unit."""
        outcome = UnitOutcome(unit_id, False, 0, reason, detail)
        self.skipped.append(outcome)
        return outcome

    def merge(self, other: "RunReport") -> None:
        """Fold another report (a sub-pass) into this one."""
        self.applied.extend(other.applied)
        self.skipped.extend(other.skipped)
        self.stopped_location_ids |= other.stopped_location_ids

    @property
    def applied_count(self) -> int:
        return len(self.applied)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    @property
    def total_amount(self) -> int:
        return sum(outcome.amount for outcome in self.applied)

    def skipped_reasons(self) -> dict[str, int]:
        """Count skipped units per reason."""
        counts: dict[str, int] = {}
        for outcome in self.skipped:
            counts[outcome.reason] = counts.get(outcome.reason, 0) + 1
        return counts

    def summary(self) -> str:
        """One line summary for logs."""
        return (
            f"{self.procedure}: {self.applied_count} applied, "
            f"{self.skipped_count} skipped, total {format_amount(self.total_amount)}, "
            f"{len(self.stopped_location_ids)} slots stopped"
        )
