"""Per-item outcomes and batch result accumulation."""

from enum import Enum

from pydantic import BaseModel, Field


class ItemStatus(str, Enum):
    """Outcome of processing one resource, pod or metric."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"
    REPORTED = "reported"  # Check-only result, nothing was attempted


class ItemOutcome(BaseModel):
    """Result for a single item in a batch."""

    name: str
    status: ItemStatus
    message: str | None = None

    @classmethod
    def success(cls, name: str, message: str | None = None) -> "ItemOutcome":
        return cls(name=name, status=ItemStatus.SUCCEEDED, message=message)

    @classmethod
    def failure(cls, name: str, message: str | None = None) -> "ItemOutcome":
        return cls(name=name, status=ItemStatus.FAILED, message=message)

    @classmethod
    def skip(cls, name: str, message: str | None = None) -> "ItemOutcome":
        return cls(name=name, status=ItemStatus.SKIPPED, message=message)


class BatchResult(BaseModel):
    """Accumulated outcomes of one batch run.

    Returned by every executor instead of mutating shared counters. Callers
    combine results with :meth:`merge` and decide the exit code from
    :attr:`ok`.
    """

    outcomes: list[ItemOutcome] = Field(default_factory=list)
    counters: dict[str, int] = Field(default_factory=dict)

    def record(self, name: str, status: ItemStatus, message: str | None = None) -> ItemOutcome:
        """Append an outcome and return it."""
        outcome = ItemOutcome(name=name, status=status, message=message)
        self.outcomes.append(outcome)
        return outcome

    def record_success(self, name: str, message: str | None = None) -> ItemOutcome:
        return self.record(name, ItemStatus.SUCCEEDED, message)

    def record_failure(self, name: str, message: str | None = None) -> ItemOutcome:
        return self.record(name, ItemStatus.FAILED, message)

    def record_skip(self, name: str, message: str | None = None) -> ItemOutcome:
        return self.record(name, ItemStatus.SKIPPED, message)

    def record_report(self, name: str, message: str | None = None) -> ItemOutcome:
        return self.record(name, ItemStatus.REPORTED, message)

    def increment(self, counter: str, amount: int = 1) -> None:
        """Bump a tool-specific counter such as ``needs_migration``."""
        self.counters[counter] = self.counters.get(counter, 0) + amount

    def count(self, status: ItemStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)

    @property
    def succeeded(self) -> int:
        return self.count(ItemStatus.SUCCEEDED)

    @property
    def failed(self) -> int:
        return self.count(ItemStatus.FAILED)

    @property
    def skipped(self) -> int:
        return self.count(ItemStatus.SKIPPED)

    @property
    def failed_items(self) -> list[str]:
        """Names of failed items, in processing order."""
        return [o.name for o in self.outcomes if o.status == ItemStatus.FAILED]

    @property
    def ok(self) -> bool:
        """True when no item failed."""
        return self.failed == 0

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1

    def merge(self, other: "BatchResult") -> "BatchResult":
        """Combine two results into a new one."""
        counters = dict(self.counters)
        for key, value in other.counters.items():
            counters[key] = counters.get(key, 0) + value
        return BatchResult(outcomes=[*self.outcomes, *other.outcomes], counters=counters)
