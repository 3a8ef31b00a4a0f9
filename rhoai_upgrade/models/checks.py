"""Pre-upgrade check report models."""

from pydantic import BaseModel, Field


class CheckOutcome(BaseModel):
    """Result of one numbered check for one GuardrailsOrchestrator."""

    step: int
    title: str
    passed: bool
    messages: list[str] = Field(default_factory=list)


class InstanceReport(BaseModel):
    """All check results for one GuardrailsOrchestrator instance."""

    namespace: str
    name: str
    checks: list[CheckOutcome] = Field(default_factory=list)
    backup_file: str | None = None

    @property
    def key(self) -> str:
        return f"{self.namespace}/{self.name}"

    @property
    def passed(self) -> bool:
        return all(check.passed for check in self.checks)
