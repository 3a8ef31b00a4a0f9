"""Exception hierarchy shared by the upgrade tools."""


class UpgradeToolError(Exception):
    """Base class for errors that abort a tool run."""


class EnvironmentCheckError(UpgradeToolError):
    """The cluster session or target namespace is not usable.

    Raised before any mutation happens: not logged in, namespace missing,
    service route or bearer token unavailable.
    """


class BackupFileError(UpgradeToolError):
    """A metrics backup file is missing or malformed."""


class TrustyAIError(UpgradeToolError):
    """The TrustyAI service returned an unusable response."""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class WaitTimeoutError(UpgradeToolError):
    """A polled condition did not become true before its deadline."""

    def __init__(self, description: str, timeout: float):
        super().__init__(f"Timed out after {timeout:g}s waiting for {description}")
        self.description = description
        self.timeout = timeout


class WaitCancelledError(UpgradeToolError):
    """A wait was cancelled through its stop event."""


class RolloutFailedError(UpgradeToolError):
    """A deployment rollout exceeded its progress deadline."""
