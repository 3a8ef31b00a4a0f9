"""Backup and restore of TrustyAI scheduled metrics.

Scheduled metric requests live in the TrustyAI service's storage, which the
upgrade recreates. The backup exports the listing to a JSON file; the restore
re-submits each request payload so the service schedules it again under a
new request ID.
"""

import json
import os
import time
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from rhoai_upgrade.exceptions import BackupFileError
from rhoai_upgrade.models.metrics import (
    BackupMetadata,
    MetricsBackup,
    ScheduledMetricRequest,
    endpoint_for_metric,
)
from rhoai_upgrade.models.results import BatchResult, ItemOutcome
from rhoai_upgrade.services.trustyai_client import TrustyAIClient, parse_metrics_listing

logger = structlog.get_logger(__name__)

BACKUP_PREFIX = "trustyai-metrics"
LATEST_LINK_NAME = f"{BACKUP_PREFIX}-latest.json"
TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"


class BackupArtifacts(BaseModel):
    """Files produced by a backup run."""

    backup_file: Path
    metadata_file: Path
    latest_link: Path | None = None
    metric_count: int


def backup_file_stem(metric_type: str, timestamp: str) -> str:
    """Base name shared by the backup and its metadata sidecar."""
    suffix = "-fairness" if metric_type == "fairness" else ""
    return f"{BACKUP_PREFIX}{suffix}-{timestamp}"


def load_backup(path: str | Path) -> MetricsBackup:
    """Read and validate a backup file.

    Raises:
        BackupFileError: If the file is missing, not JSON, or lacks a requests array
    """
    path = Path(path)
    if not path.is_file():
        raise BackupFileError(f"Backup file not found: {path}")

    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise BackupFileError(f"Invalid JSON in backup file {path}: {e}") from e

    try:
        return MetricsBackup.model_validate(data)
    except ValidationError as e:
        raise BackupFileError(
            f"Backup file {path} does not have expected structure (missing .requests array)"
        ) from e


class MetricsBackupExecutor:
    """Export scheduled metrics to a timestamped backup file."""

    def __init__(self, trustyai_client: TrustyAIClient):
        self.trustyai_client = trustyai_client

    def execute(
        self,
        backup_dir: str | Path,
        namespace: str,
        metric_type: str = "all",
        now: datetime | None = None,
    ) -> BackupArtifacts:
        """Fetch the metric listing and write it with a metadata sidecar.

        The response body is written verbatim after validation. The
        ``trustyai-metrics-latest.json`` symlink is re-pointed at the new file.

        Args:
            backup_dir: Directory to write into (created if missing)
            namespace: Namespace of the TrustyAI service, recorded in metadata
            metric_type: "all" or "fairness"
            now: Timestamp override (used by tests)

        Returns:
            Paths of the files written

        Raises:
            TrustyAIError: If the listing cannot be fetched or is malformed
            BackupFileError: If the backup directory or files cannot be written
        """
        backup_dir = Path(backup_dir)
        try:
            backup_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise BackupFileError(f"Cannot create backup directory {backup_dir}: {e}") from e

        timestamp = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
        stem = backup_file_stem(metric_type, timestamp)
        backup_file = backup_dir / f"{stem}.json"
        metadata_file = backup_dir / f"{stem}.metadata.json"

        logger.info(
            "fetching_scheduled_metrics",
            route=self.trustyai_client.route_host,
            metric_type=metric_type,
        )
        raw = self.trustyai_client.fetch_metric_requests_raw(metric_type)
        listing = parse_metrics_listing(raw)

        self._write_file(backup_file, raw)
        logger.info("metrics_backed_up", count=len(listing.requests), backup_file=str(backup_file))
        for item in listing.requests:
            logger.info("metric_backed_up", detail=item.describe())

        metadata = BackupMetadata(
            timestamp=timestamp,
            namespace=namespace,
            route=self.trustyai_client.route_host,
            metric_type=metric_type,
            metric_count=len(listing.requests),
            backup_file=backup_file.name,
        )
        self._write_file(metadata_file, metadata.model_dump_json(by_alias=True, indent=2) + "\n")

        latest_link = self._update_latest_link(backup_dir, backup_file)

        return BackupArtifacts(
            backup_file=backup_file,
            metadata_file=metadata_file,
            latest_link=latest_link,
            metric_count=len(listing.requests),
        )

    @staticmethod
    def _write_file(path: Path, content: str) -> None:
        try:
            path.write_text(content)
        except OSError as e:
            raise BackupFileError(f"Cannot write backup file {path}: {e}") from e

    def _update_latest_link(self, backup_dir: Path, backup_file: Path) -> Path | None:
        """Point the latest-backup symlink at ``backup_file`` (relative target)."""
        link = backup_dir / LATEST_LINK_NAME
        try:
            if link.is_symlink() or link.exists():
                link.unlink()
            os.symlink(backup_file.name, link)
        except OSError as e:
            logger.warning("latest_link_not_updated", link=str(link), error=str(e))
            return None
        logger.info("latest_link_updated", link=str(link))
        return link


class MetricsRestoreExecutor:
    """Re-submit scheduled metrics from a backup file."""

    def __init__(
        self,
        trustyai_client: TrustyAIClient,
        request_delay: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize restore executor.

        Args:
            trustyai_client: Client for the target TrustyAI service
            request_delay: Pause between submissions so the service is not flooded
            sleep: Sleep function, injectable for tests
        """
        self.trustyai_client = trustyai_client
        self.request_delay = request_delay
        self.sleep = sleep

    def service_ready(self) -> tuple[bool, str]:
        """Check the service readiness endpoint.

        Returns:
            (ready, status) where status is the reported health status
        """
        status = self.trustyai_client.health_status()
        return status == "UP", status

    def execute(
        self,
        backup: MetricsBackup,
        dry_run: bool = False,
        skip_existing: bool = False,
    ) -> BatchResult:
        """Restore every record of a backup.

        Args:
            backup: Validated backup contents
            dry_run: Log what would be submitted without calling the service
            skip_existing: Skip records whose (modelId, metricName) already exist

        Returns:
            BatchResult with one outcome per record and a ``total`` counter
        """
        result = BatchResult(counters={"total": len(backup.requests)})

        existing: set[tuple[str | None, str | None]] = set()
        if skip_existing:
            logger.info("fetching_existing_metrics")
            current = self.trustyai_client.list_metric_requests()
            existing = current.identities()
            logger.info("existing_metrics_found", count=len(current.requests))

        submitted = False
        for item in backup.requests:
            if submitted and not dry_run and self.request_delay > 0:
                self.sleep(self.request_delay)
            outcome, submitted = self.restore_item(item, existing, dry_run=dry_run)
            result.outcomes.append(outcome)

        return result

    def restore_item(
        self,
        item: ScheduledMetricRequest,
        existing: set[tuple[str | None, str | None]],
        dry_run: bool = False,
    ) -> tuple[ItemOutcome, bool]:
        """Restore one record.

        Returns:
            The outcome and whether a request was sent to the service
        """
        request = item.request
        name = f"{request.metric_name}/{request.model_id}"
        log = logger.bind(
            metric_name=request.metric_name,
            model_id=request.model_id,
            original_id=item.id,
        )
        log.info("restoring_metric")

        if item.identity in existing:
            log.warning("metric_already_exists")
            return ItemOutcome.skip(name, "already exists"), False

        endpoint = endpoint_for_metric(request.metric_name)
        if endpoint is None:
            log.error("unknown_metric_type")
            return ItemOutcome.failure(name, f"unknown metric type: {request.metric_name}"), False

        payload = request.to_payload()
        if dry_run:
            log.info(
                "metric_restore_dry_run",
                url=f"{self.trustyai_client.base_url}{endpoint}",
                payload=json.dumps(payload),
            )
            return ItemOutcome.success(name, f"dry run, would POST to {endpoint}"), False

        try:
            response = self.trustyai_client.schedule_metric(endpoint, payload)
        except httpx.HTTPError as e:
            log.error("metric_restore_failed", error=str(e))
            return ItemOutcome.failure(name, f"request failed: {e}"), True

        if response.status_code != 200:
            log.error("metric_restore_failed", status_code=response.status_code, response=response.text)
            return ItemOutcome.failure(name, f"HTTP {response.status_code}"), True

        new_id = None
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            new_id = body.get("requestId")

        if new_id:
            log.info("metric_restored", new_id=new_id)
            return ItemOutcome.success(name, f"scheduled with new ID {new_id}"), True

        log.warning("metric_restored_without_id", response=response.text)
        return ItemOutcome.success(name, "scheduled, no request ID returned"), True

    def verify(self) -> MetricsBackup:
        """List the metrics now scheduled on the service."""
        current = self.trustyai_client.list_metric_requests()
        logger.info("current_scheduled_metrics", count=len(current.requests))
        for item in current.requests:
            logger.info("metric_scheduled", detail=item.describe())
        return current
