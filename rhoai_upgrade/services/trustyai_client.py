"""HTTP client for the TrustyAI service REST API."""

import json

import httpx
import structlog
from pydantic import ValidationError

from rhoai_upgrade.exceptions import TrustyAIError
from rhoai_upgrade.models.metrics import METRIC_TYPES, MetricsBackup

logger = structlog.get_logger(__name__)

LIST_REQUESTS_PATH = "/metrics/all/requests"
HEALTH_PATH = "/q/health/ready"


def parse_metrics_listing(text: str) -> MetricsBackup:
    """Validate a scheduled-metrics listing.

    Raises:
        TrustyAIError: If the text is not JSON or lacks a ``requests`` list
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise TrustyAIError(f"Response is not valid JSON: {e}", body=text) from e

    try:
        return MetricsBackup.model_validate(data)
    except ValidationError as e:
        raise TrustyAIError(
            f"Response does not have the expected structure (requests array): {e}",
            body=text,
        ) from e


class TrustyAIClient:
    """Wrapper around the TrustyAI service route.

    All calls are blocking and authenticated with the bearer token of the
    current cluster session.
    """

    def __init__(
        self,
        route_host: str,
        token: str,
        verify_ssl: bool = True,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize TrustyAI client.

        Args:
            route_host: Host name of the TrustyAI route
            token: Bearer token for the cluster session
            verify_ssl: Whether to verify SSL certificates
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.route_host = route_host
        self.base_url = f"https://{route_host}"
        self.http_client = httpx.Client(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {token}"},
            timeout=httpx.Timeout(timeout),
            verify=verify_ssl,
            transport=transport,
        )

    def __enter__(self) -> "TrustyAIClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self.http_client.close()

    def fetch_metric_requests_raw(self, metric_type: str = "all") -> str:
        """Fetch the scheduled metric listing as raw text.

        Args:
            metric_type: "all" or "fairness"

        Returns:
            Response body exactly as returned by the service

        Raises:
            ValueError: If metric_type is not supported
            TrustyAIError: If the service does not answer with HTTP 200
        """
        if metric_type not in METRIC_TYPES:
            raise ValueError(
                f"Invalid metric type: {metric_type}. Must be one of {', '.join(METRIC_TYPES)}."
            )

        params = {"type": "fairness"} if metric_type == "fairness" else None
        try:
            response = self.http_client.get(LIST_REQUESTS_PATH, params=params)
        except httpx.HTTPError as e:
            raise TrustyAIError(f"Failed to reach TrustyAI service: {e}") from e

        if response.status_code != 200:
            raise TrustyAIError(
                f"Failed to fetch metrics. HTTP status: {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )
        return response.text

    def list_metric_requests(self, metric_type: str = "all") -> MetricsBackup:
        """Fetch and validate the scheduled metric listing."""
        return parse_metrics_listing(self.fetch_metric_requests_raw(metric_type))

    def health_status(self) -> str:
        """Readiness status reported by the service.

        Returns:
            "UP" when ready, "DOWN" when unreachable, "UNKNOWN" when the
            response carries no status
        """
        try:
            response = self.http_client.get(HEALTH_PATH)
        except httpx.HTTPError as e:
            logger.warning("trustyai_health_unreachable", error=str(e))
            return "DOWN"

        try:
            body = response.json()
        except ValueError:
            return "UNKNOWN"
        if not isinstance(body, dict):
            return "UNKNOWN"
        return body.get("status") or "UNKNOWN"

    def schedule_metric(self, endpoint_path: str, payload: dict) -> httpx.Response:
        """POST a metric request payload to a scheduling endpoint.

        Raises:
            httpx.HTTPError: If the request could not be sent
        """
        return self.http_client.post(endpoint_path, json=payload)
