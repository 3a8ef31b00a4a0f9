"""Error message translation service.

Turns Kubernetes API errors into short, actionable messages for the
per-item summaries the tools print.
"""

import json

from kubernetes.client.rest import ApiException


class ErrorTranslator:
    """Translate technical errors to operator-friendly messages."""

    @staticmethod
    def translate_kubernetes_error(
        status_code: int,
        reason: str,
        message: str | None = None,
    ) -> str:
        """Translate Kubernetes API error to an operator-friendly message.

        Args:
            status_code: HTTP status code from Kubernetes API
            reason: Error reason from Kubernetes
            message: Detailed error message (optional)

        Returns:
            Message with actionable guidance
        """
        error_messages = {
            401: ErrorTranslator._handle_401_unauthorized,
            403: ErrorTranslator._handle_403_forbidden,
            404: ErrorTranslator._handle_404_not_found,
            409: ErrorTranslator._handle_409_conflict,
            422: ErrorTranslator._handle_422_unprocessable,
        }

        handler = error_messages.get(status_code)
        if handler:
            return handler(reason, message)

        if status_code and status_code >= 500:
            return (
                f"The OpenShift API server returned an error ({status_code} {reason}). "
                "Check cluster health and rerun the tool."
            )

        detail = f": {message}" if message else ""
        return f"OpenShift API error ({status_code} {reason}){detail}"

    @staticmethod
    def translate_api_exception(error: ApiException) -> str:
        """Translate an ApiException, extracting the Status message from its body."""
        message = None
        if error.body:
            try:
                body = json.loads(error.body)
            except (TypeError, ValueError):
                message = str(error.body)
            else:
                if isinstance(body, dict):
                    message = body.get("message")
        return ErrorTranslator.translate_kubernetes_error(
            status_code=error.status,
            reason=error.reason or "",
            message=message,
        )

    @staticmethod
    def _handle_401_unauthorized(reason: str, message: str | None) -> str:
        """Handle 401 Unauthorized errors."""
        return "Your cluster session has expired. Please run 'oc login' and try again."

    @staticmethod
    def _handle_403_forbidden(reason: str, message: str | None) -> str:
        """Handle 403 Forbidden errors."""
        detail = f" ({message})" if message else ""
        return (
            f"Permission denied{detail}. "
            "The upgrade tools need cluster-admin or namespace admin rights."
        )

    @staticmethod
    def _handle_404_not_found(reason: str, message: str | None) -> str:
        """Handle 404 Not Found errors."""
        if message:
            return f"Not found: {message}"
        return "The resource was not found. It may have been deleted while the tool was running."

    @staticmethod
    def _handle_409_conflict(reason: str, message: str | None) -> str:
        """Handle 409 Conflict errors."""
        return (
            "The resource was modified concurrently. "
            "Rerun the tool to pick up its current state."
        )

    @staticmethod
    def _handle_422_unprocessable(reason: str, message: str | None) -> str:
        """Handle 422 Unprocessable Entity errors."""
        detail = f": {message}" if message else ""
        return (
            f"The patch was rejected by schema validation{detail}. "
            "Check that the operator version matches the expected schema."
        )
