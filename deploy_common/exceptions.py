"""
Error taxonomy for the deploy workflow.

Every error carries the HTTP status the caller-facing boundary answers with,
so the server can render any DeployError without inspecting its type.
"""

BODY_EXCERPT_LIMIT = 500


def excerpt(body: str | None, limit: int = BODY_EXCERPT_LIMIT) -> str:
    """Truncate a response body for inclusion in error messages."""
    if not body:
        return ""
    body = body.strip()
    if len(body) <= limit:
        return body
    return body[:limit] + "..."


class DeployError(Exception):
    """Base class for all deploy workflow errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DeployError):
    """Missing or malformed input from the submitting caller."""

    status_code = 400


class WorkflowCancelled(DeployError):
    """The workflow was aborted through its cancellation event."""

    status_code = 499


class CITransportError(DeployError):
    """
    A request to the CI server failed below the HTTP layer.

    Raised by the transport wrapper for refused connections, timeouts and
    other network failures. Components decide whether to degrade or to wrap
    it into their own terminal error.
    """

    status_code = 502

    def __init__(self, method: str, url: str, detail: str):
        super().__init__(f"{method} {url} failed: {detail}")
        self.method = method
        self.url = url
        self.detail = detail


class ExistenceCheckFailed(DeployError):
    """The job existence check could not reach the CI server."""

    status_code = 502

    def __init__(self, job_name: str, detail: str):
        super().__init__(f"Existence check for job '{job_name}' failed: {detail}")
        self.job_name = job_name
        self.detail = detail


class CIRequestFailed(DeployError):
    """
    A mutating CI server call returned a non-success response.

    Attributes:
        operation: Human-readable name of the failed call
        status: HTTP status returned by the CI server, None on transport failure
        body: Response body (or transport detail), truncated
    """

    status_code = 502

    def __init__(self, operation: str, status: int | None, body: str | None):
        self.operation = operation
        self.status = status
        self.body = excerpt(body)
        if status is None:
            message = f"{operation} failed: {self.body}"
        else:
            message = f"{operation} failed: HTTP {status}: {self.body}"
        super().__init__(message)


class JobCreationFailed(CIRequestFailed):
    """Job creation was rejected by the CI server."""

    def __init__(self, status: int | None, body: str | None):
        super().__init__("Job creation", status, body)


class TriggerFailed(CIRequestFailed):
    """The build trigger was rejected by the CI server."""

    def __init__(self, status: int | None, body: str | None):
        super().__init__("Build trigger", status, body)
