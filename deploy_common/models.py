"""
Data models for the deploy workflow.

These models represent the domain objects passed between the workflow
components, independent of the CI server's wire format.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .exceptions import ValidationError

REPO_URL_PATTERN = re.compile(
    r"^(?:(?:https?|ssh|git)://[^\s/]+/\S+|[\w.-]+@[\w.-]+:\S+)$"
)
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
JOB_NAME_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")

# Runtime parameter names declared by the job definition and sent on trigger
REPO_URL_PARAM = "REPO_URL"
NOTIFY_EMAILS_PARAM = "USER_EMAIL"

RESOLUTION_TIMEOUT_WARNING = "timed out waiting"


def derive_job_name(repo_url: str) -> str:
    """
    Derive the CI job name from a repository URL.

    The name is the last path segment with any trailing slash and ``.git``
    suffix removed, so ``https://github.com/acme/widgets``,
    ``https://github.com/acme/widgets.git`` and
    ``git@github.com:acme/widgets.git`` all map to ``widgets``.

    Args:
        repo_url: Repository URL as submitted by the caller

    Returns:
        Job name (possibly empty for malformed input)
    """
    name = repo_url.strip().rstrip("/")
    name = re.split(r"[/:]", name)[-1]
    if name.endswith(".git"):
        name = name[: -len(".git")]
    return name


def _split_emails(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, (list, tuple)):
        emails = []
        for item in value:
            if not isinstance(item, str):
                raise ValidationError("notifyEmails must contain only strings")
            if item.strip():
                emails.append(item.strip())
        return emails
    raise ValidationError("notifyEmails must be a list or a comma-separated string")


@dataclass(frozen=True)
class JobParameters:
    """
    Immutable input of one workflow run.

    Construction validates the repository URL and the notification
    addresses; an instance that exists is always usable.
    """

    repo_url: str
    notify_emails: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.repo_url or not self.repo_url.strip():
            raise ValidationError("repoUrl is required")
        if not REPO_URL_PATTERN.match(self.repo_url):
            raise ValidationError(f"Invalid repository URL: {self.repo_url}")

        name = derive_job_name(self.repo_url)
        if name in ("", ".", "..") or not JOB_NAME_PATTERN.match(name):
            raise ValidationError(
                f"Cannot derive a job name from repository URL: {self.repo_url}"
            )

        if not self.notify_emails:
            raise ValidationError("At least one notification email is required")
        for email in self.notify_emails:
            if not EMAIL_PATTERN.match(email):
                raise ValidationError(f"Invalid email address: {email}")

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "JobParameters":
        """
        Build parameters from a caller's JSON payload.

        Accepts ``notifyEmails`` as a list or comma-separated string, or the
        single ``email`` field older callers send.

        Raises:
            ValidationError: If a field is missing or malformed
        """
        repo_url = payload.get("repoUrl")
        if not isinstance(repo_url, str):
            raise ValidationError("repoUrl is required")

        emails = _split_emails(payload.get("notifyEmails"))
        if not emails:
            emails = _split_emails(payload.get("email"))

        return cls(repo_url=repo_url.strip(), notify_emails=tuple(emails))

    @property
    def job_name(self) -> str:
        return derive_job_name(self.repo_url)

    @property
    def recipients(self) -> str:
        """Notification addresses in the comma-separated form the CI server expects."""
        return ",".join(self.notify_emails)

    def runtime_params(self) -> dict[str, str]:
        """Parameters sent with the build trigger."""
        return {REPO_URL_PARAM: self.repo_url, NOTIFY_EMAILS_PARAM: self.recipients}


@dataclass(frozen=True)
class Crumb:
    """A single-use anti-forgery token issued by the CI server."""

    field_name: str
    value: str

    def as_header(self) -> dict[str, str]:
        return {self.field_name: self.value}


@dataclass(frozen=True)
class QueueTicket:
    """A trigger accepted by the CI server but not yet assigned an executor."""

    location_url: str
    queue_id: int


@dataclass(frozen=True)
class ImmediateBuild:
    """
    A trigger outcome with no queue entry to poll.

    build_number is the job's nextBuildNumber when the server accepted the
    trigger synchronously, or None when the redirect location could not be
    parsed (queue_location then holds the raw header value).
    """

    build_number: int | None
    queue_location: str | None = None


class WorkflowState(str, Enum):
    """Progression of a single deploy workflow run."""

    IDLE = "idle"
    CHECKING = "checking"
    CREATING = "creating"
    TRIGGERING = "triggering"
    RESOLVING = "resolving"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class BuildResult:
    """
    Terminal outcome of a deploy workflow run.

    build_number is None when the number could not be resolved; that is a
    degraded success, reported through warning or queue_location.
    """

    success: bool
    job_name: str
    build_number: int | None = None
    queue_location: str | None = None
    warning: str | None = None
    job_url: str | None = None
    job_created: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary format (for API responses)."""
        result: dict[str, Any] = {
            "success": self.success,
            "jobName": self.job_name,
            "jobUrl": self.job_url,
            "jobCreated": self.job_created,
            "buildNumber": self.build_number,
            "queueLocation": self.queue_location,
        }
        if self.warning is not None:
            result["warning"] = self.warning
        return result
