"""
Deploy Common module.

This module contains the domain models, error taxonomy and configuration
object shared by the deployer components (core workflow, server, CLIs).

The common module has no dependencies on other deploy_* modules, making it
a pure domain layer that can be imported by any component.
"""

from .config import DeployConfig
from .exceptions import (
    CIRequestFailed,
    CITransportError,
    DeployError,
    ExistenceCheckFailed,
    JobCreationFailed,
    TriggerFailed,
    ValidationError,
    WorkflowCancelled,
)
from .models import (
    BuildResult,
    Crumb,
    ImmediateBuild,
    JobParameters,
    QueueTicket,
    WorkflowState,
    derive_job_name,
)

__all__ = [
    "BuildResult",
    "CIRequestFailed",
    "CITransportError",
    "Crumb",
    "DeployConfig",
    "DeployError",
    "ExistenceCheckFailed",
    "ImmediateBuild",
    "JobCreationFailed",
    "JobParameters",
    "QueueTicket",
    "TriggerFailed",
    "ValidationError",
    "WorkflowCancelled",
    "WorkflowState",
    "derive_job_name",
]
