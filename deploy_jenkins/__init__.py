"""
Deploy Jenkins module.

This module drives the CI server through the deploy workflow: check whether
a repository's job exists, create it from the pipeline template if not,
trigger a build and resolve the build number the queue assigns to it.
"""

from .auth import Authenticator
from .client import CIResponse, JenkinsClient
from .crumbs import CrumbProvider
from .definition import JobDefinitionBuilder
from .jobs import JobCreator, JobExistenceChecker
from .queue import QueueResolver
from .trigger import BuildTrigger
from .workflow import DeployWorkflow, run_workflow

__all__ = [
    "Authenticator",
    "BuildTrigger",
    "CIResponse",
    "CrumbProvider",
    "DeployWorkflow",
    "JenkinsClient",
    "JobCreator",
    "JobDefinitionBuilder",
    "JobExistenceChecker",
    "QueueResolver",
    "run_workflow",
]
