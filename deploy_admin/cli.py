"""
Admin CLI for operating the deploy workflow directly against the CI server.

Provides commands to preview job definitions, inspect the CI server's crumb
and job registry, and run the whole workflow without the HTTP server.
"""

import asyncio
import json
import logging
import sys
from dataclasses import replace

import click

from deploy_common.config import DeployConfig
from deploy_common.exceptions import DeployError
from deploy_common.models import JobParameters
from deploy_jenkins.client import JenkinsClient
from deploy_jenkins.crumbs import CrumbProvider
from deploy_jenkins.definition import JobDefinitionBuilder
from deploy_jenkins.jobs import JobExistenceChecker
from deploy_jenkins.workflow import DeployWorkflow


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_config(jenkins_url: str | None = None) -> DeployConfig:
    """
    Get the configuration from environment variables.

    Args:
        jenkins_url: CI server URL from the command line, wins over JENKINS_URL
    """
    config = DeployConfig.from_env()
    if jenkins_url:
        config = replace(config, jenkins_url=jenkins_url)
    return config


def run_async(coro):
    """Helper to run async functions in CLI commands."""
    return asyncio.run(coro)


def build_parameters(repo_url: str, emails: tuple[str, ...]) -> JobParameters:
    try:
        return JobParameters(repo_url=repo_url, notify_emails=emails)
    except DeployError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@click.group()
@click.option("--jenkins-url", help="CI server base URL (overrides JENKINS_URL)")
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    help="Logging level (default: WARNING)",
)
@click.pass_context
def cli(ctx: click.Context, jenkins_url: str | None, log_level: str):
    """Deploy Admin - Inspect and drive the CI server deploy workflow."""
    logging.basicConfig(level=getattr(logging, log_level), format=LOG_FORMAT)
    ctx.obj = {"jenkins_url": jenkins_url}


@cli.command("render")
@click.argument("repo_url")
@click.option("--email", "emails", multiple=True, required=True, help="Address to notify")
def render(repo_url: str, emails: tuple[str, ...]):
    """Print the job definition generated for a repository."""
    params = build_parameters(repo_url, emails)
    click.echo(JobDefinitionBuilder().render(params), nl=False)


@cli.command("crumb")
@click.pass_context
def crumb(ctx: click.Context):
    """Show whether the CI server issues anti-forgery crumbs."""

    async def fetch():
        client = JenkinsClient(get_config(ctx.obj["jenkins_url"]))
        try:
            return await CrumbProvider(client).fetch()
        finally:
            await client.close()

    result = run_async(fetch())
    if result is None:
        click.echo("No crumb issued (crumb issuing disabled or unavailable)")
    else:
        click.echo(f"✓ Crumb issued in header {result.field_name}")


@cli.command("exists")
@click.argument("job_name")
@click.pass_context
def exists(ctx: click.Context, job_name: str):
    """Check whether a job is registered on the CI server."""

    async def check():
        client = JenkinsClient(get_config(ctx.obj["jenkins_url"]))
        try:
            return await JobExistenceChecker(client).exists(job_name)
        finally:
            await client.close()

    try:
        found = run_async(check())
    except DeployError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if found:
        click.echo(f"✓ Job {job_name} exists")
    else:
        click.echo(f"✗ Job {job_name} does not exist")
        sys.exit(1)


@cli.command("run")
@click.argument("repo_url")
@click.option("--email", "emails", multiple=True, required=True, help="Address to notify")
@click.pass_context
def run(ctx: click.Context, repo_url: str, emails: tuple[str, ...]):
    """Run the full deploy workflow and print the build result as JSON."""
    params = build_parameters(repo_url, emails)

    async def deploy():
        config = get_config(ctx.obj["jenkins_url"])
        client = JenkinsClient(config)
        try:
            return await DeployWorkflow(config, client).run(params)
        finally:
            await client.close()

    try:
        result = run_async(deploy())
    except DeployError as e:
        click.echo(json.dumps({"success": False, "error": e.message}, indent=2))
        sys.exit(1)

    click.echo(json.dumps(result.to_dict(), indent=2))


if __name__ == "__main__":
    cli()
