import argparse
import json
import logging
import os
import sys

from .client import DEFAULT_SERVER_URL, check_job, submit_deployment


def get_server_url(cli_arg: str | None = None) -> str:
    """
    Get the deploy server URL in priority order.

    Priority (highest to lowest):
    1. Command line argument (--server-url)
    2. Environment variable (DEPLOY_SERVER_URL)
    3. Default (http://localhost:8000)

    Args:
        cli_arg: Server URL from command line argument (highest priority)

    Returns:
        Server URL string
    """
    if cli_arg:
        return cli_arg
    return os.environ.get("DEPLOY_SERVER_URL", DEFAULT_SERVER_URL)


def format_result(result: dict) -> list[str]:
    """Format a BuildResult dictionary as human-readable lines."""
    build_number = result.get("buildNumber")
    lines = [
        f"Job:      {result.get('jobName', 'N/A')}"
        + (" (created)" if result.get("jobCreated") else ""),
        f"Build:    #{build_number}" if build_number is not None else "Build:    N/A",
    ]
    if result.get("jobUrl"):
        lines.append(f"Job URL:  {result['jobUrl']}")
    if result.get("queueLocation") and build_number is None:
        lines.append(f"Queue:    {result['queueLocation']}")
    if result.get("warning"):
        lines.append(f"Warning:  {result['warning']}")
    return lines


def main():
    """Main entry point for the deploy CLI."""
    parser = argparse.ArgumentParser(description="Repository deploy CLI")
    parser.add_argument(
        "--server-url",
        help="Deploy server URL (overrides DEPLOY_SERVER_URL)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command")

    # deploy submit <repo_url> --email ADDR [--email ADDR] [--json]
    submit_parser = subparsers.add_parser(
        "submit", help="Submit a repository for analysis"
    )
    submit_parser.add_argument("repo_url", help="Repository URL")
    submit_parser.add_argument(
        "--email",
        dest="emails",
        action="append",
        required=True,
        help="Address to notify (repeat for several)",
    )
    submit_parser.add_argument(
        "--json",
        dest="json_mode",
        action="store_true",
        help="Output in JSON format",
    )

    # deploy check <job_name>
    check_parser = subparsers.add_parser(
        "check", help="Check whether a job exists on the CI server"
    )
    check_parser.add_argument("job_name", help="Job name")

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    server_url = get_server_url(args.server_url)

    if args.command == "submit":
        try:
            result = submit_deployment(args.repo_url, args.emails, server_url=server_url)
        except RuntimeError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

        if args.json_mode:
            print(json.dumps(result, indent=2))
        else:
            for line in format_result(result):
                print(line)
        sys.exit(0 if result.get("success") else 1)

    elif args.command == "check":
        try:
            exists = check_job(args.job_name, server_url=server_url)
        except RuntimeError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

        print(f"Job {args.job_name} {'exists' if exists else 'does not exist'}")
        sys.exit(0 if exists else 1)

    parser.print_help()
    sys.exit(1)


if __name__ == "__main__":
    main()
