"""
Standalone entrypoint for running the deploy server.

Usage:
    python -m deploy_server [OPTIONS]
    deploy-server [OPTIONS]  (after pip install)

CI server connection settings are read from the environment (JENKINS_URL,
JENKINS_USER, JENKINS_API_TOKEN, ...); see deploy_common.config. Command-line
options win over the environment.
"""

import argparse
import logging
import os
import sys

import uvicorn

logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(
        description="Deploy server - submit repositories to the CI server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment Variables:
  JENKINS_URL             CI server base URL (default: http://localhost:8080)
  JENKINS_USER            CI server user name
  JENKINS_API_TOKEN       CI server API token
  JENKINS_PUBLIC_URL      Browser-facing CI server URL for job links
  DEPLOY_POLL_INTERVAL    Seconds between queue polls (default: 1.0)
  DEPLOY_POLL_ATTEMPTS    Queue polls before giving up (default: 30)
  DEPLOY_HTTP_TIMEOUT     Per-request timeout in seconds (default: 30.0)
  DEPLOY_PORT             Port to listen on (default: 8000)

Examples:
  # Run with default settings
  deploy-server

  # Listen on all interfaces with debug logging
  deploy-server --host 0.0.0.0 --log-level DEBUG

  # Point at another CI server
  deploy-server --jenkins-url https://ci.example.com
        """,
    )

    parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Interface to bind (default: 127.0.0.1)",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to listen on (default: DEPLOY_PORT env or 8000)",
    )

    parser.add_argument(
        "--jenkins-url",
        type=str,
        default=None,
        help="CI server base URL (overrides JENKINS_URL)",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO)",
    )

    return parser.parse_args()


def get_port(args: argparse.Namespace) -> int:
    """
    Get the listening port from CLI args or environment.

    Args:
        args: Parsed command-line arguments

    Returns:
        Port number
    """
    if args.port is not None:
        return args.port
    try:
        return int(os.environ.get("DEPLOY_PORT", "8000"))
    except ValueError:
        logger.warning(
            f"Invalid DEPLOY_PORT={os.environ.get('DEPLOY_PORT')}, using default 8000"
        )
        return 8000


def apply_overrides(args: argparse.Namespace) -> None:
    """
    Export command-line overrides to the environment read at app startup.

    Args:
        args: Parsed command-line arguments
    """
    if args.jenkins_url:
        os.environ["JENKINS_URL"] = args.jenkins_url


def main() -> int:
    """
    Main entrypoint for the deploy server.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    args = parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    apply_overrides(args)
    port = get_port(args)
    logger.info(f"Starting deploy server on {args.host}:{port}")

    try:
        uvicorn.run(
            "deploy_server.app:app",
            host=args.host,
            port=port,
            log_level=args.log_level.lower(),
        )
        return 0
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
