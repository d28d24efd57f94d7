import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Body, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from deploy_common.config import DeployConfig
from deploy_common.exceptions import DeployError, ValidationError
from deploy_common.models import JobParameters
from deploy_jenkins.client import JenkinsClient
from deploy_jenkins.jobs import JobExistenceChecker
from deploy_jenkins.workflow import DeployWorkflow

logger = logging.getLogger(__name__)

# Global instances (initialized at startup)
config: DeployConfig | None = None
jenkins_client: JenkinsClient | None = None

CORS_HEADERS = {
    "Access-Control-Allow-Credentials": "true",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,OPTIONS,POST",
    "Access-Control-Allow-Headers": "Content-Type",
}

DISCONNECT_CHECK_INTERVAL = 0.5


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI app.

    Handles startup and shutdown events:
    - Startup: Read configuration and open the CI server connection pool
    - Shutdown: Close the connection pool
    """
    global config, jenkins_client

    config = DeployConfig.from_env()
    jenkins_client = JenkinsClient(config)
    logger.info(f"Deploy server using CI server at {config.jenkins_url}")

    yield

    if jenkins_client:
        await jenkins_client.close()


app = FastAPI(lifespan=lifespan)


def get_config() -> DeployConfig:
    """
    Get the global configuration.

    Raises:
        RuntimeError: If configuration is not initialized
    """
    if config is None:
        raise RuntimeError("Configuration not initialized")
    return config


def get_jenkins_client() -> JenkinsClient:
    """
    Get the global CI server client.

    Raises:
        RuntimeError: If the client is not initialized
    """
    if jenkins_client is None:
        raise RuntimeError("CI server client not initialized")
    return jenkins_client


@app.middleware("http")
async def add_cors_headers(request: Request, call_next):
    response = await call_next(request)
    for name, value in CORS_HEADERS.items():
        response.headers[name] = value
    return response


def error_response(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
        headers=headers,
    )


@app.exception_handler(DeployError)
async def deploy_error_handler(request: Request, exc: DeployError) -> JSONResponse:
    return error_response(exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return error_response(400, "Request body must be a JSON object")


async def watch_disconnect(request: Request, cancel_event: asyncio.Event) -> None:
    """Set cancel_event once the submitting client goes away."""
    while not cancel_event.is_set():
        if await request.is_disconnected():
            logger.warning("Client disconnected, cancelling deploy workflow")
            cancel_event.set()
            return
        await asyncio.sleep(DISCONNECT_CHECK_INTERVAL)


@app.options("/api/deploy")
@app.options("/api/check-job")
async def preflight() -> Response:
    """Answer cross-origin preflight requests (headers added by middleware)."""
    return Response(status_code=200)


@app.post("/api/deploy")
async def deploy(
    request: Request,
    payload: dict[str, Any] = Body(...),
    cfg: DeployConfig = Depends(get_config),
    client: JenkinsClient = Depends(get_jenkins_client),
) -> dict[str, Any]:
    """
    Run the deploy workflow for a repository.

    Request body:
        {"repoUrl": "https://github.com/acme/widgets",
         "notifyEmails": ["dev@acme.io"]}

    Returns:
        BuildResult as JSON. buildNumber is null when the build was accepted
        but its number could not be resolved (see warning/queueLocation).

    Errors are rendered as {"success": false, "error": ...} with the status
    of the failing step (400 for invalid input, 502 for CI server failures).
    """
    params = JobParameters.from_payload(payload)
    logger.info(f"Deploy requested for {params.repo_url}")

    cancel_event = asyncio.Event()
    watcher = asyncio.create_task(watch_disconnect(request, cancel_event))
    try:
        result = await DeployWorkflow(cfg, client).run(params, cancel_event)
    finally:
        watcher.cancel()
        try:
            await watcher
        except asyncio.CancelledError:
            pass

    return result.to_dict()


@app.post("/api/check-job")
async def check_job(
    payload: dict[str, Any] = Body(...),
    client: JenkinsClient = Depends(get_jenkins_client),
) -> dict[str, bool]:
    """
    Report whether a job is registered on the CI server.

    Request body:
        {"jobName": "widgets"}
    """
    job_name = payload.get("jobName")
    if not isinstance(job_name, str) or not job_name.strip():
        raise ValidationError("jobName is required")

    exists = await JobExistenceChecker(client).exists(job_name.strip())
    return {"exists": exists}


@app.get("/health")
async def health_check() -> dict[str, str]:
    """
    Health check endpoint.

    Returns:
        Dictionary with status="ok" if server is running
    """
    return {"status": "ok"}
