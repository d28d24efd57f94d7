"""
Shared fixtures: an in-memory CI server plugged into httpx via MockTransport.
"""

import json
from urllib.parse import unquote

import httpx
import pytest

from deploy_common.config import DeployConfig
from deploy_jenkins.auth import Authenticator
from deploy_jenkins.client import JenkinsClient

JENKINS_URL = "http://jenkins.test"


class FakeJenkins:
    """
    Minimal in-memory CI server.

    Knobs are plain attributes so tests can reshape the server's behavior
    before running a workflow.
    """

    def __init__(self, authorization: str):
        self.authorization = authorization
        self.jobs: dict[str, str] = {}
        self.next_build_numbers: dict[str, int] = {}

        self.crumb_enabled = True
        self.crumb_field = "Jenkins-Crumb"
        self.crumb_value = "crumb-123"
        self.crumb_status: int | None = None  # overrides the crumb endpoint status

        self.create_status: int | None = None  # overrides createItem status
        self.create_body = ""

        self.trigger_status = 201
        self.trigger_location: str | None = f"{JENKINS_URL}/queue/item/42/"
        self.trigger_body = ""

        self.resolve_at_attempt: int | None = 1  # None: never resolves
        self.build_number = 7

        self.queue_polls = 0
        self.created: list[str] = []
        self.triggered: list[dict[str, str]] = []
        self.requests: list[httpx.Request] = []

    def add_job(self, name: str, next_build_number: int = 1) -> None:
        self.jobs[name] = "<flow-definition/>"
        self.next_build_numbers[name] = next_build_number

    def requests_to(self, path_suffix: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith(path_suffix)]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.headers.get("Authorization") != self.authorization:
            return httpx.Response(401, text="Unauthorized")

        path = request.url.path
        segments = [unquote(s) for s in path.strip("/").split("/")]

        if path == "/crumbIssuer/api/json":
            return self._crumb()

        if request.method == "POST" and not self._crumb_ok(request):
            return httpx.Response(403, text="No valid crumb was included in the request")

        if path == "/createItem" and request.method == "POST":
            return self._create(request)

        if len(segments) == 4 and segments[0] == "job" and segments[3] == "json":
            return self._job_info(segments[1])

        if len(segments) == 3 and segments[0] == "job" and segments[2] == "buildWithParameters":
            return self._trigger(segments[1], request)

        if len(segments) == 5 and segments[0] == "queue" and segments[1] == "item":
            return self._queue_item(int(segments[2]))

        return httpx.Response(404, text="Not Found")

    def _crumb(self) -> httpx.Response:
        if self.crumb_status is not None:
            return httpx.Response(self.crumb_status, text="crumb issuer error")
        if not self.crumb_enabled:
            return httpx.Response(404, text="Not Found")
        return httpx.Response(
            200,
            json={
                "_class": "hudson.security.csrf.DefaultCrumbIssuer",
                "crumb": self.crumb_value,
                "crumbRequestField": self.crumb_field,
            },
        )

    def _crumb_ok(self, request: httpx.Request) -> bool:
        if not self.crumb_enabled or self.crumb_status is not None:
            return True
        return request.headers.get(self.crumb_field) == self.crumb_value

    def _create(self, request: httpx.Request) -> httpx.Response:
        if self.create_status is not None:
            return httpx.Response(self.create_status, text=self.create_body)
        name = request.url.params.get("name")
        if name in self.jobs:
            return httpx.Response(400, text=f"A job already exists with the name '{name}'")
        self.jobs[name] = request.content.decode("utf-8")
        self.next_build_numbers[name] = 1
        self.created.append(name)
        return httpx.Response(200)

    def _job_info(self, name: str) -> httpx.Response:
        if name not in self.jobs:
            return httpx.Response(404, text="Not Found")
        return httpx.Response(
            200,
            json={"name": name, "nextBuildNumber": self.next_build_numbers[name]},
        )

    def _trigger(self, name: str, request: httpx.Request) -> httpx.Response:
        if name not in self.jobs:
            return httpx.Response(404, text="Not Found")
        self.triggered.append(dict(request.url.params))
        headers = {}
        if self.trigger_location is not None:
            headers["Location"] = self.trigger_location
        return httpx.Response(self.trigger_status, headers=headers, text=self.trigger_body)

    def _queue_item(self, queue_id: int) -> httpx.Response:
        self.queue_polls += 1
        item = {"id": queue_id, "why": "Waiting for next available executor"}
        if self.resolve_at_attempt is not None and self.queue_polls >= self.resolve_at_attempt:
            item = {"id": queue_id, "executable": {"number": self.build_number}}
        return httpx.Response(
            200,
            content=json.dumps(item).encode(),
            headers={"Content-Type": "application/json;charset=utf-8"},
        )


@pytest.fixture
def deploy_config():
    """Configuration pointing at the fake server, with instant polling."""
    return DeployConfig(
        jenkins_url=JENKINS_URL,
        jenkins_user="deployer",
        jenkins_api_token="token-abc",
        poll_interval=0.001,
        poll_attempts=30,
    )


@pytest.fixture
def fake_jenkins(deploy_config):
    """A fresh in-memory CI server expecting the configured credentials."""
    return FakeJenkins(Authenticator.from_config(deploy_config).header())


@pytest.fixture
def jenkins_client(deploy_config, fake_jenkins):
    """JenkinsClient whose requests are served by fake_jenkins."""
    http = httpx.AsyncClient(transport=httpx.MockTransport(fake_jenkins.handler))
    return JenkinsClient(deploy_config, http=http)
