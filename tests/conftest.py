import copy
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import httpx
import pytest

from model_viewer.core.config import LocalSettings
from model_viewer.domain.models import Manifest

BASE_URL = "https://aps.test"

SAMPLE_MANIFEST: Dict[str, Any] = {
    "type": "manifest",
    "urn": "dXJuOmFkc2sub2JqZWN0czpvcy5vYmplY3Q6dGVzdC1idWNrZXQvaG91c2UuZHdn",
    "status": "success",
    "progress": "complete",
    "derivatives": [
        {
            "name": "house.dwg",
            "outputType": "svf2",
            "status": "success",
            "progress": "complete",
            "children": [
                {"guid": "sheet-1", "type": "geometry", "role": "2d", "name": "Layout1"},
                {
                    "guid": "model-3d",
                    "type": "geometry",
                    "role": "3d",
                    "name": "Model",
                    "children": [{"guid": "view-home", "type": "view", "role": "3d", "name": "Home"}],
                },
            ],
        }
    ],
}


def manifest(status: str = "success", progress: str = "complete", derivatives: Optional[list] = None) -> Manifest:
    data = copy.deepcopy(SAMPLE_MANIFEST)
    data["status"] = status
    data["progress"] = progress
    if derivatives is not None:
        data["derivatives"] = derivatives
    return Manifest.model_validate(data)


RouteResponse = Union[Tuple[int, Any], Callable[[httpx.Request], httpx.Response]]


class FakeAPS:
    """
    Scripted APS endpoints behind an httpx.MockTransport.
    Routes are keyed by (METHOD, path); a list of responses is served in order.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.routes: Dict[Tuple[str, str], List[RouteResponse]] = {}

    def on(self, method: str, path: str, *responses: RouteResponse) -> "FakeAPS":
        self.routes[(method.upper(), path)] = list(responses)
        return self

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method.upper() and r.url.path == path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get((request.method, request.url.path))

        if not queue:
            return httpx.Response(404, json={"reason": f"No route for {request.method} {request.url.path}"})

        # Keep serving the last response once the script runs out
        response = queue.pop(0) if len(queue) > 1 else queue[0]

        if callable(response):
            return response(request)

        status, body = response
        return httpx.Response(status, json=body)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(self.handler))


class FakeClock:
    """Milliseconds since epoch, moved by hand."""

    def __init__(self, now: float = 1_700_000_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture
def settings() -> LocalSettings:
    return LocalSettings(
        APS_BASE_URL=BASE_URL,
        APS_CLIENT_ID="client-id",
        APS_CLIENT_SECRET="client-secret",
        BUCKET_KEY="test-bucket",
        POLLING_INTERVAL=0,
    )


@pytest.fixture
def fake_aps() -> FakeAPS:
    return FakeAPS()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sample_manifest() -> Manifest:
    return manifest()
