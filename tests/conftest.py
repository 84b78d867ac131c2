from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Tuple

import httpx
import pytest

from lazyiql.insight import InsightClient
from lazyiql.metrics import metrics

BASE_URL = "https://api.atlassian.com/jsm/insight/workspace/ws-1/v1/"

OBJECT_TYPES = [
    {"id": 1, "name": "Laptop"},
    {"id": 2, "name": "Server"},
]

SERVER_ATTRIBUTES = [
    {"id": 7, "name": "Name"},
    {"id": 9, "name": "Owner"},
]

SEARCH_RESULT = {
    "objectEntries": [
        {
            "objectKey": "IT-1",
            "attributes": [
                {"objectTypeAttributeId": 7, "objectAttributeValues": [{"displayValue": "srv-01"}]},
                {"objectTypeAttributeId": 9, "objectAttributeValues": [{"displayValue": "Alice"}]},
            ],
        },
    ]
}


def default_routes(search: Dict[str, Any] = SEARCH_RESULT) -> Dict[str, Any]:
    return {
        "objectschema/10/objecttypes": OBJECT_TYPES,
        "objecttype/2/attributes": SERVER_ATTRIBUTES,
        "iql/objects": search,
    }


class FakeClock:
    """Epoch-ms clock the tests move by hand."""

    def __init__(self, start: float = 1_700_000_000_000.0):
        self.t = start

    def __call__(self) -> float:
        return self.t

    def advance(self, ms: float) -> None:
        self.t += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def _reset_metrics():
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def fake_insight() -> Callable[..., Tuple[InsightClient, List[httpx.Request]]]:
    """
    Build an InsightClient whose HTTP calls hit an in-process route table
    instead of the network. Returns (client, recorded_requests).
    Route values may be JSON-able data or a ready httpx.Response.
    """

    def build(routes: Dict[str, Any] | None = None) -> Tuple[InsightClient, List[httpx.Request]]:
        table = default_routes() if routes is None else routes
        seen: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            path = request.url.path.split("/v1/", 1)[1]
            if path not in table:
                return httpx.Response(404, json={"errorMessages": [f"no route {path}"]})
            body = table[path]
            if isinstance(body, httpx.Response):
                return httpx.Response(body.status_code, headers=body.headers, content=body.content)
            return httpx.Response(200, content=json.dumps(body), headers={"Content-Type": "application/json"})

        client = InsightClient(BASE_URL, "me@example.com", "tok-123", transport=httpx.MockTransport(handler))
        return client, seen

    return build
