"""Tests for the HTTP status gateway."""

from __future__ import annotations

import json

import httpx

from swipe_triage.interaction import HttpStatusGateway


def _gateway(handler) -> HttpStatusGateway:
    client = httpx.Client(
        transport=httpx.MockTransport(handler), base_url="http://triage.test"
    )
    return HttpStatusGateway("http://triage.test", client=client)


def test_commit_sends_patch_with_status_body() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"id": 3, "status": "later"})

    gateway = _gateway(handler)

    assert gateway.commit(3, "later") is True
    assert requests[0].method == "PATCH"
    assert requests[0].url.path == "/items/3/status"
    assert json.loads(requests[0].content) == {"status": "later"}


def test_undo_posts_to_undo_endpoint() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"id": 8, "status": "inbox"})

    gateway = _gateway(handler)

    assert gateway.undo(8) is True
    assert requests[0].method == "POST"
    assert requests[0].url.path == "/items/8/undo"


def test_error_status_is_reported_as_failure() -> None:
    gateway = _gateway(lambda request: httpx.Response(404, json={"detail": "missing"}))

    assert gateway.commit(1, "archived") is False
    assert gateway.undo(1) is False


def test_transport_error_is_reported_as_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    gateway = _gateway(handler)

    assert gateway.commit(1, "archived") is False


def test_gateway_closes_only_its_own_client() -> None:
    client = httpx.Client(
        transport=httpx.MockTransport(lambda request: httpx.Response(200))
    )
    with HttpStatusGateway("http://triage.test", client=client):
        pass
    assert client.is_closed is False

    owned = HttpStatusGateway("http://triage.test")
    owned.close()
    assert owned._client.is_closed is True  # pylint: disable=protected-access
