"""Shared pytest fixtures for nzbscout tests."""

import httpx
import pytest

from nzbscout.models.result import NzbResult


class RecordingTransport(httpx.MockTransport):
    """Mock transport answering by URL path and recording requests."""

    def __init__(self, routes: dict):
        self.routes = routes
        self.requests: list[httpx.Request] = []
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"status_message": "not found"})
        if isinstance(route, Exception):
            raise route
        if callable(route):
            return route(request)
        if isinstance(route, httpx.Response):
            return route
        return httpx.Response(200, json=route)

    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]


@pytest.fixture
def make_transport():
    """Build a RecordingTransport from a path -> response mapping."""
    return RecordingTransport


@pytest.fixture
def sample_results():
    """Results with mixed quality, size and language."""
    return [
        NzbResult(
            title="Movie.2020.720p.WEB-DL",
            size=4_000_000_000,
            language="English",
            quality_rank=3,
            download_url="https://indexer/1",
        ),
        NzbResult(
            title="Movie.2020.2160p.BluRay",
            size=60_000_000_000,
            language="German",
            quality_rank=5,
            download_url="https://indexer/2",
        ),
        NzbResult(
            title="Movie.2020.1080p.BluRay",
            size=12_000_000_000,
            languages=["english", "french"],
            quality_rank=4,
            download_url="https://indexer/3",
        ),
        NzbResult(
            title="Movie.2020.1080p.WEB",
            size=None,
            language="French",
            quality_rank=4,
            download_url="https://indexer/4",
        ),
    ]
