"""
Shared Test Fixtures
====================

Pytest fixtures used across all test modules.
Provides a fake boto3 Device Farm client (with paginators) and a mocked
httpx client so no test talks to AWS or S3.
"""

import os

# Keep real AWS settings out of the tests
for _var in ("AWS_ROLE_ARN", "UPLOAD_TIMEOUT", "UPLOAD_POLL_INTERVAL"):
    os.environ.pop(_var, None)

import pytest
from unittest.mock import MagicMock
from typing import Any, Callable, Union

import httpx

from devicefarm_runner.config import DeviceFarmSettings
from devicefarm_runner.farm.client import DeviceFarmClient


ACCOUNT_PREFIX = "arn:aws:devicefarm:us-west-2:123456789012"
PROJECT_ARN = f"{ACCOUNT_PREFIX}:project:proj-1"
RUN_ARN = f"{ACCOUNT_PREFIX}:run:proj-1/run-1"


def make_arn(resource_type: str, path: str) -> str:
    """Build a Device Farm ARN in the test account."""
    return f"{ACCOUNT_PREFIX}:{resource_type}:{path}"


PageSource = Union[list[dict[str, Any]], Callable[..., list[dict[str, Any]]]]


class FakePaginator:
    """Stands in for a botocore paginator, serving canned pages."""

    def __init__(self, api: "FakeDeviceFarmApi", operation: str) -> None:
        self.api = api
        self.operation = operation

    def paginate(self, **kwargs: Any) -> list[dict[str, Any]]:
        self.api.paginate_calls.append((self.operation, kwargs))
        source = self.api.pages.get(self.operation, [])
        if callable(source):
            return source(**kwargs)
        return list(source)


class FakeDeviceFarmApi(MagicMock):
    """
    MagicMock boto3 devicefarm client with working paginators.

    Set ``pages[operation]`` to a list of pages or to a callable receiving
    the paginate kwargs and returning pages.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.pages: dict[str, PageSource] = {}
        self.paginate_calls: list[tuple[str, dict[str, Any]]] = []
        self.get_paginator.side_effect = lambda operation: FakePaginator(self, operation)

    def _get_child_mock(self, **kwargs: Any) -> MagicMock:
        # Child attributes are plain mocks, not FakeDeviceFarmApi instances
        return MagicMock(**kwargs)


def http_response(status_code: int = 200, content: bytes = b"") -> MagicMock:
    """Create a mock httpx.Response."""
    response = MagicMock(spec=httpx.Response)
    response.status_code = status_code
    response.content = content
    return response


@pytest.fixture
def settings() -> DeviceFarmSettings:
    """Settings with no credentials and default polling."""
    return DeviceFarmSettings(
        aws_access_key_id="",
        aws_secret_access_key="",
        aws_session_token="",
        aws_role_arn="",
        upload_poll_interval=5.0,
        upload_timeout=None,
    )


@pytest.fixture
def fake_api() -> FakeDeviceFarmApi:
    return FakeDeviceFarmApi()


@pytest.fixture
def mock_http() -> MagicMock:
    """Mock httpx.Client answering every request with 200."""
    http = MagicMock(spec=httpx.Client)
    http.put.return_value = http_response(200)
    http.get.return_value = http_response(200, b"artifact-bytes")
    return http


@pytest.fixture
def farm(fake_api, mock_http, settings) -> DeviceFarmClient:
    """DeviceFarmClient wired to the fake API and mocked HTTP client."""
    return DeviceFarmClient(api=fake_api, http=mock_http, settings=settings)


@pytest.fixture
def project() -> dict[str, Any]:
    return {"name": "My App", "arn": PROJECT_ARN}
