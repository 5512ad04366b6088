"""
Shared fixtures: an in-memory stand-in for the Azure DevOps REST API
"""
from types import SimpleNamespace
from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

import pytest

from testbridge.azure_app.handler import AzureDevOpsHandler
from testbridge.config import AzureDevOpsConfig
from testbridge.exceptions import ApiRequestError

PLAN_ID = 100
SUITE_ID = 200
RUN_ID = 4242
STARTED = "2024-05-02T10:15:30.123Z"
COMPLETED = "2024-05-02T10:16:00.456Z"


class FakeAzureDevOps:
    """Async callable replacing api_request; records every call"""

    def __init__(self, test_case_ids):
        self.calls = []
        self.points = {
            test_case_id: [{"id": 9000 + index}]
            for index, test_case_id in enumerate(test_case_ids)
        }
        self.run_results = [
            {
                "id": 100000 + index,
                "state": "Pending",
                "startedDate": STARTED,
                "completedDate": COMPLETED,
                "testCase": {"id": test_case_id},
            }
            for index, test_case_id in enumerate(test_case_ids)
        ]
        self.failures = []
        self.ignore_skip = False

    def fail_on(self, method, fragment, status=500, text="Internal Server Error"):
        self.failures.append((method, fragment, status, text))

    def requests(self, method, fragment=""):
        return [call for call in self.calls if call.method == method and fragment in call.url]

    async def __call__(self, url, method="GET", headers=None, body=None, timeout=30):
        self.calls.append(SimpleNamespace(url=url, method=method, headers=headers, body=body, timeout=timeout))

        for fail_method, fragment, status, text in self.failures:
            if fail_method == method and fragment in url:
                raise ApiRequestError(status, text, url)

        parsed = urlparse(url)
        query = parse_qs(parsed.query)

        if parsed.path.endswith("/points"):
            return {"value": self.points.get(query["testCaseId"][0], [])}
        if method == "POST" and parsed.path.endswith("/test/runs"):
            return {"id": RUN_ID, "name": body["name"]}
        if method == "GET" and parsed.path.endswith("/results"):
            skip = 0 if self.ignore_skip else int(query.get("$skip", ["0"])[0])
            top = int(query["$top"][0])
            return {"value": self.run_results[skip:skip + top]}
        return {}


@pytest.fixture
def test_case_ids():
    return ["1001", "1002"]


@pytest.fixture
def azure_config(test_case_ids):
    return AzureDevOpsConfig(
        organization="acme",
        project="shop",
        pat="secret-token",
        plan_id=PLAN_ID,
        suite_id=SUITE_ID,
        test_case_ids=test_case_ids,
    )


@pytest.fixture
def fake_azure(test_case_ids):
    fake = FakeAzureDevOps(test_case_ids)
    with patch("testbridge.azure_app.handler.api_request", new=fake):
        yield fake


@pytest.fixture
def handler(azure_config, fake_azure):
    return AzureDevOpsHandler(azure_config)


@pytest.fixture
def result_dir(tmp_path):
    directory = tmp_path / "test-results" / "1001-login"
    directory.mkdir(parents=True)
    (directory / "a.png").write_bytes(b"\x89PNG fake image")
    (directory / "b.txt").write_text("ASSERTION RESULT", encoding="utf-8")
    (directory / "trace").mkdir()
    return directory
