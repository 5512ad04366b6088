"""Tests for the Azure DevOps test run handler."""
import base64
import logging
from unittest.mock import patch

import pytest

from testbridge.azure_app import handler as handler_module
from testbridge.azure_app.handler import AzureDevOpsHandler
from testbridge.exceptions import ApiRequestError, ReferenceMissingError

from conftest import PLAN_ID, RUN_ID, SUITE_ID


def test_step_to_action_path_is_zero_padded():
    assert AzureDevOpsHandler.test_step_to_action_path(0) == "00000001"
    assert AzureDevOpsHandler.test_step_to_action_path(1) == "00000002"
    assert AzureDevOpsHandler.test_step_to_action_path(99) == "00000100"
    assert len(AzureDevOpsHandler.test_step_to_action_path(12345)) == 8


def test_handler_headers_use_basic_auth(handler):
    expected = base64.b64encode(b":secret-token").decode()
    assert handler.headers["Authorization"] == f"Basic {expected}"
    assert handler.headers["Content-Type"] == "application/json"
    assert handler.base_url == "https://dev.azure.com/acme/shop/_apis"


@pytest.mark.asyncio
async def test_get_points_id_resolves_every_test_case(handler, fake_azure):
    test_cases = await handler.get_points_id()

    assert {key: value.point_id for key, value in test_cases.items()} == {"1001": 9000, "1002": 9001}
    point_calls = fake_azure.requests("GET", "/points")
    assert len(point_calls) == 2
    assert all(f"/test/Plans/{PLAN_ID}/suites/{SUITE_ID}/points" in call.url for call in point_calls)


@pytest.mark.asyncio
async def test_get_points_id_without_match_fails_and_keeps_registry_empty(handler, fake_azure):
    fake_azure.points["1002"] = []

    with pytest.raises(ReferenceMissingError, match="1002"):
        await handler.get_points_id()

    assert handler.test_cases == {}


@pytest.mark.asyncio
async def test_get_points_id_takes_first_of_several_points(handler, fake_azure, caplog):
    fake_azure.points["1001"] = [{"id": 1}, {"id": 2}]

    with caplog.at_level(logging.WARNING, logger="testbridge.azure"):
        test_cases = await handler.get_points_id()

    assert test_cases["1001"].point_id == 1
    assert "2 test points" in caplog.text


@pytest.mark.asyncio
async def test_get_points_id_propagates_http_failure(handler, fake_azure):
    fake_azure.fail_on("GET", "testCaseId=1001", status=500, text="points exploded")

    with pytest.raises(ApiRequestError) as exc_info:
        await handler.get_points_id()

    assert "500" in str(exc_info.value)
    assert "points exploded" in str(exc_info.value)
    assert handler.test_cases == {}


@pytest.mark.asyncio
async def test_create_test_run_assigns_points_and_results(handler, fake_azure):
    run_id = await handler.create_test_run()

    assert run_id == RUN_ID
    assert handler.run_id == RUN_ID

    create_call = fake_azure.requests("POST", "/test/runs")[0]
    assert create_call.body == {
        "name": "Playwright automated test run",
        "plan": {"id": str(PLAN_ID)},
        "pointIds": [9000, 9001],
    }

    for test_case_id in ("1001", "1002"):
        test_case = handler.test_cases[test_case_id]
        assert test_case.point_id is not None
        assert test_case.result is not None
        assert test_case.result.comment == "Automated run with Playwright"
        iterations = test_case.result.iteration_details
        assert len(iterations) == 1
        assert iterations[0].id == 1
        assert iterations[0].started_date.year == 2024
        assert iterations[0].action_results == []

    assert handler.test_cases["1001"].result.id == 100000


@pytest.mark.asyncio
async def test_create_test_run_pages_through_results(handler, fake_azure):
    with patch.object(handler_module, "RESULTS_PAGE_SIZE", 1):
        await handler.create_test_run()

    result_calls = fake_azure.requests("GET", f"/test/Runs/{RUN_ID}/results")
    assert ["$skip=0" in call.url for call in result_calls] == [True, False, False]
    assert "$skip=2" in result_calls[-1].url
    assert handler.test_cases["1002"].result.id == 100001


@pytest.mark.asyncio
async def test_create_test_run_stops_when_server_ignores_skip(handler, fake_azure):
    fake_azure.ignore_skip = True

    with patch.object(handler_module, "RESULTS_PAGE_SIZE", 2):
        await handler.create_test_run()

    assert len(fake_azure.requests("GET", f"/test/Runs/{RUN_ID}/results")) == 2
    assert handler.test_cases["1001"].result.id == 100000
    assert handler.test_cases["1002"].result.id == 100001


@pytest.mark.asyncio
async def test_create_test_run_rejects_untracked_result(handler, fake_azure):
    fake_azure.run_results.append({"id": 5, "testCase": {"id": "7777"}})

    with pytest.raises(ReferenceMissingError, match="7777"):
        await handler.create_test_run()

    assert all(test_case.result is None for test_case in handler.test_cases.values())


@pytest.mark.asyncio
async def test_create_test_run_requires_result_for_every_test_case(handler, fake_azure):
    fake_azure.run_results.pop()

    with pytest.raises(ReferenceMissingError, match="1002"):
        await handler.create_test_run()


@pytest.mark.asyncio
async def test_create_test_run_failure_surfaces_status_and_body(handler, fake_azure):
    fake_azure.fail_on("POST", "/test/runs", status=500, text="run service down")

    with pytest.raises(ApiRequestError) as exc_info:
        await handler.create_test_run()

    assert exc_info.value.status_code == 500
    assert "run service down" in str(exc_info.value)
    assert handler.run_id is None


@pytest.mark.asyncio
async def test_create_test_run_results_failure_leaves_no_run(handler, fake_azure):
    fake_azure.fail_on("GET", f"/test/Runs/{RUN_ID}/results", status=500, text="results unavailable")

    with pytest.raises(ApiRequestError, match="results unavailable"):
        await handler.create_test_run()

    assert handler.run_id is None
    with pytest.raises(ReferenceMissingError):
        await handler.update_test_run_result()
    assert fake_azure.requests("PATCH") == []


def test_updates_before_run_creation_fail(handler):
    with pytest.raises(ReferenceMissingError):
        handler.update_test_step_result("1001", 1, "passed")


@pytest.mark.asyncio
async def test_case_update_before_run_creation_fails(handler, fake_azure, result_dir):
    with pytest.raises(ReferenceMissingError):
        await handler.update_test_case_result("1001", "passed", result_dir)

    assert fake_azure.calls == []


@pytest.mark.asyncio
async def test_step_results_are_appended_in_call_order(handler, fake_azure):
    await handler.create_test_run()

    handler.update_test_step_result("1001", 1, "passed")
    handler.update_test_step_result("1001", 2, "passed")
    handler.update_test_step_result("1001", 2, "failed")

    iteration = handler.test_cases["1001"].result.iteration_details[0]
    assert [action.action_path for action in iteration.action_results] == ["00000002", "00000003", "00000003"]
    assert [action.outcome for action in iteration.action_results] == ["passed", "passed", "failed"]
    assert [action.step_identifier for action in iteration.action_results] == ["1", "2", "2"]
    assert all(action.iteration_id == 1 for action in iteration.action_results)
    assert iteration.action_results[0].started_date == iteration.started_date
    assert iteration.action_results[0].completed_date == iteration.completed_date
    assert handler.test_cases["1002"].result.iteration_details[0].action_results == []


@pytest.mark.asyncio
async def test_update_test_case_result_passed(handler, fake_azure, result_dir):
    await handler.create_test_run()
    handler.update_test_step_result("1001", 1, "passed")

    await handler.update_test_case_result("1001", "passed", result_dir)

    result = handler.test_cases["1001"].result
    assert result.state == "Completed"
    assert result.outcome == "passed"
    assert result.iteration_details[0].outcome == "passed"

    patch_call = fake_azure.requests("PATCH", f"/test/Runs/{RUN_ID}/results")[0]
    payload = patch_call.body[0]
    assert payload["id"] == 100000
    assert payload["state"] == "Completed"
    assert payload["outcome"] == "passed"
    assert payload["iterationDetails"][0]["actionResults"][0]["actionPath"] == "00000002"

    attachment_calls = fake_azure.requests("POST", f"/Results/{result.id}/attachments")
    assert sorted(call.body["fileName"] for call in attachment_calls) == ["1001 - a.png", "1001 - b.txt"]
    assert all(call.body["attachmentType"] == "GeneralAttachment" for call in attachment_calls)

    backlog_call = fake_azure.requests("PATCH", "/wit/workitems/1001")[0]
    assert backlog_call.headers["Content-Type"] == "application/json-patch+json"
    assert backlog_call.body[0] == {"op": "replace", "path": "/fields/System.State", "value": "Ready"}
    assert backlog_call.body[1]["path"] == "/fields/System.History"


@pytest.mark.asyncio
@pytest.mark.parametrize("outcome", ["failed", "blocked", "timedOut"])
async def test_update_test_case_result_not_passed_moves_to_design(handler, fake_azure, result_dir, outcome):
    await handler.create_test_run()

    await handler.update_test_case_result("1002", outcome, result_dir)

    assert handler.test_cases["1002"].result.outcome == outcome
    backlog_call = fake_azure.requests("PATCH", "/wit/workitems/1002")[0]
    assert backlog_call.body[0]["value"] == "Design"
    assert backlog_call.body[1]["value"] == "Playwright automation failed for this test case"


@pytest.mark.asyncio
async def test_update_test_case_result_http_failure_keeps_cached_result(handler, fake_azure, result_dir):
    await handler.create_test_run()
    fake_azure.fail_on("PATCH", f"/test/Runs/{RUN_ID}/results", status=500, text="result update failed")

    with pytest.raises(ApiRequestError) as exc_info:
        await handler.update_test_case_result("1001", "passed", result_dir)

    assert "500" in str(exc_info.value)
    assert "result update failed" in str(exc_info.value)
    result = handler.test_cases["1001"].result
    assert result.state == "Pending"
    assert result.outcome is None
    assert result.iteration_details[0].outcome is None
    assert fake_azure.requests("PATCH", "/wit/workitems") == []
    assert handler.run_attachments == []


@pytest.mark.asyncio
async def test_update_test_case_result_attachment_failure_skips_backlog(handler, fake_azure, result_dir):
    await handler.create_test_run()
    fake_azure.fail_on("POST", "/Results/100000/attachments", status=500, text="attachment rejected")

    with pytest.raises(ApiRequestError, match="attachment rejected"):
        await handler.update_test_case_result("1001", "passed", result_dir)

    assert fake_azure.requests("POST", "/Results/100000/attachments")
    assert fake_azure.requests("PATCH", "/wit/workitems") == []


def test_convert_attachments_to_base64(handler, result_dir):
    attachments = handler.convert_attachments_to_base64("1001", result_dir)

    by_name = {attachment.file_name: attachment for attachment in attachments}
    assert set(by_name) == {"1001 - a.png", "1001 - b.txt"}
    assert base64.b64decode(by_name["1001 - b.txt"].stream) == b"ASSERTION RESULT"
    assert by_name["1001 - a.png"].comment == "Playwright automation attachment"
    assert handler.run_attachments == attachments


def test_run_attachments_accumulate(handler, result_dir):
    handler.convert_attachments_to_base64("1001", result_dir)
    handler.convert_attachments_to_base64("1002", result_dir)

    assert len(handler.run_attachments) == 4
    assert {attachment.file_name for attachment in handler.run_attachments} == {
        "1001 - a.png", "1001 - b.txt", "1002 - a.png", "1002 - b.txt"
    }


@pytest.mark.asyncio
async def test_update_test_run_result_completes_run_and_uploads_attachments(handler, fake_azure, result_dir):
    await handler.create_test_run()
    await handler.update_test_case_result("1001", "passed", result_dir)
    await handler.update_test_case_result("1002", "failed", result_dir)

    await handler.update_test_run_result()

    run_patch = fake_azure.requests("PATCH", f"/test/runs/{RUN_ID}?")[0]
    assert run_patch.body == {"state": "Completed", "comment": "Playwright automation finished"}

    run_attachment_calls = fake_azure.requests("POST", f"/test/Runs/{RUN_ID}/attachments")
    assert len(run_attachment_calls) == 4
    assert {call.body["fileName"] for call in run_attachment_calls} == {
        "1001 - a.png", "1001 - b.txt", "1002 - a.png", "1002 - b.txt"
    }


@pytest.mark.asyncio
async def test_update_test_run_result_without_run_fails(handler, fake_azure):
    with pytest.raises(ReferenceMissingError):
        await handler.update_test_run_result()

    assert fake_azure.calls == []


@pytest.mark.asyncio
async def test_requests_use_configured_timeout(azure_config, fake_azure):
    azure_config.timeout = 5
    await AzureDevOpsHandler(azure_config).get_points_id()

    assert {call.timeout for call in fake_azure.calls} == {5}
