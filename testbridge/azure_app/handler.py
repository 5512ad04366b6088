import asyncio
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

from testbridge.api_app.client import api_request
from testbridge.azure_app.models import (
    AttachmentRecord,
    IterationRecord,
    ResultRecord,
    StepActionRecord,
    TestCaseRecord,
)
from testbridge.config import AzureDevOpsConfig
from testbridge.exceptions import ReferenceMissingError
from testbridge.services.file_service import file_to_base64, get_files

logger = logging.getLogger("testbridge.azure")

RUN_NAME = "Playwright automated test run"
RUN_FINISHED_COMMENT = "Playwright automation finished"
RESULTS_PAGE_SIZE = 100


class AzureDevOpsHandler:
    """
    Reports a Playwright test session to an Azure DevOps test run.

    One instance per session: `create_test_run` once at the start,
    `update_test_step_result` per step, `update_test_case_result` per test case
    and `update_test_run_result` once at the end.
    """

    def __init__(self, config: AzureDevOpsConfig):
        self.config = config
        self.base_url = config.base_url
        self.headers = {
            'Content-Type': 'application/json',
            'Authorization': config.authorization,
        }
        self.run_id: Optional[int] = None
        self.test_cases: Dict[str, TestCaseRecord] = {}
        self.run_attachments: List[AttachmentRecord] = []

    async def _request(self, url: str, method: str = "GET", body=None, headers: Optional[Dict[str, str]] = None):
        return await api_request(
            url,
            method=method,
            headers=headers or self.headers,
            body=body,
            timeout=self.config.timeout
        )

    def _get_test_case_result(self, test_case_id: str) -> ResultRecord:
        test_case = self.test_cases.get(str(test_case_id))
        if test_case is None or test_case.result is None:
            raise ReferenceMissingError(f"Test case data for ID {test_case_id} does not exist.")
        return test_case.result

    def _get_iteration(self, test_case_id: str) -> IterationRecord:
        iterations = self._get_test_case_result(test_case_id).iteration_details
        if not iterations:
            raise ReferenceMissingError(f"Iteration data for ID {test_case_id} does not exist.")
        return iterations[0]

    def _require_run(self) -> int:
        if self.run_id is None:
            raise ReferenceMissingError("No test run has been created for this session.")
        return self.run_id

    # ========== Test Points ==========

    async def _get_point_id(self, test_case_id: str) -> int:
        """
        Test Point:
        A test point is a unique combination of test case, test suite,
        configuration and tester, and is what a test run is built from.
        """
        url = (
            f"{self.base_url}/test/Plans/{self.config.plan_id}/suites/{self.config.suite_id}/points"
            f"?api-version=7.1-preview.2&testCaseId={test_case_id}"
        )
        body = await self._request(url)
        points = (body or {}).get("value") or []

        if not points:
            raise ReferenceMissingError(
                f"No test point found for test case {test_case_id} in plan {self.config.plan_id} "
                f"suite {self.config.suite_id}"
            )
        if len(points) > 1:
            logger.warning(
                f"Test case {test_case_id} has {len(points)} test points, using point {points[0]['id']}"
            )
        return points[0]["id"]

    async def get_points_id(self) -> Dict[str, TestCaseRecord]:
        """Resolve the test point of every configured test case"""
        test_case_ids = self.config.test_case_ids
        point_ids = await asyncio.gather(*[self._get_point_id(test_case_id) for test_case_id in test_case_ids])

        self.test_cases = {
            test_case_id: TestCaseRecord(point_id=point_id)
            for test_case_id, point_id in zip(test_case_ids, point_ids)
        }
        logger.info(f"Resolved {len(self.test_cases)} test points")
        return self.test_cases

    # ========== Test Run ==========

    async def create_test_run(self) -> int:
        """
        Create Test Run:
        Azure DevOps executes test cases inside a test run, which acts as a
        container for all the test results. The run is created from the test
        points of the configured test cases, then its results are cached.
        """
        await self.get_points_id()
        point_ids = [test_case.point_id for test_case in self.test_cases.values()]
        request_body = {
            'name': RUN_NAME,
            'plan': {'id': str(self.config.plan_id)},
            'pointIds': point_ids,
        }
        url = f"{self.base_url}/test/runs?api-version=7.1-preview.2"

        body = await self._request(url, method="POST", body=request_body)
        run_id = body["id"]
        logger.info(f"Test Run {run_id} successfully created...")

        await self._assign_result_from_run(run_id)
        self.run_id = run_id
        return self.run_id

    async def _get_run_results(self, run_id: int) -> List[dict]:
        results = []
        seen_ids = set()
        skip = 0
        while True:
            url = (
                f"{self.base_url}/test/Runs/{run_id}/results"
                f"?detailsToInclude=WorkItems&$top={RESULTS_PAGE_SIZE}&$skip={skip}&api-version=7.1-preview.6"
            )
            body = await self._request(url)
            page = (body or {}).get("value") or []
            new_results = [value for value in page if value["id"] not in seen_ids]
            results.extend(new_results)
            seen_ids.update(value["id"] for value in new_results)
            # Stop on a short page or on a page with no unseen results
            if len(page) < RESULTS_PAGE_SIZE or not new_results:
                return results
            skip += RESULTS_PAGE_SIZE

    async def _assign_result_from_run(self, run_id: int):
        """Cache the result of every test case of the run"""
        results: Dict[str, ResultRecord] = {}
        for value in await self._get_run_results(run_id):
            test_case_id = str(value["testCase"]["id"])
            if test_case_id not in self.test_cases:
                raise ReferenceMissingError(
                    f"Run {run_id} returned a result for untracked test case {test_case_id}"
                )
            results[test_case_id] = ResultRecord.from_run_result(value)

        missing = [test_case_id for test_case_id in self.test_cases if test_case_id not in results]
        if missing:
            raise ReferenceMissingError(
                f"Run {run_id} has no result for test cases: {', '.join(missing)}"
            )

        for test_case_id, result in results.items():
            self.test_cases[test_case_id].result = result
        logger.debug(f"Assigned {len(results)} results from run {run_id}")

    async def update_test_run_result(self):
        """Mark the test run Completed and upload every collected attachment to it"""
        run_id = self._require_run()
        url = f"{self.base_url}/test/runs/{run_id}?api-version=7.1-preview.3"
        await self._request(url, method="PATCH", body={
            "state": "Completed",
            "comment": RUN_FINISHED_COMMENT,
        })
        logger.info(f"Test Run {run_id} completed")
        await self.send_test_run_attachments()

    # ========== Attachments ==========

    def convert_attachments_to_base64(self, test_case_id: str, path: Union[str, Path]) -> List[AttachmentRecord]:
        """
        Encode every file of a result directory as an attachment

        The attachments are also kept for the run level upload.

        Args:
            test_case_id: Test case the files belong to
            path: Directory holding the files

        Returns:
            Attachment records named "<test case id> - <file name>"
        """
        attachments = [
            AttachmentRecord(
                stream=file_to_base64(Path(path) / file_name),
                file_name=f"{test_case_id} - {file_name}",
            )
            for file_name in get_files(path)
        ]
        self.run_attachments.extend(attachments)
        return attachments

    async def send_test_result_attachments(self, test_case_id: str, path: Union[str, Path]):
        """Attach the files of a directory to the test case result"""
        result = self._get_test_case_result(test_case_id)
        attachments = self.convert_attachments_to_base64(test_case_id, path)
        url = f"{self.base_url}/test/Runs/{self.run_id}/Results/{result.id}/attachments?api-version=7.1-preview.1"
        await asyncio.gather(*[
            self._request(url, method="POST", body=attachment.to_payload())
            for attachment in attachments
        ])
        logger.debug(f"Uploaded {len(attachments)} attachments for test case {test_case_id}")

    async def send_test_run_attachments(self):
        """Attach every collected attachment to the test run"""
        url = f"{self.base_url}/test/Runs/{self._require_run()}/attachments?api-version=7.1-preview.1"
        await asyncio.gather(*[
            self._request(url, method="POST", body=attachment.to_payload())
            for attachment in self.run_attachments
        ])
        logger.debug(f"Uploaded {len(self.run_attachments)} attachments to run {self.run_id}")

    # ========== Test Results ==========

    @staticmethod
    def test_step_to_action_path(test_step: int) -> str:
        """Action path of a step: 1 + step, zero padded to 8 digits"""
        return str(1 + test_step).zfill(8)

    async def update_test_case_backlog_status(self, test_case_id: str, outcome: str):
        """Move the test case work item to Ready when it passed, back to Design otherwise"""
        url = f"{self.base_url}/wit/workitems/{test_case_id}?api-version=7.1-preview.3"
        if outcome.lower() == "passed":
            state = "Ready"
            history = "Playwright automation execution finished succesfully"
        else:
            state = "Design"
            history = "Playwright automation failed for this test case"

        headers = {
            'Content-Type': 'application/json-patch+json',
            'Authorization': self.config.authorization,
        }
        await self._request(url, method="PATCH", headers=headers, body=[
            {"op": "replace", "path": "/fields/System.State", "value": state},
            {"op": "add", "path": "/fields/System.History", "value": history},
        ])
        logger.info(f"Test case {test_case_id} backlog state set to {state}")

    async def update_test_case_result(self, test_case_id: str, outcome: str, path: Union[str, Path]):
        """
        Update Test Result:
        Report the outcome of a test case, including its steps, to the test run.
        Valid outcomes are Unspecified, None, Passed, Failed, Inconclusive,
        Timeout, Aborted, Blocked, NotExecuted, Warning, Error, NotApplicable,
        Paused, InProgress and NotImpacted; automation uses passed, failed and
        blocked. The files found in `path` are attached to the result and the
        test case work item backlog state is updated.

        Args:
            test_case_id: Test case id
            outcome: Test outcome
            path: Result directory with the attachments
        """
        test_case_id = str(test_case_id)
        self._get_iteration(test_case_id)

        result = self._get_test_case_result(test_case_id).model_copy(deep=True)
        result.state = "Completed"
        result.outcome = outcome
        result.iteration_details[0].outcome = outcome

        url = f"{self.base_url}/test/Runs/{self._require_run()}/results?api-version=7.1-preview.6"
        await self._request(url, method="PATCH", body=[result.to_payload()])
        self.test_cases[test_case_id].result = result
        logger.info(f"Test case {test_case_id} result updated: {outcome}")

        await self.send_test_result_attachments(test_case_id, path)
        await self.update_test_case_backlog_status(test_case_id, outcome)

    def update_test_step_result(self, test_case_id: str, test_step: int, outcome: str) -> StepActionRecord:
        """Append the outcome of a test step to the test case iteration"""
        action_path = self.test_step_to_action_path(test_step)
        iteration = self._get_iteration(str(test_case_id))

        action_result = StepActionRecord(
            action_path=action_path,
            iteration_id=iteration.id,
            step_identifier=str(test_step),
            outcome=outcome,
            started_date=iteration.started_date,
            completed_date=iteration.completed_date,
        )
        iteration.action_results.append(action_result)
        return action_result
