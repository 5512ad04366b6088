"""
Example: Reporting a Playwright session to Azure DevOps

This example shows the lifecycle of an AzureDevOpsHandler across a test session:
create the run, report steps and test cases, then finish the run.
"""
import asyncio
import logging
from dotenv import load_dotenv
from playwright.async_api import async_playwright

from testbridge.api_app.handler import do_get
from testbridge.azure_app.handler import AzureDevOpsHandler
from testbridge.config import AzureDevOpsConfig, get_api_base_url
from testbridge.logger import close_logger, logger_setup, write_log
from testbridge.services import attach_assertion_file_to_report, literal_values_assertion

load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

TEST_PLAN_ID = 1234
TEST_SUITE_ID = 1235
TEST_CASES = {
    "1236": "Get book by isbn",
    "1237": "List books",
}


async def run_test_case(handler: AzureDevOpsHandler, api_context, test_case_id: str, title: str):
    """One test case: steps are reported as they finish, the case at the end"""
    result_path = f"./test-results/example-{test_case_id}-{title.replace(' ', '-')}"
    assertion_logger = logger_setup(result_path)
    report = []
    step = 1
    status = "passed"

    try:
        response = await do_get(api_context, "/api/books/1234")
        book = await response.json()
        write_log(str(book), assertion_logger)
        handler.update_test_step_result(test_case_id, step, status)

        step = 2
        literal_values_assertion(book.get("isbn"), "1234", assertion_logger)
        handler.update_test_step_result(test_case_id, step, status)
    except AssertionError:
        status = "failed"
        handler.update_test_step_result(test_case_id, step, status)
    finally:
        close_logger(assertion_logger)
        attach_assertion_file_to_report(lambda name, value: report.append((name, value)), result_path)

    await handler.update_test_case_result(test_case_id, status, result_path)
    print(f"{test_case_id} - {title}: {status} {report}")


async def example_session():
    """Full session against the API under test"""
    print("\n=== Azure DevOps Session ===\n")

    config = AzureDevOpsConfig.from_env(TEST_PLAN_ID, TEST_SUITE_ID, list(TEST_CASES))
    handler = AzureDevOpsHandler(config)
    run_id = await handler.create_test_run()
    print(f"Test run created: {run_id}")

    async with async_playwright() as playwright:
        api_context = await playwright.request.new_context(base_url=get_api_base_url())
        try:
            for test_case_id, title in TEST_CASES.items():
                await run_test_case(handler, api_context, test_case_id, title)
        finally:
            await api_context.dispose()

    await handler.update_test_run_result()
    print(f"Test run {run_id} completed with {len(handler.run_attachments)} attachments")


if __name__ == "__main__":
    asyncio.run(example_session())
