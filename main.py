"""
testbridge - command line checks
Verify the Azure DevOps and database configuration used by the Playwright test suites
before running them.
"""
import sys
import os
import argparse
import asyncio
import logging
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

import requests

from testbridge.config import AzureDevOpsConfig, DatabaseConfig, AZURE_DEVOPS_HOST
from testbridge.azure_app.handler import AzureDevOpsHandler
from testbridge.database import (
    connect_to_mongodb,
    close_mongodb_connection,
    connect_to_oracledb,
    close_oracledb_connection
)
from testbridge.exceptions import ApiRequestError, ConfigurationError, ReferenceMissingError
from testbridge.logger import setup_logger


def check_azure_connection():
    """Check if Azure DevOps is accessible"""
    print("\n🔍 Checking Azure DevOps connection...")

    organization = os.getenv("AZURE_ORGANIZATION")
    project = os.getenv("AZURE_PROJECT")
    pat = os.getenv("AZURE_PAT")
    host = os.getenv("AZURE_DEVOPS_URL", AZURE_DEVOPS_HOST).rstrip('/')

    if not all([organization, project, pat]):
        print("❌ AZURE_ORGANIZATION, AZURE_PROJECT or AZURE_PAT not set!")
        print("   Copy .env.example to .env and configure it")
        return False

    try:
        url = f"{host}/{organization}/_apis/projects/{project}?api-version=7.1"
        response = requests.get(url, auth=("", pat), timeout=10)

        if response.status_code == 200:
            print(f"✅ Azure DevOps connected! Project: {response.json().get('name', project)}")
            return True
        elif response.status_code in (401, 203):
            print("❌ Authentication failed! Check your personal access token")
            return False
        else:
            print(f"❌ Connection failed! Status: {response.status_code}")
            return False

    except requests.exceptions.ConnectionError:
        print("❌ Cannot connect to Azure DevOps")
        return False
    except requests.exceptions.Timeout:
        print("❌ Connection timeout")
        return False


async def resolve_points(plan_id: int, suite_id: int, test_case_ids):
    """Print the test point of every given test case"""
    config = AzureDevOpsConfig.from_env(plan_id, suite_id, test_case_ids)
    handler = AzureDevOpsHandler(config)

    print(f"\n📋 Resolving test points for plan {plan_id}, suite {suite_id}...")
    test_cases = await handler.get_points_id()
    for test_case_id, test_case in test_cases.items():
        print(f"   Test case {test_case_id} -> point {test_case.point_id}")
    print(f"✅ {len(test_cases)} test points resolved")


def check_mongodb_connection():
    """Open and close a MongoDB connection"""
    print("\n🔍 Checking MongoDB connection...")
    db_config = DatabaseConfig.from_env()
    db_config.require_mongodb()

    client = connect_to_mongodb(db_config.mongodb_uri)
    close_mongodb_connection(client)
    print("✅ MongoDB connected!")


def check_oracledb_connection():
    """Open and close an OracleDB connection"""
    print("\n🔍 Checking OracleDB connection...")
    db_config = DatabaseConfig.from_env()
    db_config.require_oracle()

    connection = connect_to_oracledb(db_config.user, db_config.password, db_config.connect_string)
    close_oracledb_connection(connection)
    print("✅ OracleDB connected!")


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="testbridge - Azure DevOps reporting for Playwright test suites",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Configuration:\n"
            "  Azure DevOps: AZURE_ORGANIZATION, AZURE_PROJECT, AZURE_PAT\n"
            "  OracleDB:     DB_USER, DB_PASSWORD, DB_CONNECT_STRING\n"
            "  MongoDB:      MONGODB_CONNECTION_STRING\n"
        )
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Check the Azure DevOps connection"
    )
    parser.add_argument(
        "--points",
        nargs="+",
        metavar="ID",
        help="Resolve test points: PLAN_ID SUITE_ID TEST_CASE_ID [TEST_CASE_ID ...]"
    )
    parser.add_argument(
        "--check-mongo",
        action="store_true",
        help="Check the MongoDB connection"
    )
    parser.add_argument(
        "--check-oracle",
        action="store_true",
        help="Check the OracleDB connection"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging (verbose output)"
    )

    args = parser.parse_args(argv)

    if args.debug:
        setup_logger("testbridge", "logs/testbridge.log", logging.DEBUG)
        print("🐛 Debug mode enabled")
    else:
        setup_logger("testbridge", level=logging.INFO)

    if not any([args.check, args.points, args.check_mongo, args.check_oracle]):
        parser.print_help()
        return 0

    exit_code = 0
    try:
        if args.check and not check_azure_connection():
            exit_code = 1

        if args.points:
            if len(args.points) < 3:
                parser.error("--points needs PLAN_ID SUITE_ID and at least one TEST_CASE_ID")
            plan_id, suite_id, *test_case_ids = args.points
            asyncio.run(resolve_points(int(plan_id), int(suite_id), test_case_ids))

        if args.check_mongo:
            check_mongodb_connection()

        if args.check_oracle:
            check_oracledb_connection()

    except (ConfigurationError, ApiRequestError, ReferenceMissingError) as e:
        print(f"\n❌ Error: {str(e)}")
        exit_code = 1

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
