"""
Configuration records for a test session.

Values are read from the process environment (entry points load a `.env`
file first with python-dotenv) and passed explicitly to the helpers.
"""
import os
import base64
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from testbridge.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

AZURE_DEVOPS_HOST = "https://dev.azure.com"


def _dedupe_test_cases(test_case_ids: Sequence) -> List[str]:
    """Keep the first occurrence of every test case id"""
    unique = []
    for test_case_id in test_case_ids:
        test_case_id = str(test_case_id).strip()
        if test_case_id in unique:
            logger.warning(f"Duplicate test case id {test_case_id} ignored")
            continue
        unique.append(test_case_id)
    return unique


@dataclass
class AzureDevOpsConfig:
    """Azure DevOps connection and test run selection"""
    organization: str
    project: str
    pat: str
    plan_id: int
    suite_id: int
    test_case_ids: List[str] = field(default_factory=list)
    host: str = AZURE_DEVOPS_HOST
    timeout: float = 30

    def __post_init__(self):
        missing = [name for name in ("organization", "project", "pat") if not getattr(self, name)]
        if missing:
            raise ConfigurationError(
                f"Azure DevOps configuration incomplete, missing: {', '.join(missing)}. "
                "Please set AZURE_ORGANIZATION, AZURE_PROJECT and AZURE_PAT environment variables."
            )
        self.test_case_ids = _dedupe_test_cases(self.test_case_ids)
        if not self.test_case_ids:
            raise ConfigurationError("At least one test case id is required to create a test run")
        self.host = self.host.rstrip('/')

    @property
    def base_url(self) -> str:
        return f"{self.host}/{self.organization}/{self.project}/_apis"

    @property
    def authorization(self) -> str:
        """HTTP Basic header value built from the personal access token"""
        token = base64.b64encode(f":{self.pat}".encode()).decode()
        return f"Basic {token}"

    @classmethod
    def from_env(cls, plan_id: int, suite_id: int, test_case_ids: Sequence) -> "AzureDevOpsConfig":
        return cls(
            organization=os.getenv("AZURE_ORGANIZATION", ""),
            project=os.getenv("AZURE_PROJECT", ""),
            pat=os.getenv("AZURE_PAT", ""),
            plan_id=plan_id,
            suite_id=suite_id,
            test_case_ids=list(test_case_ids),
            host=os.getenv("AZURE_DEVOPS_URL", AZURE_DEVOPS_HOST),
        )


@dataclass
class DatabaseConfig:
    """Credentials for the OracleDB and MongoDB helpers"""
    user: Optional[str] = None
    password: Optional[str] = None
    connect_string: Optional[str] = None
    mongodb_uri: Optional[str] = None

    @classmethod
    def from_env(cls) -> "DatabaseConfig":
        return cls(
            user=os.getenv("DB_USER"),
            password=os.getenv("DB_PASSWORD"),
            connect_string=os.getenv("DB_CONNECT_STRING"),
            mongodb_uri=os.getenv("MONGODB_CONNECTION_STRING"),
        )

    def require_oracle(self):
        if not all([self.user, self.password, self.connect_string]):
            raise ConfigurationError(
                "OracleDB not configured. Please set DB_USER, DB_PASSWORD and DB_CONNECT_STRING environment variables."
            )

    def require_mongodb(self):
        if not self.mongodb_uri:
            raise ConfigurationError(
                "MongoDB not configured. Please set MONGODB_CONNECTION_STRING environment variable."
            )


def get_api_base_url() -> Optional[str]:
    """Base URL for the API under test"""
    return os.getenv("API_BASE_URL")
