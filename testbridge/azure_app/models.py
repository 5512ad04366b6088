"""
Records kept for an Azure DevOps test run.

Field names are snake_case in Python and camelCase on the wire, matching the
Azure DevOps test results API.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

RESULT_COMMENT = "Automated run with Playwright"
ATTACHMENT_COMMENT = "Playwright automation attachment"
ATTACHMENT_TYPE = "GeneralAttachment"


class AzureRecord(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> Dict[str, Any]:
        """JSON ready dict with unset fields left out"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class StepActionRecord(AzureRecord):
    """Outcome of one test step inside an iteration"""
    action_path: str
    iteration_id: int
    step_identifier: str
    outcome: str
    started_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None


class IterationRecord(AzureRecord):
    """One execution attempt of a test case"""
    id: int = 1
    outcome: Optional[str] = None
    started_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    action_results: List[StepActionRecord] = Field(default_factory=list)


class ResultRecord(AzureRecord):
    """Test result of a test case inside the run"""
    id: int
    state: Optional[str] = None
    outcome: Optional[str] = None
    comment: Optional[str] = RESULT_COMMENT
    iteration_details: List[IterationRecord] = Field(default_factory=list)

    @classmethod
    def from_run_result(cls, value: Dict[str, Any]) -> "ResultRecord":
        """Build the record from an item of the run results listing"""
        return cls(
            id=value["id"],
            state=value.get("state"),
            iteration_details=[
                IterationRecord(
                    id=1,
                    started_date=value.get("startedDate"),
                    completed_date=value.get("completedDate"),
                )
            ],
        )


class TestCaseRecord(AzureRecord):
    """Registry entry for a test case taking part in the run"""
    point_id: Optional[int] = None
    result: Optional[ResultRecord] = None


class AttachmentRecord(AzureRecord):
    """Base64 file attached to a result or to the run"""
    stream: str
    file_name: str
    comment: str = ATTACHMENT_COMMENT
    attachment_type: str = ATTACHMENT_TYPE
