"""
Report schemas.

`ReportResponse` is the populated read model: reportType, company and
createdBy are embedded objects (or null when the referenced document no
longer exists) and userAccess is a list of embedded users. It validates
straight from the assembler's aggregation output.

Wire guarantees:
    - reportData and userAccess are never null (absent → [])
    - ids are hex strings
    - year is a string
"""

from typing import Any, List, Optional

from pydantic import Field, field_validator

from finsolvz.schemas.common import APIModel, ObjectIdStr, PaginationMeta, Timestamps, YearStr
from finsolvz.schemas.company import CompanySummary
from finsolvz.schemas.report_type import ReportTypeSummary
from finsolvz.schemas.user import UserSummary


class ReportResponse(Timestamps):
    id: ObjectIdStr = Field(alias="_id")
    report_name: str = Field(alias="reportName")
    report_type: Optional[ReportTypeSummary] = Field(default=None, alias="reportType")
    year: YearStr
    company: Optional[CompanySummary] = None
    currency: Optional[str] = None
    created_by: Optional[UserSummary] = Field(default=None, alias="createdBy")
    user_access: List[UserSummary] = Field(default_factory=list, alias="userAccess")
    report_data: Any = Field(default_factory=list, alias="reportData")

    @field_validator("user_access", "report_data", mode="before")
    @classmethod
    def null_to_empty_list(cls, v: Any) -> Any:
        return [] if v is None else v


class CreateReportRequest(APIModel):
    report_name: str = Field(alias="reportName", min_length=1, max_length=200)
    report_type: str = Field(alias="reportType", min_length=1)
    year: YearStr = Field(min_length=1)
    company: str = Field(min_length=1)
    currency: Optional[str] = None
    # Request field is "createBy"; the stored/response field is "createdBy"
    created_by: str = Field(alias="createBy", min_length=1)
    user_access: List[str] = Field(default_factory=list, alias="userAccess")
    report_data: Any = Field(default=None, alias="reportData")


class UpdateReportRequest(APIModel):
    report_name: Optional[str] = Field(default=None, alias="reportName", min_length=1, max_length=200)
    report_type: Optional[str] = Field(default=None, alias="reportType")
    year: Optional[YearStr] = None
    company: Optional[str] = None
    currency: Optional[str] = None
    created_by: Optional[str] = Field(default=None, alias="createBy")
    user_access: Optional[List[str]] = Field(default=None, alias="userAccess")
    report_data: Any = Field(default=None, alias="reportData")


class ReportsByCompaniesRequest(APIModel):
    # Length is checked by the service so the error carries its business code
    company_ids: List[str] = Field(alias="companyIds")


class PaginatedReports(APIModel):
    data: List[ReportResponse]
    pagination: PaginationMeta
