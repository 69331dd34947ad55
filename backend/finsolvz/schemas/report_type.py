from typing import Optional

from pydantic import Field

from finsolvz.schemas.common import APIModel, ObjectIdStr


class ReportTypeResponse(APIModel):
    # Serialized as "id" (not "_id"); existing clients depend on it
    id: ObjectIdStr
    name: str


class ReportTypeSummary(APIModel):
    id: ObjectIdStr = Field(alias="_id")
    name: Optional[str] = None


class ReportTypeRequest(APIModel):
    name: str = Field(min_length=1, max_length=100)


class ReportTypeEnvelope(APIModel):
    message: str
    report_type: ReportTypeResponse = Field(alias="reportType")
