from typing import List, Optional

from pydantic import Field

from finsolvz.schemas.common import APIModel, ObjectIdStr, Timestamps


class CompanyUser(APIModel):
    id: ObjectIdStr = Field(alias="_id")
    name: str


class CompanyResponse(Timestamps):
    id: ObjectIdStr = Field(alias="_id")
    name: str
    profile_picture: Optional[str] = Field(default=None, alias="profilePicture")
    user: List[CompanyUser] = Field(default_factory=list)


class CompanySummary(Timestamps):
    """Projection embedded in populated reports."""

    id: ObjectIdStr = Field(alias="_id")
    name: Optional[str] = None
    profile_picture: Optional[str] = Field(default=None, alias="profilePicture")


class CreateCompanyRequest(APIModel):
    name: str = Field(min_length=1, max_length=200)
    profile_picture: Optional[str] = Field(default=None, alias="profilePicture")
    user: List[str] = Field(default_factory=list)


class UpdateCompanyRequest(APIModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    profile_picture: Optional[str] = Field(default=None, alias="profilePicture")
    user: Optional[List[str]] = None


class CompanyEnvelope(APIModel):
    message: str
    company: CompanyResponse
