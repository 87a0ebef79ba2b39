"""
Request and response shapes for candidates.

Wire format uses camelCase keys (firstName, startDate, ...); Python code uses
snake_case attributes. Unknown keys in requests are ignored so a client can
send back a candidate it previously fetched.
"""

import json
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from .errors import ValidationError

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def _required_text(value: Any) -> str:
    if not isinstance(value, str) or value.strip() == "":
        raise ValueError("must be a non-empty string")
    return value.strip()


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class EducationIn(_CamelModel):
    institution: str
    title: str
    degree: str
    years: Optional[float] = None

    @field_validator("institution", "title", "degree", mode="before")
    @classmethod
    def check_text(cls, v):
        return _required_text(v)

    @field_validator("years", mode="before")
    @classmethod
    def blank_years(cls, v):
        return None if v == "" else v


class ExperienceIn(_CamelModel):
    role: str
    company: str
    industry: str
    start_date: datetime
    end_date: Optional[datetime] = None

    @field_validator("role", "company", "industry", mode="before")
    @classmethod
    def check_text(cls, v):
        return _required_text(v)

    @field_validator("end_date", mode="before")
    @classmethod
    def blank_end_date(cls, v):
        return None if v == "" else v

    @field_validator("start_date", "end_date")
    @classmethod
    def to_naive_utc(cls, v):
        return _naive_utc(v)


class CandidateIn(_CamelModel):
    first_name: str
    last_name: str
    email: str
    address: str
    available: bool = True
    resume_url: Optional[str] = None
    education: List[EducationIn] = Field(default_factory=list)
    experience: List[ExperienceIn] = Field(default_factory=list)

    @field_validator("first_name", "last_name", "address", mode="before")
    @classmethod
    def check_text(cls, v):
        return _required_text(v)

    @field_validator("email", mode="before")
    @classmethod
    def check_email(cls, v):
        v = _required_text(v)
        if not EMAIL_RE.match(v):
            raise ValueError("must be a valid email address")
        return v

    @field_validator("education", "experience", mode="before")
    @classmethod
    def null_is_empty(cls, v):
        return [] if v is None else v

    def scalar_fields(self) -> Dict[str, Any]:
        """Candidate columns only, without nested collections."""
        return self.model_dump(exclude={"education", "experience"})


class CandidateUpdate(CandidateIn):
    """Update body: scalars are optional, nested lists are always replaced."""

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    available: Optional[bool] = None

    @field_validator("available", mode="before")
    @classmethod
    def check_available(cls, v):
        # Only runs when the field is sent; an explicit null is not a boolean
        if v is None:
            raise ValueError("must be true or false")
        return v

    def scalar_fields(self) -> Dict[str, Any]:
        return self.model_dump(
            exclude={"education", "experience"},
            exclude_unset=True,
        )


class EducationOut(_CamelModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    candidate_id: str
    institution: str
    title: str
    degree: str
    years: Optional[float] = None


class ExperienceOut(_CamelModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    candidate_id: str
    role: str
    company: str
    industry: str
    start_date: datetime
    end_date: Optional[datetime] = None


class CandidateOut(_CamelModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    first_name: str
    last_name: str
    email: str
    address: str
    available: bool
    resume_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    education: List[EducationOut] = Field(default_factory=list)
    experience: List[ExperienceOut] = Field(default_factory=list)


def serialize_candidate(candidate) -> Dict[str, Any]:
    """ORM candidate -> JSON-ready dict with camelCase keys."""
    return CandidateOut.model_validate(candidate).model_dump(by_alias=True, mode="json")


def _format_errors(exc: PydanticValidationError) -> List[str]:
    messages = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err["loc"]) or "body"
        msg = err["msg"].replace("Value error, ", "")
        messages.append(f"Field '{loc}': {msg}")
    return messages


def validate_candidate(data: Dict[str, Any], partial: bool = False) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.

    Args:
        data: Candidate payload in wire format
        partial: Validate as an update body (scalars optional)
    """
    if not isinstance(data, dict):
        return ["Candidate payload must be a JSON object"]
    model = CandidateUpdate if partial else CandidateIn
    try:
        model.model_validate(data)
    except PydanticValidationError as e:
        return _format_errors(e)
    return []


def parse_candidate(
    data: Union[str, bytes, Dict[str, Any]], partial: bool = False
) -> Union[CandidateIn, CandidateUpdate]:
    """
    Parse a candidate payload (dict or JSON text).

    Raises:
        ValidationError: On malformed JSON or invalid fields
    """
    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Candidate payload is not valid JSON: {e.msg}")
    if not isinstance(data, dict):
        raise ValidationError("Candidate payload must be a JSON object")
    model = CandidateUpdate if partial else CandidateIn
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError("Invalid candidate data", _format_errors(e))
