"""Pydantic schemas shared across services."""
from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class FieldType(str, Enum):
    TEXT = "TEXT"
    TEXTAREA = "TEXTAREA"
    NUMBER = "NUMBER"
    DROPDOWN = "DROPDOWN"
    MULTISELECT = "MULTISELECT"


CHOICE_TYPES = frozenset({FieldType.DROPDOWN, FieldType.MULTISELECT})


def new_id() -> str:
    return str(uuid.uuid4())


class PlainField(BaseModel):
    """A free-entry question: single line, paragraph or number."""

    id: str = Field(default_factory=new_id)
    label: str = ""
    type: Literal["TEXT", "TEXTAREA", "NUMBER"] = "TEXT"
    required: bool = False


class ChoiceField(BaseModel):
    """A question answered from a fixed list of options."""

    id: str = Field(default_factory=new_id)
    label: str = ""
    type: Literal["DROPDOWN", "MULTISELECT"]
    required: bool = False
    options: list[str] = Field(default_factory=list)


FormField = Annotated[Union[PlainField, ChoiceField], Field(discriminator="type")]


class JobDraft(BaseModel):
    title: str = ""
    department: str = ""
    description: str = ""
    requirements: str = Field(default="", description="Rubric the candidates are scored against")
    fields: list[FormField] = Field(default_factory=list)


class Job(JobDraft):
    id: str
    created_at: datetime


class JobSummary(Job):
    applicant_count: int = 0


class GenerationRequest(BaseModel):
    prompt: str = Field(..., min_length=1, description="Free-text description of the role")


class CandidateAnalysis(BaseModel):
    score: int = Field(..., ge=0, le=100)
    reasoning: str
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)


class Application(BaseModel):
    id: str
    job_id: str
    candidate_name: str
    candidate_email: str
    responses: dict[str, str] = Field(default_factory=dict)
    resume_text: str
    resume_data: str | None = Field(default=None, description="Base64 encoded PDF bytes")
    resume_mime_type: str | None = None
    submitted_at: datetime
    ai_analysis: CandidateAnalysis | None = None


class ApplicationSubmission(BaseModel):
    candidate_name: str = ""
    candidate_email: str = ""
    responses: dict[str, str | list[str]] = Field(default_factory=dict)
    resume_text: str | None = None


class ApplicationRead(BaseModel):
    id: str
    job_id: str
    candidate_name: str
    candidate_email: str
    responses: dict[str, str]
    resume_text: str
    resume_mime_type: str | None = None
    has_resume_document: bool = False
    submitted_at: datetime
    ai_analysis: CandidateAnalysis | None = None

    @classmethod
    def from_application(cls, application: Application) -> ApplicationRead:
        return cls(
            **application.model_dump(exclude={"resume_data"}),
            has_resume_document=application.resume_data is not None,
        )


class ServiceStatus(BaseModel):
    ai_enabled: bool
    model: str
    notice: str | None = None
