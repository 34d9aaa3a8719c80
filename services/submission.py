"""Candidate application intake."""
from __future__ import annotations

import base64
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from pydantic import EmailStr, TypeAdapter, ValidationError

from app.repository import Store
from app.schemas import Application, ApplicationSubmission, FieldType, Job, new_id
from services.errors import FormValidationError

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
PDF_PLACEHOLDER = "PDF Resume Attached"
NO_RESUME_TEXT = "No resume text provided."
MULTISELECT_DELIMITER = ", "
EMPTY_OPTION = "\\0"

_email_adapter = TypeAdapter(EmailStr)


def encode_multiselect(selected: Iterable[str]) -> str:
    """Join selected options with ", ", escaping commas inside option text.

    An empty option is written as ``\\0`` so it survives decoding.
    """

    escaped = (
        option.replace("\\", "\\\\").replace(",", "\\,") if option else EMPTY_OPTION for option in selected
    )
    return MULTISELECT_DELIMITER.join(escaped)


def decode_multiselect(value: str) -> list[str]:
    """Split an encoded multi-select answer back into its options."""

    options: list[str] = []
    current: list[str] = []
    started = False
    index = 0
    while index < len(value):
        char = value[index]
        if value.startswith(EMPTY_OPTION, index):
            started = True
            index += len(EMPTY_OPTION)
            continue
        if char == "\\" and index + 1 < len(value):
            current.append(value[index + 1])
            started = True
            index += 2
            continue
        if value.startswith(MULTISELECT_DELIMITER, index):
            options.append("".join(current))
            current = []
            started = False
            index += len(MULTISELECT_DELIMITER)
            continue
        current.append(char)
        started = True
        index += 1

    if started or options:
        options.append("".join(current))
    return options


def normalize_multiselect(value: str | list[str] | None, options: Iterable[str]) -> str:
    """Encode a multi-select answer sent either as a list or as a single string.

    A string equal to one of the field's options is that single option, even
    when it contains the delimiter. Any other string is decoded and re-encoded.
    """

    if value is None:
        return ""
    if isinstance(value, list):
        return encode_multiselect(value)
    if value in set(options):
        return encode_multiselect([value])
    return encode_multiselect(decode_multiselect(value))


@dataclass
class ResumeUpload:
    filename: str
    content_type: str | None
    data: bytes


class SubmissionPipeline:
    """Validate a candidate's answers against a job form and store the application."""

    def __init__(self, store: Store, *, max_resume_bytes: int | None = None) -> None:
        self.store = store
        self.max_resume_bytes = max_resume_bytes

    async def submit(
        self,
        job: Job,
        submission: ApplicationSubmission,
        resume: ResumeUpload | None = None,
    ) -> Application:
        violations = self._check_candidate(submission, resume)
        responses, field_violations = self._collect_responses(job, submission.responses)
        violations.extend(field_violations)
        if violations:
            raise FormValidationError(violations)

        resume_text, resume_data, resume_mime_type = self._resume_fields(submission, resume)
        application = Application(
            id=new_id(),
            job_id=job.id,
            candidate_name=submission.candidate_name.strip(),
            candidate_email=submission.candidate_email.strip(),
            responses=responses,
            resume_text=resume_text,
            resume_data=resume_data,
            resume_mime_type=resume_mime_type,
            submitted_at=datetime.utcnow(),
        )
        await self.store.save_application(application)
        logger.info("Stored application %s for job %s", application.id, job.id)
        return application

    def _check_candidate(self, submission: ApplicationSubmission, resume: ResumeUpload | None) -> list[str]:
        violations: list[str] = []
        if not submission.candidate_name.strip():
            violations.append("Candidate name is required.")

        email = submission.candidate_email.strip()
        if not email:
            violations.append("Candidate email is required.")
        else:
            try:
                _email_adapter.validate_python(email)
            except ValidationError:
                violations.append(f"{email!r} is not a valid email address.")

        has_text = bool(submission.resume_text and submission.resume_text.strip())
        if resume is None and not has_text:
            violations.append("Upload a resume file or paste your resume text.")
        if resume is not None and self.max_resume_bytes and len(resume.data) > self.max_resume_bytes:
            violations.append(f"Resume file {resume.filename!r} is larger than {self.max_resume_bytes} bytes.")
        return violations

    @staticmethod
    def _collect_responses(job: Job, raw: dict[str, str | list[str]]) -> tuple[dict[str, str], list[str]]:
        responses: dict[str, str] = {}
        violations: list[str] = []
        for field in job.fields:
            value = raw.get(field.id)
            if field.type == FieldType.MULTISELECT:
                answer = normalize_multiselect(value, field.options)
                answered = bool(decode_multiselect(answer))
            else:
                answer = ", ".join(value) if isinstance(value, list) else (value or "")
                answered = bool(answer.strip())

            if answered:
                responses[field.id] = answer
            elif field.required:
                violations.append(f"{field.label or field.id} is required.")
        return responses, violations

    @staticmethod
    def _resume_fields(
        submission: ApplicationSubmission, resume: ResumeUpload | None
    ) -> tuple[str, str | None, str | None]:
        if resume is not None:
            if resume.content_type == PDF_MIME_TYPE:
                return PDF_PLACEHOLDER, base64.b64encode(resume.data).decode("ascii"), PDF_MIME_TYPE
            # Other formats are not parsed; only the file name is kept.
            return f"Document Attached: {resume.filename}", None, None

        return (submission.resume_text or "").strip() or NO_RESUME_TEXT, None, None
