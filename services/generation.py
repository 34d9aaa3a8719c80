"""AI drafting of job postings from a short role description."""
from __future__ import annotations

import logging

from pydantic import BaseModel, Field, ValidationError

from app.schemas import FieldType, JobDraft
from services.errors import AIUnavailableError, GenerationError
from services.form_builder import make_field
from services.llm import PromptPart, StructuredGenerator

logger = logging.getLogger(__name__)

_FIELD_TYPES = [field_type.value for field_type in FieldType]

JOB_DRAFT_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "title": {"type": "STRING"},
        "department": {"type": "STRING"},
        "description": {"type": "STRING"},
        "requirements": {"type": "STRING"},
        "fields": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "label": {"type": "STRING"},
                    "type": {"type": "STRING", "enum": _FIELD_TYPES},
                    "required": {"type": "BOOLEAN"},
                    "options": {"type": "ARRAY", "items": {"type": "STRING"}},
                },
                "required": ["label", "type", "required"],
            },
        },
    },
    "required": ["title", "department", "description", "requirements", "fields"],
}

PROMPT_TEMPLATE = """You are an expert HR consultant.
Create a detailed job posting based on this user request: "{request}".

Return a JSON object with:
- title: A professional job title.
- department: The most likely department.
- description: A compelling job description (approx 50 words).
- requirements: A list of key requirements (skills, experience) as a text block.
- fields: An array of 3-5 relevant screening questions to ask the applicant.
  For 'fields', include label, type ({types}), required (boolean), and options
  (array of strings) if type is DROPDOWN or MULTISELECT.
"""


class GeneratedField(BaseModel):
    label: str
    type: FieldType
    required: bool
    options: list[str] | None = None


class GeneratedJob(BaseModel):
    title: str
    department: str
    description: str
    requirements: str
    fields: list[GeneratedField] = Field(default_factory=list)


class JobGenerator:
    """Turn a free-text role description into an editable job draft."""

    def __init__(self, generator: StructuredGenerator, model: str) -> None:
        self.generator = generator
        self.model = model

    async def generate_job_details(self, prompt: str) -> JobDraft:
        if not prompt.strip():
            raise ValueError("Describe the role before generating a draft")

        parts = [PromptPart(text=PROMPT_TEMPLATE.format(request=prompt.strip(), types=", ".join(_FIELD_TYPES)))]
        try:
            raw = await self.generator.generate_json(model=self.model, parts=parts, schema=JOB_DRAFT_SCHEMA)
        except AIUnavailableError:
            raise
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Job draft generation failed: %s", exc)
            raise GenerationError(
                "Failed to generate job details. Check the AI service configuration or try again."
            ) from exc

        try:
            generated = GeneratedJob.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Job draft response did not match the schema: %s", exc)
            raise GenerationError("The AI service returned an unusable job draft. Try rephrasing the request.") from exc

        # Ids coming back from the model are never trusted.
        fields = [
            make_field(
                item.type,
                label=item.label,
                required=item.required,
                options=item.options,
            )
            for item in generated.fields
        ]
        logger.info("Generated job draft %r with %d fields", generated.title, len(fields))
        return JobDraft(
            title=generated.title,
            department=generated.department,
            description=generated.description,
            requirements=generated.requirements,
            fields=fields,
        )
