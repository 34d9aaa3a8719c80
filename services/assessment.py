"""AI scoring of an application against the job's requirements."""
from __future__ import annotations

import base64
import binascii
import json
import logging

from pydantic import ValidationError

from app.schemas import Application, CandidateAnalysis, Job
from services.errors import AIUnavailableError
from services.llm import DISABLED_NOTICE, PromptPart, StructuredGenerator
from services.submission import PDF_MIME_TYPE

logger = logging.getLogger(__name__)

FAILED_REASONING = "AI analysis failed due to a technical error or an invalid file format."

ANALYSIS_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "score": {"type": "INTEGER"},
        "reasoning": {"type": "STRING"},
        "strengths": {"type": "ARRAY", "items": {"type": "STRING"}},
        "weaknesses": {"type": "ARRAY", "items": {"type": "STRING"}},
    },
    "required": ["score", "reasoning", "strengths", "weaknesses"],
}

EVALUATION_PROMPT = """Role: Expert Technical Recruiter.
Task: Evaluate a job application against a job description.

Job Title: {title}
Job Description: {description}
Key Requirements: {requirements}

Candidate Name: {candidate}
Candidate Form Responses: {responses}

Output: Provide a structured JSON assessment.
- Score: 0-100 (integer) representing fit.
- Reasoning: A brief summary of why this score was given (max 2 sentences).
- Strengths: Array of strings (key matching skills).
- Weaknesses: Array of strings (missing skills or concerns).
"""


def failed_analysis(reasoning: str = FAILED_REASONING) -> CandidateAnalysis:
    return CandidateAnalysis(score=0, reasoning=reasoning, strengths=[], weaknesses=[])


def describe_responses(job: Job, application: Application) -> str:
    """Render form answers as JSON keyed by question label.

    Answers whose field no longer exists on the job keep their field id.
    """

    labels = {field.id: field.label or field.id for field in job.fields}
    described = {labels.get(field_id, field_id): answer for field_id, answer in application.responses.items()}
    return json.dumps(described, ensure_ascii=False)


def build_evaluation_parts(job: Job, application: Application) -> list[PromptPart]:
    parts = [
        PromptPart(
            text=EVALUATION_PROMPT.format(
                title=job.title,
                description=job.description,
                requirements=job.requirements,
                candidate=application.candidate_name,
                responses=describe_responses(job, application),
            )
        )
    ]

    if application.resume_data and application.resume_mime_type == PDF_MIME_TYPE:
        parts.append(PromptPart(data=base64.b64decode(application.resume_data), mime_type=PDF_MIME_TYPE))
        parts.append(PromptPart(text="Evaluate the attached resume PDF."))
    elif application.resume_text and application.resume_text.strip():
        parts.append(PromptPart(text=f'Candidate Resume Text: "{application.resume_text}"'))
    else:
        parts.append(PromptPart(text="No resume provided."))
    return parts


class CandidateAssessor:
    """Score one application. Never raises: failures become a zero score."""

    def __init__(self, generator: StructuredGenerator, model: str) -> None:
        self.generator = generator
        self.model = model

    async def analyze_candidate(self, job: Job, application: Application) -> CandidateAnalysis:
        try:
            parts = build_evaluation_parts(job, application)
            raw = await self.generator.generate_json(model=self.model, parts=parts, schema=ANALYSIS_SCHEMA)
            analysis = CandidateAnalysis.model_validate_json(raw)
        except AIUnavailableError:
            return failed_analysis(DISABLED_NOTICE)
        except (ValidationError, binascii.Error) as exc:
            logger.warning("Unusable analysis for application %s: %s", application.id, exc)
            return failed_analysis()
        except Exception:  # pylint: disable=broad-except
            logger.exception("AI analysis failed for application %s", application.id)
            return failed_analysis()

        logger.info("Scored application %s at %d", application.id, analysis.score)
        return analysis
