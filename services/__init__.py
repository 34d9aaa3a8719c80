"""Service layer for job forms, applications and AI assessment."""

from .assessment import CandidateAssessor
from .batch import BatchAssessor, rank_applications
from .errors import AIUnavailableError, FormValidationError, GenerationError
from .form_builder import FormBuilder
from .generation import JobGenerator
from .postings import publish_job, seed_sample_jobs
from .submission import ResumeUpload, SubmissionPipeline

__all__ = [
    "AIUnavailableError",
    "BatchAssessor",
    "CandidateAssessor",
    "FormBuilder",
    "FormValidationError",
    "GenerationError",
    "JobGenerator",
    "ResumeUpload",
    "SubmissionPipeline",
    "publish_job",
    "rank_applications",
    "seed_sample_jobs",
]
