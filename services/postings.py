"""Publishing job postings and loading the bundled sample jobs."""
from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path

import aiofiles
from pydantic import TypeAdapter

from app.repository import Store
from app.schemas import Job, JobDraft, new_id
from services.errors import FormValidationError
from services.form_builder import FormBuilder

logger = logging.getLogger(__name__)

_drafts_adapter = TypeAdapter(list[JobDraft])


async def publish_job(store: Store, draft: JobDraft) -> Job:
    """Validate a draft and store it as a new job."""

    violations: list[str] = []
    if not draft.title.strip():
        violations.append("Job title is required.")
    if not draft.description.strip():
        violations.append("Job description is required.")
    violations.extend(FormBuilder(draft.fields).validate_for_publish())
    if violations:
        raise FormValidationError(violations)

    job = Job(
        id=new_id(),
        title=draft.title.strip(),
        department=draft.department.strip(),
        description=draft.description,
        requirements=draft.requirements,
        fields=draft.fields,
        created_at=datetime.utcnow(),
    )
    await store.save_job(job)
    logger.info("Published job %s (%s) with %d fields", job.id, job.title, len(job.fields))
    return job


async def seed_sample_jobs(store: Store, sample_file: Path) -> list[Job]:
    """Publish the sample jobs when the board is empty."""

    if await store.get_jobs():
        return []
    if not sample_file.exists():
        return []

    async with aiofiles.open(sample_file, "r", encoding="utf-8") as handle:
        drafts = _drafts_adapter.validate_python(json.loads(await handle.read()))

    jobs = [await publish_job(store, draft) for draft in drafts]
    logger.info("Seeded %d sample jobs from %s", len(jobs), sample_file)
    return jobs
