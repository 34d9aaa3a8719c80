"""Persistence of jobs and applications."""
from __future__ import annotations

import logging
from typing import Protocol

from pydantic import TypeAdapter
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import ApplicationRecord, JobRecord
from app.schemas import Application, CandidateAnalysis, FormField, Job

logger = logging.getLogger(__name__)

_fields_adapter = TypeAdapter(list[FormField])


class PersistenceError(Exception):
    """Raised when the store could not read or write an entity."""


class Store(Protocol):
    """Capability set the services need from persistence."""

    async def get_jobs(self) -> list[Job]: ...

    async def get_job(self, job_id: str) -> Job | None: ...

    async def save_job(self, job: Job) -> None: ...

    async def get_applications(self, job_id: str) -> list[Application]: ...

    async def save_application(self, application: Application) -> None: ...

    async def update_application(self, application: Application) -> None: ...


class SqlStore:
    """`Store` backed by an async SQLAlchemy session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_jobs(self) -> list[Job]:
        stmt = select(JobRecord).order_by(JobRecord.created_at.desc())
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            raise PersistenceError("Could not load jobs") from exc
        return [_job_from_record(record) for record in result.scalars().all()]

    async def get_job(self, job_id: str) -> Job | None:
        try:
            record = await self.session.get(JobRecord, job_id)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not load job {job_id}") from exc
        return _job_from_record(record) if record else None

    async def save_job(self, job: Job) -> None:
        self.session.add(
            JobRecord(
                id=job.id,
                title=job.title,
                department=job.department,
                description=job.description,
                requirements=job.requirements,
                fields=_fields_adapter.dump_python(job.fields, mode="json"),
                created_at=job.created_at,
            )
        )
        await self._commit(f"job {job.id}")

    async def get_applications(self, job_id: str) -> list[Application]:
        stmt = (
            select(ApplicationRecord)
            .where(ApplicationRecord.job_id == job_id)
            .order_by(ApplicationRecord.submitted_at)
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not load applications for job {job_id}") from exc
        return [_application_from_record(record) for record in result.scalars().all()]

    async def save_application(self, application: Application) -> None:
        record = ApplicationRecord(id=application.id)
        _copy_application(application, record)
        self.session.add(record)
        await self._commit(f"application {application.id}")

    async def update_application(self, application: Application) -> None:
        try:
            record = await self.session.get(ApplicationRecord, application.id)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not load application {application.id}") from exc
        if record is None:
            raise PersistenceError(f"Application {application.id} does not exist")

        _copy_application(application, record)
        await self._commit(f"application {application.id}")

    async def _commit(self, what: str) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.exception("Failed to persist %s", what)
            raise PersistenceError(f"Could not save {what}") from exc


def _job_from_record(record: JobRecord) -> Job:
    return Job(
        id=record.id,
        title=record.title,
        department=record.department,
        description=record.description,
        requirements=record.requirements,
        fields=_fields_adapter.validate_python(record.fields or []),
        created_at=record.created_at,
    )


def _application_from_record(record: ApplicationRecord) -> Application:
    return Application(
        id=record.id,
        job_id=record.job_id,
        candidate_name=record.candidate_name,
        candidate_email=record.candidate_email,
        responses=record.responses or {},
        resume_text=record.resume_text,
        resume_data=record.resume_data,
        resume_mime_type=record.resume_mime_type,
        submitted_at=record.submitted_at,
        ai_analysis=CandidateAnalysis.model_validate(record.ai_analysis) if record.ai_analysis else None,
    )


def _copy_application(application: Application, record: ApplicationRecord) -> None:
    record.job_id = application.job_id
    record.candidate_name = application.candidate_name
    record.candidate_email = application.candidate_email
    record.responses = dict(application.responses)
    record.resume_text = application.resume_text
    record.resume_data = application.resume_data
    record.resume_mime_type = application.resume_mime_type
    record.submitted_at = application.submitted_at
    record.ai_analysis = application.ai_analysis.model_dump() if application.ai_analysis else None
