"""FastAPI entrypoint wiring services together."""
from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from app.config import Settings, get_settings
from app.database import AsyncSessionLocal, init_models
from app.dependencies import generator_provider, settings_provider, store_provider
from app.log import configure_logging
from app.repository import PersistenceError, SqlStore, Store
from app.schemas import (
    Application,
    ApplicationRead,
    ApplicationSubmission,
    GenerationRequest,
    Job,
    JobDraft,
    JobSummary,
    ServiceStatus,
)
from services import (
    AIUnavailableError,
    BatchAssessor,
    CandidateAssessor,
    FormValidationError,
    GenerationError,
    JobGenerator,
    ResumeUpload,
    SubmissionPipeline,
    publish_job,
    rank_applications,
    seed_sample_jobs,
)
from services.llm import DISABLED_NOTICE, StructuredGenerator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover - framework hook
    settings = get_settings()
    await init_models()
    if settings.seed_sample_jobs:
        async with AsyncSessionLocal() as session:
            await seed_sample_jobs(SqlStore(session), settings.sample_job_file)
    if not settings.ai_enabled:
        logger.warning(DISABLED_NOTICE)
    yield


async def _load_job(store: Store, job_id: str) -> Job:
    job = await store.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


def create_app() -> FastAPI:
    configure_logging(get_settings().log_level)
    app = FastAPI(title="TalentScout", version="0.1.0", lifespan=lifespan)

    @app.exception_handler(FormValidationError)
    async def _form_invalid(request: Request, exc: FormValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"detail": {"message": "Please correct the highlighted fields.", "violations": exc.violations}},
        )

    @app.exception_handler(AIUnavailableError)
    async def _ai_unavailable(request: Request, exc: AIUnavailableError) -> JSONResponse:
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    @app.exception_handler(GenerationError)
    async def _generation_failed(request: Request, exc: GenerationError) -> JSONResponse:
        return JSONResponse(status_code=502, content={"detail": str(exc)})

    @app.exception_handler(PersistenceError)
    async def _persistence_failed(request: Request, exc: PersistenceError) -> JSONResponse:
        logger.error("Persistence failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"detail": "Could not save changes. Please try again."})

    @app.get("/status", response_model=ServiceStatus)
    async def status(settings: Settings = Depends(settings_provider)) -> ServiceStatus:
        return ServiceStatus(
            ai_enabled=settings.ai_enabled,
            model=settings.gemini_model,
            notice=None if settings.ai_enabled else DISABLED_NOTICE,
        )

    @app.get("/jobs", response_model=list[JobSummary])
    async def list_jobs(q: str | None = None, store: Store = Depends(store_provider)) -> list[JobSummary]:
        jobs = await store.get_jobs()
        if q:
            needle = q.lower()
            jobs = [job for job in jobs if needle in job.title.lower() or needle in job.department.lower()]
        return [
            JobSummary(**job.model_dump(), applicant_count=len(await store.get_applications(job.id)))
            for job in jobs
        ]

    @app.post("/jobs", response_model=Job, status_code=201)
    async def create_job(draft: JobDraft, store: Store = Depends(store_provider)) -> Job:
        return await publish_job(store, draft)

    @app.post("/jobs/generate", response_model=JobDraft)
    async def generate_job(
        request: GenerationRequest,
        settings: Settings = Depends(settings_provider),
        generator: StructuredGenerator = Depends(generator_provider),
    ) -> JobDraft:
        job_generator = JobGenerator(generator, settings.gemini_model)
        try:
            return await job_generator.generate_job_details(request.prompt)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc

    @app.get("/jobs/{job_id}", response_model=Job)
    async def get_job(job_id: str, store: Store = Depends(store_provider)) -> Job:
        return await _load_job(store, job_id)

    @app.post("/jobs/{job_id}/applications", response_model=ApplicationRead, status_code=201)
    async def submit_application(
        job_id: str,
        candidate_name: str = Form(""),
        candidate_email: str = Form(""),
        responses: str = Form("{}"),
        resume_text: str | None = Form(None),
        resume: UploadFile | None = File(None),
        store: Store = Depends(store_provider),
        settings: Settings = Depends(settings_provider),
    ) -> ApplicationRead:
        job = await _load_job(store, job_id)
        try:
            submission = ApplicationSubmission(
                candidate_name=candidate_name,
                candidate_email=candidate_email,
                responses=json.loads(responses or "{}"),
                resume_text=resume_text,
            )
        except (json.JSONDecodeError, ValidationError) as exc:
            raise HTTPException(status_code=422, detail="responses must be a JSON object of answers") from exc

        upload = None
        if resume is not None and resume.filename:
            upload = ResumeUpload(filename=resume.filename, content_type=resume.content_type, data=await resume.read())

        pipeline = SubmissionPipeline(store, max_resume_bytes=settings.max_resume_bytes)
        application = await pipeline.submit(job, submission, upload)
        return ApplicationRead.from_application(application)

    @app.get("/jobs/{job_id}/applications", response_model=list[ApplicationRead])
    async def list_applications(job_id: str, store: Store = Depends(store_provider)) -> list[ApplicationRead]:
        applications = await store.get_applications(job_id)
        return [ApplicationRead.from_application(application) for application in rank_applications(applications)]

    def _batch_assessor(store: Store, settings: Settings, generator: StructuredGenerator) -> BatchAssessor:
        assessor = CandidateAssessor(generator, settings.gemini_model)
        return BatchAssessor(store, assessor, concurrency=settings.assessment_concurrency)

    @app.post("/jobs/{job_id}/applications/{application_id}/analyze", response_model=ApplicationRead)
    async def analyze_application(
        job_id: str,
        application_id: str,
        store: Store = Depends(store_provider),
        settings: Settings = Depends(settings_provider),
        generator: StructuredGenerator = Depends(generator_provider),
    ) -> ApplicationRead:
        job = await _load_job(store, job_id)
        application: Application | None = next(
            (item for item in await store.get_applications(job_id) if item.id == application_id), None
        )
        if application is None:
            raise HTTPException(status_code=404, detail="Application not found")

        updated = await _batch_assessor(store, settings, generator).analyze_one(job, application)
        return ApplicationRead.from_application(updated)

    @app.post("/jobs/{job_id}/analyze-all", response_model=list[ApplicationRead])
    async def analyze_all(
        job_id: str,
        store: Store = Depends(store_provider),
        settings: Settings = Depends(settings_provider),
        generator: StructuredGenerator = Depends(generator_provider),
    ) -> list[ApplicationRead]:
        job = await _load_job(store, job_id)
        applications = await store.get_applications(job_id)
        ranked = await _batch_assessor(store, settings, generator).analyze_all(job, applications)
        return [ApplicationRead.from_application(application) for application in ranked]

    return app


app = create_app()
