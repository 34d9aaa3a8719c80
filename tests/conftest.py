"""Shared fixtures and fakes for tests."""

import json
from datetime import datetime

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.database import Base
from app.repository import PersistenceError, SqlStore
from app.schemas import Application, ChoiceField, Job, PlainField
from services.llm import PromptPart


class InMemoryStore:
    """Dictionary-backed stand-in for the SQL store."""

    def __init__(self):
        self.jobs = {}
        self.applications = {}
        self.fail_writes = False
        self.updates = []

    async def get_jobs(self):
        return sorted(self.jobs.values(), key=lambda job: job.created_at, reverse=True)

    async def get_job(self, job_id):
        return self.jobs.get(job_id)

    async def save_job(self, job):
        self._check_writable()
        self.jobs[job.id] = job

    async def get_applications(self, job_id):
        return [item for item in self.applications.values() if item.job_id == job_id]

    async def save_application(self, application):
        self._check_writable()
        self.applications[application.id] = application

    async def update_application(self, application):
        self._check_writable()
        if application.id not in self.applications:
            raise PersistenceError(f"Application {application.id} does not exist")
        self.applications[application.id] = application
        self.updates.append(application.id)

    def _check_writable(self):
        if self.fail_writes:
            raise PersistenceError("disk full")


class FakeGenerator:
    """Structured generator returning canned replies and recording every call."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    async def generate_json(self, *, model, parts, schema):
        self.calls.append({"model": model, "parts": parts, "schema": schema})
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, dict):
            return json.dumps(reply)
        return reply


def analysis_reply(score, reasoning="Solid match.", strengths=None, weaknesses=None):
    return {
        "score": score,
        "reasoning": reasoning,
        "strengths": strengths or ["Python"],
        "weaknesses": weaknesses or [],
    }


def text_of(parts: list[PromptPart]) -> str:
    return "\n".join(part.text for part in parts if part.text)


def make_application(job_id, name="Jane Doe", **overrides):
    values = {
        "id": f"app-{name.lower().replace(' ', '-')}",
        "job_id": job_id,
        "candidate_name": name,
        "candidate_email": "jane@x.com",
        "responses": {},
        "resume_text": "Ten years of backend work in Python and Go.",
        "submitted_at": datetime(2024, 5, 1, 9, 30),
    }
    values.update(overrides)
    return Application(**values)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest_asyncio.fixture
async def sql_store():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    async with session_factory() as session:
        yield SqlStore(session)
    await engine.dispose()


@pytest.fixture
def backend_job():
    return Job(
        id="job-backend",
        title="Backend Engineer",
        department="Engineering",
        description="Own our APIs and data pipelines.",
        requirements="5+ years of Python, SQL and distributed systems.",
        fields=[PlainField(id="f1", label="Years of experience", type="NUMBER", required=True)],
        created_at=datetime(2024, 4, 1, 12, 0),
    )


@pytest.fixture
def workplace_job():
    return Job(
        id="job-workplace",
        title="Designer",
        department="Design",
        description="Design the product.",
        requirements="Figma, research.",
        fields=[
            ChoiceField(
                id="f-mode",
                label="Working arrangement",
                type="MULTISELECT",
                required=True,
                options=["Remote", "Hybrid"],
            ),
            ChoiceField(id="f-level", label="Seniority", type="DROPDOWN", options=["Junior", "Senior"]),
            PlainField(id="f-note", label="Anything else?", type="TEXTAREA"),
        ],
        created_at=datetime(2024, 4, 2, 12, 0),
    )
