"""Tests for batch assessment orchestration."""

import asyncio

import pytest

from app.repository import PersistenceError
from app.schemas import CandidateAnalysis
from services.assessment import CandidateAssessor
from services.batch import BatchAssessor, rank_applications
from tests.conftest import make_application


class ScriptedAssessor(CandidateAssessor):
    """Returns a preset score per candidate and tracks overlapping calls."""

    def __init__(self, scores, store=None, delays=None):
        self.scores = scores
        self.store = store
        self.delays = delays or {}
        self.calls = []
        self.cancelled = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.persisted_before_call = []

    async def analyze_candidate(self, job, application):
        name = application.candidate_name
        self.calls.append(name)
        if self.store is not None:
            self.persisted_before_call.append(list(self.store.updates))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(name, 0))
        except asyncio.CancelledError:
            self.cancelled.append(name)
            raise
        finally:
            self.in_flight -= 1
        return CandidateAnalysis(score=self.scores[name], reasoning="scripted")


def _seed(store, job, *applications):
    for application in applications:
        store.applications[application.id] = application
    return list(applications)


@pytest.mark.asyncio
async def test_analyze_all_is_sequential_and_in_order(store, backend_job):
    applications = _seed(
        store,
        backend_job,
        make_application(backend_job.id, "Ann"),
        make_application(backend_job.id, "Bob"),
        make_application(backend_job.id, "Cyd"),
    )
    assessor = ScriptedAssessor({"Ann": 40, "Bob": 90, "Cyd": 65}, store=store)

    ranked = await BatchAssessor(store, assessor).analyze_all(backend_job, applications)

    assert assessor.calls == ["Ann", "Bob", "Cyd"]
    assert assessor.max_in_flight == 1
    assert assessor.persisted_before_call == [[], ["app-ann"], ["app-ann", "app-bob"]]
    assert [application.candidate_name for application in ranked] == ["Bob", "Cyd", "Ann"]
    assert store.applications["app-bob"].ai_analysis.score == 90


@pytest.mark.asyncio
async def test_analyze_all_skips_scored_applications(store, backend_job):
    applications = _seed(
        store,
        backend_job,
        make_application(backend_job.id, "Ann", ai_analysis=CandidateAnalysis(score=70, reasoning="done")),
        make_application(backend_job.id, "Bob"),
    )
    assessor = ScriptedAssessor({"Bob": 10})

    ranked = await BatchAssessor(store, assessor).analyze_all(backend_job, applications)

    assert assessor.calls == ["Bob"]
    assert [application.candidate_name for application in ranked] == ["Ann", "Bob"]


@pytest.mark.asyncio
async def test_second_run_makes_no_calls(store, backend_job):
    applications = _seed(store, backend_job, make_application(backend_job.id, "Ann"))
    assessor = ScriptedAssessor({"Ann": 55})
    batch = BatchAssessor(store, assessor)

    first = await batch.analyze_all(backend_job, applications)
    await batch.analyze_all(backend_job, first)

    assert assessor.calls == ["Ann"]
    assert store.updates == ["app-ann"]


@pytest.mark.asyncio
async def test_higher_concurrency_bound_is_respected(store, backend_job):
    names = ["Ann", "Bob", "Cyd", "Dee", "Eve"]
    applications = _seed(store, backend_job, *(make_application(backend_job.id, name) for name in names))
    assessor = ScriptedAssessor(dict.fromkeys(names, 50))

    await BatchAssessor(store, assessor, concurrency=2).analyze_all(backend_job, applications)

    assert sorted(assessor.calls) == names
    assert assessor.max_in_flight <= 2


@pytest.mark.asyncio
async def test_persistence_failure_stops_the_batch(store, backend_job):
    applications = _seed(
        store,
        backend_job,
        make_application(backend_job.id, "Ann"),
        make_application(backend_job.id, "Bob"),
    )
    store.fail_writes = True
    assessor = ScriptedAssessor({"Ann": 10, "Bob": 20})

    with pytest.raises(PersistenceError):
        await BatchAssessor(store, assessor).analyze_all(backend_job, applications)
    assert assessor.calls == ["Ann"]


@pytest.mark.asyncio
async def test_concurrent_batch_against_sql_store(sql_store, backend_job):
    scores = {"Ann": 40, "Bob": 90, "Cyd": 65, "Dee": 75}
    applications = [make_application(backend_job.id, name) for name in scores]
    for application in applications:
        await sql_store.save_application(application)
    assessor = ScriptedAssessor(scores, delays=dict.fromkeys(scores, 0.01))

    ranked = await BatchAssessor(sql_store, assessor, concurrency=2).analyze_all(backend_job, applications)

    assert assessor.max_in_flight == 2
    assert [application.candidate_name for application in ranked] == ["Bob", "Dee", "Cyd", "Ann"]
    stored = {item.candidate_name: item.ai_analysis.score for item in await sql_store.get_applications(backend_job.id)}
    assert stored == scores


@pytest.mark.asyncio
async def test_failed_write_cancels_other_workers(store, backend_job):
    applications = _seed(
        store,
        backend_job,
        make_application(backend_job.id, "Ann"),
        make_application(backend_job.id, "Bob"),
        make_application(backend_job.id, "Cyd"),
    )
    store.fail_writes = True
    assessor = ScriptedAssessor({"Ann": 10, "Bob": 20, "Cyd": 30}, delays={"Bob": 10})

    with pytest.raises(PersistenceError):
        await BatchAssessor(store, assessor, concurrency=2).analyze_all(backend_job, applications)

    assert assessor.calls == ["Ann", "Bob"]
    assert assessor.cancelled == ["Bob"]
    await asyncio.sleep(0.01)
    assert assessor.calls == ["Ann", "Bob"]


@pytest.mark.asyncio
async def test_analyze_one_overwrites_previous_result(store, backend_job):
    (application,) = _seed(
        store,
        backend_job,
        make_application(backend_job.id, "Ann", ai_analysis=CandidateAnalysis(score=10, reasoning="old")),
    )
    updated = await BatchAssessor(store, ScriptedAssessor({"Ann": 77})).analyze_one(backend_job, application)

    assert updated.ai_analysis == CandidateAnalysis(score=77, reasoning="scripted")
    assert store.applications["app-ann"] == updated


def test_rank_applications_treats_unscored_as_zero(backend_job):
    ranked = rank_applications(
        [
            make_application(backend_job.id, "Ann"),
            make_application(backend_job.id, "Bob", ai_analysis=CandidateAnalysis(score=5, reasoning="x")),
        ]
    )
    assert [application.candidate_name for application in ranked] == ["Bob", "Ann"]


def test_concurrency_must_be_positive(store):
    with pytest.raises(ValueError):
        BatchAssessor(store, ScriptedAssessor({}), concurrency=0)
