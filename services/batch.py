"""Batch scoring of the applications for one job."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable

from app.repository import Store
from app.schemas import Application, Job
from services.assessment import CandidateAssessor

logger = logging.getLogger(__name__)


def rank_applications(applications: Iterable[Application]) -> list[Application]:
    """Order by descending score; unscored applications count as zero."""

    return sorted(
        applications,
        key=lambda application: application.ai_analysis.score if application.ai_analysis else 0,
        reverse=True,
    )


class BatchAssessor:
    """Work queue feeding unscored applications to the assessor.

    ``concurrency`` bounds how many analyses are in flight. It defaults to one,
    which scores applications strictly one after another in the order given.
    Each result is persisted before the worker takes its next application.
    Store writes are serialized: the store may wrap a single database session.
    The first failing worker cancels the others.
    """

    def __init__(self, store: Store, assessor: CandidateAssessor, *, concurrency: int = 1) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.store = store
        self.assessor = assessor
        self.concurrency = concurrency
        self._write_lock = asyncio.Lock()

    async def analyze_one(self, job: Job, application: Application) -> Application:
        analysis = await self.assessor.analyze_candidate(job, application)
        updated = application.model_copy(update={"ai_analysis": analysis})
        async with self._write_lock:
            await self.store.update_application(updated)
        return updated

    async def analyze_all(self, job: Job, applications: Iterable[Application]) -> list[Application]:
        applications = list(applications)
        view = rank_applications(applications)
        queue: asyncio.Queue[Application] = asyncio.Queue()
        for application in applications:
            if application.ai_analysis is None:
                queue.put_nowait(application)

        if queue.empty():
            return view

        logger.info("Scoring %d unscored applications for job %s", queue.qsize(), job.id)

        async def worker() -> None:
            nonlocal view
            while True:
                try:
                    application = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                updated = await self.analyze_one(job, application)
                view = rank_applications(updated if item.id == updated.id else item for item in view)

        workers = [asyncio.ensure_future(worker()) for _ in range(min(self.concurrency, queue.qsize()))]
        try:
            await asyncio.gather(*workers)
        except BaseException:
            for task in workers:
                task.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
            raise
        return view
