"""
Background job queue.

Analysis, recalculation and export generation run after the response has been
sent. ``BackgroundJobQueue`` hands them to FastAPI's ``BackgroundTasks``; each
job opens its own database session.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from fastapi import BackgroundTasks

if TYPE_CHECKING:
    from .export_jobs import ExportOptions


class JobQueue(Protocol):
    def enqueue_analysis(self, case_id: str) -> None: ...

    def enqueue_recalculation(self, case_id: str) -> None: ...

    def enqueue_export(self, export_id: str, options: "ExportOptions") -> None: ...


class BackgroundJobQueue:
    """Runs jobs as FastAPI background tasks of the current request."""

    def __init__(self, background_tasks: BackgroundTasks) -> None:
        self.background_tasks = background_tasks

    def enqueue_analysis(self, case_id: str) -> None:
        from .analysis_jobs import run_analysis_job

        self.background_tasks.add_task(run_analysis_job, case_id)

    def enqueue_recalculation(self, case_id: str) -> None:
        from .analysis_jobs import run_recalculation_job

        self.background_tasks.add_task(run_recalculation_job, case_id)

    def enqueue_export(self, export_id: str, options: "ExportOptions") -> None:
        from .export_jobs import run_export_job

        self.background_tasks.add_task(run_export_job, export_id, options)
