"""
Sync Progress Tracker

Owns the persisted SyncRun record for an import: created in_progress at the
start, updated as items are processed so the status surface can be polled,
and moved to a terminal status at the end.
"""

import logging
import math
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import SyncRun, SyncStatus, SyncType, utcnow
from ..repositories import ProductRepository, StagedMediaRepository, SyncRunRepository

logger = logging.getLogger(__name__)

MAX_ERRORS_PAGE_SIZE = 50
DEFAULT_ERRORS_PAGE_SIZE = 10


@dataclass
class ProgressCounters:
    """Aggregate counters of a run."""
    total: Optional[int] = None
    imported: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def processed(self) -> int:
        return self.imported + self.skipped + self.failed

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _clamp_page(page, page_size):
    try:
        page = int(page)
    except (TypeError, ValueError):
        page = 1
    try:
        page_size = int(page_size)
    except (TypeError, ValueError):
        page_size = DEFAULT_ERRORS_PAGE_SIZE
    return max(page, 1), min(max(page_size, 1), MAX_ERRORS_PAGE_SIZE)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _counters_payload(run: SyncRun) -> Dict[str, Any]:
    return {
        'total': run.total,
        'imported': run.imported,
        'skipped': run.skipped,
        'errors': run.failed,
        'lastError': run.last_error,
    }


def running_payload(run: SyncRun) -> Dict[str, Any]:
    """Status entry for an in_progress run."""
    payload = {
        'id': run.id,
        'status': run.status,
        'startedAt': _iso(run.created_at),
        'updatedAt': _iso(run.updated_at),
    }
    payload.update(_counters_payload(run))
    return payload


def completed_payload(run: SyncRun) -> Dict[str, Any]:
    """Status entry for the most recent finished run."""
    payload = {
        'id': run.id,
        'status': run.status,
        'startedAt': _iso(run.created_at),
        'finishedAt': _iso(run.completed_at or run.updated_at),
    }
    payload.update(_counters_payload(run))
    return payload


class SyncProgressTracker:
    """Persists run progress and builds the status surface."""

    def __init__(self, session: Session):
        self.session = session
        self.runs = SyncRunRepository(session)

    def start(self, sync_type: str, entity_type: Optional[str] = None, total: Optional[int] = None) -> SyncRun:
        run = self.runs.create_run(sync_type, entity_type=entity_type, total=total)
        self.session.commit()
        logger.info(f"Started {sync_type} run {run.id} (total={total})")
        return run

    def tick(self, run: SyncRun, counters: ProgressCounters, last_error: Optional[str] = None) -> bool:
        """
        Persist current counters. Best effort: a failed write is logged and the run continues.

        Returns:
            True if the update was written
        """
        try:
            with self.session.begin_nested():
                self.runs.update_progress(
                    run,
                    total=counters.total,
                    imported=counters.imported,
                    skipped=counters.skipped,
                    failed=counters.failed,
                    last_error=last_error
                )
            self.session.commit()
            return True
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.warning(f"Progress update failed for run {run.id}: {e}")
            return False

    def finish(self, run: SyncRun, counters: ProgressCounters,
               errors_sample: Optional[List[Dict[str, Any]]] = None,
               extra: Optional[Dict[str, Any]] = None, last_error: Optional[str] = None) -> SyncRun:
        """Move a run to success (no failures) or partial (at least one failed item)."""
        status = SyncStatus.PARTIAL.value if counters.failed > 0 else SyncStatus.SUCCESS.value
        details = dict(extra or {})
        details.update({
            'total': counters.total,
            'imported': counters.imported,
            'skipped': counters.skipped,
            'errors': counters.failed,
            'errorSample': errors_sample or [],
        })

        self.runs.update_progress(
            run,
            total=counters.total,
            imported=counters.imported,
            skipped=counters.skipped,
            failed=counters.failed
        )
        self.runs.finish_run(run, status, details=details, last_error=last_error)
        self.session.commit()

        logger.info(
            f"Finished {run.sync_type} run {run.id}: {status} "
            f"(imported={counters.imported}, skipped={counters.skipped}, failed={counters.failed})"
        )
        return run

    def fail(self, run: SyncRun, message: str, counters: Optional[ProgressCounters] = None) -> SyncRun:
        """Move a run to failed with the abort reason as its last error."""
        self.session.rollback()
        if counters is not None:
            self.runs.update_progress(
                run,
                total=counters.total,
                imported=counters.imported,
                skipped=counters.skipped,
                failed=counters.failed
            )
        self.runs.finish_run(run, SyncStatus.FAILED.value, details={'error': message}, last_error=message)
        self.session.commit()
        logger.error(f"{run.sync_type} run {run.id} failed: {message}")
        return run

    def active_run(self, sync_type: str) -> Optional[SyncRun]:
        return self.runs.get_active(sync_type)

    def last_completed(self, sync_type: str) -> Optional[SyncRun]:
        return self.runs.get_last_completed(sync_type)

    def reap_stale(self, sync_type: str, older_than: timedelta) -> List[SyncRun]:
        """Mark in_progress runs not updated within `older_than` as failed."""
        cutoff: datetime = utcnow() - older_than
        stale = self.runs.get_stale(sync_type, cutoff)

        for run in stale:
            message = f"Run abandoned: no progress since {run.updated_at.isoformat()}"
            self.runs.finish_run(run, SyncStatus.FAILED.value, details={'reaped': True}, last_error=message)
            logger.warning(f"Marked stale {sync_type} run {run.id} as failed")

        if stale:
            self.session.commit()
        return stale

    def status(self, sync_type: str = SyncType.SHOPIFY_IMPORT.value, errors_page=1,
               errors_page_size=DEFAULT_ERRORS_PAGE_SIZE) -> Dict[str, Any]:
        """
        Build the status surface for a sync type.

        Returns:
            {running, lastCompleted, productCount, unassociatedMedia, recentErrors, recentErrorsMeta}
        """
        page, page_size = _clamp_page(errors_page, errors_page_size)

        running = self.active_run(sync_type)
        last = self.last_completed(sync_type)

        staged = StagedMediaRepository(self.session)
        last_media_update = staged.last_updated_at()

        error_runs, total_errors = self.runs.get_recent_errors(sync_type, page=page, page_size=page_size)

        return {
            'running': running_payload(running) if running else None,
            'lastCompleted': completed_payload(last) if last else None,
            'productCount': ProductRepository(self.session).count(),
            'unassociatedMedia': {
                'count': staged.count(),
                'lastUpdated': last_media_update.isoformat() if last_media_update else None,
            },
            'recentErrors': [
                {
                    'id': run.id,
                    'createdAt': _iso(run.created_at),
                    'status': run.status,
                    'lastError': run.last_error,
                }
                for run in error_runs
            ],
            'recentErrorsMeta': {
                'page': page,
                'pageSize': page_size,
                'total': total_errors,
                'totalPages': max(1, math.ceil(total_errors / page_size)),
            },
        }
