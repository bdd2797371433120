"""
Sync Run Repository for managing the sync run log.
"""

from typing import List, Optional, Dict, Any, Tuple
from sqlalchemy.orm import Session
from datetime import datetime

from ..models import SyncRun, SyncStatus, utcnow
from .base import BaseRepository


class SyncRunRepository(BaseRepository):
    """Repository for SyncRun model operations."""

    def __init__(self, session: Session):
        super().__init__(SyncRun, session)

    def create_run(self, sync_type: str, entity_type: Optional[str] = None,
                   total: Optional[int] = None) -> SyncRun:
        """Create a new in-progress run record."""
        now = utcnow()
        return self.create(
            sync_type=sync_type,
            entity_type=entity_type,
            status=SyncStatus.IN_PROGRESS.value,
            total=total,
            imported=0,
            skipped=0,
            failed=0,
            details={'in_progress': True},
            created_at=now,
            updated_at=now
        )

    def update_progress(self, run: SyncRun, total: Optional[int] = None, imported: Optional[int] = None,
                        skipped: Optional[int] = None, failed: Optional[int] = None,
                        last_error: Optional[str] = None) -> SyncRun:
        """Update run counters in place."""
        updates: Dict[str, Any] = {'updated_at': utcnow()}

        if total is not None:
            updates['total'] = total
        if imported is not None:
            updates['imported'] = imported
        if skipped is not None:
            updates['skipped'] = skipped
        if failed is not None:
            updates['failed'] = failed
        if last_error is not None:
            updates['last_error'] = last_error

        return self.update(run, **updates)

    def finish_run(self, run: SyncRun, status: str, details: Optional[Dict[str, Any]] = None,
                   last_error: Optional[str] = None) -> SyncRun:
        """Move a run to a terminal status."""
        now = utcnow()
        merged = dict(run.details or {})
        merged.update(details or {})
        merged['in_progress'] = False
        merged['durationSeconds'] = int((now - run.created_at).total_seconds()) if run.created_at else None

        updates: Dict[str, Any] = {
            'status': status,
            'details': merged,
            'updated_at': now,
            'completed_at': now,
        }
        if last_error is not None:
            updates['last_error'] = last_error

        return self.update(run, **updates)

    def get_active(self, sync_type: str) -> Optional[SyncRun]:
        """Get the most recent in-progress run of a type."""
        return self.session.query(SyncRun).filter(
            SyncRun.sync_type == sync_type,
            SyncRun.status == SyncStatus.IN_PROGRESS.value
        ).order_by(SyncRun.created_at.desc(), SyncRun.id.desc()).first()

    def get_last_completed(self, sync_type: str) -> Optional[SyncRun]:
        """Get the most recent terminal run of a type."""
        return self.session.query(SyncRun).filter(
            SyncRun.sync_type == sync_type,
            SyncRun.status.in_(SyncStatus.terminal())
        ).order_by(SyncRun.created_at.desc(), SyncRun.id.desc()).first()

    def get_recent_errors(self, sync_type: Optional[str] = None, page: int = 1,
                          page_size: int = 10) -> Tuple[List[SyncRun], int]:
        """
        Get runs that recorded an error, newest first.

        Returns:
            (runs on the requested page, total matching runs)
        """
        query = self.session.query(SyncRun).filter(SyncRun.last_error.isnot(None))
        if sync_type:
            query = query.filter(SyncRun.sync_type == sync_type)

        total = query.count()
        runs = query.order_by(SyncRun.created_at.desc(), SyncRun.id.desc())\
            .offset((page - 1) * page_size)\
            .limit(page_size)\
            .all()
        return runs, total

    def get_stale(self, sync_type: str, older_than: datetime) -> List[SyncRun]:
        """In-progress runs whose last update is older than the cutoff."""
        return self.session.query(SyncRun).filter(
            SyncRun.sync_type == sync_type,
            SyncRun.status == SyncStatus.IN_PROGRESS.value,
            SyncRun.updated_at < older_than
        ).all()
