"""
Progress recorder - one verdict per (user, lesson)
"""
import logging
from datetime import datetime
from typing import Dict, Optional

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from nokhba.models import LessonProgress
from nokhba.services.grading_service import AttemptResult, PASS_STATUS

logger = logging.getLogger(__name__)

UPSERT_DIALECTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class ProgressService:
    """
    Upserts LessonProgress rows.

    A single INSERT ... ON CONFLICT (user_id, lesson_id) DO UPDATE writes the
    verdict, guarded by `status != 'Pass'` so a recorded Pass is permanent.
    Otherwise the latest verdict overwrites the row. The caller owns the
    transaction.
    """

    def get(self, db: Session, user_id: str, lesson_id: str) -> Optional[LessonProgress]:
        return db.query(LessonProgress).filter(
            LessonProgress.user_id == user_id,
            LessonProgress.lesson_id == lesson_id
        ).populate_existing().first()

    def progress_map(self, db: Session, user_id: str) -> Dict[str, LessonProgress]:
        """All progress rows of a user keyed by lesson id"""
        rows = db.query(LessonProgress).filter(LessonProgress.user_id == user_id).all()
        return {row.lesson_id: row for row in rows}

    def _insert(self, db: Session):
        dialect = db.get_bind().dialect.name
        try:
            return UPSERT_DIALECTS[dialect]
        except KeyError:
            raise RuntimeError(f"Progress upsert is not supported on {dialect}")

    def record(
        self,
        db: Session,
        user_id: str,
        lesson_id: str,
        result: AttemptResult,
        graded_at: datetime
    ) -> LessonProgress:
        """
        Write the verdict of a graded attempt

        Returns:
            The live progress row for (user_id, lesson_id)
        """
        values = {
            "status": result.status,
            "score": result.score,
            "total": result.total,
            "timestamp": graded_at,
        }
        table = LessonProgress.__table__
        stmt = self._insert(db)(table).values(user_id=user_id, lesson_id=lesson_id, **values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.user_id, table.c.lesson_id],
            set_={key: stmt.excluded[key] for key in values},
            where=table.c.status != PASS_STATUS
        )
        written = db.execute(stmt).rowcount

        row = self.get(db, user_id, lesson_id)
        if written:
            logger.info(f"Progress recorded: user={user_id}, lesson={lesson_id}, status={result.status}")
        else:
            logger.info(f"Progress kept: user={user_id}, lesson={lesson_id} already passed")
        return row


# Global instance
progress_service = ProgressService()
