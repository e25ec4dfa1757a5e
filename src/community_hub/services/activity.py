"""Best-effort audit trail for user actions."""
from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from community_hub.models import ActivityLog

logger = logging.getLogger(__name__)


class ActivityRecorder:
    """Append activity records without ever failing the calling operation.

    Records are written in their own commit after the primary mutation has
    been committed, so a failed write cannot roll that mutation back.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def record(
        self,
        user_id: int,
        action: str,
        target_model: str,
        target_id: int,
        details: str = "",
    ) -> bool:
        """Persist one activity record.

        Returns:
            True when the record was stored, False when the write failed.
        """
        try:
            self.session.add(
                ActivityLog(
                    user_id=user_id,
                    action=action,
                    target_model=target_model,
                    target_id=target_id,
                    details=details,
                )
            )
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.warning(
                "Failed to record %s activity for user %s on %s %s: %s",
                action,
                user_id,
                target_model,
                target_id,
                exc,
            )
            return False
        return True
