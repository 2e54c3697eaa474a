"""Waiter table assignments and push token registry."""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import delete
from sqlalchemy.orm import Session

from festbar.db.base import as_utc, utcnow
from festbar.models.waiter import FcmToken, WaiterAssignment

logger = logging.getLogger(__name__)


class WaiterService:
    def __init__(self, db: Session):
        self.db = db

    # --------------- assignments ---------------

    def list_assignments(self) -> List[WaiterAssignment]:
        return self.db.query(WaiterAssignment).order_by(WaiterAssignment.waiter_name).all()

    def get_assignment(self, waiter_name: str) -> Optional[WaiterAssignment]:
        return self.db.get(WaiterAssignment, waiter_name)

    def assign_tables(self, waiter_name: str, tables: List[int]) -> WaiterAssignment:
        """Replace the tables a waiter is responsible for."""
        assignment = self.db.get(WaiterAssignment, waiter_name)
        tables = sorted(set(tables))
        if assignment:
            assignment.tables = tables
            assignment.updated_at = utcnow()
        else:
            assignment = WaiterAssignment(waiter_name=waiter_name, tables=tables)
            self.db.add(assignment)
        self.db.commit()
        self.db.refresh(assignment)
        logger.info(f"Waiter {waiter_name} assigned to tables {tables}")
        return assignment

    def remove_assignment(self, waiter_name: str) -> bool:
        assignment = self.db.get(WaiterAssignment, waiter_name)
        if not assignment:
            return False
        self.db.delete(assignment)
        self.db.commit()
        return True

    def waiters_for_table(self, table_number: int) -> List[str]:
        return [a.waiter_name for a in self.list_assignments() if table_number in (a.tables or [])]

    # --------------- FCM tokens ---------------

    def register_token(self, waiter_name: str, token: str, platform: str = "web") -> FcmToken:
        """Store or refresh a waiter's device token."""
        row = self.db.get(FcmToken, waiter_name)
        if row:
            row.token = token
            row.platform = platform
            row.updated_at = utcnow()
        else:
            row = FcmToken(waiter_name=waiter_name, token=token, platform=platform, updated_at=utcnow())
            self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return row

    def remove_token(self, waiter_name: str) -> bool:
        result = self.db.execute(delete(FcmToken).where(FcmToken.waiter_name == waiter_name))
        self.db.commit()
        return result.rowcount > 0

    def tokens_for_table(self, table_number: int) -> List[str]:
        """Device tokens of every waiter assigned to a table."""
        waiters = self.waiters_for_table(table_number)
        if not waiters:
            return []
        rows = self.db.query(FcmToken).filter(FcmToken.waiter_name.in_(waiters)).all()
        return [row.token for row in rows if row.token]

    def cleanup_stale_tokens(self, max_age_hours: int, now: Optional[datetime] = None) -> int:
        """Delete tokens that have not been refreshed within ``max_age_hours``."""
        cutoff = (now or utcnow()) - timedelta(hours=max_age_hours)
        stale = [row for row in self.db.query(FcmToken).all() if as_utc(row.updated_at) < cutoff]
        for row in stale:
            logger.info(f"Removing stale FCM token for {row.waiter_name}")
            self.db.delete(row)
        self.db.commit()
        return len(stale)
