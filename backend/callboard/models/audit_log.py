"""
User audit trail for user-management actions
"""
from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.dialects.postgresql import UUID
from datetime import datetime
import uuid

from callboard.database import Base


class UserAuditLog(Base):
    __tablename__ = "user_audit_logs"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # No FK: rows must outlive the deleted user they describe
    modified_user_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    modified_by_user_id = Column(UUID(as_uuid=True), nullable=False)
    action = Column(String, nullable=False)  # created | updated | deleted
    changes = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<UserAuditLog {self.action} {self.modified_user_id}>"
