"""Role tiers, role-permission-sets and per-location user grants."""
import uuid as uuid_lib
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint, Index, JSON
from sqlalchemy.dialects.postgresql import UUID, ARRAY
from sqlalchemy.orm import relationship

from callboard.database import Base


class Role(Base):
    """Coarse tier (1 = Support Staff ... 5 = Owner)."""
    __tablename__ = "roles"

    role_id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)


class RolePermissionSet(Base):
    __tablename__ = "roles_permissions"

    role_permission_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    role_id = Column(Integer, ForeignKey("roles.role_id"), nullable=False)
    permission_ids = Column(
        JSON().with_variant(ARRAY(Integer), "postgresql"),
        nullable=False,
        default=list,
    )

    role = relationship("Role")

    @property
    def permission_set(self) -> frozenset:
        return frozenset(self.permission_ids or ())

    def __repr__(self):
        return f"<RolePermissionSet {self.name} (tier {self.role_id})>"


class UserRolePermission(Base):
    """Grant: one role-permission-set for one user at one location."""
    __tablename__ = "user_roles_permissions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid_lib.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    location_id = Column(Integer, ForeignKey("locations.location_id", ondelete="CASCADE"), nullable=False)
    role_permission_id = Column(Integer, ForeignKey("roles_permissions.role_permission_id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="grants")
    location = relationship("Location")
    role_permission = relationship("RolePermissionSet")

    __table_args__ = (
        UniqueConstraint("user_id", "location_id", name="uq_user_location_grant"),
        Index("ix_user_roles_permissions_user", "user_id"),
    )
