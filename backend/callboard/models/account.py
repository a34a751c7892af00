"""
Account and per-account settings
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime

from callboard.database import Base
from callboard.config.permissions import DEFAULT_USER_CREATION_TIER


class Account(Base):
    __tablename__ = "accounts"

    account_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    locations = relationship("Location", back_populates="account")
    settings = relationship("AccountSetting", back_populates="account", uselist=False)

    def __repr__(self):
        return f"<Account {self.name} ({self.account_id})>"


class AccountSetting(Base):
    """One row per account, created lazily on first update."""
    __tablename__ = "account_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey("accounts.account_id", ondelete="CASCADE"), unique=True, nullable=False)
    # Minimum role tier required to create users
    user_creation_permission_level = Column(Integer, nullable=False, default=DEFAULT_USER_CREATION_TIER)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    account = relationship("Account", back_populates="settings")
