"""
Location Model
"""
from sqlalchemy import Column, Integer, String, ForeignKey, JSON
from sqlalchemy.orm import relationship

from callboard.database import Base


class Location(Base):
    __tablename__ = "locations"

    location_id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey("accounts.account_id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    time_zone = Column(String, nullable=True)  # IANA name, e.g. "America/New_York"
    notification_email = Column(String, nullable=True)
    operating_hours_json = Column(JSON, nullable=True)

    account = relationship("Account", back_populates="locations")

    def __repr__(self):
        return f"<Location {self.name} ({self.location_id})>"
