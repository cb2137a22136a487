from sqlalchemy import Column, Integer, Float, String, JSON, ForeignKey, Index
from sqlalchemy.orm import relationship

from shared.database import Base

APPROVED = "APPROVED"
PENDING = "PENDING"


class Guide(Base):
    __tablename__ = "guides"
    __table_args__ = (Index("ix_guides_city_status", "city", "status"),)

    id = Column(String, primary_key=True)
    name = Column(String, nullable=True)
    # contact fields: never projected into candidates
    email = Column(String, unique=True, nullable=True)
    phone = Column(String, nullable=True)

    nationality = Column(String, nullable=True)
    institute = Column(String, nullable=True)
    gender = Column(String, nullable=True)
    city = Column(String, nullable=True)
    status = Column(String, nullable=False, default=PENDING)

    trips_hosted = Column(Integer, nullable=False, default=0)
    average_rating = Column(Float, nullable=True)
    no_show_count = Column(Integer, nullable=False, default=0)
    reliability_badge = Column(String, nullable=True)
    interests = Column(JSON, nullable=False, default=list)
    acceptance_rate = Column(Float, nullable=True)

    languages = relationship(
        "GuideLanguage",
        back_populates="guide",
        cascade="all, delete-orphan",
        order_by="GuideLanguage.position",
    )
    availability = relationship(
        "AvailabilitySlot",
        back_populates="guide",
        cascade="all, delete-orphan",
        order_by="AvailabilitySlot.id",
    )


class GuideLanguage(Base):
    __tablename__ = "guide_languages"

    id = Column(Integer, primary_key=True)
    guide_id = Column(String, ForeignKey("guides.id", ondelete="CASCADE"), nullable=False, index=True)
    language = Column(String, nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)

    guide = relationship("Guide", back_populates="languages")


class AvailabilitySlot(Base):
    __tablename__ = "availability_slots"

    id = Column(Integer, primary_key=True)
    guide_id = Column(String, ForeignKey("guides.id", ondelete="CASCADE"), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)  # 0 = Sunday
    start_time = Column(String, nullable=False)  # "HH:MM"
    end_time = Column(String, nullable=False)
    note = Column(String, nullable=True)

    guide = relationship("Guide", back_populates="availability")


class TripRequestRecord(Base):
    __tablename__ = "trip_requests"

    id = Column(String, primary_key=True)
    email = Column(String, nullable=True)
    city = Column(String, nullable=True)
    dates = Column(JSON, nullable=True)
    preferred_time = Column(String, nullable=True)
    interests = Column(JSON, nullable=False, default=list)
    preferred_nationality = Column(String, nullable=True)
    preferred_languages = Column(JSON, nullable=False, default=list)
    preferred_gender = Column(String, nullable=True)
    status = Column(String, nullable=False, default=PENDING)
