"""
Talk models - talk metadata and searchable transcripts
"""

from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from database import Base


class Talk(Base):
    """Talk metadata cached from the content provider"""

    __tablename__ = "talks"

    id = Column(Integer, primary_key=True, index=True, autoincrement=False)  # provider talk id
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    filmed = Column(DateTime, nullable=True)
    published = Column(DateTime, nullable=True)
    description = Column(Text, nullable=True)
    image = Column(String(500), nullable=True)
    languages = Column(JSON, default=[])  # [{"code": "en", "name": "English"}]
    media_slug = Column(String(255), nullable=False)  # base filename of subtitle files
    media_pad = Column(Float, default=0.0)  # subtitle time lag in milliseconds
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    transcript = relationship(
        "Transcript", back_populates="talk", uselist=False, cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Talk(id={self.id}, slug={self.slug})>"


class Transcript(Base):
    """English transcript used for full-text search"""

    __tablename__ = "transcripts"

    id = Column(Integer, ForeignKey("talks.id"), primary_key=True)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    talk = relationship("Talk", back_populates="transcript")
