"""
Database models for the leaderboard store
A leaderboard owns its entries; deleting a leaderboard deletes them.
"""

from datetime import datetime, timezone
import uuid

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow():
    return datetime.now(timezone.utc)


class LeaderboardRecord(Base):
    """One batch run: owner, JD reference and ranked entries"""
    __tablename__ = 'leaderboards'

    id = Column(String(36), primary_key=True, default=_new_id)
    owner_id = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    # JD reference (null when ranking without a JD)
    jd_title = Column(String(300))
    jd_text = Column(Text)
    jd_source_name = Column(String(255))

    entries = relationship(
        'LeaderboardEntryRecord',
        back_populates='leaderboard',
        cascade='all, delete-orphan',
        order_by='LeaderboardEntryRecord.position',
    )

    __table_args__ = (
        Index('idx_leaderboard_owner', 'owner_id'),
    )

    def __repr__(self):
        return f'<Leaderboard {self.id} - Owner: {self.owner_id}>'


class LeaderboardEntryRecord(Base):
    """A scored candidate inside one leaderboard"""
    __tablename__ = 'leaderboard_entries'

    id = Column(String(36), primary_key=True, default=_new_id)
    leaderboard_id = Column(String(36), ForeignKey('leaderboards.id', ondelete='CASCADE'), nullable=False)

    # Commit order inside the batch; rank_position is the score order
    position = Column(Integer, nullable=False, default=0)
    rank_position = Column(Integer)

    candidate_id = Column(String(100))
    candidate_name = Column(String(200), nullable=False)
    source_name = Column(String(255))

    # Score breakdown, all null when unscored
    skills_score = Column(Float)
    experience_score = Column(Float)
    education_score = Column(Float)
    projects_score = Column(Float)
    overall_score = Column(Float)
    jd_match_percent = Column(Float)

    skills = Column(Text, default='')
    experience = Column(Text, default='')
    projects = Column(Text, default='')
    hackathons = Column(Text, default='')

    favorite = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, default='')

    leaderboard = relationship('LeaderboardRecord', back_populates='entries')

    __table_args__ = (
        Index('idx_entry_leaderboard', 'leaderboard_id'),
        Index('idx_entry_rank', 'leaderboard_id', 'rank_position'),
    )

    def __repr__(self):
        return f'<LeaderboardEntry {self.candidate_name} - Score: {self.overall_score}>'
