"""
Leaderboard persistence

``LeaderboardStore`` is the interface the batch processor and service
depend on. Two implementations: an in-process dictionary store and an
SQLAlchemy store backed by the tables in ``models``. Mutations that touch
rank, notes or favorite are serialized per leaderboard.
"""

import copy
import logging
import threading
from contextlib import contextmanager
from dataclasses import replace
from typing import Dict, Iterable, List, Optional
from uuid import uuid4

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from errors import InvalidInputError, LeaderboardNotFoundError
from models import Base, LeaderboardEntryRecord, LeaderboardRecord
from schemas import JobDescriptionRef, Leaderboard, LeaderboardEntry, ScoreBreakdown

logger = logging.getLogger(__name__)


def _rank_order(entries: Iterable[LeaderboardEntry]) -> List[LeaderboardEntry]:
    # Unranked entries (batch still running) follow ranked ones in commit order
    indexed = list(enumerate(entries))
    indexed.sort(key=lambda item: (item[1].rank_position is None, item[1].rank_position or 0, item[0]))
    return [entry for _, entry in indexed]


class LeaderboardStore:
    """Base store: per-leaderboard locking plus the operation contract"""

    def __init__(self):
        self._locks: Dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    def lock_for(self, leaderboard_id: str) -> threading.RLock:
        """Lock serializing rank/notes/favorite mutation of one leaderboard"""
        with self._locks_guard:
            lock = self._locks.get(leaderboard_id)
            if lock is None:
                lock = self._locks[leaderboard_id] = threading.RLock()
            return lock

    def _forget_lock(self, leaderboard_id: str):
        with self._locks_guard:
            self._locks.pop(leaderboard_id, None)

    def create_leaderboard(self, owner_id: str, job_description: Optional[JobDescriptionRef] = None) -> Leaderboard:
        raise NotImplementedError

    def commit_entries(self, leaderboard_id: str, entries: List[LeaderboardEntry]) -> None:
        """Persist one scored sub-batch, appended after earlier ones"""
        raise NotImplementedError

    def finalize(self, leaderboard_id: str, ranked_entries: List[LeaderboardEntry]) -> Leaderboard:
        """Store final rank positions for an already committed leaderboard"""
        raise NotImplementedError

    def get(self, leaderboard_id: str) -> Leaderboard:
        raise NotImplementedError

    def list_for_owner(self, owner_id: str) -> List[Leaderboard]:
        raise NotImplementedError

    def update_notes(self, leaderboard_id: str, entry_id: str, notes: str) -> LeaderboardEntry:
        raise NotImplementedError

    def toggle_favorite(self, leaderboard_id: str, entry_id: str) -> LeaderboardEntry:
        raise NotImplementedError

    def delete(self, leaderboard_id: str) -> None:
        raise NotImplementedError

    def get_top_n(self, leaderboard_id: str, n: int) -> List[LeaderboardEntry]:
        """First ``n`` entries by rank ascending"""
        if n is None or n < 0:
            raise InvalidInputError(f"n must be a non-negative integer, got {n!r}")
        return _rank_order(self.get(leaderboard_id).entries)[:n]


class InMemoryLeaderboardStore(LeaderboardStore):
    """Dictionary-backed store; callers always receive copies"""

    def __init__(self):
        super().__init__()
        self._boards: Dict[str, Leaderboard] = {}
        self._guard = threading.Lock()

    def _board(self, leaderboard_id: str) -> Leaderboard:
        board = self._boards.get(leaderboard_id)
        if board is None:
            raise LeaderboardNotFoundError(f"Leaderboard {leaderboard_id} not found")
        return board

    def _entry(self, leaderboard_id: str, entry_id: str) -> LeaderboardEntry:
        for entry in self._board(leaderboard_id).entries:
            if entry.entry_id == entry_id:
                return entry
        raise LeaderboardNotFoundError(f"Entry {entry_id} not found in leaderboard {leaderboard_id}")

    def create_leaderboard(self, owner_id: str, job_description: Optional[JobDescriptionRef] = None) -> Leaderboard:
        board = Leaderboard(id=str(uuid4()), owner_id=owner_id, job_description=job_description)
        with self._guard:
            self._boards[board.id] = board
        return copy.deepcopy(board)

    def commit_entries(self, leaderboard_id: str, entries: List[LeaderboardEntry]) -> None:
        with self.lock_for(leaderboard_id):
            self._board(leaderboard_id).entries.extend(replace(entry) for entry in entries)

    def finalize(self, leaderboard_id: str, ranked_entries: List[LeaderboardEntry]) -> Leaderboard:
        with self.lock_for(leaderboard_id):
            board = self._board(leaderboard_id)
            by_id = {entry.entry_id: entry for entry in board.entries}
            for ranked in ranked_entries:
                stored = by_id.get(ranked.entry_id)
                if stored is None:
                    board.entries.append(replace(ranked))
                else:
                    stored.rank_position = ranked.rank_position
            board.entries = _rank_order(board.entries)
            return copy.deepcopy(board)

    def get(self, leaderboard_id: str) -> Leaderboard:
        with self.lock_for(leaderboard_id):
            return copy.deepcopy(self._board(leaderboard_id))

    def list_for_owner(self, owner_id: str) -> List[Leaderboard]:
        with self._guard:
            boards = [board for board in self._boards.values() if board.owner_id == owner_id]
        boards.sort(key=lambda board: board.created_at, reverse=True)
        return [copy.deepcopy(board) for board in boards]

    def update_notes(self, leaderboard_id: str, entry_id: str, notes: str) -> LeaderboardEntry:
        with self.lock_for(leaderboard_id):
            entry = self._entry(leaderboard_id, entry_id)
            entry.notes = notes or ""
            return replace(entry)

    def toggle_favorite(self, leaderboard_id: str, entry_id: str) -> LeaderboardEntry:
        with self.lock_for(leaderboard_id):
            entry = self._entry(leaderboard_id, entry_id)
            entry.favorite = not entry.favorite
            return replace(entry)

    def delete(self, leaderboard_id: str) -> None:
        with self.lock_for(leaderboard_id):
            with self._guard:
                if self._boards.pop(leaderboard_id, None) is None:
                    raise LeaderboardNotFoundError(f"Leaderboard {leaderboard_id} not found")
        self._forget_lock(leaderboard_id)


class SqlAlchemyLeaderboardStore(LeaderboardStore):
    """Leaderboards persisted through SQLAlchemy"""

    def __init__(self, database_url: str, echo: bool = False, create_tables: bool = True):
        super().__init__()
        engine_options = {'echo': echo}
        if database_url.startswith('sqlite') and ':memory:' in database_url:
            # One shared connection so every thread sees the same in-memory database
            engine_options.update(poolclass=StaticPool, connect_args={'check_same_thread': False})
        elif not database_url.startswith('sqlite'):
            engine_options.update(pool_pre_ping=True, pool_recycle=300)

        self.engine = create_engine(database_url, **engine_options)
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

        if create_tables:
            Base.metadata.create_all(self.engine)

    @contextmanager
    def session(self):
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ------------------------------------------------------------------
    # Record mapping
    # ------------------------------------------------------------------

    @staticmethod
    def _to_entry(record: LeaderboardEntryRecord) -> LeaderboardEntry:
        score = None
        if record.overall_score is not None:
            score = ScoreBreakdown(
                skills=record.skills_score,
                experience=record.experience_score,
                education=record.education_score,
                projects=record.projects_score,
                overall=record.overall_score,
                jd_match_percent=record.jd_match_percent,
            )
        return LeaderboardEntry(
            candidate_name=record.candidate_name,
            score=score,
            entry_id=record.id,
            candidate_id=record.candidate_id,
            rank_position=record.rank_position,
            favorite=bool(record.favorite),
            notes=record.notes or "",
            skills=record.skills or "",
            experience=record.experience or "",
            projects=record.projects or "",
            hackathons=record.hackathons or "",
            source_name=record.source_name,
        )

    @staticmethod
    def _to_record(entry: LeaderboardEntry, leaderboard_id: str, position: int) -> LeaderboardEntryRecord:
        score = entry.score
        return LeaderboardEntryRecord(
            id=entry.entry_id,
            leaderboard_id=leaderboard_id,
            position=position,
            rank_position=entry.rank_position,
            candidate_id=entry.candidate_id,
            candidate_name=entry.candidate_name,
            source_name=entry.source_name,
            skills_score=None if score is None else score.skills,
            experience_score=None if score is None else score.experience,
            education_score=None if score is None else score.education,
            projects_score=None if score is None else score.projects,
            overall_score=None if score is None else score.overall,
            jd_match_percent=None if score is None else score.jd_match_percent,
            skills=entry.skills,
            experience=entry.experience,
            projects=entry.projects,
            hackathons=entry.hackathons,
            favorite=entry.favorite,
            notes=entry.notes,
        )

    def _to_leaderboard(self, record: LeaderboardRecord) -> Leaderboard:
        job_description = None
        if record.jd_text is not None or record.jd_title is not None:
            job_description = JobDescriptionRef(
                title=record.jd_title or "Job Description",
                text=record.jd_text or "",
                source_name=record.jd_source_name,
            )
        return Leaderboard(
            id=record.id,
            owner_id=record.owner_id,
            job_description=job_description,
            entries=_rank_order(self._to_entry(entry) for entry in record.entries),
            created_at=record.created_at,
        )

    @staticmethod
    def _load(session, leaderboard_id: str) -> LeaderboardRecord:
        record = session.get(LeaderboardRecord, leaderboard_id)
        if record is None:
            raise LeaderboardNotFoundError(f"Leaderboard {leaderboard_id} not found")
        return record

    @staticmethod
    def _load_entry(session, leaderboard_id: str, entry_id: str) -> LeaderboardEntryRecord:
        record = session.get(LeaderboardEntryRecord, entry_id)
        if record is None or record.leaderboard_id != leaderboard_id:
            raise LeaderboardNotFoundError(f"Entry {entry_id} not found in leaderboard {leaderboard_id}")
        return record

    # ------------------------------------------------------------------
    # Store operations
    # ------------------------------------------------------------------

    def create_leaderboard(self, owner_id: str, job_description: Optional[JobDescriptionRef] = None) -> Leaderboard:
        with self.session() as session:
            record = LeaderboardRecord(owner_id=owner_id)
            if job_description is not None:
                record.jd_title = job_description.title
                record.jd_text = job_description.text
                record.jd_source_name = job_description.source_name
            session.add(record)
            session.flush()
            board = self._to_leaderboard(record)

        logger.info(f"Created leaderboard {board.id} for owner {owner_id}")
        return board

    def commit_entries(self, leaderboard_id: str, entries: List[LeaderboardEntry]) -> None:
        with self.lock_for(leaderboard_id), self.session() as session:
            record = self._load(session, leaderboard_id)
            offset = len(record.entries)
            for index, entry in enumerate(entries):
                session.add(self._to_record(entry, leaderboard_id, offset + index))

        logger.debug(f"Committed {len(entries)} entries to leaderboard {leaderboard_id}")

    def finalize(self, leaderboard_id: str, ranked_entries: List[LeaderboardEntry]) -> Leaderboard:
        with self.lock_for(leaderboard_id), self.session() as session:
            record = self._load(session, leaderboard_id)
            by_id = {entry.id: entry for entry in record.entries}
            offset = len(record.entries)

            for ranked in ranked_entries:
                stored = by_id.get(ranked.entry_id)
                if stored is None:
                    session.add(self._to_record(ranked, leaderboard_id, offset))
                    offset += 1
                else:
                    stored.rank_position = ranked.rank_position

            session.flush()
            session.refresh(record)
            return self._to_leaderboard(record)

    def get(self, leaderboard_id: str) -> Leaderboard:
        with self.session() as session:
            return self._to_leaderboard(self._load(session, leaderboard_id))

    def list_for_owner(self, owner_id: str) -> List[Leaderboard]:
        with self.session() as session:
            records = (session.query(LeaderboardRecord)
                       .filter(LeaderboardRecord.owner_id == owner_id)
                       .order_by(LeaderboardRecord.created_at.desc())
                       .all())
            return [self._to_leaderboard(record) for record in records]

    def get_top_n(self, leaderboard_id: str, n: int) -> List[LeaderboardEntry]:
        if n is None or n < 0:
            raise InvalidInputError(f"n must be a non-negative integer, got {n!r}")

        with self.session() as session:
            self._load(session, leaderboard_id)
            records = (session.query(LeaderboardEntryRecord)
                       .filter(LeaderboardEntryRecord.leaderboard_id == leaderboard_id)
                       .order_by(LeaderboardEntryRecord.rank_position.is_(None),
                                 LeaderboardEntryRecord.rank_position,
                                 LeaderboardEntryRecord.position)
                       .limit(n)
                       .all())
            return [self._to_entry(record) for record in records]

    def update_notes(self, leaderboard_id: str, entry_id: str, notes: str) -> LeaderboardEntry:
        with self.lock_for(leaderboard_id), self.session() as session:
            record = self._load_entry(session, leaderboard_id, entry_id)
            record.notes = notes or ""
            session.flush()
            return self._to_entry(record)

    def toggle_favorite(self, leaderboard_id: str, entry_id: str) -> LeaderboardEntry:
        with self.lock_for(leaderboard_id), self.session() as session:
            record = self._load_entry(session, leaderboard_id, entry_id)
            record.favorite = not record.favorite
            session.flush()
            return self._to_entry(record)

    def delete(self, leaderboard_id: str) -> None:
        with self.lock_for(leaderboard_id), self.session() as session:
            session.delete(self._load(session, leaderboard_id))

        self._forget_lock(leaderboard_id)
        logger.info(f"Deleted leaderboard {leaderboard_id}")
