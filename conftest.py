"""
Pytest configuration and shared fixtures.
"""

import os

os.environ.setdefault('ATS_ENV', 'testing')

import pytest

from ats_engine import CandidateScorer
from batch_processor import BatchProcessor
from errors import TextExtractionError
from leaderboard_store import InMemoryLeaderboardStore, SqlAlchemyLeaderboardStore
from processing_tracker import ProcessingTimeTracker
from schemas import LeaderboardEntry, ResumeBlob, ScoreBreakdown

CURRENT_YEAR = 2025

CANDIDATE_NAMES = [
    "Alice Brown", "Bob Carter", "Carol Davis", "Daniel Evans", "Emma Foster",
    "Frank Green", "Grace Hill", "Henry Irving",
]

SKILL_POOL = [
    "Java", "Python", "Docker", "Kubernetes", "React", "Spring", "MySQL",
    "PostgreSQL", "MongoDB", "Jenkins", "Terraform", "Git",
]

JD_TEXT = (
    "Looking for a backend engineer\n"
    "Must know Java, Spring, Docker, Kubernetes, MySQL and Git.\n"
)


def make_resume_text(name: str, skill_count: int, years: int) -> str:
    """Plain-text resume with a name line, explicit years and a skills line"""
    return (
        f"{name}\n"
        f"Software Engineer\n"
        f"Work Experience: {years} years of experience in software development\n"
        f"Skills: {', '.join(SKILL_POOL[:skill_count])}\n"
    )


def make_blob(filename: str, text: str, candidate_id: str = None) -> ResumeBlob:
    return ResumeBlob(filename=filename, content=text.encode('utf-8'), candidate_id=candidate_id)


def make_score(overall: float) -> ScoreBreakdown:
    """Breakdown whose overall is fixed directly, for ranking/export tests"""
    return ScoreBreakdown(skills=overall, experience=overall, education=overall,
                          projects=overall, overall=overall)


def make_entry(name: str, overall=None, **kwargs) -> LeaderboardEntry:
    score = None if overall is None else make_score(overall)
    return LeaderboardEntry(candidate_name=name, score=score, **kwargs)


class FakeTextExtractor:
    """Decodes blob bytes as UTF-8; named files fail like a corrupt upload"""

    def __init__(self, fail_on=(), on_extract=None):
        self.fail_on = set(fail_on)
        self.on_extract = on_extract
        self.calls = []

    def extract_text(self, blob: ResumeBlob) -> str:
        self.calls.append(blob.filename)
        if self.on_extract is not None:
            self.on_extract(blob)
        if blob.filename in self.fail_on:
            raise TextExtractionError(f"Error reading {blob.filename}")
        return blob.content.decode('utf-8')


class RecordingStore(InMemoryLeaderboardStore):
    """In-memory store that remembers every committed sub-batch"""

    def __init__(self):
        super().__init__()
        self.commits = []

    def commit_entries(self, leaderboard_id, entries):
        self.commits.append([entry.source_name for entry in entries])
        super().commit_entries(leaderboard_id, entries)


@pytest.fixture
def scorer() -> CandidateScorer:
    return CandidateScorer(current_year=CURRENT_YEAR)


@pytest.fixture
def memory_store() -> InMemoryLeaderboardStore:
    return InMemoryLeaderboardStore()


@pytest.fixture
def sql_store() -> SqlAlchemyLeaderboardStore:
    store = SqlAlchemyLeaderboardStore('sqlite:///:memory:')
    yield store
    store.engine.dispose()


@pytest.fixture(params=['memory', 'sqlalchemy'])
def any_store(request):
    """Each store implementation in turn"""
    if request.param == 'memory':
        yield InMemoryLeaderboardStore()
    else:
        store = SqlAlchemyLeaderboardStore('sqlite:///:memory:')
        yield store
        store.engine.dispose()


@pytest.fixture
def recording_store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def tracker() -> ProcessingTimeTracker:
    return ProcessingTimeTracker()


@pytest.fixture
def resume_blobs():
    """Six text resumes with distinct skill counts and experience"""
    return [
        make_blob(f"resume{i + 1}.txt", make_resume_text(name, skill_count=2 + 2 * i, years=1 + i))
        for i, name in enumerate(CANDIDATE_NAMES[:6])
    ]


@pytest.fixture
def make_processor(scorer, tracker):
    """Factory building a BatchProcessor around a fake extractor"""
    def factory(store, extractor=None, **kwargs):
        return BatchProcessor(
            scorer,
            store,
            text_extractor=extractor or FakeTextExtractor(),
            tracker=tracker,
            **kwargs
        )
    return factory
