"""
Tests for the background batch task
"""

import pytest

import tasks
from ats_service import create_service
from config import TestingConfig
from conftest import JD_TEXT, make_blob, make_resume_text
from errors import InvalidInputError
from leaderboard_store import InMemoryLeaderboardStore


@pytest.fixture
def service():
    service = create_service(TestingConfig, store=InMemoryLeaderboardStore(), current_year=2025)
    tasks.set_service(service)
    yield service
    tasks.set_service(None)


def _payloads():
    blobs = [make_blob("alice.txt", make_resume_text("Alice Brown", 5, 3)),
             make_blob("bob.txt", make_resume_text("Bob Carter", 2, 1)),
             make_blob("broken.pdf", "definitely not a pdf")]
    return [tasks.encode_blob(blob) for blob in blobs]


class TestBlobPayloads:
    """Tests for JSON-safe file payloads"""

    def test_round_trip(self):
        blob = make_blob("alice.txt", "Alice Brown", candidate_id="c-7")
        assert tasks.decode_blob(tasks.encode_blob(blob)) == blob

    @pytest.mark.parametrize("payload", [
        {'content_b64': 'QQ=='},
        {'filename': 'a.txt', 'content_b64': '***'},
        {'filename': 'a.txt'},
    ])
    def test_malformed_payload(self, payload):
        with pytest.raises(InvalidInputError):
            tasks.decode_blob(payload)


class TestRunBatchAsync:
    """Tests for the eager Celery task"""

    def test_task_builds_leaderboard(self, service):
        result = tasks.run_batch_async.apply(
            args=("recruiter-1", _payloads()),
            kwargs={'jd_text': JD_TEXT, 'jd_title': "Backend Engineer"},
        ).get()

        assert result['status'] == 'success'
        assert result['requested'] == 3
        assert result['scored'] == 2
        assert result['skipped'] == 1
        assert result['skipped_resumes'][0]['source_name'] == "broken.pdf"

        board = service.get_leaderboard(result['leaderboard_id'])
        assert board.job_description_ref == "Backend Engineer"
        assert [e.rank_position for e in board.entries] == [1, 2]

    def test_task_with_jd_file(self, service):
        jd_file = tasks.encode_blob(make_blob("jd.txt", JD_TEXT))
        result = tasks.run_batch_async.apply(
            args=("recruiter-1", _payloads()[:2]), kwargs={'jd_file': jd_file}).get()

        board = service.get_leaderboard(result['leaderboard_id'])
        assert board.job_description.source_name == "jd.txt"

    def test_task_propagates_invalid_input(self, service):
        with pytest.raises(InvalidInputError):
            tasks.run_batch_async.apply(args=("recruiter-1", [])).get()
