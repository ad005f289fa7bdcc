"""
Tests for the leaderboard stores
"""

import pytest

from conftest import make_entry
from errors import InvalidInputError, LeaderboardNotFoundError
from leaderboard import LeaderboardRanker
from models import LeaderboardEntryRecord
from schemas import JobDescriptionRef


def _build(store, owner="recruiter-1", scores=(0.4, 0.9, None, 0.7)):
    """Create, commit in two sub-batches and finalize a leaderboard"""
    board = store.create_leaderboard(owner, JobDescriptionRef(title="Backend Engineer", text="Java"))
    entries = [make_entry(f"Candidate {i}", score, source_name=f"resume{i}.txt")
               for i, score in enumerate(scores)]

    store.commit_entries(board.id, entries[:2])
    store.commit_entries(board.id, entries[2:])

    LeaderboardRanker().rank(entries)
    return store.finalize(board.id, entries)


class TestLeaderboardStore:
    """Behaviour shared by every store implementation"""

    def test_create_and_get(self, any_store):
        board = any_store.create_leaderboard("recruiter-1")
        loaded = any_store.get(board.id)

        assert loaded.id == board.id
        assert loaded.owner_id == "recruiter-1"
        assert loaded.job_description is None
        assert loaded.entries == []

    def test_job_description_round_trip(self, any_store):
        board = _build(any_store)
        loaded = any_store.get(board.id)

        assert loaded.job_description_ref == "Backend Engineer"
        assert loaded.job_description.text == "Java"

    def test_finalize_orders_by_rank(self, any_store):
        board = _build(any_store)

        assert [e.candidate_name for e in board.entries] == [
            "Candidate 1", "Candidate 3", "Candidate 0", "Candidate 2"]
        assert [e.rank_position for e in board.entries] == [1, 2, 3, 4]
        assert board.entries[-1].score is None

    def test_scores_survive_storage(self, any_store):
        board = _build(any_store)
        top = any_store.get(board.id).entries[0]

        assert top.match_score == pytest.approx(0.9)
        assert top.source_name == "resume1.txt"

    def test_unranked_entries_keep_commit_order(self, any_store):
        board = any_store.create_leaderboard("recruiter-1")
        any_store.commit_entries(board.id, [make_entry("First", 0.1), make_entry("Second", 0.9)])

        assert [e.candidate_name for e in any_store.get(board.id).entries] == ["First", "Second"]

    def test_get_top_n(self, any_store):
        board = _build(any_store)

        top = any_store.get_top_n(board.id, 2)
        assert [e.candidate_name for e in top] == ["Candidate 1", "Candidate 3"]
        assert len(any_store.get_top_n(board.id, 100)) == 4
        assert any_store.get_top_n(board.id, 0) == []

    def test_get_top_n_negative(self, any_store):
        board = _build(any_store)
        with pytest.raises(InvalidInputError):
            any_store.get_top_n(board.id, -1)

    def test_update_notes(self, any_store):
        board = _build(any_store)
        entry_id = board.entries[0].entry_id

        updated = any_store.update_notes(board.id, entry_id, "Strong systems design")

        assert updated.notes == "Strong systems design"
        assert any_store.get(board.id).entries[0].notes == "Strong systems design"

    def test_toggle_favorite(self, any_store):
        board = _build(any_store)
        entry_id = board.entries[1].entry_id

        assert any_store.toggle_favorite(board.id, entry_id).favorite is True
        assert any_store.get(board.id).entries[1].favorite is True
        assert any_store.toggle_favorite(board.id, entry_id).favorite is False

    def test_returned_entries_are_copies(self, any_store):
        board = _build(any_store)
        board.entries[0].notes = "local edit"
        assert any_store.get(board.id).entries[0].notes == ""

    def test_list_for_owner(self, any_store):
        first = any_store.create_leaderboard("recruiter-1")
        second = any_store.create_leaderboard("recruiter-1")
        any_store.create_leaderboard("recruiter-2")

        ids = {board.id for board in any_store.list_for_owner("recruiter-1")}
        assert ids == {first.id, second.id}
        assert any_store.list_for_owner("nobody") == []

    def test_delete(self, any_store):
        board = _build(any_store)
        any_store.delete(board.id)

        with pytest.raises(LeaderboardNotFoundError):
            any_store.get(board.id)
        with pytest.raises(LeaderboardNotFoundError):
            any_store.delete(board.id)

    def test_unknown_ids(self, any_store):
        board = _build(any_store)

        with pytest.raises(LeaderboardNotFoundError):
            any_store.get("missing")
        with pytest.raises(LeaderboardNotFoundError):
            any_store.update_notes(board.id, "missing", "x")
        with pytest.raises(LeaderboardNotFoundError):
            any_store.toggle_favorite("missing", board.entries[0].entry_id)


class TestSqlAlchemyStore:
    """Behaviour specific to the SQLAlchemy store"""

    def test_delete_cascades_to_entries(self, sql_store):
        board = _build(sql_store)
        sql_store.delete(board.id)

        with sql_store.session() as session:
            remaining = (session.query(LeaderboardEntryRecord)
                         .filter(LeaderboardEntryRecord.leaderboard_id == board.id)
                         .count())
        assert remaining == 0

    def test_entry_from_other_leaderboard_not_found(self, sql_store):
        first = _build(sql_store)
        second = _build(sql_store)

        with pytest.raises(LeaderboardNotFoundError):
            sql_store.update_notes(second.id, first.entries[0].entry_id, "wrong board")

    def test_commit_positions_continue_across_sub_batches(self, sql_store):
        board = _build(sql_store)

        with sql_store.session() as session:
            positions = [record.position for record in
                         session.query(LeaderboardEntryRecord)
                         .filter(LeaderboardEntryRecord.leaderboard_id == board.id)
                         .order_by(LeaderboardEntryRecord.position)]
        assert positions == [0, 1, 2, 3]
