"""
Tests for leaderboard ranking and candidate reports
"""

import pytest

from conftest import make_entry
from errors import InvalidInputError, LeaderboardNotFoundError
from leaderboard import LeaderboardRanker, build_candidate_report
from schemas import JobDescriptionRef, Leaderboard, ScoreBreakdown


class TestLeaderboardRanker:
    """Tests for score-ordered ranking"""

    def test_ranks_are_dense_and_ordered(self):
        entries = [make_entry("A", 0.4), make_entry("B", 0.9), make_entry("C", 0.7)]
        LeaderboardRanker().rank(entries)

        assert [e.candidate_name for e in entries] == ["B", "C", "A"]
        assert [e.rank_position for e in entries] == [1, 2, 3]

    def test_unscored_entries_last(self):
        entries = [make_entry("A", 0.5), make_entry("B"), make_entry("C", 0.9),
                   make_entry("D", 0.5), make_entry("E")]
        LeaderboardRanker().rank(entries)

        assert [e.candidate_name for e in entries] == ["C", "A", "D", "B", "E"]
        assert [e.rank_position for e in entries] == [1, 2, 3, 4, 5]

    def test_scores_monotonic(self):
        entries = [make_entry(str(i), score) for i, score in enumerate([0.1, 0.8, 0.3, 0.8, 0.55, 0.0])]
        LeaderboardRanker().rank(entries)

        scores = [e.match_score for e in entries]
        assert all(a >= b for a, b in zip(scores, scores[1:]))

    def test_equal_scores_keep_input_order(self):
        entries = [make_entry(name, 0.6) for name in ("first", "second", "third")]
        LeaderboardRanker().rank(entries)
        assert [e.candidate_name for e in entries] == ["first", "second", "third"]

    def test_empty(self):
        assert LeaderboardRanker().rank([]) == []

    def test_top_n(self):
        ranker = LeaderboardRanker()
        entries = ranker.rank([make_entry("A", 0.2), make_entry("B", 0.8), make_entry("C", 0.5)])

        assert [e.candidate_name for e in ranker.top_n(entries, 2)] == ["B", "C"]
        assert len(ranker.top_n(entries, 10)) == 3
        assert ranker.top_n(entries, 0) == []

    def test_top_n_negative(self):
        with pytest.raises(InvalidInputError):
            LeaderboardRanker().top_n([], -1)


class TestCandidateReport:
    """Tests for the single-entry report"""

    @pytest.fixture
    def leaderboard(self):
        scored = make_entry("Jane Doe", skills="Java, SQL, Docker", experience="Mid-Level",
                            projects="Inventory tracker, built in Flask; Chat app", hackathons="")
        scored.score = ScoreBreakdown.create(skills=0.8, experience=0.7, education=0.6, projects=0.5,
                                             jd_match_percent=75.0)
        unscored = make_entry("Bob Carter")
        LeaderboardRanker().rank([scored, unscored])
        return Leaderboard(id="lb-1", owner_id="recruiter",
                           job_description=JobDescriptionRef(title="Backend Engineer", text="Java"),
                           entries=[scored, unscored])

    def test_report_fields(self, leaderboard):
        entry = leaderboard.entries[0]
        report = build_candidate_report(leaderboard, entry.entry_id)

        assert report['candidate_name'] == "Jane Doe"
        assert report['rank_position'] == 1
        assert report['total_candidates'] == 2
        assert report['job_description'] == "Backend Engineer"
        assert report['match_percentage'] == round(entry.score.overall * 100, 2)
        assert report['skills'] == ["Java", "SQL", "Docker"]
        assert report['projects'] == ["Inventory tracker, built in Flask", "Chat app"]
        assert report['hackathons'] == []
        assert report['score_breakdown']['jd_match_percent'] == 75.0
        assert report['hiring_recommendation'].startswith("RECOMMENDED")

    def test_unscored_entry(self, leaderboard):
        report = build_candidate_report(leaderboard, leaderboard.entries[1].entry_id)

        assert report['match_percentage'] is None
        assert report['match_level'] is None
        assert report['hiring_recommendation'] is None

    def test_unknown_entry(self, leaderboard):
        with pytest.raises(LeaderboardNotFoundError):
            build_candidate_report(leaderboard, "missing")
