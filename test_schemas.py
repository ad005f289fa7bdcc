"""
Tests for score and profile value types
"""

import pytest

from conftest import make_entry
from errors import InvalidInputError
from schemas import BatchResult, CandidateProfile, Leaderboard, ScoreBreakdown, SkippedResume


class TestScoreBreakdown:
    """Tests for the validated score factory"""

    def test_overall_without_jd(self):
        breakdown = ScoreBreakdown.create(skills=0.8, experience=0.6, education=0.5, projects=0.4)
        assert breakdown.overall == pytest.approx(0.35 * 0.8 + 0.35 * 0.6 + 0.2 * 0.4 + 0.1 * 0.5)
        assert breakdown.jd_match_percent is None

    def test_overall_with_jd(self):
        breakdown = ScoreBreakdown.create(skills=0.8, experience=0.6, education=0.5, projects=0.4,
                                          jd_match_percent=50.0)
        assert breakdown.overall == pytest.approx(0.6 * breakdown.base_overall + 0.4 * 0.5)

    @pytest.mark.parametrize("kwargs", [
        {'skills': 1.2, 'experience': 0.5, 'education': 0.5, 'projects': 0.5},
        {'skills': 0.5, 'experience': -0.1, 'education': 0.5, 'projects': 0.5},
        {'skills': 0.5, 'experience': 0.5, 'education': None, 'projects': 0.5},
        {'skills': 0.5, 'experience': 0.5, 'education': 0.5, 'projects': 0.5, 'jd_match_percent': 101},
    ])
    def test_out_of_range_rejected(self, kwargs):
        with pytest.raises(InvalidInputError):
            ScoreBreakdown.create(**kwargs)

    def test_frozen(self):
        breakdown = ScoreBreakdown.create(0.5, 0.5, 0.5, 0.5)
        with pytest.raises(AttributeError):
            breakdown.skills = 0.9


class TestCandidateProfile:
    """Tests for the profile factory"""

    def test_defaults(self):
        profile = CandidateProfile.create(name="", skills=["Java"])

        assert profile.name == "Unknown Candidate"
        assert profile.skills == ("Java",)
        assert profile.experience_level == "Fresher"

    def test_negative_years_rejected(self):
        with pytest.raises(InvalidInputError):
            CandidateProfile.create(name="Jane Doe", experience_years=-1)


class TestBatchResult:
    """Tests for the batch summary"""

    def test_summary(self):
        board = Leaderboard(id="lb-1", owner_id="r", entries=[make_entry("A", 0.5)])
        result = BatchResult(leaderboard=board, requested=2, scored=1,
                             skipped=(SkippedResume("b.pdf", "text extraction failed"),))

        assert result.skipped_count == 1
        assert result.summary() == {
            'leaderboard_id': "lb-1", 'requested': 2, 'scored': 1, 'skipped': 1, 'cancelled': False,
        }
