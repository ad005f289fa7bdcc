"""
Leaderboard ranking and per-candidate report projection
"""

import logging
from typing import Dict, List, Optional, Sequence

from ats_engine import hiring_recommendation, match_level
from errors import InvalidInputError, LeaderboardNotFoundError
from schemas import Leaderboard, LeaderboardEntry

logger = logging.getLogger(__name__)


class LeaderboardRanker:
    """Score-ordered ranking; unscored entries always come last"""

    @staticmethod
    def _sort_key(entry: LeaderboardEntry):
        score = entry.match_score
        return (score is None, -(score or 0.0))

    def rank(self, entries: List[LeaderboardEntry]) -> List[LeaderboardEntry]:
        """Sort entries in place and assign 1-based rank positions

        ``list.sort`` is stable, so equal scores and unscored entries keep
        their input order.
        """
        entries.sort(key=self._sort_key)
        for index, entry in enumerate(entries):
            entry.rank_position = index + 1

        logger.debug(f"Ranked {len(entries)} leaderboard entries")
        return entries

    def top_n(self, entries: Sequence[LeaderboardEntry], n: int) -> List[LeaderboardEntry]:
        """First ``n`` entries of an already ranked list"""
        if n is None or n < 0:
            raise InvalidInputError(f"n must be a non-negative integer, got {n!r}")
        return list(entries[:n])


def _split(value: str, separator: str = ",") -> List[str]:
    return [item.strip() for item in (value or "").split(separator) if item.strip()]


def build_candidate_report(leaderboard: Leaderboard, entry_id: str) -> Dict[str, object]:
    """Single-entry summary consumed by export/report layers"""
    entry = next((e for e in leaderboard.entries if e.entry_id == entry_id), None)
    if entry is None:
        raise LeaderboardNotFoundError(f"Entry {entry_id} not found in leaderboard {leaderboard.id}")

    score = entry.score
    percentage: Optional[float] = None if score is None else round(score.overall * 100, 2)

    report = {
        'entry_id': entry.entry_id,
        'candidate_name': entry.candidate_name,
        'rank_position': entry.rank_position,
        'total_candidates': len(leaderboard.entries),
        'job_description': leaderboard.job_description_ref,
        'match_percentage': percentage,
        'match_level': None if percentage is None else match_level(percentage),
        'skills': _split(entry.skills),
        'experience': entry.experience,
        'projects': _split(entry.projects, ";"),
        'hackathons': _split(entry.hackathons, ";"),
        'favorite': entry.favorite,
        'notes': entry.notes,
        'score_breakdown': None if score is None else score.to_dict(),
        'hiring_recommendation': None if score is None else hiring_recommendation(
            score.overall, score.jd_match_percent),
    }
    return report
