import os
import logging
from typing import Iterable, Optional

from schemas import LeaderboardEntry

logger = logging.getLogger(__name__)

CSV_HEADER = "Candidate Name,Match Score,Skills,Experience,Projects,Hackathons"


def _quoted(value: Optional[str]) -> str:
    """Double-quote a free-text field; embedded quotes are dropped, not escaped"""
    return '"' + (value or "").replace('"', '') + '"'


def _score_cell(entry: LeaderboardEntry) -> str:
    score = entry.match_score
    return "N/A" if score is None else "%.2f" % (score * 100)


def leaderboard_to_csv(entries: Iterable[LeaderboardEntry]) -> str:
    """Render ranked entries as CSV text, one row per entry in the given order"""
    lines = [CSV_HEADER]
    for entry in entries:
        lines.append(",".join([
            _quoted(entry.candidate_name),
            _score_cell(entry),
            _quoted(entry.skills),
            _quoted(entry.experience),
            _quoted(entry.projects),
            _quoted(entry.hackathons),
        ]))
    return "\n".join(lines) + "\n"


def export_leaderboard_csv(entries: Iterable[LeaderboardEntry], out_path: str) -> str:
    """Write the leaderboard CSV to ``out_path`` and return the path.

    - entries: ranked leaderboard entries (usually the top N)
    - out_path: CSV file to create; parent directories are created as needed
    """
    out_dir = os.path.dirname(out_path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)

    # Write with BOM for Excel-friendly utf-8
    with open(out_path, 'w', newline='', encoding='utf-8-sig') as csvfile:
        csvfile.write(leaderboard_to_csv(entries))

    logger.info(f"Exported leaderboard CSV to {out_path}")
    return out_path
