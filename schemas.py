"""
Value types for resume analysis and leaderboards

Score and profile types are frozen; each has a single validated factory.
Leaderboard entries stay mutable only for rank assignment and the
notes/favorite update path.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from errors import InvalidInputError

# overall (no JD) = 0.35 skills + 0.35 experience + 0.20 projects + 0.10 education
COMPONENT_WEIGHTS = {
    'skills': 0.35,
    'experience': 0.35,
    'projects': 0.20,
    'education': 0.10,
}
BASE_WEIGHT_WITH_JD = 0.6
JD_MATCH_WEIGHT = 0.4


def _check_unit(name: str, value: float) -> float:
    if value is None or not 0.0 <= float(value) <= 1.0:
        raise InvalidInputError(f"{name} score must be within [0, 1], got {value!r}")
    return float(value)


@dataclass(frozen=True)
class ScoreBreakdown:
    skills: float
    experience: float
    education: float
    projects: float
    overall: float
    jd_match_percent: Optional[float] = None

    @classmethod
    def create(cls, skills: float, experience: float, education: float, projects: float,
               jd_match_percent: Optional[float] = None) -> 'ScoreBreakdown':
        """Validate the components and derive ``overall`` from them"""
        skills = _check_unit('skills', skills)
        experience = _check_unit('experience', experience)
        education = _check_unit('education', education)
        projects = _check_unit('projects', projects)

        if jd_match_percent is not None and not 0.0 <= float(jd_match_percent) <= 100.0:
            raise InvalidInputError(f"JD match percent must be within [0, 100], got {jd_match_percent!r}")

        overall = compute_overall(skills, experience, education, projects, jd_match_percent)
        return cls(skills=skills, experience=experience, education=education, projects=projects,
                   overall=overall,
                   jd_match_percent=None if jd_match_percent is None else float(jd_match_percent))

    @property
    def base_overall(self) -> float:
        """Overall score ignoring the JD match component"""
        return compute_overall(self.skills, self.experience, self.education, self.projects)

    def to_dict(self) -> Dict[str, Optional[float]]:
        return {
            'skills': self.skills,
            'experience': self.experience,
            'education': self.education,
            'projects': self.projects,
            'overall': self.overall,
            'jd_match_percent': self.jd_match_percent,
        }


def compute_overall(skills: float, experience: float, education: float, projects: float,
                    jd_match_percent: Optional[float] = None) -> float:
    base = (COMPONENT_WEIGHTS['skills'] * skills
            + COMPONENT_WEIGHTS['experience'] * experience
            + COMPONENT_WEIGHTS['projects'] * projects
            + COMPONENT_WEIGHTS['education'] * education)
    base = min(1.0, base)
    if jd_match_percent is None:
        return base
    return min(1.0, BASE_WEIGHT_WITH_JD * base + JD_MATCH_WEIGHT * (jd_match_percent / 100.0))


@dataclass(frozen=True)
class CandidateProfile:
    name: str
    skills: Tuple[str, ...]
    projects: Tuple[str, ...]
    hackathons: Tuple[str, ...]
    education: Tuple[str, ...]
    experience_years: int
    experience_level: str

    @classmethod
    def create(cls, name: str, skills: Sequence[str] = (), projects: Sequence[str] = (),
               hackathons: Sequence[str] = (), education: Sequence[str] = (),
               experience_years: int = 0, experience_level: str = "Fresher") -> 'CandidateProfile':
        if experience_years is None or int(experience_years) < 0:
            raise InvalidInputError(f"experience_years must be >= 0, got {experience_years!r}")
        return cls(
            name=name or "Unknown Candidate",
            skills=tuple(skills),
            projects=tuple(projects),
            hackathons=tuple(hackathons),
            education=tuple(education),
            experience_years=int(experience_years),
            experience_level=experience_level,
        )


@dataclass(frozen=True)
class AnalysisResult:
    """Score breakdown plus profile and insights for one resume"""
    score: ScoreBreakdown
    profile: CandidateProfile
    matched_skills: Tuple[str, ...] = ()
    missing_skills: Tuple[str, ...] = ()
    suggestions: Tuple[str, ...] = ()
    strength: str = ""
    weakness: str = ""
    fit_assessment: str = "General candidate assessment"
    enriched: bool = False

    @property
    def has_jd(self) -> bool:
        return self.score.jd_match_percent is not None


@dataclass(frozen=True)
class DetailedMatch:
    """Enhanced blended match between one resume and one JD"""
    score: float
    match_percentage: int
    match_level: str
    skill_match: float
    similarity: float
    matched_skills: Tuple[str, ...]
    missing_skills: Tuple[str, ...]
    total_required: int
    category_scores: Dict[str, float]
    job_title: str
    perfect_match_applied: bool = False


@dataclass(frozen=True)
class JobDescriptionRef:
    title: str
    text: str
    source_name: Optional[str] = None


@dataclass(frozen=True)
class ResumeBlob:
    """An uploaded resume: raw bytes plus the name it was uploaded under"""
    filename: str
    content: bytes
    candidate_id: Optional[str] = None


@dataclass
class LeaderboardEntry:
    candidate_name: str
    score: Optional[ScoreBreakdown] = None
    entry_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    candidate_id: Optional[str] = None
    rank_position: Optional[int] = None
    favorite: bool = False
    notes: str = ""
    skills: str = ""
    experience: str = ""
    projects: str = ""
    hackathons: str = ""
    source_name: Optional[str] = None

    @property
    def match_score(self) -> Optional[float]:
        return None if self.score is None else self.score.overall


@dataclass
class Leaderboard:
    id: str
    owner_id: str
    job_description: Optional[JobDescriptionRef] = None
    entries: List[LeaderboardEntry] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def job_description_ref(self) -> Optional[str]:
        return None if self.job_description is None else self.job_description.title


@dataclass(frozen=True)
class SkippedResume:
    source_name: str
    reason: str


@dataclass(frozen=True)
class BatchResult:
    leaderboard: Leaderboard
    requested: int
    scored: int
    skipped: Tuple[SkippedResume, ...] = ()
    cancelled: bool = False

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    def summary(self) -> Dict[str, object]:
        return {
            'leaderboard_id': self.leaderboard.id,
            'requested': self.requested,
            'scored': self.scored,
            'skipped': self.skipped_count,
            'cancelled': self.cancelled,
        }
