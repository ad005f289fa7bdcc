"""
Candidate scoring engine
Deterministic resume scoring with and without a job description, plus the
detailed blended-match view used for single resume/JD comparisons.
"""

import logging
import re
from typing import Collection, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

import resume_heuristics as heuristics
from ats_components import NameExtractor, SimilarityScorer, SkillExtractor
from errors import InvalidInputError
from schemas import AnalysisResult, CandidateProfile, DetailedMatch, ScoreBreakdown
from skill_taxonomy import CATEGORIES

logger = logging.getLogger(__name__)

DEFAULT_MISSING_SKILLS_LIMIT = 10

# Shared by every place a percentage is shown
MATCH_LEVELS = (
    (80, "Excellent"),
    (60, "Good"),
    (40, "Fair"),
)

PERFECT_MATCH_MIN_SKILLS = 10
PERFECT_MATCH_FLOOR = 0.85
NEAR_PERFECT_SKILL_MATCH = 0.9
NEAR_PERFECT_MAX_MISSING = 2

JOB_TITLE_MARKERS = ("seeking", "looking for", "position")


def match_level(percentage: float) -> str:
    """Classify a 0-100 match percentage"""
    for threshold, label in MATCH_LEVELS:
        if percentage >= threshold:
            return label
    return "Poor"


def fit_assessment(jd_match_percent: float) -> str:
    if jd_match_percent >= 80:
        return "Excellent fit - Strong alignment with job requirements"
    elif jd_match_percent >= 60:
        return "Good fit - Most requirements met with some gaps"
    elif jd_match_percent >= 40:
        return "Moderate fit - Partially meets requirements, may need training"
    return "Limited fit - Significant gaps in required skills"


def hiring_recommendation(overall: float, jd_match_percent: Optional[float] = None) -> str:
    """Recruiter-facing verdict; the JD match wins over the overall score when present"""
    score = jd_match_percent / 100.0 if jd_match_percent else overall

    if score >= 0.8:
        return "HIGHLY RECOMMENDED - Excellent fit, proceed with interview"
    elif score >= 0.6:
        return "RECOMMENDED - Good candidate, consider for interview"
    elif score >= 0.4:
        return "CONDITIONAL - May need additional screening or training"
    return "NOT RECOMMENDED - Significant gaps in requirements"


def _skills_match(a: str, b: str) -> bool:
    a, b = a.lower(), b.lower()
    return a == b or a in b or b in a


def match_skills(resume_skills: Iterable[str], jd_skills: Iterable[str]) -> Tuple[List[str], List[str]]:
    """Containment-aware (matched, missing) lists

    A resume skill matches when it equals a JD skill or either one contains
    the other, so "Java" on a resume matches "Java 17" in a JD. Missing are
    the JD skills no resume skill matches. Both lists are sorted.
    """
    resume_skills = sorted(set(resume_skills))
    jd_skills = sorted(set(jd_skills))

    matched = [skill for skill in resume_skills
               if any(_skills_match(skill, required) for required in jd_skills)]
    missing = [required for required in jd_skills
               if not any(_skills_match(skill, required) for skill in resume_skills)]
    return matched, missing


def jd_match_percentage(matched: Sequence[str], jd_skills: Collection[str]) -> float:
    if not jd_skills:
        return 0.0
    # several resume skills can match one JD skill by containment
    return min(100.0, len(matched) / len(jd_skills) * 100.0)


def extract_job_title(jd_text: str) -> str:
    """First JD line that reads like a role headline"""
    for line in (jd_text or "").split("\n"):
        lower = line.lower()
        if any(marker in lower for marker in JOB_TITLE_MARKERS):
            return line.strip()
    return "Job Position"


class CandidateScorer:
    """Deterministic resume scorer

    All collaborators are injected; the defaults share the process-wide skill
    taxonomy. ``current_year`` pins date arithmetic for reproducible runs.
    """

    ADVANCED_TERMS = ("kubernetes", "docker", "aws", "azure", "microservices", "system design")
    FRONTEND_TERMS = ("react", "angular", "vue", "html")
    BACKEND_TERMS = ("spring", "express", "django", "flask")
    DATABASE_TERMS = ("sql", "mysql", "postgresql", "mongodb")

    PROJECT_INDICATORS = ("project", "developed", "built", "created", "implemented")
    MODERN_TECH = ("react", "node", "python", "java", "spring", "docker", "aws", "mongodb", "postgresql")

    def __init__(self, skill_extractor: Optional[SkillExtractor] = None,
                 similarity_scorer: Optional[SimilarityScorer] = None,
                 name_extractor: Optional[NameExtractor] = None,
                 missing_limit: int = DEFAULT_MISSING_SKILLS_LIMIT,
                 current_year: Optional[int] = None):
        self.skill_extractor = skill_extractor or SkillExtractor()
        self.similarity_scorer = similarity_scorer or SimilarityScorer()
        self.name_extractor = name_extractor or NameExtractor()
        self.missing_limit = missing_limit
        self.current_year = current_year

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def score(self, resume_text: str, jd_text: Optional[str] = None) -> AnalysisResult:
        """Score with the JD formula when JD text is present, without otherwise"""
        if jd_text and jd_text.strip():
            return self.score_with_jd(resume_text, jd_text)
        return self.score_without_jd(resume_text)

    def score_without_jd(self, resume_text: str) -> AnalysisResult:
        self._require_text(resume_text)

        skills = self.skill_extractor.extract(resume_text)
        profile = self.build_profile(resume_text, skills)
        breakdown = self._component_scores(resume_text, skills, profile.experience_years)

        logger.debug(f"Scored '{profile.name}' without JD: overall={breakdown.overall:.3f}")
        return self.build_result(breakdown, profile)

    def score_with_jd(self, resume_text: str, jd_text: str) -> AnalysisResult:
        self._require_text(resume_text)
        if not jd_text or not jd_text.strip():
            raise InvalidInputError("Job description text is empty")

        skills = self.skill_extractor.extract(resume_text)
        profile = self.build_profile(resume_text, skills)
        base = self._component_scores(resume_text, skills, profile.experience_years)

        jd_skills = self.skill_extractor.extract(jd_text)
        matched, missing = match_skills(skills, jd_skills)
        jd_match_percent = jd_match_percentage(matched, jd_skills)

        breakdown = ScoreBreakdown.create(
            skills=base.skills,
            experience=base.experience,
            education=base.education,
            projects=base.projects,
            jd_match_percent=jd_match_percent,
        )

        logger.debug(f"Scored '{profile.name}' with JD: matched={len(matched)}/{len(jd_skills)} "
                     f"overall={breakdown.overall:.3f}")
        return self.build_result(breakdown, profile, matched, missing)

    def detailed_match(self, resume_text: str, jd_text: str) -> DetailedMatch:
        """Blended skill/similarity score with the perfect and near-perfect floors"""
        self._require_text(resume_text)
        if not jd_text or not jd_text.strip():
            raise InvalidInputError("Job description text is empty")

        resume_skills = self.skill_extractor.extract(resume_text)
        jd_skills = self.skill_extractor.extract(jd_text)
        matched, missing = match_skills(resume_skills, jd_skills)

        skill_match = min(1.0, len(matched) / len(jd_skills)) if jd_skills else 0.0
        similarity = self.similarity_scorer.similarity(resume_text, jd_text)

        score = 0.7 * skill_match + 0.3 * similarity
        perfect = not missing and len(matched) >= PERFECT_MATCH_MIN_SKILLS
        if perfect:
            score = max(score, PERFECT_MATCH_FLOOR, 0.8 * skill_match + 0.2 * similarity)
        if skill_match >= NEAR_PERFECT_SKILL_MATCH and len(missing) <= NEAR_PERFECT_MAX_MISSING:
            score = max(score, PERFECT_MATCH_FLOOR)
        score = min(1.0, score)

        percentage = int(round(score * 100))
        return DetailedMatch(
            score=score,
            match_percentage=percentage,
            match_level=match_level(percentage),
            skill_match=skill_match,
            similarity=similarity,
            matched_skills=tuple(matched),
            missing_skills=tuple(missing),
            total_required=len(jd_skills),
            category_scores=self._category_scores(resume_skills, jd_skills),
            job_title=extract_job_title(jd_text),
            perfect_match_applied=perfect,
        )

    def build_profile(self, resume_text: str, skills: Optional[FrozenSet[str]] = None) -> CandidateProfile:
        if skills is None:
            skills = self.skill_extractor.extract(resume_text)

        years = heuristics.estimate_years(resume_text, self.current_year)
        level = heuristics.determine_experience_level(years, resume_text, self.current_year)

        return CandidateProfile.create(
            name=self.name_extractor.extract_name(resume_text),
            skills=sorted(skills),
            projects=heuristics.extract_projects(heuristics.extract_section(resume_text, "projects")),
            hackathons=heuristics.extract_hackathons(resume_text),
            education=heuristics.extract_education(heuristics.extract_section(resume_text, "education")),
            experience_years=years,
            experience_level=level,
        )

    def build_result(self, breakdown: ScoreBreakdown, profile: CandidateProfile,
                     matched: Iterable[str] = (), missing: Iterable[str] = (),
                     enriched: bool = False) -> AnalysisResult:
        """Attach insights to a score breakdown"""
        matched = list(matched)
        missing = list(missing)[:self.missing_limit]

        if breakdown.jd_match_percent is not None:
            suggestions = self._jd_suggestions(matched, missing)
            assessment = fit_assessment(breakdown.jd_match_percent)
        else:
            suggestions = self._improvement_suggestions(breakdown)
            assessment = "General candidate assessment"

        return AnalysisResult(
            score=breakdown,
            profile=profile,
            matched_skills=tuple(matched),
            missing_skills=tuple(missing),
            suggestions=tuple(suggestions),
            strength=self._strength(breakdown),
            weakness=self._weakness(breakdown),
            fit_assessment=assessment,
            enriched=enriched,
        )

    # ------------------------------------------------------------------
    # Component scores
    # ------------------------------------------------------------------

    def _component_scores(self, text: str, skills: FrozenSet[str], years: int) -> ScoreBreakdown:
        return ScoreBreakdown.create(
            skills=self._score_skills(skills),
            experience=self._score_experience(years, text),
            education=self._score_education(text),
            projects=self._score_projects(text),
        )

    def _score_skills(self, skills: FrozenSet[str]) -> float:
        """Bracketed skill count plus advanced-tech and stack-breadth bonuses"""
        count = len(skills)
        if count == 0:
            return 0.1

        if count >= 20:
            score = 0.85
        elif count >= 15:
            score = 0.75
        elif count >= 10:
            score = 0.60
        elif count >= 5:
            score = 0.45
        elif count >= 3:
            score = 0.30
        else:
            score = 0.15

        lowered = [skill.lower() for skill in skills]

        def has_any(terms):
            return any(term in skill for skill in lowered for term in terms)

        if has_any(self.ADVANCED_TERMS):
            score += 0.1

        frontend = has_any(self.FRONTEND_TERMS)
        backend = has_any(self.BACKEND_TERMS)
        database = has_any(self.DATABASE_TERMS)
        if frontend and backend and database:
            score += 0.1
        elif (frontend and backend) or (backend and database):
            score += 0.05

        return min(1.0, score)

    def _score_experience(self, years: int, text: str) -> float:
        if years <= 0:
            score = 0.0
        elif years <= 1:
            score = 0.25
        elif years <= 3:
            score = 0.50
        elif years <= 6:
            score = 0.70
        elif years <= 10:
            score = 0.85
        else:
            score = 0.95

        lower = text.lower()
        if any(word in lower for word in ("architect", "principal", "director")):
            score += 0.15
        elif any(word in lower for word in ("senior", "lead", "manager")):
            score += 0.10
        elif any(word in lower for word in ("mentoring", "team", "coordinate")):
            score += 0.05

        return min(1.0, score)

    def _score_education(self, text: str) -> float:
        lower = text.lower()

        if "phd" in lower or "doctorate" in lower:
            score = 0.9
        elif "master" in lower or "mba" in lower:
            score = 0.7
        elif "bachelor" in lower or "b.tech" in lower or "b.e" in lower:
            score = 0.6
        elif "diploma" in lower:
            score = 0.4
        else:
            score = 0.0

        if any(field in lower for field in ("computer", "software", "engineering", "technology")):
            score += 0.1

        return min(1.0, score)

    def _score_projects(self, text: str) -> float:
        section = heuristics.extract_section(text, "projects").lower()
        if not section:
            return 0.1

        mentions = sum(heuristics.count_occurrences(section, word) for word in self.PROJECT_INDICATORS)
        if mentions >= 8:
            score = 0.85
        elif mentions >= 5:
            score = 0.70
        elif mentions >= 3:
            score = 0.55
        elif mentions >= 1:
            score = 0.35
        else:
            score = 0.15

        if re.search(r'\bml\b', section) or any(
                word in section for word in ("machine learning", "ai ", "blockchain", "microservices")):
            score += 0.15
        elif any(word in section for word in ("api", "database", "authentication", "deployment")):
            score += 0.10
        elif any(word in section for word in ("responsive", "crud", "frontend", "backend")):
            score += 0.05

        tech_count = sum(1 for tech in self.MODERN_TECH if tech in section)
        if tech_count >= 5:
            score += 0.10
        elif tech_count >= 3:
            score += 0.05

        return min(1.0, score)

    # ------------------------------------------------------------------
    # JD helpers and insights
    # ------------------------------------------------------------------

    def _category_scores(self, resume_skills: FrozenSet[str], jd_skills: FrozenSet[str]) -> Dict[str, float]:
        """Per-category share of the JD's skills that the resume covers"""
        taxonomy = self.skill_extractor.taxonomy
        scores = {}
        for category in CATEGORIES:
            terms = taxonomy.terms_in(category)
            required = [skill for skill in jd_skills if skill.lower() in terms]
            if not required:
                continue
            covered = sum(1 for skill in required
                          if any(_skills_match(owned, skill) for owned in resume_skills))
            scores[category] = covered / len(required)
        return scores

    @staticmethod
    def _ranked_components(breakdown: ScoreBreakdown) -> List[Tuple[str, float]]:
        return [
            ("Technical Skills", breakdown.skills),
            ("Professional Experience", breakdown.experience),
            ("Project Portfolio", breakdown.projects),
            ("Educational Background", breakdown.education),
        ]

    def _strength(self, breakdown: ScoreBreakdown) -> str:
        # max() keeps the first of equal scores
        return max(self._ranked_components(breakdown), key=lambda item: item[1])[0]

    def _weakness(self, breakdown: ScoreBreakdown) -> str:
        return min(self._ranked_components(breakdown), key=lambda item: item[1])[0]

    @staticmethod
    def _improvement_suggestions(breakdown: ScoreBreakdown) -> List[str]:
        suggestions = []

        if breakdown.skills < 0.6:
            suggestions.append("Consider highlighting more technical skills and certifications")
        if breakdown.experience < 0.6:
            suggestions.append("Emphasize leadership roles and career progression")
        if breakdown.projects < 0.6:
            suggestions.append("Add more detailed project descriptions with technologies used")
        if breakdown.education < 0.6:
            suggestions.append("Consider pursuing relevant certifications in your field")

        return suggestions

    @staticmethod
    def _jd_suggestions(matched: List[str], missing: List[str]) -> List[str]:
        suggestions = []

        if matched:
            suggestions.append(f"Strong match with {len(matched)} required skills")

        if missing and len(missing) <= 3:
            suggestions.append("Consider gaining experience in: " + ", ".join(missing))
        elif len(missing) > 3:
            suggestions.append("Consider gaining experience in key missing skills")

        return suggestions

    @staticmethod
    def _require_text(resume_text: str):
        if resume_text is None or not resume_text.strip():
            raise InvalidInputError("Resume text is empty")
