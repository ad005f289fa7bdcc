"""
Resume text heuristics
Small pure functions composed by the candidate scorer: student detection,
conservative years-of-experience estimation, section splitting and profile
list extraction.
"""

import re
from datetime import datetime
from typing import List, Optional

MAX_YEARS_PER_JOB = 8
MAX_EXPLICIT_YEARS = 50

STUDENT_MARKERS = (
    "fresher", "recent graduate", "seeking first job", "no experience", "entry level",
    "pursuing", "currently studying", "student", "final year", "expected graduation",
    "graduation expected",
)

LEADERSHIP_INDICATORS = (
    "lead", "manager", "director", "supervisor", "coordinator", "head", "chief", "team lead",
    "project manager", "scrum master", "product manager", "tech lead", "engineering manager",
)

SENIOR_RESPONSIBILITIES = (
    "mentoring", "mentored", "leading", "managing", "architecture", "strategic", "roadmap",
    "stakeholder", "cross-functional", "team building", "hiring", "performance review",
    "budget", "planning", "strategy", "vision", "scaling", "optimization",
)

SENIOR_INDICATORS = (
    "senior", "lead", "principal", "architect", "manager", "director", "head", "chief", "vp",
    "vice president",
)

JOB_POSITION_INDICATORS = (
    "software engineer", "developer", "analyst", "manager", "consultant",
    "associate", "specialist", "coordinator", "administrator", "architect",
)

DATE_RANGE = re.compile(r'(20\d{2})\s*[-–]\s*(20\d{2})')
EDUCATION_DATE_RANGE = re.compile(
    r'(bachelor|master|mca|bca|degree).*?(20\d{2})\s*[-–]\s*(20\d{2})', re.IGNORECASE)
EXPLICIT_YEARS = re.compile(r'(\d+)\s*\+?\s*years?.*?(experience|work)', re.IGNORECASE)
JOB_DATE_RANGE = re.compile(
    r'(software engineer|software developer|web developer|java developer|python developer|'
    r'full stack developer|backend developer|frontend developer|analyst|consultant|engineer)'
    r'.*?(20\d{2})\s*[-–]\s*(20\d{2}|present|current)',
    re.IGNORECASE)


def _year(current_year: Optional[int]) -> int:
    return current_year if current_year is not None else datetime.now().year


def has_future_date_range(text: str, current_year: Optional[int] = None) -> bool:
    """True when a year range ends after the current year (an unfinished course)"""
    year = _year(current_year)
    return any(int(end) > year for _, end in DATE_RANGE.findall(text))


def detect_student(text: str, current_year: Optional[int] = None) -> bool:
    """Current student or fresher: marker words or a range ending in the future"""
    lower = text.lower()
    if any(marker in lower for marker in STUDENT_MARKERS):
        return True
    return has_future_date_range(text, current_year)


def detect_work_experience(text: str) -> bool:
    """Strict employment detection; project work alone does not count"""
    lower = text.lower()

    strong_keywords = (
        "work experience", "professional experience", "employment history", "employed at",
        "worked at", "working at", "full-time", "part-time", "permanent", "contract",
    )
    job_titles = (
        "software engineer", "software developer", "web developer", "full stack developer",
        "backend developer", "frontend developer", "java developer", "python developer",
    )
    company_context = (" at ", "company", "technologies", "solutions", "systems", "inc", "ltd", "corp")
    salary = ("salary", "ctc", "compensation", "paid")
    responsibilities = ("responsibilities", "managed", "led team", "reporting to", "supervised")

    if any(keyword in lower for keyword in strong_keywords):
        return True
    if any(title in lower for title in job_titles) and any(ctx in lower for ctx in company_context):
        return True
    if any(word in lower for word in salary):
        return True
    return any(word in lower for word in responsibilities)


def detect_internship_only(text: str) -> bool:
    lower = text.lower()
    return ("intern" in lower
            and "full-time" not in lower
            and "permanent" not in lower
            and "employee" not in lower)


def detect_professional_projects(text: str) -> bool:
    lower = text.lower()
    return "project" in lower and any(
        verb in lower for verb in ("developed", "built", "created", "implemented"))


def count_job_positions(text: str) -> int:
    lower = text.lower()
    return sum(1 for indicator in JOB_POSITION_INDICATORS if indicator in lower)


def estimate_years_from_dates(text: str, current_year: Optional[int] = None) -> int:
    """Sum job-title-bound date ranges, each capped at MAX_YEARS_PER_JOB"""
    lower = text.lower()

    # Education-only resumes never contribute dates
    if (any(word in lower for word in ("mca", "bachelor", "master"))
            and not any(word in lower for word in ("work", "employ", "job"))):
        return 0

    year = _year(current_year)
    total = 0
    for _, start, end in JOB_DATE_RANGE.findall(text):
        end_year = year if end.lower() in ("present", "current") else int(end)
        duration = max(0, end_year - int(start))
        total += min(duration, MAX_YEARS_PER_JOB)
    return total


def estimate_years(text: str, current_year: Optional[int] = None) -> int:
    """Conservative years of professional experience

    Returns 0 for current students and for resumes whose only dates are
    education ranges. Otherwise uses explicit "N years experience" phrasing,
    falling back to employment-bound date ranges.
    """
    if not text:
        return 0

    if detect_student(text, current_year):
        return 0

    has_work = detect_work_experience(text)
    lower = text.lower()

    # Degree mentioned with no employment vocabulary at all
    if (("mca" in lower or "bachelor" in lower)
            and "work" not in lower and "employ" not in lower):
        return 0

    if EDUCATION_DATE_RANGE.search(text) and not has_work:
        return 0

    max_years = 0
    for number, _ in EXPLICIT_YEARS.findall(text):
        years = int(number)
        if years <= MAX_EXPLICIT_YEARS:
            max_years = max(max_years, years)

    if max_years == 0 and has_work:
        max_years = estimate_years_from_dates(text, current_year)

    return max_years


def determine_experience_level(total_years: int, text: str, current_year: Optional[int] = None) -> str:
    """Classify the candidate into a student/fresher/junior/mid/senior band"""
    lower = text.lower()

    has_work = detect_work_experience(lower)
    internship_only = detect_internship_only(lower)
    is_student = detect_student(lower, current_year)
    professional_projects = detect_professional_projects(lower)
    positions = count_job_positions(lower)

    leadership_role = any(indicator in lower for indicator in LEADERSHIP_INDICATORS)
    senior_responsibilities = any(item in lower for item in SENIOR_RESPONSIBILITIES)
    senior_title = any(indicator in lower for indicator in SENIOR_INDICATORS)

    if is_student and not has_work and total_years == 0:
        return "Student (Internship Experience)" if internship_only else "Student"

    if not has_work and not internship_only and total_years == 0:
        return "Fresher (Project Experience)" if professional_projects else "Fresher"

    if total_years >= 8 or (total_years >= 5 and (senior_title or leadership_role or senior_responsibilities)):
        if total_years >= 12 or leadership_role:
            return "Senior (Leadership Level)"
        return "Senior"

    if total_years >= 3 or (total_years >= 2 and positions >= 2):
        return "Mid-Level"

    if total_years >= 1 or (has_work and not internship_only):
        return "Junior"

    if internship_only or has_work:
        return "Entry Level"

    return "Fresher"


def is_student_level(level: str) -> bool:
    return level.startswith("Student") or level.startswith("Fresher")


def extract_section(text: str, section_name: str, max_length: int = 500) -> str:
    """Text from the first mention of a section name to the next blank line

    Falls back to ``max_length`` characters when no blank line follows.
    """
    if not text:
        return ""

    lower = text.lower()
    start = lower.find(section_name.lower())
    if start == -1:
        return ""

    end = lower.find("\n\n", start)
    if end == -1:
        end = min(start + max_length, len(text))
    return text[start:end]


def count_occurrences(text: str, word: str) -> int:
    return text.count(word) if word else 0


def extract_projects(projects_section: str, limit: int = 8) -> List[str]:
    """Project description lines of a plausible length"""
    if not projects_section:
        return []
    lines = (part.strip() for part in re.split(r'[\n•-]', projects_section))
    return [line for line in lines if 20 < len(line) < 200][:limit]


def extract_hackathons(text: str, limit: int = 5) -> List[str]:
    if not text or "hackathon" not in text.lower():
        return []

    hackathons = []
    for line in text.split("\n"):
        if "hackathon" in line.lower() and 10 < len(line) < 150:
            hackathons.append(line.strip())
            if len(hackathons) >= limit:
                break
    return hackathons


def extract_education(education_section: str) -> List[str]:
    """Normalized degree names found in the education section"""
    if not education_section:
        return []

    lower = education_section.lower()
    courses = []

    def add(course):
        if course not in courses:
            courses.append(course)

    if "mca" in lower:
        add("MCA - Master of Computer Applications")
    if "bca" in lower:
        add("BCA - Bachelor of Computer Applications")
    if "b.tech" in lower or "btech" in lower:
        add("B.Tech Computer Science" if "computer science" in lower else "B.Tech Engineering")
    if "bachelor" in lower and "computer" in lower:
        add("Bachelor of Computer Science")
    if "master" in lower and "computer" in lower:
        add("Master of Computer Science")
    if "mba" in lower:
        add("MBA - Master of Business Administration")

    return courses[:3] if courses else ["Degree"]
