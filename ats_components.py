"""
ATS Components - text-to-signal extraction used by the candidate scorer
Contains: SkillExtractor, SimilarityScorer, NameExtractor
"""

import logging
import re
from typing import FrozenSet, List, Optional, Set

from skill_taxonomy import SkillTaxonomy, default_taxonomy

logger = logging.getLogger(__name__)

UNKNOWN_CANDIDATE = "Unknown Candidate"

# Function words plus generic resume filler
STOP_WORDS = frozenset({
    "the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by",
    "is", "are", "was", "were", "be", "been", "being", "have", "has", "had",
    "do", "does", "did", "will", "would", "could", "should", "may", "might",
    "this", "that", "these", "those", "i", "you", "he", "she", "it", "we", "they",
    "me", "him", "her", "us", "them", "my", "your", "his", "its", "our", "their",
    "experience", "skills", "knowledge", "ability", "expertise", "proficiency",
    "strong", "excellent", "good", "great", "high", "low", "basic", "advanced",
    "required", "preferred", "necessary", "essential", "important", "key", "work",
    "working", "worked", "project", "projects", "developed", "development", "using",
    "used", "including", "include", "such", "as", "well", "also", "various", "multiple",
})


def format_skill_name(skill: str) -> str:
    """Capitalize the first letter of each word, lowercase the rest"""
    return " ".join(word[:1].upper() + word[1:].lower() for word in skill.split())


class SkillExtractor:
    """Lexical skill extraction against an injected taxonomy"""

    VERSION_PATTERN = re.compile(r'\b(\w+)\s+\d+(?:\.\d+)*\b')
    NON_LETTERS = re.compile(r'[^a-zA-Z]')

    def __init__(self, taxonomy: Optional[SkillTaxonomy] = None):
        self.taxonomy = taxonomy or default_taxonomy()

    def extract(self, text: str) -> FrozenSet[str]:
        """Return the title-cased taxonomy skills mentioned in the text"""
        if not text or not text.strip():
            return frozenset()

        normalized = text.lower()
        found: Set[str] = set()

        found |= self._multi_word(normalized)
        found |= self._single_word(normalized)
        found |= self._versioned(normalized)
        found |= self._abbreviated(normalized)

        skills = frozenset(skill for skill in found if len(skill) >= 2)
        logger.debug(f"Skill extraction found {len(skills)} skills")
        return skills

    def extract_sorted(self, text: str) -> List[str]:
        """Extracted skills in a stable display order"""
        return sorted(self.extract(text))

    def _multi_word(self, text: str) -> Set[str]:
        return {format_skill_name(term) for term in self.taxonomy.multi_word_terms if term in text}

    def _single_word(self, text: str) -> Set[str]:
        skills = set()
        for word in text.split():
            clean = self.NON_LETTERS.sub('', word)
            if clean and clean in self.taxonomy:
                skills.add(format_skill_name(clean))
        return skills

    def _versioned(self, text: str) -> Set[str]:
        # "Java 8", "Python 3.9", "Angular 12": keep the name, drop the version
        skills = set()
        for match in self.VERSION_PATTERN.finditer(text):
            base = match.group(1).lower()
            if base in self.taxonomy:
                skills.add(format_skill_name(base))
        return skills

    def _abbreviated(self, text: str) -> Set[str]:
        return {
            format_skill_name(target)
            for alias, target in self.taxonomy.abbreviations.items()
            if alias in text
        }


class SimilarityScorer:
    """Token-set Jaccard similarity over content words"""

    def __init__(self, stop_words: FrozenSet[str] = STOP_WORDS):
        self.stop_words = stop_words

    def _content_words(self, text: str) -> Set[str]:
        return {
            word for word in text.lower().split()
            if len(word) > 2 and word not in self.stop_words
        }

    def similarity(self, text1: Optional[str], text2: Optional[str]) -> float:
        """Jaccard similarity of the two filtered token sets, in [0, 1]"""
        if not text1 or not text2:
            return 0.0

        words1 = self._content_words(text1)
        words2 = self._content_words(text2)

        union = words1 | words2
        if not union:
            return 0.0
        return len(words1 & words2) / len(union)


class NameExtractor:
    """Best-effort candidate name detection, never fails"""

    HEADER_TOKENS = re.compile(r'(?i)\b(?:curriculum vitae|resume|cv)\b')
    DECORATION = re.compile(r'^[\s\-_=|*•]+|[\s\-_=|*•]+$')
    NAME_WORD = re.compile(r'[A-Z][a-z]{1,15}')
    EXCLUDED_WORDS = ("resume", "curriculum", "vitae", "profile", "contact", "address",
                      "phone", "email", "objective", "summary")

    NAME_PATTERNS = (
        re.compile(r'(?i:name)[:\s]+([A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+){1,3})'),
        re.compile(r'(?i:candidate)[:\s]+([A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+){1,3})'),
        re.compile(r'(?i:applicant)[:\s]+([A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+){1,3})'),
        # A capitalized name alone on its own line
        re.compile(r'^([A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+){1,3})[ \t]*$', re.MULTILINE),
    )
    EMAIL_LOCAL_PART = re.compile(r'([a-z]+(?:\.[a-z]+)*)@[a-z0-9-]+(?:\.[a-z0-9-]+)*\.[a-z]+', re.IGNORECASE)

    def extract_name(self, text: str) -> str:
        """Try layout, labelled fields, then e-mail; fall back to Unknown Candidate"""
        if not text:
            return UNKNOWN_CANDIDATE

        name = (self._from_header_lines(text)
                or self._from_patterns(text)
                or self._from_email(text))
        return name or UNKNOWN_CANDIDATE

    def is_valid_name(self, name: Optional[str]) -> bool:
        if not name or len(name) < 3 or len(name) > 50:
            return False

        words = name.split()
        if len(words) < 2 or len(words) > 4:
            return False
        if not all(self.NAME_WORD.fullmatch(word) for word in words):
            return False

        lower = name.lower()
        return not any(word in lower for word in self.EXCLUDED_WORDS)

    def _from_header_lines(self, text: str) -> Optional[str]:
        for line in text.split('\n')[:5]:
            line = line.strip()
            if not line or len(line) >= 60:
                continue
            line = self.HEADER_TOKENS.sub('', line).strip()
            line = self.DECORATION.sub('', line)
            if self.is_valid_name(line):
                return line
        return None

    def _from_patterns(self, text: str) -> Optional[str]:
        for pattern in self.NAME_PATTERNS:
            match = pattern.search(text)
            if match:
                name = match.group(1).strip()
                if self.is_valid_name(name):
                    return name
        return None

    def _from_email(self, text: str) -> Optional[str]:
        match = self.EMAIL_LOCAL_PART.search(text)
        if not match:
            return None
        parts = match.group(1).split('.')
        if len(parts) >= 2:
            return f"{parts[0].capitalize()} {parts[1].capitalize()}"
        return None
