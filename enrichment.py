"""
Optional LLM enrichment

Enrichers are capability-checked collaborators wrapped around the
deterministic extractors. The enriched path is always tried first and every
failure (disabled, refused, timed out, circuit open) degrades to the
deterministic result without surfacing an error.
"""

import logging
import threading
import time
from typing import Callable, Optional, Protocol, Tuple

from ats_components import UNKNOWN_CANDIDATE, NameExtractor
from ats_engine import CandidateScorer, jd_match_percentage, match_skills
from errors import EnrichmentUnavailable, InvalidInputError
from schemas import AnalysisResult, CandidateProfile, ScoreBreakdown
from timeouts import call_with_timeout

logger = logging.getLogger(__name__)


class NameEnricher(Protocol):
    def is_available(self) -> bool: ...

    def extract_name(self, text: str) -> str: ...


class AnalysisEnricher(Protocol):
    def is_available(self) -> bool: ...

    def enhance(self, resume_text: str, jd_text: Optional[str]) -> Tuple[ScoreBreakdown, CandidateProfile]: ...


class CircuitBreaker:
    """
    Circuit breaker in front of an unreliable enricher.

    States:
    - CLOSED: calls pass through
    - OPEN: too many consecutive failures, calls are rejected immediately
    - HALF_OPEN: recovery timeout elapsed, one trial call is let through
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(self, failure_threshold: int = 3, recovery_timeout: float = 60,
                 clock: Callable[[], float] = time.monotonic):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._clock = clock

        self.failure_count = 0
        self.last_failure_time: Optional[float] = None
        self.state = self.CLOSED
        self._lock = threading.Lock()

    def call(self, func: Callable, *args, **kwargs):
        """
        Execute function with circuit breaker protection.

        Raises:
            EnrichmentUnavailable: If the circuit is OPEN
            Underlying exception: If the call fails in CLOSED/HALF_OPEN state
        """
        with self._lock:
            if self.state == self.OPEN:
                if self._should_attempt_reset():
                    self.state = self.HALF_OPEN
                else:
                    raise EnrichmentUnavailable(
                        f"Circuit breaker is OPEN. Retry after {self._time_until_reset():.0f}s")

        try:
            result = func(*args, **kwargs)
        except Exception:
            self._on_failure()
            raise

        self._on_success()
        return result

    def allows_request(self) -> bool:
        """False while OPEN and the recovery timeout has not elapsed"""
        with self._lock:
            return self.state != self.OPEN or self._should_attempt_reset()

    def _should_attempt_reset(self) -> bool:
        if self.last_failure_time is None:
            return True
        return self._clock() - self.last_failure_time >= self.recovery_timeout

    def _time_until_reset(self) -> float:
        if self.last_failure_time is None:
            return 0.0
        return max(0.0, self.recovery_timeout - (self._clock() - self.last_failure_time))

    def _on_success(self):
        with self._lock:
            self.failure_count = 0
            self.state = self.CLOSED

    def _on_failure(self):
        with self._lock:
            self.failure_count += 1
            self.last_failure_time = self._clock()

            if self.state == self.HALF_OPEN or self.failure_count >= self.failure_threshold:
                if self.state != self.OPEN:
                    logger.warning(f"Enrichment circuit opened after {self.failure_count} failures")
                self.state = self.OPEN

    def reset(self):
        with self._lock:
            self.failure_count = 0
            self.last_failure_time = None
            self.state = self.CLOSED


class _EnrichedCall:
    """Availability check, circuit breaker and timeout around one enricher"""

    def __init__(self, enricher, timeout: Optional[float], breaker: Optional[CircuitBreaker]):
        self.enricher = enricher
        self.timeout = timeout
        self.breaker = breaker or CircuitBreaker()

    def __call__(self, method: str, *args):
        try:
            available = self.enricher.is_available()
        except Exception as e:
            raise EnrichmentUnavailable(f"availability check failed: {e}") from e
        if not available:
            raise EnrichmentUnavailable("enricher reports unavailable")

        func = getattr(self.enricher, method)
        return self.breaker.call(call_with_timeout, func, self.timeout, *args,
                                 error_class=EnrichmentUnavailable)

    def ready(self) -> bool:
        try:
            available = self.enricher.is_available()
        except Exception as e:
            logger.debug(f"Enricher availability check failed: {e}")
            return False
        return bool(available) and self.breaker.allows_request()


class EnrichedNameExtractor:
    """Ask the name enricher first, fall through to the deterministic extractor"""

    def __init__(self, enricher: NameEnricher, fallback: Optional[NameExtractor] = None,
                 timeout: Optional[float] = 20, breaker: Optional[CircuitBreaker] = None):
        self.fallback = fallback or NameExtractor()
        self._call = _EnrichedCall(enricher, timeout, breaker)

    @property
    def breaker(self) -> CircuitBreaker:
        return self._call.breaker

    def extract_name(self, text: str) -> str:
        try:
            name = self._call('extract_name', text)
            if name and name.strip() and name.strip() != UNKNOWN_CANDIDATE:
                return name.strip()
        except Exception as e:
            logger.debug(f"Name enrichment skipped: {e}")

        return self.fallback.extract_name(text)

    def is_valid_name(self, name: Optional[str]) -> bool:
        return self.fallback.is_valid_name(name)


class EnrichedCandidateScorer:
    """Ask the analysis enricher first, fall through to the deterministic scorer

    Everything other than ``score``/``score_with_jd``/``score_without_jd`` is
    delegated to the wrapped scorer unchanged.
    """

    def __init__(self, enricher: AnalysisEnricher, scorer: Optional[CandidateScorer] = None,
                 timeout: Optional[float] = 20, breaker: Optional[CircuitBreaker] = None):
        self.scorer = scorer or CandidateScorer()
        self._call = _EnrichedCall(enricher, timeout, breaker)

    @property
    def breaker(self) -> CircuitBreaker:
        return self._call.breaker

    def can_enrich(self) -> bool:
        """Whether the next score call would consult the enricher"""
        return self._call.ready()

    def __getattr__(self, name):
        if name == 'scorer':
            raise AttributeError(name)
        return getattr(self.scorer, name)

    def score(self, resume_text: str, jd_text: Optional[str] = None) -> AnalysisResult:
        if not (jd_text and jd_text.strip()):
            jd_text = None

        result = self._enhanced(resume_text, jd_text)
        if result is not None:
            return result
        return self.scorer.score(resume_text, jd_text)

    def score_with_jd(self, resume_text: str, jd_text: str) -> AnalysisResult:
        return self._enhanced(resume_text, jd_text) or self.scorer.score_with_jd(resume_text, jd_text)

    def score_without_jd(self, resume_text: str) -> AnalysisResult:
        return self._enhanced(resume_text, None) or self.scorer.score_without_jd(resume_text)

    def _enhanced(self, resume_text: str, jd_text: Optional[str]) -> Optional[AnalysisResult]:
        try:
            breakdown, profile = self._call('enhance', resume_text, jd_text)
        except Exception as e:
            logger.debug(f"Analysis enrichment skipped: {e}")
            return None

        if not isinstance(breakdown, ScoreBreakdown) or not isinstance(profile, CandidateProfile):
            logger.warning("Analysis enricher returned an unexpected payload, using deterministic scoring")
            return None
        if (jd_text is None) != (breakdown.jd_match_percent is None):
            logger.warning("Analysis enricher ignored the job description, using deterministic scoring")
            return None

        matched, missing, jd_percent = (), (), None
        if jd_text is not None:
            jd_skills = self.scorer.skill_extractor.extract(jd_text)
            matched, missing = match_skills(profile.skills, jd_skills)
            jd_percent = jd_match_percentage(matched, jd_skills)

        # only the components are taken from the enricher; overall is always re-derived
        try:
            breakdown = ScoreBreakdown.create(
                skills=breakdown.skills,
                experience=breakdown.experience,
                education=breakdown.education,
                projects=breakdown.projects,
                jd_match_percent=jd_percent,
            )
        except InvalidInputError as e:
            logger.warning(f"Analysis enricher returned invalid scores, using deterministic scoring: {e}")
            return None

        return self.scorer.build_result(breakdown, profile, matched, missing, enriched=True)
