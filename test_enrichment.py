"""
Tests for optional enrichment wrappers and the circuit breaker
"""

import time

import pytest

from ats_components import UNKNOWN_CANDIDATE
from enrichment import CircuitBreaker, EnrichedCandidateScorer, EnrichedNameExtractor
from errors import EnrichmentUnavailable
from schemas import CandidateProfile, ScoreBreakdown

RESUME = "Jane Doe\nSkills: Java, Docker\nWork experience: 3 years of experience\n"
JD = "Looking for a Java and Kubernetes engineer"


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeNameEnricher:
    def __init__(self, name="Enriched Name", available=True, error=None, delay=0.0):
        self.name = name
        self.available = available
        self.error = error
        self.delay = delay
        self.calls = 0

    def is_available(self):
        return self.available

    def extract_name(self, text):
        self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        if self.error:
            raise self.error
        return self.name


class FakeAnalysisEnricher:
    def __init__(self, payload=None, error=None):
        self.payload = payload
        self.error = error
        self.calls = 0

    def is_available(self):
        return True

    def enhance(self, resume_text, jd_text):
        self.calls += 1
        if self.error:
            raise self.error
        return self.payload


def _enriched_profile():
    return CandidateProfile.create(name="Jane Doe", skills=["Java", "Kubernetes"], experience_years=3,
                                   experience_level="Mid-Level")


class TestCircuitBreaker:
    """Tests for breaker state transitions"""

    def _fail(self):
        raise RuntimeError("service down")

    def test_opens_after_threshold(self):
        breaker = CircuitBreaker(failure_threshold=2, recovery_timeout=60, clock=FakeClock())

        for _ in range(2):
            with pytest.raises(RuntimeError):
                breaker.call(self._fail)

        assert breaker.state == CircuitBreaker.OPEN

    def test_open_rejects_without_calling(self):
        breaker = CircuitBreaker(failure_threshold=1, recovery_timeout=60, clock=FakeClock())
        with pytest.raises(RuntimeError):
            breaker.call(self._fail)

        calls = []
        with pytest.raises(EnrichmentUnavailable):
            breaker.call(lambda: calls.append(1))
        assert calls == []

    def test_half_open_success_closes(self):
        clock = FakeClock()
        breaker = CircuitBreaker(failure_threshold=1, recovery_timeout=60, clock=clock)
        with pytest.raises(RuntimeError):
            breaker.call(self._fail)

        clock.advance(61)
        assert breaker.call(lambda: "ok") == "ok"
        assert breaker.state == CircuitBreaker.CLOSED
        assert breaker.failure_count == 0

    def test_half_open_failure_reopens(self):
        clock = FakeClock()
        breaker = CircuitBreaker(failure_threshold=3, recovery_timeout=60, clock=clock)
        for _ in range(3):
            with pytest.raises(RuntimeError):
                breaker.call(self._fail)

        clock.advance(60)
        with pytest.raises(RuntimeError):
            breaker.call(self._fail)
        assert breaker.state == CircuitBreaker.OPEN

    def test_success_resets_failure_count(self):
        breaker = CircuitBreaker(failure_threshold=2, clock=FakeClock())
        with pytest.raises(RuntimeError):
            breaker.call(self._fail)
        breaker.call(lambda: None)

        assert breaker.failure_count == 0
        assert breaker.state == CircuitBreaker.CLOSED

    def test_reset(self):
        breaker = CircuitBreaker(failure_threshold=1, clock=FakeClock())
        with pytest.raises(RuntimeError):
            breaker.call(self._fail)

        breaker.reset()
        assert breaker.state == CircuitBreaker.CLOSED
        assert breaker.last_failure_time is None

    def test_allows_request(self):
        clock = FakeClock()
        breaker = CircuitBreaker(failure_threshold=1, recovery_timeout=60, clock=clock)
        assert breaker.allows_request()

        with pytest.raises(RuntimeError):
            breaker.call(self._fail)
        assert not breaker.allows_request()

        clock.advance(60)
        assert breaker.allows_request()
        assert breaker.state == CircuitBreaker.OPEN


class TestEnrichedNameExtractor:
    """Tests for enriched name extraction with deterministic fallback"""

    def test_uses_enricher(self):
        extractor = EnrichedNameExtractor(FakeNameEnricher("Jane Q Doe"))
        assert extractor.extract_name(RESUME) == "Jane Q Doe"

    def test_unknown_falls_back(self):
        extractor = EnrichedNameExtractor(FakeNameEnricher(UNKNOWN_CANDIDATE))
        assert extractor.extract_name(RESUME) == "Jane Doe"

    def test_error_falls_back(self):
        extractor = EnrichedNameExtractor(FakeNameEnricher(error=RuntimeError("boom")))
        assert extractor.extract_name(RESUME) == "Jane Doe"

    def test_unavailable_is_not_called(self):
        enricher = FakeNameEnricher(available=False)
        assert EnrichedNameExtractor(enricher).extract_name(RESUME) == "Jane Doe"
        assert enricher.calls == 0

    def test_timeout_falls_back(self):
        extractor = EnrichedNameExtractor(FakeNameEnricher(delay=0.5), timeout=0.05)
        assert extractor.extract_name(RESUME) == "Jane Doe"

    def test_open_circuit_skips_enricher(self):
        enricher = FakeNameEnricher(error=RuntimeError("boom"))
        breaker = CircuitBreaker(failure_threshold=1, clock=FakeClock())
        extractor = EnrichedNameExtractor(enricher, breaker=breaker)

        extractor.extract_name(RESUME)
        extractor.extract_name(RESUME)

        assert enricher.calls == 1
        assert extractor.breaker.state == CircuitBreaker.OPEN


class TestEnrichedCandidateScorer:
    """Tests for enriched analysis with deterministic fallback"""

    def test_enriched_without_jd(self, scorer):
        payload = (ScoreBreakdown.create(0.9, 0.8, 0.7, 0.6), _enriched_profile())
        result = EnrichedCandidateScorer(FakeAnalysisEnricher(payload), scorer=scorer).score(RESUME)

        assert result.enriched
        assert result.score.skills == 0.9
        assert result.profile.experience_level == "Mid-Level"

    def test_enriched_with_jd_computes_matches(self, scorer):
        payload = (ScoreBreakdown.create(0.9, 0.8, 0.7, 0.6, jd_match_percent=100.0), _enriched_profile())
        result = EnrichedCandidateScorer(FakeAnalysisEnricher(payload), scorer=scorer).score(RESUME, JD)

        assert result.enriched
        assert result.matched_skills == ("Java", "Kubernetes")
        assert result.missing_skills == ()

    def test_overall_derived_from_enriched_components(self, scorer):
        forged = ScoreBreakdown(skills=0.1, experience=0.1, education=0.1, projects=0.1, overall=0.99)
        result = EnrichedCandidateScorer(FakeAnalysisEnricher((forged, _enriched_profile())),
                                         scorer=scorer).score(RESUME)

        assert result.enriched
        assert result.score.overall == pytest.approx(0.1)
        assert result.score.overall == pytest.approx(result.score.base_overall)

    def test_jd_match_percent_computed_locally(self, scorer):
        reported = ScoreBreakdown(skills=0.9, experience=0.8, education=0.7, projects=0.6,
                                  overall=0.05, jd_match_percent=5.0)
        result = EnrichedCandidateScorer(FakeAnalysisEnricher((reported, _enriched_profile())),
                                         scorer=scorer).score(RESUME, JD)

        assert result.score.jd_match_percent == 100.0
        assert result.score.overall == pytest.approx(0.6 * result.score.base_overall + 0.4)

    def test_out_of_range_components_fall_back(self, scorer):
        invalid = ScoreBreakdown(skills=1.5, experience=0.8, education=0.7, projects=0.6, overall=1.0)
        result = EnrichedCandidateScorer(FakeAnalysisEnricher((invalid, _enriched_profile())),
                                         scorer=scorer).score(RESUME)

        assert not result.enriched
        assert result == scorer.score(RESUME)

    def test_jd_ignored_by_enricher_falls_back(self, scorer):
        payload = (ScoreBreakdown.create(0.9, 0.8, 0.7, 0.6), _enriched_profile())
        result = EnrichedCandidateScorer(FakeAnalysisEnricher(payload), scorer=scorer).score(RESUME, JD)

        assert not result.enriched
        assert result == scorer.score(RESUME, JD)

    def test_bad_payload_falls_back(self, scorer):
        result = EnrichedCandidateScorer(FakeAnalysisEnricher(("junk", None)), scorer=scorer).score(RESUME)
        assert result == scorer.score(RESUME)

    def test_error_falls_back(self, scorer):
        enricher = FakeAnalysisEnricher(error=RuntimeError("quota exceeded"))
        wrapped = EnrichedCandidateScorer(enricher, scorer=scorer)

        assert wrapped.score_without_jd(RESUME) == scorer.score_without_jd(RESUME)
        assert wrapped.score_with_jd(RESUME, JD) == scorer.score_with_jd(RESUME, JD)

    def test_delegates_other_methods(self, scorer):
        wrapped = EnrichedCandidateScorer(FakeAnalysisEnricher(error=RuntimeError()), scorer=scorer)

        assert wrapped.missing_limit == scorer.missing_limit
        assert wrapped.detailed_match(RESUME, JD) == scorer.detailed_match(RESUME, JD)
