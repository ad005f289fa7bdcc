"""
Resume ranking service
Entry point for callers (REST/CLI layers): single resume scoring, batch
leaderboard builds, top-N queries, CSV export and candidate reports.
"""

import logging
import threading
from typing import List, Optional, Sequence

from ats_components import NameExtractor, SimilarityScorer, SkillExtractor
from ats_engine import CandidateScorer
from batch_processor import BatchProcessor
from cache_utils import AnalysisCache, RedisCache
from config import get_config
from enrichment import (AnalysisEnricher, CircuitBreaker, EnrichedCandidateScorer, EnrichedNameExtractor,
                        NameEnricher)
from errors import InvalidInputError
from export_csv import leaderboard_to_csv
from leaderboard import LeaderboardRanker, build_candidate_report
from leaderboard_store import LeaderboardStore, SqlAlchemyLeaderboardStore
from schemas import AnalysisResult, BatchResult, DetailedMatch, Leaderboard, LeaderboardEntry, ResumeBlob
from skill_taxonomy import SkillTaxonomy, default_taxonomy
from text_extraction import TimedTextExtractor

logger = logging.getLogger(__name__)


class RankingService:
    """Facade over scorer, batch processor and leaderboard store"""

    def __init__(self, scorer, store: LeaderboardStore, batch_processor: BatchProcessor,
                 analysis_cache: Optional[AnalysisCache] = None):
        self.scorer = scorer
        self.store = store
        self.batch_processor = batch_processor
        self.analysis_cache = analysis_cache

    def score_resume(self, resume_text: str, jd_text: Optional[str] = None) -> AnalysisResult:
        """Score one resume, against a JD when one is given"""
        if self.analysis_cache is not None:
            return self.analysis_cache.get_or_score(self.scorer, resume_text, jd_text)
        return self.scorer.score(resume_text, jd_text)

    def detailed_match(self, resume_text: str, jd_text: str) -> DetailedMatch:
        return self.scorer.detailed_match(resume_text, jd_text)

    def run_batch(self, resumes: Sequence[ResumeBlob], jd_blob: Optional[ResumeBlob] = None,
                  jd_text: Optional[str] = None, jd_title: Optional[str] = None,
                  recruiter_id: str = "", cancel_event: Optional[threading.Event] = None) -> BatchResult:
        return self.batch_processor.run_batch(resumes, jd_blob=jd_blob, jd_text=jd_text, jd_title=jd_title,
                                              recruiter_id=recruiter_id, cancel_event=cancel_event)

    def get_leaderboard(self, leaderboard_id: str) -> Leaderboard:
        return self.store.get(leaderboard_id)

    def list_leaderboards(self, recruiter_id: str) -> List[Leaderboard]:
        return self.store.list_for_owner(recruiter_id)

    def get_top_n(self, leaderboard_id: str, n: int) -> List[LeaderboardEntry]:
        """Top ``n`` entries ordered by rank ascending"""
        return self.store.get_top_n(leaderboard_id, n)

    def export_csv(self, leaderboard_id: str, n: Optional[int] = None) -> str:
        """CSV of the ranked leaderboard, limited to the top ``n`` when given"""
        if n is None:
            entries = self.store.get(leaderboard_id).entries
        else:
            entries = self.store.get_top_n(leaderboard_id, n)
        return leaderboard_to_csv(entries)

    def candidate_report(self, leaderboard_id: str, entry_id: str) -> dict:
        return build_candidate_report(self.store.get(leaderboard_id), entry_id)

    def update_notes(self, leaderboard_id: str, entry_id: str, notes: str) -> LeaderboardEntry:
        return self.store.update_notes(leaderboard_id, entry_id, notes)

    def toggle_favorite(self, leaderboard_id: str, entry_id: str) -> LeaderboardEntry:
        return self.store.toggle_favorite(leaderboard_id, entry_id)

    def delete_leaderboard(self, leaderboard_id: str) -> None:
        self.store.delete(leaderboard_id)


def create_service(config=None, taxonomy: Optional[SkillTaxonomy] = None,
                   name_enricher: Optional[NameEnricher] = None,
                   analysis_enricher: Optional[AnalysisEnricher] = None,
                   store: Optional[LeaderboardStore] = None,
                   current_year: Optional[int] = None) -> RankingService:
    """Wire a service from a configuration class

    Enrichers are only used when ``ENRICHMENT_ENABLED`` is set; each gets its
    own circuit breaker.
    """
    config = config or get_config()
    if config.MISSING_SKILLS_LIMIT < 0:
        raise InvalidInputError("MISSING_SKILLS_LIMIT must be >= 0")

    skill_extractor = SkillExtractor(taxonomy or default_taxonomy())
    name_extractor = NameExtractor()

    if config.ENRICHMENT_ENABLED and name_enricher is not None:
        name_extractor = EnrichedNameExtractor(
            name_enricher,
            fallback=name_extractor,
            timeout=config.ENRICHMENT_TIMEOUT,
            breaker=CircuitBreaker(config.ENRICHMENT_FAILURE_THRESHOLD, config.ENRICHMENT_RECOVERY_TIMEOUT),
        )

    scorer = CandidateScorer(
        skill_extractor=skill_extractor,
        similarity_scorer=SimilarityScorer(),
        name_extractor=name_extractor,
        missing_limit=config.MISSING_SKILLS_LIMIT,
        current_year=current_year,
    )

    if config.ENRICHMENT_ENABLED and analysis_enricher is not None:
        scorer = EnrichedCandidateScorer(
            analysis_enricher,
            scorer=scorer,
            timeout=config.ENRICHMENT_TIMEOUT,
            breaker=CircuitBreaker(config.ENRICHMENT_FAILURE_THRESHOLD, config.ENRICHMENT_RECOVERY_TIMEOUT),
        )

    if store is None:
        store = SqlAlchemyLeaderboardStore(config.DATABASE_URL, echo=config.DATABASE_ECHO)

    analysis_cache = None
    if config.REDIS_URL:
        analysis_cache = AnalysisCache(RedisCache(config.REDIS_URL), ttl=config.CACHE_DEFAULT_TIMEOUT)

    batch_processor = BatchProcessor(
        scorer,
        store,
        text_extractor=TimedTextExtractor(timeout=config.EXTRACTION_TIMEOUT),
        ranker=LeaderboardRanker(),
        batch_size=config.BATCH_SIZE,
        workers=config.BATCH_WORKERS,
        analysis_cache=analysis_cache,
    )

    logger.info(f"Ranking service ready (batch size {config.BATCH_SIZE}, "
                f"workers {config.BATCH_WORKERS}, enrichment {'on' if config.ENRICHMENT_ENABLED else 'off'})")
    return RankingService(scorer, store, batch_processor, analysis_cache)
