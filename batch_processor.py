"""
Batch leaderboard builder

Scores a list of uploaded resumes against an optional job description and
produces a ranked leaderboard. Resumes are processed in fixed-size
sub-batches and each sub-batch is committed to the store, in input order,
before the next one starts. A resume that cannot be extracted or scored is
skipped and logged to the ``ats.skipped`` logger; it never fails the batch.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence, Union

from errors import ExtractionFailure, InvalidInputError, JDResolutionError
from leaderboard import LeaderboardRanker
from leaderboard_store import LeaderboardStore
from logging_config import SKIPPED_LOGGER_NAME
from metrics import RankingMetrics, ranking_metrics
from processing_tracker import (ProcessingTimeTracker, STAGE_COMMIT, STAGE_JD_RESOLUTION, STAGE_RANKING,
                                STAGE_SCORING, STAGE_TEXT_EXTRACTION, processing_tracker)
from schemas import (AnalysisResult, BatchResult, JobDescriptionRef, LeaderboardEntry, ResumeBlob,
                     SkippedResume)
from text_extraction import TextExtractor, TimedTextExtractor, file_extension

logger = logging.getLogger(__name__)
skipped_logger = logging.getLogger(SKIPPED_LOGGER_NAME)

DEFAULT_BATCH_SIZE = 5
DEFAULT_JD_TITLE = "Job Description"


def entry_from_analysis(result: AnalysisResult, source: ResumeBlob) -> LeaderboardEntry:
    """Project one analysis into a leaderboard row

    With a JD the skills column lists the matched skills, falling back to
    every resume skill when nothing matched.
    """
    profile = result.profile
    return LeaderboardEntry(
        candidate_name=profile.name,
        score=result.score,
        candidate_id=source.candidate_id,
        skills=", ".join(result.matched_skills or profile.skills),
        experience=profile.experience_level,
        projects="; ".join(profile.projects),
        hackathons="; ".join(profile.hackathons),
        source_name=source.filename,
    )


class BatchProcessor:
    """Runs batch leaderboard builds against an injected scorer and store"""

    def __init__(self, scorer, store: LeaderboardStore,
                 text_extractor: Optional[TextExtractor] = None,
                 ranker: Optional[LeaderboardRanker] = None,
                 batch_size: int = DEFAULT_BATCH_SIZE,
                 workers: int = 1,
                 tracker: Optional[ProcessingTimeTracker] = None,
                 analysis_cache=None,
                 metrics: Optional[RankingMetrics] = None):
        if batch_size < 1:
            raise InvalidInputError(f"batch_size must be >= 1, got {batch_size}")
        if workers < 1:
            raise InvalidInputError(f"workers must be >= 1, got {workers}")

        self.scorer = scorer
        self.store = store
        self.text_extractor = text_extractor or TimedTextExtractor()
        self.ranker = ranker or LeaderboardRanker()
        self.batch_size = batch_size
        self.workers = workers
        self.tracker = tracker or processing_tracker
        self.analysis_cache = analysis_cache
        self.metrics = metrics or ranking_metrics

    def run_batch(self, resumes: Sequence[ResumeBlob],
                  jd_blob: Optional[ResumeBlob] = None,
                  jd_text: Optional[str] = None,
                  jd_title: Optional[str] = None,
                  recruiter_id: str = "",
                  cancel_event: Optional[threading.Event] = None) -> BatchResult:
        """
        Score every resume and build a ranked leaderboard

        Args:
            resumes: Uploaded resumes, in upload order
            jd_blob: Job description file; takes precedence over ``jd_text``
            jd_text: Job description as raw text
            jd_title: Display title for the job description
            recruiter_id: Owner of the resulting leaderboard
            cancel_event: Checked before each sub-batch; once set, no further
                sub-batches start and the entries so far are ranked

        Raises:
            InvalidInputError: Empty resume list or missing recruiter id
            JDResolutionError: A job description was supplied but could not
                be read; no leaderboard is created
        """
        if not resumes:
            raise InvalidInputError("At least one resume is required")
        if not recruiter_id:
            raise InvalidInputError("recruiter_id is required")

        jd = self._resolve_job_description(jd_blob, jd_text, jd_title)
        leaderboard = self.store.create_leaderboard(recruiter_id, jd)
        batch_id = leaderboard.id

        resumes = list(resumes)
        self.tracker.start_batch(batch_id, len(resumes))
        logger.info(f"Batch {batch_id}: {len(resumes)} resumes, "
                    f"{'with' if jd else 'without'} job description")

        entries: List[LeaderboardEntry] = []
        skipped: List[SkippedResume] = []
        cancelled = False

        for start in range(0, len(resumes), self.batch_size):
            if cancel_event is not None and cancel_event.is_set():
                cancelled = True
                logger.warning(f"Batch {batch_id} cancelled after {start} of {len(resumes)} resumes")
                break

            chunk = resumes[start:start + self.batch_size]
            outcomes = self._process_sub_batch(batch_id, chunk, jd.text if jd else None)

            committed = []
            for outcome in outcomes:
                if isinstance(outcome, LeaderboardEntry):
                    committed.append(outcome)
                else:
                    skipped.append(outcome)
                    self._log_skipped(batch_id, outcome)

            if committed:
                with self.tracker.track_stage(batch_id, STAGE_COMMIT):
                    self.store.commit_entries(batch_id, committed)
            entries.extend(committed)

            logger.debug(f"Batch {batch_id}: sub-batch at {start} committed "
                         f"{len(committed)}/{len(chunk)} entries")

        with self.tracker.track_stage(batch_id, STAGE_RANKING):
            self.ranker.rank(entries)
            final = self.store.finalize(batch_id, entries)

        self.tracker.end_batch(batch_id, scored=len(entries), skipped=len(skipped), cancelled=cancelled)
        self.metrics.record_batch(cancelled)

        if skipped:
            logger.warning(f"Batch {batch_id}: skipped {len(skipped)} of {len(resumes)} resumes")

        return BatchResult(
            leaderboard=final,
            requested=len(resumes),
            scored=len(entries),
            skipped=tuple(skipped),
            cancelled=cancelled,
        )

    def _resolve_job_description(self, jd_blob: Optional[ResumeBlob], jd_text: Optional[str],
                                 jd_title: Optional[str]) -> Optional[JobDescriptionRef]:
        if jd_blob is not None:
            try:
                with self.tracker.track_stage('pending', STAGE_JD_RESOLUTION):
                    text = self.text_extractor.extract_text(jd_blob)
            except Exception as e:
                logger.error(f"Failed to read job description {jd_blob.filename}: {e}")
                raise JDResolutionError(f"Failed to read job description {jd_blob.filename}: {e}") from e

            if not text or not text.strip():
                raise JDResolutionError(f"Job description {jd_blob.filename} contains no text")
            return JobDescriptionRef(title=jd_title or jd_blob.filename, text=text, source_name=jd_blob.filename)

        if jd_text is not None and jd_text.strip():
            return JobDescriptionRef(title=(jd_title or "").strip() or DEFAULT_JD_TITLE, text=jd_text)

        return None

    def _process_sub_batch(self, batch_id: str, chunk: List[ResumeBlob],
                           jd_text: Optional[str]) -> List[Union[LeaderboardEntry, SkippedResume]]:
        """Outcomes in the same order as ``chunk``"""
        if self.workers == 1 or len(chunk) == 1:
            return [self._process_one(batch_id, blob, jd_text) for blob in chunk]

        with ThreadPoolExecutor(max_workers=min(self.workers, len(chunk)),
                                thread_name_prefix='batch-score') as executor:
            return list(executor.map(lambda blob: self._process_one(batch_id, blob, jd_text), chunk))

    def _process_one(self, batch_id: str, blob: ResumeBlob,
                     jd_text: Optional[str]) -> Union[LeaderboardEntry, SkippedResume]:
        file_type = file_extension(blob.filename)
        try:
            result = self._analyze(batch_id, blob, jd_text)
        except ExtractionFailure as e:
            self.metrics.record_resume('skipped', file_type)
            self.metrics.record_error(type(e.__cause__ or e).__name__, 'batch')
            return SkippedResume(source_name=e.source_name, reason=e.reason)
        except Exception as e:
            logger.error(f"Unexpected error processing {blob.filename}: {e}", exc_info=True)
            self.metrics.record_resume('skipped', file_type)
            self.metrics.record_error(type(e).__name__, 'batch')
            return SkippedResume(source_name=blob.filename, reason=str(e) or type(e).__name__)

        scores = {'overall': result.score.overall * 100}
        if result.score.jd_match_percent is not None:
            scores['jd_match'] = result.score.jd_match_percent
        self.metrics.record_resume('success', file_type, scores, result.profile.experience_level)
        return entry_from_analysis(result, blob)

    def _analyze(self, batch_id: str, blob: ResumeBlob, jd_text: Optional[str]) -> AnalysisResult:
        try:
            with self.tracker.track_stage(batch_id, STAGE_TEXT_EXTRACTION):
                text = self.text_extractor.extract_text(blob)
        except Exception as e:
            raise ExtractionFailure(blob.filename, f"text extraction failed: {e}") from e

        if not text or not text.strip():
            raise ExtractionFailure(blob.filename, "no text extracted")

        try:
            with self.tracker.track_stage(batch_id, STAGE_SCORING):
                if self.analysis_cache is not None:
                    return self.analysis_cache.get_or_score(self.scorer, text, jd_text)
                return self.scorer.score(text, jd_text)
        except Exception as e:
            raise ExtractionFailure(blob.filename, f"scoring failed: {e}") from e

    @staticmethod
    def _log_skipped(batch_id: str, skipped: SkippedResume):
        skipped_logger.warning(
            "Skipped resume %s: %s", skipped.source_name, skipped.reason,
            extra={'batch_id': batch_id, 'source_name': skipped.source_name, 'reason': skipped.reason},
        )
