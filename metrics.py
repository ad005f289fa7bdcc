"""
Prometheus Metrics for the ranking engine
Resume outcomes, stage timings, score distribution and cache effectiveness
"""

import sys
import logging
from typing import Dict, Optional

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram, Info

logger = logging.getLogger(__name__)


class RankingMetrics:
    """
    Business metrics for batch ranking runs

    Pass a private ``registry`` to get an isolated collector set (tests,
    embedded use); the module-level instance registers globally.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        registry = registry or REGISTRY

        # Resume processing metrics
        self.resume_processing_total = Counter(
            'resume_processing_total',
            'Total number of resumes processed in batch runs',
            ['status', 'file_type'],
            registry=registry
        )

        self.stage_duration = Histogram(
            'resume_stage_duration_seconds',
            'Time spent in each batch processing stage',
            ['stage', 'status'],
            registry=registry
        )

        self.resume_scores = Histogram(
            'resume_scores',
            'Distribution of resume scores',
            ['score_type'],
            buckets=[0, 10, 20, 30, 40, 50, 60, 70, 80, 90, 100],
            registry=registry
        )

        # Batch metrics
        self.batch_runs_total = Counter(
            'batch_runs_total',
            'Total batch leaderboard builds',
            ['outcome'],
            registry=registry
        )

        self.resumes_by_level = Counter(
            'resumes_by_experience_level_total',
            'Total scored resumes by experience level',
            ['level'],
            registry=registry
        )

        # Cache metrics
        self.cache_operations_total = Counter(
            'cache_operations_total',
            'Total analysis cache operations',
            ['operation', 'status'],
            registry=registry
        )

        self.cache_hit_ratio = Gauge(
            'cache_hit_ratio',
            'Analysis cache hit ratio (0-1)',
            registry=registry
        )

        # Error tracking
        self.errors_total = Counter(
            'errors_total',
            'Total ranking errors',
            ['error_type', 'component'],
            registry=registry
        )

        self.application_info = Info(
            'ranking_engine',
            'Ranking engine build information',
            registry=registry
        )
        self.application_info.info({
            'version': '1.0.0',
            'python_version': f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
        })

        self._cache_hits = 0
        self._cache_misses = 0

        logger.debug("Ranking metrics initialized")

    def record_resume(self, status: str, file_type: str, scores: Optional[Dict[str, float]] = None,
                      level: Optional[str] = None):
        """Record one resume outcome; scores are 0-100 percentages"""
        self.resume_processing_total.labels(status=status, file_type=file_type or 'unknown').inc()

        for score_type, score in (scores or {}).items():
            if isinstance(score, (int, float)):
                self.resume_scores.labels(score_type=score_type).observe(score)

        if level:
            self.resumes_by_level.labels(level=level).inc()

    def record_stage(self, stage: str, duration: float, success: bool = True):
        self.stage_duration.labels(stage=stage, status='success' if success else 'error').observe(duration)

    def record_batch(self, cancelled: bool = False):
        self.batch_runs_total.labels(outcome='cancelled' if cancelled else 'completed').inc()

    def record_cache_operation(self, operation: str, hit: bool):
        """Record cache operation metrics"""
        status = 'hit' if hit else 'miss'
        self.cache_operations_total.labels(operation=operation, status=status).inc()

        # Update hit ratio
        if operation == 'get':
            if hit:
                self._cache_hits += 1
            else:
                self._cache_misses += 1

            total_ops = self._cache_hits + self._cache_misses
            if total_ops > 0:
                self.cache_hit_ratio.set(self._cache_hits / total_ops)

    def record_error(self, error_type: str, component: str):
        """Record a recovered error"""
        self.errors_total.labels(error_type=error_type, component=component).inc()


# Global metrics instance
ranking_metrics = RankingMetrics()
