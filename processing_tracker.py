"""
Batch Processing Time Tracking
Per-stage timings (JD resolution, extraction, scoring, commit, ranking) for
leaderboard batch runs
"""

import time
import logging
import threading
from datetime import datetime, timezone, timedelta
from typing import Dict, List, Any, Optional
from collections import defaultdict, deque
from contextlib import contextmanager

from metrics import RankingMetrics, ranking_metrics

logger = logging.getLogger(__name__)

STAGE_JD_RESOLUTION = 'jd_resolution'
STAGE_TEXT_EXTRACTION = 'text_extraction'
STAGE_SCORING = 'scoring'
STAGE_COMMIT = 'commit'
STAGE_RANKING = 'ranking'


def _empty_stage_stats() -> Dict[str, Any]:
    return {
        'count': 0,
        'total_time': 0.0,
        'min_time': float('inf'),
        'max_time': 0.0,
        'avg_time': 0.0,
        'last_processed': None,
        'success_count': 0,
        'error_count': 0
    }


class ProcessingTimeTracker:
    """
    Track stage timings for batch runs
    """

    def __init__(self, max_history: int = 1000, metrics: Optional[RankingMetrics] = None):
        """
        Initialize processing time tracker

        Args:
            max_history: Maximum number of finished batch runs to keep
            metrics: Prometheus collectors stage timings are also reported to
        """
        self.max_history = max_history
        self.metrics = metrics or ranking_metrics

        self.stage_stats = defaultdict(_empty_stage_stats)
        self.batch_history = deque(maxlen=max_history)
        self.active_batches = {}

        self._lock = threading.Lock()

    @contextmanager
    def track_stage(self, batch_id: str, stage_name: str):
        """
        Context manager timing one stage of one batch run

        Args:
            batch_id: Batch (leaderboard) identifier
            stage_name: Name of the processing stage
        """
        start_time = time.perf_counter()
        success = True

        try:
            yield
        except Exception:
            success = False
            raise
        finally:
            self.record_stage_time(batch_id, stage_name, time.perf_counter() - start_time, success)

    def start_batch(self, batch_id: str, resume_count: int):
        with self._lock:
            self.active_batches[batch_id] = {
                'resume_count': resume_count,
                'start_time': time.perf_counter(),
                'started_at': datetime.now(timezone.utc),
                'stages': defaultdict(float),
            }
            logger.debug(f"Started tracking batch {batch_id} ({resume_count} resumes)")

    def end_batch(self, batch_id: str, scored: int, skipped: int, cancelled: bool = False):
        """
        Close a batch run and move it to history

        Args:
            batch_id: Batch identifier
            scored: Number of resumes that produced entries
            skipped: Number of resumes that failed and were skipped
            cancelled: Whether the run stopped at a sub-batch boundary
        """
        with self._lock:
            batch = self.active_batches.pop(batch_id, None)
            if batch is None:
                return

            record = {
                'batch_id': batch_id,
                'resume_count': batch['resume_count'],
                'scored': scored,
                'skipped': skipped,
                'cancelled': cancelled,
                'total_duration': time.perf_counter() - batch['start_time'],
                'stages': dict(batch['stages']),
                'timestamp': datetime.now(timezone.utc),
            }
            self.batch_history.append(record)

        logger.info(f"Batch {batch_id} finished in {record['total_duration']:.2f}s "
                    f"(scored {scored}, skipped {skipped})")

    def record_stage_time(self, batch_id: str, stage_name: str, duration: float, success: bool = True):
        with self._lock:
            stats = self.stage_stats[stage_name]
            stats['count'] += 1
            stats['total_time'] += duration
            stats['min_time'] = min(stats['min_time'], duration)
            stats['max_time'] = max(stats['max_time'], duration)
            stats['avg_time'] = stats['total_time'] / stats['count']
            stats['last_processed'] = datetime.now(timezone.utc)

            if success:
                stats['success_count'] += 1
            else:
                stats['error_count'] += 1

            if batch_id in self.active_batches:
                self.active_batches[batch_id]['stages'][stage_name] += duration

        self.metrics.record_stage(stage_name, duration, success)

    def get_stage_statistics(self, stage_name: Optional[str] = None) -> Dict[str, Any]:
        """
        Get processing statistics for one stage or all stages
        """
        with self._lock:
            names = [stage_name] if stage_name else list(self.stage_stats)
            result = {}
            for name in names:
                if name not in self.stage_stats:
                    continue
                stats = dict(self.stage_stats[name])
                stats['success_rate'] = (stats['success_count'] / stats['count'] * 100) if stats['count'] > 0 else 0
                stats['error_rate'] = (stats['error_count'] / stats['count'] * 100) if stats['count'] > 0 else 0
                result[name] = stats
            return result

    def get_batch_summary(self, hours: int = 24) -> Dict[str, Any]:
        """
        Totals over the batches finished in the last ``hours`` hours
        """
        with self._lock:
            cutoff_time = datetime.now(timezone.utc) - timedelta(hours=hours)
            recent = [record for record in self.batch_history if record['timestamp'] >= cutoff_time]

        requested = sum(record['resume_count'] for record in recent)
        scored = sum(record['scored'] for record in recent)
        total_time = sum(record['total_duration'] for record in recent)

        return {
            'period_hours': hours,
            'total_batches': len(recent),
            'requested_resumes': requested,
            'scored_resumes': scored,
            'skipped_resumes': sum(record['skipped'] for record in recent),
            'cancelled_batches': sum(1 for record in recent if record['cancelled']),
            'success_rate': (scored / requested * 100) if requested else 0,
            'avg_batch_time': round(total_time / len(recent), 3) if recent else 0,
            'total_processing_time': round(total_time, 3),
        }

    def get_recent_batches(self, limit: int = 50) -> List[Dict[str, Any]]:
        with self._lock:
            recent = list(self.batch_history)[-limit:]
        return [{
            'batch_id': record['batch_id'],
            'resume_count': record['resume_count'],
            'scored': record['scored'],
            'skipped': record['skipped'],
            'cancelled': record['cancelled'],
            'total_duration': round(record['total_duration'], 3),
            'stages': {name: round(value, 3) for name, value in record['stages'].items()},
            'timestamp': record['timestamp'].isoformat()
        } for record in reversed(recent)]

    def reset_statistics(self):
        """Reset all processing statistics"""
        with self._lock:
            self.stage_stats.clear()
            self.batch_history.clear()
            self.active_batches.clear()
            logger.info("Processing time tracking statistics reset")


# Global processing time tracker
processing_tracker = ProcessingTimeTracker()


def get_processing_statistics() -> Dict[str, Any]:
    return {
        'stage_statistics': processing_tracker.get_stage_statistics(),
        'summary_24h': processing_tracker.get_batch_summary(24),
        'recent_batches': processing_tracker.get_recent_batches(20),
    }
