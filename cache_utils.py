"""
Redis Cache Utilities
Caches deterministic analysis results keyed by resume/JD content hashes
"""

import redis
import json
import pickle
import hashlib
import logging
from typing import Any, Optional

from metrics import RankingMetrics, ranking_metrics
from schemas import AnalysisResult

logger = logging.getLogger(__name__)


class RedisCache:
    """Redis cache wrapper with JSON and pickle serialization support

    Disabled (every call a no-op miss) when no URL is configured or the
    server cannot be reached. The connection is opened on first use.
    """

    def __init__(self, redis_url: Optional[str] = None, client=None, prefix: str = "ats"):
        self.redis_url = redis_url
        self.prefix = prefix
        self.redis_client = client
        self.connected = client is not None
        self._attempted = client is not None

    def _connect(self):
        self._attempted = True
        if not self.redis_url:
            logger.debug("REDIS_URL not set, analysis cache disabled")
            return

        try:
            self.redis_client = redis.from_url(self.redis_url, decode_responses=False)
            self.redis_client.ping()
            self.connected = True
            logger.info("Redis connection established successfully")
        except redis.RedisError as e:
            logger.warning(f"Redis connection failed: {e}. Cache will be disabled.")
            self.redis_client = None
            self.connected = False

    @property
    def enabled(self) -> bool:
        if not self._attempted:
            self._connect()
        return self.connected

    def _make_key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    @staticmethod
    def _serialize_value(value: Any, use_pickle: bool = False) -> bytes:
        if use_pickle:
            return pickle.dumps(value)
        return json.dumps(value, default=str).encode('utf-8')

    @staticmethod
    def _deserialize_value(data: bytes, use_pickle: bool = False) -> Any:
        if use_pickle:
            return pickle.loads(data)
        return json.loads(data.decode('utf-8'))

    def get(self, key: str, use_pickle: bool = False) -> Optional[Any]:
        """Get value from cache"""
        if not self.enabled:
            return None

        try:
            data = self.redis_client.get(self._make_key(key))
            if data is None:
                return None
            return self._deserialize_value(data, use_pickle)
        except (redis.RedisError, pickle.UnpicklingError, ValueError) as e:
            logger.error(f"Cache get error for key {key}: {e}")
            return None

    def set(self, key: str, value: Any, ttl: int = 3600, use_pickle: bool = False) -> bool:
        """Set value in cache with TTL"""
        if not self.enabled:
            return False

        try:
            return bool(self.redis_client.setex(self._make_key(key), ttl, self._serialize_value(value, use_pickle)))
        except redis.RedisError as e:
            logger.error(f"Cache set error for key {key}: {e}")
            return False

    def delete(self, key: str) -> bool:
        if not self.enabled:
            return False

        try:
            return bool(self.redis_client.delete(self._make_key(key)))
        except redis.RedisError as e:
            logger.error(f"Cache delete error for key {key}: {e}")
            return False


def get_text_hash(text: str) -> str:
    """Generate hash for resume or JD text to use as cache key"""
    return hashlib.sha256((text or "").encode('utf-8')).hexdigest()


def analysis_cache_key(resume_text: str, jd_text: Optional[str] = None) -> str:
    jd_part = get_text_hash(jd_text)[:16] if jd_text else "nojd"
    return f"analysis:{get_text_hash(resume_text)}:{jd_part}"


class AnalysisCache:
    """Read-through cache of ``AnalysisResult`` objects

    Only deterministic results are stored; enriched results depend on an
    external service and are returned uncached. While the scorer can reach
    its enricher the cache is not read, so a result stored during an
    enricher outage stops being served once the enricher recovers.
    """

    def __init__(self, cache: RedisCache, ttl: int = 3600, metrics: Optional[RankingMetrics] = None):
        self.cache = cache
        self.ttl = ttl
        self.metrics = metrics or ranking_metrics

    def get_or_score(self, scorer, resume_text: str, jd_text: Optional[str] = None) -> AnalysisResult:
        key = analysis_cache_key(resume_text, jd_text)

        can_enrich = getattr(scorer, 'can_enrich', None)
        if can_enrich is not None and can_enrich():
            return self._score_and_store(scorer, key, resume_text, jd_text)

        cached = self.cache.get(key, use_pickle=True)
        hit = isinstance(cached, AnalysisResult)
        if self.cache.enabled:
            self.metrics.record_cache_operation('get', hit)
        if hit:
            logger.debug("Analysis cache hit")
            return cached

        return self._score_and_store(scorer, key, resume_text, jd_text)

    def _score_and_store(self, scorer, key: str, resume_text: str, jd_text: Optional[str]) -> AnalysisResult:
        result = scorer.score(resume_text, jd_text)
        if not result.enriched:
            self.cache.set(key, result, ttl=self.ttl, use_pickle=True)
        return result
