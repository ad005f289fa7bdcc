"""
Background Tasks for Batch Ranking
Celery task wrapping BatchProcessor.run_batch with JSON-safe payloads
"""

import base64
import binascii
import logging
import traceback
from typing import Any, Dict, List, Optional

from celery_config import TaskStatus, make_celery
from config import get_config
from errors import InvalidInputError
from schemas import ResumeBlob

logger = logging.getLogger(__name__)

config = get_config()
celery = make_celery(config)

_service = None


def get_service():
    """Lazily build the ranking service used by the worker"""
    global _service
    if _service is None:
        from ats_service import create_service
        _service = create_service(config)
    return _service


def set_service(service):
    """Replace the worker's ranking service (tests, custom wiring)"""
    global _service
    _service = service


def decode_blob(payload: Dict[str, Any]) -> ResumeBlob:
    """Build a ResumeBlob from ``{"filename", "content_b64", "candidate_id"}``"""
    try:
        filename = payload['filename']
        content = base64.b64decode(payload['content_b64'], validate=True)
    except (KeyError, TypeError, binascii.Error) as e:
        raise InvalidInputError(f"Malformed file payload: {e}") from e
    return ResumeBlob(filename=filename, content=content, candidate_id=payload.get('candidate_id'))


def encode_blob(blob: ResumeBlob) -> Dict[str, Any]:
    return {
        'filename': blob.filename,
        'content_b64': base64.b64encode(blob.content).decode('ascii'),
        'candidate_id': blob.candidate_id,
    }


@celery.task(bind=True, name='tasks.run_batch_async')
def run_batch_async(self, recruiter_id: str, resumes: List[Dict[str, Any]],
                    jd_text: Optional[str] = None, jd_title: Optional[str] = None,
                    jd_file: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Build a leaderboard in the background

    Args:
        recruiter_id: Owner of the leaderboard
        resumes: Encoded resume files (see ``encode_blob``)
        jd_text: Job description text
        jd_title: Job description display title
        jd_file: Encoded job description file; wins over ``jd_text``

    Returns:
        Batch summary with the leaderboard id and skipped resumes
    """
    try:
        self.update_state(
            state=TaskStatus.PROGRESS,
            meta={'status': f'Ranking {len(resumes)} resumes...', 'progress': 0}
        )

        blobs = [decode_blob(item) for item in resumes]
        jd_blob = decode_blob(jd_file) if jd_file else None

        result = get_service().run_batch(blobs, jd_blob=jd_blob, jd_text=jd_text, jd_title=jd_title,
                                         recruiter_id=recruiter_id)

        summary = result.summary()
        summary.update({
            'status': 'success',
            'skipped_resumes': [
                {'source_name': item.source_name, 'reason': item.reason} for item in result.skipped
            ],
        })
        return summary

    except Exception as e:
        logger.error(f"Background batch failed for recruiter {recruiter_id}: {e}")
        logger.error(traceback.format_exc())
        raise
