"""
Background scoring jobs on rq
"""
from django.conf import settings
from redis import Redis
from rq import Queue, Retry, get_current_job
import logging

from ieltsexam.exceptions import UpstreamError

logger = logging.getLogger(__name__)

# Delay in seconds before each rq-level retry of a failed scoring job
RETRY_INTERVALS = [30, 120, 300]


def get_redis():
    return Redis.from_url(settings.REDIS_URL)


def get_queue():
    return Queue(settings.RQ_QUEUE, connection=get_redis())


def enqueue_answer_scoring(answer_id):
    job = get_queue().enqueue(
        score_answer_job,
        str(answer_id),
        job_timeout=int(settings.AI_REQUEST_TIMEOUT * (settings.AI_MAX_RETRIES + 1)) + 30,
        retry=Retry(max=len(RETRY_INTERVALS), interval=RETRY_INTERVALS),
    )
    logger.info(f"Queued AI scoring job {job.id} for answer {answer_id}")
    return job.id


def score_answer_job(answer_id):
    from .answer_scoring import AnswerScoringService

    job = get_current_job()
    if job is not None:
        job.meta.update({'state': 'running', 'answer_id': answer_id})
        job.save_meta()
    try:
        answer = AnswerScoringService.score_answer_with_ai(answer_id)
    except UpstreamError:
        if job is not None:
            job.meta.update({'state': 'failed'})
            job.save_meta()
        raise
    if job is not None:
        job.meta.update({'state': 'done', 'band': float(answer.score)})
        job.save_meta()
    return {'answer_id': answer_id, 'band': float(answer.score)}
