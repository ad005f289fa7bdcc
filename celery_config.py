"""
Celery Configuration for Background Task Processing
Runs batch leaderboard builds outside the request cycle
"""

from celery import Celery


def make_celery(config):
    """Create the Celery app from a configuration class"""

    celery = Celery(
        'resume_ranking',
        backend=config.CELERY_RESULT_BACKEND,
        broker=config.CELERY_BROKER_URL,
        include=['tasks']  # Import task modules
    )

    celery.conf.update(
        # Task settings
        task_serializer='json',
        accept_content=['json'],
        result_serializer='json',
        timezone='UTC',
        enable_utc=True,
        task_always_eager=config.CELERY_TASK_ALWAYS_EAGER,
        task_eager_propagates=config.CELERY_TASK_ALWAYS_EAGER,

        # Result backend settings
        result_expires=3600,  # 1 hour

        # Worker settings; a batch is one long unit of work
        worker_prefetch_multiplier=1,
        task_acks_late=True,
        worker_max_tasks_per_child=1000,

        # Task routing
        task_routes={
            'tasks.run_batch_async': {'queue': 'batch_ranking'},
        },
    )

    return celery


# Task status constants
class TaskStatus:
    PENDING = 'PENDING'
    STARTED = 'STARTED'
    PROGRESS = 'PROGRESS'
    SUCCESS = 'SUCCESS'
    FAILURE = 'FAILURE'
