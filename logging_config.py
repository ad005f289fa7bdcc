"""Logging Configuration for Production and Development"""

import logging
import logging.config
import os
from datetime import datetime

SKIPPED_LOGGER_NAME = 'ats.skipped'


def build_logging_config(config):
    """Build the dictConfig mapping for the given configuration class"""
    level = 'DEBUG' if config.DEBUG else config.LOG_LEVEL

    handlers = {
        'console': {
            'class': 'logging.StreamHandler',
            'level': level,
            'formatter': 'simple',
            'stream': 'ext://sys.stdout'
        },
    }
    root_handlers = ['console']
    skipped_handlers = ['console']

    if config.LOG_TO_FILE:
        log_dir = os.path.join(os.getcwd(), config.LOG_DIR)
        os.makedirs(log_dir, exist_ok=True)
        timestamp = datetime.now().strftime('%Y%m%d')

        handlers.update({
            'file_info': {
                'class': 'logging.handlers.RotatingFileHandler',
                'level': 'INFO',
                'formatter': 'detailed',
                'filename': os.path.join(log_dir, f'ranking_info_{timestamp}.log'),
                'maxBytes': 10485760,  # 10MB
                'backupCount': 5,
                'encoding': 'utf8'
            },
            'file_error': {
                'class': 'logging.handlers.RotatingFileHandler',
                'level': 'ERROR',
                'formatter': 'detailed',
                'filename': os.path.join(log_dir, f'ranking_error_{timestamp}.log'),
                'maxBytes': 10485760,  # 10MB
                'backupCount': 10,
                'encoding': 'utf8'
            },
            'skipped_log': {
                'class': 'logging.handlers.RotatingFileHandler',
                'level': 'WARNING',
                'formatter': 'json',
                'filename': os.path.join(log_dir, f'skipped_resumes_{timestamp}.log'),
                'maxBytes': 10485760,  # 10MB
                'backupCount': 10,
                'encoding': 'utf8'
            },
        })
        root_handlers = ['console', 'file_info', 'file_error']
        skipped_handlers = ['console', 'skipped_log']

    return {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'detailed': {
                'format': '[%(asctime)s] %(levelname)s in %(module)s [%(pathname)s:%(lineno)d]: %(message)s',
                'datefmt': '%Y-%m-%d %H:%M:%S'
            },
            'simple': {
                'format': '[%(asctime)s] %(levelname)s: %(message)s',
                'datefmt': '%Y-%m-%d %H:%M:%S'
            },
            'json': {
                'format': ('{"timestamp": "%(asctime)s", "level": "%(levelname)s", "batch_id": "%(batch_id)s", '
                           '"source_name": "%(source_name)s", "reason": "%(reason)s"}'),
                'datefmt': '%Y-%m-%d %H:%M:%S'
            }
        },
        'handlers': handlers,
        'loggers': {
            '': {  # Root logger
                'handlers': root_handlers,
                'level': level,
            },
            SKIPPED_LOGGER_NAME: {
                'handlers': skipped_handlers,
                'level': 'WARNING',
                'propagate': False
            },
            'sqlalchemy.engine': {
                'handlers': ['console'],
                'level': 'INFO' if config.DATABASE_ECHO else 'WARNING',
                'propagate': False
            },
            'celery': {
                'handlers': root_handlers,
                'level': 'INFO',
                'propagate': False
            }
        }
    }


def setup_logging(config):
    """Apply structured logging for the ranking engine

    Returns the root logger and the logger that records skipped resumes.
    """
    logging.config.dictConfig(build_logging_config(config))

    logger = logging.getLogger()
    skipped_logger = logging.getLogger(SKIPPED_LOGGER_NAME)

    logger.info("Logging configuration initialized")

    return logger, skipped_logger
