"""
Configuration for the resume ranking engine
Environment-driven settings with per-environment overrides
"""

import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_bool(name, default):
    return os.environ.get(name, default).lower() == 'true'


class Config:
    """Base configuration"""

    # Database configuration for the leaderboard store
    DATABASE_URL = os.environ.get('DATABASE_URL')

    if DATABASE_URL:
        # Fix for Heroku postgres:// URLs
        if DATABASE_URL.startswith("postgres://"):
            DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)
    else:
        basedir = os.path.abspath(os.path.dirname(__file__))
        DATABASE_URL = f"sqlite:///{os.path.join(basedir, 'resume_ranking.db')}"

    DATABASE_ECHO = False

    # Batch processing
    BATCH_SIZE = int(os.environ.get('BATCH_SIZE', '5'))
    BATCH_WORKERS = int(os.environ.get('BATCH_WORKERS', '1'))
    EXTRACTION_TIMEOUT = float(os.environ.get('EXTRACTION_TIMEOUT', '30'))

    # Optional LLM enrichment collaborators
    ENRICHMENT_ENABLED = _env_bool('ENRICHMENT_ENABLED', 'false')
    ENRICHMENT_TIMEOUT = float(os.environ.get('ENRICHMENT_TIMEOUT', '20'))
    ENRICHMENT_FAILURE_THRESHOLD = int(os.environ.get('ENRICHMENT_FAILURE_THRESHOLD', '3'))
    ENRICHMENT_RECOVERY_TIMEOUT = int(os.environ.get('ENRICHMENT_RECOVERY_TIMEOUT', '60'))

    # Scoring
    MISSING_SKILLS_LIMIT = int(os.environ.get('MISSING_SKILLS_LIMIT', '10'))

    # Analysis cache (disabled when REDIS_URL is unset)
    REDIS_URL = os.environ.get('REDIS_URL')
    CACHE_DEFAULT_TIMEOUT = int(os.environ.get('CACHE_DEFAULT_TIMEOUT', '3600'))

    # Background batch runs
    CELERY_BROKER_URL = os.environ.get('CELERY_BROKER_URL', 'redis://localhost:6379/2')
    CELERY_RESULT_BACKEND = os.environ.get('CELERY_RESULT_BACKEND', 'redis://localhost:6379/2')
    CELERY_TASK_ALWAYS_EAGER = False

    # Logging
    DEBUG = False
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
    LOG_DIR = os.environ.get('LOG_DIR', 'logs')
    LOG_TO_FILE = _env_bool('LOG_TO_FILE', 'true')


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'DEBUG').upper()


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False

    DATABASE_URL = os.environ.get('DATABASE_URL')
    if DATABASE_URL:
        if DATABASE_URL.startswith("postgres://"):
            DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)
    else:
        DATABASE_URL = 'postgresql://localhost/resume_ranking'

    BATCH_WORKERS = int(os.environ.get('BATCH_WORKERS', '4'))


class TestingConfig(Config):
    """Testing configuration"""
    DEBUG = True

    # Use in-memory database for testing
    DATABASE_URL = 'sqlite:///:memory:'

    # No external services in tests
    ENRICHMENT_ENABLED = False
    REDIS_URL = None
    CELERY_BROKER_URL = 'memory://'
    CELERY_RESULT_BACKEND = 'cache+memory://'
    CELERY_TASK_ALWAYS_EAGER = True

    EXTRACTION_TIMEOUT = 5.0
    ENRICHMENT_TIMEOUT = 1.0
    LOG_TO_FILE = False


# Configuration mapping
config_map = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_config():
    """Get configuration based on environment"""
    env = os.environ.get('ATS_ENV', 'development')
    return config_map.get(env, config_map['default'])


def get_database_url():
    """Get the database URL for the current environment"""
    return get_config().DATABASE_URL
