"""
Configuration settings for building search.
"""
import logging.config
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Supabase configuration
SUPABASE_URL = os.getenv('SUPABASE_URL')
SUPABASE_KEY = os.getenv('SUPABASE_KEY')
SUPABASE_SERVICE_KEY = os.getenv('SUPABASE_SERVICE_KEY')

# Use Supabase if configured
USE_SUPABASE = bool(SUPABASE_URL and SUPABASE_KEY)

# Table names
BUILDINGS_TABLE = os.getenv('BUILDINGS_TABLE', 'buildings_table_2')
INDIVIDUAL_ARCHITECTS_TABLE = os.getenv('INDIVIDUAL_ARCHITECTS_TABLE', 'individual_architects')
ARCHITECT_COMPOSITIONS_TABLE = os.getenv('ARCHITECT_COMPOSITIONS_TABLE', 'architect_compositions')
BUILDING_ARCHITECTS_TABLE = os.getenv('BUILDING_ARCHITECTS_TABLE', 'building_architects')

# Search configuration
# PostgREST caps responses at 1000 rows by default
FETCH_WINDOW = int(os.getenv('FETCH_WINDOW', 1000))
ARCHITECT_LOOKUP_CAP = int(os.getenv('ARCHITECT_LOOKUP_CAP', 1000))
ARCHITECT_CHAIN_ENABLED = os.getenv('ARCHITECT_CHAIN_ENABLED', 'true').lower() in ('1', 'true', 'yes')
DEFAULT_PAGE_SIZE = int(os.getenv('DEFAULT_PAGE_SIZE', 20))

# Logging configuration
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

LOG_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "level": LOG_LEVEL,
            "formatter": "standard",
            "stream": "ext://sys.stdout"
        }
    },
    "loggers": {
        "services": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": False
        },
        "database": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": False
        }
    }
}


def configure_logging(level: str = None) -> None:
    """Apply LOG_CONFIG, optionally overriding the level."""
    config = LOG_CONFIG
    if level:
        config = {
            **LOG_CONFIG,
            "handlers": {
                name: {**handler, "level": level}
                for name, handler in LOG_CONFIG["handlers"].items()
            },
            "loggers": {
                name: {**logger, "level": level}
                for name, logger in LOG_CONFIG["loggers"].items()
            },
        }
    logging.config.dictConfig(config)
