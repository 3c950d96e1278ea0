"""Configuration from the environment and an optional .env file."""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_JIRA_URL = "https://issues.redhat.com/"
DEFAULT_JIRA_PROJECT = "ROX"
DEFAULT_BQ_PROJECT_ID = "acs-san-stackroxci"

ENV_KEYS = ['JIRA_TOKEN', 'ARTIFACT_DIR', 'JIRA_URL', 'JIRA_PROJECT', 'BQ_PROJECT_ID']


def read_env_file(path: Path) -> dict:
    """Parse ``KEY=value`` lines, skipping blanks and ``#`` comments."""
    values = {}
    for raw in path.read_text().splitlines():
        line = raw.strip()
        if not line or line.startswith('#') or '=' not in line:
            continue
        key, _, value = line.partition('=')
        values[key.strip()] = value.strip()
    return values


def load_config() -> dict:
    """Load config from environment variables and .env file.

    The first readable file of $JUNIT2JIRA_CONFIG and ./.env is used.
    Environment variables take precedence over file values.
    """
    candidates = [os.environ.get('JUNIT2JIRA_CONFIG'), Path.cwd() / '.env']
    config = {}
    for candidate in filter(None, candidates):
        path = Path(candidate)
        if not path.is_file():
            continue
        try:
            config = read_env_file(path)
        except OSError as e:
            logger.warning(f"Could not read config file {path}: {e}")
            continue
        logger.debug(f"Loaded configuration from {path}")
        break

    config.update({key: os.environ[key] for key in ENV_KEYS if key in os.environ})
    return config


def get_jira_token() -> str:
    return load_config().get('JIRA_TOKEN', '')


def get_artifact_dir() -> str:
    return load_config().get('ARTIFACT_DIR', '')


def get_jira_url() -> str:
    return load_config().get('JIRA_URL', DEFAULT_JIRA_URL)


def get_jira_project() -> str:
    return load_config().get('JIRA_PROJECT', DEFAULT_JIRA_PROJECT)


def get_bq_project_id() -> str:
    return load_config().get('BQ_PROJECT_ID', DEFAULT_BQ_PROJECT_ID)
