"""
Environment variable loading utility.

Reads ``KEY=VALUE`` lines from an env file into ``os.environ`` without
overriding variables that are already set by the process environment.
"""
import os
import logging

logger = logging.getLogger(__name__)


def load_env_from_file(file_path):
    """
    Load environment variables from a file.

    Args:
        file_path: Path to the environment variable file.

    Returns:
        True if the file was loaded, False otherwise.
    """
    if not os.path.exists(file_path):
        logger.debug(f"Environment file not found: {file_path}")
        return False

    with open(file_path, 'r') as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()
            if not line or line.startswith('#'):
                continue
            if '=' not in line:
                logger.warning(f"Skipping malformed line {line_number} in {file_path}")
                continue

            key, value = line.split('=', 1)
            os.environ.setdefault(key.strip(), value.strip().strip('"').strip("'"))

    logger.info(f"Loaded environment variables from {file_path}")
    return True


def env_int(name, default):
    """Read an integer setting, falling back to ``default`` on absent or bad values."""
    raw = os.getenv(name)
    if raw is None or raw == '':
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Invalid integer for {name}: {raw!r}. Using {default}.")
        return default


def env_float(name, default):
    raw = os.getenv(name)
    if raw is None or raw == '':
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Invalid number for {name}: {raw!r}. Using {default}.")
        return default
