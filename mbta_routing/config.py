import os
from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()


def _env_int(name, default):
    try:
        return int(os.environ.get(name, default))
    except ValueError:
        return default


class Config:
    """
    Configuration class for MBTA Routing.
    This class loads configuration values from environment variables or uses default values.
    """
    # General configuration
    DEBUG = os.environ.get('DEBUG', 'False') == 'True'

    # Timezone used for service dates and schedule min_time filters
    TIMEZONE = os.environ.get('TIMEZONE', 'America/New_York')

    MBTA_API_KEY = os.environ.get('MBTA_API_KEY', '')
    MBTA_API_URL = os.environ.get('MBTA_API_URL', 'https://api-v3.mbta.com')
    TIMEOUT_SECONDS = _env_int('TIMEOUT_SECONDS', 30)

    # Upper bound on concurrent data-source calls within one planning request
    MAX_WORKERS = _env_int('MAX_WORKERS', 4)
