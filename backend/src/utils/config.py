"""
Coaster Stats - Configuration Management
Handles environment configuration with AWS SSM Parameter Store for production
and python-dotenv for local development.
"""

import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

# Load .env file for local development
load_dotenv()

# backend/ directory (src/utils/config.py -> src -> backend)
BACKEND_ROOT = Path(__file__).resolve().parent.parent.parent


class Config:
    """
    Configuration manager with dual-mode operation:
    - Local: Reads from .env file via python-dotenv
    - Production: Reads from AWS SSM Parameter Store
    """

    def __init__(self):
        self.environment = os.getenv('ENVIRONMENT', 'local')
        self._ssm_client = None

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """
        Fetch configuration value from SSM (production) or environment (local).

        Args:
            key: Configuration key name
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        if self.environment == 'production':
            return self._get_from_ssm(key, default)
        else:
            return os.getenv(key, default)

    def _get_from_ssm(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """
        Fetch configuration from AWS SSM Parameter Store.

        Args:
            key: Parameter key name
            default: Default value if parameter not found

        Returns:
            Parameter value or default

        Raises:
            ConfigurationError: If parameter not found and no default provided,
                               or if AWS credentials/permissions are invalid
        """
        ssm_prefix = os.getenv('AWS_SSM_PREFIX', '/coasterstats')
        parameter_name = f"{ssm_prefix}/{key}"

        try:
            if self._ssm_client is None:
                import boto3
                self._ssm_client = boto3.client(
                    'ssm',
                    region_name=os.getenv('AWS_REGION', 'us-east-1')
                )

            response = self._ssm_client.get_parameter(
                Name=parameter_name,
                WithDecryption=True
            )
            return response['Parameter']['Value']

        except Exception as e:
            not_found = (
                self._ssm_client is not None
                and isinstance(e, self._ssm_client.exceptions.ParameterNotFound)
            )
            if default is not None:
                if not not_found:
                    import logging
                    logging.warning(
                        f"Failed to fetch SSM parameter '{key}': {type(e).__name__}: {e}. "
                        f"Using default value."
                    )
                return default
            if not_found:
                raise ConfigurationError(
                    f"Required parameter '{key}' not found in SSM at path '{parameter_name}'. "
                    f"Please create the parameter or provide a default value."
                )
            raise ConfigurationError(
                f"Failed to fetch parameter '{key}' from SSM: {type(e).__name__}: {e}. "
                f"Check AWS credentials, IAM permissions, and network connectivity."
            )

    def get_int(self, key: str, default: int) -> int:
        """
        Get configuration value as integer.

        Args:
            key: Configuration key name
            default: Default value if key not found or conversion fails

        Returns:
            Integer value or default
        """
        value = self.get(key, str(default))
        try:
            return int(value)
        except (ValueError, TypeError) as e:
            import logging
            logging.warning(
                f"Invalid integer for config key '{key}': '{value}'. "
                f"Using default={default}. Error: {e}"
            )
            return default

    def get_bool(self, key: str, default: bool) -> bool:
        """
        Get configuration value as boolean.

        Args:
            key: Configuration key name
            default: Default value if key not found

        Returns:
            Boolean value or default
        """
        value = self.get(key, str(default))
        if value is None:
            return default
        return value.lower() in ('true', '1', 'yes', 'on')

    def get_path(self, key: str, default: Path) -> Path:
        """
        Get configuration value as a filesystem path.

        Relative values are resolved against the backend directory so scripts
        and the API agree on file locations regardless of working directory.
        """
        value = self.get(key)
        if not value:
            return default
        path = Path(value)
        if not path.is_absolute():
            path = BACKEND_ROOT / path
        return path

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == 'production'

    @property
    def is_local(self) -> bool:
        """Check if running in local development environment."""
        return self.environment == 'local'


class ConfigurationError(Exception):
    """Raised when configuration cannot be loaded."""
    pass


# Global configuration instance
config = Config()


# RCDB API configuration
RCDB_API_BASE_URL = config.get('RCDB_API_BASE_URL', 'https://rcdb-api.vercel.app/api/coasters')
REQUEST_TIMEOUT_SECONDS = config.get_int('REQUEST_TIMEOUT_SECONDS', 30)

# Scrape range and batch width
SCRAPE_START_ID = config.get_int('SCRAPE_START_ID', 1)
SCRAPE_END_ID = config.get_int('SCRAPE_END_ID', 23211)
CONCURRENT_LIMIT = config.get_int('CONCURRENT_LIMIT', 15)

# One attempt means no retries; transport errors only
MAX_RETRY_ATTEMPTS = config.get_int('MAX_RETRY_ATTEMPTS', 1)
RETRY_BACKOFF_MULTIPLIER = config.get_int('RETRY_BACKOFF_MULTIPLIER', 2)

# File locations
DATA_DIR = config.get_path('DATA_DIR', BACKEND_ROOT / 'data')
PUBLIC_DIR = config.get_path('PUBLIC_DIR', BACKEND_ROOT / 'public')
IMAGE_DIR = config.get_path('IMAGE_DIR', PUBLIC_DIR / 'img')
LOG_DIR = config.get_path('LOG_DIR', BACKEND_ROOT / 'logs')
IMAGE_URL_PREFIX = config.get('IMAGE_URL_PREFIX', '/img/')

# Flask configuration
FLASK_ENV = config.get('FLASK_ENV', 'development')
FLASK_DEBUG = config.get_bool('FLASK_DEBUG', True)
SECRET_KEY = config.get('SECRET_KEY', 'dev-secret-key-change-in-production')

# Shared cache lifetime for lookup responses
CACHE_MAX_AGE_SECONDS = config.get_int('CACHE_MAX_AGE_SECONDS', 3600)

# Logging configuration
LOG_LEVEL = config.get('LOG_LEVEL', 'INFO')
