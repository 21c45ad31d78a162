"""Configuration-related exceptions for embedstore."""

from .base import EmbedStoreError


class ConfigurationError(EmbedStoreError):
    """Configuration or environment variable errors.

    Raised when required configuration is missing, invalid, or an
    immutable setting is changed after it took effect.
    """

    error_code = "ES_CFG_001"


class MissingAPIKeyError(ConfigurationError):
    """Required API key is not configured."""

    error_code = "ES_CFG_002"


class InvalidConfigurationError(ConfigurationError):
    """Configuration value is invalid."""

    error_code = "ES_CFG_003"


class ImmutableSettingError(ConfigurationError):
    """Setting cannot change once the index holds data.

    Common causes:
    - Changing the similarity metric of a populated index
    - Loading a snapshot written with a different dimension or metric
    """

    error_code = "ES_CFG_004"
