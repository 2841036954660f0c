"""Configuration error definitions."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Configuration values are invalid or the settings file cannot be used."""


class MissingConfigurationError(ConfigurationError):
    """Required environment variables or files are absent or blank."""


class InvalidSettingError(ConfigurationError):
    """A key of the integrations file holds a value of the wrong shape."""

    def __init__(self, key: str, expected: str) -> None:
        super().__init__(f"Setting '{key}' must be {expected}")
        self.key = key
        self.expected = expected
