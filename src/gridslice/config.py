"""gridslice configuration using pydantic-settings.

All configuration is strongly typed and supports environment variables
and .env files.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ResampleName = Literal["nearest", "bilinear", "bicubic", "lanczos"]


class ConfigError(Exception):
    """Raised when a configuration value is unusable for an operation.

    Example:
        >>> raise ConfigError("ARCHIVE_COMPRESSION", "must be 'deflated' or 'stored'")
        Traceback (most recent call last):
        ...
        ConfigError: Invalid ARCHIVE_COMPRESSION: must be 'deflated' or 'stored'.
        Set it in .env file or the ARCHIVE_COMPRESSION environment variable.
    """

    def __init__(self, env_var: str, reason: str) -> None:
        """Initialize configuration error.

        Args:
            env_var: Environment variable name holding the bad value.
            reason: Human-readable description of the problem.
        """
        self.env_var = env_var
        self.reason = reason
        message = (
            f"Invalid {env_var}: {reason}.\n"
            f"Set it in .env file or the {env_var} environment variable."
        )
        super().__init__(message)


class Settings(BaseSettings):
    """Application settings loaded from environment variables or .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["console", "json"] = "console"

    # Encoding
    ENCODE_QUALITY: int = Field(default=92, ge=1, le=100)  # lossy formats only
    RESAMPLE_FILTER: ResampleName = "bicubic"  # sub-pixel cell extraction

    # Archive
    ARCHIVE_COMPRESSION: Literal["deflated", "stored"] = "deflated"
    ARCHIVE_COMPRESS_LEVEL: int = Field(default=6, ge=0, le=9)

    # Input limits
    MAX_UPLOAD_BYTES: int = Field(default=10 * 1024 * 1024, gt=0)
    MAX_GRID_DIMENSION: int = Field(default=20, ge=1)  # CLI bound, not the core's

    # Failure policy
    STRICT_ENCODE: bool = False

    def require_grid_dimension(self, name: str, value: int) -> int:
        """Check a rows/cols value against the interactive grid bound.

        The core pipeline accepts any positive integer; this bound only
        applies to user-facing entry points.

        Args:
            name: Name of the dimension for the error message ("rows"/"cols").
            value: Requested dimension.

        Returns:
            The validated value.

        Raises:
            ConfigError: If value is outside [1, MAX_GRID_DIMENSION].
        """
        if not 1 <= value <= self.MAX_GRID_DIMENSION:
            raise ConfigError(
                "MAX_GRID_DIMENSION",
                f"{name}={value} is outside [1, {self.MAX_GRID_DIMENSION}]",
            )
        return value


# Singleton instance for import convenience
settings = Settings()
