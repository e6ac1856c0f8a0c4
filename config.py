"""Configuration settings for the flowsmith system."""

# Load .env into os.environ so FLOWSMITH_* overrides work from a project file
try:
    from dotenv import load_dotenv
    load_dotenv()
except ImportError:
    pass

import sys
from pathlib import Path
from typing import Optional

from loguru import logger
from pydantic import Field
from pydantic_settings import BaseSettings


LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{function}:{line} | {message}"


class Settings(BaseSettings):
    """Global settings for flowsmith.

    Settings can be overridden via environment variables with FLOWSMITH_ prefix.
    Example: FLOWSMITH_OUTPUT_DIR=/tmp/flowsmith
    """

    # Paths
    templates_dir: Optional[str] = Field(
        default=None,
        description="Extra directory of *.json workflow templates merged after the built-in catalog"
    )
    output_dir: str = Field(
        default="./outputs",
        description="Directory for blueprints, compiled graphs and run summaries"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Minimum level for log output (DEBUG, INFO, WARNING, ERROR)"
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Optional log file; rotated at 10 MB"
    )

    # Graph compilation defaults (used when the CLI builds GraphOptions)
    default_security_level: str = Field(
        default="basic",
        description="Security level for compiled graphs: basic, standard, high"
    )
    include_error_handling: bool = Field(
        default=False,
        description="Append the error-handler side path to main graphs"
    )
    add_monitoring: bool = Field(
        default=False,
        description="Always compile the supporting monitoring graph"
    )

    # Conversation
    recommendation_display_limit: int = Field(
        default=5,
        ge=1,
        le=10,
        description="How many recommended templates the conversation router surfaces"
    )

    model_config = {
        "env_prefix": "FLOWSMITH_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    def get_output_path(self) -> Path:
        """Get output path as Path object."""
        return Path(self.output_dir)

    def get_templates_path(self) -> Optional[Path]:
        """Get the extra templates directory as Path object, if configured."""
        return Path(self.templates_dir) if self.templates_dir else None


def configure_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """Replace loguru's default sink with the flowsmith format.

    Only entry points call this; importing the core never touches logging sinks.
    """
    level = (level or settings.log_level).upper()
    log_file = log_file or settings.log_file

    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT)
    if log_file:
        logger.add(
            log_file,
            level=level,
            rotation="10 MB",
            retention="30 days",
            format=LOG_FORMAT,
        )


# Create singleton instance
settings = Settings()
