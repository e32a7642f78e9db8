"""Configuration settings for the trainer."""
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(env_file)


# Status ladder: 1 = "Not Learned" ... 7 = "Mastered"
STATUS_LABELS = {
    1: "Not Learned",
    2: "Beginner",
    3: "Basic",
    4: "Intermediate",
    5: "Advanced",
    6: "Well Known",
    7: "Mastered",
}

QUESTION_TYPE_NAMES = (
    "input_word",
    "choose_translation",
    "context_usage",
    "synonym_match",
    "audio_dictation",
    "manual",
)


def get_default_question_types() -> list[str]:
    """Get default question types from environment variable."""
    raw = os.getenv("DEFAULT_QUESTION_TYPES", "input_word")
    return [name.strip() for name in raw.split(",") if name.strip()]


@dataclass
class DatabaseSettings:
    """Database configuration settings."""
    url: str = os.getenv("DATABASE_URL", "sqlite:///vocabtrainer.db")
    echo: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = os.getenv("LOG_LEVEL", "INFO")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    dir: Optional[str] = os.getenv("LOG_DIR", None)
    rotation: str = os.getenv("LOG_ROTATION", "midnight")
    interval: int = int(os.getenv("LOG_INTERVAL", "1"))
    backup_count: int = int(os.getenv("LOG_BACKUP_COUNT", "7"))


@dataclass
class TrainingConfig:
    """Training session settings."""
    default_session_size: int = int(os.getenv("DEFAULT_SESSION_SIZE", "10"))
    min_status: int = int(os.getenv("MIN_STATUS", "1"))
    max_status: int = int(os.getenv("MAX_STATUS", "7"))
    retry_status_threshold: int = int(os.getenv("RETRY_STATUS_THRESHOLD", "2"))
    default_question_types: list[str] = field(default_factory=get_default_question_types)


@dataclass
class EnrichmentSettings:
    """Translation and dictionary lookup settings."""
    source_lang: str = os.getenv("SOURCE_LANG", "en")
    target_lang: str = os.getenv("TARGET_LANG", "uk")
    dictionary_api_url: str = os.getenv(
        "DICTIONARY_API_URL", "https://api.dictionaryapi.dev/api/v2/entries"
    )
    request_timeout: float = float(os.getenv("ENRICHMENT_TIMEOUT", "10"))
    translation_not_found: str = "No translation found."
    definition_not_found: str = "No definition found."


@dataclass
class MonitoringSettings:
    """Prometheus exporter settings."""
    enabled: bool = os.getenv("METRICS_ENABLED", "false").lower() == "true"
    port: int = int(os.getenv("METRICS_PORT", "9090"))


def get_database_settings() -> DatabaseSettings:
    """Get database settings."""
    return DatabaseSettings()


def get_logging_settings() -> LoggingSettings:
    """Get logging settings."""
    return LoggingSettings()


def get_training_settings() -> TrainingConfig:
    """Get training settings."""
    return TrainingConfig()


def get_enrichment_settings() -> EnrichmentSettings:
    """Get enrichment settings."""
    return EnrichmentSettings()


def get_monitoring_settings() -> MonitoringSettings:
    """Get monitoring settings."""
    return MonitoringSettings()


@dataclass
class Settings:
    """Main settings class that combines all configuration settings."""
    database: DatabaseSettings = field(default_factory=get_database_settings)
    logging: LoggingSettings = field(default_factory=get_logging_settings)
    training: TrainingConfig = field(default_factory=get_training_settings)
    enrichment: EnrichmentSettings = field(default_factory=get_enrichment_settings)
    monitoring: MonitoringSettings = field(default_factory=get_monitoring_settings)

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        if self.training.min_status > self.training.max_status:
            raise ValueError("MIN_STATUS cannot be greater than MAX_STATUS")

        if self.training.retry_status_threshold < self.training.min_status or \
           self.training.retry_status_threshold > self.training.max_status:
            raise ValueError("RETRY_STATUS_THRESHOLD must be between MIN_STATUS and MAX_STATUS")

        if self.training.default_session_size < 1:
            raise ValueError("DEFAULT_SESSION_SIZE must be positive")

        if not self.training.default_question_types:
            raise ValueError("DEFAULT_QUESTION_TYPES cannot be empty")

        for name in self.training.default_question_types:
            if name not in QUESTION_TYPE_NAMES:
                raise ValueError(f"Unknown question type in DEFAULT_QUESTION_TYPES: {name}")


# Create global settings instance
settings = Settings()
settings.validate()
