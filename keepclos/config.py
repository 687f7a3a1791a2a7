from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parent.parent / ".env.local"


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    debug: bool = False
    LOG_LEVEL: str = "INFO"

    # =================================================================
    # RELATIONSHIP SCORER - weights are normalized, so any ratio works
    # =================================================================
    SCORER_RECENCY_WEIGHT: float = 0.4
    SCORER_FREQUENCY_WEIGHT: float = 0.3
    SCORER_ENGAGEMENT_WEIGHT: float = 0.3
    SCORER_HALF_LIFE_DAYS: float = 30.0
    SCORER_FREQUENCY_WINDOW_DAYS: float = 90.0

    # =================================================================
    # REMINDER SCHEDULER
    # =================================================================
    SCHEDULER_EVALUATION_INTERVAL_MS: int = 5 * 60 * 1000  # 5 minutes
    SCHEDULER_BATCH_SIZE: int = 100
    SCHEDULER_ENABLE_LOGGING: bool = False
    REMINDER_COOLDOWN_HOURS: float = 24.0

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def get_scorer_config(self):
        """
        Build the relationship scorer configuration.

        Raises:
            InvalidParameterError: If the configured weights or windows are invalid
        """
        from keepclos.features.relationships.pipeline.scoring.service import ScorerConfig

        return ScorerConfig(
            recency_weight=self.SCORER_RECENCY_WEIGHT,
            frequency_weight=self.SCORER_FREQUENCY_WEIGHT,
            engagement_weight=self.SCORER_ENGAGEMENT_WEIGHT,
            half_life=self.SCORER_HALF_LIFE_DAYS,
            frequency_window=self.SCORER_FREQUENCY_WINDOW_DAYS,
        )

    def get_scheduler_config(self):
        """
        Build the reminder scheduler configuration.
        Adjust environment-specific settings based on self.environment.
        """
        from keepclos.features.reminders.services.scheduler import SchedulerConfig

        enable_logging = self.SCHEDULER_ENABLE_LOGGING
        if self.environment == "development" or self.debug:
            # Always surface cycle summaries locally
            enable_logging = True

        return SchedulerConfig(
            evaluation_interval_ms=self.SCHEDULER_EVALUATION_INTERVAL_MS,
            batch_size=self.SCHEDULER_BATCH_SIZE,
            enable_logging=enable_logging,
            cooldown_hours=self.REMINDER_COOLDOWN_HOURS,
        )


settings = Settings()

# =================================================================
# QUICK CONFIGURATION REFERENCE
# =================================================================
"""
All values can be overridden through the environment or .env.local:

RECENCY-HEAVY (nudges as soon as someone goes quiet):
    SCORER_RECENCY_WEIGHT=0.6
    SCORER_FREQUENCY_WEIGHT=0.2
    SCORER_ENGAGEMENT_WEIGHT=0.2
    SCORER_HALF_LIFE_DAYS=14

DEPTH-HEAVY (rewards long calls and meetings):
    SCORER_RECENCY_WEIGHT=0.2
    SCORER_ENGAGEMENT_WEIGHT=0.6

FAST LOCAL LOOP (manual testing):
    SCHEDULER_EVALUATION_INTERVAL_MS=10000
    REMINDER_COOLDOWN_HOURS=0.01
"""
