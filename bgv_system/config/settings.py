"""Application settings using Pydantic BaseSettings for environment variable management."""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Global application settings loaded from environment variables.

    Attributes:
        gemini_api_key: Google Gemini API key (optional, advisory analysis only)
        gemini_model: Gemini model used for advisory narratives
        advisory_enabled: Run the advisory narrative stage after comparison
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log output format (json for production, console for dev)
        data_dir: Directory for JSON persistence (memory-only when unset)
        sender_address: From address used for outbound verification mail
        reply_subject_keywords: Subject phrases identifying HR replies
        inbox_poll_minutes: Interval between mailbox polls
        reminder_enabled: Enable the reminder/escalation ladder
        reminder_interval_hours: Hours between outreach attempts
        max_reminders: Reminders sent before escalating
        reminder_sweep_minutes: Interval between reminder sweeps
        default_service_tier: Tier applied to clients created without one
    """

    gemini_api_key: str | None = Field(
        default=None,
        description="Google Gemini API key"
    )
    gemini_model: str = Field(
        default="gemini-2.5-flash",
        description="Gemini model identifier for advisory analysis"
    )
    advisory_enabled: bool = Field(
        default=False,
        description="Enable qualitative advisory analysis of discrepancies"
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    log_format: str = Field(
        default="json",
        description="Log output format: json or console"
    )
    data_dir: str | None = Field(
        default=None,
        description="Directory holding records.json and activity_log.json"
    )
    sender_address: str = Field(
        default="noreply@trustcheck.ai",
        description="From address for verification requests"
    )
    reply_subject_keywords: list[str] = Field(
        default=["Background Verification", "Employment Verification"],
        description="Subject phrases that mark a message as a candidate HR reply"
    )
    inbox_poll_minutes: int = Field(
        default=5,
        description="Minutes between mailbox polls"
    )
    reminder_enabled: bool = Field(
        default=True,
        description="Send reminders and escalations for unanswered requests"
    )
    reminder_interval_hours: float = Field(
        default=24,
        description="Hours since the last outreach before another is sent"
    )
    max_reminders: int = Field(
        default=2,
        description="Reminders sent before a single escalation"
    )
    reminder_sweep_minutes: int = Field(
        default=60,
        description="Minutes between reminder sweeps"
    )
    default_service_tier: str = Field(
        default="STANDARD",
        description="Service tier for clients created without one"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


# Singleton instance - import this throughout the application
settings = Settings()
