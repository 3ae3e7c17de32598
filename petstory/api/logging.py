"""Structured logging infrastructure for the API layer.

Provides JSON-formatted logging for production and human-readable
logging for development, plus a StoryEventLogger helper for story
generation events.
"""

import json
import logging
import sys
from datetime import datetime, timezone

# Extra record attributes copied into JSON log lines when present
STRUCTURED_FIELDS = (
    "request_id",
    "pet_name",
    "stage",
    "duration",
    "method",
    "path",
    "status_code",
    "upstream",
    "error_type",
    "client_ip",
)


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for name in STRUCTURED_FIELDS:
            if hasattr(record, name):
                log_data[name] = getattr(record, name)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def configure_logging(json_format: bool = True, level: int = logging.INFO) -> None:
    """Configure structured logging for the application."""
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )

    root_logger.addHandler(handler)


class StoryEventLogger:
    """Logger for story generation events with structured fields."""

    def __init__(self):
        self.logger = logging.getLogger("story_generation")

    def generation_started(self, pet_name: str, length: str) -> None:
        self.logger.info(
            f"Story generation started ({length})",
            extra={"pet_name": pet_name, "stage": "started"},
        )

    def generation_completed(self, pet_name: str, word_count: int, duration: float) -> None:
        self.logger.info(
            f"Story generation completed: {word_count} words",
            extra={"pet_name": pet_name, "stage": "completed", "duration": round(duration, 2)},
        )

    def generation_failed(self, pet_name: str, error: Exception, stage: str) -> None:
        self.logger.error(
            f"Story generation failed at {stage}: {error}",
            extra={"pet_name": pet_name, "stage": stage, "error_type": type(error).__name__},
        )

    def story_flagged(self, pet_name: str) -> None:
        self.logger.warning(
            "Generated story flagged by moderation",
            extra={"pet_name": pet_name, "stage": "moderation"},
        )


# Global story event logger instance
story_logger = StoryEventLogger()
