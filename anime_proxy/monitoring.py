"""Search event log: one JSON Lines entry per search request."""
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)

EventSource = Literal["database", "api", "none"]


class SearchEvent(BaseModel):
    """Single search request outcome."""

    request_id: str
    timestamp: str
    endpoint: str
    query: Optional[str] = None
    source: EventSource = "none"
    result_count: int = 0
    latency_ms: float
    success: bool = True
    error_message: Optional[str] = None


class SearchEventLogger:
    """Appends search events to `search_events.jsonl`; a no-op without a log directory."""

    def __init__(self, log_dir: Optional[Path] = None):
        """Initialize logger with an optional target directory."""
        self.log_dir = log_dir
        self.log_file: Optional[Path] = None
        if log_dir is not None:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            self.log_file = self.log_dir / "search_events.jsonl"
            logger.info(f"SearchEventLogger initialized: {self.log_file}")

    @property
    def enabled(self) -> bool:
        return self.log_file is not None

    def generate_request_id(self) -> str:
        """Generate a unique request identifier."""
        return str(uuid.uuid4())[:8]

    def log(self, event: SearchEvent) -> None:
        """Append event to the log file."""
        if self.log_file is None:
            return
        try:
            with open(self.log_file, "a", encoding="utf-8") as f:
                f.write(event.model_dump_json() + "\n")
        except Exception as e:
            logger.error(f"Failed to write search event: {e}")

    def create_event(
        self,
        endpoint: str,
        query: Optional[str],
        latency_ms: float,
        source: EventSource = "none",
        result_count: int = 0,
        success: bool = True,
        error_message: Optional[str] = None
    ) -> SearchEvent:
        """Create a SearchEvent with auto-generated timestamp and request ID."""
        return SearchEvent(
            request_id=self.generate_request_id(),
            timestamp=datetime.now(timezone.utc).isoformat(),
            endpoint=endpoint,
            query=query,
            source=source,
            result_count=result_count,
            latency_ms=latency_ms,
            success=success,
            error_message=error_message
        )
