"""Topic orchestration for a full ingestion run."""

from .models import RunSummary, TopicResult
from .orchestrator import RunContext, TopicOrchestrator, run_timestamp, topic_filename

__all__ = [
    "RunContext",
    "RunSummary",
    "TopicOrchestrator",
    "TopicResult",
    "run_timestamp",
    "topic_filename",
]
