"""Monitoring configuration for the trainer."""
from prometheus_client import Counter, Histogram, start_http_server

# Session metrics
sessions_started = Counter(
    "vocabtrainer_sessions_started_total",
    "Total number of training sessions started",
    ["kind"],  # "new" or "retry"
)

sessions_completed = Counter(
    "vocabtrainer_sessions_completed_total",
    "Total number of training sessions that reached completion",
)

session_size = Histogram(
    "vocabtrainer_session_size_words",
    "Number of words selected for a training session",
    buckets=[1, 5, 10, 20, 50, 100],
)

# Answer metrics
answers = Counter(
    "vocabtrainer_answers_total",
    "Total number of scored answers",
    ["question_type", "result"],
)

manual_status_changes = Counter(
    "vocabtrainer_manual_status_changes_total",
    "Total number of status changes made outside the quiz flow",
)

# Word management metrics
words_deleted = Counter(
    "vocabtrainer_words_deleted_total",
    "Total number of words soft-deleted during training",
)

# Enrichment metrics
enrichment_lookups = Counter(
    "vocabtrainer_enrichment_lookups_total",
    "Total number of translation/definition lookups",
    ["kind", "outcome"],  # kind: translation/definition, outcome: found/not_found/failed
)

# Error metrics
error_count = Counter(
    "vocabtrainer_errors_total",
    "Total number of recoverable errors encountered",
    ["error_type"],
)


def start_monitoring(port: int = 9090) -> None:
    """Start the Prometheus metrics server."""
    start_http_server(port)
