"""
Prometheus metrics for grading and progress tracking.
Expose with: start_metrics_server(port=9108)
"""
from prometheus_client import Counter, start_http_server

# Graded submissions by outcome (passed / failed)
quiz_graded_total = Counter(
    "trailhub_quiz_graded_total",
    "Total number of graded quiz submissions",
    ["outcome"],
)

# Progress writes by source (manual, video, quiz)
progress_writes_total = Counter(
    "trailhub_progress_writes_total",
    "Total number of user progress upserts",
    ["source"],
)

# Writes refused because the content (or an ancestor) is blocked
blocked_writes_total = Counter(
    "trailhub_blocked_writes_total",
    "Total number of progress writes refused for blocked content",
)

def start_metrics_server(port: int = 9108) -> None:
    """Start Prometheus metrics HTTP server on the given port."""
    start_http_server(port)

def mark_graded(passed: bool) -> None:
    """Increment the graded counter for a pass or fail outcome."""
    quiz_graded_total.labels(outcome="passed" if passed else "failed").inc()

def mark_progress_write(source: str) -> None:
    """Increment the progress upsert counter for a given write source."""
    progress_writes_total.labels(source=source).inc()

def mark_blocked_write() -> None:
    """Increment the refused blocked-write counter."""
    blocked_writes_total.inc()
