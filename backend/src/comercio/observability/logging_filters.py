# backend/src/comercio/observability/logging_filters.py
import logging

class CorrelationIdLogFilter(logging.Filter):
    """
    Garantiza 'correlation_id' en cada LogRecord para que el formateador
    pueda usar %(correlation_id)s aunque el record venga de uvicorn/httpx.
    """
    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "correlation_id", None):
            record.correlation_id = "-"
        return True
