"""Structured logging configuration for accodes."""

import logging
from typing import List, Optional

import structlog
from structlog.stdlib import LoggerFactory


def configure_logging(log_level: str = "INFO", json_logs: bool = False) -> None:
    """Configure structured logging for ingestion runs."""

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(level=numeric_level)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
    ]

    if json_logs:
        # JSON lines for log shipping
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        logger_factory=LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def get_audit_logger(component: str) -> structlog.BoundLogger:
    """Get a logger bound to a pipeline component."""
    logger = structlog.get_logger(component)
    return logger.bind(component=component, audit=True)


def log_batch_committed(
    logger: structlog.BoundLogger,
    document_id: int,
    page_numbers: List[int],
    total_loaded: int,
    commit_time_ms: float,
) -> None:
    """Log one committed page batch."""
    logger.info(
        "batch_committed",
        document_id=document_id,
        rows=len(page_numbers),
        first_page=page_numbers[0] if page_numbers else None,
        last_page=page_numbers[-1] if page_numbers else None,
        total_loaded=total_loaded,
        commit_time_ms=commit_time_ms,
        event_type="batch_commit",
    )


def log_batch_failed(
    logger: structlog.BoundLogger,
    document_id: Optional[int],
    page_numbers: List[int],
    error: BaseException,
) -> None:
    """Log a rolled-back page batch with every page it carried."""
    logger.error(
        "batch_failed",
        document_id=document_id,
        page_numbers=page_numbers,
        error=str(error),
        error_type=type(error).__name__,
        event_type="batch_commit",
    )


def log_document_ingested(
    logger: structlog.BoundLogger,
    file_name: str,
    document_id: Optional[int],
    pages: int,
    batches: int,
    processing_time_ms: float,
) -> None:
    """Log document ingestion for audit trail."""
    logger.info(
        "document_ingested",
        file_name=file_name,
        document_id=document_id,
        pages=pages,
        batches=batches,
        processing_time_ms=processing_time_ms,
        event_type="document_ingestion",
    )
