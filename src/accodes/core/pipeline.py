"""Ingest driver: extract -> classify -> accumulate -> load, one page at a time."""

import time
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Optional

from .batching import BatchAccumulator, DEFAULT_BATCH_SIZE
from .classify import classify_page
from .errors import LoaderStateError, NotInitializedError
from .extract import open_pdf
from .loader import PageLoader, utcnow
from .logging_config import get_audit_logger, log_document_ingested
from .models import DocumentMeta, IngestResult, PageAnnotation, RawPage
from .storage import PageStore

logger = get_audit_logger("pipeline")

Classifier = Callable[[RawPage], PageAnnotation]


class PipelineState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    ACCUMULATING = "accumulating"
    FLUSHING = "flushing"
    FINALIZED = "finalized"
    FAILED = "failed"


class IngestPipeline:
    """
    Drive a single document through classification and batched loading.

    The driver owns the batch buffer. A page is only pulled from the source
    after the previous one has been classified and buffered, and a flush
    blocks until its transaction finished, so flushes never overlap.
    """

    def __init__(
        self,
        store: PageStore,
        batch_size: Optional[int] = DEFAULT_BATCH_SIZE,
        classifier: Classifier = classify_page,
        clock=utcnow,
    ):
        self.accumulator = BatchAccumulator(batch_size)
        self.loader = PageLoader(store, clock=clock)
        self.classifier = classifier
        self.state = PipelineState.UNINITIALIZED

    @property
    def document_id(self) -> Optional[int]:
        return self.loader.document_id

    def start(self, meta: DocumentMeta) -> int:
        """Persist the document record; called with the first page."""
        if self.state is not PipelineState.UNINITIALIZED:
            raise LoaderStateError(f"Cannot start pipeline in state '{self.state.value}'")
        document_id = self.loader.initialize(meta)
        self.state = PipelineState.INITIALIZED
        return document_id

    def process_page(self, page: RawPage, meta: Optional[DocumentMeta] = None) -> None:
        """Classify one page and buffer it, flushing when the batch is full."""
        if self.state in (PipelineState.FINALIZED, PipelineState.FAILED):
            raise LoaderStateError(f"Pipeline is {self.state.value}; no further pages accepted")
        if self.state is PipelineState.UNINITIALIZED:
            if meta is None:
                raise NotInitializedError("First page arrived without document metadata")
            self.start(meta)

        annotation = self.classifier(page)
        ready = self.accumulator.add(annotation)
        self.state = PipelineState.ACCUMULATING
        if ready:
            self.flush()

    def flush(self) -> int:
        """
        Hand the whole buffer to the loader; cleared only once committed.

        A failed commit aborts the pipeline, so the batch is never resent.
        """
        if self.accumulator.is_empty:
            return 0
        self.state = PipelineState.FLUSHING
        try:
            loaded = self.loader.load_batch(self.accumulator.pending())
        except BaseException:
            self.abort()
            raise
        self.accumulator.clear()
        self.state = PipelineState.ACCUMULATING
        return loaded

    def finish(self) -> int:
        """Flush the final partial batch and finalize; returns total rows loaded."""
        if self.state in (PipelineState.FINALIZED, PipelineState.FAILED):
            raise LoaderStateError(f"Pipeline is {self.state.value}")
        self.flush()
        total = self.loader.finalize()
        self.state = PipelineState.FINALIZED
        return total

    def abort(self) -> None:
        """Drop buffered pages without committing them."""
        if self.accumulator:
            logger.warning(
                "pipeline_aborted",
                document_id=self.document_id,
                discarded_pages=self.accumulator.page_numbers(),
            )
        self.accumulator.clear()
        self.state = PipelineState.FAILED

    def run(self, pages: Iterable[RawPage], meta: DocumentMeta) -> IngestResult:
        """Consume the page stream to the end and return the run summary."""
        start_time = time.time()
        try:
            for page in pages:
                self.process_page(page, meta)
            total = self.finish()
        except BaseException:
            self.abort()
            raise

        elapsed_ms = (time.time() - start_time) * 1000
        log_document_ingested(
            logger,
            meta.file_name,
            self.document_id,
            total,
            self.loader.batch_count,
            elapsed_ms,
        )
        return IngestResult(
            document_id=self.document_id,
            file_name=meta.file_name,
            pages_loaded=total,
            batches_committed=self.loader.batch_count,
            elapsed_ms=elapsed_ms,
        )


def ingest_pdf(
    pdf_path: Path,
    store: PageStore,
    batch_size: Optional[int] = DEFAULT_BATCH_SIZE,
) -> IngestResult:
    """Ingest a single PDF file into `store`."""
    logger.info("ingest_started", pdf_path=str(pdf_path), batch_size=batch_size)
    with open_pdf(pdf_path) as (meta, pages):
        return IngestPipeline(store, batch_size=batch_size).run(pages, meta)
