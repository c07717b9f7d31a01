"""Transactional loader: one document record, then atomic page batches."""

import time
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from .errors import LoaderStateError, NotInitializedError, StorageError
from .logging_config import get_audit_logger, log_batch_committed, log_batch_failed
from .models import DocumentMeta, PageAnnotation
from .storage import PageStore

logger = get_audit_logger("loader")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PageLoader:
    """
    Persist page annotations for a single document.

    Lifecycle: initialize() once, load_batch() any number of times,
    finalize() once. Each load_batch() call is one storage transaction.
    """

    def __init__(self, store: PageStore, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.clock = clock
        self.document_id: Optional[int] = None
        self.inserted_count = 0
        self.batch_count = 0
        self.finalized = False

    @property
    def initialized(self) -> bool:
        return self.document_id is not None

    def initialize(self, meta: DocumentMeta) -> int:
        """Create the document record and remember its id for all page rows."""
        if self.finalized:
            raise LoaderStateError("Loader already finalized")
        if self.initialized:
            raise LoaderStateError(f"Loader already initialized for document {self.document_id}")

        try:
            document_id = self.store.create_document(
                meta.file_name, meta.total_pages, self.clock()
            )
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Document insertion failed for '{meta.file_name}'", cause=e) from e

        self.document_id = document_id
        self.inserted_count = 0
        self.batch_count = 0

        logger.info(
            "document_initialized",
            document_id=self.document_id,
            file_name=meta.file_name,
            total_pages=meta.total_pages,
        )
        return self.document_id

    def load_batch(self, pages: Sequence[PageAnnotation]) -> int:
        """
        Insert a batch of annotations as one atomic unit.

        Returns the number of rows committed. Raises NotInitializedError before
        initialize(), LoaderStateError after finalize(), and StorageError
        (carrying every page number of the batch) if the commit failed.
        """
        if self.finalized:
            raise LoaderStateError("Loader already finalized; no further pages accepted")
        if self.document_id is None:
            raise NotInitializedError()
        if not pages:
            return 0

        page_numbers: List[int] = [page.page_number for page in pages]
        start_time = time.time()
        try:
            self.store.insert_page_batch(self.document_id, pages)
        except StorageError as e:
            if not e.page_numbers:
                e.page_numbers = page_numbers
            log_batch_failed(logger, self.document_id, page_numbers, e)
            raise
        except Exception as e:
            log_batch_failed(logger, self.document_id, page_numbers, e)
            raise StorageError(
                f"Batch insertion failed for {len(pages)} pages",
                cause=e,
                page_numbers=page_numbers,
            ) from e

        self.inserted_count += len(pages)
        self.batch_count += 1
        log_batch_committed(
            logger,
            self.document_id,
            page_numbers,
            self.inserted_count,
            (time.time() - start_time) * 1000,
        )
        return len(pages)

    def finalize(self) -> int:
        """Close the loader and report the total number of committed rows."""
        self.finalized = True
        logger.info(
            "loader_finalized",
            document_id=self.document_id,
            total_loaded=self.inserted_count,
            batches=self.batch_count,
        )
        return self.inserted_count
