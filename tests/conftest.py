from datetime import datetime, timezone
from typing import List, Optional, Sequence

import pytest

from accodes.core.errors import StorageError
from accodes.core.models import DocumentMeta, PageAnnotation, RawPage
from accodes.core.storage import InMemoryPageStore

FIXED_TIME = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


class FailingPageStore(InMemoryPageStore):
    """In-memory store whose n-th batch insert fails before touching any row."""

    def __init__(self, fail_on_call: int, error: Optional[BaseException] = None):
        super().__init__()
        self.fail_on_call = fail_on_call
        self.error = error
        self.calls = 0

    def insert_page_batch(self, document_id: int, rows: Sequence[PageAnnotation]) -> None:
        self.calls += 1
        if self.calls == self.fail_on_call:
            if self.error is not None:
                raise self.error
            raise StorageError("simulated commit failure", page_numbers=[r.page_number for r in rows])
        super().insert_page_batch(document_id, rows)


def make_pages(count: int, start: int = 1) -> List[RawPage]:
    return [
        RawPage(page_number=n, text=f"RAMPS\n405.{n} Slope. Ramp runs shall have a running slope.")
        for n in range(start, start + count)
    ]


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_TIME


@pytest.fixture
def store():
    return InMemoryPageStore()


@pytest.fixture
def meta():
    return DocumentMeta(file_name="FBC-115-163.pdf", total_pages=23)
