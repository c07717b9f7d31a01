"""Read-side queries over ingested documents and pages."""

import json
import logging
from typing import List, Dict, Any, Optional

import psycopg

logger = logging.getLogger(__name__)

_PAGE_SUMMARY_COLUMNS = [
    "document_id",
    "page_number",
    "section_headings",
    "section_number",
    "content_type",
    "keyword_count",
    "keywords",
]

_JSON_COLUMNS = {"section_headings", "content_type", "keywords"}


def _decode_page_row(row: tuple) -> Dict[str, Any]:
    page = dict(zip(_PAGE_SUMMARY_COLUMNS, row))
    for column in _JSON_COLUMNS:
        page[column] = json.loads(page[column]) if page[column] else []
    return page


def get_most_relevant_pages(db_url: str, limit: int = 5, min_keywords: int = 1) -> List[Dict[str, Any]]:
    """
    Pages ranked by the number of distinct accessibility keywords.

    Args:
        db_url: PostgreSQL connection URL
        limit: Maximum number of pages to return
        min_keywords: Only pages with at least this many keywords

    Returns:
        List of page dictionaries, JSON columns decoded
    """
    with psycopg.connect(db_url) as conn:
        with conn.cursor() as cur:
            cur.execute(f"""
                SELECT {", ".join(_PAGE_SUMMARY_COLUMNS)}
                FROM page_content
                WHERE keyword_count >= %s
                ORDER BY keyword_count DESC, document_id, page_number
                LIMIT %s
            """, (min_keywords, limit))
            rows = cur.fetchall()

    pages = [_decode_page_row(row) for row in rows]
    logger.info(f"Found {len(pages)} pages with at least {min_keywords} keywords")
    return pages


def get_page_text(db_url: str, page_number: int, document_id: Optional[int] = None) -> List[Dict[str, Any]]:
    """Raw text of a page number, across documents unless one is given."""
    sql = "SELECT document_id, page_number, raw_text FROM page_content WHERE page_number = %s"
    params: list = [page_number]
    if document_id is not None:
        sql += " AND document_id = %s"
        params.append(document_id)
    sql += " ORDER BY document_id"

    with psycopg.connect(db_url) as conn:
        with conn.cursor() as cur:
            cur.execute(sql, params)
            rows = cur.fetchall()

    return [
        {"document_id": row[0], "page_number": row[1], "raw_text": row[2]}
        for row in rows
    ]


def _average(value: Any) -> float:
    # AVG over numeric columns comes back as Decimal, or NULL on an empty table
    return round(float(value), 2) if value is not None else 0.0


def list_documents(db_url: str) -> List[Dict[str, Any]]:
    """All ingested documents, oldest first."""
    with psycopg.connect(db_url) as conn:
        with conn.cursor() as cur:
            cur.execute("""
                SELECT id, file_name, total_pages, processed_at
                FROM documents
                ORDER BY id
            """)
            rows = cur.fetchall()

    return [
        {"id": row[0], "file_name": row[1], "total_pages": row[2], "processed_at": row[3]}
        for row in rows
    ]


def get_ingest_stats(db_url: str) -> Dict[str, Any]:
    """Document and page counts, plus a breakdown of stored content types."""
    with psycopg.connect(db_url) as conn:
        with conn.cursor() as cur:
            cur.execute("SELECT COUNT(*) FROM documents")
            total_documents = cur.fetchone()[0]

            cur.execute("""
                SELECT COUNT(*),
                       COUNT(*) FILTER (WHERE has_figure),
                       COUNT(DISTINCT section_number),
                       AVG(keyword_count),
                       AVG(mandatory_language_count),
                       AVG(exception_language_count)
                FROM page_content
            """)
            total_pages, figure_pages, unique_sections, avg_keywords, avg_mandatory, avg_exception = cur.fetchone()

            cur.execute("SELECT content_type, COUNT(*) FROM page_content GROUP BY content_type")
            type_rows = cur.fetchall()

    content_types: Dict[str, int] = {}
    for serialized, count in type_rows:
        for tag in json.loads(serialized):
            content_types[tag] = content_types.get(tag, 0) + count

    return {
        "total_documents": total_documents,
        "total_pages": total_pages,
        "figure_pages": figure_pages,
        "unique_sections": unique_sections,
        "avg_keywords_per_page": _average(avg_keywords),
        "avg_mandatory_per_page": _average(avg_mandatory),
        "avg_exception_per_page": _average(avg_exception),
        "content_types": content_types,
    }
