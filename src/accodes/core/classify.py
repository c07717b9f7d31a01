"""Rule-based page classifier: raw page text -> PageAnnotation.

Every step below is a pure function over either the whole page text or its
lines, so each heuristic can be exercised on its own:

  text -> extract_section_headings()   ALL CAPS lines, minus references/codes
       -> extract_section_number()     "707.1 General." in the first lines
       -> extract_keywords()           fixed accessibility vocabulary
       -> detect_figure()              figure/diagram cross references
       -> count_mandatory_language()   shall / must / required / mandatory
       -> count_exception_language()   exception / permitted / allowed / not required
       -> classify_content_types()     definition / exception / requirement / normal
"""

import re
from typing import List, Optional, Tuple

from .models import ContentType, PageAnnotation, RawPage

# Accessibility vocabulary, canonical casing. Result order follows this list.
ACCESSIBILITY_KEYWORDS: Tuple[str, ...] = (
    "accessible",
    "accessibility",
    "ADA",
    "disabled",
    "wheelchair",
    "ramp",
    "handrail",
    "braille",
    "visual",
    "hearing",
    "mobility",
    "clearance",
    "width",
    "slope",
    "elevator",
    "signage",
    "compliance",
    "barrier-free",
    "universal design",
)

SECTION_NUMBER_SCAN_LINES = 10
MIN_HEADING_LENGTH = 3
LANGUAGE_THRESHOLD = 2
DEFINITION_LINE_THRESHOLD = 3

# \d, \w and \b match ASCII only; \s still covers Unicode spaces such as NBSP.
_UNICODE_SPACE = "[\\s\u00a0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000\ufeff]"


def _js_regex(pattern: str, flags: int = 0) -> "re.Pattern[str]":
    return re.compile(pattern.replace(r"\s", _UNICODE_SPACE), flags | re.ASCII)


_TABLE_RE = _js_regex(r"\bTABLE\b")

_HEADING_EXCLUDE_PATTERNS = [
    _js_regex(r"^FIGURE\s+[\d.]+", re.IGNORECASE),
    _js_regex(r"^TABLE\s+[\d.]+", re.IGNORECASE),
    _js_regex(r"^Fig\.\s*[\d.]+", re.IGNORECASE),
    _js_regex(r"^Diagram\s+[\d.]+", re.IGNORECASE),
    _js_regex(r"^Illustration\s+[\d.]+", re.IGNORECASE),
    _js_regex(r"^\d+$"),
    _js_regex(r"^page\s+\d+", re.IGNORECASE),
    _js_regex(r"^see\s+(figure|table|section)", re.IGNORECASE),
    _js_regex(r"^note:", re.IGNORECASE),
    _js_regex(r"^example:", re.IGNORECASE),
    _js_regex(r"^\(\w+\)$"),
    _js_regex(r"^EXCEPTIONS?:?$", re.IGNORECASE),
    # numbered subsection titles such as "603.4 Coat Hooks"
    _js_regex(r"\d+\.\d+"),
]

_UPPER_LETTER_RE = _js_regex(r"[A-Z]")

_SECTION_NUMBER_RE = _js_regex(r"^(\d+(?:\.\d+)+)\s+[A-Za-z]")

_KEYWORD_PATTERNS: List[Tuple[str, re.Pattern]] = [
    (keyword, _js_regex(r"\b" + re.escape(keyword.lower()) + r"\b", re.IGNORECASE))
    for keyword in ACCESSIBILITY_KEYWORDS
]

_FIGURE_PATTERNS = [
    _js_regex(r"FIGURE\s+\d+", re.IGNORECASE),
    _js_regex(r"Fig\.\s*\d+", re.IGNORECASE),
    _js_regex(r"see\s+figure", re.IGNORECASE),
    _js_regex(r"shown\s+in\s+figure", re.IGNORECASE),
    _js_regex(r"diagram\s+\d+", re.IGNORECASE),
    _js_regex(r"illustration", re.IGNORECASE),
]

_MANDATORY_PATTERNS = [
    _js_regex(r"\bshall\b", re.IGNORECASE),
    _js_regex(r"\bmust\b", re.IGNORECASE),
    _js_regex(r"\brequired\b", re.IGNORECASE),
    _js_regex(r"\bmandatory\b", re.IGNORECASE),
]

_EXCEPTION_PATTERNS = [
    _js_regex(r"\bexception\b", re.IGNORECASE),
    _js_regex(r"\bpermitted\b", re.IGNORECASE),
    _js_regex(r"\ballowed\b", re.IGNORECASE),
    _js_regex(r"\bnot required\b", re.IGNORECASE),
]

_DEFINITIONS_MARKER_RE = _js_regex(r"\bdefinitions?\b", re.IGNORECASE)
_MEANS_FOLLOWING_RE = _js_regex(r"\bmeans\b.*following", re.IGNORECASE)
_GLOSSARY_LINE_RE = _js_regex(r"^[A-Z](?:[A-Za-z]|\s)+\.\s+")


def split_lines(text: str) -> List[str]:
    """Split page text into lines exactly as the extractor joined them."""
    return text.split("\n")


def has_table(text: str) -> bool:
    return _TABLE_RE.search(text) is not None


def is_excluded_line(line: str) -> bool:
    """True if a trimmed line is a reference, page number or numbered code, never a heading."""
    if len(line) < MIN_HEADING_LENGTH:
        return True
    return any(pattern.search(line) for pattern in _HEADING_EXCLUDE_PATTERNS)


def is_heading_line(line: str) -> bool:
    """ALL CAPS with at least one letter; `line` must already be trimmed."""
    if is_excluded_line(line):
        return False
    return line == line.upper() and _UPPER_LETTER_RE.search(line) is not None


def extract_section_headings(text: str) -> List[str]:
    """
    Collect ALL CAPS heading lines in page order, without duplicates.

    On a page containing a TABLE only the first heading is kept; the ALL CAPS
    rows below it are column headers.
    """
    table_page = has_table(text)
    headings: List[str] = []

    for raw_line in split_lines(text):
        line = raw_line.strip()
        if not is_heading_line(line):
            continue
        if line not in headings:
            headings.append(line)
        if table_page:
            break

    return headings


def extract_section_number(text: str) -> Optional[str]:
    """Return the dotted section code (e.g. "707.1") found in the first non-blank lines."""
    lines = [line.strip() for line in split_lines(text) if line.strip()]
    for line in lines[:SECTION_NUMBER_SCAN_LINES]:
        match = _SECTION_NUMBER_RE.match(line)
        if match:
            return match.group(1)
    return None


def extract_keywords(text: str) -> List[str]:
    """Vocabulary terms present in the text, each at most once."""
    return [keyword for keyword, pattern in _KEYWORD_PATTERNS if pattern.search(text)]


def detect_figure(text: str) -> bool:
    return any(pattern.search(text) for pattern in _FIGURE_PATTERNS)


def _count_matches(patterns: List[re.Pattern], text: str) -> int:
    # Each pattern scans the whole text on its own; overlapping hits are all counted.
    return sum(len(pattern.findall(text)) for pattern in patterns)


def count_mandatory_language(text: str) -> int:
    return _count_matches(_MANDATORY_PATTERNS, text)


def count_exception_language(text: str) -> int:
    return _count_matches(_EXCEPTION_PATTERNS, text)


def is_definition_page(text: str) -> bool:
    if _DEFINITIONS_MARKER_RE.search(text) or _MEANS_FOLLOWING_RE.search(text):
        return True
    glossary_lines = sum(1 for line in split_lines(text) if _GLOSSARY_LINE_RE.match(line))
    return glossary_lines > DEFINITION_LINE_THRESHOLD


def classify_content_types(
    text: str,
    mandatory_language_count: int,
    exception_language_count: int,
) -> List[ContentType]:
    """Return every applicable content tag, or ["normal"] when none applies."""
    types: List[ContentType] = []

    if is_definition_page(text):
        types.append("definition")
    if exception_language_count >= LANGUAGE_THRESHOLD:
        types.append("exception")
    if mandatory_language_count >= LANGUAGE_THRESHOLD:
        types.append("requirement")

    if not types:
        types.append("normal")
    return types


def classify_page(page: RawPage) -> PageAnnotation:
    """Annotate one page. Depends only on the page's own text."""
    text = page.text
    keywords = extract_keywords(text)
    mandatory_count = count_mandatory_language(text)
    exception_count = count_exception_language(text)

    return PageAnnotation(
        page_number=page.page_number,
        raw_text=text,
        section_headings=tuple(extract_section_headings(text)),
        section_number=extract_section_number(text),
        content_types=tuple(classify_content_types(text, mandatory_count, exception_count)),
        keywords=tuple(keywords),
        keyword_count=len(keywords),
        has_figure=detect_figure(text),
        mandatory_language_count=mandatory_count,
        exception_language_count=exception_count,
    )
