import pytest
from pydantic import ValidationError

from accodes.core.classify import (
    classify_content_types,
    classify_page,
    count_exception_language,
    count_mandatory_language,
    detect_figure,
    extract_keywords,
    extract_section_headings,
    extract_section_number,
    has_table,
    is_definition_page,
    is_excluded_line,
    is_heading_line,
)
from accodes.core.models import PageAnnotation, RawPage


def _page(text: str, page_number: int = 1) -> RawPage:
    return RawPage(page_number=page_number, text=text)


class TestSectionHeadings:
    def test_all_caps_lines_without_numbered_titles(self):
        text = "\n".join(["WATER CLOSETS", "603.4 Coat Hooks", "THIS IS A HEADING", "page 12"])
        assert extract_section_headings(text) == ["WATER CLOSETS", "THIS IS A HEADING"]

    def test_numbered_all_caps_line_is_not_a_heading(self):
        assert extract_section_headings("603.4 COAT HOOKS\nSHOWERS") == ["SHOWERS"]

    def test_table_page_keeps_only_first_heading(self):
        text = "\n".join([
            "TABLE 604.1",
            "DOORS",
            "WIDTH   HEIGHT   MATERIAL",
            "EXTRA COLUMN",
            "ANOTHER HEADING",
        ])
        assert extract_section_headings(text) == ["DOORS"]

    def test_table_must_be_a_whole_upper_case_word(self):
        assert not has_table("TABLES AND CHAIRS")
        assert not has_table("see table below")
        assert extract_section_headings("TABLES AND CHAIRS\nSEATING") == ["TABLES AND CHAIRS", "SEATING"]

    def test_duplicates_and_non_heading_lines_ignored(self):
        text = "\n".join(["RAMPS", "ramps", "RAMPS", "note: this is a note", "FIGURE 3"])
        assert extract_section_headings(text) == ["RAMPS"]

    def test_first_occurrence_order_is_kept(self):
        text = "STAIRWAYS\nRAMPS\nSTAIRWAYS\nELEVATORS"
        assert extract_section_headings(text) == ["STAIRWAYS", "RAMPS", "ELEVATORS"]

    def test_lines_are_trimmed(self):
        assert extract_section_headings("   STAIRWAYS   \nbody text") == ["STAIRWAYS"]

    @pytest.mark.parametrize("line", [
        "FIGURE 604.5",
        "Fig. 12",
        "DIAGRAM 3",
        "ILLUSTRATION 2.1",
        "123",
        "PAGE 45",
        "SEE FIGURE 4",
        "SEE SECTION 1104",
        "NOTE: VERIFY",
        "EXAMPLE: RAMP",
        "(a)",
        "(12)",
        "EXCEPTION",
        "EXCEPTIONS:",
        "1104.3.2 SPECIAL ROOMS",
        "AB",
    ])
    def test_excluded_lines(self, line):
        assert is_excluded_line(line)
        assert not is_heading_line(line)

    def test_heading_needs_a_letter_and_upper_case(self):
        assert is_heading_line("ACCESSIBLE ROUTES")
        assert not is_heading_line("Accessible Routes")
        assert not is_heading_line("1234-5678 ---")

    def test_empty_text(self):
        assert extract_section_headings("") == []

    def test_non_ascii_digits_are_not_section_codes(self):
        text = "\u0666\u0660\u0663.\u0664 COAT HOOKS\n\u0661\u0662"
        assert extract_section_headings(text) == ["\u0666\u0660\u0663.\u0664 COAT HOOKS"]
        assert extract_section_number("\u0667\u0660\u0667.\u0661 General.") is None


class TestSectionNumber:
    def test_detected_from_first_line(self):
        text = "707.1 General. Scope of Section\nAdditional text here"
        assert extract_section_number(text) == "707.1"

    def test_first_match_wins(self):
        text = "intro\n1104.3.2 Special rooms\n707.1 General."
        assert extract_section_number(text) == "1104.3.2"

    def test_blank_lines_are_not_counted(self):
        text = "\n\n".join(["filler"] * 9 + ["502.2 Vehicle Spaces."])
        assert extract_section_number(text) == "502.2"

    def test_only_first_ten_lines_scanned(self):
        text = "\n".join(["filler"] * 10 + ["502.2 Vehicle Spaces."])
        assert extract_section_number(text) is None

    def test_requires_dotted_code_and_a_following_word(self):
        assert extract_section_number("707 General") is None
        assert extract_section_number("707.1") is None
        assert extract_section_number("707.1 (a)") is None


class TestKeywords:
    def test_distinct_keywords_with_canonical_casing(self):
        text = "\n".join([
            "Accessible design improves accessibility.",
            "ADA compliance and wheelchair access are required.",
            "Signage must be readable.",
        ])
        assert extract_keywords(text) == [
            "accessible", "accessibility", "ADA", "wheelchair", "signage", "compliance",
        ]

    def test_repeated_term_counted_once(self):
        annotation = classify_page(_page("ramp RAMP Ramp ramp ramps"))
        assert annotation.keywords == ("ramp",)
        assert annotation.keyword_count == 1

    def test_whole_words_only(self):
        assert extract_keywords("Canada handrails widths") == []

    def test_phrases(self):
        assert extract_keywords("Barrier-free entrances follow Universal Design.") == [
            "barrier-free", "universal design",
        ]


class TestFigureDetection:
    @pytest.mark.parametrize("text", [
        "Refer to FIGURE 12 in the appendix.",
        "as in Fig. 3",
        "See figure for details.",
        "as shown in figure 4",
        "Diagram 7",
        "illustrations only",
    ])
    def test_figure_references(self, text):
        assert detect_figure(text)

    def test_non_breaking_space_counts_as_whitespace(self):
        assert detect_figure("Refer to FIGURE\u00a012.")
        assert extract_section_number("707.1\u00a0General.") == "707.1"

    def test_non_ascii_digits_are_not_figure_numbers(self):
        assert not detect_figure("FIGURE \u0661\u0662")

    def test_plain_text(self):
        assert not detect_figure("Doors shall have a clear width of 32 inches.")


class TestLanguageCounts:
    def test_mandatory_terms_counted_per_occurrence(self):
        text = "The door shall be accessible and shall provide clearance.\nIt must comply with required standards."
        assert count_mandatory_language(text) == 4

    def test_overlapping_not_required_counts_in_both(self):
        assert count_mandatory_language("This is not required.") == 1
        assert count_exception_language("This is not required.") == 1

    def test_exception_terms_case_insensitive(self):
        assert count_exception_language("EXCEPTION: Permitted where ALLOWED.") == 3

    def test_whole_words_only(self):
        assert count_mandatory_language("shallow musty requirements") == 0
        assert count_exception_language("exceptions allowance") == 0


class TestContentTypes:
    def test_exactly_two_exception_terms(self):
        annotation = classify_page(_page("Exception: this is permitted."))
        assert annotation.exception_language_count == 2
        assert annotation.content_types == ("exception",)

    def test_exactly_two_mandatory_terms(self):
        annotation = classify_page(_page("Doors shall open. Handles must turn."))
        assert annotation.mandatory_language_count == 2
        assert annotation.content_types == ("requirement",)

    def test_single_occurrence_is_not_enough(self):
        assert classify_content_types("plain", 1, 1) == ["normal"]

    def test_normal_when_nothing_applies(self):
        annotation = classify_page(_page("Some general narrative without specific keywords."))
        assert annotation.content_types == ("normal",)

    def test_definitions_marker(self):
        assert is_definition_page("SECTION 202\nDEFINITIONS")
        assert is_definition_page("The term ramp means any of the following")

    def test_means_following_must_be_on_one_line(self):
        assert not is_definition_page("ramp means\nthe following")

    def test_glossary_lines(self):
        glossary = "\n".join([
            "Ramp. A walking surface with a running slope.",
            "Curb ramp. A short ramp cutting through a curb.",
            "Landing. A level area at the top of a ramp.",
            "Handrail. A rail used for support.",
        ])
        assert is_definition_page(glossary)
        assert not is_definition_page("\n".join(glossary.split("\n")[:3]))

    def test_multiple_tags_in_fixed_order(self):
        text = "DEFINITIONS\nExceptions are permitted.\nIt is allowed.\nDoors shall open and must close."
        assert classify_page(_page(text)).content_types == ("definition", "exception", "requirement")


class TestClassifyPage:
    def test_empty_text_yields_minimal_annotation(self):
        annotation = classify_page(_page(""))
        assert annotation.section_headings == ()
        assert annotation.section_number is None
        assert annotation.content_types == ("normal",)
        assert annotation.keywords == ()
        assert annotation.keyword_count == 0
        assert annotation.has_figure is False
        assert annotation.mandatory_language_count == 0
        assert annotation.exception_language_count == 0

    def test_full_page(self):
        text = "\n".join([
            "707.1 General. Scope of Section",
            "AUTOMATIC TELLER MACHINES",
            "Machines shall be accessible to wheelchair users and must provide braille.",
            "See Figure 707.5 for clearance.",
        ])
        annotation = classify_page(_page(text, page_number=42))
        assert annotation.page_number == 42
        assert annotation.raw_text == text
        assert annotation.section_number == "707.1"
        assert annotation.section_headings == ("AUTOMATIC TELLER MACHINES",)
        assert annotation.keywords == ("accessible", "wheelchair", "braille", "clearance")
        assert annotation.keyword_count == 4
        assert annotation.has_figure is True
        assert annotation.content_types == ("requirement",)

    def test_classification_is_deterministic(self):
        page = _page("RAMPS\nRamps shall comply. Exception: curb ramps are permitted.")
        assert classify_page(page) == classify_page(page)
        assert classify_page(page).model_dump() == classify_page(page).model_dump()


class TestPageAnnotationModel:
    def test_keyword_count_must_match(self):
        with pytest.raises(ValidationError):
            PageAnnotation(page_number=1, raw_text="", keywords=("ramp",), keyword_count=2)

    def test_normal_is_exclusive(self):
        with pytest.raises(ValidationError):
            PageAnnotation(page_number=1, raw_text="", content_types=("normal", "requirement"))

    def test_headings_must_be_distinct(self):
        with pytest.raises(ValidationError):
            PageAnnotation(page_number=1, raw_text="", section_headings=("RAMPS", "RAMPS"))

    def test_annotation_is_immutable(self):
        annotation = classify_page(_page("RAMPS"))
        with pytest.raises(ValidationError):
            annotation.page_number = 2

    def test_row_serialization(self):
        annotation = classify_page(_page("RAMPS\n405.2 Slope. The ramp shall not be steep and must be safe."))
        row = annotation.to_row(document_id=3)
        assert row["document_id"] == 3
        assert row["section_headings"] == '["RAMPS"]'
        assert row["section_number"] == "405.2"
        assert row["content_type"] == '["requirement"]'
        assert row["keywords"] == '["ramp", "slope"]'
        assert row["keyword_count"] == 2
        assert row["has_figure"] is False
