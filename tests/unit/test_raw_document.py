from source_docs.rendering.raw_document import (
    ordered_sources,
    render_raw_document,
    render_source_section,
    render_table_of_contents,
)
from source_docs.validation import validate_evidence_pack


def test_render_is_deterministic(make_pack):
    """
    WHY: A stored raw document must be reproducible from its pack at any time.
    HOW: Render the same pack twice, and a re-parsed copy once.
    EXPECTED: All three renders are byte-identical.
    """
    pack = validate_evidence_pack(make_pack())

    first = render_raw_document(pack)

    assert render_raw_document(pack) == first
    assert render_raw_document(validate_evidence_pack(make_pack())) == first


def test_person_header_and_metadata(make_pack):
    markdown = render_raw_document(validate_evidence_pack(make_pack()))

    assert markdown.startswith("# John Smith\n**FamilySearch ID:** KWCJ-123  \n")
    assert "**Born: 1 January 1850 | Died: 2 February 1910**" in markdown
    assert "| Run ID | `run-2024-01-15` |" in markdown
    assert "| Captured | 2024-01-15T10:00:00Z |" in markdown
    assert "| Extractor | v1.2.0 |" in markdown
    assert "| Mode | standard |" in markdown
    assert "| Duration | 4.2s |" in markdown
    assert "| Sources | 2 total, 1 expanded |" in markdown


def test_empty_pack_fields_leave_no_blank_rows(make_pack):
    """
    WHY: sourceUrl, extractorVersion and familySearchId default to "" and must not render as blank values.
    HOW: Render a pack with those three fields empty.
    EXPECTED: No Source URL or Extractor row, no FamilySearch ID line; the rest of the table is intact.
    """
    payload = make_pack(sourceUrl="", extractorVersion="")
    payload["person"]["familySearchId"] = ""

    markdown = render_raw_document(validate_evidence_pack(payload))

    assert "| Source URL |" not in markdown
    assert "| Extractor |" not in markdown
    assert "| v |" not in markdown
    assert "**FamilySearch ID:**" not in markdown
    assert "| Run ID | `run-2024-01-15` |\n| Captured | 2024-01-15T10:00:00Z |\n| Mode | standard |" in markdown


def test_unknown_person_without_dates(make_pack):
    markdown = render_raw_document(validate_evidence_pack(make_pack(person={"familySearchId": "X-1"})))

    assert markdown.startswith("# Unknown Person\n")
    assert "Born:" not in markdown
    assert "Died:" not in markdown


def test_sources_sorted_by_order_index_with_stable_ties(make_pack):
    """
    WHY: Document order follows the extractor's orderIndex, and ties keep array order.
    HOW: Four sources with orderIndex 2, 1, 0, 1.
    EXPECTED: Sections appear as C, B, D, A.
    """
    sources = [
        {"id": "A", "orderIndex": 2, "title": "Alpha"},
        {"id": "B", "orderIndex": 1, "title": "Bravo"},
        {"id": "C", "orderIndex": 0, "title": "Charlie"},
        {"id": "D", "orderIndex": 1, "title": "Delta"},
    ]
    pack = validate_evidence_pack(make_pack(sources=sources))

    markdown = render_raw_document(pack)
    positions = [markdown.index(f"### {sid}: ") for sid in ("C", "B", "D", "A")]

    assert [s.id for s in ordered_sources(pack)] == ["C", "B", "D", "A"]
    assert positions == sorted(positions)
    # The pack itself keeps its array order.
    assert [s.id for s in pack.sources] == ["A", "B", "C", "D"]


def test_full_source_section(make_pack):
    source = validate_evidence_pack(make_pack()).sources[0]

    section = render_source_section(source)

    assert section.startswith("### S1: United States Census, 1880 {#S1}\n")
    assert "**Source Key:** `MXYZ-1`  " in section
    assert "**Type:** record  " in section
    assert "**Date:** 1880  " in section
    assert "**Attached by:** jdoe on 12 March 2019  " in section
    assert "**Reason:** Matches birth year and parents  " in section
    assert "> \"United States Census, 1880,\" database, FamilySearch." in section
    assert "**Web Page:** [View Record](https://www.familysearch.org/ark:/61903/1:1:MXYZ-1)" in section
    assert "**Tags:** `Name` `Birth`" in section
    assert "| Residence | Ohio, United States |" in section
    assert "#### Full Text" not in section
    assert section.endswith("*End of Source S1 (captured from FamilySearch Sources page)*")


def test_optional_lines_are_omitted(make_pack):
    """
    WHY: Absent optional fields must not leave empty labels in the document.
    HOW: Render a source carrying only an id and a title.
    EXPECTED: No Source Key, Date, Attached by, Reason, Citation, Web Page, Tags or Indexed lines.
    """
    pack = validate_evidence_pack(make_pack(sources=[{"id": "S9", "title": "Bare source"}]))

    section = render_source_section(pack.sources[0])

    for label in ("**Source Key:**", "**Date:**", "**Attached by:**", "**Reason:**", "**Citation:**",
                  "**Web Page:**", "**Tags:**", "#### Indexed Information", "#### Full Text"):
        assert label not in section


def test_table_cells_are_escaped(make_pack):
    payload = make_pack()
    payload["sources"][0]["indexed"]["fields"] = [{"label": "Notes|Remarks", "value": "a|b\nc"}]

    section = render_source_section(validate_evidence_pack(payload).sources[0])

    assert "| Notes\\|Remarks | a\\|b c |" in section


def test_raw_text_and_text_blocks(make_pack):
    section = render_source_section(validate_evidence_pack(make_pack()).sources[1])

    assert "> Written by his daughter in 1925." in section
    assert "#### Full Text\n\n```text\nDear Mary,\nFather passed in the winter of 1910.\n```" in section


def test_raw_text_with_backtick_fence_stays_inside_block(make_pack):
    """
    WHY: Transcribed text may itself contain markdown fences; they must not close the Full Text block.
    HOW: Render a source whose rawText contains a triple-backtick line.
    EXPECTED: The block is opened and closed with four backticks and the inner fence is kept verbatim.
    """
    payload = make_pack()
    payload["sources"][1]["rawText"] = "Before\n```\ninner\n```\nAfter"

    section = render_source_section(validate_evidence_pack(payload).sources[1])

    assert "#### Full Text\n\n````text\nBefore\n```\ninner\n```\nAfter\n````\n" in section


def test_failed_expansion_note(make_pack):
    payload = make_pack()
    payload["sources"][1]["expansionAttempts"] = 3

    section = render_source_section(validate_evidence_pack(payload).sources[1])

    assert "*Note: Indexed information expansion failed after 3 attempt(s)*" in section


def test_diagnostics_section(make_pack):
    """
    WHY: Extraction problems must be visible to whoever reads the dossier.
    HOW: Add one warning tied to a source and one fatal error.
    EXPECTED: A diagnostics section lists both; a clean pack has none.
    """
    payload = make_pack()
    payload["diagnostics"]["warnings"] = [
        {"code": "EXPAND_TIMEOUT", "message": "Timed out expanding details", "sourceId": "S2"},
    ]
    payload["diagnostics"]["errors"] = [{"code": "PAGE_CHANGED", "message": "Layout not recognized", "fatal": True}]

    markdown = render_raw_document(validate_evidence_pack(payload))

    assert "## Extraction Diagnostics" in markdown
    assert "- **EXPAND_TIMEOUT**: Timed out expanding details (S2)" in markdown
    assert "- **PAGE_CHANGED**: Layout not recognized (FATAL)" in markdown
    assert "## Extraction Diagnostics" not in render_raw_document(validate_evidence_pack(make_pack()))


def test_table_of_contents(make_pack):
    toc = render_table_of_contents(validate_evidence_pack(make_pack()))

    assert toc == (
        "## Table of Contents\n\n"
        "- [S1: United States Census, 1880](#S1)\n"
        "- [S2: Family letter](#S2)\n"
    )
