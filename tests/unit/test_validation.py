import pytest

from source_docs.errors import EvidencePackRejected, RejectionReason
from source_docs.schemas.evidence import EvidencePack, create_empty_evidence_pack
from source_docs.validation import is_valid_evidence_pack, validate_evidence_pack


def _reason(payload) -> RejectionReason:
    with pytest.raises(EvidencePackRejected) as exc_info:
        validate_evidence_pack(payload)
    return exc_info.value.reason


def test_valid_pack_is_parsed(make_pack):
    """
    WHY: A well-formed extractor payload must come back as a typed EvidencePack.
    HOW: Validate the sample payload.
    EXPECTED: Person, sources and diagnostics are available as attributes.
    """
    pack = validate_evidence_pack(make_pack())

    assert isinstance(pack, EvidencePack)
    assert pack.run_id == "run-2024-01-15"
    assert pack.person.family_search_id == "KWCJ-123"
    assert [s.id for s in pack.sources] == ["S1", "S2"]
    assert pack.sources[0].indexed.fields[1].value == "Ohio, United States"
    assert pack.diagnostics.total_sources == 2


@pytest.mark.parametrize("payload", [None, [], "pack", 42])
def test_non_object_rejected(payload):
    """
    WHY: Only JSON objects can be Evidence Packs.
    HOW: Validate null, a list, a string and a number.
    EXPECTED: Rejected with not_an_object.
    """
    assert _reason(payload) == RejectionReason.NOT_AN_OBJECT


@pytest.mark.parametrize("version", ["2.0", 1.0, None])
def test_wrong_schema_version_rejected(make_pack, version):
    """
    WHY: An unrecognized schemaVersion rejects the whole pack.
    HOW: Validate with "2.0", the number 1.0 and a missing version.
    EXPECTED: Rejected with wrong_schema_version.
    """
    payload = make_pack(schemaVersion=version)
    if version is None:
        del payload["schemaVersion"]
    assert _reason(payload) == RejectionReason.WRONG_SCHEMA_VERSION


@pytest.mark.parametrize("overrides", [
    {"runId": ""},
    {"runId": 17},
    {"capturedAt": None},
    {"person": None},
    {"person": "KWCJ-123"},
])
def test_missing_required_field_rejected(make_pack, overrides):
    """
    WHY: runId, capturedAt and person are required to file a run.
    HOW: Blank, mistyped or null values for each field.
    EXPECTED: Rejected with missing_required_field and the field named in details.
    """
    with pytest.raises(EvidencePackRejected) as exc_info:
        validate_evidence_pack(make_pack(**overrides))

    assert exc_info.value.reason == RejectionReason.MISSING_REQUIRED_FIELD
    field = next(iter(overrides))
    assert {"field": field} in exc_info.value.details


@pytest.mark.parametrize("sources", [None, "S1", {"id": "S1"}])
def test_sources_not_array_rejected(make_pack, sources):
    """
    WHY: Sources must be an ordered list.
    HOW: Null, string and object values for sources.
    EXPECTED: Rejected with sources_not_array.
    """
    assert _reason(make_pack(sources=sources)) == RejectionReason.SOURCES_NOT_ARRAY


def test_empty_sources_accepted(make_pack):
    """
    WHY: A person with no attached sources is still a valid capture.
    HOW: Validate with sources=[].
    EXPECTED: Accepted with an empty source list.
    """
    assert validate_evidence_pack(make_pack(sources=[])).sources == []


def test_checks_run_in_order(make_pack):
    """
    WHY: Callers rely on the first failing check being reported.
    HOW: Break schemaVersion, runId and sources at once.
    EXPECTED: wrong_schema_version wins.
    """
    payload = make_pack(schemaVersion="0.9", runId="", sources="nope")
    assert _reason(payload) == RejectionReason.WRONG_SCHEMA_VERSION


def test_duplicate_source_ids_rejected(make_pack):
    """
    WHY: Redactions and anchors address sources by id, so ids must be unique.
    HOW: Give both sample sources the id S1.
    EXPECTED: Rejected with invalid_shape; details mention the duplicate.
    """
    payload = make_pack()
    payload["sources"][1]["id"] = "S1"

    with pytest.raises(EvidencePackRejected) as exc_info:
        validate_evidence_pack(payload)

    assert exc_info.value.reason == RejectionReason.INVALID_SHAPE
    assert any("Duplicate source id" in d["msg"] for d in exc_info.value.details)


def test_negative_counter_rejected(make_pack):
    """
    WHY: Diagnostics counters are counts and cannot be negative.
    HOW: Set totalSources to -1.
    EXPECTED: Rejected with invalid_shape pointing into diagnostics.
    """
    payload = make_pack()
    payload["diagnostics"]["totalSources"] = -1

    with pytest.raises(EvidencePackRejected) as exc_info:
        validate_evidence_pack(payload)

    assert exc_info.value.reason == RejectionReason.INVALID_SHAPE
    assert any(d["loc"].startswith("diagnostics") for d in exc_info.value.details)


def test_unknown_source_type_rejected(make_pack):
    payload = make_pack()
    payload["sources"][0]["sourceType"] = "census"
    assert _reason(payload) == RejectionReason.INVALID_SHAPE


def test_optional_fields_get_defaults(make_pack):
    """
    WHY: Downstream renderers must never see missing attributes.
    HOW: A source carrying only an id, and a pack without diagnostics.
    EXPECTED: Defaults are filled in (empty strings, empty lists, standard mode).
    """
    payload = make_pack(sources=[{"id": "S9"}])
    del payload["diagnostics"]

    pack = validate_evidence_pack(payload)
    source = pack.sources[0]

    assert source.title == ""
    assert source.source_type == "other"
    assert source.citation is None
    assert source.tags == []
    assert source.indexed.fields == []
    assert source.raw_text == ""
    assert pack.diagnostics.mode == "standard"
    assert pack.diagnostics.warnings == []


def test_unknown_warning_code_accepted(make_pack):
    payload = make_pack()
    payload["diagnostics"]["warnings"] = [{"code": "NEW_EXTRACTOR_CODE", "message": "something new"}]

    pack = validate_evidence_pack(payload)

    assert pack.diagnostics.warnings[0].code == "NEW_EXTRACTOR_CODE"


def test_empty_template_passes_validation():
    """
    WHY: The template pack is the extractor's starting point and must always be importable.
    HOW: Validate create_empty_evidence_pack() both as a model and as its JSON form.
    EXPECTED: Accepted; two templates get different run ids.
    """
    template = create_empty_evidence_pack()

    assert is_valid_evidence_pack(template)
    assert is_valid_evidence_pack(template.to_json_dict())
    assert template.schema_version == "1.0"
    assert template.extractor_version == "1.0.0"
    assert template.diagnostics.total_sources == 0
    assert create_empty_evidence_pack().run_id != template.run_id


def test_is_valid_evidence_pack_predicate(make_pack):
    assert is_valid_evidence_pack(make_pack()) is True
    assert is_valid_evidence_pack(make_pack(schemaVersion="2.0")) is False


def test_rejection_to_dict(make_pack):
    with pytest.raises(EvidencePackRejected) as exc_info:
        validate_evidence_pack(make_pack(sources=None))

    data = exc_info.value.to_dict()
    assert data["reason"] == "sources_not_array"
    assert data["error"] == "sources must be an array"
