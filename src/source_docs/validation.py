"""Evidence Pack validation.

validate_evidence_pack() checks the structural contract of an import payload
in a fixed order and reports the first failing class as a RejectionReason,
then lets the pydantic model fill defaults for absent optional fields.
"""

from typing import Any

from pydantic import ValidationError

from .errors import EvidencePackRejected, RejectionReason
from .schemas.evidence import SCHEMA_VERSION, EvidencePack


def _non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and value != ""


def validate_evidence_pack(raw: Any) -> EvidencePack:
    """
    Validate an unstructured payload and return the parsed EvidencePack.
    Raises EvidencePackRejected; never returns a partial pack.
    """
    if isinstance(raw, EvidencePack):
        raw = raw.to_json_dict()

    if not isinstance(raw, dict):
        raise EvidencePackRejected(
            RejectionReason.NOT_AN_OBJECT,
            "Evidence Pack must be a JSON object",
        )

    version = raw.get("schemaVersion")
    if version != SCHEMA_VERSION:
        raise EvidencePackRejected(
            RejectionReason.WRONG_SCHEMA_VERSION,
            f"Unsupported schemaVersion {version!r}; expected {SCHEMA_VERSION!r}",
            [{"field": "schemaVersion", "value": version}],
        )

    missing = [name for name in ("runId", "capturedAt") if not _non_empty_string(raw.get(name))]
    if not isinstance(raw.get("person"), dict):
        missing.append("person")
    if missing:
        raise EvidencePackRejected(
            RejectionReason.MISSING_REQUIRED_FIELD,
            f"Missing required fields: {', '.join(missing)}",
            [{"field": name} for name in missing],
        )

    if not isinstance(raw.get("sources"), list):
        raise EvidencePackRejected(
            RejectionReason.SOURCES_NOT_ARRAY,
            "sources must be an array",
            [{"field": "sources", "type": type(raw.get("sources")).__name__}],
        )

    try:
        return EvidencePack.model_validate(raw)
    except ValidationError as e:
        details = [
            {"loc": ".".join(str(part) for part in err["loc"]), "msg": err["msg"]}
            for err in e.errors()
        ]
        raise EvidencePackRejected(
            RejectionReason.INVALID_SHAPE,
            "Invalid Evidence Pack format",
            details,
        ) from e


def is_valid_evidence_pack(raw: Any) -> bool:
    try:
        validate_evidence_pack(raw)
    except EvidencePackRejected:
        return False
    return True
