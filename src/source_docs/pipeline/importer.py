"""Evidence Pack import: validate, upsert person metadata, persist the pack."""

from typing import Any

from ..errors import EvidencePackRejected, RejectionReason
from ..log import get_logger
from ..schemas.outputs import ImportResult
from ..schemas.records import PersonMetadata
from ..store.base import DocumentStore, utc_now
from ..validation import validate_evidence_pack

logger = get_logger("import")


def import_evidence_pack(raw: Any, store: DocumentStore) -> ImportResult:
    """
    Validate a payload and record it as a run of its person.
    Raises EvidencePackRejected before any store call when the payload is invalid.
    """
    pack = validate_evidence_pack(raw)
    person_id = pack.person.family_search_id
    if not person_id:
        raise EvidencePackRejected(
            RejectionReason.MISSING_REQUIRED_FIELD,
            "Missing required fields: person.familySearchId",
            [{"field": "person.familySearchId"}],
        )

    existing = store.get_person(person_id)
    now = utc_now()
    store.save_person(PersonMetadata(
        family_search_id=person_id,
        name=pack.person.name,
        birth_date=pack.person.birth_date,
        death_date=pack.person.death_date,
        created_at=existing.created_at if existing and existing.created_at else now,
        updated_at=now,
    ))

    store.save_pack(person_id, pack.run_id, pack)
    logger.info(f"Imported run {pack.run_id} for {person_id} ({len(pack.sources)} sources)")

    return ImportResult(person_id=person_id, run_id=pack.run_id, source_count=len(pack.sources))
