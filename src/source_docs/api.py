"""HTTP API for evidence pack import and dossier documents.

Run with:
    uvicorn source_docs.api:app --reload
"""

import json
from typing import Any, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from .errors import ContextualizedValidationError, EvidencePackRejected, LLMConfigurationError, LLMError, StorageError
from .llm.client import llm_client
from .log import setup_logging, get_logger
from .pipeline.contextualized import ContextualizedWorkflow
from .pipeline.importer import import_evidence_pack
from .redaction import get_redaction_summary
from .schemas.outputs import DocumentStatus
from .store.base import DocumentStore
from .store.factory import get_store
from .validation import validate_evidence_pack

setup_logging()
logger = get_logger("api")

app = FastAPI(title="Source Docs")


def get_workflow(store: DocumentStore = Depends(get_store)) -> ContextualizedWorkflow:
    return ContextualizedWorkflow(store)


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.error(f"Storage error on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": "Storage failure", "details": str(exc)})


async def _json_body(request: Request) -> Optional[Any]:
    try:
        return await request.json()
    except ValueError:
        return None


@app.post("/api/import")
async def import_pack(request: Request, store: DocumentStore = Depends(get_store)):
    body = await _json_body(request)
    try:
        result = import_evidence_pack(body, store)
    except EvidencePackRejected as e:
        logger.info(f"Rejected import: {e.reason.value}")
        return JSONResponse(status_code=400, content={
            "error": "Invalid Evidence Pack format",
            "reason": e.reason.value,
            "details": e.details or [e.message],
        })
    return {
        "success": True,
        "personId": result.person_id,
        "runId": result.run_id,
        "sourceCount": result.source_count,
    }


@app.get("/api/people")
def list_people(store: DocumentStore = Depends(get_store)):
    people = [p.to_json_dict() for p in store.list_people()]
    return {"success": True, "people": people, "count": len(people)}


@app.get("/api/people/{person_id}")
def get_person(person_id: str, store: DocumentStore = Depends(get_store)):
    person = store.get_person(person_id)
    if person is None:
        return JSONResponse(status_code=404, content={"error": "Person not found", "personId": person_id})
    runs = store.list_runs(person_id)
    return {
        "success": True,
        "person": person.to_json_dict(),
        "runs": [r.to_json_dict() for r in runs],
        "latestRunId": runs[-1].run_id if runs else None,
    }


@app.get("/api/people/{person_id}/runs/{run_id}/pack")
def get_pack(person_id: str, run_id: str, store: DocumentStore = Depends(get_store)):
    data = store.get_pack(person_id, run_id)
    if data is None:
        return JSONResponse(status_code=404, content={
            "error": "Evidence pack not found", "status": DocumentStatus.PACK_NOT_FOUND.value,
            "personId": person_id, "runId": run_id,
        })
    try:
        pack = validate_evidence_pack(data)
    except EvidencePackRejected as e:
        return JSONResponse(status_code=500, content={
            "error": "Evidence pack is invalid", "status": DocumentStatus.INVALID_PACK.value,
            "reason": e.reason.value, "details": e.details,
        })
    return {"success": True, "pack": pack.to_json_dict(), "sourceCount": len(pack.sources)}


@app.get("/api/people/{person_id}/raw")
def get_raw(person_id: str, run: Optional[str] = None,
            workflow: ContextualizedWorkflow = Depends(get_workflow)):
    doc = workflow.get_raw_document(person_id, run)
    if doc.success:
        return {"success": True, "status": doc.status.value, "markdown": doc.markdown,
                "personName": doc.person_name, "runId": doc.run_id}

    errors = {
        DocumentStatus.NO_RUNS: (404, "No runs found for this person"),
        DocumentStatus.PACK_NOT_FOUND: (404, "Evidence pack not found"),
        DocumentStatus.INVALID_PACK: (500, "Invalid evidence pack format"),
    }
    code, message = errors[doc.status]
    return JSONResponse(status_code=code, content={
        "success": False, "status": doc.status.value, "error": message,
        "personId": person_id, "runId": doc.run_id,
    })


@app.get("/api/people/{person_id}/contextualized")
def get_contextualized(person_id: str, run: Optional[str] = None,
                       workflow: ContextualizedWorkflow = Depends(get_workflow)):
    doc = workflow.get_contextualized(person_id, run)
    if doc.status == DocumentStatus.NO_RUNS:
        return {"success": False, "status": doc.status.value, "personId": person_id,
                "error": "No runs found for this person"}
    if doc.status == DocumentStatus.NOT_GENERATED:
        return {"success": False, "status": doc.status.value, "personId": person_id, "runId": doc.run_id,
                "error": "Contextualized dossier has not been generated for this run yet"}
    return {"success": True, "status": doc.status.value, "markdown": doc.markdown,
            "personName": doc.person_name, "runId": doc.run_id}


@app.post("/api/people/{person_id}/contextualized")
async def save_contextualized(person_id: str, request: Request,
                              workflow: ContextualizedWorkflow = Depends(get_workflow)):
    body = await _json_body(request)
    body = body if isinstance(body, dict) else {}
    run_id = body.get("runId") if isinstance(body.get("runId"), str) else ""
    markdown = body.get("markdown") if isinstance(body.get("markdown"), str) else ""
    try:
        workflow.save_contextualized(person_id, run_id, markdown)
    except ContextualizedValidationError as e:
        return JSONResponse(status_code=400, content={
            "error": e.message, "status": "invalid_request", "personId": person_id, "runId": run_id,
        })
    return {"success": True, "runId": run_id}


@app.post("/api/people/{person_id}/redaction-preview")
async def redaction_preview(person_id: str, request: Request,
                            workflow: ContextualizedWorkflow = Depends(get_workflow)):
    body = await _json_body(request)
    requested = body.get("runId") if isinstance(body, dict) else None
    run_id = workflow.resolve_run_id(person_id, requested)
    if not run_id:
        return JSONResponse(status_code=404, content={"success": False, "status": DocumentStatus.NO_RUNS.value,
                                                      "personId": person_id})
    data = workflow.store.get_pack(person_id, run_id)
    if data is None:
        return JSONResponse(status_code=404, content={"success": False,
                                                      "status": DocumentStatus.PACK_NOT_FOUND.value,
                                                      "personId": person_id, "runId": run_id})
    try:
        pack = validate_evidence_pack(data)
    except EvidencePackRejected as e:
        return JSONResponse(status_code=500, content={"success": False,
                                                      "status": DocumentStatus.INVALID_PACK.value,
                                                      "reason": e.reason.value, "runId": run_id})

    result = workflow.redactor.redact(pack)
    return {
        "success": True,
        "runId": run_id,
        "summary": get_redaction_summary(result.redactions),
        "hasLivingIndicators": result.has_living_indicators,
        "redactions": [r.to_json_dict() for r in result.redactions],
        "sources": [s.to_json_dict() for s in result.sources],
    }


@app.post("/api/process")
async def process(request: Request):
    body = await _json_body(request)
    body = body if isinstance(body, dict) else {}
    prompt = body.get("prompt")
    if not prompt:
        return JSONResponse(status_code=400, content={"error": "Missing prompt"})

    data = body.get("data")
    if data is not None and not isinstance(data, str):
        data = json.dumps(data, indent=2, ensure_ascii=False)
    full_prompt = f"{prompt}\n\nINPUT DATA:\n{data}" if data else prompt

    try:
        content = llm_client.complete(full_prompt, system_prompt=body.get("systemPrompt"), model=body.get("model"))
    except LLMConfigurationError as e:
        return JSONResponse(status_code=401, content={"error": str(e)})
    except LLMError as e:
        logger.error(f"AI processing failed: {e}")
        return JSONResponse(status_code=500, content={"error": str(e)})
    return {"content": content}
