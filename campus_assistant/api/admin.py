from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse

from campus_assistant.api.dependencies import get_assistant, require_admin, run_in_engine
from campus_assistant.config import Config
from campus_assistant.core.assistant import CampusAssistant
from campus_assistant.errors import InvalidRequest
from campus_assistant.schemas import (
    AbandonRequest,
    AdminLoginRequest,
    AssignRequest,
    IngestionResponse,
    TokenResponse,
)
from campus_assistant.utils.auth_utils import create_access_token, verify_password
from campus_assistant.utils.logging_utils import log_audit

router = APIRouter()


@router.post("/login", response_model=TokenResponse)
async def admin_login(request: AdminLoginRequest):
    configured_password = Config.ADMIN_PASSWORD
    if not configured_password:
        return JSONResponse(
            status_code=503,
            content={"success": False, "message": "ADMIN_PASSWORD is not configured"},
        )

    if not verify_password(request.password, configured_password):
        log_audit("ADMIN_LOGIN_FAILED", "admin")
        return JSONResponse(
            status_code=401,
            content={"success": False, "message": "Invalid admin credentials"},
        )

    expires = timedelta(hours=Config.ADMIN_TOKEN_EXPIRE_HOURS)
    token = create_access_token(
        data={"sub": "admin", "name": "Administrator", "role": "admin"},
        expires_delta=expires,
    )
    log_audit("ADMIN_LOGIN", "admin")
    return {
        "success": True,
        "access_token": token,
        "token_type": "bearer",
        "expires_in_seconds": int(expires.total_seconds()),
    }


# ── knowledge documents ──────────────────────────────────────────────────

@router.post("/documents", response_model=IngestionResponse)
async def upload_document(
    request: Request,
    file: UploadFile = File(...),
    document_id: Optional[str] = Form(None),
    source_description: Optional[str] = Form(None),
    admin: dict = Depends(require_admin),
    assistant: CampusAssistant = Depends(get_assistant),
):
    filename = file.filename or ""
    extension = Path(filename).suffix.lower().lstrip(".")
    if not extension:
        raise InvalidRequest("Uploaded file must have an extension", {"filename": filename})

    content = await file.read()
    if len(content) > Config.MAX_UPLOAD_BYTES:
        raise InvalidRequest(
            "Uploaded file is too large",
            {"size": len(content), "max_bytes": Config.MAX_UPLOAD_BYTES},
        )

    metadata: Dict[str, Any] = {"filename": filename, "uploaded_by": admin.get("sub", "admin")}
    if source_description:
        metadata["source_description"] = source_description

    result = await run_in_engine(
        request, assistant.ingest_document, content, extension, metadata, document_id or None
    )
    return {"success": True, **result}


@router.get("/documents")
async def list_documents(
    _: dict = Depends(require_admin),
    assistant: CampusAssistant = Depends(get_assistant),
):
    documents = []
    for document_id in assistant.store.list_ids():
        document = assistant.store.get(document_id)
        if document is None:
            continue
        documents.append({
            "document_id": document_id,
            "source_description": document.metadata.source_description,
            "detected_language": document.metadata.detected_language,
            "ingested_at": document.metadata.ingested_at,
            "sections_count": len(document.sections),
            "faqs_count": len(document.faqs),
        })
    return {"success": True, "count": len(documents), "documents": documents}


@router.get("/documents/{document_id}")
async def get_document(
    document_id: str,
    _: dict = Depends(require_admin),
    assistant: CampusAssistant = Depends(get_assistant),
):
    return {"success": True, "document": assistant.store.require(document_id).to_dict()}


@router.delete("/documents/{document_id}")
async def delete_document(
    document_id: str,
    admin: dict = Depends(require_admin),
    assistant: CampusAssistant = Depends(get_assistant),
):
    assistant.store.remove(document_id)
    log_audit("DOCUMENT_REMOVED", admin.get("sub", "admin"), document_id)
    return {"success": True, "document_id": document_id}


# ── index ────────────────────────────────────────────────────────────────

@router.post("/reindex")
async def reindex(
    request: Request,
    admin: dict = Depends(require_admin),
    assistant: CampusAssistant = Depends(get_assistant),
):
    result = await run_in_engine(request, assistant.index_manager.reindex, "admin")
    if not result.get("success"):
        return JSONResponse(status_code=409, content=result)
    log_audit("INDEX_REBUILT", admin.get("sub", "admin"), f"parts={result['part_count']}")
    return result


@router.get("/index/status")
async def index_status(
    history_limit: int = 10,
    _: dict = Depends(require_admin),
    assistant: CampusAssistant = Depends(get_assistant),
):
    status = assistant.index_manager.get_status()
    status["history"] = assistant.index_manager.get_history(max(1, history_limit))
    return status


@router.get("/export")
async def export_knowledge(
    request: Request,
    _: dict = Depends(require_admin),
    assistant: CampusAssistant = Depends(get_assistant),
):
    return await run_in_engine(request, assistant.store.export)


@router.post("/import")
async def import_knowledge(
    request: Request,
    snapshot: Dict[str, Any] = Body(...),
    admin: dict = Depends(require_admin),
    assistant: CampusAssistant = Depends(get_assistant),
):
    count = await run_in_engine(request, assistant.store.import_snapshot, snapshot)
    log_audit("KNOWLEDGE_IMPORTED", admin.get("sub", "admin"), f"documents={count}")
    return {"success": True, "document_count": count}


# ── handoffs ─────────────────────────────────────────────────────────────

@router.get("/handoffs")
async def list_handoffs(
    _: dict = Depends(require_admin),
    assistant: CampusAssistant = Depends(get_assistant),
):
    return {
        "pending": [r.summary() for r in assistant.queue.pending()],
        "archived": [r.summary() for r in assistant.queue.archived()],
    }


@router.post("/handoffs/{handoff_id}/assign")
async def assign_handoff(
    handoff_id: str,
    body: AssignRequest,
    _: dict = Depends(require_admin),
    assistant: CampusAssistant = Depends(get_assistant),
):
    return assistant.queue.assign(handoff_id, body.agent_id).summary()


@router.post("/handoffs/{handoff_id}/resolve")
async def resolve_handoff(
    handoff_id: str,
    _: dict = Depends(require_admin),
    assistant: CampusAssistant = Depends(get_assistant),
):
    return assistant.queue.resolve(handoff_id).summary()


@router.post("/handoffs/{handoff_id}/abandon")
async def abandon_handoff(
    handoff_id: str,
    body: Optional[AbandonRequest] = None,
    _: dict = Depends(require_admin),
    assistant: CampusAssistant = Depends(get_assistant),
):
    return assistant.queue.abandon(handoff_id, body.reason if body else "cancelled").summary()


# ── analytics ────────────────────────────────────────────────────────────

@router.get("/analytics")
async def analytics_report(
    _: dict = Depends(require_admin),
    assistant: CampusAssistant = Depends(get_assistant),
):
    return assistant.analytics.report()


@router.get("/analytics/conversations/{user_id}")
async def conversation_transcript(
    user_id: str,
    _: dict = Depends(require_admin),
    assistant: CampusAssistant = Depends(get_assistant),
):
    return {"user_id": user_id, "messages": assistant.analytics.transcript(user_id)}
