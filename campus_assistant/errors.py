"""
Typed errors raised by the ingestion, search and escalation engines.

The API layer renders every subclass of CampusAssistantError as
{"success": false, "error": <code>, "message": <text>} with its http_status.
"""

from typing import Any, Dict, Optional


class CampusAssistantError(Exception):
    code = "internal_error"
    http_status = 500

    def __init__(self, message: str = "", details: Optional[Dict[str, Any]] = None):
        super().__init__(message or self.code)
        self.message = message or self.code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "success": False,
            "error": self.code,
            "message": self.message,
        }
        if self.details:
            payload["details"] = self.details
        return payload


class UnsupportedFormat(CampusAssistantError):
    code = "unsupported_format"
    http_status = 415


class ExtractionFailed(CampusAssistantError):
    code = "extraction_failed"
    http_status = 422


class DocumentNotFound(CampusAssistantError):
    code = "document_not_found"
    http_status = 404


class HandoffNotFound(CampusAssistantError):
    code = "handoff_not_found"
    http_status = 404


class EscalationSystemUnavailable(CampusAssistantError):
    code = "escalation_unavailable"
    http_status = 503


class InvalidRequest(CampusAssistantError):
    code = "invalid_request"
    http_status = 400


class InvalidTransition(InvalidRequest):
    code = "invalid_transition"
    http_status = 409
