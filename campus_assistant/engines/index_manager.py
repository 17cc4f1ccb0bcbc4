"""
Index Manager for the Campus Assistant

Handles:
1. Document ingestion (extract -> segment -> store -> index)
2. Full index rebuilds from stored documents
3. Index health monitoring
4. Ingestion history
"""

import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from campus_assistant.config import Config
from campus_assistant.engines.document_segmenter import DocumentSegmenter
from campus_assistant.engines.extractors import extract_text, normalize_extension
from campus_assistant.engines.knowledge_store import KnowledgeStore, generate_knowledge_id
from campus_assistant.errors import CampusAssistantError
from campus_assistant.models import DocumentMetadata, KnowledgeDocument
from campus_assistant.utils.logging_utils import get_logger

logger = get_logger()


# =============================================================================
# CONFIGURATION
# =============================================================================

# Index health thresholds
MIN_DOCUMENTS_THRESHOLD = 1


# =============================================================================
# INDEX MANAGER
# =============================================================================

class IndexManager:
    """
    Manages knowledge index lifecycle including:
    - Ingestion of uploaded documents
    - Manual re-indexing
    - Index health monitoring
    """

    def __init__(
        self,
        store: Optional[KnowledgeStore] = None,
        segmenter: Optional[DocumentSegmenter] = None,
        history_limit: int = Config.INDEX_HISTORY_LIMIT,
    ):
        self.store = store or KnowledgeStore()
        self.segmenter = segmenter or DocumentSegmenter()
        self.history_limit = history_limit
        self.last_index_time: Optional[datetime] = None
        self.last_index_count: int = 0
        self.index_history: List[Dict[str, Any]] = []
        self._reindex_lock = threading.Lock()
        self._history_lock = threading.Lock()
        self._is_indexing = False

    @property
    def is_indexing(self) -> bool:
        """Check if a full rebuild is currently in progress."""
        return self._is_indexing

    def build_document(
        self,
        raw_text: str,
        metadata: Optional[Dict[str, Any]] = None,
        document_id: Optional[str] = None,
    ) -> KnowledgeDocument:
        """Segment raw text into an immutable KnowledgeDocument."""
        meta = dict(metadata or {})
        segmented = self.segmenter.segment(raw_text)
        source = str(meta.pop("source_description", "") or meta.get("filename", "") or "uploaded document")
        return KnowledgeDocument(
            identity=document_id or generate_knowledge_id(),
            sections=segmented.sections,
            faqs=segmented.faqs,
            entities=segmented.entities,
            topics=segmented.topics,
            metadata=DocumentMetadata(
                source_description=source,
                ingested_at=datetime.now(timezone.utc).isoformat(),
                detected_language=segmented.detected_language,
                content_length=len(raw_text or ""),
                extra=meta,
            ),
        )

    def ingest_text(
        self,
        raw_text: str,
        metadata: Optional[Dict[str, Any]] = None,
        document_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        document = self.build_document(raw_text, metadata, document_id)
        self.store.ingest(document)
        self._record(document.identity, success=True, triggered_by="ingest")
        return self._summary(document)

    def ingest_document(
        self,
        file_bytes: bytes,
        extension: str,
        metadata: Optional[Dict[str, Any]] = None,
        document_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Ingestion entrypoint.

        Returns:
            {document_id, sections_count, faqs_count, entities_count,
             detected_language, content_length}

        Raises:
            UnsupportedFormat, ExtractionFailed
        """
        ext = normalize_extension(extension)
        meta = dict(metadata or {})
        meta.setdefault("extension", ext)
        try:
            raw_text = extract_text(file_bytes, ext)
        except CampusAssistantError as e:
            self._record(document_id, success=False, triggered_by="ingest", error=e.code)
            raise
        return self.ingest_text(raw_text, meta, document_id)

    def reindex(self, triggered_by: str = "manual") -> Dict[str, Any]:
        """Rebuild every posting from the stored documents."""
        if self._is_indexing:
            return {
                "success": False,
                "error": "Indexing already in progress",
                "status": "in_progress",
            }

        with self._reindex_lock:
            self._is_indexing = True
            start_time = datetime.now(timezone.utc)
            try:
                parts = self.store.rebuild_index()
                duration = (datetime.now(timezone.utc) - start_time).total_seconds()
                self._record(None, success=True, triggered_by=triggered_by, parts=parts)
                logger.info(f"[IndexManager] Rebuilt {parts} parts in {duration:.2f}s")
                return {
                    "success": True,
                    "document_count": len(self.store),
                    "part_count": parts,
                    "duration_seconds": round(duration, 2),
                    "status": "completed",
                }
            finally:
                self._is_indexing = False

    def get_status(self) -> Dict[str, Any]:
        """Get current index status."""
        index_info = self.store.index.stats()
        return {
            "last_index_time": self.last_index_time.isoformat() if self.last_index_time else None,
            "last_index_count": self.last_index_count,
            "is_indexing": self._is_indexing,
            "index_info": index_info,
            "health": self._calculate_health(index_info),
        }

    def _calculate_health(self, index_info: Dict[str, Any]) -> str:
        """Calculate overall index health."""
        doc_count = index_info.get("document_count", 0)
        if doc_count < MIN_DOCUMENTS_THRESHOLD:
            return "critical"
        if index_info.get("part_count", 0) == 0:
            return "warning"
        return "healthy"

    def get_history(self, limit: int = 10) -> List[Dict[str, Any]]:
        """Get recent indexing history."""
        return self.index_history[-limit:][::-1]

    def _record(self, document_id: Optional[str], success: bool, triggered_by: str, **extra):
        now = datetime.now(timezone.utc)
        record = {
            "timestamp": now.isoformat(),
            "document_id": document_id,
            "triggered_by": triggered_by,
            "success": success,
        }
        record.update(extra)
        with self._history_lock:
            self.index_history.append(record)
            self.index_history = self.index_history[-self.history_limit:]
            if success:
                self.last_index_time = now
                self.last_index_count = len(self.store)

    @staticmethod
    def _summary(document: KnowledgeDocument) -> Dict[str, Any]:
        return {
            "document_id": document.identity,
            "sections_count": len(document.sections),
            "faqs_count": len(document.faqs),
            "entities_count": len(document.entities),
            "detected_language": document.metadata.detected_language,
            "content_length": document.metadata.content_length,
        }
