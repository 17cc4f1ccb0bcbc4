"""
Knowledge Store - owns ingested KnowledgeDocuments and their search index

The store is the single writer of the inverted index, so every posting
always refers to a document it holds.
"""

import secrets
import threading
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from campus_assistant.engines.search_index import InvertedIndex
from campus_assistant.errors import DocumentNotFound, InvalidRequest
from campus_assistant.models import KnowledgeDocument, SearchHit
from campus_assistant.utils.logging_utils import get_logger

logger = get_logger()


def generate_knowledge_id() -> str:
    return f"kb_{int(time.time() * 1000)}_{secrets.token_hex(5)[:9]}"


class KnowledgeStore:
    def __init__(self, index: Optional[InvertedIndex] = None):
        self.index = index or InvertedIndex()
        self._documents: Dict[str, KnowledgeDocument] = {}
        self._write_lock = threading.Lock()

    def ingest(self, document: KnowledgeDocument) -> str:
        """Store (or replace) a document and rebuild its postings."""
        if not document.identity:
            raise InvalidRequest("Knowledge document identity must not be empty")

        with self._write_lock:
            replaced = document.identity in self._documents
            self._documents[document.identity] = document
            parts = self.index.index_document(document)

        logger.info(
            f"[KnowledgeStore] {'Re-indexed' if replaced else 'Indexed'} {document.identity} "
            f"({parts} parts, lang={document.metadata.detected_language})"
        )
        return document.identity

    def get(self, document_id: str) -> Optional[KnowledgeDocument]:
        return self._documents.get(document_id)

    def require(self, document_id: str) -> KnowledgeDocument:
        document = self.get(document_id)
        if document is None:
            raise DocumentNotFound(f"No knowledge document with id '{document_id}'")
        return document

    def list_ids(self) -> List[str]:
        return list(self._documents.keys())

    def remove(self, document_id: str) -> KnowledgeDocument:
        with self._write_lock:
            document = self._documents.get(document_id)
            if document is None:
                raise DocumentNotFound(f"No knowledge document with id '{document_id}'")
            self.index.remove_document(document_id)
            del self._documents[document_id]
        logger.info(f"[KnowledgeStore] Removed {document_id}")
        return document

    def rebuild_index(self) -> int:
        """Re-post every stored document from scratch."""
        with self._write_lock:
            self.index.clear()
            parts = 0
            for document in self._documents.values():
                parts += self.index.index_document(document)
        return parts

    def search(self, query: str, limit: Optional[int] = None) -> List[SearchHit]:
        return self.index.search(query, limit)

    def __len__(self) -> int:
        return len(self._documents)

    # ── snapshot ─────────────────────────────────────────────────────────

    def export(self) -> Dict[str, Any]:
        """Serializable snapshot of documents and postings."""
        with self._write_lock:
            return {
                "knowledge": {doc_id: doc.to_dict() for doc_id, doc in self._documents.items()},
                "index": self.index.export(),
                "exported_at": datetime.now(timezone.utc).isoformat(),
            }

    def import_snapshot(self, snapshot: Dict[str, Any]) -> int:
        """Replace all state with an exported snapshot."""
        try:
            documents = {
                doc_id: KnowledgeDocument.from_dict(data)
                for doc_id, data in (snapshot.get("knowledge") or {}).items()
            }
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidRequest(f"Malformed knowledge snapshot: {e}")

        index_data = snapshot.get("index") or {}
        part_documents = index_data.get("parts") or {}
        for table in ("body", "title"):
            for token, parts in (index_data.get(table) or {}).items():
                unknown = [p for p in parts if p not in part_documents]
                if unknown:
                    raise InvalidRequest(f"Posting '{token}' references unknown part {unknown[0]}")
        orphans = {doc_id for doc_id in part_documents.values() if doc_id not in documents}
        if orphans:
            raise InvalidRequest(f"Index references unknown document {sorted(orphans)[0]}")

        with self._write_lock:
            self._documents = documents
            self.index.load(index_data)
        logger.info(f"[KnowledgeStore] Imported {len(documents)} documents")
        return len(documents)
