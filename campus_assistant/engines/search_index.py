"""
Inverted Index - lexical token -> document-part postings

Two tables share one partId space:
- body table:  tokens from section bodies, FAQ question+answer, entity context
- title table: tokens from section titles and FAQ questions

Scoring is exact normalized-token overlap: BODY_WEIGHT per body posting,
TITLE_WEIGHT per title posting. No stemming, no fuzzy matching.
"""

from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from campus_assistant.config import Config
from campus_assistant.errors import InvalidRequest
from campus_assistant.models import KnowledgeDocument, SearchHit
from campus_assistant.utils.locks import ReadWriteLock

PART_SECTION = "section"
PART_FAQ = "faq"
PART_ENTITY = "entity"


def tokenize(text: str, min_length: Optional[int] = None) -> List[str]:
    """Whitespace split, lower-case, drop tokens shorter than min_length."""
    min_len = Config.MIN_TOKEN_LENGTH if min_length is None else min_length
    return [word for word in (text or "").lower().split() if len(word) >= min_len]


def make_part_id(document_id: str, kind: str, sequence: int) -> str:
    return f"{document_id}_{kind}_{sequence}"


def iter_document_parts(document: KnowledgeDocument) -> Iterable[Tuple[str, str, str]]:
    """Yield (part_id, body_text, title_text) for every indexable part."""
    doc_id = document.identity
    for i, section in enumerate(document.sections):
        yield make_part_id(doc_id, PART_SECTION, i), section.body, section.title
    for i, faq in enumerate(document.faqs):
        yield make_part_id(doc_id, PART_FAQ, i), f"{faq.question} {faq.answer}", faq.question
    for i, entity in enumerate(document.entities):
        yield make_part_id(doc_id, PART_ENTITY, i), entity.context_snippet, ""


class InvertedIndex:
    """Posting tables plus the part bookkeeping needed for stale-posting removal."""

    def __init__(self, body_weight: Optional[float] = None, title_weight: Optional[float] = None):
        self.body_weight = Config.BODY_WEIGHT if body_weight is None else body_weight
        self.title_weight = Config.TITLE_WEIGHT if title_weight is None else title_weight
        self.body: Dict[str, Set[str]] = defaultdict(set)
        self.title: Dict[str, Set[str]] = defaultdict(set)
        self.part_documents: Dict[str, str] = {}
        self.document_parts: Dict[str, Set[str]] = {}
        self._lock = ReadWriteLock()

    # ── writers ──────────────────────────────────────────────────────────

    def index_document(self, document: KnowledgeDocument) -> int:
        """Remove stale postings for the document, then post all its parts."""
        with self._lock.write():
            self._remove_locked(document.identity)
            parts = set()
            for part_id, body_text, title_text in iter_document_parts(document):
                parts.add(part_id)
                self.part_documents[part_id] = document.identity
                for token in tokenize(body_text):
                    self.body[token].add(part_id)
                for token in tokenize(title_text):
                    self.title[token].add(part_id)
            self.document_parts[document.identity] = parts
            return len(parts)

    def remove_document(self, document_id: str) -> int:
        with self._lock.write():
            return self._remove_locked(document_id)

    def clear(self):
        with self._lock.write():
            self.body.clear()
            self.title.clear()
            self.part_documents.clear()
            self.document_parts.clear()

    def _remove_locked(self, document_id: str) -> int:
        parts = self.document_parts.pop(document_id, set())
        if not parts:
            return 0
        for table in (self.body, self.title):
            for token in list(table.keys()):
                postings = table[token]
                postings -= parts
                if not postings:
                    del table[token]
        for part_id in parts:
            self.part_documents.pop(part_id, None)
        return len(parts)

    # ── readers ──────────────────────────────────────────────────────────

    def search(self, query: str, limit: Optional[int] = None) -> List[SearchHit]:
        if not query or not query.strip():
            raise InvalidRequest("Search query must not be empty")
        limit = Config.SEARCH_DEFAULT_LIMIT if limit is None else limit
        if limit < 1:
            raise InvalidRequest("Search limit must be at least 1")

        scores: Dict[str, float] = defaultdict(float)
        with self._lock.read():
            for token in tokenize(query):
                for part_id in self.body.get(token, ()):
                    scores[part_id] += self.body_weight
                for part_id in self.title.get(token, ()):
                    scores[part_id] += self.title_weight

            ranked = sorted(scores.items(), key=lambda item: (-item[1], item[0]))[:limit]
            return [
                SearchHit(document_id=self.part_documents[part_id], part_id=part_id, score=score)
                for part_id, score in ranked
            ]

    def stats(self) -> Dict[str, int]:
        with self._lock.read():
            return {
                "document_count": len(self.document_parts),
                "part_count": len(self.part_documents),
                "body_tokens": len(self.body),
                "title_tokens": len(self.title),
            }

    # ── snapshot ─────────────────────────────────────────────────────────

    def export(self) -> Dict[str, Any]:
        with self._lock.read():
            return {
                "body": {token: sorted(parts) for token, parts in self.body.items()},
                "title": {token: sorted(parts) for token, parts in self.title.items()},
                "parts": dict(self.part_documents),
            }

    def load(self, snapshot: Dict[str, Any]):
        """Replace all postings with a previously exported snapshot."""
        with self._lock.write():
            self.body = defaultdict(set, {t: set(p) for t, p in (snapshot.get("body") or {}).items()})
            self.title = defaultdict(set, {t: set(p) for t, p in (snapshot.get("title") or {}).items()})
            self.part_documents = dict(snapshot.get("parts") or {})
            self.document_parts = {}
            for part_id, document_id in self.part_documents.items():
                self.document_parts.setdefault(document_id, set()).add(part_id)
