"""
Document Segmenter - turn extracted policy/FAQ text into structured knowledge

Passes (each pure, no hidden state):
1. Sections  - heading patterns, all matches sorted by offset
2. FAQs      - Q:/A: markers, then interrogative-word heuristics
3. Entities  - fee amounts and date-like tokens with context snippets
4. Topics    - static multilingual keyword frequency
"""

import re
from typing import List, Optional, Tuple

from campus_assistant.config import Config
from campus_assistant.engines.language_engine import detect_language
from campus_assistant.models import (
    ENTITY_DATE,
    ENTITY_FEE,
    FAQ,
    Entity,
    Section,
    SegmentationResult,
    Topic,
)


# =============================================================================
# PATTERNS
# =============================================================================

# Overlapping matches from different patterns are kept as separate sections.
SECTION_PATTERNS = [
    re.compile(r"(?:^|\n)\s*(?:CHAPTER|Chapter|अध्याय|प्रकरण)\s*\d+"),
    re.compile(r"(?:^|\n)\s*(?:SECTION|Section|भाग|विभाग)\s*\d+"),
    re.compile(r"(?:^|\n)\s*(?:\d+\.|\d+\))\s*[A-Z][^.]*:"),
]

_Q_MARKERS = r"Q:|Question:|प्रश्न:|सवाल:"
_A_MARKERS = r"A:|Answer:|उत्तर:|जवाब:"

FAQ_MARKER_PATTERN = re.compile(
    rf"(?:{_Q_MARKERS})\s*([^?]*\?)\s*(?:{_A_MARKERS})\s*([^Q]*?)(?=(?:{_Q_MARKERS})|$)",
    re.IGNORECASE | re.DOTALL,
)

FAQ_HEURISTIC_PATTERN = re.compile(
    r"((?<!\w)(?:क्या|What|How|कैसे|कब|When|Where|कहाँ|Why|क्यों)(?!\w)[^?]*\?)\s*([^।.]*[।.])",
    re.IGNORECASE | re.DOTALL,
)

FEE_KEYWORD_PATTERN = re.compile(
    r"(?:fee|fees|शुल्क|फीस).*?(?:₹|Rs\.?|INR)\s*(\d+(?:,\d+)*)",
    re.IGNORECASE | re.DOTALL,
)
FEE_CURRENCY_PATTERN = re.compile(r"(?:₹|Rs\.?|INR)\s*(\d+(?:,\d+)*)")

_LATIN_MONTHS = (
    r"January|February|March|April|May|June|July|August|September|October|November|December|"
    r"Jan|Feb|Mar|Apr|Jun|Jul|Aug|Sept|Sep|Oct|Nov|Dec"
)
_DEVANAGARI_MONTHS = (
    r"जनवरी|फ़रवरी|फरवरी|मार्च|अप्रैल|मई|जून|जुलाई|अगस्त|"
    r"सितंबर|सितम्बर|अक्टूबर|अक्तूबर|नवंबर|नवम्बर|दिसंबर|दिसम्बर"
)
# Devanagari vowel signs are not \w, so word edges are spelled out
_WORD_CHAR = r"[\w\u0900-\u097F]"
_MONTH = rf"(?<!{_WORD_CHAR})(?:(?:{_LATIN_MONTHS})\.?|{_DEVANAGARI_MONTHS})(?!{_WORD_CHAR})"

DATE_PATTERNS = [
    re.compile(r"(\d{1,2}[-/]\d{1,2}[-/]\d{2,4})"),
    re.compile(rf"(\d{{1,2}}\s+{_MONTH}\s+\d{{2,4}})", re.IGNORECASE),
    re.compile(rf"({_MONTH}\s+\d{{1,2}}\b(?:,?\s+\d{{4}})?)", re.IGNORECASE),
]

# English, Hindi and Marathi campus vocabulary. Duplicates across languages
# are counted once.
TOPIC_KEYWORDS = [
    # English
    'admission', 'fee', 'scholarship', 'timetable', 'exam', 'result', 'hostel', 'library',
    'placement', 'course', 'semester', 'grade', 'certificate', 'transcript',
    # Hindi
    'प्रवेश', 'शुल्क', 'छात्रवृत्ति', 'समय-सारणी', 'परीक्षा', 'परिणाम', 'छात्रावास', 'पुस्तकालय',
    # Marathi
    'प्रवेश', 'फी', 'शिष्यवृत्ती', 'वेळापत्रक', 'परीक्षा', 'निकाल',
]


# =============================================================================
# SEGMENTER
# =============================================================================

class DocumentSegmenter:
    """Ordered pattern passes over raw extracted text."""

    def __init__(self, snippet_window: Optional[int] = None):
        self.snippet_window = Config.ENTITY_SNIPPET_WINDOW if snippet_window is None else snippet_window
        self.topic_keywords = list(dict.fromkeys(TOPIC_KEYWORDS))

    def segment(self, raw_text: str) -> SegmentationResult:
        text = raw_text or ""
        return SegmentationResult(
            sections=tuple(self.extract_sections(text)),
            faqs=tuple(self.extract_faqs(text)),
            entities=tuple(self.extract_entities(text)),
            topics=tuple(self.extract_topics(text)),
            detected_language=detect_language(text),
        )

    def extract_sections(self, text: str) -> List[Section]:
        headers: List[Tuple[int, str]] = []
        for pattern in SECTION_PATTERNS:
            for match in pattern.finditer(text):
                headers.append((match.start(), match.group(0).strip()))

        headers.sort(key=lambda h: h[0])

        sections = []
        for i, (start, title) in enumerate(headers):
            end = headers[i + 1][0] if i < len(headers) - 1 else len(text)
            sections.append(Section(title=title, body=text[start:end].strip(), source_offset=start))
        return sections

    def extract_faqs(self, text: str) -> List[FAQ]:
        faqs = []
        claimed: List[Tuple[int, int]] = []

        for match in FAQ_MARKER_PATTERN.finditer(text):
            claimed.append(match.span())
            faqs.append(self._make_faq(match))

        for match in FAQ_HEURISTIC_PATTERN.finditer(text):
            if _overlaps(match.span(), claimed):
                continue
            faqs.append(self._make_faq(match))
        return faqs

    def extract_entities(self, text: str) -> List[Entity]:
        entities = []

        seen_amounts = set()
        for pattern in (FEE_KEYWORD_PATTERN, FEE_CURRENCY_PATTERN):
            for match in pattern.finditer(text):
                amount_offset = match.start(1)
                if amount_offset in seen_amounts:
                    continue
                seen_amounts.add(amount_offset)
                entities.append(self._make_entity(ENTITY_FEE, match, text))

        date_spans: List[Tuple[int, int]] = []
        for pattern in DATE_PATTERNS:
            for match in pattern.finditer(text):
                if _overlaps(match.span(1), date_spans):
                    continue
                date_spans.append(match.span(1))
                entities.append(self._make_entity(ENTITY_DATE, match, text))
        return entities

    def extract_topics(self, text: str) -> List[Topic]:
        if not text:
            return []
        lowered = text.lower()
        topics = []
        for keyword in self.topic_keywords:
            count = lowered.count(keyword.lower())
            if count > 0:
                topics.append(Topic(
                    keyword=keyword,
                    frequency=count,
                    relevance=count / len(text) * 1000,
                ))
        # Length-normalised frequency, not TF-IDF
        return sorted(topics, key=lambda t: t.relevance, reverse=True)

    def _make_faq(self, match: "re.Match") -> FAQ:
        return FAQ(
            question=match.group(1).strip(),
            answer=match.group(2).strip(),
            language=detect_language(match.group(0)),
        )

    def _make_entity(self, kind: str, match: "re.Match", text: str) -> Entity:
        offset = match.start()
        snippet = text[max(0, offset - self.snippet_window):offset + self.snippet_window]
        return Entity(kind=kind, value=match.group(1), context_snippet=snippet)


def _overlaps(span: Tuple[int, int], spans: List[Tuple[int, int]]) -> bool:
    start, end = span
    return any(start < other_end and other_start < end for other_start, other_end in spans)


document_segmenter = DocumentSegmenter()


def segment(raw_text: str) -> SegmentationResult:
    """Convenience function to segment text with default settings"""
    return document_segmenter.segment(raw_text)
