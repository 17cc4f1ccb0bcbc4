"""
Language Detection Engine - classify text by Unicode script ranges
Indic campus languages: Hindi/Marathi (Devanagari), Gujarati, Bengali, Tamil, Telugu, Kannada
"""
from typing import Dict, List, Tuple

from campus_assistant.config import Config

BASELINE_LANGUAGE = Config.BASELINE_LANGUAGE


class LanguageDetector:
    """Simple language detection based on character analysis"""

    # Character ranges, in registration order. Hindi and Marathi share the
    # Devanagari block; the first language registered on a block wins.
    SCRIPT_RANGES: List[Tuple[str, Tuple[int, int]]] = [
        ("hi", (0x0900, 0x097F)),
        ("mr", (0x0900, 0x097F)),
        ("gu", (0x0A80, 0x0AFF)),
        ("bn", (0x0980, 0x09FF)),
        ("ta", (0x0B80, 0x0BFF)),
        ("te", (0x0C00, 0x0C7F)),
        ("kn", (0x0C80, 0x0CFF)),
    ]

    SUPPORTED_LANGUAGES = (BASELINE_LANGUAGE,) + tuple(
        lang for lang, _ in SCRIPT_RANGES if lang != BASELINE_LANGUAGE
    )

    @staticmethod
    def count_scripts(text: str) -> Dict[Tuple[int, int], int]:
        counts: Dict[Tuple[int, int], int] = {}
        blocks = {block for _, block in LanguageDetector.SCRIPT_RANGES}
        for char in text or "":
            code = ord(char)
            for start, end in blocks:
                if start <= code <= end:
                    counts[(start, end)] = counts.get((start, end), 0) + 1
                    break
        return counts

    @staticmethod
    def detect(text: str) -> str:
        """
        Detect primary language of text.
        Most script matches wins; zero matches or a tie between
        different scripts falls back to the baseline language.
        """
        if not text:
            return BASELINE_LANGUAGE

        counts = LanguageDetector.count_scripts(text)
        if not counts:
            return BASELINE_LANGUAGE

        best = max(counts.values())
        winners = [block for block, count in counts.items() if count == best]
        if len(winners) > 1:
            return BASELINE_LANGUAGE

        for lang, block in LanguageDetector.SCRIPT_RANGES:
            if block == winners[0]:
                return lang
        return BASELINE_LANGUAGE

    @staticmethod
    def is_supported(code: str) -> bool:
        return code in LanguageDetector.SUPPORTED_LANGUAGES

    @staticmethod
    def get_language_name(code: str) -> str:
        """Get full language name"""
        names = {
            'en': 'English',
            'hi': 'Hindi',
            'mr': 'Marathi',
            'gu': 'Gujarati',
            'bn': 'Bengali',
            'ta': 'Tamil',
            'te': 'Telugu',
            'kn': 'Kannada',
        }
        return names.get(code, 'English')


class MultilingualResponder:
    """Localized phrase templates keyed by language"""

    PHRASES = {
        'handoff_confirmation': {
            'en': (
                "You've been connected to our support queue. **Queue position**: {position}. "
                "**Estimated wait time**: {minutes} minutes. A human agent will assist you shortly. "
                "Your reference number is **{reference}**."
            ),
            'hi': (
                "आपको हमारी सपोर्ट क्यू से जोड़ दिया गया है। **क्यू में स्थिति**: {position}। "
                "**अनुमानित प्रतीक्षा समय**: {minutes} मिनट। एक मानव एजेंट जल्द ही आपकी सहायता करेगा। "
                "आपका संदर्भ नंबर **{reference}** है।"
            ),
            'mr': (
                "तुम्हाला आमच्या सपोर्ट रांगेत जोडले गेले आहे। **रांगेतील स्थिती**: {position}। "
                "**अंदाजे प्रतीक्षा वेळ**: {minutes} मिनिटे। एक मानवी एजेंट लवकरच तुमची मदत करेल। "
                "तुमचा संदर्भ क्रमांक **{reference}** आहे।"
            ),
        },
        'not_found': {
            'en': "Sorry, I couldn't find that information.",
            'hi': 'क्षमा करें, मुझे यह जानकारी नहीं मिली।',
            'mr': 'माफ करा, मला ही माहिती सापडली नाही।',
        },
    }

    @staticmethod
    def get_phrase(key: str, lang: str = BASELINE_LANGUAGE) -> str:
        """Get a phrase in the specified language"""
        phrases = MultilingualResponder.PHRASES.get(key, {})
        return phrases.get(lang, phrases.get(BASELINE_LANGUAGE, ''))

    @staticmethod
    def has_phrase(key: str, lang: str) -> bool:
        return lang in MultilingualResponder.PHRASES.get(key, {})


# Singleton
language_detector = LanguageDetector()
multilingual = MultilingualResponder()


def detect_language(text: str) -> str:
    """Convenience function to detect language"""
    return language_detector.detect(text)


def get_localized_phrase(key: str, text: str) -> str:
    """Get phrase localized to detected language of text"""
    lang = detect_language(text)
    return multilingual.get_phrase(key, lang)
