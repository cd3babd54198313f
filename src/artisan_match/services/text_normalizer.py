"""Text normalization and chunking.

Produces the stable, comparison-ready text used for embedding, for cache
keys and for keyword matching. The same normalizer must be used for
queries and profiles, otherwise cache keys and content hashes drift.
"""

import hashlib
import math
import re
from dataclasses import dataclass

from artisan_match.entities import ArtisanProfile
from artisan_match.vocabulary import (
    BUSINESS_PHRASES,
    EXPERIENCE_TIERS,
    IMPORTANT_TERMS,
    LOCATION_GENERIC_WORDS,
    PRODUCT_EXPANSIONS,
    REGIONAL_HERITAGE,
    SKILL_EXPANSIONS,
    STOP_WORDS,
)

_DISALLOWED_WITH_PUNCTUATION = re.compile(r"[^\w\s.,!?;:()\-]")
_DISALLOWED_WITHOUT_PUNCTUATION = re.compile(r"[^\w\s]")
_LEADING_PUNCTUATION = re.compile(r"^[^\w]+")
_TRAILING_PUNCTUATION = re.compile(r"[^\w]+$")
_TOKENS_PER_WORD = 1.3
_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+|\n+")
_LOCATION_GENERIC = re.compile(r"\b(" + "|".join(LOCATION_GENERIC_WORDS) + r")\b", re.IGNORECASE)


@dataclass(frozen=True)
class NormalizerConfig:
    """Normalization switches.

    Attributes:
        lowercase: Fold text to lower case
        remove_stop_words: Drop common stop words
        strip_special_chars: Replace characters outside the allowed set
        preserve_punctuation: Keep sentence punctuation (. , ! ? ; : ( ) -)
        preserve_numbers: Keep purely numeric tokens
        min_token_length: Shorter tokens are dropped
        max_token_length: Longer tokens are dropped
    """

    lowercase: bool = True
    remove_stop_words: bool = False
    strip_special_chars: bool = True
    preserve_punctuation: bool = True
    preserve_numbers: bool = True
    min_token_length: int = 2
    max_token_length: int = 50


@dataclass(frozen=True)
class ProfileField:
    """A profile field contributing to the composite text."""

    name: str
    weight: float


# Repeat count for each field is ceil(weight * repeat_scale)
PROFILE_FIELDS: tuple[ProfileField, ...] = (
    ProfileField("profession", 1.0),
    ProfileField("skills", 0.9),
    ProfileField("materials", 0.8),
    ProfileField("techniques", 0.8),
    ProfileField("specializations", 0.7),
    ProfileField("products", 0.6),
    ProfileField("description", 0.6),
    ProfileField("location", 0.4),
)


class TextNormalizer:
    """Normalizes free text and artisan profiles, and chunks long text."""

    def __init__(
        self,
        config: NormalizerConfig | None = None,
        profile_fields: tuple[ProfileField, ...] = PROFILE_FIELDS,
        repeat_scale: float = 2.0,
        field_separator: str = ". ",
    ) -> None:
        """
        Initialize the normalizer.

        Args:
            config: Normalization switches. Defaults to NormalizerConfig().
            profile_fields: Fields (and weights) used by preprocess_profile.
            repeat_scale: Multiplier turning a field weight into a repeat count.
            field_separator: Joins field texts in the composite profile text.
        """
        self._config = config or NormalizerConfig()
        self._profile_fields = profile_fields
        self._repeat_scale = repeat_scale
        self._separator = field_separator

    @property
    def config(self) -> NormalizerConfig:
        return self._config

    def normalize(self, text: str | None) -> str:
        """
        Normalize text for embedding and comparison.

        Collapses whitespace, folds case, replaces disallowed characters,
        then drops tokens outside the length bounds (and stop words, if
        configured). Terms in the domain allow-list are always kept. A
        trailing sentence terminator on a token is preserved so sentence
        boundaries survive; numerics such as "2.5" are left intact.

        Args:
            text: Raw text.

        Returns:
            Normalized text (empty string for empty input).
        """
        if not text:
            return ""

        processed = " ".join(text.split())
        if self._config.lowercase:
            processed = processed.lower()

        if self._config.strip_special_chars:
            pattern = (
                _DISALLOWED_WITH_PUNCTUATION
                if self._config.preserve_punctuation
                else _DISALLOWED_WITHOUT_PUNCTUATION
            )
            processed = pattern.sub(" ", processed)

        tokens = []
        for raw in processed.split():
            token, terminator = self._split_token(raw)
            if token and self._should_keep(token):
                tokens.append(token + terminator)
        return " ".join(tokens)

    def tokens(self, text: str | None) -> list[str]:
        """Normalize text and return bare word tokens (no punctuation)."""
        words = []
        for raw in self.normalize(text).split():
            word = _TRAILING_PUNCTUATION.sub("", raw)
            if word:
                words.append(word)
        return words

    def preprocess_profile(self, profile: ArtisanProfile) -> str:
        """
        Build the composite text used to embed a whole profile.

        Each configured field is extracted, given field-specific
        preprocessing, and repeated ceil(weight * repeat_scale) times. The
        field texts are joined with the separator, followed by a contextual
        clause derived from experience, business structure and region.

        Args:
            profile: The artisan profile.

        Returns:
            Normalized composite text.
        """
        parts: list[str] = []
        for profile_field in self._profile_fields:
            text = self.field_text(profile, profile_field.name)
            if not text:
                continue
            repetitions = max(1, math.ceil(profile_field.weight * self._repeat_scale))
            parts.extend([text] * repetitions)

        context = self.contextual_text(profile)
        if context:
            parts.append(context)

        return self.normalize(self._separator.join(parts))

    def field_text(self, profile: ArtisanProfile, field_name: str) -> str:
        """Extract one field as text, with field-specific preprocessing applied."""
        value = getattr(profile, field_name, None)
        if not value:
            return ""
        text = ", ".join(value) if isinstance(value, tuple) else str(value)

        if field_name == "location":
            return self._preprocess_location(text)
        if field_name == "skills":
            return self._preprocess_skills(text)
        if field_name == "products":
            return self._preprocess_products(text)
        return text

    def contextual_text(self, profile: ArtisanProfile) -> str:
        """Derive experience, business and regional phrases for a profile."""
        phrases = []

        for min_years, phrase in EXPERIENCE_TIERS:
            if profile.experience_years >= min_years:
                phrases.append(phrase)
                break

        business = profile.business_type.lower()
        for keywords, phrase in BUSINESS_PHRASES:
            if any(keyword in business for keyword in keywords):
                phrases.append(phrase)
                break

        location = profile.location.lower()
        for places, phrase in REGIONAL_HERITAGE:
            if any(place in location for place in places):
                phrases.append(phrase)
                break

        return " ".join(phrases)

    def chunk(self, text: str, max_chunk_size: int = 512, overlap_size: int = 50) -> list[str]:
        """
        Split text into chunks on sentence boundaries.

        Sentences are packed greedily while the estimated token count stays
        within max_chunk_size. Each new chunk is seeded with the trailing
        words of the previous chunk whose estimated token count fits in
        overlap_size (the seed is dropped when it would push the chunk over
        the limit). A sentence that alone exceeds max_chunk_size becomes its
        own chunk; nothing is dropped.

        Args:
            text: Text to chunk.
            max_chunk_size: Token budget per chunk.
            overlap_size: Token budget carried over from the previous chunk.

        Returns:
            List of chunks (empty for blank text).
        """
        if max_chunk_size < 1:
            raise ValueError("max_chunk_size must be at least 1")

        text = text.strip()
        if not text:
            return []
        if self.estimate_tokens(text) <= max_chunk_size:
            return [text]

        chunks: list[str] = []
        current: list[str] = []
        current_size = 0
        has_new_sentence = False

        def close() -> None:
            nonlocal current, current_size, has_new_sentence
            chunks.append(" ".join(current))
            seed = self._tail_words(chunks[-1], overlap_size)
            current = [seed] if seed else []
            current_size = self.estimate_tokens(seed)
            has_new_sentence = False

        for sentence in self.split_sentences(text):
            size = self.estimate_tokens(sentence)

            if has_new_sentence and current_size + size > max_chunk_size:
                close()

            if current_size + size > max_chunk_size:
                current, current_size = [], 0

            if size > max_chunk_size:
                current.append(sentence)
                close()
                continue

            current.append(sentence)
            current_size += size
            has_new_sentence = True

        if has_new_sentence:
            chunks.append(" ".join(current))

        return chunks

    def split_sentences(self, text: str) -> list[str]:
        """Split text on sentence terminators and line breaks."""
        return [sentence.strip() for sentence in _SENTENCE_BOUNDARY.split(text) if sentence.strip()]

    @staticmethod
    def estimate_tokens(text: str) -> int:
        """Rough token estimate: 1.3 tokens per whitespace-separated word."""
        words = text.split()
        return math.ceil(len(words) * _TOKENS_PER_WORD) if words else 0

    @staticmethod
    def content_hash(text: str, field_type: str = "") -> str:
        """Stable hash of normalized text and its field type."""
        digest = hashlib.sha256(f"{field_type}\x00{text}".encode("utf-8"))
        return digest.hexdigest()

    def _split_token(self, raw: str) -> tuple[str, str]:
        token = _LEADING_PUNCTUATION.sub("", raw)
        trailing = _TRAILING_PUNCTUATION.search(token)
        terminator = ""
        if trailing:
            punctuation = trailing.group()
            token = token[: trailing.start()]
            for mark in ".!?":
                if mark in punctuation:
                    terminator = mark
                    break
        return token, terminator

    def _should_keep(self, token: str) -> bool:
        if token.lower() in IMPORTANT_TERMS:
            return True
        if not self._config.min_token_length <= len(token) <= self._config.max_token_length:
            return False
        if self._config.remove_stop_words and token.lower() in STOP_WORDS:
            return False
        if not self._config.preserve_numbers and token.isdigit():
            return False
        return True

    @staticmethod
    def _tail_words(text: str, token_budget: int) -> str:
        words = text.split()
        count = 0
        while count < len(words) and math.ceil((count + 1) * _TOKENS_PER_WORD) <= token_budget:
            count += 1
        return " ".join(words[len(words) - count :])

    @staticmethod
    def _preprocess_location(text: str) -> str:
        return " ".join(_LOCATION_GENERIC.sub(" ", text).split())

    @staticmethod
    def _preprocess_skills(text: str) -> str:
        processed = text.lower()
        for skill, expansion in SKILL_EXPANSIONS.items():
            processed = re.sub(rf"\b{skill}\b", expansion, processed)
        return processed

    @staticmethod
    def _preprocess_products(text: str) -> str:
        processed = text
        for pattern, expansion in PRODUCT_EXPANSIONS.items():
            processed = re.sub(rf"\b({pattern})\b", expansion, processed, flags=re.IGNORECASE)
        return processed
