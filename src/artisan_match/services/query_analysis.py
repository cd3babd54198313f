"""Keyword analysis of buyer queries and structured field matching.

Both matching paths use this module: the fallback matcher turns field
matches into points, the vector path turns them into match flags and
reasons next to its similarity score.
"""

import re
from dataclasses import dataclass, field
from typing import Any

from artisan_match.entities import ArtisanProfile
from artisan_match.services.text_normalizer import TextNormalizer
from artisan_match.vocabulary import (
    LOCATION_GENERIC_WORDS,
    MATERIAL_SYNONYMS,
    PRODUCT_PROFESSIONS,
    PROFESSION_SYNONYMS,
    STOP_WORDS,
    TECHNIQUE_SYNONYMS,
    canonical_term,
    terms_match,
)


@dataclass(frozen=True)
class QueryAnalysis:
    """Keywords detected in a query.

    Attributes:
        original: Raw query text
        normalized: Normalized query text
        tokens: Content tokens (stop words removed)
        professions: Canonical professions detected or inferred from products
        materials: Material terms found in the query, as written
        techniques: Technique terms found in the query, as written
        products: Product words found in the query
        keywords: Every detected keyword
        confidence: Keyword-analysis confidence in [0.3, 0.8]
        method: "keyword", "synonym" or "hybrid"
    """

    original: str
    normalized: str
    tokens: tuple[str, ...]
    professions: tuple[str, ...] = ()
    materials: tuple[str, ...] = ()
    techniques: tuple[str, ...] = ()
    products: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()
    confidence: float = 0.3
    method: str = "keyword"

    def to_dict(self) -> dict[str, Any]:
        return {
            "original_query": self.original,
            "processed_query": self.normalized,
            "professions": list(self.professions),
            "materials": list(self.materials),
            "techniques": list(self.techniques),
            "products": list(self.products),
            "keywords": list(self.keywords),
            "confidence": self.confidence,
            "method": self.method,
        }


@dataclass
class FieldMatches:
    """Query terms that matched each profile field."""

    profession: list[str] = field(default_factory=list)
    profession_exact: bool = False
    materials: list[str] = field(default_factory=list)
    techniques: list[str] = field(default_factory=list)
    skills: list[str] = field(default_factory=list)
    specializations: list[str] = field(default_factory=list)
    location: list[str] = field(default_factory=list)
    name: list[str] = field(default_factory=list)
    description: list[str] = field(default_factory=list)


def _contains_term(text: str, term: str) -> bool:
    return re.search(rf"\b{re.escape(term)}s?\b", text) is not None


def _unique(values: list[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(values))


def analyze_query(text: str, normalizer: TextNormalizer) -> QueryAnalysis:
    """Detect professions, materials, techniques and products in a query."""
    normalized = normalizer.normalize(text)
    lowered = " ".join(normalizer.tokens(text)).lower()
    tokens = tuple(token for token in lowered.split() if token not in STOP_WORDS)

    professions: list[str] = []
    materials: list[str] = []
    techniques: list[str] = []
    products: list[str] = []
    keywords: list[str] = []
    total = 0
    exact = 0

    for profession, synonyms in PROFESSION_SYNONYMS.items():
        if _contains_term(lowered, profession):
            professions.append(profession)
            keywords.append(profession)
            exact += 1
            total += 1
            continue
        for synonym in synonyms:
            if _contains_term(lowered, synonym):
                professions.append(profession)
                keywords.append(synonym)
                total += 1
                break

    for table, found in ((MATERIAL_SYNONYMS, materials), (TECHNIQUE_SYNONYMS, techniques)):
        for canonical, synonyms in table.items():
            if _contains_term(lowered, canonical):
                found.append(canonical)
                keywords.append(canonical)
                exact += 1
                total += 1
            for synonym in synonyms:
                if _contains_term(lowered, synonym):
                    found.append(synonym)
                    keywords.append(synonym)
                    total += 1

    for product, profession in PRODUCT_PROFESSIONS.items():
        if _contains_term(lowered, product):
            products.append(product)
            keywords.append(product)
            professions.append(profession)
            total += 1

    confidence = 0.3
    if total:
        confidence = min(0.8, 0.3 + total * 0.1 + exact * 0.1)

    method = "keyword"
    if exact and total > exact:
        method = "hybrid"
    elif total > exact:
        method = "synonym"

    return QueryAnalysis(
        original=text,
        normalized=normalized,
        tokens=tokens,
        professions=_unique(professions),
        materials=_unique(materials),
        techniques=_unique(techniques),
        products=_unique(products),
        keywords=_unique(keywords),
        confidence=round(confidence, 2),
        method=method,
    )


def edit_distance(left: str, right: str) -> int:
    """Levenshtein distance between two strings."""
    if len(left) < len(right):
        left, right = right, left
    previous = list(range(len(right) + 1))
    for i, left_char in enumerate(left, start=1):
        current = [i]
        for j, right_char in enumerate(right, start=1):
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + (left_char != right_char),
                )
            )
        previous = current
    return previous[-1]


def fuzzy_match(term: str, values: list[str]) -> bool:
    """Typo-tolerant word match: one edit for 5+ letters, two for 9+."""
    if len(term) < 5:
        return False
    allowed = 2 if len(term) >= 9 else 1
    for value in values:
        for word in value.lower().split():
            if abs(len(word) - len(term)) <= allowed and edit_distance(term, word) <= allowed:
                return True
    return False


def _matched(
    terms: tuple[str, ...] | list[str],
    values: tuple[str, ...] | list[str],
    synonyms: dict[str, tuple[str, ...]] | None,
    fuzzy: bool,
) -> list[str]:
    if not values:
        return []
    found = []
    for term in terms:
        if len(term) < 3:
            continue
        if terms_match(term, values, synonyms) or (fuzzy and fuzzy_match(term, list(values))):
            found.append(term)
    return list(dict.fromkeys(found))


def match_fields(
    profile: ArtisanProfile,
    analysis: QueryAnalysis,
    normalizer: TextNormalizer,
    fuzzy: bool = True,
    synonyms: bool = True,
) -> FieldMatches:
    """Match query keywords and tokens against the structured profile fields."""
    matches = FieldMatches()
    terms = _unique(list(analysis.keywords) + list(analysis.tokens))

    profession_key = canonical_term(profile.profession, PROFESSION_SYNONYMS) or profile.profession.lower()
    if profession_key in analysis.professions:
        matches.profession = [profession_key]
        matches.profession_exact = True
    else:
        matches.profession = _matched(
            terms, [profile.profession], PROFESSION_SYNONYMS if synonyms else None, fuzzy
        )

    matches.materials = _matched(terms, profile.materials, MATERIAL_SYNONYMS if synonyms else None, fuzzy)
    matches.techniques = _matched(terms, profile.techniques, TECHNIQUE_SYNONYMS if synonyms else None, fuzzy)
    matches.skills = _matched(terms, profile.skills, None, fuzzy)
    matches.specializations = _matched(terms, profile.specializations, None, fuzzy)

    location_words = [
        word
        for word in normalizer.tokens(profile.location)
        if word not in LOCATION_GENERIC_WORDS
    ]
    matches.location = [
        token
        for token in analysis.tokens
        if len(token) >= 3 and (token in location_words or (fuzzy and fuzzy_match(token, location_words)))
    ]

    name_words = normalizer.tokens(profile.name)
    matches.name = [token for token in analysis.tokens if len(token) >= 3 and token in name_words]

    description_words = set(normalizer.tokens(profile.description))
    matches.description = [token for token in terms if len(token) >= 3 and token in description_words]

    return matches


def describe_matches(matches: FieldMatches, profile: ArtisanProfile) -> list[str]:
    """Human-readable reasons for a set of field matches."""
    reasons = []
    if matches.profession:
        kind = "Profession matches" if matches.profession_exact else "Profession related to"
        reasons.append(f"{kind}: {', '.join(matches.profession)}")
    if matches.materials:
        reasons.append(f"Material expertise: {', '.join(matches.materials)}")
    if matches.techniques:
        reasons.append(f"Technique skills: {', '.join(matches.techniques)}")
    if matches.skills:
        reasons.append(f"Relevant skills: {', '.join(matches.skills)}")
    if matches.specializations:
        reasons.append(f"Specializes in: {', '.join(matches.specializations)}")
    if matches.location:
        reasons.append(f"Located in {profile.location} (matches '{', '.join(matches.location)}')")
    if matches.name:
        reasons.append(f"Name matches: {', '.join(matches.name)}")
    if matches.description:
        reasons.append(f"Description mentions: {', '.join(matches.description)}")
    return reasons
