"""Craft-domain vocabulary shared by the normalizer and both matchers.

Synonym tables map a canonical term to the words buyers and artisans use
for it. Profession synonyms form equivalence classes ("potter" and
"ceramics" both mean pottery). Material and technique synonyms are
hierarchical: the canonical term is broader than its synonyms, so "wood"
matches "teak" but "teak" does not match "oak".
"""

from collections.abc import Iterable

PROFESSION_SYNONYMS: dict[str, tuple[str, ...]] = {
    "pottery": ("ceramic", "ceramics", "clay work", "potter", "clay artist", "terracotta"),
    "woodworking": ("carpentry", "furniture making", "wood craft", "carpenter", "woodworker", "wood carving"),
    "jewelry": ("jewellery", "jewelry making", "goldsmith", "silversmith", "jeweler", "jeweller"),
    "textiles": ("weaving", "fabric work", "textile art", "weaver", "fabric artist", "handloom"),
    "leather work": ("leather craft", "leather goods", "leather artist", "leatherworker"),
    "metalwork": ("blacksmithing", "metal craft", "blacksmith", "metalworker", "ironwork", "brassware"),
    "painting": ("fine art", "painter", "canvas art", "miniature painting", "madhubani"),
    "embroidery": ("needlework", "thread work", "embroiderer", "zari", "chikankari"),
}

MATERIAL_SYNONYMS: dict[str, tuple[str, ...]] = {
    "wood": ("timber", "lumber", "wooden", "teak", "oak", "pine", "mahogany", "sheesham", "rosewood"),
    "metal": ("iron", "steel", "brass", "bronze", "aluminum", "copper"),
    "clay": ("ceramic", "terracotta", "porcelain", "earthenware"),
    "fabric": ("textile", "cloth", "cotton", "silk", "wool", "linen"),
    "leather": ("hide", "suede", "skin"),
    "stone": ("marble", "granite", "limestone", "sandstone"),
    "glass": ("crystal", "stained glass", "blown glass"),
    "precious metals": ("gold", "silver", "platinum"),
}

TECHNIQUE_SYNONYMS: dict[str, tuple[str, ...]] = {
    "carving": ("carved", "sculpting", "engraving", "etching"),
    "weaving": ("woven", "handwoven", "loom work"),
    "forging": ("forged", "hammered", "smithing"),
    "casting": ("cast", "molded", "poured"),
    "painting": ("painted", "brushwork"),
    "stitching": ("sewn", "embroidered"),
    "glazing": ("glazed", "enamelling", "meenakari"),
    "block printing": ("block printed", "hand block", "dabu"),
}

# Product words and the profession that makes them
PRODUCT_PROFESSIONS: dict[str, str] = {
    "table": "woodworking",
    "chair": "woodworking",
    "cabinet": "woodworking",
    "furniture": "woodworking",
    "ring": "jewelry",
    "necklace": "jewelry",
    "earring": "jewelry",
    "earrings": "jewelry",
    "bracelet": "jewelry",
    "pendant": "jewelry",
    "pot": "pottery",
    "vase": "pottery",
    "bowl": "pottery",
    "mug": "pottery",
    "saree": "textiles",
    "sari": "textiles",
    "carpet": "textiles",
    "rug": "textiles",
    "shawl": "textiles",
    "bag": "leather work",
    "wallet": "leather work",
    "belt": "leather work",
    "gate": "metalwork",
    "railing": "metalwork",
    "sculpture": "metalwork",
    "portrait": "painting",
    "mural": "painting",
    "canvas": "painting",
}

# Terms never dropped by the normalizer, whatever the length or stop-word rules
IMPORTANT_TERMS = frozenset(
    {
        "handmade", "traditional", "craft", "artisan", "handloom", "pottery", "weaving",
        "embroidery", "carving", "painting", "sculpture", "jewelry", "textile", "ceramic",
        "wood", "metal", "stone", "silk", "cotton", "wool", "leather", "bamboo", "clay",
        "gold", "silver", "brass", "experience", "years", "skilled", "master",
        "apprentice", "certified", "award",
    }
)

STOP_WORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of",
        "with", "by", "i", "me", "my", "we", "need", "want", "looking", "find",
        "someone", "who", "can", "make", "is", "are", "some",
    }
)

# Words that carry no location information
LOCATION_GENERIC_WORDS = ("city", "state", "country", "district", "village", "in", "at", "from", "near")

SKILL_EXPANSIONS: dict[str, str] = {
    "weaving": "handloom weaving textile craft",
    "pottery": "ceramic pottery clay craft",
    "embroidery": "hand embroidery needlework textile",
    "carving": "wood carving stone carving craft",
    "painting": "traditional painting art craft",
}

PRODUCT_EXPANSIONS: dict[str, str] = {
    r"handmade|traditional|authentic": "artisan handcrafted traditional",
    r"saree|sari": "saree traditional indian garment",
    r"pottery|ceramic": "pottery ceramic handmade craft",
}

# (minimum years, phrase), checked in order
EXPERIENCE_TIERS: tuple[tuple[int, str], ...] = (
    (20, "master artisan highly experienced expert craftsperson"),
    (10, "experienced skilled artisan professional craftsperson"),
    (5, "skilled artisan experienced craftsperson"),
    (1, "emerging artisan developing craftsperson"),
)

BUSINESS_PHRASES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("individual", "solo"), "individual artisan solo craftsperson"),
    (("cooperative", "group", "collective"), "artisan cooperative group craftspeople"),
    (("family",), "family business traditional artisan heritage"),
)

REGIONAL_HERITAGE: tuple[tuple[tuple[str, ...], str], ...] = (
    (("rajasthan", "jaipur", "jodhpur", "udaipur"), "rajasthani traditional craft heritage"),
    (("gujarat", "ahmedabad", "kutch"), "gujarati traditional craft heritage"),
    (("uttar pradesh", "varanasi", "lucknow"), "uttar pradesh traditional craft banarasi heritage"),
    (("west bengal", "kolkata", "bishnupur"), "bengali traditional craft heritage"),
    (("kashmir", "srinagar"), "kashmiri traditional craft heritage"),
)


def canonical_term(term: str, synonyms: dict[str, tuple[str, ...]]) -> str | None:
    """Return the canonical key a term belongs to, or None."""
    term = term.lower().strip()
    for key, words in synonyms.items():
        if term == key or term in words:
            return key
    return None


def _synonym_related(
    left: str,
    right: str,
    synonyms: dict[str, tuple[str, ...]],
    equivalent: bool,
) -> bool:
    if equivalent:
        key = canonical_term(left, synonyms)
        return key is not None and key == canonical_term(right, synonyms)
    for key, words in synonyms.items():
        if (left == key and right in words) or (right == key and left in words):
            return True
    return False


def terms_match(
    term: str,
    values: Iterable[str],
    synonyms: dict[str, tuple[str, ...]] | None = None,
    equivalent: bool | None = None,
) -> bool:
    """Check whether a term matches any of the given values.

    A match is an exact match, a substring match (either direction, for
    pieces of at least three characters), or a synonym relation from the
    given table. Profession tables are treated as equivalence classes
    unless ``equivalent`` says otherwise.
    """
    term = term.lower().strip()
    if not term:
        return False
    if equivalent is None:
        equivalent = synonyms is PROFESSION_SYNONYMS

    for value in values:
        value = value.lower().strip()
        if not value:
            continue
        if term == value:
            return True
        if len(term) >= 3 and term in value:
            return True
        if len(value) >= 3 and value in term:
            return True
        if synonyms is not None:
            if _synonym_related(term, value, synonyms, equivalent):
                return True
            if any(_synonym_related(term, word, synonyms, equivalent) for word in value.split()):
                return True
    return False
