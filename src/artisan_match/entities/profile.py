"""Artisan profile domain entity."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ExperienceLevel(str, Enum):
    """Self-declared experience tier of an artisan."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    EXPERT = "expert"
    MASTER = "master"

    @property
    def rank(self) -> int:
        return _EXPERIENCE_ORDER.index(self)


class AvailabilityStatus(str, Enum):
    """Whether an artisan currently accepts work."""

    AVAILABLE = "available"
    BUSY = "busy"
    UNAVAILABLE = "unavailable"


class QualityLevel(str, Enum):
    """Quality tier of an artisan's work, used as the first ranking tie-break."""

    BASIC = "basic"
    STANDARD = "standard"
    PREMIUM = "premium"
    LUXURY = "luxury"

    @property
    def rank(self) -> int:
        return _QUALITY_ORDER.index(self)


_EXPERIENCE_ORDER = list(ExperienceLevel)
_QUALITY_ORDER = list(QualityLevel)


def _as_tuple(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,) if value.strip() else ()
    return tuple(str(item) for item in value if str(item).strip())


@dataclass(frozen=True)
class ArtisanProfile:
    """Immutable snapshot of an artisan profile as read from the catalog.

    Only ``id``, ``name`` and ``profession`` are required. Every optional
    field has a concrete empty default so scoring code never sees ``None``.

    Attributes:
        id: Stable catalog identifier
        name: Display name
        profession: Primary craft (e.g. "pottery", "jewelry")
        materials: Materials the artisan works with
        techniques: Techniques the artisan practises
        skills: Free-form skill labels
        specializations: Signature items or styles
        products: Product types the artisan sells
        description: Free-text biography
        location: City / state text
        experience_years: Years of practice
        experience_level: Declared experience tier
        availability: Current availability
        quality_level: Quality tier
        business_type: Business structure (individual, cooperative, family...)
        rating: Average buyer rating (0-5)
        updated_at: Last modification time in the catalog
    """

    id: str
    name: str
    profession: str
    materials: tuple[str, ...] = ()
    techniques: tuple[str, ...] = ()
    skills: tuple[str, ...] = ()
    specializations: tuple[str, ...] = ()
    products: tuple[str, ...] = ()
    description: str = ""
    location: str = ""
    experience_years: int = 0
    experience_level: ExperienceLevel = ExperienceLevel.INTERMEDIATE
    availability: AvailabilityStatus = AvailabilityStatus.AVAILABLE
    quality_level: QualityLevel = QualityLevel.STANDARD
    business_type: str = ""
    rating: float = 0.0
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ArtisanProfile":
        """Build a profile from a loosely-typed catalog record.

        Accepts snake_case or camelCase keys. Missing optional fields get
        their defaults; ``id``, ``name`` and ``profession`` must be present.

        Raises:
            ValueError: If a required field is missing or empty
        """

        def pick(*keys: str, default: Any = None) -> Any:
            for key in keys:
                if data.get(key) is not None:
                    return data[key]
            return default

        profile_id = pick("id", "uid", "artisanId")
        name = pick("name")
        profession = pick("profession", "artisticProfession")
        for label, value in (("id", profile_id), ("name", name), ("profession", profession)):
            if not value or not str(value).strip():
                raise ValueError(f"Artisan profile is missing required field '{label}'")

        updated_at = pick("updated_at", "updatedAt")
        if isinstance(updated_at, str):
            updated_at = datetime.fromisoformat(updated_at)
        if updated_at is None:
            updated_at = datetime.now(timezone.utc)

        return cls(
            id=str(profile_id),
            name=str(name),
            profession=str(profession),
            materials=_as_tuple(pick("materials")),
            techniques=_as_tuple(pick("techniques")),
            skills=_as_tuple(pick("skills")),
            specializations=_as_tuple(pick("specializations")),
            products=_as_tuple(pick("products")),
            description=str(pick("description", default="")),
            location=str(pick("location", default="")),
            experience_years=int(pick("experience_years", "experienceYears", "experience", default=0)),
            experience_level=ExperienceLevel(
                pick("experience_level", "experienceLevel", default="intermediate")
            ),
            availability=AvailabilityStatus(pick("availability", default="available")),
            quality_level=QualityLevel(pick("quality_level", "qualityLevel", default="standard")),
            business_type=str(pick("business_type", "businessType", default="")),
            rating=float(pick("rating", default=0.0)),
            updated_at=updated_at,
        )
