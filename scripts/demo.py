#!/usr/bin/env python3
"""
Demo script for artisan matching.

Seeds an in-memory catalog and runs buyer queries through the matching
orchestrator, first with keyword fallback only, then through the vector
path when Ollama is running.
"""

import asyncio

from artisan_match import ArtisanProfile, MatchingOrchestrator, MatchQuery, SearchFilters
from artisan_match.entities import SortBy
from artisan_match.repositories import InMemoryCatalogStore, OllamaEmbeddingProvider

SAMPLE_PROFILES = [
    {
        "id": "art-001",
        "name": "Lakshmi Devi",
        "profession": "jewelry",
        "materials": ["silver", "gemstones"],
        "techniques": ["filigree", "engraving"],
        "specializations": ["bridal necklaces"],
        "products": ["necklace", "earrings"],
        "description": "Handmade silver jewelry with traditional filigree work.",
        "location": "Jaipur, Rajasthan",
        "experienceYears": 15,
        "experienceLevel": "expert",
        "qualityLevel": "premium",
        "businessType": "family business",
        "rating": 4.8,
    },
    {
        "id": "art-002",
        "name": "Ramesh Kumar",
        "profession": "pottery",
        "materials": ["clay", "terracotta"],
        "techniques": ["wheel throwing", "glazing"],
        "products": ["vase", "bowl"],
        "description": "Blue pottery vases and bowls fired in a wood kiln.",
        "location": "Delhi",
        "experienceYears": 8,
        "rating": 4.2,
    },
    {
        "id": "art-003",
        "name": "Anil Sharma",
        "profession": "woodworking",
        "materials": ["teak", "rosewood"],
        "techniques": ["carving", "inlay"],
        "skills": ["furniture design"],
        "products": ["chair", "table"],
        "description": "Hand-carved wooden furniture for homes and temples.",
        "location": "Udaipur, Rajasthan",
        "experienceYears": 22,
        "experienceLevel": "master",
        "qualityLevel": "luxury",
        "businessType": "cooperative",
        "rating": 4.9,
    },
    {
        "id": "art-004",
        "name": "Fatima Begum",
        "profession": "textiles",
        "materials": ["silk", "cotton"],
        "techniques": ["block printing", "weaving"],
        "products": ["saree", "shawl"],
        "description": "Handwoven Banarasi silk sarees with natural dyes.",
        "location": "Varanasi, Uttar Pradesh",
        "experienceYears": 12,
        "availability": "busy",
        "rating": 4.5,
    },
]


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


def build_catalog() -> InMemoryCatalogStore:
    return InMemoryCatalogStore(ArtisanProfile.from_dict(record) for record in SAMPLE_PROFILES)


async def run_queries(orchestrator: MatchingOrchestrator, queries: list[MatchQuery]) -> None:
    for query in queries:
        outcome = await orchestrator.search(query)
        print(f"\n  Query: '{query.text}'")
        print(
            f"  {outcome.search_type.value} | confidence {outcome.confidence:.2f} | "
            f"{outcome.total_found} found | {outcome.processing_time_ms:.1f}ms"
        )
        for match in outcome.matches:
            print(f"    #{match.rank} {match.profile.name} ({match.profile.profession}) {match.relevance_score:.2f}")
            if match.explanation:
                print(f"       {match.explanation}")


async def demo_fallback_matching() -> None:
    """Keyword matching with the provider forced unhealthy."""
    print_section("Fallback Matching (no embeddings)")

    orchestrator = MatchingOrchestrator.create(
        catalog=build_catalog(),
        provider=OllamaEmbeddingProvider.create(),
    )
    while orchestrator.embedding_client.is_healthy():
        orchestrator.embedding_client.health.record_failure("demo")

    await run_queries(
        orchestrator,
        [
            MatchQuery(text="silver jewelry jaipur", enable_explanations=True),
            MatchQuery(text="ceramic vases"),
            MatchQuery(text="jewelery silvr"),
            MatchQuery(text="handmade furniture", sort_by=SortBy.RATING),
        ],
    )
    await orchestrator.close()


async def demo_intelligent_search() -> None:
    """Vector retrieval through Ollama; falls back per request if Ollama is down."""
    print_section("Intelligent Search (Ollama embeddings)")

    provider = OllamaEmbeddingProvider.create()
    if not await provider.is_available():
        print("\n  Ollama is not reachable; these queries will be answered by fallback.")
        print("  Start it with: ollama serve && ollama pull embeddinggemma")

    catalog = build_catalog()
    orchestrator = MatchingOrchestrator.create(catalog=catalog, provider=provider)

    await run_queries(
        orchestrator,
        [
            MatchQuery(text="someone to make a wedding necklace", enable_explanations=True),
            MatchQuery(text="traditional woven fabric", filters=SearchFilters(location="varanasi")),
            MatchQuery(text="carved temple furniture", min_score=0.1),
        ],
    )

    print("\n📝 Editing a profile invalidates its cached results and embeddings:")
    catalog.upsert(ArtisanProfile.from_dict({**SAMPLE_PROFILES[1], "description": "Khurja ceramic tableware."}))
    print(f"  Stats: {orchestrator.get_stats()['retrieval']['result_cache']}")

    print(f"\n📊 Search metrics: {orchestrator.metrics.to_dict()}")
    await orchestrator.close()


async def main_async() -> None:
    await demo_fallback_matching()
    await demo_intelligent_search()


def main() -> None:
    """Run all demos."""
    print("\n🚀 Artisan Match Demo")
    print("=" * 70)
    print("This demo matches buyer queries to artisan profiles")

    try:
        asyncio.run(main_async())

        print("\n" + "=" * 70)
        print("✅ Demo completed successfully!")
        print("=" * 70)

    except Exception as e:
        print(f"\n❌ Error: {e}")


if __name__ == "__main__":
    main()
