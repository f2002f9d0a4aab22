"""
Services layer for Trust Crawler business logic.

MODULES:
- crawler/: Deep crawler (homepage-first BFS, sitemap seeding)
- extraction/: Contact, sitelink, logo and metadata extraction
- ai/: Text intelligence provider + defensive adapter
- registry/: Official registry lookups behind one verifier

STANDALONE SERVICES:
- fetcher: Single-page fetcher with identity rotation and timeout escalation
- sitemap: sitemap.xml discovery
- url_utils: URL normalization, host checks, robots.txt
- trust_engine: Credibility scoring with auditable breakdown

ARCHITECTURE:
Scheduler → DeepCrawler → DataExtractor → (TextIntelligenceAdapter,
RegistryVerifier) → TrustEngine → RecordStore
"""
