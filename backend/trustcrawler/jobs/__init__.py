"""
Per-entity jobs run by the scheduler and the orchestrator.
"""

from trustcrawler.jobs.enrich_business import (
    BusinessEnricher,
    SiteAnalysis,
    merge_into_record,
    score_analysis,
)

__all__ = [
    "BusinessEnricher",
    "SiteAnalysis",
    "merge_into_record",
    "score_analysis",
]
