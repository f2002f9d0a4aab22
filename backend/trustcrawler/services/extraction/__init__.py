"""
Extraction of structured signals from crawled pages.
"""

from trustcrawler.services.extraction.extractor import DataExtractor, EnrichedData, data_extractor

__all__ = [
    "DataExtractor",
    "EnrichedData",
    "data_extractor",
]
