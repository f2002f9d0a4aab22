"""
Deep crawling of business websites.
"""

from trustcrawler.services.crawler.deep_crawler import DeepCrawler
from trustcrawler.services.crawler.models import CrawlResult, CrawlStats, PageResult
from trustcrawler.services.crawler.page_parser import parse_page

__all__ = [
    "DeepCrawler",
    "CrawlResult",
    "CrawlStats",
    "PageResult",
    "parse_page",
]
