"""
Trust Crawler - continuous business discovery, website crawling and
registry-backed credibility scoring.
"""

__version__ = "0.1.0"
