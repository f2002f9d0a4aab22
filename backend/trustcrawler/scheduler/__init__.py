"""
Long-running bots: the sharded scrape worker and the registry import bot.
"""

from trustcrawler.scheduler.import_bot import ImportBot
from trustcrawler.scheduler.scrape_worker import ScrapeWorker
from trustcrawler.scheduler.sharding import SHARD_HASH_VERSION, owns, shard_of
from trustcrawler.scheduler.state_store import InMemoryStateStore, JsonFileStateStore, StateStore

__all__ = [
    "ImportBot",
    "ScrapeWorker",
    "SHARD_HASH_VERSION",
    "owns",
    "shard_of",
    "StateStore",
    "JsonFileStateStore",
    "InMemoryStateStore",
]
