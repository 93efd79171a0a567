from .feed_parser import parse_feed
from .types import FeedDocument, FeedEntry

__all__ = [
    "FeedDocument",
    "FeedEntry",
    "parse_feed",
]
