"""Feed configuration: default ASD sources and JSON loader."""

import json
from pathlib import Path
from typing import List, Optional, Union

from ..ingestion.interfaces import FeedSource


def _google_news(site: str, hl: str, gl: str) -> str:
    """Google News search restricted to one domain, last 30 days."""
    return (
        f"https://news.google.com/rss/search?q=site:{site}+autism+when:30d"
        f"&hl={hl}&gl={gl}&ceid={gl}:{hl.split('-')[0]}"
    )


DEFAULT_FEEDS: List[FeedSource] = [
    # Core institutions
    FeedSource("CDC Autism News", "https://tools.cdc.gov/api/v2/resources/media/132608.rss", True),
    FeedSource("National Autistic Society", _google_news("autism.org.uk", "en-GB", "GB"), True),
    FeedSource("Spectrum News", "https://www.thetransmitter.org/spectrum/feed/", True),
    FeedSource("Nature", "https://www.nature.com/subjects/autism-spectrum-disorders.rss", True),
    FeedSource("NIH News Releases", _google_news("nih.gov", "en-US", "US"), True),
    FeedSource("OTARC", _google_news("latrobe.edu.au", "en-AU", "AU"), True),
    # Support and research organisations
    FeedSource("Autism-Europe", _google_news("autismeurope.org", "en-GB", "GB"), True),
    FeedSource("Autism Canada", _google_news("autismcanada.org", "en-CA", "CA"), True),
    FeedSource("Amaze (Australia)", _google_news("amaze.org.au", "en-AU", "AU"), True),
    FeedSource("Cambridge ARC", _google_news("autismresearchcentre.com", "en-GB", "GB"), True),
    FeedSource("Karolinska Institutet", _google_news("ki.se", "en-US", "US"), True),
    # Topic media
    FeedSource("ScienceDaily", "https://www.sciencedaily.com/rss/mind_brain/autism.xml", True),
    FeedSource("Neuroscience News", "https://neurosciencenews.com/neuroscience-topics/autism/feed/", True),
    FeedSource("Autism Spectrum News", "https://autismspectrumnews.org/feed", True),
    FeedSource("Autism Awareness Centre", "https://autismawarenesscentre.com/feed", True),
]


def load_feeds(config_path: Optional[Union[str, Path]] = None) -> List[FeedSource]:
    """Load feed sources from a JSON file, or the built-in list.

    File format: {"feeds": [{"name": ..., "url": ..., "dedicated": true}]}
    """
    if config_path is None:
        return list(DEFAULT_FEEDS)

    with open(config_path, encoding="utf-8") as f:
        data = json.load(f)

    feeds = []
    for feed_data in data.get("feeds", []):
        if not feed_data.get("enabled", True):
            continue
        feeds.append(FeedSource(
            name=feed_data["name"],
            url=feed_data["url"],
            dedicated=bool(feed_data.get("dedicated", False)),
        ))

    return feeds
