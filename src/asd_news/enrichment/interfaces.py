"""Data models for article enrichment."""

from dataclasses import dataclass


# Values the model is asked to choose from
CATEGORIES = ("研究", "制度・政策", "支援・療育", "学校教育", "当事者の声", "テクノロジー")
RELIABILITY_LEVELS = ("★★★", "★★", "★")


class EnrichmentStatus:
    """How an enrichment result was produced."""
    OK = "ok"
    NO_CREDENTIALS = "no_credentials"
    PARSE_ERROR = "parse_error"
    PROVIDER_ERROR = "provider_error"


@dataclass
class EnrichmentResult:
    """Structured summary for one article. Every field is always populated."""
    summary_text: str
    country: str
    category: str
    reliability: str
    parent_meaning: str
    today_action: str
    status: str = EnrichmentStatus.OK

    @property
    def is_fallback(self) -> bool:
        return self.status != EnrichmentStatus.OK


class EnricherInterface:
    """Interface for article enrichment."""

    async def analyze(self, title: str, snippet: str, source: str) -> EnrichmentResult:
        """Enrich one article. Must never raise."""
        raise NotImplementedError
