"""LLM-powered article analyzer producing parent-oriented summaries."""

import json
from typing import Any, List, Optional

import structlog

from .interfaces import (
    CATEGORIES, RELIABILITY_LEVELS,
    EnricherInterface, EnrichmentResult, EnrichmentStatus
)
from .llm_client import LLMClient
from ..config.settings import Settings

logger = structlog.get_logger()

MAX_BULLETS = 3

DEFAULT_COUNTRY = "不明"
DEFAULT_CATEGORY = "研究"
DEFAULT_RELIABILITY = "★★"


def no_credentials_fallback(title: str) -> EnrichmentResult:
    """Placeholder used when no API key is configured."""
    return EnrichmentResult(
        summary_text=(
            f"TITLE: {title}\n"
            "- この記事の要約は現在準備中です。\n"
            "- 詳しくはリンク先の元記事をご覧ください。\n"
            "- APIキーが設定されていない可能性があります。"
        ),
        country=DEFAULT_COUNTRY,
        category=DEFAULT_CATEGORY,
        reliability=DEFAULT_RELIABILITY,
        parent_meaning="詳細は元記事をご確認ください。",
        today_action="最新の研究動向に関心を持ち、情報を集めましょう。",
        status=EnrichmentStatus.NO_CREDENTIALS,
    )


def processing_fallback(status: str) -> EnrichmentResult:
    """Placeholder used when the model call or its parsing fails.

    Worded as "in progress" so readers do not take it as a permanent error.
    """
    return EnrichmentResult(
        summary_text=(
            "TITLE: 英語見出しのため準備中\n"
            "- こちらの記事は現在、日本語への翻訳・要約処理を行っています。\n"
            "- しばらく経ってから「今すぐ更新」を押すか、リンク先の元記事をご確認ください。"
        ),
        country=DEFAULT_COUNTRY,
        category=DEFAULT_CATEGORY,
        reliability=DEFAULT_RELIABILITY,
        parent_meaning="詳細は元記事をご確認ください。",
        today_action="最新の研究動向に関心を持ち、情報を集めましょう。",
        status=status,
    )


def extract_json_object(text: str) -> Optional[str]:
    """Return the first balanced {...} in text, ignoring braces inside strings."""
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


def parse_response(text: str) -> dict:
    """Parse the model output into a dict. Raises ValueError on failure."""
    snippet = extract_json_object(text or "")
    if snippet is None:
        raise ValueError("Valid JSON not found in the response.")
    data = json.loads(snippet)
    if not isinstance(data, dict):
        raise ValueError("Response JSON is not an object.")
    return data


def _text(value: Any) -> Optional[str]:
    """Non-empty stripped string or None."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _choice(value: Any, allowed, default: str) -> str:
    """The value if it is one of the allowed labels, else the default."""
    value = _text(value)
    return value if value in allowed else default


def _bullets(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    bullets = [_text(b) for b in value]
    return [b for b in bullets if b][:MAX_BULLETS]


class ArticleAnalyzer(EnricherInterface):
    """Turns one article into a structured, parent-oriented summary."""

    ANALYSIS_PROMPT = """あなたはASD（自閉スペクトラム症）の専門ジャーナリスト兼、特別支援教育の専門家です。
以下のニュース記事を分析し、日本人の保護者（特にASDの小学生を持つ親）向けに情報を整理してください。

【最重要ミッション】
難しい研究や海外の専門的なニュースであっても、「ASDの子どもや、小学生を持つ親の日常・教育・子育てにどう役立つか」という視点を最優先に抽出・意訳してください。専門用語は極力避け、温かく希望を持てる表現を使用してください。

【出力フォーマット（JSON形式で厳守）】
以下のJSON形式で出力してください。JSONのみを出力し、他のテキストは一切含めないでください。

{{
  "titleJa": "25文字以内の日本語タイトル",
  "bullets": [
    "要約1行目（必ず「。」で終わる完結した文）",
    "要約2行目（必ず「。」で終わる完結した文）",
    "要約3行目（必ず「。」で終わる完結した文）"
  ],
  "country": "記事の発信国コード（US / UK / AU / JP / EU / CA / 国際 など）",
  "category": "以下から1つ選択: 研究 / 制度・政策 / 支援・療育 / 学校教育 / 当事者の声 / テクノロジー",
  "reliability": "情報源の信頼度を以下から選択: ★★★ / ★★ / ★",
  "parentMeaning": "この記事が保護者にとってどんな意味があるか（40文字以内、具体的に）",
  "todayAction": "この記事を読んだ保護者が今日できる具体的なアクション1つ（40文字以内）"
}}

【信頼度の基準】
- ★★★：政府機関（CDC, NIH等）、学会誌、大学の査読付き研究
- ★★：専門メディア（ScienceDaily, Spectrum等）、専門団体
- ★：個人ブログ、体験談、SNS情報

【記事情報】
ソース: {source}
タイトル: {title}
内容: {snippet}

【注意事項】
- 必ず有効なJSON形式で出力すること
- 保護者の不安を煽らず、前向きで実用的な内容にすること
- 「今日の1アクション」は具体的で実行可能なものにすること
- ※重要：もし「内容」が極端に短かったり、「タイトル」と同じであった場合でも、決してエラーにはせず、タイトルから推測して必ず全ての項目を日本語で埋めたJSONを生成してください。"""

    def __init__(self, settings: Settings, llm_client: LLMClient = None):
        self.settings = settings
        if llm_client is None and settings.gemini_api_key:
            llm_client = LLMClient(settings)
        self.llm_client = llm_client

    def build_prompt(self, title: str, snippet: str, source: str) -> str:
        return self.ANALYSIS_PROMPT.format(
            source=source,
            title=title,
            snippet=snippet or "",
        )

    async def analyze(self, title: str, snippet: str, source: str) -> EnrichmentResult:
        """Enrich one article. Always returns a fully populated result."""
        if self.llm_client is None:
            logger.warning("llm_not_configured", msg="GEMINI_API_KEY is not set, using fallback")
            return no_credentials_fallback(title)

        prompt = self.build_prompt(title, snippet, source)

        try:
            response = await self.llm_client.complete(prompt=prompt)
        except Exception as e:
            logger.error("enrichment_failed", title=title[:80], error=str(e))
            return processing_fallback(EnrichmentStatus.PROVIDER_ERROR)

        try:
            data = parse_response(response)
        except ValueError:
            logger.warning("enrichment_parse_failed", title=title[:80], response=(response or "")[:200])
            return processing_fallback(EnrichmentStatus.PARSE_ERROR)

        return self._to_result(data, title)

    def _to_result(self, data: dict, title: str) -> EnrichmentResult:
        """Compose the summary block and default any missing field."""
        lines = [f"TITLE: {_text(data.get('titleJa')) or title}"]
        lines.extend(f"- {bullet}" for bullet in _bullets(data.get("bullets")))

        result = EnrichmentResult(
            summary_text="\n".join(lines),
            country=_text(data.get("country")) or DEFAULT_COUNTRY,
            category=_choice(data.get("category"), CATEGORIES, DEFAULT_CATEGORY),
            reliability=_choice(data.get("reliability"), RELIABILITY_LEVELS, DEFAULT_RELIABILITY),
            parent_meaning=_text(data.get("parentMeaning")) or "詳細な内容は記事リンクよりご確認ください。",
            today_action=_text(data.get("todayAction")) or "見出しから気になるポイントをチェックしてみましょう。",
        )
        logger.info("enrichment_complete", title=title[:80], category=result.category)
        return result
