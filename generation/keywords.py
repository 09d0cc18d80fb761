"""Keyword-based tagger used when a generator returns no tags."""

import re

# Tag → compiled patterns. A keyword ending in "*" matches as a word prefix,
# which covers inflected forms ("нейросет*" → нейросеть, нейросети, ...).
_TAG_RULES: dict[str, list[re.Pattern]] = {}

_RAW_RULES: dict[str, list[str]] = {
    "AI": [
        "ai", "artificial intelligence", "llm", "gpt", "chatgpt", "openai",
        "anthropic", "claude", "gemini", "generative", "ии",
        "искусственн* интеллект*", "нейросет*",
    ],
    "ML": [
        "machine learning", "deep learning", "neural network", "model training",
        "transformer", "dataset", "машинн* обучени*", "обучени* модел*",
    ],
    "Ethics": [
        "ethic*", "bias", "fairness", "privacy", "responsible ai", "regulation",
        "этик*", "предвзят*", "приватност*",
    ],
    "Web": [
        "web", "frontend", "backend", "html", "css", "javascript", "typescript",
        "react", "browser", "http", "веб", "сайт*",
    ],
    "Development": [
        "development", "developer*", "programming", "software", "code", "coding",
        "refactor*", "testing", "разработк*", "программировани*", "код",
    ],
    "Security": [
        "security", "vulnerabilit*", "encryption", "authentication", "malware",
        "безопасност*", "шифровани*", "уязвимост*",
    ],
    "Data": [
        "data", "analytics", "database*", "sql", "big data", "данн*", "аналитик*",
    ],
    "Business": [
        "business", "startup*", "marketing", "product", "revenue", "бизнес*",
        "стартап*", "маркетинг*",
    ],
    "Health": [
        "health", "medicine", "medical", "healthcare", "здоровь*", "медицин*",
    ],
    "Science": [
        "science", "research", "physics", "biology", "наук*", "исследовани*",
    ],
    "Technology": [
        "technology", "tech", "innovation", "digital", "технолог*", "цифров*",
    ],
    "Future": [
        "future", "trend*", "next generation", "будущ*", "тренд*",
    ],
}


def _compile_rules() -> None:
    """Compile keyword patterns into regexes (called once at import)."""
    for tag, keywords in _RAW_RULES.items():
        patterns = []
        for kw in keywords:
            if kw.endswith("*"):
                body = re.escape(kw[:-1]).replace(r"\*", r"\w*")
                patterns.append(re.compile(r"(?<!\w)" + body, re.IGNORECASE))
            else:
                body = re.escape(kw).replace(r"\*", r"\w*")
                patterns.append(re.compile(r"(?<!\w)" + body + r"(?!\w)", re.IGNORECASE))
        _TAG_RULES[tag] = patterns


_compile_rules()


def tag_text(title: str | None, content: str | None, max_tags: int = 5) -> list[str]:
    """Score and return top tags for generated text.

    Title matches are weighted 3x. Content is truncated to first 4000 chars.
    Returns up to max_tags sorted by score descending.
    """
    title = (title or "").strip()
    content = (content or "").strip()[:4000]

    scores: dict[str, int] = {}
    for tag, patterns in _TAG_RULES.items():
        total = 0
        for pattern in patterns:
            total += len(pattern.findall(title)) * 3 + len(pattern.findall(content))
        if total > 0:
            scores[tag] = total

    sorted_tags = sorted(scores, key=lambda t: scores[t], reverse=True)
    return sorted_tags[:max_tags]
