"""Prompt templates for the trending ranking pass.

Both builders are pure functions of their inputs so a ranking request can be
reproduced from the candidate set alone.
"""

from __future__ import annotations

from ..core.types import Article


def build_system_prompt(category: str, count: int) -> str:
    return (
        f"You are a senior news editor curating the {category} section of a news site.\n\n"
        f"Read the articles provided and pick the {count} stories that are most trending "
        "and newsworthy right now.\n\n"
        "Rank by these priorities, most important first:\n"
        "1. Breaking significance: a developing or just-broken story.\n"
        "2. Audience reach: how many readers the story affects.\n"
        "3. Click-worthiness: whether a typical reader would open the headline.\n"
        "4. Novelty: a fresh angle rather than a rehash.\n"
        "5. Source credibility: established outlets first.\n\n"
        "Rules:\n"
        "- Never select duplicates or near-identical stories.\n"
        "- When impact is similar, prefer the more recent story.\n"
        f"- Every selected article gets a unique rank from 1 to {count} (1 = most trending).\n\n"
        "Respond with a JSON array only, without markdown fences or commentary:\n"
        f'[{{"articleId": <number>, "rank": <1-{count}>, "score": <0-100>, '
        '"reasoning": "<one sentence on why it is trending>"}]'
    )


def build_user_prompt(
    articles: list[Article],
    category: str,
    count: int,
    excerpt_chars: int = 120,
    limit: int = 50,
) -> str:
    lines = [_article_line(article, excerpt_chars) for article in articles[:limit]]
    article_block = "\n".join(lines)
    return (
        f"Latest {category} articles:\n\n"
        f"{article_block}\n\n"
        f"Select the top {count} most trending articles and return JSON only."
    )


def _article_line(article: Article, excerpt_chars: int) -> str:
    excerpt = (article.excerpt or "")[:excerpt_chars] or "No excerpt"
    published = article.published_at.isoformat() if article.published_at else "unknown"
    return (
        f'[ID:{article.id}] "{article.title}" — {excerpt} '
        f"(Source: {article.source_name}, Published: {published})"
    )
