#!/usr/bin/env python3
"""List stored articles and toggle their publication flag."""

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from articles.errors import ArticleNotFound
from articles.models import ArticleStatus
from articles.store import ArticleStore
from db.database import init_db
from db.repository import ArticleRepository

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="List draftdesk articles")
    parser.add_argument("--status", choices=[s.value for s in ArticleStatus], help="Only show this status")
    parser.add_argument("--published", action="store_true", help="Only show published articles")
    parser.add_argument("--publish", type=int, metavar="ID", help="Toggle publication of article ID")
    args = parser.parse_args()

    init_db()
    store = ArticleStore(repository=ArticleRepository())

    if args.publish is not None:
        try:
            article = store.toggle_publish(args.publish)
        except ArticleNotFound as e:
            logger.error("%s", e.message)
            return 1
        logger.info("Article %d is now %s", article.id, "published" if article.is_published else "hidden")
        return 0

    status = ArticleStatus(args.status) if args.status else None
    articles = store.list(status=status, published=True if args.published else None)
    for a in articles:
        flag = "published" if a.is_published else "draft"
        print(f"{a.id:>5}  {a.status.value:<10}  {flag:<9}  {a.created_at:%Y-%m-%d}  /{a.slug}  {a.title or '(untitled)'}")
    logger.info("%d articles", len(articles))
    return 0


if __name__ == "__main__":
    sys.exit(main())
