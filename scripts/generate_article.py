#!/usr/bin/env python3
"""Generate an article from the command line."""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import config
from articles.errors import ArticleError
from articles.models import GenerationRequest
from articles.store import ArticleStore
from articles.tasks import GenerationTaskManager
from db.database import init_db
from db.repository import ArticleRepository
from generation import GENERATORS, build_generator

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Generate a draftdesk article")
    parser.add_argument("topic", nargs="?", help="Article topic")
    parser.add_argument("--context-url", help="Additional context URL passed to the generator")
    parser.add_argument("--regenerate", type=int, metavar="ID", help="Regenerate an existing article")
    parser.add_argument(
        "--generator",
        choices=sorted(GENERATORS),
        default=config.GENERATOR_BACKEND,
        help="Generator backend (default: %(default)s)",
    )
    parser.add_argument("--timeout", type=float, default=config.GENERATION_TIMEOUT, help="Generation timeout (s)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.topic is None and args.regenerate is None:
        parser.error("Specify a topic or --regenerate ID")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    init_db()
    store = ArticleStore(repository=ArticleRepository())
    manager = GenerationTaskManager(store, build_generator(args.generator), timeout=args.timeout, max_workers=1)

    try:
        if args.regenerate is not None:
            request = GenerationRequest(args.topic, args.context_url) if args.topic else None
            article = manager.regenerate(args.regenerate, request)
        else:
            article = manager.submit(GenerationRequest(args.topic, args.context_url))
    except ArticleError as e:
        logger.error("%s", e.message)
        manager.shutdown(wait=False)
        return 1

    logger.info("Article %d created with status %s (%s)", article.id, article.status.value, article.slug)
    article = manager.wait(article.id)
    manager.shutdown()
    if article is None:
        logger.error("Article disappeared while generating")
        return 1

    logger.info("Article %d finished with status %s", article.id, article.status.value)
    if article.error_message:
        logger.error("Generation failed: %s", article.error_message)
        return 1
    print(f"/{article.slug}\n{article.title}\n\n{article.description}\n\ntags: {', '.join(article.tags)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
