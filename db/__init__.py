from db.database import get_engine, get_session, init_db
from db.models import ArticleRecord, CounterRecord, ImageRecord
from db.repository import ArticleRepository

__all__ = [
    "get_engine",
    "get_session",
    "init_db",
    "ArticleRecord",
    "CounterRecord",
    "ImageRecord",
    "ArticleRepository",
]
