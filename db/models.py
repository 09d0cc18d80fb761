"""SQLAlchemy models for draftdesk."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class ArticleRecord(Base):
    """Persisted article row."""

    __tablename__ = "articles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    slug: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    topic: Mapped[str] = mapped_column(String, nullable=False, default="")
    title: Mapped[str] = mapped_column(String, nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(String, nullable=False)  # PROCESSING, DONE, ERROR
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    tags: Mapped[str | None] = mapped_column(String)  # JSON array
    additional_context_url: Mapped[str | None] = mapped_column(String)
    images: Mapped[str | None] = mapped_column(Text)  # JSON array of {filename, original_name}
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        Index("idx_status", "status"),
        Index("idx_created", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<ArticleRecord(id={self.id}, slug={self.slug!r}, status={self.status!r})>"


class ImageRecord(Base):
    """Uploaded image metadata. Bytes are kept by the file storage."""

    __tablename__ = "images"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    filename: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    original_name: Mapped[str] = mapped_column(String, nullable=False)
    registered_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<ImageRecord(filename={self.filename!r})>"


class CounterRecord(Base):
    """Named monotonic counters, e.g. the highest article id ever issued."""

    __tablename__ = "counters"

    name: Mapped[str] = mapped_column(String, primary_key=True)
    value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<CounterRecord(name={self.name!r}, value={self.value})>"
