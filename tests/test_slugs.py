"""Tests for id and slug helpers."""

from articles.slugs import (
    derive_slug,
    is_temporary_slug,
    next_id,
    slugify,
    temporary_slug,
)


def test_next_id_empty():
    assert next_id([]) == 1


def test_next_id_above_max():
    assert next_id([1, 7, 3]) == 8


def test_next_id_respects_last_issued():
    # id 9 was handed out and deleted; it must not come back
    assert next_id([1, 2], last_issued=9) == 10


def test_temporary_slug_format():
    slug = temporary_slug()
    assert slug.startswith("temp-")
    assert len(slug) == len("temp-") + 8
    assert is_temporary_slug(slug)


def test_temporary_slugs_differ():
    assert len({temporary_slug() for _ in range(50)}) == 50


def test_is_temporary_slug_rejects_derived():
    assert not is_temporary_slug("ai-ethics")
    assert not is_temporary_slug("temp-")


def test_slugify():
    assert slugify("AI Ethics") == "ai-ethics"
    assert slugify("  Future   of\tML ") == "future-of-ml"


def test_slugify_keeps_unicode():
    assert slugify("Искусственный интеллект") == "искусственный-интеллект"


def test_derive_slug_no_collision():
    assert derive_slug("AI Ethics", {"other"}) == "ai-ethics"


def test_derive_slug_appends_id_on_collision():
    assert derive_slug("AI Ethics", {"ai-ethics"}, article_id=4) == "ai-ethics-4"


def test_derive_slug_counter_without_id():
    assert derive_slug("X", {"x", "x-2"}) == "x-3"


def test_derive_slug_counter_when_id_suffix_taken():
    assert derive_slug("X", {"x", "x-4"}, article_id=4) == "x-4-2"


def test_derive_slug_deterministic():
    existing = {"x", "x-2"}
    assert derive_slug("X", existing, 5) == derive_slug("X", existing, 5)


def test_trailing_space_collides_with_trimmed_topic():
    first = derive_slug("X", set(), 1)
    second = derive_slug("X ", {first}, 2)
    assert first == "x"
    assert second == "x-2"
