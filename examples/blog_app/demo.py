"""
Utility helpers for running the EmberORM blog example end-to-end.
"""

from __future__ import annotations

from typing import Any, Dict, List

from emberorm.adapters import SQLiteAdapter
from emberorm.persistence import Repository

from .models import Author, Category, Post

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS "author" (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        email TEXT NOT NULL UNIQUE,
        bio TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS "categories" (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE,
        description TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS "post" (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        title TEXT NOT NULL,
        body TEXT NOT NULL,
        published INTEGER NOT NULL DEFAULT 0,
        created_at TEXT,
        author_id INTEGER NOT NULL REFERENCES "author" (id),
        category_id INTEGER NOT NULL REFERENCES "categories" (id)
    )
    """,
)


def bootstrap_repository(dsn: str = "sqlite:///:memory:") -> Repository:
    """
    Create a SQLite-backed repository and ensure the blog schema exists.
    """

    repository = Repository(SQLiteAdapter(), dsn=dsn)
    for statement in SCHEMA:
        repository.execute(statement)
    return repository


def seed_sample_data(repository: Repository) -> Dict[str, List[Dict[str, Any]]]:
    """
    Populate authors, categories, and posts to make the example interactive.

    Only the posts are saved explicitly; their authors and categories are
    saved first as parents.
    """

    authors = [
        repository.new(Author, name="Alice Carter", email="alice@example.com", bio="Editor-in-chief."),
        repository.new(Author, name="Brian Kim", email="brian@example.com", bio="Performance specialist."),
    ]
    categories = [
        repository.new(Category, name="Announcements", description="Release notes and launch news."),
        repository.new(Category, name="Guides", description="Deep dives and tutorials."),
    ]
    posts = [
        repository.new(
            Post,
            title="Introducing EmberORM",
            body="This guide walks through repositories, models, and resource states.",
            published=True,
            author=authors[0],
            category=categories[0],
        ),
        repository.new(
            Post,
            title="Tracking changes",
            body="Assigning the same value twice never issues an UPDATE.",
            published=True,
            author=authors[1],
            category=categories[1],
        ),
    ]

    with repository.transaction():
        for post in posts:
            if not post.save():
                raise ValueError(f"Could not save post {post.title!r}: {post.errors}")

    return {
        "authors": [author.attributes for author in authors],
        "categories": [category.attributes for category in categories],
        "posts": [post.attributes for post in posts],
    }


def fetch_recent_posts(repository: Repository, limit: int = 5) -> List[Dict[str, Any]]:
    """
    Retrieve a feed of published posts with author and category metadata.
    """

    sql = """
    SELECT
        p.id,
        p.title,
        p.published,
        a.name AS author_name,
        c.name AS category_name
    FROM "post" AS p
    JOIN "author" AS a ON p.author_id = a.id
    JOIN "categories" AS c ON p.category_id = c.id
    WHERE p.published = 1
    ORDER BY p.id DESC
    LIMIT ?
    """
    rows = repository.execute(sql, (limit,)).fetchall()
    return [dict(row) for row in rows]


def posts_by_author(repository: Repository) -> Dict[str, List[str]]:
    """
    Walk the reverse ``posts`` association of each stored author.
    """

    return {author.name: [post.title for post in author.posts] for author in repository.all(Author)}


def run_demo(dsn: str = "sqlite:///:memory:") -> List[Dict[str, Any]]:
    """
    Bootstrap the database, seed data, and return a rendered feed.
    """

    repository = bootstrap_repository(dsn=dsn)
    try:
        seed_sample_data(repository)
        return fetch_recent_posts(repository)
    finally:
        repository.close()


if __name__ == "__main__":
    for entry in run_demo("sqlite:///blog_demo.db"):
        print(f"[{entry['category_name']}] {entry['title']} by {entry['author_name']}")
