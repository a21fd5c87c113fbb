"""
Blog-style sample application showcasing EmberORM resource lifecycles.
"""

from .demo import bootstrap_repository, fetch_recent_posts, posts_by_author, run_demo, seed_sample_data
from .models import Author, Category, Post

__all__ = [
    "Author",
    "Category",
    "Post",
    "bootstrap_repository",
    "seed_sample_data",
    "fetch_recent_posts",
    "posts_by_author",
    "run_demo",
]
