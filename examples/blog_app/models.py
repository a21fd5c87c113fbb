"""
Data models for the EmberORM blog example.
"""

from __future__ import annotations

from emberorm.core import BooleanField, DateTimeField, ForeignKey, Model, StringField, TextField
from emberorm.validation import RegexValidator


class Author(Model):
    name = StringField(nullable=False, max_length=120)
    email = StringField(
        nullable=False,
        unique=True,
        max_length=255,
        validators=[RegexValidator(r"[^@]+@[^@]+\.[^@]+", "Enter a valid email address.")],
    )
    bio = StringField(default="")


class Category(Model):
    name = StringField(nullable=False, unique=True, max_length=80)
    description = StringField(default="")

    class Meta:
        table = "categories"


class Post(Model):
    title = StringField(nullable=False, max_length=200)
    body = TextField(nullable=False)
    published = BooleanField(default=False)
    created_at = DateTimeField(auto_now_add=True)
    author = ForeignKey(Author, related_name="posts")
    category = ForeignKey(Category, related_name="posts")
