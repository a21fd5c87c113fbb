import pytest

from emberorm.core import ForeignKey, IntegerField, Model, OneToMany, StringField
from emberorm.state import Clean, Dirty, ImmutableLazyLoadError

SCHEMA = (
    'CREATE TABLE "author" (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT NOT NULL)',
    'CREATE TABLE "article" (id INTEGER PRIMARY KEY AUTOINCREMENT, title TEXT NOT NULL, '
    "author_id INTEGER NOT NULL REFERENCES author(id))",
)


class Author(Model):
    name = StringField(nullable=False)


class Article(Model):
    title = StringField(nullable=False)
    author = ForeignKey(Author, related_name="articles")


class TaggedArticle(Model):
    title = StringField()
    owner = ForeignKey("Author")  # string reference resolution


class Comment(Model):
    body = StringField()
    post = ForeignKey("BlogPost", related_name="comments", required=False)


class BlogPost(Model):
    title = StringField()


class Review(Model):
    writer_ref = IntegerField()
    writer = ForeignKey(Author, child_key="writer_ref", related_name="reviews")


@pytest.fixture
def repository(make_repository):
    return make_repository(*SCHEMA, database="relations.db")


def saved_article(repository, title="Intro", author_name="Alice"):
    article = repository.new(Article, title=title, author=Author(name=author_name))
    assert article.save()
    repository.adapter.reset()
    return article


def test_foreign_key_metadata_and_reverse_relationship():
    relationship = Article._meta.relationships["author"]
    assert relationship.remote_model is Author
    assert Article._meta.fields["author_id"] is relationship.child_key
    assert not relationship.child_key.nullable

    reverse = Author._meta.relationships["articles"]
    assert isinstance(reverse, OneToMany)
    assert reverse.remote_model is Article
    assert relationship.reverse is reverse


def test_string_reference_resolved_and_default_related_name():
    relationship = TaggedArticle._meta.relationships["owner"]
    assert relationship.remote_model is Author
    assert hasattr(Author, "tagged_article_set")
    assert Author.tagged_article_set.foreign_key is relationship


def test_deferred_model_resolution():
    relationship = Comment._meta.relationships["post"]
    assert relationship.remote_model is BlogPost
    assert hasattr(BlogPost, "comments")
    assert Comment._meta.fields["post_id"].nullable


def test_explicit_child_key_reuses_declared_field():
    relationship = Review._meta.relationships["writer"]
    assert relationship.child_key is Review._meta.fields["writer_ref"]
    assert "writer_id" not in Review._meta.fields


def test_assigning_wrong_type_raises():
    article = Article(title="Oops")
    with pytest.raises(TypeError):
        article.author = "Alice"


def test_saving_child_saves_new_parent_first(repository):
    author = Author(name="Alice")
    article = repository.new(Article, title="Intro", author=author)

    assert article.save()

    inserts = [sql for sql in repository.adapter.statements if sql.startswith("INSERT")]
    assert inserts[0].startswith('INSERT INTO "author"')
    assert inserts[1].startswith('INSERT INTO "article"')
    assert author.repository is repository
    assert article.author_id == author.id
    assert article.is_clean()
    assert author.is_clean()


def test_reverse_relationship_loads_children_through_identity_map(repository):
    article = saved_article(repository)

    articles = article.author.articles

    assert articles == [article]
    assert articles[0] is article


def test_parent_lazy_loads_once_per_repository(make_repository, repository):
    article = saved_article(repository)
    other = make_repository(database="relations.db")

    loaded = other.get(Article, article.id)
    assert not loaded.attribute_loaded("author")
    parent = loaded.author

    assert parent.name == "Alice"
    assert parent is other.get(Author, article.author_id)
    assert parent is not article.author
    assert other.adapter.count("SELECT") == 2


def test_loaded_child_list_follows_new_children(repository):
    article = saved_article(repository)
    author = article.author
    assert author.articles == [article]

    second = repository.new(Article, title="Sequel", author=author)

    assert author.articles == [article, second]


def test_reassigning_parent_makes_child_dirty_and_updates_key(repository):
    article = saved_article(repository)
    first_author = article.author
    assert first_author.articles == [article]
    other = repository.new(Author, name="Bob")
    other.save()

    article.author = other

    assert isinstance(article.persistence_state, Dirty)
    assert Article.author_id in article.original_attributes
    assert first_author.articles == []

    assert article.save()
    assert isinstance(article.persistence_state, Clean)
    row = repository.execute('SELECT author_id FROM "article" WHERE id = ?', article.key).fetchone()
    assert row["author_id"] == other.id


def test_commit_reapplying_parent_key_settles_clean_without_update(repository):
    article = saved_article(repository)
    stored_key = article.author_id
    article.author_id = stored_key + 100
    state = article.persistence_state
    assert isinstance(state, Dirty)

    next_state = state.commit()

    assert isinstance(next_state, Clean)
    assert article.persistence_state == next_state
    assert article.author_id == stored_key
    assert article.original_attributes == {}
    assert repository.adapter.count("UPDATE") == 0
    assert repository.identity_map(Article).get(article.key) is article


def test_assigning_same_parent_keeps_child_clean(repository):
    article = saved_article(repository)

    article.author = article.author

    assert isinstance(article.persistence_state, Clean)


def test_one_to_many_assignment_links_children_and_saves_them(repository):
    author = repository.new(Author, name="Carol")
    drafts = [Article(title="One"), Article(title="Two")]

    author.articles = drafts

    assert all(draft.author is author for draft in drafts)
    assert author.is_dirty()
    assert author.save()
    assert all(draft.is_clean() for draft in drafts)
    assert [draft.author_id for draft in drafts] == [author.id, author.id]
    count = repository.execute('SELECT COUNT(*) FROM "article"').fetchone()[0]
    assert count == 2


def test_new_parent_starts_with_empty_children(repository):
    author = repository.new(Author, name="Dora")

    assert author.articles == []


def test_deleting_resource_drops_loaded_relationships(repository):
    article = saved_article(repository)
    assert article.attribute_loaded("author")

    assert article.destroy()

    assert not article.attribute_loaded("author")
    with pytest.raises(ImmutableLazyLoadError):
        article.author
