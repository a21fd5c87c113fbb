from examples.blog_app import (
    Author,
    Post,
    bootstrap_repository,
    fetch_recent_posts,
    posts_by_author,
    run_demo,
    seed_sample_data,
)


def test_blog_example_bootstrap_and_seed(tmp_path):
    db_path = tmp_path / "blog_example.db"
    repository = bootstrap_repository(dsn=f"sqlite:///{db_path}")
    try:
        seeded = seed_sample_data(repository)
        assert len(seeded["authors"]) == 2
        assert len(seeded["categories"]) == 2
        assert len(seeded["posts"]) == 2
        assert all(post["author_id"] is not None for post in seeded["posts"])

        feed = fetch_recent_posts(repository, limit=5)
        assert len(feed) == 2
        assert {"title", "author_name", "category_name"} <= feed[0].keys()
    finally:
        repository.close()


def test_reverse_association_lists_posts(tmp_path):
    repository = bootstrap_repository(dsn=f"sqlite:///{tmp_path / 'blog_reverse.db'}")
    try:
        seed_sample_data(repository)
        assert posts_by_author(repository) == {
            "Alice Carter": ["Introducing EmberORM"],
            "Brian Kim": ["Tracking changes"],
        }
    finally:
        repository.close()


def test_post_body_is_lazy_loaded(tmp_path):
    db_path = tmp_path / "blog_lazy.db"
    repository = bootstrap_repository(dsn=f"sqlite:///{db_path}")
    seed_sample_data(repository)
    repository.close()

    fresh = bootstrap_repository(dsn=f"sqlite:///{db_path}")
    try:
        post = fresh.first(Post, title="Introducing EmberORM")
        assert post is not None
        assert not post.attribute_loaded("body")
        assert post.body.startswith("This guide")
        assert post.attribute_loaded("body")
        assert isinstance(post.author, Author)
        assert post.author.email == "alice@example.com"
    finally:
        fresh.close()


def test_run_demo_returns_feed():
    feed = run_demo()
    assert feed
    assert all(entry["published"] for entry in feed)
