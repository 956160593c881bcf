"""Content ranking used by the similar and recommended endpoints."""
from __future__ import annotations

from types import SimpleNamespace

import pytest

from bookify.utils.recommendation_model import BookRecommendationModel


def _book(title, genre="Science Fiction", author="Someone", description="", tags=()):
    return SimpleNamespace(
        title=title, genre=genre, author_name=author, description=description, tags=list(tags), book_type="pdf",
    )


@pytest.fixture
def model():
    return BookRecommendationModel()


def test_features_weight_title_and_author(model):
    features = model.create_book_features(_book("Dune!", author="Frank Herbert", tags=["Desert"]))
    assert features.count("dune") == 3
    assert features.count("frank herbert") == 2
    assert features.count("desert") == 2


def test_rank_puts_closest_text_first(app, model):
    source = _book("Dune", author="Frank Herbert", description="desert planet spice sandworms")
    candidates = [
        _book("Foundation", author="Isaac Asimov", description="galactic empire psychohistory"),
        _book("Dune Messiah", author="Frank Herbert", description="spice desert planet emperor"),
    ]
    with app.app_context():
        ranked = model.similar_books(source, candidates, limit=2)
    assert [b.title for b in ranked] == ["Dune Messiah", "Foundation"]


def test_rank_respects_limit_and_keeps_order_on_ties(app, model):
    candidates = [_book(f"Book {i}") for i in range(5)]
    with app.app_context():
        ranked = model.rank([_book("Unrelated")], candidates, limit=3)
    assert len(ranked) == 3
    assert all(b in candidates for b in ranked)


def test_recommend_without_history_returns_candidates_in_order(model):
    candidates = [_book("A"), _book("B"), _book("C")]
    assert model.recommend([], candidates, limit=2) == candidates[:2]


def test_recent_views_weigh_more(app, model):
    recent = _book("Neuromancer", author="William Gibson", description="cyberpunk hacker matrix")
    older = _book("Emma", author="Jane Austen", description="matchmaking village society")
    candidates = [
        _book("Persuasion", author="Jane Austen", description="village society navy"),
        _book("Count Zero", author="William Gibson", description="cyberpunk hacker corporations"),
    ]
    with app.app_context():
        ranked = model.recommend([recent, older], candidates, limit=2)
    assert ranked[0].title == "Count Zero"


def test_stop_word_only_corpus_falls_back_to_input_order(app, model):
    profile = [SimpleNamespace(title="The", genre="", author_name="", description="", tags=[], book_type="")]
    candidates = [SimpleNamespace(title="A", genre="", author_name="", description="", tags=[], book_type="")]
    with app.app_context():
        assert model.rank(profile, candidates, limit=5) == candidates
