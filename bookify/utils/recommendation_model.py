from sklearn.feature_extraction.text import TfidfVectorizer
from sklearn.metrics.pairwise import cosine_similarity
import numpy as np
import re
from flask import current_app


class BookRecommendationModel:
    """Orders candidate books by how close their text is to a reading profile.

    Candidate selection (same genre, unseen, ...) happens in the query; this
    model only ranks what it is given, so every invariant of the selection
    holds for its output.
    """

    def __init__(self, max_features=5000):
        self.max_features = max_features

    def _vectorizer(self):
        return TfidfVectorizer(
            stop_words='english',
            ngram_range=(1, 2),  # Consider phrases up to 2 words
            max_features=self.max_features,
            min_df=1,  # Small catalogs: keep every term
        )

    def preprocess_text(self, text):
        """Clean and normalize text data"""
        if not text:
            return ""
        text = text.lower()
        text = re.sub(r'[^a-z0-9\s]', ' ', text)
        text = ' '.join(text.split())
        return text

    def create_book_features(self, book):
        """Weighted bag of words for a book: title and author count most"""
        features = []

        title = self.preprocess_text(book.title)
        if title:
            features.extend([title] * 3)

        author = self.preprocess_text(book.author_name)
        if author:
            features.extend([author] * 2)

        genre = self.preprocess_text(book.genre)
        if genre:
            features.extend([genre] * 2)

        for tag in book.tags or []:
            tag = self.preprocess_text(tag)
            if tag:
                features.extend([tag] * 2)

        features.append(self.preprocess_text(book.description))
        features.append(book.book_type)

        return ' '.join(f for f in features if f)

    def rank(self, profile_books, candidates, limit, weights=None):
        """Return up to ``limit`` candidates, most similar to the profile first.

        ``profile_books`` may carry ``weights`` (same length); ties keep the
        incoming candidate order.
        """
        candidates = list(candidates)
        if not candidates or limit <= 0:
            return []
        if not profile_books:
            return candidates[:limit]

        documents = [self.create_book_features(book) for book in profile_books]
        documents.extend(self.create_book_features(book) for book in candidates)
        try:
            vectors = self._vectorizer().fit_transform(documents).toarray()
        except ValueError as e:
            # Only stop words in the corpus: nothing to rank on
            current_app.logger.debug(f"Skipping similarity ranking: {str(e)}")
            return candidates[:limit]

        profile_vectors = vectors[:len(profile_books)]
        candidate_vectors = vectors[len(profile_books):]

        if weights is None:
            weights = np.ones(len(profile_books))
        profile_vector = np.average(profile_vectors, axis=0, weights=weights)

        similarities = cosine_similarity(profile_vector.reshape(1, -1), candidate_vectors).flatten()
        order = sorted(range(len(candidates)), key=lambda i: (-similarities[i], i))
        return [candidates[i] for i in order[:limit]]

    def similar_books(self, book, candidates, limit=6):
        return self.rank([book], candidates, limit)

    def recommend(self, viewed_books, candidates, limit=10):
        """Rank candidates against a viewing history given most recent first."""
        if not viewed_books:
            return list(candidates)[:limit]
        # Recent views get higher weight
        weights = np.linspace(1, 0.5, len(viewed_books))
        return self.rank(viewed_books, candidates, limit, weights=weights)
