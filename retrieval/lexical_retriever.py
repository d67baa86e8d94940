"""
Lexical scoring using BM25.

Pure vector retrieval fails for keyword-heavy queries
(merchant names, currency codes, exact amounts). BM25 captures exact
term matches that semantic search misses.

Document frequency and average length are computed per call over the
documents passed in, so scoring a filtered pool uses that pool's
statistics rather than the whole corpus.
"""

import logging
import math
import re
from collections import Counter, defaultdict
from typing import Dict, List, Protocol, Sequence

logger = logging.getLogger(__name__)

# Latin letters, digits and the whole Cyrillic block (Kazakh and Ukrainian letters included)
_SPLIT_RE = re.compile(r"[^0-9a-z\u0400-\u04ff]+")


class LexicalDocument(Protocol):
    id: str
    text: str


def tokenize(text: str) -> List[str]:
    """Lowercase and split on anything that is not a Latin/Cyrillic letter or digit."""
    return [t for t in _SPLIT_RE.split((text or "").lower()) if t]


class BM25Scorer:
    """
    Okapi BM25 over an ad-hoc document pool.

    Usage:
        scorer = BM25Scorer(k1=1.2, b=0.75)
        scores = scorer.score("spotify march", chunks)  # {chunk_id: score}
    """

    def __init__(self, k1: float = 1.2, b: float = 0.75):
        self.k1 = k1
        self.b = b

    def score(
        self,
        query: str,
        documents: Sequence[LexicalDocument],
    ) -> Dict[str, float]:
        """
        Score every document against the query.

        Args:
            query: Query string
            documents: Pool with `id` and `text` attributes

        Returns:
            {doc_id: score}, only documents with a nonzero score
        """
        q_terms = tokenize(query)
        if not q_terms or not documents:
            return {}

        doc_terms = [tokenize(doc.text) for doc in documents]
        n_docs = len(documents)
        avg_doc_len = sum(len(terms) for terms in doc_terms) / n_docs
        if avg_doc_len == 0:
            return {}

        doc_freq: Dict[str, int] = defaultdict(int)
        term_freqs: List[Counter] = []
        for terms in doc_terms:
            tf = Counter(terms)
            term_freqs.append(tf)
            for term in tf:
                doc_freq[term] += 1

        scores: Dict[str, float] = {}
        for doc, terms, tf in zip(documents, doc_terms, term_freqs):
            doc_len = len(terms)
            score = 0.0
            for term in q_terms:
                freq = tf.get(term, 0)
                if not freq:
                    continue
                df = doc_freq[term]
                idf = math.log(1 + (n_docs - df + 0.5) / (df + 0.5))
                denominator = freq + self.k1 * (
                    1 - self.b + self.b * (doc_len / avg_doc_len)
                )
                score += idf * (freq * (self.k1 + 1)) / denominator
            if score:
                scores[doc.id] = score

        logger.debug(f"BM25 scored {len(scores)}/{n_docs} documents")
        return scores


def bm25_scores(
    query: str,
    documents: Sequence[LexicalDocument],
    k1: float = 1.2,
    b: float = 0.75,
) -> Dict[str, float]:
    """Convenience function for one-off BM25 scoring."""
    return BM25Scorer(k1=k1, b=b).score(query, documents)
