"""Pure merge functions used by the aggregation strategies.

None of these functions perform I/O; they operate on provider outputs
already collected in registry order.
"""

import re
from collections import OrderedDict
from itertools import combinations
from typing import Dict, List, Sequence, Set, Tuple

import structlog

logger = structlog.get_logger()

SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")
NON_ALPHANUMERIC = re.compile(r"[^a-zA-Z0-9]")
WORD = re.compile(r"[a-z'-]+")

ANALYSIS_HEADER = "Combined Analysis from Multiple AI Providers:\n\n"


def split_sentences(text: str) -> List[str]:
    """Split after ``.``, ``!`` or ``?`` followed by whitespace."""
    return SENTENCE_BOUNDARY.split(text)


def weighted_merge(responses: Sequence[Tuple[str, float]]) -> str:
    """Positional vote-by-weight merge.

    Sentence ``i`` of the output is sentence ``i`` of the highest-weighted
    response that has one. Equal weights resolve to the earlier response.

    Args:
        responses: (text, weight) pairs in registry order

    Returns:
        Chosen sentences joined with single spaces
    """
    positions: List[List[Tuple[str, float]]] = []
    for text, weight in responses:
        for i, sentence in enumerate(split_sentences(text)):
            if i == len(positions):
                positions.append([])
            positions[i].append((sentence, weight))

    chosen = []
    for candidates in positions:
        best_sentence, best_weight = candidates[0]
        for sentence, weight in candidates[1:]:
            if weight > best_weight:
                best_sentence, best_weight = sentence, weight
        chosen.append(best_sentence)

    return " ".join(chosen).strip()


def normalize_sentence(sentence: str) -> str:
    """Strip everything but ASCII alphanumerics and lowercase."""
    return NON_ALPHANUMERIC.sub("", sentence).lower()


def consensus_merge(texts: Sequence[str], threshold: float) -> str:
    """Keep sentences present in at least ``threshold`` of the responses.

    Sentences equal after normalization share one bucket; the first-seen
    spelling is emitted. Output keeps first-seen order.

    Args:
        texts: Successful provider outputs
        threshold: Minimum fraction of responses containing a sentence

    Returns:
        Retained sentences joined with single spaces
    """
    if not texts:
        return ""

    first_seen: "OrderedDict[str, str]" = OrderedDict()
    counts: Dict[str, int] = {}
    for text in texts:
        # A sentence repeated within one response counts once
        seen_here = set()
        for sentence in split_sentences(text):
            key = normalize_sentence(sentence)
            if not key or key in seen_here:
                continue
            seen_here.add(key)
            first_seen.setdefault(key, sentence)
            counts[key] = counts.get(key, 0) + 1

    total = len(texts)
    kept = [s for key, s in first_seen.items() if counts[key] / total >= threshold]
    return " ".join(kept)


def _word_set(text: str) -> Set[str]:
    return set(WORD.findall(text.lower()))


def jaccard_similarity(text_a: str, text_b: str) -> float:
    """Word-set intersection over union, case-insensitive.

    Two texts without any words are treated as identical.
    """
    words_a = _word_set(text_a)
    words_b = _word_set(text_b)
    union = words_a | words_b
    if not union:
        return 1.0
    return len(words_a & words_b) / len(union)


def consensus_score(texts: Sequence[str]) -> float:
    """Mean pairwise Jaccard similarity; 1.0 with fewer than two texts."""
    if len(texts) < 2:
        return 1.0
    similarities = [jaccard_similarity(a, b) for a, b in combinations(texts, 2)]
    return sum(similarities) / len(similarities)


def average_embeddings(
    vectors: Sequence[Tuple[str, List[float]]],
) -> Tuple[List[float], List[str]]:
    """Element-wise mean of equal-length vectors.

    The first vector fixes the dimension. Vectors of any other length are
    dropped with a warning rather than averaged out of alignment.

    Args:
        vectors: (provider, vector) pairs in allow-list order

    Returns:
        (mean vector, providers whose vectors were averaged)
    """
    if not vectors:
        return [], []

    dimensions = len(vectors[0][1])
    accepted: List[Tuple[str, List[float]]] = []
    for provider, vector in vectors:
        if len(vector) != dimensions:
            logger.warning(
                "embedding_dimension_mismatch",
                provider=provider,
                expected=dimensions,
                actual=len(vector),
            )
            continue
        accepted.append((provider, vector))

    count = len(accepted)
    averaged = [0.0] * dimensions
    for _, vector in accepted:
        for i, value in enumerate(vector):
            averaged[i] += value / count

    return averaged, [provider for provider, _ in accepted]


def combine_analyses(analyses: Sequence[Dict[str, str]]) -> str:
    """Label each provider's analysis and concatenate."""
    combined = ANALYSIS_HEADER
    for item in analyses:
        combined += f"**{item['provider']}**: {item['analysis']}\n\n"
    return combined
