"""Tests for the pure merge functions behind the aggregation strategies."""

import pytest

from jobcraft.services.ai.merge import (
    ANALYSIS_HEADER,
    average_embeddings,
    combine_analyses,
    consensus_merge,
    consensus_score,
    jaccard_similarity,
    normalize_sentence,
    split_sentences,
    weighted_merge,
)


class TestSplitSentences:
    """Tests for split_sentences."""

    def test_splits_on_terminal_punctuation(self) -> None:
        """Should split after '.', '!' and '?' followed by whitespace."""
        assert split_sentences("One. Two! Three? Four") == [
            "One.",
            "Two!",
            "Three?",
            "Four",
        ]

    def test_keeps_decimal_numbers_together(self) -> None:
        """A period not followed by whitespace is not a boundary."""
        assert split_sentences("Version 3.5 shipped. Done.") == [
            "Version 3.5 shipped.",
            "Done.",
        ]


class TestWeightedMerge:
    """Tests for weighted_merge."""

    def test_highest_weight_wins_each_position(self) -> None:
        """Each position takes the sentence of the heaviest response."""
        merged = weighted_merge(
            [
                ("Light one. Light two. Light three.", 0.1),
                ("Heavy one. Heavy two.", 0.3),
            ]
        )

        assert merged == "Heavy one. Heavy two. Light three."

    def test_tie_resolves_to_earlier_response(self) -> None:
        """Equal weights keep the first response's sentence."""
        merged = weighted_merge([("First.", 0.2), ("Second.", 0.2)])

        assert merged == "First."

    def test_single_response_is_unchanged(self) -> None:
        """One response merges to itself."""
        assert weighted_merge([("Only. Me.", 0.5)]) == "Only. Me."

    def test_deterministic(self) -> None:
        """Identical inputs always produce identical output."""
        responses = [("A one. A two.", 0.2), ("B one. B two.", 0.2), ("C one.", 0.1)]

        assert weighted_merge(responses) == weighted_merge(list(responses))

    def test_empty_input(self) -> None:
        """No responses merge to an empty string."""
        assert weighted_merge([]) == ""


class TestNormalizeSentence:
    """Tests for normalize_sentence."""

    def test_strips_punctuation_and_case(self) -> None:
        """Should keep only lowercase alphanumerics."""
        assert normalize_sentence("Hello, World 42!") == "helloworld42"


class TestConsensusMerge:
    """Tests for consensus_merge."""

    def test_drops_sentence_below_threshold(self) -> None:
        """A sentence in 1 of 4 responses is dropped at threshold 0.7."""
        texts = [
            "Alpha is good. Beta rules.",
            "Alpha is good. Beta rules.",
            "Alpha is good. Beta rules.",
            "Alpha is good. Gamma only here.",
        ]

        merged = consensus_merge(texts, 0.7)

        assert merged == "Alpha is good. Beta rules."
        assert "Gamma" not in merged

    def test_keeps_everything_when_all_agree(self) -> None:
        """Sentences present in every response are all retained in order."""
        texts = ["One. Two.", "One. Two."]

        assert consensus_merge(texts, 1.0) == "One. Two."

    def test_normalized_sentences_share_a_bucket(self) -> None:
        """Spelling variants count together; the first spelling is emitted."""
        texts = ["Hello, World! Bye.", "hello world"]

        assert consensus_merge(texts, 1.0) == "Hello, World!"

    def test_repeat_within_one_response_counts_once(self) -> None:
        """A sentence repeated by one provider is not a majority."""
        texts = ["Yes. Yes.", "No."]

        assert consensus_merge(texts, 0.7) == ""

    def test_no_texts(self) -> None:
        """Empty input merges to an empty string."""
        assert consensus_merge([], 0.7) == ""


class TestJaccardSimilarity:
    """Tests for jaccard_similarity."""

    def test_identical_texts(self) -> None:
        """Identical texts have similarity 1.0."""
        assert jaccard_similarity("the same words", "The same words") == 1.0

    def test_disjoint_texts(self) -> None:
        """Texts sharing no words have similarity 0.0."""
        assert jaccard_similarity("apples pears", "cars trains") == 0.0

    def test_partial_overlap(self) -> None:
        """Intersection over union of word sets."""
        assert jaccard_similarity("the cat", "the dog") == pytest.approx(1 / 3)

    def test_texts_without_words(self) -> None:
        """Two texts with no words are treated as identical."""
        assert jaccard_similarity("123", "") == 1.0


class TestConsensusScore:
    """Tests for consensus_score."""

    def test_single_text(self) -> None:
        """Fewer than two texts score 1.0."""
        assert consensus_score(["anything"]) == 1.0

    def test_mean_of_pairs(self) -> None:
        """Mean over every unordered pair."""
        score = consensus_score(["a b", "a b", "c d"])

        assert score == pytest.approx(1 / 3)


class TestAverageEmbeddings:
    """Tests for average_embeddings."""

    def test_element_wise_mean(self) -> None:
        """[1, 1] and [3, 3] average to [2, 2]."""
        vector, providers = average_embeddings(
            [("huggingface", [1.0, 1.0]), ("cohere", [3.0, 3.0])]
        )

        assert vector == [2.0, 2.0]
        assert providers == ["huggingface", "cohere"]

    def test_mismatched_dimensions_are_dropped(self) -> None:
        """Vectors whose length differs from the first are excluded."""
        vector, providers = average_embeddings(
            [("a", [1.0, 2.0]), ("b", [1.0, 2.0, 3.0]), ("c", [3.0, 4.0])]
        )

        assert vector == [2.0, 3.0]
        assert providers == ["a", "c"]

    def test_no_vectors(self) -> None:
        """Empty input averages to an empty vector."""
        assert average_embeddings([]) == ([], [])


class TestCombineAnalyses:
    """Tests for combine_analyses."""

    def test_labels_each_provider(self) -> None:
        """Should prefix the header and label each analysis."""
        combined = combine_analyses(
            [
                {"provider": "claude", "analysis": "A chart."},
                {"provider": "gemini", "analysis": "A graph."},
            ]
        )

        assert combined == (
            ANALYSIS_HEADER + "**claude**: A chart.\n\n**gemini**: A graph.\n\n"
        )
