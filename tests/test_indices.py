from __future__ import annotations

from flexitree.doc import Sentence, SuperToken, Token
from flexitree.indices import (
    IndexFormat,
    count_lexical_units,
    find_by_index,
    get_index,
    to_subscript,
)


def _column(sentence: Sentence, name: str):
    return [getattr(token.indices, name) for token in sentence.iter_tokens()]


def test_schemes_over_multiword_sentence(sample_sentence):
    assert _column(sample_sentence, "conllu") == ["1", "2", "3-4", "3", "4", "5", "6"]
    assert _column(sample_sentence, "cg3") == ["1", "2", None, "3", "4", "5", "6"]
    assert _column(sample_sentence, "absolute") == [1, 2, 3, 4, 5, 6, 7]
    assert _column(sample_sentence, "cytoscape") == [1, 2, 3, 3, 3, 4, 5]
    assert count_lexical_units(sample_sentence) == 5


def test_members_share_position_of_their_supertoken(sample_sentence):
    supertoken = sample_sentence.tokens[2]
    assert isinstance(supertoken, SuperToken)
    assert {sub.indices.sup for sub in supertoken.subtokens} == {supertoken.indices.sup} == {2}


def test_root_indices(sample_sentence):
    root = sample_sentence.root
    assert root.indices.absolute == 0
    assert root.indices.conllu == "0"
    assert root.indices.cytoscape is None


def test_empty_tokens_get_decimal_labels():
    sentence = Sentence(tokens=[Token(form="a"), Token(is_empty=True), Token(is_empty=True), Token(form="b")])
    assert _column(sentence, "conllu") == ["1", "1.1", "1.2", "2"]
    assert _column(sentence, "cg3") == ["1", "2", "3", "4"]


def test_empty_token_before_first_word():
    sentence = Sentence(tokens=[Token(is_empty=True), Token(form="a")])
    assert _column(sentence, "conllu") == ["0.1", "1"]


def test_get_index_by_format(sample_sentence):
    supertoken = sample_sentence.tokens[2]
    assert get_index(supertoken, IndexFormat.CONLLU) == "3-4"
    assert get_index(supertoken, "CG3") is None
    assert get_index(supertoken, "absolute") == 3
    assert get_index(supertoken, "something else") == 3


def test_find_by_index(sample_sentence):
    assert find_by_index(sample_sentence, "3-4", "CoNLL-U") is sample_sentence.tokens[2]
    assert find_by_index(sample_sentence, 3, "CG3").form == "à"
    assert find_by_index(sample_sentence, "0", "CoNLL-U") is sample_sentence.root
    assert find_by_index(sample_sentence, "0", "CoNLL-U", include_root=False) is None
    assert find_by_index(sample_sentence, "99", "CoNLL-U") is None
    assert find_by_index(sample_sentence, None, "CoNLL-U") is None


def test_format_names_are_coerced():
    assert IndexFormat.coerce("conllu") is IndexFormat.CONLLU
    assert IndexFormat.coerce("CoNLL-U") is IndexFormat.CONLLU
    assert IndexFormat.coerce("cg3") is IndexFormat.CG3
    assert IndexFormat.coerce(None) is IndexFormat.ABSOLUTE


def test_to_subscript():
    assert to_subscript("3-4") == "₃₋₄"
    assert to_subscript(12) == "₁₂"
    assert to_subscript("(2)") == "₍₂₎"
    assert to_subscript("1.1") == "₁.₁"
    assert to_subscript("null") == ""
    assert to_subscript(None) == ""
