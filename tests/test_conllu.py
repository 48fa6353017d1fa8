from __future__ import annotations

import pytest

from flexitree.conllu import conllu_to_sentence, conllu_to_sentences, sentence_to_conllu
from flexitree.doc import SuperToken
from flexitree.graph import TokenGraph

GAPPING = (
    "# sent_id = gap\n"
    "1\tSue\tSue\tPROPN\t_\t_\t2\tnsubj\t2:nsubj\t_\n"
    "2\tlikes\tlike\tVERB\t_\t_\t0\troot\t0:root\t_\n"
    "3\ttea\ttea\tNOUN\t_\t_\t2\tobj\t2:obj\t_\n"
    "3.1\tlikes\tlike\tVERB\t_\t_\t_\t_\t2:conj\t_\n"
    "4\tBob\tBob\tPROPN\t_\t_\t3\torphan\t3.1:nsubj\t_\n"
    "\n"
)

VAMONOS = (
    "# sent_id = vamonos\n"
    "1-2\tvámonos\t_\t_\t_\t_\t_\t_\t_\t_\n"
    "1\tvamos\tir\tVERB\t_\t_\t0\troot\t_\t_\n"
    "2\tnos\tnosotros\tPRON\t_\t_\t1\tobj\t_\t_\n"
    "3\t!\t!\tPUNCT\t_\t_\t1\tpunct\t_\t_\n"
    "\n"
)


def test_reads_sentence_structure(sample_sentence):
    assert sample_sentence.sent_id == "s1"
    assert sample_sentence.text == "Il va au marché."
    assert not sample_sentence.enhanced

    il, va, au, marche, dot = sample_sentence.tokens
    assert isinstance(au, SuperToken)
    assert [sub.form for sub in au.subtokens] == ["à", "le"]
    assert il.primary_head.token is va
    assert il.primary_head.deprel == "nsubj"
    assert au.subtokens[0].primary_head.token is marche
    assert marche.misc == "SpaceAfter=No"
    assert il.feats == ""
    assert TokenGraph(sample_sentence).root_dependents() == [va]


def test_writes_what_it_reads(sample_conllu, sample_sentence):
    assert sentence_to_conllu(sample_sentence) == sample_conllu


def test_enhanced_dependencies_and_empty_nodes():
    sentence = conllu_to_sentence(GAPPING)
    assert sentence.enhanced

    sue, likes, tea, elided, bob = sentence.tokens
    assert elided.is_empty
    assert elided.indices.conllu == "3.1"
    assert [(edge.token, edge.deprel) for edge in elided.heads] == [(likes, "conj")]
    assert [(edge.token, edge.deprel, edge.enhanced) for edge in bob.heads] == [
        (tea, "orphan", False),
        (elided, "nsubj", True),
    ]
    assert len(sue.heads) == 1

    written = sentence_to_conllu(sentence)
    assert "3.1\tlikes\tlike\tVERB\t_\t_\t_\t_\t2:conj\t_" in written
    assert "4\tBob\tBob\tPROPN\t_\t_\t3\torphan\t3:orphan|3.1:nsubj\t_" in written


def test_multiple_sentences(sample_conllu):
    sentences = conllu_to_sentences(sample_conllu + GAPPING)
    assert [sentence.sent_id for sentence in sentences] == ["s1", "gap"]


def test_extra_comments_become_attrs():
    sentence = conllu_to_sentence("# sent_id = x\n# speaker = A\n1\ta\t_\t_\t_\t_\t0\troot\t_\t_\n")
    assert sentence.attrs == {"speaker": "A"}
    assert "# speaker = A" in sentence_to_conllu(sentence)


def test_edited_sentence_is_renumbered(sample_sentence):
    graph = TokenGraph(sample_sentence)
    il, va = sample_sentence.tokens[:2]
    graph.combine(il, va)
    written = sentence_to_conllu(sample_sentence)
    assert "1-2\tIlva\t_\t_\t_\t_\t_\t_\t_\t_" in written
    # a multiword head is written as its first word
    assert "5\tmarché\tmarché\tNOUN\t_\t_\t1\tobl\t_\tSpaceAfter=No" in written


def test_combined_sentence_reads_back(make_graph):
    graph = make_graph("New", "York", "rocks")
    new, york, rocks = graph.sentence.tokens
    graph.set_enhanced(True)
    graph.add_head(rocks, york, "nsubj")
    graph.combine(new, york)

    written = sentence_to_conllu(graph.sentence)
    assert "3\trocks\t_\t_\t_\t_\t1\tnsubj\t1:nsubj\t_" in written

    reread = conllu_to_sentence(written)
    supertoken, rocks_again = reread.tokens
    assert rocks_again.primary_head.token is supertoken
    assert sentence_to_conllu(reread) == written
    TokenGraph(reread).check_invariants()


def test_subtoken_heads_move_to_their_multiword_token():
    sentence = conllu_to_sentence(VAMONOS)
    vamonos = sentence.tokens[0]
    vamos, nos = vamonos.subtokens
    assert nos.primary_head.token is vamonos
    assert nos.primary_head.deprel == "obj"
    assert sentence.tokens[1].primary_head.token is vamonos
    TokenGraph(sentence).check_invariants()
    assert sentence_to_conllu(sentence) == VAMONOS


@pytest.mark.parametrize(
    "text,message",
    [
        ("1\tfoo\n", "Line 1"),
        ("1\ta\t_\t_\t_\t_\t7\tdep\t_\t_\n", "unknown head"),
        ("x\ta\t_\t_\t_\t_\t0\troot\t_\t_\n", "malformed token id"),
        ("1\ta\t_\t_\t_\t_\t0\troot\tbroken\t_\n", "malformed DEPS"),
    ],
)
def test_malformed_input(text, message):
    with pytest.raises(ValueError, match=message):
        conllu_to_sentences(text)


def test_single_sentence_expected(sample_conllu):
    with pytest.raises(ValueError):
        conllu_to_sentence(sample_conllu + sample_conllu)
