from __future__ import annotations

import pytest

from flexitree.conllu import conllu_to_sentence
from flexitree.doc import Sentence, Token
from flexitree.graph import TokenGraph

SAMPLE_CONLLU = (
    "# sent_id = s1\n"
    "# text = Il va au marché.\n"
    "1\tIl\til\tPRON\t_\t_\t2\tnsubj\t_\t_\n"
    "2\tva\taller\tVERB\t_\t_\t0\troot\t_\t_\n"
    "3-4\tau\t_\t_\t_\t_\t_\t_\t_\t_\n"
    "3\tà\tà\tADP\t_\t_\t5\tcase\t_\t_\n"
    "4\tle\tle\tDET\t_\t_\t5\tdet\t_\t_\n"
    "5\tmarché\tmarché\tNOUN\t_\t_\t2\tobl\t_\tSpaceAfter=No\n"
    "6\t.\t.\tPUNCT\t_\t_\t2\tpunct\t_\t_\n"
    "\n"
)


@pytest.fixture(autouse=True)
def isolated_config_dir(tmp_path, monkeypatch):
    """Keep config.json and prefs.json out of the real home directory."""
    config_dir = tmp_path / "flexitree-config"
    monkeypatch.setenv("FLEXITREE_CONFIG_DIR", str(config_dir))
    return config_dir


@pytest.fixture
def sample_conllu() -> str:
    return SAMPLE_CONLLU


@pytest.fixture
def sample_sentence() -> Sentence:
    return conllu_to_sentence(SAMPLE_CONLLU)


@pytest.fixture
def make_graph():
    """Factory: a graph over unattached plain tokens with the given forms."""

    def factory(*forms: str) -> TokenGraph:
        return TokenGraph(Sentence(tokens=[Token(form=form) for form in forms]))

    return factory


@pytest.fixture
def saw_graph() -> TokenGraph:
    """'I saw it': saw is the root, I and it depend on it."""
    sentence = Sentence(
        tokens=[
            Token(form="I", upos="PRON"),
            Token(form="saw", upos="VERB"),
            Token(form="it", upos="PRON"),
        ]
    )
    graph = TokenGraph(sentence)
    i, saw, it = sentence.tokens
    graph.set_root(saw)
    graph.add_head(i, saw, "nsubj")
    graph.add_head(it, saw, "obj")
    return graph
