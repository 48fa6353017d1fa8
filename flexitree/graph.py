"""
Token graph: the single owner of a sentence's structure.

Every edit of the sentence goes through a ``TokenGraph`` method. Methods
validate all of their preconditions before touching anything, so a raised
``GraphError`` always leaves the sentence exactly as it was. Structural
edits (insert, split, combine, merge, emptiness) re-index the sentence
before returning; edge edits leave the numbering alone.

The graph guarantees edge-set integrity only. It does not prevent cycles or
disconnected components, and it never re-attaches an orphaned token to the
root on its own.
"""

from __future__ import annotations

import logging
from typing import Iterator, List, Optional, Tuple, Union

from .doc import AnyToken, EMPTY_FORM, Head, RootToken, Sentence, SuperToken, Token, TokenKind
from .errors import GraphError, GraphErrorKind
from .indices import IndexFormat, count_lexical_units, find_by_index, reindex

logger = logging.getLogger(__name__)

TOKEN_FIELDS = ("form", "lemma", "upos", "xpos", "feats", "misc")
SUPERTOKEN_FIELDS = ("form", "misc")


class TokenGraph:
    def __init__(self, sentence: Optional[Sentence] = None):
        self.sentence = sentence if sentence is not None else Sentence()

    # ------------------------------------------------------------------
    # queries

    @property
    def root(self) -> RootToken:
        return self.sentence.root

    @property
    def enhanced(self) -> bool:
        return self.sentence.enhanced

    def iter_tokens(self, include_root: bool = False) -> Iterator[AnyToken]:
        return self.sentence.iter_tokens(include_root=include_root)

    def find(self, label: Union[int, str], fmt: Union[IndexFormat, str] = IndexFormat.CONLLU) -> Optional[AnyToken]:
        return find_by_index(self.sentence, label, fmt)

    def get_supertoken(self, token: AnyToken) -> Optional[SuperToken]:
        if isinstance(token, Token):
            return token.supertoken
        return None

    def dependents(self, head: AnyToken) -> List[Tuple[Token, Head]]:
        """Every (dependent, edge) pair whose edge points at ``head``."""
        found = []
        for word in self.sentence.words():
            for edge in word.heads:
                if edge.token is head:
                    found.append((word, edge))
        return found

    def root_dependents(self) -> List[Token]:
        return [word for word, _ in self.dependents(self.root)]

    # ------------------------------------------------------------------
    # validation helpers

    def _reject(self, kind: GraphErrorKind, message: str, **details) -> None:
        error = GraphError(kind, message, details)
        logger.debug("Rejected edit %s", error.to_log_message())
        raise error

    def _contains(self, token: AnyToken) -> bool:
        if token is self.root:
            return True
        return any(candidate is token for candidate in self.sentence.iter_tokens())

    def _require_members(self, *tokens: AnyToken) -> None:
        for token in tokens:
            if token is None or not self._contains(token):
                self._reject(GraphErrorKind.INVALID_TARGET, "token is not part of this sentence", token=repr(token))

    def _top_index(self, item: AnyToken) -> int:
        for position, candidate in enumerate(self.sentence.tokens):
            if candidate is item:
                return position
        raise AssertionError(f"{item!r} is not a top-level token")

    def _require_word(self, token: AnyToken, role: str) -> Token:
        if not isinstance(token, Token):
            self._reject(GraphErrorKind.INVALID_TARGET, f"{token.kind.value} cannot be a {role}", token=repr(token))
        return token

    def _check_joinable(self, a: AnyToken, b: AnyToken) -> Tuple[Token, Token]:
        """Shared preconditions of combine and merge; returns (first, second) in sentence order."""
        self._require_members(a, b)
        for token in (a, b):
            if not isinstance(token, Token) or token.supertoken is not None:
                self._reject(GraphErrorKind.INVALID_TARGET, "only top-level plain tokens can be joined", token=repr(token))
            if token.is_empty:
                self._reject(GraphErrorKind.INVALID_STATE, "empty tokens cannot be joined", token=repr(token))
        if a is b:
            self._reject(GraphErrorKind.NOT_ADJACENT, "a token cannot be joined with itself", token=repr(a))
        pos_a = self._top_index(a)
        pos_b = self._top_index(b)
        if abs(pos_a - pos_b) != 1:
            self._reject(GraphErrorKind.NOT_ADJACENT, "tokens are not neighbours", a=repr(a), b=repr(b))
        return (a, b) if pos_a < pos_b else (b, a)

    def _set_primary(self, dependent: Token, head: AnyToken, deprel: str) -> Head:
        edge = Head(token=head, deprel=deprel, enhanced=False)
        secondary = [existing for existing in dependent.heads[1:] if existing.token is not head]
        dependent.heads[:] = [edge] + secondary
        return edge

    def _drop_edge(self, dependent: Token, edge: Head) -> None:
        dependent.heads[:] = [existing for existing in dependent.heads if existing is not edge]
        if dependent.heads:
            dependent.heads[0].enhanced = False

    def _repoint(self, old_head: AnyToken, new_head: AnyToken, drop_from: Tuple[Token, ...] = ()) -> None:
        """Move every edge headed at ``old_head`` to ``new_head``."""
        for word in self.sentence.words():
            for edge in list(word.heads):
                if edge.token is not old_head:
                    continue
                if word is new_head or word in drop_from or word.get_head(new_head) is not None:
                    self._drop_edge(word, edge)
                else:
                    edge.token = new_head

    def _reindex(self) -> None:
        reindex(self.sentence)

    # ------------------------------------------------------------------
    # edge edits

    def add_head(self, dependent: AnyToken, head: AnyToken, deprel: Optional[str] = None) -> Head:
        self._require_members(dependent, head)
        if dependent is head:
            self._reject(GraphErrorKind.SELF_LOOP, "a token cannot depend on itself", token=repr(dependent))
        if head.kind is TokenKind.SUB or (isinstance(head, Token) and head.supertoken is not None):
            self._reject(GraphErrorKind.INVALID_TARGET, "sub-tokens cannot be heads; attach to the multiword token", head=repr(head))
        dependent = self._require_word(dependent, "dependent")
        deprel = deprel or ""

        if self.enhanced:
            if dependent.get_head(head) is not None:
                self._reject(GraphErrorKind.DUPLICATE_EDGE, "edge already exists", dependent=repr(dependent), head=repr(head))
            edge = Head(token=head, deprel=deprel, enhanced=bool(dependent.heads))
            dependent.heads.append(edge)
        else:
            edge = self._set_primary(dependent, head, deprel)
        logger.debug("add_head %r -> %r (%s)", dependent, head, deprel or "_")
        return edge

    def modify_head(self, dependent: AnyToken, head: AnyToken, deprel: Optional[str]) -> Head:
        self._require_members(dependent, head)
        edge = dependent.get_head(head) if isinstance(dependent, Token) else None
        if edge is None:
            self._reject(GraphErrorKind.NO_SUCH_EDGE, "no such edge", dependent=repr(dependent), head=repr(head))
        edge.deprel = deprel or ""
        logger.debug("modify_head %r -> %r (%s)", dependent, head, edge.deprel or "_")
        return edge

    def remove_head(self, dependent: AnyToken, head: AnyToken) -> None:
        self._require_members(dependent, head)
        edge = dependent.get_head(head) if isinstance(dependent, Token) else None
        if edge is None:
            self._reject(GraphErrorKind.NO_SUCH_EDGE, "no such edge", dependent=repr(dependent), head=repr(head))
        self._drop_edge(dependent, edge)
        logger.debug("remove_head %r -> %r", dependent, head)

    def set_root(self, token: AnyToken, deprel: str = "root") -> Head:
        self._require_members(token)
        token = self._require_word(token, "root dependent")

        if not self.enhanced:
            for word in self.sentence.words():
                if word is token:
                    continue
                edge = word.get_head(self.root)
                if edge is not None:
                    self._drop_edge(word, edge)
            edge = self._set_primary(token, self.root, deprel)
        else:
            edge = token.get_head(self.root)
            if edge is None:
                edge = Head(token=self.root, deprel=deprel, enhanced=bool(token.heads))
                token.heads.append(edge)
            else:
                edge.deprel = deprel
        logger.debug("set_root %r (%s)", token, deprel)
        return edge

    def set_enhanced(self, enabled: bool) -> None:
        """Switch enhanced mode; extra heads are kept but only projected when enabled."""
        self.sentence.enhanced = bool(enabled)

    def set_attr(self, token: AnyToken, name: str, value: Optional[str]) -> None:
        """Edit a token field through the graph (forms, tags, features, misc)."""
        self._require_members(token)
        if isinstance(token, RootToken):
            self._reject(GraphErrorKind.INVALID_TARGET, "the root has no editable fields")
        allowed = SUPERTOKEN_FIELDS if isinstance(token, SuperToken) else TOKEN_FIELDS
        if name not in allowed:
            self._reject(GraphErrorKind.INVALID_STATE, f"field '{name}' cannot be edited on a {token.kind.value}")
        value = (value or "").strip()
        if name == "form" and not value:
            value = EMPTY_FORM
        setattr(token, name, value)
        logger.debug("set_attr %r %s=%r", token, name, value)

    # ------------------------------------------------------------------
    # structural edits

    def set_empty(self, token: AnyToken, is_empty: bool) -> None:
        self._require_members(token)
        if not isinstance(token, Token):
            self._reject(GraphErrorKind.INVALID_STATE, f"a {token.kind.value} cannot be empty", token=repr(token))
        if token.supertoken is not None:
            self._reject(GraphErrorKind.INVALID_STATE, "tokens inside a multiword token cannot be empty", token=repr(token))
        if token.is_empty == bool(is_empty):
            return
        token.is_empty = bool(is_empty)
        self._reindex()
        logger.debug("set_empty %r -> %s", token, token.is_empty)

    def insert_after(self, token: AnyToken, new_token: Token) -> Token:
        self._require_members(token)
        if not isinstance(new_token, Token) or new_token.sentence is not None or new_token.supertoken is not None:
            self._reject(GraphErrorKind.INVALID_TARGET, "only a fresh token can be inserted", token=repr(new_token))
        for edge in new_token.heads:
            if not self._contains(edge.token):
                self._reject(GraphErrorKind.INVALID_TARGET, "new token points at a head outside this sentence")

        if isinstance(token, RootToken):
            position = 0
        elif isinstance(token, Token) and token.supertoken is not None:
            # keep the multiword span contiguous
            position = self._top_index(token.supertoken) + 1
        else:
            position = self._top_index(token) + 1
        self.sentence.tokens.insert(position, new_token)
        self.sentence.adopt(new_token)
        self._reindex()
        logger.debug("insert_after %r: %r", token, new_token)
        return new_token

    def insert_empty_after(self, token: AnyToken) -> Token:
        return self.insert_after(token, Token(form=EMPTY_FORM, is_empty=True))

    def split(self, token: AnyToken, offset: Optional[int] = None) -> List[Token]:
        """
        Split a word at a character offset, or dissolve a multiword token.

        With an offset the token keeps the first half of its form, its heads
        and its dependents; the second half becomes a new unattached token
        right after it. Without an offset a super-token is replaced by its
        sub-tokens.
        """
        self._require_members(token)
        if offset is None:
            if not isinstance(token, SuperToken):
                self._reject(GraphErrorKind.INVALID_TARGET, "only a multiword token can be split without an offset", token=repr(token))
            return self._dissolve(token)

        if not isinstance(token, Token):
            self._reject(GraphErrorKind.INVALID_TARGET, f"a {token.kind.value} cannot be split at an offset", token=repr(token))
        if isinstance(offset, bool) or not isinstance(offset, int) or not 0 < offset < len(token.form):
            self._reject(GraphErrorKind.INVALID_TARGET, "split offset outside the form", offset=offset, form=token.form)
        left = token.form[:offset].rstrip()
        right = token.form[offset:].lstrip()
        if not left or not right:
            self._reject(GraphErrorKind.INVALID_TARGET, "split would leave an empty half", offset=offset, form=token.form)

        new_token = Token(form=right)
        token.form = left
        supertoken = token.supertoken
        if supertoken is not None:
            position = next(i for i, sub in enumerate(supertoken.subtokens) if sub is token)
            supertoken.subtokens.insert(position + 1, new_token)
            new_token.supertoken = supertoken
            new_token.sentence = self.sentence
        else:
            self.sentence.tokens.insert(self._top_index(token) + 1, new_token)
            self.sentence.adopt(new_token)
        self._reindex()
        logger.debug("split %r at %d -> %r", token, offset, new_token)
        return [token, new_token]

    def _dissolve(self, supertoken: SuperToken) -> List[Token]:
        members = list(supertoken.subtokens)
        position = self._top_index(supertoken)
        self.sentence.tokens[position:position + 1] = members
        for member in members:
            member.supertoken = None
            member.sentence = self.sentence
        supertoken.subtokens = []
        supertoken.sentence = None
        if members:
            self._repoint(supertoken, members[0])
        else:
            for word, edge in self.dependents(supertoken):
                self._drop_edge(word, edge)
        self._reindex()
        logger.debug("dissolved multiword token into %r", members)
        return members

    def combine(self, a: AnyToken, b: AnyToken) -> SuperToken:
        """Wrap two neighbouring tokens into a new multiword token."""
        first, second = self._check_joinable(a, b)
        position = self._top_index(first)
        supertoken = SuperToken(form=first.form + second.form, subtokens=[first, second])
        self.sentence.tokens[position:position + 2] = [supertoken]
        self.sentence.adopt(supertoken)
        # sub-tokens may not be heads: outside edges move to the span, inner ones go
        for member in (first, second):
            self._repoint(member, supertoken, drop_from=(first, second))
        self._reindex()
        logger.debug("combine %r + %r -> %r", first, second, supertoken)
        return supertoken

    def merge(self, a: AnyToken, b: AnyToken) -> Token:
        """Fold ``a`` into its neighbour ``b``; ``b`` survives as a single token."""
        first, second = self._check_joinable(a, b)
        survivor, absorbed = b, a

        survivor.form = first.form + second.form
        for name in ("lemma", "upos", "xpos", "feats", "misc"):
            if not getattr(survivor, name) and getattr(absorbed, name):
                setattr(survivor, name, getattr(absorbed, name))

        for edge in absorbed.heads:
            if edge.token is survivor or survivor.get_head(edge.token) is not None:
                continue
            if survivor.heads and not self.enhanced:
                continue
            survivor.heads.append(Head(token=edge.token, deprel=edge.deprel, enhanced=bool(survivor.heads)))
        absorbed.heads = []
        self._repoint(absorbed, survivor)

        del self.sentence.tokens[self._top_index(absorbed)]
        absorbed.sentence = None
        self._reindex()
        logger.debug("merge %r into %r", absorbed, survivor)
        return survivor

    # ------------------------------------------------------------------
    # consistency

    def check_invariants(self) -> None:
        """Assert the structural invariants; a failure is a programming error."""
        sentence = self.sentence
        seen = set()
        for item in sentence.tokens:
            assert item.sentence is sentence, f"{item!r} has a stale sentence reference"
            if isinstance(item, SuperToken):
                assert item.subtokens, f"{item!r} has no sub-tokens"
                for subtoken in item.subtokens:
                    assert subtoken.supertoken is item, f"{subtoken!r} lost its multiword token"
                    assert not subtoken.is_empty, f"{subtoken!r} is empty inside a multiword token"
                    assert id(subtoken) not in seen, f"{subtoken!r} belongs to two multiword tokens"
                    seen.add(id(subtoken))
                    assert subtoken.indices.cytoscape == item.indices.cytoscape, f"{subtoken!r} left its clump"
            else:
                assert item.supertoken is None, f"{item!r} is top-level but claims a multiword token"
                assert id(item) not in seen, f"{item!r} appears twice"
                seen.add(id(item))

        clumps = [token.indices.cytoscape for token in sentence.iter_tokens()]
        assert all(value is not None for value in clumps), "token without clump"
        assert clumps == sorted(clumps), "clumps are not monotonic"
        expected = count_lexical_units(sentence)
        assert (max(clumps) if clumps else 0) == expected, "clump count differs from lexical units"

        for word in sentence.words():
            for edge in word.heads:
                assert edge.token is not word, f"{word!r} depends on itself"
                assert self._contains(edge.token), f"{word!r} points outside the sentence"
                assert edge.token.kind is not TokenKind.SUB, f"{word!r} is headed by a sub-token"
            if not self.enhanced:
                primaries = [edge for edge in word.heads if not edge.enhanced]
                assert len(primaries) <= 1, f"{word!r} has several primary heads"
