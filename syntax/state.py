# syntax/state.py
from __future__ import annotations

from typing import Iterator, List, Optional, Tuple


class StateStack:
    """
    Immutable rule-stack frame with a parent link.

    Pushing creates one new frame that shares every frame below it, so the
    state carried from line to line is never copied. Two stacks are equal
    when every frame has the same rule id, the same expanded end/while
    pattern (back-references filled in at begin time) and the same scopes.
    """

    __slots__ = ("parent", "rule_id", "end_pattern", "name_scopes",
                 "content_scopes", "depth", "_hash")

    def __init__(
        self,
        parent: Optional["StateStack"],
        rule_id: int,
        end_pattern: Optional[str],
        name_scopes: Tuple[str, ...],
        content_scopes: Tuple[str, ...],
    ):
        self.parent = parent
        self.rule_id = rule_id
        self.end_pattern = end_pattern
        self.name_scopes = name_scopes
        self.content_scopes = content_scopes
        self.depth = parent.depth + 1 if parent is not None else 1
        self._hash = hash((
            parent._hash if parent is not None else 0,
            rule_id, end_pattern, content_scopes,
        ))

    @classmethod
    def root(cls, rule_id: int, scopes: Tuple[str, ...]) -> "StateStack":
        return cls(None, rule_id, None, scopes, scopes)

    @property
    def scopes(self) -> Tuple[str, ...]:
        return self.content_scopes

    def push(self, rule_id: int, end_pattern: Optional[str],
             name_scopes: Tuple[str, ...], content_scopes: Tuple[str, ...]) -> "StateStack":
        return StateStack(self, rule_id, end_pattern, name_scopes, content_scopes)

    def pop(self) -> "StateStack":
        # the root frame is never popped
        return self.parent if self.parent is not None else self

    def frames(self) -> List["StateStack"]:
        """Frames from the root (first) to this one (last)."""
        out = list(self._walk())
        out.reverse()
        return out

    def _walk(self) -> Iterator["StateStack"]:
        node: Optional[StateStack] = self
        while node is not None:
            yield node
            node = node.parent

    def __hash__(self):
        return self._hash

    def __eq__(self, other):
        if self is other:
            return True
        if not isinstance(other, StateStack):
            return NotImplemented
        a: Optional[StateStack] = self
        b: Optional[StateStack] = other
        while a is not None and b is not None:
            if a is b:
                return True
            if (a._hash != b._hash or a.depth != b.depth or a.rule_id != b.rule_id
                    or a.end_pattern != b.end_pattern
                    or a.name_scopes != b.name_scopes
                    or a.content_scopes != b.content_scopes):
                return False
            a, b = a.parent, b.parent
        return a is None and b is None

    def __repr__(self):
        rules = "/".join(str(f.rule_id) for f in self.frames())
        return f"StateStack({rules}, scopes={' '.join(self.content_scopes)!r})"
