from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Callable

from .oracle import LengthOracle, shared_oracle


logger = logging.getLogger(__name__)

Generator = Callable[[str, int], str]


class PromptAssemblyError(RuntimeError):
    def __init__(self, node_id: str, message: str) -> None:
        super().__init__(f"Prompt part '{node_id}' failed: {message}")
        self.node_id = node_id


@dataclass
class ContentNode:
    id: str
    priority: int = 0
    generator: Generator | None = None
    children: list[ContentNode] = field(default_factory=list)


def node(id: str, priority: int, generator: Generator | None = None, *children: ContentNode) -> ContentNode:
    return ContentNode(id=id, priority=priority, generator=generator, children=list(children))


@dataclass
class AssembledFragment:
    node: ContentNode
    text: str
    priority: int
    order: int


def assemble(
    root: ContentNode,
    input_text: str,
    budget: int,
    oracle: LengthOracle | None = None,
) -> str:
    """Build one prompt from a tree of generators under a length budget.

    Nodes are visited breadth-first. Each generator gets the budget that is
    still unspent and its whole fragment is kept, so the last admitted
    fragment may overshoot; once the running total reaches the budget the
    remaining queue is dropped. Fragments are then ordered by priority, ties
    keeping discovery order.
    """
    counter = oracle if oracle is not None else shared_oracle()
    queue: deque[ContentNode] = deque([root])
    fragments: list[AssembledFragment] = []
    consumed = 0

    while queue and consumed < budget:
        current = queue.popleft()
        if current.generator is not None:
            try:
                text = current.generator(input_text, budget - consumed)
            except Exception as exc:
                raise PromptAssemblyError(current.id, str(exc)) from exc
            text = text or ""
            consumed += counter.length(text)
            fragments.append(AssembledFragment(current, text, current.priority, len(fragments)))
        queue.extend(current.children)

    if queue:
        logger.debug("Budget %d exhausted at %d; dropped %d queued parts", budget, consumed, len(queue))

    fragments.sort(key=lambda frag: (frag.priority, frag.order))
    return "".join(frag.text for frag in fragments)
