from __future__ import annotations
from typing import List
from .models import UsageNode, OTHERS_NAME

def _fold_tail(node: UsageNode, max_entries: int):
    kids = [c for c in node.children if not c.aggregate]
    olds = [c for c in node.children if c.aggregate]
    kids.sort(key=lambda n: n.size, reverse=True)

    tail: List[UsageNode] = kids[max_entries:] + olds
    kids = kids[:max_entries]
    if tail:
        kids.append(UsageNode(
            name=OTHERS_NAME,
            size=sum(c.size for c in tail),
            is_dir=False,
            aggregate=True,
            parent=node,
        ))
    node.children = kids

def compact_tree(node: UsageNode, max_entries: int, max_depth: int) -> UsageNode:
    """Sort, cap and truncate the tree in place; returns ``node``.

    Children are ordered by descending size (stable). Beyond ``max_entries``
    the smallest ones collapse into a single ``[OTHERS]`` node kept last.
    Nodes at ``max_depth`` lose their children. Both bounds must be >= 1.
    """
    _fold_tail(node, max_entries)
    if node.depth() >= max_depth:
        node.children = []
        return node
    for c in node.children:
        compact_tree(c, max_entries, max_depth)
    return node
