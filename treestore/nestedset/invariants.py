"""Full nested-set invariant checker.

Used by the maintenance script and the test suite. The store itself only
runs the cheap global check on each mutation.
"""

from bisect import bisect_left, bisect_right
from collections.abc import Iterable

from treestore.models import Node


def find_violations(nodes: Iterable[Node]) -> list[str]:
    """Return a human-readable description of every violated invariant.

    An empty list means the interval assignment is a valid nested set:
    endpoints are exactly 1..2n, every interval is well-formed, intervals
    either nest or are disjoint, and every width matches its subtree size.
    """
    ordered = sorted(nodes, key=lambda n: n.lft)
    if not ordered:
        return ["tree is empty"]

    problems: list[str] = []
    total = len(ordered)

    endpoints = sorted([n.lft for n in ordered] + [n.rgt for n in ordered])
    if endpoints != list(range(1, 2 * total + 1)):
        problems.append(f"endpoints are not exactly 1..{2 * total}")

    root = ordered[0]
    if root.lft != 1:
        problems.append(f"root {root.id} has lft={root.lft}, expected 1")
    if root.rgt != 2 * total:
        problems.append(f"root {root.id} has rgt={root.rgt}, expected {2 * total}")

    lfts = [n.lft for n in ordered]
    open_intervals: list[Node] = []
    for node in ordered:
        if node.lft >= node.rgt:
            problems.append(f"node {node.id} has lft={node.lft} >= rgt={node.rgt}")
            continue

        while open_intervals and open_intervals[-1].rgt < node.lft:
            open_intervals.pop()
        if open_intervals and node.rgt > open_intervals[-1].rgt:
            parent = open_intervals[-1]
            problems.append(f"node {node.id} partially overlaps node {parent.id}")
        open_intervals.append(node)

        descendants = bisect_right(lfts, node.rgt) - bisect_left(lfts, node.lft) - 1
        if node.width != 2 * (descendants + 1):
            problems.append(
                f"node {node.id} has width {node.width} but a subtree of {descendants + 1}"
            )

    return problems
