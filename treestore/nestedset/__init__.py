"""Nested-set tree storage: interval store, tree assembly, and mutation guard."""

from treestore.nestedset.assembler import TreeAssembler
from treestore.nestedset.guard import GuardState, MutationGuard
from treestore.nestedset.identity import DuplicatePolicy, IdentityResolver
from treestore.nestedset.store import NestedSetStore

__all__ = [
    "DuplicatePolicy",
    "GuardState",
    "IdentityResolver",
    "MutationGuard",
    "NestedSetStore",
    "TreeAssembler",
]
