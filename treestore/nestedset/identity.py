"""Duplicate-title handling applied at insert time."""

import itertools
import logging
from enum import Enum

from treestore.db.connection import Database
from treestore.db.schema import TITLE_COLUMN_LENGTH
from treestore.errors import DuplicateTitleError

logger = logging.getLogger(__name__)


class DuplicatePolicy(str, Enum):
    SUFFIX = "suffix"
    REJECT = "reject"


class IdentityResolver:
    """Rewrites (or rejects) a title that already exists somewhere in the tree.

    With the ``suffix`` policy the next value of a counter is appended as
    decimal text, trimming the base title so the result still fits the
    title column. The counter belongs to this resolver, starts at 0 and is
    never reset or persisted. This is advisory de-duplication: the suffixed
    title is not re-checked and may itself collide with an existing title.
    """

    def __init__(self, policy: DuplicatePolicy = DuplicatePolicy.SUFFIX) -> None:
        self.policy = policy
        self._counter = itertools.count()

    async def resolve(self, db: Database, title: str) -> str:
        """Return the title to store. Must run inside the mutation section."""
        row = await db.fetchone("SELECT 1 FROM nodes WHERE title = ? LIMIT 1", (title,))
        if row is None:
            return title
        if self.policy is DuplicatePolicy.REJECT:
            raise DuplicateTitleError(title)
        suffix = str(next(self._counter))
        resolved = title[: TITLE_COLUMN_LENGTH - len(suffix)] + suffix
        logger.warning("Duplicate title %r stored as %r", title, resolved)
        return resolved
