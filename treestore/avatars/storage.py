"""On-disk storage for node avatar images."""

import logging
from pathlib import Path
from uuid import uuid4

from treestore.errors import InvalidAvatarError

logger = logging.getLogger(__name__)


class AvatarStorage:
    """Saves uploaded avatars under one directory with generated unique names."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def save(self, content: bytes, content_type: str | None) -> str:
        """Write the image and return its stored file name.

        The extension comes from the ``image/<ext>`` content type.
        """
        if not content_type or not content_type.startswith("image/"):
            raise InvalidAvatarError(content_type)
        extension = content_type.removeprefix("image/").split(";")[0].strip()
        if not extension.isalnum():
            raise InvalidAvatarError(content_type)

        name = f"avatar-{uuid4().hex}.{extension}"
        (self.root / name).write_bytes(content)
        logger.info("Saved avatar %s (%d bytes)", name, len(content))
        return name

    def path_for(self, name: str) -> Path | None:
        """Resolve a stored name to an existing file, or None."""
        # Stored names are bare file names; anything else is not ours
        if not name or Path(name).name != name:
            return None
        path = self.root / name
        return path if path.is_file() else None

    def remove(self, name: str) -> None:
        path = self.path_for(name)
        if path is not None:
            path.unlink(missing_ok=True)
            logger.info("Removed avatar %s", name)
