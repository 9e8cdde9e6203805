"""Domain-level errors for the tree store."""


class TreeStoreError(Exception):
    """Base class for every error raised by the tree store."""


class NodeNotFoundError(TreeStoreError):
    def __init__(self, node_id: int | None) -> None:
        self.node_id = node_id
        if node_id is None:
            super().__init__("Root node not found")
        else:
            super().__init__(f"Node not found: {node_id}")


class InvalidOperationError(TreeStoreError):
    """Raised for structurally forbidden operations, e.g. deleting the root."""


class StorageError(TreeStoreError):
    """Raised when the backend fails, an invariant check fails, or the lock wait times out."""


class ConcurrencyViolation(TreeStoreError):
    """Raised when a task re-enters the guard while it holds the mutation."""


class DuplicateTitleError(TreeStoreError):
    def __init__(self, title: str) -> None:
        self.title = title
        super().__init__(f"Title already exists: {title}")


class InvalidAvatarError(TreeStoreError):
    def __init__(self, content_type: str | None) -> None:
        self.content_type = content_type
        super().__init__(f"Unsupported avatar content type: {content_type}")


class AvatarNotFoundError(TreeStoreError):
    def __init__(self, node_id: int) -> None:
        self.node_id = node_id
        super().__init__(f"Avatar not found for node: {node_id}")
