"""Runtime settings read from the environment (after .env is loaded)."""

import os
from dataclasses import dataclass, field
from pathlib import Path

from treestore.nestedset.identity import DuplicatePolicy

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def _parse_timeout(name: str, raw: str | None) -> float | None:
    if raw is None or not raw.strip():
        return None
    try:
        value = float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}") from e
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


@dataclass(frozen=True)
class Settings:
    db_path: str = "treestore.db"
    avatar_dir: Path = Path("avatars")
    root_title: str = "ROOT"
    reset_on_startup: bool = False
    lock_timeout: float | None = None
    duplicate_titles: DuplicatePolicy = DuplicatePolicy.SUFFIX
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "Settings":
        """Build settings from TREESTORE_* variables. Raises ValueError on bad values."""
        env = os.environ if environ is None else environ

        policy_raw = env.get("TREESTORE_DUPLICATE_TITLES", "suffix").strip().lower()
        try:
            policy = DuplicatePolicy(policy_raw)
        except ValueError as e:
            raise ValueError(
                f"TREESTORE_DUPLICATE_TITLES must be 'suffix' or 'reject', got {policy_raw!r}"
            ) from e

        origins = [
            o.strip() for o in env.get("TREESTORE_CORS_ORIGINS", "*").split(",") if o.strip()
        ]

        return cls(
            db_path=env.get("TREESTORE_DB_PATH", "treestore.db"),
            avatar_dir=Path(env.get("TREESTORE_AVATAR_DIR", "avatars")),
            root_title=env.get("TREESTORE_ROOT_TITLE", "ROOT"),
            reset_on_startup=_parse_bool(
                "TREESTORE_RESET_ON_STARTUP", env.get("TREESTORE_RESET_ON_STARTUP", "false")
            ),
            lock_timeout=_parse_timeout(
                "TREESTORE_LOCK_TIMEOUT", env.get("TREESTORE_LOCK_TIMEOUT")
            ),
            duplicate_titles=policy,
            cors_origins=origins or ["*"],
        )
