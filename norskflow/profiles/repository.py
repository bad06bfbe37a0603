"""Per-user profile and credential storage.

The planner never touches storage itself; callers load a profile through a
ProfileRepository, generate a plan, and save the profile back. The JSON file
implementation keeps one camelCase document per user id.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Generic, Protocol, TypeVar

from loguru import logger
from pydantic import BaseModel, ValidationError

from norskflow.config.settings import settings
from norskflow.integrations.intervals.schemas import IntervalsConfig
from norskflow.planning.models import AthleteProfile

_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]+")

ModelT = TypeVar("ModelT", bound=BaseModel)


class ProfileRepository(Protocol):
    def load(self, user_id: str) -> AthleteProfile | None: ...

    def save(self, user_id: str, profile: AthleteProfile) -> None: ...


class CredentialsRepository(Protocol):
    def load(self, user_id: str) -> IntervalsConfig | None: ...

    def save(self, user_id: str, config: IntervalsConfig) -> None: ...


def _safe_name(user_id: str) -> str:
    return _UNSAFE.sub("_", user_id.strip()) or "anon"


class _JsonFileStore(Generic[ModelT]):
    """One JSON document per user under `root/<prefix>_<user_id>.json`."""

    model: type[ModelT]
    prefix: str

    def __init__(self, root: str | Path | None = None) -> None:
        self.root = Path(root or settings.profile_store_dir)

    def path_for(self, user_id: str) -> Path:
        return self.root / f"{self.prefix}_{_safe_name(user_id)}.json"

    def load(self, user_id: str) -> ModelT | None:
        """Load a user's document; None when missing or unreadable."""
        path = self.path_for(user_id)
        if not path.exists():
            return None
        try:
            return self.model.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable {self.prefix} file {path}: {e}")
            return None

    def save(self, user_id: str, value: ModelT) -> None:
        path = self.path_for(user_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(value.model_dump_json(by_alias=True, exclude_none=True, indent=2), encoding="utf-8")
        tmp.replace(path)
        logger.debug(f"Saved {self.prefix} for {user_id} to {path}")


class JsonFileProfileRepository(_JsonFileStore[AthleteProfile]):
    model = AthleteProfile
    prefix = "profile"


class JsonFileCredentialsRepository(_JsonFileStore[IntervalsConfig]):
    model = IntervalsConfig
    prefix = "intervals"
