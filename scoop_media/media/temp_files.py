"""Request-scoped scratch files for the video pipeline."""

from __future__ import annotations

import tempfile
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import TracebackType
from typing import Optional, Type

from loguru import logger


class TempRole(str, Enum):
    INPUT = "input"
    OUTPUT = "output"


@dataclass(frozen=True, slots=True)
class TempAsset:
    """A local scratch path owned by exactly one processing call."""

    local_path: Path
    role: TempRole

    def exists(self) -> bool:
        return self.local_path.exists()

    def size(self) -> int:
        return self.local_path.stat().st_size


@dataclass(slots=True)
class TempFileArena:
    """
    Allocates scratch paths under `base_dir` and removes all of them on exit.

    Names are derived from a per-arena token (UUID4 by default), so two calls
    that start in the same millisecond never share a path. Use as a context
    manager; cleanup runs on success, handled failure and unhandled exceptions.
    """

    base_dir: Path = field(default_factory=lambda: Path(tempfile.gettempdir()))
    token: str = field(default_factory=lambda: uuid.uuid4().hex)
    assets: list[TempAsset] = field(default_factory=list)

    def allocate(self, role: TempRole, *, suffix: str = ".mp4") -> TempAsset:
        asset = TempAsset(local_path=Path(self.base_dir) / f"{role.value}_{self.token}{suffix}", role=role)
        self.assets.append(asset)
        return asset

    def cleanup(self) -> None:
        """Best-effort removal; secondary errors are logged, never raised."""
        for asset in self.assets:
            try:
                asset.local_path.unlink(missing_ok=True)
            except OSError as exc:
                logger.warning("[TempFiles] could not remove {}: {}", asset.local_path, exc)

    def __enter__(self) -> "TempFileArena":
        Path(self.base_dir).mkdir(parents=True, exist_ok=True)
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.cleanup()


__all__ = ["TempRole", "TempAsset", "TempFileArena"]
