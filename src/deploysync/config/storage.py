"""Network file location helpers."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

NETWORK_FILE_TEMPLATE: Final[str] = "zos.{network}.json"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    project_dir: Path
    network_file_template: str = NETWORK_FILE_TEMPLATE

    def resolve_project_dir(self) -> Path:
        return self.project_dir.expanduser().resolve()

    def network_file_path(self, network: str) -> Path:
        if not network.strip():
            raise ValueError("Network name must not be blank")
        return self.resolve_project_dir() / self.network_file_template.format(network=network)


def get_storage_config(*, project_dir: Path | None = None) -> StorageConfig:
    if project_dir is not None:
        return StorageConfig(project_dir=project_dir)
    env_dir = os.getenv("DEPLOYSYNC_PROJECT_DIR")
    return StorageConfig(project_dir=Path(env_dir) if env_dir else Path.cwd())
