"""File-system content store (one file per item)."""

import logging
from pathlib import Path

import aiofiles
import aiofiles.os

from memory_bank.exceptions import NotFoundError
from memory_bank.stores.base import ContentStore
from memory_bank.utils.validators import validate_name

logger = logging.getLogger(__name__)


class FileContentStore(ContentStore):
    """Stores item text under `<root>/<project>/<name>`."""

    def __init__(self, root_path: str | Path) -> None:
        """Initialize file content store.

        Args:
            root_path: Directory holding one sub-directory per project
        """
        self.root_path = Path(root_path)

    def _project_dir(self, project_name: str) -> Path:
        return self.root_path / validate_name(project_name, "project_name")

    def _item_path(self, project_name: str, name: str) -> Path:
        return self._project_dir(project_name) / validate_name(name, "name")

    async def list_projects(self) -> list[str]:
        if not await aiofiles.os.path.isdir(self.root_path):
            return []
        entries = await aiofiles.os.listdir(self.root_path)
        return sorted(e for e in entries if (self.root_path / e).is_dir())

    async def list(self, project_name: str) -> list[str]:
        project_dir = self._project_dir(project_name)
        if not await aiofiles.os.path.isdir(project_dir):
            raise NotFoundError(f"Project not found: {project_name}")

        entries = await aiofiles.os.listdir(project_dir)
        # Hidden files (editor swap files, .DS_Store) are not items
        return sorted(
            e for e in entries if not e.startswith(".") and (project_dir / e).is_file()
        )

    async def load(self, project_name: str, name: str) -> str:
        path = self._item_path(project_name, name)
        if not await aiofiles.os.path.isfile(path):
            raise NotFoundError(f"Item not found: {project_name}/{name}")

        async with aiofiles.open(path, encoding="utf-8") as f:
            return await f.read()

    async def save(self, project_name: str, name: str, text: str) -> None:
        path = self._item_path(project_name, name)
        await aiofiles.os.makedirs(path.parent, exist_ok=True)

        async with aiofiles.open(path, "w", encoding="utf-8") as f:
            await f.write(text)
        logger.debug("Saved %s/%s (%d chars)", project_name, name, len(text))

    async def delete(self, project_name: str, name: str) -> bool:
        path = self._item_path(project_name, name)
        if not await aiofiles.os.path.isfile(path):
            return False

        await aiofiles.os.remove(path)
        return True
