"""Cache of certificate and key file contents."""

import asyncio
from pathlib import Path

import structlog

from netgate.fetch.constants import COMPONENT_FILE_CACHE
from netgate.fetch.memo import AsyncMemo


logger = structlog.get_logger()


class FileContentCache:
    """Memoizes file reads keyed by path.

    File contents are assumed static for the process lifetime, so entries
    never expire. Read failures propagate and are not remembered.
    """

    def __init__(self) -> None:
        self._memo: AsyncMemo[Path, bytes] = AsyncMemo()
        self._log = logger.bind(component=COMPONENT_FILE_CACHE)

    def __contains__(self, path: object) -> bool:
        return Path(path) in self._memo if isinstance(path, str | Path) else False

    @property
    def read_count(self) -> int:
        """Number of physical reads started."""
        return self._memo.fetch_count

    async def get(self, path: str | Path) -> bytes:
        """Get the contents of a file.

        Args:
            path: File to read.

        Returns:
            File contents.

        Raises:
            OSError: If the file cannot be read.
        """
        file_path = Path(path)

        async def read() -> bytes:
            self._log.debug("file_read", path=str(file_path))
            return await asyncio.to_thread(file_path.read_bytes)

        return await self._memo.get_or_fetch(file_path, read)
