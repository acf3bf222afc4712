"""Hierarchical content repository backed by SQLAlchemy."""

import logging
import posixpath
import uuid
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ugcmigrate.errors import ItemExistsError
from ugcmigrate.models.db import CONTENT_NODE, FILE_TYPE, FOLDER_TYPE, RESOURCE_TYPE, RepositoryNode

logger = logging.getLogger(__name__)


def normalize_path(path: str) -> str:
    """Normalize a repository path to an absolute path without trailing slash."""
    normalized = posixpath.normpath("/" + path.strip("/"))
    # normpath keeps a leading "//"
    return "/" + normalized.lstrip("/")


def join_path(parent_path: str, name: str) -> str:
    """Join a child name onto a parent path."""
    return normalize_path(f"{parent_path}/{name}")


class ContentRepository:
    """Path-addressable node store for folders and binary files."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_node(self, path: str) -> RepositoryNode | None:
        """Get the node stored at a path."""
        result = await self.session.execute(
            select(RepositoryNode).where(RepositoryNode.path == normalize_path(path))
        )
        return result.scalar_one_or_none()

    async def list_children(self, path: str) -> list[RepositoryNode]:
        """List the direct children of a node, ordered by name."""
        result = await self.session.execute(
            select(RepositoryNode)
            .where(RepositoryNode.parent_path == normalize_path(path))
            .order_by(RepositoryNode.name)
        )
        return list(result.scalars().all())

    async def get_or_add_folder(self, parent_path: str, name: str) -> RepositoryNode:
        """Return the named child folder of a node, creating it if missing."""
        path = join_path(parent_path, name)
        node = await self.get_node(path)
        if node is not None:
            return node

        node = RepositoryNode(
            path=path,
            parent_path=normalize_path(parent_path),
            name=name,
            primary_type=FOLDER_TYPE,
        )
        self.session.add(node)
        await self.session.flush()
        logger.debug("Created folder %s", path)
        return node

    async def ensure_folder(self, path: str) -> None:
        """Create every missing folder from the root down to ``path``."""
        current = "/"
        for name in normalize_path(path).split("/"):
            if not name:
                continue
            await self.get_or_add_folder(current, name)
            current = join_path(current, name)

    async def write_binary(self, folder_path: str, name: str, data: bytes, mime_type: str) -> str:
        """
        Add a referenceable file node holding binary data.

        The file node gets a ``jcr:content`` resource child carrying the data,
        MIME type and last-modified time.

        Returns:
            The path of the new file node

        Raises:
            ItemExistsError: if a node already exists at that path
        """
        path = join_path(folder_path, name)
        if await self.get_node(path) is not None:
            raise ItemExistsError(path)

        file_node = RepositoryNode(
            path=path,
            parent_path=normalize_path(folder_path),
            name=name,
            primary_type=FILE_TYPE,
            uuid=str(uuid.uuid4()),
        )
        resource_node = RepositoryNode(
            path=join_path(path, CONTENT_NODE),
            parent_path=path,
            name=CONTENT_NODE,
            primary_type=RESOURCE_TYPE,
            mime_type=mime_type,
            data=data,
            last_modified=datetime.now(),
        )
        self.session.add_all([file_node, resource_node])
        await self.session.flush()
        return path

    async def read_binary(self, path: str) -> RepositoryNode | None:
        """Get the resource node holding a file's data."""
        return await self.get_node(join_path(path, CONTENT_NODE))

    async def commit(self) -> None:
        """Persist pending changes."""
        await self.session.commit()

    async def rollback(self) -> None:
        """Discard pending changes."""
        await self.session.rollback()
