"""Transfer roots and source-to-destination path mapping."""

import re
from dataclasses import dataclass

from ..exceptions import PathMappingError

# "C:" or "C:\..." is a local Windows drive, not a server name
_DRIVE_RE = re.compile(r"^[A-Za-z]:([\\/]|$)")


def normalize_root(path: str) -> str:
    """Remove trailing slashes from a root path.

    The filesystem root itself is kept as ``"/"``.

    Examples:
        >>> normalize_root("/data/")
        '/data'
        >>> normalize_root("/")
        '/'
    """
    if len(path) > 1:
        return path.rstrip("/") or "/"
    return path


@dataclass(frozen=True)
class TransferRoot:
    """One side of a transfer.

    ``server`` is empty for the local filesystem.
    """

    server: str
    path: str

    @property
    def is_remote(self) -> bool:
        return bool(self.server)

    @property
    def endpoint(self) -> str:
        """Render the root back into ``server:path`` (or plain path) form."""
        return self.endpoint_for(self.path)

    def endpoint_for(self, path: str) -> str:
        """Endpoint string for another path on the same side."""
        if self.server:
            return f"{self.server}:{path}"
        return path

    def normalized(self) -> "TransferRoot":
        return TransferRoot(server=self.server, path=normalize_root(self.path))

    @classmethod
    def parse(cls, endpoint: str) -> "TransferRoot":
        """Split an endpoint into server and path.

        Args:
            endpoint: ``server:path`` for a remote endpoint, a plain path for
                a local one

        Examples:
            >>> TransferRoot.parse("host:/data")
            TransferRoot(server='host', path='/data')
            >>> TransferRoot.parse("/data")
            TransferRoot(server='', path='/data')
        """
        if _DRIVE_RE.match(endpoint):
            return cls(server="", path=endpoint)
        server, sep, path = endpoint.partition(":")
        if not sep or not server or "/" in server:
            return cls(server="", path=endpoint)
        return cls(server=server, path=path)


def is_remote_endpoint(endpoint: str) -> bool:
    """Check if an endpoint names a remote location."""
    return TransferRoot.parse(endpoint).is_remote


def map_path(source_root: str, dest_root: str, path: str) -> str:
    """Map a source path into the destination tree.

    Args:
        source_root: Root of the source tree
        dest_root: Root of the destination tree
        path: Listed path below (or equal to) ``source_root``

    Returns:
        Corresponding destination path

    Raises:
        PathMappingError: If ``path`` lies outside ``source_root``

    Examples:
        >>> map_path("/src", "/dst", "/src")
        '/dst'
        >>> map_path("/src/", "/dst/", "/src/a/b")
        '/dst/a/b'
    """
    source_root = normalize_root(source_root)
    dest_root = normalize_root(dest_root)
    path = normalize_root(path)

    if path == source_root:
        return dest_root

    # An empty root is the remote login directory; its listing is relative
    if not source_root:
        prefix = ""
    elif source_root.endswith("/"):
        prefix = source_root
    else:
        prefix = source_root + "/"
    if not path.startswith(prefix) or (not source_root and path.startswith("/")):
        raise PathMappingError(
            f"Listed path {path!r} is outside of source root {source_root!r}"
        )

    suffix = path[len(prefix):]
    if not dest_root or dest_root.endswith("/"):
        return dest_root + suffix
    return f"{dest_root}/{suffix}"
