"""
Virtual filesystem for terminal navigation.

This module provides an in-memory Unix-like directory tree. Nothing here
touches the real disk except `load_tree_file`, which reads the YAML
description the tree is built from.
"""
import re
import yaml
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, TYPE_CHECKING, Union

from .events import (
    DirectoryChanged,
    DirectoryCreated,
    FileRead,
    FileWritten,
    LogMessage,
    PathDeleted,
)

if TYPE_CHECKING:
    from .events import EventManager


@dataclass
class FileNode:
    """A file holding text content."""
    content: str = ""
    permissions: str = "rw-r--r--"
    hidden: bool = False

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class DirectoryNode:
    """A directory mapping names to child nodes."""
    contents: dict[str, "Node"] = field(default_factory=dict)
    permissions: str = "rwxr-xr-x"
    hidden: bool = False


Node = Union[FileNode, DirectoryNode]


@dataclass(frozen=True)
class DirectoryEntry:
    """One row of a directory listing."""
    name: str
    is_directory: bool
    permissions: str
    size: int
    hidden: bool


def build_node(data: dict[str, Any]) -> Node:
    """
    Build a node from its dictionary description.

    Directories are `{type: directory, contents: {...}}`; files are
    `{type: file, content: "..."}`. Both accept `permissions` and `hidden`.

    Raises:
        ValueError: If a node has an unknown type
    """
    node_type = data.get('type', 'directory' if 'contents' in data else 'file')

    if node_type == 'directory':
        directory = DirectoryNode(
            permissions=data.get('permissions', 'rwxr-xr-x'),
            hidden=bool(data.get('hidden', False)),
        )
        for name, child in (data.get('contents') or {}).items():
            directory.contents[str(name)] = build_node(child)
        return directory

    if node_type == 'file':
        return FileNode(
            content=str(data.get('content', '')),
            permissions=data.get('permissions', 'rw-r--r--'),
            hidden=bool(data.get('hidden', False)),
        )

    raise ValueError(f"Unknown node type: {node_type}")


def load_tree_file(path: Union[str, Path]) -> DirectoryNode:
    """
    Load a directory tree from a YAML file with a top-level `root` node.

    Raises:
        ValueError: If the file does not describe a root directory
    """
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}

    root = build_node(data.get('root', {'type': 'directory'}))
    if not isinstance(root, DirectoryNode):
        raise ValueError("Filesystem root must be a directory")
    return root


class VirtualFileSystem:
    """In-memory filesystem with a current working directory."""

    def __init__(
        self,
        event_manager: "EventManager",
        home_directory: str = "/home/vault-dweller",
        root: Optional[DirectoryNode] = None,
    ):
        self.event_manager = event_manager
        self.home_directory = home_directory
        self.root = root or DirectoryNode()
        self.current_path = "/"

        if self.is_directory(home_directory):
            self.current_path = home_directory

    def _emit_log(self, message: str, level: str = "DEBUG") -> None:
        self.event_manager.publish(
            LogMessage(message=message, category="FILESYSTEM", level=level, source="VirtualFileSystem"),
            source="VirtualFileSystem",
        )

    def load_tree(self, root: DirectoryNode) -> None:
        """Replace the whole tree and return to the home directory."""
        self.root = root
        self.current_path = self.home_directory if self.is_directory(self.home_directory) else "/"
        self._emit_log("Filesystem tree loaded", level="INFO")

    def normalize_path(self, path: str) -> str:
        """
        Resolve a path to an absolute one.

        Relative paths start from the current directory; `~` is the home
        directory; `.` and `..` are collapsed (`..` at the root stays there).
        """
        if path == "~" or path.startswith("~/"):
            path = self.home_directory + path[1:]
        elif not path.startswith("/"):
            path = f"{self.current_path}/{path}"

        normalized: list[str] = []
        for part in path.split("/"):
            if part in ("", "."):
                continue
            if part == "..":
                if normalized:
                    normalized.pop()
            else:
                normalized.append(part)

        return "/" + "/".join(normalized)

    def _split(self, path: str) -> tuple[str, str]:
        normalized = self.normalize_path(path)
        parent, _, name = normalized.rpartition("/")
        return parent or "/", name

    def get_node(self, path: str) -> Optional[Node]:
        current: Node = self.root
        for part in self.normalize_path(path).split("/"):
            if not part:
                continue
            if not isinstance(current, DirectoryNode) or part not in current.contents:
                return None
            current = current.contents[part]
        return current

    def exists(self, path: str) -> bool:
        return self.get_node(path) is not None

    def is_directory(self, path: str) -> bool:
        return isinstance(self.get_node(path), DirectoryNode)

    def is_file(self, path: str) -> bool:
        return isinstance(self.get_node(path), FileNode)

    def list_directory(self, path: str = ".", show_hidden: bool = False) -> Optional[list[DirectoryEntry]]:
        """
        List a directory.

        Args:
            path: Directory to list
            show_hidden: Include dot-files and nodes flagged hidden

        Returns:
            list[DirectoryEntry]: Entries in insertion order, or None if the
            path is not a directory
        """
        node = self.get_node(path)
        if not isinstance(node, DirectoryNode):
            return None

        entries = []
        for name, child in node.contents.items():
            if not show_hidden and (name.startswith(".") or child.hidden):
                continue
            entries.append(DirectoryEntry(
                name=name,
                is_directory=isinstance(child, DirectoryNode),
                permissions=child.permissions,
                size=child.size if isinstance(child, FileNode) else 0,
                hidden=child.hidden,
            ))
        return entries

    def read_file(self, path: str) -> Optional[str]:
        node = self.get_node(path)
        if not isinstance(node, FileNode):
            return None

        self.event_manager.publish(FileRead(path=self.normalize_path(path)), source="VirtualFileSystem")
        return node.content

    def write_file(self, path: str, content: str) -> bool:
        """Create or overwrite a file; the parent directory must exist."""
        parent_path, name = self._split(path)
        parent = self.get_node(parent_path)
        if not name or not isinstance(parent, DirectoryNode):
            return False
        if isinstance(parent.contents.get(name), DirectoryNode):
            return False

        parent.contents[name] = FileNode(content=content)
        normalized = self.normalize_path(path)
        self.event_manager.publish(FileWritten(path=normalized, content=content), source="VirtualFileSystem")
        self._emit_log(f"Wrote {len(content)} bytes to {normalized}")
        return True

    def create_directory(self, path: str) -> bool:
        """Create a directory; fails if the name is taken or the parent is missing."""
        parent_path, name = self._split(path)
        parent = self.get_node(parent_path)
        if not name or not isinstance(parent, DirectoryNode) or name in parent.contents:
            return False

        parent.contents[name] = DirectoryNode()
        self.event_manager.publish(DirectoryCreated(path=self.normalize_path(path)), source="VirtualFileSystem")
        return True

    def delete(self, path: str) -> bool:
        parent_path, name = self._split(path)
        parent = self.get_node(parent_path)
        if not name or not isinstance(parent, DirectoryNode) or name not in parent.contents:
            return False

        normalized = self.normalize_path(path)
        cwd_removed = self.current_path == normalized or self.current_path.startswith(normalized + "/")

        del parent.contents[name]
        self.event_manager.publish(PathDeleted(path=normalized), source="VirtualFileSystem")

        # the working directory cannot vanish from under the shell
        if cwd_removed:
            self.current_path = parent_path
            self.event_manager.publish(DirectoryChanged(path=parent_path), source="VirtualFileSystem")
        return True

    def change_directory(self, path: str) -> bool:
        normalized = self.normalize_path(path)
        if not self.is_directory(normalized):
            return False

        self.current_path = normalized
        self.event_manager.publish(DirectoryChanged(path=normalized), source="VirtualFileSystem")
        return True

    def get_current_directory(self) -> str:
        return self.current_path

    def display_path(self, path: Optional[str] = None) -> str:
        """Path with the home directory abbreviated to `~`."""
        path = path or self.current_path
        if path == self.home_directory:
            return "~"
        if path.startswith(self.home_directory + "/"):
            return "~" + path[len(self.home_directory):]
        return path

    def find(self, pattern: str, start_path: str = "/") -> list[str]:
        """
        Find files whose absolute path matches a simple glob.

        `*` matches any run of characters; the pattern may match anywhere in
        the path, so `log` finds `/var/log/system.log`.
        """
        regex = re.compile(".*".join(re.escape(part) for part in pattern.split("*")))
        start = self.normalize_path(start_path)
        start_node = self.get_node(start)
        results: list[str] = []

        def search(node_path: str, node: Node) -> None:
            if isinstance(node, FileNode):
                if regex.search(node_path):
                    results.append(node_path)
                return
            for name, child in node.contents.items():
                search(f"{node_path.rstrip('/')}/{name}", child)

        if start_node is not None:
            search(start, start_node)
        return results

    def get_size(self, path: str) -> Optional[int]:
        node = self.get_node(path)
        if not isinstance(node, FileNode):
            return None
        return node.size
