"""
Unit tests for the virtual filesystem.
"""

from unittest.mock import Mock

import pytest

from vaultterm.core.events import EventType
from vaultterm.core.filesystem import (
    DirectoryNode,
    FileNode,
    VirtualFileSystem,
    build_node,
    load_tree_file,
)


HOME = "/home/vault-dweller"


class TestTreeLoading:

    def test_default_tree_starts_at_home(self, filesystem):
        assert filesystem.get_current_directory() == HOME
        assert filesystem.display_path() == "~"

    def test_missing_home_starts_at_root(self, event_manager):
        fs = VirtualFileSystem(event_manager, home_directory="/nowhere")
        assert fs.get_current_directory() == "/"

    def test_build_node_infers_types(self):
        node = build_node({"contents": {"a.txt": {"content": "hi"}}})

        assert isinstance(node, DirectoryNode)
        assert isinstance(node.contents["a.txt"], FileNode)
        assert node.contents["a.txt"].content == "hi"

    def test_build_node_rejects_unknown_type(self):
        with pytest.raises(ValueError):
            build_node({"type": "symlink"})

    def test_load_tree_file_requires_directory_root(self, tmp_path):
        tree = tmp_path / "tree.yaml"
        tree.write_text("root:\n  type: file\n  content: nope\n")

        with pytest.raises(ValueError):
            load_tree_file(tree)

    def test_load_tree_replaces_tree(self, filesystem):
        filesystem.change_directory("/etc")
        filesystem.load_tree(DirectoryNode(contents={"tmp": DirectoryNode()}))

        assert filesystem.get_current_directory() == "/"
        assert filesystem.exists("/tmp")
        assert not filesystem.exists("/etc")


class TestPaths:

    @pytest.mark.parametrize("path,expected", [
        ("notes.txt", f"{HOME}/notes.txt"),
        ("~", HOME),
        ("~/downloads", f"{HOME}/downloads"),
        ("../..", "/"),
        ("/../../etc", "/etc"),
        ("/var/./log/", "/var/log"),
    ])
    def test_normalize_path(self, filesystem, path, expected):
        assert filesystem.normalize_path(path) == expected

    def test_display_path(self, filesystem):
        assert filesystem.display_path(f"{HOME}/downloads") == "~/downloads"
        assert filesystem.display_path("/etc") == "/etc"
        assert filesystem.display_path("/home/vault-dweller2") == "/home/vault-dweller2"


class TestListing:

    def test_hidden_entries_need_show_hidden(self, filesystem):
        names = [entry.name for entry in filesystem.list_directory()]
        assert names == ["welcome.txt", "notes.txt", "downloads"]

        hidden = [entry.name for entry in filesystem.list_directory(show_hidden=True)]
        assert ".secrets" in hidden

    def test_entries_describe_nodes(self, filesystem):
        entries = {entry.name: entry for entry in filesystem.list_directory("/etc")}

        assert not entries["hosts"].is_directory
        assert entries["hosts"].permissions == "r--r--r--"
        assert entries["hosts"].size == len(filesystem.read_file("/etc/hosts"))

    def test_listing_a_file_is_none(self, filesystem):
        assert filesystem.list_directory("notes.txt") is None
        assert filesystem.list_directory("/missing") is None


class TestMutation:

    def test_read_file_publishes_event(self, filesystem, event_manager):
        subscriber = Mock()
        event_manager.subscribe(EventType.FILE_READ, subscriber)

        content = filesystem.read_file("~/.secrets/password.txt")
        event_manager.process_events()

        assert "user=ghost" in content
        assert subscriber.call_args[0][0].path == f"{HOME}/.secrets/password.txt"

    def test_read_directory_is_none(self, filesystem):
        assert filesystem.read_file("/etc") is None

    def test_write_file(self, filesystem, event_manager):
        subscriber = Mock()
        event_manager.subscribe(EventType.FILE_WRITTEN, subscriber)

        assert filesystem.write_file("downloads/loot.txt", "caps")
        event_manager.process_events()

        assert filesystem.read_file(f"{HOME}/downloads/loot.txt") == "caps"
        assert subscriber.call_args[0][0].content == "caps"

    def test_write_file_needs_existing_parent(self, filesystem):
        assert not filesystem.write_file("/nope/file.txt", "x")

    def test_write_file_cannot_replace_directory(self, filesystem):
        assert not filesystem.write_file(HOME + "/downloads", "x")
        assert filesystem.is_directory(HOME + "/downloads")

    def test_create_directory(self, filesystem):
        assert filesystem.create_directory("projects")
        assert filesystem.is_directory(f"{HOME}/projects")
        assert not filesystem.create_directory("projects")
        assert not filesystem.create_directory("/missing/child")

    def test_delete(self, filesystem):
        assert filesystem.delete("notes.txt")
        assert not filesystem.exists("notes.txt")
        assert not filesystem.delete("notes.txt")

    def test_delete_working_directory_moves_to_parent(self, filesystem):
        filesystem.change_directory("/var/log")

        assert filesystem.delete("/var")
        assert filesystem.get_current_directory() == "/"

    def test_delete_working_directory_publishes_directory_change(self, filesystem, event_manager):
        changes = []
        event_manager.subscribe(EventType.DIRECTORY_CHANGED, lambda event: changes.append(event.path))
        filesystem.change_directory("downloads")
        event_manager.process_events()

        filesystem.delete(f"{HOME}/downloads")
        event_manager.process_events()

        assert changes == [f"{HOME}/downloads", HOME]

    def test_delete_elsewhere_keeps_directory(self, filesystem, event_manager):
        subscriber = Mock()
        event_manager.subscribe(EventType.DIRECTORY_CHANGED, subscriber)

        filesystem.delete("/var/log/system.log")
        event_manager.process_events()

        subscriber.assert_not_called()

    def test_change_directory(self, filesystem, event_manager):
        subscriber = Mock()
        event_manager.subscribe(EventType.DIRECTORY_CHANGED, subscriber)

        assert filesystem.change_directory("/etc")
        assert not filesystem.change_directory("/etc/hosts")
        event_manager.process_events()

        assert filesystem.get_current_directory() == "/etc"
        subscriber.assert_called_once()


class TestSearch:

    def test_find_matches_anywhere_in_path(self, filesystem):
        assert filesystem.find("log") == ["/var/log/system.log"]

    def test_find_wildcard(self, filesystem):
        results = filesystem.find("*.txt")
        assert f"{HOME}/welcome.txt" in results
        assert f"{HOME}/.secrets/password.txt" in results
        assert "/etc/hosts" not in results

    def test_find_from_start_path(self, filesystem):
        assert filesystem.find("*", "/etc") == ["/etc/hosts", "/etc/motd"]
        assert filesystem.find("*", "/missing") == []

    def test_get_size(self, filesystem):
        assert filesystem.get_size("/etc/motd") == len(filesystem.read_file("/etc/motd"))
        assert filesystem.get_size("/etc") is None
