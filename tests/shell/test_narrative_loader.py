"""
Tests for narrative validation, filesystem seeding and completion.
"""

import os

import pytest

from vaultterm.core.events import EventType
from vaultterm.shell.narrative_loader import NarrativeLoader, VICTORY_ACHIEVEMENT, validate_narrative


RAVEN = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))),
                     "assets", "narratives", "raven.yaml")


def minimal(**overrides):
    config = {"narrative": "Test", "version": "1.0", "start_context": "localhost"}
    config.update(overrides)
    return config


@pytest.fixture
def loader(event_manager, state_manager, filesystem):
    return NarrativeLoader(event_manager, state_manager, filesystem)


class TestValidation:

    def test_valid_narrative(self):
        assert validate_narrative(minimal()) == []

    def test_not_a_mapping(self):
        assert validate_narrative(["narrative"]) == ["Expected a mapping, got list"]

    def test_missing_fields(self):
        errors = validate_narrative({"narrative": "Test"})

        assert "Missing required field: version" in errors
        assert "Missing required field: start_context" in errors

    def test_wrong_types(self):
        errors = validate_narrative(minimal(version=1, systems={}))

        assert "Field 'version': expected str, got int" in errors
        assert "Field 'systems': expected list, got dict" in errors

    def test_flags_must_be_names(self):
        errors = validate_narrative(minimal(progression={"flags": [1, 2]}))
        assert errors == ["Field 'progression.flags': expected a list of flag names"]


class TestLoading:

    def test_load_bundled_narrative(self, loader):
        assert loader.load_from_file(RAVEN)

        info = loader.get_narrative_info()
        assert info["name"] == "Project RAVEN"
        assert info["systems"] == 1
        assert "mission_complete" in info["required_flags"]
        assert not info["completed"]
        assert loader.get_start_context() == "localhost"

    def test_missing_file(self, loader, tmp_path):
        assert not loader.load_from_file(tmp_path / "absent.yaml")
        assert loader.get_narrative_info() is None
        assert loader.get_start_context() is None

    def test_bad_yaml(self, loader, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("narrative: [unclosed\n")

        assert not loader.load_from_file(path)

    def test_invalid_narrative_is_logged(self, loader, event_manager):
        messages = []
        event_manager.subscribe(EventType.LOG_MESSAGE, lambda event: messages.append(event.message))

        assert not loader.load({"narrative": "Test"})
        event_manager.process_events()

        assert "Invalid narrative: Missing required field: version" in messages

    def test_intro_is_printed(self, loader, output):
        loader.load(minimal(dialogues={"intro": "Static on the line.\n"}))
        assert "\nStatic on the line.\n" in output


class TestFilesystemSeeding:

    def test_list_creates_empty_files(self, loader, filesystem):
        loader.setup_filesystem({"/var/log": ["auth.log", "boot.log"]})

        assert filesystem.read_file("/var/log/auth.log") == ""
        assert filesystem.is_file("/var/log/boot.log")

    def test_list_keeps_existing_content(self, loader, filesystem):
        filesystem.write_file("/home/vault-dweller/notes.txt", "keep me")

        loader.setup_filesystem({"/home/vault-dweller": ["notes.txt"]})

        assert filesystem.read_file("/home/vault-dweller/notes.txt") == "keep me"

    def test_mapping_with_content_and_subdirectory(self, loader, filesystem):
        loader.setup_filesystem({
            "/opt/raven": {
                "readme.txt": "classified",
                "archive": {"old.txt": "older"},
            }
        })

        assert filesystem.read_file("/opt/raven/readme.txt") == "classified"
        assert filesystem.is_directory("/opt/raven/archive")
        assert filesystem.read_file("/opt/raven/archive/old.txt") == "older"

    def test_load_seeds_system_files(self, loader, filesystem):
        loader.load_from_file(RAVEN)
        assert "RAVEN protocol" in filesystem.read_file("/home/vault-dweller/logs/transmission-01.txt")


class TestWinCondition:

    def test_all_flags_triggers_victory_once(self, loader, state_manager, event_manager, output):
        loader.load(minimal(
            progression={"flags": ["a", "b"], "win_condition": {"all_flags": True}},
            dialogues={"victory": "The signal is yours."},
        ))

        state_manager.set_flag("a")
        event_manager.process_events()
        assert not loader.completed

        state_manager.set_flag("b")
        event_manager.process_events()
        assert loader.completed
        assert VICTORY_ACHIEVEMENT in state_manager.state.achievements
        assert "The signal is yours." in output

        state_manager.set_flag("c")
        event_manager.process_events()
        assert output.count("The signal is yours.") == 1

    def test_explicit_flag_list(self, loader, state_manager, event_manager):
        loader.load(minimal(progression={"flags": ["a", "b"], "win_condition": {"all_flags": ["b"]}}))

        state_manager.set_flag("b")
        event_manager.process_events()

        assert loader.completed

    def test_default_victory_text(self, loader, output):
        loader.load(minimal())
        loader.trigger_victory()

        assert "MISSION COMPLETE!" in output

    def test_without_win_condition_nothing_completes(self, loader, state_manager, event_manager):
        loader.load(minimal(progression={"flags": ["a"]}))

        state_manager.set_flag("a")
        event_manager.process_events()

        assert not loader.check_win_condition()
        assert not loader.completed

    def test_reset_stops_watching_flags(self, loader, state_manager, event_manager):
        loader.load(minimal(progression={"flags": ["a"], "win_condition": {"all_flags": True}}))
        loader.reset()

        state_manager.set_flag("a")
        event_manager.process_events()

        assert not loader.completed
        assert loader.get_narrative_info() is None
