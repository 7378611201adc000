"""
Tests for the commands shared by every context.
"""

import asyncio
from unittest.mock import Mock

import pytest

from vaultterm.contexts.builtins import BuiltinCommands, parse_slot
from vaultterm.core.events import EventType
from vaultterm.shell.log_manager import LogManager


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def session(input_handler, context_manager, event_manager):
    run(context_manager.switch_context("localhost"))

    def execute(line):
        result = run(input_handler.handle_line(line))
        event_manager.process_events()
        return result

    return execute


class TestParseSlot:

    @pytest.mark.parametrize("args,expected", [
        ([], 0),
        (["3"], 3),
        (["-1"], None),
        (["two"], None),
    ])
    def test_parse_slot(self, args, expected):
        assert parse_slot(args) == expected


class TestHelp:

    def test_help_lists_eligible_commands(self, session):
        text = session("help").output

        assert "  cd           - Change directory" in text
        assert "login" not in text
        assert "debug" not in text
        assert text.endswith('Type "help <command>" for more information.')

    def test_help_in_bbs_lists_bbs_commands(self, session):
        session("telnet darknet.bbs.net")
        text = session("help").output

        assert "  login        - Login to BBS" in text
        assert "  cd " not in text

    def test_help_for_a_command(self, session):
        text = session("help inv").output

        assert text.startswith("inventory - Show inventory")
        assert "Usage: inventory" in text
        assert "Aliases: inv" in text

    def test_help_for_ineligible_command(self, session):
        assert "(not available in this context)" in session("help login").output

    def test_help_unknown_or_hidden(self, session):
        assert session("help xyzzy").error == "help: no help for 'xyzzy'"
        assert session("help debug").error == "help: no help for 'debug'"


class TestSessionCommands:

    def test_clear_publishes_clear(self, session, event_manager):
        subscriber = Mock()
        event_manager.subscribe(EventType.TERMINAL_CLEAR, subscriber)

        assert session("cls").success
        subscriber.assert_called_once()

    def test_history(self, session):
        session("pwd")
        session("echo hi")

        text = session("history").output
        assert "pwd" in text
        assert "echo hi" in text

    def test_empty_history(self, session, state_manager):
        state_manager.state.command_history.clear()

        assert session("history").output == "No commands in history"

    def test_status_shows_location(self, session):
        text = session("status").output

        assert "| Location: Local Shell" in text
        assert "| Systems Visited: 1" in text

    def test_inventory(self, session, state_manager):
        assert session("inventory").output == "Inventory is empty"

        state_manager.add_to_inventory("vault-map.txt")
        assert session("inv").output == "Inventory:\n  1. vault-map.txt"

    def test_quit_terminates(self, session):
        result = session("quit")

        assert result.terminate
        assert result.output == "Connection terminated. Goodbye."


class TestSaveLoad:

    def test_save_and_load(self, session, state_manager):
        state_manager.set_flag("found_credentials")

        assert session("save 1").output == "Game saved to slot 1"
        state_manager.remove_flag("found_credentials")

        assert session("load 1").output == "Game loaded from slot 1"
        assert state_manager.has_flag("found_credentials")

    def test_invalid_slot(self, session):
        assert session("save abc").error == "save: invalid slot 'abc'"
        assert session("load -2").error == "load: invalid slot '-2'"

    def test_load_missing_slot(self, session):
        assert session("load 9").error == "No save found in slot 9"

    def test_load_returns_to_saved_context(self, session, context_manager, state_manager):
        session("telnet darknet.bbs.net")
        session("save")
        session("exit")
        assert context_manager.get_current_context_id() == "localhost"

        session("load")

        assert context_manager.get_current_context_id() == "bbs"


class TestDebug:

    @pytest.fixture
    def debug_session(self, command_registry, state_manager, event_manager, context_manager,
                      input_handler, tmp_path):
        log_manager = LogManager(event_manager, log_dir=str(tmp_path / "logs"))
        builtins = BuiltinCommands(command_registry, state_manager, event_manager,
                                   log_manager=log_manager, context_manager=context_manager)
        command_registry.register(next(c for c in builtins.get_commands() if c.name == "debug"))
        run(context_manager.switch_context("localhost"))

        def execute(line):
            result = run(input_handler.handle_line(line))
            event_manager.process_events()
            return result

        return execute, log_manager

    def test_debug_toggle(self, debug_session):
        execute, log_manager = debug_session

        assert execute("debug on").output == "Debug logging on"
        assert log_manager.is_debug_enabled()
        assert execute("debug off").output == "Debug logging off"
        assert not log_manager.is_debug_enabled()

    def test_debug_shows_recent_entries(self, debug_session):
        execute, log_manager = debug_session
        log_manager.system("reactor stable")

        assert "reactor stable" in execute("debug 5").output

    def test_debug_save_writes_file(self, debug_session, tmp_path):
        execute, log_manager = debug_session
        log_manager.system("reactor stable")

        execute("debug save")

        assert list((tmp_path / "logs").iterdir())

    def test_debug_events_reports_bus_statistics(self, debug_session):
        execute, _ = debug_session
        output = execute("debug events").output

        assert output.startswith("Event bus:")
        assert "events published:" in output
        assert "subscribers count:" in output

    def test_debug_bad_option(self, debug_session):
        execute, _ = debug_session
        assert execute("debug sideways").error == "debug: unknown option 'sideways'"

    def test_debug_without_log_manager(self, session):
        assert session("debug").error == "debug: logging is not available"
