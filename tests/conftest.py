"""
Basic test fixtures for the vaultterm test suite.

Provides freshly wired collaborators so each test gets an isolated bus,
progression store and filesystem.
"""

import io
import sys
import os
import pytest

# Add the project root to the Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from vaultterm.contexts import BBSSystem, LocalShell, SSHClient, create_builtin_commands
from vaultterm.core.dispatch import CommandRegistry, ContextManager
from vaultterm.core.events.event_manager import EventManager
from vaultterm.core.events import EventType
from vaultterm.core.filesystem import VirtualFileSystem, load_tree_file
from vaultterm.core.renderer import RendererConfig
from vaultterm.core.state_manager import StateManager
from vaultterm.renderers.terminal_renderer import TerminalRenderer
from vaultterm.shell.input_handler import InputHandler


VAULT_TREE = os.path.join(project_root, "assets", "filesystem", "vault.yaml")


@pytest.fixture
def event_manager():
    """Create an event manager for testing."""
    return EventManager(enable_debug_logging=False)


@pytest.fixture
def state_manager(event_manager, tmp_path):
    """Create a progression store that saves under a temporary directory."""
    return StateManager(event_manager, save_dir=tmp_path / "saves", autosave_seconds=0)


@pytest.fixture
def filesystem(event_manager):
    """Create the default vault filesystem."""
    return VirtualFileSystem(event_manager, root=load_tree_file(VAULT_TREE))


@pytest.fixture
def command_registry(event_manager):
    return CommandRegistry(event_manager)


@pytest.fixture
def context_manager(command_registry, event_manager, state_manager):
    return ContextManager(command_registry, event_manager, state_manager)


@pytest.fixture
def output(event_manager):
    """Collect every line published as terminal output."""
    lines = []
    event_manager.subscribe(EventType.TERMINAL_OUTPUT, lambda event: lines.append(event.text))
    return lines


@pytest.fixture
def renderer(event_manager):
    """A colourless renderer writing into a string buffer."""
    config = RendererConfig(typing_speed_ms=0, use_color=False)
    return TerminalRenderer(config, event_manager=event_manager, stream=io.StringIO())


@pytest.fixture
def shell_contexts(event_manager, state_manager, filesystem, command_registry, context_manager):
    """Register the builtins and the three story contexts with no latency."""
    command_registry.register_bulk(create_builtin_commands(
        command_registry, state_manager, event_manager, context_manager=context_manager))

    contexts = {
        "localhost": LocalShell(event_manager, state_manager, filesystem, latency_scale=0),
        "bbs": BBSSystem(event_manager, state_manager, filesystem, latency_scale=0),
        "ssh": SSHClient(event_manager, state_manager, filesystem, latency_scale=0),
    }
    for context_id, context in contexts.items():
        context_manager.register_context(context_id, context)
    return contexts


@pytest.fixture
def input_handler(command_registry, context_manager, event_manager, shell_contexts):
    return InputHandler(command_registry, context_manager, event_manager)
