"""
Tests for the terminal configuration loader.
"""

from vaultterm.core.config_loader import PROJECT_ROOT, TerminalConfig, TerminalConfigLoader


def write_config(tmp_path, body: str):
    path = tmp_path / "terminal.yaml"
    path.write_text(body)
    return str(path)


class TestTerminalConfigLoader:

    def test_bundled_config_loads(self):
        loader = TerminalConfigLoader()

        assert loader.load_config()
        settings = loader.get_settings()
        assert settings.typing_speed_ms == 8
        assert settings.start_context == "localhost"
        assert loader.validate_config()['valid']

    def test_missing_file_falls_back_to_defaults(self, tmp_path, capsys):
        loader = TerminalConfigLoader(str(tmp_path / "absent.yaml"))

        assert not loader.load_config()
        assert loader.get_settings() == TerminalConfig()
        assert "Loaded fallback terminal configuration" in capsys.readouterr().out

    def test_invalid_yaml_falls_back(self, tmp_path):
        loader = TerminalConfigLoader(write_config(tmp_path, "terminal: [unclosed"))

        assert not loader.load_config()
        assert loader.get_settings() == TerminalConfig()

    def test_partial_section_overlays_defaults(self, tmp_path):
        loader = TerminalConfigLoader(write_config(tmp_path, "terminal:\n  hostname: wasteland\n"))

        assert loader.load_config()
        assert loader.get("hostname") == "wasteland"
        assert loader.get("username") == "root"
        assert loader.get("not_a_setting", "fallback") == "fallback"

    def test_unknown_keys_are_reported(self, tmp_path, capsys):
        loader = TerminalConfigLoader(write_config(tmp_path, "terminal:\n  warp_speed: 9\n"))

        loader.load_config()

        assert "Unknown setting 'warp_speed'" in capsys.readouterr().out
        assert "Unknown setting in config: warp_speed" in loader.validate_config()['warnings']

    def test_validation_errors(self, tmp_path):
        body = (
            "terminal:\n"
            "  typing_speed_ms: -5\n"
            "  log_level: LOUD\n"
            "  max_history: 0\n"
            "  home_directory: relative/home\n"
            "  narrative_path: assets/narratives/missing.yaml\n"
        )
        loader = TerminalConfigLoader(write_config(tmp_path, body))
        loader.load_config()

        result = loader.validate_config()

        assert not result['valid']
        assert "typing_speed_ms must be a non-negative integer" in result['errors']
        assert "max_history must be a positive integer" in result['errors']
        assert any("log_level" in error for error in result['errors'])
        assert "home_directory should be an absolute path" in result['warnings']
        assert any("Narrative file not found" in warning for warning in result['warnings'])

    def test_reload_picks_up_changes(self, tmp_path):
        path = write_config(tmp_path, "terminal:\n  username: first\n")
        loader = TerminalConfigLoader(path)
        loader.load_config()

        with open(path, "w") as f:
            f.write("terminal:\n  username: second\n")

        assert loader.reload_config()
        assert loader.get("username") == "second"

    def test_resolve_path(self):
        config = TerminalConfig()

        assert config.resolve_path("saves") == PROJECT_ROOT / "saves"
        assert str(config.resolve_path("/tmp/saves")) == "/tmp/saves"
