#!/usr/bin/env python3

import argparse
import asyncio

from vaultterm.core.config_loader import TerminalConfigLoader
from vaultterm.core.renderer import RendererConfig
from vaultterm.renderers.terminal_renderer import TerminalRenderer
from vaultterm.shell.app import TerminalApp


def main():
    parser = argparse.ArgumentParser(description="Vault-Tec terminal")
    parser.add_argument("--config", help="Path to a terminal YAML config")
    args = parser.parse_args()

    loader = TerminalConfigLoader(args.config)
    loader.load_config()
    settings = loader.get_settings()

    config = RendererConfig(
        width=80,
        title="Vault-Tec Terminal",
        typing_speed_ms=settings.typing_speed_ms,
        use_color=settings.use_color,
    )

    renderer = TerminalRenderer(config)

    app = TerminalApp(settings, renderer)

    try:
        asyncio.run(app.run())
    except KeyboardInterrupt:
        print("\n\nSession interrupted by user")
    except Exception as e:
        print(f"\n\nError: {e}")
        raise
    finally:
        print("\n\nConnection closed.")


if __name__ == "__main__":
    main()
