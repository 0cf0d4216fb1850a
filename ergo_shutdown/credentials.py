"""Local API key storage for ergo-shutdown.

Keeps the node API key in ``./.env`` as a single ``ERGO_API_KEY=<value>``
line. The file is overwritten on every write, never appended to.
"""

import logging
import os
import re
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape

logger = logging.getLogger(__name__)

ENV_FILENAME = ".env"
KEY_NAME = "ERGO_API_KEY"

_KEY_LINE = re.compile(rf"^{KEY_NAME}=(.+)$", re.MULTILINE)


def mask(secret: str) -> str:
    """Hide everything but the last four characters of ``secret``."""
    visible = min(4, len(secret))
    return "*" * max(0, len(secret) - 4) + secret[len(secret) - visible:]


class KeyStore:
    """Persist a single API key in a plain-text ``.env`` file."""

    def __init__(self, path: Optional[Path] = None, console: Optional[Console] = None) -> None:
        self.path = Path(path) if path is not None else Path.cwd() / ENV_FILENAME
        self.console = console or Console(highlight=False)

    def _write(self, content: str) -> None:
        self.path.write_text(content)
        try:
            os.chmod(self.path, 0o600)
        except OSError as e:
            logger.debug("Could not restrict permissions on %s: %s", self.path, e)

    def save(self, secret: str) -> bool:
        """Overwrite the key file with ``secret``. Returns False on I/O errors."""
        try:
            self._write(f"{KEY_NAME}={secret}\n")
        except OSError as e:
            self.console.print(f"[bold red]Error saving API key:[/bold red] {escape(str(e))}")
            return False
        logger.debug("Saved API key to %s", self.path)
        self.console.print("[bright_green]API key has been saved successfully.[/bright_green]")
        return True

    def retrieve(self) -> Optional[str]:
        """Return the stored key, or None if there isn't a usable one."""
        try:
            data = self.path.read_text()
        except (OSError, UnicodeDecodeError):
            return None
        match = _KEY_LINE.search(data)
        if not match:
            return None
        return match.group(1).strip() or None

    def masked(self) -> Optional[str]:
        key = self.retrieve()
        return mask(key) if key else None

    def display_masked(self) -> str:
        masked = self.masked()
        if masked is None:
            return "No API key found."
        return f"Current API key: {masked}"

    def erase(self) -> bool:
        """Blank the key file, leaving it in place. Returns False on I/O errors."""
        try:
            self._write("")
        except OSError as e:
            self.console.print(f"[bold red]Error removing API key:[/bold red] {escape(str(e))}")
            return False
        logger.debug("Cleared API key in %s", self.path)
        self.console.print("[bright_green]API key has been removed.[/bright_green]")
        return True

    def __repr__(self) -> str:
        return f"KeyStore(path={str(self.path)!r})"
