"""Interactive shutdown flow: acquire a key, confirm, send, retry on 403."""

import logging
from enum import Enum
from typing import Any, Callable, Optional

import requests
from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt

from .client import DEFAULT_TIMEOUT, ConnectionTarget, NodeClient
from .credentials import KeyStore

logger = logging.getLogger(__name__)

AFFIRMATIVE = ("y", "yes")

KEY_PROMPT = "Please enter your Ergo node API key"
NEW_KEY_PROMPT = "Please enter a new API key"
SAVE_PROMPT = "Would you like to save this API key for future use? ([y/Y]es/[n/N]o)"
CONFIRM_PROMPT = "Are you sure you want to shut down the Ergo node? ([y/Y]es/[n/N]o)"

Ask = Callable[[str], str]
ClientFactory = Callable[..., NodeClient]


class MissingCredentialError(ValueError):
    """Raised when the user leaves a mandatory API key prompt empty."""


class ShutdownState(Enum):
    ACQUIRE_CREDENTIAL = "acquire_credential"
    CONFIRM = "confirm"
    REQUEST = "request"
    AUTH_RETRY = "auth_retry"
    SUCCESS = "success"
    CANCELLED = "cancelled"
    FAILED = "failed"


class ShutdownOutcome(Enum):
    SUCCESS = "success"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def exit_code(self) -> int:
        return 0 if self is ShutdownOutcome.SUCCESS else 1


_TERMINAL = {
    ShutdownState.SUCCESS: ShutdownOutcome.SUCCESS,
    ShutdownState.CANCELLED: ShutdownOutcome.CANCELLED,
    ShutdownState.FAILED: ShutdownOutcome.FAILED,
}


def prompt_user(prompt: str) -> str:
    """Default ``ask``: read one line from the terminal."""
    return Prompt.ask(f"[bold yellow]{escape(prompt)}[/bold yellow]", default="", show_default=False)


def affirmative(answer: str) -> bool:
    return answer.strip().lower() in AFFIRMATIVE


class ShutdownOrchestrator:
    """Drive one shutdown attempt against a node.

    Args:
        target: Where the node's API listens.
        store: Key store consulted when no key is passed in.
        ask: Blocking ``prompt -> answer`` callable used for every question.
        api_key: Key supplied for this invocation only. Skips the store.
        client_factory: Builds the HTTP client for a given key.
        console: Where messages go.
        timeout: Request timeout in seconds.
        verify_ssl: Verify TLS certificates for https targets.
    """

    def __init__(
        self,
        target: ConnectionTarget,
        store: KeyStore,
        ask: Ask = prompt_user,
        api_key: Optional[str] = None,
        client_factory: ClientFactory = NodeClient,
        console: Optional[Console] = None,
        timeout: float = DEFAULT_TIMEOUT,
        verify_ssl: bool = True,
    ) -> None:
        self.target = target
        self.store = store
        self.ask = ask
        self.api_key = api_key or None
        self.client_factory = client_factory
        self.console = console or Console(highlight=False)
        self.timeout = timeout
        self.verify_ssl = verify_ssl

    def _warn(self, msg: str) -> None:
        self.console.print(f"[bold red]Error:[/bold red] {escape(msg)}")

    def _offer_save(self, key: str) -> bool:
        if affirmative(self.ask(SAVE_PROMPT)):
            return self.store.save(key)
        return False

    # ──────────────────────────────────────────────
    # Steps
    # ──────────────────────────────────────────────

    def acquire_credential(self) -> str:
        """Return the key for this run: flag, then store, then prompt."""
        if self.api_key:
            logger.debug("Using API key supplied on the command line")
            return self.api_key

        saved = self.store.retrieve()
        if saved:
            logger.debug("Using API key from %s", self.store.path)
            return saved

        self.console.print("[bold yellow]No API key found. Use --set-key to save an API key.[/bold yellow]")
        key = self.ask(KEY_PROMPT).strip()
        if not key:
            raise MissingCredentialError("API key must be provided")
        self._offer_save(key)
        return key

    def confirm(self) -> bool:
        return affirmative(self.ask(CONFIRM_PROMPT))

    def request(self, api_key: str) -> Any:
        client = self.client_factory(
            self.target, api_key, timeout=self.timeout, verify_ssl=self.verify_ssl,
        )
        logger.debug("Sending shutdown request via %r", client)
        return client.shutdown()

    def replace_credential(self) -> Optional[str]:
        """Prompt for a fresh key after a 403. Returns None if left empty."""
        key = self.ask(NEW_KEY_PROMPT).strip()
        if not key:
            return None
        if self._offer_save(key):
            self.console.print("[bright_green]New API key has been saved.[/bright_green]")
        return key

    def _report_success(self, payload: Any) -> None:
        self.console.print("[bold bright_green]Success:[/bold bright_green]")
        if isinstance(payload, (dict, list)):
            self.console.print_json(data=payload)
        elif payload:
            self.console.print(escape(str(payload)))
        self.console.print("Node is shutting down...")

    # ──────────────────────────────────────────────
    # State machine
    # ──────────────────────────────────────────────

    def run(self) -> ShutdownOutcome:
        state = ShutdownState.ACQUIRE_CREDENTIAL
        key: Optional[str] = None

        while state not in _TERMINAL:
            logger.debug("Shutdown state: %s", state.value)

            if state is ShutdownState.ACQUIRE_CREDENTIAL:
                try:
                    key = self.acquire_credential()
                except MissingCredentialError as e:
                    self._warn(str(e))
                    state = ShutdownState.FAILED
                else:
                    state = ShutdownState.CONFIRM

            elif state is ShutdownState.CONFIRM:
                if self.confirm():
                    state = ShutdownState.REQUEST
                else:
                    self.console.print("[yellow]Shutdown cancelled.[/yellow]")
                    state = ShutdownState.CANCELLED

            elif state is ShutdownState.REQUEST:
                state = self._send(key)

            elif state is ShutdownState.AUTH_RETRY:
                key = self.replace_credential()
                if key is None:
                    self.console.print("No API key provided. Exiting...")
                    state = ShutdownState.FAILED
                else:
                    state = ShutdownState.CONFIRM

        return _TERMINAL[state]

    def _send(self, key: str) -> ShutdownState:
        try:
            payload = self.request(key)
        except requests.HTTPError as e:
            if e.response is not None and e.response.status_code == 403:
                self._warn("Authentication failed. Current API key is invalid.")
                return ShutdownState.AUTH_RETRY
            self._warn(str(e))
            return ShutdownState.FAILED
        except requests.ConnectionError as e:
            logger.debug("Connection to %s failed: %s", self.target.base_url, e)
            self._warn("Could not connect to the Ergo node. Please check if it's running.")
            return ShutdownState.FAILED
        except requests.RequestException as e:
            self._warn(str(e))
            return ShutdownState.FAILED

        self._report_success(payload)
        return ShutdownState.SUCCESS
