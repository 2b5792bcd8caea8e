"""Asynchronous client for the Tailwind CSS language server.

The bridge spawns the language server once, performs the ``initialize``
handshake and then serves three kinds of queries: raw diagnostics for a
document, canonical-class suggestions derived from those diagnostics, and
the CSS declarations a single class generates (read from hover output).
"""

import asyncio
import contextlib
import os
import re
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from .lsp_framing import FrameDecoder, encode_message
from ..config import BridgeConfig
from ..utils.cache import LRUCache
from ..utils.errors import (
    BridgeError,
    BridgeNotReadyError,
    BridgeTimeoutError,
    BridgeUnavailableError,
)
from ..utils.logging_config import LoggerMixin
from ..validators.canonical_suggester import CanonicalSuggestion, parse_canonical_diagnostics
from ..validators.class_extractor import find_class_attributes


PUBLISH_DIAGNOSTICS = "textDocument/publishDiagnostics"
WORKSPACE_CONFIGURATION = "workspace/configuration"

LANGUAGE_IDS: Dict[str, str] = {
    ".html": "html",
    ".htm": "html",
    ".vue": "vue",
    ".svelte": "svelte",
    ".astro": "astro",
    ".jsx": "javascriptreact",
    ".tsx": "typescriptreact",
    ".js": "javascript",
    ".ts": "typescript",
    ".css": "css",
    ".scss": "scss",
    ".sass": "sass",
    ".less": "less",
}

_DECLARATION_RE = re.compile(r"^\s*(?P<name>-?[a-z][a-z-]*)\s*:\s*(?P<value>[^;{}]+);", re.MULTILINE)

_STOP_TIMEOUT = 5.0


def language_id_for_path(source_path: str) -> str:
    """Language identifier the server expects for a file, ``html`` by default."""
    return LANGUAGE_IDS.get(Path(source_path).suffix.lower(), "html")


def document_uri(source_path: str) -> str:
    return Path(source_path).expanduser().absolute().as_uri()


def parse_hover_declarations(result: Any) -> List[str]:
    """Extract ``property: value`` declarations from a hover result.

    Custom properties (``--tw-*``) are skipped.
    """
    if not isinstance(result, dict):
        return []

    contents = result.get("contents")
    parts = contents if isinstance(contents, list) else [contents]

    texts = []
    for part in parts:
        if isinstance(part, str):
            texts.append(part)
        elif isinstance(part, dict) and isinstance(part.get("value"), str):
            texts.append(part["value"])

    declarations = []
    for match in _DECLARATION_RE.finditer("\n".join(texts)):
        declarations.append(f"{match.group('name')}: {match.group('value').strip()}")
    return declarations


class BridgeState(str, Enum):
    """Lifecycle of the language server session."""

    STOPPED = "stopped"
    STARTING = "starting"
    INITIALIZED = "initialized"
    READY = "ready"


class DiagnosticsBridge(LoggerMixin):
    """JSON-RPC session with one language server process."""

    def __init__(self, config: Optional[BridgeConfig] = None, property_cache: Optional[LRUCache] = None):
        self.config = config or BridgeConfig()
        self.property_cache: LRUCache = property_cache if property_cache is not None else LRUCache(256)

        self._process: Optional[asyncio.subprocess.Process] = None
        self._reader_task: Optional["asyncio.Task[None]"] = None
        self._decoder = FrameDecoder()
        self._next_id = 1
        self._pending: Dict[int, "asyncio.Future[Any]"] = {}
        self._subscribers: Dict[str, "asyncio.Future[List[Dict[str, Any]]]"] = {}
        self._state = BridgeState.STOPPED
        self._start_lock: Optional[asyncio.Lock] = None
        self._lookup_count = 0

    @property
    def state(self) -> BridgeState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is BridgeState.READY

    @property
    def pending_requests(self) -> int:
        return len(self._pending)

    @property
    def active_subscriptions(self) -> int:
        return len(self._subscribers)

    async def __aenter__(self) -> "DiagnosticsBridge":
        await self.ensure_started()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()

    # ---------- lifecycle ----------

    async def ensure_started(self) -> None:
        """Start the language server unless a ready session already exists."""
        if self.is_ready:
            return
        if self._start_lock is None:
            self._start_lock = asyncio.Lock()
        async with self._start_lock:
            if not self.is_ready:
                await self.start()

    async def start(self) -> None:
        """
        Spawn the language server and complete the initialize handshake.

        Raises:
            BridgeUnavailableError: If the process cannot be spawned
            BridgeTimeoutError: If the server does not answer ``initialize``
        """
        if self.is_ready:
            return

        command = list(self.config.command)
        if not command:
            raise BridgeUnavailableError("No language server command configured")

        self._state = BridgeState.STARTING
        self.logger.info(f"Starting language server: {' '.join(command)}")

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except (OSError, ValueError) as e:
            self._state = BridgeState.STOPPED
            raise BridgeUnavailableError(
                f"Failed to start language server: {e}", {"command": command}
            ) from e

        self._process = process
        self._decoder.reset()
        self._reader_task = asyncio.create_task(self._read_loop(process))

        try:
            await self._request("initialize", self._initialize_params(), self.config.request_timeout)
            self._state = BridgeState.INITIALIZED
            await self._send({"jsonrpc": "2.0", "method": "initialized", "params": {}})
        except BaseException:
            await self.stop()
            raise

        self._state = BridgeState.READY
        self.logger.info("Language server ready")

    async def stop(self) -> None:
        """Shut the server down politely, then make sure the process is gone."""
        process = self._process

        if process is not None and self.is_ready:
            try:
                await self._request("shutdown", None, min(1.0, self.config.request_timeout))
                await self._send({"jsonrpc": "2.0", "method": "exit"})
            except BridgeError as e:
                self.logger.debug(f"Graceful shutdown failed: {e}")

        self._process = None
        self._state = BridgeState.STOPPED

        if process is not None:
            if process.returncode is None:
                with contextlib.suppress(ProcessLookupError):
                    process.kill()
            try:
                await asyncio.wait_for(process.wait(), _STOP_TIMEOUT)
            except asyncio.TimeoutError:
                self.logger.warning("Language server did not exit after kill")

        reader_task = self._reader_task
        self._reader_task = None
        if reader_task is not None and reader_task is not asyncio.current_task():
            reader_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await reader_task

        self._release_waiters(BridgeUnavailableError("Language server bridge stopped"))
        self._decoder.reset()

    def _initialize_params(self) -> Dict[str, Any]:
        root = Path(self.config.root_path or os.getcwd()).expanduser().absolute()
        return {
            "processId": os.getpid(),
            "rootUri": root.as_uri(),
            "workspaceFolders": [{"uri": root.as_uri(), "name": root.name or "workspace"}],
            "capabilities": {
                "workspace": {"configuration": True},
                "textDocument": {
                    "publishDiagnostics": {},
                    "hover": {"contentFormat": ["markdown", "plaintext"]},
                },
            },
        }

    # ---------- transport ----------

    async def _read_loop(self, process: asyncio.subprocess.Process) -> None:
        stdout = process.stdout
        try:
            while stdout is not None:
                chunk = await stdout.read(65536)
                if not chunk:
                    break
                for message in self._decoder.feed(chunk):
                    await self._dispatch(message)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.logger.error(f"Language server reader failed: {e}", exc_info=True)
        finally:
            if self._process is process:
                await self._handle_exit(process)

    async def _handle_exit(self, process: asyncio.subprocess.Process) -> None:
        self.logger.warning("Language server exited")
        self._process = None
        self._state = BridgeState.STOPPED
        self._release_waiters(BridgeUnavailableError("Language server exited"))
        self._decoder.reset()

        # The reader may have failed while the server is still running.
        if process.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                process.kill()
            try:
                await asyncio.wait_for(process.wait(), _STOP_TIMEOUT)
            except asyncio.TimeoutError:
                self.logger.warning("Language server did not exit after kill")

    def _release_waiters(self, error: BridgeError) -> None:
        pending, self._pending = self._pending, {}
        for future in pending.values():
            if not future.done():
                future.set_exception(error)

        subscribers, self._subscribers = self._subscribers, {}
        for subscriber in subscribers.values():
            if not subscriber.done():
                subscriber.set_result([])

    async def _dispatch(self, message: Dict[str, Any]) -> None:
        if not isinstance(message, dict):
            self.logger.warning(f"Skipping non-object message from language server: {message!r}")
            return

        message_id = message.get("id")
        method = message.get("method")

        # JSON-RPC ids are numbers or strings; anything else cannot key a pending request.
        if message_id is not None and (
            isinstance(message_id, bool) or not isinstance(message_id, (int, str))
        ):
            self.logger.warning(f"Skipping message with invalid id {message_id!r}")
            return
        if method is not None and not isinstance(method, str):
            self.logger.warning(f"Skipping message with invalid method {method!r}")
            return

        if method is not None and message_id is not None:
            await self._answer_server_request(message_id, method, message.get("params"))
            return

        if message_id is not None:
            future = self._pending.pop(message_id, None)
            if future is None or future.done():
                self.logger.debug(f"Dropping response for unknown request id {message_id}")
                return
            error = message.get("error")
            if error:
                details = error if isinstance(error, dict) else {"message": error}
                future.set_exception(
                    BridgeError(
                        f"Language server error: {details.get('message')}",
                        {"code": details.get("code")},
                    )
                )
            else:
                future.set_result(message.get("result"))
            return

        if method == PUBLISH_DIAGNOSTICS:
            params = message.get("params")
            if not isinstance(params, dict) or not isinstance(params.get("uri"), str):
                self.logger.warning(f"Skipping malformed {PUBLISH_DIAGNOSTICS} params: {params!r}")
                return
            diagnostics = params.get("diagnostics")
            subscriber = self._subscribers.pop(params["uri"], None)
            if subscriber is not None and not subscriber.done():
                subscriber.set_result(list(diagnostics) if isinstance(diagnostics, list) else [])
            return

        self.logger.debug(f"Ignoring notification {method}")

    async def _answer_server_request(self, message_id: Any, method: str, params: Any) -> None:
        result: Any = None
        if method == WORKSPACE_CONFIGURATION:
            items = params.get("items") if isinstance(params, dict) else None
            if not isinstance(items, list):
                self.logger.warning(f"Malformed {WORKSPACE_CONFIGURATION} params: {params!r}")
                items = []
            result = [self.config.settings for _ in items]

        try:
            await self._send({"jsonrpc": "2.0", "id": message_id, "result": result})
        except BridgeError as e:
            self.logger.debug(f"Could not answer {method}: {e}")

    async def _send(self, message: Dict[str, Any]) -> None:
        process = self._process
        if process is None or process.stdin is None:
            raise BridgeUnavailableError("Language server is not running")
        try:
            process.stdin.write(encode_message(message))
            await process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as e:
            raise BridgeUnavailableError(f"Failed to write to language server: {e}") from e

    async def _request(self, method: str, params: Any, timeout: float) -> Any:
        request_id = self._next_id
        self._next_id += 1

        future: "asyncio.Future[Any]" = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        try:
            await self._send({"jsonrpc": "2.0", "id": request_id, "method": method, "params": params})
            return await asyncio.wait_for(future, timeout)
        except asyncio.TimeoutError as e:
            raise BridgeTimeoutError(method, timeout) from e
        finally:
            self._pending.pop(request_id, None)

    # ---------- public calls ----------

    async def request(self, method: str, params: Any = None) -> Any:
        """Send a request on a ready session and wait for its result."""
        if not self.is_ready:
            raise BridgeNotReadyError(f"Cannot send '{method}' before the handshake completed")
        return await self._request(method, params, self.config.request_timeout)

    async def notify(self, method: str, params: Any = None) -> None:
        """Send a notification on a ready session."""
        if not self.is_ready:
            raise BridgeNotReadyError(f"Cannot send '{method}' before the handshake completed")
        await self._send({"jsonrpc": "2.0", "method": method, "params": params})

    async def get_canonical_diagnostics(
        self, text: str, uri: str, language_id: str
    ) -> List[Dict[str, Any]]:
        """
        Open ``text`` as a document and wait for its published diagnostics.

        Args:
            text: Document content
            uri: Document URI, one in-flight request per URI
            language_id: Language identifier for the document

        Returns:
            The published diagnostics, or an empty list on timeout or server exit
        """
        await self.ensure_started()

        if uri in self._subscribers:
            raise BridgeError(f"Diagnostics for {uri} are already being awaited")

        subscriber: "asyncio.Future[List[Dict[str, Any]]]" = asyncio.get_running_loop().create_future()
        self._subscribers[uri] = subscriber
        try:
            await self.notify(
                "textDocument/didOpen",
                {"textDocument": {"uri": uri, "languageId": language_id, "version": 1, "text": text}},
            )
            try:
                return await asyncio.wait_for(subscriber, self.config.diagnostics_timeout)
            except asyncio.TimeoutError:
                self.logger.debug(f"No diagnostics for {uri} within {self.config.diagnostics_timeout}s")
                return []
        finally:
            if self._subscribers.get(uri) is subscriber:
                del self._subscribers[uri]
            await self._close_document(uri)

    async def canonical_suggestions(self, text: str, source_path: str) -> List[CanonicalSuggestion]:
        """Canonical-class suggestions the language server reports for ``text``."""
        language_id = language_id_for_path(source_path)
        if not find_class_attributes(text):
            # A bare class list is only linted inside markup.
            text = f'<div class="{text.strip()}"></div>'
            language_id = "html"

        diagnostics = await self.get_canonical_diagnostics(
            text, document_uri(source_path or "fragment.html"), language_id
        )
        return parse_canonical_diagnostics(diagnostics, self.config.canonical_diagnostic_code)

    async def resolve_css_properties(self, class_name: str) -> List[str]:
        """
        CSS declarations generated by one class, read from hover output.

        Results are cached per class name.
        """
        cached = self.property_cache.get(class_name)
        if cached is not None:
            return list(cached)

        await self.ensure_started()

        self._lookup_count += 1
        root = Path(self.config.root_path or os.getcwd()).expanduser().absolute()
        uri = (root / f".tailwind-mcp-lookup-{self._lookup_count}.html").as_uri()
        text = f'<div class="{class_name}"></div>'

        await self.notify(
            "textDocument/didOpen",
            {"textDocument": {"uri": uri, "languageId": "html", "version": 1, "text": text}},
        )
        try:
            result = await self.request(
                "textDocument/hover",
                {
                    "textDocument": {"uri": uri},
                    "position": {"line": 0, "character": text.index(class_name) + 1},
                },
            )
        finally:
            await self._close_document(uri)

        declarations = parse_hover_declarations(result)
        self.property_cache.put(class_name, tuple(declarations))
        return declarations

    async def _close_document(self, uri: str) -> None:
        if not self.is_ready:
            return
        try:
            await self.notify("textDocument/didClose", {"textDocument": {"uri": uri}})
        except BridgeError as e:
            self.logger.debug(f"Failed to close {uri}: {e}")
