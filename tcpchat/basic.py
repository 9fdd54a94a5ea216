"""Minimal one-to-one TCP chat: a server and a client that relay text."""

from __future__ import annotations

import asyncio
import codecs
import contextlib
from collections.abc import Callable

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 20000
_CHUNK_SIZE = 65536

DataCallback = Callable[[str], object]


async def close_stream(writer: asyncio.StreamWriter | None) -> None:
    """Close ``writer`` if there is one, ignoring a peer that already went away."""
    if writer is None:
        return
    writer.close()
    with contextlib.suppress(ConnectionError):
        await writer.wait_closed()


async def _pump(reader: asyncio.StreamReader, on_data: DataCallback | None) -> None:
    """Feed decoded text from ``reader`` to ``on_data`` until the peer closes."""
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    while True:
        try:
            chunk = await reader.read(_CHUNK_SIZE)
        except ConnectionError:
            chunk = b""
        final = not chunk
        text = decoder.decode(chunk, final=final)
        if text and on_data is not None:
            on_data(text)
        if final:
            return


class _Endpoint:
    """State and behaviour shared by both ends of a basic chat link."""

    _not_connected = "not connected"

    def __init__(self, host: str, on_data: DataCallback | None) -> None:
        self.host = host
        self.on_data = on_data
        self._writer: asyncio.StreamWriter | None = None

    @property
    def connected(self) -> bool:
        """Whether a peer is currently connected."""
        return self._writer is not None

    async def _write(self, payload: bytes) -> None:
        writer = self._writer
        if writer is None:
            raise RuntimeError(self._not_connected)
        writer.write(payload)
        await writer.drain()

    async def _drop_peer(self) -> None:
        writer, self._writer = self._writer, None
        await close_stream(writer)

    async def _open(self) -> _Endpoint:
        raise RuntimeError(f"{type(self).__name__} cannot be opened")

    async def close(self) -> None:
        """Drop the connected peer."""
        await self._drop_peer()

    async def __aenter__(self):
        return await self._open()

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


class BasicServer(_Endpoint):
    """Accepts one client at a time, greets it and reports what it sends."""

    _not_connected = "no client connected"

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        on_data: DataCallback | None = None,
    ) -> None:
        super().__init__(host, on_data)
        self._port = port
        self._server: asyncio.base_events.Server | None = None

    @property
    def port(self) -> int:
        """The port being listened on, or the requested one before start."""
        if self._server is None or not self._server.sockets:
            return self._port
        return self._server.sockets[0].getsockname()[1]

    async def start(self) -> BasicServer:
        """Start listening for clients."""
        if self._server is not None:
            raise RuntimeError("server already started")
        self._server = await asyncio.start_server(
            self._on_connection, self.host, self._port
        )
        return self

    _open = start

    async def _on_connection(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        self._writer = writer
        try:
            await self.send(f"<서버 {self.host}> 에 연결되었습니다.")
            await _pump(reader, self.on_data)
        finally:
            if self._writer is writer:
                self._writer = None
            writer.close()

    async def send(self, data: str) -> None:
        """Send ``data`` to the connected client as UTF-8."""
        await self._write(data.encode("utf-8"))

    async def close(self) -> None:
        """Stop listening and drop the connected client."""
        await self._drop_peer()
        server, self._server = self._server, None
        if server is not None:
            server.close()
            await server.wait_closed()


class BasicClient(_Endpoint):
    """Connects to a :class:`BasicServer` and sends newline-terminated lines."""

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        on_data: DataCallback | None = None,
    ) -> None:
        super().__init__(host, on_data)
        self.port = port
        self._reader_task: asyncio.Task[None] | None = None

    async def connect(self) -> BasicClient:
        """Open the connection and start delivering received text."""
        if self._writer is not None:
            raise RuntimeError("already connected")
        reader, self._writer = await asyncio.open_connection(self.host, self.port)
        self._reader_task = asyncio.create_task(_pump(reader, self.on_data))
        return self

    _open = connect

    async def send(self, data: str) -> None:
        """Send ``data`` followed by a newline."""
        await self._write(data.encode("utf-8") + b"\n")

    async def close(self) -> None:
        """Close the connection."""
        await self._drop_peer()
        task, self._reader_task = self._reader_task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task