"""Chat client that logs in with a user name and exchanges lines with the server."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import sys
from collections.abc import Sequence

from tcpchat.basic import DEFAULT_HOST, DEFAULT_PORT, close_stream
from tcpchat.server import ACCEPTED


class ChatClient:
    """A user's connection to a :class:`~tcpchat.server.ChatServer`."""

    def __init__(
        self, username: str, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT
    ) -> None:
        self.username = username
        self.host = host
        self.port = port
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None

    @property
    def connected(self) -> bool:
        """Whether the client holds an accepted connection."""
        return self._writer is not None

    async def connect(self) -> bool:
        """Connect and log in; return whether the server accepted the user name.

        A rejected connection is closed again.
        """
        if self._writer is not None:
            raise RuntimeError("already connected")
        reader, writer = await asyncio.open_connection(self.host, self.port)
        writer.write(self.username.encode("utf-8") + b"\n")
        await writer.drain()
        try:
            reply = await reader.readline()
        except (ConnectionError, ValueError):
            reply = b""
        if reply != ACCEPTED:
            await close_stream(writer)
            return False
        self._reader, self._writer = reader, writer
        return True

    async def send(self, text: str) -> None:
        """Send one chat line."""
        if self._writer is None:
            raise RuntimeError("not connected")
        self._writer.write(text.encode("utf-8") + b"\n")
        await self._writer.drain()

    async def receive(self) -> str:
        """Wait for the next line from the server.

        Raises :class:`ConnectionError` once the server has closed the connection.
        """
        if self._reader is None:
            raise RuntimeError("not connected")
        line = await self._reader.readline()
        if not line:
            raise ConnectionError("server closed the connection")
        return line.decode("utf-8", errors="replace").rstrip("\r\n")

    async def close(self) -> None:
        """Close the connection."""
        writer, self._writer = self._writer, None
        self._reader = None
        await close_stream(writer)

    async def __aenter__(self) -> ChatClient:
        if not await self.connect():
            raise PermissionError(f"user {self.username!r} was rejected")
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


async def _run(client: ChatClient) -> int:
    if not await client.connect():
        print(f"User {client.username} was rejected", file=sys.stderr)
        return 1
    print(f"Connected as {client.username}", flush=True)

    async def show_incoming() -> None:
        try:
            while True:
                print(await client.receive(), flush=True)
        except ConnectionError:
            print("Connection closed by server", flush=True)

    incoming = asyncio.create_task(show_incoming())
    try:
        while not incoming.done():
            line = await asyncio.to_thread(sys.stdin.readline)
            if not line or incoming.done():
                break
            text = line.rstrip("\r\n")
            if text:
                await client.send(text)
    finally:
        incoming.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await incoming
        await client.close()
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Log in to a chat server and chat through standard input and output."""
    parser = argparse.ArgumentParser(prog="tcpchat-client", description=main.__doc__)
    parser.add_argument("username")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    args = parser.parse_args(argv)

    client = ChatClient(args.username, args.host, args.port)
    try:
        return asyncio.run(_run(client))
    except KeyboardInterrupt:
        return 0
    except OSError as exc:
        print(f"Cannot connect to {args.host}:{args.port}: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())