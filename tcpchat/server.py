"""Multi-user chat server that admits only registered users and relays their lines."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import sys
from collections.abc import Callable, Sequence

from tcpchat.basic import DEFAULT_HOST, DEFAULT_PORT
from tcpchat.userlist import UserList, load_users

ACCEPTED = b"Accepted\n"
REJECTED = b"Rejected\n"

MessageCallback = Callable[[str], object]


class ChatServer:
    """Chat room server.

    A client first sends its user name on one line. Registered users are
    answered with ``Accepted`` and marked as entered; everyone else gets
    ``Rejected`` and is disconnected. Every later line from a user is
    reported to subscribers and relayed to all other users.
    """

    def __init__(
        self,
        users: UserList | None = None,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
    ) -> None:
        self.users = users if users is not None else UserList()
        self.host = host
        self._port = port
        self._server: asyncio.base_events.Server | None = None
        self._clients: dict[asyncio.StreamWriter, str] = {}
        self._callbacks: list[MessageCallback] = []

    @property
    def port(self) -> int:
        """The port being listened on, or the requested one before start."""
        if self._server is None or not self._server.sockets:
            return self._port
        return self._server.sockets[0].getsockname()[1]

    @property
    def clients(self) -> list[str]:
        """Names of the users currently connected, in order of arrival."""
        return list(self._clients.values())

    async def start(self) -> ChatServer:
        """Start listening for clients."""
        if self._server is not None:
            raise RuntimeError("server already started")
        self._server = await asyncio.start_server(self._handle, self.host, self._port)
        return self

    async def serve_forever(self) -> None:
        """Start if needed and serve until cancelled or closed."""
        if self._server is None:
            await self.start()
        assert self._server is not None
        with contextlib.suppress(asyncio.CancelledError):
            await self._server.serve_forever()

    async def send_message(self, text: str) -> None:
        """Report a message from the server itself and send it to every user."""
        self._emit("[서버] " + text)
        await self._broadcast(("[Server]" + text + "\n").encode("utf-8"), exclude=None)

    def subscribe(self, callback: MessageCallback) -> Callable[[], None]:
        """Call ``callback(text)`` for every chat message; return an unsubscriber."""
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    async def close(self) -> None:
        """Disconnect every client and stop listening."""
        for writer in list(self._clients):
            writer.close()
        server, self._server = self._server, None
        if server is not None:
            server.close()
            await server.wait_closed()

    async def __aenter__(self) -> ChatServer:
        return await self.start()

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def _emit(self, text: str) -> None:
        for callback in list(self._callbacks):
            callback(text)

    async def _broadcast(
        self, payload: bytes, exclude: asyncio.StreamWriter | None
    ) -> None:
        targets = [writer for writer in self._clients if writer is not exclude]
        for writer in targets:
            writer.write(payload)
        for writer in targets:
            with contextlib.suppress(ConnectionError):
                await writer.drain()

    @staticmethod
    async def _read_line(reader: asyncio.StreamReader) -> bytes:
        try:
            return await reader.readline()
        except (ConnectionError, ValueError):
            return b""

    async def _handle(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        line = await self._read_line(reader)
        if not line:
            writer.close()
            return
        name = line.decode("utf-8", errors="replace").strip()
        if not self.users.verify(name):
            writer.write(REJECTED)
            with contextlib.suppress(ConnectionError):
                await writer.drain()
            writer.close()
            return

        self._clients[writer] = name
        writer.write(ACCEPTED)
        self.users.set_value(name, True)
        try:
            while line := await self._read_line(reader):
                text = line.decode("utf-8", errors="replace").rstrip("\r\n")
                message = f"[{name}] {text}\n"
                self._emit(message)
                await self._broadcast(message.encode("utf-8"), exclude=writer)
        finally:
            self._clients.pop(writer, None)
            self.users.set_value(name, False)
            writer.close()


def _print_message(text: str) -> None:
    print(text, end="" if text.endswith("\n") else "\n", flush=True)


def _print_status(name: str, entering: bool) -> None:
    print(f"* {name} {'entered' if entering else 'left'}", flush=True)


async def _run(server: ChatServer) -> None:
    await server.start()
    print(f"[Server is listening on port {server.port}]", flush=True)
    serving = asyncio.create_task(server.serve_forever())
    try:
        while not serving.done():
            line = await asyncio.to_thread(sys.stdin.readline)
            if not line:
                break
            text = line.rstrip("\r\n")
            if text:
                await server.send_message(text)
        await serving
    finally:
        serving.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await serving
        await server.close()


def main(argv: Sequence[str] | None = None) -> int:
    """Run the chat server; lines typed on standard input go to every user."""
    parser = argparse.ArgumentParser(prog="tcpchat-server", description=main.__doc__)
    parser.add_argument("--users", default="login.txt", help="file of user names")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    args = parser.parse_args(argv)

    try:
        with open(args.users, encoding="utf-8") as handle:
            users = load_users(handle)
    except OSError as exc:
        print(f"Error opening file: {exc}", file=sys.stderr)
        return 1

    users.subscribe(_print_status)
    server = ChatServer(users, args.host, args.port)
    server.subscribe(_print_message)
    try:
        asyncio.run(_run(server))
    except KeyboardInterrupt:
        pass
    except OSError as exc:
        print(f"Server error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())