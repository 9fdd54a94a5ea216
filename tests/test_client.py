import asyncio
import contextlib
import socket

import pytest

from tcpchat.client import ChatClient, main
from tcpchat.server import ChatServer
from tcpchat.userlist import UserList

HOST = "127.0.0.1"


def bounded(awaitable):
    return asyncio.wait_for(awaitable, 5)


class FakeServer:
    """Records lines from one client and answers the login with a fixed reply."""

    def __init__(self, reply):
        self.reply = reply
        self.received = asyncio.Queue()
        self.writers = []
        self.server = None
        self.port = 0

    async def _handle(self, reader, writer):
        self.writers.append(writer)
        await self.received.put(await reader.readline())
        writer.write(self.reply)
        await writer.drain()
        while line := await reader.readline():
            await self.received.put(line)
        writer.close()

    async def next_line(self):
        return await bounded(self.received.get())

    async def __aenter__(self):
        self.server = await asyncio.start_server(self._handle, HOST, 0)
        self.port = self.server.sockets[0].getsockname()[1]
        return self

    async def __aexit__(self, *exc_info):
        for writer in self.writers:
            writer.close()
        self.server.close()
        await self.server.wait_closed()


@contextlib.asynccontextmanager
async def logged_in():
    async with FakeServer(b"Accepted\n") as fake:
        client = ChatClient("alice", HOST, fake.port)
        assert await client.connect() is True
        assert await fake.next_line() == b"alice\n"
        try:
            yield fake, client
        finally:
            await client.close()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("name", "reply", "accepted"),
    [("alice", b"Accepted\n", True), ("mallory", b"Rejected\n", False)],
)
async def test_connect_sends_name_and_reports_outcome(name, reply, accepted):
    async with FakeServer(reply) as fake:
        client = ChatClient(name, HOST, fake.port)
        assert await client.connect() is accepted
        assert client.connected is accepted
        assert await fake.next_line() == name.encode("utf-8") + b"\n"
        if not accepted:
            with pytest.raises(RuntimeError):
                await client.send("hi")
        await client.close()
        assert client.connected is False


@pytest.mark.asyncio
async def test_send_writes_one_line():
    async with logged_in() as (fake, client):
        await client.send("hello there")
        line = await fake.next_line()
        assert line.decode("utf-8").rstrip("\n") == "hello there"


@pytest.mark.asyncio
async def test_receive_returns_line_without_newline_then_raises_on_close():
    async with logged_in() as (fake, client):
        fake.writers[0].write("[bob] 안녕\n".encode("utf-8"))
        assert await bounded(client.receive()) == "[bob] 안녕"
        fake.writers[0].close()
        with pytest.raises(ConnectionError):
            await bounded(client.receive())


@pytest.mark.asyncio
@pytest.mark.parametrize("action", ["send", "receive"])
async def test_methods_require_connection(action):
    client = ChatClient("alice", HOST, 1)
    calls = {"send": lambda: client.send("hi"), "receive": client.receive}
    with pytest.raises(RuntimeError):
        await calls[action]()
    assert client.connected is False


@pytest.mark.asyncio
async def test_context_manager_raises_when_rejected():
    async with FakeServer(b"Rejected\n") as fake:
        client = ChatClient("mallory", HOST, fake.port)
        with pytest.raises(PermissionError):
            async with client:
                pass
        assert client.connected is False


@pytest.mark.asyncio
async def test_chat_through_real_server():
    users = UserList()
    for name in ("alice", "bob"):
        users.add_user(name)
    async with ChatServer(users, HOST, 0) as server:
        async with ChatClient("alice", HOST, server.port) as alice, ChatClient(
            "bob", HOST, server.port
        ) as bob:
            assert users.value("alice") is users.value("bob") is True
            await alice.send("hi bob")
            assert await bounded(bob.receive()) == "[alice] hi bob"
            await server.send_message("welcome")
            received = [await bounded(peer.receive()) for peer in (alice, bob)]
            assert received == ["[Server]welcome", "[Server]welcome"]


@pytest.mark.asyncio
async def test_unknown_user_rejected_by_real_server():
    async with ChatServer(UserList(), HOST, 0) as server:
        client = ChatClient("ghost", HOST, server.port)
        assert await client.connect() is False
        assert server.clients == []


def test_main_fails_when_server_unreachable(capsys):
    with socket.socket() as sock:
        sock.bind((HOST, 0))
        port = sock.getsockname()[1]
    assert main(["alice", "--host", HOST, "--port", str(port)]) == 1
    assert "Cannot connect" in capsys.readouterr().err