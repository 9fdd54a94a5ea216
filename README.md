# tcpchat

tcpchat is a small chat system that runs over plain TCP and is built on `asyncio`. It has no dependencies outside the standard library.

- **Chat server** (`tcpchat.server.ChatServer`). The server only admits users named in a login list. A client sends its user name on the first line. A registered user gets `Accepted` and is marked as entered. Any other name gets `Rejected` and the connection is closed. Each later line from a user is passed on to every other connected user as `[name] text`. Messages sent by the server itself go to every user as `[Server]text`.
- **Chat client** (`tcpchat.client.ChatClient`). The client logs in with a user name, checks the server's reply and then sends and receives lines.
- **Basic pair** (`tcpchat.basic`). `BasicServer` and `BasicClient` form a minimal one-to-one link. The server greets each client as it connects. Each side hands the text it receives to an `on_data` callback.

Every server and client listens on or connects to `127.0.0.1:20000` unless told otherwise.

## Installation

```
pip install .
```

## Running the chat server

Write the allowed user names into a login file, one per line. Surrounding whitespace is stripped and blank lines are ignored.

```
alice
bob
```

Start the server:

```
tcpchat-server --users login.txt --host 127.0.0.1 --port 20000
```

All three options are optional. The defaults are `login.txt`, `127.0.0.1` and `20000`. If the login file cannot be opened, the server prints an error and exits with status 1.

While it runs, the server does the following:

- It prints every chat message.
- It prints `* name entered` and `* name left` as users come and go.
- It sends each non-empty line you type on standard input to every connected user.

## Running the chat client

```
tcpchat-client alice --host 127.0.0.1 --port 20000
```

The user name is required. If the server rejects it, the client says so and exits with status 1.

Once you are connected:

- Lines you type are sent to the room.
- Lines from the server are printed.
- The client stops when the server closes the connection or standard input ends.

## Using it as a library

```python
import asyncio

from tcpchat.client import ChatClient
from tcpchat.server import ChatServer
from tcpchat.userlist import load_users


async def demo():
    users = load_users(["alice", "bob", ""])
    users.subscribe(lambda name, entering: print(name, "in" if entering else "out"))

    async with ChatServer(users, "127.0.0.1", 0) as server:
        server.subscribe(print)  # every chat message the server sees
        async with ChatClient("alice", "127.0.0.1", server.port) as alice, \
                   ChatClient("bob", "127.0.0.1", server.port) as bob:
            await alice.send("hello")
            print(await bob.receive())  # "[alice] hello"


asyncio.run(demo())
```

### `UserList` (`tcpchat.userlist`)

`UserList` maps each known name to whether that user has entered. It provides:

- `add_user`
- `verify` (also available as `name in users`)
- `set_value`, which notifies subscribers only when the value changes
- `user_entered`, which does not notify
- `value`
- `names`, which returns the names sorted
- `subscribe`, which returns a function that unsubscribes

`load_users(lines)` builds a `UserList` from lines of names.

### `ChatServer` (`tcpchat.server`)

- `start()` begins listening.
- `serve_forever()` runs until cancelled.
- `send_message(text)` reports `"[서버] " + text` to subscribers and sends `[Server]text` to every user.
- `subscribe(callback)` registers a callback for each message.
- `close()` disconnects everyone and stops listening.
- `port` gives the bound port.
- `clients` lists the names currently connected.

### `ChatClient` (`tcpchat.client`)

- `connect()` returns whether the user was accepted.
- `send(text)` sends a line.
- `receive()` returns the next line and raises `ConnectionError` once the server has closed the connection.
- `close()` closes the connection.

Used with `async with`, a rejected name raises `PermissionError`.

### Basic pair (`tcpchat.basic`)

- `BasicServer(host, port, on_data)` has `start()`, `send(data)` and `close()`.
- `BasicClient(host, port, on_data)` has `connect()`, `send(data)` and `close()`. `send` appends a newline.
- Both can be used with `async with`.

## What it does not do

- There is no graphical interface. The commands work only through standard input and output.
- The basic pair has no command of its own. It can be used only from Python.
- The server keeps the user list and the entered states in memory only. Nothing is saved.

## Tests

```
pip install .[test]
pytest
```