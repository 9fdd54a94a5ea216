"""Registry of known chat users and whether each one is currently in the room."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator

ChangeCallback = Callable[[str, bool], object]


class UserList:
    """Known user names, each mapped to its "entered" state.

    Users start out absent. Subscribers are told about every change made
    through :meth:`set_value`.
    """

    def __init__(self) -> None:
        self._users: dict[str, bool] = {}
        self._callbacks: list[ChangeCallback] = []

    def add_user(self, name: str) -> None:
        """Register ``name`` as a known user who has not entered."""
        self._users[name] = False

    def verify(self, name: str) -> bool:
        """Return whether ``name`` is a known user."""
        return name in self._users

    def set_value(self, name: str, entering: bool) -> None:
        """Set the entered state of ``name`` and notify subscribers if it changed."""
        if self._users.get(name) != entering:
            self._users[name] = entering
            for callback in list(self._callbacks):
                callback(name, entering)

    def names(self) -> list[str]:
        """Return all known user names in sorted order."""
        return sorted(self._users)

    def value(self, name: str) -> bool | None:
        """Return the entered state of ``name``, or ``None`` if it is unknown."""
        return self._users.get(name)

    def user_entered(self, name: str) -> None:
        """Mark ``name`` as entered without notifying subscribers."""
        self._users[name] = True

    def subscribe(self, callback: ChangeCallback) -> Callable[[], None]:
        """Call ``callback(name, entering)`` on every change; return an unsubscriber."""
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def __contains__(self, name: object) -> bool:
        return name in self._users

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def __len__(self) -> int:
        return len(self._users)


def load_users(lines: Iterable[str]) -> UserList:
    """Build a :class:`UserList` from lines of user names, ignoring blank lines."""
    users = UserList()
    for line in lines:
        name = line.strip()
        if name:
            users.add_user(name)
    return users