"""Visit history and the Back/Cancel rule."""

from typing import List, NamedTuple, Optional


class BackTarget(NamedTuple):
    url: str
    from_history: bool


class History:
    """URLs visited by one client, oldest first."""

    def __init__(self) -> None:
        self._entries: List[str] = []

    def push(self, url: str) -> None:
        self._entries.append(url)

    def replace(self, url: str) -> None:
        if self._entries:
            self._entries[-1] = url
        else:
            self._entries.append(url)

    def pop(self) -> Optional[str]:
        """Drop the current entry and return the one now current."""
        if self._entries:
            self._entries.pop()
        return self.current

    @property
    def current(self) -> Optional[str]:
        return self._entries[-1] if self._entries else None

    @property
    def previous(self) -> Optional[str]:
        return self._entries[-2] if len(self._entries) > 1 else None

    def __len__(self) -> int:
        return len(self._entries)


def back_target(history: History, fallback_url: str) -> BackTarget:
    """
    Where Back/Cancel should go.

    The previous history entry when there is one and it is a different page,
    otherwise the fallback (the post list).
    """
    previous = history.previous
    if previous is not None and previous != history.current:
        return BackTarget(previous, True)
    return BackTarget(fallback_url, False)
