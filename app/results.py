"""
Outcome types returned by the message logic.

Each logic operation returns exactly one of:
- ValidationError: field-scoped input problems
- Conflict: title already taken
- NotFound: no message for the organization/id pair
- Created: new message persisted
- Updated: message changes persisted
- Deleted: message removed

The controller maps every variant to an HTTP response; anything else is
treated as an unexpected result.
"""

from collections.abc import MutableMapping
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Tuple, Union


class FieldErrors(MutableMapping):
    """
    Mapping of field name -> list of error messages.

    Keys are matched case-insensitively ("title" finds "Title"), while the
    casing used when a key is first added is kept for iteration and output.
    """

    def __init__(self, initial: Dict[str, List[str]] | None = None):
        self._data: Dict[str, Tuple[str, List[str]]] = {}
        if initial:
            for key, messages in initial.items():
                for message in messages:
                    self.add(key, message)

    def add(self, key: str, message: str) -> None:
        """Append an error message under the given field."""
        folded = key.casefold()
        if folded not in self._data:
            self._data[folded] = (key, [])
        self._data[folded][1].append(message)

    def __getitem__(self, key: str) -> List[str]:
        return self._data[key.casefold()][1]

    def __setitem__(self, key: str, value: List[str]) -> None:
        folded = key.casefold()
        original = self._data[folded][0] if folded in self._data else key
        self._data[folded] = (original, list(value))

    def __delitem__(self, key: str) -> None:
        del self._data[key.casefold()]

    def __iter__(self) -> Iterator[str]:
        return (original for original, _ in self._data.values())

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.casefold() in self._data

    def to_dict(self) -> Dict[str, List[str]]:
        return {original: list(messages) for original, messages in self._data.values()}

    def __repr__(self) -> str:
        return f"FieldErrors({self.to_dict()!r})"


@dataclass
class ValidationError:
    errors: FieldErrors = field(default_factory=FieldErrors)


@dataclass
class Conflict:
    message: str


@dataclass
class NotFound:
    message: str


@dataclass
class Created:
    value: Any


@dataclass
class Updated:
    pass


@dataclass
class Deleted:
    pass


Result = Union[ValidationError, Conflict, NotFound, Created, Updated, Deleted]
