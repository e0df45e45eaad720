"""Ordered option accumulator for batched transforms."""

from __future__ import annotations

from typing import Callable, Iterator, List

__all__ = ["FlagBuilder"]


class FlagBuilder:
    """
    Collects ``-flag value`` and ``+flag`` tokens in insertion order.

    Unknown attribute calls become flags, so ``builder.resize("50%")``
    appends ``-resize 50%`` and ``builder.auto_orient()`` appends
    ``-auto-orient``. Tokens are never deduplicated or reordered.
    """

    def __init__(self) -> None:
        self._args: List[str] = []

    @property
    def args(self) -> List[str]:
        return list(self._args)

    def flag(self, name: str, *args: object) -> "FlagBuilder":
        self._args.append(f"-{name}")
        self._args.extend(str(arg) for arg in args)
        return self

    def plus(self, value: object) -> "FlagBuilder":
        self._args.append(f"+{value}")
        return self

    def __add__(self, value: object) -> "FlagBuilder":
        return self.plus(value)

    def __getattr__(self, name: str) -> Callable[..., "FlagBuilder"]:
        if name.startswith("_"):
            raise AttributeError(name)
        flag_name = name.replace("_", "-")

        def _append(*args: object) -> "FlagBuilder":
            return self.flag(flag_name, *args)

        return _append

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._args))

    def __len__(self) -> int:
        return len(self._args)

    def __repr__(self) -> str:
        return f"FlagBuilder({self._args!r})"
