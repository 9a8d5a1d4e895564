# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""Generic component registry for blueda.

Provides ``Registry[T]``, a small dict-like registry used to look up
drivers, models, observation managers and linear solvers by the name given
in the configuration file.

Design choices
--------------
* **lowercase key normalization** by default, so ``Quadratic`` and
  ``quadratic`` resolve to the same entry.
* **``get()`` returns ``None``; ``[]`` raises ``KeyError``** (dict-like API).
* **Always stores classes**; the caller instantiates.
* **Lazy imports** via ``add_lazy`` so that registering a component does not
  import its module.
* **Aliases** via ``alias()``.
"""

from __future__ import annotations

import importlib
import logging
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    List,
    Optional,
    TypeVar,
    Union,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _LazyEntry:
    """Sentinel wrapping an import path for deferred resolution."""

    __slots__ = ("import_path",)

    def __init__(self, import_path: str) -> None:
        self.import_path = import_path

    def resolve(self) -> Any:
        module_path, class_name = self.import_path.rsplit(".", 1)
        module = importlib.import_module(module_path)
        return getattr(module, class_name)


class Registry(Generic[T]):
    """A generic, dict-like registry for blueda components.

    Parameters
    ----------
    name : str
        Human-readable name (used in ``__repr__`` and error messages).
    normalize : callable, optional
        Key normalization function.  Defaults to ``str.lower``.
    doc : str, optional
        One-line description shown in ``repr()``.
    """

    def __init__(
        self,
        name: str,
        *,
        normalize: Callable[[str], str] = str.lower,
        doc: str = "",
    ) -> None:
        self._name = name
        self._normalize = normalize
        self._doc = doc
        self._entries: Dict[str, Any] = {}       # key -> value (class) or _LazyEntry
        self._aliases: Dict[str, str] = {}        # alias_key -> canonical_key

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def add(
        self,
        key: str,
        value: Optional[T] = None,
    ) -> Union[T, Callable[[T], T]]:
        """Register *value* under *key*, or return a decorator if *value* is ``None``.

        Examples
        --------
        Direct form::

            R.models.add("quadratic", QuadraticModel)

        Decorator form::

            @R.models.add("quadratic")
            class QuadraticModel: ...
        """
        if value is not None:
            self._entries[self._normalize(key)] = value
            return value  # type: ignore[return-value]

        def decorator(cls: T) -> T:
            self._entries[self._normalize(key)] = cls
            return cls

        return decorator

    def add_lazy(self, key: str, import_path: str) -> None:
        """Register a lazy import; the class is imported on first access.

        Parameters
        ----------
        key : str
            Registry key.
        import_path : str
            Fully-qualified ``"package.module.ClassName"`` string.
        """
        self._entries[self._normalize(key)] = _LazyEntry(import_path)

    def alias(self, alias_key: str, canonical_key: str) -> None:
        """Create *alias_key* as an alias for *canonical_key*."""
        self._aliases[self._normalize(alias_key)] = self._normalize(canonical_key)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, key: str, default: Optional[T] = None) -> Optional[T]:
        """Return the registered value for *key*, or *default* on miss."""
        nkey = self._resolve_alias(self._normalize(key))
        entry = self._entries.get(nkey)
        if entry is None:
            return default
        return self._unwrap(nkey, entry)

    def __getitem__(self, key: str) -> T:
        """Return the registered value for *key*; raise ``KeyError`` on miss."""
        nkey = self._resolve_alias(self._normalize(key))
        entry = self._entries.get(nkey)
        if entry is None:
            available = sorted(self._entries.keys())
            raise KeyError(
                f"{self._name}: unknown key {key!r}. "
                f"Available: {available}"
            )
        return self._unwrap(nkey, entry)

    def __contains__(self, key: str) -> bool:  # noqa: D105
        nkey = self._resolve_alias(self._normalize(key))
        return nkey in self._entries

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def keys(self) -> List[str]:
        """Return sorted list of canonical (non-alias) keys."""
        return sorted(self._entries.keys())

    def __len__(self) -> int:  # noqa: D105
        return len(self._entries)

    def __repr__(self) -> str:  # noqa: D105
        return f"<Registry {self._name!r} ({len(self)} entries): {self._doc}>"

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _resolve_alias(self, nkey: str) -> str:
        """Follow one level of aliasing."""
        return self._aliases.get(nkey, nkey)

    def _unwrap(self, nkey: str, entry: Any) -> T:
        """Resolve a ``_LazyEntry`` on first access."""
        if isinstance(entry, _LazyEntry):
            resolved = entry.resolve()
            logger.debug("%s: resolved %r to %s", self._name, nkey, entry.import_path)
            self._entries[nkey] = resolved
            return resolved  # type: ignore[return-value]
        return entry  # type: ignore[return-value]
