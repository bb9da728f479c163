"""
Hook registry for indirect configuration.

Library code names extension points by key. Configuration code registers
callbacks against those keys (usually while a config file is being loaded),
and the owning code later applies the key, running every registered hook in
the order it was added.

Usage:
    from confhooks.hooks import Registry

    registry = Registry()

    @registry.setup_server
    def tune(opts):
        opts["port"] = 8080

    registry.apply("server", {"port": 80})

Keys are resolved against the calling thread's active scope (see
``Registry.scope``). A ``QualifiedKey`` is used as-is.

Apply-family calls hold the registry lock while the hooks run, so a hook
must not apply the key that is currently being applied.
"""

import inspect
import os
import sys
import threading
from collections.abc import Mapping
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, NamedTuple, Optional, Set, Tuple

DEFAULT_SCOPE = "default"

SHORTHAND_PREFIX = "setup_"

LogSink = Callable[[str], None]
HookCallback = Callable[..., Any]

# Frames from these files are skipped when labelling where a hook came from.
_INTERNAL_FILES = {
    os.path.normcase(os.path.abspath(__file__)),
    os.path.normcase(os.path.join(os.path.dirname(os.path.abspath(__file__)), "__init__.py")),
}


class QualifiedKey(NamedTuple):
    scope: Any
    key: Any


class HookEntry(NamedTuple):
    callback: HookCallback
    origin: str
    takes_value: bool = True

    def call(self, value: Any) -> Any:
        if self.takes_value:
            return self.callback(value)
        return self.callback()


def _accepts_value(callback: HookCallback) -> bool:
    """True if callback can be called with one positional argument."""
    try:
        sig = inspect.signature(callback)
    except (TypeError, ValueError):
        return True
    for param in sig.parameters.values():
        if param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD, param.VAR_POSITIONAL):
            return True
    return False


def caller_origin() -> str:
    """Source location of the first frame outside the registry modules."""
    frame = sys._getframe(1)
    while frame is not None:
        filename = frame.f_code.co_filename
        if os.path.normcase(os.path.abspath(filename)) not in _INTERNAL_FILES:
            return f"{filename}:{frame.f_lineno} in {frame.f_code.co_name}"
        frame = frame.f_back
    return "<unknown>"


class Registry:
    """Hooks keyed by (scope, key), with applied-key bookkeeping."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._local = threading.local()
        self._hooks: Dict[QualifiedKey, List[HookEntry]] = {}
        self._applied: Set[QualifiedKey] = set()
        self._logger: Optional[LogSink] = None

    # -- scoping ----------------------------------------------------------

    def _scope_stack(self) -> List[Any]:
        stack = getattr(self._local, "stack", None)
        if stack is None:
            stack = self._local.stack = []
        return stack

    def current_scope(self) -> Any:
        stack = self._scope_stack()
        return stack[-1] if stack else DEFAULT_SCOPE

    @contextmanager
    def scope(self, scope: Any) -> Iterator["Registry"]:
        """Make ``scope`` the active scope for this thread inside the block."""
        stack = self._scope_stack()
        stack.append(scope)
        try:
            yield self
        finally:
            stack.pop()

    def run_in_scope(self, scope: Any, block: Callable[["Registry"], Any]) -> Any:
        """Run ``block(registry)`` with ``scope`` active and return its result."""
        with self.scope(scope):
            return block(self)

    def qualify(self, key: Any) -> QualifiedKey:
        if isinstance(key, QualifiedKey):
            return key
        return QualifiedKey(self.current_scope(), key)

    # -- registration -----------------------------------------------------

    def add(self, key: Any, callback: Optional[HookCallback] = None, *, origin: Optional[str] = None):
        """Register callback under key. Without a callback, return a decorator.

        The hook runs only when the same key is later applied. Hooks for one
        key run in the order added.
        """
        qkey = self.qualify(key)
        if origin is None:
            origin = caller_origin()

        def register(cb: HookCallback) -> HookCallback:
            if not callable(cb):
                raise TypeError(f"hook for {qkey!r} must be callable, got {type(cb).__name__}")
            entry = HookEntry(cb, origin, _accepts_value(cb))
            with self._lock:
                self._hooks.setdefault(qkey, []).append(entry)
                self._applied.discard(qkey)
            return cb

        if callback is None:
            return register
        return register(callback)

    def setup(self, key: Any, callback: Optional[HookCallback] = None):
        """Alias of add(), for config files that read better as setup(...)."""
        return self.add(key, callback, origin=caller_origin())

    def __getattr__(self, name: str):
        if not name.startswith(SHORTHAND_PREFIX) or len(name) == len(SHORTHAND_PREFIX):
            raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")
        key = name[len(SHORTHAND_PREFIX):]

        def shorthand(callback: HookCallback) -> HookCallback:
            return self.add(key, callback, origin=caller_origin())

        shorthand.__name__ = name
        return shorthand

    # -- application ------------------------------------------------------

    def _consult(self, key: Any) -> Tuple[HookEntry, ...]:
        # caller holds the lock
        qkey = self.qualify(key)
        self._applied.add(qkey)
        return tuple(self._hooks.get(qkey, ()))

    def apply(self, key: Any, value: Any) -> Any:
        """Pass value to each hook for key; return the (often mutated) value."""
        with self._lock:
            for entry in self._consult(key):
                entry.call(value)
        return value

    def inject(self, key: Any, value: Any = None) -> Any:
        """Thread value through the hooks for key, returning the last result."""
        with self._lock:
            for entry in self._consult(key):
                value = entry.call(value)
        return value

    def merge(self, key: Any, value: Optional[Mapping] = None) -> Mapping:
        """Merge the mappings returned by each hook over value (default {})."""
        if value is None:
            value = {}
        with self._lock:
            entries = self._consult(key)
            if not entries:
                return value
            merged = dict(value)
            for entry in entries:
                result = entry.callback()
                if not isinstance(result, Mapping):
                    raise TypeError(
                        f"merge hook for {self.qualify(key)!r} returned "
                        f"{type(result).__name__}, expected a mapping ({entry.origin})"
                    )
                merged.update(result)
        return merged

    # -- diagnostics ------------------------------------------------------

    def check_not_applied(self, visitor: Callable[[QualifiedKey, List[str]], Any]) -> int:
        """Call visitor(key, origins) for each key added but never applied.

        Often this points at a typo in the key on one side. Returns the
        number of keys reported.
        """
        with self._lock:
            pending = [
                (qkey, [entry.origin for entry in entries])
                for qkey, entries in self._hooks.items()
                if entries and qkey not in self._applied
            ]
            for qkey, origins in pending:
                visitor(qkey, origins)
        return len(pending)

    def log_not_applied(self) -> int:
        """Log one message per hook key that was never applied."""
        def report(qkey: QualifiedKey, origins: List[str]) -> None:
            msg = f"Hook {qkey!r} was never applied. Added from:\n"
            for origin in origins:
                msg += f"  - {origin}\n"
            self.log(msg)

        return self.check_not_applied(report)

    def log_with(self, sink: Optional[LogSink]) -> Optional[LogSink]:
        """Send diagnostic messages to sink (replacing any previous one)."""
        self._logger = sink
        return sink

    def log(self, message: str) -> None:
        sink = self._logger
        if sink is not None:
            sink(message)

    # -- introspection ----------------------------------------------------

    def registered_keys(self) -> List[QualifiedKey]:
        """Return keys that have at least one hook, in registration order."""
        with self._lock:
            return [qkey for qkey, entries in self._hooks.items() if entries]

    def hooks_for(self, key: Any) -> Tuple[HookEntry, ...]:
        qkey = self.qualify(key)
        with self._lock:
            return tuple(self._hooks.get(qkey, ()))

    def is_applied(self, key: Any) -> bool:
        qkey = self.qualify(key)
        with self._lock:
            return qkey in self._applied

    def reset(self) -> None:
        """Drop all hooks, applied-key tracking and the logger."""
        with self._lock:
            self._hooks = {}
            self._applied = set()
            self._logger = None


_default: Optional[Registry] = None
_default_lock = threading.Lock()


def default_registry() -> Registry:
    """Return the process-wide registry, creating it on first use."""
    global _default
    if _default is None:
        with _default_lock:
            if _default is None:
                _default = Registry()
    return _default


def reset_default_registry() -> None:
    """Clear the process-wide registry (for test teardown)."""
    if _default is not None:
        _default.reset()
