"""Module-level access to the process-wide hook registry.

``confhooks.add(...)``, ``confhooks.inject(...)``, ``confhooks.setup(key, cb)``
and the other public ``Registry`` methods forward to the default registry,
which is created on first use. The ``setup_<name>`` shorthand is only on
registry objects (``default_registry().setup_<name>``).
"""

from confhooks.hooks import DEFAULT_SCOPE, HookEntry, QualifiedKey, Registry, default_registry, reset_default_registry

__all__ = [
    "DEFAULT_SCOPE",
    "HookEntry",
    "QualifiedKey",
    "Registry",
    "default_registry",
    "reset_default_registry",
]


def __getattr__(name):
    # Allow direct submodule access without touching the registry
    if name in ("config", "middleware", "scripts"):
        import importlib
        return importlib.import_module(f".{name}", __name__)
    if name.startswith("_") or name not in dir(Registry):
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    return getattr(default_registry(), name)


def __dir__():
    return sorted(set(globals()) | {n for n in dir(Registry) if not n.startswith("_")})
