"""Config file loading & CLI flag registration.

Config files are plain Python. They are executed in a fresh namespace where
``hooks`` is bound to the registry, so a file can register hooks with
``hooks.add(...)`` or ``hooks.setup_<key>(...)`` without importing anything.
"""

import argparse
from typing import Any, Dict, Iterable, List, Optional

from confhooks.hooks import Registry, default_registry


def load_text(path: str) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def load_file(path: str, registry: Optional[Registry] = None) -> Dict[str, Any]:
    """Execute the config file at path; return the namespace it defined.

    A missing, unreadable or non-regular path raises the OSError from open().
    """
    if registry is None:
        registry = default_registry()
    registry.log(f"Loading file {path}.")
    source = load_text(path)
    namespace: Dict[str, Any] = {
        "__name__": "__confhooks_config__",
        "__file__": path,
        "hooks": registry,
    }
    exec(compile(source, path, "exec"), namespace)
    return namespace


def load_files(paths: Iterable[str], registry: Optional[Registry] = None) -> List[Dict[str, Any]]:
    return [load_file(path, registry) for path in paths]


class _LoadConfigAction(argparse.Action):
    """Load each --config file as soon as the flag is parsed."""

    def __init__(self, option_strings, dest, registry: Optional[Registry] = None, **kwargs):
        self.registry = registry
        super().__init__(option_strings, dest, **kwargs)

    def __call__(self, parser, namespace, values, option_string=None):
        load_file(values, self.registry)
        loaded = list(getattr(namespace, self.dest, None) or [])
        loaded.append(values)
        setattr(namespace, self.dest, loaded)


def add_config_argument(parser: argparse.ArgumentParser, registry: Optional[Registry] = None) -> argparse.Action:
    """Register -c/--config FILE on parser. May be given more than once."""
    return parser.add_argument(
        "--config", "-c",
        dest="config",
        metavar="FILE",
        action=_LoadConfigAction,
        registry=registry,
        default=[],
        help="Load hooks from config FILE (may be repeated)",
    )
