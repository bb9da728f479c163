"""
Default middleware for confhooks.

Call install_defaults() at startup to route registry diagnostics to the log.
"""

from confhooks.middleware import logging_hook


def install_defaults(registry=None, log_path=None, run_context=None):
    """Install the default middleware. Returns installed components.

    Args:
        registry: Registry to attach to (the process-wide one if None).
        log_path: Path for JSONL logging (optional; init_logging() may set it instead).
        run_context: Dict with run_name, app, config etc. for log enrichment.

    Returns:
        Dict with references to installed components (e.g. the log sink).
    """
    sink = logging_hook.install(registry=registry, log_path=log_path, run_context=run_context or {})

    return {
        "log_sink": sink,
    }
