"""Runtime configuration normalization helpers.

These helpers keep CLI flag and persisted setting interpretation deterministic
across entrypoints.
"""

from __future__ import annotations

BACKEND_NAMES = ("fake", "vlc")
DEFAULT_BACKEND = "vlc"
DEFAULT_PROXY_PREFIX = "https://corsproxy.io/?"


def resolve_log_level(*, verbose: bool, quiet: bool) -> str:
    """Resolve effective log level from CLI flags.

    Precedence is deterministic: --quiet overrides --verbose.
    """
    if quiet:
        return "WARNING"
    if verbose:
        return "DEBUG"
    return "INFO"


def normalize_backend_name(value: str | None) -> str | None:
    """Return a supported backend name or None when unrecognized."""
    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized in BACKEND_NAMES:
        return normalized
    return None


def resolve_backend_name(cli_backend: str | None, saved_backend: str | None) -> str:
    """CLI choice wins over the saved setting; unknown values fall back to fake."""
    for candidate in (cli_backend, saved_backend):
        normalized = normalize_backend_name(candidate)
        if normalized is not None:
            return normalized
    return "fake"


def normalize_proxy_prefix(value: str | None) -> str:
    """Normalize a CORS proxy prefix; blank disables proxying."""
    if value is None:
        return DEFAULT_PROXY_PREFIX
    return value.strip()
