"""Runtime diagnostics for playback and catalog dependencies."""

from __future__ import annotations

import importlib
from dataclasses import dataclass
from typing import Literal

DoctorStatus = Literal["ok", "missing", "error"]


@dataclass(frozen=True)
class DoctorCheck:
    """One environment readiness check result."""

    name: str
    status: DoctorStatus
    required: bool
    detail: str
    hint: str | None = None


@dataclass(frozen=True)
class DoctorReport:
    """Collection of doctor checks and derived process exit contract."""

    backend: str
    checks: list[DoctorCheck]

    @property
    def exit_code(self) -> int:
        """Return non-zero when any required check failed or is missing."""
        for check in self.checks:
            if check.required and check.status != "ok":
                return 2
        return 0


def run_doctor(backend: str) -> DoctorReport:
    """Run diagnostics for the selected backend mode."""
    checks = [
        probe_module("httpx", required=True),
        probe_vlc(required=backend == "vlc"),
    ]
    return DoctorReport(backend=backend, checks=checks)


def render_report(report: DoctorReport) -> str:
    """Render terminal-friendly diagnostics report text."""
    lines = [f"clipmap doctor (backend={report.backend})", ""]
    for check in report.checks:
        state = _status_token(check.status)
        req = "required" if check.required else "optional"
        lines.append(f"{state} {check.name:<11} [{req}] {check.detail}")
        if check.hint:
            lines.append(f"      hint: {check.hint}")
    lines.append("")
    lines.append("Result: OK" if report.exit_code == 0 else "Result: FAIL")
    return "\n".join(lines)


def probe_module(name: str, *, required: bool) -> DoctorCheck:
    """Verify a Python dependency is importable."""
    try:
        module = importlib.import_module(name)
    except Exception as exc:
        return DoctorCheck(
            name=name,
            status="missing",
            required=required,
            detail=f"not importable ({exc.__class__.__name__})",
            hint="Install Python dependencies (pip install clipmap).",
        )
    version = getattr(module, "__version__", None)
    detail = f"importable ({version})" if version else "importable"
    return DoctorCheck(name=name, status="ok", required=required, detail=detail)


def probe_vlc(*, required: bool) -> DoctorCheck:
    """Verify python-vlc import and libVLC runtime usability."""
    try:
        vlc = importlib.import_module("vlc")
    except Exception as exc:
        return DoctorCheck(
            name="vlc/libvlc",
            status="missing",
            required=required,
            detail=f"python-vlc import failed ({exc.__class__.__name__})",
            hint="Install VLC/libVLC and ensure python-vlc can locate libVLC.",
        )
    version = getattr(vlc, "__version__", "unknown")
    try:
        vlc.Instance().media_player_new()
    except Exception as exc:
        return DoctorCheck(
            name="vlc/libvlc",
            status="error",
            required=required,
            detail=f"python-vlc {version}; libVLC runtime unavailable ({exc.__class__.__name__})",
            hint="Install VLC/libVLC and verify runtime library search path.",
        )
    return DoctorCheck(
        name="vlc/libvlc",
        status="ok",
        required=required,
        detail=f"python-vlc {version}",
    )


def _status_token(status: DoctorStatus) -> str:
    if status == "ok":
        return "[OK]"
    if status == "missing":
        return "[MISS]"
    return "[ERR]"
