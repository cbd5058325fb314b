"""Infrastructure layer: Hardware identifier for this machine.
"""

from __future__ import annotations

import logging
import os
import platform
import re
import subprocess
from pathlib import Path
from typing import Callable

from keylic.common.config import Config
from keylic.common.crypto import CryptoUtils
from keylic.common.exceptions import HardwareIdError

logger = logging.getLogger(__name__)

LINUX_MACHINE_ID_PATHS = (
    Path("/etc/machine-id"),
    Path("/var/lib/dbus/machine-id"),
)
_IOREG_UUID_RE = re.compile(r'"IOPlatformUUID"\s*=\s*"([^"]+)"')


def _read_first_existing(paths: tuple[Path, ...]) -> str | None:
    for candidate in paths:
        try:
            content = candidate.read_text(encoding="utf-8").strip()
        except OSError:
            continue
        if content:
            return content
    return None


def _read_windows_machine_guid() -> str | None:
    import winreg  # noqa: PLC0415

    try:
        with winreg.OpenKey(
            winreg.HKEY_LOCAL_MACHINE,
            r"SOFTWARE\Microsoft\Cryptography",
            0,
            winreg.KEY_READ | winreg.KEY_WOW64_64KEY,
        ) as key:
            value, _ = winreg.QueryValueEx(key, "MachineGuid")
    except OSError:
        return None
    return str(value).strip() or None


def _read_macos_platform_uuid() -> str | None:
    try:
        completed = subprocess.run(
            ["ioreg", "-rd1", "-c", "IOPlatformExpertDevice"],
            check=False,
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (OSError, subprocess.SubprocessError):
        return None
    match = _IOREG_UUID_RE.search(completed.stdout)
    return match.group(1) if match else None


def read_system_id() -> str | None:
    """OS-level machine identifier, or None when unavailable."""
    system = platform.system()
    if system == "Windows":
        return _read_windows_machine_guid()
    if system == "Darwin":
        return _read_macos_platform_uuid()
    return _read_first_existing(LINUX_MACHINE_ID_PATHS)


class HardwareIdentifier:
    """Derives a deterministic per-machine string from system id and CPU cores."""

    def __init__(
        self,
        key: str | None = None,
        system_id_reader: Callable[[], str | None] = read_system_id,
        cpu_count_reader: Callable[[], int | None] = os.cpu_count,
    ):
        self.key = key or Config().HWID_KEY
        self._system_id_reader = system_id_reader
        self._cpu_count_reader = cpu_count_reader
        self._cached: str | None = None

    def generate(self) -> str:
        if self._cached is None:
            system_id = self._system_id_reader()
            if not system_id:
                msg = "no machine identifier available on this system"
                raise HardwareIdError(msg)
            cores = self._cpu_count_reader() or 0
            self._cached = CryptoUtils.sign(f"{system_id}|{cores}", self.key)
            logger.debug("Hardware id computed")
        return self._cached
