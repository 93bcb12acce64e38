"""
System font installation collaborators.

Each installer knows one platform's way of making a staged font file
available system-wide. The placement service only calls `install()`; the
platform is chosen once by `get_system_installer()`.
"""

import asyncio
import platform
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from gfcli.constants import LINUX_FONT_DIR, MACOS_FONT_DIR, WINDOWS_FONT_NAMESPACE
from gfcli.exceptions import PlacementError, UnsupportedPlatformError
from gfcli.log_utils import logger

from .files import move_into


class SystemFontInstaller(ABC):
    """Registers a staged font file with the operating system."""

    @abstractmethod
    async def install(self, staged_path: Path) -> str:
        """
        Make `staged_path` available as a system font.

        Returns:
            str: Where the font ended up, for reporting.

        Raises:
            PlacementError: If the font cannot be installed.
        """


class FolderFontInstaller(SystemFontInstaller):
    """Installs fonts by moving them into a per-user font folder (Linux, macOS)."""

    def __init__(self, folder: Path) -> None:
        self.folder = folder

    async def install(self, staged_path: Path) -> str:
        loop = asyncio.get_running_loop()
        target = await loop.run_in_executor(None, move_into, staged_path, self.folder)
        return str(target)


class WindowsFontInstaller(SystemFontInstaller):
    """Installs fonts through the Windows shell font namespace using PowerShell."""

    def __init__(self, powershell: str = "powershell.exe") -> None:
        self.powershell = powershell

    def build_command(self, staged_path: Path) -> list:
        # single-quoted literal path: no variable expansion, no wildcard matching
        literal_path = str(staged_path).replace("'", "''")
        script = (
            f"$fonts = (New-Object -ComObject Shell.Application).Namespace({WINDOWS_FONT_NAMESPACE}); "
            f"Get-ChildItem -LiteralPath '{literal_path}' | % {{ $fonts.CopyHere($_.fullname) }}"
        )
        return [
            self.powershell,
            "-NoProfile",
            "-ExecutionPolicy",
            "Bypass",
            "-Command",
            script,
        ]

    def _run(self, staged_path: Path) -> None:
        try:
            result = subprocess.run(
                self.build_command(staged_path),
                capture_output=True,
                text=True,
                check=False,
            )
        except (subprocess.SubprocessError, OSError) as e:
            raise PlacementError(
                "Could not start PowerShell to install the font",
                path=str(staged_path),
                details=str(e),
            ) from e
        if result.returncode != 0:
            raise PlacementError(
                "PowerShell font installation failed",
                path=str(staged_path),
                details=(result.stderr or "").strip() or f"exit code {result.returncode}",
            )

    async def install(self, staged_path: Path) -> str:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._run, staged_path)
        logger.debug(f"Registered {staged_path.name} with the Windows font folder")
        return "Font System Folder with Powershell."


def get_system_installer(
    system_name: Optional[str] = None, home: Optional[Path] = None
) -> SystemFontInstaller:
    """
    Choose the installer for the running (or given) platform.

    Parameters:
        system_name (Optional[str]): Value as returned by `platform.system()`.
        home (Optional[Path]): Home directory used for per-user font folders.

    Raises:
        UnsupportedPlatformError: If the platform has no known font location.
    """
    system_name = system_name or platform.system()
    home = home or Path.home()
    if system_name == "Linux":
        return FolderFontInstaller(home / LINUX_FONT_DIR)
    if system_name == "Darwin":
        return FolderFontInstaller(home.joinpath(*MACOS_FONT_DIR))
    if system_name == "Windows":
        return WindowsFontInstaller()
    raise UnsupportedPlatformError(f"Platform not supported: {system_name}")
