"""
Font file placement: download to a staging folder, validate, then move the
file to its destination or hand it to the system font installer.
"""

import asyncio
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from gfcli.constants import STAGING_DIR_NAME
from gfcli.exceptions import PlacementError
from gfcli.log_utils import logger

from .files import ensure_folder, move_into, remote_extension, validate_staged_file
from .interfaces import Destination, DestinationKind, Pathish
from .system import SystemFontInstaller, get_system_installer
from .transport import FontRequestClient


def get_default_staging_root() -> Path:
    return Path(tempfile.gettempdir()) / STAGING_DIR_NAME


class FontPlacement:
    """
    Places remote font files on the local filesystem.

    Construct one per application run and pass it to whatever needs it.
    """

    def __init__(
        self,
        client: FontRequestClient,
        staging_root: Optional[Pathish] = None,
        system_installer: Optional[SystemFontInstaller] = None,
    ) -> None:
        """
        Parameters:
            client (FontRequestClient): Transport used to download font files.
            staging_root (Optional[Pathish]): Parent of per-operation staging folders.
            system_installer (Optional[SystemFontInstaller]): Installer for system
                placement; chosen from the running platform on first use when omitted.
        """
        self.client = client
        self.staging_root = Path(staging_root) if staging_root else get_default_staging_root()
        self._system_installer = system_installer

    @property
    def system_installer(self) -> SystemFontInstaller:
        if self._system_installer is None:
            self._system_installer = get_system_installer()
        return self._system_installer

    @contextmanager
    def staging(self) -> Iterator[Path]:
        """
        Provide a fresh staging folder for one operation and remove it afterwards.

        Raises:
            PlacementError: If the staging folder cannot be created.
        """
        root = ensure_folder(self.staging_root)
        try:
            staging_dir = Path(tempfile.mkdtemp(prefix="gfcli-", dir=root))
        except OSError as e:
            raise PlacementError(
                "Could not create staging folder", path=str(root), details=str(e)
            ) from e
        try:
            yield staging_dir
        finally:
            shutil.rmtree(staging_dir, ignore_errors=True)

    async def stage(self, remote_file: str, file_name: str, staging_dir: Path) -> Path:
        """
        Download `remote_file` into `staging_dir` as `<file_name><remote extension>` and validate it.

        Raises:
            PlacementError: If there is nothing to download or the file cannot be written.
            CorruptedFontError: If the download is not a font.
            TransportError: If the request fails.
        """
        if not remote_file:
            raise PlacementError("Nothing to download")
        staged_path = staging_dir / f"{file_name}{remote_extension(remote_file)}"
        try:
            result = await self.client.download_to(remote_file, staged_path)
        except OSError as e:
            raise PlacementError(
                f"Could not write {staged_path}", path=str(staged_path), details=str(e)
            ) from e
        logger.debug(f"Staged {remote_file} at {staged_path} ({result.content_type})")
        return validate_staged_file(staged_path, result.content_type)

    async def place(
        self,
        remote_file: str,
        file_name: str,
        destination: Destination,
        staging_dir: Path,
    ) -> str:
        """
        Stage, validate and place one remote file according to `destination`.

        Returns:
            str: Final path of the file (or the installer's description of it).
        """
        staged_path = await self.stage(remote_file, file_name, staging_dir)
        if destination.kind is DestinationKind.SYSTEM:
            return await self.system_installer.install(staged_path)

        folder = destination.folder if destination.kind is DestinationKind.FOLDER else None
        loop = asyncio.get_running_loop()
        target = await loop.run_in_executor(None, move_into, staged_path, folder)
        return str(target)

    async def save_at(
        self, remote_file: str, dest_folder: Optional[Pathish], file_name: str
    ) -> str:
        """Download one file into `dest_folder` (current directory when empty)."""
        with self.staging() as staging_dir:
            return await self.place(
                remote_file, file_name, Destination.at(dest_folder), staging_dir
            )

    async def save_here(self, remote_file: str, file_name: str) -> str:
        return await self.save_at(remote_file, None, file_name)

    async def install(self, remote_file: str, file_name: str) -> str:
        """Download one file and install it as a system font."""
        with self.staging() as staging_dir:
            return await self.place(
                remote_file, file_name, Destination.system(), staging_dir
            )
