"""File transfer with remote verification."""

import logging
from pathlib import Path

from deploy_scout.models import FileTransferResult, RemoteFileInfo
from deploy_scout.protocols import RemoteSession
from deploy_scout.services.errors import FileTransferError
from deploy_scout.utils.shell import quote_remote_path

logger = logging.getLogger(__name__)

_NOT_FOUND = "FILE_NOT_FOUND"


async def get_file_info(session: RemoteSession, remote_path: str) -> RemoteFileInfo:
    """Check whether a remote file exists and get its size.

    Returns:
        RemoteFileInfo; size is -1 when the file exists but ls could not be parsed
    """
    path = quote_remote_path(remote_path)
    result = await session.run(f"ls -la {path} 2>/dev/null || echo '{_NOT_FOUND}'")

    if not result.succeeded or _NOT_FOUND in result.output:
        logger.debug("File not found: %s", remote_path)
        return RemoteFileInfo(path=remote_path, exists=False)

    # -rw-r--r-- 1 user group SIZE date time name
    parts = result.output.strip().split()
    if len(parts) >= 5 and parts[4].isdigit():
        size = int(parts[4])
        logger.debug("File found: %s (%d bytes)", remote_path, size)
        return RemoteFileInfo(path=remote_path, exists=True, size=size)

    exists = await session.run(f"test -f {path} && echo EXISTS || echo NOT_FOUND")
    if exists.output.strip() == "EXISTS":
        logger.debug("File exists but size could not be determined: %s", remote_path)
        return RemoteFileInfo(path=remote_path, exists=True, size=-1)
    return RemoteFileInfo(path=remote_path, exists=False)


async def transfer_with_verification(
    session: RemoteSession,
    local_path: str | Path,
    remote_path: str,
) -> FileTransferResult:
    """Upload a file and confirm the remote copy has the same size.

    Args:
        session: Connected remote session
        local_path: Local file to upload
        remote_path: Destination path on the remote host

    Returns:
        FileTransferResult with verified=True

    Raises:
        FileTransferError: If the upload fails, or the remote file is missing
            or differs in size
    """
    source = Path(local_path)
    if not source.is_file():
        raise FileTransferError(f"Local file not found: {source}")
    local_size = source.stat().st_size

    await session.upload(source, remote_path)
    logger.debug("Upload of %s completed, verifying", source.name)

    remote = await get_file_info(session, remote_path)
    if not remote.exists:
        raise FileTransferError(
            f"File transfer verification failed: {source.name} not found on remote server"
        )
    if remote.size != local_size:
        raise FileTransferError(
            f"File transfer verification failed: size mismatch for {source.name}. "
            f"Local: {local_size} bytes, Remote: {remote.size} bytes"
        )

    logger.info("Transferred %s to %s (%d bytes, verified)", source.name, remote_path, local_size)
    return FileTransferResult(
        success=True,
        bytes_transferred=local_size,
        verified=True,
        remote_file=remote,
        message=f"Uploaded {source} -> {remote_path}",
    )
