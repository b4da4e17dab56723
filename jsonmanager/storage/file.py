import os

import aiofiles
import aiofiles.os as aos

from jsonmanager.logging import manager_logger

type FilePath = str | os.PathLike[str]

class FileSetupException(OSError):
    '''Target file or its parent directories cannot be created'''

async def resolve_file(path: FilePath) -> str:
    """
    Returns the path of an existing file, creating the file and its missing parent directories first.

    Raises:
        FileSetupException: If a parent directory or the file itself cannot be created.
    """
    file_path = os.fspath(path)
    if await aos.path.exists(file_path):
        return file_path
    logger = manager_logger("resolve_file")
    parent = os.path.dirname(os.path.abspath(file_path))
    try:
        await aos.makedirs(parent, exist_ok=True)
    except OSError as ex:
        logger.error(f"Failed to create parent directories {parent}: {ex}")
        raise FileSetupException(f"Failed to create parent directories {parent}") from ex
    try:
        async with aiofiles.open(file_path, mode="x", encoding="utf-8"):
            pass
    except FileExistsError:
        return file_path
    except OSError as ex:
        logger.error(f"Failed to create file {file_path}: {ex}")
        raise FileSetupException(f"Failed to create file {file_path}") from ex
    logger.info(f"Created file {file_path}")
    return file_path

async def read_text(file_path: str) -> str:
    async with aiofiles.open(file_path, mode="r", encoding="utf-8") as f:
        return await f.read()

async def write_text(file_path: str, text: str) -> None:
    async with aiofiles.open(file_path, mode="w", encoding="utf-8") as f:
        await f.write(text)
