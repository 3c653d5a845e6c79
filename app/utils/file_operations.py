"""
File operation utilities

This module handles JSON file reads, atomic writes and idempotent deletes.
"""
import json
import logging
from pathlib import Path
from typing import Any
from uuid import uuid4

import aiofiles
import aiofiles.os


logger = logging.getLogger(__name__)


async def ensure_directory(directory: Path) -> bool:
    """
    Create a directory (and parents) if it does not exist yet

    Args:
        directory: Directory to create

    Returns:
        True if the directory was created, False if it already existed
    """
    if await aiofiles.os.path.isdir(directory):
        return False
    await aiofiles.os.makedirs(directory, exist_ok=True)
    logger.info(f"Created data directory: {directory}")
    return True


async def read_json_file(file_path: Path, default: Any = None) -> Any:
    """
    Read and decode a JSON file

    Args:
        file_path: Path to the JSON file
        default: Value returned when the file does not exist

    Returns:
        Decoded JSON value, or default if the file is missing

    Raises:
        json.JSONDecodeError: If the file exists but holds invalid JSON
    """
    try:
        async with aiofiles.open(file_path, 'r', encoding='utf-8') as f:
            content = await f.read()
    except FileNotFoundError:
        return default
    return json.loads(content)


async def write_json_file_atomic(file_path: Path, data: Any) -> None:
    """
    Write JSON to a file without ever exposing a partially written target

    Content goes to a uniquely named temporary file in the same directory,
    which is then renamed over the target. Readers observe either the old
    file or the new one.

    Args:
        file_path: Destination path
        data: JSON-serializable value

    Raises:
        OSError: If writing or renaming fails (the temporary file is removed)
    """
    temp_file = file_path.with_name(f"{file_path.name}.{uuid4().hex}.tmp")
    payload = json.dumps(data, indent=2, ensure_ascii=False)

    try:
        async with aiofiles.open(temp_file, 'w', encoding='utf-8') as f:
            await f.write(payload)
        await aiofiles.os.replace(temp_file, file_path)
    except Exception:
        await delete_file(temp_file)
        raise

    logger.debug(f"Wrote {len(payload)} bytes to {file_path}")


async def delete_file(file_path: Path) -> bool:
    """
    Delete a file; a missing file is not an error

    Args:
        file_path: Path to file to delete

    Returns:
        True if a file was deleted, False if it did not exist
    """
    try:
        await aiofiles.os.remove(file_path)
    except FileNotFoundError:
        return False
    logger.debug(f"Deleted file: {file_path}")
    return True


async def count_files(directory: Path, prefix: str, suffix: str = ".json") -> int:
    """
    Count files in a directory whose names start with prefix and end with suffix

    Args:
        directory: Directory to scan
        prefix: Required filename prefix
        suffix: Required filename suffix

    Returns:
        Number of matching files (0 if the directory is missing)
    """
    try:
        names = await aiofiles.os.listdir(directory)
    except FileNotFoundError:
        return 0
    return sum(1 for name in names if name.startswith(prefix) and name.endswith(suffix))
