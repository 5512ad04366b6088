"""
File Service
Directory handling and attachment encoding for test results
"""
import base64
import logging
from pathlib import Path
from typing import List, Union

logger = logging.getLogger(__name__)


def create_directory(path: Union[str, Path]):
    """Create the directory (and parents) unless it already exists"""
    try:
        Path(path).mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error(f"Failed to create directory {path}: {e}")
        raise


def file_to_base64(file_path: Union[str, Path]) -> str:
    """
    Convert a file into a base64 string

    Args:
        file_path: Path to the file

    Returns:
        Base64 encoded content
    """
    data = Path(file_path).read_bytes()
    return base64.b64encode(data).decode('ascii')


def get_files(path: Union[str, Path]) -> List[str]:
    """
    Return the names of all the regular files found in a directory

    Args:
        path: Directory to scan

    Returns:
        File names (subdirectories are skipped)
    """
    return [entry.name for entry in Path(path).iterdir() if entry.is_file()]
