"""
Hashing utilities for seeded values and source files.

Provides:
- One-way hashers applied to hashable fields (e.g. passwords) before insert
- SHA256 checksums of CSV files for lineage tracking on seed results
"""

import hashlib
from pathlib import Path
from typing import Callable, Union

from passlib.context import CryptContext

Hasher = Callable[[str], str]

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def sha256_hasher(value: str) -> str:
    """
    Deterministic one-way hash of a field value.

    Args:
        value: Plaintext field value

    Returns:
        Hexadecimal SHA256 digest (64 characters)

    Example:
        >>> sha256_hasher("pw1") == sha256_hasher("pw1")
        True
    """
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def make_bcrypt_hasher(rounds: int = 12) -> Hasher:
    """
    Build a salted bcrypt password hasher.

    Every call draws a fresh salt, so hashing the same plaintext twice gives
    different strings. Use verify_password() to check a plaintext against one.

    Args:
        rounds: bcrypt cost factor (4-31)

    Returns:
        Hasher producing "$2b$<rounds>$..." strings

    Raises:
        ValueError: If rounds is outside the range bcrypt accepts
    """
    if not 4 <= rounds <= 31:
        raise ValueError(f"bcrypt rounds must be between 4 and 31, got: {rounds}")

    context = pwd_context.copy(bcrypt__rounds=rounds)
    return context.hash


def verify_password(value: str, hashed: str) -> bool:
    """Check a plaintext against a bcrypt hash. Unrecognised hashes never match."""
    if not hashed or pwd_context.identify(hashed) is None:
        return False
    return pwd_context.verify(value, hashed)


def compute_sha256(file_path: Union[str, Path]) -> str:
    """
    Checksum a seed file.

    Args:
        file_path: CSV file to checksum (compressed files are hashed as stored)

    Returns:
        Hexadecimal SHA256 digest of the file bytes

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the path is a directory or other non-file
        OSError: If the file cannot be read
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")
    if not file_path.is_file():
        raise ValueError(f"Path is not a file: {file_path}")

    digest = hashlib.sha256()
    try:
        with open(file_path, "rb") as f:
            for block in iter(lambda: f.read(65536), b""):
                digest.update(block)
    except OSError as e:
        raise OSError(f"Failed to read seed file {file_path}: {e}") from e

    return digest.hexdigest()
