"""Content fingerprints for local files."""

import base64
import hashlib
from pathlib import Path
from typing import Union


class ChecksumCalculator:
    """Compute MD5 fingerprints of files without loading them into memory.

    Digests are base64 encoded, the same representation object stores use
    for ``Content-MD5`` headers and stored object hashes.
    """

    def __init__(self, chunk_size: int = 8192):
        self.chunk_size = chunk_size

    def calculate_md5(self, file_path: Union[str, Path]) -> str:
        """
        Calculate the base64 encoded MD5 digest of a file.

        Args:
            file_path: File to hash

        Returns:
            24 character base64 digest

        Raises:
            OSError: If the file cannot be opened or read
        """
        md5_hash = hashlib.md5()
        with open(file_path, "rb") as f:
            for chunk in iter(lambda: f.read(self.chunk_size), b""):
                md5_hash.update(chunk)
        return base64.b64encode(md5_hash.digest()).decode("ascii")

    def verify_checksum(self, file_path: Union[str, Path], expected: str) -> bool:
        """Check a file against a previously computed digest."""
        return self.calculate_md5(file_path) == expected


def hex_to_base64(hex_digest: str) -> str:
    """Convert a hex MD5 digest (such as a single-part ETag) to base64."""
    return base64.b64encode(bytes.fromhex(hex_digest)).decode("ascii")
