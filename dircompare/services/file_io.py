"""
File I/O service for reading compared files.

Handles:
- Binary detection (extension and NUL-byte sniffing)
- Encoding detection
- BOM handling
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import chardet

from dircompare.core.diff.policy import has_nul_byte, is_binary_path


@dataclass
class FileContent:
    """Container for file content with metadata."""
    raw: bytes
    is_binary: bool
    content: Optional[str] = None
    encoding: Optional[str] = None
    bom: bool = False

    @property
    def size(self) -> int:
        return len(self.raw)


class FileIOService:
    """Service for reading files to be diffed."""

    # Byte order marks, longest first
    BOMS = [
        (b'\xef\xbb\xbf', 'utf-8-sig'),
        (b'\xff\xfe', 'utf-16'),
        (b'\xfe\xff', 'utf-16'),
    ]

    def __init__(
        self,
        default_encoding: str = 'utf-8',
        fallback_encoding: str = 'latin-1',
        min_confidence: float = 0.7
    ):
        self.default_encoding = default_encoding
        self.fallback_encoding = fallback_encoding
        self.min_confidence = min_confidence

    def read_file(self, path: Path | str) -> FileContent:
        """
        Read a file and decode it unless it looks binary.

        Raises:
            OSError: the file cannot be read
        """
        path = Path(path)
        raw = path.read_bytes()

        if self.is_binary(path, raw):
            logging.debug(f"FileIOService - Treating {path} as binary")
            return FileContent(raw=raw, is_binary=True)

        content, encoding, bom = self.decode(raw)
        return FileContent(
            raw=raw,
            is_binary=False,
            content=content,
            encoding=encoding,
            bom=bom,
        )

    def is_binary(self, path: Path | str, content: bytes) -> bool:
        """Check extension first, then the leading bytes for a NUL."""
        if is_binary_path(str(path)):
            return True
        return has_nul_byte(content)

    def decode(self, raw: bytes) -> tuple[str, str, bool]:
        """
        Decode bytes to text.

        Returns:
            Tuple of (text, encoding, has_bom)
        """
        for bom, encoding in self.BOMS:
            if raw.startswith(bom):
                try:
                    return raw.decode(encoding), encoding, True
                except UnicodeDecodeError:
                    break

        try:
            return raw.decode(self.default_encoding), self.default_encoding, False
        except UnicodeDecodeError:
            pass

        detected = self._detect_encoding(raw)
        if detected:
            try:
                return raw.decode(detected), detected, False
            except (UnicodeDecodeError, LookupError):
                logging.debug(f"FileIOService - Detected encoding {detected} failed to decode")

        return raw.decode(self.fallback_encoding, errors='replace'), self.fallback_encoding, False

    def _detect_encoding(self, raw: bytes) -> Optional[str]:
        """Detect encoding of content."""
        if not raw:
            return None

        result = chardet.detect(raw)

        if result['encoding'] and result['confidence'] > self.min_confidence:
            encoding = result['encoding'].lower()
            # ASCII is a subset of UTF-8
            if encoding == 'ascii':
                return 'utf-8'
            return encoding

        return None
