"""Tests for the file I/O service."""

from __future__ import annotations

import pytest

from dircompare.services import file_io
from dircompare.services.file_io import FileIOService


class TestFileIOServiceReadFile:
    """Tests for FileIOService.read_file."""

    def test_utf8_text(self, tmp_path):
        """Test plain UTF-8 content."""
        path = tmp_path / 'notes.txt'
        path.write_bytes('héllo\nwörld\n'.encode('utf-8'))

        content = FileIOService().read_file(path)

        assert not content.is_binary
        assert content.content == 'héllo\nwörld\n'
        assert content.encoding == 'utf-8'
        assert not content.bom
        assert content.size == len('héllo\nwörld\n'.encode('utf-8'))

    def test_utf8_bom_is_stripped(self, tmp_path):
        """Test that a UTF-8 BOM is detected and removed from the text."""
        path = tmp_path / 'bom.txt'
        path.write_bytes(b'\xef\xbb\xbfabc\n')

        content = FileIOService().read_file(path)

        assert content.content == 'abc\n'
        assert content.encoding == 'utf-8-sig'
        assert content.bom

    def test_binary_extension_is_not_decoded(self, tmp_path):
        """Test that a known binary extension skips decoding."""
        path = tmp_path / 'image.png'
        path.write_bytes(b'just text really')

        content = FileIOService().read_file(path)

        assert content.is_binary
        assert content.content is None

    def test_nul_byte_is_binary(self, tmp_path):
        """Test that a NUL in the leading bytes marks the file binary."""
        path = tmp_path / 'data.bin2'
        path.write_bytes(b'abc\x00def')

        assert FileIOService().read_file(path).is_binary

    def test_missing_file_raises(self, tmp_path):
        """Test that read errors propagate as OSError."""
        with pytest.raises(FileNotFoundError):
            FileIOService().read_file(tmp_path / 'missing.txt')


class TestFileIOServiceDecode:
    """Tests for FileIOService.decode."""

    def test_empty_bytes(self):
        """Test that empty input decodes to empty UTF-8 text."""
        assert FileIOService().decode(b'') == ('', 'utf-8', False)

    def test_detected_encoding_is_used(self, monkeypatch):
        """Test that a confident detection is used for non-UTF-8 bytes."""
        monkeypatch.setattr(
            file_io.chardet, 'detect',
            lambda raw: {'encoding': 'windows-1252', 'confidence': 0.9}
        )

        text, encoding, bom = FileIOService().decode(b'caf\xe9 \x80\n')

        assert text == 'café €\n'
        assert encoding == 'windows-1252'
        assert not bom

    def test_low_confidence_falls_back_to_latin1(self, monkeypatch):
        """Test the lossless latin-1 fallback."""
        monkeypatch.setattr(
            file_io.chardet, 'detect',
            lambda raw: {'encoding': 'windows-1252', 'confidence': 0.3}
        )

        text, encoding, _ = FileIOService().decode(b'caf\xe9\n')

        assert text == 'café\n'
        assert encoding == 'latin-1'

    def test_unknown_detected_encoding_falls_back(self, monkeypatch):
        """Test that an encoding Python does not know is ignored."""
        monkeypatch.setattr(
            file_io.chardet, 'detect',
            lambda raw: {'encoding': 'no-such-codec', 'confidence': 0.99}
        )

        _, encoding, _ = FileIOService().decode(b'caf\xe9\n')

        assert encoding == 'latin-1'

    def test_ascii_detection_maps_to_utf8(self, monkeypatch):
        """Test that ascii detection is reported as utf-8."""
        monkeypatch.setattr(
            file_io.chardet, 'detect',
            lambda raw: {'encoding': 'ascii', 'confidence': 1.0}
        )

        assert FileIOService()._detect_encoding(b'abc') == 'utf-8'
