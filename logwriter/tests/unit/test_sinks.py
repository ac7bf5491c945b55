"""Tests for terminal writers."""

import io
import os

import pytest

from logwriter.core.errors import WriterClosedError
from logwriter.core.sinks import Discard, DiscardWriter, FileWriter, NopCloserFile


class TestDiscardWriter:
    """Test DiscardWriter."""

    def test_write(self):
        """Test writes report their length and are dropped."""
        writer = DiscardWriter()

        assert writer.write(b"") == 0
        assert writer.write(b"hello") == 5
        assert writer.write(bytearray(1 << 20)) == 1 << 20

    def test_write_after_close(self):
        """Test writes after close raise WriterClosedError."""
        writer = DiscardWriter()
        writer.close()

        with pytest.raises(WriterClosedError):
            writer.write(b"write to closed file")

    def test_shared_instance(self):
        """Test the module-level instance is a DiscardWriter."""
        assert isinstance(Discard, DiscardWriter)
        assert Discard.write(b"hello") == 5


class TestNopCloserFile:
    """Test NopCloserFile."""

    def test_writes_to_binary_buffer_of_text_stream(self):
        """Test text streams are written through their binary buffer."""
        stream = io.TextIOWrapper(io.BytesIO(), encoding="utf-8")
        writer = NopCloserFile(stream)

        stream.write("text first\n")
        assert writer.write(b"bytes second\n") == 13

        assert stream.buffer.getvalue() == b"text first\nbytes second\n"

    def test_close_keeps_stream_open(self):
        """Test close() leaves the wrapped stream usable."""
        stream = io.BytesIO()
        writer = NopCloserFile(stream)

        writer.close()
        writer.write(b"still open")

        assert not stream.closed
        assert stream.getvalue() == b"still open"


class TestFileWriter:
    """Test FileWriter."""

    FLAGS = os.O_WRONLY | os.O_CREAT | os.O_APPEND

    def test_append(self, temp_dir):
        """Test writes are appended to existing content."""
        path = temp_dir / "app.log"
        path.write_bytes(b"existing\n")

        writer = FileWriter(str(path), self.FLAGS, 0o644)
        assert writer.write(b"appended\n") == 9
        writer.close()

        assert path.read_bytes() == b"existing\nappended\n"

    def test_closed(self, temp_dir):
        """Test use after close raises WriterClosedError."""
        writer = FileWriter(str(temp_dir / "app.log"), self.FLAGS, 0o644)
        writer.close()

        with pytest.raises(WriterClosedError):
            writer.write(b"late")
        with pytest.raises(WriterClosedError):
            writer.close()

    def test_open_failure(self, temp_dir):
        """Test a missing parent directory raises OSError."""
        with pytest.raises(OSError):
            FileWriter(str(temp_dir / "missing" / "app.log"), self.FLAGS, 0o644)
