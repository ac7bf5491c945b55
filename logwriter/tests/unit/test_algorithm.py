"""Tests for compression algorithms."""

import gzip
import traceback
import zlib

import pytest
import zstandard

from logwriter.core.algorithm import (
    GzipAlgorithm,
    NopAlgorithm,
    ZstdAlgorithm,
    algorithm_for_path,
)
from logwriter.core.errors import CodecError

ALGORITHMS = [NopAlgorithm, GzipAlgorithm, ZstdAlgorithm]

SAMPLES = [
    b"",
    b"aaaa",
    b"2024-05-01 10:20:30 INFO request handled in 12ms\n" * 200,
    bytes(range(256)) * 8,
]


def roundtrip(algorithm, data: bytes) -> bytes:
    compressed = bytearray()
    algorithm.compress(data, compressed)
    plain = bytearray()
    algorithm.decompress(bytes(compressed), plain)
    return bytes(plain)


@pytest.mark.parametrize("algorithm_class", ALGORITHMS)
class TestAlgorithmContract:
    """Properties shared by every algorithm."""

    @pytest.mark.parametrize("data", SAMPLES)
    def test_roundtrip(self, algorithm_class, data):
        """Test decompress(compress(s)) == s."""
        assert roundtrip(algorithm_class(), data) == data

    def test_concatenated_frames(self, algorithm_class):
        """Test concatenated frames decompress to concatenated inputs."""
        algorithm = algorithm_class()

        stream = bytearray()
        algorithm.compress(b"first frame\n", stream)
        algorithm.compress(b"", stream)
        algorithm.compress(b"second frame\n", stream)

        plain = bytearray()
        algorithm.decompress(bytes(stream), plain)

        assert bytes(plain) == b"first frame\nsecond frame\n"

    def test_compress_appends_to_output(self, algorithm_class):
        """Test compress() keeps existing output bytes."""
        algorithm = algorithm_class()
        out = bytearray(b"prefix")

        algorithm.compress(b"data", out)

        assert out.startswith(b"prefix")
        assert len(out) > len(b"prefix")

    def test_encoder_reused_across_calls(self, algorithm_class):
        """Test many frames from one instance stay independent."""
        algorithm = algorithm_class()

        for i in range(20):
            data = f"message {i}\n".encode() * (i + 1)
            assert roundtrip(algorithm, data) == data


class TestNopAlgorithm:
    """Test pass-through algorithm."""

    def test_copies_verbatim(self):
        """Test input is copied unchanged."""
        out = bytearray()
        NopAlgorithm().compress(b"hello", out)

        assert bytes(out) == b"hello"


class TestGzipAlgorithm:
    """Test gzip algorithm."""

    def test_frame_is_gzip_member(self):
        """Test every frame is readable by the gzip module."""
        out = bytearray()
        GzipAlgorithm().compress(b"hello world" * 100, out)

        assert out[:2] == b"\x1f\x8b"
        assert gzip.decompress(bytes(out)) == b"hello world" * 100

    def test_compresses(self):
        """Test repetitive data shrinks."""
        out = bytearray()
        GzipAlgorithm().compress(b"a" * 10000, out)

        assert len(out) / 10000 < 0.1

    def test_invalid_input(self):
        """Test garbage input raises CodecError."""
        with pytest.raises(CodecError):
            GzipAlgorithm().decompress(b"not gzip data", bytearray())

    def test_init_failure_is_cached(self, monkeypatch):
        """Test a failed deflate setup is raised again without retry."""
        calls = []

        def broken_compressobj(*args, **kwargs):
            calls.append(args)
            raise zlib.error("bad compression level")

        monkeypatch.setattr(zlib, "compressobj", broken_compressobj)
        algorithm = GzipAlgorithm()

        errors = []
        for _ in range(3):
            with pytest.raises(CodecError) as raised:
                algorithm.compress(b"data", bytearray())
            errors.append(raised.value)

        assert all(error is errors[0] for error in errors)
        assert isinstance(errors[0].__cause__, zlib.error)
        assert len(calls) == 1

    def test_cached_failure_traceback_does_not_grow(self, monkeypatch):
        """Test replaying the cached failure keeps a short traceback."""

        def broken_compressobj(*args, **kwargs):
            raise zlib.error("bad compression level")

        monkeypatch.setattr(zlib, "compressobj", broken_compressobj)
        algorithm = GzipAlgorithm()

        for _ in range(500):
            with pytest.raises(CodecError) as raised:
                algorithm.compress(b"data", bytearray())

        assert len(traceback.extract_tb(raised.value.__traceback__)) < 10


class TestZstdAlgorithm:
    """Test zstd algorithm."""

    def test_frame_is_zstd_frame(self):
        """Test every frame is readable by the zstandard module."""
        out = bytearray()
        ZstdAlgorithm().compress(b"hello world" * 100, out)

        assert zstandard.ZstdDecompressor().decompress(bytes(out)) == b"hello world" * 100

    def test_invalid_input(self):
        """Test garbage input raises CodecError."""
        with pytest.raises(CodecError):
            ZstdAlgorithm().decompress(b"not zstd data", bytearray())

    def test_init_failure_is_cached(self, monkeypatch):
        """Test a failed encoder build is raised again without retry."""
        calls = []

        def broken_compressor(*args, **kwargs):
            calls.append(kwargs)
            raise zstandard.ZstdError("no memory")

        monkeypatch.setattr(zstandard, "ZstdCompressor", broken_compressor)
        algorithm = ZstdAlgorithm()

        with pytest.raises(CodecError) as first:
            algorithm.compress(b"data", bytearray())
        with pytest.raises(CodecError) as second:
            algorithm.compress(b"data", bytearray())

        assert first.value is second.value
        assert isinstance(first.value.__cause__, zstandard.ZstdError)
        assert len(calls) == 1

    def test_encoder_built_lazily(self, monkeypatch):
        """Test the encoder is built on first compress, once."""
        calls = []
        real = zstandard.ZstdCompressor

        def counting_compressor(*args, **kwargs):
            calls.append(kwargs)
            return real(*args, **kwargs)

        monkeypatch.setattr(zstandard, "ZstdCompressor", counting_compressor)
        algorithm = ZstdAlgorithm()

        assert calls == []

        algorithm.compress(b"one", bytearray())
        algorithm.compress(b"two", bytearray())

        assert len(calls) == 1


class TestAlgorithmForPath:
    """Test algorithm selection by suffix."""

    def test_zstd_suffix(self):
        """Test .zst selects zstd."""
        assert isinstance(algorithm_for_path("/var/log/app.log.zst"), ZstdAlgorithm)

    def test_gzip_suffix(self):
        """Test .gz selects gzip."""
        assert isinstance(algorithm_for_path("/var/log/app.log.gz"), GzipAlgorithm)

    def test_plain_file(self):
        """Test other names are not compressed."""
        assert algorithm_for_path("/var/log/app.log") is None

    def test_fresh_instance_per_call(self):
        """Test each call returns a new, unshared algorithm."""
        assert algorithm_for_path("a.zst") is not algorithm_for_path("b.zst")
