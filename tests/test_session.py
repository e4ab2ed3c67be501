"""End-to-end tests for session decoding."""

import asyncio
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional

import pytest

from blueprint_storage.decoder import (
    DecodeObserver,
    DecodeOptions,
    decode,
    decode_bytes,
    decode_file,
    decode_file_sync,
)
from blueprint_storage.decoder.errors import (
    DecodeError,
    DrainTimeoutError,
    ObserverError,
    StreamReadError,
    StructuralError,
    TrailingDataError,
    UnsupportedVersionError,
)
from blueprint_storage.models import DecodedSession, DictionaryHeader, TrailingValidation, Version
from support import (
    SAVE_TIME,
    V1_1,
    RecordingObserver,
    StreamBuilder,
    blueprint_slot,
    library,
    prelude,
    storage,
    trailer,
)


def decode_data(
    data: bytes, observer: Optional[DecodeObserver] = None, **options: Any
) -> DecodedSession:
    return asyncio.run(decode_bytes(data, observer, DecodeOptions(**options)))


class TestMinimalStream:
    """Test the smallest valid streams."""

    def test_minimal_2_0_stream(self) -> None:
        """Test a 2.0 stream with one dictionary entry and no library objects."""
        data = (
            prelude(expansions={}, groups=[("item", [(1, "iron-plate")])])
            + library()
            + trailer()
        )
        session = decode_data(data)

        assert session.version == Version(2, 0, 0, 0)
        assert session.blueprints == ()
        assert session.expansions == {}
        assert session.dictionary_header == DictionaryHeader("", 0, "")
        assert session.player_index == 1
        assert session.generation_counter == 7
        assert session.save_time == datetime.fromtimestamp(SAVE_TIME, tz=timezone.utc)
        assert session.trailing == TrailingValidation(
            trailer_present=True, saved_targetables_count=0
        )

    def test_expansions(self) -> None:
        """Test mod names keep their file lists."""
        data = storage(expansions={"base": [], "space-age": ["a.dat", "b.dat"]})
        session = decode_data(data)
        assert session.expansions == {"base": (), "space-age": ("a.dat", "b.dat")}

    def test_1_1_stream_has_no_trailer(self) -> None:
        """Test pre-1.2 streams end after the library objects."""
        session = decode_data(storage(blueprint_slot("Old"), version=V1_1))
        assert session.version == Version(1, 1, 0, 0)
        assert session.trailing.trailer_present is False
        assert session.save_time == datetime.fromtimestamp(SAVE_TIME, tz=timezone.utc)

    def test_trailer_threshold_skips_targetables_count(self) -> None:
        """Test the first trailer version has no saved targetables count."""
        version = (1, 2, 0, 0xA7)
        session = decode_data(storage(version=version))
        assert session.trailing.trailer_present is True
        assert session.trailing.saved_targetables_count is None


class TestVersionGates:
    """Test version and header checks."""

    @pytest.mark.parametrize("version", [(1, 0, 0, 0), (0, 18, 0, 0)])
    def test_old_versions(self, version: tuple[int, int, int, int]) -> None:
        """Test versions at or below 1.0.0 are unsupported."""
        with pytest.raises(UnsupportedVersionError):
            decode_data(storage(version=version))

    def test_branch_byte(self) -> None:
        """Test a nonzero branch byte fails the decode."""
        data = bytearray(storage())
        data[8] = 1
        with pytest.raises(StructuralError, match="branch"):
            decode_data(bytes(data))

    def test_initial_zero_byte(self) -> None:
        """Test the reserved byte after the version must be zero."""
        data = bytearray(storage())
        data[9] = 1
        with pytest.raises(StructuralError):
            decode_data(bytes(data))

    def test_newer_major_version_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test unknown major versions decode with a warning."""
        caplog.set_level("WARNING", logger="blueprint_storage")
        session = decode_data(storage(version=(3, 0, 0, 0)))
        assert session.version.major == 3
        assert "greater than 2" in caplog.text

    def test_unsynchronized(self) -> None:
        """Test unsynchronized libraries are unsupported."""
        with pytest.raises(UnsupportedVersionError, match="Unsynchronized"):
            decode_data(storage(synchronized=False))

    def test_nonzero_targetables_count(self) -> None:
        """Test unimplemented trailer content fails the decode."""
        data = prelude() + library() + StreamBuilder().count(1).count(0).u8(0).build()
        with pytest.raises(UnsupportedVersionError, match="savedTargetablesCount"):
            decode_data(data)

    def test_targeter_mappings(self) -> None:
        data = prelude() + library() + StreamBuilder().count(0).count(1).u32(5).u8(0).build()
        with pytest.raises(UnsupportedVersionError, match="targeterToTargetableMapping"):
            decode_data(data)


class TestCorruptInput:
    """Test rejection of streams that are not blueprint storage."""

    def test_zero_bytes(self) -> None:
        """Test 100 zero bytes fail instead of producing a session."""
        with pytest.raises(DecodeError):
            decode_data(bytes(100))

    def test_json_text(self) -> None:
        """Test JSON text is rejected as structurally invalid."""
        data = b'{"blueprint_book": {"blueprints": [], "label": "x"}}\n'
        with pytest.raises(StructuralError):
            decode_data(data)

    @pytest.mark.parametrize("cut", [0, 5, 9, 40])
    def test_truncated(self, cut: int) -> None:
        """Test truncated streams fail with a decode error."""
        with pytest.raises(DecodeError):
            decode_data(storage(blueprint_slot("A"))[:cut])

    def test_trailing_garbage(self) -> None:
        """Test bytes after a complete session are reported."""
        with pytest.raises(TrailingDataError) as info:
            decode_data(storage() + b"\xde\xad")
        assert info.value.remaining == 2

    def test_trailing_garbage_is_observed(self) -> None:
        """Test leftover bytes are reported to the observer."""
        observer = RecordingObserver()
        with pytest.raises(TrailingDataError):
            decode_data(storage() + b"\xde\xad", observer)
        assert ("push", "RemainingData") in observer.events
        assert observer.reads()[-1][1] == b"\xde\xad"

    def test_drain_timeout(self) -> None:
        """Test a stream that never ends times out while draining."""
        async def scenario() -> None:
            reader = asyncio.StreamReader()
            reader.feed_data(storage())
            await decode(reader, options=DecodeOptions(drain_timeout=0.05))

        with pytest.raises(DrainTimeoutError):
            asyncio.run(scenario())

    def test_read_ceiling(self) -> None:
        """Test oversized length fields fail fast."""
        data = storage(blueprint_slot("A", payload=b"x" * 64))
        with pytest.raises(StructuralError, match="too large"):
            decode_data(data, max_read_size=32)


class TestObservers:
    """Test observer integration."""

    def test_labels_are_balanced(self, sample_storage: bytes) -> None:
        """Test every pushed label is popped in reverse order."""
        observer = RecordingObserver()
        decode_data(sample_storage, observer)

        stack: List[str] = []
        for kind, value in observer.events:
            if kind == "push":
                stack.append(value)  # type: ignore[arg-type]
            elif kind == "pop":
                assert stack.pop() == value
        assert stack == []

    def test_reads_cover_stream(self, sample_storage: bytes) -> None:
        """Test observed reads are contiguous and cover the whole stream."""
        observer = RecordingObserver()
        decode_data(sample_storage, observer)

        expected = 0
        for position, data in observer.reads():
            assert position == expected
            expected += len(data)
        assert expected == len(sample_storage)

    def test_failing_observer_does_not_change_result(self, sample_storage: bytes) -> None:
        """Test observer errors are contained."""
        class Broken(DecodeObserver):
            def pop_label(self, label: str) -> None:
                raise ObserverError("broken")

        assert decode_data(sample_storage, Broken()) == decode_data(sample_storage)


class TestEntryPoints:
    """Test file and concurrent decoding."""

    def test_decode_file(self, sample_file: Path, sample_storage: bytes) -> None:
        """Test files decode the same as in-memory bytes."""
        session = asyncio.run(decode_file(sample_file, options=DecodeOptions(chunk_size=7)))
        assert session == decode_data(sample_storage)

    def test_decode_file_sync(self, sample_file: Path) -> None:
        session = decode_file_sync(sample_file)
        assert len(session.blueprints) == 3

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test a missing file is a stream failure."""
        with pytest.raises(StreamReadError):
            decode_file_sync(tmp_path / "missing.dat")

    def test_concurrent_decodes(self, sample_storage: bytes) -> None:
        """Test independent sessions decoded together do not interfere."""
        other = storage(blueprint_slot("Other", payload=b"\x05"))

        async def scenario() -> List[DecodedSession]:
            return list(await asyncio.gather(
                decode_bytes(sample_storage),
                decode_bytes(other),
                decode_bytes(sample_storage),
            ))

        first, second, third = asyncio.run(scenario())
        assert first == third
        assert second.blueprints[0].label == "Other"  # type: ignore[union-attr]
        assert len(first.blueprints) == 3
