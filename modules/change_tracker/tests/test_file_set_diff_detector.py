"""
Unit tests for FileSetDiffDetector and filename derivation.

Tests added/removed file references per field, pending local uploads, and
display filenames derived from persisted storage URLs.
"""

import pytest
from datetime import datetime
from pathlib import PurePosixPath
from types import SimpleNamespace

from modules.change_tracker.change_detection import (
    FileSetDiffDetector,
    FileChangeType,
    extract_filename,
    UNKNOWN_FILENAME
)
from modules.change_tracker.change_detection.file_set_diff_detector import pending_upload_filename
from modules.change_tracker.models import (
    FileFieldMapping,
    PendingUploadSlot,
    ChangeTrackingRegistry
)

STORAGE_URL = (
    "https://storage.example.org/event_requests/evt-1/"
    "1712345_Room%20Booking.pdf?alt=media&token=abc"
)


@pytest.fixture
def detector():
    return FileSetDiffDetector()


@pytest.fixture
def room_booking_field():
    return [FileFieldMapping(field="roomBookingFiles", label="Room Booking Files")]


class TestExtractFilename:
    """Test extract_filename function."""

    def test_plain_filename(self):
        """Test a bare filename without path or prefix."""
        assert extract_filename("a.pdf") == "a.pdf"

    def test_storage_url(self):
        """Test that query string, prefix and encoding are removed."""
        assert extract_filename(STORAGE_URL) == "Room Booking.pdf"

    def test_strips_only_first_prefix(self):
        """Test that underscores after the upload prefix are kept."""
        assert extract_filename("https://cdn.example.org/files/99_event_logo_final.png") == "event_logo_final.png"

    def test_fragment_removed(self):
        """Test that URL fragments are not part of the filename."""
        assert extract_filename("https://cdn.example.org/1_flyer.pdf#page=2") == "flyer.pdf"

    @pytest.mark.parametrize("reference", [
        None,
        42,
        "",
        "https://cdn.example.org/files/",
        "https://cdn.example.org/1_",
        "https://cdn.example.org/1_%FF%FE.pdf",
    ])
    def test_unparseable_reference(self, reference):
        """Test that unusable references yield the placeholder name."""
        assert extract_filename(reference) == UNKNOWN_FILENAME


class TestPendingUploadFilename:
    """Test pending_upload_filename function."""

    @pytest.mark.parametrize("handle,expected", [
        ({"name": "poster.png"}, "poster.png"),
        (SimpleNamespace(name="/tmp/uploads/booking.pdf"), "booking.pdf"),
        (PurePosixPath("/tmp/logo.svg"), "logo.svg"),
        ("receipt.jpg", "receipt.jpg"),
        ({"size": 10}, UNKNOWN_FILENAME),
        (object(), UNKNOWN_FILENAME),
    ])
    def test_handle_shapes(self, handle, expected):
        """Test the supported local file handle shapes."""
        assert pending_upload_filename(handle) == expected


class TestFileSetDiffDetector:
    """Test FileSetDiffDetector.detect."""

    def test_removed_file(self, detector, room_booking_field):
        """Test that clearing a file field reports the removed file."""
        changes = detector.detect(
            {"roomBookingFiles": ["a.pdf"]}, {"roomBookingFiles": []}, room_booking_field
        )

        assert len(changes) == 1
        assert changes[0].change_type == FileChangeType.REMOVED
        assert changes[0].filename == "a.pdf"
        assert changes[0].url == "a.pdf"
        assert changes[0].field == "roomBookingFiles"

    def test_unchanged_files(self, detector, room_booking_field):
        """Test that identical reference lists report nothing."""
        snapshot = {"roomBookingFiles": [STORAGE_URL]}

        assert detector.detect(snapshot, {"roomBookingFiles": [STORAGE_URL]}, room_booking_field) == []

    def test_reordering_is_not_a_change(self, detector, room_booking_field):
        """Test that file fields compare as sets."""
        changes = detector.detect(
            {"roomBookingFiles": ["1_a.pdf", "2_b.pdf"]},
            {"roomBookingFiles": ["2_b.pdf", "1_a.pdf"]},
            room_booking_field
        )

        assert changes == []

    def test_removed_reported_before_added(self, detector, room_booking_field):
        """Test that a replaced file yields a removal then an addition."""
        changes = detector.detect(
            {"roomBookingFiles": ["1_old.pdf"]},
            {"roomBookingFiles": ["2_new.pdf"]},
            room_booking_field
        )

        assert [(c.change_type, c.filename) for c in changes] == [
            (FileChangeType.REMOVED, "old.pdf"),
            (FileChangeType.ADDED, "new.pdf"),
        ]

    def test_missing_field_reads_as_empty(self, detector, room_booking_field):
        """Test that an absent file field is an empty set."""
        changes = detector.detect({}, {"roomBookingFiles": ["1_a.pdf"]}, room_booking_field)

        assert [c.change_type for c in changes] == [FileChangeType.ADDED]

    def test_single_string_reference(self, detector, room_booking_field):
        """Test that a field holding one reference string is a one-element set."""
        changes = detector.detect(
            {"roomBookingFiles": "1_a.pdf"}, {"roomBookingFiles": ["1_a.pdf"]}, room_booking_field
        )

        assert changes == []

    def test_duplicate_references_counted_once(self, detector, room_booking_field):
        """Test that a reference repeated in a list is added once."""
        changes = detector.detect({}, {"roomBookingFiles": ["1_a.pdf", "1_a.pdf"]}, room_booking_field)

        assert len(changes) == 1

    def test_unsupported_field_value_ignored(self, detector, room_booking_field, caplog):
        """Test that a non-list field value is ignored with a warning."""
        changes = detector.detect({"roomBookingFiles": {"url": "x"}}, {}, room_booking_field)

        assert changes == []
        assert "Ignoring file field value of type dict" in caplog.text

    def test_non_string_references_skipped(self, detector, room_booking_field, caplog):
        """Test that non-string list elements are skipped instead of reported without a url."""
        live = {"roomBookingFiles": ["1_a.pdf", {"url": "1_b.pdf"}, 42, None]}

        changes = detector.detect({}, live, room_booking_field)

        assert [(c.filename, c.url) for c in changes] == [("a.pdf", "1_a.pdf")]
        assert "Ignoring non-string file reference of type dict" in caplog.text
        assert "Ignoring non-string file reference of type int" in caplog.text

    def test_bytes_field_value_ignored(self, detector, room_booking_field, caplog):
        """Test that a byte string is not iterated as a sequence of references."""
        changes = detector.detect({}, {"roomBookingFiles": b"1_a.pdf"}, room_booking_field)

        assert changes == []
        assert "Ignoring file field value of type bytes" in caplog.text

    def test_fields_reported_in_registry_order(self, detector):
        """Test that each file field is processed in registry order."""
        registry = ChangeTrackingRegistry()
        live = {
            "existingInvoiceFiles": ["1_receipt.pdf"],
            "existingRoomBookingFiles": ["2_booking.pdf"],
        }

        changes = detector.detect({}, live, registry.file_fields)

        assert [c.field for c in changes] == ["existingRoomBookingFiles", "existingInvoiceFiles"]

    def test_pending_uploads(self, detector):
        """Test that local files in pending upload slots are reported as added."""
        slots = [
            PendingUploadSlot(field="roomBookingFile", label="Room Booking File"),
            PendingUploadSlot(field="otherLogoFiles", label="Other Logo Files", multiple=True),
        ]
        live = {
            "roomBookingFile": {"name": "booking.pdf"},
            "otherLogoFiles": [{"name": "logo1.png"}, None, {"name": "logo2.png"}],
        }

        changes = detector.detect({}, live, [], slots)

        assert [c.filename for c in changes] == ["booking.pdf", "logo1.png", "logo2.png"]
        assert all(c.change_type == FileChangeType.ADDED for c in changes)
        assert all(c.is_pending_upload for c in changes)

    def test_empty_pending_slots_ignored(self, detector):
        """Test that empty or missing upload slots report nothing."""
        slots = [PendingUploadSlot(field="otherLogoFiles", label="Other Logo Files", multiple=True)]

        assert detector.detect({}, {"otherLogoFiles": []}, [], slots) == []
        assert detector.detect({}, {}, [], slots) == []

    def test_pending_uploads_follow_file_fields(self, detector, room_booking_field):
        """Test that pending uploads come after persisted file changes."""
        slots = [PendingUploadSlot(field="roomBookingFile", label="Room Booking File")]
        timestamp = datetime(2024, 3, 1)

        changes = detector.detect(
            {"roomBookingFiles": ["1_a.pdf"]},
            {"roomBookingFiles": [], "roomBookingFile": {"name": "b.pdf"}},
            room_booking_field, slots, timestamp
        )

        assert [(c.change_type, c.filename, c.url) for c in changes] == [
            (FileChangeType.REMOVED, "a.pdf", "1_a.pdf"),
            (FileChangeType.ADDED, "b.pdf", None),
        ]
        assert {c.timestamp for c in changes} == {timestamp}
