"""Tests for the persisted installation identity."""

import uuid
from unittest.mock import patch

from meili_analytics.telemetry import ErrorKind, ErrorSink, IdentityStore, load_identity


def test_existing_identity_is_reused(tmp_path):
    id_file = tmp_path / "user-id"
    id_file.write_text("abc-123")

    identity, first_run = load_identity(id_file)

    assert identity == "abc-123"
    assert first_run is False
    assert id_file.read_text() == "abc-123"


def test_trailing_newline_is_ignored(tmp_path):
    id_file = tmp_path / "user-id"
    id_file.write_text("abc-123\n")

    identity, first_run = load_identity(id_file)

    assert identity == "abc-123"
    assert first_run is False


def test_missing_file_creates_and_persists_identity(tmp_path):
    id_file = tmp_path / "data.ms" / "user-id"

    identity, first_run = load_identity(id_file)

    assert first_run is True
    assert uuid.UUID(identity).version == 4
    assert id_file.read_text() == identity


def test_identity_is_stable_across_restarts(tmp_path):
    id_file = tmp_path / "user-id"

    first, first_run = load_identity(id_file)
    second, second_run = load_identity(id_file)

    assert first == second
    assert first_run is True
    assert second_run is False


def test_empty_file_is_treated_as_missing(tmp_path):
    id_file = tmp_path / "user-id"
    id_file.write_text("")

    identity, first_run = load_identity(id_file)

    assert first_run is True
    assert uuid.UUID(identity)


def test_unreadable_file_creates_new_identity(tmp_path):
    id_file = tmp_path / "user-id"
    id_file.write_bytes(b"\xff\xfe\xfa")

    sink = ErrorSink()

    identity, first_run = load_identity(id_file, sink)

    assert first_run is True
    assert uuid.UUID(identity)
    assert sink.count(ErrorKind.IDENTITY_STORAGE) == 1


def test_missing_file_is_not_an_error(tmp_path):
    sink = ErrorSink()

    load_identity(tmp_path / "user-id", sink)

    assert sink.count(ErrorKind.IDENTITY_STORAGE) == 0


def test_write_failure_is_recorded_not_raised(tmp_path):
    sink = ErrorSink()
    store = IdentityStore(tmp_path / "user-id", sink)

    with patch("pathlib.Path.write_text", side_effect=PermissionError("read-only")):
        identity, first_run = store.load()

    assert first_run is True
    assert uuid.UUID(identity)
    assert sink.count(ErrorKind.IDENTITY_STORAGE) == 1
    assert "read-only" in sink.last_messages[ErrorKind.IDENTITY_STORAGE]
