"""Unit tests for grievance create, status update, delete and attachment lookup."""

import io
import os
import tempfile
import unittest
from datetime import datetime
from unittest.mock import MagicMock, patch

from sqlalchemy.exc import SQLAlchemyError

from grievance_tracker.core.config import get_settings
from grievance_tracker.core.errors import (
    BadRequest,
    Forbidden,
    Internal,
    InvalidStatus,
    NotFound,
)
from grievance_tracker.models import Grievance, GrievanceFile
from grievance_tracker.services.grievances import (
    IncomingFile,
    create_grievance,
    delete_grievance,
    fetch_file,
    update_status,
)
from grievance_tracker.services.storage import LocalFileStorage, StorageError
from tests.support import add_grievance, add_user, make_sessionmaker, naive, subject_for


def _file(name: str = "photo.png", content: bytes = b"\x89PNG data", content_type: str = "image/png") -> IncomingFile:
    return IncomingFile(original_name=name, content_type=content_type, stream=io.BytesIO(content))


class _LifecycleTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_sessionmaker()()
        self._tmp = tempfile.TemporaryDirectory()
        self.upload_dir = os.path.join(self._tmp.name, "uploads")
        self.storage = LocalFileStorage(self.upload_dir)
        self.settings = get_settings()
        self.alice = add_user(self.db, "alice@example.com", name="Alice")
        self.bob = add_user(self.db, "bob@example.com")
        self.admin = add_user(self.db, "admin@example.com", role="admin")

    def tearDown(self) -> None:
        self.db.close()
        self._tmp.cleanup()

    def _stored_files(self) -> list[str]:
        if not os.path.isdir(self.upload_dir):
            return []
        return os.listdir(self.upload_dir)

    def _create(self, files=None, title="Broken chair", description="leg snapped"):
        return create_grievance(
            self.db,
            self.storage,
            subject_for(self.alice),
            title,
            description,
            files,
            self.settings,
        )


class TestCreateGrievance(_LifecycleTestCase):
    def test_create_without_files(self) -> None:
        out = self._create()
        self.assertEqual(out.title, "Broken chair")
        self.assertEqual(out.description, "leg snapped")
        self.assertEqual(out.status, "open")
        self.assertEqual(out.files, [])
        self.assertEqual(out.created_by.email, "alice@example.com")

    def test_long_title_is_stored_whole(self) -> None:
        title = "Broken chair " * 60
        out = self._create(title=title)
        self.assertEqual(out.title, title.strip())
        self.assertIsNone(Grievance.__table__.c.title.type.length)

    def test_title_and_description_are_trimmed(self) -> None:
        out = self._create(title="  Broken chair  ", description="\tleg snapped\n")
        self.assertEqual((out.title, out.description), ("Broken chair", "leg snapped"))

    def test_blank_title_or_description_rejected(self) -> None:
        for title, description in (("", "x"), ("   ", "x"), ("x", ""), ("x", "  "), (None, None)):
            with self.subTest(title=title, description=description):
                with self.assertRaises(BadRequest):
                    self._create(title=title, description=description)
        self.assertEqual(self.db.query(Grievance).count(), 0)

    def test_files_are_stored_in_order(self) -> None:
        out = self._create(files=[_file("a.png", b"aaa"), _file("b.pdf", b"bbbbb", "application/pdf")])
        self.assertEqual([f.original_name for f in out.files], ["a.png", "b.pdf"])
        self.assertEqual([f.size for f in out.files], [3, 5])
        self.assertEqual(out.files[1].mimetype, "application/pdf")
        self.assertTrue(out.files[0].filename.endswith(".png"))
        self.assertEqual(
            out.files[0].path,
            f"{self.settings.API_PREFIX}/grievances/files/{out.files[0].filename}",
        )
        self.assertEqual(sorted(self._stored_files()), sorted(f.filename for f in out.files))

    def test_six_files_rejected_before_any_write(self) -> None:
        files = [_file(f"f{i}.txt", b"x", "text/plain") for i in range(6)]
        with self.assertRaises(BadRequest):
            self._create(files=files)
        self.assertEqual(self._stored_files(), [])
        self.assertEqual(self.db.query(GrievanceFile).count(), 0)
        self.assertEqual(self.db.query(Grievance).count(), 0)

    def test_five_files_accepted(self) -> None:
        files = [_file(f"f{i}.txt", b"x", "text/plain") for i in range(5)]
        out = self._create(files=files)
        self.assertEqual(len(out.files), 5)

    def test_disallowed_extension_rejected_before_any_write(self) -> None:
        with self.assertRaises(BadRequest):
            self._create(files=[_file("ok.png"), _file("run.exe", b"MZ", "application/octet-stream")])
        self.assertEqual(self._stored_files(), [])

    def test_oversized_file_removes_staged_files(self) -> None:
        self.settings = self.settings.model_copy(update={"UPLOAD_MAX_FILE_BYTES": 4})
        big = b"x" * 5
        with self.assertRaises(BadRequest):
            self._create(files=[_file("small.txt", b"ok", "text/plain"), _file("big.txt", big, "text/plain")])
        self.assertEqual(self._stored_files(), [])
        self.assertEqual(self.db.query(Grievance).count(), 0)

    def test_commit_failure_removes_staged_files(self) -> None:
        with patch.object(self.db, "commit", side_effect=SQLAlchemyError("disk full")):
            with self.assertRaises(Internal):
                self._create(files=[_file("a.png"), _file("b.png")])
        self.assertEqual(self._stored_files(), [])

    def test_unexpected_failure_removes_staged_files_and_propagates(self) -> None:
        with patch.object(self.db, "commit", side_effect=RuntimeError("boom")):
            with self.assertRaises(RuntimeError):
                self._create(files=[_file("a.png")])
        self.assertEqual(self._stored_files(), [])

    def test_storage_failure_midway_removes_earlier_files(self) -> None:
        real_save = self.storage.save
        calls = {"n": 0}

        def flaky_save(stream, original_name, max_bytes=None):
            calls["n"] += 1
            if calls["n"] == 2:
                raise StorageError("no space left on device")
            return real_save(stream, original_name, max_bytes=max_bytes)

        with patch.object(self.storage, "save", side_effect=flaky_save):
            with self.assertRaises(Internal):
                self._create(files=[_file("a.png"), _file("b.png"), _file("c.png")])
        self.assertEqual(self._stored_files(), [])


class TestUpdateStatus(_LifecycleTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.grievance = add_grievance(self.db, self.alice, created_at=datetime(2020, 1, 1))

    def test_sets_status_and_bumps_updated_at(self) -> None:
        out = update_status(self.db, self.grievance.id, "resolved")
        self.assertEqual(out.status, "resolved")
        self.assertGreater(naive(out.updated_at), datetime(2020, 1, 1))
        self.assertEqual(naive(out.created_at), datetime(2020, 1, 1))

    def test_status_is_normalized(self) -> None:
        self.assertEqual(update_status(self.db, self.grievance.id, "  Rejected ").status, "rejected")

    def test_unknown_status_rejected_and_row_unchanged(self) -> None:
        for value in ("closed", "", None, "open-ish"):
            with self.subTest(value=value):
                with self.assertRaises(InvalidStatus):
                    update_status(self.db, self.grievance.id, value)
        self.db.refresh(self.grievance)
        self.assertEqual(self.grievance.status, "open")

    def test_invalid_status_is_bad_request(self) -> None:
        self.assertTrue(issubclass(InvalidStatus, BadRequest))
        self.assertEqual(InvalidStatus().status_code, 400)

    def test_missing_grievance(self) -> None:
        with self.assertRaises(NotFound):
            update_status(self.db, 999_999, "resolved")

    def test_reopen(self) -> None:
        update_status(self.db, self.grievance.id, "resolved")
        self.assertEqual(update_status(self.db, self.grievance.id, "open").status, "open")


class TestDeleteGrievance(_LifecycleTestCase):
    def test_removes_record_files_and_rows(self) -> None:
        out = self._create(files=[_file("a.png"), _file("b.png")])
        delete_grievance(self.db, self.storage, out.id)
        self.assertIsNone(self.db.get(Grievance, out.id))
        self.assertEqual(self.db.query(GrievanceFile).count(), 0)
        self.assertEqual(self._stored_files(), [])

    def test_file_removal_failure_is_not_fatal(self) -> None:
        out = self._create(files=[_file("a.png")])
        with patch.object(self.storage, "delete", side_effect=StorageError("busy")):
            with self.assertLogs("grievance_tracker.services.grievances", level="WARNING"):
                delete_grievance(self.db, self.storage, out.id)
        self.assertIsNone(self.db.get(Grievance, out.id))

    def test_vanished_record_is_not_found(self) -> None:
        with self.assertRaises(NotFound):
            delete_grievance(self.db, self.storage, 999_999)


class TestFetchFile(_LifecycleTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.out = self._create(files=[_file("scan.pdf", b"%PDF-1.7", "application/pdf")])
        self.filename = self.out.files[0].filename

    def test_owner_gets_location(self) -> None:
        found = fetch_file(self.db, self.storage, subject_for(self.alice), self.filename)
        self.assertTrue(found.location.is_file())
        self.assertEqual(found.location.read_bytes(), b"%PDF-1.7")
        self.assertEqual(found.original_name, "scan.pdf")
        self.assertEqual(found.mimetype, "application/pdf")

    def test_admin_allowed(self) -> None:
        found = fetch_file(self.db, self.storage, subject_for(self.admin), self.filename)
        self.assertEqual(found.original_name, "scan.pdf")

    def test_other_user_forbidden(self) -> None:
        with self.assertRaises(Forbidden) as ctx:
            fetch_file(self.db, self.storage, subject_for(self.bob), self.filename)
        self.assertEqual(ctx.exception.message, Forbidden.default_message)

    def test_unknown_filename_not_found(self) -> None:
        with self.assertRaises(NotFound):
            fetch_file(self.db, self.storage, subject_for(self.admin), "does-not-exist.pdf")

    def test_missing_bytes_not_found(self) -> None:
        os.remove(os.path.join(self.upload_dir, self.filename))
        with self.assertRaises(NotFound):
            fetch_file(self.db, self.storage, subject_for(self.alice), self.filename)


class TestLocalFileStorage(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.storage = LocalFileStorage(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_generated_names_are_unique_and_keep_extension(self) -> None:
        a = self.storage.save(io.BytesIO(b"1"), "Report.PDF")
        b = self.storage.save(io.BytesIO(b"2"), "Report.PDF")
        self.assertNotEqual(a.filename, b.filename)
        self.assertTrue(a.filename.endswith(".pdf"))

    def test_delete_missing_is_noop(self) -> None:
        self.storage.delete("never-existed.txt")

    def test_locate_rejects_path_traversal(self) -> None:
        for name in ("../etc/passwd", "a/b.txt", "..", ""):
            with self.subTest(name=name):
                with self.assertRaises(StorageError):
                    self.storage.locate(name)

    def test_os_error_on_write_is_storage_error(self) -> None:
        stream = MagicMock()
        stream.read.side_effect = OSError("read failed")
        with self.assertRaises(StorageError):
            self.storage.save(stream, "a.txt")
        self.assertEqual(os.listdir(self._tmp.name), [])


if __name__ == "__main__":
    unittest.main()
