"""
Unit tests for StagingArea: listing, deleting, uploading and publishing.
"""

import json
import os

import pytest

from shareable.domain.errors import (
    ErrorCategory,
    InvalidTimeExpressionError,
    ItemExistsError,
    NothingUploadedError,
    TimeoutNotSetError,
    UploadSecurityError,
    UploadTransferError,
)
from shareable.domain.inbox import UPLOAD_ERR_NO_FILE, IncomingFile, StagingArea
from shareable.domain.outcomes import OutcomeKind
from tests.fixtures.helpers import DAY, NOW, read_file, write_file


@pytest.fixture
def stage(data_dirs):
    """Put a file into the inbox."""
    def _stage(name: str = "a.txt", content: str = "content") -> str:
        return write_file(os.path.join(data_dirs["inbox"], name), content)

    return _stage


@pytest.fixture
def transfer(data_dirs):
    """Create a transfer as stored by the upload mechanism."""
    counter = iter(range(1000))

    def _transfer(filename: str = "upload.txt", content: str = "uploaded") -> IncomingFile:
        temp_path = write_file(
            os.path.join(data_dirs["upload_tmp"], f"tmp{next(counter)}"), content
        )
        return IncomingFile(filename=filename, temp_path=temp_path)

    return _transfer


def _record(data_dirs, item_id):
    with open(os.path.join(data_dirs["items"], f"{item_id}.json"), encoding="utf-8") as f:
        return json.load(f)


class TestListing:

    def test_listing_skips_dotfiles_and_directories(self, staging_area, stage, data_dirs):
        stage("b.txt", "bb")
        stage("a.txt", "a")
        stage(".hidden")
        os.mkdir(os.path.join(data_dirs["inbox"], "folder"))

        listing = staging_area.listing()

        assert list(listing) == ["a.txt", "b.txt"]
        assert listing["b.txt"].size == 2
        assert set(listing["a.txt"].to_dict()) == {"name", "size", "modified"}

    @pytest.mark.parametrize("name", ["missing.txt", ".hidden", "../items", "", ".incoming"])
    def test_get_rejects_unknown_and_hidden_names(self, staging_area, stage, name):
        stage(".hidden")
        assert staging_area.get(name) is None


class TestDelete:

    def test_delete_staged_file(self, staging_area, stage):
        path = stage()
        outcome = staging_area.handle_delete("a.txt")

        assert outcome.kind == OutcomeKind.OK
        assert not os.path.exists(path)

    def test_delete_missing_file(self, staging_area):
        outcome = staging_area.handle_delete("missing.txt")

        assert outcome.kind == OutcomeKind.NOT_FOUND
        assert outcome.status_code == 404
        assert outcome.category == ErrorCategory.FILE_NOT_FOUND


class TestUpload:

    def test_upload_moves_files_into_inbox(self, staging_area, transfer, data_dirs, make_context):
        first, second = transfer("one.txt", "1"), transfer("two.txt", "2")

        outcome = staging_area.handle_upload([first, second], make_context())

        assert outcome.kind == OutcomeKind.CREATED
        assert read_file(os.path.join(data_dirs["inbox"], "one.txt")) == "1"
        assert read_file(os.path.join(data_dirs["inbox"], "two.txt")) == "2"
        assert not os.path.exists(first.temp_path)

    def test_upload_never_overwrites(self, staging_area, stage, transfer, data_dirs):
        stage("report.txt", "old")

        staging_area.upload([transfer("report.txt", "new")])

        assert read_file(os.path.join(data_dirs["inbox"], "report.txt")) == "old"
        assert read_file(os.path.join(data_dirs["inbox"], "report-1.txt")) == "new"

    @pytest.mark.parametrize(
        "sent, stored",
        [
            ("../../etc/passwd", "passwd"),
            ("C:\\Users\\me\\notes.txt", "notes.txt"),
            (".hidden", "hidden"),
            ("my report.pdf", "my report.pdf"),
            ("Übersicht 2018.pdf", "Übersicht 2018.pdf"),
        ],
    )
    def test_upload_keeps_client_name_without_directories(
        self, staging_area, transfer, data_dirs, sent, stored
    ):
        staging_area.upload([transfer(sent)])

        assert os.path.isfile(os.path.join(data_dirs["inbox"], stored))
        assert staging_area.get(stored) is not None

    @pytest.mark.parametrize("sent", ["..", "dir/", "..."])
    def test_upload_without_a_usable_name(self, staging_area, transfer, sent):
        with pytest.raises(UploadSecurityError):
            staging_area.upload([transfer(sent)])

    def test_nothing_uploaded(self, staging_area):
        with pytest.raises(NothingUploadedError):
            staging_area.upload([])

        outcome = staging_area.handle_upload([], None)
        assert outcome.kind == OutcomeKind.VALIDATION_ERROR
        assert outcome.status_code == 400

    def test_transfer_error(self, staging_area):
        with pytest.raises(UploadTransferError, match='"4"'):
            staging_area.upload([IncomingFile("", None, UPLOAD_ERR_NO_FILE)])

    def test_file_outside_upload_directory_is_rejected(self, staging_area, data_dirs, tmp_path):
        foreign = write_file(tmp_path / "elsewhere" / "secret.txt")

        with pytest.raises(UploadSecurityError):
            staging_area.upload([IncomingFile("secret.txt", foreign)])
        assert os.path.exists(foreign)

    def test_first_failure_aborts_later_files(self, staging_area, transfer, data_dirs):
        good = transfer("good.txt")
        bad = IncomingFile("bad.txt", None, UPLOAD_ERR_NO_FILE)
        later = transfer("later.txt")

        with pytest.raises(UploadTransferError):
            staging_area.upload([good, bad, later])

        assert os.path.exists(os.path.join(data_dirs["inbox"], "good.txt"))
        assert not os.path.exists(os.path.join(data_dirs["inbox"], "later.txt"))


class TestPublish:

    def test_publish_with_defaults(self, staging_area, stage, data_dirs, make_context):
        staged = stage()

        outcome = staging_area.handle_publish("a.txt", make_context())

        assert outcome.kind == OutcomeKind.CREATED
        item_id = outcome.data["item_id"]
        assert outcome.data["filename"] == "a.txt"
        assert _record(data_dirs, item_id) == {
            "activity": None,
            "created": NOW,
            "downloads": 0,
            "expires": None,
            "filename": "a.txt",
            "timeout": None,
            "user": "admin",
        }
        assert not os.path.exists(staged)
        assert read_file(os.path.join(data_dirs["files"], "a.txt")) == "content"

    def test_publish_missing_file(self, staging_area, make_context):
        outcome = staging_area.handle_publish("missing.txt", make_context())

        assert outcome.kind == OutcomeKind.NOT_FOUND
        assert outcome.category == ErrorCategory.FILE_NOT_FOUND

    def test_publish_with_numeric_values(self, staging_area, stage, data_dirs, make_context):
        stage()
        ctx = make_context(created=str(NOW + 10), expires=str(NOW + DAY), timeout="600", id="custom")

        outcome = staging_area.publish("a.txt", ctx)

        record = _record(data_dirs, "custom")
        assert outcome.data["item_id"] == "custom"
        assert record["created"] == NOW + 10
        assert record["expires"] == NOW + DAY
        assert record["timeout"] == 600

    def test_expires_is_relative_to_created(self, staging_area, stage, data_dirs, make_context):
        stage()
        ctx = make_context(created="+1 day", expires="+1 day", id="rel")

        staging_area.publish("a.txt", ctx)

        record = _record(data_dirs, "rel")
        assert record["created"] == NOW + DAY
        assert record["expires"] == NOW + 2 * DAY

    def test_timeout_expression_is_relative_to_now(self, staging_area, stage, data_dirs, make_context):
        stage()
        ctx = make_context(created="+1 day", timeout="+2 hours", id="t")

        staging_area.publish("a.txt", ctx)

        assert _record(data_dirs, "t")["timeout"] == 7200

    def test_empty_parameters_are_ignored(self, staging_area, stage, data_dirs, make_context):
        stage()
        ctx = make_context(created="", expires="", timeout="", id="")

        outcome = staging_area.publish("a.txt", ctx)

        record = _record(data_dirs, outcome.data["item_id"])
        assert record["created"] == NOW
        assert record["expires"] is None

    def test_timeout_immediately(self, staging_area, stage, data_dirs, make_context):
        stage()
        ctx = make_context(timeout="60", id="now", **{"timeout-immediately": "true"})

        staging_area.publish("a.txt", ctx)

        assert _record(data_dirs, "now")["activity"] == NOW

    def test_timeout_immediately_requires_timeout(self, staging_area, stage, make_context):
        staged = stage()
        ctx = make_context(**{"timeout-immediately": "true"})

        with pytest.raises(TimeoutNotSetError):
            staging_area.publish("a.txt", ctx)
        assert os.path.exists(staged)

    def test_invalid_time_expression(self, staging_area, stage, data_dirs, make_context):
        staged = stage()
        ctx = make_context(expires="whenever")

        outcome = staging_area.handle_publish("a.txt", ctx)

        assert outcome.kind == OutcomeKind.VALIDATION_ERROR
        assert outcome.category == ErrorCategory.INVALID_TIME
        assert outcome.body == 'Could not convert value "whenever" for field "Expires" to timestamp'
        assert os.path.exists(staged)
        assert os.listdir(data_dirs["items"]) == []

    @pytest.mark.parametrize(
        "params",
        [
            {"expires": "+100000 years"},
            {"created": "99999999999999"},
            {"created": "@99999999999999999"},
            {"expires": "-99999999999999"},
            {"timeout": "+999999999999 days"},
        ],
    )
    def test_out_of_range_time_is_a_validation_error(
        self, staging_area, stage, data_dirs, make_context, params
    ):
        staged = stage()

        outcome = staging_area.handle_publish("a.txt", make_context(**params))

        assert outcome.kind == OutcomeKind.VALIDATION_ERROR
        assert outcome.status_code == 400
        assert os.path.exists(staged)
        assert os.listdir(data_dirs["items"]) == []

    def test_invalid_timeout_expression(self, staging_area, stage, make_context):
        stage()
        with pytest.raises(InvalidTimeExpressionError, match='field "Timeout" to integer'):
            staging_area.publish("a.txt", make_context(timeout="soonish"))

    def test_expiry_before_creation(self, staging_area, stage, data_dirs, make_context):
        staged = stage()
        ctx = make_context(created="+2 days", expires=str(NOW))

        outcome = staging_area.handle_publish("a.txt", ctx)

        assert outcome.kind == OutcomeKind.VALIDATION_ERROR
        assert os.path.exists(staged)
        assert os.listdir(data_dirs["items"]) == []

    def test_invalid_custom_id(self, staging_area, stage, make_context):
        stage()
        outcome = staging_area.handle_publish("a.txt", make_context(id="a/b"))

        assert outcome.kind == OutcomeKind.VALIDATION_ERROR
        assert outcome.category == ErrorCategory.INVALID_ITEM_ID

    def test_existing_custom_id(self, staging_area, stage, make_item, make_context):
        make_item("other.txt", id="taken")
        staged = stage()

        with pytest.raises(ItemExistsError):
            staging_area.publish("a.txt", make_context(id="taken"))
        assert os.path.exists(staged)

    def test_name_collision_in_file_store(self, staging_area, stage, data_dirs, make_context):
        write_file(os.path.join(data_dirs["files"], "a.txt"), "existing")
        stage()

        outcome = staging_area.publish("a.txt", make_context())

        assert outcome.data["filename"] == "a-1.txt"
        assert read_file(os.path.join(data_dirs["files"], "a.txt")) == "existing"
        assert read_file(os.path.join(data_dirs["files"], "a-1.txt")) == "content"

    def test_publish_into_subdirectory(self, data_dirs, file_store, item_manager, stage, make_context):
        staging_area = StagingArea(
            data_dirs["inbox"], file_store, item_manager, data_dirs["upload_tmp"], use_subdirs=True
        )
        stage()

        outcome = staging_area.publish("a.txt", make_context(id="x1"))

        assert outcome.data["filename"] == "x1/a.txt"
        assert os.path.isfile(os.path.join(data_dirs["files"], "x1", "a.txt"))

    def test_record_is_written_before_file_is_moved(
        self, staging_area, stage, data_dirs, make_context, monkeypatch
    ):
        staged = stage()

        def fail(source, filename):
            raise OSError("disk full")

        monkeypatch.setattr(staging_area.file_store, "move_in", fail)

        outcome = staging_area.handle_publish("a.txt", make_context(id="half"))

        assert outcome.kind == OutcomeKind.IO_ERROR
        assert outcome.status_code == 500
        assert os.path.exists(os.path.join(data_dirs["items"], "half.json"))
        assert os.path.exists(staged)
