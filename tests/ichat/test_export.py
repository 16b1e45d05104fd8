"""
Tests for JSON export and attachment saving.
"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from ichat.exceptions import ExportValidationError, ExportWriteError
from ichat.export import (
    attachment_filename,
    export_messages,
    message_to_json,
    to_jsonable,
    validate_export,
    write_export,
)
from ichat.models import Attachment, Message, MessageMeta


@pytest.fixture()
def message():
    return Message(
        uuid="abc-123",
        time=datetime(2022, 3, 4, 5, 6, 7, 891000, tzinfo=timezone.utc),
        sender="iMessage|e:user@example.com|1",
        subject="iMessage|friend@example.com|2",
        message="hi",
        attachments=[
            Attachment(filename="photo.jpg", data=b"JPEG"),
            Attachment(filename="notes.txt", data=b"TEXT", transfer_guid="t-2"),
        ],
        meta=MessageMeta(
            is_invitation=False,
            is_read=True,
            flags=5,
            base_writing_direction=-1,
            error=None,
        ),
    )


class TestMessageToJson:

    def test_without_attachments(self, message):
        assert message_to_json(message) == {
            "uuid": "abc-123",
            "time": "2022-03-04T05:06:07.891Z",
            "sender": "iMessage|e:user@example.com|1",
            "subject": "iMessage|friend@example.com|2",
            "message": "hi",
        }

    def test_with_attachment_names(self, message):
        document = message_to_json(message, ["first", "second"])
        assert document["attachments"] == [
            {"filename": "photo.jpg", "data": "first"},
            {"filename": "notes.txt", "data": "second"},
        ]

    def test_with_meta(self, message):
        document = message_to_json(message, include_meta=True)
        assert document["meta"] == {
            "isInvitation": False,
            "isRead": True,
            "flags": 5,
            "baseWritingDirection": -1,
            "error": None,
        }

    def test_null_message(self, message):
        message.message = None
        assert message_to_json(message)["message"] is None


class TestAttachmentFiles:

    def test_attachment_filename(self, message):
        name = attachment_filename(message, message.attachments[0])
        assert name == "20220304050607_iMessage|e-user@example.com|1_photo.jpg"

    @pytest.mark.parametrize("filename", ["sub/photo.jpg", "../../photo.jpg"])
    def test_path_separators_flattened(self, message, filename):
        message.attachments[0].filename = filename
        name = attachment_filename(message, message.attachments[0])
        assert "/" not in name
        assert name.endswith("photo.jpg")

    def test_separator_in_sender_flattened(self, message):
        message.sender = "AIM|dir/name|1"
        name = attachment_filename(message, message.attachments[0])
        assert name == "20220304050607_AIM|dir-name|1_photo.jpg"

    def test_attachment_with_separator_saved_in_folder(self, message, tmp_path):
        message.attachments[0].filename = "sub/photo.jpg"
        document = export_messages([message], tmp_path)
        name = document[0]["attachments"][0]["data"]
        assert (tmp_path / name).read_bytes() == b"JPEG"

    def test_unwritable_attachment_raises(self, message, tmp_path):
        (tmp_path / attachment_filename(message, message.attachments[0])).mkdir()
        with pytest.raises(ExportWriteError) as excinfo:
            export_messages([message], tmp_path)
        assert excinfo.value.path.parent == tmp_path

    def test_attachments_dir_is_a_file(self, message, tmp_path):
        blocker = tmp_path / "taken"
        blocker.write_text("x")
        with pytest.raises(ExportWriteError, match="Cannot write"):
            export_messages([message], blocker)

    def test_export_saves_attachments(self, message, tmp_path):
        target = tmp_path / "attachments"
        document = export_messages([message], target)

        names = [a["data"] for a in document[0]["attachments"]]
        assert names == [
            "20220304050607_iMessage|e-user@example.com|1_photo.jpg",
            "20220304050607_iMessage|e-user@example.com|1_notes.txt",
        ]
        assert (target / names[0]).read_bytes() == b"JPEG"
        assert (target / names[1]).read_bytes() == b"TEXT"

    def test_export_without_directory_drops_attachments(self, message, tmp_path):
        document = export_messages([message])
        assert "attachments" not in document[0]
        assert list(tmp_path.iterdir()) == []

    def test_message_without_attachments_gets_empty_list(self, message, tmp_path):
        message.attachments = []
        document = export_messages([message], tmp_path / "out")
        assert document[0]["attachments"] == []
        assert (tmp_path / "out").is_dir()


class TestValidation:

    def test_valid_document(self, message, tmp_path):
        validate_export(export_messages([message], tmp_path, include_meta=True))

    def test_invalid_document(self, message):
        document = [message_to_json(message)]
        document[0]["time"] = "yesterday"
        del document[0]["uuid"]
        with pytest.raises(ExportValidationError) as excinfo:
            validate_export(document)
        assert any("'uuid' is a required property" in e for e in excinfo.value.errors)
        assert any(e.startswith("0/time:") for e in excinfo.value.errors)


class TestWriteExport:

    def test_write_to_file(self, message, tmp_path):
        output = tmp_path / "nested" / "out.json"
        write_export([message_to_json(message)], output)
        assert json.loads(output.read_text(encoding="utf-8"))[0]["uuid"] == "abc-123"

    def test_write_to_stdout(self, message, capsys):
        write_export([message_to_json(message)], indent=4)
        out = capsys.readouterr().out
        assert out.startswith("[\n    {")
        assert json.loads(out)[0]["message"] == "hi"

    def test_non_ascii_kept(self, message, tmp_path):
        message.message = "héllo 👋"
        output = tmp_path / "out.json"
        write_export([message_to_json(message)], output)
        assert "héllo 👋" in output.read_text(encoding="utf-8")

    def test_write_into_file_path_raises(self, message, tmp_path):
        blocker = tmp_path / "taken"
        blocker.write_text("x")
        with pytest.raises(ExportWriteError):
            write_export([message_to_json(message)], blocker / "out.json")


class TestToJsonable:

    def test_converts_nested_values(self):
        value = {
            "data": b"\x00\x01\x02",
            "when": datetime(2001, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=0.5),
            "items": ("a", None, 1.5),
            3: True,
        }
        assert to_jsonable(value) == {
            "data": "<3 bytes>",
            "when": "2001-01-01T00:00:00.500Z",
            "items": ["a", None, 1.5],
            "3": True,
        }
