import unittest

from pydantic import ValidationError

from hackmd_api.models import (
    ApiClientOptions,
    CommentPermissionType,
    CreateNoteOptions,
    Note,
    NotePermissionRole,
    NotePublishType,
    RetryOptions,
    SingleNote,
    TeamVisibilityType,
    UpdateNoteOptions,
    User,
)
from test_hackmd_api import NOTE, SINGLE_NOTE, USER


class TestRequestPayloads(unittest.TestCase):

    def test_create_note_with_title_only(self):
        self.assertEqual(CreateNoteOptions(title="Test Note").to_payload(), {"title": "Test Note"})

    def test_create_note_uses_wire_names(self):
        options = CreateNoteOptions(
            title="Test Note",
            content="# Test Content",
            read_permission=NotePermissionRole.OWNER,
            write_permission=NotePermissionRole.SIGNED_IN,
            comment_permission=CommentPermissionType.OWNERS,
        )

        self.assertEqual(options.to_payload(), {
            "title": "Test Note",
            "content": "# Test Content",
            "readPermission": "owner",
            "writePermission": "signed_in",
            "commentPermission": "owners",
        })

    def test_update_note_omits_absent_fields(self):
        options = UpdateNoteOptions(
            content="Updated content",
            write_permission=NotePermissionRole.GUEST,
            permalink="custom-permalink",
        )

        payload = options.to_payload()

        self.assertEqual(payload, {
            "content": "Updated content",
            "writePermission": "guest",
            "permalink": "custom-permalink",
        })
        self.assertNotIn("readPermission", payload)

    def test_accepts_wire_names(self):
        options = UpdateNoteOptions(readPermission="signed_in")
        self.assertEqual(options.read_permission, NotePermissionRole.SIGNED_IN)


class TestResponseModels(unittest.TestCase):

    def test_single_note(self):
        payload = dict(SINGLE_NOTE, lastChangeUser={
            "name": "Alice",
            "userPath": "alice",
            "photo": "https://hackmd.io/alice.png",
            "createdAt": 1600000000000,
        })

        note = SingleNote.model_validate(payload)

        self.assertEqual(note.content, "# Meeting Notes")
        self.assertEqual(note.id, "abc123")
        self.assertEqual(note.tags, ["meeting"])
        self.assertEqual(note.last_changed_at, 1700000000000)
        self.assertEqual(note.publish_type, NotePublishType.VIEW)
        self.assertEqual(note.last_change_user.user_path, "alice")
        self.assertIsNone(note.last_change_user.biography)
        self.assertIsNone(note.published_at)

    def test_note_part_of_single_note(self):
        note = SingleNote.model_validate(SINGLE_NOTE).note

        self.assertIsInstance(note, Note)
        self.assertNotIsInstance(note, SingleNote)
        self.assertEqual(note, Note.model_validate(NOTE))

    def test_single_note_requires_content(self):
        with self.assertRaises(ValidationError):
            SingleNote.model_validate(NOTE)

    def test_missing_tags_default_to_empty(self):
        payload = {k: v for k, v in NOTE.items() if k != "tags"}
        self.assertEqual(Note.model_validate(payload).tags, [])

    def test_user_with_teams(self):
        user = User.model_validate(USER)

        self.assertEqual(user.email, "alice@example.com")
        self.assertEqual(user.teams[0].visibility, TeamVisibilityType.PRIVATE)
        self.assertFalse(user.teams[0].hard_breaks)

    def test_user_without_email(self):
        user = User.model_validate({k: v for k, v in USER.items() if k != "email"})
        self.assertIsNone(user.email)

    def test_unknown_fields_are_ignored(self):
        note = Note.model_validate(dict(NOTE, somethingNew=1))
        self.assertEqual(note.id, "abc123")

    def test_models_are_immutable(self):
        note = Note.model_validate(NOTE)
        with self.assertRaises(ValidationError):
            note.title = "changed"


class TestClientOptions(unittest.TestCase):

    def test_defaults(self):
        options = ApiClientOptions()

        self.assertTrue(options.wrap_response_errors)
        self.assertEqual(options.timeout, 30.0)
        self.assertEqual(options.retry_options, RetryOptions(max_retries=3, base_delay=0.1))
        self.assertFalse(options.retry_options.retry_non_idempotent)

    def test_retry_can_be_disabled(self):
        self.assertIsNone(ApiClientOptions(retry_options=None).retry_options)

    def test_rejects_negative_values(self):
        with self.assertRaises(ValidationError):
            RetryOptions(max_retries=-1)
        with self.assertRaises(ValidationError):
            RetryOptions(base_delay=-0.5)
        with self.assertRaises(ValidationError):
            ApiClientOptions(timeout=0)

    def test_options_are_immutable(self):
        options = ApiClientOptions()
        with self.assertRaises(ValidationError):
            options.wrap_response_errors = False


if __name__ == "__main__":
    unittest.main()
