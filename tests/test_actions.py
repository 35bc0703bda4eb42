import json

from todolens.actions import (
    Accept,
    Complete,
    ListTodos,
    SlashMe,
    SlashSpace,
    View,
    decode_action,
    encode_complete,
    encode_inert,
)


class TestWellKnownIds:
    def test_view_list_accept(self):
        assert decode_action("View") == View()
        assert decode_action("List") == ListTodos()
        assert decode_action("submit-action") == Accept()

    def test_empty_and_unknown(self):
        assert decode_action(None) is None
        assert decode_action("") is None
        assert decode_action("Something") is None


class TestCardPayloads:
    def test_complete_round_trip(self):
        encoded = encode_complete("abc123")
        assert json.loads(encoded) == {"action": "Complete", "todoId": "abc123"}
        assert decode_action(encoded) == Complete(todo_id="abc123")

    def test_inert_payload_decodes_to_nothing(self):
        assert decode_action(encode_inert()) is None

    def test_malformed_json_ignored(self):
        assert decode_action("{not json") is None

    def test_unknown_or_missing_action_ignored(self):
        assert decode_action(json.dumps({"action": "Archive", "todoId": "x"})) is None
        assert decode_action(json.dumps({"todoId": "x"})) is None

    def test_complete_without_todo_id_ignored(self):
        assert decode_action(json.dumps({"action": "Complete"})) is None


class TestSlashCommand:
    def test_default_is_space(self):
        assert decode_action("/todos") == SlashSpace()

    def test_options(self):
        assert decode_action("/todos me") == SlashMe()
        assert decode_action("/todos ME") == SlashMe()
        assert decode_action("/todos space") == SlashSpace()

    def test_unknown_option_or_command(self):
        assert decode_action("/todos everyone") is None
        assert decode_action("/other me") is None
