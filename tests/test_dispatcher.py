import asyncio

from helpers import FakeClient, lens_annotation, make_message, make_todo
from todolens.actions import Accept, Complete, ListTodos, SlashMe, SlashSpace, View, encode_complete
from todolens.dispatcher import EventDispatcher
from todolens.schemas import ActionAnnotation, FocusAnnotation, Prompt, WebhookEvent


def action_event(user_id="user-a", space_id="space-1"):
    return WebhookEvent(type="message-annotation-added", userId=user_id, spaceId=space_id, messageId="evt-msg")


def action_annotation(action_id, referral="msg-1", conversation="space-1"):
    return ActionAnnotation(
        actionId=action_id, referralMessageId=referral, conversationId=conversation, targetDialogId="dialog-1"
    )


def run(coro):
    return asyncio.run(coro)


class TestScenario:
    def test_commitment_to_todo_in_both_lists(self, store, client):
        dispatcher = EventDispatcher(store, client)
        client.add(make_message("msg-1", content="I will buy milk on the way home", user_id="user-a"))

        # Annotator flags the message
        focus_event = WebhookEvent(type="message-annotation-added", userId="user-a", spaceId="space-1", messageId="msg-1")
        run(dispatcher.handle_focus(focus_event, FocusAnnotation(lens="Commitment", phrase="buy milk")))
        [focus] = client.focuses
        assert focus.phrase == "buy milk"
        assert store.count() == 0

        # A selects the lens
        run(dispatcher.handle_action(action_event(), action_annotation("View"), View()))
        user_id, context, prompt = client.last_sent()
        assert user_id == "user-a"
        assert isinstance(prompt, Prompt)
        assert prompt.text == "buy milk"
        assert context.conversation_id == "space-1"
        assert context.target_dialog_id == "dialog-1"
        assert store.count() == 0

        # A accepts
        run(dispatcher.handle_action(action_event(), action_annotation("submit-action"), Accept()))
        [todo] = store.list("user-a")
        assert todo["completed"] is False
        assert todo["createdBy"]["id"] == "user-a"
        assert todo["spaceId"] == "space-1"
        assert todo["payload"] == {"phrase": "buy milk"}
        assert [t["id"] for t in store.list_space("space-1")] == [todo["id"]]
        assert store.find(todo["id"], "user-a")["content"] == "I will buy milk on the way home"

        # Accept is followed by the user's list
        _, _, cards = client.last_sent()
        assert [c.title for c in cards] == ["buy milk"]

    def test_space_list_for_non_owner_is_inert(self, store, client):
        dispatcher = EventDispatcher(store, client)
        store.create(make_todo("t1", user_id="user-a", space_id="space-1"))

        run(dispatcher.handle_action(action_event(user_id="user-b"), action_annotation("/todos"), SlashSpace()))

        user_id, _, cards = client.last_sent()
        assert user_id == "user-b"
        assert len(cards) == 1
        assert "t1" not in cards[0].buttons[0].payload

    def test_accept_by_other_user_is_owned_by_author(self, store, client):
        dispatcher = EventDispatcher(store, client)
        client.add(make_message("msg-1", user_id="user-a", annotations=[lens_annotation()]))

        run(dispatcher.handle_action(action_event(user_id="user-b"), action_annotation("submit-action"), Accept()))

        assert len(store.list("user-a")) == 1
        assert store.list("user-b") == []
        # The list shown afterwards is the acting user's own
        user_id, _, cards = client.last_sent()
        assert user_id == "user-b"
        assert cards == []


class TestComplete:
    def test_complete_toggles_and_rerenders(self, store, client):
        dispatcher = EventDispatcher(store, client)
        store.create(make_todo("t1", user_id="user-a"))

        run(dispatcher.handle_action(action_event(), action_annotation(encode_complete("t1")), Complete("t1")))

        assert store.find("t1")["completed"] is True
        _, _, cards = client.last_sent()
        assert cards[0].buttons[0].text == "Remove"

    def test_unknown_todo_leaves_store_and_sends_nothing(self, store, client):
        dispatcher = EventDispatcher(store, client)
        store.create(make_todo("t1", user_id="user-a"))

        run(dispatcher.handle_action(action_event(user_id="user-b"), action_annotation("x"), Complete("t1")))
        run(dispatcher.handle_action(action_event(), action_annotation("x"), Complete("missing")))

        assert store.count() == 1
        assert store.find("t1")["completed"] is False
        assert client.sent == []


class TestLists:
    def test_list_and_slash_me_show_own_todos(self, store, client):
        dispatcher = EventDispatcher(store, client)
        store.create(make_todo("t1", user_id="user-a", space_id="space-1"))
        store.create(make_todo("t2", user_id="user-b", space_id="space-1"))

        run(dispatcher.handle_action(action_event(), action_annotation("List"), ListTodos()))
        run(dispatcher.handle_action(action_event(), action_annotation("/todos me"), SlashMe()))

        for _, _, cards in client.sent:
            assert len(cards) == 1


class TestFailures:
    def test_fetch_failure_on_accept_creates_nothing(self, store, client):
        dispatcher = EventDispatcher(store, client)
        client.fail_fetch = True

        run(dispatcher.handle_action(action_event(), action_annotation("submit-action"), Accept()))

        assert store.count() == 0
        assert client.sent == []

    def test_focus_on_unknown_message_is_logged_only(self, store, client):
        dispatcher = EventDispatcher(store, client)
        event = WebhookEvent(type="message-annotation-added", userId="user-a", messageId="gone")

        run(dispatcher.handle_focus(event, FocusAnnotation(lens="ActionRequest", phrase="x")))

        assert client.focuses == []

    def test_missing_lens_yields_blank_phrase(self, store, client):
        dispatcher = EventDispatcher(store, client)
        client.add(make_message("msg-1"))

        run(dispatcher.handle_action(action_event(), action_annotation("View"), View()))
        _, _, prompt = client.last_sent()
        assert prompt.text == ""

        run(dispatcher.handle_action(action_event(), action_annotation("submit-action"), Accept()))
        [todo] = store.list("user-a")
        assert todo["payload"] == {}
        _, _, cards = client.last_sent()
        assert cards[0].title == ""

    def test_accept_without_referral_creates_nothing(self, store):
        client = FakeClient()
        dispatcher = EventDispatcher(store, client)

        run(dispatcher.handle_action(action_event(), action_annotation("submit-action", referral=None), Accept()))

        assert store.count() == 0
