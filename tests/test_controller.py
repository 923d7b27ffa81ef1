import pytest

from chat_relay.controller import (
    AI_BOT_USER_ID,
    AI_RESPONSE_NOT_FOUND,
    HISTORY_LIMIT,
    ChatRelayController,
    MissingFieldsError,
    UserNotFoundError,
    build_conversation,
    channel_id_for,
)
from chat_relay.conversation_database.data_models.user import User
from chat_relay.llms.base import LLMMessage, Roles

from tests.helpers import FailingCloseChatProvider, ScriptedLLM


async def register_ana(controller: ChatRelayController) -> str:
    registered = await controller.register_user("Ana", "ana@x.com")
    return registered.user_id


# ---------------------------------------------------------------------------
# build_conversation
# ---------------------------------------------------------------------------
async def test_build_conversation_interleaves_turns(chat_db):
    await chat_db.create_chat("u", "m1", "r1")
    await chat_db.create_chat("u", "m2", "r2")
    history = await chat_db.get_chats_by_user_id("u")

    conversation = build_conversation(history, "M")

    assert conversation == [
        LLMMessage(role=Roles.USER, content="m1"),
        LLMMessage(role=Roles.ASSISTANT, content="r1"),
        LLMMessage(role=Roles.USER, content="m2"),
        LLMMessage(role=Roles.ASSISTANT, content="r2"),
        LLMMessage(role=Roles.USER, content="M"),
    ]


def test_build_conversation_without_history():
    assert build_conversation([], "Hello") == [LLMMessage(role=Roles.USER, content="Hello")]


# ---------------------------------------------------------------------------
# register_user
# ---------------------------------------------------------------------------
async def test_register_user_creates_both_records(controller, user_db, chat_provider):
    registered = await controller.register_user("Ana", "ana@x.com")

    assert registered.user_id == "ana_x_com"
    assert registered.model_dump(by_alias=True) == {"userId": "ana_x_com", "name": "Ana", "email": "ana@x.com"}
    presence = chat_provider.users["ana_x_com"]
    assert (presence.name, presence.email, presence.role) == ("Ana", "ana@x.com", "user")
    stored = await user_db.get_user_by_id("ana_x_com")
    assert stored is not None
    assert (stored.name, stored.email) == ("Ana", "ana@x.com")
    assert stored.created_at is not None


async def test_register_user_is_idempotent(controller, user_db, chat_provider):
    first = await controller.register_user("Ana", "ana@x.com")
    second = await controller.register_user("Ana", "ana@x.com")

    assert first.user_id == second.user_id
    assert list(user_db.users) == ["ana_x_com"]
    assert list(chat_provider.users) == ["ana_x_com"]


async def test_register_user_repairs_partial_registration(controller, user_db, chat_provider):
    await chat_provider.upsert_user("ana_x_com", "Ana", "ana@x.com")

    await controller.register_user("Ana", "ana@x.com")

    assert await user_db.get_user_by_id("ana_x_com") is not None


async def test_register_user_does_not_overwrite_existing_presence(controller, chat_provider):
    await chat_provider.upsert_user("ana_x_com", "Old name", "ana@x.com", role="admin")

    await controller.register_user("Ana", "ana@x.com")

    assert chat_provider.users["ana_x_com"].role == "admin"


@pytest.mark.parametrize("name, email", [(None, "ana@x.com"), ("Ana", None), ("", "ana@x.com"), ("Ana", "")])
async def test_register_user_requires_name_and_email(controller, user_db, name, email):
    with pytest.raises(MissingFieldsError):
        await controller.register_user(name, email)
    assert user_db.users == {}


# ---------------------------------------------------------------------------
# check_user
# ---------------------------------------------------------------------------
async def test_check_user_returns_zero_or_one_user(controller):
    user_id = await register_ana(controller)

    found = await controller.check_user(user_id)
    missing = await controller.check_user("nobody")

    assert [user.user_id for user in found.existing_user] == [user_id]
    assert missing.existing_user == []
    assert missing.user_id == "nobody"


async def test_check_user_requires_user_id(controller):
    with pytest.raises(MissingFieldsError):
        await controller.check_user(None)


# ---------------------------------------------------------------------------
# chat
# ---------------------------------------------------------------------------
async def test_chat_persists_one_turn_and_delivers_reply(controller, chat_db, chat_provider, llm):
    user_id = await register_ana(controller)

    result = await controller.chat(user_id, "Hello")

    assert result.status == "success"
    assert result.reply == "Hi there"
    chats = await chat_db.get_chats_by_user_id(user_id)
    assert [(chat.message, chat.reply) for chat in chats] == [("Hello", "Hi there")]
    assert llm.conversations == [[LLMMessage(role=Roles.USER, content="Hello")]]

    channel = chat_provider.channels[("messaging", channel_id_for(user_id))]
    assert channel.data == {"name": "Cortexa", "created_by_id": AI_BOT_USER_ID}
    assert [(m.channel_id, m.text, m.user_id) for m in chat_provider.messages] == [
        ("chat-ana_x_com", "Hi there", AI_BOT_USER_ID)
    ]


async def test_chat_sends_history_as_transcript(controller, llm):
    user_id = await register_ana(controller)
    llm.reply = "first reply"
    await controller.chat(user_id, "first")
    llm.reply = "second reply"
    await controller.chat(user_id, "second")

    await controller.chat(user_id, "third")

    assert [(m.role, m.content) for m in llm.conversations[-1]] == [
        (Roles.USER, "first"),
        (Roles.ASSISTANT, "first reply"),
        (Roles.USER, "second"),
        (Roles.ASSISTANT, "second reply"),
        (Roles.USER, "third"),
    ]


async def test_chat_uses_most_recent_turns_in_chronological_order(controller, chat_db, llm):
    user_id = await register_ana(controller)
    for i in range(HISTORY_LIMIT + 3):
        await chat_db.create_chat(user_id, f"m{i}", f"r{i}")

    await controller.chat(user_id, "new")

    conversation = llm.conversations[-1]
    assert len(conversation) == 2 * HISTORY_LIMIT + 1
    sent_messages = [m.content for m in conversation if m.role == Roles.USER]
    assert sent_messages == [f"m{i}" for i in range(3, HISTORY_LIMIT + 3)] + ["new"]


async def test_chat_falls_back_to_sentinel_reply(controller, chat_db, llm):
    user_id = await register_ana(controller)
    llm.reply = ""

    result = await controller.chat(user_id, "Hello")

    assert result.reply == AI_RESPONSE_NOT_FOUND
    chats = await chat_db.get_chats_by_user_id(user_id)
    assert chats[0].reply == AI_RESPONSE_NOT_FOUND


async def test_chat_rejects_unregistered_user(controller, chat_db, llm):
    with pytest.raises(UserNotFoundError, match="register first"):
        await controller.chat("ghost", "Hello")
    assert chat_db.chats == []
    assert llm.conversations == []


async def test_chat_rejects_presence_only_user(controller, chat_provider, llm):
    await chat_provider.upsert_user("ana_x_com", "Ana", "ana@x.com")

    with pytest.raises(UserNotFoundError, match="database"):
        await controller.chat("ana_x_com", "Hello")
    assert llm.conversations == []


async def test_chat_rejects_database_only_user(controller, user_db, llm):
    await user_db.create_user(User(user_id="ana_x_com", name="Ana", email="ana@x.com"))

    with pytest.raises(UserNotFoundError, match=r"^User not found\. Please register first\.$"):
        await controller.chat("ana_x_com", "Hello")
    assert llm.conversations == []


@pytest.mark.parametrize("user_id, message", [(None, "Hello"), ("ana_x_com", None), ("ana_x_com", "")])
async def test_chat_requires_message_and_user_id(controller, user_id, message):
    with pytest.raises(MissingFieldsError):
        await controller.chat(user_id, message)


async def test_chat_propagates_llm_failure_without_persisting(user_db, chat_db, chat_provider):
    controller = ChatRelayController(user_db, chat_db, chat_provider, ScriptedLLM(error=TimeoutError("slow")))
    user_id = await register_ana(controller)

    with pytest.raises(TimeoutError):
        await controller.chat(user_id, "Hello")
    assert chat_db.chats == []
    assert chat_provider.messages == []


# ---------------------------------------------------------------------------
# get_messages
# ---------------------------------------------------------------------------
async def test_get_messages_returns_only_the_users_turns(controller, chat_db):
    await chat_db.create_chat("ana_x_com", "a1", "r1")
    await chat_db.create_chat("bob_x_com", "b1", "r2")
    await chat_db.create_chat("ana_x_com", "a2", "r3")

    history = await controller.get_messages("ana_x_com")

    assert [chat.message for chat in history.messages] == ["a1", "a2"]


async def test_get_messages_requires_user_id(controller):
    with pytest.raises(MissingFieldsError):
        await controller.get_messages("")


# ---------------------------------------------------------------------------
# close
# ---------------------------------------------------------------------------
async def test_close_closes_llm_when_chat_provider_close_fails(user_db, chat_db, llm):
    controller = ChatRelayController(user_db, chat_db, FailingCloseChatProvider(), llm)

    with pytest.raises(ConnectionError, match="stream session already gone"):
        await controller.close()

    assert llm.closed
