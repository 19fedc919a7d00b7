"""
Example Update Handler.

Demonstrates the on_<update_type> convention:
- Commands in on_message
- Inline keyboards answered in on_callback_query
- Inline mode (on_inline_query, on_chosen_inline_result)
- Polls (on_poll, on_poll_answer)

Enable inline mode in @BotFather to receive inline queries.
"""

from aiogram.types import (
    CallbackQuery,
    ChosenInlineResult,
    InlineKeyboardMarkup,
    InlineQuery,
    InlineQueryResultArticle,
    InputPollOption,
    InputTextMessageContent,
    Message,
    Poll,
    PollAnswer,
    ReplyKeyboardMarkup,
    ReplyKeyboardRemove,
)
from aiogram.utils.keyboard import InlineKeyboardBuilder, ReplyKeyboardBuilder

from botplay.telegram.dispatcher import UpdateHandler

POLL_OPTIONS = ["Hello", "World!"]

USAGE_TEXT = """
<b><u>Bot menu</u></b>:
/inline_buttons - send inline buttons
/keyboard       - send keyboard buttons
/remove         - remove keyboard buttons
/request        - request location or contact
/inline_mode    - send inline-mode results list
/poll           - send a poll
/poll_anonymous - send an anonymous poll
/throw          - what happens if handler fails
"""


def get_inline_keyboard() -> InlineKeyboardMarkup:
    """Inline keyboard whose callback button is answered by on_callback_query."""
    builder = InlineKeyboardBuilder()
    for text in ("1.1", "1.2", "1.3"):
        builder.button(text=text, callback_data=text)
    builder.button(text="WithCallbackData", callback_data="CallbackData")
    builder.button(text="WithUrl", url="https://github.com/aiogram/aiogram")
    builder.adjust(3, 2)
    return builder.as_markup()


def get_reply_keyboard() -> ReplyKeyboardMarkup:
    builder = ReplyKeyboardBuilder()
    for text in ("1.1", "1.2", "1.3", "2.1", "2.2"):
        builder.button(text=text)
    builder.adjust(3, 2)
    return builder.as_markup(resize_keyboard=True)


def get_request_keyboard() -> ReplyKeyboardMarkup:
    builder = ReplyKeyboardBuilder()
    builder.button(text="Location", request_location=True)
    builder.button(text="Contact", request_contact=True)
    return builder.as_markup(resize_keyboard=True)


class ExampleUpdateHandler(UpdateHandler):
    """Demo bot answering a handful of commands."""

    async def on_message(self, message: Message) -> None:
        self.logger.info("Received message", extra={"chat_id": message.chat.id})
        if not message.text:
            return

        command = message.text.split(" ")[0]

        if command == "/inline_buttons":
            await message.answer("Inline buttons:", reply_markup=get_inline_keyboard())
        elif command == "/keyboard":
            await message.answer("Keyboard buttons:", reply_markup=get_reply_keyboard())
        elif command == "/remove":
            await message.answer("Removing keyboard", reply_markup=ReplyKeyboardRemove())
        elif command == "/request":
            await message.answer("Who or Where are you?", reply_markup=get_request_keyboard())
        elif command == "/inline_mode":
            builder = InlineKeyboardBuilder()
            builder.button(text="Inline Mode", switch_inline_query_current_chat="")
            await message.answer(
                "Press the button to start Inline Query\n\n"
                "(Make sure you enabled Inline Mode in @BotFather)",
                reply_markup=builder.as_markup(),
            )
        elif command == "/poll":
            await message.answer_poll(
                "Question",
                options=[InputPollOption(text=text) for text in POLL_OPTIONS],
                is_anonymous=False,
            )
        elif command == "/poll_anonymous":
            await message.answer_poll(
                "Question",
                options=[InputPollOption(text=text) for text in POLL_OPTIONS],
            )
        elif command == "/throw":
            raise NotImplementedError("FailingHandler")
        else:
            await message.answer(USAGE_TEXT, reply_markup=ReplyKeyboardRemove())

    async def on_callback_query(self, query: CallbackQuery) -> None:
        self.logger.info("Received inline keyboard callback", extra={"callback_query_id": query.id})
        await query.answer(f"Received {query.data}")
        if query.message is not None:
            await query.message.answer(f"Received {query.data}")

    async def on_inline_query(self, query: InlineQuery) -> None:
        self.logger.info("Received inline query", extra={"user_id": query.from_user.id})
        results = [
            InlineQueryResultArticle(
                id="1",
                title="botplay",
                input_message_content=InputTextMessageContent(message_text="hello"),
            ),
            InlineQueryResultArticle(
                id="2",
                title="is the best",
                input_message_content=InputTextMessageContent(message_text="world"),
            ),
        ]
        await query.answer(results, cache_time=0, is_personal=True)

    async def on_chosen_inline_result(self, result: ChosenInlineResult) -> None:
        self.logger.info("Received inline result", extra={"result_id": result.result_id})
        if self.bot is not None:
            await self.bot.send_message(result.from_user.id, f"You chose result with Id: {result.result_id}")

    async def on_poll(self, poll: Poll) -> None:
        self.logger.info("Received poll info", extra={"question": poll.question})

    async def on_poll_answer(self, answer: PollAnswer) -> None:
        if not answer.option_ids or answer.user is None or self.bot is None:
            return
        selected = POLL_OPTIONS[answer.option_ids[0]]
        await self.bot.send_message(answer.user.id, f"You've chosen: {selected} in poll")
