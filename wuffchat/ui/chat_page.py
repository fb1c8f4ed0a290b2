"""NiceGUI chat page driven by the conversation controller."""

import logging
from collections.abc import Callable

from nicegui import Client, app, ui

from wuffchat.chat import ChatController
from wuffchat.client import ApiClient, get_client_config
from wuffchat.models import ChatMessage, Sender
from wuffchat.session import MappingStorage, SessionStore

logger = logging.getLogger(__name__)

# Emoji labels for non-user roles without an avatar image.
SENDER_LABELS = {
    "dog": "🐶",
    "companion": "🐾",
    "coach": "👨🏽‍⚕️",
    Sender.AGENT.value: "🐶",
    Sender.SYSTEM.value: "🔧",
    Sender.ERROR.value: "⚠️",
}

CUSTOM_CSS = """
<link href="https://fonts.googleapis.com/css2?family=Figtree:wght@400;500;600&display=swap"
      rel="stylesheet">
<style>
    * { font-family: 'Figtree', sans-serif; }

    body { background: #F7E5C9; color: #4B7893; min-height: 100vh; }

    .header { background: #4B7893; color: #F7E5C9; }

    .message-user {
        background: #4B7893;
        color: #F7E5C9;
        border-radius: 12px;
    }

    .message-agent {
        background: #f3f4f6;
        color: #111827;
        border: 1px solid #e5e7eb;
        border-radius: 12px;
    }

    .message-error {
        background: #ef4444;
        color: white;
        border-radius: 12px;
    }

    .sender-label {
        width: 2.25rem; height: 2.25rem;
        border-radius: 9999px;
        font-size: 1.25rem;
        background: #F7E5C9;
    }

    .typing-dot {
        width: 6px; height: 6px;
        background: #4B7893;
        border-radius: 50%;
        animation: bounce 1.4s infinite ease-in-out;
    }
    .typing-dot:nth-child(2) { animation-delay: 0.15s; }
    .typing-dot:nth-child(3) { animation-delay: 0.3s; }

    @keyframes bounce {
        0%, 60%, 100% { transform: translateY(0); }
        30% { transform: translateY(-6px); }
    }

    .error-banner { background: #ff6b6b; color: white; }

    .metadata { font-size: 0.75rem; color: #7a7a7a; font-family: monospace; }
</style>
"""


def bubble_class(sender: str) -> str:
    """CSS class for a message bubble by sender role."""
    role = (sender or "").lower()
    if role == Sender.USER.value:
        return "message-user"
    if role == Sender.ERROR.value:
        return "message-error"
    return "message-agent"


def sender_label(sender: str) -> str:
    return SENDER_LABELS.get((sender or "").lower(), "❓")


def metadata_lines(metadata: dict | None) -> list[str]:
    """Human-readable lines for the metadata debug panel."""
    if not metadata:
        return []
    lines = []
    if action_type := metadata.get("action_type"):
        lines.append(f"Action: {action_type}")
    if phase := metadata.get("phase"):
        lines.append(f"Phase: {phase}")
    confidence = metadata.get("confidence")
    if isinstance(confidence, int | float) and confidence:
        lines.append(f"Confidence: {confidence * 100:.0f}%")
    return lines


def page_reloader(client: Client) -> Callable[[], None]:
    """Reload callback bound to one browser tab.

    The controller fires it from its own timer task, where NiceGUI's slot
    stack is empty, so the JavaScript goes straight to the captured client.
    """

    def reload() -> None:
        client.run_javascript("history.go(0)")

    return reload


def bind_lifetime(client: Client, controller: ChatController) -> None:
    """Close the controller when the tab is gone for good.

    Brief websocket drops reconnect to the same client and keep it.
    """
    client.on_delete(controller.aclose)


@ui.page("/")
async def chat_page() -> None:
    """Main chat page."""
    ui.add_head_html(CUSTOM_CSS)

    messages_container: ui.column
    error_banner: ui.row
    input_field: ui.textarea
    send_btn: ui.button
    show_metadata = {"enabled": False}
    controller: ChatController | None = None

    def render_label(sender: str) -> None:
        with ui.element("div").classes("sender-label flex items-center justify-center shrink-0"):
            ui.label(sender_label(sender))

    def render_message(msg: ChatMessage) -> None:
        is_user = msg.sender == Sender.USER.value
        align = "justify-end" if is_user else "justify-start"

        with ui.row().classes(f"w-full {align} gap-2 items-start no-wrap"):
            if not is_user:
                render_label(msg.sender)
            with ui.column().classes("max-w-[80%] gap-1"):
                with ui.element("div").classes(f"px-3 py-2 text-sm {bubble_class(msg.sender)}"):
                    ui.label(msg.text).classes("whitespace-pre-wrap break-words")
                if show_metadata["enabled"]:
                    for line in metadata_lines(msg.metadata):
                        ui.label(line).classes("metadata")
            if is_user:
                render_label(msg.sender)

    def render_typing_indicator() -> None:
        with ui.row().classes("w-full justify-start gap-2 items-start"):
            render_label(Sender.AGENT.value)
            with ui.element("div").classes("message-agent px-3 py-3"):
                with ui.row().classes("gap-1"):
                    for _ in range(3):
                        ui.element("div").classes("typing-dot")

    def refresh() -> None:
        if controller is None:
            return
        messages_container.clear()
        with messages_container:
            for msg in controller.messages:
                render_message(msg)
            if controller.is_typing:
                render_typing_indicator()
        error_banner.set_visibility(controller.has_error)
        send_btn.set_enabled(controller.is_ready or controller.has_error)

    async def send_message() -> None:
        text = input_field.value or ""
        if not text.strip() or controller is None:
            return
        input_field.value = ""
        await controller.send_message(text)

    async def new_chat() -> None:
        if controller is not None:
            await controller.reset()

    def toggle_metadata() -> None:
        show_metadata["enabled"] = not show_metadata["enabled"]
        refresh()

    # === UI Layout ===
    with ui.column().classes("w-full max-w-xl mx-auto gap-0").style("height: 100vh"):
        # Header
        with ui.row().classes("w-full header px-4 py-2 items-center justify-between"):
            with ui.column().classes("gap-0"):
                ui.label("Wuffchat").classes("text-lg font-bold")
                ui.label("Der direkte Draht zu deinem Hund.").classes("text-sm opacity-80")
            with ui.row().classes("items-center gap-1"):
                ui.button(icon="bug_report", on_click=toggle_metadata).props(
                    "flat round dense color=white"
                )
                ui.button(icon="refresh", on_click=new_chat).props("flat round dense color=white")

        with ui.row().classes("w-full error-banner p-3 justify-center text-sm") as error_banner:
            ui.label("Verbindungsfehler - Bitte versuche es später erneut")
        error_banner.set_visibility(False)

        # Messages
        with ui.scroll_area().classes("flex-grow w-full"):
            messages_container = ui.column().classes("w-full gap-2 p-3")

        # Input
        with ui.row().classes("w-full p-3 gap-2 items-end no-wrap"):
            input_field = (
                ui.textarea(placeholder="Schreib deinem Hund...")
                .props("autogrow outlined dense rows=1")
                .classes("flex-grow")
                .on("keydown.enter.prevent", send_message)
            )
            send_btn = ui.button(icon="send", on_click=send_message).props("round unelevated")
            send_btn.disable()

    # Tab storage is only available once the websocket is connected.
    page_client = ui.context.client
    await page_client.connected()
    store = SessionStore(MappingStorage(app.storage.tab))
    controller = ChatController(
        client=ApiClient(config=get_client_config(), store=store),
        store=store,
        on_change=refresh,
        on_reload=page_reloader(page_client),
    )
    bind_lifetime(page_client, controller)
    await controller.initialize()


def main() -> None:
    ui.run(title="Wuffchat", port=8080, reload=False)


if __name__ == "__main__":
    main()
