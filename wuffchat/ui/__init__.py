"""NiceGUI interface - thin presentation layer for the chat widget.

Responsibilities:
    - Transcript rendering by sender role
    - Typing indicator while a reply is pending or being paced
    - Error banner, metadata debug panel and reset button

Contains no conversation logic. Delegates everything to ChatController
and re-renders on its change notifications.
"""
