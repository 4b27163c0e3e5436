"""
================================================================================
COMMUNITY CHAT - URL CONFIGURATION
================================================================================

MODULE PURPOSE
================================================================================
REST endpoints of the community chat, mounted under /api/ by the project
urls. Realtime delivery goes over Socket.IO (/socket.io/); these routes are
the request/response side of the chat and the polling fallback for clients
whose realtime connection dropped.

URL PARAMETER TYPES
================================================================================
- <str:message_id>: Message id as issued by the store
- <path:timestamp>: Polling cursor, the createdAt of the last seen message
  (ISO-8601) or epoch milliseconds

NOTES
================================================================================
Fixed paths (clear, typing, online) are listed before <str:message_id> so
they are never read as a message id.

================================================================================
"""

from django.urls import path

from . import views

urlpatterns = [
    # ========================================================================
    # MESSAGES
    # ========================================================================
    path("chat", views.chat_messages, name="chat_messages"),  # List / send
    path("chat/clear", views.clear_messages, name="clear_messages"),  # Moderators
    path(
        "chat/since/<path:timestamp>",
        views.messages_since,
        name="messages_since"
    ),  # Polling fallback

    # ========================================================================
    # TYPING & PRESENCE
    # ========================================================================
    path("chat/typing", views.typing_status, name="typing_status"),
    path("chat/typing/users", views.typing_users, name="typing_users"),
    path("chat/online", views.online_users, name="online_users"),

    # ========================================================================
    # SINGLE MESSAGE
    # ========================================================================
    path("chat/<str:message_id>", views.delete_message, name="delete_message"),
    path(
        "chat/<str:message_id>/reaction",
        views.toggle_reaction,
        name="toggle_reaction"
    ),  # Toggle emoji reaction

    # ========================================================================
    # HEALTH
    # ========================================================================
    path("health", views.health, name="health"),
]
