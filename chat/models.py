"""
================================================================================
COMMUNITY CHAT - DATABASE MODELS
================================================================================

@file        models.py
@description Django ORM models backing the community chat
@version     1.0.0

MODULE PURPOSE
================================================================================
This module defines the database schema used by the chat layer:
- User model (extended from AbstractUser) carrying the community role
- ChatMessage (one row per chat message, reply snapshot denormalized)
- ChatReaction (side table: one row per user/emoji/message)

MODEL RELATIONSHIPS
================================================================================
ChatMessage (1) ──────> (N) ChatReaction

Messages reference their author by username, not by foreign key: the author
name and role are snapshots taken when the message is sent. Replies keep the
id, author and text of the original message as plain columns so that deleting
the original never cascades into its replies.

ORDERING
================================================================================
Messages are ordered by created_at, ties broken by the auto-increment id
(insertion order). created_at is indexed.

================================================================================
"""

from django.contrib.auth.models import AbstractUser
from django.db import models


# ============================================================================
# CONSTANTS & CHOICES
# ============================================================================

SYSTEM_ADMIN = 'system-admin'
ADMIN = 'admin'
MODERATOR = 'moderator'
CHAIRPERSON = 'chairperson'
VICE_CHAIR = 'vice-chair'
SECRETARY = 'secretary'
ORGANIZING_SECRETARY = 'organizing-secretary'
TREASURER = 'treasurer'
GENERAL = 'general'

"""
Community role hierarchy, most privileged first.
"""
ROLE_CHOICES = [
    (SYSTEM_ADMIN, 'System admin'),
    (ADMIN, 'Admin'),
    (MODERATOR, 'Moderator'),
    (CHAIRPERSON, 'Chairperson'),
    (VICE_CHAIR, 'Vice chair'),
    (SECRETARY, 'Secretary'),
    (ORGANIZING_SECRETARY, 'Organizing secretary'),
    (TREASURER, 'Treasurer'),
    (GENERAL, 'General member'),
]

"""
Roles allowed to delete any chat message, not only their own.
"""
PRIVILEGED_ROLES = frozenset({SYSTEM_ADMIN, ADMIN, MODERATOR})

# Default role for members; the only role that may not clear the chat.
DEFAULT_ROLE = GENERAL


def can_moderate(role):
    """Return True if ``role`` may delete messages written by others."""
    return role in PRIVILEGED_ROLES


def can_clear(role):
    """Return True if ``role`` may wipe the whole chat."""
    return bool(role) and role != DEFAULT_ROLE


# ============================================================================
# SECTION 1: USER MODEL
# ============================================================================

class User(AbstractUser):
    """
    Community member.

    Extends Django's AbstractUser with the member's role in the community.
    The chat layer never reads this model on the request path: the role
    travels inside the bearer token, and is only looked up here when a
    token is issued.

    Attributes:
        role (CharField): Community role, one of ROLE_CHOICES

    Properties:
        is_moderator: True if the member may delete other people's messages

    Example:
        user = User.objects.create_user('alice', password='s3cret', role='moderator')
        if user.is_moderator:
            print(f"{user.username} can moderate the chat")
    """

    role = models.CharField(
        max_length=32,
        choices=ROLE_CHOICES,
        default=DEFAULT_ROLE,
        help_text="Community role; controls chat moderation rights"
    )

    @property
    def is_moderator(self):
        return can_moderate(self.role)


# ============================================================================
# SECTION 2: CHAT MODELS
# ============================================================================

class ChatMessage(models.Model):
    """
    A single message in the community chat.

    Attributes:
        author_username (CharField): Sender's username (immutable)
        author_role (CharField): Sender's role at the time of sending
        body (TextField): Message text, trimmed
        created_at (DateTimeField): Server-assigned timestamp (ms precision)
        reply_to (CharField): Id of the message being replied to, if any
        reply_to_username (CharField): Snapshot of the replied message author
        reply_to_content (TextField): Snapshot of the replied message text

    Related Names:
        reactions: QuerySet of ChatReaction objects

    Meta:
        ordering: Oldest first, insertion order on ties
    """

    author_username = models.CharField(
        max_length=150,
        db_index=True,
        help_text="Username of the sender"
    )
    author_role = models.CharField(
        max_length=32,
        default=DEFAULT_ROLE,
        help_text="Sender role snapshot taken when the message was sent"
    )
    body = models.TextField(
        help_text="Message text"
    )
    created_at = models.DateTimeField(
        db_index=True,
        help_text="Server-assigned creation timestamp"
    )
    reply_to = models.CharField(
        max_length=64,
        blank=True,
        null=True,
        help_text="Id of the message this one replies to"
    )
    reply_to_username = models.CharField(
        max_length=150,
        blank=True,
        null=True,
        help_text="Author of the replied message (snapshot)"
    )
    reply_to_content = models.TextField(
        blank=True,
        null=True,
        help_text="Text of the replied message (snapshot)"
    )

    class Meta:
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"{self.author_username}: {self.body[:30]}"


class ChatReaction(models.Model):
    """
    One member's emoji reaction on a chat message.

    Attributes:
        message (ForeignKey): Message being reacted to
        emoji (CharField): Any emoji string
        username (CharField): Member who reacted
        created_at (DateTimeField): When the reaction was added

    Meta:
        unique_together: One row per (message, emoji, username)
        ordering: Oldest first, so usernames keep the order they reacted in
    """

    message = models.ForeignKey(
        ChatMessage,
        on_delete=models.CASCADE,
        related_name='reactions',
        help_text="Message being reacted to"
    )
    emoji = models.TextField(
        help_text="Reaction emoji (any string)"
    )
    username = models.CharField(
        max_length=150,
        help_text="Member who reacted"
    )
    created_at = models.DateTimeField(
        auto_now_add=True,
        help_text="Reaction timestamp"
    )

    class Meta:
        unique_together = ('message', 'emoji', 'username')
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"{self.username} {self.emoji} on #{self.message_id}"
