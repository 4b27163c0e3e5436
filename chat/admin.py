from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import ChatMessage, ChatReaction, User

# ==================== ADMIN CLASSES ====================

@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ('username', 'email', 'role', 'is_staff', 'date_joined')
    list_filter = ('role', 'is_staff', 'is_active')
    search_fields = ('username', 'email')
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Community', {'fields': ('role',)}),
    )
    actions = ['make_moderators', 'make_general']

    def make_moderators(self, request, queryset):
        updated = queryset.update(role='moderator')
        self.message_user(request, f"{updated} users made moderators")
    make_moderators.short_description = "Make selected users moderators"

    def make_general(self, request, queryset):
        updated = queryset.update(role='general')
        self.message_user(request, f"{updated} users set to general members")
    make_general.short_description = "Set selected users to general members"


class ChatReactionInline(admin.TabularInline):
    model = ChatReaction
    extra = 0


@admin.register(ChatMessage)
class ChatMessageAdmin(admin.ModelAdmin):
    list_display = ('id', 'author_username', 'author_role', 'created_at', 'content_short')
    list_filter = ('author_role', 'created_at')
    search_fields = ('body', 'author_username')
    inlines = [ChatReactionInline]

    def content_short(self, obj):
        if obj.body:
            return obj.body[:80] + '...' if len(obj.body) > 80 else obj.body
        return "(no content)"
    content_short.short_description = 'Content'


@admin.register(ChatReaction)
class ChatReactionAdmin(admin.ModelAdmin):
    list_display = ('id', 'message', 'emoji', 'username', 'created_at')
    search_fields = ('username', 'emoji')
