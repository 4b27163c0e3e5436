from django.apps import AppConfig


class ChatConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Community chat"

    def ready(self):
        from .service import ChatService

        self.service = ChatService.from_settings()
