"""
WSGI config for the community project.

The Socket.IO server of the chat service wraps the Django application:
requests under /socket.io/ go to the realtime channel, everything else to
Django.
"""

import atexit
import os

import socketio
from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "community.settings")

django_application = get_wsgi_application()

from chat.service import get_chat_service  # noqa: E402  (needs the app registry)

chat_service = get_chat_service()
application = socketio.WSGIApp(chat_service.sio, django_application)

chat_service.start()
atexit.register(chat_service.stop)
