import json
import logging
from functools import wraps

from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from .auth import token_required
from .errors import ChatError, ValidationError
from .service import get_chat_service
from .store import format_timestamp

# Logger
logger = logging.getLogger(__name__)


def chat_api(view_func):
    """Render ChatError raised by ``view_func`` as ``{"error": ...}`` JSON."""

    @wraps(view_func)
    def _wrapped(request, *args, **kwargs):
        try:
            return view_func(request, *args, **kwargs)
        except ChatError as exc:
            if exc.status_code >= 500:
                logger.error(f"{request.method} {request.path} failed: {exc}")
            return JsonResponse({"error": exc.message}, status=exc.status_code)

    return _wrapped


def _json_body(request):
    if not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except (ValueError, UnicodeDecodeError):
        raise ValidationError("Invalid JSON body")
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON body")
    return data


@csrf_exempt
@require_http_methods(["GET", "POST"])
@token_required
@chat_api
def chat_messages(request):
    service = get_chat_service()
    if request.method == "POST":
        data = _json_body(request)
        message = service.send_message(request.chat_identity, data.get("message"), reply_to=data.get("replyTo"))
        return JsonResponse({"success": True, "message": message.to_dict()})
    return JsonResponse({"messages": service.messages()})


@require_GET
@token_required
@chat_api
def messages_since(request, timestamp):
    return JsonResponse({"messages": get_chat_service().messages_since(timestamp)})


@csrf_exempt
@require_http_methods(["DELETE"])
@token_required
@chat_api
def delete_message(request, message_id):
    get_chat_service().delete_message(request.chat_identity, message_id)
    return JsonResponse({"success": True})


@csrf_exempt
@require_http_methods(["DELETE"])
@token_required
@chat_api
def clear_messages(request):
    get_chat_service().clear_messages(request.chat_identity)
    return JsonResponse({"success": True, "message": "All messages cleared"})


@csrf_exempt
@require_POST
@token_required
@chat_api
def toggle_reaction(request, message_id):
    data = _json_body(request)
    reactions = get_chat_service().toggle_reaction(request.chat_identity, message_id, data.get("emoji"))
    return JsonResponse({"success": True, "reactions": reactions})


@csrf_exempt
@require_POST
@token_required
@chat_api
def typing_status(request):
    data = _json_body(request)
    get_chat_service().set_typing(request.chat_identity, bool(data.get("isTyping")))
    return JsonResponse({"success": True})


@require_GET
@token_required
@chat_api
def typing_users(request):
    return JsonResponse({"typingUsers": get_chat_service().typing_users(request.chat_identity)})


@require_GET
@token_required
@chat_api
def online_users(request):
    return JsonResponse({"onlineUsers": get_chat_service().online_users()})


@require_GET
def health(request):
    return JsonResponse({"status": "ok", "timestamp": format_timestamp(timezone.now())})
