from django.urls import re_path

from .consumers import NotificationConsumer, UpdatesConsumer

websocket_urlpatterns = [
    re_path(r"^ws/notifications/?$", NotificationConsumer.as_asgi()),
    re_path(r"^ws/updates/?$", UpdatesConsumer.as_asgi()),
]
