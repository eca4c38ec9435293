from django.urls import re_path

from .consumers import ClipboardConsumer


websocket_urlpatterns = [
    re_path(r"^ws/clipboard/$", ClipboardConsumer.as_asgi()),
]
