"""
WSGI config for the chat backend.

Only serves the HTTP API. The realtime gateway needs the ASGI application
(config.asgi), so production runs under an ASGI server.

For more information on this file, see:
https://docs.djangoproject.com/en/5.2/howto/deployment/wsgi/
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()
