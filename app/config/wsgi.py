"""
WSGI entry point.

The project is served through ASGI (config.asgi) so WebSockets work; this
callable remains for management tooling and plain-HTTP deployments.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()
