"""
WSGI config for the RotaOnco API.

It exposes the WSGI callable as a module-level variable named ``application``.
"""
import os

from django.core.wsgi import get_wsgi_application  # type: ignore

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'rotaonco.settings')

application = get_wsgi_application()
