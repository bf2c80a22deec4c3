# backend/wsgi.py
from smartseller import create_app

app = create_app()
