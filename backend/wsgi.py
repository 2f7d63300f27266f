# backend/wsgi.py
from cashboard import create_app

app = create_app()
