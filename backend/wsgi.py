# backend/wsgi.py
from lojaroupa import create_app

app = create_app()
