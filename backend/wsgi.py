# backend/wsgi.py
from procsim import create_app

app = create_app()
