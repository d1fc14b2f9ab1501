# wsgi.py
from rentals import create_app

app = create_app()
