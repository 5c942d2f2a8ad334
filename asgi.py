"""
asgi.py -- Process assembly for the hospital records service.

Settings are read here, once, at process start; everything else receives them
through create_app().

Run with:  uvicorn asgi:app --reload
"""

from api.main import create_app
from core.config import get_settings

app = create_app(get_settings())
