"""WSGI service storing video metadata in SQLite and serving media assets and static files."""

__version__ = "0.1.0"