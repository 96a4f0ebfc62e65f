"""
WSGI / Flask CLI entry point.

Usage:
    flask --app wsgi init-db            # create tables
    flask --app wsgi init-db --drop     # drop and recreate
    flask --app wsgi seed-rbac          # default roles + permissions
"""

from taskboard import create_app

app = create_app()
