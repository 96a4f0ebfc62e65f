"""
Taskboard data model.

``db`` is the Flask-SQLAlchemy handle every model module is declared
against. Call ``taskboard.models.registry.init_models(db)`` to load all
model modules and get the entity name -> model class mapping.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
