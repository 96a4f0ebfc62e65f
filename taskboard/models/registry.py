"""
Schema registry.

``init_models(db)`` loads every model module, which declares the tables and
relationships on the handle's metadata, and returns the entity name ->
model class mapping that services and callers work with:

    from taskboard.models import db
    from taskboard.models.registry import init_models

    models = init_models(db)
    Task = models["Task"]

No I/O happens here; tables are created by ``db.create_all()`` (application
factory or ``flask init-db``). Calling it again returns the same classes.
"""

import importlib
import logging

logger = logging.getLogger(__name__)

ENTITY_NAMES = (
    "User",
    "Team",
    "Project",
    "Task",
    "TimeEntry",
    "Notification",
    "Comment",
    "Role",
    "Permission",
    "UserRole",
    "RolePermission",
)

_MODEL_MODULES = (
    "taskboard.models.auth",
    "taskboard.models.team",
    "taskboard.models.project",
    "taskboard.models.task",
    "taskboard.models.time_entry",
    "taskboard.models.notification",
    "taskboard.models.comment",
)

# id(handle) -> mapping
_registries: dict[int, dict[str, type]] = {}


def init_models(database=None) -> dict[str, type]:
    """Declare the schema on ``database`` and return the entity mapping."""
    if database is None:
        from taskboard.models import db as database

    cached = _registries.get(id(database))
    if cached is not None:
        return dict(cached)

    for module_name in _MODEL_MODULES:
        importlib.import_module(module_name)

    declared = {mapper.class_.__name__: mapper.class_ for mapper in database.Model.registry.mappers}
    registry = {name: declared[name] for name in ENTITY_NAMES if name in declared}

    missing = [name for name in ENTITY_NAMES if name not in registry]
    if missing:
        logger.warning("Schema registry incomplete: handle does not carry %s", ", ".join(missing))
    else:
        _registries[id(database)] = registry
        logger.debug("Schema registry ready: %d entities, %d tables",
                     len(registry), len(database.metadata.tables))

    return dict(registry)
