"""
Module ORM Registry (``statutory_modules._orm_registry``).

Responsibility
--------------
Ensure kernel and module SQLAlchemy ORM models are imported so that
``Base.metadata`` contains every table before ``create_tables()`` runs.

Architecture position
---------------------
**Modules layer** -- utility.  Called by ``statutory_kernel.db.engine``.
"""


def import_all_orm_models() -> None:
    """Import kernel models and every module ``orm`` package (idempotent)."""
    # Kernel tables first (companies, accounts, journal)
    import statutory_kernel.models  # noqa: F401
    import statutory_modules.form6111.orm  # noqa: F401
