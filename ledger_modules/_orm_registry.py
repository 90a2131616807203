"""
Module ORM Registry (``ledger_modules._orm_registry``).

Responsibility
--------------
Import every module-level SQLAlchemy ORM model so that ``Base.metadata``
holds the fixed asset and reconciliation tables before tables are created.
``create_all_tables()`` is the entry point for anything that needs the
full schema.

Architecture position
---------------------
**Modules layer** -- utility.  Imports sibling ``ledger_modules`` packages
and ``ledger_kernel.db.engine`` (modules -> kernel is allowed).
MUST NOT be imported by ``ledger_kernel``.
"""


def import_all_orm_models() -> None:
    """Register kernel models, then every ``ledger_modules.*.orm`` module.

    Idempotent -- repeated calls are harmless.
    """
    import ledger_kernel.models  # noqa: F401
    import ledger_modules.assets.orm  # noqa: F401
    import ledger_modules.reconciliation.orm  # noqa: F401


def create_all_tables() -> None:
    """Create kernel and module tables on the initialized engine.

    Preconditions:
        Engine must be initialized via ``init_engine_from_url()``.
    """
    from ledger_kernel.db.engine import create_tables

    import_all_orm_models()
    create_tables()
