"""
Statutory reporting modules.

Each module follows the same layout: ``config`` (dataclass configuration),
``models`` (frozen DTOs), pure computation modules, ``orm`` (persistence),
``workflows`` (lifecycle state machines) and ``service`` (orchestration).
"""
