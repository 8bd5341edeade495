"""Domain port interfaces for hexagonal architecture.

Ports define abstract interfaces that the domain layer uses to interact
with external services. Implementations (adapters) live in infrastructure.
"""

from tabula.foundation.domain.ports.record_store import RecordStorePort

__all__ = ["RecordStorePort"]
