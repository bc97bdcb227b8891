# app/catalog.py
"""
Static catalog of tracked Zurich pools.
Only ids listed here are stored; everything else in the upstream feed is ignored.
"""

from dataclasses import dataclass
from types import MappingProxyType


@dataclass(frozen=True)
class PoolDefinition:
    pool_id: str
    pool_name: str
    pool_type: str   # indoor | outdoor


_DEFINITIONS = (
    PoolDefinition("SSD-4", "Hallenbad City", "indoor"),
    PoolDefinition("SSD-7", "Hallenbad Oerlikon", "indoor"),
    PoolDefinition("SSD-10", "Utoquai", "outdoor"),
    PoolDefinition("SSD-6", "Leimbach", "indoor"),
    PoolDefinition("fb012", "Heuried", "outdoor"),
    PoolDefinition("BADI-1", "Enge", "outdoor"),
)

POOLS = MappingProxyType({p.pool_id: p for p in _DEFINITIONS})


def is_tracked(pool_id) -> bool:
    return isinstance(pool_id, str) and pool_id in POOLS


def pool_name(pool_id: str) -> str:
    """Display name for a tracked pool; the id itself if the pool is unknown."""
    pool = POOLS.get(pool_id)
    return pool.pool_name if pool else pool_id


def list_pools() -> list[dict]:
    """Catalog listing in the shape served by GET /api/pools."""
    return [
        {"pool_id": p.pool_id, "pool_name": p.pool_name, "type": p.pool_type}
        for p in POOLS.values()
    ]
