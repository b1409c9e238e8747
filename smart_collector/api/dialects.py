"""Addressing rules for the RAID dialects smartctl understands."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from ..const import SAT_DIALECT


@dataclass(frozen=True)
class DialectPolicy:
    """How member disks behind one RAID dialect are addressed.

    start_index: lowest member index the dialect accepts
    indexed: whether the device argument carries ``,<index>``
    single_shot: whether a successful probe ends the worker's probing
    """
    name: str
    start_index: int = 0
    indexed: bool = True
    single_shot: bool = False

    def device_argument(self, base_name: str, index: int) -> str:
        """Return the smartctl device argument for a member disk."""
        if not self.indexed:
            return f"{base_name} -d {self.name}"
        return f"{base_name} -d {self.name},{index}"

    def display_name(self, base_name: str, index: int) -> str:
        """Return the name results are stored under."""
        return f"{base_name} {self.name},{index}"


DIALECT_POLICIES: Dict[str, DialectPolicy] = {
    "3ware": DialectPolicy("3ware"),
    # Areca member numbering starts at 1
    "areca": DialectPolicy("areca", start_index=1),
    "cciss": DialectPolicy("cciss"),
    "megaraid": DialectPolicy("megaraid"),
    SAT_DIALECT: DialectPolicy(SAT_DIALECT, indexed=False, single_shot=True),
}


def get_policy(dialect: str) -> DialectPolicy:
    """Return the policy for a dialect, defaulting to plain indexing."""
    return DIALECT_POLICIES.get(dialect) or DialectPolicy(dialect)
