"""Vehicle-capacity grouping."""

from .service import (
    CapacityGroup,
    CapacityStatistics,
    check_capacity_constraint,
    group_by_capacity,
    summarize_groups,
)

__all__ = [
    "CapacityGroup",
    "CapacityStatistics",
    "check_capacity_constraint",
    "group_by_capacity",
    "summarize_groups",
]
