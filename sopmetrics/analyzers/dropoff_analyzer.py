"""
Drop-off (funnel) analyzer for the SOP metrics system.

This module counts, for every step position across all SOPs, how many
completion events were recorded at that position. Reading the counts in
position order shows where users stop working through procedures.
"""

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Union

from sopmetrics.data.models.enums import DropoffPosition, WarningCode
from sopmetrics.data.models.metrics_model import DropoffPoint, MetricWarning
from sopmetrics.data.models.sop_model import Step
from sopmetrics.utils.data_processing_utils import filter_events_since, group_by_attribute

logger = logging.getLogger(__name__)


def _relative_positions(steps: Iterable[Step]) -> Dict[str, int]:
    """Map step id to its 0-based rank inside its own SOP."""
    positions: Dict[str, int] = {}
    for sop_steps in group_by_attribute(steps, "sop_id").values():
        ordered = sorted(sop_steps, key=lambda s: s.position_key)
        for rank, step in enumerate(ordered):
            positions[step.id] = rank
    return positions


def compute_dropoff(
    steps: Sequence[Step],
    cutoff: Optional[datetime] = None,
    position: Union[str, DropoffPosition] = DropoffPosition.INDEX,
) -> List[DropoffPoint]:
    """
    Compute the global drop-off curve.

    Steps of every SOP that share a position are grouped together and all
    their completion events are counted. Counts are reported as they are,
    even when a later position has more events than an earlier one.

    Args:
        steps: Steps of all SOPs, completion events embedded
        cutoff: Optional window cutoff applied to the events
        position: ``index`` groups by raw ``order_index``; ``relative``
            groups by each step's rank inside its SOP, so SOPs whose
            indices have gaps line up with contiguous ones

    Returns:
        List[DropoffPoint]: One point per position, ascending

    Raises:
        ValueError: If the position mode is unknown
    """
    position = DropoffPosition(position)
    ranks = _relative_positions(steps) if position is DropoffPosition.RELATIVE else {}
    counts: Dict[int, int] = {}

    for step in steps:
        slot = ranks.get(step.id, step.order_index)
        events = filter_events_since(step.completion_events, cutoff)
        counts[slot] = counts.get(slot, 0) + len(events)

    curve = [
        DropoffPoint(step_label=f"Step {slot + 1}", order_index=slot, user_count=count)
        for slot, count in sorted(counts.items())
    ]
    logger.debug(f"Drop-off curve has {len(curve)} positions ({position.value})")
    return curve


def find_funnel_increases(curve: Sequence[DropoffPoint]) -> List[MetricWarning]:
    """
    Report positions that have more events than the position before them.

    Args:
        curve: Drop-off curve in ascending position order

    Returns:
        List[MetricWarning]: One warning per increase
    """
    warnings = []
    for previous, current in zip(curve, curve[1:]):
        if current.user_count > previous.user_count:
            warnings.append(
                MetricWarning(
                    code=WarningCode.FUNNEL_INCREASE,
                    message=(
                        f"{current.step_label} has more completion events "
                        f"({current.user_count}) than {previous.step_label} "
                        f"({previous.user_count})"
                    ),
                    context={
                        "step_label": current.step_label,
                        "previous_count": previous.user_count,
                        "count": current.user_count,
                    },
                )
            )
    return warnings
