"""Base exporter abstraction for workout exports.

Exporters turn the device-ready StepPlan of one session into a file for a
watch or training platform. Each exporter also names the file it produces.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod

from norskflow.planning.models import Sport
from norskflow.workouts.steps import StepPlan

_SLUG = re.compile(r"[^a-z0-9]+")


class WorkoutExporter(ABC):
    """Base class for workout exporters."""

    export_type: str
    extension: str

    @abstractmethod
    def build(self, step_plan: StepPlan, title: str, sport: Sport) -> bytes:
        """Build export data from a step plan.

        Args:
            step_plan: Steps and repeat markers of one session
            title: Workout name
            sport: Sport the workout is for

        Returns:
            Export data as bytes

        Raises:
            ValueError: If the plan has no steps
        """
        raise NotImplementedError

    def filename_for(self, title: str) -> str:
        """File name derived from the workout title ("SubT 5x2km" -> "subt-5x2km.fit")."""
        slug = _SLUG.sub("-", title.lower()).strip("-") or "workout"
        return f"{slug}.{self.extension}"
