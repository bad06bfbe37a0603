"""FIT file exporter for Garmin-compatible workout files.

Converts a StepPlan into a Garmin FIT workout file. Repeat blocks are
written as REPEAT_UNTIL_STEPS_CMPLT steps that point back at the first step
of the block instead of unrolling every repetition.
"""

from __future__ import annotations

from datetime import datetime, timezone
from io import BytesIO
from typing import ClassVar

from fit_tool.fit_file_builder import FitFileBuilder
from fit_tool.profile.messages.file_id_message import FileIdMessage
from fit_tool.profile.messages.workout_message import WorkoutMessage
from fit_tool.profile.messages.workout_step_message import WorkoutStepMessage
from fit_tool.profile.profile_type import (
    FileType,
    Intensity,
    Manufacturer,
    Sport as FitSport,
    WorkoutStepDuration,
    WorkoutStepTarget,
)
from garmin_fit_sdk import Decoder, Stream
from loguru import logger

from norskflow.planning.models import Sport
from norskflow.workouts.exporters.base import WorkoutExporter
from norskflow.workouts.steps import DurationKind, EncodedStep, RepeatStep, StepIntensity, StepPlan, TargetKind

# Custom heart-rate and power targets are offset in the FIT profile:
# 0-100 are zones / % of max, so absolute values start above them.
HEART_RATE_OFFSET = 100
POWER_OFFSET = 1000

WORKOUT_NAME_LIMIT = 15
STEP_NAME_LIMIT = 50


class FitWorkoutExporter(WorkoutExporter):
    """FIT file exporter for Garmin workouts."""

    export_type = "fit"
    extension = "fit"

    SPORT_MAP: ClassVar[dict[Sport, FitSport]] = {
        Sport.RUN: FitSport.RUNNING,
        Sport.BIKE: FitSport.CYCLING,
    }

    INTENSITY_MAP: ClassVar[dict[StepIntensity, Intensity]] = {
        StepIntensity.WARMUP: Intensity.WARMUP,
        StepIntensity.ACTIVE: Intensity.ACTIVE,
        StepIntensity.REST: Intensity.REST,
        StepIntensity.COOLDOWN: Intensity.COOLDOWN,
    }

    TARGET_MAP: ClassVar[dict[TargetKind, WorkoutStepTarget]] = {
        TargetKind.SPEED: WorkoutStepTarget.SPEED,
        TargetKind.HEART_RATE: WorkoutStepTarget.HEART_RATE,
        TargetKind.POWER: WorkoutStepTarget.POWER,
        TargetKind.OPEN: WorkoutStepTarget.OPEN,
    }

    def build(self, step_plan: StepPlan, title: str, sport: Sport) -> bytes:
        """Build FIT workout file from a step plan.

        Args:
            step_plan: Steps and repeat markers of one session
            title: Workout name (truncated to the FIT 15-char limit)
            sport: Run or bike

        Returns:
            FIT file data as bytes

        Raises:
            ValueError: If the plan has no steps
        """
        if not step_plan.steps:
            raise ValueError("Workout must have at least one step")

        flat = step_plan.flatten()
        builder = FitFileBuilder(auto_define=True, min_string_size=50)

        file_id_message = FileIdMessage()
        file_id_message.type = FileType.WORKOUT
        file_id_message.manufacturer = Manufacturer.DEVELOPMENT.value
        file_id_message.product = 0
        # fit_tool takes Unix milliseconds and shifts them to the FIT epoch itself
        file_id_message.time_created = round(datetime.now(timezone.utc).timestamp() * 1000)
        file_id_message.serial_number = 0x12345678
        builder.add(file_id_message)

        workout_msg = WorkoutMessage()
        workout_msg.sport = self.SPORT_MAP.get(sport, FitSport.RUNNING)
        workout_msg.num_valid_steps = len(flat)
        if title:
            workout_msg.workout_name = title[:WORKOUT_NAME_LIMIT]
        builder.add(workout_msg)

        for step_idx, item in enumerate(flat):
            if isinstance(item, RepeatStep):
                builder.add(self._repeat_message(step_idx, item))
            else:
                builder.add(self._step_message(step_idx, item))

        fit_bytes = builder.build().to_bytes()

        # Validate the generated FIT file by attempting to decode it
        decoder = Decoder(Stream.from_bytes_io(BytesIO(fit_bytes)))
        _, errors = decoder.read()
        if errors:
            logger.warning(f"Generated FIT file failed validation: {errors}, but returning anyway")
        else:
            logger.debug(f"Generated FIT file validated successfully ({len(fit_bytes)} bytes, {len(flat)} steps)")

        return fit_bytes

    def _step_message(self, step_idx: int, step: EncodedStep) -> WorkoutStepMessage:
        step_msg = WorkoutStepMessage()
        step_msg.message_index = step_idx
        step_msg.intensity = self.INTENSITY_MAP.get(step.intensity, Intensity.ACTIVE)
        if step.name:
            step_msg.workout_step_name = step.name[:STEP_NAME_LIMIT]

        if step.duration.kind == DurationKind.TIME:
            step_msg.duration_type = WorkoutStepDuration.TIME
            step_msg.duration_time = step.duration.seconds
        elif step.duration.kind == DurationKind.DISTANCE:
            step_msg.duration_type = WorkoutStepDuration.DISTANCE
            step_msg.duration_distance = step.duration.meters
        else:
            step_msg.duration_type = WorkoutStepDuration.OPEN

        target = step.target
        step_msg.target_type = self.TARGET_MAP.get(target.kind, WorkoutStepTarget.OPEN)
        if target.kind == TargetKind.SPEED:
            step_msg.target_value = 0  # 0 selects the custom range
            # Speed subfield is in m/s; fit_tool applies the x1000 scale
            step_msg.custom_target_value_low = target.low / 1000
            step_msg.custom_target_value_high = target.high / 1000
        elif target.kind == TargetKind.HEART_RATE:
            step_msg.target_value = 0
            step_msg.custom_target_value_low = target.low + HEART_RATE_OFFSET
            step_msg.custom_target_value_high = target.high + HEART_RATE_OFFSET
        elif target.kind == TargetKind.POWER:
            step_msg.target_value = 0
            step_msg.custom_target_value_low = target.low + POWER_OFFSET
            step_msg.custom_target_value_high = target.high + POWER_OFFSET

        return step_msg

    @staticmethod
    def _repeat_message(step_idx: int, repeat: RepeatStep) -> WorkoutStepMessage:
        step_msg = WorkoutStepMessage()
        step_msg.message_index = step_idx
        step_msg.duration_type = WorkoutStepDuration.REPEAT_UNTIL_STEPS_CMPLT
        step_msg.duration_value = repeat.back_to
        step_msg.target_value = repeat.count
        return step_msg
