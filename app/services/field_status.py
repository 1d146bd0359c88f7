"""Field status classification: sensor reading + crop thresholds -> status -> color.

The rule set is pure: no I/O, no shared state, safe to call from any task.
Rules are evaluated in a fixed precedence order:

    1. irrigation running            -> irrigating
    2. unknown crop category         -> normal
    3. moisture below band           -> needs_irrigation
    4. salinity high / temp outside  -> needs_irrigation
    5. everything inside its band    -> normal
    6. moisture above band           -> needs_irrigation
    7. otherwise                     -> normal

Order matters: soil that is both too wet and too salty is reported at
step 4, and a reading sitting exactly on a band edge counts as inside it.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from app.models.crops import DEFAULT_CROP_CATEGORIES, CropCategory
from app.models.enums import FieldStatusEnum

STATUS_COLORS: Mapping[FieldStatusEnum, str] = {
	FieldStatusEnum.needs_irrigation: "#ef4444",
	FieldStatusEnum.normal: "#22c55e",
	FieldStatusEnum.irrigating: "#f97316",
}

STATUS_LABELS: Mapping[FieldStatusEnum, str] = {
	FieldStatusEnum.needs_irrigation: "Needs Irrigation",
	FieldStatusEnum.normal: "Normal",
	FieldStatusEnum.irrigating: "Irrigating",
}


class UnknownStatusError(Exception):
	"""Raised when a value outside ``FieldStatusEnum`` reaches the color lookup."""

	def __init__(self, status: object):
		super().__init__(f"unknown field status: {status!r}")
		self.status = status


@dataclass(frozen=True, slots=True)
class SensorReading:
	moisture: float
	temperature: float
	salinity: float


@dataclass(frozen=True, slots=True)
class StatusEvaluation:
	"""Classification result with the per-threshold checks behind it.

	The checks are ``None`` when no thresholds applied (irrigating, or the
	crop category is unknown).  ``moisture_low`` marks the dry-soil rule.
	"""

	status: FieldStatusEnum
	color: str
	category: CropCategory | None = None
	temperature_ok: bool | None = None
	moisture_ok: bool | None = None
	salinity_ok: bool | None = None
	moisture_low: bool = False


def evaluate(
	crop_category_id: str | None,
	reading: SensorReading,
	is_irrigating: bool,
	categories: Mapping[str, CropCategory] = DEFAULT_CROP_CATEGORIES,
) -> StatusEvaluation:
	if is_irrigating:
		return _result(FieldStatusEnum.irrigating)

	category = categories.get(crop_category_id) if crop_category_id is not None else None
	if category is None:
		return _result(FieldStatusEnum.normal)

	thresholds = category.thresholds
	temperature_ok = thresholds.temperature.contains(reading.temperature)
	moisture_ok = thresholds.moisture.contains(reading.moisture)
	salinity_ok = reading.salinity <= thresholds.salinity_max
	below_min = reading.moisture < thresholds.moisture.min

	if below_min:
		status = FieldStatusEnum.needs_irrigation
	elif not salinity_ok or not temperature_ok:
		status = FieldStatusEnum.needs_irrigation
	elif temperature_ok and moisture_ok and salinity_ok:
		status = FieldStatusEnum.normal
	elif not moisture_ok:
		status = FieldStatusEnum.needs_irrigation
	else:
		status = FieldStatusEnum.normal

	return StatusEvaluation(
		status=status,
		color=color_for(status),
		category=category,
		temperature_ok=temperature_ok,
		moisture_ok=moisture_ok,
		salinity_ok=salinity_ok,
		moisture_low=below_min,
	)


def classify(
	crop_category_id: str | None,
	reading: SensorReading,
	is_irrigating: bool,
	categories: Mapping[str, CropCategory] = DEFAULT_CROP_CATEGORIES,
) -> FieldStatusEnum:
	"""Return the field status for one reading; never raises on numeric input."""
	return evaluate(crop_category_id, reading, is_irrigating, categories).status


def color_for(status: FieldStatusEnum | str) -> str:
	"""Hex display color for a status; anything else is a contract violation."""
	try:
		return STATUS_COLORS[FieldStatusEnum(status)]
	except (ValueError, KeyError) as exc:
		raise UnknownStatusError(status) from exc


def _result(status: FieldStatusEnum) -> StatusEvaluation:
	return StatusEvaluation(status=status, color=color_for(status))
