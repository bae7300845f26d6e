"""
Working-Hours Validator

Verifica que una reserva caiga completa dentro del horario semanal de UN
recurso. Se llama una vez por recurso para poder informar cuál de ellos
quedó fuera de horario.
"""

from datetime import date
from typing import Any, Dict, Optional, Union

from .exceptions import SchedulingPreconditionError
from .models import ResourceRef, WeeklySchedule, build_interval
from .repository import ScheduleRepository
from .timeutils import coerce_time_string, day_of_week, to_date


def is_within_schedule(
	schedule: Optional[WeeklySchedule],
	start_time: str,
	duration_minutes: int
) -> Dict[str, Any]:
	"""
	Evalúa [start_time, start_time + duración) contra la fila de horario del día.

	Returns:
		dict: {
			"within_schedule": bool,
			"schedule": {"start_time", "end_time", "is_available"} o None
		}

	Reglas:
		- Sin fila -> dentro de horario (el horario general se valida aparte)
		- Fila no disponible -> fuera de horario; se informa la fila igual
		- Fila disponible -> la reserva no puede empezar antes ni terminar después
	"""
	candidate = build_interval(start_time, duration_minutes)

	if schedule is None:
		return {"within_schedule": True, "schedule": None}

	schedule_info = {
		"start_time": coerce_time_string(schedule.start_time),
		"end_time": coerce_time_string(schedule.end_time),
		"is_available": bool(schedule.is_available)
	}

	if not schedule.is_available:
		return {"within_schedule": False, "schedule": schedule_info}

	return {
		"within_schedule": schedule.interval.contains(candidate),
		"schedule": schedule_info
	}


def check_working_hours(
	repository: ScheduleRepository,
	tenant_id: str,
	resource: Optional[ResourceRef],
	target_date: Union[date, str],
	start_time: str,
	duration_minutes: int
) -> Dict[str, Any]:
	"""
	Lee la fila de horario del recurso para el día y valida la reserva.

	Raises:
		SchedulingPreconditionError: si no se indica recurso
	"""
	if resource is None:
		raise SchedulingPreconditionError("A resource is required to check working hours")

	# Valida hora y duración antes de leer
	build_interval(start_time, duration_minutes)

	schedule = repository.get_weekly_schedule(tenant_id, resource, day_of_week(to_date(target_date)))
	result = is_within_schedule(schedule, start_time, duration_minutes)
	result["resource_type"] = resource.resource_type.value
	return result
