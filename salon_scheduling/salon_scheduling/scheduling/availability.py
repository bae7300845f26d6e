"""
Availability Window Resolver

Calcula la ventana efectiva de un día intersectando:
- El horario por defecto del tenant (Salon Working Hours o fallback 09:00-21:00)
- El horario semanal del empleado (Employee Schedule), si existe
- El horario semanal del doctor (Doctor Schedule), si existe

check_business_hours valida una reserva contra el horario del tenant solo.
"""

from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple, Union

from .models import BusinessHours, Interval, ResourceRef, WeeklySchedule, build_interval
from .repository import ScheduleRepository
from .timeutils import day_of_week, time_to_minutes, to_date


DEFAULT_WORK_START = "09:00"
DEFAULT_WORK_END = "21:00"


def resolve_effective_window(
	work_start: str = DEFAULT_WORK_START,
	work_end: str = DEFAULT_WORK_END,
	employee_schedule: Optional[WeeklySchedule] = None,
	doctor_schedule: Optional[WeeklySchedule] = None
) -> Optional[Interval]:
	"""
	Intersecta el horario por defecto con los horarios semanales del día.

	Args:
		work_start: inicio del horario por defecto ("HH:MM")
		work_end: fin del horario por defecto ("HH:MM")
		employee_schedule: fila del empleado para el día (None = sin restricción)
		doctor_schedule: fila del doctor para el día (None = sin restricción)

	Returns:
		Interval con la ventana abierta, o None si el día está cerrado

	Algoritmo:
		1. Empezar con [work_start, work_end)
		2. Si el empleado tiene fila: no disponible -> cerrado; si no, recortar
		3. Igual para el doctor
		4. Si start >= end tras recortar -> cerrado
	"""
	start = time_to_minutes(work_start)
	end = time_to_minutes(work_end)

	for schedule in (employee_schedule, doctor_schedule):
		if schedule is None:
			continue

		if not schedule.is_available:
			return None

		schedule_window = schedule.interval
		start = max(start, schedule_window.start)
		end = min(end, schedule_window.end)

	if start >= end:
		return None

	return Interval(start, end)


def default_window_for_day(
	business_hours: Optional[BusinessHours],
	fallback_start: str = DEFAULT_WORK_START,
	fallback_end: str = DEFAULT_WORK_END
) -> Optional[Tuple[str, str]]:
	"""
	Horario por defecto del tenant para un día.

	Returns:
		(start, end) como strings "HH:MM", o None si el tenant cierra ese día
	"""
	if business_hours is None:
		return (fallback_start, fallback_end)

	if not business_hours.is_open:
		return None

	return (business_hours.start_time, business_hours.end_time)


def get_effective_window(
	repository: ScheduleRepository,
	tenant_id: str,
	target_date: Union[date, str],
	employee: Optional[ResourceRef] = None,
	doctor: Optional[ResourceRef] = None,
	fallback_start: str = DEFAULT_WORK_START,
	fallback_end: str = DEFAULT_WORK_END
) -> Optional[Interval]:
	"""
	Lee los horarios necesarios y resuelve la ventana efectiva del día.

	Si alguna lectura falla, el error se propaga: no se resuelve con datos
	incompletos.
	"""
	target_date = to_date(target_date)
	weekday = day_of_week(target_date)

	default_window = default_window_for_day(
		repository.get_business_hours(tenant_id, weekday),
		fallback_start,
		fallback_end
	)
	if default_window is None:
		return None

	employee_schedule = None
	if employee is not None:
		employee_schedule = repository.get_weekly_schedule(tenant_id, employee, weekday)

	doctor_schedule = None
	if doctor is not None:
		doctor_schedule = repository.get_weekly_schedule(tenant_id, doctor, weekday)

	return resolve_effective_window(
		default_window[0],
		default_window[1],
		employee_schedule,
		doctor_schedule
	)


def check_business_hours(
	repository: ScheduleRepository,
	tenant_id: str,
	target_date: Union[date, str],
	start_time: str,
	duration_minutes: int,
	fallback_start: str = DEFAULT_WORK_START,
	fallback_end: str = DEFAULT_WORK_END
) -> Dict[str, Any]:
	"""
	Verifica que la reserva caiga completa dentro del horario del tenant.

	Returns:
		dict: {
			"within_business_hours": bool,
			"closed": bool (el tenant no abre ese día),
			"window": {"start_time", "end_time"} o None si está cerrado
		}
	"""
	candidate = build_interval(start_time, duration_minutes)
	target_date = to_date(target_date)

	default_window = default_window_for_day(
		repository.get_business_hours(tenant_id, day_of_week(target_date)),
		fallback_start,
		fallback_end
	)
	if default_window is None:
		return {"within_business_hours": False, "closed": True, "window": None}

	window = Interval(time_to_minutes(default_window[0]), time_to_minutes(default_window[1]))

	return {
		"within_business_hours": window.contains(candidate),
		"closed": False,
		"window": {"start_time": default_window[0], "end_time": default_window[1]}
	}


def get_available_dates(
	repository: ScheduleRepository,
	tenant_id: str,
	start_date: Union[date, str],
	days: int = 30,
	employee: Optional[ResourceRef] = None,
	doctor: Optional[ResourceRef] = None,
	duration_minutes: Optional[int] = None,
	fallback_start: str = DEFAULT_WORK_START,
	fallback_end: str = DEFAULT_WORK_END
) -> List[str]:
	"""
	Fechas de los próximos N días con ventana efectiva abierta.

	Args:
		start_date: primer día a evaluar (normalmente "hoy" del tenant)
		days: cantidad de días a evaluar
		duration_minutes: si se indica, la ventana debe poder contenerla

	Returns:
		list[str]: fechas "YYYY-MM-DD" en orden ascendente
	"""
	start_date = to_date(start_date)

	# Los horarios son semanales: se leen una vez y se indexan por día
	employee_by_day = _index_by_day(repository, tenant_id, employee)
	doctor_by_day = _index_by_day(repository, tenant_id, doctor)
	business_by_day: Dict[int, Optional[BusinessHours]] = {}

	available = []
	for offset in range(days):
		current_date = start_date + timedelta(days=offset)
		weekday = day_of_week(current_date)

		if weekday not in business_by_day:
			business_by_day[weekday] = repository.get_business_hours(tenant_id, weekday)

		default_window = default_window_for_day(business_by_day[weekday], fallback_start, fallback_end)
		if default_window is None:
			continue

		window = resolve_effective_window(
			default_window[0],
			default_window[1],
			employee_by_day.get(weekday),
			doctor_by_day.get(weekday)
		)
		if window is None:
			continue
		if duration_minutes and window.duration < duration_minutes:
			continue

		available.append(current_date.strftime("%Y-%m-%d"))

	return available


def _index_by_day(
	repository: ScheduleRepository,
	tenant_id: str,
	resource: Optional[ResourceRef]
) -> Dict[int, WeeklySchedule]:
	if resource is None:
		return {}
	return {
		schedule.day_of_week: schedule
		for schedule in repository.get_weekly_schedules(tenant_id, resource)
	}
