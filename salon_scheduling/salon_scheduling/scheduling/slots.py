"""
Slot Finder

Busca horarios libres dentro de la ventana efectiva de un día:
- find_first_fit: primer hueco donde cabe la duración (scan greedy)
- enumerate_slots: horarios discretos cada N minutos para la UI de reservas
"""

from datetime import date
from typing import Dict, Iterable, List, Optional, Union

from .availability import DEFAULT_WORK_END, DEFAULT_WORK_START, get_effective_window
from .exceptions import SchedulingPreconditionError
from .models import Interval, ResourceRef, validate_duration
from .repository import ScheduleRepository
from .timeutils import minutes_to_time, to_date


DEFAULT_SLOT_INTERVAL_MINUTES = 15


def find_first_fit(
	window: Interval,
	busy_intervals: Iterable[Interval],
	duration_minutes: int
) -> Optional[int]:
	"""
	Primer minuto donde cabe duration_minutes sin tocar intervalos ocupados.

	Args:
		window: ventana efectiva del día
		busy_intervals: intervalos ocupados (pueden solaparse entre sí)
		duration_minutes: duración pedida

	Returns:
		int: minuto de inicio del slot, o None si no cabe

	Algoritmo:
		1. Ordenar los intervalos ocupados por inicio
		2. Cursor = inicio de la ventana
		3. Para cada intervalo: si cursor + duración <= inicio -> slot en cursor;
		   si no, cursor = max(cursor, fin del intervalo)
		4. Al final, si cursor + duración <= fin de la ventana -> slot en cursor

	No hace falta fusionar intervalos: el cursor solo avanza, así que los
	solapes entre intervalos quedan cubiertos por el max().
	"""
	validate_duration(duration_minutes)

	cursor = window.start
	for busy in sorted(busy_intervals, key=lambda interval: interval.start):
		if cursor + duration_minutes > window.end:
			return None
		if cursor + duration_minutes <= busy.start:
			return cursor
		cursor = max(cursor, busy.end)

	if cursor + duration_minutes <= window.end:
		return cursor

	return None


def enumerate_slots(
	window: Interval,
	busy_intervals: Iterable[Interval],
	duration_minutes: int,
	step_minutes: int = DEFAULT_SLOT_INTERVAL_MINUTES,
	earliest_start: Optional[int] = None
) -> List[int]:
	"""
	Inicios discretos (cada step_minutes desde el inicio de la ventana) donde
	[inicio, inicio + duración) cabe en la ventana y no toca ningún ocupado.

	Args:
		earliest_start: descarta inicios anteriores a este minuto (p. ej. "ahora")
	"""
	validate_duration(duration_minutes)
	if step_minutes <= 0:
		raise SchedulingPreconditionError(f"step_minutes must be positive, got {step_minutes}")

	busy = sorted(busy_intervals, key=lambda interval: interval.start)
	starts = []

	cursor = window.start
	while cursor + duration_minutes <= window.end:
		candidate = Interval(cursor, cursor + duration_minutes)
		if earliest_start is None or cursor >= earliest_start:
			if not any(candidate.overlaps(interval) for interval in busy):
				starts.append(cursor)
		cursor += step_minutes

	return starts


def collect_busy_intervals(
	repository: ScheduleRepository,
	tenant_id: str,
	target_date: date,
	resources: Iterable[ResourceRef],
	exclude_appointment_id: Optional[str] = None
) -> List[Interval]:
	"""
	Unión de los intervalos ocupados de todos los recursos nombrados.

	Si cualquiera de los recursos está ocupado, el horario no se puede reservar.
	"""
	busy = []
	for resource in resources:
		appointments = repository.get_appointments_for_resource(
			tenant_id,
			target_date,
			resource,
			exclude_appointment_id=exclude_appointment_id
		)
		for appointment in appointments:
			if not appointment.is_blocking:
				continue
			if exclude_appointment_id and appointment.id == exclude_appointment_id:
				continue
			busy.append(appointment.interval)

	return busy


def find_next_available_slot(
	repository: ScheduleRepository,
	tenant_id: str,
	target_date: Union[date, str],
	duration_minutes: int,
	employee: Optional[ResourceRef] = None,
	doctor: Optional[ResourceRef] = None,
	work_start: str = DEFAULT_WORK_START,
	work_end: str = DEFAULT_WORK_END,
	exclude_appointment_id: Optional[str] = None
) -> Optional[str]:
	"""
	Próximo horario libre del día para la duración pedida.

	Returns:
		str: "HH:MM", o None si no hay slot ese día
	"""
	validate_duration(duration_minutes)
	target_date = to_date(target_date)

	window = get_effective_window(
		repository, tenant_id, target_date, employee, doctor, work_start, work_end
	)
	if window is None:
		return None

	resources = [ref for ref in (employee, doctor) if ref is not None]
	busy = collect_busy_intervals(repository, tenant_id, target_date, resources, exclude_appointment_id)

	start = find_first_fit(window, busy, duration_minutes)
	if start is None:
		return None

	return minutes_to_time(start)


def list_available_slots(
	repository: ScheduleRepository,
	tenant_id: str,
	target_date: Union[date, str],
	duration_minutes: int,
	employee: Optional[ResourceRef] = None,
	doctor: Optional[ResourceRef] = None,
	work_start: str = DEFAULT_WORK_START,
	work_end: str = DEFAULT_WORK_END,
	step_minutes: int = DEFAULT_SLOT_INTERVAL_MINUTES,
	earliest_start: Optional[int] = None,
	exclude_appointment_id: Optional[str] = None
) -> List[Dict[str, str]]:
	"""
	Horarios reservables de un día para la UI de reservas.

	Returns:
		list[dict]: [
			{"start": "10:00", "end": "10:30"},
			...
		]
	"""
	validate_duration(duration_minutes)
	target_date = to_date(target_date)

	window = get_effective_window(
		repository, tenant_id, target_date, employee, doctor, work_start, work_end
	)
	if window is None:
		return []

	resources = [ref for ref in (employee, doctor) if ref is not None]
	busy = collect_busy_intervals(repository, tenant_id, target_date, resources, exclude_appointment_id)

	starts = enumerate_slots(window, busy, duration_minutes, step_minutes, earliest_start)

	return [
		{
			"start": minutes_to_time(start),
			"end": minutes_to_time(start + duration_minutes)
		}
		for start in starts
	]
