"""
Time Arithmetic Utility

Conversión entre horas "HH:MM" y minutos desde medianoche, y cálculo del
día de la semana con la convención del tenant (la semana empieza el sábado).
"""

import re
from datetime import date, datetime, time, timedelta
from enum import IntEnum
from typing import Union

from .exceptions import InvalidTimeError, SchedulingPreconditionError


MINUTES_PER_DAY = 24 * 60

_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
_TIME_WITH_SECONDS_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2})(?:\.\d+)?)?$")


class DayOfWeek(IntEnum):
	"""
	Índice canónico del día de la semana para el tenant.

	La semana empieza el sábado: SATURDAY=0 ... FRIDAY=6. Es el mismo índice
	que guardan Employee Schedule, Doctor Schedule y Salon Working Hours.
	"""
	SATURDAY = 0
	SUNDAY = 1
	MONDAY = 2
	TUESDAY = 3
	WEDNESDAY = 4
	THURSDAY = 5
	FRIDAY = 6


def time_to_minutes(value: str) -> int:
	"""
	Convierte "HH:MM" a minutos desde medianoche.

	Precondición: value cumple exactamente el patrón "HH:MM" (00:00-23:59).
	Cualquier otro formato es un error del llamador.

	Raises:
		InvalidTimeError: si el formato no es válido
	"""
	if not isinstance(value, str):
		raise InvalidTimeError(f"Expected 'HH:MM' string, got {type(value).__name__}")

	match = _TIME_PATTERN.match(value)
	if not match:
		raise InvalidTimeError(f"Invalid time '{value}', expected 'HH:MM'")

	return int(match.group(1)) * 60 + int(match.group(2))


def minutes_to_time(minutes: int) -> str:
	"""
	Inversa de time_to_minutes: 540 -> "09:00".

	Raises:
		InvalidTimeError: si minutes no está en [0, 1440)
	"""
	if isinstance(minutes, bool) or not isinstance(minutes, int):
		raise InvalidTimeError(f"Expected integer minutes, got {minutes!r}")
	if not 0 <= minutes < MINUTES_PER_DAY:
		raise InvalidTimeError(f"Minutes out of range: {minutes}")

	hours, mins = divmod(minutes, 60)
	return f"{hours:02d}:{mins:02d}"


def to_date(value: Union[date, str]) -> date:
	"""
	Normaliza una fecha (date, datetime o "YYYY-MM-DD") a datetime.date.

	Raises:
		SchedulingPreconditionError: si el string no es una fecha válida
	"""
	if isinstance(value, datetime):
		return value.date()
	if isinstance(value, date):
		return value
	if isinstance(value, str):
		try:
			return datetime.strptime(value.strip(), "%Y-%m-%d").date()
		except ValueError:
			raise SchedulingPreconditionError(f"Invalid date '{value}', expected 'YYYY-MM-DD'")

	raise SchedulingPreconditionError(f"Cannot convert {type(value).__name__} to date")


def day_of_week(target_date: Union[date, str]) -> DayOfWeek:
	"""
	Día de la semana del tenant para una fecha.

	date.weekday() usa lunes=0; se desplaza para que sábado sea 0:
	sábado (5) -> 0, domingo (6) -> 1, ..., viernes (4) -> 6.
	"""
	target_date = to_date(target_date)
	return DayOfWeek((target_date.weekday() + 2) % 7)


def coerce_time_string(time_value: Union[time, timedelta, str]) -> str:
	"""
	Convierte los formatos que devuelve Frappe a "HH:MM".

	Los campos Time llegan como timedelta (desde la DB), como time o como
	string "HH:MM:SS". Los segundos se descartan (precisión de minuto).

	Raises:
		InvalidTimeError: si el valor no representa una hora del día
	"""
	if isinstance(time_value, time):
		return f"{time_value.hour:02d}:{time_value.minute:02d}"

	if isinstance(time_value, timedelta):
		# timedelta representa tiempo desde medianoche
		total_minutes = int(time_value.total_seconds()) // 60
		return minutes_to_time(total_minutes)

	if isinstance(time_value, str):
		match = _TIME_WITH_SECONDS_PATTERN.match(time_value.strip())
		if not match:
			raise InvalidTimeError(f"Invalid time '{time_value}'")
		hours, mins = int(match.group(1)), int(match.group(2))
		if hours > 23 or mins > 59:
			raise InvalidTimeError(f"Invalid time '{time_value}'")
		return f"{hours:02d}:{mins:02d}"

	raise InvalidTimeError(f"Cannot convert {type(time_value).__name__} to time")
