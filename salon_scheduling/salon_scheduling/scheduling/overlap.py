"""
Overlap Detection Service

Detecta conflictos de una reserva candidata contra citas existentes:
- Conflicto de recurso (mismo empleado o mismo doctor)
- Conflicto de cliente (el mismo cliente en dos citas solapadas)

Un conflicto es un resultado esperado, nunca una excepción.
"""

from typing import Any, Dict, Iterable, Optional

from .exceptions import SchedulingPreconditionError
from .models import Appointment, BookingRequest, Interval
from .repository import ScheduleRepository
from .timeutils import coerce_time_string


def intervals_overlap(a: Interval, b: Interval) -> bool:
	"""
	[a.start, a.end) y [b.start, b.end) se solapan sii a.start < b.end y a.end > b.start.

	Citas consecutivas (una termina cuando empieza la otra) no se solapan.
	"""
	return a.overlaps(b)


def find_first_overlap(
	candidate: Interval,
	appointments: Iterable[Appointment],
	exclude_appointment_id: Optional[str] = None
) -> Optional[Appointment]:
	"""
	Primera cita que ocupa tiempo y se solapa con el intervalo candidato.

	Ignora canceladas/no-show y la cita excluida aunque el repositorio las
	haya devuelto.
	"""
	for appointment in appointments:
		if not appointment.is_blocking:
			continue
		if exclude_appointment_id and appointment.id == exclude_appointment_id:
			continue
		if intervals_overlap(candidate, appointment.interval):
			return appointment

	return None


def check_resource_conflict(
	request: BookingRequest,
	repository: ScheduleRepository
) -> Dict[str, Any]:
	"""
	Detecta si la reserva choca con otra cita del mismo empleado o doctor.

	Args:
		request: reserva candidata
		repository: acceso a citas

	Returns:
		dict: {
			"has_conflict": bool,
			"resource_type": "employee" | "doctor" (solo si hay conflicto),
			"conflicting_appointment": {
				"id", "time", "duration", "client_name", "service_name"
			}
		}

	Algoritmo:
		1. Para cada recurso nombrado (empleado primero, luego doctor):
			a. Leer sus citas activas del día (excluyendo la cita editada)
			b. Buscar el primer solape con el intervalo candidato
			c. Si hay solape, retornar inmediatamente
		2. Sin solapes -> has_conflict = False

	Raises:
		SchedulingPreconditionError: si la reserva no nombra empleado ni doctor
	"""
	if not request.resources:
		raise SchedulingPreconditionError("A resource is required to check conflicts")

	candidate = request.interval

	for resource in request.resources:
		appointments = repository.get_appointments_for_resource(
			request.tenant_id,
			request.date,
			resource,
			exclude_appointment_id=request.exclude_appointment_id
		)

		hit = find_first_overlap(candidate, appointments, request.exclude_appointment_id)
		if hit is not None:
			return {
				"has_conflict": True,
				"resource_type": resource.resource_type.value,
				"conflicting_appointment": {
					"id": hit.id,
					"time": coerce_time_string(hit.time),
					"duration": hit.duration_minutes,
					"client_name": hit.client_name,
					"service_name": hit.service_name
				}
			}

	return {"has_conflict": False}


def check_client_conflict(
	request: BookingRequest,
	repository: ScheduleRepository
) -> Dict[str, Any]:
	"""
	Detecta si el cliente ya tiene otra cita solapada ese día, con cualquier recurso.

	Returns:
		dict: {
			"has_client_conflict": bool,
			"conflicting_appointment": {"id", "time", "duration", "service_name"}
		}
	"""
	if not request.client_id:
		return {"has_client_conflict": False}

	appointments = repository.get_appointments_for_client(
		request.tenant_id,
		request.date,
		request.client_id,
		exclude_appointment_id=request.exclude_appointment_id
	)

	hit = find_first_overlap(request.interval, appointments, request.exclude_appointment_id)
	if hit is None:
		return {"has_client_conflict": False}

	return {
		"has_client_conflict": True,
		"conflicting_appointment": {
			"id": hit.id,
			"time": coerce_time_string(hit.time),
			"duration": hit.duration_minutes,
			"service_name": hit.service_name
		}
	}
