# Copyright (c) 2026, Salon Scheduling contributors
# For license information, please see license.txt

"""
Salon Appointment DocType

Cita de salón/clínica con validación de conflictos y de horario del recurso.
"""

import frappe
from frappe import _
from frappe.model.document import Document
from frappe.utils import cint, getdate
from typing import Any, Dict, List, Optional, Tuple

from salon_scheduling.salon_scheduling.scheduling.availability import (
	DEFAULT_WORK_END,
	DEFAULT_WORK_START,
	check_business_hours,
)
from salon_scheduling.salon_scheduling.scheduling.exceptions import SchedulingPreconditionError
from salon_scheduling.salon_scheduling.scheduling.frappe_repository import FrappeScheduleRepository
from salon_scheduling.salon_scheduling.scheduling.locking import acquire_booking_locks
from salon_scheduling.salon_scheduling.scheduling.models import (
	AppointmentStatus,
	BookingRequest,
	FREE_STATUSES,
)
from salon_scheduling.salon_scheduling.scheduling.overlap import (
	check_client_conflict,
	check_resource_conflict,
)
from salon_scheduling.salon_scheduling.scheduling.repository import ScheduleRepository
from salon_scheduling.salon_scheduling.scheduling.timeutils import coerce_time_string
from salon_scheduling.salon_scheduling.scheduling.working_hours import check_working_hours


VALID_STATUSES = [status.value for status in AppointmentStatus]

RESOURCE_LABELS = {
	"employee": "empleado",
	"doctor": "doctor",
}


class SchedulingConflictError(frappe.ValidationError):
	"""La cita se solapa con otra del mismo recurso o del mismo cliente."""
	pass


class OutsideBusinessHoursError(frappe.ValidationError):
	"""La cita cae fuera del horario del centro o en un día cerrado."""
	pass


def get_default_work_hours() -> Tuple[str, str]:
	"""Horario del tenant cuando no tiene Salon Working Hours (site_config.json)."""
	return (
		frappe.conf.get("salon_default_work_start") or DEFAULT_WORK_START,
		frappe.conf.get("salon_default_work_end") or DEFAULT_WORK_END,
	)


class SalonAppointment(Document):
	"""
	Salon Appointment con validación de agenda.

	Flujo en validate:
	1. Campos requeridos, formato de hora, duración y estado
	2. Al menos un recurso (empleado por id o nombre, o doctor)
	3. Si la cita ocupa tiempo (no cancelada/no-show):
		a. Fuera del horario del centro (Salon Working Hours o fallback) -> BLOQUEA
		b. Bloquear recursos y cliente para la fecha (serializa reservas concurrentes)
		c. Conflicto de recurso -> BLOQUEA (lectura con FOR UPDATE)
		d. Conflicto de cliente -> BLOQUEA
		e. Fuera del horario semanal del recurso -> solo advierte
	"""

	def validate(self) -> None:
		"""
		Validación antes de guardar.
		"""
		self._validate_required_fields()
		self._normalize_time()
		self._validate_duration()
		self._validate_status()
		self._validate_resources()

		if self.status in FREE_STATUSES:
			return

		request = self.get_booking_request()
		self._validate_business_hours(request)
		acquire_booking_locks(request.tenant_id, request.date, request.resources, request.client_id)
		self._validate_conflicts(request)
		self._warn_outside_working_hours(request)

	def get_booking_request(self) -> BookingRequest:
		"""Reserva candidata equivalente a este documento (excluye su propia ocupación)."""
		try:
			return BookingRequest(
				tenant_id=self.tenant,
				date=getdate(self.appointment_date),
				time=coerce_time_string(self.appointment_time),
				duration_minutes=cint(self.duration),
				employee_id=self.employee_id or None,
				employee_label=self.employee_label or None,
				doctor_id=self.doctor_id or None,
				client_id=self.client_id or None,
				exclude_appointment_id=None if self.is_new() else self.name
			)
		except SchedulingPreconditionError as e:
			frappe.throw(_(str(e)), frappe.ValidationError)

	# ===== VALIDATION METHODS =====

	def _validate_required_fields(self) -> None:
		"""Valida campos requeridos."""
		if not self.tenant:
			frappe.throw(_("Tenant es requerido"))

		if not self.appointment_date:
			frappe.throw(_("Appointment Date es requerido"))

		if not self.appointment_time:
			frappe.throw(_("Appointment Time es requerido"))

	def _normalize_time(self) -> None:
		"""Guarda la hora con precisión de minuto."""
		try:
			self.appointment_time = coerce_time_string(self.appointment_time)
		except SchedulingPreconditionError:
			frappe.throw(_(f"Hora inválida: {self.appointment_time}. Use HH:MM"))

	def _validate_duration(self) -> None:
		"""Valida que la duración sea mayor que 0."""
		if cint(self.duration) <= 0:
			frappe.throw(_("Duration debe ser mayor que 0 minutos"))

	def _validate_status(self) -> None:
		"""Valida que el estado sea uno de los permitidos."""
		if not self.status:
			self.status = AppointmentStatus.PENDING.value

		if self.status not in VALID_STATUSES:
			frappe.throw(_(f"Estado inválido: {self.status}"))

	def _validate_resources(self) -> None:
		"""Valida que la cita nombre al menos un empleado o un doctor."""
		if not (self.employee_id or self.employee_label or self.doctor_id):
			frappe.throw(_("Debe indicar un empleado o un doctor"))

	def _validate_business_hours(self, request: BookingRequest) -> None:
		"""BLOQUEA si la cita no cae completa dentro del horario del centro."""
		work_start, work_end = get_default_work_hours()

		result = check_business_hours(
			FrappeScheduleRepository(),
			request.tenant_id,
			request.date,
			request.time,
			request.duration_minutes,
			fallback_start=work_start,
			fallback_end=work_end
		)
		if not result["within_business_hours"]:
			frappe.throw(format_business_hours_message(result), OutsideBusinessHoursError)

	def _validate_conflicts(self, request: BookingRequest) -> None:
		"""
		Valida conflictos y BLOQUEA si existen.

		Primero por recurso (empleado, luego doctor) y después por cliente.
		Se llama con los locks de reserva tomados: las citas se leen con
		FOR UPDATE para ver las que otra transacción confirmó mientras
		esperábamos el lock.
		"""
		repository = FrappeScheduleRepository(for_update=True)

		resource_result = check_resource_conflict(request, repository)
		if resource_result["has_conflict"]:
			frappe.logger("salon_scheduling").info(
				f"Conflicto de {resource_result['resource_type']} para {self.name or 'nueva cita'} "
				f"({request.date} {request.time})"
			)
			frappe.throw(format_conflict_message(resource_result), SchedulingConflictError)

		client_result = check_client_conflict(request, repository)
		if client_result["has_client_conflict"]:
			frappe.throw(format_client_conflict_message(client_result), SchedulingConflictError)

	def _warn_outside_working_hours(self, request: BookingRequest) -> None:
		"""
		Advierte si la cita cae fuera del horario semanal de algún recurso.

		No bloquea: recepción puede agendar fuera de horario a propósito.
		"""
		repository = FrappeScheduleRepository()

		for warning in get_working_hours_warnings(request, repository):
			frappe.msgprint(
				format_working_hours_warning(warning),
				indicator="orange",
				alert=True
			)


def get_working_hours_warnings(request: BookingRequest, repository: ScheduleRepository) -> List[Dict[str, Any]]:
	"""
	Resultado de check_working_hours para cada recurso con id que quede fuera de horario.

	Los empleados referenciados solo por nombre no tienen horario semanal.
	"""
	warnings = []
	for resource in (request.employee, request.doctor):
		if resource is None:
			continue

		result = check_working_hours(
			repository,
			request.tenant_id,
			resource,
			request.date,
			request.time,
			request.duration_minutes
		)
		if not result["within_schedule"]:
			warnings.append(result)

	return warnings


def format_conflict_message(result: Dict[str, Any]) -> str:
	"""Mensaje para el usuario a partir del veredicto de check_resource_conflict."""
	appointment = result["conflicting_appointment"]
	resource_label = RESOURCE_LABELS.get(result["resource_type"], result["resource_type"])

	details = []
	if appointment.get("client_name"):
		details.append(appointment["client_name"])
	if appointment.get("service_name"):
		details.append(appointment["service_name"])
	suffix = f" ({' - '.join(details)})" if details else ""

	return _(
		f"El {resource_label} ya tiene una cita a las {appointment['time']} "
		f"de {appointment['duration']} min{suffix}"
	)


def format_client_conflict_message(result: Dict[str, Any]) -> str:
	"""Mensaje para el usuario a partir del veredicto de check_client_conflict."""
	appointment = result["conflicting_appointment"]
	service = f" ({appointment['service_name']})" if appointment.get("service_name") else ""

	return _(
		f"El cliente ya tiene una cita a las {appointment['time']} "
		f"de {appointment['duration']} min{service}"
	)


def format_business_hours_message(result: Dict[str, Any]) -> str:
	"""Mensaje para el usuario a partir del veredicto de check_business_hours."""
	if result["closed"]:
		return _("El centro no atiende este día")

	window = result["window"]
	return _(
		f"La cita está fuera del horario del centro "
		f"({window['start_time']} - {window['end_time']})"
	)


def format_working_hours_warning(result: Dict[str, Any]) -> str:
	"""Advertencia de horario para un recurso."""
	resource_label = RESOURCE_LABELS.get(result["resource_type"], result["resource_type"])
	schedule: Optional[Dict[str, Any]] = result.get("schedule")

	if schedule and not schedule["is_available"]:
		return _(f"El {resource_label} no trabaja este día")

	return _(
		f"La cita está fuera del horario del {resource_label} "
		f"({schedule['start_time']} - {schedule['end_time']})"
	)
