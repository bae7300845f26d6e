"""
Appointment API Endpoints

Whitelisted functions para la UI de recepción y el flujo público de reservas.
Los endpoints públicos permiten acceso guest con protecciones:
- Rate limiting por IP
- Honeypot para detectar bots
- Validación estricta de parámetros
"""

import frappe
from frappe import _
from frappe.utils import cint
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional
import pytz

from salon_scheduling.salon_scheduling.scheduling.availability import (
	check_business_hours,
	get_available_dates as compute_available_dates,
)
from salon_scheduling.salon_scheduling.scheduling.exceptions import SchedulingPreconditionError
from salon_scheduling.salon_scheduling.scheduling.frappe_repository import FrappeScheduleRepository
from salon_scheduling.salon_scheduling.scheduling.models import BookingRequest, ResourceRef, ResourceType
from salon_scheduling.salon_scheduling.scheduling.overlap import (
	check_client_conflict,
	check_resource_conflict,
)
from salon_scheduling.salon_scheduling.scheduling.repository import ScheduleRepositoryError
from salon_scheduling.salon_scheduling.scheduling.slots import (
	DEFAULT_SLOT_INTERVAL_MINUTES,
	find_next_available_slot,
	list_available_slots,
)
from salon_scheduling.salon_scheduling.scheduling.working_hours import check_working_hours
from salon_scheduling.salon_scheduling.doctype.salon_appointment.salon_appointment import (
	format_business_hours_message,
	format_client_conflict_message,
	format_conflict_message,
	format_working_hours_warning,
	get_default_work_hours,
	get_working_hours_warnings,
)

from salon_scheduling.api.security import (
	check_honeypot,
	check_rate_limit,
	sanitize_string,
	validate_date_string,
	validate_docname,
	validate_duration,
	validate_optional_docname,
	validate_time_string,
)


DEFAULT_BOOKING_HORIZON_DAYS = 30


# ===== CONFIGURATION =====

def get_scheduling_settings() -> Dict[str, Any]:
	"""
	Configuración del site (site_config.json) con valores por defecto.

	Keys:
		salon_default_work_start: inicio del horario si el tenant no tiene Salon Working Hours
		salon_default_work_end: fin del horario si el tenant no tiene Salon Working Hours
		salon_slot_interval_minutes: paso entre horarios ofrecidos
		salon_booking_horizon_days: días hacia adelante para el calendario público
	"""
	work_start, work_end = get_default_work_hours()
	return {
		"work_start": work_start,
		"work_end": work_end,
		"slot_interval_minutes": cint(frappe.conf.get("salon_slot_interval_minutes")) or DEFAULT_SLOT_INTERVAL_MINUTES,
		"booking_horizon_days": cint(frappe.conf.get("salon_booking_horizon_days")) or DEFAULT_BOOKING_HORIZON_DAYS,
	}


def get_tenant_now() -> datetime:
	"""Hora actual en la zona horaria del sistema."""
	tz_name = frappe.utils.get_system_timezone() or "UTC"
	try:
		tz = pytz.timezone(tz_name)
	except pytz.UnknownTimeZoneError:
		frappe.logger("salon_scheduling").warning(f"Unknown system timezone {tz_name}, using UTC")
		tz = pytz.UTC

	return datetime.now(tz)


@contextmanager
def scheduling_errors(endpoint: str) -> Iterator[None]:
	"""
	Traduce errores del core a errores de Frappe.

	- Precondiciones (hora/duración inválida) -> ValidationError con el detalle
	- Errores de lectura -> log_error + mensaje genérico
	"""
	try:
		yield
	except SchedulingPreconditionError as e:
		frappe.throw(_(str(e)), frappe.ValidationError)
	except ScheduleRepositoryError as e:
		frappe.log_error(f"Error in {endpoint}: {str(e)}", "API Error")
		frappe.throw(_("Error al consultar la agenda. Intente de nuevo."))


def _build_request(
	tenant: str,
	date: str,
	time: str,
	duration,
	employee_id: Optional[str] = None,
	employee_label: Optional[str] = None,
	doctor_id: Optional[str] = None,
	client_id: Optional[str] = None,
	exclude_appointment_id: Optional[str] = None
) -> BookingRequest:
	"""Valida parámetros HTTP y arma la reserva candidata."""
	request = BookingRequest(
		tenant_id=validate_docname(tenant, "tenant"),
		date=validate_date_string(date, "date"),
		time=validate_time_string(time, "time"),
		duration_minutes=validate_duration(duration),
		employee_id=validate_optional_docname(employee_id, "employee_id"),
		employee_label=sanitize_string(employee_label, max_length=140),
		doctor_id=validate_optional_docname(doctor_id, "doctor_id"),
		client_id=validate_optional_docname(client_id, "client_id"),
		exclude_appointment_id=validate_optional_docname(exclude_appointment_id, "exclude_appointment_id")
	)

	if not request.resources:
		frappe.throw(_("Debe indicar un empleado o un doctor"), frappe.ValidationError)

	return request


def _check_business_hours(request: BookingRequest, repository, settings: Dict[str, Any]) -> Dict[str, Any]:
	return check_business_hours(
		repository,
		request.tenant_id,
		request.date,
		request.time,
		request.duration_minutes,
		fallback_start=settings["work_start"],
		fallback_end=settings["work_end"]
	)


def _minutes_since_midnight(now: datetime) -> int:
	return now.hour * 60 + now.minute


def _schedule_summary(result: Dict[str, Any]) -> Optional[Dict[str, Any]]:
	"""Advertencia de horario para la respuesta JSON (None si está dentro de horario)."""
	if result["within_schedule"]:
		return None
	return result["schedule"]


# ===== ENDPOINTS =====

@frappe.whitelist(methods=['GET', 'POST'])
def check_conflict(
	tenant: str,
	date: str,
	time: str,
	duration: int,
	employee_id: Optional[str] = None,
	employee_label: Optional[str] = None,
	doctor_id: Optional[str] = None,
	client_id: Optional[str] = None,
	exclude_appointment_id: Optional[str] = None
) -> Dict[str, Any]:
	"""
	Verifica una reserva antes de guardarla (formulario de recepción).

	Args:
		tenant: id del tenant
		date: fecha (YYYY-MM-DD)
		time: hora de inicio (HH:MM)
		duration: duración en minutos
		employee_id / employee_label: empleado por id o (citas antiguas) por nombre
		doctor_id: doctor
		client_id: cliente (para detectar doble reserva del mismo cliente)
		exclude_appointment_id: cita que se está editando

	Returns:
		dict: {
			"has_conflict": bool,
			"resource_type": "employee" | "doctor" (solo si hay conflicto),
			"conflicting_appointment": dict (solo si hay conflicto),
			"has_client_conflict": bool,
			"client_conflicting_appointment": dict | None,
			"next_available_slot": "HH:MM" | None (solo si hay conflicto),
			"employee_hours_warning": {"start_time", "end_time", "is_available"} | None,
			"doctor_hours_warning": {"start_time", "end_time", "is_available"} | None,
			"business_hours": {"closed", "window"} | None (None si cae dentro del horario del centro)
		}

	Example:
		```javascript
		frappe.call({
			method: "salon_scheduling.api.appointment_api.check_conflict",
			args: {
				tenant: "salon-centro",
				date: "2026-01-20",
				time: "10:00",
				duration: 30,
				employee_id: "EMP-0001"
			},
			callback: function(r) {
				if (r.message.has_conflict) {
					frappe.msgprint("Próximo horario libre: " + r.message.next_available_slot);
				}
			}
		});
		```
	"""
	settings = get_scheduling_settings()

	with scheduling_errors("check_conflict"):
		request = _build_request(
			tenant, date, time, duration,
			employee_id, employee_label, doctor_id, client_id, exclude_appointment_id
		)
		repository = FrappeScheduleRepository()

		result = check_resource_conflict(request, repository)
		client_result = check_client_conflict(request, repository)
		result["has_client_conflict"] = client_result["has_client_conflict"]
		result["client_conflicting_appointment"] = client_result.get("conflicting_appointment")

		result["next_available_slot"] = None
		if result["has_conflict"]:
			result["next_available_slot"] = find_next_available_slot(
				repository,
				request.tenant_id,
				request.date,
				request.duration_minutes,
				employee=request.employee,
				doctor=request.doctor,
				work_start=settings["work_start"],
				work_end=settings["work_end"],
				exclude_appointment_id=request.exclude_appointment_id
			)

		for key, resource in (("employee_hours_warning", request.employee), ("doctor_hours_warning", request.doctor)):
			result[key] = None
			if resource is None:
				continue
			hours = check_working_hours(
				repository,
				request.tenant_id,
				resource,
				request.date,
				request.time,
				request.duration_minutes
			)
			result[key] = _schedule_summary(hours)

		business_hours = _check_business_hours(request, repository, settings)
		result["business_hours"] = None
		if not business_hours["within_business_hours"]:
			result["business_hours"] = {
				"closed": business_hours["closed"],
				"window": business_hours["window"]
			}

		return result


@frappe.whitelist(methods=['GET'])
def get_next_available_slot(
	tenant: str,
	date: str,
	duration: int,
	employee_id: Optional[str] = None,
	employee_label: Optional[str] = None,
	doctor_id: Optional[str] = None,
	exclude_appointment_id: Optional[str] = None
) -> Dict[str, Any]:
	"""
	Primer horario del día donde cabe la duración para todos los recursos.

	Returns:
		dict: {"date": "YYYY-MM-DD", "next_available_slot": "HH:MM" | None}
	"""
	settings = get_scheduling_settings()

	with scheduling_errors("get_next_available_slot"):
		# La hora no importa para buscar; se usa el inicio del día
		request = _build_request(
			tenant, date, "00:00", duration,
			employee_id, employee_label, doctor_id, None, exclude_appointment_id
		)

		slot = find_next_available_slot(
			FrappeScheduleRepository(),
			request.tenant_id,
			request.date,
			request.duration_minutes,
			employee=request.employee,
			doctor=request.doctor,
			work_start=settings["work_start"],
			work_end=settings["work_end"],
			exclude_appointment_id=request.exclude_appointment_id
		)

		return {"date": str(request.date), "next_available_slot": slot}


@frappe.whitelist(allow_guest=True, methods=['GET'])
def get_available_slots(
	tenant: str,
	date: str,
	duration: int,
	employee_id: Optional[str] = None,
	doctor_id: Optional[str] = None
) -> List[Dict[str, str]]:
	"""
	Horarios reservables de un día para el flujo público de reservas.

	Rate limited: 30 requests per minute per IP.

	Para el día de hoy no se ofrecen horarios que ya pasaron (zona horaria
	del sistema). Fechas pasadas no tienen horarios.

	Returns:
		list[dict]: [
			{"start": "10:00", "end": "10:30"},
			...
		]

	Example:
		```javascript
		frappe.call({
			method: "salon_scheduling.api.appointment_api.get_available_slots",
			args: {tenant: "salon-centro", date: "2026-01-20", duration: 30, employee_id: "EMP-0001"},
			callback: function(r) {
				console.log(r.message); // Array of {start, end}
			}
		});
		```
	"""
	check_rate_limit("get_available_slots", limit=30, seconds=60)
	settings = get_scheduling_settings()

	with scheduling_errors("get_available_slots"):
		request = _build_request(tenant, date, "00:00", duration, employee_id, None, doctor_id)

		now = get_tenant_now()
		today = now.date()
		if request.date < today:
			return []

		earliest_start = None
		if request.date == today:
			earliest_start = _minutes_since_midnight(now)

		return list_available_slots(
			FrappeScheduleRepository(),
			request.tenant_id,
			request.date,
			request.duration_minutes,
			employee=request.employee,
			doctor=request.doctor,
			work_start=settings["work_start"],
			work_end=settings["work_end"],
			step_minutes=settings["slot_interval_minutes"],
			earliest_start=earliest_start
		)


@frappe.whitelist(allow_guest=True, methods=['GET'])
def get_available_dates(
	tenant: str,
	employee_id: Optional[str] = None,
	doctor_id: Optional[str] = None,
	duration: Optional[int] = None,
	days: Optional[int] = None
) -> List[str]:
	"""
	Fechas con ventana abierta desde hoy (zona horaria del sistema).

	Rate limited: 30 requests per minute per IP.

	Args:
		tenant: id del tenant
		employee_id: empleado elegido (opcional)
		doctor_id: doctor elegido (opcional)
		duration: si se indica, la ventana del día debe poder contenerla
		days: cantidad de días a revisar (máximo salon_booking_horizon_days)

	Returns:
		list[str]: ["2026-01-20", "2026-01-21", ...]
	"""
	check_rate_limit("get_available_dates", limit=30, seconds=60)
	settings = get_scheduling_settings()

	tenant = validate_docname(tenant, "tenant")
	employee_id = validate_optional_docname(employee_id, "employee_id")
	doctor_id = validate_optional_docname(doctor_id, "doctor_id")
	duration_minutes = validate_duration(duration) if duration not in (None, "") else None

	horizon = settings["booking_horizon_days"]
	days = min(cint(days) or horizon, horizon)

	with scheduling_errors("get_available_dates"):
		return compute_available_dates(
			FrappeScheduleRepository(),
			tenant,
			get_tenant_now().date(),
			days=days,
			employee=ResourceRef.resolve(ResourceType.EMPLOYEE, employee_id),
			doctor=ResourceRef.resolve(ResourceType.DOCTOR, doctor_id),
			duration_minutes=duration_minutes,
			fallback_start=settings["work_start"],
			fallback_end=settings["work_end"]
		)


@frappe.whitelist(allow_guest=True, methods=['POST'])
def validate_booking(
	tenant: str,
	date: str,
	time: str,
	duration: int,
	employee_id: Optional[str] = None,
	doctor_id: Optional[str] = None,
	client_id: Optional[str] = None,
	website: Optional[str] = None
) -> Dict[str, Any]:
	"""
	Valida una reserva pública ANTES de crearla.

	Rate limited: 20 requests per minute per IP.

	Args:
		website: campo honeypot (debe venir vacío)

	Returns:
		dict: {
			"valid": bool,
			"errors": list[str],
			"warnings": list[str],
			"next_available_slot": "HH:MM" | None
		}
	"""
	check_rate_limit("validate_booking", limit=20, seconds=60)
	check_honeypot(website)
	settings = get_scheduling_settings()

	errors = []
	warnings = []
	next_slot = None

	with scheduling_errors("validate_booking"):
		request = _build_request(tenant, date, time, duration, employee_id, None, doctor_id, client_id)
		repository = FrappeScheduleRepository()

		now = get_tenant_now()
		if request.date < now.date():
			errors.append(_("No se puede reservar en una fecha pasada"))
		elif request.date == now.date() and request.interval.start < _minutes_since_midnight(now):
			errors.append(_("No se puede reservar en un horario que ya pasó"))

		business_hours = _check_business_hours(request, repository, settings)
		if not business_hours["within_business_hours"]:
			errors.append(format_business_hours_message(business_hours))

		resource_result = check_resource_conflict(request, repository)
		if resource_result["has_conflict"]:
			errors.append(format_conflict_message(resource_result))
			next_slot = find_next_available_slot(
				repository,
				request.tenant_id,
				request.date,
				request.duration_minutes,
				employee=request.employee,
				doctor=request.doctor,
				work_start=settings["work_start"],
				work_end=settings["work_end"]
			)

		client_result = check_client_conflict(request, repository)
		if client_result["has_client_conflict"]:
			errors.append(format_client_conflict_message(client_result))

		for warning in get_working_hours_warnings(request, repository):
			warnings.append(format_working_hours_warning(warning))

	return {
		"valid": len(errors) == 0,
		"errors": errors,
		"warnings": warnings,
		"next_available_slot": next_slot
	}

