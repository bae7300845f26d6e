"""
Frappe Schedule Repository

Implementación de ScheduleRepository sobre los DocTypes:
- Salon Appointment
- Employee Schedule / Doctor Schedule
- Salon Working Hours
"""

import frappe
from frappe.utils import getdate, cint
from datetime import date
from typing import Any, Dict, List, Optional

from .models import (
	Appointment,
	BusinessHours,
	FREE_STATUSES,
	MatchBy,
	ResourceRef,
	ResourceType,
	WeeklySchedule,
)
from .repository import ScheduleRepository, ScheduleRepositoryError
from .timeutils import coerce_time_string


APPOINTMENT_DOCTYPE = "Salon Appointment"
WORKING_HOURS_DOCTYPE = "Salon Working Hours"

SCHEDULE_DOCTYPES = {
	ResourceType.EMPLOYEE: ("Employee Schedule", "employee_id"),
	ResourceType.DOCTOR: ("Doctor Schedule", "doctor_id"),
}

APPOINTMENT_FIELDS = [
	"name",
	"tenant",
	"appointment_date",
	"appointment_time",
	"duration",
	"status",
	"employee_id",
	"employee_label",
	"doctor_id",
	"client_id",
	"client_name",
	"service_name",
]

SCHEDULE_FIELDS = ["tenant", "day_of_week", "start_time", "end_time", "is_available"]


class FrappeScheduleRepository(ScheduleRepository):
	"""
	Lecturas sobre la base del site. Todas las consultas filtran por tenant
	y las citas canceladas/no-show se descartan en la propia consulta.

	Con for_update=True las citas se leen con SELECT ... FOR UPDATE: la
	lectura ve las filas ya confirmadas por otras transacciones y no el
	snapshot de la transacción actual. Se usa al guardar una cita, después
	de tomar los locks de reserva.
	"""

	def __init__(self, for_update: bool = False):
		self.for_update = for_update

	def get_appointments_for_resource(
		self,
		tenant_id: str,
		target_date: date,
		resource: ResourceRef,
		exclude_appointment_id: Optional[str] = None
	) -> List[Appointment]:
		filters = self._appointment_filters(tenant_id, target_date, exclude_appointment_id)

		if resource.resource_type == ResourceType.EMPLOYEE:
			# Citas antiguas guardan solo el nombre del empleado
			field = "employee_id" if resource.match_by == MatchBy.ID else "employee_label"
		else:
			field = "doctor_id"
		filters[field] = resource.value

		return self._fetch_appointments(filters)

	def get_appointments_for_client(
		self,
		tenant_id: str,
		target_date: date,
		client_id: str,
		exclude_appointment_id: Optional[str] = None
	) -> List[Appointment]:
		filters = self._appointment_filters(tenant_id, target_date, exclude_appointment_id)
		filters["client_id"] = client_id
		return self._fetch_appointments(filters)

	def get_weekly_schedule(
		self,
		tenant_id: str,
		resource: ResourceRef,
		day_of_week: int
	) -> Optional[WeeklySchedule]:
		# Los horarios se guardan por id; una referencia por nombre no tiene horario
		if resource.match_by != MatchBy.ID:
			return None

		doctype, field = SCHEDULE_DOCTYPES[resource.resource_type]
		rows = self._get_all(
			doctype,
			filters={"tenant": tenant_id, field: resource.value, "day_of_week": int(day_of_week)},
			fields=SCHEDULE_FIELDS,
			limit=1
		)
		if not rows:
			return None

		return self._to_schedule(rows[0], resource.value)

	def get_weekly_schedules(self, tenant_id: str, resource: ResourceRef) -> List[WeeklySchedule]:
		if resource.match_by != MatchBy.ID:
			return []

		doctype, field = SCHEDULE_DOCTYPES[resource.resource_type]
		rows = self._get_all(
			doctype,
			filters={"tenant": tenant_id, field: resource.value},
			fields=SCHEDULE_FIELDS,
			order_by="day_of_week asc"
		)
		return [self._to_schedule(row, resource.value) for row in rows]

	def get_business_hours(self, tenant_id: str, day_of_week: int) -> Optional[BusinessHours]:
		rows = self._get_all(
			WORKING_HOURS_DOCTYPE,
			filters={"tenant": tenant_id, "day_of_week": int(day_of_week)},
			fields=["tenant", "day_of_week", "start_time", "end_time", "is_open"],
			limit=1
		)
		if not rows:
			return None

		row = rows[0]
		# Un día cerrado puede no tener horas cargadas
		return BusinessHours(
			tenant_id=row.tenant,
			day_of_week=cint(row.day_of_week),
			start_time=coerce_time_string(row.start_time) if row.start_time is not None else None,
			end_time=coerce_time_string(row.end_time) if row.end_time is not None else None,
			is_open=bool(cint(row.is_open))
		)

	# ===== HELPERS =====

	def _appointment_filters(
		self,
		tenant_id: str,
		target_date: date,
		exclude_appointment_id: Optional[str]
	) -> Dict[str, Any]:
		filters = {
			"tenant": tenant_id,
			"appointment_date": getdate(target_date),
			"status": ["not in", sorted(FREE_STATUSES)],
		}
		if exclude_appointment_id:
			filters["name"] = ["!=", exclude_appointment_id]
		return filters

	def _fetch_appointments(self, filters: Dict[str, Any]) -> List[Appointment]:
		rows = self._get_all(
			APPOINTMENT_DOCTYPE,
			filters=filters,
			fields=APPOINTMENT_FIELDS,
			order_by="appointment_time asc",
			for_update=self.for_update
		)
		return [
			Appointment(
				tenant_id=row.tenant,
				id=row.name,
				date=getdate(row.appointment_date),
				time=coerce_time_string(row.appointment_time),
				duration_minutes=cint(row.duration),
				status=row.status,
				employee_id=row.employee_id,
				employee_label=row.employee_label,
				doctor_id=row.doctor_id,
				client_id=row.client_id,
				client_name=row.client_name,
				service_name=row.service_name
			)
			for row in rows
		]

	def _to_schedule(self, row: Any, resource_id: str) -> WeeklySchedule:
		return WeeklySchedule(
			tenant_id=row.tenant,
			resource_id=resource_id,
			day_of_week=cint(row.day_of_week),
			start_time=coerce_time_string(row.start_time),
			end_time=coerce_time_string(row.end_time),
			is_available=bool(cint(row.is_available))
		)

	def _get_all(self, doctype: str, **kwargs) -> List[Any]:
		"""frappe.get_all sin permisos de usuario; los errores de DB se propagan."""
		try:
			return frappe.get_all(doctype, **kwargs)
		except (frappe.db.OperationalError, frappe.db.InternalError) as e:
			raise ScheduleRepositoryError(f"Error reading {doctype}: {str(e)}") from e
