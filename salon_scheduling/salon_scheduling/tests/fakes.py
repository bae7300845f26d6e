"""
In-memory ScheduleRepository for unit tests (no Frappe site required).
"""

from datetime import date
from typing import List, Optional, Tuple

from salon_scheduling.salon_scheduling.scheduling.models import (
	Appointment,
	BusinessHours,
	FREE_STATUSES,
	MatchBy,
	ResourceRef,
	ResourceType,
	WeeklySchedule,
)
from salon_scheduling.salon_scheduling.scheduling.repository import (
	ScheduleRepository,
	ScheduleRepositoryError,
)


TENANT = "salon-centro"
OTHER_TENANT = "salon-norte"

# 2024-01-09 is a Tuesday (day_of_week 3)
TUESDAY = date(2024, 1, 9)


class InMemoryScheduleRepository(ScheduleRepository):
	"""Honors the repository contract: tenant scoped, free statuses and excluded id filtered out."""

	def __init__(self):
		self.appointments: List[Appointment] = []
		self.schedules: List[Tuple[ResourceType, WeeklySchedule]] = []
		self.business_hours: List[BusinessHours] = []

	# ===== FIXTURE HELPERS =====

	def add_appointment(self, time: str, duration_minutes: int, **kwargs) -> Appointment:
		kwargs.setdefault("tenant_id", TENANT)
		kwargs.setdefault("id", f"SAPT-{len(self.appointments) + 1:05d}")
		kwargs.setdefault("date", TUESDAY)
		appointment = Appointment(time=time, duration_minutes=duration_minutes, **kwargs)
		self.appointments.append(appointment)
		return appointment

	def add_schedule(
		self,
		resource_type: ResourceType,
		resource_id: str,
		day_of_week: int,
		start_time: str,
		end_time: str,
		is_available: bool = True,
		tenant_id: str = TENANT
	) -> WeeklySchedule:
		schedule = WeeklySchedule(
			tenant_id=tenant_id,
			resource_id=resource_id,
			day_of_week=int(day_of_week),
			start_time=start_time,
			end_time=end_time,
			is_available=is_available
		)
		self.schedules.append((resource_type, schedule))
		return schedule

	def add_business_hours(
		self,
		day_of_week: int,
		start_time: Optional[str] = None,
		end_time: Optional[str] = None,
		is_open: bool = True,
		tenant_id: str = TENANT
	) -> BusinessHours:
		hours = BusinessHours(
			tenant_id=tenant_id,
			day_of_week=int(day_of_week),
			start_time=start_time,
			end_time=end_time,
			is_open=is_open
		)
		self.business_hours.append(hours)
		return hours

	# ===== ScheduleRepository =====

	def get_appointments_for_resource(self, tenant_id, target_date, resource, exclude_appointment_id=None):
		return [
			appointment
			for appointment in self._active(tenant_id, target_date, exclude_appointment_id)
			if appointment.occupies(resource)
		]

	def get_appointments_for_client(self, tenant_id, target_date, client_id, exclude_appointment_id=None):
		return [
			appointment
			for appointment in self._active(tenant_id, target_date, exclude_appointment_id)
			if appointment.client_id == client_id
		]

	def get_weekly_schedule(self, tenant_id, resource, day_of_week):
		for schedule in self.get_weekly_schedules(tenant_id, resource):
			if schedule.day_of_week == int(day_of_week):
				return schedule
		return None

	def get_weekly_schedules(self, tenant_id, resource):
		if resource.match_by != MatchBy.ID:
			return []
		return [
			schedule
			for resource_type, schedule in self.schedules
			if resource_type == resource.resource_type
			and schedule.tenant_id == tenant_id
			and schedule.resource_id == resource.value
		]

	def get_business_hours(self, tenant_id, day_of_week):
		for hours in self.business_hours:
			if hours.tenant_id == tenant_id and hours.day_of_week == int(day_of_week):
				return hours
		return None

	def _active(self, tenant_id, target_date, exclude_appointment_id):
		return [
			appointment
			for appointment in self.appointments
			if appointment.tenant_id == tenant_id
			and appointment.date == target_date
			and appointment.status not in FREE_STATUSES
			and appointment.id != exclude_appointment_id
		]


class UnavailableScheduleRepository(ScheduleRepository):
	"""Every read fails, like a database that is down."""

	def _fail(self, *args, **kwargs):
		raise ScheduleRepositoryError("connection refused")

	get_appointments_for_resource = _fail
	get_appointments_for_client = _fail
	get_weekly_schedule = _fail
	get_weekly_schedules = _fail
	get_business_hours = _fail


def employee(value: str) -> ResourceRef:
	return ResourceRef(ResourceType.EMPLOYEE, MatchBy.ID, value)


def employee_by_label(value: str) -> ResourceRef:
	return ResourceRef(ResourceType.EMPLOYEE, MatchBy.LABEL, value)


def doctor(value: str) -> ResourceRef:
	return ResourceRef(ResourceType.DOCTOR, MatchBy.ID, value)
