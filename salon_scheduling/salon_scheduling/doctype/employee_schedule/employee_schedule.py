# Copyright (c) 2026, Salon Scheduling contributors
# For license information, please see license.txt

"""
Employee Schedule DocType

Horario semanal de un empleado: una fila por empleado y día de la semana
(0=sábado ... 6=viernes). Sin fila para un día = sin restricción.
"""

import frappe
from frappe import _
from frappe.model.document import Document
from frappe.utils import cint

from salon_scheduling.salon_scheduling.scheduling.exceptions import InvalidTimeError
from salon_scheduling.salon_scheduling.scheduling.timeutils import (
	DayOfWeek,
	coerce_time_string,
	time_to_minutes,
)


class WeeklyScheduleDocument(Document):
	"""
	Base para los horarios semanales de recursos.

	Validations:
	- tenant y recurso requeridos
	- day_of_week entre 0 y 6
	- start_time < end_time
	- Una sola fila por (tenant, recurso, día)
	"""

	resource_field = "employee_id"
	resource_label = "Employee"

	def validate(self) -> None:
		"""
		Validación antes de guardar.
		"""
		self._validate_required_fields()
		self._validate_day_of_week()
		self._validate_times()
		self._validate_unique_day()

	def _validate_required_fields(self) -> None:
		"""Valida campos requeridos."""
		if not self.tenant:
			frappe.throw(_("Tenant es requerido"))

		if not self.get(self.resource_field):
			frappe.throw(_(f"{self.resource_label} es requerido"))

	def _validate_day_of_week(self) -> None:
		"""Valida que day_of_week sea un índice válido (0=sábado ... 6=viernes)."""
		if cint(self.day_of_week) not in {day.value for day in DayOfWeek}:
			frappe.throw(_(f"Day of Week inválido: {self.day_of_week}. Use 0 (sábado) a 6 (viernes)"))

	def _validate_times(self) -> None:
		"""
		Valida que start_time < end_time.

		Si el recurso no trabaja ese día (is_available = 0) los tiempos se
		guardan igual para mostrarlos, pero deben ser coherentes.
		"""
		if not self.start_time or not self.end_time:
			frappe.throw(_("Start Time y End Time son requeridos"))

		try:
			self.start_time = coerce_time_string(self.start_time)
			self.end_time = coerce_time_string(self.end_time)
		except InvalidTimeError as e:
			frappe.throw(_(str(e)))

		if time_to_minutes(self.start_time) >= time_to_minutes(self.end_time):
			frappe.throw(
				_(f"Start Time ({self.start_time}) debe ser menor que End Time ({self.end_time})")
			)

	def _validate_unique_day(self) -> None:
		"""Valida que no exista otra fila para el mismo recurso y día."""
		existing = frappe.db.exists(
			self.doctype,
			{
				"tenant": self.tenant,
				self.resource_field: self.get(self.resource_field),
				"day_of_week": cint(self.day_of_week),
				"name": ["!=", self.name or ""],
			}
		)
		if existing:
			day_name = DayOfWeek(cint(self.day_of_week)).name.title()
			frappe.throw(
				_(f"Ya existe un horario para este {self.resource_label} el día {day_name} ({existing})")
			)


class EmployeeSchedule(WeeklyScheduleDocument):
	resource_field = "employee_id"
	resource_label = "Employee"
