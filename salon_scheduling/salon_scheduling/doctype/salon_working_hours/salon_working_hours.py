# Copyright (c) 2026, Salon Scheduling contributors
# For license information, please see license.txt

"""
Salon Working Hours DocType

Horario por defecto del tenant para cada día de la semana. Si un día no
tiene fila, se usa el horario de site_config (09:00-21:00 por defecto).
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


class SalonWorkingHours(Document):
	def validate(self) -> None:
		if not self.tenant:
			frappe.throw(_("Tenant es requerido"))

		if cint(self.day_of_week) not in {day.value for day in DayOfWeek}:
			frappe.throw(_(f"Day of Week inválido: {self.day_of_week}"))

		if cint(self.is_open):
			self._validate_times()

		existing = frappe.db.exists(
			self.doctype,
			{"tenant": self.tenant, "day_of_week": cint(self.day_of_week), "name": ["!=", self.name or ""]}
		)
		if existing:
			frappe.throw(_(f"Ya existe un horario para este día ({existing})"))

	def _validate_times(self) -> None:
		"""Un día abierto necesita start_time < end_time."""
		if not self.start_time or not self.end_time:
			frappe.throw(_("Start Time y End Time son requeridos cuando el día está abierto"))

		try:
			self.start_time = coerce_time_string(self.start_time)
			self.end_time = coerce_time_string(self.end_time)
		except InvalidTimeError as e:
			frappe.throw(_(str(e)))

		if time_to_minutes(self.start_time) >= time_to_minutes(self.end_time):
			frappe.throw(
				_(f"Start Time ({self.start_time}) debe ser menor que End Time ({self.end_time})")
			)
