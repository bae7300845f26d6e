# Copyright (c) 2026, Salon Scheduling contributors
# For license information, please see license.txt

"""
Doctor Schedule DocType

Horario semanal de un doctor. Mismas reglas que Employee Schedule.
"""

from salon_scheduling.salon_scheduling.doctype.employee_schedule.employee_schedule import (
	WeeklyScheduleDocument,
)


class DoctorSchedule(WeeklyScheduleDocument):
	resource_field = "doctor_id"
	resource_label = "Doctor"
