"""
Schedule Repository

Interfaz de lectura que usa el core de agendamiento. Toda consulta filtra
por tenant_id: una implementación nunca debe devolver filas de otro tenant.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional

from .models import Appointment, BusinessHours, ResourceRef, WeeklySchedule


class ScheduleRepository(ABC):
	"""
	Interfaz base para el acceso a agendas y citas.

	Las implementaciones deben lanzar ScheduleRepositoryError si el store no
	responde; el core nunca devuelve un veredicto con datos incompletos.
	"""

	@abstractmethod
	def get_appointments_for_resource(
		self,
		tenant_id: str,
		target_date: date,
		resource: ResourceRef,
		exclude_appointment_id: Optional[str] = None
	) -> List[Appointment]:
		"""
		Citas del recurso en la fecha, sin canceladas ni no-show.

		Args:
			tenant_id: tenant dueño de los datos
			target_date: fecha de las citas
			resource: empleado (por id o por nombre) o doctor (por id)
			exclude_appointment_id: cita a excluir (ediciones)
		"""
		pass

	@abstractmethod
	def get_appointments_for_client(
		self,
		tenant_id: str,
		target_date: date,
		client_id: str,
		exclude_appointment_id: Optional[str] = None
	) -> List[Appointment]:
		"""Citas del cliente en la fecha, sin canceladas ni no-show."""
		pass

	@abstractmethod
	def get_weekly_schedule(
		self,
		tenant_id: str,
		resource: ResourceRef,
		day_of_week: int
	) -> Optional[WeeklySchedule]:
		"""Fila de horario semanal del recurso para el día, o None si no existe."""
		pass

	@abstractmethod
	def get_weekly_schedules(self, tenant_id: str, resource: ResourceRef) -> List[WeeklySchedule]:
		"""Todas las filas de horario semanal del recurso."""
		pass

	@abstractmethod
	def get_business_hours(self, tenant_id: str, day_of_week: int) -> Optional[BusinessHours]:
		"""Horario por defecto del tenant para el día, o None si no está configurado."""
		pass


class ScheduleRepositoryError(Exception):
	"""El store de agendas/citas no respondió."""
	pass
