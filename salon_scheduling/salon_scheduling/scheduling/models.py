"""
Scheduling Models

Estructuras de datos que consume el core de agendamiento:
- Appointment: cita ya guardada (solo lectura para el core)
- WeeklySchedule: horario semanal de un empleado o doctor
- BusinessHours: horario por defecto del tenant para un día
- BookingRequest: reserva candidata (no se persiste aquí)
- ResourceRef: referencia resuelta a un recurso (por id o por nombre)
"""

import hashlib
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import List, Optional, Union

from .exceptions import SchedulingPreconditionError
from .timeutils import MINUTES_PER_DAY, time_to_minutes, to_date


class AppointmentStatus(str, Enum):
	CONFIRMED = "confirmed"
	PENDING = "pending"
	CANCELLED = "cancelled"
	COMPLETED = "completed"
	NO_SHOW = "no-show"
	WAITING = "waiting"
	IN_PROGRESS = "in-progress"


# Citas en estos estados liberan su horario
FREE_STATUSES = frozenset({AppointmentStatus.CANCELLED.value, AppointmentStatus.NO_SHOW.value})


class ResourceType(str, Enum):
	EMPLOYEE = "employee"
	DOCTOR = "doctor"


class MatchBy(str, Enum):
	ID = "id"
	LABEL = "label"


@dataclass(frozen=True)
class ResourceRef:
	"""
	Identidad única de un recurso dentro de una reserva.

	Las citas históricas pueden guardar solo el nombre del empleado
	(employee_label) sin employee_id. La referencia se resuelve una vez en
	el borde: por id si existe, si no por nombre. Los doctores solo se
	referencian por id.
	"""
	resource_type: ResourceType
	match_by: MatchBy
	value: str

	@classmethod
	def resolve(
		cls,
		resource_type: ResourceType,
		resource_id: Optional[str] = None,
		label: Optional[str] = None
	) -> Optional["ResourceRef"]:
		"""Retorna la referencia por id, por nombre, o None si no hay ninguno."""
		if resource_id:
			return cls(resource_type, MatchBy.ID, resource_id)
		if label and resource_type == ResourceType.EMPLOYEE:
			return cls(resource_type, MatchBy.LABEL, label)
		return None

	@property
	def lock_key(self) -> str:
		value = self.value
		if self.match_by == MatchBy.LABEL:
			# Nombre en texto libre: se usa su hash para acotar el largo
			value = hashlib.sha1(value.encode("utf-8")).hexdigest()
		return f"{self.resource_type.value}:{self.match_by.value}:{value}"


@dataclass(frozen=True)
class Interval:
	"""Intervalo semiabierto [start, end) en minutos desde medianoche."""
	start: int
	end: int

	@property
	def duration(self) -> int:
		return self.end - self.start

	def overlaps(self, other: "Interval") -> bool:
		# Extremos que se tocan no cuentan como solape
		return self.start < other.end and self.end > other.start

	def contains(self, other: "Interval") -> bool:
		return self.start <= other.start and other.end <= self.end


def build_interval(start_time: str, duration_minutes: int) -> Interval:
	"""
	Intervalo ocupado por una reserva que empieza en start_time.

	Raises:
		SchedulingPreconditionError: si la duración no es un entero positivo
	"""
	validate_duration(duration_minutes)
	start = time_to_minutes(start_time)
	return Interval(start, start + duration_minutes)


def validate_duration(duration_minutes: int) -> int:
	"""La duración debe ser un entero positivo menor a un día."""
	if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
		raise SchedulingPreconditionError(f"Duration must be an integer, got {duration_minutes!r}")
	if duration_minutes <= 0:
		raise SchedulingPreconditionError(f"Duration must be positive, got {duration_minutes}")
	if duration_minutes > MINUTES_PER_DAY:
		raise SchedulingPreconditionError(f"Duration exceeds one day: {duration_minutes}")
	return duration_minutes


@dataclass
class Appointment:
	"""Cita guardada por el CRUD de reservas."""
	tenant_id: str
	id: str
	date: date
	time: str
	duration_minutes: int
	status: str = AppointmentStatus.CONFIRMED.value
	employee_id: Optional[str] = None
	employee_label: Optional[str] = None
	doctor_id: Optional[str] = None
	client_id: Optional[str] = None
	client_name: Optional[str] = None
	service_name: Optional[str] = None

	@property
	def is_blocking(self) -> bool:
		"""Canceladas y no-show no ocupan tiempo."""
		return self.status not in FREE_STATUSES

	@property
	def interval(self) -> Interval:
		return build_interval(self.time, self.duration_minutes)

	def occupies(self, resource: ResourceRef) -> bool:
		"""Si esta cita ocupa el recurso indicado."""
		if resource.resource_type == ResourceType.EMPLOYEE:
			if resource.match_by == MatchBy.ID:
				return self.employee_id == resource.value
			return self.employee_label == resource.value

		return self.doctor_id == resource.value


@dataclass(frozen=True)
class WeeklySchedule:
	"""
	Horario semanal de un recurso para un día (0=sábado ... 6=viernes).

	Si no existe fila para un recurso/día, el recurso no tiene restricción
	ese día. Una fila con is_available=False significa que no trabaja.
	"""
	tenant_id: str
	resource_id: str
	day_of_week: int
	start_time: str
	end_time: str
	is_available: bool = True

	@property
	def interval(self) -> Interval:
		return Interval(time_to_minutes(self.start_time), time_to_minutes(self.end_time))


@dataclass(frozen=True)
class BusinessHours:
	"""Horario por defecto del tenant para un día de la semana."""
	tenant_id: str
	day_of_week: int
	start_time: Optional[str]
	end_time: Optional[str]
	is_open: bool = True


@dataclass
class BookingRequest:
	"""
	Reserva candidata (nueva o edición).

	exclude_appointment_id se usa al editar una cita para que no choque
	con su propia ocupación anterior.
	"""
	tenant_id: str
	date: Union[date, str]
	time: str
	duration_minutes: int
	employee_id: Optional[str] = None
	employee_label: Optional[str] = None
	doctor_id: Optional[str] = None
	client_id: Optional[str] = None
	exclude_appointment_id: Optional[str] = None

	def __post_init__(self) -> None:
		if not self.tenant_id:
			raise SchedulingPreconditionError("tenant_id is required")
		self.date = to_date(self.date)
		# Valida formato de hora y duración antes de cualquier lectura
		build_interval(self.time, self.duration_minutes)

	@property
	def interval(self) -> Interval:
		return build_interval(self.time, self.duration_minutes)

	@property
	def employee(self) -> Optional[ResourceRef]:
		return ResourceRef.resolve(ResourceType.EMPLOYEE, self.employee_id, self.employee_label)

	@property
	def doctor(self) -> Optional[ResourceRef]:
		return ResourceRef.resolve(ResourceType.DOCTOR, self.doctor_id)

	@property
	def resources(self) -> List[ResourceRef]:
		"""Recursos nombrados, empleado primero."""
		return [ref for ref in (self.employee, self.doctor) if ref is not None]
