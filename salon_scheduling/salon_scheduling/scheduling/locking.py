"""
Booking Locks

Serializa "verificar conflicto -> guardar cita" por recurso y fecha.

Cada clave (tenant, recurso o cliente, fecha) tiene una fila en
Salon Schedule Lock. Antes de verificar conflictos se hace SELECT ... FOR
UPDATE sobre esas filas dentro de la transacción del request; dos reservas
concurrentes para el mismo recurso y fecha se ejecutan una detrás de otra y
la segunda ve la cita de la primera. Los locks se liberan con el commit o
rollback del request.
"""

import hashlib
import frappe
from frappe.utils import now_datetime
from datetime import date
from typing import Iterable, List, Optional

from .models import ResourceRef


LOCK_DOCTYPE = "Salon Schedule Lock"

# Largo de la columna name en Frappe (varchar 140)
LOCK_NAME_MAX_LENGTH = 140


def build_lock_keys(
	tenant_id: str,
	target_date: date,
	resources: Iterable[ResourceRef],
	client_id: Optional[str] = None
) -> List[str]:
	"""
	Claves de lock ordenadas (el orden fijo evita deadlocks entre requests).
	"""
	day = target_date.strftime("%Y-%m-%d")
	keys = {f"{tenant_id}|{resource.lock_key}|{day}" for resource in resources}
	if client_id:
		keys.add(f"{tenant_id}|client:{client_id}|{day}")
	return sorted(_fit_lock_name(key) for key in keys)


def _fit_lock_name(key: str) -> str:
	"""Claves más largas que la columna name se reemplazan por su hash."""
	if len(key) <= LOCK_NAME_MAX_LENGTH:
		return key
	return hashlib.sha1(key.encode("utf-8")).hexdigest()


def acquire_booking_locks(
	tenant_id: str,
	target_date: date,
	resources: Iterable[ResourceRef],
	client_id: Optional[str] = None
) -> List[str]:
	"""
	Toma los locks de fila para los recursos/cliente de una reserva.

	Returns:
		list[str]: claves bloqueadas
	"""
	keys = build_lock_keys(tenant_id, target_date, resources, client_id)
	timestamp = now_datetime()

	for key in keys:
		# La fila puede no existir todavía; INSERT IGNORE es idempotente
		frappe.db.sql(
			f"""
			INSERT IGNORE INTO `tab{LOCK_DOCTYPE}` (name, creation, modified, owner, modified_by)
			VALUES (%s, %s, %s, 'Administrator', 'Administrator')
			""",
			(key, timestamp, timestamp)
		)
		frappe.db.sql(
			f"SELECT name FROM `tab{LOCK_DOCTYPE}` WHERE name = %s FOR UPDATE",
			(key,)
		)

	frappe.logger("salon_scheduling").debug(f"Booking locks acquired: {', '.join(keys)}")

	return keys
