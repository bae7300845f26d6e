"""
Scheduling Exceptions

Errores de precondición del core. Un conflicto o la falta de slot NO son
errores: se reportan como resultados estructurados.
"""


class SchedulingPreconditionError(ValueError):
	"""El llamador pasó datos inválidos (bug del llamador, no política de negocio)."""
	pass


class InvalidTimeError(SchedulingPreconditionError):
	"""Hora con formato distinto de "HH:MM" o minutos fuera del día."""
	pass
