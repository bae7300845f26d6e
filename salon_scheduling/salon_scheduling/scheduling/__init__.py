"""
Scheduling Services Module

Core de agendamiento para citas de salón/clínica:
- Aritmética de horas y día de la semana (timeutils.py)
- Modelos de datos y referencias de recursos (models.py)
- Interfaz del repositorio de agendas y citas (repository.py)
- Ventana efectiva de disponibilidad (availability.py)
- Detección de conflictos por recurso y por cliente (overlap.py)
- Búsqueda de slots libres (slots.py)
- Validación contra el horario semanal del recurso (working_hours.py)

Los algoritmos son funciones puras sobre datos ya leídos; todas las
lecturas pasan por un ScheduleRepository. La implementación sobre Frappe
vive en frappe_repository.py y el bloqueo de reservas en locking.py.
"""
