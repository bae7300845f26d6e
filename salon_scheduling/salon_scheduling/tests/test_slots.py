"""
Tests for scheduling/slots.py

Tests the first-fit scan, discrete slot enumeration and the repository-backed
slot finders.
"""

import unittest

from salon_scheduling.salon_scheduling.scheduling.exceptions import SchedulingPreconditionError
from salon_scheduling.salon_scheduling.scheduling.models import Interval, ResourceType
from salon_scheduling.salon_scheduling.scheduling.repository import ScheduleRepositoryError
from salon_scheduling.salon_scheduling.scheduling.slots import (
	collect_busy_intervals,
	enumerate_slots,
	find_first_fit,
	find_next_available_slot,
	list_available_slots,
)
from salon_scheduling.salon_scheduling.scheduling.timeutils import DayOfWeek
from salon_scheduling.salon_scheduling.tests.fakes import (
	InMemoryScheduleRepository,
	TENANT,
	TUESDAY,
	UnavailableScheduleRepository,
	doctor,
	employee,
)


class TestFindFirstFit(unittest.TestCase):

	def test_slot_after_first_busy_interval(self):
		"""Test the slot starts where the first busy interval ends."""
		self.assertEqual(find_first_fit(Interval(540, 1260), [Interval(540, 600)], 30), 600)

	def test_first_gap_that_fits(self):
		"""Test the earliest gap long enough is chosen."""
		busy = [Interval(540, 600), Interval(660, 720)]
		self.assertEqual(find_first_fit(Interval(540, 1260), busy, 45), 600)

	def test_window_fully_busy(self):
		"""Test a fully busy window has no slot."""
		busy = [Interval(540, 900), Interval(900, 1260)]
		self.assertIsNone(find_first_fit(Interval(540, 1260), busy, 15))

	def test_empty_day_starts_at_window_start(self):
		"""Test an empty day starts at the window start."""
		self.assertEqual(find_first_fit(Interval(540, 1260), [], 60), 540)

	def test_no_fit(self):
		"""Test no slot when no gap is long enough."""
		self.assertIsNone(find_first_fit(Interval(540, 600), [Interval(540, 570)], 45))

	def test_duration_longer_than_window(self):
		"""Test a duration longer than the window never fits."""
		self.assertIsNone(find_first_fit(Interval(540, 600), [], 61))

	def test_exact_gap(self):
		"""Test a gap exactly as long as the duration fits."""
		busy = [Interval(540, 600), Interval(630, 700)]
		self.assertEqual(find_first_fit(Interval(540, 1260), busy, 30), 600)

	def test_gap_too_small(self):
		"""Test a gap one minute short is skipped."""
		busy = [Interval(540, 600), Interval(620, 700)]
		self.assertEqual(find_first_fit(Interval(540, 1260), busy, 30), 700)

	def test_overlapping_busy_intervals(self):
		"""Test overlapping busy intervals are merged."""
		busy = [Interval(540, 600), Interval(570, 660)]
		self.assertEqual(find_first_fit(Interval(540, 1260), busy, 30), 660)

	def test_unsorted_busy_intervals(self):
		"""Test busy intervals need not be sorted."""
		busy = [Interval(600, 660), Interval(540, 600)]
		self.assertEqual(find_first_fit(Interval(540, 1260), busy, 30), 660)

	def test_busy_outside_window(self):
		"""Test busy time outside the window is ignored."""
		busy = [Interval(480, 530), Interval(1270, 1300)]
		self.assertEqual(find_first_fit(Interval(540, 1260), busy, 30), 540)

	def test_slot_never_ends_after_window(self):
		"""Test the slot never ends past the window end."""
		busy = [Interval(540, 1240)]
		self.assertIsNone(find_first_fit(Interval(540, 1260), busy, 30))
		self.assertEqual(find_first_fit(Interval(540, 1260), busy, 20), 1240)

	def test_invalid_duration(self):
		"""Test a non-positive duration is a precondition error."""
		with self.assertRaises(SchedulingPreconditionError):
			find_first_fit(Interval(540, 1260), [], 0)


class TestEnumerateSlots(unittest.TestCase):

	def test_steps_skip_busy_time(self):
		"""Test stepped starts skip busy time."""
		starts = enumerate_slots(Interval(540, 660), [Interval(600, 630)], 30, step_minutes=15)
		self.assertEqual(starts, [540, 555, 570, 630])

	def test_earliest_start(self):
		"""Test starts before the earliest start are dropped."""
		starts = enumerate_slots(Interval(540, 660), [Interval(600, 630)], 30, step_minutes=15, earliest_start=560)
		self.assertEqual(starts, [570, 630])

	def test_last_slot_ends_at_window_end(self):
		"""Test the last slot may end exactly at the window end."""
		starts = enumerate_slots(Interval(540, 600), [], 30, step_minutes=20)
		self.assertEqual(starts, [540, 560])

	def test_invalid_step(self):
		"""Test a non-positive step is a precondition error."""
		with self.assertRaises(SchedulingPreconditionError):
			enumerate_slots(Interval(540, 600), [], 30, step_minutes=0)


class TestSlotFinderWithRepository(unittest.TestCase):

	def setUp(self):
		self.repository = InMemoryScheduleRepository()

	def test_union_of_employee_and_doctor_busy_time(self):
		"""Test busy time of both resources is combined."""
		self.repository.add_appointment("09:00", 30, employee_id="EMP-0001")
		self.repository.add_appointment("09:30", 30, employee_id="EMP-0009", doctor_id="DOC-01")

		slot = find_next_available_slot(
			self.repository, TENANT, TUESDAY, 30,
			employee=employee("EMP-0001"),
			doctor=doctor("DOC-01")
		)

		self.assertEqual(slot, "10:00")

	def test_skips_busy_time_of_both_resources(self):
		"""Test the slot avoids both the employee and the doctor."""
		self.repository.add_appointment("09:00", 60, employee_id="EMP-0001")
		self.repository.add_appointment("11:00", 60, doctor_id="DOC-01")

		slot = find_next_available_slot(
			self.repository, TENANT, TUESDAY, 30,
			employee=employee("EMP-0001"),
			doctor=doctor("DOC-01")
		)

		self.assertEqual(slot, "10:00")

	def test_only_named_resources_count(self):
		"""Test other employees' appointments are ignored."""
		self.repository.add_appointment("09:00", 60, employee_id="EMP-0002")

		slot = find_next_available_slot(self.repository, TENANT, TUESDAY, 30, employee=employee("EMP-0001"))

		self.assertEqual(slot, "09:00")

	def test_respects_resource_schedule(self):
		"""Test the slot starts inside the resource's schedule."""
		self.repository.add_schedule(ResourceType.EMPLOYEE, "EMP-0001", DayOfWeek.TUESDAY, "10:00", "18:00")

		slot = find_next_available_slot(self.repository, TENANT, "2024-01-09", 30, employee=employee("EMP-0001"))

		self.assertEqual(slot, "10:00")

	def test_closed_day_has_no_slot(self):
		"""Test a day the resource does not work has no slot."""
		self.repository.add_schedule(
			ResourceType.EMPLOYEE, "EMP-0001", DayOfWeek.TUESDAY, "10:00", "18:00", is_available=False
		)

		self.assertIsNone(find_next_available_slot(self.repository, TENANT, TUESDAY, 30, employee=employee("EMP-0001")))

	def test_fully_booked_day(self):
		"""Test a fully booked day has no slot."""
		self.repository.add_appointment("09:00", 720, employee_id="EMP-0001")

		self.assertIsNone(find_next_available_slot(self.repository, TENANT, TUESDAY, 15, employee=employee("EMP-0001")))

	def test_cancelled_appointments_free_time(self):
		"""Test cancelled appointments do not block time."""
		self.repository.add_appointment("09:00", 60, employee_id="EMP-0001", status="cancelled")

		slot = find_next_available_slot(self.repository, TENANT, TUESDAY, 30, employee=employee("EMP-0001"))

		self.assertEqual(slot, "09:00")

	def test_edit_flow_excludes_own_appointment(self):
		"""Test the appointment being edited does not block itself."""
		own = self.repository.add_appointment("09:00", 60, employee_id="EMP-0001")

		slot = find_next_available_slot(
			self.repository, TENANT, TUESDAY, 30,
			employee=employee("EMP-0001"),
			exclude_appointment_id=own.id
		)

		self.assertEqual(slot, "09:00")

	def test_custom_work_hours(self):
		"""Test custom work hours bound the search."""
		slot = find_next_available_slot(
			self.repository, TENANT, TUESDAY, 30,
			employee=employee("EMP-0001"),
			work_start="11:00",
			work_end="12:00"
		)
		self.assertEqual(slot, "11:00")

	def test_collect_busy_intervals(self):
		"""Test busy intervals are collected for every resource."""
		self.repository.add_appointment("09:00", 30, employee_id="EMP-0001", doctor_id="DOC-01")
		self.repository.add_appointment("12:00", 45, doctor_id="DOC-01")

		busy = collect_busy_intervals(self.repository, TENANT, TUESDAY, [employee("EMP-0001"), doctor("DOC-01")])

		self.assertIn(Interval(540, 570), busy)
		self.assertIn(Interval(720, 765), busy)

	def test_list_available_slots(self):
		"""Test bookable slots are listed with start and end."""
		self.repository.add_schedule(ResourceType.EMPLOYEE, "EMP-0001", DayOfWeek.TUESDAY, "10:00", "11:30")
		self.repository.add_appointment("10:30", 30, employee_id="EMP-0001")

		slots = list_available_slots(
			self.repository, TENANT, TUESDAY, 30,
			employee=employee("EMP-0001"),
			step_minutes=30
		)

		self.assertEqual(slots, [
			{"start": "10:00", "end": "10:30"},
			{"start": "11:00", "end": "11:30"},
		])

	def test_list_available_slots_closed_day(self):
		"""Test a closed tenant day lists no slots."""
		self.repository.add_business_hours(DayOfWeek.TUESDAY, is_open=False)

		self.assertEqual(list_available_slots(self.repository, TENANT, TUESDAY, 30, employee=employee("EMP-0001")), [])

	def test_repository_failure_propagates(self):
		"""Test a read failure propagates."""
		with self.assertRaises(ScheduleRepositoryError):
			find_next_available_slot(UnavailableScheduleRepository(), TENANT, TUESDAY, 30, employee=employee("EMP-0001"))
