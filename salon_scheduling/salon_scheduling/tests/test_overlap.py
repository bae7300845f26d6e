"""
Tests for scheduling/overlap.py

Tests interval overlap, resource conflicts (employee/doctor) and client conflicts.
"""

import unittest

from salon_scheduling.salon_scheduling.scheduling.exceptions import SchedulingPreconditionError
from salon_scheduling.salon_scheduling.scheduling.models import (
	Appointment,
	BookingRequest,
	Interval,
)
from salon_scheduling.salon_scheduling.scheduling.overlap import (
	check_client_conflict,
	check_resource_conflict,
	find_first_overlap,
	intervals_overlap,
)
from salon_scheduling.salon_scheduling.scheduling.repository import ScheduleRepositoryError
from salon_scheduling.salon_scheduling.tests.fakes import (
	InMemoryScheduleRepository,
	OTHER_TENANT,
	TENANT,
	TUESDAY,
	UnavailableScheduleRepository,
)


class TestIntervalsOverlap(unittest.TestCase):

	def test_overlap_is_symmetric(self):
		"""Test overlap gives the same answer in both directions."""
		pairs = [
			(Interval(600, 630), Interval(615, 645)),
			(Interval(600, 630), Interval(630, 660)),
			(Interval(540, 720), Interval(600, 630)),
			(Interval(540, 570), Interval(900, 930)),
		]
		for a, b in pairs:
			self.assertEqual(intervals_overlap(a, b), intervals_overlap(b, a))

	def test_touching_endpoints_do_not_overlap(self):
		"""Test when there's no overlap because the endpoints only touch."""
		self.assertFalse(intervals_overlap(Interval(600, 630), Interval(630, 660)))
		self.assertFalse(intervals_overlap(Interval(630, 660), Interval(600, 630)))

	def test_partial_and_contained_overlap(self):
		"""Test partial, contained and identical intervals overlap."""
		self.assertTrue(intervals_overlap(Interval(600, 630), Interval(629, 700)))
		self.assertTrue(intervals_overlap(Interval(540, 720), Interval(600, 630)))
		self.assertTrue(intervals_overlap(Interval(600, 630), Interval(600, 630)))


class TestFindFirstOverlap(unittest.TestCase):

	def _appointment(self, id, time, duration, status="confirmed"):
		return Appointment(TENANT, id, TUESDAY, time, duration, status=status, employee_id="EMP-0001")

	def test_free_statuses_never_block(self):
		"""Test cancelled and no-show appointments never overlap."""
		appointments = [
			self._appointment("A", "10:00", 30, status="cancelled"),
			self._appointment("B", "10:00", 30, status="no-show"),
		]
		self.assertIsNone(find_first_overlap(Interval(600, 630), appointments))

	def test_excluded_appointment_is_skipped(self):
		"""Test the excluded appointment is skipped."""
		appointments = [self._appointment("A", "10:00", 30)]
		self.assertIsNone(find_first_overlap(Interval(600, 630), appointments, exclude_appointment_id="A"))
		self.assertEqual(find_first_overlap(Interval(600, 630), appointments).id, "A")


class TestResourceConflict(unittest.TestCase):
	"""Tests for check_resource_conflict."""

	def setUp(self):
		self.repository = InMemoryScheduleRepository()
		self.existing = self.repository.add_appointment(
			"10:00", 30,
			employee_id="EMP-0001",
			client_id="CLI-1",
			client_name="Laura Gómez",
			service_name="Corte"
		)

	def _request(self, time, duration=30, **kwargs):
		kwargs.setdefault("employee_id", "EMP-0001")
		return BookingRequest(TENANT, TUESDAY, time, duration, **kwargs)

	def test_overlapping_booking_conflicts(self):
		"""Test an overlapping booking reports the conflicting appointment."""
		result = check_resource_conflict(self._request("10:15"), self.repository)

		self.assertTrue(result["has_conflict"])
		self.assertEqual(result["resource_type"], "employee")
		self.assertEqual(result["conflicting_appointment"], {
			"id": self.existing.id,
			"time": "10:00",
			"duration": 30,
			"client_name": "Laura Gómez",
			"service_name": "Corte"
		})

	def test_back_to_back_bookings_do_not_conflict(self):
		"""Test back-to-back bookings do not conflict."""
		self.assertFalse(check_resource_conflict(self._request("10:30"), self.repository)["has_conflict"])
		self.assertFalse(check_resource_conflict(self._request("09:30"), self.repository)["has_conflict"])

	def test_other_employee_is_free(self):
		"""Test another employee's booking does not conflict."""
		result = check_resource_conflict(self._request("10:00", employee_id="EMP-0002"), self.repository)
		self.assertEqual(result, {"has_conflict": False})

	def test_editing_does_not_conflict_with_itself(self):
		"""Test editing an appointment does not conflict with itself."""
		request = self._request("10:15", exclude_appointment_id=self.existing.id)
		self.assertFalse(check_resource_conflict(request, self.repository)["has_conflict"])

	def test_cancelled_and_no_show_free_the_slot(self):
		"""Test cancelled and no-show appointments free their slot."""
		self.existing.status = "cancelled"
		self.assertFalse(check_resource_conflict(self._request("10:00"), self.repository)["has_conflict"])

		self.existing.status = "no-show"
		self.assertFalse(check_resource_conflict(self._request("10:00"), self.repository)["has_conflict"])

	def test_legacy_appointment_matched_by_label(self):
		"""Test appointments saved by employee name conflict by name."""
		self.repository.add_appointment("15:00", 60, employee_label="Ana")

		request = self._request("15:30", employee_id=None, employee_label="Ana")
		result = check_resource_conflict(request, self.repository)

		self.assertTrue(result["has_conflict"])
		self.assertEqual(result["resource_type"], "employee")

	def test_doctor_conflict_when_employee_free(self):
		"""Test a doctor conflict is reported when the employee is free."""
		self.repository.add_appointment("11:00", 60, employee_id="EMP-0009", doctor_id="DOC-01")

		result = check_resource_conflict(self._request("11:30", doctor_id="DOC-01"), self.repository)

		self.assertTrue(result["has_conflict"])
		self.assertEqual(result["resource_type"], "doctor")

	def test_employee_reported_first(self):
		"""Test the employee conflict is reported before the doctor one."""
		self.repository.add_appointment("10:00", 30, employee_id="EMP-0009", doctor_id="DOC-01")

		result = check_resource_conflict(self._request("10:00", doctor_id="DOC-01"), self.repository)

		self.assertEqual(result["resource_type"], "employee")
		self.assertEqual(result["conflicting_appointment"]["id"], self.existing.id)

	def test_other_tenant_and_other_date_ignored(self):
		"""Test appointments of other tenants and dates are ignored."""
		self.repository.add_appointment("14:00", 30, employee_id="EMP-0001", tenant_id=OTHER_TENANT)
		self.repository.add_appointment("14:00", 30, employee_id="EMP-0001", date=TUESDAY.replace(day=10))

		self.assertFalse(check_resource_conflict(self._request("14:00"), self.repository)["has_conflict"])

	def test_booking_without_resource_rejected(self):
		"""Test a booking without employee or doctor is a precondition error."""
		request = BookingRequest(TENANT, TUESDAY, "10:00", 30)

		with self.assertRaises(SchedulingPreconditionError):
			check_resource_conflict(request, self.repository)

	def test_repository_failure_propagates(self):
		"""Test a read failure propagates."""
		with self.assertRaises(ScheduleRepositoryError):
			check_resource_conflict(self._request("10:00"), UnavailableScheduleRepository())


class TestClientConflict(unittest.TestCase):
	"""Tests for check_client_conflict."""

	def setUp(self):
		self.repository = InMemoryScheduleRepository()
		self.existing = self.repository.add_appointment(
			"10:00", 60,
			employee_id="EMP-0001",
			client_id="CLI-1",
			service_name="Color"
		)

	def test_same_client_with_other_employee_conflicts(self):
		"""Test the same client cannot be booked twice at once."""
		request = BookingRequest(TENANT, TUESDAY, "10:30", 30, employee_id="EMP-0002", client_id="CLI-1")

		result = check_client_conflict(request, self.repository)

		self.assertTrue(result["has_client_conflict"])
		self.assertEqual(result["conflicting_appointment"], {
			"id": self.existing.id,
			"time": "10:00",
			"duration": 60,
			"service_name": "Color"
		})

	def test_without_client_id_no_conflict(self):
		"""Test a booking without client never has a client conflict."""
		request = BookingRequest(TENANT, TUESDAY, "10:30", 30, employee_id="EMP-0002")
		self.assertEqual(check_client_conflict(request, self.repository), {"has_client_conflict": False})

	def test_other_client_no_conflict(self):
		"""Test another client's appointment does not conflict."""
		request = BookingRequest(TENANT, TUESDAY, "10:30", 30, employee_id="EMP-0002", client_id="CLI-2")
		self.assertFalse(check_client_conflict(request, self.repository)["has_client_conflict"])

	def test_client_can_book_right_after(self):
		"""Test the client can book right after their appointment."""
		request = BookingRequest(TENANT, TUESDAY, "11:00", 30, employee_id="EMP-0002", client_id="CLI-1")
		self.assertFalse(check_client_conflict(request, self.repository)["has_client_conflict"])

	def test_editing_own_appointment(self):
		"""Test editing the client's own appointment does not conflict."""
		request = BookingRequest(
			TENANT, TUESDAY, "10:15", 60,
			employee_id="EMP-0001",
			client_id="CLI-1",
			exclude_appointment_id=self.existing.id
		)
		self.assertFalse(check_client_conflict(request, self.repository)["has_client_conflict"])

	def test_repository_failure_propagates(self):
		"""Test a read failure propagates."""
		request = BookingRequest(TENANT, TUESDAY, "10:30", 30, employee_id="EMP-0002", client_id="CLI-1")
		with self.assertRaises(ScheduleRepositoryError):
			check_client_conflict(request, UnavailableScheduleRepository())
