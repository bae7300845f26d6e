# Copyright (c) 2026, Salon Scheduling contributors
# For license information, please see license.txt

from frappe.model.document import Document


class SalonScheduleLock(Document):
	pass
