app_name = "salon_scheduling"
app_title = "Salon Scheduling"
app_publisher = "Salon Scheduling contributors"
app_description = "Agenda de citas para salones y clínicas: conflictos, horarios y próximos slots libres"
app_email = "dev@salon-scheduling.local"
app_license = "mit"

# Apps
# ------------------

# required_apps = []

# Installation
# ------------

# before_install = "salon_scheduling.install.before_install"
# after_install = "salon_scheduling.install.after_install"

# Document Events
# ---------------
# Las validaciones de agenda viven en el controller de Salon Appointment

# doc_events = {}

# Scheduled Tasks
# ---------------
# Sin tareas programadas: la agenda se calcula en cada consulta

# scheduler_events = {}

# Testing
# -------

# before_tests = "salon_scheduling.install.before_tests"
