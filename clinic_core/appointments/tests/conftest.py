import datetime

import pytest

from clinic_core.appointments.models import Appointment, AppointmentStatus


@pytest.fixture
def make_appointment(db, patient):
    def _make(status=AppointmentStatus.PENDING, **extra):
        extra.setdefault("patient", patient)
        extra.setdefault("date", datetime.date(2026, 11, 2))
        extra.setdefault("service", "General consultation")
        return Appointment.objects.create(status=status, **extra)

    return _make


@pytest.fixture
def appointment(make_appointment):
    return make_appointment()
