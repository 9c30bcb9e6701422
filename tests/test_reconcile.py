from io import StringIO

from django.core.management import call_command

from bookings import services
from bookings.models import SLOTS_DOCUMENT, SlotUpdate
from documents import read_document, write_document


def corrupt_available(slot_id, value):
    slots = read_document(SLOTS_DOCUMENT, [])
    for item in slots:
        if item["id"] == slot_id:
            item["available"] = value
    write_document(SLOTS_DOCUMENT, slots)


def test_consistent_slots_report_no_drift():
    slot = services.create_slot(date="2099-05-01", time="10:00", max_capacity=10)
    services.add_booking(slot_id=slot.id, name="A", email="a@example.com", participants=4)

    assert services.reconcile_availability() == []


def test_drift_is_reported_without_writing():
    slot = services.create_slot(date="2099-05-01", time="10:00", max_capacity=10)
    services.add_booking(slot_id=slot.id, name="A", email="a@example.com", participants=4)
    corrupt_available(slot.id, 9)

    drifts = services.reconcile_availability()

    assert [(d.slot_id, d.recorded, d.expected) for d in drifts] == [(slot.id, 9, 6)]
    assert services.get_slot(slot.id).available == 9


def test_apply_rewrites_counters_and_clamps_overbooking():
    ok = services.create_slot(date="2099-05-01", time="10:00", max_capacity=10)
    over = services.create_slot(date="2099-05-02", time="10:00", max_capacity=4)
    services.add_booking(slot_id=ok.id, name="A", email="a@example.com", participants=4)
    services.add_booking(slot_id=over.id, name="B", email="b@example.com", participants=4)
    services.update_slot(over.id, SlotUpdate(initial_booked=0))
    services.add_booking(slot_id=over.id, name="C", email="c@example.com", participants=2)
    corrupt_available(ok.id, 1)

    drifts = services.reconcile_availability(apply=True)

    assert {d.slot_id for d in drifts} == {ok.id, over.id}
    assert services.get_slot(ok.id).available == 6
    assert services.get_slot(over.id).available == 0


def test_management_command():
    slot = services.create_slot(date="2099-05-01", time="10:00", max_capacity=10)
    corrupt_available(slot.id, 3)

    out = StringIO()
    call_command("reconcile_availability", stdout=out)
    assert f"{slot.id}: available=3 expected=10" in out.getvalue()
    assert "--apply" in out.getvalue()

    out = StringIO()
    call_command("reconcile_availability", "--apply", stdout=out)
    assert "Corrected 1 slot(s)." in out.getvalue()
    assert services.get_slot(slot.id).available == 10

    out = StringIO()
    call_command("reconcile_availability", stdout=out)
    assert "All slots are consistent." in out.getvalue()


def test_clamped_overbooked_slot_is_not_reported_again():
    slot = services.create_slot(date="2099-05-02", time="10:00", max_capacity=4)
    services.add_booking(slot_id=slot.id, name="B", email="b@example.com", participants=4)
    services.update_slot(slot.id, SlotUpdate(initial_booked=0))
    services.add_booking(slot_id=slot.id, name="C", email="c@example.com", participants=2)

    first = services.reconcile_availability(apply=True)
    assert [(d.recorded, d.expected) for d in first] == [(2, 0)]

    assert services.reconcile_availability(apply=True) == []
    out = StringIO()
    call_command("reconcile_availability", "--apply", stdout=out)
    assert "All slots are consistent." in out.getvalue()
