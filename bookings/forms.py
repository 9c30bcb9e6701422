from __future__ import annotations

from datetime import date as date_type
from datetime import time as time_type

from django import forms

from .models import BookingStatus, BookingUpdate, EventType, SlotUpdate


TIME_INPUT_FORMATS = ["%H:%M"]


def _serialize(value):
    if isinstance(value, date_type):
        return value.isoformat()
    if isinstance(value, time_type):
        return value.strftime("%H:%M")
    return value


class PartialUpdateForm(forms.Form):
    """
    Base for PUT payloads: every field is optional and only keys present in
    the payload end up in the update set. `clearable` fields accept null/""
    to remove the value; other fields must not be sent empty.
    """

    update_class = None
    field_map: dict[str, str] = {}
    clearable: frozenset[str] = frozenset()

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        for field in self.fields.values():
            field.required = False

    def provided(self) -> list[str]:
        return [name for name in self.field_map if name in self.data]

    def clean(self):
        cleaned = super().clean()
        if not self.provided():
            raise forms.ValidationError("No updates provided.")
        for name in self.provided():
            if name not in self.clearable and cleaned.get(name) in (None, "") and name not in self.errors:
                self.add_error(name, "This field cannot be empty.")
        return cleaned

    def to_update(self):
        values = {}
        for name in self.provided():
            value = _serialize(self.cleaned_data.get(name))
            if name in self.clearable and value == "":
                value = None
            values[self.field_map[name]] = value
        return self.update_class(**values)


class SlotCreateForm(forms.Form):
    date = forms.DateField()
    time = forms.TimeField(input_formats=TIME_INPUT_FORMATS, required=False)
    startTime = forms.TimeField(input_formats=TIME_INPUT_FORMATS, required=False)
    endTime = forms.TimeField(input_formats=TIME_INPUT_FORMATS, required=False)
    maxCapacity = forms.IntegerField()
    initialBooked = forms.IntegerField(required=False)
    eventType = forms.ChoiceField(choices=EventType.choices, required=False)
    eventDuration = forms.FloatField(required=False, min_value=0)

    def clean(self):
        cleaned = super().clean()
        # Accepts the older "time" key as well as "startTime".
        if not cleaned.get("startTime") and not cleaned.get("time") and "time" not in self.errors:
            self.add_error("time", "Start time is required.")
        return cleaned

    def to_kwargs(self) -> dict:
        data = self.cleaned_data
        return {
            "date": _serialize(data["date"]),
            "time": _serialize(data.get("startTime") or data["time"]),
            "end_time": _serialize(data.get("endTime")),
            "max_capacity": data["maxCapacity"],
            "initial_booked": data.get("initialBooked") or 0,
            "event_type": data.get("eventType") or EventType.NORMAL,
            "event_duration": data.get("eventDuration"),
        }


class SlotUpdateForm(PartialUpdateForm):
    date = forms.DateField()
    time = forms.TimeField(input_formats=TIME_INPUT_FORMATS)
    endTime = forms.TimeField(input_formats=TIME_INPUT_FORMATS)
    maxCapacity = forms.IntegerField()
    initialBooked = forms.IntegerField()
    eventType = forms.ChoiceField(choices=EventType.choices)
    eventDuration = forms.FloatField(min_value=0)

    update_class = SlotUpdate
    field_map = {
        "date": "date",
        "time": "time",
        "endTime": "end_time",
        "maxCapacity": "max_capacity",
        "initialBooked": "initial_booked",
        "eventType": "event_type",
        "eventDuration": "event_duration",
    }
    clearable = frozenset({"endTime", "eventDuration"})


class BookingCreateForm(forms.Form):
    slotId = forms.CharField(max_length=100)
    name = forms.CharField(max_length=200)
    email = forms.EmailField()
    phone = forms.CharField(max_length=50, required=False)
    participants = forms.IntegerField()
    notes = forms.CharField(max_length=2000, required=False)

    def to_kwargs(self) -> dict:
        data = self.cleaned_data
        return {
            "slot_id": data["slotId"],
            "name": data["name"],
            "email": data["email"].lower(),
            "phone": data.get("phone") or None,
            "participants": data["participants"],
            "notes": data.get("notes") or None,
        }


class BookingUpdateForm(PartialUpdateForm):
    name = forms.CharField(max_length=200)
    email = forms.EmailField()
    phone = forms.CharField(max_length=50)
    participants = forms.IntegerField()
    notes = forms.CharField(max_length=2000)
    status = forms.ChoiceField(choices=BookingStatus.choices)

    update_class = BookingUpdate
    field_map = {
        "name": "name",
        "email": "email",
        "phone": "phone",
        "participants": "participants",
        "notes": "notes",
        "status": "status",
    }
    clearable = frozenset({"phone", "notes"})
