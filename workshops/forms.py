from __future__ import annotations

from django import forms

from bookings.forms import TIME_INPUT_FORMATS, PartialUpdateForm, _serialize

from .models import WorkshopUpdate


class WorkshopCreateForm(forms.Form):
    title = forms.CharField(max_length=200)
    description = forms.CharField(max_length=2000)
    detailedDescription = forms.CharField(max_length=10000, required=False)
    date = forms.DateField()
    time = forms.TimeField(input_formats=TIME_INPUT_FORMATS)
    price = forms.CharField(max_length=50)
    maxParticipants = forms.IntegerField()
    active = forms.BooleanField(required=False)
    imageFilename = forms.CharField(max_length=255, required=False)

    def to_kwargs(self) -> dict:
        data = self.cleaned_data
        return {
            "title": data["title"],
            "description": data["description"],
            "detailed_description": data.get("detailedDescription") or None,
            "date": _serialize(data["date"]),
            "time": _serialize(data["time"]),
            "price": data["price"],
            "max_participants": data["maxParticipants"],
            "active": data.get("active", False),
            "image_filename": data.get("imageFilename") or None,
        }


class WorkshopUpdateForm(PartialUpdateForm):
    title = forms.CharField(max_length=200)
    description = forms.CharField(max_length=2000)
    detailedDescription = forms.CharField(max_length=10000)
    date = forms.DateField()
    time = forms.TimeField(input_formats=TIME_INPUT_FORMATS)
    price = forms.CharField(max_length=50)
    maxParticipants = forms.IntegerField()
    active = forms.BooleanField()
    imageFilename = forms.CharField(max_length=255)

    update_class = WorkshopUpdate
    field_map = {
        "title": "title",
        "description": "description",
        "detailedDescription": "detailed_description",
        "date": "date",
        "time": "time",
        "price": "price",
        "maxParticipants": "max_participants",
        "active": "active",
        "imageFilename": "image_filename",
    }
    clearable = frozenset({"detailedDescription", "imageFilename"})


class WorkshopBookingForm(forms.Form):
    workshopId = forms.CharField(max_length=100)
    name = forms.CharField(max_length=200)
    email = forms.EmailField()
    phone = forms.CharField(max_length=50, required=False)
    participants = forms.IntegerField()
    notes = forms.CharField(max_length=2000, required=False)

    def to_kwargs(self) -> dict:
        data = self.cleaned_data
        return {
            "workshop_id": data["workshopId"],
            "name": data["name"],
            "email": data["email"],
            "phone": data.get("phone") or None,
            "participants": data["participants"],
            "notes": data.get("notes") or None,
        }
