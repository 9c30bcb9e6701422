from django import forms

from .models import MAX_RATING, MIN_RATING


class ReviewForm(forms.Form):
    name = forms.CharField(max_length=200)
    rating = forms.IntegerField(min_value=MIN_RATING, max_value=MAX_RATING)
    comment = forms.CharField(max_length=5000)


class ReviewApprovalForm(forms.Form):
    approved = forms.NullBooleanField()

    def clean_approved(self):
        value = self.cleaned_data["approved"]
        if value is None:
            raise forms.ValidationError("approved must be true or false.")
        return value
