# Provides the base Form class and form field classes for validating query parameters.
from django import forms

# Used to raise custom validation errors for invalid user inputs, such as in the CallsignLookupForm.
from django.core.exceptions import ValidationError

from .dashboard_state import EVENTS
from .ham_utils import is_valid_callsign, normalize_callsign


# Callsign Lookup
class CallsignLookupForm(forms.Form):
    """
    Validates the callsign typed into the lookup box.

    Fields:
        callsign (str): The amateur-radio call sign to look up.  Normalized to
            uppercase with any portable prefix/suffix removed.
    """

    callsign = forms.CharField(label="Call Sign", max_length=16, strip=True)

    def clean_callsign(self):
        callsign = normalize_callsign(self.cleaned_data["callsign"])
        if not is_valid_callsign(callsign):
            raise ValidationError("Please enter a valid amateur-radio call sign.")
        return callsign


# Dashboard state transitions
class DashboardEventForm(forms.Form):
    """
    An optional state transition sent along with the current dashboard state.

    Fields:
        event (str): One of the dashboard events (toggle_units, select_tab, ...).
        value (str): The event's argument, when it takes one.
    """

    event = forms.ChoiceField(choices=[(e, e) for e in EVENTS], required=False)
    value = forms.CharField(max_length=16, required=False)

    def clean(self):
        cleaned_data = super().clean()
        needs_value = cleaned_data.get("event") not in ("", None, "toggle_units", "refresh")
        if needs_value and not cleaned_data.get("value"):
            raise ValidationError("This event needs a value.")
        return cleaned_data
