from django import forms

from .services.finder import (
    CONTENT_CREATION_DETAIL_CHOICES,
    CREATIVE_DETAIL_CHOICES,
    DEFAULT_BUDGET,
    GAMING_DETAIL_CHOICES,
    PERFORMANCE_AMBITION_CHOICES,
    PURPOSE_CHOICES,
    UserProfile,
)

NO_PREFERENCE = [("", "No preference")]


class FinderForm(forms.Form):
    budget = forms.DecimalField(
        max_digits=10,
        decimal_places=2,
        min_value=0,
        required=False,
        label="Budget",
        widget=forms.NumberInput(attrs={"placeholder": "Enter your budget"}),
    )
    purpose = forms.ChoiceField(
        choices=PURPOSE_CHOICES,
        required=False,
        widget=forms.Select,
        label="Main use",
    )
    # Optional sub-intents
    gaming_detail = forms.ChoiceField(
        choices=NO_PREFERENCE + GAMING_DETAIL_CHOICES,
        required=False,
        label="Gaming",
    )
    creative_detail = forms.ChoiceField(
        choices=NO_PREFERENCE + CREATIVE_DETAIL_CHOICES,
        required=False,
        label="Creative work",
    )
    content_creation_detail = forms.ChoiceField(
        choices=NO_PREFERENCE + CONTENT_CREATION_DETAIL_CHOICES,
        required=False,
        label="Content creation",
    )
    performance_ambition = forms.ChoiceField(
        choices=NO_PREFERENCE + PERFORMANCE_AMBITION_CHOICES,
        required=False,
        label="Performance",
    )

    def to_profile(self) -> UserProfile:
        data = dict(self.cleaned_data)
        budget = data.get("budget")
        data["budget"] = float(budget) if budget else DEFAULT_BUDGET
        return UserProfile.from_answers(data)
