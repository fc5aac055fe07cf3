from decimal import Decimal

from django import forms
from django.conf import settings

from . import calculator, selectors
from .models import PricingRule

SELECTOR_ERRORS = {
    selectors.SPECIFIC_PRODUCTS: ('products', 'Please select at least one product or variant'),
    selectors.PRODUCT_COLLECTIONS: ('collections', 'Please select at least one collection'),
    selectors.PRODUCT_TAGS: ('tags', 'Please select at least one tag'),
}


class IdListField(forms.Field):
    """A list of ids or tags, given as a list, a JSON list or a comma separated string."""

    def to_python(self, value):
        return selectors.parse_id_list(value)


class PricingRuleForm(forms.Form):
    name = forms.CharField(
        required=True, strip=True,
        error_messages={'required': 'Name must be at least 2 characters'},
    )
    priority = forms.IntegerField(
        min_value=1, max_value=99,
        error_messages={
            'required': 'Priority must be at least 1',
            'invalid': 'Priority must be a whole number',
            'min_value': 'Priority must be at least 1',
            'max_value': 'Priority must be at most 99',
        },
    )
    status = forms.ChoiceField(
        choices=PricingRule.STATUS_CHOICES,
        error_messages={'required': 'Status is required', 'invalid_choice': 'Status is not valid'},
    )
    applyTo = forms.ChoiceField(
        choices=PricingRule.APPLY_TO_CHOICES,
        error_messages={
            'required': 'Apply to selection is required',
            'invalid_choice': 'Apply to selection is not valid',
        },
    )
    productIds = IdListField(required=False)
    variantIds = IdListField(required=False)
    collectionIds = IdListField(required=False)
    tagIds = IdListField(required=False)
    priceType = forms.ChoiceField(
        choices=PricingRule.PRICE_TYPE_CHOICES,
        error_messages={'required': 'Price type is required', 'invalid_choice': 'Price type is not valid'},
    )
    amount = forms.DecimalField(
        min_value=0, max_digits=12, decimal_places=2,
        error_messages={
            'required': 'Amount must be a valid positive number',
            'invalid': 'Amount must be a valid positive number',
            'min_value': 'Amount must be a valid positive number',
            'max_digits': 'Amount is too large',
            'max_decimal_places': 'Amount can have at most 2 decimal places',
            'max_whole_digits': 'Amount is too large',
        },
    )

    def __init__(self, data=None, instance=None, **kwargs):
        self.instance = instance
        super().__init__(data, **kwargs)

    def clean_name(self):
        name = self.cleaned_data['name']
        if len(name) < 2:
            raise forms.ValidationError('Name must be at least 2 characters')
        if len(name) > 50:
            raise forms.ValidationError('Name must be at most 50 characters')
        if not all(char.isalnum() or char == ' ' for char in name):
            raise forms.ValidationError('Name may only contain letters, numbers and spaces')
        return name

    def clean(self):
        cleaned = super().clean()
        self.selector_errors = {}

        price_type = cleaned.get('priceType')
        amount = cleaned.get('amount')
        if price_type and amount is not None:
            if price_type == calculator.DECREASE_PERCENTAGE:
                if amount > 100:
                    self.add_error('amount', 'Percentage must be between 0 and 100')
            else:
                low = Decimal(settings.PRICING['FIXED_AMOUNT_MIN'])
                high = Decimal(settings.PRICING['FIXED_AMOUNT_MAX'])
                if not low <= amount <= high:
                    self.add_error('amount', f'Amount must be between {low} and {high}')

        apply_to = cleaned.get('applyTo')
        if not apply_to:
            return cleaned

        product_ids = cleaned.get('productIds') or ()
        variant_ids = cleaned.get('variantIds') or ()
        collection_ids = cleaned.get('collectionIds') or ()
        tag_ids = cleaned.get('tagIds') or ()

        # an update that leaves the selection empty keeps what is stored
        if self.instance is not None:
            if not product_ids and not variant_ids:
                product_ids = self.instance.product_ids
                variant_ids = self.instance.variant_ids
            if not collection_ids:
                collection_ids = self.instance.collection_ids
            if not tag_ids:
                tag_ids = self.instance.tag_ids

        selector = selectors.selector_from_payload(
            apply_to,
            product_ids=product_ids,
            collection_ids=collection_ids,
            tags=tag_ids,
            variant_ids=variant_ids,
        )
        if selector.is_empty():
            field, message = SELECTOR_ERRORS[apply_to]
            self.selector_errors[field] = message
        cleaned['selector'] = selector
        return cleaned

    def is_valid(self):
        valid = super().is_valid()
        return valid and not self.selector_errors

    def error_map(self):
        """``{field: first message}`` for everything that failed."""
        errors = {field: messages[0] for field, messages in self.errors.items()}
        errors.update(getattr(self, 'selector_errors', {}))
        return errors
