import random
import string
import time

from django.db import models

from . import calculator, selectors


def generate_rule_id():
    suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f'pr_{int(time.time() * 1000)}_{suffix}'


class PricingRule(models.Model):
    STATUS_ACTIVE = 'active'
    STATUS_INACTIVE = 'inactive'
    STATUS_DRAFT = 'draft'
    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_INACTIVE, 'Inactive'),
        (STATUS_DRAFT, 'Draft'),
    ]

    APPLY_TO_CHOICES = [
        (selectors.ALL_PRODUCTS, 'All products'),
        (selectors.SPECIFIC_PRODUCTS, 'Specific products'),
        (selectors.PRODUCT_COLLECTIONS, 'Product collections'),
        (selectors.PRODUCT_TAGS, 'Product tags'),
    ]

    PRICE_TYPE_CHOICES = [
        (calculator.APPLY_PRICE, 'Apply a price'),
        (calculator.DECREASE_FIXED, 'Decrease by a fixed amount'),
        (calculator.DECREASE_PERCENTAGE, 'Decrease by a percentage'),
    ]

    id = models.CharField(primary_key=True, max_length=40, default=generate_rule_id, editable=False)
    name = models.CharField(max_length=255)
    priority = models.PositiveSmallIntegerField()
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    apply_to = models.CharField(max_length=30, choices=APPLY_TO_CHOICES, default=selectors.ALL_PRODUCTS)
    product_ids = models.JSONField(blank=True, null=True)
    variant_ids = models.JSONField(blank=True, null=True)
    collection_ids = models.JSONField(blank=True, null=True)
    tag_ids = models.JSONField(blank=True, null=True)
    price_type = models.CharField(max_length=30, choices=PRICE_TYPE_CHOICES, default=calculator.APPLY_PRICE)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ('-priority', '-created_at')

    def __str__(self):
        return f"{self.name} ({self.status})"

    @property
    def selector(self):
        return selectors.selector_from_payload(
            self.apply_to,
            product_ids=self.product_ids,
            collection_ids=self.collection_ids,
            tags=self.tag_ids,
            variant_ids=self.variant_ids,
        )

    def set_selector(self, selector):
        """Store ``selector`` and null every selector column that doesn't belong to it."""
        self.apply_to = selector.apply_to
        self.product_ids = None
        self.variant_ids = None
        self.collection_ids = None
        self.tag_ids = None
        if isinstance(selector, selectors.SpecificProducts):
            self.product_ids = list(selector.product_ids) or None
            self.variant_ids = list(selector.variant_ids) or None
        elif isinstance(selector, selectors.ProductCollections):
            self.collection_ids = list(selector.collection_ids) or None
        elif isinstance(selector, selectors.ProductTags):
            self.tag_ids = list(selector.tags) or None

    def as_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'priority': self.priority,
            'status': self.status,
            'applyTo': self.apply_to,
            'productIds': self.product_ids,
            'variantIds': self.variant_ids,
            'collectionIds': self.collection_ids,
            'tagIds': self.tag_ids,
            'priceType': self.price_type,
            'amount': str(self.amount),
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }
