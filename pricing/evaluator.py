"""Priced preview of a rule: one row per targeted variant, original vs new price.

Read-only. Evaluating a rule, saved or not, never touches the rule store.
"""
from dataclasses import dataclass, field
from decimal import Decimal

from .calculator import (
    calculate_new_price,
    describe_price_type,
    parse_decimal,
    price_change,
    quantize_money,
)

DEFAULT_VARIANT_TITLE = 'Default Title'


@dataclass(frozen=True)
class PricedVariantRow:
    product_id: str
    product_title: str
    variant_id: str
    variant_title: str
    original_price: Decimal
    new_price: Decimal
    delta: Decimal
    delta_percent: Decimal
    changed: bool

    def as_dict(self):
        return {
            'productId': self.product_id,
            'productTitle': self.product_title,
            'variantId': self.variant_id,
            'variantTitle': self.variant_title,
            'originalPrice': str(quantize_money(self.original_price)),
            'newPrice': str(quantize_money(self.new_price)),
            'delta': str(self.delta),
            'deltaPercent': str(self.delta_percent),
            'changed': self.changed,
        }


@dataclass
class PricedReport:
    price_type: str
    amount: Decimal
    products: list = field(default_factory=list)
    rows: list = field(default_factory=list)
    product_count: int = 0
    truncated: bool = False

    def summary(self):
        return {
            'description': describe_price_type(self.price_type, self.amount),
            'productCount': self.product_count,
            'variantCount': len(self.rows),
            'changedCount': sum(1 for row in self.rows if row.changed),
            'truncated': self.truncated,
        }

    def as_dict(self):
        return {
            'rows': [row.as_dict() for row in self.rows],
            'summary': self.summary(),
        }


def price_variant(product, variant, price_type, amount):
    original = parse_decimal(variant.price)
    new = calculate_new_price(original, price_type, amount)
    change = price_change(original, new)
    return PricedVariantRow(
        product_id=product.id,
        product_title=product.title,
        variant_id=variant.id,
        variant_title=variant.title or DEFAULT_VARIANT_TITLE,
        original_price=original,
        new_price=new,
        delta=change.delta,
        delta_percent=change.delta_percent,
        changed=change.changed,
    )


def price_products(products, price_type, amount):
    """Rows in product order, then variant order. Products without variants emit nothing."""
    rows = []
    for product in products:
        # products reached through explicit variant ids only price those variants
        variants = product.selected_variants or product.variants
        for variant in variants:
            rows.append(price_variant(product, variant, price_type, amount))
    return rows


def evaluate(selector, price_type, amount, resolver, page_size=None):
    resolution = resolver.resolve(selector, page_size=page_size)
    amount = parse_decimal(amount)
    return PricedReport(
        price_type=price_type,
        amount=amount,
        products=resolution.products,
        rows=price_products(resolution.products, price_type, amount),
        product_count=resolution.count,
        truncated=resolution.truncated,
    )


def evaluate_rule(rule, resolver, page_size=None):
    return evaluate(rule.selector, rule.price_type, rule.amount, resolver, page_size=page_size)
