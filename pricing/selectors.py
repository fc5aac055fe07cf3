"""Rule selectors.

A selector is the ``applyTo`` discriminator together with the list that belongs
to it. Each ``applyTo`` value has its own frozen dataclass, so a selector can
only ever carry the payload matching its kind.
"""
import json
from dataclasses import dataclass

from .exceptions import InvalidSelector

ALL_PRODUCTS = 'all-products'
SPECIFIC_PRODUCTS = 'specific-products'
PRODUCT_COLLECTIONS = 'product-collections'
PRODUCT_TAGS = 'product-tags'

APPLY_TO_VALUES = (ALL_PRODUCTS, SPECIFIC_PRODUCTS, PRODUCT_COLLECTIONS, PRODUCT_TAGS)


@dataclass(frozen=True)
class AllProducts:
    apply_to = ALL_PRODUCTS

    def is_empty(self):
        return False


@dataclass(frozen=True)
class SpecificProducts:
    product_ids: tuple = ()
    variant_ids: tuple = ()
    apply_to = SPECIFIC_PRODUCTS

    def is_empty(self):
        return not self.product_ids and not self.variant_ids


@dataclass(frozen=True)
class ProductCollections:
    collection_ids: tuple = ()
    apply_to = PRODUCT_COLLECTIONS

    def is_empty(self):
        return not self.collection_ids


@dataclass(frozen=True)
class ProductTags:
    tags: tuple = ()
    apply_to = PRODUCT_TAGS

    def is_empty(self):
        return not self.tags


def parse_id_list(value):
    """Normalize a list coming from a form, a query string or a JSON column.

    Accepts a real list, a JSON-encoded list (``'["a","b"]'``) or a comma
    separated string. Blank entries are dropped, order is kept.
    """
    if value is None:
        return ()
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return ()
        if value.startswith('['):
            try:
                value = json.loads(value)
            except ValueError:
                value = value.strip('[]').split(',')
        else:
            value = value.split(',')
    if not isinstance(value, (list, tuple)):
        value = [value]
    return tuple(str(item).strip() for item in value if item is not None and str(item).strip())


def selector_from_payload(apply_to, product_ids=None, collection_ids=None, tags=None, variant_ids=None):
    if apply_to == ALL_PRODUCTS:
        return AllProducts()
    if apply_to == SPECIFIC_PRODUCTS:
        return SpecificProducts(product_ids=parse_id_list(product_ids), variant_ids=parse_id_list(variant_ids))
    if apply_to == PRODUCT_COLLECTIONS:
        return ProductCollections(collection_ids=parse_id_list(collection_ids))
    if apply_to == PRODUCT_TAGS:
        return ProductTags(tags=parse_id_list(tags))
    raise InvalidSelector(apply_to)


def selector_as_dict(selector):
    """camelCase view of a selector, as the HTTP API speaks it."""
    data = {'applyTo': selector.apply_to}
    if isinstance(selector, SpecificProducts):
        data['productIds'] = list(selector.product_ids)
        data['variantIds'] = list(selector.variant_ids)
    elif isinstance(selector, ProductCollections):
        data['collectionIds'] = list(selector.collection_ids)
    elif isinstance(selector, ProductTags):
        data['tags'] = list(selector.tags)
    return data
