import re

import pytest
from django.core.cache.backends.dummy import DummyCache

from pricing.exceptions import CatalogResourceGone
from pricing.resolver import CatalogResolver, PageLimits
from pricing.shopify_utils import (
    COLLECTION_PRODUCTS_QUERY,
    COLLECTIONS_BY_IDS_QUERY,
    PRODUCT_SUMMARIES_QUERY,
    PRODUCT_TAGS_QUERY,
    PRODUCTS_BY_IDS_QUERY,
    PRODUCTS_PAGE_QUERY,
    VARIANTS_BY_IDS_QUERY,
)


def product_gid(number):
    return f'gid://shopify/Product/{number}'


def variant_gid(number):
    return f'gid://shopify/ProductVariant/{number}'


def collection_gid(number):
    return f'gid://shopify/Collection/{number}'


def make_product(number, title=None, prices=('10.00',), tags=()):
    """An Admin API product node with one variant per price."""
    variants = []
    for index, price in enumerate(prices, start=1):
        variants.append({
            'node': {
                'id': variant_gid(number * 100 + index),
                'title': 'Default Title' if len(prices) == 1 else f'Option {index}',
                'price': price,
                'compareAtPrice': None,
                'sku': f'SKU-{number}-{index}',
            }
        })
    return {
        'id': product_gid(number),
        'title': title or f'Product {number}',
        'handle': f'product-{number}',
        'tags': list(tags),
        'featuredImage': None,
        'variants': {'edges': variants},
    }


def _parse_tag_query(query):
    tags = []
    for part in query.split(' OR '):
        value = part[len('tag:'):]
        if value.startswith('"') and value.endswith('"'):
            value = value[1:-1].replace('\\"', '"').replace('\\\\', '\\')
        tags.append(value)
    return tags


class FakeShopify:
    """Scripted stand-in for ``shopify_graphql`` backed by an in-memory catalog."""

    def __init__(self, products=(), collections=None, gone=False):
        self.products = list(products)
        self.collections = collections or {}
        self.gone = gone
        self.calls = []

    def _by_id(self):
        return {product['id']: product for product in self.products}

    def _page(self, matching, variables):
        offset = int(variables.get('cursor') or 0)
        size = variables['first']
        chunk = matching[offset:offset + size]
        end = offset + len(chunk)
        has_next = end < len(matching)
        edges = [{'cursor': str(offset + i + 1), 'node': node} for i, node in enumerate(chunk)]
        return {'products': {
            'pageInfo': {'hasNextPage': has_next, 'endCursor': str(end) if chunk else None},
            'edges': edges,
        }}

    def _filter(self, query):
        if not query:
            return self.products
        if query.startswith('tag:*') and query.endswith('*'):
            term = re.sub(r'\\(.)', r'\1', query[len('tag:*'):-1]).lower()
            return [p for p in self.products if any(term in tag.lower() for tag in p['tags'])]
        wanted = set(_parse_tag_query(query))
        return [p for p in self.products if wanted & set(p['tags'])]

    def __call__(self, query, variables=None):
        variables = variables or {}
        self.calls.append((query, variables))
        if self.gone:
            raise CatalogResourceGone('gone')

        if query in (PRODUCTS_PAGE_QUERY, PRODUCT_TAGS_QUERY):
            return self._page(self._filter(variables.get('query')), variables)
        if query in (PRODUCTS_BY_IDS_QUERY, PRODUCT_SUMMARIES_QUERY):
            by_id = self._by_id()
            return {'nodes': [by_id.get(gid) for gid in variables['ids']]}
        if query == VARIANTS_BY_IDS_QUERY:
            variants = {}
            for product in self.products:
                for edge in product['variants']['edges']:
                    variants[edge['node']['id']] = dict(edge['node'], product=product)
            return {'nodes': [variants.get(gid) for gid in variables['ids']]}
        if query in (COLLECTION_PRODUCTS_QUERY, COLLECTIONS_BY_IDS_QUERY):
            by_id = self._by_id()
            nodes = []
            for gid in variables['ids']:
                if gid not in self.collections:
                    nodes.append(None)
                    continue
                members = [by_id[pid] for pid in self.collections[gid] if pid in by_id]
                nodes.append({
                    'id': gid,
                    'title': f'Collection {gid.rsplit("/", 1)[-1]}',
                    'handle': f'collection-{gid.rsplit("/", 1)[-1]}',
                    'description': '',
                    'image': None,
                    'products': {'edges': [{'node': node} for node in members]},
                })
            return {'nodes': nodes}
        raise AssertionError(f'unexpected query: {query[:60]}')

    def queries(self, document):
        return [variables for query, variables in self.calls if query == document]


@pytest.fixture
def catalog():
    return FakeShopify(
        products=[
            make_product(1, 'Red Shirt', prices=('25.00',), tags=('Red', 'summer')),
            make_product(2, 'Blue Shirt', prices=('50.00', '60.00'), tags=('Blue',)),
            make_product(3, 'Bored Mug', prices=('8.50',), tags=('Bored', 'kitchen')),
            make_product(4, 'Reduce Bag', prices=('12.00',), tags=('Reduce',)),
        ],
        collections={
            collection_gid(10): [product_gid(1), product_gid(2)],
            collection_gid(11): [product_gid(2), product_gid(3)],
        },
    )


@pytest.fixture
def resolver(catalog):
    return CatalogResolver(graphql=catalog, limits=PageLimits(), cache=DummyCache('tests', {}))
