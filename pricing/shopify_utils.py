import json
import logging
import re
from dataclasses import dataclass, field

import requests
from django.conf import settings

from .exceptions import CatalogError, CatalogResourceGone

logger = logging.getLogger(__name__)


def admin_api_url():
    return (
        f"https://{settings.SHOPIFY_SHOP_NAME}.myshopify.com"
        f"/admin/api/{settings.SHOPIFY_API_VERSION}/graphql.json"
    )


def shopify_graphql(query, variables=None):
    """POST one GraphQL document to the Admin API and return its ``data`` dict.

    Raises CatalogResourceGone on HTTP 410 and CatalogError on every other
    failure: transport errors, non-2xx answers, unparsable bodies and
    GraphQL-level ``errors``.
    """
    headers = {
        "Content-Type": "application/json",
        "X-Shopify-Access-Token": settings.SHOPIFY_API_PASSWORD,
    }
    payload = {'query': query, 'variables': variables or {}}
    try:
        response = requests.post(
            admin_api_url(), json=payload, headers=headers, timeout=settings.SHOPIFY_REQUEST_TIMEOUT,
        )
    except requests.RequestException as exc:
        logger.error("Shopify request failed: %s", exc)
        raise CatalogError("Could not reach the Shopify Admin API") from exc

    if response.status_code == 410:
        logger.warning("Shopify answered 410 Gone for %s", admin_api_url())
        raise CatalogResourceGone("Shopify resource is gone (410)")
    try:
        response.raise_for_status()
    except requests.HTTPError as exc:
        logger.error("Shopify returned HTTP %s: %s", response.status_code, exc)
        raise CatalogError(f"Shopify Admin API returned HTTP {response.status_code}") from exc

    try:
        body = response.json()
    except ValueError as exc:
        logger.error("Shopify returned a non-JSON body")
        raise CatalogError("Malformed response from the Shopify Admin API") from exc

    if not isinstance(body, dict):
        raise CatalogError("Malformed response from the Shopify Admin API")
    if body.get('errors'):
        logger.error("GraphQL errors: %s", json.dumps(body['errors']))
        raise CatalogError("Shopify Admin API reported GraphQL errors")
    if not isinstance(body.get('data'), dict):
        raise CatalogError("Shopify Admin API response has no data")
    return body['data']


# tags with spaces, quotes or colons must be quoted or the search syntax splits them
_BARE_TAG = re.compile(r'^[^\s"\':()\\]+$')


def quote_tag(tag):
    if _BARE_TAG.match(tag):
        return tag
    escaped = tag.replace('\\', '\\\\').replace('"', '\\"')
    return f'"{escaped}"'


def build_tag_query(tags):
    return ' OR '.join(f'tag:{quote_tag(tag)}' for tag in tags)


_SEARCH_SPECIAL = re.compile(r'([\s"\':()\\])')


def build_tag_search_query(term):
    # wildcards only work unquoted, special characters are backslash escaped
    escaped = _SEARCH_SPECIAL.sub(r'\\\1', term)
    return f'tag:*{escaped}*'


VARIANT_FIELDS = """
    id
    title
    price
    compareAtPrice
    sku
"""

PRODUCT_FIELDS = f"""
    id
    title
    handle
    tags
    featuredImage {{
        url
        altText
    }}
    variants(first: $variantLimit) {{
        edges {{
            node {{ {VARIANT_FIELDS} }}
        }}
    }}
"""

PRODUCTS_PAGE_QUERY = f"""
query ProductsWithPricing($first: Int!, $cursor: String, $query: String, $variantLimit: Int!) {{
    products(first: $first, after: $cursor, query: $query) {{
        pageInfo {{
            hasNextPage
            endCursor
        }}
        edges {{
            node {{ {PRODUCT_FIELDS} }}
        }}
    }}
}}
"""

PRODUCTS_BY_IDS_QUERY = f"""
query ProductsByIdsWithPricing($ids: [ID!]!, $variantLimit: Int!) {{
    nodes(ids: $ids) {{
        ... on Product {{ {PRODUCT_FIELDS} }}
    }}
}}
"""

VARIANTS_BY_IDS_QUERY = f"""
query ProductsByVariantIdsWithPricing($ids: [ID!]!, $variantLimit: Int!) {{
    nodes(ids: $ids) {{
        ... on ProductVariant {{
            {VARIANT_FIELDS}
            product {{ {PRODUCT_FIELDS} }}
        }}
    }}
}}
"""

COLLECTION_PRODUCTS_QUERY = f"""
query ProductsByCollectionIdsWithPricing($ids: [ID!]!, $productLimit: Int!, $variantLimit: Int!) {{
    nodes(ids: $ids) {{
        ... on Collection {{
            id
            title
            products(first: $productLimit) {{
                edges {{
                    node {{ {PRODUCT_FIELDS} }}
                }}
            }}
        }}
    }}
}}
"""

PRODUCT_TAGS_QUERY = """
query ProductTags($first: Int!, $cursor: String, $query: String) {
    products(first: $first, after: $cursor, query: $query) {
        pageInfo {
            hasNextPage
            endCursor
        }
        edges {
            cursor
            node {
                tags
            }
        }
    }
}
"""

COLLECTIONS_BY_IDS_QUERY = """
query CollectionsByIds($ids: [ID!]!) {
    nodes(ids: $ids) {
        ... on Collection {
            id
            title
            handle
            description
            image {
                url
                altText
            }
        }
    }
}
"""

PRODUCT_SUMMARIES_QUERY = """
query ProductsByIds($ids: [ID!]!) {
    nodes(ids: $ids) {
        ... on Product {
            id
            title
            handle
            featuredImage {
                url
                altText
            }
        }
    }
}
"""


@dataclass
class ResolvedVariant:
    id: str
    title: str
    price: str
    compare_at_price: str = None
    sku: str = None

    def as_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'price': self.price,
            'compareAtPrice': self.compare_at_price,
            'sku': self.sku,
        }


@dataclass
class ResolvedProduct:
    id: str
    title: str
    handle: str = ''
    tags: list = field(default_factory=list)
    featured_image: dict = None
    variants: list = field(default_factory=list)
    # only set when the product was reached through explicit variant ids
    selected_variants: list = field(default_factory=list)

    def as_dict(self):
        data = {
            'id': self.id,
            'title': self.title,
            'handle': self.handle,
            'tags': list(self.tags),
            'featuredImage': self.featured_image,
            'variants': [variant.as_dict() for variant in self.variants],
        }
        if self.selected_variants:
            data['selectedVariants'] = [variant.as_dict() for variant in self.selected_variants]
        return data


def _price_string(value):
    # 2024-04+ returns a scalar Money string, older versions a MoneyV2 object
    if isinstance(value, dict):
        value = value.get('amount')
    return None if value is None else str(value)


def edge_nodes(connection):
    if not connection:
        return []
    return [edge['node'] for edge in connection.get('edges') or [] if edge and edge.get('node')]


def variant_from_node(node):
    return ResolvedVariant(
        id=node['id'],
        title=node.get('title') or '',
        price=_price_string(node.get('price')) or '0',
        compare_at_price=_price_string(node.get('compareAtPrice')),
        sku=node.get('sku') or None,
    )


def product_from_node(node):
    return ResolvedProduct(
        id=node['id'],
        title=node.get('title') or '',
        handle=node.get('handle') or '',
        tags=list(node.get('tags') or []),
        featured_image=node.get('featuredImage'),
        variants=[variant_from_node(variant) for variant in edge_nodes(node.get('variants'))],
    )


def is_node_of(node, type_name):
    """A ``nodes(ids:)`` entry is usable when it resolved to the type we asked for.

    Deleted resources come back as null, and ids of another type come back as an
    empty object because the inline fragment didn't match.
    """
    if not node or not node.get('id'):
        return False
    return f'/{type_name}/' in node['id']


def products_connection(data):
    connection = (data or {}).get('products')
    if not isinstance(connection, dict):
        raise CatalogError("Shopify response is missing the products connection")
    return connection


def nodes_list(data):
    nodes = (data or {}).get('nodes')
    if nodes is None:
        raise CatalogError("Shopify response is missing nodes")
    return nodes
