"""Turns a rule selector into the concrete products it targets.

Every read goes through one injected ``graphql(query, variables)`` callable
(``shopify_graphql`` by default). Pagination loops are sequential and bounded
by ``PageLimits``; a loop that stops on its cap while Shopify still reports
another page marks the result as truncated.
"""
import hashlib
import logging
from dataclasses import dataclass, field

from django.conf import settings
from django.core.cache import caches

from . import selectors
from .exceptions import CatalogResourceGone
from .shopify_utils import (
    COLLECTION_PRODUCTS_QUERY,
    COLLECTIONS_BY_IDS_QUERY,
    PRODUCT_SUMMARIES_QUERY,
    PRODUCT_TAGS_QUERY,
    PRODUCTS_BY_IDS_QUERY,
    PRODUCTS_PAGE_QUERY,
    VARIANTS_BY_IDS_QUERY,
    build_tag_query,
    build_tag_search_query,
    is_node_of,
    nodes_list,
    product_from_node,
    products_connection,
    shopify_graphql,
    variant_from_node,
    edge_nodes,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageLimits:
    all_products_pages: int = 10
    all_products_page_size: int = 50
    tag_pages: int = 5
    tag_page_size: int = 50
    tag_search_pages: int = 3
    tag_search_page_size: int = 100
    tag_listing_pages: int = 10
    tag_listing_page_size: int = 250
    tag_search_early_stop: int = 50
    collection_products: int = 50
    variants_per_product: int = 10
    max_tag_suggestions: int = 20


@dataclass
class Resolution:
    products: list = field(default_factory=list)
    truncated: bool = False

    @property
    def count(self):
        return len(self.products)


def to_gid(kind, value):
    """Accept bare numeric ids as well as full gids."""
    value = str(value).strip()
    if value.isdigit():
        return f'gid://shopify/{kind}/{value}'
    return value


def tag_cache_key(term):
    digest = hashlib.sha256(term.casefold().encode('utf-8')).hexdigest()
    return f'pricing:tags:{digest}'


def rank_tags(tags, search):
    """Order tag suggestions: exact match, then prefix, then substring.

    Ties fall back to case-insensitive lexical order. Tags not containing the
    search term at all are dropped.
    """
    needle = search.strip().casefold()
    if not needle:
        return sorted(tags, key=lambda tag: (tag.casefold(), tag))

    def rank(tag):
        folded = tag.casefold()
        if folded == needle:
            return 0
        if folded.startswith(needle):
            return 1
        return 2

    matches = [tag for tag in tags if needle in tag.casefold()]
    return sorted(matches, key=lambda tag: (rank(tag), tag.casefold(), tag))


class CatalogResolver:

    def __init__(self, graphql=None, limits=None, cache=None):
        self.graphql = graphql or shopify_graphql
        self.limits = limits or PageLimits()
        if cache is None:
            cache = caches[settings.PRICING['TAG_CACHE_ALIAS']]
        self.cache = cache

    def resolve(self, selector, page_size=None):
        try:
            if isinstance(selector, selectors.AllProducts):
                return self._all_products(page_size)
            if isinstance(selector, selectors.SpecificProducts):
                if selector.variant_ids:
                    return Resolution(self.products_by_variant_ids(selector.variant_ids))
                return Resolution(self.products_by_ids(selector.product_ids))
            if isinstance(selector, selectors.ProductCollections):
                return Resolution(self.products_by_collection_ids(selector.collection_ids))
            if isinstance(selector, selectors.ProductTags):
                return self._products_by_tags(selector.tags)
        except CatalogResourceGone:
            logger.info("Catalog resource gone while resolving %s, treating as empty", selector.apply_to)
            return Resolution()
        raise TypeError(f'Not a selector: {selector!r}')

    def _paginate_products(self, search_query, max_pages, page_size):
        products = []
        seen = set()
        cursor = None
        pages = 0
        has_next_page = True
        while has_next_page and pages < max_pages:
            variables = {
                'first': page_size,
                'cursor': cursor,
                'query': search_query,
                'variantLimit': self.limits.variants_per_product,
            }
            connection = products_connection(self.graphql(PRODUCTS_PAGE_QUERY, variables))
            for node in edge_nodes(connection):
                if node.get('id') and node['id'] not in seen:
                    seen.add(node['id'])
                    products.append(product_from_node(node))
            page_info = connection.get('pageInfo') or {}
            has_next_page = bool(page_info.get('hasNextPage'))
            cursor = page_info.get('endCursor')
            pages += 1
            if has_next_page and not cursor:
                break

        truncated = has_next_page and pages >= max_pages
        if truncated:
            logger.info("Stopped after %d page(s) with more products available", pages)
        return Resolution(products, truncated)

    def _all_products(self, page_size=None):
        return self._paginate_products(
            None, self.limits.all_products_pages, page_size or self.limits.all_products_page_size,
        )

    def _products_by_tags(self, tags):
        if not tags:
            return Resolution()
        return self._paginate_products(build_tag_query(tags), self.limits.tag_pages, self.limits.tag_page_size)

    def products_by_ids(self, product_ids):
        if not product_ids:
            return []
        ids = [to_gid('Product', product_id) for product_id in product_ids]
        data = self.graphql(PRODUCTS_BY_IDS_QUERY, {
            'ids': ids, 'variantLimit': self.limits.variants_per_product,
        })
        products = []
        seen = set()
        for node in nodes_list(data):
            if is_node_of(node, 'Product') and node['id'] not in seen:
                seen.add(node['id'])
                products.append(product_from_node(node))
        dropped = len(set(ids)) - len(products)
        if dropped:
            logger.info("%d product id(s) did not resolve and were skipped", dropped)
        return products

    def products_by_variant_ids(self, variant_ids):
        if not variant_ids:
            return []
        ids = [to_gid('ProductVariant', variant_id) for variant_id in variant_ids]
        data = self.graphql(VARIANTS_BY_IDS_QUERY, {
            'ids': ids, 'variantLimit': self.limits.variants_per_product,
        })
        by_product = {}
        for node in nodes_list(data):
            if not is_node_of(node, 'ProductVariant') or not node.get('product'):
                continue
            product_node = node['product']
            product = by_product.get(product_node['id'])
            if product is None:
                product = product_from_node(product_node)
                by_product[product.id] = product
            variant = variant_from_node(node)
            if all(selected.id != variant.id for selected in product.selected_variants):
                product.selected_variants.append(variant)
        return list(by_product.values())

    def products_by_collection_ids(self, collection_ids):
        if not collection_ids:
            return []
        data = self.graphql(COLLECTION_PRODUCTS_QUERY, {
            'ids': [to_gid('Collection', collection_id) for collection_id in collection_ids],
            'productLimit': self.limits.collection_products,
            'variantLimit': self.limits.variants_per_product,
        })
        products = {}
        for collection in nodes_list(data):
            if not is_node_of(collection, 'Collection'):
                continue
            for node in edge_nodes(collection.get('products')):
                # a product in several selected collections is listed once
                if node.get('id') and node['id'] not in products:
                    products[node['id']] = product_from_node(node)
        return list(products.values())

    def collection_details(self, collection_ids):
        if not collection_ids:
            return []
        data = self.graphql(COLLECTIONS_BY_IDS_QUERY, {
            'ids': [to_gid('Collection', collection_id) for collection_id in collection_ids],
        })
        return [
            {
                'id': node['id'],
                'title': node.get('title'),
                'handle': node.get('handle'),
                'description': node.get('description'),
                'image': node.get('image'),
            }
            for node in nodes_list(data) if is_node_of(node, 'Collection')
        ]

    def product_summaries(self, product_ids):
        if not product_ids:
            return []
        data = self.graphql(PRODUCT_SUMMARIES_QUERY, {
            'ids': [to_gid('Product', product_id) for product_id in product_ids],
        })
        return [
            {
                'id': node['id'],
                'title': node.get('title'),
                'handle': node.get('handle'),
                'featuredImage': node.get('featuredImage'),
            }
            for node in nodes_list(data) if is_node_of(node, 'Product')
        ]

    def suggest_tags(self, search=None):
        term = (search or '').strip()
        cache_key = tag_cache_key(term)
        cached = self.cache.get(cache_key)
        if cached is not None:
            return list(cached)

        try:
            tags = self._collect_tags(term)
        except CatalogResourceGone:
            tags = []
        ranked = rank_tags(tags, term)[:self.limits.max_tag_suggestions]
        self.cache.set(cache_key, ranked, settings.PRICING['TAG_CACHE_TIMEOUT'])
        return ranked

    def _collect_tags(self, term):
        if term:
            max_pages = self.limits.tag_search_pages
            page_size = self.limits.tag_search_page_size
            query = build_tag_search_query(term)
        else:
            max_pages = self.limits.tag_listing_pages
            page_size = self.limits.tag_listing_page_size
            query = None

        tags = {}
        cursor = None
        pages = 0
        has_next_page = True
        while has_next_page and pages < max_pages:
            connection = products_connection(self.graphql(PRODUCT_TAGS_QUERY, {
                'first': page_size, 'cursor': cursor, 'query': query,
            }))
            edges = connection.get('edges') or []
            for edge in edges:
                for tag in (edge.get('node') or {}).get('tags') or []:
                    tag = tag.strip()
                    if tag:
                        tags.setdefault(tag, None)
            page_info = connection.get('pageInfo') or {}
            has_next_page = bool(page_info.get('hasNextPage'))
            cursor = page_info.get('endCursor') or (edges[-1].get('cursor') if edges else None)
            pages += 1
            if has_next_page and not cursor:
                break
            if term and len(tags) >= self.limits.tag_search_early_stop:
                break
        return list(tags)
