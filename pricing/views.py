import json
import logging

from django.conf import settings
from django.http import JsonResponse, QueryDict
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from . import rules, selectors
from .calculator import PRICE_TYPES
from .evaluator import evaluate, evaluate_rule
from .exceptions import CatalogError, InvalidSelector, PricingRuleNotFound, RuleValidationError
from .resolver import CatalogResolver

logger = logging.getLogger(__name__)

INVALID_APPLY_TO = (
    "Invalid applyTo parameter. Must be one of: " + ", ".join(selectors.APPLY_TO_VALUES)
)


def get_resolver():
    return CatalogResolver()


def _json_body(request):
    if not request.body:
        return {}
    body = json.loads(request.body)
    if not isinstance(body, dict):
        raise ValueError("Request body must be a JSON object")
    return body


def _request_data(request):
    """JSON bodies and form posts both carry rule fields."""
    if request.content_type == 'application/json':
        return _json_body(request)
    if request.method == 'POST':
        return request.POST
    # Django only parses form bodies for POST
    return QueryDict(request.body)


def _positive_int(value, default):
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def _not_found():
    return JsonResponse({'success': False, 'errors': {'general': 'Pricing rule not found'}}, status=404)


@csrf_exempt
@require_http_methods(["GET", "POST"])
def rule_list(request):
    if request.method == 'GET':
        try:
            page = rules.list_rules(
                page=_positive_int(request.GET.get('page'), 1),
                page_size=_positive_int(request.GET.get('pageSize'), settings.PRICING['DEFAULT_PAGE_SIZE']),
            )
        except Exception:
            logger.exception("Listing pricing rules failed")
            return JsonResponse({'success': False, 'error': 'Failed to load pricing rules'}, status=500)
        return JsonResponse({
            'rules': [rule.as_dict() for rule in page.rules],
            'pagination': page.pagination(),
        })

    try:
        rule = rules.create_rule(_request_data(request))
    except ValueError:
        return JsonResponse({'errors': {'general': 'Failed to process form data. Please try again.'}}, status=400)
    except RuleValidationError as exc:
        return JsonResponse({'errors': exc.errors}, status=400)
    except Exception:
        logger.exception("Creating a pricing rule failed")
        return JsonResponse({'errors': {'general': 'Failed to create pricing rule. Please try again.'}}, status=500)
    return JsonResponse(
        {'success': True, 'message': 'Pricing rule created successfully!', 'rule': rule.as_dict()},
        status=201,
    )


def _enrich(rule, resolver):
    data = rule.as_dict()
    selector = rule.selector
    if isinstance(selector, selectors.SpecificProducts) and selector.product_ids:
        try:
            data['productDetails'] = resolver.product_summaries(selector.product_ids)
        except CatalogError:
            logger.warning("Could not load product details for rule %s", rule.id)
            data['productDetails'] = []
    if isinstance(selector, selectors.ProductCollections) and selector.collection_ids:
        try:
            data['collectionDetails'] = resolver.collection_details(selector.collection_ids)
        except CatalogError:
            logger.warning("Could not load collection details for rule %s", rule.id)
            data['collectionDetails'] = []
    return data


@csrf_exempt
@require_http_methods(["GET", "POST", "PUT", "DELETE"])
def rule_detail(request, rule_id):
    try:
        if request.method == 'GET':
            rule = rules.get_rule(rule_id)
            return JsonResponse({'success': True, 'rule': _enrich(rule, get_resolver())})

        if request.method == 'DELETE':
            rules.delete_rule(rule_id)
            return JsonResponse({'success': True, 'message': 'Pricing rule deleted successfully!'})

        rule = rules.update_rule(rule_id, _request_data(request))
    except PricingRuleNotFound:
        return _not_found()
    except ValueError:
        return JsonResponse({'errors': {'general': 'Failed to process form data. Please try again.'}}, status=400)
    except RuleValidationError as exc:
        return JsonResponse({'errors': exc.errors}, status=400)
    except Exception:
        logger.exception("Pricing rule %s %s failed", rule_id, request.method)
        return JsonResponse({'errors': {'general': 'Operation failed. Please try again.'}}, status=500)
    return JsonResponse({'success': True, 'message': 'Pricing rule updated successfully!', 'rule': rule.as_dict()})


@csrf_exempt
@require_POST
def rule_duplicate(request, rule_id):
    try:
        copy = rules.duplicate_rule(rule_id)
    except PricingRuleNotFound:
        return _not_found()
    except Exception:
        logger.exception("Duplicating pricing rule %s failed", rule_id)
        return JsonResponse({'success': False, 'message': 'Operation failed. Please try again.'}, status=500)
    return JsonResponse(
        {'success': True, 'message': 'Pricing rule duplicated successfully!', 'rule': copy.as_dict()},
        status=201,
    )


@csrf_exempt
@require_POST
def rule_bulk_action(request):
    try:
        body = _json_body(request)
    except ValueError:
        return JsonResponse({'success': False, 'message': 'Invalid request body'}, status=400)

    action_type = body.get('actionType')
    ids = body.get('ids')
    if not isinstance(ids, list):
        return JsonResponse({'success': False, 'message': 'IDs array is required'}, status=400)
    ids = [str(rule_id) for rule_id in ids]

    try:
        if action_type == 'delete':
            count = rules.bulk_delete_rules(ids)
            message = f'Successfully deleted {count} pricing rule(s)'
        elif action_type == 'duplicate':
            count = len(rules.bulk_duplicate_rules(ids))
            message = f'Successfully duplicated {count} pricing rule(s)'
        else:
            return JsonResponse({'success': False, 'message': 'Invalid action type'}, status=400)
    except Exception:
        logger.exception("Bulk %s of pricing rules failed", action_type)
        return JsonResponse({'success': False, 'message': 'Operation failed. Please try again.'}, status=500)
    return JsonResponse({'success': True, 'message': message, 'count': count})


@require_GET
def rule_pricing(request, rule_id):
    try:
        rule = rules.get_rule(rule_id)
        report = evaluate_rule(rule, get_resolver(), page_size=settings.PRICING['PRICING_PAGE_SIZE'])
    except PricingRuleNotFound:
        return _not_found()
    except CatalogError:
        return JsonResponse({'success': False, 'error': 'Failed to fetch products with pricing'}, status=500)
    except Exception:
        logger.exception("Pricing preview for rule %s failed", rule_id)
        return JsonResponse({'success': False, 'error': 'Failed to fetch products with pricing'}, status=500)
    return JsonResponse({
        'success': True,
        'ruleId': rule.id,
        'selector': selectors.selector_as_dict(rule.selector),
        **report.as_dict(),
    })


def _pricing_payload(request):
    if request.method == 'POST':
        return _json_body(request)
    # query strings carry comma separated lists
    return {key: request.GET.get(key) for key in (
        'applyTo', 'productIds', 'variantIds', 'collectionIds', 'tags', 'priceType', 'amount',
    )}


@csrf_exempt
@require_http_methods(["GET", "POST"])
def product_pricing(request):
    try:
        payload = _pricing_payload(request)
    except ValueError:
        return JsonResponse({'success': False, 'error': 'Invalid request body'}, status=400)

    apply_to = payload.get('applyTo')
    try:
        selector = selectors.selector_from_payload(
            apply_to,
            product_ids=payload.get('productIds'),
            collection_ids=payload.get('collectionIds'),
            tags=payload.get('tags'),
            variant_ids=payload.get('variantIds'),
        )
    except InvalidSelector:
        return JsonResponse({'success': False, 'error': INVALID_APPLY_TO}, status=400)

    price_type = payload.get('priceType')
    resolver = get_resolver()
    page_size = settings.PRICING['PRICING_PAGE_SIZE']
    try:
        if price_type in PRICE_TYPES:
            resolution = None
            report = evaluate(selector, price_type, payload.get('amount'), resolver, page_size=page_size)
        else:
            resolution = resolver.resolve(selector, page_size=page_size)
            report = None
    except CatalogError:
        return JsonResponse({'success': False, 'error': 'Failed to fetch products with pricing'}, status=500)
    except Exception:
        logger.exception("Resolving products for %s failed", apply_to)
        return JsonResponse({'success': False, 'error': 'Failed to fetch products with pricing'}, status=500)

    if report is not None:
        products = report.products
        truncated = report.truncated
    else:
        products = resolution.products
        truncated = resolution.truncated
    data = {
        'success': True,
        'products': [product.as_dict() for product in products],
        'count': len(products),
        'applyTo': apply_to,
        'truncated': truncated,
    }
    if report is not None:
        data['report'] = [row.as_dict() for row in report.rows]
        data['summary'] = report.summary()
    return JsonResponse(data)


@require_GET
def tag_suggestions(request):
    search = request.GET.get('search')
    try:
        tags = get_resolver().suggest_tags(search)
    except CatalogError:
        return JsonResponse({'success': False, 'error': 'Failed to fetch tags'}, status=500)
    except Exception:
        logger.exception("Fetching tag suggestions failed")
        return JsonResponse({'success': False, 'error': 'Failed to fetch tags'}, status=500)
    return JsonResponse({'success': True, 'tags': tags})
