"""Rule store operations.

Single-record operations are strict and raise PricingRuleNotFound for an
unknown id. Bulk operations are lenient and skip ids that no longer exist.
"""
import logging
from dataclasses import dataclass

from django.conf import settings
from django.core.paginator import Paginator
from django.db import transaction

from .exceptions import PricingRuleNotFound, RuleValidationError
from .forms import PricingRuleForm
from .models import PricingRule, generate_rule_id

logger = logging.getLogger(__name__)

COPY_SUFFIX = ' (Copy)'


@dataclass
class RulePage:
    rules: list
    page: int
    total_pages: int
    total: int

    @property
    def has_next(self):
        return self.page < self.total_pages

    @property
    def has_previous(self):
        return self.page > 1

    def pagination(self):
        return {
            'page': self.page,
            'totalPages': self.total_pages,
            'hasNext': self.has_next,
            'hasPrevious': self.has_previous,
            'total': self.total,
        }


def _validated(data, instance=None):
    form = PricingRuleForm(data, instance=instance)
    if not form.is_valid():
        raise RuleValidationError(form.error_map())
    return form.cleaned_data


def _apply(rule, cleaned):
    rule.name = cleaned['name']
    rule.priority = cleaned['priority']
    rule.status = cleaned['status']
    rule.price_type = cleaned['priceType']
    rule.amount = cleaned['amount']
    rule.set_selector(cleaned['selector'])


def get_rule(rule_id):
    try:
        return PricingRule.objects.get(pk=rule_id)
    except PricingRule.DoesNotExist:
        raise PricingRuleNotFound(rule_id) from None


def create_rule(data):
    cleaned = _validated(data)
    rule = PricingRule(id=generate_rule_id())
    _apply(rule, cleaned)
    rule.save(force_insert=True)
    logger.info("Created pricing rule %s (%s)", rule.id, rule.apply_to)
    return rule


def update_rule(rule_id, data):
    rule = get_rule(rule_id)
    cleaned = _validated(data, instance=rule)
    _apply(rule, cleaned)
    rule.save()
    logger.info("Updated pricing rule %s", rule.id)
    return rule


def delete_rule(rule_id):
    deleted, _ = PricingRule.objects.filter(pk=rule_id).delete()
    if not deleted:
        raise PricingRuleNotFound(rule_id)
    logger.info("Deleted pricing rule %s", rule_id)


def bulk_delete_rules(rule_ids):
    deleted, _ = PricingRule.objects.filter(pk__in=list(rule_ids)).delete()
    logger.info("Bulk deleted %d pricing rule(s)", deleted)
    return deleted


def _copy(rule):
    copy = PricingRule(
        id=generate_rule_id(),
        name=f'{rule.name}{COPY_SUFFIX}',
        priority=rule.priority,
        status=PricingRule.STATUS_DRAFT,
        apply_to=rule.apply_to,
        product_ids=rule.product_ids,
        variant_ids=rule.variant_ids,
        collection_ids=rule.collection_ids,
        tag_ids=rule.tag_ids,
        price_type=rule.price_type,
        amount=rule.amount,
    )
    copy.save(force_insert=True)
    return copy


def duplicate_rule(rule_id):
    copy = _copy(get_rule(rule_id))
    logger.info("Duplicated pricing rule %s as %s", rule_id, copy.id)
    return copy


def bulk_duplicate_rules(rule_ids):
    originals = {rule.id: rule for rule in PricingRule.objects.filter(pk__in=list(rule_ids))}
    copies = []
    with transaction.atomic():
        for rule_id in rule_ids:
            if rule_id in originals:
                copies.append(_copy(originals.pop(rule_id)))
    logger.info("Bulk duplicated %d pricing rule(s)", len(copies))
    return copies


def list_rules(page=1, page_size=None):
    page_size = page_size or settings.PRICING['DEFAULT_PAGE_SIZE']
    paginator = Paginator(PricingRule.objects.all(), page_size)
    current = paginator.get_page(page)
    return RulePage(
        rules=list(current.object_list),
        page=current.number,
        total_pages=paginator.num_pages,
        total=paginator.count,
    )
