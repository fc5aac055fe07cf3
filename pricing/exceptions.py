class PricingError(Exception):
    """Base class for everything the pricing app raises on purpose."""


class RuleValidationError(PricingError):
    def __init__(self, errors):
        self.errors = dict(errors)
        super().__init__(', '.join(f'{field}: {message}' for field, message in self.errors.items()))


class PricingRuleNotFound(PricingError):
    def __init__(self, rule_id):
        self.rule_id = rule_id
        super().__init__(f'Pricing rule {rule_id!r} not found')


class InvalidSelector(PricingError):
    def __init__(self, apply_to):
        self.apply_to = apply_to
        super().__init__(f'Unknown applyTo value: {apply_to!r}')


class CatalogError(PricingError):
    """The Shopify catalog could not be read (transport failure, HTTP error, GraphQL errors)."""


class CatalogResourceGone(CatalogError):
    """Shopify answered 410 Gone. Callers resolve this to an empty result."""
