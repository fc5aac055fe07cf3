from django.contrib import admin
from .models import PricingRule

@admin.register(PricingRule)
class PricingRuleAdmin(admin.ModelAdmin):
    list_display = ('name', 'status', 'priority', 'apply_to', 'price_type', 'amount', 'created_at')
    list_filter = ('status', 'apply_to', 'price_type')
    search_fields = ('name', 'id')
    readonly_fields = ('id', 'created_at')
