from django.db import migrations, models

import pricing.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='PricingRule',
            fields=[
                ('id', models.CharField(default=pricing.models.generate_rule_id, editable=False, max_length=40, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=255)),
                ('priority', models.PositiveSmallIntegerField()),
                ('status', models.CharField(choices=[('active', 'Active'), ('inactive', 'Inactive'), ('draft', 'Draft')], default='active', max_length=10)),
                ('apply_to', models.CharField(choices=[('all-products', 'All products'), ('specific-products', 'Specific products'), ('product-collections', 'Product collections'), ('product-tags', 'Product tags')], default='all-products', max_length=30)),
                ('product_ids', models.JSONField(blank=True, null=True)),
                ('variant_ids', models.JSONField(blank=True, null=True)),
                ('collection_ids', models.JSONField(blank=True, null=True)),
                ('tag_ids', models.JSONField(blank=True, null=True)),
                ('price_type', models.CharField(choices=[('apply-price', 'Apply a price'), ('decrease-fixed', 'Decrease by a fixed amount'), ('decrease-percentage', 'Decrease by a percentage')], default='apply-price', max_length=30)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'ordering': ('-priority', '-created_at'),
            },
        ),
    ]
