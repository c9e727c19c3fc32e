"""
Initial migration for BatchLedger models.
"""

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    """Create BatchLedger models: Warehouse, Product, Batch, Transaction, LowStockSetting, TransferIntent."""

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Warehouse',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(help_text='Unique identifier (e.g. W1, main-store). Immutable.', max_length=50, unique=True, verbose_name='Code')),
                ('name', models.CharField(max_length=100, verbose_name='Name')),
                ('location', models.CharField(blank=True, default='', max_length=200, verbose_name='Location')),
                ('category', models.CharField(choices=[('storage', 'Storage'), ('production', 'Production'), ('customer', 'Customer-facing')], default='storage', max_length=20, verbose_name='Category')),
                ('status', models.CharField(choices=[('active', 'Active'), ('inactive', 'Inactive')], default='active', max_length=20, verbose_name='Status')),
                ('total_items', models.PositiveIntegerField(default=0, editable=False, help_text='Sum of positive batch quantities. Maintained by the ledger.', verbose_name='Total items')),
                ('metadata', models.JSONField(blank=True, default=dict, verbose_name='Metadata')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Warehouse',
                'verbose_name_plural': 'Warehouses',
                'ordering': ['code'],
            },
        ),
        migrations.CreateModel(
            name='Product',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200, unique=True, verbose_name='Name')),
                ('category', models.CharField(blank=True, default='', max_length=100, verbose_name='Category')),
                ('unit', models.CharField(blank=True, default='', help_text='e.g. pcs, kg, bottle', max_length=30, verbose_name='Unit')),
                ('low_stock_threshold', models.PositiveIntegerField(blank=True, help_text='Empty = system default', null=True, verbose_name='Low-stock threshold')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Product',
                'verbose_name_plural': 'Products',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Batch',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(help_text='Unique within the warehouse. Chosen at stock-in.', max_length=50, verbose_name='Batch code')),
                ('product_name', models.CharField(max_length=200, verbose_name='Product name')),
                ('unit', models.CharField(blank=True, default='', max_length=30, verbose_name='Unit')),
                ('category', models.CharField(blank=True, default='', max_length=100, verbose_name='Category')),
                ('quantity', models.PositiveIntegerField(default=0, verbose_name='Quantity')),
                ('expiry_date', models.DateField(blank=True, db_index=True, null=True, verbose_name='Expiry date')),
                ('reason', models.CharField(blank=True, default='', help_text='Reason of the event that created the batch', max_length=255, verbose_name='Reason')),
                ('created_by', models.CharField(blank=True, default='', max_length=150, verbose_name='Created by')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Created at')),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('product', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='batches', to='batchledger.product', verbose_name='Product')),
                ('warehouse', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='batches', to='batchledger.warehouse', verbose_name='Warehouse')),
            ],
            options={
                'verbose_name': 'Batch',
                'verbose_name_plural': 'Batches',
                'ordering': ['warehouse', 'code'],
                'indexes': [models.Index(fields=['warehouse', 'product_name'], name='batchledger_batch_wh_product')],
                'constraints': [
                    models.UniqueConstraint(fields=('warehouse', 'code'), name='unique_batch_code_per_warehouse'),
                    models.CheckConstraint(condition=models.Q(('quantity__gte', 0)), name='batch_quantity_non_negative'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Transaction',
            fields=[
                ('id', models.CharField(max_length=255, primary_key=True, serialize=False, verbose_name='Transaction id')),
                ('type', models.CharField(choices=[('stockIn', 'Stock in'), ('stockOut', 'Stock out'), ('transferOut', 'Transfer out'), ('transferIn', 'Transfer in'), ('edit', 'Edit')], max_length=20, verbose_name='Type')),
                ('product_name', models.CharField(max_length=200, verbose_name='Product name')),
                ('code', models.CharField(db_index=True, max_length=50, verbose_name='Batch code')),
                ('quantity', models.PositiveIntegerField(help_text='Magnitude. For edits, the corrected quantity.', verbose_name='Quantity')),
                ('unit', models.CharField(blank=True, default='', max_length=30, verbose_name='Unit')),
                ('category', models.CharField(blank=True, default='', max_length=100, verbose_name='Category')),
                ('expiry_date', models.DateField(blank=True, null=True, verbose_name='Expiry date')),
                ('reason', models.CharField(help_text='Required. E.g. "New Supply", "Used", "Transfer"', max_length=255, verbose_name='Reason')),
                ('counterpart_warehouse', models.CharField(blank=True, default='', max_length=50, verbose_name='Counterpart warehouse')),
                ('correlation_id', models.CharField(blank=True, db_index=True, default='', max_length=255, verbose_name='Correlation id')),
                ('metadata', models.JSONField(blank=True, default=dict, verbose_name='Metadata')),
                ('by', models.CharField(blank=True, default='', max_length=150, verbose_name='By')),
                ('timestamp', models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name='Timestamp')),
                ('product', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='batchledger.product', verbose_name='Product')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='User')),
                ('warehouse', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='transactions', to='batchledger.warehouse', verbose_name='Warehouse')),
            ],
            options={
                'verbose_name': 'Transaction',
                'verbose_name_plural': 'Transactions',
                'ordering': ['timestamp'],
                'indexes': [
                    models.Index(fields=['warehouse', 'timestamp'], name='batchledger_tx_wh_timestamp'),
                    models.Index(fields=['warehouse', 'code'], name='batchledger_tx_wh_code'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('type', 'edit'), ('quantity__gt', 0), _connector='OR'), name='transaction_movement_quantity_positive'),
                ],
            },
        ),
        migrations.CreateModel(
            name='LowStockSetting',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('threshold', models.PositiveIntegerField(help_text='Alert fires when total quantity <= this value', verbose_name='Threshold')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated at')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='low_stock_settings', to='batchledger.product', verbose_name='Product')),
                ('warehouse', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='low_stock_settings', to='batchledger.warehouse', verbose_name='Warehouse')),
            ],
            options={
                'verbose_name': 'Low-stock setting',
                'verbose_name_plural': 'Low-stock settings',
                'constraints': [
                    models.UniqueConstraint(fields=('warehouse', 'product'), name='unique_low_stock_setting_per_warehouse_product'),
                ],
            },
        ),
        migrations.CreateModel(
            name='TransferIntent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(max_length=50, verbose_name='Batch code')),
                ('product_name', models.CharField(max_length=200, verbose_name='Product name')),
                ('quantity', models.PositiveIntegerField(verbose_name='Quantity')),
                ('correlation_id', models.CharField(db_index=True, max_length=255, verbose_name='Correlation id')),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('debited', 'Debited'), ('completed', 'Completed'), ('failed', 'Failed')], db_index=True, default='pending', max_length=20, verbose_name='Status')),
                ('error', models.TextField(blank=True, default='', verbose_name='Last error')),
                ('payload', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('resolved_at', models.DateTimeField(blank=True, null=True, verbose_name='Resolved at')),
                ('destination', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='incoming_transfers', to='batchledger.warehouse', verbose_name='Destination')),
                ('source', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='outgoing_transfers', to='batchledger.warehouse', verbose_name='Source')),
            ],
            options={
                'verbose_name': 'Transfer intent',
                'verbose_name_plural': 'Transfer intents',
                'ordering': ['created_at'],
            },
        ),
    ]
