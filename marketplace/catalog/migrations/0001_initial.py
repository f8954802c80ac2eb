# Generated manually for the supplier catalog

import django.core.validators
import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Material',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True)),
                ('price_per_unit', models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))])),
                ('available_quantity', models.PositiveIntegerField(default=0)),
                ('unit', models.CharField(choices=[('kg', 'Kilogram'), ('g', 'Gram'), ('l', 'Litre (l)'), ('ml', 'Millilitre'), ('pieces', 'Pieces'), ('dozen', 'Dozen'), ('pack', 'Pack'), ('bundle', 'Bundle'), ('box', 'Box'), ('bag', 'Bag'), ('litre', 'Litre'), ('piece', 'Piece')], default='kg', max_length=20)),
                ('category', models.CharField(choices=[('Vegetables', 'Vegetables'), ('Fruits', 'Fruits'), ('Dairy', 'Dairy'), ('Grains', 'Grains'), ('Poultry', 'Poultry'), ('Fish', 'Fish'), ('Spices', 'Spices'), ('Beverages', 'Beverages'), ('Snacks', 'Snacks'), ('Others', 'Others')], default='Vegetables', max_length=20)),
                ('status', models.CharField(choices=[('active', 'Active'), ('inactive', 'Inactive'), ('out_of_stock', 'Out of Stock')], default='active', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('supplier', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='materials', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'materials',
                'ordering': ['-updated_at', '-created_at'],
                'indexes': [
                    models.Index(fields=['supplier', 'status'], name='idx_material_supplier_status'),
                    models.Index(fields=['category'], name='idx_material_category'),
                ],
            },
        ),
    ]
