from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('customers', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Bill',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('period', models.CharField(help_text="Billing period label, e.g. 'August 2024'.", max_length=100)),
                ('previous_reading', models.DecimalField(decimal_places=2, max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('current_reading', models.DecimalField(decimal_places=2, max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('consumption', models.DecimalField(decimal_places=2, help_text='Water consumed in m³.', max_digits=12)),
                ('rate', models.DecimalField(decimal_places=2, help_text='Price per m³.', max_digits=8, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('amount_due', models.DecimalField(decimal_places=2, max_digits=14)),
                ('due_date', models.DateField(db_index=True)),
                ('status', models.CharField(choices=[('Pending Approval', 'Pending Approval'), ('Unpaid', 'Unpaid'), ('Paid', 'Paid'), ('Overdue', 'Overdue')], db_index=True, default='Pending Approval', max_length=20)),
                ('approved', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('customer', models.ForeignKey(help_text='The customer billed.', on_delete=django.db.models.deletion.CASCADE, related_name='bills', to='customers.customer')),
            ],
            options={
                'db_table': 'bills',
                'ordering': ['-due_date'],
                'indexes': [models.Index(fields=['customer', 'status'], name='idx_bill_customer_status')],
            },
        ),
    ]
