from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Customer',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(help_text="Customer's full name.", max_length=200)),
                ('account_number', models.CharField(help_text='Human-facing account number, e.g. AT-001.', max_length=20, unique=True)),
                ('meter_number', models.CharField(help_text='Serial of the installed water meter, e.g. MT-123.', max_length=20, unique=True)),
                ('phone', models.CharField(help_text='Phone number used for SMS reminders and mobile money.', max_length=16, validators=[django.core.validators.RegexValidator(message='Phone number must contain 7 to 15 digits, optionally prefixed with +.', regex='^\\+?\\d{7,15}$')])),
                ('last_reading', models.DecimalField(decimal_places=2, default=Decimal('0.00'), help_text='Meter reading (m³) the most recent bill ended at.', max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('last_reading_date', models.DateField(default=django.utils.timezone.localdate, help_text='Date the last reading was taken.')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.OneToOneField(blank=True, help_text='Customer-role login linked to this record.', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='customer', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'customers',
                'ordering': ['account_number'],
            },
        ),
    ]
