# Generated migration for students app (Student with fee ledger)

from decimal import Decimal
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('core', '0001_initial'),
        ('batches', '0001_initial'),
        ('leads', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Student',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('phone', models.CharField(max_length=20, unique=True)),
                ('email', models.EmailField(blank=True, max_length=254, null=True)),
                ('parent_mobile', models.CharField(blank=True, max_length=20, null=True)),
                ('enrollment_date', models.DateField()),
                ('total_fee', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('fee_paid', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('fee_due', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('is_active', models.BooleanField(db_index=True, default=True)),
                ('notes', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('batch', models.ForeignKey(blank=True, db_column='batch_id', null=True, on_delete=django.db.models.deletion.PROTECT, related_name='students', to='batches.batch')),
                ('converted_from_lead', models.ForeignKey(blank=True, db_column='converted_from_lead_id', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='converted_students', to='leads.lead')),
                ('organization', models.ForeignKey(blank=True, db_column='organization_id', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='students', to='core.organization')),
            ],
            options={
                'verbose_name': 'Student',
                'verbose_name_plural': 'Students',
                'db_table': 'students',
                'ordering': ['-created_at'],
            },
        ),
    ]
