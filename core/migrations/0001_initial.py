# Generated migration for core app (Organization, OrganizationSetting)

from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Organization',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('slug', models.SlugField(max_length=100, unique=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Organization',
                'verbose_name_plural': 'Organizations',
                'db_table': 'organizations',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='OrganizationSetting',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('key', models.CharField(choices=[
                    ('organization_name', 'Organization name'),
                    ('organization_address', 'Address'),
                    ('organization_phone', 'Phone'),
                    ('organization_email', 'Email'),
                    ('organization_website', 'Website'),
                    ('organization_gstin', 'GSTIN'),
                    ('organization_logo', 'Logo path'),
                    ('email_notifications_enabled', 'Email notifications enabled'),
                    ('email_student_registration', 'Send registration confirmation'),
                    ('email_payment_receipt', 'Send payment receipt'),
                    ('email_new_lead_notification', 'Send new lead notification'),
                    ('email_from_address', 'Sender address'),
                    ('admin_email', 'Admin email'),
                ], max_length=64)),
                ('value', models.TextField(blank=True, default='')),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('organization', models.ForeignKey(db_column='organization_id', on_delete=django.db.models.deletion.CASCADE, related_name='settings', to='core.organization')),
            ],
            options={
                'verbose_name': 'Organization Setting',
                'verbose_name_plural': 'Organization Settings',
                'db_table': 'organization_settings',
                'ordering': ['organization', 'key'],
                'unique_together': {('organization', 'key')},
            },
        ),
    ]
