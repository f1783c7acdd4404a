"""
Shared setup for institute tests: one organization, staff users, a batch.
"""
from datetime import date
from decimal import Decimal

from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from batches.models import Batch
from core.models import Organization
from leads.models import Lead
from students.models import Student

User = get_user_model()


class InstituteFixtureMixin:
    """setUp helpers; mix into TestCase / TransactionTestCase."""

    def make_institute(self):
        self.org = Organization.objects.create(slug="test-org", name="Test Org")
        self.admin = User.objects.create_user(
            email="admin@institute.test",
            password="test123",
            full_name="Test Admin",
            role=User.ROLE_ADMIN,
            organization=self.org,
        )
        self.manager = User.objects.create_user(
            email="manager@institute.test",
            password="test123",
            full_name="Test Manager",
            role=User.ROLE_MANAGER,
            organization=self.org,
        )
        self.trainer = User.objects.create_user(
            email="trainer@institute.test",
            password="test123",
            full_name="Test Trainer",
            role=User.ROLE_TRAINER,
            organization=self.org,
        )
        self.batch = Batch.objects.create(
            organization=self.org,
            trainer=self.trainer,
            name="Full Stack Jan 2026",
            start_date=date(2026, 1, 15),
            end_date=date(2026, 6, 15),
            fee=Decimal("50000.00"),
        )

    def make_student(self, phone="9000000001", total_fee="50000.00", fee_paid="0.00", **extra):
        total = Decimal(total_fee)
        paid = Decimal(fee_paid)
        defaults = {
            "organization": self.org,
            "batch": self.batch,
            "name": "Asha Rao",
            "email": "asha@student.test",
            "enrollment_date": date(2026, 1, 10),
        }
        defaults.update(extra)
        return Student.objects.create(
            phone=phone, total_fee=total, fee_paid=paid, fee_due=total - paid, **defaults
        )

    def make_lead(self, phone="9000000101", **extra):
        defaults = {
            "organization": self.org,
            "name": "Ravi Kumar",
            "email": "ravi@lead.test",
            "source": "website",
            "course": "Full Stack",
        }
        defaults.update(extra)
        return Lead.objects.create(phone=phone, **defaults)

    def _auth_header(self, user):
        token = str(AccessToken.for_user(user))
        return {"HTTP_AUTHORIZATION": f"Bearer {token}"}

    def api_client(self, user=None):
        client = APIClient()
        if user is not None:
            client.credentials(**self._auth_header(user))
        return client
