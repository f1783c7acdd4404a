"""
Auth, batches, organization settings, health and the ledger check command.
"""
import shutil
import tempfile
from io import StringIO
from types import SimpleNamespace
from decimal import Decimal
from unittest import mock

from django.core import mail
from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command
from django.test import TestCase, override_settings

from accounts.permissions import IsManager, IsStaffMember
from batches.models import Batch
from core.models import OrganizationSetting
from core.org_settings import get_organization_details, get_settings, is_notification_enabled
from payments.invoices import resolve_logo_path
from payments.models import Payment
from students.models import Student
from tests.fixtures import InstituteFixtureMixin


class AuthApiTests(InstituteFixtureMixin, TestCase):

    def setUp(self):
        self.make_institute()

    def test_login_and_me(self):
        client = self.api_client()
        response = client.post(
            "/api/auth/login", {"email": "Manager@Institute.test", "password": "test123"}, format="json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["user"]["role"], "manager")
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['accessToken']}")
        me = client.get("/api/auth/me")
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.data["email"], "manager@institute.test")

    def test_login_records_last_login(self):
        self.assertIsNone(self.manager.last_login)
        response = self.api_client().post(
            "/api/auth/login", {"email": "manager@institute.test", "password": "test123"}, format="json",
        )
        self.assertEqual(response.status_code, 200)
        self.manager.refresh_from_db()
        self.assertIsNotNone(self.manager.last_login)

    def test_bad_password(self):
        response = self.api_client().post(
            "/api/auth/login", {"email": "manager@institute.test", "password": "nope"}, format="json",
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.data["code"], "invalid_credentials")


class RolePermissionTests(InstituteFixtureMixin, TestCase):

    def setUp(self):
        self.make_institute()

    def allowed(self, permission, user):
        return permission().has_permission(SimpleNamespace(user=user), None)

    def test_role_matrix(self):
        for user, manager, staff in (
            (self.admin, True, True),
            (self.manager, True, True),
            (self.trainer, False, True),
        ):
            with self.subTest(role=user.role):
                self.assertEqual(self.allowed(IsManager, user), manager)
                self.assertEqual(self.allowed(IsStaffMember, user), staff)

    def test_anonymous_is_denied(self):
        anonymous = SimpleNamespace(is_authenticated=False, role=None)
        self.assertFalse(self.allowed(IsManager, anonymous))
        self.assertFalse(self.allowed(IsStaffMember, anonymous))


class BatchApiTests(InstituteFixtureMixin, TestCase):

    def setUp(self):
        self.make_institute()
        self.client = self.api_client(self.manager)

    def test_create_batch(self):
        response = self.client.post("/api/batches", {
            "name": "Data Science Mar 2026",
            "startDate": "2026-03-01",
            "endDate": "2026-08-31",
            "fee": "65000.00",
            "trainerId": self.trainer.pk,
        }, format="json")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["fee"], "65000.00")
        self.assertEqual(response.data["trainerName"], "Test Trainer")
        self.assertEqual(response.data["studentCount"], 0)

    def test_end_before_start(self):
        response = self.client.post("/api/batches", {
            "name": "Backwards", "startDate": "2026-03-01", "endDate": "2026-02-01", "fee": "1.00",
        }, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("endDate", response.data["errors"])

    def test_trainer_sees_own_batches_only(self):
        Batch.objects.create(
            organization=self.org, name="Someone else's", start_date="2026-01-01", end_date="2026-02-01",
        )
        response = self.api_client(self.trainer).get("/api/batches")
        self.assertEqual(response.status_code, 200)
        self.assertEqual([b["name"] for b in response.data], ["Full Stack Jan 2026"])
        denied = self.api_client(self.trainer).post("/api/batches", {"name": "X"}, format="json")
        self.assertEqual(denied.status_code, 403)

    def test_batch_with_students_cannot_be_deleted(self):
        self.make_student()
        response = self.client.delete(f"/api/batches/{self.batch.pk}")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["code"], "batch_in_use")


class OrganizationSettingsApiTests(InstituteFixtureMixin, TestCase):

    def setUp(self):
        self.make_institute()
        self.client = self.api_client(self.manager)

    def test_defaults(self):
        response = self.client.get("/api/settings/organization")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data["emailNotificationsEnabled"])
        self.assertTrue(response.data["emailPaymentReceipt"])
        self.assertEqual(response.data["organizationName"], "")

    def test_update(self):
        response = self.client.put("/api/settings/organization", {
            "organizationName": "IgniteLabs Academy",
            "organizationPhone": "080-1234567",
            "emailPaymentReceipt": False,
        }, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.data["emailPaymentReceipt"])
        stored = get_settings(self.org)
        self.assertEqual(stored[OrganizationSetting.KEY_EMAIL_PAYMENT_RECEIPT], "false")
        details = get_organization_details(self.org)
        self.assertEqual(details["name"], "IgniteLabs Academy")
        self.assertEqual(details["address"], "Default Address")

    def test_trainer_cannot_update(self):
        response = self.api_client(self.trainer).put(
            "/api/settings/organization", {"organizationName": "Hijack"}, format="json",
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(get_settings(self.org), {})


class OrganizationLogoApiTests(InstituteFixtureMixin, TestCase):

    def setUp(self):
        self.make_institute()
        self.client = self.api_client(self.manager)
        self.logo_root = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.logo_root, ignore_errors=True)
        override = override_settings(INVOICE_LOGO_ROOT=self.logo_root)
        override.enable()
        self.addCleanup(override.disable)

    def upload(self, client=None, name="logo.png"):
        logo = SimpleUploadedFile(name, b"\x89PNG\r\n\x1a\n", content_type="image/png")
        return (client or self.client).post("/api/settings/organization/logo", {"logo": logo}, format="multipart")

    def test_upload_stores_file_and_setting(self):
        response = self.upload()
        self.assertEqual(response.status_code, 200)
        logo = get_settings(self.org)[OrganizationSetting.KEY_LOGO]
        self.assertTrue(logo.startswith(f"logos/org-{self.org.pk}-logo"))
        self.assertEqual(response.data["logo"], logo)
        self.assertEqual(response.data["name"], "Default Organization")
        self.assertIsNotNone(resolve_logo_path(logo))

    def test_missing_file(self):
        response = self.client.post("/api/settings/organization/logo", {}, format="multipart")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "missing_field")
        self.assertEqual(get_settings(self.org), {})

    def test_rejects_non_image(self):
        response = self.upload(name="logo.exe")
        self.assertEqual(response.status_code, 400)
        self.assertNotIn(OrganizationSetting.KEY_LOGO, get_settings(self.org))

    def test_trainer_cannot_upload(self):
        response = self.upload(client=self.api_client(self.trainer))
        self.assertEqual(response.status_code, 403)


class EmailNotificationSettingsApiTests(InstituteFixtureMixin, TestCase):

    def setUp(self):
        self.make_institute()
        self.client = self.api_client(self.manager)

    def test_defaults(self):
        response = self.client.get("/api/settings/notifications/email")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data, {
            "emailNotificationsEnabled": True,
            "studentRegistration": True,
            "paymentReceipt": True,
            "leadNotification": True,
            "fromAddress": "",
            "adminEmail": "",
        })

    def test_partial_update(self):
        response = self.client.put("/api/settings/notifications/email", {
            "studentRegistration": False,
            "adminEmail": "owner@institute.test",
        }, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.data["studentRegistration"])
        self.assertTrue(response.data["paymentReceipt"])
        self.assertFalse(is_notification_enabled(self.org, OrganizationSetting.KEY_EMAIL_REGISTRATION))
        self.assertTrue(is_notification_enabled(self.org, OrganizationSetting.KEY_EMAIL_PAYMENT_RECEIPT))
        self.assertEqual(get_settings(self.org)[OrganizationSetting.KEY_ADMIN_EMAIL], "owner@institute.test")

    def test_trainer_cannot_read_or_update(self):
        trainer = self.api_client(self.trainer)
        self.assertEqual(trainer.get("/api/settings/notifications/email").status_code, 403)
        response = trainer.put("/api/settings/notifications/email", {"paymentReceipt": False}, format="json")
        self.assertEqual(response.status_code, 403)
        self.assertEqual(get_settings(self.org), {})

    def test_send_test_email(self):
        saved = self.client.put(
            "/api/settings/notifications/email", {"fromAddress": "desk@institute.test"}, format="json",
        )
        self.assertEqual(saved.status_code, 200)
        response = self.client.post("/api/settings/notifications/email/test", {
            "email": "ops@institute.test", "type": "payment_receipt",
        }, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data["success"])
        self.assertEqual(len(mail.outbox), 1)
        message = mail.outbox[0]
        self.assertEqual(message.subject, "Payment Receipt - IgniteLabs")
        self.assertEqual(message.to, ["ops@institute.test"])
        self.assertEqual(message.from_email, "desk@institute.test")

    def test_test_email_defaults_to_registration(self):
        response = self.client.post(
            "/api/settings/notifications/email/test", {"email": "ops@institute.test"}, format="json",
        )
        self.assertTrue(response.data["success"])
        self.assertEqual(mail.outbox[0].subject, "Welcome to IgniteLabs!")

    def test_test_email_reports_delivery_failure(self):
        with mock.patch("core.views.EmailNotifier.send_lead_notification", return_value=False) as send:
            response = self.client.post("/api/settings/notifications/email/test", {
                "email": "ops@institute.test", "type": "lead",
            }, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.data["success"])
        send.assert_called_once()

    def test_test_email_requires_address(self):
        response = self.client.post("/api/settings/notifications/email/test", {}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "missing_field")
        self.assertEqual(len(mail.outbox), 0)


class HealthTests(TestCase):

    def test_health(self):
        response = self.client.get("/api/health/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "ok")

    def test_system_health(self):
        response = self.client.get("/api/system/health/")
        self.assertEqual(response.json(), {"db": "ok", "students": "ok", "payments": "ok"})


class CheckLedgersCommandTests(InstituteFixtureMixin, TestCase):

    def setUp(self):
        self.make_institute()
        self.good = self.make_student(phone="9000000001", fee_paid="1000.00")
        Payment.objects.create(organization=self.org, student=self.good, amount=Decimal("1000.00"),
                               payment_date="2026-01-05")
        # fee_paid says 3000 but only 2000 was ever paid
        self.drifted = self.make_student(phone="9000000002", fee_paid="3000.00")
        Payment.objects.create(organization=self.org, student=self.drifted, amount=Decimal("2000.00"),
                               payment_date="2026-01-05")

    def run_command(self, *args):
        out = StringIO()
        call_command("check_ledgers", *args, stdout=out)
        return out.getvalue()

    def test_report_only(self):
        output = self.run_command()
        self.assertIn("DRY RUN", output)
        self.assertIn(f"student_id={self.drifted.pk}", output)
        self.assertIn("Checked: 2, inconsistent: 1, repaired: 0", output)
        self.assertEqual(Student.objects.get(pk=self.drifted.pk).fee_paid, Decimal("3000.00"))

    def test_fix(self):
        output = self.run_command("--fix")
        self.assertIn("repaired: 1", output)
        drifted = Student.objects.get(pk=self.drifted.pk)
        self.assertEqual(drifted.fee_paid, Decimal("2000.00"))
        self.assertEqual(drifted.fee_due, Decimal("48000.00"))

    def test_single_student(self):
        output = self.run_command("--student", str(self.good.pk))
        self.assertIn("Checked: 1, inconsistent: 0", output)
