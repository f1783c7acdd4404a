"""
Email notifier, notification channel and per-organization toggles.
"""
from datetime import date
from decimal import Decimal
from unittest import mock

from django.core import mail
from django.test import TestCase, override_settings

from core.models import OrganizationSetting
from core.org_settings import get_admin_email, is_notification_enabled, update_settings
from notifications import channel as channel_module
from notifications.channel import NotificationChannel, get_channel
from notifications.dispatch import (
    queue_lead_notification, queue_payment_receipt, queue_registration_confirmation,
)
from notifications.services import EmailCredentials, EmailNotifier
from payments.models import Payment
from tests.fixtures import InstituteFixtureMixin


class BrokenConnection:
    """Mail backend stand-in whose every send raises."""

    def send_messages(self, messages):
        raise ConnectionRefusedError("smtp unreachable")


class EmailNotifierTests(TestCase):

    def setUp(self):
        self.notifier = EmailNotifier.init(EmailCredentials(from_address="Desk <desk@ignitelabs.test>"))

    def test_payment_receipt(self):
        sent = self.notifier.send_payment_receipt(
            "asha@student.test", "Asha", "Rs. 5000.00", "January 5, 2026", "Data Science", "Rs. 45000.00",
        )
        self.assertTrue(sent)
        message = mail.outbox[0]
        self.assertEqual(message.from_email, "Desk <desk@ignitelabs.test>")
        self.assertIn("Dear Asha", message.body)
        self.assertIn("Rs. 45000.00", message.body)
        html, mimetype = message.alternatives[0]
        self.assertEqual(mimetype, "text/html")
        self.assertIn("Data Science", html)

    def test_lead_notification_fills_placeholders(self):
        self.notifier.send_lead_notification("admin@ignitelabs.test", "Meera", None, "9000000555", "")
        body = mail.outbox[0].body
        self.assertIn("Email: Not provided", body)
        self.assertIn("Source: Website", body)

    def test_no_recipient_returns_false(self):
        self.assertFalse(self.notifier.send_registration_confirmation("", "Asha", "Data Science", "May 1, 2026"))
        self.assertEqual(len(mail.outbox), 0)

    def test_transport_failure_returns_false(self):
        notifier = EmailNotifier(BrokenConnection(), "desk@ignitelabs.test")
        with self.assertLogs("notifications.services", level="WARNING"):
            sent = notifier.send_registration_confirmation("asha@student.test", "Asha", "DS", "May 1, 2026")
        self.assertFalse(sent)

    @override_settings(DEFAULT_FROM_EMAIL="fallback@ignitelabs.test")
    def test_credentials_default_to_settings(self):
        self.assertEqual(EmailCredentials().from_address, "fallback@ignitelabs.test")


class NotificationChannelTests(TestCase):

    def test_inline_publish_waits_for_commit(self):
        calls = []
        channel = NotificationChannel(run_async=False)
        with self.captureOnCommitCallbacks(execute=True):
            channel.publish(calls.append, "sent")
            self.assertEqual(calls, [])
        self.assertEqual(calls, ["sent"])

    def test_task_errors_are_logged_not_raised(self):
        def explode():
            raise RuntimeError("boom")

        channel = NotificationChannel(run_async=False)
        with self.assertLogs("notifications.channel", level="ERROR"):
            self.assertIsNone(channel.submit(explode))

    def test_async_submit_runs_on_pool(self):
        channel = NotificationChannel(run_async=True, max_workers=1)
        self.addCleanup(channel.shutdown)
        future = channel.submit(sum, [1, 2, 3])
        self.assertEqual(future.result(timeout=5), 6)

    def test_shutdown_drains_pool_and_allows_restart(self):
        channel = NotificationChannel(run_async=True, max_workers=1)
        future = channel.submit(sum, [4, 5])
        channel.shutdown()
        self.assertTrue(future.done())
        self.assertIsNone(channel._executor)
        self.addCleanup(channel.shutdown)
        self.assertEqual(channel.submit(sum, [1]).result(timeout=5), 1)

    @override_settings(NOTIFICATIONS_ASYNC=True, NOTIFICATIONS_MAX_WORKERS=3)
    def test_default_channel_is_shut_down_at_exit(self):
        with mock.patch.object(channel_module, "_default_channel", None), \
                mock.patch("notifications.channel.atexit.register") as register:
            channel = get_channel()
            self.assertIs(get_channel(), channel)
        self.assertTrue(channel.run_async)
        self.assertEqual(channel.max_workers, 3)
        register.assert_called_once_with(channel.shutdown)


class NotificationToggleTests(InstituteFixtureMixin, TestCase):

    def setUp(self):
        self.make_institute()
        self.channel = NotificationChannel(run_async=False)
        self.student = self.make_student(fee_paid="5000.00")
        self.payment = Payment.objects.create(
            organization=self.org, student=self.student, amount=Decimal("5000.00"),
            payment_date=date(2026, 1, 5),
        )

    def test_toggles_default_on(self):
        for key in (
            OrganizationSetting.KEY_EMAIL_PAYMENT_RECEIPT,
            OrganizationSetting.KEY_EMAIL_REGISTRATION,
            OrganizationSetting.KEY_EMAIL_NEW_LEAD,
        ):
            self.assertTrue(is_notification_enabled(self.org, key))

    def test_global_switch_disables_everything(self):
        update_settings(self.org, {OrganizationSetting.KEY_EMAIL_ENABLED: 'false'})
        lead = self.make_lead()
        with self.captureOnCommitCallbacks(execute=True):
            self.assertFalse(queue_payment_receipt(self.payment, self.student, channel=self.channel))
            self.assertFalse(queue_registration_confirmation(self.student, channel=self.channel))
            self.assertFalse(queue_lead_notification(lead, channel=self.channel))
        self.assertEqual(len(mail.outbox), 0)

    def test_per_type_switch(self):
        update_settings(self.org, {OrganizationSetting.KEY_EMAIL_PAYMENT_RECEIPT: 'false'})
        with self.captureOnCommitCallbacks(execute=True):
            self.assertFalse(queue_payment_receipt(self.payment, self.student, channel=self.channel))
            self.assertTrue(queue_registration_confirmation(self.student, channel=self.channel))
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].subject, "Welcome to IgniteLabs!")

    def test_sender_address_from_settings(self):
        update_settings(self.org, {OrganizationSetting.KEY_EMAIL_FROM: "Fees <fees@ignitelabs.test>"})
        with self.captureOnCommitCallbacks(execute=True):
            queue_payment_receipt(self.payment, self.student, channel=self.channel)
        self.assertEqual(mail.outbox[0].from_email, "Fees <fees@ignitelabs.test>")

    def test_explicit_notifier_is_used(self):
        notifier = mock.Mock()
        with self.captureOnCommitCallbacks(execute=True):
            queue_payment_receipt(self.payment, self.student, notifier=notifier, channel=self.channel)
        notifier.send_payment_receipt.assert_called_once_with(
            "asha@student.test", "Asha Rao", "Rs. 5000.00", "January 5, 2026",
            "Full Stack Jan 2026", "Rs. 45000.00",
        )

    def test_admin_email_resolution(self):
        self.assertEqual(get_admin_email(self.org), "admin@institute.test")
        update_settings(self.org, {OrganizationSetting.KEY_EMAIL: "office@ignitelabs.test"})
        self.assertEqual(get_admin_email(self.org), "office@ignitelabs.test")
        update_settings(self.org, {OrganizationSetting.KEY_ADMIN_EMAIL: "boss@ignitelabs.test"})
        self.assertEqual(get_admin_email(self.org), "boss@ignitelabs.test")

    def test_unknown_setting_key(self):
        with self.assertRaises(ValueError):
            update_settings(self.org, {"favourite_colour": "blue"})
