"""
HTTP layer: staff-only endpoints, camelCase payloads, engine errors mapped to
400 / 404 / 409 / 500 with { detail, code }.
"""
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from billing.models import Bill
from billing.services.tokens import generate_payment_token, token_suffix
from core.exceptions import TransactionError
from lessons.models import ClassRecord
from packages.models import Package
from tests.helpers import make_bill, make_class, make_package, make_student, make_teacher

User = get_user_model()


class ApiTestCase(TestCase):
    def setUp(self):
        self.staff = User.objects.create_user(username="office", password="test123", is_staff=True)
        self.client = APIClient()
        self.client.force_authenticate(user=self.staff)
        self.student = make_student()
        self.teacher = make_teacher()


class PermissionTests(ApiTestCase):
    def test_unauthenticated_is_rejected(self):
        response = APIClient().get("/api/packages/finished/")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.data["code"], "not_authenticated")

    def test_non_staff_is_forbidden(self):
        user = User.objects.create_user(username="parent", password="test123")
        client = APIClient()
        client.force_authenticate(user=user)
        response = client.get("/api/packages/finished/")
        self.assertEqual(response.status_code, 403)

    def test_health_is_public(self):
        response = APIClient().get("/api/health/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "ok")


class PackageApiTests(ApiTestCase):
    def test_create_round(self):
        response = self.client.post(
            f"/api/students/{self.student.id}/packages/",
            {"totalHours": "10", "hourPrice": "20"},
            format="json",
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["roundNumber"], 1)
        self.assertEqual(response.data["remainingHours"], 10.0)
        self.assertEqual(response.data["status"], Package.STATUS_ACTIVE)
        self.assertEqual(response.data["currency"], "USD")

        listing = self.client.get(f"/api/students/{self.student.id}/packages/")
        self.assertEqual([p["roundNumber"] for p in listing.data], [1])

    def test_create_round_rejects_zero_hours(self):
        response = self.client.post(
            f"/api/students/{self.student.id}/packages/",
            {"totalHours": "0", "hourPrice": "20"},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "validation_error")
        self.assertFalse(Package.objects.exists())

    def test_create_round_for_unknown_student(self):
        response = self.client.post(
            "/api/students/424242/packages/",
            {"totalHours": "5", "hourPrice": "20"},
            format="json",
        )
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["code"], "not_found")

    def test_reactivating_active_round_conflicts(self):
        package = make_package(self.student)
        response = self.client.post(f"/api/packages/{package.id}/reactivate/", {}, format="json")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["code"], "invalid_state")

    def test_reactivate_finished_round_with_new_hours(self):
        package = make_package(self.student, total_hours="4", status=Package.STATUS_FINISHED, remaining_hours="0")
        response = self.client.post(f"/api/packages/{package.id}/reactivate/", {"totalHours": "6"}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["status"], Package.STATUS_ACTIVE)
        self.assertEqual(response.data["remainingHours"], 6.0)

    def test_deduct(self):
        package = make_package(self.student, total_hours="2")
        response = self.client.post(
            f"/api/packages/{package.id}/deduct/",
            {"durationHours": "0.5", "notify": False},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data["applied"])
        self.assertEqual(response.data["package"]["remainingHours"], 1.5)

    def test_bills_summary(self):
        package = make_package(self.student, total_hours="10", hour_price="20")
        make_bill(package, "80.00", status=Bill.STATUS_PAID)
        response = self.client.get(f"/api/packages/{package.id}/bills-summary/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["totalAmount"], 200.0)
        self.assertEqual(response.data["unpaidAmount"], 120.0)
        self.assertEqual(response.data["billCount"], 1)
        self.assertEqual(response.data["currency"], "USD")

    def test_finished_list_with_badge_count(self):
        finished = make_package(self.student, status=Package.STATUS_FINISHED, remaining_hours="0")
        make_package(self.student, round_number=2)
        response = self.client.get("/api/packages/finished/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["unnotifiedCount"], 1)
        self.assertEqual([p["id"] for p in response.data["packages"]], [finished.id])
        self.assertEqual(response.data["packages"][0]["billsSummary"]["totalAmount"], 200.0)

    def test_notify_without_whatsapp_is_not_sent(self):
        package = make_package(self.student, status=Package.STATUS_FINISHED, remaining_hours="0")
        response = self.client.post(f"/api/packages/{package.id}/notify/")
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.data["sent"])
        self.assertIn("detail", response.data)

    def test_notify_sends_payment_request(self):
        self.student.whatsapp = "+15550102030"
        self.student.save()
        package = make_package(self.student, status=Package.STATUS_FINISHED, remaining_hours="0")
        make_bill(package, "40.00")
        response = self.client.post(f"/api/packages/{package.id}/notify/")
        self.assertTrue(response.data["sent"])
        package.refresh_from_db()
        self.assertEqual(package.notification_count, 1)

    def test_mark_paid(self):
        package = make_package(self.student, status=Package.STATUS_FINISHED, remaining_hours="0")
        make_bill(package, "40.00", status=Bill.STATUS_SENT)
        response = self.client.post(f"/api/packages/{package.id}/mark-paid/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["status"], Package.STATUS_PAID)
        self.assertFalse(Bill.objects.exclude(status=Bill.STATUS_PAID).exists())

    def test_rounds_view(self):
        package = make_package(self.student, total_hours="5")
        class_record = make_class(self.student, self.teacher, 1, status=ClassRecord.STATUS_ATTENDED)
        response = self.client.get(f"/api/students/{self.student.id}/packages/rounds/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["studentId"], self.student.id)
        section = response.data["sections"][0]
        self.assertEqual(section["section"], "active")
        self.assertEqual(section["package"]["id"], package.id)
        self.assertEqual(section["classes"][0]["id"], class_record.id)
        self.assertEqual(section["classes"][0]["packageId"], package.id)
        self.assertEqual(section["classes"][0]["counter"], 1.0)

    def test_bulk_notify_counts(self):
        self.student.whatsapp = "+15550102030"
        self.student.save()
        reachable = make_package(self.student, status=Package.STATUS_FINISHED, remaining_hours="0")
        unreachable = make_package(make_student(full_name="Student Two"), status=Package.STATUS_FINISHED, remaining_hours="0")
        response = self.client.post(
            "/api/packages/bulk-notify/",
            {"packageIds": [reachable.id, unreachable.id]},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["successCount"], 1)
        self.assertEqual(response.data["failedCount"], 1)
        self.assertTrue(response.data["errors"][0].startswith(f"Package #{unreachable.id}:"))

    def test_bulk_notify_requires_ids(self):
        response = self.client.post("/api/packages/bulk-notify/", {"packageIds": []}, format="json")
        self.assertEqual(response.status_code, 400)

    def test_notification_history(self):
        self.student.whatsapp = "+15550102030"
        self.student.save()
        package = make_package(self.student, status=Package.STATUS_FINISHED, remaining_hours="0")
        self.client.post(f"/api/packages/{package.id}/notify/")
        response = self.client.get(f"/api/packages/{package.id}/notification-history/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]["packageId"], package.id)
        self.assertEqual(response.data[0]["messageType"], "bill")
        self.assertEqual(response.data[0]["status"], "sent")

    def test_notification_history_unknown_package(self):
        response = self.client.get("/api/packages/999999/notification-history/")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["code"], "not_found")

    def test_transaction_failure_is_opaque(self):
        with patch("packages.views.activate_new_round", side_effect=TransactionError("lock wait timeout", student_id=1)):
            response = self.client.post(
                f"/api/students/{self.student.id}/packages/",
                {"totalHours": "10", "hourPrice": "20"},
                format="json",
            )
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.data["code"], "transaction_failed")
        self.assertNotIn("lock wait", response.data["detail"])


class ClassStatusApiTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.package = make_package(self.student, total_hours="5")

    def test_attended(self):
        class_record = make_class(self.student, self.teacher, 1)
        response = self.client.post(f"/api/classes/{class_record.id}/status/", {"status": "attended"}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["status"], "attended")
        self.assertEqual(response.data["packageId"], self.package.id)

    def test_cancellation_records_actor(self):
        class_record = make_class(self.student, self.teacher, 1)
        response = self.client.post(
            f"/api/classes/{class_record.id}/status/",
            {"status": "cancelled_by_student", "reason": "Travel"},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["cancelledBy"], self.staff.id)
        self.assertEqual(response.data["cancellationReason"], "Travel")

    def test_unknown_status(self):
        class_record = make_class(self.student, self.teacher, 1)
        response = self.client.post(f"/api/classes/{class_record.id}/status/", {"status": "done"}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "validation_error")

    def test_invalid_transition(self):
        class_record = make_class(self.student, self.teacher, 1, status=ClassRecord.STATUS_ATTENDED)
        response = self.client.post(
            f"/api/classes/{class_record.id}/status/",
            {"status": "cancelled_by_teacher"},
            format="json",
        )
        self.assertEqual(response.status_code, 409)

    def test_missing_class(self):
        response = self.client.post("/api/classes/999999/status/", {"status": "attended"}, format="json")
        self.assertEqual(response.status_code, 404)


class BillingApiTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.package = make_package(self.student)

    def test_custom_bill(self):
        response = self.client.post(
            "/api/bills/custom/",
            {"amount": "35.00", "studentId": self.student.id, "description": "Exam fee"},
            format="json",
        )
        self.assertEqual(response.status_code, 201)
        self.assertTrue(response.data["isCustom"])
        self.assertEqual(response.data["amount"], 35.0)

    def test_mark_bill_paid_twice(self):
        bill = make_bill(self.package, "20.00")
        url = f"/api/bills/{bill.id}/mark-paid/"
        self.assertEqual(self.client.post(url, {"paymentMethod": "card"}, format="json").status_code, 200)
        response = self.client.post(url, {"paymentMethod": "card"}, format="json")
        self.assertEqual(response.status_code, 409)

    def test_public_payment_page(self):
        bill = make_bill(self.package, "20.00")
        token = generate_payment_token(bill)
        response = APIClient().get(f"/api/payment/{token_suffix(token)}/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["id"], bill.id)
        self.assertEqual(response.data["amount"], 20.0)
        self.assertNotIn("studentId", response.data)

    def test_public_payment_unknown_token(self):
        response = APIClient().get("/api/payment/nope1/")
        self.assertEqual(response.status_code, 404)

    def test_send_bill_whatsapp(self):
        bill = make_bill(self.package, "20.00")
        response = self.client.post(
            f"/api/bills/{bill.id}/send-whatsapp/",
            {"whatsapp": "+15550102030"},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data["sent"])
        self.assertEqual(response.data["bill"]["status"], Bill.STATUS_SENT)

    def test_send_bill_without_number(self):
        bill = make_bill(self.package, "20.00")
        response = self.client.post(f"/api/bills/{bill.id}/send-whatsapp/", {}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.data["sent"])
        bill.refresh_from_db()
        self.assertEqual(bill.status, Bill.STATUS_PENDING)

    def test_send_paid_bill_conflicts(self):
        bill = make_bill(self.package, "20.00", status=Bill.STATUS_PAID)
        response = self.client.post(f"/api/bills/{bill.id}/send-whatsapp/", {}, format="json")
        self.assertEqual(response.status_code, 409)
