"""Browser callback reconciliation after Paystack checkout."""
import json
from datetime import datetime
from decimal import Decimal

from exceptions import GatewayError
from models import Payment, PaymentStatus
from services.callback_service import (
     CallbackState,
     backfill_confirmation,
     pick_transaction_token,
     reconcile_callback,
)
from services.webhook_service import SIGNATURE_HEADER, compute_signature


def _reload(db, payment):
     return db.query(Payment).filter(Payment.id == payment.id).populate_existing().one()


class TestPickToken:

     def test_prefers_trxref(self):
          assert pick_transaction_token("A", "B") == "A"

     def test_falls_back_to_reference(self):
          assert pick_transaction_token(None, "B") == "B"
          assert pick_transaction_token("  ", "B") == "B"

     def test_none_when_both_missing(self):
          assert pick_transaction_token(None, "") is None


# ===================================================================
# reconcile_callback
# ===================================================================

class TestReconcileCallback:

     def test_unknown_payment(self, db_session, gateway, sender):
          result = reconcile_callback(db_session, 999, "PAY-999", gateway, sender)
          assert result.state == CallbackState.NOT_FOUND

     def test_settles_when_webhook_has_not_arrived(self, db_session, factory, gateway, sender):
          payment = factory.payment()
          reference = f"PAY-{payment.id}"
          payment.reference = reference
          db_session.commit()
          gateway.set_verification(reference, amount=500000)

          result = reconcile_callback(db_session, payment.id, reference, gateway, sender)

          assert result.state == CallbackState.PAID
          assert result.newly_settled is True
          assert gateway.verify_calls == [reference]
          stored = _reload(db_session, payment)
          assert stored.status == PaymentStatus.PAID
          assert stored.payment_method == "Paystack (card)"
          assert len(sender.calls) == 1

     def test_already_paid_skips_gateway(self, db_session, factory, gateway, sender):
          payment = factory.payment(reference="R1", status=PaymentStatus.PAID, payment_method="Paystack (card)")

          result = reconcile_callback(db_session, payment.id, "R1", gateway, sender)

          assert result.state == CallbackState.PAID
          assert result.newly_settled is False
          assert gateway.verify_calls == []
          assert sender.calls == []

     def test_paid_without_method_backfills_once(self, db_session, factory, gateway, sender):
          payment = factory.payment(reference="R1", status=PaymentStatus.PAID)

          reconcile_callback(db_session, payment.id, "R1", gateway, sender)
          reconcile_callback(db_session, payment.id, "R1", gateway, sender)

          stored = _reload(db_session, payment)
          assert stored.payment_method == "Paystack"
          assert stored.notes.count("Payment method backfilled") == 1
          assert len(sender.calls) == 1

     def test_no_token_is_processing(self, db_session, factory, gateway, sender):
          payment = factory.payment(reference="R1")
          result = reconcile_callback(db_session, payment.id, None, gateway, sender)
          assert result.state == CallbackState.PROCESSING
          assert gateway.verify_calls == []

     def test_failed_transaction(self, db_session, factory, gateway, sender):
          payment = factory.payment(reference="R1")
          gateway.set_verification("R1", status="failed", message="Insufficient funds")

          result = reconcile_callback(db_session, payment.id, "R1", gateway, sender)

          assert result.state == CallbackState.FAILED
          assert result.message == "Insufficient funds"
          assert result.transaction_status == "failed"
          assert _reload(db_session, payment).status == PaymentStatus.PENDING

     def test_gateway_error(self, db_session, factory, gateway, sender):
          payment = factory.payment(reference="R1")
          gateway.verify_error = GatewayError("Paystack request failed: timeout")

          result = reconcile_callback(db_session, payment.id, "R1", gateway, sender)

          assert result.state == CallbackState.VERIFICATION_ERROR
          assert "timeout" in result.message

     def test_reference_of_another_payment_is_rejected(self, db_session, factory, gateway, sender):
          payment = factory.payment(reference="R1")
          other = factory.payment(reference="R2")
          gateway.set_verification("R2")

          result = reconcile_callback(db_session, payment.id, "R2", gateway, sender)

          assert result.state == CallbackState.VERIFICATION_ERROR
          assert _reload(db_session, payment).status == PaymentStatus.PENDING
          assert _reload(db_session, other).status == PaymentStatus.PENDING

     def test_missing_reference_is_adopted(self, db_session, factory, gateway, sender):
          payment = factory.payment()
          reference = f"PAY-{payment.id}"
          gateway.set_verification(reference)

          result = reconcile_callback(db_session, payment.id, reference, gateway, sender)

          assert result.state == CallbackState.PAID
          stored = _reload(db_session, payment)
          assert stored.reference == reference
          assert stored.status == PaymentStatus.PAID

     def test_amount_mismatch(self, db_session, factory, gateway, sender):
          payment = factory.payment(reference="R1", amount=Decimal("5000.00"))
          gateway.set_verification("R1", amount=1000)

          result = reconcile_callback(db_session, payment.id, "R1", gateway, sender)

          assert result.state == CallbackState.VERIFICATION_ERROR
          assert _reload(db_session, payment).status == PaymentStatus.PENDING
          assert sender.calls == []


class TestBackfill:

     def test_not_needed_when_method_set(self, db_session, factory, sender):
          payment = factory.payment(reference="R1", status=PaymentStatus.PAID, payment_method="Cash")
          assert backfill_confirmation(db_session, payment, sender) is False
          assert sender.calls == []

     def test_keeps_audit_line_written_after_the_read(self, db_session, factory, sender):
          payment = factory.payment(reference="R1", status=PaymentStatus.PAID, notes="first")
          db_session.execute(
               Payment.__table__.update()
               .where(Payment.__table__.c.id == payment.id)
               .values(notes="first\nPaystack charge failed: R1")
          )
          db_session.commit()

          assert backfill_confirmation(db_session, payment, sender) is True

          notes = _reload(db_session, payment).notes
          assert "Paystack charge failed: R1" in notes
          assert "Payment method backfilled" in notes
          assert len(sender.calls) == 1


# ===================================================================
# Webhook and callback racing
# ===================================================================

class TestWebhookCallbackRace:

     def _webhook(self, client, reference):
          body = json.dumps({
               "event": "charge.success",
               "data": {"reference": reference, "amount": 500000, "paid_at": "2024-06-01T10:00:00Z"},
          }).encode("utf-8")
          return client.post(
               "/api/paystack/webhook",
               content=body,
               headers={SIGNATURE_HEADER: compute_signature(body, "sk_test_secret")},
          )

     def test_webhook_then_callback(self, client, db_session, factory, gateway, sender):
          payment = factory.payment(reference="R1")
          gateway.set_verification("R1")

          self._webhook(client, "R1")
          response = client.get(f"/pay/{payment.id}/callback", params={"trxref": "R1", "reference": "R1"})

          assert response.status_code == 200
          assert "Payment successful" in response.text
          stored = _reload(db_session, payment)
          assert stored.notes.count("Paystack payment confirmed") == 1
          assert len(sender.calls) == 1

     def test_callback_then_webhook(self, client, db_session, factory, gateway, sender):
          payment = factory.payment(reference="R1")
          gateway.set_verification("R1")

          response = client.get(
               f"/pay/{payment.id}/callback",
               params={"reference": "R1"},
               follow_redirects=False,
          )
          assert response.status_code == 303
          assert response.headers["location"] == f"/pay/{payment.id}"
          self._webhook(client, "R1")

          stored = _reload(db_session, payment)
          assert stored.status == PaymentStatus.PAID
          assert stored.notes.count("Paystack payment confirmed") == 1
          assert len(sender.calls) == 1


class TestCallbackPages:

     def test_unknown_payment_page(self, client):
          response = client.get("/pay/4242/callback", params={"reference": "X"})
          assert response.status_code == 404
          assert "Payment not found" in response.text

     def test_processing_page(self, client, factory):
          payment = factory.payment(reference="R1")
          response = client.get(f"/pay/{payment.id}/callback")
          assert "Payment processing" in response.text

     def test_failed_page_escapes_gateway_text(self, client, factory, gateway):
          payment = factory.payment(reference="R1")
          gateway.set_verification("R1", status="failed", message="<script>x</script>")

          response = client.get(f"/pay/{payment.id}/callback", params={"trxref": "R1"})

          assert "Payment failed" in response.text
          assert "<script>" not in response.text

     def test_pay_page_redirects_to_checkout(self, client, factory, gateway):
          payment = factory.payment()
          response = client.get(f"/pay/{payment.id}", follow_redirects=False)

          assert response.status_code == 303
          assert response.headers["location"] == f"https://checkout.paystack.com/PAY-{payment.id}"
          assert len(gateway.initialize_calls) == 1

     def test_paid_payment_shows_receipt(self, client, factory, gateway):
          payment = factory.payment(
               reference="R1",
               status=PaymentStatus.PAID,
               payment_method="Paystack (card)",
               paid_date=datetime(2024, 6, 1, 10, 0),
          )

          response = client.get(f"/pay/{payment.id}")

          assert response.status_code == 200
          assert response.headers["content-type"].startswith("text/html")
          assert "Payment receipt" in response.text
          assert "NGN 5,000.00" in response.text
          assert "01 Jun 2024" in response.text
          assert gateway.initialize_calls == []

     def test_gateway_error_page_is_escaped(self, client, factory, gateway):
          payment = factory.payment()
          gateway.initialize_error = GatewayError("<b>Paystack down</b>")

          response = client.get(f"/pay/{payment.id}")

          assert "We could not verify your payment" in response.text
          assert "&lt;b&gt;Paystack down&lt;/b&gt;" in response.text
