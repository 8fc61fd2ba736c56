import pytest
from pydantic import ValidationError

from print_dispatch.dispatch.receipt import CutMode, Modifier, ReceiptKind
from print_dispatch.web.schemas import EnqueueAcceptedResponse, EnqueueRequest, ReceiptRequest


def test_enqueue_request_snake_and_camel_case():
    a = EnqueueRequest.model_validate({"printer_id": " p1 ", "payload": "x", "content_type": "text/plain"})
    b = EnqueueRequest.model_validate({"printerId": "p1", "payload": "x", "contentType": "text/plain", "receiptType": "kitchen"})
    assert a.printer_id == b.printer_id == "p1"
    assert a.content_type == b.content_type == "text/plain"
    assert b.receipt_kind == "kitchen"


@pytest.mark.parametrize(
    "body",
    [
        {"payload": "x"},
        {"printer_id": "p1"},
        {"printer_id": "p1", "payload": ""},
        {"printer_id": "p1", "payload": ["x"]},
        {"printer_id": "", "payload": "x"},
        {"printer_id": "p" * 129, "payload": "x"},
    ],
)
def test_enqueue_request_rejects(body):
    with pytest.raises(ValidationError):
        EnqueueRequest.model_validate(body)


def test_receipt_request_builds_domain_objects():
    req = ReceiptRequest.model_validate(
        {
            "printer_id": "k1",
            "kind": "kitchen",
            "cut": "full",
            "lines": [
                {"name": "Burger", "quantity": 2, "unit_price": 1200, "category_id": 3, "modifiers": ["no pickles", {"name": "bacon", "price_delta": 150}]},
            ],
            "payment": {"method": "CARD", "amount": 2700, "tip": 300},
        }
    )
    assert req.kind is ReceiptKind.KITCHEN
    assert req.cut is CutMode.FULL

    line = req.lines[0].to_line()
    assert line.category_id == "3"
    assert line.modifiers == [Modifier("no pickles"), Modifier("bacon", 150)]
    assert line.line_total() == 2 * 1350

    pay = req.payment.to_summary()
    assert pay.amount_tendered == 2700
    assert pay.tip == 300


def test_receipt_request_defaults_to_customer():
    req = ReceiptRequest.model_validate({"printerId": "front"})
    assert req.kind is ReceiptKind.CUSTOMER
    assert req.lines == []
    assert req.cut is None


def test_accepted_response_uses_camel_case():
    resp = EnqueueAcceptedResponse(job_id="abc", printer_id="p1", status="QUEUED")
    assert resp.model_dump(by_alias=True) == {
        "success": True,
        "jobId": "abc",
        "printerId": "p1",
        "status": "QUEUED",
        "message": "Print job enqueued successfully",
    }
