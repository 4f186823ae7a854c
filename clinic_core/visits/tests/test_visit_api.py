# clinic_core/visits/tests/test_visit_api.py
import pytest

pytestmark = pytest.mark.django_db


def test_treatment_catalog(api_client):
    r = api_client.post(
        "/api/v1/visits/treatments/",
        {"name": "Dental cleaning", "price_cents": 7500, "duration_minutes": 30},
        format="json",
    )
    assert r.status_code == 201, r.data

    listed = api_client.get("/api/v1/visits/treatments/")
    assert listed.status_code == 200
    assert [t["name"] for t in listed.data] == ["Dental cleaning"]


def test_create_visit_with_treatments_uses_catalog_price(api_client, patient, treatment):
    r = api_client.post(
        "/api/v1/visits/",
        {
            "patient": str(patient.id),
            "treatments": [{"treatment_id": str(treatment.id), "quantity": 2}],
        },
        format="json",
    )
    assert r.status_code == 201, r.data
    lines = r.data["visit_treatments"]
    assert len(lines) == 1
    assert lines[0]["quantity"] == 2
    assert lines[0]["unit_price_cents"] == treatment.price_cents


def test_create_visit_unknown_patient_is_404(api_client):
    r = api_client.post(
        "/api/v1/visits/",
        {"patient": "00000000-0000-0000-0000-000000000999"},
        format="json",
    )
    assert r.status_code == 404


def test_visit_then_bill(api_client, visit):
    r = api_client.get(f"/api/v1/visits/{visit.id}/")
    assert r.status_code == 200

    bill = api_client.post("/api/v1/billing/bills/from_visit/", {"visit_id": str(visit.id)}, format="json")
    assert bill.status_code == 201
    assert bill.data["subtotal_cents"] == 10000


def test_patch_visit_header(api_client, visit):
    r = api_client.patch(
        f"/api/v1/visits/{visit.id}/",
        {"status": "in_progress", "notes": "Follow-up in two weeks"},
        format="json",
    )
    assert r.status_code == 200, r.data
    assert r.data["status"] == "in_progress"
    assert r.data["notes"] == "Follow-up in two weeks"


def test_patch_visit_rejects_unknown_status(api_client, visit):
    r = api_client.patch(f"/api/v1/visits/{visit.id}/", {"status": "lost"}, format="json")
    assert r.status_code == 400
    assert r.data["error"]["code"] == "validation_error"


def test_add_and_remove_visit_treatment_changes_visit_bill(api_client, visit, treatment):
    from clinic_core.visits.models import Treatment

    xray = Treatment.objects.create(name="X-ray", price_cents=4000)

    added = api_client.post(
        f"/api/v1/visits/{visit.id}/treatments/",
        {"treatment_id": str(xray.id), "quantity": 2},
        format="json",
    )
    assert added.status_code == 201, added.data
    assert added.data["unit_price_cents"] == 4000

    bill = api_client.post("/api/v1/billing/bills/from_visit/", {"visit_id": str(visit.id)}, format="json")
    assert bill.data["subtotal_cents"] == 10000 + 8000

    removed = api_client.delete(f"/api/v1/visits/{visit.id}/treatments/{added.data['id']}/")
    assert removed.status_code == 204

    r = api_client.get(f"/api/v1/visits/{visit.id}/")
    assert [t["treatment_name"] for t in r.data["visit_treatments"]] == [treatment.name]

    # the bill already issued keeps its lines
    issued = api_client.get(f"/api/v1/billing/bills/{bill.data['id']}/")
    assert len(issued.data["items"]) == 2


def test_remove_treatment_of_other_visit_is_404(api_client, visit, patient):
    from clinic_core.visits.models import Visit

    other = Visit.objects.create(patient=patient)
    line = visit.visit_treatments.get()

    r = api_client.delete(f"/api/v1/visits/{other.id}/treatments/{line.id}/")
    assert r.status_code == 404
    assert visit.visit_treatments.count() == 1
