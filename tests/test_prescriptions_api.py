"""
Prescription endpoint tests.
"""

from datetime import datetime, timedelta, timezone

from fakes import bearer

BASE = "/patients/chart-1/prescriptions"


def ago(**kwargs) -> datetime:
    return datetime.now(timezone.utc) - timedelta(**kwargs)


def test_patient_sees_records_filed_under_every_linked_id(client, prescriptions, cache):
    prescriptions.add(patientId="chart-1", medication="Filed by staff")
    prescriptions.add(patientId="patient-1", medication="Filed by patient")
    prescriptions.add(patientUid="legacy-1", medication="Legacy record")
    prescriptions.add(patientId="patient-2", medication="Someone else")

    response = client.get("/patients/patient-1/prescriptions", headers=bearer("patient-token"))

    assert response.status_code == 200
    medications = {rx["medication"] for rx in response.json()["prescriptions"]}
    assert medications == {"Filed by staff", "Filed by patient", "Legacy record"}
    assert len(cache) == 1


def test_doctor_listing_by_auth_id_finds_chart_records(client, prescriptions):
    prescriptions.add(patientId="chart-1", medication="Metformin")

    response = client.get("/patients/patient-1/prescriptions", headers=bearer("doctor-token"))

    assert [rx["medication"] for rx in response.json()["prescriptions"]] == ["Metformin"]


def test_listing_survives_chart_store_outage(client, prescriptions, charts):
    charts.fail_all(ConnectionError("down"))
    prescriptions.add(patientId="chart-1", medication="Metformin")
    prescriptions.add(patientId="patient-1", medication="Insulin")

    response = client.get("/patients/patient-1/prescriptions", headers=bearer("doctor-token"))

    assert response.status_code == 200
    assert [rx["medication"] for rx in response.json()["prescriptions"]] == ["Insulin"]


def test_list_maps_legacy_prescriber_fields(client, prescriptions):
    prescriptions.add(patientId="chart-1", prescribedByUid="doc-9", medication="Aspirin", status=None)

    rx = client.get(BASE, headers=bearer("admin-token")).json()["prescriptions"][0]

    assert rx["doctorId"] == "doc-9"
    assert rx["doctorName"] == "doc-9"
    assert rx["status"] == "active"
    assert rx["isEdited"] is False


def test_doctor_creates_prescription_with_defaults(client, prescriptions):
    response = client.post(BASE, json={"medication": "Amoxicillin", "dosage": "500mg"}, headers=bearer("doctor-token"))

    assert response.status_code == 200
    stored = prescriptions.find(response.json()["id"])
    assert stored["patientId"] == "chart-1"
    assert stored["doctorId"] == "doc-1"
    assert stored["doctorName"] == "Dr. Grey"
    assert stored["status"] == "active"
    assert stored["frequency"] == ""
    assert stored["isEdited"] is False
    assert stored["editHistory"] == []


def test_nurse_cannot_create_prescription(client, prescriptions):
    response = client.post(BASE, json={"medication": "Amoxicillin"}, headers=bearer("nurse-token"))

    assert response.status_code == 403
    assert response.json()["detail"] == "Doctor only"
    assert prescriptions.docs == []


def test_creator_edits_details_within_window(client, prescriptions):
    rx_id = prescriptions.add(patientId="chart-1", doctorId="doc-1", medication="A", createdAt=ago(minutes=5))

    response = client.patch(f"{BASE}/{rx_id}", json={"medication": "B"}, headers=bearer("doctor-token"))

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    stored = prescriptions.find(rx_id)
    assert stored["medication"] == "B"
    assert stored["isEdited"] is True
    assert stored["updatedBy"] == "doc-1"
    assert stored["updatedByName"] == "Dr. Grey"
    assert stored["editHistory"][0]["medication"] == "B"


def test_creator_detail_edit_after_window_is_refused(client, prescriptions):
    rx_id = prescriptions.add(patientId="chart-1", doctorId="doc-1", medication="A", createdAt=ago(hours=2))

    response = client.patch(f"{BASE}/{rx_id}", json={"dosage": "2x"}, headers=bearer("doctor-token"))

    assert response.status_code == 403
    body = response.json()
    assert body["error"] == "EDIT_NOT_ALLOWED"
    assert body["details"]["reason"] == "Edit window expired"
    assert prescriptions.find(rx_id)["medication"] == "A"


def test_other_doctor_changes_status_after_handover(client, prescriptions):
    rx_id = prescriptions.add(patientId="chart-1", doctorId="doc-1", status="active", createdAt=ago(hours=25))

    response = client.patch(f"{BASE}/{rx_id}", json={"status": "completed"}, headers=bearer("doctor2-token"))

    assert response.status_code == 200
    assert prescriptions.find(rx_id)["status"] == "completed"


def test_other_doctor_status_change_before_handover_is_refused(client, prescriptions):
    rx_id = prescriptions.add(patientId="chart-1", doctorId="doc-1", status="active", createdAt=ago(hours=1))

    response = client.patch(f"{BASE}/{rx_id}", json={"status": "completed"}, headers=bearer("doctor2-token"))

    assert response.status_code == 403
    assert response.json()["details"]["reason"] == "Edit window"


def test_admin_edits_anything(client, prescriptions):
    rx_id = prescriptions.add(patientId="chart-1", doctorId="doc-1", medication="A", createdAt=ago(days=90))

    response = client.patch(f"{BASE}/{rx_id}", json={"medication": "B"}, headers=bearer("admin-token"))

    assert response.status_code == 200
    assert prescriptions.find(rx_id)["updatedByName"] == "Ada Admin"


def test_empty_patch_is_a_no_op(client, prescriptions):
    rx_id = prescriptions.add(patientId="chart-1", doctorId="doc-1", createdAt=ago(days=3))

    response = client.patch(f"{BASE}/{rx_id}", json={}, headers=bearer("doctor2-token"))

    assert response.status_code == 200
    assert "isEdited" not in prescriptions.find(rx_id)


def test_patch_unknown_prescription_is_not_found(client):
    response = client.patch(f"{BASE}/not-an-object-id", json={"status": "x"}, headers=bearer("admin-token"))

    assert response.status_code == 404
    assert response.json()["error"] == "NOT_FOUND"
    assert response.json()["message"] == "Prescription not found"


def test_patch_is_scoped_to_the_path_patient(client, prescriptions):
    rx_id = prescriptions.add(patientId="chart-2", doctorId="doc-1", createdAt=ago(minutes=1))

    response = client.patch(f"{BASE}/{rx_id}", json={"medication": "B"}, headers=bearer("admin-token"))

    assert response.status_code == 404


def test_admin_deletes_prescription(client, prescriptions):
    rx_id = prescriptions.add(patientId="chart-1")

    response = client.delete(f"{BASE}/{rx_id}", headers=bearer("admin-token"))

    assert response.status_code == 200
    assert prescriptions.docs == []


def test_doctor_cannot_delete_prescription(client, prescriptions):
    rx_id = prescriptions.add(patientId="chart-1")

    response = client.delete(f"{BASE}/{rx_id}", headers=bearer("doctor-token"))

    assert response.status_code == 403
    assert response.json()["detail"] == "Admin only"
    assert prescriptions.find(rx_id) is not None


def test_delete_missing_prescription_is_not_found(client):
    response = client.delete(f"{BASE}/{'0' * 24}", headers=bearer("admin-token"))

    assert response.status_code == 404
