"""
Telemedicine appointment, call log and availability endpoint tests.
"""

from datetime import datetime, timedelta, timezone

from fakes import bearer
from homecare.domain.entities.profile import Profile

APPOINTMENTS = "/telemedicine/appointments"
CALL_LOGS = "/telemedicine/call-logs"
AVAILABILITY = "/telemedicine/availability"


# -----------------------------------------------------------------------------
# Appointments: visibility
# -----------------------------------------------------------------------------


def test_patient_lists_only_own_appointments(client, appointments):
    appointments.add(patientId="patient-1", reason="Mine")
    appointments.add(patientUid="patient-1", reason="Legacy mine")
    appointments.add(patientId="patient-2", reason="Theirs")

    response = client.get(APPOINTMENTS, headers=bearer("patient-token"))

    assert response.status_code == 200
    listed = response.json()["appointments"]
    assert {a["reason"] for a in listed} == {"Mine", "Legacy mine"}
    assert {a["patientId"] for a in listed} == {"patient-1"}


def test_provider_sees_assigned_and_unassigned_requests(client, appointments):
    appointments.add(providerId="doc-1", status="upcoming", reason="Assigned")
    appointments.add(providerUid="doc-1", status="upcoming", reason="Legacy assigned")
    appointments.add(status="requested", reason="Pool")
    appointments.add(providerId="doc-2", status="requested", reason="Other doctor")
    appointments.add(providerId=None, status="upcoming", reason="Unassigned but accepted")

    response = client.get(APPOINTMENTS, headers=bearer("doctor-token"))

    assert {a["reason"] for a in response.json()["appointments"]} == {"Assigned", "Legacy assigned", "Pool"}


def test_admin_lists_every_appointment(client, appointments):
    appointments.add(patientId="patient-1")
    appointments.add(patientId="patient-2", providerId="doc-2")

    response = client.get(APPOINTMENTS, headers=bearer("admin-token"))

    assert len(response.json()["appointments"]) == 2


def test_caller_without_telemedicine_role_cannot_list(client, profiles):
    profiles.profiles["stranger-1"] = Profile(role="billing")

    response = client.get(APPOINTMENTS, headers=bearer("stranger-token"))

    assert response.status_code == 403
    assert response.json()["detail"] == "Not allowed"


def test_legacy_appointment_gets_client_defaults(client, appointments):
    appointment_id = appointments.add(patientUid="patient-1")

    [appointment] = client.get(APPOINTMENTS, headers=bearer("patient-token")).json()["appointments"]

    assert appointment["id"] == appointment_id
    assert appointment["status"] == "requested"
    assert appointment["specialistLevel"] == "General"
    assert appointment["isVideo"] is False
    assert appointment["providerId"] is None
    assert appointment["channelName"] == f"fausford-{appointment_id}"
    assert appointment["requestedAt"] is not None


def test_appointments_require_a_token(client):
    response = client.get(APPOINTMENTS)

    assert response.status_code == 401


# -----------------------------------------------------------------------------
# Appointments: pending queue
# -----------------------------------------------------------------------------


def _pending_fixture(appointments):
    appointments.add(status="requested", reason="Pool")
    appointments.add(providerId="doc-1", status="requested", reason="Mine")
    appointments.add(providerId="doc-2", status="requested", reason="Other")
    appointments.add(providerId="doc-1", status="upcoming", reason="Accepted")


def test_pending_includes_unassigned_requests_by_default(client, appointments):
    _pending_fixture(appointments)

    response = client.get("/telemedicine/pending", headers=bearer("doctor-token"))

    assert response.status_code == 200
    assert {a["reason"] for a in response.json()["appointments"]} == {"Pool", "Mine"}


def test_pending_can_exclude_unassigned_requests(client, appointments):
    _pending_fixture(appointments)

    response = client.get("/telemedicine/pending?includeUnassigned=false", headers=bearer("doctor-token"))

    assert [a["reason"] for a in response.json()["appointments"]] == ["Mine"]


def test_admin_pending_lists_every_request(client, appointments):
    _pending_fixture(appointments)

    response = client.get("/telemedicine/pending", headers=bearer("admin-token"))

    assert {a["reason"] for a in response.json()["appointments"]} == {"Pool", "Mine", "Other"}


def test_patient_cannot_view_pending_queue(client):
    response = client.get("/telemedicine/pending", headers=bearer("patient-token"))

    assert response.status_code == 403
    assert response.json()["detail"] == "Not allowed"


# -----------------------------------------------------------------------------
# Appointments: create
# -----------------------------------------------------------------------------


def test_patient_requests_appointment_with_provider(client, appointments):
    response = client.post(
        APPOINTMENTS,
        json={"reason": "Rash", "isVideo": True, "providerId": "doc-1", "preferredStartAt": "2030-01-01T10:00:00Z"},
        headers=bearer("patient-token"),
    )

    assert response.status_code == 200
    appointment = response.json()["appointment"]
    assert appointment["patientId"] == "patient-1"
    assert appointment["status"] == "requested"
    assert appointment["isVideo"] is True
    assert appointment["channelName"] == f"fausford-{appointment['id']}"
    assert appointment["providerDoxyRoomUrl"] == "https://doxy.me/drgrey"
    stored = appointments.find(appointment["id"])
    assert stored["requestedStartAt"] == datetime(2030, 1, 1, 10, tzinfo=timezone.utc)
    assert stored["specialistLevel"] == "General"


def test_provider_without_room_link_leaves_it_empty(client, appointments):
    response = client.post(APPOINTMENTS, json={"providerId": "doc-2"}, headers=bearer("patient-token"))

    assert response.json()["appointment"]["providerDoxyRoomUrl"] is None


def test_patient_cannot_book_for_someone_else(client, appointments):
    response = client.post(APPOINTMENTS, json={"patientId": "patient-2"}, headers=bearer("patient-token"))

    assert response.status_code == 403
    assert response.json()["message"] == "patientId must match auth user"
    assert appointments.docs == []


def test_admin_must_name_the_patient(client, appointments):
    response = client.post(APPOINTMENTS, json={"reason": "Follow-up"}, headers=bearer("admin-token"))

    assert response.status_code == 400
    assert response.json()["message"] == "patientId is required"


def test_admin_books_for_legacy_patient_uid(client, appointments):
    response = client.post(APPOINTMENTS, json={"patientUid": "patient-2"}, headers=bearer("admin-token"))

    assert response.status_code == 200
    assert appointments.find(response.json()["appointment"]["id"])["patientId"] == "patient-2"


def test_new_appointment_must_start_requested(client, appointments):
    response = client.post(APPOINTMENTS, json={"status": "upcoming"}, headers=bearer("patient-token"))

    assert response.status_code == 400
    assert response.json()["message"] == "status must be requested"
    assert appointments.docs == []


def test_nurse_cannot_book_appointments(client):
    response = client.post(APPOINTMENTS, json={"patientId": "patient-1"}, headers=bearer("nurse-token"))

    assert response.status_code == 403
    assert response.json()["detail"] == "Not allowed"


# -----------------------------------------------------------------------------
# Appointments: update, complete, delete
# -----------------------------------------------------------------------------


def test_provider_accepts_with_legacy_key_and_room_link_is_attached(client, appointments):
    appointment_id = appointments.add(patientId="patient-1", status="requested")

    response = client.patch(
        f"{APPOINTMENTS}/{appointment_id}",
        json={"providerUid": "doc-1", "status": "upcoming", "scheduledAt": "2030-01-02T09:00:00Z"},
        headers=bearer("doctor-token"),
    )

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    stored = appointments.find(appointment_id)
    assert stored["providerId"] == "doc-1"
    assert "providerUid" not in stored
    assert stored["providerDoxyRoomUrl"] == "https://doxy.me/drgrey"
    assert stored["status"] == "upcoming"
    assert stored["scheduledAt"] == datetime(2030, 1, 2, 9, tzinfo=timezone.utc)


def test_unassigning_provider_clears_room_link(client, appointments):
    appointment_id = appointments.add(providerId="doc-1", providerDoxyRoomUrl="https://doxy.me/drgrey")

    response = client.patch(f"{APPOINTMENTS}/{appointment_id}", json={"providerId": None}, headers=bearer("admin-token"))

    assert response.status_code == 200
    stored = appointments.find(appointment_id)
    assert stored["providerId"] is None
    assert stored["providerDoxyRoomUrl"] is None


def test_patient_edits_own_request_and_it_stays_requested(client, appointments):
    appointment_id = appointments.add(patientId="patient-1", status="requested", reason="Old")

    response = client.patch(
        f"{APPOINTMENTS}/{appointment_id}",
        json={"reason": "New", "status": "upcoming", "preferredStartAt": "2030-01-03T08:00:00Z"},
        headers=bearer("patient-token"),
    )

    assert response.status_code == 200
    stored = appointments.find(appointment_id)
    assert stored["reason"] == "New"
    assert stored["status"] == "requested"
    assert stored["requestedStartAt"] == datetime(2030, 1, 3, 8, tzinfo=timezone.utc)
    assert "preferredStartAt" not in stored


def test_patient_cannot_edit_accepted_appointment(client, appointments):
    appointment_id = appointments.add(patientId="patient-1", status="upcoming", reason="Old")

    response = client.patch(f"{APPOINTMENTS}/{appointment_id}", json={"reason": "x"}, headers=bearer("patient-token"))

    assert response.status_code == 403
    assert response.json()["error"] == "FORBIDDEN"
    assert appointments.find(appointment_id)["reason"] == "Old"


def test_patient_cannot_edit_someone_elses_request(client, appointments):
    appointment_id = appointments.add(patientId="patient-2", status="requested")

    response = client.patch(f"{APPOINTMENTS}/{appointment_id}", json={"reason": "x"}, headers=bearer("patient-token"))

    assert response.status_code == 403
    assert "reason" not in appointments.find(appointment_id)


def test_update_missing_appointment_is_not_found(client):
    response = client.patch(f"{APPOINTMENTS}/{'c' * 24}", json={"reason": "x"}, headers=bearer("admin-token"))

    assert response.status_code == 404
    assert response.json()["message"] == "Appointment not found"


def test_assigned_provider_completes_and_closes_open_call(client, appointments, call_logs):
    appointment_id = appointments.add(providerId="doc-1", status="upcoming")
    ended_at = datetime(2024, 1, 1, 9, 30, tzinfo=timezone.utc)
    closed_id = call_logs.add(appointmentId=appointment_id, endedAt=ended_at, durationSeconds=60, status="ended")
    open_id = call_logs.add(
        appointmentId=appointment_id, startedAt=datetime.now(timezone.utc) - timedelta(minutes=10), status="started"
    )

    response = client.post(f"{APPOINTMENTS}/{appointment_id}/complete", headers=bearer("doctor-token"))

    assert response.status_code == 200
    assert appointments.find(appointment_id)["status"] == "completed"
    closed_call = call_logs.find(open_id)
    assert closed_call["status"] == "ended"
    assert closed_call["endedAt"] is not None
    assert 600 <= closed_call["durationSeconds"] < 660
    assert call_logs.find(closed_id)["endedAt"] == ended_at


def test_nurse_assigned_under_legacy_key_completes(client, appointments):
    appointment_id = appointments.add(providerUid="nurse-1", status="upcoming")

    response = client.post(f"{APPOINTMENTS}/{appointment_id}/complete", headers=bearer("nurse-token"))

    assert response.status_code == 200
    assert appointments.find(appointment_id)["status"] == "completed"


def test_other_provider_cannot_complete(client, appointments):
    appointment_id = appointments.add(providerId="doc-2", status="upcoming")

    response = client.post(f"{APPOINTMENTS}/{appointment_id}/complete", headers=bearer("doctor-token"))

    assert response.status_code == 403
    assert appointments.find(appointment_id)["status"] == "upcoming"


def test_complete_missing_appointment_is_not_found(client):
    response = client.post(f"{APPOINTMENTS}/not-an-id/complete", headers=bearer("admin-token"))

    assert response.status_code == 404
    assert response.json()["message"] == "Appointment not found"


def test_admin_deletes_appointment(client, appointments):
    appointment_id = appointments.add(patientId="patient-1")

    response = client.delete(f"{APPOINTMENTS}/{appointment_id}", headers=bearer("admin-token"))

    assert response.status_code == 200
    assert appointments.docs == []


def test_doctor_cannot_delete_appointment(client, appointments):
    appointment_id = appointments.add(patientId="patient-1")

    response = client.delete(f"{APPOINTMENTS}/{appointment_id}", headers=bearer("doctor-token"))

    assert response.status_code == 403
    assert response.json()["detail"] == "Admin only"
    assert appointments.find(appointment_id) is not None


def test_delete_missing_appointment_is_not_found(client):
    response = client.delete(f"{APPOINTMENTS}/{'d' * 24}", headers=bearer("admin-token"))

    assert response.status_code == 404


# -----------------------------------------------------------------------------
# Call logs
# -----------------------------------------------------------------------------


def test_call_logs_are_visible_by_role(client, call_logs):
    call_logs.add(patientId="patient-1", providerId="doc-1", channelName="a")
    call_logs.add(patientUid="patient-1", providerUid="doc-2", channelName="b")
    call_logs.add(patientId="patient-2", providerId="doc-2", channelName="c")

    def channels(token):
        return {log["channelName"] for log in client.get(CALL_LOGS, headers=bearer(token)).json()["callLogs"]}

    assert channels("patient-token") == {"a", "b"}
    assert channels("doctor-token") == {"a"}
    assert channels("doctor2-token") == {"b", "c"}
    assert channels("admin-token") == {"a", "b", "c"}


def test_doctor_starts_call_log_for_appointment(client, call_logs):
    response = client.post(
        CALL_LOGS, json={"appointmentId": "appt-1", "patientId": "patient-1", "isVideo": True}, headers=bearer("doctor-token")
    )

    assert response.status_code == 200
    stored = call_logs.find(response.json()["id"])
    assert stored["providerId"] == "doc-1"
    assert stored["channelName"] == "fausford-appt-1"
    assert stored["status"] == "started"
    assert stored["startedAt"] is not None
    assert stored["endedAt"] is None


def test_doctor_cannot_log_call_for_another_provider(client, call_logs):
    response = client.post(CALL_LOGS, json={"providerId": "doc-2"}, headers=bearer("doctor-token"))

    assert response.status_code == 403
    assert response.json()["message"] == "providerId must match auth user"
    assert call_logs.docs == []


def test_admin_logs_call_for_provider_given_by_legacy_key(client, call_logs):
    response = client.post(CALL_LOGS, json={"providerUid": "doc-2"}, headers=bearer("admin-token"))

    assert call_logs.find(response.json()["id"])["providerId"] == "doc-2"


def test_nurse_cannot_start_call_log(client):
    response = client.post(CALL_LOGS, json={}, headers=bearer("nurse-token"))

    assert response.status_code == 403
    assert response.json()["detail"] == "Doctor only"


def test_ending_call_fills_duration_and_status(client, call_logs):
    log_id = call_logs.add(providerId="doc-1", startedAt=datetime(2030, 1, 1, 10, tzinfo=timezone.utc), status="started")

    response = client.patch(f"{CALL_LOGS}/{log_id}", json={"endedAt": "2030-01-01T10:05:30Z"}, headers=bearer("doctor-token"))

    assert response.status_code == 200
    stored = call_logs.find(log_id)
    assert stored["durationSeconds"] == 330
    assert stored["status"] == "ended"


def test_explicit_duration_is_kept(client, call_logs):
    log_id = call_logs.add(providerId="doc-1", startedAt=datetime(2030, 1, 1, 10, tzinfo=timezone.utc), status="started")

    client.patch(
        f"{CALL_LOGS}/{log_id}",
        json={"endedAt": "2030-01-01T10:05:30Z", "durationSeconds": 12},
        headers=bearer("doctor-token"),
    )

    stored = call_logs.find(log_id)
    assert stored["durationSeconds"] == 12
    assert stored["status"] == "started"


def test_other_doctor_cannot_update_call_log(client, call_logs):
    log_id = call_logs.add(providerId="doc-2", status="started")

    response = client.patch(f"{CALL_LOGS}/{log_id}", json={"status": "ended"}, headers=bearer("doctor-token"))

    assert response.status_code == 403
    assert response.json()["error"] == "FORBIDDEN"
    assert call_logs.find(log_id)["status"] == "started"


def test_update_missing_call_log_is_not_found(client):
    response = client.patch(f"{CALL_LOGS}/{'e' * 24}", json={"status": "ended"}, headers=bearer("admin-token"))

    assert response.status_code == 404
    assert response.json()["message"] == "Call log not found"


def test_admin_deletes_call_log(client, call_logs):
    log_id = call_logs.add(providerId="doc-1")

    assert client.delete(f"{CALL_LOGS}/{log_id}", headers=bearer("doctor-token")).status_code == 403
    assert client.delete(f"{CALL_LOGS}/{log_id}", headers=bearer("admin-token")).status_code == 200
    assert call_logs.docs == []


# -----------------------------------------------------------------------------
# Provider availability
# -----------------------------------------------------------------------------


def test_provider_publishes_sanitised_slots(client, availability):
    weekly = {"Mon": {"enabled": True, "start": "09:00", "end": "17:00"}}
    slots = [
        {},
        "junk",
        {"weekly": weekly, "providerLevel": "Senior", "color": "red"},
        {
            "calendarSlots": [
                {"startAt": "2030-01-01T09:00:00Z", "endAt": "2030-01-01T10:00:00Z", "label": "am"},
                {"startAt": "garbage", "endAt": "2030-01-01T10:00:00Z"},
                {"startAt": "2030-01-02T09:00:00Z"},
            ]
        },
        {"specialties": "cardiology"},
    ]

    response = client.put(f"{AVAILABILITY}/doc-1", json={"slots": slots}, headers=bearer("doctor-token"))

    assert response.status_code == 200
    [stored] = availability.docs
    assert stored["providerId"] == "doc-1"
    assert stored["updatedByUid"] == "doc-1"
    assert stored["createdAt"] is not None
    assert stored["slots"] == [
        {"weekly": weekly, "providerLevel": "Senior"},
        {
            "calendarSlots": [
                {
                    "startAt": datetime(2030, 1, 1, 9, tzinfo=timezone.utc),
                    "endAt": datetime(2030, 1, 1, 10, tzinfo=timezone.utc),
                    "label": "am",
                }
            ]
        },
    ]


def test_republishing_replaces_slots_of_legacy_record(client, availability):
    created = datetime(2024, 5, 1, tzinfo=timezone.utc)
    availability.add(providerUid="doc-1", slots=[{"providerLevel": "Junior"}], createdAt=created)

    response = client.put(f"{AVAILABILITY}/doc-1", json={"slots": "not a list"}, headers=bearer("doctor-token"))

    assert response.status_code == 200
    [stored] = availability.docs
    assert stored["slots"] == []
    assert stored["providerId"] == "doc-1"
    assert stored["createdAt"] == created


def test_admin_publishes_for_a_provider(client, availability):
    response = client.put(f"{AVAILABILITY}/nurse-1", json={"slots": [{"providerLevel": "RN"}]}, headers=bearer("admin-token"))

    assert response.status_code == 200
    assert availability.docs[0]["updatedByUid"] == "admin-1"


def test_provider_cannot_publish_for_someone_else(client, availability):
    response = client.put(f"{AVAILABILITY}/doc-2", json={"slots": []}, headers=bearer("doctor-token"))

    assert response.status_code == 403
    assert response.json()["message"] == "Not allowed"
    assert availability.docs == []


def test_patient_cannot_publish_availability(client, availability):
    response = client.put(f"{AVAILABILITY}/patient-1", json={"slots": []}, headers=bearer("patient-token"))

    assert response.status_code == 403


def test_any_signed_in_caller_reads_availability(client, availability):
    availability.add(providerId="doc-1", slots=[{"providerLevel": "Senior"}])
    availability.add(providerUid="nurse-1", slots=[])

    listed = client.get(AVAILABILITY, headers=bearer("patient-token")).json()
    one = client.get(f"{AVAILABILITY}/nurse-1", headers=bearer("patient-token")).json()
    missing = client.get(f"{AVAILABILITY}/doc-2", headers=bearer("patient-token"))

    assert {entry["providerId"] for entry in listed} == {"doc-1", "nurse-1"}
    assert one["providerId"] == "nurse-1"
    assert missing.status_code == 200
    assert missing.json() is None


def test_provider_withdraws_own_availability(client, availability):
    availability.add(providerId="doc-1", slots=[])

    assert client.delete(f"{AVAILABILITY}/doc-1", headers=bearer("nurse-token")).status_code == 403
    assert client.delete(f"{AVAILABILITY}/doc-1", headers=bearer("doctor-token")).status_code == 200
    assert availability.docs == []
    assert client.delete(f"{AVAILABILITY}/doc-1", headers=bearer("doctor-token")).status_code == 200
