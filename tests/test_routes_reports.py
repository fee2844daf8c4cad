from datetime import datetime, timedelta, timezone

from tests.conftest import as_user, insert_report

API = "/api/v1/reports"


def submit_form(**overrides):
    form = {
        "title": "Overflowing drain",
        "description": "Drain overflowing onto the road since morning.",
        "category": "sanitation",
        "severity": "medium",
        "priority": "medium",
        "municipalityId": "ktm",
        "lat": "27.7172",
        "lng": "85.3240",
        "address": "Baneshwor",
        "ward": "10",
    }
    form.update(overrides)
    return form


def jpeg(name="drain.jpg", size=2048):
    return ("photos", (name, b"\xff\xd8" + b"0" * size, "image/jpeg"))


def test_submit_report(client, storage):
    response = client.post(
        API, data=submit_form(), files=[jpeg(), jpeg("second.jpg")], headers=as_user("citizen-1")
    )

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "SUCCESS"
    assert body["message"] == "Report created successfully"
    assert body["options"] is None
    report = body["data"]
    assert report["status"] == "pending"
    assert report["citizenId"] == "citizen-1"
    assert report["municipality"]["id"] == "ktm"
    assert report["location"]["coordinates"] == {"lat": 27.7172, "lng": 85.324}
    assert report["validationInfo"]["totalFiles"] == 2
    assert report["photos"] == [u["url"] for u in storage.uploads]


def test_submit_category_not_accepted(client):
    form = submit_form(category="electricity", municipalityId="pokhara", lat="28.2096", lng="83.9856")

    response = client.post(API, data=form, headers=as_user("citizen-1"))

    assert response.status_code == 400
    assert response.json() == {
        "data": {"acceptedCategories": ["road", "water"]},
        "message": "This municipality doesn't accept electricity reports",
        "status": "VALIDATION_FAILED",
        "options": None,
    }


def test_submit_malformed_category(client):
    response = client.post(API, data=submit_form(category="potholes"), headers=as_user("citizen-1"))

    assert response.status_code == 400
    assert response.json()["status"] == "VALIDATION_FAILED"


def test_submit_unknown_municipality(client):
    response = client.post(API, data=submit_form(municipalityId="nowhere"), headers=as_user("citizen-1"))

    assert response.status_code == 404
    assert response.json()["status"] == "NOT_FOUND"


def test_submit_requires_user(client):
    response = client.post(API, data=submit_form())

    assert response.status_code == 401
    assert response.json()["status"] == "UNAUTHENTICATED"


def test_unknown_user(client):
    response = client.get(f"{API}/mine", headers=as_user("nobody"))

    assert response.status_code == 401
    assert response.json()["message"] == "Unknown user"


def test_role_without_capability(client):
    response = client.post(API, data=submit_form(), headers=as_user("sponsor-1"))

    assert response.status_code == 403
    assert response.json()["status"] == "ACCESS_DENIED"


def test_suspended_user_has_no_capabilities(client):
    response = client.get(f"{API}/mine", headers=as_user("citizen-suspended"))

    assert response.status_code == 403


def test_list_my_reports(client, db):
    insert_report(db, "mine")
    insert_report(db, "theirs", citizen_id="citizen-2")

    response = client.get(f"{API}/mine", params={"limit": 5}, headers=as_user("citizen-1"))

    body = response.json()
    assert response.status_code == 200
    assert [r["id"] for r in body["data"]] == ["mine"]
    assert body["pagination"] == {"page": 1, "limit": 5, "total": 1, "pages": 1}


def test_admin_listing_is_scoped_to_own_municipality(client, db):
    insert_report(db, "ktm-1")
    insert_report(db, "pkr-1", municipality_id="pokhara")

    response = client.get(API, params={"municipalityId": "pokhara"}, headers=as_user("admin-ktm"))

    assert [r["id"] for r in response.json()["data"]] == ["ktm-1"]


def test_system_admin_lists_everything(client, db):
    insert_report(db, "ktm-1")
    insert_report(db, "pkr-1", municipality_id="pokhara")

    response = client.get(API, params={"sortOrder": "asc"}, headers=as_user("sysadmin"))

    assert response.json()["pagination"]["total"] == 2


def test_citizen_cannot_list_all(client):
    assert client.get(API, headers=as_user("citizen-1")).status_code == 403


def test_get_report(client, db):
    insert_report(db, "r1")

    response = client.get(f"{API}/r1", headers=as_user("staff-ktm"))

    assert response.status_code == 200
    assert response.json()["data"]["citizen"]["name"] == "Sita Sharma"


def test_citizen_cannot_read_another_citizens_report(client, db):
    insert_report(db, "r1")

    response = client.get(f"{API}/r1", headers=as_user("citizen-2"))

    assert response.status_code == 404
    assert response.json()["status"] == "NOT_FOUND"


def test_staff_cannot_read_other_municipality_report(client, db):
    insert_report(db, "r1")

    response = client.get(f"{API}/r1", headers=as_user("admin-pokhara"))

    assert response.status_code == 404


def test_get_missing_report(client):
    response = client.get(f"{API}/missing", headers=as_user("citizen-1"))

    assert response.status_code == 404
    assert response.json() == {"data": None, "message": "Report not found", "status": "NOT_FOUND", "options": None}


def test_update_report_form(client, db):
    insert_report(db, "r1")

    response = client.put(
        f"{API}/r1", data={"title": "Light pole leaning too"}, files=[jpeg()], headers=as_user("citizen-1")
    )

    data = response.json()["data"]
    assert response.status_code == 200
    assert data["title"] == "Light pole leaning too"
    assert len(data["photos"]) == 1


def test_update_address_keeps_coordinates(client, db):
    insert_report(db, "r1")

    response = client.put(f"{API}/r1", data={"address": "Thamel"}, headers=as_user("citizen-1"))

    assert response.status_code == 200
    location = db.collection("reports").document("r1").get().to_dict()["location"]
    assert location == {"coordinates": {"lat": 27.7172, "lng": 85.3240}, "address": "Thamel", "ward": "22"}


def test_delete_report(client, db):
    insert_report(db, "r1")

    response = client.delete(f"{API}/r1", headers=as_user("citizen-1"))

    assert response.status_code == 200
    assert response.json()["data"] is None
    assert not db.collection("reports").document("r1").get().exists


def test_resolved_report_status_change_rejected(client, db):
    insert_report(db, "r1", status="resolved")

    response = client.put(f"{API}/r1/status", json={"status": "in_progress"}, headers=as_user("staff-ktm"))

    assert response.status_code == 400
    assert response.json()["data"] == {"currentStatus": "resolved", "allowedTransitions": []}


def test_status_change_cross_municipality(client, db):
    insert_report(db, "r1", status="assigned")

    response = client.put(f"{API}/r1/status", json={"status": "in_progress"}, headers=as_user("staff-pokhara"))

    assert response.status_code == 403
    assert db.collection("reports").document("r1").get().to_dict()["status"] == "assigned"


def test_citizen_cannot_change_status(client, db):
    insert_report(db, "r1")

    response = client.put(f"{API}/r1/status", json={"status": "resolved"}, headers=as_user("citizen-1"))

    assert response.status_code == 403


def test_assign_report(client, db):
    insert_report(db, "r1")
    due = (datetime.now(timezone.utc) + timedelta(days=5)).isoformat()

    response = client.put(
        f"{API}/r1/assign",
        json={"assignedStaffId": "staff-ktm", "priority": "high", "dueDate": due, "notes": "Bring ladder"},
        headers=as_user("admin-ktm"),
    )

    data = response.json()["data"]
    assert response.status_code == 200
    assert data["status"] == "assigned"
    assert data["assignedStaff"]["id"] == "staff-ktm"
    assert data["assignmentNotes"] == "Bring ladder"


def test_field_staff_cannot_assign(client, db):
    insert_report(db, "r1")

    response = client.put(f"{API}/r1/assign", json={"assignedStaffId": "staff-ktm"}, headers=as_user("staff-ktm"))

    assert response.status_code == 403


def test_assigned_listing(client, db):
    insert_report(db, "r1", status="assigned", assigned_staff_id="staff-ktm")

    response = client.get(f"{API}/assigned", headers=as_user("staff-ktm"))

    assert [r["id"] for r in response.json()["data"]] == ["r1"]


def test_dashboard_counts(client, db):
    insert_report(db, "k1")
    insert_report(db, "k2", status="resolved")
    insert_report(db, "p1", municipality_id="pokhara")

    response = client.get(f"{API}/dashboard/counts", headers=as_user("admin-ktm"))

    assert response.json()["data"] == {"total": 2, "pending": 1, "assigned": 0, "in_progress": 0, "resolved": 1}
