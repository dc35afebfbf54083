from datetime import timedelta

from conftest import auth_headers, iso
from vein.config import settings
from vein.core.clock import today
from vein.models import DonationRequest, Notification
from vein.services import donation_request_service, recipient_matcher


def _body(days_from_today=1, **extra):
    body = {
        "requesterName": "A",
        "recipientName": "Patient",
        "recipientDistrict": "Dhaka",
        "recipientUpazila": "Dhanmondi",
        "hospitalName": "DMCH",
        "fullAddress": "Road 1",
        "bloodGroup": "O+",
        "donationDate": iso(today() + timedelta(days=days_from_today)),
        "donationTime": "10:00",
        "requestMessage": "Please help",
    }
    body.update(extra)
    return body


def _notifications(db, email=None):
    db.expire_all()
    q = db.query(Notification)
    if email:
        q = q.filter(Notification.email == email)
    return q.all()


# --- Create ---


def test_create_with_past_date_is_rejected_without_insert(client, db):
    resp = client.post("/donation-requests", json=_body(days_from_today=-1), headers=auth_headers("a@x.com"))

    assert resp.status_code == 400
    assert "past" in resp.json()["detail"]
    assert db.query(DonationRequest).count() == 0
    assert _notifications(db) == []


def test_create_today_is_allowed_and_status_forced_pending(client, db):
    resp = client.post(
        "/donation-requests",
        json=_body(days_from_today=0, donationStatus="done", requesterEmail="someone-else@x.com"),
        headers=auth_headers("a@x.com"),
    )

    assert resp.status_code == 200
    row = db.get(DonationRequest, resp.json()["insertedId"])
    assert row.donation_status == "pending"
    assert row.requester_email == "a@x.com"
    assert row.donation_date == today()


def test_create_accepts_full_iso_timestamp_for_date(client, db):
    tomorrow = today() + timedelta(days=1)
    resp = client.post(
        "/donation-requests",
        json=_body(donationDate=f"{iso(tomorrow)}T00:00:00.000Z"),
        headers=auth_headers("a@x.com"),
    )

    assert resp.status_code == 200
    assert db.get(DonationRequest, resp.json()["insertedId"]).donation_date == tomorrow


def test_utc_timestamp_is_read_as_reference_timezone_date(client, db, monkeypatch):
    monkeypatch.setattr(settings, "date_timezone", "Asia/Dhaka")
    yesterday = today() - timedelta(days=1)
    # 18:00 UTC is local midnight in Dhaka (UTC+6)
    resp = client.post(
        "/donation-requests",
        json=_body(donationDate=f"{iso(yesterday)}T18:00:00.000Z"),
        headers=auth_headers("a@x.com"),
    )

    assert resp.status_code == 200
    assert db.get(DonationRequest, resp.json()["insertedId"]).donation_date == today()


def test_malformed_date_is_a_400(client, db):
    resp = client.post("/donation-requests", json=_body(donationDate="next tuesday"), headers=auth_headers("a@x.com"))

    assert resp.status_code == 400
    assert "donationDate" in resp.json()["detail"]
    assert db.query(DonationRequest).count() == 0


def test_create_fans_out_to_matching_donors_and_staff(client, db, make_user):
    make_user("d1@x.com", blood_group="O+", district="Dhaka")
    make_user("d2@x.com", blood_group="O+", district="Dhaka")
    make_user("other@x.com", blood_group="A+", district="Dhaka")
    make_user("far@x.com", blood_group="O+", district="Khulna")
    make_user("admin@x.com", role="admin")
    make_user("vol@x.com", role="volunteer")
    make_user("blocked-vol@x.com", role="volunteer", status="blocked")

    resp = client.post("/donation-requests", json=_body(), headers=auth_headers("a@x.com"))
    assert resp.status_code == 200

    rows = _notifications(db)
    assert sorted(n.email for n in rows) == ["admin@x.com", "d1@x.com", "d2@x.com", "vol@x.com"]
    for n in rows:
        assert "O+" in n.message
        assert "Dhaka" in n.message
        assert n.is_read is False
        assert n.link == f"/donation-requests/{resp.json()['insertedId']}"


def test_create_with_no_matches_succeeds_with_zero_notifications(client, db):
    resp = client.post("/donation-requests", json=_body(), headers=auth_headers("a@x.com"))

    assert resp.status_code == 200
    assert db.query(DonationRequest).count() == 1
    assert _notifications(db) == []


def test_fan_out_failure_does_not_fail_creation(client, db, make_user, monkeypatch):
    make_user("admin@x.com", role="admin")

    def boom(*args, **kwargs):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(recipient_matcher, "recipients_for_request", boom)
    resp = client.post("/donation-requests", json=_body(), headers=auth_headers("a@x.com"))

    assert resp.status_code == 200
    assert db.query(DonationRequest).count() == 1
    assert _notifications(db) == []


# --- Expiry on read ---


def test_list_all_sweeps_stale_pending_requests(client, db, make_request):
    stale = make_request("a@x.com", days_from_today=-1)
    fresh = make_request("a@x.com", days_from_today=2)
    claimed_past = make_request("b@x.com", days_from_today=-3, status="inprogress")

    resp = client.get("/donation-requests")

    assert resp.status_code == 200
    by_id = {r["id"]: r["donationStatus"] for r in resp.json()}
    assert by_id == {stale.id: "expired", fresh.id: "pending", claimed_past.id: "inprogress"}


def test_list_all_filters_by_status_after_sweep(client, make_request):
    make_request("a@x.com", days_from_today=-1)
    make_request("a@x.com", days_from_today=1)

    resp = client.get("/donation-requests", params={"status": "pending"})

    assert [r["donationStatus"] for r in resp.json()] == ["pending"]


def test_list_mine_sweeps_only_the_owner(client, db, make_request):
    mine = make_request("a@x.com", days_from_today=-1)
    theirs = make_request("b@x.com", days_from_today=-1)

    resp = client.get("/donation-requests/my", params={"email": "a@x.com"}, headers=auth_headers("a@x.com"))

    assert resp.status_code == 200
    assert [(r["id"], r["donationStatus"]) for r in resp.json()] == [(mine.id, "expired")]
    db.expire_all()
    assert db.get(DonationRequest, theirs.id).donation_status == "pending"


def test_list_mine_limit(client, make_request):
    for _ in range(3):
        make_request("a@x.com")

    resp = client.get(
        "/donation-requests/my", params={"email": "a@x.com", "limit": 2}, headers=auth_headers("a@x.com")
    )

    assert len(resp.json()) == 2


def test_get_one_lazily_expires_and_is_idempotent(client, db, make_request, monkeypatch):
    row = make_request("a@x.com", days_from_today=-1)

    first = client.get(f"/donation-requests/{row.id}")
    assert first.status_code == 200
    assert first.json()["donationStatus"] == "expired"

    commits = []
    original = donation_request_service._expire_if_stale

    def spy(session, r, day):
        before = r.donation_status
        original(session, r, day)
        if r.donation_status != before:
            commits.append(r.id)

    monkeypatch.setattr(donation_request_service, "_expire_if_stale", spy)
    second = client.get(f"/donation-requests/{row.id}")
    assert second.json()["donationStatus"] == "expired"
    assert commits == []


def test_get_missing_returns_null(client):
    resp = client.get("/donation-requests/999")
    assert resp.status_code == 200
    assert resp.json() is None


def test_sweep_is_idempotent(db, make_request):
    make_request("a@x.com", days_from_today=-1)
    make_request("a@x.com", days_from_today=-2)

    assert donation_request_service.sweep_expired(db) == 2
    assert donation_request_service.sweep_expired(db) == 0


# --- Update ---


def test_claiming_past_due_request_is_rejected(client, db, make_request):
    row = make_request("a@x.com", days_from_today=-1)

    resp = client.patch(
        f"/donation-requests/{row.id}",
        json={"donationStatus": "inprogress", "donorName": "D", "donorEmail": "d@x.com"},
        headers=auth_headers("d@x.com"),
    )

    assert resp.status_code == 400
    db.expire_all()
    stored = db.get(DonationRequest, row.id)
    assert stored.donation_status == "expired"
    assert stored.donor_email is None


def test_claim_sets_donor_and_notifies_requester(client, db, make_request):
    row = make_request("b@x.com", days_from_today=1)

    resp = client.patch(
        f"/donation-requests/{row.id}",
        json={"donationStatus": "inprogress", "donorName": "D", "donorEmail": "d@x.com"},
        headers=auth_headers("d@x.com"),
    )

    assert resp.status_code == 200
    assert resp.json() == {"matchedCount": 1, "modifiedCount": 1}
    db.expire_all()
    stored = db.get(DonationRequest, row.id)
    assert (stored.donation_status, stored.donor_email) == ("inprogress", "d@x.com")
    assert [n.email for n in _notifications(db)] == ["b@x.com"]


def test_status_done_notifies_only_the_requester(client, db, make_user, make_request):
    make_user("d1@x.com", blood_group="O+", district="Dhaka")
    make_user("admin@x.com", role="admin")
    created = client.post("/donation-requests", json=_body(), headers=auth_headers("b@x.com"))
    request_id = created.json()["insertedId"]
    assert len(_notifications(db)) == 2
    client.patch(
        f"/donation-requests/{request_id}",
        json={"donationStatus": "inprogress", "donorName": "D", "donorEmail": "d1@x.com"},
        headers=auth_headers("d1@x.com"),
    )
    before = {n.id for n in _notifications(db)}
    assert len(before) == 3

    resp = client.patch(
        f"/donation-requests/{request_id}", json={"donationStatus": "done"}, headers=auth_headers("admin@x.com")
    )

    assert resp.status_code == 200
    new = [n for n in _notifications(db) if n.id not in before]
    assert len(new) == 1
    assert new[0].email == "b@x.com"
    assert "done" in new[0].message


def test_patch_without_status_change_sends_nothing(client, db, make_request):
    row = make_request("b@x.com")

    client.patch(f"/donation-requests/{row.id}", json={"hospitalName": "New"}, headers=auth_headers("b@x.com"))
    client.patch(f"/donation-requests/{row.id}", json={"donationStatus": "pending"}, headers=auth_headers("b@x.com"))

    assert _notifications(db) == []
    db.expire_all()
    assert db.get(DonationRequest, row.id).hospital_name == "New"


def test_patch_rejects_unknown_status_and_ignores_identity_fields(client, db, make_request):
    row = make_request("b@x.com")
    headers = auth_headers("b@x.com")

    assert client.patch(f"/donation-requests/{row.id}", json={"donationStatus": "lost"}, headers=headers).status_code == 400
    resp = client.patch(f"/donation-requests/{row.id}", json={"_id": 42, "id": 42, "requestMessage": "m"}, headers=headers)
    assert resp.status_code == 200
    db.expire_all()
    assert db.get(DonationRequest, row.id).request_message == "m"
    assert db.get(DonationRequest, 42) is None


def test_patch_missing_request(client):
    resp = client.patch("/donation-requests/999", json={"donationStatus": "done"}, headers=auth_headers("a@x.com"))
    assert resp.json() == {"matchedCount": 0, "modifiedCount": 0}


def test_cancel_from_inprogress(client, db, make_request):
    row = make_request("b@x.com", status="inprogress")

    resp = client.patch(f"/donation-requests/{row.id}", json={"donationStatus": "canceled"}, headers=auth_headers("b@x.com"))

    assert resp.status_code == 200
    assert "canceled" in _notifications(db, "b@x.com")[0].message


def test_terminal_statuses_cannot_be_reopened(client, db, make_request):
    done = make_request("b@x.com", status="done")
    expired = make_request("b@x.com", days_from_today=-1, status="expired")
    canceled = make_request("b@x.com", status="canceled")
    headers = auth_headers("b@x.com")

    for row, target in ((done, "pending"), (expired, "pending"), (canceled, "inprogress")):
        resp = client.patch(f"/donation-requests/{row.id}", json={"donationStatus": target}, headers=headers)
        assert resp.status_code == 400

    db.expire_all()
    assert [db.get(DonationRequest, r.id).donation_status for r in (done, expired, canceled)] == [
        "done",
        "expired",
        "canceled",
    ]
    assert _notifications(db) == []


def test_stale_pending_cannot_be_completed(client, db, make_request):
    row = make_request("b@x.com", days_from_today=-1)
    headers = auth_headers("b@x.com")

    assert client.patch(f"/donation-requests/{row.id}", json={"donationStatus": "done"}, headers=headers).status_code == 400
    db.expire_all()
    assert db.get(DonationRequest, row.id).donation_status == "expired"
    assert _notifications(db) == []


def test_skipping_and_client_expiry_are_rejected(client, make_request):
    row = make_request("b@x.com", days_from_today=2)
    headers = auth_headers("b@x.com")

    assert client.patch(f"/donation-requests/{row.id}", json={"donationStatus": "done"}, headers=headers).status_code == 400
    assert client.patch(f"/donation-requests/{row.id}", json={"donationStatus": "expired"}, headers=headers).status_code == 400
    assert client.patch(f"/donation-requests/{row.id}", json={"donationStatus": "inprogress"}, headers=headers).status_code == 200
    assert client.patch(f"/donation-requests/{row.id}", json={"donationStatus": "done"}, headers=headers).status_code == 200


# --- Delete ---


def test_delete_by_owner_or_admin_only(client, db, make_user, make_request):
    make_user("admin@x.com", role="admin")
    make_user("stranger@x.com")
    first = make_request("a@x.com", status="done")
    second = make_request("a@x.com")

    assert client.delete(f"/donation-requests/{first.id}", headers=auth_headers("stranger@x.com")).status_code == 403
    assert client.delete(f"/donation-requests/{first.id}", headers=auth_headers("a@x.com")).json() == {"deletedCount": 1}
    assert client.delete(f"/donation-requests/{second.id}", headers=auth_headers("admin@x.com")).json() == {"deletedCount": 1}
    assert client.delete(f"/donation-requests/{second.id}", headers=auth_headers("admin@x.com")).json() == {"deletedCount": 0}
    assert db.query(DonationRequest).count() == 0
