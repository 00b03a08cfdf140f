"""
HTTP API tests.

Verifies:
- Caller resolution from the X-Profile-Id header (401 / 404)
- Error codes map to HTTP status (400 / 403 / 404 / 409)
- Success bodies carry the derived, date-dependent fields
"""

import pytest

from staffing.models import Profile
from staffing.services import transfer_service
from staffing.services.rules import CreateTransferRequest
from conftest import iso, profile_headers, fresh_employee


def delegation_payload(directory, **overrides):
    payload = {
        "employee_id": directory.emp_a,
        "to_store_id": directory.store_b,
        "valid_from": iso(0),
        "valid_until": iso(5),
    }
    payload.update(overrides)
    return payload


def post_delegation(client, directory, actor, **overrides):
    return client.post(
        "/api/delegations",
        json=delegation_payload(directory, **overrides),
        headers=profile_headers(actor),
    )


def approved_transfer_id(directory):
    transfer = transfer_service.create_transfer(
        CreateTransferRequest.from_payload({
            "employee_id": directory.emp_a,
            "to_store_id": directory.store_c,
            "transfer_date": iso(0),
        }),
        directory.hr,
    )
    transfer_service.approve_transfer(transfer.id, directory.hr2)
    return transfer.id


# =============================================================================
# CALLER RESOLUTION
# =============================================================================


class TestCallerResolution:

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/delegations"),
            ("POST", "/api/delegations"),
            ("GET", "/api/delegations/expiring-soon"),
            ("GET", "/api/transfers"),
            ("POST", "/api/transfers"),
            ("GET", "/api/transfers/due"),
            ("GET", "/api/employees/1/delegation-status"),
        ],
    )
    def test_requires_profile_header(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_malformed_header(self, client, db_session):
        resp = client.get("/api/delegations", headers={"X-Profile-Id": "abc"})
        assert resp.status_code == 401

    def test_unknown_profile(self, client, directory):
        resp = client.get("/api/delegations", headers=profile_headers(999999))
        assert resp.status_code == 404
        assert resp.get_json()["error_code"] == "not_found"


# =============================================================================
# DELEGATIONS
# =============================================================================


class TestDelegationEndpoints:

    def test_create_returns_201_with_derived_fields(self, client, directory):
        resp = post_delegation(client, directory, directory.hr)
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["success"] is True
        data = body["data"]
        assert data["status"] == "active"
        assert data["effective_status"] == "active"
        assert data["is_in_effect"] is True
        assert data["days_remaining"] == 5
        assert data["from_store_id"] == directory.store_a

    def test_rule_failure_is_400(self, client, directory):
        resp = post_delegation(client, directory, directory.hr, valid_until=iso(120))
        assert resp.status_code == 400
        body = resp.get_json()
        assert body["success"] is False
        assert body["error_code"] == "validation"
        assert "90 days" in body["error"]

    def test_scope_failure_is_403(self, client, directory):
        resp = post_delegation(client, directory, directory.asm_z2)
        assert resp.status_code == 403
        assert resp.get_json()["error_code"] == "permission"

    def test_missing_employee_is_404(self, client, directory):
        resp = post_delegation(client, directory, directory.hr, employee_id=999999)
        assert resp.status_code == 404
        assert resp.get_json()["error"] == "Employee not found"

    def test_overlap_is_409(self, client, directory):
        assert post_delegation(client, directory, directory.hr).status_code == 201
        resp = post_delegation(client, directory, directory.hr, to_store_id=directory.store_c)
        assert resp.status_code == 409
        body = resp.get_json()
        assert body["error_code"] == "conflict"
        assert body["error"].endswith("No change was applied.")

    def test_get_and_list(self, client, directory):
        created = post_delegation(client, directory, directory.hr).get_json()["data"]

        resp = client.get(f"/api/delegations/{created['id']}", headers=profile_headers(directory.sm_b))
        assert resp.status_code == 200
        assert resp.get_json()["data"]["id"] == created["id"]

        resp = client.get(
            f"/api/delegations?employee_id={directory.emp_a}&status=active",
            headers=profile_headers(directory.hr),
        )
        assert [d["id"] for d in resp.get_json()["data"]] == [created["id"]]

    def test_get_unknown_delegation(self, client, directory):
        resp = client.get("/api/delegations/999999", headers=profile_headers(directory.hr))
        assert resp.status_code == 404

    def test_revoke(self, client, directory):
        created = post_delegation(client, directory, directory.hr).get_json()["data"]

        denied = client.post(f"/api/delegations/{created['id']}/revoke", headers=profile_headers(directory.asm_z2))
        assert denied.status_code == 403

        resp = client.post(f"/api/delegations/{created['id']}/revoke", headers=profile_headers(directory.asm_z1))
        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["status"] == "revoked"
        assert data["revoked_by"] == directory.asm_z1

        again = client.post(f"/api/delegations/{created['id']}/revoke", headers=profile_headers(directory.hr))
        assert again.status_code == 400

    def test_extend(self, client, directory):
        created = post_delegation(client, directory, directory.hr).get_json()["data"]
        resp = client.post(
            f"/api/delegations/{created['id']}/extend",
            json={"valid_until": iso(8)},
            headers=profile_headers(directory.asm_z1),
        )
        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["valid_until"] == iso(8)
        assert data["extension_count"] == 1

    def test_store_manager_cannot_extend(self, client, directory):
        created = post_delegation(client, directory, directory.sm_a).get_json()["data"]
        resp = client.post(
            f"/api/delegations/{created['id']}/extend",
            json={"valid_until": iso(8)},
            headers=profile_headers(directory.sm_a),
        )
        assert resp.status_code == 403

    def test_options_reflect_caller_scope(self, client, directory):
        resp = client.get("/api/delegations/options", headers=profile_headers(directory.sm_a))
        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["capabilities"]["can_create"] is True
        assert data["capabilities"]["can_extend"] is False
        assert {e["id"] for e in data["employees"]} <= {directory.emp_a, directory.emp_a2}
        assert directory.store_d not in {s["id"] for s in data["stores"]}
        assert data["defaults"]["delegation_days"] == 30

    def test_expiring_soon(self, client, directory):
        created = post_delegation(client, directory, directory.hr, valid_until=iso(3)).get_json()["data"]
        resp = client.get("/api/delegations/expiring-soon", headers=profile_headers(directory.hr))
        assert [d["id"] for d in resp.get_json()["data"]] == [created["id"]]


# =============================================================================
# EMPLOYEES
# =============================================================================


class TestEmployeeEndpoints:

    def test_delegation_status(self, client, directory):
        post_delegation(client, directory, directory.hr)
        resp = client.get(
            f"/api/employees/{directory.emp_a}/delegation-status?date={iso(2)}",
            headers=profile_headers(directory.hr),
        )
        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["is_delegated"] is True
        assert data["active_delegation"]["to_store_id"] == directory.store_b
        assert data["date"] == iso(2)
        assert data["is_date_restricted"] is True

    def test_undelegated_employee(self, client, directory):
        resp = client.get(
            f"/api/employees/{directory.emp_b}/delegation-status",
            headers=profile_headers(directory.hr),
        )
        data = resp.get_json()["data"]
        assert data["is_delegated"] is False
        assert data["active_delegation"] is None
        assert data["is_date_restricted"] is False

    def test_unknown_employee(self, client, directory):
        resp = client.get("/api/employees/999999/delegation-status", headers=profile_headers(directory.hr))
        assert resp.status_code == 404

    def test_malformed_date(self, client, directory):
        resp = client.get(
            f"/api/employees/{directory.emp_a}/delegation-status?date=31-01-2026",
            headers=profile_headers(directory.hr),
        )
        assert resp.status_code == 400

    def test_assignment_events(self, client, directory):
        post_delegation(client, directory, directory.hr)
        resp = client.get(f"/api/employees/{directory.emp_a}/assignment-events", headers=profile_headers(directory.hr))
        assert [e["event_type"] for e in resp.get_json()["data"]] == ["delegation.created"]


# =============================================================================
# TRANSFERS
# =============================================================================


class TestTransferEndpoints:

    def test_create_and_approve(self, client, directory):
        resp = client.post(
            "/api/transfers",
            json={"employee_id": directory.emp_a, "to_store_id": directory.store_b, "transfer_date": iso(1)},
            headers=profile_headers(directory.sm_a),
        )
        assert resp.status_code == 201
        transfer_id = resp.get_json()["data"]["id"]

        own = client.post(f"/api/transfers/{transfer_id}/approve", headers=profile_headers(directory.sm_a))
        assert own.status_code == 403

        resp = client.post(f"/api/transfers/{transfer_id}/approve", headers=profile_headers(directory.sm_b))
        assert resp.status_code == 200
        assert resp.get_json()["data"]["status"] == "approved"

    def test_cross_zone_store_manager_is_403(self, client, directory):
        resp = client.post(
            "/api/transfers",
            json={"employee_id": directory.emp_a, "to_store_id": directory.store_d, "transfer_date": iso(1)},
            headers=profile_headers(directory.sm_a),
        )
        assert resp.status_code == 403

    def test_malformed_date_is_400(self, client, directory):
        resp = client.post(
            "/api/transfers",
            json={"employee_id": directory.emp_a, "to_store_id": directory.store_b, "transfer_date": "soon"},
            headers=profile_headers(directory.hr),
        )
        assert resp.status_code == 400

    def test_complete(self, client, directory):
        transfer_id = approved_transfer_id(directory)
        resp = client.post(f"/api/transfers/{transfer_id}/complete", headers=profile_headers(directory.hr))
        assert resp.status_code == 200
        assert resp.get_json()["data"]["status"] == "completed"
        assert fresh_employee(directory.emp_a).store_id == directory.store_c

    def test_reject_and_cancel(self, client, directory):
        resp = client.post(
            "/api/transfers",
            json={"employee_id": directory.emp_a, "to_store_id": directory.store_b, "transfer_date": iso(1)},
            headers=profile_headers(directory.hr),
        )
        transfer_id = resp.get_json()["data"]["id"]

        not_initiator = client.post(f"/api/transfers/{transfer_id}/cancel", headers=profile_headers(directory.hr2))
        assert not_initiator.status_code == 403

        rejected = client.post(f"/api/transfers/{transfer_id}/reject", headers=profile_headers(directory.hr2))
        assert rejected.get_json()["data"]["status"] == "rejected"

        late = client.post(f"/api/transfers/{transfer_id}/cancel", headers=profile_headers(directory.hr))
        assert late.status_code == 400

    def test_due_list(self, client, directory):
        transfer_id = approved_transfer_id(directory)
        resp = client.get("/api/transfers/due", headers=profile_headers(directory.hr))
        data = resp.get_json()["data"]
        assert [t["id"] for t in data] == [transfer_id]
        assert data[0]["is_ready_for_execution"] is True

    def test_unknown_transfer(self, client, directory):
        resp = client.post("/api/transfers/999999/approve", headers=profile_headers(directory.hr))
        assert resp.status_code == 404


# =============================================================================
# HEALTH
# =============================================================================


class TestReadScope:

    @pytest.mark.parametrize(
        "path",
        [
            "/api/transfers",
            "/api/transfers/due",
            "/api/delegations",
            "/api/employees/{emp}/assignment-events",
            "/api/employees/{emp}/delegation-status",
        ],
    )
    def test_profile_without_role_is_denied(self, client, directory, path):
        approved_transfer_id(directory)
        resp = client.get(path.format(emp=directory.emp_a), headers=profile_headers(directory.no_role))
        assert resp.status_code == 403
        assert resp.get_json()["error_code"] == "permission"

    def test_record_endpoints_deny_profile_without_role(self, client, directory):
        transfer_id = approved_transfer_id(directory)
        delegation_id = post_delegation(client, directory, directory.hr, employee_id=directory.emp_a2).get_json()["data"]["id"]
        headers = profile_headers(directory.no_role)
        assert client.get(f"/api/transfers/{transfer_id}", headers=headers).status_code == 403
        assert client.get(f"/api/delegations/{delegation_id}", headers=headers).status_code == 403

    def test_inactive_profile_is_denied(self, client, db_session, directory):
        profile = db_session.get(Profile, directory.hr2)
        profile.is_active = False
        db_session.commit()
        resp = client.get("/api/transfers", headers=profile_headers(directory.hr2))
        assert resp.status_code == 403
        assert resp.get_json()["error"] == "Caller profile is inactive"

    def test_store_manager_sees_only_own_store_transfers(self, client, directory):
        transfer_id = approved_transfer_id(directory)
        headers = profile_headers(directory.sm_b)

        assert client.get("/api/transfers", headers=headers).get_json()["data"] == []
        assert client.get("/api/transfers/due", headers=headers).get_json()["data"] == []
        resp = client.get(f"/api/transfers/{transfer_id}", headers=headers)
        assert resp.status_code == 403

        own = profile_headers(directory.sm_a)
        assert [t["id"] for t in client.get("/api/transfers", headers=own).get_json()["data"]] == [transfer_id]
        assert client.get(f"/api/transfers/{transfer_id}", headers=own).status_code == 200

    def test_other_zone_asm_sees_no_delegations(self, client, directory):
        delegation_id = post_delegation(client, directory, directory.hr).get_json()["data"]["id"]
        headers = profile_headers(directory.asm_z2)
        assert client.get("/api/delegations", headers=headers).get_json()["data"] == []
        assert client.get(f"/api/delegations/{delegation_id}", headers=headers).status_code == 403
        assert client.get(
            f"/api/employees/{directory.emp_a}/delegation-status", headers=headers
        ).status_code == 403

    def test_destination_manager_sees_delegated_employee(self, client, directory):
        post_delegation(client, directory, directory.hr)
        headers = profile_headers(directory.sm_b)
        status = client.get(f"/api/employees/{directory.emp_a}/delegation-status", headers=headers)
        assert status.status_code == 200
        assert status.get_json()["data"]["is_delegated"] is True
        events = client.get(f"/api/employees/{directory.emp_a}/assignment-events", headers=headers)
        assert [e["event_type"] for e in events.get_json()["data"]] == ["delegation.created"]

    def test_events_outside_scope_are_hidden(self, client, directory):
        approved_transfer_id(directory)
        resp = client.get(f"/api/employees/{directory.emp_a}/assignment-events", headers=profile_headers(directory.sm_b))
        assert resp.status_code == 200
        assert resp.get_json()["data"] == []


class TestHealth:

    def test_health(self, client, directory):
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["status"] == "healthy"
        assert body["checks"]["database"]["details"]["stores"] == 4
