import httpx
import pytest
from sqlalchemy.future import select

from dispatchdesk.api.calls import get_report_client
from dispatchdesk.core.config import settings
from dispatchdesk.core.enums import AuditAction, LeadStatus
from dispatchdesk.main import app
from dispatchdesk.models.audit import Audit
from dispatchdesk.models.call_log import CallLog
from dispatchdesk.services.telephony_reports import TelephonyReportClient

LEAD_CSV = (
    "Company,MC Number,DOT,Phone Number,Address,Trucks\n"
    "Lone Star Haulers,MC1,11,214-555-0100,\"1 Main St, Dallas, TX 75201\",5\n"
    "Red River Freight,MC2,22,469-555-0111,\"9 Elm Rd, Tulsa, OK 74103\",2\n"
)


class TestMonitoring:

    @pytest.mark.asyncio
    async def test_health_endpoint(self, test_client):
        response = await test_client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["dependencies"]["redis"] == "connected"

    @pytest.mark.asyncio
    async def test_readiness_endpoint(self, test_client):
        response = await test_client.get("/readiness")
        assert response.status_code == 200
        assert response.json()["ready"] is True

    @pytest.mark.asyncio
    async def test_metrics_endpoint(self, test_client):
        await test_client.get("/health")
        response = await test_client.get("/metrics")
        assert response.status_code == 200
        assert "http_requests_total" in response.text


class TestAuthentication:

    @pytest.mark.asyncio
    async def test_register_and_login(self, test_client):
        response = await test_client.post("/auth/register", json={"username": "dispatch1", "password": "pass123"})
        assert response.status_code == 200
        assert response.json()["token_type"] == "bearer"
        assert response.json()["role"] == "agent"

        response = await test_client.post("/auth/login", data={"username": "dispatch1", "password": "pass123"})
        assert response.status_code == 200
        token = response.json()["access_token"]

        response = await test_client.get("/leads/", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_duplicate_username(self, test_client):
        await test_client.post("/auth/register", json={"username": "dispatch1", "password": "pass123"})
        response = await test_client.post("/auth/register", json={"username": "dispatch1", "password": "other"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_wrong_password(self, test_client, agent_user):
        response = await test_client.post("/auth/login", data={"username": "agent", "password": "nope"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_missing_token_denied(self, test_client):
        response = await test_client.get("/leads/")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_invalid_token_denied(self, test_client):
        response = await test_client.get("/leads/", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401


class TestLeadEndpoints:

    @pytest.mark.asyncio
    async def test_create_lead_camel_case(self, test_client, agent_headers, valid_lead_data):
        response = await test_client.post("/leads/", json=valid_lead_data, headers=agent_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["companyName"] == "Lone Star Haulers"
        assert data["status"] == "NEW"
        assert data["source"] == "Manual Add"
        assert data["serialNumber"] == 1
        assert data["notes"] == []

    @pytest.mark.asyncio
    async def test_create_lead_idempotent(self, test_client, agent_headers, valid_lead_data):
        headers = {**agent_headers, "Idempotency-Key": "lead-key-1"}
        first = await test_client.post("/leads/", json=valid_lead_data, headers=headers)
        second = await test_client.post("/leads/", json=valid_lead_data, headers=headers)

        assert first.json()["id"] == second.json()["id"]
        listing = await test_client.get("/leads/", headers=agent_headers)
        assert len(listing.json()) == 1

    @pytest.mark.asyncio
    async def test_import_spreadsheet(self, test_client, agent_headers):
        response = await test_client.post(
            "/leads/import",
            files={"file": ("carriers.csv", LEAD_CSV.encode(), "text/csv")},
            data={"source": "Batch-A"},
            headers=agent_headers,
        )

        assert response.status_code == 200
        assert response.json() == {"imported": 2, "source": "Batch-A"}

        leads = (await test_client.get("/leads/", headers=agent_headers)).json()
        assert {lead["state"] for lead in leads} == {"TX", "OK"}

        sources = (await test_client.get("/leads/sources", headers=agent_headers)).json()
        assert sources == [{"source": "Batch-A", "count": 2}]

    @pytest.mark.asyncio
    async def test_import_unreadable_file(self, test_client, agent_headers):
        response = await test_client.post(
            "/leads/import",
            files={"file": ("carriers.csv", b"", "text/csv")},
            data={"source": "Batch-A"},
            headers=agent_headers,
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_status_update_with_note(self, test_client, agent_headers, lead_factory, session_factory):
        lead = await lead_factory(phone_number="214-555-0100")

        response = await test_client.post(
            f"/leads/{lead.id}/status",
            json={"status": "INTERESTED", "note": "left VM"},
            headers=agent_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "INTERESTED"
        assert data["lastCallTime"] is not None
        assert [n["content"] for n in data["notes"]] == ["left VM"]

        calls = (await test_client.get(f"/leads/{lead.id}/calls", headers=agent_headers)).json()
        assert len(calls) == 1
        assert calls[0]["outcome"] == "INTERESTED"
        assert calls[0]["durationSeconds"] == 0
        assert calls[0]["companyName"] == "Acme Freight"

    @pytest.mark.asyncio
    async def test_patch_and_note(self, test_client, agent_headers, lead_factory):
        lead = await lead_factory()

        response = await test_client.patch(
            f"/leads/{lead.id}", json={"truckCount": 8, "state": "TX"}, headers=agent_headers
        )
        assert response.json()["truckCount"] == 8

        response = await test_client.post(
            f"/leads/{lead.id}/notes", json={"content": "Wants Texas lanes"}, headers=agent_headers
        )
        assert response.status_code == 200
        assert response.json()["content"] == "Wants Texas lanes"

    @pytest.mark.asyncio
    async def test_patch_rejects_null_company_name(self, test_client, agent_headers, lead_factory):
        lead = await lead_factory(company_name="Acme Freight")

        response = await test_client.patch(f"/leads/{lead.id}", json={"companyName": None}, headers=agent_headers)
        assert response.status_code == 422

        response = await test_client.patch(f"/leads/{lead.id}", json={"email": None}, headers=agent_headers)
        assert response.status_code == 200
        assert response.json()["companyName"] == "Acme Freight"

    @pytest.mark.asyncio
    async def test_unknown_lead(self, test_client, agent_headers):
        assert (await test_client.get("/leads/999", headers=agent_headers)).status_code == 404
        response = await test_client.post("/leads/999/status", json={"status": "DNC"}, headers=agent_headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_next_lead(self, test_client, agent_headers, lead_factory):
        response = await test_client.get("/leads/next", headers=agent_headers)
        assert response.status_code == 200
        assert response.json() is None

        lead = await lead_factory(status=LeadStatus.RETRY)
        response = await test_client.get("/leads/next", headers=agent_headers)
        assert response.json()["id"] == lead.id

    @pytest.mark.asyncio
    async def test_bulk_delete_requires_admin(self, test_client, agent_headers, lead_factory):
        lead = await lead_factory()
        response = await test_client.post("/leads/bulk-delete", json={"ids": [lead.id]}, headers=agent_headers)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_admin_bulk_delete(self, test_client, admin_headers, lead_factory):
        a = await lead_factory(company_name="A")
        await lead_factory(company_name="B")

        response = await test_client.post("/leads/bulk-delete", json={"ids": [a.id]}, headers=admin_headers)

        assert response.json() == {"deleted": 1}

    @pytest.mark.asyncio
    async def test_admin_delete_by_source(self, test_client, admin_headers, lead_factory):
        await lead_factory(company_name="A", source="Batch-A")
        await lead_factory(company_name="B", source="Batch-B")

        response = await test_client.delete("/leads/by-source", params={"source": "Batch-A"}, headers=admin_headers)

        assert response.json() == {"deleted": 1}
        remaining = (await test_client.get("/leads/", headers=admin_headers)).json()
        assert [lead["source"] for lead in remaining] == ["Batch-B"]

    @pytest.mark.asyncio
    async def test_delete_single(self, test_client, agent_headers, lead_factory):
        lead = await lead_factory()
        response = await test_client.delete(f"/leads/{lead.id}", headers=agent_headers)
        assert response.json() == {"deleted": 1}
        assert (await test_client.get(f"/leads/{lead.id}", headers=agent_headers)).status_code == 404


class TestCallEndpoints:

    @pytest.mark.asyncio
    async def test_log_call_and_history(self, test_client, agent_headers, lead_factory):
        lead = await lead_factory(phone_number="214-555-0100")

        response = await test_client.post(
            "/calls/",
            json={"phoneNumber": "+12145550100", "outcome": "Voicemail", "durationSeconds": 20, "note": "VM full"},
            headers=agent_headers,
        )
        assert response.status_code == 200
        assert response.json()["leadId"] == lead.id

        history = (await test_client.get("/calls/", params={"leadId": lead.id}, headers=agent_headers)).json()
        assert [c["note"] for c in history] == ["VM full"]

    @pytest.mark.asyncio
    async def test_softphone_finished_call(self, test_client, agent_headers, lead_factory):
        lead = await lead_factory(phone_number="214-555-0100")

        response = await test_client.post(
            "/calls/softphone",
            json={
                "phoneNumber": "+12145550100",
                "direction": "outbound",
                "durationSeconds": 95,
                "answered": True,
                "recorded": False,
            },
            headers=agent_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["leadId"] == lead.id
        assert data["companyName"] == "Acme Freight"
        assert data["outcome"] == "Completed"
        assert data["durationSeconds"] == 95
        assert data["note"] == "Softphone outbound call"

    @pytest.mark.asyncio
    async def test_dial_uri(self, test_client, agent_headers):
        response = await test_client.get("/calls/dial-uri", params={"phone": "(214) 555-0100"}, headers=agent_headers)
        assert response.json() == {"uri": "tel:+12145550100"}

    @pytest.mark.asyncio
    async def test_sync_timeout_maps_to_504(self, test_client, agent_headers):
        def pending(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                return httpx.Response(201, json={"data": {"id": "rep-9"}})
            return httpx.Response(200, json={"data": {"id": "rep-9", "status": "pending"}})

        app.dependency_overrides[get_report_client] = lambda: TelephonyReportClient(
            base_url="https://api.telephony.example",
            poll_interval=0,
            poll_attempts=2,
            transport=httpx.MockTransport(pending),
        )

        response = await test_client.post("/calls/sync", headers=agent_headers)

        assert response.status_code == 504

    @pytest.mark.asyncio
    async def test_sync_failure_maps_to_502(self, test_client, agent_headers):
        def rejected(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"errors": [{"detail": "unauthorized"}]})

        app.dependency_overrides[get_report_client] = lambda: TelephonyReportClient(
            base_url="https://api.telephony.example",
            transport=httpx.MockTransport(rejected),
        )

        response = await test_client.post("/calls/sync", headers=agent_headers)

        assert response.status_code == 502

    @pytest.mark.asyncio
    async def test_sync_imports_rows(self, test_client, agent_headers, lead_factory, session_factory):
        await lead_factory(phone_number="214-555-0100")
        report = b"to,from,duration,start_time\n2145550100,9725550000,61,2024-03-01T14:30:00Z\n"

        def finished(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                return httpx.Response(201, json={"data": {"id": "rep-2"}})
            if request.url.path.endswith("/rep-2"):
                return httpx.Response(200, json={"data": {"status": "complete", "download_url": "https://files.example/r.csv"}})
            return httpx.Response(200, content=report)

        app.dependency_overrides[get_report_client] = lambda: TelephonyReportClient(
            base_url="https://api.telephony.example",
            poll_interval=0,
            transport=httpx.MockTransport(finished),
        )

        response = await test_client.post("/calls/sync", headers=agent_headers)

        assert response.json() == {"inserted": 1}
        async with session_factory() as db:
            res = await db.execute(select(CallLog))
            logs = res.scalars().all()
        assert [log.duration_seconds for log in logs] == [61]


class TestPipelineEndpoints:

    @pytest.mark.asyncio
    async def test_pipeline_summary(self, test_client, agent_headers):
        deals = [("A", 1000, None), ("B", 2000, "Won"), ("C", 500, "Lost"), ("D", 3000, "Negotiation")]
        for title, value, stage in deals:
            created = (await test_client.post(
                "/opportunities/", json={"title": title, "value": value}, headers=agent_headers
            )).json()
            assert created["stage"] == "Prospecting"
            assert created["owner"] == "Agent"
            assert created["probability"] == 20
            if stage:
                response = await test_client.post(
                    f"/opportunities/{created['id']}/stage", json={"stage": stage}, headers=agent_headers
                )
                assert response.json()["stage"] == stage

        summary = (await test_client.get("/opportunities/summary", headers=agent_headers)).json()

        assert summary["pipelineValue"] == 4000
        assert summary["winRate"] == 50
        assert summary["activeDeals"] == 2

    @pytest.mark.asyncio
    async def test_update_and_delete(self, test_client, agent_headers):
        created = (await test_client.post("/opportunities/", json={"title": "Deal"}, headers=agent_headers)).json()

        response = await test_client.patch(
            f"/opportunities/{created['id']}",
            json={"probability": 75, "nextAction": "Send packet"},
            headers=agent_headers,
        )
        assert response.json()["probability"] == 75
        assert response.json()["nextAction"] == "Send packet"

        response = await test_client.delete(f"/opportunities/{created['id']}", headers=agent_headers)
        assert response.json() == {"deleted": True}
        assert (await test_client.get(f"/opportunities/{created['id']}", headers=agent_headers)).status_code == 404

    @pytest.mark.asyncio
    async def test_patch_rejects_null_required_fields(self, test_client, agent_headers):
        created = (await test_client.post("/opportunities/", json={"title": "Deal"}, headers=agent_headers)).json()

        for field in ("stage", "title", "value"):
            response = await test_client.patch(
                f"/opportunities/{created['id']}", json={field: None}, headers=agent_headers
            )
            assert response.status_code == 422, field

        response = await test_client.patch(
            f"/opportunities/{created['id']}", json={"companyName": None}, headers=agent_headers
        )
        assert response.status_code == 200
        assert response.json()["stage"] == "Prospecting"


class TestFleetEndpoints:

    @pytest.mark.asyncio
    async def test_trip_with_stops(self, test_client, agent_headers):
        driver = (await test_client.post("/fleet/drivers", json={"name": "Sam Ortiz"}, headers=agent_headers)).json()
        truck = (await test_client.post(
            "/fleet/assets", json={"unitNumber": "T-101", "type": "Truck"}, headers=agent_headers
        )).json()
        load = (await test_client.post(
            "/fleet/loads", json={"customerName": "Walmart DC", "rate": 2400}, headers=agent_headers
        )).json()
        assert load["status"] == "Pending"

        response = await test_client.post("/fleet/trips", json={
            "driverId": driver["id"],
            "truckId": truck["id"],
            "stops": [
                {"loadId": load["id"], "stopSequence": 2, "type": "Delivery", "locationName": "DC", "address": "Tulsa, OK"},
                {"loadId": load["id"], "stopSequence": 1, "type": "Pickup", "locationName": "Plant", "address": "Dallas, TX"},
            ],
        }, headers=agent_headers)

        assert response.status_code == 200
        trip = response.json()
        assert trip["driver"]["name"] == "Sam Ortiz"
        assert trip["truck"]["unitNumber"] == "T-101"
        assert trip["trailer"] is None
        assert [s["stopSequence"] for s in trip["stops"]] == [1, 2]

        trips = (await test_client.get("/fleet/trips", headers=agent_headers)).json()
        assert len(trips) == 1

    @pytest.mark.asyncio
    async def test_trip_with_unknown_driver(self, test_client, agent_headers):
        response = await test_client.post("/fleet/trips", json={"driverId": 999}, headers=agent_headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_load_status(self, test_client, agent_headers):
        load = (await test_client.post("/fleet/loads", json={"customerName": "Kroger"}, headers=agent_headers)).json()

        response = await test_client.post(
            f"/fleet/loads/{load['id']}/status", json={"status": "In-Transit"}, headers=agent_headers
        )
        assert response.json()["status"] == "In-Transit"

        in_transit = (await test_client.get("/fleet/loads", params={"status": "In-Transit"}, headers=agent_headers)).json()
        assert [row["id"] for row in in_transit] == [load["id"]]

    @pytest.mark.asyncio
    async def test_asset_filter(self, test_client, agent_headers):
        await test_client.post("/fleet/assets", json={"unitNumber": "T-1", "type": "Truck"}, headers=agent_headers)
        await test_client.post("/fleet/assets", json={"unitNumber": "R-1", "type": "Trailer"}, headers=agent_headers)

        trailers = (await test_client.get("/fleet/assets", params={"type": "Trailer"}, headers=agent_headers)).json()
        assert [a["unitNumber"] for a in trailers] == ["R-1"]


class TestDocumentsAndStats:

    @pytest.mark.asyncio
    async def test_rate_confirmation_pdf(self, test_client, agent_headers):
        load = (await test_client.post(
            "/fleet/loads", json={"customerName": "Walmart DC", "rate": 2400}, headers=agent_headers
        )).json()

        response = await test_client.post(
            "/documents/rate-confirmation",
            json={"loadId": load["id"], "carrierName": "Lone Star Haulers"},
            headers=agent_headers,
        )
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")

        response = await test_client.get(f"/documents/rate-confirmation/{load['id']}", headers=agent_headers)
        assert response.status_code == 200
        assert "RC-" in response.headers["content-disposition"]

    @pytest.mark.asyncio
    async def test_rate_confirmation_unknown_load(self, test_client, agent_headers):
        response = await test_client.get("/documents/rate-confirmation/999", headers=agent_headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_dashboard(self, test_client, agent_headers, lead_factory):
        await lead_factory(company_name="A", phone_number="214-555-0100")
        await lead_factory(company_name="B", phone_number="469-555-0111", status=LeadStatus.INTERESTED)
        for phone, seconds in (("2145550100", 60), ("4695550111", 31)):
            await test_client.post(
                "/calls/",
                json={"phoneNumber": phone, "outcome": "Completed", "durationSeconds": seconds},
                headers=agent_headers,
            )

        stats = (await test_client.get("/stats/dashboard", headers=agent_headers)).json()

        assert stats["totalLeads"] == 2
        assert stats["leadsInQueue"] == 1
        assert stats["interestedLeads"] == 1
        assert stats["totalCallsToday"] == 2
        assert stats["avgTalkTime"] == 46


class TestRateLimitAndAudit:

    @pytest.mark.asyncio
    async def test_rate_limit_exceeded(self, test_client, agent_headers, monkeypatch):
        monkeypatch.setattr(settings, "RATE_LIMIT", 2)

        codes = []
        for i in range(3):
            response = await test_client.post("/opportunities/", json={"title": f"Deal {i}"}, headers=agent_headers)
            codes.append(response.status_code)

        assert codes == [200, 200, 429]

    @pytest.mark.asyncio
    async def test_rate_limit_is_per_user(self, test_client, agent_headers, admin_headers, monkeypatch):
        monkeypatch.setattr(settings, "RATE_LIMIT", 1)

        await test_client.post("/opportunities/", json={"title": "Agent deal"}, headers=agent_headers)
        response = await test_client.post("/opportunities/", json={"title": "Admin deal"}, headers=admin_headers)

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_mutations_are_audited(self, test_client, agent_headers, agent_user, valid_lead_data, session_factory):
        await test_client.post("/leads/", json=valid_lead_data, headers=agent_headers)
        await test_client.get("/leads/", headers=agent_headers)

        async with session_factory() as db:
            res = await db.execute(select(Audit).where(Audit.user_id == agent_user.id))
            audits = res.scalars().all()

        assert [a.action for a in audits] == [AuditAction.CREATE_LEAD]
        assert audits[0].target_id is None
        assert len(audits[0].payload_hash) == 64

    @pytest.mark.asyncio
    async def test_audit_records_target_lead(self, test_client, agent_headers, agent_user, lead_factory, session_factory):
        lead = await lead_factory()
        await test_client.post(f"/leads/{lead.id}/status", json={"status": "RETRY"}, headers=agent_headers)

        async with session_factory() as db:
            res = await db.execute(select(Audit).where(Audit.user_id == agent_user.id))
            audit = res.scalars().one()

        assert audit.action == AuditAction.UPDATE_LEAD_STATUS
        assert audit.target_id == str(lead.id)
