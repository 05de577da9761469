"""Tests that concurrent requests leave records consistent.

Resolution and management calls share one event loop; store mutations must
not interleave into half-applied records.
"""

import asyncio

import pytest

from dynqr.database.models import ContactCardPayload, LinkPayload


@pytest.mark.asyncio
class TestConcurrentRequests:
    """Concurrent management and resolution."""

    async def test_concurrent_creates_get_distinct_ids(self, client):
        """Test many simultaneous creates."""
        responses = await asyncio.gather(*(
            client.post("/api/qr", json={"type": "link", "data": {"url": f"https://example.com/{n}"}})
            for n in range(30)
        ))

        assert all(r.status_code == 200 for r in responses)
        short_ids = {r.json()["shortId"] for r in responses}
        record_ids = {r.json()["id"] for r in responses}
        assert len(short_ids) == 30
        assert len(record_ids) == 30

    async def test_concurrent_updates_never_mix(self, service, sample_contact):
        """Test racing updates leave one complete payload."""
        record = await service.create("link", {"url": "https://example.com/start"})

        await asyncio.gather(
            service.update(record.id, "vcard", sample_contact),
            service.update(record.id, "link", {"url": "https://example.com/final"}),
            service.update(record.id, "vcard", {"firstName": "Ann", "lastName": "Lee"}),
        )

        final = await service.get_record(record.id)
        assert final.short_id == record.short_id
        assert final.payload in (
            ContactCardPayload(first_name="Jane", last_name="Doe", email="jane@x.com"),
            LinkPayload(url="https://example.com/final"),
            ContactCardPayload(first_name="Ann", last_name="Lee"),
        )

    async def test_resolution_during_updates(self, client, anonymous_client):
        """Test scans racing updates see either the old or the new URL."""
        created = (await client.post("/api/qr", json={"type": "link", "data": {"url": "https://example.com/old"}})).json()

        results = await asyncio.gather(
            *(anonymous_client.get(f"/q/{created['shortId']}") for _ in range(10)),
            client.put(f"/api/qr/{created['id']}", json={"type": "link", "data": {"url": "https://example.com/new"}}),
            *(anonymous_client.get(f"/q/{created['shortId']}") for _ in range(10)),
        )

        scans = [r for r in results if r.status_code == 302]
        assert len(scans) == 20
        assert {r.headers["location"] for r in scans} <= {"https://example.com/old", "https://example.com/new"}

    async def test_delete_during_resolution(self, client, anonymous_client):
        """Test scans racing a delete see the record or a clean 404."""
        created = (await client.post("/api/qr", json={"type": "link", "data": {"url": "https://example.com"}})).json()

        results = await asyncio.gather(
            *(anonymous_client.get(f"/q/{created['shortId']}") for _ in range(5)),
            client.delete(f"/api/qr/{created['id']}"),
            *(anonymous_client.get(f"/q/{created['shortId']}") for _ in range(5)),
        )

        scans = results[:5] + results[6:]
        assert all(r.status_code in (302, 404) for r in scans)
        assert results[5].status_code == 200
        assert (await anonymous_client.get(f"/q/{created['shortId']}")).status_code == 404
