"""Chain assembly tests: collector-rooted, lab-rooted and the dashboard listing."""

from datetime import datetime, timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from herbtrace.middleware.exceptions import NotFoundError, StorageError
from herbtrace.models.collector import Collector
from herbtrace.models.enums import FarmingType, PlantPart, ProcessingType, TestType, UserRole
from herbtrace.models.lab_test import LabTest
from herbtrace.models.processing import Processing
from herbtrace.services import chain_assembler


@pytest.mark.chain
@pytest.mark.asyncio
class TestCollectorRootedChain:

    async def test_chain_without_downstream_records(self, client: AsyncClient, submit):
        collector = (await submit.collector())["collector"]

        response = await client.get(f"/chains/{collector['id']}")

        assert response.status_code == 200
        chain = response.json()
        assert chain["collector"]["id"] == collector["id"]
        assert chain["collector"]["username"] == "collector_user"
        assert chain["transport"] == []
        assert chain["processing"] is None
        assert chain["lab"] is None

    async def test_full_chain_from_collector_token(self, client: AsyncClient, submit):
        created = await submit.collector(species="Tulsi")
        first = await submit.transport(created["qrToken"], destination="Hub A")
        second = await submit.transport(first["qrToken"], destination="Hub B")
        processing = await submit.processing(second["qrToken"])
        lab = await submit.lab(processing["qrToken"])

        response = await client.get(f"/chains/{created['qrToken']}")

        assert response.status_code == 200
        chain = response.json()
        assert chain["collector"]["id"] == created["collector"]["id"]
        assert [t["destination"] for t in chain["transport"]] == ["Hub A", "Hub B"]
        assert chain["transport"][0]["transporterName"] == "transporter_user"
        assert chain["processing"]["id"] == processing["processing"]["id"]
        assert chain["processing"]["processorName"] == "processing_plant_user"
        assert chain["lab"]["id"] == lab["labTest"]["id"]
        assert chain["lab"]["labTechnicianName"] == "lab_testing_user"

    async def test_unknown_id(self, client: AsyncClient):
        response = await client.get("/chains/does-not-exist")

        assert response.status_code == 404
        assert response.json()["error"]["message"] == "Collector not found"

    async def test_chains_are_public(self, client: AsyncClient, submit):
        collector = (await submit.collector())["collector"]

        response = await client.get(f"/chains/{collector['id']}")

        assert response.status_code == 200

    async def test_most_recent_processing_and_lab_win(
        self, client: AsyncClient, session_factory, users
    ):
        owner = users[UserRole.COLLECTOR].id
        earlier = datetime(2026, 3, 1, 9, 0)
        later = earlier + timedelta(hours=5)
        async with session_factory() as session:
            collector = Collector(
                user_id=owner, species="Brahmi", quantity=12,
                farming_type=FarmingType.ORGANIC, plant_part=PlantPart.WHOLE_PLANT,
                timestamp=earlier,
            )
            session.add(collector)
            await session.flush()
            for ts, kind in ((later, ProcessingType.PACKING), (earlier, ProcessingType.DRYING)):
                session.add(Processing(
                    collector_id=collector.id, processor_id=owner,
                    received_quantity_kg=12, processed_quantity_kg=10,
                    processing_type=kind, lat=10.0, lng=76.0, timestamp=ts,
                ))
            for ts, result in ((earlier, "first"), (later, "retest")):
                session.add(LabTest(
                    collector_id=collector.id, lab_technician_id=owner,
                    tested_quantity_kg=1, test_type=TestType.PH, result=result,
                    lat=10.0, lng=76.0, timestamp=ts,
                ))
            await session.commit()
            collector_id = collector.id

        chain = (await client.get(f"/chains/{collector_id}")).json()

        assert chain["processing"]["processingType"] == "packing"
        assert chain["lab"]["result"] == "retest"
        assert chain["lab"]["testType"] == "pH"

    async def test_owner_that_no_longer_exists(self, client: AsyncClient, session_factory):
        async with session_factory() as session:
            collector = Collector(
                user_id="deleted-user", species="Amla", quantity=3,
                farming_type=FarmingType.WILD, plant_part=PlantPart.SEED,
            )
            session.add(collector)
            await session.commit()
            collector_id = collector.id

        response = await client.get(f"/chains/{collector_id}")

        assert response.status_code == 200
        assert response.json()["collector"]["userId"] == "deleted-user"
        assert response.json()["collector"]["username"] is None


@pytest.mark.chain
@pytest.mark.asyncio
class TestLabRootedChain:

    async def test_trace_lab_accepts_token(self, client: AsyncClient, submit):
        collector = (await submit.collector())["collector"]
        await submit.transport(collector["id"])
        lab = await submit.lab(collector["id"])

        response = await client.get(f"/trace/lab/{lab['qrToken']}")

        assert response.status_code == 200
        chain = response.json()
        assert chain["lab"]["id"] == lab["labTest"]["id"]
        assert chain["collector"]["id"] == collector["id"]
        assert len(chain["transport"]) == 1
        assert chain["processing"] is None

    async def test_trace_lab_by_bare_id(self, client: AsyncClient, submit):
        collector = (await submit.collector())["collector"]
        lab = await submit.lab(collector["id"])

        response = await client.get(f"/trace/lab/{lab['labTest']['id']}")

        assert response.status_code == 200
        assert response.json()["lab"]["id"] == lab["labTest"]["id"]

    async def test_chains_by_lab_id_keeps_that_lab(self, client: AsyncClient, submit):
        collector = (await submit.collector())["collector"]
        older = await submit.lab(collector["id"], result="first pass")
        await submit.lab(collector["id"], result="second pass")

        chain = (await client.get(f"/chains/{older['labTest']['id']}")).json()

        assert chain["lab"]["result"] == "first pass"
        assert chain["collector"]["id"] == collector["id"]

    async def test_unknown_lab(self, client: AsyncClient):
        response = await client.get("/trace/lab/LabTestID:missing")

        assert response.status_code == 404
        error = response.json()["error"]
        assert error["message"] == "Lab test not found"
        assert error["details"]["id"] == "missing"


@pytest.mark.chain
@pytest.mark.asyncio
class TestChainListing:

    async def test_completed_flag(self, client: AsyncClient, submit):
        done = (await submit.collector(species="Giloy"))["collector"]
        await submit.processing(done["id"])
        await submit.lab(done["id"])
        half = (await submit.collector(species="Shatavari"))["collector"]
        await submit.processing(half["id"])
        bare = (await submit.collector(species="Moringa"))["collector"]

        response = await client.get("/chains")

        assert response.status_code == 200
        chains = {c["id"]: c for c in response.json()}
        assert chains[done["id"]]["completed"] is True
        assert chains[half["id"]]["completed"] is False
        assert chains[half["id"]]["lab"] is None
        assert chains[bare["id"]]["completed"] is False
        assert chains[bare["id"]]["processing"] is None

    async def test_listing_order_is_newest_first(
        self, client: AsyncClient, session_factory, users
    ):
        owner = users[UserRole.COLLECTOR].id
        base = datetime(2026, 1, 10, 8, 0)
        async with session_factory() as session:
            for offset, species in enumerate(["Neem", "Tulsi", "Ashwagandha"]):
                session.add(Collector(
                    user_id=owner, species=species, quantity=1,
                    farming_type=FarmingType.CONVENTIONAL, plant_part=PlantPart.LEAF,
                    timestamp=base + timedelta(days=offset),
                ))
            await session.commit()

        chains = (await client.get("/chains")).json()

        assert [c["collector"]["species"] for c in chains] == ["Ashwagandha", "Tulsi", "Neem"]

    async def test_empty_store(self, client: AsyncClient):
        response = await client.get("/chains")

        assert response.status_code == 200
        assert response.json() == []


class _BrokenSession:
    """A session whose every read fails."""

    async def get(self, *args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection reset"))

    async def execute(self, *args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection reset"))


@pytest.mark.unit
@pytest.mark.asyncio
class TestTraversalFailures:

    async def test_storage_failure_aborts_traversal(self):
        with pytest.raises(StorageError):
            await chain_assembler.assemble_collector_chain(_BrokenSession(), "c1")

        with pytest.raises(StorageError):
            await chain_assembler.list_chains(_BrokenSession())

    async def test_not_found_is_not_wrapped(self, db_session):
        with pytest.raises(NotFoundError) as exc_info:
            await chain_assembler.trace_lab(db_session, "LabTestID:nope")

        assert exc_info.value.resource == "Lab test"
        assert exc_info.value.identifier == "nope"
