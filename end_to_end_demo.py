"""
End-to-End Discovery Demo

Runs the complete pipeline offline:
Event Source (fixed dataset) -> Analyzers -> Gateway (heuristic fallback) -> Local Knowledge Store
"""

import asyncio
import json
import logging
import random
import sys
import tempfile

from discovery.contracts import DiscoveryParameters, TimeRange
from discovery.engine import DiscoveryEngine
from gateway.service import AnalysisGateway
from preservation.local import LocalKnowledgeStore
from preservation.contracts import PreservationFilter
from sources.static import StaticEventSource, fallback_events

logger = logging.getLogger("demo")


async def run(seed: int, start: int, end: int, storage_path: str):
    rng = random.Random(seed)
    store = LocalKnowledgeStore(storage_path, rng=random.Random(rng.random()))
    engine = DiscoveryEngine(
        gateway=AnalysisGateway(rng=random.Random(rng.random())),
        source=StaticEventSource(fallback_events(start, end)),
        store=store,
        rng=random.Random(rng.random()),
    )

    batch = await engine.discover(
        DiscoveryParameters(synchronicity_threshold=0.5, anomaly_detection=0.5),
        TimeRange(start, end),
    )
    await engine.wait_for_persistence()

    print(json.dumps(batch.to_dict(), indent=2))
    logger.info("Preserved records: %d", len(store.query_sync(PreservationFilter())))
    logger.info("Status: %s", json.dumps(engine.get_status()))
    await engine.aclose()


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    seed = int(sys.argv[1]) if len(sys.argv) > 1 else 42

    with tempfile.TemporaryDirectory() as storage_path:
        asyncio.run(run(seed, -1200, -1000, storage_path))


if __name__ == "__main__":
    main()
