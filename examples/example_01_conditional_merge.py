"""Example 01: Conditional merges.

This example demonstrates:
- merging a payload at the root and at a sub-path
- patch conditions evaluated against the stored record
- the structured failures returned by the pipeline
"""

import asyncio
from datetime import datetime, timezone

from recordpatch import MergePipeline, MergeRequest, Record, RecordPatchConfig


async def main():
    print("=" * 80)
    print("EXAMPLE 01: CONDITIONAL MERGES")
    print("=" * 80)

    lamp = Record(
        id="lamp-1",
        revision=3,
        fields={"attributes": {"room": "kitchen"}, "state": {"on": False, "level": 0}},
    )
    pipeline = MergePipeline(RecordPatchConfig(max_record_size=4096))
    now = datetime.now(timezone.utc)

    # Section 1: switch the lamp on, but only change its level in the bedroom
    # (the lamp is in the kitchen, so "level" is dropped from the payload)
    request = MergeRequest(
        record_id="lamp-1",
        path="/state",
        value={"on": True, "level": 80},
        patch_conditions={"level": 'eq(attributes/room,"bedroom")'},
        headers={"correlation-id": "example-1"},
    )
    result = await pipeline.apply(request, lamp, lamp.revision + 1, now)
    event, response = result.unwrap()
    print(f"\n✓ Event value: {event.value}")
    print(f"✓ Response etag: {response.entity_tag} (was {response.previous_entity_tag})")

    # Section 2: a malformed condition is rejected before anything is merged
    bad = MergeRequest(
        record_id="lamp-1",
        path="/state",
        value={"on": True},
        patch_conditions={"on": "eq(state/on"},
    )
    result = await pipeline.apply(bad, lamp, lamp.revision + 1, now)
    print(f"\n✗ Rejected ({result.kind.value}): {result.error.message}")

    # Section 3: oversized records are rejected
    huge = MergeRequest(record_id="lamp-1", path="/notes", value="x" * 10_000)
    result = await pipeline.apply(huge, lamp, lamp.revision + 1, now)
    print(f"✗ Rejected ({result.kind.value}): {result.error.message}")


if __name__ == "__main__":
    asyncio.run(main())
