#!/usr/bin/env python3
"""
Replay Example: Author edits on one document, replay them on a replica

This example demonstrates recording edits through Node handles, flushing the
changelog to JSON, and applying the batch to an independent copy of the page.
"""

from shortcircuit.constants import DEFAULT_TEMPLATE
from shortcircuit.model.document import Document, Replica


def main():
    print("🚀 shortcircuit Replay Example")
    print("=" * 50)

    print("1. Creating the authoring document and the replica...")
    local = Document.from_html(DEFAULT_TEMPLATE)
    remote = Replica.from_html(DEFAULT_TEMPLATE)
    print(f"   ✅ Local tree: {len(local.tree)} nodes, replica tree: {len(remote.document.tree)} nodes")

    print("\n2. Editing the local document...")
    body = local.body()
    counter = body.by_id("counter")
    counter.remove(0)
    counter.insert(local.parse("42"), 0)
    counter.set_attr("class", "answer")
    body.insert_html("<p>Added from the server</p>", 1000)
    print(f"   ✅ Recorded {len(local.changelog)} changes")

    print("\n3. Flushing the changelog:")
    batches = []
    local.changelog.flush(batches.append)
    print(f"   {batches[0]}")

    print("\n4. Replaying on the replica...")
    remote.apply_batch(batches[0])
    replica_counter = remote.document.body().by_id("counter")
    print(f"   📊 Replica counter: {replica_counter.html()}")
    print(f"   📊 Trees identical: {remote.document.structure() == local.structure()}")

    print("\n✅ Replay example completed successfully!")


if __name__ == "__main__":
    main()
