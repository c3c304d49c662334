#!/usr/bin/env python3
"""
Basic session example showing lazy loading and structural edits.

This example demonstrates:
- Expanding a folder whose children come from an async loader
- Inserting, renaming and moving nodes
- Drag and drop
- Saving the workspace to a JSON snapshot
"""

import asyncio
import sys
from pathlib import Path

# Add parent directory to path for development
sys.path.insert(0, str(Path(__file__).parent.parent))

from dazzletreestore import JsonFileSnapshotStore, SessionConfig
from dazzletreestore.aio import CallableChildLoader, ContinueOnErrorsPolicy, TreeSession
from dazzletreestore.core import iter_with_depth
from dazzletreestore.testing import build_sample_tree, sample_loader_data


def print_tree(tree):
    if tree is None:
        print("  (empty workspace)")
        return
    for node, depth in iter_with_depth(tree):
        marker = "/" if node.is_folder else ""
        suffix = " ..." if node.is_folder and not node.is_loaded else ""
        print(f"  {'  ' * depth}{node.label}{marker}{suffix}")


async def fetch_remote(node_id):
    """Pretend to ask a server for the contents of a folder."""
    await asyncio.sleep(0.1)
    return sample_loader_data().get(node_id, [])


async def main():
    snapshot_path = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("workspace.json")

    config = SessionConfig.offline()
    loader = CallableChildLoader(fetch_remote)

    async with TreeSession(build_sample_tree(), loader, config=config,
                           policy=ContinueOnErrorsPolicy(),
                           store=JsonFileSnapshotStore(snapshot_path)) as session:
        print("Initial tree:")
        print_tree(session.tree)

        print("\nExpanding 'remote' (loads children)...")
        await session.expand("9")
        print_tree(session.tree)

        note = await session.insert("7", "getting-started.md")
        session.rename("2", "README.rst")
        await session.move("6", "5")

        session.start_drag(note.id)
        await session.drop("1")

        print("\nAfter edits:")
        print_tree(session.tree)

        session.save()
        print(f"\nSaved workspace to {snapshot_path}")


if __name__ == "__main__":
    print("DazzleTreeStore - Basic Session Example")
    print("=" * 50)
    asyncio.run(main())
