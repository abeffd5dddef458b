
import asyncio
import os
import sys

# Add the project root to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from assetdepot.core.db import SessionLocal, init_models
from assetdepot.core.errors import AssetError
from assetdepot.modules.assets.models import Asset
from assetdepot.modules.assets.service import AssetService

async def ingest_one(service, source):
    """
    Ingests a single source, either an http(s) URL or a local file path.
    """
    if source.startswith(("http://", "https://")):
        return await service.from_url(Asset(), source)
    return await service.from_file(Asset(), source, os.path.basename(source))

async def main(sources):
    """
    Ingest every source given on the command line through the default transport.
    """
    if not sources:
        print("usage: python scripts/ingest_assets.py <path-or-url> [<path-or-url> ...]")
        return 2

    await init_models()
    failures = 0
    async with SessionLocal() as db:
        service = AssetService(db)
        for source in sources:
            print(f"Ingesting {source}")
            try:
                asset = await ingest_one(service, source)
            except AssetError as e:
                failures += 1
                print(f"  - failed: {e}")
                continue
            print(f"  - {asset.id} hash={asset.hash} size={asset.size} transport={asset.transport}")
            print(f"    url: {await service.url(asset)}")

    print(f"Done: {len(sources) - failures} ingested, {failures} failed.")
    return 1 if failures else 0

if __name__ == "__main__":
    sys.exit(asyncio.run(main(sys.argv[1:])))
