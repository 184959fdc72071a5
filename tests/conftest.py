import sys
from pathlib import Path

import pytest_asyncio

# Tests live at <repo>/tests/ so the repo root is one parent above.
REPO_ROOT = Path(__file__).resolve().parents[1]

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


@pytest_asyncio.fixture
async def db(tmp_path):
    from fieldcat_backend.adapters.db import Sqlite, init_schema

    database = Sqlite(str(tmp_path / "catalog.sqlite"))
    res = await init_schema(database)
    assert res.ok, res.error
    try:
        yield database
    finally:
        await database.aclose()


@pytest_asyncio.fixture
async def services(tmp_path):
    from fieldcat_backend.deps import build_services

    svc_res = await build_services(str(tmp_path / "test_services.db"))
    assert svc_res.ok, svc_res.error
    svc = svc_res.data
    try:
        yield svc
    finally:
        await svc["db"].aclose()
