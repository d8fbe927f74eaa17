import asyncio
import inspect
import io
import os
import sys
from pathlib import Path
from unittest.mock import AsyncMock

import numpy as np
import pytest
from PIL import Image

# Ensure project root is on sys.path so 'photodesk' is importable during tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("SUPABASE_DISABLED", "1")

from photodesk.infrastructure.gateway.remote_gateway import RemoteGateway, RemoteResult  # noqa: E402

GATEWAY_METHODS = [
    name for name, value in vars(RemoteGateway).items() if inspect.iscoroutinefunction(value)
]


def make_image_bytes(w=8, h=6, color=(128, 64, 32), format="PNG") -> bytes:
    arr = np.zeros((h, w, 3), dtype=np.uint8)
    arr[:, :] = color
    buf = io.BytesIO()
    Image.fromarray(arr).save(buf, format=format)
    return buf.getvalue()


def image_payload(image_id: str, **overrides) -> dict:
    data = {
        "id": image_id,
        "name": f"{image_id}.jpg",
        "url": f"https://cdn.example.com/{image_id}.jpg",
        "width": 1200,
        "height": 800,
        "size": 250_000,
        "createdAt": "2024-05-01T10:00:00Z",
        "tags": [],
    }
    data.update(overrides)
    return data


def page_payload(ids, total=None, page=1, limit=20, tags=()) -> dict:
    total = len(ids) if total is None else total
    return {
        "success": True,
        "images": [image_payload(i) for i in ids],
        "pagination": {"page": page, "limit": limit, "total": total, "pages": -(-total // limit)},
        "tags": list(tags),
    }


class ParkedCalls:
    """``call`` is a side effect that parks every call until the test resolves it."""

    def __init__(self):
        self.calls = []

    async def call(self, *args, **kwargs):
        future = asyncio.get_running_loop().create_future()
        self.calls.append((args, kwargs, future))
        return await future

    def resolve(self, index: int, result: RemoteResult) -> None:
        self.calls[index][2].set_result(result)


async def settle(rounds: int = 5) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture()
def gateway() -> AsyncMock:
    # every call succeeds with an empty payload unless a test says otherwise
    gw = AsyncMock(spec=RemoteGateway)
    for name in GATEWAY_METHODS:
        getattr(gw, name).return_value = RemoteResult.ok()
    gw.list_images.return_value = RemoteResult.ok(page_payload([]))
    return gw


@pytest.fixture()
def png_bytes() -> bytes:
    return make_image_bytes()


@pytest.fixture()
def sandbox_app():
    # lazy import after env configured
    from photodesk.infrastructure.sandbox.app import create_sandbox_app

    return create_sandbox_app()


@pytest.fixture()
def auth_header() -> dict[str, str]:
    # any token is accepted by the sandbox
    return {"Authorization": "Bearer test-user"}
