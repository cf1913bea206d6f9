import asyncio

from services.pointcloud import PointCloudContext
from services.pointcloud_service import PointCloudService

SURVEY_TEXT = "0 0 0\n1 1 1\n2 2 2\n3 3 3\n"


def test_service_built_outside_a_loop_handles_concurrent_calls():
    service = PointCloudService(PointCloudContext())

    async def session():
        await service.load_text(SURVEY_TEXT)
        return await asyncio.gather(
            service.select(True),
            service.estimate_resolution(0),
            service.get_box(),
        )

    count, spacing, box = asyncio.run(session())

    assert count == 4
    assert spacing > 0
    assert box["scale"] == [3.0, 3.0, 3.0]


def test_lock_is_created_on_first_call():
    service = PointCloudService(PointCloudContext())
    assert service._lock is None

    asyncio.run(service.get_box())

    assert service._lock is not None
