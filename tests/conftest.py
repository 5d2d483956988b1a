import pytest
import pytest_asyncio

import interview_bot.storage.db_config as db_config
from interview_bot.config.settings import Settings

from helpers import GROUP, PRESIDENT, FakeChannel


@pytest_asyncio.fixture
async def db():
    await db_config.init_db(":memory:")
    yield db_config.conn
    await db_config.close_db()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        channel_access_token="test-token",
        channel_secret="test-secret",
        org_timezone="Asia/Taipei",
        president_user_id=PRESIDENT,
        group_id=GROUP,
        admin_auth_token="admin-token",
    )


@pytest.fixture
def channel() -> FakeChannel:
    return FakeChannel()
