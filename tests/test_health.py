import asyncio
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, inspect

from recipe_share.db.session import DatabaseMonitor, ping


def test_health_reports_connected_database(client: TestClient):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "environment": "testing", "database": "connected"}


def test_security_headers(client: TestClient):
    response = client.get("/")
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"


def test_ping_unreachable_database():
    unreachable = create_engine("sqlite:////nonexistent-dir/recipes.db")
    assert ping(unreachable) is False


def test_monitor_keeps_retrying_while_database_is_down():
    unreachable = create_engine("sqlite:////nonexistent-dir/recipes.db")

    async def scenario():
        monitor = DatabaseMonitor(bind=unreachable, retry_seconds=0.01)
        await monitor.start()
        await asyncio.sleep(0.2)
        # Still disconnected, still trying
        assert monitor.connected is False
        assert not monitor._task.done()
        assert await monitor.check() is False
        await monitor.stop()
        assert monitor._task.cancelled()

    asyncio.run(scenario())


def test_monitor_survives_exhausted_pool(tmp_path):
    bind = create_engine(f"sqlite:///{tmp_path / 'busy.db'}", pool_size=1, max_overflow=0, pool_timeout=0.1)
    held = bind.connect()

    async def scenario():
        monitor = DatabaseMonitor(bind=bind, retry_seconds=0.01)
        await monitor.start()
        await asyncio.sleep(0.5)
        # Pool timeouts are retried like any other outage
        assert not monitor._task.done()
        assert monitor.connected is False

        held.close()
        await monitor.wait_until_connected(timeout=5)
        assert monitor.connected is True
        await monitor.stop()

    asyncio.run(scenario())


def test_monitor_connects_and_creates_tables(tmp_path):
    bind = create_engine(f"sqlite:///{tmp_path / 'fresh.db'}")

    async def scenario():
        monitor = DatabaseMonitor(bind=bind, retry_seconds=0.01)
        await monitor.start()
        await monitor.wait_until_connected(timeout=5)
        assert monitor.connected is True
        assert await monitor.check() is True
        await monitor.stop()

    asyncio.run(scenario())
    tables = set(inspect(bind).get_table_names())
    assert {"users", "recipes", "recipe_ingredients", "recipe_steps", "ratings", "comments", "favorites"} <= tables
