from __future__ import annotations

import pytest

from courtbook import new_scheduler, registry
from datetime import datetime
from pytz import utc
from uuid import uuid4 as new_uuid


from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from collections.abc import Generator
    from courtbook.db.models import Resource
    from courtbook.db.scheduler import Scheduler


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        '--postgresql',
        action='store_true',
        default=False,
        help='run the tests against a temporary PostgreSQL server'
    )


def new_test_scheduler(
    dsn: str,
    context_name: str | None = None
) -> Scheduler:

    context_name = context_name or new_uuid().hex

    context = registry.register_context(context_name, replace=True)
    context.set_setting('dsn', dsn)

    return new_scheduler(
        context=context,
        timezone='Europe/Zurich'
    )


@pytest.fixture
def scheduler(
    request: pytest.FixtureRequest,
    dsn: str
) -> Generator[Scheduler, None, None]:

    # clear the events before each test
    from courtbook.modules import events
    for event in (e for e in dir(events) if e.startswith('on_')):
        del getattr(events, event)[:]

    scheduler = new_test_scheduler(dsn)

    yield scheduler

    scheduler.rollback()
    scheduler.extinguish_managed_records()
    scheduler.commit()
    scheduler.close()
    scheduler.session_provider.stop_service()


@pytest.fixture
def now() -> datetime:
    """ The time all requests in the tests are made at. """
    return datetime(2026, 3, 2, 9, 0, tzinfo=utc)


@pytest.fixture
def court(scheduler: Scheduler) -> Resource:
    resource = scheduler.resources.add_resource(
        'Court 1', hourly_rate='80.00', capacity=10, type='futsal'
    )
    scheduler.commit()

    return resource


@pytest.fixture(scope="session")
def dsn(
    request: pytest.FixtureRequest,
    tmp_path_factory: pytest.TempPathFactory
) -> Generator[str, None, None]:

    postgres = None

    if request.config.getoption('--postgresql'):
        from testing.postgresql import Postgresql  # type: ignore[import-untyped]
        postgres = Postgresql()
        url = postgres.url()
    else:
        path = tmp_path_factory.mktemp('courtbook') / 'courtbook.db'
        url = f'sqlite:///{path}'

    scheduler = new_test_scheduler(url)
    scheduler.setup_database()
    scheduler.commit()

    yield url

    scheduler.close()
    scheduler.session_provider.stop_service()

    if postgres is not None:
        postgres.stop()
