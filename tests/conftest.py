# nosec B101


from datetime import UTC, datetime
from decimal import Decimal

import pytest
import pytest_asyncio

from domain.exceptions.rate import NotSupportedError
from domain.models.rate import RateObservation
from infrastructure.persistence.database import Database
from infrastructure.persistence.repositories.rate import RateRepository
from infrastructure.providers.base import RateSource
from infrastructure.providers.registry import ProviderRegistry


class StubSource(RateSource):
    def __init__(self, name, rate=None, error=None, table=None, mtime=None, note=None, answer_pair=None):
        self._name = name
        self.rate = rate
        self.error = error
        self.table = table
        self.mtime = mtime
        self.note = note
        self.answer_pair = answer_pair
        self.calls = 0

    @property
    def name(self):
        return self._name

    async def get_spot_rate(self, from_currency, to_currency, rate_type):
        self.calls += 1
        if self.error is not None:
            raise self.error
        if self.rate is None:
            raise NotSupportedError(f'{self.name} has no spot rates')
        if self.answer_pair:
            from_currency, to_currency = self.answer_pair
        return RateObservation(
            from_currency=from_currency,
            to_currency=to_currency,
            rate_type=rate_type,
            rate=Decimal(str(self.rate)),
            source=self.name,
            note=self.note,
            source_mtime=self.mtime,
        )

    async def get_all_spot_rates(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        if self.table is None:
            raise NotSupportedError(f'{self.name} has no rate table')
        return [
            RateObservation(
                from_currency=f, to_currency=t, rate_type=rt, rate=Decimal(str(r)),
                source=self.name, source_mtime=self.mtime,
            )
            for f, t, rt, r in self.table
        ]


@pytest.fixture
def stub_source():
    return StubSource


@pytest.fixture
def make_registry():
    def _make(*sources):
        return ProviderRegistry({source.name: source for source in sources})
    return _make


@pytest.fixture
def now():
    return datetime.now(UTC)


@pytest_asyncio.fixture
async def database(tmp_path):
    db = Database(f'sqlite+aiosqlite:///{tmp_path}/rates.db')
    await db.create_tables()
    yield db
    await db.close()


@pytest_asyncio.fixture
async def repository(database):
    return RateRepository(database)
