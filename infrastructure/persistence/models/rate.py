from datetime import datetime
from decimal import Decimal

from sqlalchemy import DECIMAL, DateTime, Index, Integer, SmallInteger, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
	pass


class RateDB(Base):
	"""Append-only history of rate observations."""

	__tablename__ = 'fiatx_rate'

	id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
	query_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
	mtime: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
	from_currency: Mapped[str] = mapped_column(String(10), nullable=False)
	to_currency: Mapped[str] = mapped_column(String(10), nullable=False)
	rate: Mapped[Decimal] = mapped_column(DECIMAL(precision=21, scale=8), nullable=False)
	source: Mapped[str] = mapped_column(String(32), nullable=False)
	type: Mapped[str] = mapped_column(String(32), nullable=False, default='')
	note: Mapped[str | None] = mapped_column(String(255), nullable=True)
	key: Mapped[int | None] = mapped_column('_key', SmallInteger, nullable=True)

	__table_args__ = (
		Index('fiatx_rate_time', 'query_time'),
		{'sqlite_autoincrement': True},
	)

	def __repr__(self):
		return f'<RateDB({self.source} {self.from_currency}/{self.to_currency} {self.type}={self.rate} @ {self.query_time})>'
