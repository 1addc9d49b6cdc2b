from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import UTC, datetime
from decimal import Decimal

from domain.exceptions.rate import NoRatesFoundError
from domain.models.rate import RATE_QUANTUM, AggregationPolicy, RateObservation

GroupKey = tuple[str, str]


def _group(observations: Iterable[RateObservation]) -> dict[GroupKey, list[RateObservation]]:
	groups: dict[GroupKey, list[RateObservation]] = {}
	for observation in observations:
		groups.setdefault(observation.group_key, []).append(observation)
	return groups


def _sources(group: list[RateObservation]) -> list[str]:
	return sorted({o.source for o in group if o.source})


def _mtime_key(observation: RateObservation) -> float:
	# rows without a provider mtime rank as the oldest possible
	if observation.source_mtime is None:
		return float('-inf')
	return observation.source_mtime.timestamp()


def _select(
	group: list[RateObservation],
	label: str,
	key: Callable[[RateObservation], Decimal | float],
	highest: bool,
) -> RateObservation:
	chosen = group[0]
	for observation in group[1:]:
		better = key(observation) > key(chosen) if highest else key(observation) < key(chosen)
		if better:
			chosen = observation

	sources = _sources(group)
	if len(sources) > 1:
		listing = ', '.join(sources)
		note = f'{chosen.note} ({label} of {listing})' if chosen.note else f'{label} of {listing}'
		chosen = replace(chosen, note=note)
	return chosen


def _average(group: list[RateObservation]) -> RateObservation:
	members: dict[str | None, RateObservation] = {}
	for observation in group:
		members.setdefault(observation.source, observation)
	contributors = list(members.values())
	first = contributors[0]
	if len(contributors) == 1:
		return first

	rate = sum((o.rate for o in contributors), Decimal(0)) / len(contributors)
	rounded = rate.quantize(RATE_QUANTUM)
	# means below the stored precision stay exact
	if rounded > 0:
		rate = rounded

	mtimes = [o.source_mtime.timestamp() for o in contributors if o.source_mtime is not None]
	mtime = datetime.fromtimestamp(sum(mtimes) / len(mtimes), tz=UTC) if mtimes else None

	query_times = [o.query_time for o in contributors if o.query_time is not None]

	return replace(
		first,
		rate=rate,
		source=None,
		note=f'(average of {", ".join(_sources(contributors))})',
		source_mtime=mtime,
		query_time=max(query_times) if query_times else None,
	)


_REDUCERS: dict[AggregationPolicy, Callable[[list[RateObservation]], RateObservation]] = {
	AggregationPolicy.HIGHEST: lambda g: _select(g, 'highest', lambda o: o.rate, highest=True),
	AggregationPolicy.LOWEST: lambda g: _select(g, 'lowest', lambda o: o.rate, highest=False),
	AggregationPolicy.NEWEST: lambda g: _select(g, 'newest', _mtime_key, highest=True),
	AggregationPolicy.OLDEST: lambda g: _select(g, 'oldest', _mtime_key, highest=False),
	AggregationPolicy.AVERAGE: _average,
}


def aggregate(observations: Iterable[RateObservation], policy: AggregationPolicy) -> list[RateObservation]:
	"""
	Reduce observations to the rows the caller asked for.

	Pass-through policies (any, specific, all) keep every observation;
	the others emit one row per (pair, rate_type). Output is sorted by
	(pair, rate_type).

	Raises:
		NoRatesFoundError: nothing left to return
	"""
	reducer = _REDUCERS.get(policy)
	if reducer is None:
		result = sorted(observations, key=lambda o: (o.pair, o.rate_type, o.source or ''))
	else:
		groups = _group(observations)
		result = [reducer(groups[key]) for key in sorted(groups)]

	if not result:
		raise NoRatesFoundError()
	return result
