import json
import random
import unittest
from datetime import timedelta

from market_breadth.breadth.bucketer import bucket_label
from market_breadth.breadth.engine import compute_breadth
from market_breadth.errors import EmptyResult
from market_breadth.sources.memory import InMemoryRecordSource

from support import ts

NOW = ts(10, 30)


def doc(ltp, close, at, security_id=1, volume=100):
    return {"security_id": security_id, "LTP": ltp, "close": close, "volume": volume, "timestamp": at}


class TestBreadthEngine(unittest.TestCase):
    def test_worked_example(self):
        source = InMemoryRecordSource()
        source.insert_many(
            [
                doc(11, 10, ts(10, 0, 5)),
                doc(9, 10, ts(10, 0, 40)),
                doc(10, 10, ts(10, 1, 0)),
            ]
        )

        result = compute_breadth(source, now=NOW).to_response()

        self.assertEqual(
            result["chartData"],
            [
                {"time": "10:00", "advances": 1, "declines": 1},
                {"time": "10:01", "advances": 0, "declines": 0},
            ],
        )
        self.assertEqual(result["current"], {"advances": 0, "declines": 0, "total": 0})

    def test_empty_window_raises(self):
        with self.assertRaises(EmptyResult):
            compute_breadth(InMemoryRecordSource(), now=NOW)

    def test_only_stale_records_raise(self):
        source = InMemoryRecordSource()
        source.insert(doc(11, 10, NOW - timedelta(minutes=61)))

        with self.assertRaises(EmptyResult):
            compute_breadth(source, now=NOW)

    def test_window_is_configurable(self):
        source = InMemoryRecordSource()
        source.insert(doc(11, 10, NOW - timedelta(minutes=20)))
        source.insert(doc(9, 10, NOW - timedelta(minutes=5)))

        series = compute_breadth(source, now=NOW, window_minutes=10)

        self.assertEqual([p.time for p in series.chart_data], ["10:25"])

    def test_unparseable_prices_are_skipped(self):
        source = InMemoryRecordSource()
        source.insert_many(
            [
                doc("abc", 10, ts(10, 0, 1)),
                doc(11, "", ts(10, 0, 2)),
                doc(12, 10, ts(10, 0, 3)),
            ]
        )

        point = compute_breadth(source, now=NOW).chart_data[0]

        self.assertEqual((point.advances, point.declines, point.skipped), (1, 0, 2))

    def test_properties_on_random_data(self):
        rng = random.Random(7)
        source = InMemoryRecordSource()
        minute_counts = {}

        for i in range(400):
            at = NOW - timedelta(seconds=rng.randint(0, 3599))
            ltp = rng.choice([9, 10, 11, "10.00", "n/a", None, 10.5])
            source.insert(doc(ltp, 10, at, security_id=i % 40))
            label = bucket_label(at)
            minute_counts[label] = minute_counts.get(label, 0) + 1

        series = compute_breadth(source, now=NOW)
        labels = [p.time for p in series.chart_data]

        # One point per distinct minute, unique, in time order.
        self.assertEqual(len(labels), len(minute_counts))
        self.assertEqual(len(set(labels)), len(labels))
        self.assertEqual(labels, sorted(labels))

        for point in series.chart_data:
            self.assertLessEqual(point.advances + point.declines, minute_counts[point.time])
            self.assertEqual(
                point.advances + point.declines + point.unchanged + point.skipped,
                minute_counts[point.time],
            )

        last = series.chart_data[-1]
        self.assertEqual(series.current.advances, last.advances)
        self.assertEqual(series.current.declines, last.declines)
        self.assertEqual(series.current.total, last.advances + last.declines)

    def test_deterministic_output(self):
        rng = random.Random(11)
        source = InMemoryRecordSource()
        for i in range(200):
            at = NOW - timedelta(seconds=rng.randint(0, 1800))
            source.insert(doc(rng.choice([9, 10, 11]), 10, at, security_id=i))

        first = json.dumps(compute_breadth(source, now=NOW).to_response())
        second = json.dumps(compute_breadth(source, now=NOW).to_response())

        self.assertEqual(first, second)

    def test_reordering_within_bucket_keeps_point(self):
        rows = [
            doc(11, 10, ts(10, 0, 0), security_id=1),
            doc(9, 10, ts(10, 0, 0), security_id=2),
            doc(12, 10, ts(10, 0, 0), security_id=3),
            doc(8, 10, ts(10, 1, 0), security_id=1),
        ]
        a = InMemoryRecordSource()
        a.insert_many(rows)
        b = InMemoryRecordSource()
        b.insert_many([rows[2], rows[0], rows[1], rows[3]])

        self.assertEqual(
            compute_breadth(a, now=NOW).to_response(),
            compute_breadth(b, now=NOW).to_response(),
        )

    def test_window_across_midnight_keeps_latest_bucket_current(self):
        source = InMemoryRecordSource()
        yesterday = NOW - timedelta(days=1)
        source.insert_many(
            [
                doc(11, 10, yesterday + timedelta(minutes=1)),
                doc(11, 10, yesterday + timedelta(hours=13, minutes=29)),
                doc(9, 10, NOW),
            ]
        )

        series = compute_breadth(source, now=NOW, window_minutes=1439)

        self.assertEqual([p.time for p in series.chart_data], ["10:31", "23:59", "10:30"])
        self.assertEqual(series.current.model_dump(), {"advances": 0, "declines": 1, "total": 1})

    def test_window_of_a_day_or_more_is_rejected(self):
        source = InMemoryRecordSource()
        source.insert_many(
            [
                doc(11, 10, NOW - timedelta(days=1, minutes=30)),
                doc(9, 10, NOW - timedelta(minutes=30)),
            ]
        )

        for window, width in ((1500, 1), (1440, 1), (1436, 5)):
            with self.subTest(window=window, width=width):
                with self.assertRaises(ValueError):
                    compute_breadth(source, now=NOW, window_minutes=window, bucket_minutes=width)
