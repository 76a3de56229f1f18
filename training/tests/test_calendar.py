from datetime import date, datetime, timedelta

from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from training import datetime_utils
from training.models import SessionAttendance, TrainingSession
from users.models import User


class MonthGridTest(SimpleTestCase):
    def assertGridCoversMonth(self, year, month):
        weeks = datetime_utils.month_grid(year, month, date(2000, 1, 1))
        days = [day["date"] for week in weeks for day in week]

        self.assertTrue(all(len(week) == 7 for week in weeks))
        self.assertEqual(days[0].weekday(), 0, msg="grid starts on Monday")
        self.assertEqual(days[-1].weekday(), 6, msg="grid ends on Sunday")
        self.assertEqual(days, [days[0] + timedelta(days=i) for i in range(len(days))])

        in_month = [day["date"] for week in weeks for day in week if day["in_month"]]
        first, last = datetime_utils.month_bounds(year, month)
        self.assertEqual(in_month, [first + timedelta(days=i) for i in range((last - first).days + 1)])

    def test_every_month_of_a_leap_and_common_year(self):
        for year in (2024, 2025):
            for month in range(1, 13):
                with self.subTest(year=year, month=month):
                    self.assertGridCoversMonth(year, month)

    def test_month_starting_on_monday(self):
        # September 2025 begins on a Monday
        weeks = datetime_utils.month_grid(2025, 9, date(2025, 9, 15))
        self.assertEqual(weeks[0][0]["date"], date(2025, 9, 1))
        self.assertTrue(any(day["is_today"] for week in weeks for day in week))

    def test_clamping(self):
        fallback = date(2026, 4, 10)
        self.assertEqual(datetime_utils.clamp_year_month("1999", "0", fallback), (2020, 1))
        self.assertEqual(datetime_utils.clamp_year_month("2099", "13", fallback), (2030, 12))
        self.assertEqual(datetime_utils.clamp_year_month("abc", None, fallback), (2026, 4))

    def test_adjacent_months_wrap_years(self):
        nav = datetime_utils.adjacent_months(2026, 1)
        self.assertEqual(nav["prev"], {"year": 2025, "month": 12})
        self.assertEqual(nav["next"], {"year": 2026, "month": 2})
        self.assertEqual(datetime_utils.adjacent_months(2026, 12)["next"], {"year": 2027, "month": 1})

    def test_date_filter_ranges(self):
        current = datetime(2026, 3, 11, 15, 30)  # Wednesday
        start, end = datetime_utils.date_filter_range("this_week", current)
        self.assertEqual(start, datetime(2026, 3, 9))
        self.assertEqual(end, datetime(2026, 3, 16))
        self.assertEqual(datetime_utils.date_filter_range("this_month", current)[1], datetime(2026, 4, 1))
        self.assertIsNone(datetime_utils.date_filter_range("upcoming", current))


class CalendarViewTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.pat = User.objects.create_user(username="pat", password="pass", role="participant")
        self.client.force_authenticate(self.pat)

        self.mine = TrainingSession.objects.create(title="Mine", session_date=datetime(2025, 3, 3, 10, 0))
        self.other = TrainingSession.objects.create(title="Other", session_date=datetime(2025, 3, 3, 14, 0))
        # shown in the trailing days of the March grid
        TrainingSession.objects.create(title="April", session_date=datetime(2025, 4, 2, 9, 0))
        SessionAttendance.objects.create(session=self.mine, user=self.pat)

    def test_sessions_bucketed_by_day(self):
        resp = self.client.get(reverse("training-calendar"), {"year": 2025, "month": 3})
        self.assertEqual(resp.status_code, 200)
        data = resp.json()

        days = {day["date"]: day for week in data["weeks"] for day in week}
        march_third = days["2025-03-03"]
        self.assertEqual([s["title"] for s in march_third["sessions"]], ["Mine", "Other"])
        self.assertEqual([s["is_registered"] for s in march_third["sessions"]], [True, False])
        self.assertEqual([s["title"] for s in days["2025-04-02"]["sessions"]], ["April"])
        self.assertFalse(days["2025-04-02"]["in_month"])

        self.assertEqual(data["stats"]["total_sessions_month"], 2)
        self.assertEqual(data["stats"]["my_sessions_month"], 1)
        self.assertEqual(data["navigation"]["prev"], {"year": 2025, "month": 2})

    def test_out_of_range_year_is_clamped(self):
        resp = self.client.get(reverse("training-calendar"), {"year": 1900, "month": 15})
        self.assertEqual(resp.json()["year"], 2020)
        self.assertEqual(resp.json()["month"], 12)
