import random
from datetime import date

from nutribot.services.motivation import (
    FEEDBACK, MESSAGES, WeekStats, adherence_score, category, current_streak,
    motivational_message, personalized_tips, weakest_area, weekly_summary,
)


def test_score_and_category():
    perfect = WeekStats(water_pct=100, exercise_days=7, calorie_days=7, supplements_pct=100)
    assert adherence_score(perfect) == 100
    assert category(100) == "excellent"
    assert category(60) == "good"
    assert category(40) == "average"
    assert category(39) == "needs_improvement"


def test_weakest_area():
    stats = WeekStats(water_pct=90, exercise_days=1, calorie_days=7, supplements_pct=100)
    assert weakest_area(stats) == "exercise"


def test_message_with_streak_and_feedback():
    stats = WeekStats(water_pct=10, exercise_days=5, calorie_days=5, supplements_pct=100)
    msg = motivational_message(30, 5, stats, rng=random.Random(1))
    assert any(m in msg for m in MESSAGES["needs_improvement"])
    assert "5 dias" in msg
    assert FEEDBACK["water"] in msg


def test_message_high_score_no_feedback():
    msg = motivational_message(90, 1, rng=random.Random(2))
    assert not any(f in msg for f in FEEDBACK.values())
    assert "dias" not in msg


def test_tips():
    poor = WeekStats(water_pct=10, exercise_days=0, calorie_days=0, supplements_pct=0)
    assert len(personalized_tips(poor)) == 4
    good = WeekStats(water_pct=100, exercise_days=7, calorie_days=7, supplements_pct=100)
    assert len(personalized_tips(good)) == 1


def test_weekly_summary():
    stats = WeekStats(water_pct=100, exercise_days=0, calorie_days=7, supplements_pct=100)
    text = weekly_summary(stats)
    assert "exercícios" in text


def test_current_streak():
    today = date(2024, 3, 10)
    days = ["2024-03-10", "2024-03-09", "2024-03-08", "2024-03-06"]
    assert current_streak(days, today) == 3
    # today not logged yet: count up to yesterday
    assert current_streak(["2024-03-09", "2024-03-08"], today) == 2
    assert current_streak([], today) == 0
