from attendance_workflow.attendance.factory import DayStrategyFactory
from attendance_workflow.attendance.strategies.non_working_day_strategy import NonWorkingDayStrategy
from attendance_workflow.attendance.strategies.workday_strategy import WorkdayStrategy


def test_factory_picks_workday_strategy_on_weekday():
    strategy = DayStrategyFactory().for_day("2026-01-27")

    assert isinstance(strategy, WorkdayStrategy)


def test_factory_picks_non_working_strategy_on_weekend():
    strategy = DayStrategyFactory().for_day("2026-01-31")

    assert isinstance(strategy, NonWorkingDayStrategy)


def test_factory_picks_non_working_strategy_on_holiday():
    strategy = DayStrategyFactory().for_day("2026-01-27", frozenset({"2026-01-27"}))

    assert isinstance(strategy, NonWorkingDayStrategy)
