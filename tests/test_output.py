import pandas as pd
import pytest

from esb_planner.src.config import paths
from esb_planner.src.config.settings import ScenarioConfig
from esb_planner.src.planning.policy import GreedyPolicy
from esb_planner.src.simulation.engine import EngineStatus, SimulationEngine
from esb_planner.src.simulation.logger import SimulationLogger
from esb_planner.src.simulation.summary import annual_projection, week_frame
from esb_planner.src.visualization import create_dashboard

from conftest import FixedRouteProvider, build_route


@pytest.fixture
def output_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(paths, "OUTPUT_DIR", tmp_path)
    return tmp_path


@pytest.fixture
def logged_engine(output_dir):
    scenario = ScenarioConfig(bus_class="A", guess_distance_miles=22, weather_pattern="spring")
    engine = SimulationEngine(
        scenario,
        route=build_route(distance_miles=44.0),
        route_provider=FixedRouteProvider(),
        logger=SimulationLogger("test_log.csv")
    )
    assert engine.run(policy=GreedyPolicy(engine.settings)) == EngineStatus.COMPLETED
    return engine


def test_logger_writes_one_row_per_tick(logged_engine, output_dir):
    df = pd.read_csv(output_dir / "test_log.csv")

    assert list(df.columns) == logged_engine.logger.fieldnames
    assert sorted(df["day"].unique()) == [1, 2, 3]
    assert df["battery_percent"].between(0, 100).all()
    assert df.iloc[0]["clock"].endswith("AM")
    assert df.iloc[-1]["status"] == "completed"
    # The final row is logged before day 3 is scored
    assert df.iloc[-1]["score"] == 250 + 325


def test_dashboard_written(logged_engine, output_dir):
    path = create_dashboard("test_log.csv", "test_dashboard.html")
    assert path == str(output_dir / "test_dashboard.html")
    assert (output_dir / "test_dashboard.html").stat().st_size > 0


def test_week_frame_joins_points_and_decisions(logged_engine):
    frame = week_frame(logged_engine.week, logged_engine.score)
    assert list(frame["day"]) == [1, 2, 3]
    assert list(frame["points"]) == [250, 325, 325]
    assert pd.isna(frame.loc[0, "overnight_target_percent"])
    assert frame.loc[1, "overnight_target_percent"] == 75


def test_annual_projection_scales_to_school_year(settings):
    annual = annual_projection(
        distance_miles=132.0, electric_cost=30.0, v2g_earnings=6.0, diesel=60.0,
        co2_avoided_lbs=90.0, scenario_days=3, settings=settings
    )
    assert annual.school_days == 180
    assert annual.distance_miles == pytest.approx(7920.0)
    assert annual.electric_cost == pytest.approx(1800.0)
    assert annual.net_electric_cost == pytest.approx(1440.0)
    assert annual.savings == pytest.approx(3600.0 - 1440.0)


def test_net_cost_never_negative(settings):
    annual = annual_projection(10.0, 1.0, 5.0, 8.0, 0.0, 3, settings)
    assert annual.net_electric_cost == 0.0
