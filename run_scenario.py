import argparse

from esb_planner.src.config.settings import ScenarioConfig, WEATHER_PATTERNS
from esb_planner.src.data.loader import load_public_chargers, load_route
from esb_planner.src.planning.policy import GreedyPolicy
from esb_planner.src.simulation.engine import SimulationEngine
from esb_planner.src.simulation.logger import SimulationLogger
from esb_planner.src.visualization.dashboard import create_dashboard


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description="Run a 3-day electric school bus scenario with an automatic player.")
    parser.add_argument('--bus_class', type=str, default='A', choices=['A', 'C'], help='Bus class (A = small, C = full-size).')
    parser.add_argument('--capacity', type=float, default=None, help='Battery capacity in kWh (80-220). Defaults to the class default.')
    parser.add_argument('--distance', type=float, default=22.0, help='One-way route distance guess in miles.')
    parser.add_argument('--weather', type=str, default='fall', choices=sorted(WEATHER_PATTERNS), help='Weather pattern for the three days.')
    parser.add_argument('--seed', type=int, default=None, help='Seed for the synthetic route generator.')
    parser.add_argument('--stops_csv', type=str, default=None, help='Load the route from a stop table instead of generating it.')
    parser.add_argument('--chargers_csv', type=str, default=None, help='Public chargers for a loaded route.')
    parser.add_argument('--log_file', type=str, default='simulation_log.csv', help='Per-tick CSV log written to the output directory.')
    parser.add_argument('--no_v2g', action='store_true', help='Never discharge to the grid overnight.')
    parser.add_argument('--dashboard', action='store_true', help='Write a plotly dashboard from the log.')
    args = parser.parse_args()

    scenario = ScenarioConfig(
        bus_class=args.bus_class,
        battery_capacity_kwh=args.capacity,
        guess_distance_miles=args.distance,
        weather_pattern=args.weather
    )

    route, chargers = None, None
    if args.stops_csv:
        route = load_route(args.stops_csv)
        chargers = load_public_chargers(args.chargers_csv, route) if args.chargers_csv else []

    engine = SimulationEngine(
        scenario,
        logger=SimulationLogger(args.log_file),
        route=route,
        public_chargers=chargers,
        seed=args.seed
    )
    engine.run(policy=GreedyPolicy(engine.settings, use_v2g=not args.no_v2g))

    if args.dashboard:
        create_dashboard(args.log_file)
