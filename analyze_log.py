import sys

import pandas as pd

from esb_planner.src.config.paths import output_path

log_file = sys.argv[1] if len(sys.argv) > 1 else 'simulation_log.csv'
df = pd.read_csv(output_path(log_file))

print(f'Total rows: {len(df)}')
print(f'Days: {df["day"].nunique()}')
print(f'Buses: {df["bus_id"].nunique()}')
print(f'Final score: {df["score"].iloc[-1]}')

print(f'\n{"="*60}')
print('STATUS DISTRIBUTION:')
print(df['status'].value_counts())

print(f'\n{"="*60}')
print('BATTERY STATISTICS:')
print(df['battery_percent'].describe())

print(f'\n{"="*60}')
print('PER-DAY SUMMARY:')
per_day = df.groupby('day').agg(
    weather=('weather', 'first'),
    start_percent=('battery_percent', 'first'),
    min_percent=('battery_percent', 'min'),
    end_percent=('battery_percent', 'last'),
    energy_kwh=('energy_consumed_kwh', 'max'),
    distance_miles=('distance_miles', 'max'),
    charging_ticks=('status', lambda s: (s == 'charging').sum()),
)
print(per_day)

print(f'\n{"="*60}')
print('CHARGING STATIONS USED:')
stations = df['charging_station'].fillna('None')
used = df[stations != 'None']
if used.empty:
    print('None')
else:
    print(used.groupby(['day', 'charging_station']).size())

print(f'\n{"="*60}')
print('SAMPLE TIMELINE (phase changes):')
changes = df[df['trip_phase'] != df['trip_phase'].shift()]
for _, row in changes.head(15).iterrows():
    print(f'Day {row["day"]} {row["clock"]}: {row["trip_phase"]} ({row["status"]}, {row["battery_percent"]:.0f}%)')
