"""Example of instrumenting plain synchronous code.

Run with:
    python -m examples.script_example
"""

import json
import time

from perfwatch import create_default_monitor

monitor = create_default_monitor(max_metrics=500)


@monitor.timed("report.render.timing")
def render(rows: int) -> str:
    time.sleep(rows / 1000)
    return "\n".join(f"row {i}" for i in range(rows))


def parse(text: str) -> int:
    return len(text.splitlines())


if __name__ == "__main__":
    for rows in (10, 120, 600):
        text = render(rows)
        monitor.measure("report.parse.timing", parse, text)

    monitor.record_memory(used=72.5, total=512, limit=2048)
    monitor.record_error("export", ValueError("column 'total' missing"))

    print(json.dumps(monitor.get_statistics("report.render.timing").to_dict(), indent=2))
    for alert in monitor.get_alerts():
        print(f"[{alert.level}] {alert.message}")
    print(json.dumps(monitor.get_report().to_dict(), indent=2))
