import argparse
import os
import random

from flowcast.config import load_settings
from flowcast.core import log
from flowcast.core.dispatcher import Dispatcher
from flowcast.core.metrics import force_emit, start_exporter, stop_exporter
from flowcast.core.transmitter import transmitter

l = log.get("demo")


def main():
    ap = argparse.ArgumentParser(description="dispatch a few price updates through dependent stores")
    ap.add_argument("--config", default=os.getenv("FLOWCAST_CONFIG"))
    ap.add_argument("--n", type=int, default=5)
    args = ap.parse_args()

    settings = load_settings(args.config)
    settings.apply()
    start_exporter(interval_sec=settings.metrics_interval, json_mode=settings.log_json)

    d = Dispatcher("demo.dispatcher")
    changes = transmitter("demo.changes")
    changes.subscribe(lambda state: l.info("view sees %s", state))

    state = {"price": 0.0, "qty": 0, "total": 0.0}

    def on_total(p):
        # total needs both inputs from this same payload
        d.wait_for([price_tok, qty_tok])
        state["total"] = state["price"] * state["qty"]
        changes.push(dict(state))

    def on_price(p):
        state["price"] = p["price"]

    def on_qty(p):
        state["qty"] = p["qty"]

    d.register(on_total)  # registered first on purpose
    price_tok = d.register(on_price)
    qty_tok = d.register(on_qty)

    for _ in range(args.n):
        d.dispatch({"price": round(random.uniform(1, 10), 2), "qty": random.randint(1, 5)})

    stop_exporter()
    force_emit(json_mode=settings.log_json)


if __name__ == "__main__":
    main()
