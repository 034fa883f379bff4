#!/usr/bin/env python3
"""SensorLink transmitter with simulated sensors.

Runs the transmission loop on a host that has no location or motion
hardware, feeding it a random-walk GPS track and gravity-dominated
accelerometer readings.

Usage:
    # Send to a microcontroller on the LAN for one minute
    python -m tools.simulator.transmit --target 192.168.1.50 --duration 60

    # With relay fallback and outcome logging through a SensorLink server
    python -m tools.simulator.transmit --target 192.168.1.50 \
        --relay http://localhost:5000 --persistence http://localhost:5000

    # Against the fake device (see fake_device.py)
    python -m tools.simulator.transmit --target 127.0.0.1:8081
"""

from __future__ import annotations

import argparse
import asyncio
import time

import httpx

from sensorlink.client.device import DeviceClient
from sensorlink.client.persistence import PersistenceClient
from sensorlink.client.relay import RelayClient
from sensorlink.config import load_config
from sensorlink.core.transmitter import TransmissionLoop
from sensorlink.log import setup_logging
from sensorlink.sensors.base import LocationOptions
from sensorlink.sensors.simulated import SimulatedLocationAdapter, SimulatedMotionAdapter
from sensorlink.sensors.source import SensorSource


def print_status(loop: TransmissionLoop) -> None:
    snap = loop.snapshot()
    stats = snap["statistics"]
    countdown = snap["seconds_until_next_attempt"]
    status = snap["status"]["text"] if snap["status"] else ""
    next_in = f"next in {countdown:.1f}s" if countdown is not None else "idle"
    print(
        f"[{snap['connection_state']:>12}] "
        f"sent {stats['successful']}/{stats['total']} ({stats['success_rate']:.1f}%)  "
        f"{next_in}  {status}"
    )


async def run_transmitter(args: argparse.Namespace) -> None:
    config = load_config(args.config)
    if args.target:
        config.transmitter.target_address = args.target
    if args.relay is not None:
        config.transmitter.relay_url = args.relay
    if args.persistence is not None:
        config.transmitter.persistence_url = args.persistence
    if args.interval:
        config.transmitter.interval_seconds = args.interval
    setup_logging(config)

    lat, lon = args.center
    tracking = LocationOptions(
        high_accuracy=config.sensors.high_accuracy,
        timeout_seconds=config.sensors.location_timeout_seconds,
        maximum_age_seconds=config.sensors.tracking_max_age_seconds,
    )
    initial = LocationOptions(
        high_accuracy=config.sensors.high_accuracy,
        timeout_seconds=config.sensors.location_timeout_seconds,
        maximum_age_seconds=config.sensors.initial_max_age_seconds,
    )
    sensors = SensorSource(
        SimulatedLocationAdapter(lat, lon, tracking_options=tracking, initial_options=initial),
        SimulatedMotionAdapter(),
    )

    print(f"Transmitting to {config.transmitter.target_address} "
          f"every {config.transmitter.interval_seconds:g}s for {args.duration}s")
    print(f"  Relay: {config.transmitter.relay_url or '(none)'}")
    print(f"  Persistence: {config.transmitter.persistence_url or '(none)'}")
    print()

    timeout = config.transmitter.request_timeout_seconds
    async with httpx.AsyncClient(timeout=timeout) as http:
        relay = RelayClient(http, config.transmitter.relay_url, timeout) if config.transmitter.relay_url else None
        persistence = (
            PersistenceClient(http, config.transmitter.persistence_url)
            if config.transmitter.persistence_url else None
        )
        loop = TransmissionLoop(
            sensors,
            DeviceClient(http, relay=relay, timeout=timeout),
            config.transmitter.target_address,
            persistence=persistence,
            interval=config.transmitter.interval_seconds,
        )

        if not await loop.start():
            print(f"Could not start: {loop.status.text} {sensors.errors}")
            return

        start = time.monotonic()
        try:
            while time.monotonic() - start < args.duration:
                await asyncio.sleep(1.0)
                print_status(loop)
        finally:
            loop.stop()
            await loop.drain()

        stats = loop.statistics
        print(f"\nDone in {time.monotonic() - start:.1f}s")
        print(f"  Attempts: {stats.total}")
        print(f"  Successful: {stats.successful}")
        print(f"  Success rate: {stats.success_rate:.1f}%")

        if persistence is not None:
            try:
                server_stats = await persistence.transmission_stats()
                print(f"\nServer log stats (all sessions):")
                print(f"  Total: {server_stats['total']}")
                print(f"  Successful: {server_stats['successful']}")
                print(f"  Success rate: {server_stats['success_rate']:.1f}%")
            except httpx.HTTPError as exc:
                print(f"\nServer stats unavailable: {exc}")


def main():
    parser = argparse.ArgumentParser(description="SensorLink transmitter (simulated sensors)")
    parser.add_argument("--config", default=None, help="Path to config.yaml")
    parser.add_argument("--target", default=None, help="Device address, e.g. 192.168.1.50")
    parser.add_argument("--relay", default=None, help="Relay server base URL")
    parser.add_argument("--persistence", default=None, help="Persistence server base URL")
    parser.add_argument("--interval", type=float, default=None, help="Seconds between ticks")
    parser.add_argument("--duration", type=int, default=60, help="Run time in seconds")
    parser.add_argument("--center", type=str, default="45.764,4.835",
                        help="Start lat,lon (default: Lyon)")

    args = parser.parse_args()

    lat, lon = args.center.split(",")
    args.center = (float(lat), float(lon))

    asyncio.run(run_transmitter(args))


if __name__ == "__main__":
    main()
